# =============================================================================
# shoply_core/errors/handlers.py
# Error Handling Utilities for the Streamlit pages
# =============================================================================

from __future__ import annotations
import functools
from typing import Optional, Callable, TypeVar
import streamlit as st

from shoply_core.logging import get_logger
from .exceptions import (
    AuthError,
    ConnectivityError,
    FormValidationError,
    ShoplyError,
    StoreOfflineError,
)

logger = get_logger(__name__)

T = TypeVar("T")

GENERIC_ERROR_MESSAGE = "Something went wrong while loading this page."
OFFLINE_HINT = "You appear to be offline. Changes will sync when the connection returns."

# Errors whose message is already written for the user
USER_FACING_ERRORS = (AuthError, FormValidationError)


def user_message_for(error: Exception) -> str:
    """Text a page should show for an error."""
    if isinstance(error, (StoreOfflineError, ConnectivityError)):
        return OFFLINE_HINT
    if isinstance(error, ShoplyError):
        return error.message
    return GENERIC_ERROR_MESSAGE


def handle_error(
    error: Exception,
    show_user_message: bool = True,
    user_message: Optional[str] = None,
) -> None:
    """
    Log an error and, optionally, report it on the page.

    Coded user-facing errors (auth, form validation) are expected outcomes and
    are logged at WARNING without a traceback. Everything else is logged at
    ERROR with one.

    Args:
        error: The exception to handle
        show_user_message: Whether to display the error with st.error / st.warning
        user_message: Message shown instead of the default for this error type
    """
    if isinstance(error, USER_FACING_ERRORS):
        logger.warning(f"[{error.code}] {error.message}")
    elif isinstance(error, ShoplyError):
        logger.error(f"[{error.code}] {error.message}", extra={"details": error.details}, exc_info=error)
    else:
        logger.error(f"[UNKNOWN] {error}", exc_info=error)

    if not show_user_message:
        return

    message = user_message or user_message_for(error)
    if isinstance(error, (StoreOfflineError, ConnectivityError)):
        st.warning(message)
    elif isinstance(error, ShoplyError) and not error.recoverable:
        st.error(f"{message} Please contact support.")
    else:
        st.error(message)


def safe_execute(
    func: Callable[..., T],
    *args,
    default: Optional[T] = None,
    error_message: Optional[str] = None,
    **kwargs,
) -> Optional[T]:
    """
    Call func, reporting any exception on the page and returning default.

    Usage:
        plans = safe_execute(
            run, context.data.get_plans(),
            default=[],
            error_message="Failed to load plans"
        )
    """
    try:
        return func(*args, **kwargs)
    except Exception as e:
        handle_error(e, user_message=error_message)
        return default


def render_error_screen(error: Exception, retry_key: str = "error_retry") -> None:
    """
    Generic recoverable error screen with a retry action.

    The retry button reruns the script, which re-executes the page body.
    """
    handle_error(error, show_user_message=False)
    st.error(GENERIC_ERROR_MESSAGE)
    st.caption("You can try again. If the problem persists, contact support.")
    if st.button("Try again", key=retry_key):
        st.rerun()


def error_boundary(func: Callable[..., T]) -> Callable[..., Optional[T]]:
    """
    Top-level boundary for a page's render function.

    Any exception escaping the page body is logged and replaced by the generic
    error screen.

    Usage:
        @error_boundary
        def render_dashboard():
            ...
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs) -> Optional[T]:
        try:
            return func(*args, **kwargs)
        except Exception as e:
            render_error_screen(e, retry_key=f"retry_{func.__name__}")
            return None

    return wrapper
