"""
Authentication, session state and route guarding.
"""

from .authentication import (
    AuthService,
    Identity,
    SupabaseIdentity,
    AUTH_ERROR_MESSAGES,
    DEFAULT_AUTH_ERROR_MESSAGE,
    format_auth_error,
    get_error_message,
    normalize_auth_code,
)
from .session import (
    SessionManager,
    SessionSnapshot,
    SessionState,
    ACTIVITY_EVENTS,
)
from .navigation import (
    NavigationState,
    Page,
    Route,
    RouteDecision,
    resolve_route,
    PUBLIC_PAGES,
    PROTECTED_PAGES,
)

__all__ = [
    "AuthService",
    "Identity",
    "SupabaseIdentity",
    "AUTH_ERROR_MESSAGES",
    "DEFAULT_AUTH_ERROR_MESSAGE",
    "format_auth_error",
    "get_error_message",
    "normalize_auth_code",
    "SessionManager",
    "SessionSnapshot",
    "SessionState",
    "ACTIVITY_EVENTS",
    "NavigationState",
    "Page",
    "Route",
    "RouteDecision",
    "resolve_route",
    "PUBLIC_PAGES",
    "PROTECTED_PAGES",
]
