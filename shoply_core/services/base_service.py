# =============================================================================
# shoply_core/services/base_service.py
# Base Service Class and Result Container
# =============================================================================

from __future__ import annotations
from abc import ABC
from typing import Optional, Dict, Any, Tuple, Type
from dataclasses import dataclass

from shoply_core.logging import get_logger, LogContext
from shoply_core.errors import AuthError, FormValidationError, ShoplyError

GENERIC_FAILURE_MESSAGE = "An error occurred. Please try again."


@dataclass
class ServiceResult:
    """
    Outcome of a form-facing operation.

    Truthy on success. On failure ``error`` holds text safe to show the user
    and ``error_code`` the machine-readable code (``auth/...``, ``FORM_001``).
    """
    success: bool
    data: Optional[Any] = None
    error: Optional[str] = None
    error_code: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None

    def __bool__(self) -> bool:
        return self.success

    @classmethod
    def ok(cls, data: Any = None, metadata: Dict[str, Any] = None) -> ServiceResult:
        return cls(success=True, data=data, metadata=metadata)

    @classmethod
    def fail(
        cls,
        error: str,
        error_code: str = "UNKNOWN",
        metadata: Dict[str, Any] = None
    ) -> ServiceResult:
        return cls(
            success=False,
            error=error,
            error_code=error_code,
            metadata=metadata,
        )

    @classmethod
    def from_exception(cls, e: Exception) -> ServiceResult:
        """Failed result carrying a ShoplyError's message, or the generic one."""
        if isinstance(e, ShoplyError):
            return cls(
                success=False,
                error=e.message,
                error_code=e.code,
                metadata=e.details,
            )
        return cls(
            success=False,
            error=GENERIC_FAILURE_MESSAGE,
            error_code="EXCEPTION",
        )


class BaseService(ABC):
    """
    Base class for services that sit between the pages and the core.

    Usage:
        class ChatbotService(BaseService):
            async def rename(self, chatbot_id, name) -> ServiceResult:
                with self.log_operation("Renaming chatbot"):
                    chatbot = await ...
                return ServiceResult.ok(chatbot)
    """

    # Failures that are answers for the user rather than faults
    expected_errors: Tuple[Type[BaseException], ...] = (AuthError, FormValidationError)

    def __init__(self):
        self.logger = get_logger(self.__class__.__name__)

    def log_operation(self, operation: str) -> LogContext:
        """Timing and outcome logging for one operation."""
        return LogContext(self.logger, operation, expected=self.expected_errors)
