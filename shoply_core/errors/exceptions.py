# =============================================================================
# shoply_core/errors/exceptions.py
# Custom Exception Hierarchy for Shoply
# =============================================================================

from typing import Optional, Dict, Any


class ShoplyError(Exception):
    """
    Base exception for all Shoply errors.

    Attributes:
        message: Human-readable error description
        code: Machine-readable error code (e.g., "STORE_001")
        details: Additional context as a dictionary
        recoverable: Whether the error can be recovered from
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        recoverable: bool = True,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or "SHOPLY_000"
        self.details = details or {}
        self.recoverable = recoverable

    def __str__(self) -> str:
        base = f"[{self.code}] {self.message}"
        if self.details:
            base += f" | Details: {self.details}"
        return base

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization"""
        return {
            "error_type": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "details": self.details,
            "recoverable": self.recoverable,
        }


# =============================================================================
# CONFIGURATION EXCEPTIONS
# =============================================================================

class ConfigurationError(ShoplyError):
    """Raised when a required setting is missing or malformed"""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        expected_type: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if config_key:
            details["config_key"] = config_key
        if expected_type:
            details["expected_type"] = expected_type

        super().__init__(
            message=message,
            code="CONFIG_001",
            details=details,
            recoverable=False,
            **kwargs,
        )


# =============================================================================
# CONNECTIVITY EXCEPTIONS
# =============================================================================

class ConnectivityError(ShoplyError):
    """Raised when the remote store cannot be reached or re-enabled"""

    def __init__(
        self,
        message: str,
        attempts: Optional[int] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if attempts is not None:
            details["attempts"] = attempts

        super().__init__(
            message=message,
            code="NET_001",
            details=details,
            **kwargs,
        )


# =============================================================================
# DOCUMENT STORE EXCEPTIONS
# =============================================================================

class RemoteStoreError(ShoplyError):
    """Base class for failures talking to the remote document store"""

    default_code = "STORE_000"

    def __init__(
        self,
        message: str,
        collection: Optional[str] = None,
        doc_id: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if collection:
            details["collection"] = collection
        if doc_id:
            details["doc_id"] = doc_id

        super().__init__(
            message=message,
            code=kwargs.pop("code", self.default_code),
            details=details,
            **kwargs,
        )


class RemoteReadError(RemoteStoreError):
    """Raised when a remote get or query fails"""

    default_code = "STORE_001"


class RemoteWriteError(RemoteStoreError):
    """Raised when a remote create, update or delete fails"""

    default_code = "STORE_002"


class StoreOfflineError(RemoteStoreError):
    """Raised by the store adapter when called while its network is disabled"""

    default_code = "STORE_003"


# =============================================================================
# AUTH EXCEPTIONS
# =============================================================================

class AuthError(ShoplyError):
    """
    Coded error from the auth service.

    ``code`` is the normalised ``auth/...`` code and ``message`` is the
    user-facing text from the message table.
    """

    def __init__(self, code: str, message: str, **kwargs):
        super().__init__(message=message, code=code, **kwargs)


# =============================================================================
# VALIDATION EXCEPTIONS
# =============================================================================

class FormValidationError(ShoplyError):
    """Raised when submitted form data fails field validation"""

    def __init__(
        self,
        errors: Dict[str, str],
        message: str = "Please correct the highlighted fields",
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        details["fields"] = dict(errors)
        self.errors = dict(errors)

        super().__init__(
            message=message,
            code="FORM_001",
            details=details,
            **kwargs,
        )
