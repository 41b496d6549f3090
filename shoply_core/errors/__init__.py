# =============================================================================
# shoply_core/errors/__init__.py
# Centralized Error Handling for Shoply
# =============================================================================

from .exceptions import (
    ShoplyError,
    ConfigurationError,
    ConnectivityError,
    RemoteStoreError,
    RemoteReadError,
    RemoteWriteError,
    StoreOfflineError,
    AuthError,
    FormValidationError,
)

__all__ = [
    "ShoplyError",
    "ConfigurationError",
    "ConnectivityError",
    "RemoteStoreError",
    "RemoteReadError",
    "RemoteWriteError",
    "StoreOfflineError",
    "AuthError",
    "FormValidationError",
]
