# =============================================================================
# shoply_core/services/__init__.py
# Service Layer
# =============================================================================

from .base_service import BaseService, ServiceResult
from .database import ShoplyData
from .account_service import AccountService
from .catalog import DEFAULT_PLANS, initialize_plans

__all__ = [
    "BaseService",
    "ServiceResult",
    "ShoplyData",
    "AccountService",
    "DEFAULT_PLANS",
    "initialize_plans",
]
