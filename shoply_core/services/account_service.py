# =============================================================================
# shoply_core/services/account_service.py
# Form Boundary: validation, core calls and user-facing results
# =============================================================================
"""
AccountService - what the pages call when a form is submitted.

Every method validates its input first and never raises: failures come back
as ``ServiceResult.fail(message, code)`` ready to render inline.

    result = await accounts.sign_up(email, password, confirm, name)
    if not result:
        st.error(result.error)
"""

from __future__ import annotations
from typing import Any, Dict, Mapping, Optional

from shoply_core.auth.authentication import AuthService
from shoply_core.auth.session import SessionManager
from shoply_core.errors import AuthError, FormValidationError, ShoplyError
from shoply_core.forms.validation import (
    COMMON_VALIDATION_RULES,
    ValidationRule,
    validate_form,
)
from shoply_core.services.base_service import (
    GENERIC_FAILURE_MESSAGE,
    BaseService,
    ServiceResult,
)
from shoply_core.services.database import ShoplyData

PROFILE_UPDATE_FAILED = "Failed to update profile. Please try again."
CHATBOT_CREATE_FAILED = "Failed to create chatbot. Please try again."
SUBSCRIPTION_FAILED = "Failed to update your subscription. Please try again."

PROFILE_FIELDS = ("name", "email", "phone", "company", "position", "profile_image")


class AccountService(BaseService):
    """Form-facing operations for sign-up, sign-in, profile and billing."""

    def __init__(self, auth: AuthService, session: SessionManager, data: ShoplyData):
        super().__init__()
        self.auth = auth
        self.session = session
        self.data = data

    @staticmethod
    def _invalid(errors: Dict[str, str]) -> ServiceResult:
        error = FormValidationError(errors)
        return ServiceResult.fail(error.message, error.code, metadata={"fields": errors})

    def _failure(self, operation: str, e: Exception, fallback: str) -> ServiceResult:
        if isinstance(e, AuthError):
            return ServiceResult.from_exception(e)
        if isinstance(e, FormValidationError):
            return self._invalid(e.errors)
        if isinstance(e, ShoplyError):
            self.logger.error(f"{operation} failed: {e}")
            return ServiceResult.fail(fallback, e.code, metadata=e.details)
        self.logger.error(f"{operation} failed: {e!r}")
        return ServiceResult.fail(fallback, "EXCEPTION")

    # =========================================================================
    # AUTH FORMS
    # =========================================================================

    async def sign_up(
        self,
        email: str,
        password: str,
        confirm_password: str,
        name: str,
    ) -> ServiceResult:
        form = {
            "name": name,
            "email": email,
            "password": password,
            "confirm_password": confirm_password,
        }
        errors = validate_form(form, {
            "name": COMMON_VALIDATION_RULES["name"],
            "email": COMMON_VALIDATION_RULES["email"],
            "password": COMMON_VALIDATION_RULES["password"],
            "confirm_password": ValidationRule(
                required=True,
                custom=lambda value: value == password,
                message="Passwords do not match",
            ),
        })
        if errors:
            return self._invalid(errors)

        try:
            with self.log_operation("Signing up"):
                async with self.session.creating_account():
                    identity = await self.auth.sign_up(email.strip(), password, name.strip())
        except Exception as e:
            return self._failure("Sign-up", e, GENERIC_FAILURE_MESSAGE)
        return ServiceResult.ok(identity)

    async def sign_in(self, email: str, password: str) -> ServiceResult:
        errors = validate_form({"email": email, "password": password}, {
            "email": COMMON_VALIDATION_RULES["email"],
            "password": ValidationRule(required=True),
        })
        if errors:
            return self._invalid(errors)

        try:
            with self.log_operation("Signing in"):
                identity = await self.auth.sign_in(email.strip(), password)
        except Exception as e:
            return self._failure("Sign-in", e, GENERIC_FAILURE_MESSAGE)
        return ServiceResult.ok(identity)

    async def reset_password(self, email: str) -> ServiceResult:
        errors = validate_form({"email": email}, {"email": COMMON_VALIDATION_RULES["email"]})
        if errors:
            return self._invalid(errors)

        try:
            await self.auth.reset_password(email.strip())
        except Exception as e:
            return self._failure("Password reset", e, GENERIC_FAILURE_MESSAGE)
        return ServiceResult.ok()

    async def sign_out(self) -> ServiceResult:
        try:
            await self.session.sign_out()
        except Exception as e:
            return self._failure("Sign-out", e, GENERIC_FAILURE_MESSAGE)
        return ServiceResult.ok()

    async def refresh_session(self) -> ServiceResult:
        if await self.session.refresh_session():
            return ServiceResult.ok()
        return ServiceResult.fail(
            "Your session has expired. Please sign in again to continue.",
            "auth/session-expired",
        )

    # =========================================================================
    # PROFILE
    # =========================================================================

    async def update_profile(self, user_id: str, form: Mapping[str, Any]) -> ServiceResult:
        errors = validate_form(form, {
            "name": COMMON_VALIDATION_RULES["name"],
            "email": COMMON_VALIDATION_RULES["email"],
            "phone": COMMON_VALIDATION_RULES["phone"],
        })
        if errors:
            return self._invalid(errors)

        changes = {key: form[key] for key in PROFILE_FIELDS if key in form}
        if "settings" in form:
            changes["settings"] = dict(form["settings"])

        return await self._run(
            "Updating profile", PROFILE_UPDATE_FAILED,
            self.data.update_user, user_id, changes,
        )

    # =========================================================================
    # DASHBOARD
    # =========================================================================

    async def create_chatbot(self, user_id: str, form: Mapping[str, Any]) -> ServiceResult:
        settings = {
            key: form[key]
            for key in ("language", "tone", "personality", "max_response_length", "temperature")
            if key in form
        }
        return await self._run(
            "Creating chatbot", CHATBOT_CREATE_FAILED,
            self.data.create_chatbot,
            user_id,
            form.get("name") or "",
            description=form.get("description") or None,
            model=form.get("model") or "gpt-3.5-turbo",
            settings=settings,
        )

    async def change_plan(
        self,
        user_id: str,
        plan_id: str,
        is_yearly: bool = False,
    ) -> ServiceResult:
        return await self._run(
            "Changing plan", SUBSCRIPTION_FAILED,
            self.data.start_subscription, user_id, plan_id, is_yearly,
        )

    async def cancel_subscription(self, subscription_id: str) -> ServiceResult:
        return await self._run(
            "Cancelling subscription", SUBSCRIPTION_FAILED,
            self.data.cancel_subscription, subscription_id,
        )

    async def _run(
        self,
        operation: str,
        fallback: str,
        func,
        *args,
        **kwargs,
    ) -> ServiceResult:
        try:
            with self.log_operation(operation):
                result = await func(*args, **kwargs)
        except Exception as e:
            return self._failure(operation, e, fallback)
        return ServiceResult.ok(result)


def field_errors(result: ServiceResult) -> Dict[str, str]:
    """Field -> message map of a failed validation result."""
    if result.metadata and "fields" in result.metadata:
        return dict(result.metadata["fields"])
    return {}


def first_error(result: ServiceResult) -> Optional[str]:
    errors = field_errors(result)
    return next(iter(errors.values()), None) if errors else result.error
