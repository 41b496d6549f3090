# =============================================================================
# tests/unit/test_account_service.py
# Unit Tests for AccountService form handling
# =============================================================================

import pytest

from shoply_core.auth.authentication import AuthService
from shoply_core.auth.session import SessionManager
from shoply_core.services.account_service import AccountService, field_errors, first_error

STRONG_PASSWORD = "Secur3!pass"


@pytest.fixture
def accounts(fake_auth, data, monitor, app_config):
    auth = AuthService(fake_auth, data, app_config)
    session = SessionManager(auth, data, monitor=monitor)
    return AccountService(auth, session, data)


class TestSignUpForm:
    """Sign-up validation and error messages"""

    @pytest.mark.asyncio
    async def test_sign_up_success(self, accounts, monitor, online_store):
        await monitor.handle_online()

        result = await accounts.sign_up("ada@example.com", STRONG_PASSWORD, STRONG_PASSWORD, "Ada Lovelace")

        assert result.success
        assert online_store.document("users", result.data.id)["name"] == "Ada Lovelace"

    @pytest.mark.asyncio
    async def test_email_in_use(self, accounts, fake_auth):
        fake_auth.add_account("ada@example.com", STRONG_PASSWORD)

        result = await accounts.sign_up("ada@example.com", STRONG_PASSWORD, STRONG_PASSWORD, "Ada")

        assert not result
        assert result.error_code == "auth/email-already-in-use"
        assert result.error.startswith("This email is already registered")

    @pytest.mark.asyncio
    async def test_field_errors(self, accounts, fake_auth):
        result = await accounts.sign_up("not-an-email", "weak", "other", "A")

        errors = field_errors(result)
        assert not result
        assert result.error_code == "FORM_001"
        assert errors["email"] == "Please enter a valid email address"
        assert errors["password"].startswith("Password must contain at least 8 characters")
        assert errors["confirm_password"] == "Passwords do not match"
        assert errors["name"] == "Please enter a valid name"
        assert fake_auth.accounts == {}

    @pytest.mark.asyncio
    async def test_first_error(self, accounts):
        result = await accounts.sign_up("ada@example.com", STRONG_PASSWORD, "different!A1", "Ada")

        assert first_error(result) == "Passwords do not match"


class TestSignInForm:
    """Sign-in and password reset"""

    @pytest.mark.asyncio
    async def test_wrong_password(self, accounts, fake_auth):
        fake_auth.add_account("ada@example.com", STRONG_PASSWORD)

        result = await accounts.sign_in("ada@example.com", "wrong")

        assert result.error == "Invalid email or password."

    @pytest.mark.asyncio
    async def test_password_required(self, accounts):
        result = await accounts.sign_in("ada@example.com", "")

        assert field_errors(result) == {"password": "This field is required"}

    @pytest.mark.asyncio
    async def test_reset_password(self, accounts, fake_auth):
        result = await accounts.reset_password("ada@example.com")

        assert result
        assert fake_auth.reset_requests[0][0] == "ada@example.com"

    @pytest.mark.asyncio
    async def test_refresh_without_session(self, accounts):
        result = await accounts.refresh_session()

        assert result.error_code == "auth/session-expired"
        assert result.error == "Your session has expired. Please sign in again to continue."


class TestProfileAndBilling:
    """Profile edits, chatbots and plan changes"""

    @pytest.mark.asyncio
    async def test_update_profile(self, accounts, data, monitor):
        await monitor.handle_online()
        await data.create_user("u1", {"email": "ada@example.com", "name": "Ada"})

        result = await accounts.update_profile("u1", {
            "name": "Ada King",
            "email": "ada@example.com",
            "phone": "+44 20 7946 0958",
            "settings": {"theme": "dark"},
        })

        profile = await data.get_user("u1")
        assert result
        assert profile.name == "Ada King"
        assert profile.phone == "+44 20 7946 0958"
        assert profile.settings.theme == "dark"

    @pytest.mark.asyncio
    async def test_update_profile_rejects_bad_phone(self, accounts):
        result = await accounts.update_profile("u1", {
            "name": "Ada", "email": "ada@example.com", "phone": "12ab",
        })

        assert field_errors(result) == {"phone": "Please enter a valid phone number"}

    @pytest.mark.asyncio
    async def test_create_chatbot_validation(self, accounts):
        result = await accounts.create_chatbot("u1", {"name": "Helper", "temperature": 3.0})

        assert field_errors(result) == {"temperature": "Temperature must be between 0 and 1"}

    @pytest.mark.asyncio
    async def test_create_chatbot(self, accounts, monitor):
        await monitor.handle_online()

        result = await accounts.create_chatbot("u1", {"name": "Helper", "tone": "friendly"})

        assert result
        assert result.data.settings.tone == "friendly"

    @pytest.mark.asyncio
    async def test_store_failure_becomes_message(self, accounts, monitor, online_store):
        await monitor.handle_online()
        online_store.fail_writes = 1

        result = await accounts.change_plan("u1", "pro")

        assert not result
        assert result.error == "Failed to update your subscription. Please try again."

    @pytest.mark.asyncio
    async def test_change_plan(self, accounts, data, monitor):
        await monitor.handle_online()

        result = await accounts.change_plan("u1", "starter", is_yearly=True)

        active = await data.get_active_subscription("u1")
        assert result
        assert active.id == result.data
        assert active.is_yearly
