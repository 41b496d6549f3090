# =============================================================================
# tests/unit/test_session_manager.py
# Unit Tests for SessionManager: identity stream, idle expiry, refresh
# =============================================================================

import pytest

from shoply_core.auth.authentication import AuthService
from shoply_core.auth.session import SessionManager, SessionState

TIMEOUT = 3600.0
EMAIL = "ada@example.com"
PASSWORD = "Secur3!pass"


@pytest.fixture
def auth(fake_auth, data, app_config):
    fake_auth.add_account(EMAIL, PASSWORD, user_id="uid-1")
    return AuthService(fake_auth, data, app_config)


@pytest.fixture
def session(auth, data, monitor, fake_clock, online_store):
    online_store.seed("users", "uid-1", {"email": EMAIL, "name": "Ada Lovelace"})
    return SessionManager(
        auth,
        data,
        monitor=monitor,
        timeout_seconds=TIMEOUT,
        clock=fake_clock,
        sleep=fake_clock.sleep,
    )


async def sign_in(session, auth):
    await session.start()
    await auth.sign_in(EMAIL, PASSWORD)
    await session.wait_for_events()


class TestIdentityStream:
    """Identity changes drive the session state"""

    @pytest.mark.asyncio
    async def test_starts_anonymous_without_stored_session(self, session):
        assert session.state is SessionState.LOADING

        await session.start()

        assert session.state is SessionState.ANONYMOUS
        assert session.snapshot().current_identity is None

    @pytest.mark.asyncio
    async def test_sign_in_loads_profile(self, session, auth):
        await sign_in(session, auth)

        snapshot = session.snapshot()
        assert snapshot.is_authenticated
        assert snapshot.current_identity.id == "uid-1"
        assert snapshot.user_profile.name == "Ada Lovelace"

    @pytest.mark.asyncio
    async def test_stored_session_is_resumed_on_start(self, session, auth, fake_auth):
        await fake_auth.sign_in_with_password({"email": EMAIL, "password": PASSWORD})

        await session.start()

        assert session.state is SessionState.AUTHENTICATED

    @pytest.mark.asyncio
    async def test_missing_profile_signs_out(self, session, auth, online_store, fake_auth):
        online_store.collections["users"].clear()

        await sign_in(session, auth)

        assert session.state is SessionState.ANONYMOUS
        assert session.user_profile is None
        assert fake_auth.sign_out_calls == 1

    @pytest.mark.asyncio
    async def test_profile_failure_signs_out(self, session, auth, online_store, fake_auth):
        await session.start()
        online_store.fail_reads = 1

        await auth.sign_in(EMAIL, PASSWORD)
        await session.wait_for_events()

        assert session.state is SessionState.ANONYMOUS
        assert session.current_identity is None
        assert fake_auth.sign_out_calls == 1

    @pytest.mark.asyncio
    async def test_user_sign_out(self, session, auth, fake_auth):
        await sign_in(session, auth)
        states = []
        session.register_callback(lambda snapshot: states.append(snapshot.state))

        await session.sign_out()
        await session.wait_for_events()

        assert session.state is SessionState.ANONYMOUS
        assert states[0] is SessionState.ANONYMOUS
        assert fake_auth.sign_out_calls == 1

    @pytest.mark.asyncio
    async def test_reload_profile(self, session, auth, online_store):
        await sign_in(session, auth)
        online_store.seed("users", "uid-1", {"email": EMAIL, "name": "Ada King"})
        session.data.cache.invalidate_cache("users", "uid-1")

        profile = await session.reload_profile()

        assert profile.name == "Ada King"
        assert session.snapshot().user_profile.name == "Ada King"


class TestIdleExpiry:
    """Inactivity ends the session"""

    @pytest.mark.asyncio
    async def test_no_expiry_before_timeout(self, session, auth, fake_clock):
        await sign_in(session, auth)

        await fake_clock.advance(TIMEOUT - 1)

        assert session.state is SessionState.AUTHENTICATED

    @pytest.mark.asyncio
    async def test_expires_at_timeout(self, session, auth, fake_clock, fake_auth):
        await sign_in(session, auth)

        await fake_clock.advance(TIMEOUT)
        await session.wait_for_events()

        snapshot = session.snapshot()
        assert snapshot.session_expired
        assert snapshot.current_identity is None
        assert fake_auth.sign_out_calls == 1

    @pytest.mark.asyncio
    async def test_activity_postpones_expiry(self, session, auth, fake_clock):
        await sign_in(session, auth)

        await fake_clock.advance(1800)
        session.record_activity("keydown")
        await fake_clock.advance(1800)
        assert session.state is SessionState.AUTHENTICATED

        await fake_clock.advance(1800)
        await session.wait_for_events()
        assert session.state is SessionState.SESSION_EXPIRED

    @pytest.mark.asyncio
    async def test_unlisted_events_are_ignored(self, session, auth, fake_clock):
        await sign_in(session, auth)

        await fake_clock.advance(1800)
        session.record_activity("resize")
        await fake_clock.advance(1800)
        await session.wait_for_events()

        assert session.state is SessionState.SESSION_EXPIRED


class TestRefresh:
    """Refreshing an expired session"""

    @pytest.mark.asyncio
    async def test_refresh_resumes_and_resets_clock(self, session, auth, fake_clock, fake_auth):
        await sign_in(session, auth)
        await fake_clock.advance(TIMEOUT)
        await session.wait_for_events()
        assert fake_auth.session is None

        assert await session.refresh_session()
        await session.wait_for_events()

        assert fake_auth.refresh_requests == ["refresh-1"]
        assert session.state is SessionState.AUTHENTICATED
        assert session.user_profile.id == "uid-1"

        await fake_clock.advance(TIMEOUT - 1)
        assert session.state is SessionState.AUTHENTICATED

        await fake_clock.advance(1)
        await session.wait_for_events()
        assert session.state is SessionState.SESSION_EXPIRED

    @pytest.mark.asyncio
    async def test_refresh_failure_signs_out(self, session, auth, fake_clock, fake_auth):
        await sign_in(session, auth)
        await fake_clock.advance(TIMEOUT)
        await session.wait_for_events()
        fake_auth.refresh_fails = True

        assert not await session.refresh_session()
        await session.wait_for_events()

        assert session.state is SessionState.SESSION_EXPIRED
        assert session.current_identity is None
        assert fake_auth.sign_out_calls == 2

    @pytest.mark.asyncio
    async def test_refresh_without_identity(self, session):
        await session.start()

        assert not await session.refresh_session()
