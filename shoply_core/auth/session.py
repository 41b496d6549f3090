# =============================================================================
# shoply_core/auth/session.py
# Session / Identity State, Idle Timeout and Token Refresh
# =============================================================================
"""
SessionManager - bridges the auth service's identity stream into application
session state.

States:
    LOADING ──identity──> AUTHENTICATED ──idle >= timeout──> SESSION_EXPIRED
       │                      │  ^                                │
       └──None──> ANONYMOUS <─┘  └────── refresh_session() ───────┘

Entering AUTHENTICATED loads the user profile; if that load fails, or there is
no profile, the session is treated as signed out. Idle expiry forces a sign-out
but stays in SESSION_EXPIRED (the sign-out's own None echo is absorbed) so the
UI can offer a refresh.

The idle watcher is a single task that sleeps until the current deadline and
re-checks the last activity when it wakes, so activity never needs to
reschedule anything.
"""

from __future__ import annotations
import asyncio
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Any, AsyncIterator, Awaitable, Callable, List, Optional, Set, TYPE_CHECKING

from shoply_core.auth.authentication import AuthService, Identity
from shoply_core.logging import get_logger
from shoply_core.models import UserProfile

if TYPE_CHECKING:
    from shoply_core.offline.connectivity import ConnectivityMonitor
    from shoply_core.services.database import ShoplyData

logger = get_logger(__name__)

# Events that count as user activity
ACTIVITY_EVENTS = ("mousemove", "keydown", "click", "touchstart", "scroll")


class SessionState(Enum):
    LOADING = "loading"
    AUTHENTICATED = "authenticated"
    ANONYMOUS = "anonymous"
    SESSION_EXPIRED = "session_expired"


@dataclass(frozen=True)
class SessionSnapshot:
    """What route guards and forms read."""
    state: SessionState
    current_identity: Optional[Identity]
    user_profile: Optional[UserProfile]
    is_online: bool = True
    connection_error: Optional[str] = None

    @property
    def loading(self) -> bool:
        return self.state is SessionState.LOADING

    @property
    def session_expired(self) -> bool:
        return self.state is SessionState.SESSION_EXPIRED

    @property
    def is_authenticated(self) -> bool:
        return self.state is SessionState.AUTHENTICATED


class SessionManager:
    """
    Usage:
        session = SessionManager(auth, data, monitor)
        await session.start()
        session.record_activity("click")
        if session.snapshot().session_expired:
            await session.refresh_session()
    """

    SESSION_TIMEOUT = 3600.0    # Seconds of inactivity

    def __init__(
        self,
        auth: AuthService,
        data: "ShoplyData",
        monitor: Optional["ConnectivityMonitor"] = None,
        timeout_seconds: float = SESSION_TIMEOUT,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.auth = auth
        self.data = data
        self.monitor = monitor
        self.timeout_seconds = timeout_seconds
        self._clock = clock
        self._sleep = sleep

        self._state = SessionState.LOADING
        self._identity: Optional[Identity] = None
        self._profile: Optional[UserProfile] = None
        self._expired_identity: Optional[Identity] = None
        self._absorb_sign_out_echo = False
        self._last_activity = clock()

        self._lock = asyncio.Lock()
        self._idle_task: Optional[asyncio.Task] = None
        self._event_tasks: Set[asyncio.Task] = set()
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._callbacks: List[Callable[[SessionSnapshot], None]] = []

    # =========================================================================
    # STATE
    # =========================================================================

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def current_identity(self) -> Optional[Identity]:
        return self._identity

    @property
    def user_profile(self) -> Optional[UserProfile]:
        return self._profile

    @property
    def last_activity(self) -> float:
        return self._last_activity

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            state=self._state,
            current_identity=self._identity,
            user_profile=self._profile,
            is_online=self.monitor.is_online if self.monitor is not None else True,
            connection_error=self.monitor.connection_error if self.monitor is not None else None,
        )

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    async def start(self) -> None:
        """Subscribe to the identity stream and resolve the initial state."""
        self._unsubscribe = self.auth.on_auth_state_change(self._on_identity_event)
        identity = await self.auth.current_identity()
        if self._state is SessionState.LOADING:
            await self.handle_identity(identity)

    async def stop(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._stop_idle_watcher()
        for task in list(self._event_tasks):
            task.cancel()
        if self._event_tasks:
            await asyncio.gather(*self._event_tasks, return_exceptions=True)

    def _on_identity_event(self, identity: Optional[Identity]) -> None:
        # Auth callbacks are synchronous; handle each change as its own task
        task = asyncio.get_running_loop().create_task(self.handle_identity(identity))
        self._event_tasks.add(task)
        task.add_done_callback(self._event_tasks.discard)

    async def wait_for_events(self) -> None:
        """Wait until queued identity changes are handled."""
        while self._event_tasks:
            await asyncio.gather(*list(self._event_tasks), return_exceptions=True)

    # =========================================================================
    # TRANSITIONS
    # =========================================================================

    async def handle_identity(self, identity: Optional[Identity]) -> None:
        """Apply one identity change from the auth service."""
        sign_out_needed = False

        async with self._lock:
            if identity is None:
                self._identity = None
                self._profile = None
                self._stop_idle_watcher()
                if self._absorb_sign_out_echo and self._state is SessionState.SESSION_EXPIRED:
                    self._absorb_sign_out_echo = False
                    logger.debug("Sign-out after idle expiry; keeping expired state")
                else:
                    self._expired_identity = None
                    self._state = SessionState.ANONYMOUS
            elif self._state is SessionState.AUTHENTICATED and identity == self._identity:
                # Token refresh or profile update for the same user
                self._identity = identity
                return
            else:
                sign_out_needed = not await self._enter_authenticated(identity)

        self._notify_callbacks()
        if sign_out_needed:
            await self._force_sign_out()

    async def _enter_authenticated(self, identity: Identity) -> bool:
        try:
            profile = await self.data.get_user(identity.id)
        except Exception as e:
            logger.error(f"Failed to load profile for {identity.id}, signing out: {e}")
            profile = None
        else:
            if profile is None:
                logger.error(f"No profile for {identity.id}, signing out")

        if profile is None:
            self._identity = None
            self._profile = None
            self._expired_identity = None
            self._state = SessionState.ANONYMOUS
            return False

        self._identity = identity
        self._profile = profile
        self._expired_identity = None
        self._absorb_sign_out_echo = False
        self._state = SessionState.AUTHENTICATED
        self._last_activity = self._clock()
        self._start_idle_watcher()
        logger.info(f"Session started for {identity.id}")
        return True

    @asynccontextmanager
    async def creating_account(self) -> AsyncIterator[None]:
        """
        Hold identity changes back while a new account's profile is written.

        The auth service announces a new user before its profile exists; the
        announcement is handled once the block exits.

            async with session.creating_account():
                await auth.sign_up(email, password, name)
        """
        async with self._lock:
            yield

    def record_activity(self, event: str = "click") -> None:
        """Note user activity; only ACTIVITY_EVENTS count."""
        if event not in ACTIVITY_EVENTS:
            return
        if self._state is SessionState.AUTHENTICATED:
            self._last_activity = self._clock()

    async def refresh_session(self) -> bool:
        """
        Force a token refresh and, on success, resume the session.

        Returns:
            True if the session is authenticated afterwards
        """
        identity = self._identity or self._expired_identity
        if identity is None:
            return False

        try:
            await identity.get_id_token(force_refresh=True)
        except Exception as e:
            logger.error(f"Session refresh failed: {e}")
            if self._state is SessionState.SESSION_EXPIRED:
                self._absorb_sign_out_echo = True
            await self._force_sign_out()
            return False

        async with self._lock:
            if self._profile is None or self._profile.id != identity.id:
                resumed = await self._enter_authenticated(identity)
            else:
                self._identity = identity
                self._expired_identity = None
                self._absorb_sign_out_echo = False
                self._state = SessionState.AUTHENTICATED
                self._last_activity = self._clock()
                self._start_idle_watcher()
                resumed = True

        self._notify_callbacks()
        if not resumed:
            await self._force_sign_out()
        else:
            logger.info(f"Session refreshed for {identity.id}")
        return resumed

    async def reload_profile(self) -> Optional[UserProfile]:
        """Re-read the signed-in user's profile after it was edited."""
        async with self._lock:
            if self._state is not SessionState.AUTHENTICATED:
                return None
            self._profile = await self.data.get_user(self._identity.id)
        self._notify_callbacks()
        return self._profile

    async def sign_out(self) -> None:
        """User-initiated sign-out: always ends in ANONYMOUS."""
        async with self._lock:
            self._stop_idle_watcher()
            self._absorb_sign_out_echo = False
            self._identity = None
            self._profile = None
            self._expired_identity = None
            self._state = SessionState.ANONYMOUS
        self._notify_callbacks()
        await self.auth.sign_out()

    async def _force_sign_out(self) -> None:
        try:
            await self.auth.sign_out()
        except Exception as e:
            self._absorb_sign_out_echo = False
            logger.error(f"Forced sign-out failed: {e}")

    # =========================================================================
    # IDLE EXPIRY
    # =========================================================================

    def _start_idle_watcher(self) -> None:
        if self._idle_task is None or self._idle_task.done():
            self._idle_task = asyncio.get_running_loop().create_task(self._watch_idle())

    def _stop_idle_watcher(self) -> None:
        task = self._idle_task
        self._idle_task = None
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()

    async def _watch_idle(self) -> None:
        while self._state is SessionState.AUTHENTICATED:
            remaining = self._last_activity + self.timeout_seconds - self._clock()
            if remaining <= 0:
                await self._expire()
                return
            await self._sleep(remaining)

    async def _expire(self) -> None:
        async with self._lock:
            if self._state is not SessionState.AUTHENTICATED:
                return
            logger.info(f"Session for {self._identity.id} expired after inactivity")
            self._expired_identity = self._identity
            self._state = SessionState.SESSION_EXPIRED
            self._absorb_sign_out_echo = True
            self._idle_task = None

        self._notify_callbacks()
        await self._force_sign_out()

    # =========================================================================
    # CALLBACKS
    # =========================================================================

    def register_callback(self, callback: Callable[[SessionSnapshot], None]) -> None:
        if callback not in self._callbacks:
            self._callbacks.append(callback)

    def unregister_callback(self, callback: Callable[[SessionSnapshot], None]) -> None:
        if callback in self._callbacks:
            self._callbacks.remove(callback)

    def _notify_callbacks(self) -> None:
        snapshot = self.snapshot()
        for callback in self._callbacks:
            try:
                callback(snapshot)
            except Exception as e:
                logger.error(f"Error in session callback: {e}")
