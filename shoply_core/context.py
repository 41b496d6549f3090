# =============================================================================
# shoply_core/context.py
# Application Context: construction and lifecycle of the core services
# =============================================================================
"""
AppContext wires the core together once at startup and is passed to whatever
needs it. Nothing in the core is a module-level singleton.

    context = await AppContext.create(load_config())
    await context.start()
    plans = await context.data.get_plans()
    ...
    await context.stop()
"""

from __future__ import annotations
import time
from pathlib import Path
from typing import Any, Callable, Optional

from shoply_core.auth.authentication import AuthService
from shoply_core.auth.navigation import NavigationState
from shoply_core.auth.session import SessionManager, SessionSnapshot, SessionState
from shoply_core.cache.persistence import PersistenceCache
from shoply_core.config import AppConfig
from shoply_core.data.supabase_client import (
    DocumentStore,
    SupabaseDocumentStore,
    create_store_client,
)
from shoply_core.logging import get_logger
from shoply_core.offline.connectivity import ConnectivityMonitor, NetworkProbe
from shoply_core.offline.pending_queue import PendingOperationJournal
from shoply_core.runtime import AsyncRunner
from shoply_core.services.account_service import AccountService
from shoply_core.services.database import ShoplyData

logger = get_logger(__name__)


class AppContext:
    """
    All core services for one client.

    Args:
        config: Application configuration
        store: Remote document store
        auth_client: Supabase auth client (``client.auth``) or a compatible fake
        journal: Optional durable pending-operation journal
        use_probe: Feed the monitor from a NetworkProbe on the store host;
            otherwise the network is assumed up at start
        clock: Monotonic clock shared by the cache and the session timer
    """

    def __init__(
        self,
        config: AppConfig,
        store: DocumentStore,
        auth_client: Any,
        journal: Optional[PendingOperationJournal] = None,
        use_probe: bool = False,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config
        self.store = store
        self.journal = journal
        self._auth_client = auth_client

        self.monitor = ConnectivityMonitor(
            store,
            journal=journal,
            max_retry_attempts=config.retry_max_attempts,
            retry_base_delay=config.retry_base_delay,
            retry_backoff_factor=config.retry_backoff_factor,
        )
        self.cache = PersistenceCache(
            store,
            self.monitor,
            expiry_seconds=config.cache_ttl_seconds,
            clock=clock,
        )
        self.data = ShoplyData(self.cache)
        self.auth = AuthService(auth_client, self.data, config)
        self.session = SessionManager(
            self.auth,
            self.data,
            monitor=self.monitor,
            timeout_seconds=config.session_timeout_seconds,
            clock=clock,
        )
        self.accounts = AccountService(self.auth, self.session, self.data)
        self.navigation = NavigationState()
        self.probe = NetworkProbe.for_url(self.monitor, config.store_url) if use_probe else None
        self._started = False

    @classmethod
    async def create(cls, config: AppConfig) -> AppContext:
        """Build a context connected to the configured Supabase project."""
        client = await create_store_client(config)
        journal = None
        if config.pending_queue_path:
            journal = PendingOperationJournal(Path(config.pending_queue_path))
        return cls(
            config,
            SupabaseDocumentStore(client),
            client.auth,
            journal=journal,
            use_probe=True,
        )

    async def start(self) -> None:
        """Restore queued writes, bring the network up, resolve the session."""
        if self._started:
            return

        await self.monitor.start()
        if self.probe is not None:
            await self.probe.check_once()
            self.probe.start()
        else:
            await self.monitor.handle_online()

        self.session.register_callback(self._on_session_change)
        await self.session.start()
        self._started = True
        logger.info(
            f"Shoply core started ({self.config.environment}, "
            f"network {'enabled' if self.monitor.network_enabled else 'disabled'})"
        )

    async def stop(self) -> None:
        if self.probe is not None:
            await self.probe.stop()
        await self.session.stop()
        await self.monitor.stop()

        for resource in (self.store, self._auth_client):
            close = getattr(resource, "close", None)
            if close is not None:
                try:
                    await close()
                except Exception as e:
                    logger.warning(f"Error closing {type(resource).__name__}: {e}")
        if self.journal is not None:
            self.journal.close()
        self._started = False
        logger.info("Shoply core stopped")

    def _on_session_change(self, snapshot: SessionSnapshot) -> None:
        if snapshot.state is SessionState.ANONYMOUS:
            self.cache.clear_cache()


class AppContextHandle:
    """
    Holds one browser session's AppContext on the shared AsyncRunner.

    Streamlit drops a session's state when the visitor goes away; once this
    handle is garbage collected the context is stopped on the runner's loop,
    which cancels its probe and idle tasks and closes its client and journal.
    """

    def __init__(self, context: AppContext, runner: AsyncRunner):
        self.context = context
        self._release = runner.run_on_release(self, context.stop)
