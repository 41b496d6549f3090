# =============================================================================
# shoply_core/offline/connectivity.py
# Online/Offline Detection, Reconnection Backoff and Pending Write Replay
# =============================================================================
"""
ConnectivityMonitor - keeps the document store's network switch aligned with
actual reachability.

Features:
- Single owner of the store's "network enabled" flag
- Exponential backoff when re-enabling the network fails
- FIFO queue of writes issued while offline, replayed on reconnect
- Optional SQLite journal so queued writes survive a restart
- Event callbacks for status changes

NetworkProbe is the event source: it checks TCP reachability of the store host
and calls handle_online() / handle_offline() on transitions.
"""

from __future__ import annotations
import asyncio
from collections import deque
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Awaitable, Callable, Deque, List, Optional, Union
from urllib.parse import urlparse

from shoply_core.data.supabase_client import DocumentStore
from shoply_core.logging import get_logger
from shoply_core.offline.pending_queue import PendingOperation, PendingOperationJournal

logger = get_logger(__name__)

# Anything that can be replayed: a journaled write or a bare coroutine function
QueuedOperation = Union[PendingOperation, Callable[[], Awaitable[Any]]]

CONNECTION_ERROR_MESSAGE = "Unable to connect. Please check your internet connection and try again."
OFFLINE_MESSAGE = "You are offline. Some features may be unavailable."


class ConnectionStatus(Enum):
    """Connection status states."""
    ONLINE = "online"               # Network enabled, store reachable
    OFFLINE = "offline"             # Network disabled
    RECONNECTING = "reconnecting"   # Enable failed, retry scheduled
    UNKNOWN = "unknown"             # Initial state


@dataclass
class ConnectionState:
    """Current connection state with metadata."""
    status: ConnectionStatus = ConnectionStatus.UNKNOWN
    is_online: bool = False
    network_enabled: bool = False
    retry_attempts: int = 0
    last_online: Optional[datetime] = None
    last_change: Optional[datetime] = None
    connection_error: Optional[str] = None


class ConnectivityMonitor:
    """
    Drives enable/disable of the store network and replays deferred writes.

    Usage:
        monitor = ConnectivityMonitor(store, journal=journal)
        await monitor.start()
        await monitor.handle_online()
        if not monitor.network_enabled:
            monitor.add_pending_operation(op)
    """

    MAX_RETRY_ATTEMPTS = 5
    RETRY_BASE_DELAY = 1.0          # Seconds before the first retry
    RETRY_BACKOFF_FACTOR = 1.5

    def __init__(
        self,
        store: DocumentStore,
        journal: Optional[PendingOperationJournal] = None,
        max_retry_attempts: int = MAX_RETRY_ATTEMPTS,
        retry_base_delay: float = RETRY_BASE_DELAY,
        retry_backoff_factor: float = RETRY_BACKOFF_FACTOR,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.store = store
        self.journal = journal
        self.max_retry_attempts = max_retry_attempts
        self.retry_base_delay = retry_base_delay
        self.retry_backoff_factor = retry_backoff_factor
        self._sleep = sleep

        self._state = ConnectionState()
        self._pending: Deque[QueuedOperation] = deque()
        self._retry_task: Optional[asyncio.Task] = None
        self._draining = False
        self._callbacks: List[Callable[[ConnectionState], None]] = []

    # =========================================================================
    # STATE
    # =========================================================================

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def status(self) -> ConnectionStatus:
        return self._state.status

    @property
    def is_online(self) -> bool:
        """Last reachability reported by the event source."""
        return self._state.is_online

    @property
    def network_enabled(self) -> bool:
        return self._state.network_enabled

    @property
    def connection_error(self) -> Optional[str]:
        return self._state.connection_error

    @property
    def retry_attempts(self) -> int:
        return self._state.retry_attempts

    @property
    def pending_operations_count(self) -> int:
        return len(self._pending)

    def retry_delay(self, attempt: int) -> float:
        """Delay before retry number ``attempt`` (1-based)."""
        return self.retry_base_delay * (self.retry_backoff_factor ** (attempt - 1))

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    async def start(self) -> None:
        """Restore journaled writes into the queue."""
        if self.journal is None:
            return
        restored = [op.bind(self.store) for op in self.journal.load()]
        self._pending.extend(restored)
        if restored:
            logger.info(f"Restored {len(restored)} pending operations from journal")

    async def stop(self) -> None:
        self._cancel_retry()

    # =========================================================================
    # TRANSITIONS
    # =========================================================================

    async def handle_online(self) -> None:
        """Network came back: enable the store and replay queued writes."""
        self._cancel_retry()
        self._state.retry_attempts = 0
        self._state.is_online = True
        await self._enable()

    async def handle_offline(self) -> None:
        """Network went away: let in-flight writes settle, then disable."""
        self._cancel_retry()
        self._state.retry_attempts = 0
        self._state.is_online = False

        if self._state.network_enabled:
            try:
                await self.store.wait_for_pending_writes()
                await self.store.disable_network()
                self._state.network_enabled = False
                logger.info("Network connection disabled")
            except Exception as e:
                logger.error(f"Error handling offline state: {e}")

        self._state.connection_error = OFFLINE_MESSAGE
        self._set_status(ConnectionStatus.OFFLINE)

    async def _enable(self) -> None:
        if not self._state.network_enabled:
            try:
                await self.store.enable_network()
            except Exception as e:
                logger.error(f"Error enabling network: {e}")
                self.schedule_retry()
                return

            self._state.network_enabled = True
            self._state.retry_attempts = 0
            self._state.last_online = datetime.now()
            logger.info("Network connection enabled")

        self._state.connection_error = None
        self._set_status(ConnectionStatus.ONLINE)
        await self.process_pending_operations()

    def schedule_retry(self) -> Optional[asyncio.Task]:
        """
        Schedule another enable attempt with exponential backoff.

        Returns:
            The retry task, or None once the attempt cap is reached
        """
        if self._state.retry_attempts >= self.max_retry_attempts:
            logger.error("Max retry attempts reached")
            self._state.connection_error = CONNECTION_ERROR_MESSAGE
            self._set_status(ConnectionStatus.OFFLINE, force_notify=True)
            return None

        self._state.retry_attempts += 1
        delay = self.retry_delay(self._state.retry_attempts)
        logger.info(
            f"Retrying connection in {delay:.2f}s "
            f"(attempt {self._state.retry_attempts}/{self.max_retry_attempts})"
        )
        self._set_status(ConnectionStatus.RECONNECTING)
        self._retry_task = asyncio.get_running_loop().create_task(self._retry_after(delay))
        return self._retry_task

    async def _retry_after(self, delay: float) -> None:
        await self._sleep(delay)
        self._retry_task = None
        await self._enable()

    def _cancel_retry(self) -> None:
        task = self._retry_task
        self._retry_task = None
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()

    async def wait_for_retry(self) -> None:
        """Wait until no retry is scheduled (mainly for tests)."""
        while self._retry_task is not None:
            task = self._retry_task
            try:
                await task
            except asyncio.CancelledError:
                if self._retry_task is task:
                    break

    def dismiss_error(self) -> None:
        """Clear the banner message on user request."""
        if self._state.connection_error is not None:
            self._state.connection_error = None
            self._notify_callbacks()

    # =========================================================================
    # PENDING OPERATIONS
    # =========================================================================

    def add_pending_operation(self, operation: QueuedOperation) -> None:
        """Queue a zero-argument async write for replay on reconnect."""
        if isinstance(operation, PendingOperation):
            if operation.store is None:
                operation.bind(self.store)
            if self.journal is not None and operation.journal_id is None:
                self.journal.append(operation)
        self._pending.append(operation)
        logger.debug(f"Queued pending operation ({len(self._pending)} waiting)")

    async def process_pending_operations(self) -> int:
        """
        Replay queued writes in FIFO order.

        A failing operation goes back to the front of the queue and replay
        stops, so later writes never overtake it.

        Returns:
            Number of operations replayed successfully
        """
        if self._draining:
            return 0

        self._draining = True
        processed = 0
        try:
            while self._pending:
                operation = self._pending.popleft()
                try:
                    await operation()
                except Exception as e:
                    logger.error(f"Error processing pending operation: {e}")
                    self._pending.appendleft(operation)
                    if isinstance(operation, PendingOperation) and self.journal is not None \
                            and operation.journal_id is not None:
                        self.journal.record_failure(operation.journal_id, str(e))
                    break

                processed += 1
                if isinstance(operation, PendingOperation) and self.journal is not None \
                        and operation.journal_id is not None:
                    self.journal.remove(operation.journal_id)
        finally:
            self._draining = False

        if processed:
            logger.info(f"Replayed {processed} pending operations, {len(self._pending)} remaining")
            self._notify_callbacks()
        return processed

    # =========================================================================
    # CALLBACKS
    # =========================================================================

    def register_callback(self, callback: Callable[[ConnectionState], None]) -> None:
        """
        Register a callback for connection status changes.

        Args:
            callback: Function called with ConnectionState when status changes
        """
        if callback not in self._callbacks:
            self._callbacks.append(callback)

    def unregister_callback(self, callback: Callable[[ConnectionState], None]) -> None:
        if callback in self._callbacks:
            self._callbacks.remove(callback)

    def _set_status(self, status: ConnectionStatus, force_notify: bool = False) -> None:
        old_status = self._state.status
        self._state.status = status
        if old_status != status or force_notify:
            self._state.last_change = datetime.now()
            if old_status != status:
                logger.info(f"Connection status changed: {old_status.value} -> {status.value}")
            self._notify_callbacks()

    def _notify_callbacks(self) -> None:
        for callback in self._callbacks:
            try:
                callback(self._state)
            except Exception as e:
                logger.error(f"Error in connection callback: {e}")

    def get_status_display(self) -> dict:
        """Get status information for UI display."""
        return {
            "status": self._state.status.value,
            "is_online": self._state.is_online,
            "network_enabled": self._state.network_enabled,
            "retry_attempts": self._state.retry_attempts,
            "pending_operations": len(self._pending),
            "last_online": self._state.last_online.isoformat() if self._state.last_online else None,
            "error": self._state.connection_error,
        }


class NetworkProbe:
    """
    Periodic reachability check of the store host.

    Calls ``monitor.handle_online()`` / ``monitor.handle_offline()`` when the
    host becomes reachable or unreachable. The first check always reports.
    """

    CHECK_INTERVAL_ONLINE = 30      # Seconds between checks when online
    CHECK_INTERVAL_OFFLINE = 10     # Seconds between checks when offline
    CONNECTION_TIMEOUT = 5          # Timeout for connection tests

    def __init__(self, monitor: ConnectivityMonitor, host: str, port: int):
        self.monitor = monitor
        self.host = host
        self.port = port
        self._last_reachable: Optional[bool] = None
        self._task: Optional[asyncio.Task] = None

    @classmethod
    def for_url(cls, monitor: ConnectivityMonitor, url: str) -> NetworkProbe:
        parsed = urlparse(url)
        if not parsed.hostname:
            raise ValueError(f"Cannot probe URL without a host: {url!r}")
        port = parsed.port or (443 if parsed.scheme == "https" else 80)
        return cls(monitor, parsed.hostname, port)

    async def check_reachable(self) -> bool:
        try:
            _, writer = await asyncio.wait_for(
                asyncio.open_connection(self.host, self.port),
                timeout=self.CONNECTION_TIMEOUT,
            )
        except (OSError, asyncio.TimeoutError) as e:
            logger.debug(f"Store host {self.host}:{self.port} unreachable: {e}")
            return False

        writer.close()
        try:
            await writer.wait_closed()
        except OSError:
            pass
        return True

    async def check_once(self) -> bool:
        """Run one check and forward any transition to the monitor."""
        reachable = await self.check_reachable()

        if reachable != self._last_reachable:
            self._last_reachable = reachable
            if reachable:
                await self.monitor.handle_online()
            else:
                await self.monitor.handle_offline()
        elif reachable and self.monitor.network_enabled and self.monitor.pending_operations_count:
            # A replay stopped on a failed write; try again
            await self.monitor.process_pending_operations()

        return reachable

    def start(self) -> asyncio.Task:
        if self._task is None or self._task.done():
            self._task = asyncio.get_running_loop().create_task(self._run())
            logger.debug("Network probe started")
        return self._task

    async def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
            logger.debug("Network probe stopped")

    async def _checked(self) -> None:
        try:
            await self.check_once()
        except Exception as e:
            logger.error(f"Error in connection check: {e}")

    async def _run(self) -> None:
        if self._last_reachable is None:
            await self._checked()

        while True:
            interval = (
                self.CHECK_INTERVAL_ONLINE
                if self._last_reachable
                else self.CHECK_INTERVAL_OFFLINE
            )
            await asyncio.sleep(interval)
            await self._checked()
