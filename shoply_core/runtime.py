# =============================================================================
# shoply_core/runtime.py
# Background Event Loop for Synchronous Callers
# =============================================================================
"""
AsyncRunner - owns the single asyncio event loop the core runs on.

Streamlit executes page scripts synchronously in its own threads. The core's
state (cache, pending queue, session) lives on one event loop in a daemon
thread; pages submit coroutines to it and block on the result.

    runner = AsyncRunner()
    plans = runner.run(data.get_plans())
"""

from __future__ import annotations
import asyncio
import threading
import weakref
from concurrent.futures import Future
from typing import Any, Awaitable, Callable, Optional, TypeVar

from shoply_core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class AsyncRunner:
    """Event loop running forever in a daemon thread."""

    DEFAULT_TIMEOUT = 30.0      # Seconds a page waits for a core call

    def __init__(self, name: str = "ShoplyEventLoop"):
        self._loop = asyncio.new_event_loop()
        self._started = threading.Event()
        self._thread = threading.Thread(target=self._run_loop, daemon=True, name=name)

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        return self._loop

    @property
    def is_running(self) -> bool:
        return self._thread.is_alive() and self._loop.is_running()

    def start(self) -> None:
        if not self._thread.is_alive():
            self._thread.start()
            self._started.wait(timeout=5)
            logger.debug("Event loop thread started")

    def _run_loop(self) -> None:
        asyncio.set_event_loop(self._loop)
        self._loop.call_soon(self._started.set)
        self._loop.run_forever()

    def submit(self, coro: Awaitable[T]) -> Future:
        """Schedule a coroutine on the loop without waiting for it."""
        self.start()
        return asyncio.run_coroutine_threadsafe(coro, self._loop)

    def run(self, coro: Awaitable[T], timeout: Optional[float] = DEFAULT_TIMEOUT) -> T:
        """Run a coroutine on the loop and return its result."""
        return self.submit(coro).result(timeout)

    def call_soon(self, callback, *args: Any) -> None:
        """Run a plain callable on the loop thread."""
        self.start()
        self._loop.call_soon_threadsafe(callback, *args)

    def run_on_release(self, owner: Any, func: Callable[..., Awaitable[Any]], *args: Any) -> weakref.finalize:
        """
        Schedule ``func(*args)`` on the loop once ``owner`` is garbage collected.

        ``func`` and ``args`` must not refer back to ``owner``.
        """
        return weakref.finalize(owner, self._submit_if_running, func, *args)

    def _submit_if_running(self, func: Callable[..., Awaitable[Any]], *args: Any) -> None:
        # Also runs at interpreter exit, possibly after the loop thread ended
        if self.is_running:
            self.submit(func(*args))

    def stop(self) -> None:
        if self._thread.is_alive():
            self._loop.call_soon_threadsafe(self._loop.stop)
            self._thread.join(timeout=5)
            logger.debug("Event loop thread stopped")
