"""
Lifecycle — one cancellation context per process, and the SIGINT watcher
that cancels it.

The watcher races an interrupt against the context finishing on its own.
Whichever comes first ends the watcher; an interrupt cancels the context
exactly once and any further interrupt is swallowed until teardown.
"""
from __future__ import annotations

import asyncio
import logging
import signal
from contextlib import asynccontextmanager
from enum import Enum, unique
from typing import AsyncIterator, Optional

logger = logging.getLogger(__name__)


class ExecutionContext:
    """Single-shot cancellation flag shared by every blocking call."""

    def __init__(self) -> None:
        self._done = asyncio.Event()
        self.reason: Optional[str] = None

    @property
    def cancelled(self) -> bool:
        return self._done.is_set()

    def cancel(self, reason: str = "cancelled") -> bool:
        """Cancel the context. Returns True only for the call that did it."""
        if self._done.is_set():
            return False
        self.reason = reason
        self._done.set()
        return True

    async def wait(self) -> None:
        """Block until the context is cancelled."""
        await self._done.wait()


@unique
class WatchState(str, Enum):
    RUNNING = "RUNNING"
    CANCEL_REQUESTED = "CANCEL_REQUESTED"
    DONE = "DONE"


class SignalWatcher:
    """Turns the first interrupt signal into a context cancellation."""

    def __init__(self, ctx: ExecutionContext, signum: int = signal.SIGINT):
        self.ctx = ctx
        self.signum = signum
        self.state = WatchState.RUNNING

        self._interrupted = asyncio.Event()
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._task: Optional[asyncio.Task] = None
        self._loop_handler = False
        self._previous_handler = None

    # -----------------------------------------------------------------
    # Signal plumbing
    # -----------------------------------------------------------------

    def interrupt(self) -> None:
        """Deliver an interrupt. Only the first one has any effect."""
        if self.state is not WatchState.RUNNING or self._interrupted.is_set():
            return
        self._interrupted.set()

    def _on_signal(self, signum, frame) -> None:
        if self._loop is not None:
            self._loop.call_soon_threadsafe(self.interrupt)

    def _install(self) -> None:
        try:
            self._loop.add_signal_handler(self.signum, self.interrupt)
            self._loop_handler = True
        except (NotImplementedError, RuntimeError):
            # Windows event loops have no add_signal_handler
            self._previous_handler = signal.signal(self.signum, self._on_signal)

    def _uninstall(self) -> None:
        if self._loop_handler:
            self._loop.remove_signal_handler(self.signum)
            self._loop_handler = False
        elif self._previous_handler is not None:
            signal.signal(self.signum, self._previous_handler)
            self._previous_handler = None

    # -----------------------------------------------------------------
    # Watch
    # -----------------------------------------------------------------

    def start(self) -> None:
        self._loop = asyncio.get_running_loop()
        self._install()
        self._task = self._loop.create_task(self._watch())

    async def _watch(self) -> None:
        interrupted = asyncio.ensure_future(self._interrupted.wait())
        finished = asyncio.ensure_future(self.ctx.wait())
        try:
            done, _ = await asyncio.wait(
                {interrupted, finished},
                return_when=asyncio.FIRST_COMPLETED,
            )
            if interrupted in done and not self.ctx.cancelled:
                self.state = WatchState.CANCEL_REQUESTED
                logger.info("SIGINT: Shutting down")
                self.ctx.cancel(reason="interrupt")
        finally:
            interrupted.cancel()
            finished.cancel()
            self.state = WatchState.DONE

    async def stop(self) -> None:
        """Tear down: finish the context, join the watcher, restore handlers."""
        self.ctx.cancel(reason="done")
        try:
            if self._task is not None:
                await self._task
        finally:
            self._uninstall()
            self.state = WatchState.DONE


@asynccontextmanager
async def watching(ctx: ExecutionContext, signum: int = signal.SIGINT) -> AsyncIterator[SignalWatcher]:
    """Run the body with a signal watcher bound to ``ctx``."""
    watcher = SignalWatcher(ctx, signum)
    watcher.start()
    try:
        yield watcher
    finally:
        await watcher.stop()
