"""
test_lifecycle — execution context and the SIGINT watcher.

Invariants:
  - The context is cancelled at most once.
  - The first interrupt cancels it; later interrupts change nothing.
  - The watcher ends when the workflow ends, with no interrupt at all.
"""
import asyncio
import os
import signal

from caddy_builder.lifecycle import ExecutionContext, SignalWatcher, WatchState, watching
from conftest import posix_only


class TestExecutionContext:
    def test_cancel_once(self):
        async def scenario():
            ctx = ExecutionContext()
            assert ctx.cancelled is False
            assert ctx.cancel("interrupt") is True
            assert ctx.cancel("again") is False
            assert ctx.cancelled is True
            assert ctx.reason == "interrupt"

        asyncio.run(scenario())

    def test_wait_unblocks_on_cancel(self):
        async def scenario():
            ctx = ExecutionContext()
            asyncio.get_running_loop().call_later(0.01, ctx.cancel)
            await asyncio.wait_for(ctx.wait(), timeout=2)
            return ctx.cancelled

        assert asyncio.run(scenario()) is True


class TestSignalWatcher:
    def test_interrupt_cancels_context(self):
        async def scenario():
            ctx = ExecutionContext()
            async with watching(ctx) as watcher:
                assert watcher.state is WatchState.RUNNING
                watcher.interrupt()
                await asyncio.wait_for(ctx.wait(), timeout=2)
                await asyncio.sleep(0)
                assert ctx.reason == "interrupt"
            return watcher

        watcher = asyncio.run(scenario())
        assert watcher.state is WatchState.DONE

    def test_second_interrupt_is_noop(self, caplog):
        async def scenario():
            ctx = ExecutionContext()
            async with watching(ctx) as watcher:
                watcher.interrupt()
                await ctx.wait()
                watcher.interrupt()
                watcher.interrupt()
                await asyncio.sleep(0.01)
            return ctx

        with caplog.at_level("INFO"):
            ctx = asyncio.run(scenario())
        assert ctx.reason == "interrupt"
        assert caplog.text.count("SIGINT: Shutting down") == 1

    def test_workflow_completion_ends_watcher(self):
        async def scenario():
            ctx = ExecutionContext()
            async with watching(ctx) as watcher:
                pass
            return ctx, watcher

        ctx, watcher = asyncio.run(scenario())
        assert watcher.state is WatchState.DONE
        assert ctx.reason == "done"

    def test_interrupt_after_done_ignored(self):
        async def scenario():
            ctx = ExecutionContext()
            watcher = SignalWatcher(ctx)
            watcher.start()
            await watcher.stop()
            watcher.interrupt()
            return ctx, watcher

        ctx, watcher = asyncio.run(scenario())
        assert ctx.reason == "done"
        assert watcher.state is WatchState.DONE

    @posix_only
    def test_real_sigint(self):
        async def scenario():
            ctx = ExecutionContext()
            async with watching(ctx):
                os.kill(os.getpid(), signal.SIGINT)
                await asyncio.wait_for(ctx.wait(), timeout=2)
                # a second signal is swallowed while the watcher is installed
                os.kill(os.getpid(), signal.SIGINT)
                await asyncio.sleep(0.05)
            return ctx

        ctx = asyncio.run(scenario())
        assert ctx.reason == "interrupt"

    @posix_only
    def test_handler_restored(self):
        before = signal.getsignal(signal.SIGINT)

        async def scenario():
            async with watching(ExecutionContext()):
                pass

        asyncio.run(scenario())
        assert signal.getsignal(signal.SIGINT) in (before, signal.default_int_handler)
