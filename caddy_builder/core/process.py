"""
Cancellable subprocess calls.

Every blocking child process goes through ``run_process`` so that an
interrupt on the execution context unblocks it. On cancellation the child
first gets a grace period to exit on its own (it shares the terminal's
process group and usually saw the interrupt too), then is asked to
terminate, then is killed.
"""
from __future__ import annotations

import asyncio
import logging
import subprocess
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from caddy_builder.errors import CancelledBuild
from caddy_builder.lifecycle import ExecutionContext

logger = logging.getLogger(__name__)


@dataclass
class ProcessResult:
    """Exit state of a finished child. Output is empty unless captured."""
    command: List[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def _decode(data: Optional[bytes]) -> str:
    if not data:
        return ""
    return data.decode("utf-8", errors="replace")


async def _exited(proc: asyncio.subprocess.Process, timeout: float) -> bool:
    try:
        await asyncio.wait_for(proc.wait(), timeout=timeout)
        return True
    except asyncio.TimeoutError:
        return False


async def _stop(proc: asyncio.subprocess.Process, grace_period: float) -> None:
    """Wait out the grace period, then terminate, then kill."""
    if await _exited(proc, grace_period):
        return
    logger.debug("Terminating pid %s", proc.pid)
    try:
        proc.terminate()
    except ProcessLookupError:
        return
    if await _exited(proc, grace_period):
        return
    logger.debug("Killing pid %s", proc.pid)
    try:
        proc.kill()
    except ProcessLookupError:
        return
    await proc.wait()


async def run_process(
    ctx: ExecutionContext,
    cmd: Sequence[str],
    *,
    cwd: Optional[str] = None,
    env: Optional[Dict[str, str]] = None,
    capture: bool = False,
    inherit_stdin: bool = False,
    grace_period: float = 10.0,
) -> ProcessResult:
    """
    Run ``cmd`` to completion, or until ``ctx`` is cancelled.

    With ``capture`` the child's stdout/stderr are collected; otherwise they
    are inherited. Spawn failures surface as OSError. Cancellation raises
    CancelledBuild once the child is gone.
    """
    cmd = list(cmd)
    if ctx.cancelled:
        raise CancelledBuild(f"not starting {cmd[0]}: interrupted", context={"command": cmd})

    pipe = asyncio.subprocess.PIPE if capture else None
    proc = await asyncio.create_subprocess_exec(
        *cmd,
        cwd=cwd,
        env=env,
        stdin=None if inherit_stdin else subprocess.DEVNULL,
        stdout=pipe,
        stderr=pipe,
    )

    communicate = asyncio.ensure_future(proc.communicate())
    cancelled = asyncio.ensure_future(ctx.wait())
    try:
        done, _ = await asyncio.wait(
            {communicate, cancelled},
            return_when=asyncio.FIRST_COMPLETED,
        )
    finally:
        cancelled.cancel()

    if communicate not in done:
        await _stop(proc, grace_period)
        await communicate
        raise CancelledBuild(
            f"{cmd[0]} interrupted",
            context={"command": cmd, "returncode": proc.returncode},
        )

    stdout, stderr = communicate.result()
    return ProcessResult(
        command=cmd,
        returncode=proc.returncode,
        stdout=_decode(stdout),
        stderr=_decode(stderr),
    )
