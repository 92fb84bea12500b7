"""
Workspace inspection through ``go list``.
"""
from __future__ import annotations

import logging
from typing import List, Optional

from caddy_builder.core.process import run_process
from caddy_builder.errors import WorkspaceError
from caddy_builder.lifecycle import ExecutionContext
from caddy_builder.policy.profile import BuildProfile

logger = logging.getLogger(__name__)

# Prints "path => replacement" for every replaced module in the build list
REPLACE_TEMPLATE = "-f={{if .Replace}}{{.Path}} => {{.Replace}}{{end}}"


class GoWorkspace:
    """Answers questions about the Go module in ``cwd``."""

    def __init__(
        self,
        profile: BuildProfile,
        cwd: Optional[str] = None,
        grace_period: float = 10.0,
    ):
        self.profile = profile
        self.cwd = cwd
        self.grace_period = grace_period

    async def _go_list(self, ctx: ExecutionContext, *args: str) -> str:
        cmd = [self.profile.go_bin, "list", "-m", *args]
        logger.debug("exec: %s", " ".join(cmd))
        try:
            result = await run_process(
                ctx,
                cmd,
                cwd=self.cwd,
                capture=True,
                grace_period=self.grace_period,
            )
        except OSError as e:
            raise WorkspaceError(f"running {cmd[0]}: {e}", command=cmd) from e

        if not result.ok:
            raise WorkspaceError(
                f"{' '.join(cmd)}: exit status {result.returncode}",
                command=cmd,
                stderr=result.stderr,
            )
        return result.stdout

    async def current_module(self, ctx: ExecutionContext) -> str:
        out = await self._go_list(ctx)
        return out.strip()

    async def module_dir(self, ctx: ExecutionContext) -> str:
        out = await self._go_list(ctx, "-f={{.Dir}}")
        return out.strip()

    async def replacement_lines(self, ctx: ExecutionContext) -> List[str]:
        out = await self._go_list(ctx, REPLACE_TEMPLATE, "all")
        return out.splitlines()
