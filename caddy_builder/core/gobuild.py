"""
Go builder — the default Builder implementation.

Materializes a scratch Go module that imports Caddy plus the requested
plugins, applies replace directives, lets ``go get`` resolve versions, and
runs ``go build`` into the requested output path.

Produces:
  - main.go + go.mod in a temporary workspace (removed afterwards)
  - a single executable at the output path
"""
from __future__ import annotations

import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Dict, List, Optional

from caddy_builder import CADDY_MODULE
from caddy_builder.core.process import run_process
from caddy_builder.errors import BuildError
from caddy_builder.io.schema import BuildDescriptor, Replace
from caddy_builder.lifecycle import ExecutionContext
from caddy_builder.policy.profile import BuildProfile

logger = logging.getLogger(__name__)

MAIN_TEMPLATE = """package main

import (
	caddycmd "{caddy}/cmd"

	// plug in Caddy modules here
	_ "{caddy}/modules/standard"
{imports}
)

func main() {{
	caddycmd.Main()
}}
"""


def render_main(descriptor: BuildDescriptor) -> str:
    """main.go importing every plugin once, in sorted order."""
    paths = sorted({p.module_path for p in descriptor.plugins})
    imports = "".join(f'\t_ "{path}"\n' for path in paths)
    return MAIN_TEMPLATE.format(caddy=CADDY_MODULE, imports=imports.rstrip("\n"))


def resolve_replacement(repl: Replace, base_dir: Optional[str] = None) -> Replace:
    """
    Normalize a replacement for ``go mod edit``: local paths become absolute
    (the build runs elsewhere), and ``go list``'s ``path version`` form
    becomes ``path@version``.
    """
    candidate = Path(base_dir or os.getcwd()) / repl.new
    if candidate.exists():
        return Replace(old=repl.old, new=str(candidate.resolve()))
    path, sep, version = repl.new.partition(" ")
    if sep and version.strip():
        return Replace(old=repl.old, new=f"{path}@{version.strip()}")
    return repl


class GoBuilder:
    """Builds a Caddy binary with the Go toolchain."""

    def __init__(
        self,
        profile: BuildProfile,
        workspace_root: Optional[str] = None,
        skip_cleanup: bool = False,
        grace_period: float = 10.0,
    ):
        self.profile = profile
        self.workspace_root = workspace_root
        self.skip_cleanup = skip_cleanup
        self.grace_period = grace_period

    # -----------------------------------------------------------------
    # Go commands
    # -----------------------------------------------------------------

    async def _go(
        self,
        ctx: ExecutionContext,
        args: List[str],
        workdir: Path,
        env: Dict[str, str],
    ) -> None:
        cmd = [self.profile.go_bin] + args
        logger.info(f"exec: {' '.join(cmd)}")
        try:
            result = await run_process(
                ctx,
                cmd,
                cwd=str(workdir),
                env=env,
                grace_period=self.grace_period,
            )
        except OSError as e:
            raise BuildError(f"running {cmd[0]}: {e}", context={"command": cmd}) from e

        if not result.ok:
            raise BuildError(
                f"{' '.join(cmd[:3])}: exit status {result.returncode}",
                context={"command": cmd, "returncode": result.returncode},
            )

    def _plugin_specs(self, descriptor: BuildDescriptor) -> List[str]:
        """
        Plugin specs for ``go get``. A replaced plugin is fetched by module
        path alone so the replace directive decides its source; it still has
        to be required for ``go build`` to accept the import.
        """
        replaced = [r.old for r in descriptor.replacements]
        specs = []
        for plugin in descriptor.plugins:
            if any(plugin.module_path == old or plugin.module_path.startswith(old + "/")
                   for old in replaced):
                specs.append(plugin.module_path)
            else:
                specs.append(plugin.get_spec())
        return specs

    # -----------------------------------------------------------------
    # Build
    # -----------------------------------------------------------------

    async def build(self, ctx: ExecutionContext, descriptor: BuildDescriptor, output: str) -> None:
        output_abs = os.path.abspath(output)
        env = self.profile.toolchain_env(descriptor.cgo_enabled)

        try:
            if self.workspace_root:
                Path(self.workspace_root).mkdir(parents=True, exist_ok=True)
            workdir = Path(tempfile.mkdtemp(prefix="buildenv_", dir=self.workspace_root))
        except OSError as e:
            raise BuildError(
                f"preparing build workspace: {e}",
                context={"workspace_root": self.workspace_root},
            ) from e
        logger.info(f"Temporary folder: {workdir}")

        try:
            try:
                (workdir / "main.go").write_text(render_main(descriptor))
            except OSError as e:
                raise BuildError(f"writing main.go: {e}", context={"workdir": str(workdir)}) from e

            await self._go(ctx, ["mod", "init", "caddy"], workdir, env)

            for repl in descriptor.replacements:
                resolved = resolve_replacement(repl)
                await self._go(ctx, ["mod", "edit", "-replace", resolved.op_string()], workdir, env)

            # plugins are fetched alongside the pinned Caddy so their own
            # requirements cannot move it past the requested version
            caddy_pin = f"{CADDY_MODULE}@{descriptor.caddy_version or 'latest'}"
            await self._go(ctx, ["get", "-v", caddy_pin], workdir, env)

            for spec in self._plugin_specs(descriptor):
                await self._go(ctx, ["get", "-v", spec, caddy_pin], workdir, env)

            await self._go(
                ctx,
                ["build", "-o", output_abs, "-ldflags", self.profile.ldflags]
                + self.profile.build_flags,
                workdir,
                env,
            )
            logger.info(f"Build complete: {output}")
        finally:
            self.cleanup_workspace(workdir)

    def cleanup_workspace(self, workdir: Path) -> None:
        """Remove the scratch module unless asked to keep it."""
        if self.skip_cleanup:
            logger.info(f"Skipping cleanup as requested; leaving folder intact: {workdir}")
            return
        try:
            shutil.rmtree(workdir)
            logger.info(f"Cleaned up temporary folder: {workdir}")
        except OSError as e:
            logger.error(f"Deleting temporary folder {workdir}: {e}")
