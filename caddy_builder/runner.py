"""
Runner — the ``xcaddy`` command.

Two modes:
  ``xcaddy build [version] [--with ...]... [--enable-cgo] [--output path]``
      one-shot build, then ``<output> version`` as a smoke test.
  ``xcaddy [args...]``
      dev mode: build Caddy with the module in the current directory
      plugged in from local source, run it with ``args``, delete it.
"""
from __future__ import annotations

import asyncio
import logging
import os
import sys
from typing import List, Optional, Sequence

from caddy_builder.config import Settings
from caddy_builder.core.artifact import inspect_artifact
from caddy_builder.core.build_args import parse_build_args
from caddy_builder.core.gobuild import GoBuilder
from caddy_builder.core.interfaces import Builder, WorkspaceInspector
from caddy_builder.core.process import run_process
from caddy_builder.core.replacements import reconcile_replacements
from caddy_builder.core.workspace import GoWorkspace
from caddy_builder.errors import BuilderError, BuildError, FatalError, RunError
from caddy_builder.io.schema import ArtifactMeta, BuildDescriptor, Dependency
from caddy_builder.lifecycle import ExecutionContext, watching
from caddy_builder.policy.profile import BuildProfile

logger = logging.getLogger(__name__)


# ── Build mode ───────────────────────────────────────────────────────────────

async def run_build(
    ctx: ExecutionContext,
    args: Sequence[str],
    settings: Settings,
    builder: Builder,
    profile: BuildProfile,
) -> ArtifactMeta:
    """
    Build a binary from the command line and prove it runs.

    Usage errors propagate as UsageError before anything is executed. A
    failed build or smoke test raises FatalError.
    """
    parsed = parse_build_args(args)

    # prefer the version from the command line over the environment
    caddy_version = parsed.caddy_version or settings.CADDY_VERSION
    output = parsed.output or profile.default_output()

    descriptor = BuildDescriptor(
        caddy_version=caddy_version,
        plugins=parsed.plugins,
        replacements=parsed.replacements,
        cgo_enabled=parsed.cgo_enabled,
    )

    try:
        await builder.build(ctx, descriptor, output)
        artifact = inspect_artifact(output)
    except BuildError as e:
        raise FatalError(str(e), context=e.context) from e

    # prove the build is working by printing the version
    runnable = profile.runnable_path(output)
    print()
    print(f"{runnable} version", flush=True)
    try:
        result = await run_process(
            ctx,
            [runnable, "version"],
            grace_period=settings.XCADDY_GRACE_PERIOD,
        )
    except (OSError, BuildError) as e:
        raise FatalError(str(e), context={"output": runnable}) from e
    if not result.ok:
        raise FatalError(
            f"{runnable} version: exit status {result.returncode}",
            context={"output": runnable, "returncode": result.returncode},
        )

    return artifact


# ── Dev mode ─────────────────────────────────────────────────────────────────

def _remove_binary(path: str) -> None:
    """Delete the temporary binary; already gone is fine."""
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.error(f"Deleting temporary binary {path}: {e}")


async def run_dev(
    ctx: ExecutionContext,
    args: Sequence[str],
    settings: Settings,
    builder: Builder,
    workspace: WorkspaceInspector,
    profile: BuildProfile,
) -> None:
    """
    Build Caddy with the current module from local source, run it with
    ``args``, then delete it. Errors are returned to the caller as
    exceptions; the child's failure is raised as RunError after cleanup.
    """
    bin_output = profile.dev_output()

    current_module = await workspace.current_module(ctx)
    module_dir = await workspace.module_dir(ctx)

    # replace directives only apply to the main module's go.mod, so carry
    # the developer's own directives into the generated one
    lines = await workspace.replacement_lines(ctx)
    replacements = reconcile_replacements(current_module, module_dir, lines)

    descriptor = BuildDescriptor(
        caddy_version=settings.CADDY_VERSION,
        plugins=[Dependency(module_path=current_module)],
        replacements=replacements,
    )
    await builder.build(ctx, descriptor, bin_output)

    cmd: List[str] = [bin_output, *args]
    logger.info(f"Running {cmd}\n")

    try:
        try:
            result = await run_process(
                ctx,
                cmd,
                inherit_stdin=True,
                grace_period=settings.XCADDY_GRACE_PERIOD,
            )
        except OSError as e:
            raise RunError(f"starting {bin_output}: {e}", context={"command": cmd}) from e
        if not result.ok:
            raise RunError(
                f"exit status {result.returncode}",
                returncode=result.returncode,
                context={"command": cmd},
            )
    finally:
        _remove_binary(bin_output)


# ── CLI ──────────────────────────────────────────────────────────────────────

def exit_code_for(error: BuilderError) -> int:
    """Process exit status for an error that reached the top."""
    if isinstance(error, RunError) and error.returncode and error.returncode > 0:
        return error.returncode
    return 1


async def run(argv: Sequence[str], settings: Settings) -> int:
    """Dispatch on the leading argument under a signal-watched context."""
    profile = BuildProfile.current(go_bin=settings.XCADDY_GO)
    builder = GoBuilder(
        profile,
        workspace_root=settings.XCADDY_WORKSPACE_ROOT,
        skip_cleanup=settings.XCADDY_SKIP_CLEANUP,
        grace_period=settings.XCADDY_GRACE_PERIOD,
    )

    ctx = ExecutionContext()
    async with watching(ctx):
        try:
            if argv and argv[0] == "build":
                await run_build(ctx, argv[1:], settings, builder, profile)
            else:
                workspace = GoWorkspace(profile, grace_period=settings.XCADDY_GRACE_PERIOD)
                await run_dev(ctx, argv, settings, builder, workspace, profile)
        except FatalError as e:
            logger.critical(str(e))
            return exit_code_for(e)
        except BuilderError as e:
            logger.error(str(e))
            return exit_code_for(e)
    return 0


def main(argv: Optional[List[str]] = None) -> None:
    """CLI entry point."""
    settings = Settings()

    logging.addLevelName(logging.CRITICAL, "FATAL")
    logging.basicConfig(
        level=logging.DEBUG if settings.XCADDY_DEBUG else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y/%m/%d %H:%M:%S",
    )

    code = asyncio.run(run(sys.argv[1:] if argv is None else argv, settings))
    if code:
        sys.exit(code)


if __name__ == "__main__":
    main()
