"""
Collaborator interfaces the driver depends on.

The driver only sees these protocols, so tests can hand it a recording
fake instead of a real Go toolchain.
"""
from typing import List, Protocol

from caddy_builder.io.schema import BuildDescriptor
from caddy_builder.lifecycle import ExecutionContext


class Builder(Protocol):
    async def build(self, ctx: ExecutionContext, descriptor: BuildDescriptor, output: str) -> None:
        """Produce an executable at ``output`` or raise BuildError."""
        ...


class WorkspaceInspector(Protocol):
    async def current_module(self, ctx: ExecutionContext) -> str:
        ...

    async def module_dir(self, ctx: ExecutionContext) -> str:
        ...

    async def replacement_lines(self, ctx: ExecutionContext) -> List[str]:
        """All active ``path => replacement`` lines across the module graph."""
        ...
