"""
Errors — one exception family for the whole tool.

Every error carries a ``context`` dict (which flag, which token, which
command) so the top-level handler can log something actionable.
"""
from typing import Any, Dict, List, Optional


class BuilderError(Exception):
    """Base exception for all caddy_builder errors."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}


class UsageError(BuilderError):
    """Malformed command line; raised before any external invocation."""
    pass


class WorkspaceError(BuilderError):
    """A workspace query (``go list ...``) failed."""

    def __init__(
        self,
        message: str,
        command: Optional[List[str]] = None,
        stderr: str = "",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, context)
        self.command = command or []
        self.stderr = stderr

    def __str__(self) -> str:
        base = super().__str__()
        if self.stderr:
            return f"{base}: {self.stderr.strip()}"
        return base


class BuildError(BuilderError):
    """The external builder failed to produce an artifact."""
    pass


class CancelledBuild(BuildError):
    """Work was interrupted through the execution context."""
    pass


class RunError(BuilderError):
    """A spawned artifact failed to start or exited non-zero."""

    def __init__(
        self,
        message: str,
        returncode: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, context)
        self.returncode = returncode


class FatalError(BuilderError):
    """Build-mode failure that terminates the process."""
    pass
