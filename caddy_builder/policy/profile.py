"""
Profile — platform and toolchain knobs for a build.

Core logic asks the profile for output names and environments instead of
branching on the platform itself.
"""
import os
import sys
from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass(frozen=True)
class BuildProfile:
    """Platform-dependent defaults used by the driver and the Go builder."""

    platform: str
    go_bin: str = "go"

    # Linker flags passed to ``go build``
    ldflags: str = "-w -s"
    build_flags: List[str] = field(default_factory=lambda: ["-trimpath"])

    @classmethod
    def current(cls, go_bin: str = "go") -> "BuildProfile":
        return cls(platform=sys.platform, go_bin=go_bin)

    @property
    def is_windows(self) -> bool:
        return self.platform.startswith("win")

    def default_output(self) -> str:
        """Binary name used when ``--output`` is not given."""
        if self.is_windows:
            return "caddy.exe"
        return "caddy"

    def dev_output(self) -> str:
        """Temporary binary path for dev mode."""
        return "." + os.sep + self.default_output()

    def runnable_path(self, output: str) -> str:
        """
        Make a relative output path explicitly relative so it is executed
        directly rather than searched for on PATH.
        """
        if os.path.isabs(output):
            return output
        if output.startswith("." + os.sep) or output.startswith(".." + os.sep):
            return output
        return "." + os.sep + output

    def toolchain_env(
        self,
        cgo_enabled: bool,
        base: Optional[Dict[str, str]] = None,
    ) -> Dict[str, str]:
        """Environment for go commands; cgo off unless explicitly enabled."""
        env = dict(os.environ if base is None else base)
        env["CGO_ENABLED"] = "1" if cgo_enabled else "0"
        return env
