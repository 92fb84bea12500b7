"""
Shared pytest fixtures for caddy_builder tests.

The Go toolchain is never invoked: builders and workspace inspectors are
recording fakes, and "binaries" are small shell scripts written by the
fake builder.

Tests that execute those scripts are skipped on Windows.
"""
import os
import stat
import sys
import textwrap
from pathlib import Path
from typing import List, Optional

import pytest

from caddy_builder.config import Settings
from caddy_builder.errors import BuildError, WorkspaceError
from caddy_builder.io.schema import BuildDescriptor
from caddy_builder.policy.profile import BuildProfile

posix_only = pytest.mark.skipif(sys.platform.startswith("win"), reason="needs /bin/sh")

# Prints a version line like the real binary does
VERSION_SCRIPT = textwrap.dedent("""\
    #!/bin/sh
    echo "v2.7.6 h1:fake"
    exit 0
""")


def write_script(path: Path, body: str) -> Path:
    path.write_text(body)
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


class FakeBuilder:
    """Records every descriptor it receives and writes ``script`` as the artifact."""

    def __init__(self, script: Optional[str] = VERSION_SCRIPT, error: Optional[BuildError] = None):
        self.script = script
        self.error = error
        self.calls: List[tuple] = []

    async def build(self, ctx, descriptor: BuildDescriptor, output: str) -> None:
        self.calls.append((descriptor, output))
        if self.error is not None:
            raise self.error
        if self.script is not None:
            write_script(Path(output), self.script)

    @property
    def descriptor(self) -> BuildDescriptor:
        return self.calls[-1][0]

    @property
    def output(self) -> str:
        return self.calls[-1][1]


class FakeWorkspace:
    """Workspace inspector with canned answers."""

    def __init__(
        self,
        module: str = "github.com/example/plugin",
        module_dir: str = "/src/plugin",
        lines: Optional[List[str]] = None,
        error: Optional[WorkspaceError] = None,
    ):
        self.module = module
        self.dir = module_dir
        self.lines = lines or []
        self.error = error

    async def current_module(self, ctx) -> str:
        if self.error is not None:
            raise self.error
        return self.module

    async def module_dir(self, ctx) -> str:
        return self.dir

    async def replacement_lines(self, ctx) -> List[str]:
        return list(self.lines)


@pytest.fixture
def settings():
    return Settings(CADDY_VERSION="", XCADDY_GRACE_PERIOD=0.5)


@pytest.fixture
def posix_profile():
    return BuildProfile(platform="linux")


@pytest.fixture
def windows_profile():
    return BuildProfile(platform="win32")


@pytest.fixture
def in_tmp(tmp_path, monkeypatch):
    """Run the test with tmp_path as the working directory."""
    monkeypatch.chdir(tmp_path)
    return tmp_path
