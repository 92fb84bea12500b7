"""
Build-mode argument grammar.

A small token table rather than a flag library: the edge cases (a trailing
flag with no value, a single positional version slot) are part of the
command's contract.

    build [version] [--with module[@version][=replace]]... [--enable-cgo] [--output path]
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Sequence

from caddy_builder.core.with_spec import split_with
from caddy_builder.errors import UsageError
from caddy_builder.io.schema import Dependency, Replace


@dataclass
class BuildArgs:
    """Accumulated result of scanning the build-mode arguments."""
    caddy_version: str = ""
    output: str = ""
    cgo_enabled: bool = False
    plugins: List[Dependency] = field(default_factory=list)
    replacements: List[Replace] = field(default_factory=list)


def _on_with(parsed: BuildArgs, value: str) -> None:
    module, version, replace = split_with(value)
    parsed.plugins.append(Dependency(module_path=module, version=version))
    if replace:
        if any(r.old == module for r in parsed.replacements):
            raise UsageError(
                f"module {module} is replaced more than once",
                context={"flag": "--with", "value": value},
            )
        parsed.replacements.append(Replace(old=module, new=replace))


def _on_output(parsed: BuildArgs, value: str) -> None:
    parsed.output = value


def _on_enable_cgo(parsed: BuildArgs) -> None:
    parsed.cgo_enabled = True


# flag -> action; value-taking flags consume the next token
VALUE_FLAGS: Dict[str, Callable[[BuildArgs, str], None]] = {
    "--with": _on_with,
    "--output": _on_output,
}
SWITCH_FLAGS: Dict[str, Callable[[BuildArgs], None]] = {
    "--enable-cgo": _on_enable_cgo,
}


def parse_build_args(args: Sequence[str]) -> BuildArgs:
    """Scan ``args`` left to right into a BuildArgs."""
    parsed = BuildArgs()
    i = 0
    while i < len(args):
        token = args[i]

        if token in VALUE_FLAGS:
            if i == len(args) - 1:
                raise UsageError(
                    f"expected value after {token} flag",
                    context={"flag": token},
                )
            i += 1
            VALUE_FLAGS[token](parsed, args[i])

        elif token in SWITCH_FLAGS:
            SWITCH_FLAGS[token](parsed)

        else:
            if parsed.caddy_version:
                raise UsageError(
                    f"missing flag; caddy version already set at {parsed.caddy_version}",
                    context={"token": token},
                )
            parsed.caddy_version = token

        i += 1

    return parsed
