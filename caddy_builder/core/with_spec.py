"""
Parse one ``--with`` value: ``module[@version][=replacement]``.

The module is isolated first (split on the first ``@``), then the
remainder is split on the first ``=``. Without an ``@`` the whole token is
split on ``=`` and no version is set.
"""
from typing import Tuple

from caddy_builder.errors import UsageError

VERSION_SPLIT = "@"
REPLACE_SPLIT = "="


def split_with(token: str) -> Tuple[str, str, str]:
    """
    Split a plugin reference into ``(module, version, replace)``.

    Empty version or replace mean "unset". Raises UsageError if the module
    segment is empty or the replacement is only whitespace.
    """
    version = ""
    replace = ""

    module, sep, rest = token.partition(VERSION_SPLIT)
    if not sep:
        module, sep, repl = module.partition(REPLACE_SPLIT)
        if sep:
            replace = repl
    else:
        version, sep, repl = rest.partition(REPLACE_SPLIT)
        if sep:
            replace = repl

    if not module:
        raise UsageError("module name is required", context={"with": token})
    if replace and not replace.strip():
        raise UsageError(f"replacement for module {module} is blank", context={"with": token})

    return module, version, replace
