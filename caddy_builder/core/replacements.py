"""
Reconcile replace directives for a dev build.

Replace directives only apply in the main module's go.mod, so the ones the
developer already has must be carried into the generated build module,
behind a directive that points the module under development at its local
directory.
"""
import logging
from typing import Iterable, List, Optional, Tuple

from caddy_builder.io.schema import Replace

logger = logging.getLogger(__name__)

REPLACE_ARROW = "=>"


def parse_replace_line(line: str) -> Optional[Tuple[str, str]]:
    """
    Parse one ``path => replacement`` line from ``go list``.

    Returns None for anything that is not exactly two non-blank sides.
    """
    parts = line.split(REPLACE_ARROW)
    if len(parts) != 2:
        return None
    old, new = parts[0].strip(), parts[1].strip()
    if not old or not new:
        return None
    return old, new


def reconcile_replacements(
    current_module: str,
    module_dir: str,
    existing: Iterable[str],
) -> List[Replace]:
    """
    Build the final replacement list for a dev build.

    The first entry always maps ``current_module`` to ``module_dir``. The
    workspace's own directives follow in source order; malformed lines are
    skipped, and a target that is already replaced keeps its first
    directive.
    """
    result = [Replace(old=current_module, new=module_dir)]
    seen = {current_module}

    for line in existing:
        parsed = parse_replace_line(line)
        if parsed is None:
            continue
        old, new = parsed
        if old in seen:
            logger.debug("Dropping duplicate replace %s => %s", old, new)
            continue
        seen.add(old)
        result.append(Replace(old=old, new=new))

    return result
