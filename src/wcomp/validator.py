"""Static denylist check run on source text before it is compiled.

This is a textual heuristic. It blocks direct calls to code-execution,
introspection and timer primitives, and any dunder attribute access, which
is how Python sandboxes are usually escaped. Disguised access is not caught.
"""

from __future__ import annotations

import re

from wcomp.errors import UnsafeExpressionError

DENYLIST: tuple[str, ...] = (
    "eval",
    "exec",
    "compile",
    "__import__",
    "open",
    "globals",
    "locals",
    "vars",
    "getattr",
    "setattr",
    "delattr",
    "breakpoint",
    "input",
    "Function",
    "setTimeout",
    "setInterval",
)

_CALL_RE = re.compile(
    r"(?:^|[^\w$])(" + "|".join(re.escape(name) for name in DENYLIST) + r")\s*\("
)
_DUNDER_RE = re.compile(r"\.\s*(__\w+__)")


def find_violation(source: str) -> str | None:
    """Return the offending name, or None if source passes."""
    m = _CALL_RE.search(source) or _DUNDER_RE.search(source)
    return m.group(1) if m else None


def is_safe(source: str) -> bool:
    return find_violation(source) is None


def validate(source: str) -> None:
    """Raise UnsafeExpressionError if source matches the denylist."""
    violation = find_violation(source)
    if violation is not None:
        raise UnsafeExpressionError(source, violation)
