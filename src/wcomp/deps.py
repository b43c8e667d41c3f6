"""Dependency resolution: which cells does a piece of source text read?

The text is scanned for identifier-shaped words. Keywords, literal names,
numbers and a fixed set of property/context names are dropped, the rest is
intersected with the scope's names, and every match is evaluated as a bare
name against the scope so aliases resolve to the cell they point at. The
result holds each cell once however many spellings reached it.

Names that are not in scope are ignored; expressions may read values that
are not reactive.
"""

from __future__ import annotations

import keyword
import logging
import re
from collections.abc import Mapping
from typing import Any

from wcomp.cell import Cell
from wcomp.errors import DependencyResolutionWarning, EvaluationError
from wcomp.interpreter import Interpreter, get_interpreter
from wcomp.scope import SELF_NAME, STATE_BAG_NAME, Scope

logger = logging.getLogger("wcomp.deps")

_WORD_RE = re.compile(r"[\w$]+")

# soft keywords (match, case, type, _) are valid names and stay
RESERVED_WORDS = frozenset(keyword.kwlist)
LITERAL_NAMES = frozenset({"true", "false", "null", "undefined", "NaN", "Infinity"})
BUILTIN_PROPERTIES = frozenset(
    {"length", "toString", "valueOf", "constructor", SELF_NAME, STATE_BAG_NAME}
)
_IGNORED = RESERVED_WORDS | LITERAL_NAMES | BUILTIN_PROPERTIES


def extract_identifiers(source: str) -> list[str]:
    """Candidate variable names in source, first occurrence order, no repeats."""
    seen: dict[str, None] = {}
    for word in _WORD_RE.findall(source):
        if word[0].isdigit() or word in _IGNORED:
            continue
        seen.setdefault(word, None)
    return list(seen)


def _resolve(token: str, context: Mapping[str, Any], interpreter: Interpreter) -> Cell | None:
    try:
        result = interpreter.execute_code(token, context, statement=False)
    except EvaluationError as exc:
        raise DependencyResolutionWarning(token, exc.cause) from exc
    return result if isinstance(result, Cell) else None


def resolve_dependencies(
    source: str,
    scope: Scope | Mapping[str, Cell],
    *,
    interpreter: Interpreter | None = None,
) -> set[Cell]:
    """The cells of scope that source refers to.

    Usage:
        scope = Scope({"name": "Ann", "items": [1, 2]})
        resolve_dependencies("name + items.length", scope)
        # {scope["name"], scope["items"]}
    """
    interpreter = interpreter or get_interpreter()
    context = scope.context() if isinstance(scope, Scope) else dict(scope)
    found: set[Cell] = set()
    for token in extract_identifiers(source):
        if token not in scope:
            continue
        try:
            cell = _resolve(token, context, interpreter)
        except DependencyResolutionWarning as warning:
            logger.warning("Skipping dependency in %r: %s", source, warning)
            continue
        if cell is not None:
            found.add(cell)
    return found
