"""Expression compiler with a bounded LRU cache of compiled functions.

Source text is Python. It is compiled into a function whose parameters are the
context names, in order:

    expression  ->  lambda a, b: (<source>)
    statement   ->  def _(a, b): <source>

and then called with the context values. Compiled functions are cached under
(function text, parameter names), so the same text with the same names reuses
a function whatever the current values are, while the same text with a
different name list compiles separately. Compiled code sees only a small set
of pure builtins.

`evaluate_expression` and `execute_statement` never raise for runtime
failures: the error is logged and None returned. Validator refusals raise
UnsafeExpressionError.
"""

from __future__ import annotations

import builtins
import logging
import textwrap
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Sequence

from wcomp.cell import Cell
from wcomp.errors import EvaluationError
from wcomp.validator import validate

logger = logging.getLogger("wcomp.interpreter")

DEFAULT_CACHE_SIZE = 1000

CompiledFn = Callable[..., Any]

_SAFE_BUILTIN_NAMES = (
    "abs", "all", "any", "bool", "dict", "divmod", "enumerate", "filter",
    "float", "format", "frozenset", "int", "isinstance", "len", "list", "map",
    "max", "min", "next", "range", "reversed", "round", "set", "sorted", "str",
    "sum", "tuple", "zip",
)
SAFE_BUILTINS: dict[str, Any] = {name: getattr(builtins, name) for name in _SAFE_BUILTIN_NAMES}

_FILENAME = "<wcomp>"
_STATEMENT_FN = "_wcomp_statement"


@dataclass
class CacheStats:
    """Counters for the compiled-function cache."""

    hits: int = 0
    misses: int = 0
    compiles: int = 0
    evictions: int = 0


def _function_text(source: str, names: Sequence[str], *, statement: bool) -> str:
    params = ", ".join(names)
    if not statement:
        return f"lambda {params}: ({source})"
    body = textwrap.indent(textwrap.dedent(source).strip("\n") or "pass", "    ")
    return f"def {_STATEMENT_FN}({params}):\n{body}\n"


def _display_key(text: str, names: Sequence[str]) -> str:
    return f"{text}|{','.join(names)}"


class Interpreter:
    """Compiles and runs expression/statement text against a context.

    One instance owns one cache. The module-level helpers use a shared
    default instance (see get_interpreter()).
    """

    def __init__(
        self,
        base_context: Mapping[str, Any] | None = None,
        *,
        cache_size: int = DEFAULT_CACHE_SIZE,
    ) -> None:
        if cache_size < 1:
            raise ValueError("cache_size must be at least 1")
        self.base_context = dict(base_context or {})
        self.capacity = cache_size
        self.stats = CacheStats()
        self._cache: OrderedDict[tuple[str, tuple[str, ...]], CompiledFn] = OrderedDict()

    # --- Cache ---

    @property
    def cache_size(self) -> int:
        return len(self._cache)

    def clear_cache(self) -> None:
        self._cache.clear()

    def _store(self, key: tuple[str, tuple[str, ...]], fn: CompiledFn) -> None:
        if len(self._cache) >= self.capacity:
            evicted, _ = self._cache.popitem(last=False)
            self.stats.evictions += 1
            logger.debug("Evicted %s", _display_key(*evicted))
        self._cache[key] = fn

    # --- Compilation ---

    def compile(
        self, source: str, names: Sequence[str], *, statement: bool = False
    ) -> CompiledFn:
        """Return the compiled function for source with parameters names.

        Raises UnsafeExpressionError before touching the cache if the
        validator refuses source, and EvaluationError if it does not compile.
        """
        validate(source)
        names = tuple(names)
        text = _function_text(source, names, statement=statement)
        key = (text, names)

        fn = self._cache.get(key)
        if fn is not None:
            self._cache.move_to_end(key)
            self.stats.hits += 1
            return fn

        self.stats.misses += 1
        try:
            code = compile(text, _FILENAME, "exec" if statement else "eval")
            namespace: dict[str, Any] = {"__builtins__": SAFE_BUILTINS}
            if statement:
                exec(code, namespace)
                fn = namespace[_STATEMENT_FN]
            else:
                fn = eval(code, namespace)
        except (SyntaxError, ValueError, RecursionError, MemoryError) as exc:
            # RecursionError/MemoryError: source too long or deeply nested
            raise EvaluationError(source, _display_key(text, names), exc) from exc

        self.stats.compiles += 1
        logger.debug("Compiled %s", _display_key(text, names))
        self._store(key, fn)
        return fn

    # --- Execution ---

    def execute_code(
        self,
        source: str,
        context: Mapping[str, Any] | None = None,
        *,
        statement: bool = True,
    ) -> Any:
        """Compile and run source. Raises instead of absorbing failures.

        The raw result is returned, cells included.
        """
        full_context = {**self.base_context, **(context or {})}
        names = tuple(full_context)
        fn = self.compile(source, names, statement=statement)
        try:
            return fn(*full_context.values())
        except Exception as exc:
            text = _function_text(source, names, statement=statement)
            raise EvaluationError(source, _display_key(text, names), exc) from exc

    def evaluate_expression(
        self, source: str, context: Mapping[str, Any] | None = None
    ) -> Any:
        """Evaluate an expression. Cells in the result are unwrapped.

        Usage:
            interpreter.evaluate_expression("a + b", {"a": 1, "b": 2})  # 3
        """
        return self._absorb(source, context, statement=False)

    def execute_statement(
        self, source: str, context: Mapping[str, Any] | None = None
    ) -> Any:
        """Run statement text (e.g. an event handler body).

        Returns whatever the body returns, unwrapped, or None.
        """
        return self._absorb(source, context, statement=True)

    def _absorb(
        self, source: str, context: Mapping[str, Any] | None, *, statement: bool
    ) -> Any:
        try:
            result = self.execute_code(source, context, statement=statement)
        except EvaluationError as exc:
            logger.error("Failed to evaluate %r (%s): %r", source, exc.key, exc.cause)
            return None
        if isinstance(result, Cell):
            return result.value
        return result

    def __repr__(self) -> str:
        return f"Interpreter(cached={len(self._cache)}/{self.capacity})"


_default: Interpreter | None = None


def get_interpreter() -> Interpreter:
    """The shared default interpreter, created on first use."""
    global _default
    if _default is None:
        _default = Interpreter()
    return _default


def set_interpreter(interpreter: Interpreter | None) -> Interpreter | None:
    """Replace the default interpreter. Returns the previous one."""
    global _default
    previous = _default
    _default = interpreter
    return previous


def precompile(source: str, names: Sequence[str], *, statement: bool = False) -> CompiledFn:
    """Warm the default interpreter's cache."""
    return get_interpreter().compile(source, names, statement=statement)


def evaluate_expression(source: str, context: Mapping[str, Any] | None = None) -> Any:
    return get_interpreter().evaluate_expression(source, context)


def execute_statement(source: str, context: Mapping[str, Any] | None = None) -> Any:
    return get_interpreter().execute_statement(source, context)
