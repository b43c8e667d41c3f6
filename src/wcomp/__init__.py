"""wcomp: reactive cells and a cached, dependency-aware expression evaluator."""

from importlib.metadata import version as _version

__version__ = _version("wcomp")

from wcomp._tracking import collecting, untracked
from wcomp.cell import Cell, has_changed, reactive
from wcomp.scheduler import Scheduler, flush, get_pending_count, get_scheduler, set_scheduler
from wcomp.errors import (
    DependencyResolutionWarning,
    EvaluationError,
    UnsafeExpressionError,
    WcompError,
)
from wcomp.validator import is_safe, validate
from wcomp.interpreter import (
    CacheStats,
    Interpreter,
    evaluate_expression,
    execute_statement,
    get_interpreter,
    precompile,
    set_interpreter,
)
from wcomp.scope import Scope, StateBag
from wcomp.deps import extract_identifiers, resolve_dependencies
from wcomp.binding import Binding, bind, effect
from wcomp.computed import Computed, computed
# textual NOT auto-imported, opt-in only

__all__ = [
    "Cell",
    "reactive",
    "has_changed",
    "collecting",
    "untracked",
    "Scheduler",
    "get_scheduler",
    "set_scheduler",
    "flush",
    "get_pending_count",
    "WcompError",
    "UnsafeExpressionError",
    "EvaluationError",
    "DependencyResolutionWarning",
    "is_safe",
    "validate",
    "Interpreter",
    "CacheStats",
    "get_interpreter",
    "set_interpreter",
    "precompile",
    "evaluate_expression",
    "execute_statement",
    "Scope",
    "StateBag",
    "extract_identifiers",
    "resolve_dependencies",
    "Binding",
    "bind",
    "effect",
    "Computed",
    "computed",
]
