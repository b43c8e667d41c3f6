"""Error taxonomy for expression handling.

Only UnsafeExpressionError is meant to reach the caller of evaluate/execute.
EvaluationError is absorbed at the evaluator boundary and
DependencyResolutionWarning inside the resolver.
"""


class WcompError(Exception):
    """Base class for wcomp errors."""


class UnsafeExpressionError(WcompError):
    """Raised when source text matches the validator denylist."""

    def __init__(self, source: str, match: str) -> None:
        super().__init__(f"code blocked by validator ({match!r}): {source!r}")
        self.source = source
        self.match = match


class EvaluationError(WcompError):
    """Raised when compiling or running an expression fails."""

    def __init__(self, source: str, key: str, cause: BaseException) -> None:
        super().__init__(f"execution error for {key}: {cause!r}")
        self.source = source
        self.key = key
        self.cause = cause


class DependencyResolutionWarning(Warning):
    """A scope name matched but could not be resolved to a cell."""

    def __init__(self, token: str, cause: BaseException) -> None:
        super().__init__(f"could not resolve dependency {token!r}: {cause!r}")
        self.token = token
        self.cause = cause
