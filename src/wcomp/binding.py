"""Bindings: keep rendered output in sync with an expression.

A Binding resolves the cells its source reads, subscribes to each, evaluates
the source and hands the result to its render callback. Every notification
repeats the whole cycle, so dependencies that change between evaluations
(e.g. either branch of a conditional) are picked up.

effect() is the manual flavour: the caller names the cells.
"""

from __future__ import annotations

from typing import Any, Callable, Iterable

from wcomp.cell import Cell, Unsubscribe
from wcomp.deps import resolve_dependencies
from wcomp.interpreter import Interpreter, get_interpreter
from wcomp.scope import Scope
from wcomp.validator import validate

Render = Callable[[Any], None]


class Binding:
    """Re-renders source against scope whenever a cell it reads changes."""

    def __init__(
        self,
        source: str,
        scope: Scope,
        render: Render,
        *,
        interpreter: Interpreter | None = None,
    ) -> None:
        validate(source)
        self.source = source
        self.scope = scope
        self.value: Any = None
        self.dependencies: frozenset[Cell] = frozenset()
        self._render = render
        self._interpreter = interpreter or get_interpreter()
        self._unsubscribers: list[Unsubscribe] = []
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    def refresh(self) -> None:
        """Re-resolve dependencies, re-subscribe, evaluate and render."""
        if self._disposed:
            return
        self._unsubscribe()
        dependencies = resolve_dependencies(
            self.source, self.scope, interpreter=self._interpreter
        )
        for cell in dependencies:
            self._unsubscribers.append(cell.subscribe(self.refresh))
        self.dependencies = frozenset(dependencies)

        self.value = self._interpreter.evaluate_expression(
            self.source, self.scope.context()
        )
        self._render(self.value)

    def dispose(self) -> None:
        """Stop following the scope."""
        self._disposed = True
        self._unsubscribe()
        self.dependencies = frozenset()

    def _unsubscribe(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()

    def __repr__(self) -> str:
        state = "disposed" if self._disposed else f"{len(self.dependencies)} deps"
        return f"Binding({self.source!r}, {state})"


def bind(
    source: str,
    scope: Scope,
    render: Render,
    *,
    interpreter: Interpreter | None = None,
) -> Binding:
    """Render source now and again after every change it depends on.

    Raises UnsafeExpressionError if the validator refuses source.

    Usage:
        scope = Scope({"first": "Ada", "last": "Lovelace"})
        out = []
        b = bind("first + ' ' + last", scope, out.append)
        # out == ["Ada Lovelace"]
        scope.set("last", "Byron")
        wcomp.flush()
        # out == ["Ada Lovelace", "Ada Byron"]
        b.dispose()
    """
    binding = Binding(source, scope, render, interpreter=interpreter)
    binding.refresh()
    return binding


def effect(callback: Callable[[], None], dependencies: Iterable[Cell]) -> Unsubscribe:
    """Run callback now and after every notification of the given cells.

    Returns a disposer that removes exactly this callback.
    """
    callback()
    unsubscribers = [cell.subscribe(callback) for cell in dependencies]

    def _dispose() -> None:
        for unsubscribe in unsubscribers:
            unsubscribe()

    return _dispose
