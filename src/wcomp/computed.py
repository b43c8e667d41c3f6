"""Computed cells: a cell whose value follows an expression.

A Computed is an ordinary Cell driven by a Binding: when a cell the source
reads changes, the source is re-evaluated and the result written to the
computed cell, which in turn notifies its own subscribers on a later pass.
"""

from __future__ import annotations

from typing import Any, TypeVar

from wcomp.binding import Binding
from wcomp.cell import Cell
from wcomp.interpreter import Interpreter
from wcomp.scheduler import Scheduler
from wcomp.scope import Scope

T = TypeVar("T")


class Computed(Cell[T]):
    """A derived cell. Writes made by hand are overwritten on next change."""

    __slots__ = ("_binding",)

    def __init__(
        self,
        source: str,
        scope: Scope,
        *,
        interpreter: Interpreter | None = None,
        scheduler: Scheduler | None = None,
    ) -> None:
        super().__init__(None, scheduler=scheduler, name=source)
        self._binding: Binding | None = None
        binding = Binding(source, scope, self._assign, interpreter=interpreter)
        binding.refresh()
        self._binding = binding

    def _assign(self, value: Any) -> None:
        if self._binding is None:
            # initial evaluation: no previous value, nobody to notify
            self._value = value
        else:
            self.value = value

    @property
    def source(self) -> str:
        return self._binding.source

    def dispose(self) -> None:
        """Stop following the source. The last value is kept."""
        self._binding.dispose()


def computed(
    source: str,
    scope: Scope,
    *,
    interpreter: Interpreter | None = None,
    scheduler: Scheduler | None = None,
) -> Computed:
    """Factory for Computed.

    Usage:
        scope = Scope({"price": 3, "qty": 2})
        total = computed("price * qty", scope)
        total.value  # 6
    """
    return Computed(source, scope, interpreter=interpreter, scheduler=scheduler)
