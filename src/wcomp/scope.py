"""Scope: the name -> Cell mapping a unit of markup evaluates against.

Plain values handed to a scope are wrapped in cells it owns; cells are kept
by identity, so a child scope built from a parent shares the parent's cells
and a write through either is seen by both.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Iterator

from wcomp.cell import Cell
from wcomp.scheduler import Scheduler

# Context names that never refer to a single cell.
STATE_BAG_NAME = "state"
SELF_NAME = "this"


class StateBag:
    """The whole scope as one object: `state.count` is the `count` cell.

    Assigning `state.count = 3` writes the cell's value.
    """

    __slots__ = ("_scope",)

    def __init__(self, scope: Scope) -> None:
        object.__setattr__(self, "_scope", scope)

    def __getattr__(self, name: str) -> Cell:
        try:
            return self._scope[name]
        except KeyError:
            raise AttributeError(name) from None

    def __setattr__(self, name: str, value: Any) -> None:
        self._scope.set(name, value)

    def __getitem__(self, name: str) -> Cell:
        return self._scope[name]

    def __setitem__(self, name: str, value: Any) -> None:
        self._scope.set(name, value)

    def __contains__(self, name: object) -> bool:
        return name in self._scope

    def __iter__(self) -> Iterator[str]:
        return iter(self._scope)

    def __repr__(self) -> str:
        return f"StateBag({sorted(self._scope)!r})"


class Scope(Mapping[str, Cell]):
    """Name -> Cell mapping with ownership of the cells it created."""

    def __init__(
        self,
        values: Mapping[str, Any] | None = None,
        *,
        parent: Scope | None = None,
        scheduler: Scheduler | None = None,
    ) -> None:
        self.parent = parent
        self._scheduler = scheduler or (parent._scheduler if parent else None)
        self._cells: dict[str, Cell] = dict(parent._cells) if parent else {}
        self._owned: dict[str, Cell] = {}
        for name, value in (values or {}).items():
            self.set(name, value)

    # --- Mapping ---

    def __getitem__(self, name: str) -> Cell:
        return self._cells[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._cells)

    def __len__(self) -> int:
        return len(self._cells)

    # --- Values ---

    def read(self, name: str) -> Any:
        """The value of the named cell, or None if there is no such cell."""
        cell = self._cells.get(name)
        return cell.value if cell is not None else None

    def set(self, name: str, value: Any) -> Cell:
        """Write value to the named cell, creating an owned cell if needed.

        A Cell value is bound by identity instead of being written.
        """
        if isinstance(value, Cell):
            self._cells[name] = value
            return value
        cell = self._cells.get(name)
        if cell is None:
            cell = Cell(value, scheduler=self._scheduler, name=name)
            self._cells[name] = cell
            self._owned[name] = cell
        else:
            cell.value = value
        return cell

    def update(self, values: Mapping[str, Any]) -> None:
        for name, value in values.items():
            self.set(name, value)

    def child(self, values: Mapping[str, Any] | None = None) -> Scope:
        """A nested scope sharing every cell of this one."""
        return Scope(values, parent=self)

    def context(self) -> dict[str, Any]:
        """Evaluation context: each cell by name, plus the state bag."""
        return {STATE_BAG_NAME: StateBag(self), **self._cells}

    def dispose(self) -> None:
        """Detach subscribers from the cells this scope created."""
        for cell in self._owned.values():
            cell.unsubscribe_all()

    def __repr__(self) -> str:
        return f"Scope({sorted(self._cells)!r})"
