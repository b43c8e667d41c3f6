"""Read tracking: an explicit collection context for cell reads.

Entering `collecting()` installs a Collector in a contextvar. Any
`Cell.value` read while it is active records the cell, and optionally
subscribes the collector's callback to it. Exiting restores the previous
collector, so contexts nest.

Text-scanning dependency resolution (wcomp.deps) is what bindings use;
this is the opt-in alternative for Python callables.
"""

from __future__ import annotations

import contextvars
from contextlib import contextmanager
from typing import TYPE_CHECKING, Callable, Iterator

if TYPE_CHECKING:
    from wcomp.cell import Cell

# The collector active for the current context, if any.
current_collector: contextvars.ContextVar[Collector | None] = contextvars.ContextVar(
    "current_collector", default=None
)


class Collector:
    """Receives every cell read while it is the current collector."""

    __slots__ = ("cells", "callback")

    def __init__(self, callback: Callable[[], None] | None = None) -> None:
        self.cells: dict[Cell, None] = {}
        self.callback = callback

    def add(self, cell: Cell) -> None:
        if cell in self.cells:
            return
        self.cells[cell] = None
        if self.callback is not None:
            cell.subscribe(self.callback)


def record_read(cell: Cell) -> None:
    """Called by Cell on every tracked read."""
    collector = current_collector.get()
    if collector is not None:
        collector.add(cell)


@contextmanager
def collecting(callback: Callable[[], None] | None = None) -> Iterator[Collector]:
    """Collect the cells read inside the block.

    Usage:
        with collecting() as reads:
            total = price.value * qty.value
        # list(reads.cells) == [price, qty]

    With a callback, every cell read is also subscribed to it.
    """
    collector = Collector(callback)
    token = current_collector.set(collector)
    try:
        yield collector
    finally:
        current_collector.reset(token)


@contextmanager
def untracked() -> Iterator[None]:
    """Suspend collection inside the block."""
    token = current_collector.set(None)
    try:
        yield
    finally:
        current_collector.reset(token)
