"""Notification scheduler: coalesces mutations into one deferred pass.

A cell that changes asks the scheduler for a notification pass. The first
request marks the cell scheduled and defers its pass; further requests are
no-ops until the pass starts and clears the flag. Several synchronous writes
therefore produce a single pass that sees the last written value.

Deferral, in order of preference:
- an explicit `enqueue` callable (e.g. a UI toolkit's "call soon" hook),
- `call_soon` on the running asyncio loop,
- a pending queue drained by `flush()` when no loop is running.

Passes still queued when a loop later becomes available are moved onto it
by the next request made from inside the loop.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from typing import TYPE_CHECKING, Callable

if TYPE_CHECKING:
    from wcomp.cell import Cell

logger = logging.getLogger("wcomp.scheduler")

Enqueue = Callable[[Callable[[], None]], object]


def _running_loop() -> asyncio.AbstractEventLoop | None:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


class Scheduler:
    """Defers cell notification passes past the current synchronous code."""

    def __init__(self, enqueue: Enqueue | None = None) -> None:
        self._enqueue = enqueue
        self._pending: deque[Callable[[], None]] = deque()

    def request(self, cell: Cell) -> None:
        """Schedule a notification pass for cell unless one is already due."""
        loop = _running_loop() if self._enqueue is None else None
        if loop is not None and self._pending:
            # passes queued before the loop started run on the loop too
            self._hand_off(loop)
        if cell._scheduled:
            return
        cell._scheduled = True
        self._defer(cell._notify_subscribers, loop)

    def _defer(self, fn: Callable[[], None], loop: asyncio.AbstractEventLoop | None) -> None:
        if self._enqueue is not None:
            self._enqueue(fn)
        elif loop is not None:
            loop.call_soon(fn)
        else:
            self._pending.append(fn)

    def _hand_off(self, loop: asyncio.AbstractEventLoop) -> None:
        logger.debug("Moving %d queued pass(es) onto the event loop", len(self._pending))
        while self._pending:
            loop.call_soon(self._pending.popleft())

    @property
    def pending_count(self) -> int:
        """Passes queued for flush(). Passes handed to a loop are not counted."""
        return len(self._pending)

    def flush(self) -> int:
        """Run queued passes, including ones queued while flushing.

        Returns the number of passes run.
        """
        ran = 0
        while self._pending:
            fn = self._pending.popleft()
            fn()
            ran += 1
        if ran:
            logger.debug("Flushed %d notification pass(es)", ran)
        return ran


_default = Scheduler()


def get_scheduler() -> Scheduler:
    return _default


def set_scheduler(scheduler: Scheduler) -> Scheduler:
    """Replace the default scheduler used by cells created without one.

    Returns the previous default so callers can restore it.

    Usage:
        wcomp.set_scheduler(wcomp.Scheduler(enqueue=app.call_later))
    """
    global _default
    previous = _default
    _default = scheduler
    return previous


def flush() -> int:
    """Drain the default scheduler's pending queue."""
    return _default.flush()


def get_pending_count() -> int:
    """Number of notification passes waiting on the default scheduler."""
    return _default.pending_count
