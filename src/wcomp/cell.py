"""Observable cells: a single mutable value with change notification.

Writing `cell.value` commits only values that differ from the current one
under a shallow-per-level policy (see `has_changed`). A committed change moves
the old value to `previous_value` and asks the scheduler for a notification
pass; subscribers run once per pass, not once per write.

Cells holding a dict, list or plain object intercept mutation: attribute and
item writes go to the held value in place and notify, and in-place container
methods (`append`, `update`, ...) are wrapped to notify as well. Cell members
always win over same-named keys of the held value.

Reads of `cell.value` inside `wcomp.collecting()` are recorded.
"""

from __future__ import annotations

import functools
import logging
import operator
from collections.abc import Mapping, MutableMapping
from typing import Any, Callable, Generic, Iterator, TypeVar

from wcomp import scheduler as _scheduling
from wcomp._tracking import record_read

logger = logging.getLogger("wcomp.cell")

T = TypeVar("T")

Callback = Callable[[], None]
Unsubscribe = Callable[[], None]

_UNSET: Any = object()

_PRIMITIVES = (type(None), bool, int, float, complex, str, bytes)

# In-place methods of list/dict/set that must notify when called through a cell.
_MUTATORS = frozenset({
    "append", "extend", "insert", "pop", "remove", "clear", "sort", "reverse",
    "update", "setdefault", "popitem", "add", "discard",
})


def _strict_equal(a: Any, b: Any) -> bool:
    """Identity for reference types, value equality for primitives."""
    if a is b:
        return True
    if isinstance(a, _PRIMITIVES) and isinstance(b, _PRIMITIVES):
        if isinstance(a, bool) is not isinstance(b, bool):
            return False
        return a == b
    return False


def _fields(obj: Any) -> Mapping | None:
    if isinstance(obj, Mapping):
        return obj
    try:
        return vars(obj)
    except TypeError:
        return None


def has_changed(old: Any, new: Any) -> bool:
    """Shallow-per-level change test used by every cell write.

    Sequences compare element-wise and mappings/objects key-wise, each with
    strict (identity or primitive) equality. Nothing recurses further.
    """
    if _strict_equal(old, new):
        return False
    if old is None or new is None:
        return True
    if isinstance(old, _PRIMITIVES) or isinstance(new, _PRIMITIVES):
        return True

    old_seq = isinstance(old, (list, tuple))
    new_seq = isinstance(new, (list, tuple))
    if old_seq and new_seq:
        if len(old) != len(new):
            return True
        return any(not _strict_equal(a, b) for a, b in zip(new, old))
    if old_seq or new_seq:
        return True

    old_fields = _fields(old)
    new_fields = _fields(new)
    if old_fields is None or new_fields is None:
        return True
    if len(old_fields) != len(new_fields):
        return True
    return any(
        not _strict_equal(value, old_fields.get(key, _UNSET))
        for key, value in new_fields.items()
    )


def _unwrap(value: Any) -> Any:
    return value.peek() if isinstance(value, Cell) else value


def _binary(op: Callable[[Any, Any], Any]) -> Callable[[Cell, Any], Any]:
    def method(self: Cell, other: Any) -> Any:
        return op(self.value, _unwrap(other))

    return method


def _reflected(op: Callable[[Any, Any], Any]) -> Callable[[Cell, Any], Any]:
    def method(self: Cell, other: Any) -> Any:
        return op(_unwrap(other), self.value)

    return method


class Cell(Generic[T]):
    """A mutable value that notifies subscribers when it changes."""

    __slots__ = ("_value", "_previous", "_subscribers", "_scheduled", "_scheduler", "_name")

    def __init__(
        self,
        value: T,
        *,
        scheduler: _scheduling.Scheduler | None = None,
        name: str | None = None,
    ) -> None:
        self._value = value
        self._previous = _UNSET
        # dict keeps set semantics with a stable iteration order
        self._subscribers: dict[Callback, None] = {}
        self._scheduled = False
        self._scheduler = scheduler
        self._name = name

    # --- Value ---

    @property
    def value(self) -> T:
        """Current value. Recorded by an active collection context."""
        record_read(self)
        return self._value

    @value.setter
    def value(self, new_value: T) -> None:
        if not has_changed(self._value, new_value):
            return
        self._previous = self._value
        self._value = new_value
        self._changed()

    def peek(self) -> T:
        """Read the value without recording the read."""
        return self._value

    @property
    def previous_value(self) -> T | None:
        """Value before the last committed write, or None."""
        return None if self._previous is _UNSET else self._previous

    @property
    def has_previous_value(self) -> bool:
        return self._previous is not _UNSET

    def change_history(self) -> tuple[T, T | None]:
        return self._value, self.previous_value

    def mutate(self, fn: Callable[[T], T | None]) -> T:
        """Change the held value through fn.

        If fn mutates the value in place (returning None or the same object),
        subscribers are notified unconditionally. A different return value
        replaces the held value through the normal equality-gated write.

        Usage:
            todos = Cell([])
            todos.mutate(lambda items: items.append("write tests"))
        """
        result = fn(self._value)
        if result is None or result is self._value:
            self._changed()
        else:
            self.value = result
        return self._value

    # --- Subscribers ---

    def subscribe(self, callback: Callback) -> Unsubscribe:
        """Register callback. Returns a function that removes exactly it."""
        self._subscribers[callback] = None

        def _unsubscribe() -> None:
            self._subscribers.pop(callback, None)

        return _unsubscribe

    def unsubscribe(self, callback: Callback) -> None:
        self._subscribers.pop(callback, None)

    def unsubscribe_all(self) -> None:
        """Drop every subscriber. The cell keeps its value but goes inert."""
        self._subscribers.clear()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    # --- Notification ---

    def _changed(self) -> None:
        scheduler = self._scheduler or _scheduling.get_scheduler()
        scheduler.request(self)

    def _notify_subscribers(self) -> None:
        """One notification pass. Runs each current subscriber once."""
        self._scheduled = False
        for callback in list(self._subscribers):
            # removed earlier in this pass
            if callback not in self._subscribers:
                continue
            try:
                callback()
            except Exception:
                logger.exception("Subscriber %r of %r failed", callback, self)

    # --- Mutation interception ---

    def __getattr__(self, name: str) -> Any:
        # Only reached when name is not a Cell member.
        if name.startswith("__"):
            raise AttributeError(name)
        held = object.__getattribute__(self, "_value")
        record_read(self)
        if isinstance(held, Mapping) and name in held:
            return held[name]
        if isinstance(held, _PRIMITIVES):
            raise AttributeError(f"{type(held).__name__} cell has no attribute {name!r}")
        attr = getattr(held, name)
        if name in _MUTATORS and isinstance(held, (list, dict, set)):
            return self._notifying(attr)
        return attr

    def __setattr__(self, name: str, value: Any) -> None:
        if hasattr(type(self), name):
            object.__setattr__(self, name, value)
            return
        held = self._value
        if isinstance(held, MutableMapping):
            held[name] = value
        elif isinstance(held, _PRIMITIVES + (list, tuple)):
            raise AttributeError(
                f"cannot set {name!r} on a cell holding {type(held).__name__}"
            )
        else:
            setattr(held, name, value)
        self._changed()

    def _notifying(self, method: Callable[..., Any]) -> Callable[..., Any]:
        @functools.wraps(method)
        def mutator(*args: Any, **kwargs: Any) -> Any:
            result = method(*args, **kwargs)
            self._changed()
            return result

        return mutator

    def __getitem__(self, key: Any) -> Any:
        return self.value[key]

    def __setitem__(self, key: Any, value: Any) -> None:
        self._value[key] = value
        self._changed()

    def __delitem__(self, key: Any) -> None:
        del self._value[key]
        self._changed()

    # --- Transparent use of the held value ---

    def __iter__(self) -> Iterator[Any]:
        held = self.value
        if not isinstance(held, (list, tuple)):
            logger.error("Cell value is not an array: %r", self)
            return iter(())
        return iter(held)

    def __len__(self) -> int:
        return len(self.value)

    def __contains__(self, item: Any) -> bool:
        return item in self.value

    def __bool__(self) -> bool:
        return bool(self.value)

    def __str__(self) -> str:
        return str(self.value)

    def __format__(self, format_spec: str) -> str:
        return format(self.value, format_spec)

    def __int__(self) -> int:
        return int(self.value)

    def __float__(self) -> float:
        return float(self.value)

    def __index__(self) -> int:
        return operator.index(self.value)

    def __neg__(self) -> Any:
        return -self.value

    def __pos__(self) -> Any:
        return +self.value

    def __abs__(self) -> Any:
        return abs(self.value)

    __add__ = _binary(operator.add)
    __radd__ = _reflected(operator.add)
    __sub__ = _binary(operator.sub)
    __rsub__ = _reflected(operator.sub)
    __mul__ = _binary(operator.mul)
    __rmul__ = _reflected(operator.mul)
    __truediv__ = _binary(operator.truediv)
    __rtruediv__ = _reflected(operator.truediv)
    __floordiv__ = _binary(operator.floordiv)
    __rfloordiv__ = _reflected(operator.floordiv)
    __mod__ = _binary(operator.mod)
    __rmod__ = _reflected(operator.mod)
    __pow__ = _binary(operator.pow)
    __rpow__ = _reflected(operator.pow)
    __eq__ = _binary(operator.eq)
    __ne__ = _binary(operator.ne)
    # value equality above, but cells are kept in sets and dict keys by identity
    __hash__ = object.__hash__
    __lt__ = _binary(operator.lt)
    __le__ = _binary(operator.le)
    __gt__ = _binary(operator.gt)
    __ge__ = _binary(operator.ge)

    def __repr__(self) -> str:
        label = f"{self._name}=" if self._name else ""
        return f"Cell({label}{self._value!r})"


def reactive(value: T) -> Cell[T]:
    """Wrap value in a new Cell."""
    return Cell(value)
