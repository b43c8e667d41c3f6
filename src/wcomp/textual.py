"""Textual integration for wcomp. Opt-in: requires textual.

Bindings created here render into a Textual app safely: renders are skipped
while the app is not running or is paused, NoMatches from widget queries is
swallowed, and a notification pass running off the app thread is marshaled
with call_from_thread.
"""

import threading
from contextlib import contextmanager

from textual.css.query import NoMatches

from wcomp.binding import bind as _bind

# Module-owned pause state, keyed by id(app) so multiple apps work in tests.
_paused_apps: set[int] = set()


@contextmanager
def pause(app):
    """Suspend guarded renders during widget replacement."""
    key = id(app)
    _paused_apps.add(key)
    try:
        yield
    finally:
        _paused_apps.discard(key)


def is_safe(app) -> bool:
    """Is the widget tree in a queryable state?"""
    return app.is_running and id(app) not in _paused_apps


def bind(app, source, scope, render, *, interpreter=None):
    """bind() whose render is guarded for a Textual app."""
    _main = threading.get_ident()

    def _guarded(value):
        if not is_safe(app):
            return
        if threading.get_ident() != _main:
            app.call_from_thread(_safe, value)
        else:
            _safe(value)

    def _safe(value):
        try:
            render(value)
        except NoMatches:
            pass

    return _bind(source, scope, _guarded, interpreter=interpreter)


def bind_text(app, selector, source, scope, *, interpreter=None):
    """Keep the text of app.query_one(selector) equal to source's value.

    A failed or None evaluation renders as empty text.
    """

    def _render(value):
        app.query_one(selector).update("" if value is None else str(value))

    return bind(app, source, scope, _render, interpreter=interpreter)
