"""Textual integration for cellstore. Opt-in — requires textual.

Binds a store to a Textual app: the effect runs with the merged state on
each notification, is skipped while the app is not running or is paused,
and is marshalled onto the app thread when the store is set from a worker
thread. The caller keeps the returned unsubscribe function and calls it
on teardown (e.g. from the widget's on_unmount).
"""

import threading
from contextlib import contextmanager

from textual.css.query import NoMatches

# Module-owned pause state, keyed by id(app) so multiple apps work in tests.
_paused_apps: set[int] = set()


@contextmanager
def pause(app):
    """Suspend bound effects during widget replacement."""
    key = id(app)
    _paused_apps.add(key)
    try:
        yield
    finally:
        _paused_apps.discard(key)


def is_safe(app) -> bool:
    """Is the widget tree in a queryable state?"""
    return app.is_running and id(app) not in _paused_apps


def _guard(app, effect):
    main = threading.get_ident()

    def _safe(state):
        try:
            effect(state)
        except NoMatches:
            pass  # widget already gone

    def _guarded(state):
        if not is_safe(app):
            return
        if threading.get_ident() != main:
            app.call_from_thread(_safe, state)
        else:
            _safe(state)

    return _guarded


def bind(app, store, effect):
    """subscribe_all() that safely bridges to Textual widgets.

    effect runs immediately with the current state (when the app is safe)
    and on every set(). Returns the unsubscribe function.
    """
    return store.subscribe_all(_guard(app, effect))


def bind_key(app, store, key, effect):
    """subscribe() that safely bridges to Textual widgets.

    effect runs on every set() whose changes include key. Returns the
    unsubscribe function.
    """
    return store.subscribe(key, _guard(app, effect))
