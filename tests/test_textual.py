"""Tests for cellstore.textual — Textual integration layer."""

import queue
import threading

import pytest
from textual.css.query import NoMatches

from cellstore import StoreRegistry, create_store
from cellstore import textual as ctx


class _MockApp:
    """Minimal mock matching the Textual App interface ctx needs."""

    def __init__(self, *, is_running=True):
        self.is_running = is_running
        self._call_from_thread_log = []

    def call_from_thread(self, fn, *args):
        self._call_from_thread_log.append((fn, args))
        fn(*args)


class _BlockingApp:
    """App stand-in whose call_from_thread waits for its own app thread, like Textual."""

    def __init__(self):
        self.is_running = True
        self._work = queue.Queue()
        self._thread = threading.Thread(target=self._run, daemon=True)
        self._thread.start()

    def _run(self):
        while True:
            item = self._work.get()
            if item is None:
                return
            fn, args, done = item
            try:
                fn(*args)
            finally:
                done.set()

    def call_from_thread(self, fn, *args):
        done = threading.Event()
        self._work.put((fn, args, done))
        if not done.wait(timeout=2):
            raise TimeoutError("app thread did not run the callback")

    def stop(self):
        self._work.put(None)
        self._thread.join(timeout=2)


def _store():
    return create_store(lambda: {"count": 0, "label": ""}, registry=StoreRegistry())


class TestBind:
    def test_fires_immediately_and_on_set(self):
        app = _MockApp()
        s = _store()
        effects = []
        ctx.bind(app, s, lambda st: effects.append(st["count"]))
        s.set({"count": 1})
        assert effects == [0, 1]

    def test_skips_when_not_running(self):
        app = _MockApp(is_running=False)
        s = _store()
        effects = []
        ctx.bind(app, s, lambda st: effects.append(st["count"]))
        s.set({"count": 1})
        assert effects == []

    def test_skips_during_pause(self):
        app = _MockApp()
        s = _store()
        effects = []
        ctx.bind(app, s, lambda st: effects.append(st["count"]))
        with ctx.pause(app):
            s.set({"count": 1})
        s.set({"count": 2})
        assert effects == [0, 2]

    def test_catches_nomatch(self):
        """NoMatches from widget queries are silently swallowed."""
        app = _MockApp()
        s = _store()

        def _raise_nomatch(st):
            raise NoMatches("CounterLabel")

        ctx.bind(app, s, _raise_nomatch)
        s.set({"count": 1})  # should not raise

    def test_propagates_real_errors(self):
        app = _MockApp()
        s = _store()

        def _effect(st):
            if st["count"]:
                raise ValueError("boom")

        ctx.bind(app, s, _effect)
        with pytest.raises(ValueError, match="boom"):
            s.set({"count": 1})

    def test_unsubscribe_on_teardown(self):
        app = _MockApp()
        s = _store()
        effects = []
        unsubscribe = ctx.bind(app, s, lambda st: effects.append(st["count"]))
        unsubscribe()
        s.set({"count": 1})
        assert effects == [0]

    def test_thread_marshal(self):
        """Sets from a background thread go through call_from_thread."""
        app = _MockApp()
        s = _store()
        effects = []
        ctx.bind(app, s, lambda st: effects.append(st["count"]))

        t = threading.Thread(target=lambda: s.set({"count": 2}))
        t.start()
        t.join()

        assert effects == [0, 2]
        assert len(app._call_from_thread_log) == 1


    def test_effect_can_set_store_from_app_thread(self):
        """A worker-thread set whose effect writes back to the store completes."""
        app = _BlockingApp()
        s = _store()
        errors = []

        def worker():
            try:
                s.set({"count": 2})
            except Exception as exc:
                errors.append(exc)

        try:
            ctx.bind_key(app, s, "count", lambda st: s.set({"label": f"count={st['count']}"}))
            t = threading.Thread(target=worker)
            t.start()
            t.join(timeout=5)
            assert not t.is_alive()
            assert errors == []
            assert s.state == {"count": 2, "label": "count=2"}
        finally:
            app.stop()

class TestBindKey:
    def test_fires_only_for_key(self):
        app = _MockApp()
        s = _store()
        effects = []
        ctx.bind_key(app, s, "label", lambda st: effects.append(st["label"]))
        assert effects == []
        s.set({"count": 1})
        s.set({"label": "hi"})
        assert effects == ["hi"]

    def test_skips_during_pause(self):
        app = _MockApp()
        s = _store()
        effects = []
        ctx.bind_key(app, s, "count", lambda st: effects.append(st["count"]))
        with ctx.pause(app):
            s.set({"count": 1})
        assert effects == []


class TestPause:
    def test_pause_restores_on_exception(self):
        app = _MockApp()
        assert ctx.is_safe(app)

        with pytest.raises(RuntimeError):
            with ctx.pause(app):
                assert not ctx.is_safe(app)
                raise RuntimeError("oops")

        assert ctx.is_safe(app)

    def test_pause_does_not_mutate_app(self):
        app = _MockApp()
        attrs_before = set(vars(app))
        with ctx.pause(app):
            attrs_during = set(vars(app))
        assert attrs_before == attrs_during == set(vars(app))

    def test_multiple_apps_independent(self):
        app_a = _MockApp()
        app_b = _MockApp()
        with ctx.pause(app_a):
            assert not ctx.is_safe(app_a)
            assert ctx.is_safe(app_b)
