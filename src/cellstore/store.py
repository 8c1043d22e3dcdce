"""Store — an observable state cell with computed values.

A Store wraps a raw state produced by an initializer, derives computed
values from it, and exposes the union of both as a read-only merged
snapshot. Every set() builds new raw and merged states (never mutating
the previous ones) and then notifies subscribers synchronously:

1. global subscribers (subscribe_all), in subscription order;
2. for each key of the changes, in the order given, the subscribers
   registered under that key, in subscription order.

Computed keys are not tracked as dependencies of the raw keys they derive
from. A subscriber registered under a computed key only fires when that
key's name literally appears in the changes passed to set().

reset() rewinds the raw state from the initializer without notifying
anybody.

A per-store lock guards the state and the subscriber tables. Subscribers
are called with it released, so a callback may use the store again from
any thread.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Mapping

from cellstore.computed import ComputedConfig, evaluate_computed
from cellstore.merge import apply_changes, fields_of, merge_state
from cellstore.registry import StoreRegistry, default_registry
from cellstore.subscriptions import (
    KeyedSubscriptions,
    Subscriber,
    SubscriptionTable,
    Unsubscribe,
)

logger = logging.getLogger("cellstore.store")


class Store:
    """Observable state cell. Build one with create_store()."""

    def __init__(
        self,
        init: Callable[[], Any],
        computed: ComputedConfig | None = None,
    ) -> None:
        self._init = init
        self._computed: dict[str, Callable[[Any], Any]] = dict(computed or {})
        self._subscriptions = SubscriptionTable()
        self._named_subscriptions = KeyedSubscriptions()
        # Guards state and tables only; subscribers are always called
        # with the lock released.
        self._lock = threading.Lock()
        self._raw = init()
        self._state = self._build_state(self._raw)

    def _build_state(self, raw: object) -> Mapping[str, Any]:
        fields_of(raw)  # reject unsupported state types before running computeds
        return merge_state(raw, evaluate_computed(self._computed, raw))

    @property
    def state(self) -> Mapping[str, Any]:
        """Current merged state: raw fields plus computed values."""
        return self._state

    @property
    def computed_keys(self) -> tuple[str, ...]:
        return tuple(self._computed)

    def set(self, changes: Mapping[str, Any] | None = None, /, **fields: Any) -> None:
        """Shallow-merge changes into the state, then notify subscribers.

        Accepts a mapping, keyword fields, or both (keywords win). By the
        time set() returns, state reflects the change and every subscriber
        registered when its notification pass started has been called.
        If building the new state raises, nothing changes and nobody is
        notified.
        """
        merged_changes = {**(changes or {}), **fields}
        with self._lock:
            raw = apply_changes(self._raw, merged_changes)
            state = self._build_state(raw)
            self._raw, self._state = raw, state
            subscribers = self._subscriptions.snapshot()
        logger.debug(
            "set %s: notifying %d global subscribers",
            list(merged_changes),
            len(subscribers),
        )
        for callback in subscribers:
            callback(state)
        for key in merged_changes:
            with self._lock:
                subscribers = self._named_subscriptions.snapshot(key)
            for callback in subscribers:
                callback(state)

    def reset(self) -> None:
        """Rewind raw state from the initializer. Notifies nobody.

        If the initializer or a computed function raises, the current
        state is kept.
        """
        with self._lock:
            raw = self._init()
            state = self._build_state(raw)
            self._raw, self._state = raw, state
        logger.debug("reset %r", self)

    def subscribe(self, key: str, callback: Subscriber) -> Unsubscribe | None:
        """Call callback on every set() whose changes include key.

        Not called on registration. Returns the remover, or None when this
        exact callback is already registered under key.
        """
        with self._lock:
            return self._named_subscriptions.add(key, callback)

    def subscribe_all(self, callback: Subscriber) -> Unsubscribe | None:
        """Call callback now with the current state, then on every set().

        Returns the remover, or None (without calling callback) when this
        exact callback is already registered. If the immediate call raises,
        the registration is dropped before the exception propagates.
        """
        with self._lock:
            unsubscribe = self._subscriptions.add(callback)
            state = self._state
        if unsubscribe is None:
            return None
        try:
            callback(state)
        except BaseException:
            unsubscribe()
            raise
        return unsubscribe

    def __repr__(self) -> str:
        name = getattr(self._init, "__name__", type(self._init).__name__)
        return f"Store({name}, keys={list(self._state)})"


def create_store(
    init: Callable[[], Any],
    *,
    computed: ComputedConfig | None = None,
    registry: StoreRegistry | None = None,
) -> Store:
    """Create a store and register it for bulk reset.

    Usage:
        counter = create_store(
            lambda: {"count": 0},
            computed={"double": lambda s: s["count"] * 2},
        )
        counter.state  # {"count": 0, "double": 0}
        counter.set(count=5)
        counter.state  # {"count": 5, "double": 10}

    init runs once here and again on every reset(). Exceptions from init or
    from a computed function propagate; nothing is registered in that case.
    """
    store = Store(init, computed)
    (registry if registry is not None else default_registry).register(store)
    logger.debug("Created %r", store)
    return store
