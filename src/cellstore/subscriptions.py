"""Subscription tables — ordered callback registries keyed by token.

Each registration gets a unique token; removal goes by token, so an
unsubscribe closure only ever removes the registration it was issued for.
Duplicate registration of the same callback object is a no-op.

Notification passes iterate a snapshot taken when the pass starts:
subscribing or unsubscribing from inside a callback takes effect starting
with the next pass, not the current one.
"""

from __future__ import annotations

import itertools
from typing import Any, Callable

Subscriber = Callable[[Any], None]
Unsubscribe = Callable[[], None]

# itertools.count is thread-safe (C-level GIL atomic)
_token_counter = itertools.count(1)


def new_token() -> int:
    return next(_token_counter)


class SubscriptionTable:
    """Ordered token -> callback map with identity deduplication."""

    __slots__ = ("_entries",)

    def __init__(self) -> None:
        self._entries: dict[int, Subscriber] = {}

    def __contains__(self, callback: object) -> bool:
        return any(cb is callback for cb in self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    def add(self, callback: Subscriber) -> Unsubscribe | None:
        """Register callback. Returns its remover, or None if already present."""
        if callback in self:
            return None
        token = new_token()
        self._entries[token] = callback

        def _unsubscribe() -> None:
            self._entries.pop(token, None)  # already removed is fine

        return _unsubscribe

    def snapshot(self) -> list[Subscriber]:
        """Callbacks in subscription order, detached from later changes."""
        return list(self._entries.values())


class KeyedSubscriptions:
    """Per-key subscription tables, created on first use."""

    __slots__ = ("_tables",)

    def __init__(self) -> None:
        self._tables: dict[str, SubscriptionTable] = {}

    def table(self, key: str) -> SubscriptionTable:
        table = self._tables.get(key)
        if table is None:
            table = self._tables[key] = SubscriptionTable()
        return table

    def add(self, key: str, callback: Subscriber) -> Unsubscribe | None:
        return self.table(key).add(callback)

    def count(self, key: str) -> int:
        table = self._tables.get(key)
        return len(table) if table is not None else 0

    def snapshot(self, key: str) -> list[Subscriber]:
        table = self._tables.get(key)
        return table.snapshot() if table is not None else []
