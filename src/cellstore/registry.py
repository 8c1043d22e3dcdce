"""Store registry — the collection of stores used for bulk reset.

Registries are ordinary objects. create_store() registers into the one it
is given, or into default_registry. Tests that need isolation create
their own StoreRegistry.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterator

if TYPE_CHECKING:
    from cellstore.store import Store

logger = logging.getLogger("cellstore.registry")


class StoreRegistry:
    """Append-only, creation-ordered list of stores."""

    __slots__ = ("_stores",)

    def __init__(self) -> None:
        self._stores: list[Store] = []

    def register(self, store: Store) -> None:
        self._stores.append(store)

    def reset_all(self) -> None:
        """Reset every registered store, in creation order.

        Silent: resets never notify subscribers. Fail-fast: an initializer
        that raises stops the loop and the exception reaches the caller.
        """
        logger.debug("Resetting %d stores", len(self._stores))
        for store in self._stores:
            store.reset()

    def __iter__(self) -> Iterator[Store]:
        return iter(list(self._stores))

    def __len__(self) -> int:
        return len(self._stores)

    def __repr__(self) -> str:
        return f"StoreRegistry({len(self._stores)} stores)"


default_registry = StoreRegistry()


def reset_all_stores() -> None:
    """Reset every store registered in default_registry."""
    default_registry.reset_all()
