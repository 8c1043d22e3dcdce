"""cellstore: observable state cells with computed values."""

from importlib.metadata import version as _version

__version__ = _version("cellstore")

from cellstore.computed import ComputedConfig, ComputedFn, evaluate_computed
from cellstore.registry import StoreRegistry, default_registry, reset_all_stores
from cellstore.store import Store, create_store
from cellstore.subscriptions import Subscriber, Unsubscribe
# textual NOT auto-imported — opt-in only

__all__ = [
    "ComputedConfig",
    "ComputedFn",
    "evaluate_computed",
    "Store",
    "create_store",
    "StoreRegistry",
    "default_registry",
    "reset_all_stores",
    "Subscriber",
    "Unsubscribe",
]
