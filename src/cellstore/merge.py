"""Merge engine — shallow updates and merged-state snapshots.

Raw state is either a Mapping (dict, TypedDict) or a dataclass instance.
Mappings accept any key in an update; dataclasses go through
dataclasses.replace(), which rejects fields the class does not declare.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any


def _is_dataclass_instance(raw: object) -> bool:
    return dataclasses.is_dataclass(raw) and not isinstance(raw, type)


def fields_of(raw: object) -> dict[str, Any]:
    """Shallow field view of a raw state."""
    if isinstance(raw, Mapping):
        return dict(raw)
    if _is_dataclass_instance(raw):
        # Not dataclasses.asdict(): that deep-copies nested values.
        return {f.name: getattr(raw, f.name) for f in dataclasses.fields(raw)}
    raise TypeError(
        f"store state must be a mapping or a dataclass instance, got {type(raw).__name__}"
    )


def apply_changes(raw: object, changes: Mapping[str, Any]) -> object:
    """Return a new raw state with changes shallow-merged over raw.

    raw itself is never mutated.
    """
    if isinstance(raw, Mapping):
        return {**raw, **changes}
    if _is_dataclass_instance(raw):
        return dataclasses.replace(raw, **changes)
    raise TypeError(
        f"store state must be a mapping or a dataclass instance, got {type(raw).__name__}"
    )


def merge_state(raw: object, computed_values: Mapping[str, Any]) -> Mapping[str, Any]:
    """Build a fresh read-only snapshot of raw fields plus computed values.

    Computed keys win over raw keys of the same name.
    """
    return MappingProxyType({**fields_of(raw), **computed_values})
