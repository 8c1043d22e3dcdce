"""Computed engine — derived values evaluated from raw state.

A computed configuration maps a key name to a pure function of the raw
state. The engine holds no state of its own: every call evaluates every
function against the state it is given.
"""

from __future__ import annotations

from typing import Any, Callable, Mapping

ComputedFn = Callable[[Any], Any]
ComputedConfig = Mapping[str, ComputedFn]


def evaluate_computed(config: ComputedConfig, raw: object) -> dict[str, Any]:
    """Evaluate every computed function against raw, in config order.

    Exceptions raised by a computed function propagate to the caller.
    """
    return {key: fn(raw) for key, fn in config.items()}
