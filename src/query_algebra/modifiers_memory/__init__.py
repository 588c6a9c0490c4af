"""
In-memory modifier implementations and the default registry factory.

Usage::

    from query_algebra.modifiers_memory import build_default_registry

    applier = ModificationApplier(build_default_registry())
"""

from __future__ import annotations

from ..applier import MemoryModifierRegistry
from .collection import (
    AppendModifier,
    DropFirstModifier,
    DropLastModifier,
    ForEachIfModifier,
    ForEachModifier,
    RemoveItemsModifier,
    RemoveWhereModifier,
)
from .mapping import MapMergeModifier, MapModifyKeyModifier, MapRemoveKeysModifier
from .scalar import (
    AppendStringModifier,
    AssignModifier,
    CoerceAtLeastModifier,
    CoerceAtMostModifier,
    IncrementModifier,
    MultiplyModifier,
)


def build_default_registry() -> MemoryModifierRegistry:
    """Create a registry with all built-in modifiers."""
    registry = MemoryModifierRegistry()
    registry.register_all(
        # Scalar
        AssignModifier(),
        IncrementModifier(),
        MultiplyModifier(),
        CoerceAtMostModifier(),
        CoerceAtLeastModifier(),
        AppendStringModifier(),
        # Collections
        AppendModifier(),
        RemoveWhereModifier(),
        RemoveItemsModifier(),
        DropFirstModifier(),
        DropLastModifier(),
        ForEachModifier(),
        ForEachIfModifier(),
        # Maps
        MapMergeModifier(),
        MapRemoveKeysModifier(),
        MapModifyKeyModifier(),
    )
    return registry
