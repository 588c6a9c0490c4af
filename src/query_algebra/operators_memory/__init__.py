"""
In-memory operator implementations.

Provides concrete MemoryOperator subclasses for every leaf condition
operator and a factory function to create registries.

Usage::

    from query_algebra.operators_memory import build_default_registry

    registry = build_default_registry()
    evaluator = ConditionEvaluator(registry)
"""

from __future__ import annotations

from ..evaluator import MemoryOperatorRegistry
from .bits import (
    BitsAllClearOperator,
    BitsAllSetOperator,
    BitsAnyClearOperator,
    BitsAnySetOperator,
)
from .collection import (
    AllElementsOperator,
    AnyElementOperator,
    HasKeyOperator,
    SizeEqualsOperator,
)
from .fts import FullTextSearchOperator
from .geometry import GeoDistanceOperator
from .set import InOperator, NotInOperator
from .standard import (
    EqualOperator,
    GreaterEqualOperator,
    GreaterThanOperator,
    LessEqualOperator,
    LessThanOperator,
    NotEqualOperator,
)
from .string import ContainsOperator, RegexOperator


def build_default_registry() -> MemoryOperatorRegistry:
    """
    Create a registry with all built-in operators.

    Returns:
        MemoryOperatorRegistry: A new registry instance with all operators.
    """
    registry = MemoryOperatorRegistry()
    registry.register_all(
        # Standard comparison
        EqualOperator(),
        NotEqualOperator(),
        GreaterThanOperator(),
        LessThanOperator(),
        GreaterEqualOperator(),
        LessEqualOperator(),
        # Set
        InOperator(),
        NotInOperator(),
        # String
        ContainsOperator(),
        RegexOperator(),
        # Full-text search
        FullTextSearchOperator(),
        # Geometry
        GeoDistanceOperator(),
        # Bitwise
        BitsAllSetOperator(),
        BitsAnySetOperator(),
        BitsAllClearOperator(),
        BitsAnyClearOperator(),
        # Collections and maps
        AllElementsOperator(),
        AnyElementOperator(),
        SizeEqualsOperator(),
        HasKeyOperator(),
    )
    return registry
