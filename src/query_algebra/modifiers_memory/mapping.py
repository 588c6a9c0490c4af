"""Map modifiers: merge, remove keys, modify one key."""

from __future__ import annotations

from typing import Any

from ..applier import MemoryModifier, ModificationApplier
from ..operators import AlgebraOperator


class MapMergeModifier(MemoryModifier):
    @property
    def name(self) -> AlgebraOperator:
        return AlgebraOperator.MAP_MERGE

    def modify(self, current: Any, node: Any, context: ModificationApplier) -> Any:
        return {**current, **node.entries}


class MapRemoveKeysModifier(MemoryModifier):
    @property
    def name(self) -> AlgebraOperator:
        return AlgebraOperator.MAP_REMOVE_KEYS

    def modify(self, current: Any, node: Any, context: ModificationApplier) -> Any:
        return {k: v for k, v in current.items() if k not in node.keys}


class MapModifyKeyModifier(MemoryModifier):
    """A missing key is left missing."""

    @property
    def name(self) -> AlgebraOperator:
        return AlgebraOperator.MAP_MODIFY_KEY

    def modify(self, current: Any, node: Any, context: ModificationApplier) -> Any:
        if node.key not in current:
            return current
        return {**current, node.key: context.apply(node.modification, current[node.key])}
