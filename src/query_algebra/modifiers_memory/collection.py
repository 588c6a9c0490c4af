"""Collection modifiers.

Results keep the container type of the current value: lists stay lists,
tuples stay tuples, sets and frozensets stay sets.
"""

from __future__ import annotations

from collections.abc import Iterable, Set
from typing import Any

from ..applier import MemoryModifier, ModificationApplier
from ..operators import AlgebraOperator


def _rebuild(current: Any, items: Iterable[Any]) -> Any:
    if isinstance(current, (tuple, frozenset, set)):
        return type(current)(items)
    return list(items)


class AppendModifier(MemoryModifier):
    """Sequences get the items appended; sets take the union."""

    @property
    def name(self) -> AlgebraOperator:
        return AlgebraOperator.APPEND

    def modify(self, current: Any, node: Any, context: ModificationApplier) -> Any:
        if isinstance(current, Set):
            return type(current)(current | set(node.items))
        return _rebuild(current, [*current, *node.items])


class RemoveWhereModifier(MemoryModifier):
    @property
    def name(self) -> AlgebraOperator:
        return AlgebraOperator.REMOVE_WHERE

    def modify(self, current: Any, node: Any, context: ModificationApplier) -> Any:
        return _rebuild(current, [e for e in current if not context.matches(node.condition, e)])


class RemoveItemsModifier(MemoryModifier):
    @property
    def name(self) -> AlgebraOperator:
        return AlgebraOperator.REMOVE_ITEMS

    def modify(self, current: Any, node: Any, context: ModificationApplier) -> Any:
        return _rebuild(current, [e for e in current if e not in node.items])


class DropFirstModifier(MemoryModifier):
    @property
    def name(self) -> AlgebraOperator:
        return AlgebraOperator.DROP_FIRST

    def modify(self, current: Any, node: Any, context: ModificationApplier) -> Any:
        return _rebuild(current, list(current)[1:])


class DropLastModifier(MemoryModifier):
    @property
    def name(self) -> AlgebraOperator:
        return AlgebraOperator.DROP_LAST

    def modify(self, current: Any, node: Any, context: ModificationApplier) -> Any:
        return _rebuild(current, list(current)[:-1])


class ForEachModifier(MemoryModifier):
    @property
    def name(self) -> AlgebraOperator:
        return AlgebraOperator.FOR_EACH

    def modify(self, current: Any, node: Any, context: ModificationApplier) -> Any:
        return _rebuild(current, [context.apply(node.modification, e) for e in current])


class ForEachIfModifier(MemoryModifier):
    @property
    def name(self) -> AlgebraOperator:
        return AlgebraOperator.FOR_EACH_IF

    def modify(self, current: Any, node: Any, context: ModificationApplier) -> Any:
        return _rebuild(
            current,
            [
                context.apply(node.modification, e)
                if context.matches(node.condition, e)
                else e
                for e in current
            ],
        )
