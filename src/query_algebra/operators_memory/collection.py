"""Element-wise and structural operators on collections and maps."""

from __future__ import annotations

from typing import Any

from ..evaluator import ConditionEvaluator, MemoryOperator
from ..operators import AlgebraOperator


class AllElementsOperator(MemoryOperator):
    """Vacuously true for an empty collection."""

    @property
    def name(self) -> AlgebraOperator:
        return AlgebraOperator.ALL_ELEMENTS

    def evaluate(self, field_value: Any, node: Any, context: ConditionEvaluator) -> bool:
        return all(context.evaluate(node.condition, e) for e in field_value)


class AnyElementOperator(MemoryOperator):
    @property
    def name(self) -> AlgebraOperator:
        return AlgebraOperator.ANY_ELEMENT

    def evaluate(self, field_value: Any, node: Any, context: ConditionEvaluator) -> bool:
        return any(context.evaluate(node.condition, e) for e in field_value)


class SizeEqualsOperator(MemoryOperator):
    @property
    def name(self) -> AlgebraOperator:
        return AlgebraOperator.SIZE_EQ

    def evaluate(self, field_value: Any, node: Any, context: ConditionEvaluator) -> bool:
        return len(field_value) == node.size


class HasKeyOperator(MemoryOperator):
    @property
    def name(self) -> AlgebraOperator:
        return AlgebraOperator.HAS_KEY

    def evaluate(self, field_value: Any, node: Any, context: ConditionEvaluator) -> bool:
        return node.key in field_value
