"""Standard comparison operators: eq, ne, gt, ge, lt, le."""

from __future__ import annotations

from typing import Any

from ..evaluator import ConditionEvaluator, MemoryOperator
from ..operators import AlgebraOperator


class EqualOperator(MemoryOperator):
    """``Equals(path, None)`` matches exactly the absent values."""

    handles_absent = True

    @property
    def name(self) -> AlgebraOperator:
        return AlgebraOperator.EQ

    def evaluate(self, field_value: Any, node: Any, context: ConditionEvaluator) -> bool:
        if field_value is None:
            return node.value is None
        return bool(field_value == node.value)


class NotEqualOperator(MemoryOperator):
    @property
    def name(self) -> AlgebraOperator:
        return AlgebraOperator.NE

    def evaluate(self, field_value: Any, node: Any, context: ConditionEvaluator) -> bool:
        return bool(field_value != node.value)


class GreaterThanOperator(MemoryOperator):
    @property
    def name(self) -> AlgebraOperator:
        return AlgebraOperator.GT

    def evaluate(self, field_value: Any, node: Any, context: ConditionEvaluator) -> bool:
        return bool(field_value > node.value)


class LessThanOperator(MemoryOperator):
    @property
    def name(self) -> AlgebraOperator:
        return AlgebraOperator.LT

    def evaluate(self, field_value: Any, node: Any, context: ConditionEvaluator) -> bool:
        return bool(field_value < node.value)


class GreaterEqualOperator(MemoryOperator):
    @property
    def name(self) -> AlgebraOperator:
        return AlgebraOperator.GE

    def evaluate(self, field_value: Any, node: Any, context: ConditionEvaluator) -> bool:
        return bool(field_value >= node.value)


class LessEqualOperator(MemoryOperator):
    @property
    def name(self) -> AlgebraOperator:
        return AlgebraOperator.LE

    def evaluate(self, field_value: Any, node: Any, context: ConditionEvaluator) -> bool:
        return bool(field_value <= node.value)
