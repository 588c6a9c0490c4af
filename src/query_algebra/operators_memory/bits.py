"""Bitwise mask operators."""

from __future__ import annotations

from typing import Any

from ..evaluator import ConditionEvaluator, MemoryOperator
from ..operators import AlgebraOperator


class BitsAllSetOperator(MemoryOperator):
    @property
    def name(self) -> AlgebraOperator:
        return AlgebraOperator.BITS_ALL_SET

    def evaluate(self, field_value: Any, node: Any, context: ConditionEvaluator) -> bool:
        return field_value & node.mask == node.mask


class BitsAnySetOperator(MemoryOperator):
    @property
    def name(self) -> AlgebraOperator:
        return AlgebraOperator.BITS_ANY_SET

    def evaluate(self, field_value: Any, node: Any, context: ConditionEvaluator) -> bool:
        return field_value & node.mask != 0


class BitsAllClearOperator(MemoryOperator):
    @property
    def name(self) -> AlgebraOperator:
        return AlgebraOperator.BITS_ALL_CLEAR

    def evaluate(self, field_value: Any, node: Any, context: ConditionEvaluator) -> bool:
        return field_value & node.mask == 0


class BitsAnyClearOperator(MemoryOperator):
    @property
    def name(self) -> AlgebraOperator:
        return AlgebraOperator.BITS_ANY_CLEAR

    def evaluate(self, field_value: Any, node: Any, context: ConditionEvaluator) -> bool:
        return field_value & node.mask != node.mask
