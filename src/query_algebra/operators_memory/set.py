"""Membership operators: in, not_in."""

from __future__ import annotations

from typing import Any

from ..evaluator import ConditionEvaluator, MemoryOperator
from ..operators import AlgebraOperator


class InOperator(MemoryOperator):
    # an absent value matches when None is one of the candidates
    handles_absent = True

    @property
    def name(self) -> AlgebraOperator:
        return AlgebraOperator.IN

    def evaluate(self, field_value: Any, node: Any, context: ConditionEvaluator) -> bool:
        return field_value in node.values


class NotInOperator(MemoryOperator):
    @property
    def name(self) -> AlgebraOperator:
        return AlgebraOperator.NOT_IN

    def evaluate(self, field_value: Any, node: Any, context: ConditionEvaluator) -> bool:
        return field_value not in node.values
