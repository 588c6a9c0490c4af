"""Scalar modifiers: assign, numeric arithmetic, clamping, string append."""

from __future__ import annotations

from typing import Any

from ..applier import MemoryModifier, ModificationApplier
from ..operators import AlgebraOperator


class AssignModifier(MemoryModifier):
    @property
    def name(self) -> AlgebraOperator:
        return AlgebraOperator.ASSIGN

    def modify(self, current: Any, node: Any, context: ModificationApplier) -> Any:
        return node.value


class IncrementModifier(MemoryModifier):
    @property
    def name(self) -> AlgebraOperator:
        return AlgebraOperator.INCREMENT

    def modify(self, current: Any, node: Any, context: ModificationApplier) -> Any:
        return current + node.by


class MultiplyModifier(MemoryModifier):
    @property
    def name(self) -> AlgebraOperator:
        return AlgebraOperator.MULTIPLY

    def modify(self, current: Any, node: Any, context: ModificationApplier) -> Any:
        return current * node.by


class CoerceAtMostModifier(MemoryModifier):
    @property
    def name(self) -> AlgebraOperator:
        return AlgebraOperator.COERCE_AT_MOST

    def modify(self, current: Any, node: Any, context: ModificationApplier) -> Any:
        return node.bound if current > node.bound else current


class CoerceAtLeastModifier(MemoryModifier):
    @property
    def name(self) -> AlgebraOperator:
        return AlgebraOperator.COERCE_AT_LEAST

    def modify(self, current: Any, node: Any, context: ModificationApplier) -> Any:
        return node.bound if current < node.bound else current


class AppendStringModifier(MemoryModifier):
    @property
    def name(self) -> AlgebraOperator:
        return AlgebraOperator.APPEND_STRING

    def modify(self, current: Any, node: Any, context: ModificationApplier) -> Any:
        return current + node.suffix
