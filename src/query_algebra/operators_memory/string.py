"""String operators: contains, regex."""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Any

from ..evaluator import ConditionEvaluator, MemoryOperator
from ..operators import AlgebraOperator


@lru_cache(maxsize=256)
def _compile(pattern: str, flags: int) -> re.Pattern[str]:
    return re.compile(pattern, flags)


class ContainsOperator(MemoryOperator):
    @property
    def name(self) -> AlgebraOperator:
        return AlgebraOperator.CONTAINS

    def evaluate(self, field_value: Any, node: Any, context: ConditionEvaluator) -> bool:
        if node.ignore_case:
            return node.needle.casefold() in str(field_value).casefold()
        return node.needle in str(field_value)


class RegexOperator(MemoryOperator):
    @property
    def name(self) -> AlgebraOperator:
        return AlgebraOperator.REGEX

    def evaluate(self, field_value: Any, node: Any, context: ConditionEvaluator) -> bool:
        flags = re.IGNORECASE if node.ignore_case else 0
        return _compile(node.pattern, flags).search(str(field_value)) is not None
