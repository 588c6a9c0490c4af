"""
Query planning over a backend translator.

A backend rarely supports the whole algebra.  ``plan_condition`` pushes down
as much of a condition as the backend can express and leaves the rest as a
residual condition to evaluate in memory on the records the backend returns::

    plan = plan_condition(MongoTranslator(), condition)
    docs = collection.find(plan.native)
    people = [p for p in map(Person.model_validate, docs) if plan.matches(p)]

Only a top-level conjunction is split.  Anything else is either pushed down
whole or, when untranslatable, evaluated whole in memory.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from .conditions import Always, And, Condition, all_of
from .evaluator import ConditionEvaluator, default_evaluator
from .translation import UnsupportedOperator

if TYPE_CHECKING:
    from .translation import BackendTranslator

logger = logging.getLogger(__name__)

FilterT = TypeVar("FilterT")


@dataclass(frozen=True)
class QueryPlan(Generic[FilterT]):
    """Native filter for the backend plus the part it could not take."""

    native: FilterT
    pushed: Condition[Any]
    residual: Condition[Any]
    unsupported: tuple[UnsupportedOperator, ...] = ()
    evaluator: ConditionEvaluator = field(
        default_factory=default_evaluator, compare=False, repr=False
    )

    @property
    def needs_fallback(self) -> bool:
        return not isinstance(self.residual, Always)

    def matches(self, record: Any) -> bool:
        """Residual check for a record the backend returned."""
        if not self.needs_fallback:
            return True
        return self.evaluator.evaluate(self.residual, record)


def plan_condition(
    translator: BackendTranslator[FilterT, Any],
    condition: Condition[Any],
    *,
    evaluator: ConditionEvaluator | None = None,
) -> QueryPlan[FilterT]:
    """
    Split *condition* into a pushed-down native filter and an in-memory residual.

    The native filter never rejects a record the full condition accepts.
    """
    evaluator = evaluator or default_evaluator()
    parts = condition.conditions if isinstance(condition, And) else (condition,)

    pushed: list[Condition[Any]] = []
    residual: list[Condition[Any]] = []
    unsupported: list[UnsupportedOperator] = []
    for part in parts:
        result = translator.translate_condition(part)
        if isinstance(result, UnsupportedOperator):
            residual.append(part)
            unsupported.append(result)
        else:
            pushed.append(part)

    pushed_condition = all_of(*pushed)
    native = translator.translate_condition(pushed_condition)
    if isinstance(native, UnsupportedOperator):
        # members translate alone but not together; push nothing down
        native = translator.translate_condition_or_raise(Always())
        pushed_condition, residual = Always(), list(parts)

    if residual:
        logger.info(
            "%s backend takes %d of %d condition part(s); %d evaluated in memory",
            translator.name,
            len(pushed),
            len(parts),
            len(residual),
        )
    return QueryPlan(
        native=native,
        pushed=pushed_condition,
        residual=all_of(*residual),
        unsupported=tuple(unsupported),
        evaluator=evaluator,
    )
