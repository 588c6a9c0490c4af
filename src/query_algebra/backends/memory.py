"""
Reference in-memory backend.

``InMemoryTranslator`` supports every operator: its native filter and
update forms simply wrap the evaluator and applier, which define the
algebra's semantics.  ``InMemoryStore`` is a minimal record store built on
it, used as the oracle for backend conformance checks.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any, ClassVar, Generic, TypeVar

from ..applier import ModificationApplier
from ..conditions import Condition
from ..config import AlgebraSettings
from ..evaluator import ConditionEvaluator
from ..modifications import Modification
from ..operators import AlgebraOperator
from ..translation import BackendTranslator

logger = logging.getLogger(__name__)

R = TypeVar("R")


@dataclass(frozen=True)
class MemoryFilter:
    condition: Condition[Any]
    evaluator: ConditionEvaluator = field(compare=False, repr=False)

    def __call__(self, record: Any) -> bool:
        return self.evaluator.evaluate(self.condition, record)


@dataclass(frozen=True)
class MemoryUpdate:
    modification: Modification[Any]
    applier: ModificationApplier = field(compare=False, repr=False)

    def __call__(self, record: Any) -> Any:
        return self.applier.apply(self.modification, record)


class InMemoryTranslator(BackendTranslator[MemoryFilter, MemoryUpdate]):
    name: ClassVar[str] = "memory"

    def __init__(
        self,
        evaluator: ConditionEvaluator | None = None,
        applier: ModificationApplier | None = None,
        settings: AlgebraSettings | None = None,
    ) -> None:
        self.evaluator = evaluator or ConditionEvaluator(settings=settings)
        self.settings = self.evaluator.settings
        self.applier = applier or ModificationApplier(evaluator=self.evaluator)

    @property
    def operators(self) -> frozenset[AlgebraOperator]:
        return frozenset(AlgebraOperator)

    def _compile_condition(self, condition: Condition[Any]) -> MemoryFilter:
        return MemoryFilter(condition, self.evaluator)

    def _compile_modification(self, modification: Modification[Any]) -> MemoryUpdate:
        return MemoryUpdate(modification, self.applier)


class InMemoryStore(Generic[R]):
    """
    Thread-safe list of records queried and updated through the algebra.

    Updates replace records with new instances; the stored objects are
    never mutated.
    """

    def __init__(
        self,
        records: Iterable[R] = (),
        translator: InMemoryTranslator | None = None,
    ) -> None:
        self._records: list[R] = list(records)
        self._translator = translator or InMemoryTranslator()
        self._lock = threading.Lock()

    def _filter(self, condition: Condition[Any]) -> MemoryFilter:
        return self._translator.translate_condition_or_raise(condition)

    def _update(self, modification: Modification[Any]) -> MemoryUpdate:
        return self._translator.translate_modification_or_raise(modification)

    def insert(self, *records: R) -> None:
        with self._lock:
            self._records.extend(records)

    def all(self) -> list[R]:
        with self._lock:
            return list(self._records)

    def find(self, condition: Condition[Any]) -> list[R]:
        matches = self._filter(condition)
        with self._lock:
            return [r for r in self._records if matches(r)]

    def find_one(self, condition: Condition[Any]) -> R | None:
        found = self.find(condition)
        return found[0] if found else None

    def count(self, condition: Condition[Any]) -> int:
        return len(self.find(condition))

    def update_many(
        self, condition: Condition[Any], modification: Modification[Any]
    ) -> int:
        """Apply *modification* to every match; returns the number of matches."""
        return self._update_where(condition, modification, limit=None)

    def update_one(
        self, condition: Condition[Any], modification: Modification[Any]
    ) -> bool:
        return self._update_where(condition, modification, limit=1) == 1

    def _update_where(
        self,
        condition: Condition[Any],
        modification: Modification[Any],
        limit: int | None,
    ) -> int:
        matches = self._filter(condition)
        update = self._update(modification)
        touched = 0
        with self._lock:
            for index, record in enumerate(self._records):
                if limit is not None and touched >= limit:
                    break
                if matches(record):
                    self._records[index] = update(record)
                    touched += 1
        logger.debug("Updated %d record(s)", touched)
        return touched

    def delete_many(self, condition: Condition[Any]) -> int:
        matches = self._filter(condition)
        with self._lock:
            kept = [r for r in self._records if not matches(r)]
            removed = len(self._records) - len(kept)
            self._records = kept
        return removed
