"""
In-memory modification application.

Mirrors the evaluator: ``MemoryModifier`` strategies registered per
``AlgebraOperator`` compute the new value of a leaf's position from its
current value, and the ``ModificationApplier`` writes it back through the
leaf's path.  ``Chain`` is handled by the applier itself.

Application is pure: the input record is never mutated, every write goes
through the accessor tables' structural-copy setters.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from .evaluator import ConditionEvaluator
from .modifications import Assign, Chain, FieldModification

if TYPE_CHECKING:
    from .config import AlgebraSettings
    from .modifications import Modification
    from .operators import AlgebraOperator

logger = logging.getLogger(__name__)


class MemoryModifier(ABC):
    """
    Strategy interface for in-memory application of one leaf operator.

    ``modify`` receives the present value at the leaf's path and returns the
    new value.  Returning *current* itself (the same object) means no change.
    """

    @property
    @abstractmethod
    def name(self) -> AlgebraOperator:
        """The operator this strategy handles."""
        ...

    @abstractmethod
    def modify(self, current: Any, node: Any, context: ModificationApplier) -> Any:
        ...


class MemoryModifierRegistry:
    """Registry of MemoryModifier instances keyed by AlgebraOperator."""

    def __init__(self) -> None:
        self._modifiers: dict[AlgebraOperator, MemoryModifier] = {}

    def register(self, modifier: MemoryModifier) -> None:
        self._modifiers[modifier.name] = modifier

    def register_all(self, *modifiers: MemoryModifier) -> None:
        for m in modifiers:
            self.register(m)

    def unregister(self, name: AlgebraOperator) -> None:
        self._modifiers.pop(name, None)

    def get(self, name: AlgebraOperator) -> MemoryModifier | None:
        return self._modifiers.get(name)

    def has(self, name: AlgebraOperator) -> bool:
        return name in self._modifiers

    @property
    def supported_operators(self) -> set[AlgebraOperator]:
        return set(self._modifiers.keys())


class ModificationApplier:
    """Applies modification trees to records, returning new records."""

    def __init__(
        self,
        registry: MemoryModifierRegistry | None = None,
        evaluator: ConditionEvaluator | None = None,
        settings: AlgebraSettings | None = None,
    ) -> None:
        if registry is None:
            from .modifiers_memory import build_default_registry

            registry = build_default_registry()
        self.registry = registry
        if evaluator is None:
            evaluator = ConditionEvaluator(settings=settings)
        self.evaluator = evaluator
        self.settings = settings or evaluator.settings

    def apply(self, modification: Modification[Any], record: Any) -> Any:
        """
        Return *record* transformed by *modification*.

        Raises:
            ValueError: If a leaf operator has no registered strategy.
        """
        if isinstance(modification, Chain):
            for member in modification.modifications:
                record = self.apply(member, record)
            return record
        if isinstance(modification, FieldModification):
            return self._apply_leaf(modification, record)
        raise TypeError(f"Not a modification node: {type(modification).__name__}")

    def _apply_leaf(self, modification: FieldModification[Any], record: Any) -> Any:
        modifier = self.registry.get(modification.operator)
        if modifier is None:
            raise ValueError(
                f"Unsupported operator for in-memory application: {modification.operator.value}"
            )
        path = modification.path
        current = path.resolve(record)
        if current is None and not isinstance(modification, Assign):
            logger.debug(
                "Skipping %s on absent value at '%s'", modification.operator.value, path
            )
            return record
        updated = modifier.modify(current, modification, self)
        if updated is current and current is not None:
            return record
        return path.with_value(record, updated)

    def matches(self, condition: Any, value: Any) -> bool:
        return self.evaluator.evaluate(condition, value)


_default: ModificationApplier | None = None


def default_applier() -> ModificationApplier:
    global _default
    if _default is None:
        _default = ModificationApplier()
    return _default


def apply(modification: Modification[Any], record: Any) -> Any:
    """Apply *modification* to *record* with the default applier."""
    return default_applier().apply(modification, record)
