"""
In-memory condition evaluation.

Provides the MemoryOperator strategy interface, a registry that maps
``AlgebraOperator`` -> strategy, and the ``ConditionEvaluator`` that walks a
condition tree against a record.  Logical nodes are handled by the
evaluator itself; every leaf kind is delegated to its registered strategy.

New leaf operators are added by subclassing MemoryOperator and
registering via ``register()``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, ClassVar

from .conditions import Always, And, FieldCondition, Never, Not, Or
from .config import DEFAULT_SETTINGS, AlgebraSettings

if TYPE_CHECKING:
    from .conditions import Condition
    from .operators import AlgebraOperator


class MemoryOperator(ABC):
    """
    Strategy interface for in-memory evaluation of one leaf operator.

    The evaluator resolves the leaf's path first.  Strategies only see
    absent values (``None``) when ``handles_absent`` is set; otherwise an
    absent value makes the predicate false without consulting them.
    """

    handles_absent: ClassVar[bool] = False

    @property
    @abstractmethod
    def name(self) -> AlgebraOperator:
        """The operator this strategy handles."""
        ...

    @abstractmethod
    def evaluate(
        self,
        field_value: Any,
        node: Any,
        context: ConditionEvaluator,
    ) -> bool:
        """
        Evaluate the operator against a resolved value.

        Args:
            field_value: The value resolved from the record.
            node: The leaf condition carrying the operands.
            context: The running evaluator, for nested conditions and settings.

        Returns:
            True if the condition is satisfied.
        """
        ...


class MemoryOperatorRegistry:
    """
    Registry of MemoryOperator instances keyed by AlgebraOperator.

    Usage::

        registry = MemoryOperatorRegistry()
        registry.register(EqualOperator())
        evaluator = ConditionEvaluator(registry)
    """

    def __init__(self) -> None:
        self._operators: dict[AlgebraOperator, MemoryOperator] = {}

    # -- registration --------------------------------------------------------

    def register(self, operator: MemoryOperator) -> None:
        """Register an operator strategy instance."""
        self._operators[operator.name] = operator

    def register_all(self, *operators: MemoryOperator) -> None:
        """Register multiple operator strategy instances at once."""
        for op in operators:
            self.register(op)

    def unregister(self, name: AlgebraOperator) -> None:
        """Remove an operator from the registry."""
        self._operators.pop(name, None)

    # -- look-up -------------------------------------------------------------

    def get(self, name: AlgebraOperator) -> MemoryOperator | None:
        """Return the registered operator or ``None``."""
        return self._operators.get(name)

    def has(self, name: AlgebraOperator) -> bool:
        return name in self._operators

    @property
    def supported_operators(self) -> set[AlgebraOperator]:
        return set(self._operators.keys())


class ConditionEvaluator:
    """Evaluates condition trees against records.  Never mutates the record."""

    def __init__(
        self,
        registry: MemoryOperatorRegistry | None = None,
        settings: AlgebraSettings | None = None,
    ) -> None:
        if registry is None:
            from .operators_memory import build_default_registry

            registry = build_default_registry()
        self.registry = registry
        self.settings = settings or DEFAULT_SETTINGS

    def evaluate(self, condition: Condition[Any], record: Any) -> bool:
        """
        Decide whether *record* satisfies *condition*.

        Raises:
            ValueError: If a leaf operator has no registered strategy.
        """
        if isinstance(condition, FieldCondition):
            return self._evaluate_leaf(condition, record)
        if isinstance(condition, And):
            return all(self.evaluate(c, record) for c in condition.conditions)
        if isinstance(condition, Or):
            return any(self.evaluate(c, record) for c in condition.conditions)
        if isinstance(condition, Not):
            return not self.evaluate(condition.condition, record)
        if isinstance(condition, Always):
            return True
        if isinstance(condition, Never):
            return False
        raise TypeError(f"Not a condition node: {type(condition).__name__}")

    def _evaluate_leaf(self, condition: FieldCondition[Any], record: Any) -> bool:
        op = self.registry.get(condition.operator)
        if op is None:
            raise ValueError(
                f"Unsupported operator for in-memory evaluation: {condition.operator.value}"
            )
        value = condition.path.resolve(record)
        if value is None and not op.handles_absent:
            return False
        return bool(op.evaluate(value, condition, self))

    def filter(self, condition: Condition[Any], records: Any) -> list[Any]:
        """Records of *records* that satisfy *condition*, in order."""
        return [r for r in records if self.evaluate(condition, r)]


_default: ConditionEvaluator | None = None


def default_evaluator() -> ConditionEvaluator:
    global _default
    if _default is None:
        _default = ConditionEvaluator()
    return _default


def evaluate(condition: Condition[Any], record: Any) -> bool:
    """Evaluate *condition* against *record* with the default evaluator."""
    return default_evaluator().evaluate(condition, record)
