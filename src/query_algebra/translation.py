"""
Backend translator contract.

A translator turns condition and modification trees into a backend's native
filter and update forms.  Each translator declares a static support matrix;
translating a tree that contains an operator outside that matrix yields an
``UnsupportedOperator`` value naming the offending node instead of a partial
translation.  Whether to fall back to in-memory evaluation is the caller's
decision (see ``query_algebra.planning``).
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, ClassVar, Generic, NoReturn, TypeVar

from .conditions import Condition
from .exceptions import UnsupportedOperatorError
from .modifications import Modification
from .operators import (
    LOGICAL_OPERATORS,
    OPERATOR_FAMILIES,
    AlgebraOperator,
    OperatorFamily,
)
from .tree import walk

logger = logging.getLogger(__name__)

FilterT = TypeVar("FilterT")
UpdateT = TypeVar("UpdateT")


@dataclass(frozen=True)
class UnsupportedOperator:
    """Translation result naming the node a backend cannot express."""

    node: Any = field(compare=False)
    operator: AlgebraOperator
    backend: str
    reason: str | None = None

    def to_error(self) -> UnsupportedOperatorError:
        return UnsupportedOperatorError(
            self.operator.value, self.backend, self.reason, node=self.node
        )

    def raise_error(self) -> NoReturn:
        raise self.to_error()


class Untranslatable(Exception):
    """Raised inside compilers for nodes that only turn out unsupported mid-way."""

    def __init__(self, node: Any, reason: str) -> None:
        self.node = node
        self.reason = reason
        super().__init__(reason)


class BackendTranslator(ABC, Generic[FilterT, UpdateT]):
    """
    Base class for backend translators.

    Subclasses declare ``name`` and ``operators`` (the leaf operators they
    can express; logical operators and chains are always supported) and
    implement ``_compile_condition`` / ``_compile_modification``.
    """

    name: ClassVar[str]

    @property
    @abstractmethod
    def operators(self) -> frozenset[AlgebraOperator]:
        """Leaf operators this backend can express."""
        ...

    # -- support matrix --------------------------------------------------------

    @property
    def supported_operators(self) -> frozenset[AlgebraOperator]:
        return self.operators | LOGICAL_OPERATORS

    def supports(self, operator: AlgebraOperator) -> bool:
        return operator in self.supported_operators

    def support_matrix(self) -> dict[AlgebraOperator, bool]:
        """Every operator of the algebra mapped to whether it is supported."""
        return {op: self.supports(op) for op in AlgebraOperator}

    def family_support(self) -> dict[OperatorFamily, bool]:
        """Per family: supported when every member operator is."""
        result: dict[OperatorFamily, bool] = {}
        for op, family in OPERATOR_FAMILIES.items():
            result[family] = result.get(family, True) and self.supports(op)
        return result

    def find_unsupported(self, node: Any) -> UnsupportedOperator | None:
        """First node of the tree (pre-order) outside the support matrix."""
        for current in walk(node):
            if not self.supports(current.operator):
                return UnsupportedOperator(current, current.operator, self.name)
        return None

    # -- translation -----------------------------------------------------------

    def translate_condition(
        self, condition: Condition[Any]
    ) -> FilterT | UnsupportedOperator:
        return self._translate(condition, self._compile_condition)

    def translate_modification(
        self, modification: Modification[Any]
    ) -> UpdateT | UnsupportedOperator:
        return self._translate(modification, self._compile_modification)

    def translate_condition_or_raise(self, condition: Condition[Any]) -> FilterT:
        """
        Raises:
            UnsupportedOperatorError: If the condition cannot be translated.
        """
        result = self.translate_condition(condition)
        if isinstance(result, UnsupportedOperator):
            result.raise_error()
        return result

    def translate_modification_or_raise(self, modification: Modification[Any]) -> UpdateT:
        """
        Raises:
            UnsupportedOperatorError: If the modification cannot be translated.
        """
        result = self.translate_modification(modification)
        if isinstance(result, UnsupportedOperator):
            result.raise_error()
        return result

    def _translate(self, node: Any, compile_: Any) -> Any:
        unsupported = self.find_unsupported(node)
        if unsupported is None:
            try:
                return compile_(node)
            except Untranslatable as exc:
                unsupported = UnsupportedOperator(
                    exc.node, exc.node.operator, self.name, exc.reason
                )
        logger.debug(
            "%s backend cannot translate '%s' (%s)",
            self.name,
            unsupported.operator.value,
            unsupported.reason or "operator not supported",
        )
        return unsupported

    @abstractmethod
    def _compile_condition(self, condition: Condition[Any]) -> FilterT:
        ...

    @abstractmethod
    def _compile_modification(self, modification: Modification[Any]) -> UpdateT:
        ...
