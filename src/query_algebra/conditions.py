"""
Condition trees.

A condition is an immutable tree of frozen dataclass nodes.  Leaves address
a record position through a ``FieldPath``; inner nodes combine conditions.
Every node validates its operands on construction, so an ill-typed tree
cannot exist::

    adults = path_of(Person).age.gte(18)
    named = Equals(path_of(Person).name, "Ann")
    query = adults & ~named
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, ClassVar, Generic, TypeVar

from .exceptions import ConstructionError, TypeMismatchError
from .geo import GeoPoint
from .operators import AlgebraOperator
from .tree import (
    CONDITION,
    CONDITIONS,
    LITERAL,
    LITERALS,
    OF_ELEMENT,
    OF_MAP_KEY,
    OF_ROOT,
    OF_VALUE,
    PATH,
    SCALAR,
    node_field,
)
from .typeinfo import (
    base_type,
    element_type,
    is_collection_type,
    is_integer_type,
    is_mapping_type,
    is_orderable_type,
    is_string_type,
    mapping_types,
    same_type,
    type_tag,
)
from .validation import check_literal, check_literals, require

if TYPE_CHECKING:
    from .paths import FieldPath

R = TypeVar("R")


class Condition(Generic[R]):
    """Base of every condition node."""

    operator: ClassVar[AlgebraOperator]

    @property
    def root_type(self) -> Any:
        """Record type the condition applies to (``None`` for constants)."""
        return None

    # -- combinators -----------------------------------------------------------

    def __and__(self, other: Condition[R]) -> Condition[R]:
        return And(_operands(self, And) + _operands(other, And))

    def __or__(self, other: Condition[R]) -> Condition[R]:
        return Or(_operands(self, Or) + _operands(other, Or))

    def __invert__(self) -> Condition[R]:
        return Not(self)

    # -- conveniences ----------------------------------------------------------

    def is_satisfied_by(self, record: R) -> bool:
        """Evaluate against *record* with the default in-memory evaluator."""
        from .evaluator import evaluate

        return evaluate(self, record)

    def to_dict(self) -> dict[str, Any]:
        from .codec import encode_condition

        return encode_condition(self)

    def to_json(self) -> str:
        from .codec import dumps

        return dumps(self)

    def simplify(self) -> Condition[R]:
        from .simplify import simplify_condition

        return simplify_condition(self)


def _operands(condition: Condition[Any], kind: type) -> tuple[Condition[Any], ...]:
    if isinstance(condition, kind):
        return tuple(condition.conditions)  # type: ignore[attr-defined]
    return (condition,)


def check_condition(value: Any, what: str) -> None:
    if not isinstance(value, Condition):
        raise ConstructionError(f"{what} must be a Condition, got {type(value).__name__}")


def common_root(nodes: Iterable[Any], what: str) -> Any:
    root: Any = None
    for node in nodes:
        candidate = node.root_type
        if candidate is None:
            continue
        if root is None:
            root = candidate
        elif not same_type(root, candidate):
            raise TypeMismatchError(
                what=what, expected=type_tag(root), actual=type_tag(candidate)
            )
    return root


def check_leaf_path(path: FieldPath[Any, Any], operator: AlgebraOperator) -> None:
    if path.has_elements:
        raise ConstructionError(
            f"'{operator.value}' cannot address collection elements directly "
            f"('{path}'); wrap it in an element-wise node"
        )


def check_inner_root(inner: Any, expected: Any, what: str) -> None:
    """Sub-trees of element-wise nodes must be rooted at the element type."""
    actual = inner.root_type
    if actual is not None and not same_type(actual, expected):
        raise TypeMismatchError(
            what=what, expected=type_tag(expected), actual=type_tag(actual)
        )


# -- constants and logic -------------------------------------------------------


@dataclass(frozen=True)
class Always(Condition[Any]):
    operator: ClassVar[AlgebraOperator] = AlgebraOperator.ALWAYS


@dataclass(frozen=True)
class Never(Condition[Any]):
    operator: ClassVar[AlgebraOperator] = AlgebraOperator.NEVER


@dataclass(frozen=True)
class And(Condition[R]):
    """True when every operand is true; ``And(())`` is ``True``."""

    operator: ClassVar[AlgebraOperator] = AlgebraOperator.AND
    conditions: tuple[Condition[R], ...] = node_field(CONDITIONS, of=OF_ROOT)

    def __post_init__(self) -> None:
        object.__setattr__(self, "conditions", tuple(self.conditions))
        for i, c in enumerate(self.conditions):
            check_condition(c, f"and.conditions[{i}]")
        common_root(self.conditions, "and operands")

    @property
    def root_type(self) -> Any:
        return common_root(self.conditions, "and operands")


@dataclass(frozen=True)
class Or(Condition[R]):
    """True when any operand is true; ``Or(())`` is ``False``."""

    operator: ClassVar[AlgebraOperator] = AlgebraOperator.OR
    conditions: tuple[Condition[R], ...] = node_field(CONDITIONS, of=OF_ROOT)

    def __post_init__(self) -> None:
        object.__setattr__(self, "conditions", tuple(self.conditions))
        for i, c in enumerate(self.conditions):
            check_condition(c, f"or.conditions[{i}]")
        common_root(self.conditions, "or operands")

    @property
    def root_type(self) -> Any:
        return common_root(self.conditions, "or operands")


@dataclass(frozen=True)
class Not(Condition[R]):
    operator: ClassVar[AlgebraOperator] = AlgebraOperator.NOT
    condition: Condition[R] = node_field(CONDITION, of=OF_ROOT)

    def __post_init__(self) -> None:
        check_condition(self.condition, "not.condition")

    @property
    def root_type(self) -> Any:
        return self.condition.root_type


# -- leaves --------------------------------------------------------------------


@dataclass(frozen=True)
class FieldCondition(Condition[R]):
    """A leaf predicate on the value at ``path``."""

    path: FieldPath[R, Any] = node_field(PATH)

    def __post_init__(self) -> None:
        check_leaf_path(self.path, self.operator)

    @property
    def root_type(self) -> Any:
        return self.path.root_type

    def _what(self, operand: str) -> str:
        return f"{operand} of {self.operator.value} on '{self.path}'"


@dataclass(frozen=True)
class Equals(FieldCondition[R]):
    """
    Value equality.

    ``Equals(path, None)`` holds exactly when the path yields no value.
    """

    operator: ClassVar[AlgebraOperator] = AlgebraOperator.EQ
    value: Any = node_field(LITERAL, of=OF_VALUE)

    def __post_init__(self) -> None:
        super().__post_init__()
        check_literal(self.path.value_type, self.value, what=self._what("value"))


@dataclass(frozen=True)
class NotEquals(FieldCondition[R]):
    operator: ClassVar[AlgebraOperator] = AlgebraOperator.NE
    value: Any = node_field(LITERAL, of=OF_VALUE)

    def __post_init__(self) -> None:
        super().__post_init__()
        check_literal(self.path.value_type, self.value, what=self._what("value"))


@dataclass(frozen=True)
class _Comparison(FieldCondition[R]):
    value: Any = node_field(LITERAL, of=OF_VALUE)

    def __post_init__(self) -> None:
        super().__post_init__()
        target = base_type(self.path.value_type)
        require(
            is_orderable_type(target),
            what=self._what("path"),
            expected="an orderable type",
            actual=target,
        )
        check_literal(target, self.value, what=self._what("bound"))


@dataclass(frozen=True)
class GreaterThan(_Comparison[R]):
    operator: ClassVar[AlgebraOperator] = AlgebraOperator.GT


@dataclass(frozen=True)
class GreaterOrEqual(_Comparison[R]):
    operator: ClassVar[AlgebraOperator] = AlgebraOperator.GE


@dataclass(frozen=True)
class LessThan(_Comparison[R]):
    operator: ClassVar[AlgebraOperator] = AlgebraOperator.LT


@dataclass(frozen=True)
class LessOrEqual(_Comparison[R]):
    operator: ClassVar[AlgebraOperator] = AlgebraOperator.LE


@dataclass(frozen=True)
class Inside(FieldCondition[R]):
    operator: ClassVar[AlgebraOperator] = AlgebraOperator.IN
    values: tuple[Any, ...] = node_field(LITERALS, of=OF_VALUE)

    def __post_init__(self) -> None:
        super().__post_init__()
        object.__setattr__(
            self,
            "values",
            check_literals(self.path.value_type, self.values, what=self._what("values")),
        )


@dataclass(frozen=True)
class NotInside(FieldCondition[R]):
    operator: ClassVar[AlgebraOperator] = AlgebraOperator.NOT_IN
    values: tuple[Any, ...] = node_field(LITERALS, of=OF_VALUE)

    def __post_init__(self) -> None:
        super().__post_init__()
        object.__setattr__(
            self,
            "values",
            check_literals(self.path.value_type, self.values, what=self._what("values")),
        )


def _require_string_path(node: FieldCondition[Any]) -> None:
    target = base_type(node.path.value_type)
    require(
        is_string_type(target),
        what=node._what("path"),
        expected="str",
        actual=target,
    )


@dataclass(frozen=True)
class StringContains(FieldCondition[R]):
    """Substring test; case-insensitive unless ``ignore_case=False``."""

    operator: ClassVar[AlgebraOperator] = AlgebraOperator.CONTAINS
    needle: str = node_field(SCALAR)
    ignore_case: bool = node_field(SCALAR, default=True)

    def __post_init__(self) -> None:
        super().__post_init__()
        _require_string_path(self)
        check_literal(str, self.needle, what=self._what("needle"))
        check_literal(bool, self.ignore_case, what=self._what("ignore_case"))


@dataclass(frozen=True)
class RegexMatches(FieldCondition[R]):
    """Regular expression search (the pattern may match anywhere)."""

    operator: ClassVar[AlgebraOperator] = AlgebraOperator.REGEX
    pattern: str = node_field(SCALAR)
    ignore_case: bool = node_field(SCALAR, default=False)

    def __post_init__(self) -> None:
        super().__post_init__()
        _require_string_path(self)
        check_literal(str, self.pattern, what=self._what("pattern"))
        check_literal(bool, self.ignore_case, what=self._what("ignore_case"))
        try:
            re.compile(self.pattern)
        except re.error as exc:
            raise ConstructionError(
                f"Invalid regular expression {self.pattern!r}: {exc}"
            ) from exc


@dataclass(frozen=True)
class FullTextSearch(FieldCondition[R]):
    """
    Fuzzy token match of ``query`` against the text at ``path``.

    A query term matches a text token within ``max_edit_distance`` edits.
    Non-string values are searched through their string fields.
    """

    operator: ClassVar[AlgebraOperator] = AlgebraOperator.FTS
    query: str = node_field(SCALAR)
    max_edit_distance: int = node_field(SCALAR, default=2)
    require_all_terms: bool = node_field(SCALAR, default=True)

    def __post_init__(self) -> None:
        super().__post_init__()
        check_literal(str, self.query, what=self._what("query"))
        check_literal(int, self.max_edit_distance, what=self._what("max_edit_distance"))
        check_literal(bool, self.require_all_terms, what=self._what("require_all_terms"))
        if self.max_edit_distance < 0:
            raise ConstructionError("max_edit_distance must not be negative")


@dataclass(frozen=True)
class GeoDistanceBetween(FieldCondition[R]):
    """Great-circle distance from ``point`` within ``[min_km, max_km]``."""

    operator: ClassVar[AlgebraOperator] = AlgebraOperator.GEO_DISTANCE
    point: GeoPoint = node_field(LITERAL, of=OF_VALUE)
    min_km: float | None = node_field(SCALAR, default=None)
    max_km: float | None = node_field(SCALAR, default=None)

    def __post_init__(self) -> None:
        super().__post_init__()
        target = base_type(self.path.value_type)
        require(
            isinstance(target, type) and issubclass(target, GeoPoint),
            what=self._what("path"),
            expected="GeoPoint",
            actual=target,
        )
        check_literal(GeoPoint, self.point, what=self._what("point"))
        for name in ("min_km", "max_km"):
            bound = getattr(self, name)
            if bound is None:
                continue
            check_literal(float, bound, what=self._what(name))
            if bound < 0:
                raise ConstructionError(f"{name} must not be negative")
        if (
            self.min_km is not None
            and self.max_km is not None
            and self.min_km > self.max_km
        ):
            raise ConstructionError("min_km must not exceed max_km")


@dataclass(frozen=True)
class _BitsCondition(FieldCondition[R]):
    mask: int = node_field(SCALAR)

    def __post_init__(self) -> None:
        super().__post_init__()
        target = base_type(self.path.value_type)
        require(
            is_integer_type(target),
            what=self._what("path"),
            expected="int",
            actual=target,
        )
        check_literal(int, self.mask, what=self._what("mask"))


@dataclass(frozen=True)
class BitsAllSet(_BitsCondition[R]):
    operator: ClassVar[AlgebraOperator] = AlgebraOperator.BITS_ALL_SET


@dataclass(frozen=True)
class BitsAnySet(_BitsCondition[R]):
    operator: ClassVar[AlgebraOperator] = AlgebraOperator.BITS_ANY_SET


@dataclass(frozen=True)
class BitsAllClear(_BitsCondition[R]):
    operator: ClassVar[AlgebraOperator] = AlgebraOperator.BITS_ALL_CLEAR


@dataclass(frozen=True)
class BitsAnyClear(_BitsCondition[R]):
    operator: ClassVar[AlgebraOperator] = AlgebraOperator.BITS_ANY_CLEAR


def collection_element_type(node: FieldCondition[Any]) -> Any:
    target = base_type(node.path.value_type)
    require(
        is_collection_type(target),
        what=node._what("path"),
        expected="a collection",
        actual=target,
    )
    return element_type(target)


@dataclass(frozen=True)
class CollectionAll(FieldCondition[R]):
    """Every element satisfies ``condition``; vacuously true when empty."""

    operator: ClassVar[AlgebraOperator] = AlgebraOperator.ALL_ELEMENTS
    condition: Condition[Any] = node_field(CONDITION, of=OF_ELEMENT)

    def __post_init__(self) -> None:
        super().__post_init__()
        check_condition(self.condition, self._what("condition"))
        check_inner_root(
            self.condition, collection_element_type(self), self._what("condition")
        )


@dataclass(frozen=True)
class CollectionAny(FieldCondition[R]):
    """Some element satisfies ``condition``; false when empty."""

    operator: ClassVar[AlgebraOperator] = AlgebraOperator.ANY_ELEMENT
    condition: Condition[Any] = node_field(CONDITION, of=OF_ELEMENT)

    def __post_init__(self) -> None:
        super().__post_init__()
        check_condition(self.condition, self._what("condition"))
        check_inner_root(
            self.condition, collection_element_type(self), self._what("condition")
        )


@dataclass(frozen=True)
class SizeEquals(FieldCondition[R]):
    operator: ClassVar[AlgebraOperator] = AlgebraOperator.SIZE_EQ
    size: int = node_field(SCALAR)

    def __post_init__(self) -> None:
        super().__post_init__()
        target = base_type(self.path.value_type)
        require(
            is_collection_type(target) or is_mapping_type(target),
            what=self._what("path"),
            expected="a collection or mapping",
            actual=target,
        )
        check_literal(int, self.size, what=self._what("size"))
        if self.size < 0:
            raise ConstructionError("size must not be negative")


@dataclass(frozen=True)
class HasKey(FieldCondition[R]):
    operator: ClassVar[AlgebraOperator] = AlgebraOperator.HAS_KEY
    key: Any = node_field(LITERAL, of=OF_MAP_KEY)

    def __post_init__(self) -> None:
        super().__post_init__()
        target = base_type(self.path.value_type)
        require(
            is_mapping_type(target),
            what=self._what("path"),
            expected="a mapping",
            actual=target,
        )
        key_type, _ = mapping_types(target)
        check_literal(key_type, self.key, what=self._what("key"))


CONDITION_TYPES: dict[AlgebraOperator, type[Condition[Any]]] = {
    cls.operator: cls
    for cls in (
        Always,
        Never,
        And,
        Or,
        Not,
        Equals,
        NotEquals,
        GreaterThan,
        GreaterOrEqual,
        LessThan,
        LessOrEqual,
        Inside,
        NotInside,
        StringContains,
        RegexMatches,
        FullTextSearch,
        GeoDistanceBetween,
        BitsAllSet,
        BitsAnySet,
        BitsAllClear,
        BitsAnyClear,
        CollectionAll,
        CollectionAny,
        SizeEquals,
        HasKey,
    )
}


# -- helpers -------------------------------------------------------------------


def all_of(*conditions: Condition[R] | None) -> Condition[R]:
    """``And`` of the non-``None`` operands; ``Always`` when none remain."""
    present = [c for c in conditions if c is not None]
    if not present:
        return Always()
    if len(present) == 1:
        return present[0]
    return And(tuple(present))


def any_of(*conditions: Condition[R] | None) -> Condition[R]:
    """``Or`` of the non-``None`` operands; ``Never`` when none remain."""
    present = [c for c in conditions if c is not None]
    if not present:
        return Never()
    if len(present) == 1:
        return present[0]
    return Or(tuple(present))


def if_then(premise: Condition[R], then: Condition[R]) -> Condition[R]:
    """Implication: ``then`` must hold wherever ``premise`` does."""
    return Or((Not(premise), then))


def if_then_else(
    premise: Condition[R], then: Condition[R], otherwise: Condition[R]
) -> Condition[R]:
    return Or((And((premise, then)), And((Not(premise), otherwise))))
