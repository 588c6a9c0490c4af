"""
Modification trees.

A modification is an immutable description of a pure record transformation.
Leaves rewrite the value at a ``FieldPath``; ``Chain`` applies its members
left to right, each seeing the result of the previous one.  Operands are
validated on construction exactly like condition operands.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, ClassVar, Generic, TypeVar

from .conditions import (
    Condition,
    check_condition,
    common_root,
    check_inner_root,
    check_leaf_path,
)
from .exceptions import ConstructionError
from .operators import AlgebraOperator
from .tree import (
    CONDITION,
    LITERAL,
    LITERALS,
    MODIFICATION,
    MODIFICATIONS,
    OF_ELEMENT,
    OF_MAP_KEY,
    OF_MAP_VALUE,
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
    is_mapping_type,
    is_numeric_type,
    is_orderable_type,
    is_sequence_type,
    is_string_type,
    mapping_types,
)
from .validation import check_literal, check_literals, require

if TYPE_CHECKING:
    from .paths import FieldPath

R = TypeVar("R")


class Modification(Generic[R]):
    """Base of every modification node."""

    operator: ClassVar[AlgebraOperator]

    @property
    def root_type(self) -> Any:
        return None

    def then(self, other: Modification[R]) -> Modification[R]:
        """Sequential composition: ``self`` first, then ``other``."""
        left = self.modifications if isinstance(self, Chain) else (self,)
        right = other.modifications if isinstance(other, Chain) else (other,)
        return Chain(left + right)

    def apply(self, record: R) -> R:
        """Apply to *record* with the default in-memory applier."""
        from .applier import apply

        return apply(self, record)

    def to_dict(self) -> dict[str, Any]:
        from .codec import encode_modification

        return encode_modification(self)

    def to_json(self) -> str:
        from .codec import dumps

        return dumps(self)

    def simplify(self) -> Modification[R]:
        from .simplify import simplify_modification

        return simplify_modification(self)


def _check_modification(value: Any, what: str) -> None:
    if not isinstance(value, Modification):
        raise ConstructionError(
            f"{what} must be a Modification, got {type(value).__name__}"
        )


@dataclass(frozen=True)
class Chain(Modification[R]):
    """Left-to-right composition; ``Chain(())`` is the identity."""

    operator: ClassVar[AlgebraOperator] = AlgebraOperator.CHAIN
    modifications: tuple[Modification[R], ...] = node_field(MODIFICATIONS, of=OF_ROOT)

    def __post_init__(self) -> None:
        object.__setattr__(self, "modifications", tuple(self.modifications))
        for i, m in enumerate(self.modifications):
            _check_modification(m, f"chain.modifications[{i}]")
        common_root(self.modifications, "chain members")

    @property
    def root_type(self) -> Any:
        return common_root(self.modifications, "chain members")


@dataclass(frozen=True)
class FieldModification(Modification[R]):
    """A leaf rewriting the value at ``path``."""

    path: FieldPath[R, Any] = node_field(PATH)

    def __post_init__(self) -> None:
        check_leaf_path(self.path, self.operator)

    @property
    def root_type(self) -> Any:
        return self.path.root_type

    def _what(self, operand: str) -> str:
        return f"{operand} of {self.operator.value} on '{self.path}'"

    def _target(self) -> Any:
        return base_type(self.path.value_type)


@dataclass(frozen=True)
class Assign(FieldModification[R]):
    operator: ClassVar[AlgebraOperator] = AlgebraOperator.ASSIGN
    value: Any = node_field(LITERAL, of=OF_VALUE)

    def __post_init__(self) -> None:
        super().__post_init__()
        check_literal(self.path.value_type, self.value, what=self._what("value"))


@dataclass(frozen=True)
class _NumericModification(FieldModification[R]):
    by: Any = node_field(LITERAL, of=OF_VALUE)

    def __post_init__(self) -> None:
        super().__post_init__()
        target = self._target()
        require(
            is_numeric_type(target),
            what=self._what("path"),
            expected="a numeric type",
            actual=target,
        )
        check_literal(target, self.by, what=self._what("operand"))


@dataclass(frozen=True)
class Increment(_NumericModification[R]):
    operator: ClassVar[AlgebraOperator] = AlgebraOperator.INCREMENT


@dataclass(frozen=True)
class Multiply(_NumericModification[R]):
    operator: ClassVar[AlgebraOperator] = AlgebraOperator.MULTIPLY


@dataclass(frozen=True)
class _BoundModification(FieldModification[R]):
    bound: Any = node_field(LITERAL, of=OF_VALUE)

    def __post_init__(self) -> None:
        super().__post_init__()
        target = self._target()
        require(
            is_orderable_type(target),
            what=self._what("path"),
            expected="an orderable type",
            actual=target,
        )
        check_literal(target, self.bound, what=self._what("bound"))


@dataclass(frozen=True)
class CoerceAtMost(_BoundModification[R]):
    """Clamp from above: ``min(value, bound)``."""

    operator: ClassVar[AlgebraOperator] = AlgebraOperator.COERCE_AT_MOST


@dataclass(frozen=True)
class CoerceAtLeast(_BoundModification[R]):
    """Clamp from below: ``max(value, bound)``."""

    operator: ClassVar[AlgebraOperator] = AlgebraOperator.COERCE_AT_LEAST


@dataclass(frozen=True)
class AppendString(FieldModification[R]):
    operator: ClassVar[AlgebraOperator] = AlgebraOperator.APPEND_STRING
    suffix: str = node_field(SCALAR)

    def __post_init__(self) -> None:
        super().__post_init__()
        target = self._target()
        require(
            is_string_type(target),
            what=self._what("path"),
            expected="str",
            actual=target,
        )
        check_literal(str, self.suffix, what=self._what("suffix"))


def _collection_element(node: FieldModification[Any]) -> Any:
    target = node._target()
    require(
        is_collection_type(target),
        what=node._what("path"),
        expected="a collection",
        actual=target,
    )
    return element_type(target)


@dataclass(frozen=True)
class AppendToCollection(FieldModification[R]):
    """Append to a sequence; union into a set."""

    operator: ClassVar[AlgebraOperator] = AlgebraOperator.APPEND
    items: tuple[Any, ...] = node_field(LITERALS, of=OF_ELEMENT)

    def __post_init__(self) -> None:
        super().__post_init__()
        element = _collection_element(self)
        object.__setattr__(
            self, "items", check_literals(element, self.items, what=self._what("items"))
        )


@dataclass(frozen=True)
class RemoveFromCollection(FieldModification[R]):
    """Remove every element satisfying ``condition``."""

    operator: ClassVar[AlgebraOperator] = AlgebraOperator.REMOVE_WHERE
    condition: Condition[Any] = node_field(CONDITION, of=OF_ELEMENT)

    def __post_init__(self) -> None:
        super().__post_init__()
        check_condition(self.condition, self._what("condition"))
        check_inner_root(
            self.condition, _collection_element(self), self._what("condition")
        )


@dataclass(frozen=True)
class RemoveItems(FieldModification[R]):
    """Remove every element equal to one of ``items``."""

    operator: ClassVar[AlgebraOperator] = AlgebraOperator.REMOVE_ITEMS
    items: tuple[Any, ...] = node_field(LITERALS, of=OF_ELEMENT)

    def __post_init__(self) -> None:
        super().__post_init__()
        element = _collection_element(self)
        object.__setattr__(
            self, "items", check_literals(element, self.items, what=self._what("items"))
        )


@dataclass(frozen=True)
class _DropModification(FieldModification[R]):
    def __post_init__(self) -> None:
        super().__post_init__()
        target = self._target()
        require(
            is_sequence_type(target),
            what=self._what("path"),
            expected="an ordered collection",
            actual=target,
        )


@dataclass(frozen=True)
class DropFirst(_DropModification[R]):
    operator: ClassVar[AlgebraOperator] = AlgebraOperator.DROP_FIRST


@dataclass(frozen=True)
class DropLast(_DropModification[R]):
    operator: ClassVar[AlgebraOperator] = AlgebraOperator.DROP_LAST


@dataclass(frozen=True)
class ForEachElement(FieldModification[R]):
    operator: ClassVar[AlgebraOperator] = AlgebraOperator.FOR_EACH
    modification: Modification[Any] = node_field(MODIFICATION, of=OF_ELEMENT)

    def __post_init__(self) -> None:
        super().__post_init__()
        _check_modification(self.modification, self._what("modification"))
        check_inner_root(
            self.modification, _collection_element(self), self._what("modification")
        )


@dataclass(frozen=True)
class ForEachElementIf(FieldModification[R]):
    """Apply ``modification`` to the elements satisfying ``condition``."""

    operator: ClassVar[AlgebraOperator] = AlgebraOperator.FOR_EACH_IF
    condition: Condition[Any] = node_field(CONDITION, of=OF_ELEMENT)
    modification: Modification[Any] = node_field(MODIFICATION, of=OF_ELEMENT)

    def __post_init__(self) -> None:
        super().__post_init__()
        element = _collection_element(self)
        check_condition(self.condition, self._what("condition"))
        _check_modification(self.modification, self._what("modification"))
        check_inner_root(self.condition, element, self._what("condition"))
        check_inner_root(self.modification, element, self._what("modification"))


def _mapping_types(node: FieldModification[Any]) -> tuple[Any, Any]:
    target = node._target()
    require(
        is_mapping_type(target),
        what=node._what("path"),
        expected="a mapping",
        actual=target,
    )
    return mapping_types(target)


@dataclass(frozen=True)
class MapMerge(FieldModification[R]):
    """Insert or overwrite ``entries``."""

    operator: ClassVar[AlgebraOperator] = AlgebraOperator.MAP_MERGE
    entries: Mapping[Any, Any] = node_field(LITERAL, of=OF_VALUE)

    def __post_init__(self) -> None:
        super().__post_init__()
        _mapping_types(self)
        entries = dict(self.entries)
        check_literal(self._target(), entries, what=self._what("entries"))
        object.__setattr__(self, "entries", MappingProxyType(entries))


@dataclass(frozen=True)
class MapRemoveKeys(FieldModification[R]):
    operator: ClassVar[AlgebraOperator] = AlgebraOperator.MAP_REMOVE_KEYS
    keys: tuple[Any, ...] = node_field(LITERALS, of=OF_MAP_KEY)

    def __post_init__(self) -> None:
        super().__post_init__()
        key_type, _ = _mapping_types(self)
        object.__setattr__(
            self, "keys", check_literals(key_type, self.keys, what=self._what("keys"))
        )


@dataclass(frozen=True)
class MapModifyByKey(FieldModification[R]):
    """Rewrite the value under ``key``; a missing key is left missing."""

    operator: ClassVar[AlgebraOperator] = AlgebraOperator.MAP_MODIFY_KEY
    key: Any = node_field(LITERAL, of=OF_MAP_KEY)
    modification: Modification[Any] = node_field(MODIFICATION, of=OF_MAP_VALUE)

    def __post_init__(self) -> None:
        super().__post_init__()
        key_type, value_type = _mapping_types(self)
        check_literal(key_type, self.key, what=self._what("key"))
        _check_modification(self.modification, self._what("modification"))
        check_inner_root(self.modification, value_type, self._what("modification"))


MODIFICATION_TYPES: dict[AlgebraOperator, type[Modification[Any]]] = {
    cls.operator: cls
    for cls in (
        Chain,
        Assign,
        Increment,
        Multiply,
        CoerceAtMost,
        CoerceAtLeast,
        AppendString,
        AppendToCollection,
        RemoveFromCollection,
        RemoveItems,
        DropFirst,
        DropLast,
        ForEachElement,
        ForEachElementIf,
        MapMerge,
        MapRemoveKeys,
        MapModifyByKey,
    )
}


def chain(*modifications: Modification[R] | None) -> Modification[R]:
    """Compose the non-``None`` modifications; a single one is returned as is."""
    present = [m for m in modifications if m is not None]
    if len(present) == 1:
        return present[0]
    return Chain(tuple(present))


def nothing() -> Modification[Any]:
    """The identity modification."""
    return Chain(())
