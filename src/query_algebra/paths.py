"""
Field Paths: typed, comparable, serializable addresses of record positions.

A path starts at a record type and is extended one step at a time::

    P = path_of(Person)
    P.address.not_null.city      # Property, NotNull, Property
    P.tags.elements              # every element of a collection
    P.attributes["colour"]       # value stored under a map key

Each step is validated against the annotation of the position it extends,
so an inconsistent path cannot be built.  Paths compare and hash by their
root type and step sequence, never by accessor identity.

Paths also carry the fluent builders for conditions and modifications.
When a path crosses ``.elements`` the built node is lifted into the
element-wise form: ``P.tags.elements.eq("vip")`` becomes
``CollectionAny(P.tags, Equals(<str>, "vip"))``.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from .conditions import (
    BitsAllClear,
    BitsAllSet,
    BitsAnyClear,
    BitsAnySet,
    CollectionAll,
    CollectionAny,
    Condition,
    Equals,
    FullTextSearch,
    GeoDistanceBetween,
    GreaterOrEqual,
    GreaterThan,
    HasKey,
    Inside,
    LessOrEqual,
    LessThan,
    NotEquals,
    NotInside,
    RegexMatches,
    SizeEquals,
    StringContains,
)
from .config import DEFAULT_SETTINGS
from .exceptions import ConstructionError, NotAssignableError, TypeMismatchError
from .geo import GeoPoint
from .modifications import (
    AppendString,
    AppendToCollection,
    Assign,
    Chain,
    CoerceAtLeast,
    CoerceAtMost,
    DropFirst,
    DropLast,
    ForEachElement,
    ForEachElementIf,
    Increment,
    MapMerge,
    MapModifyByKey,
    MapRemoveKeys,
    Modification,
    Multiply,
    RemoveFromCollection,
    RemoveItems,
)
from .schema import FieldAccessor, is_record_type, schema_for
from .typeinfo import (
    element_type,
    is_collection_type,
    is_mapping_type,
    is_optional,
    mapping_types,
    same_type,
    type_tag,
    unwrap_optional,
)
from .validation import check_literal

R = TypeVar("R")
V = TypeVar("V")

_UNCHANGED = object()


# -- steps ---------------------------------------------------------------------


class Step:
    """One navigation step of a Field Path."""

    def render(self) -> str:
        raise NotImplementedError


@dataclass(frozen=True)
class PropertyStep(Step):
    name: str
    accessor: FieldAccessor = field(compare=False, repr=False)

    def render(self) -> str:
        return f".{self.name}"


@dataclass(frozen=True)
class NotNullStep(Step):
    def render(self) -> str:
        return "?"


@dataclass(frozen=True)
class ElementsStep(Step):
    def render(self) -> str:
        return ".*"


@dataclass(frozen=True)
class KeyStep(Step):
    key: Any

    def render(self) -> str:
        return f"[{self.key!r}]"


ConditionArg = Condition[Any] | Callable[["FieldPath[Any, Any]"], Condition[Any]]
ModificationArg = (
    Modification[Any]
    | Callable[["FieldPath[Any, Any]"], "Modification[Any] | Iterable[Modification[Any]]"]
)


# -- path ----------------------------------------------------------------------


class FieldPath(Generic[R, V]):
    """
    Typed address of a position inside records of ``root_type``.

    Attribute access navigates into record fields; use ``field(name)`` when a
    field name collides with a method of this class.
    """

    __slots__ = ("_root_type", "_steps", "_value_type")

    def __init__(self, root_type: Any, steps: Iterable[Step], value_type: Any) -> None:
        self._root_type = root_type
        self._steps: tuple[Step, ...] = tuple(steps)
        self._value_type = value_type

    # -- identity --------------------------------------------------------------

    @property
    def root_type(self) -> Any:
        return self._root_type

    @property
    def steps(self) -> tuple[Step, ...]:
        return self._steps

    @property
    def value_type(self) -> Any:
        """Declared annotation of the addressed position."""
        return self._value_type

    @property
    def has_elements(self) -> bool:
        return any(isinstance(s, ElementsStep) for s in self._steps)

    @property
    def is_root(self) -> bool:
        return not self._steps

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FieldPath):
            return NotImplemented
        return self._steps == other._steps and same_type(
            self._root_type, other._root_type
        )

    def __hash__(self) -> int:
        return hash((type_tag(self._root_type), self._steps))

    def __str__(self) -> str:
        if not self._steps:
            return "@"
        return "".join(s.render() for s in self._steps).lstrip(".")

    def __repr__(self) -> str:
        return f"FieldPath({type_tag(self._root_type)}:{self})"

    # -- navigation ------------------------------------------------------------

    def _extend(self, step: Step, value_type: Any) -> FieldPath[R, Any]:
        return FieldPath(self._root_type, (*self._steps, step), value_type)

    def __getattr__(self, name: str) -> FieldPath[R, Any]:
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self.field(name)
        except ConstructionError as exc:
            raise AttributeError(str(exc)) from exc

    def field(self, name: str) -> FieldPath[R, Any]:
        """
        Step into the record field *name*.

        Raises:
            TypeMismatchError: If the current position is not a record.
            FieldNotFoundError: If the record has no such field.
        """
        current = self._value_type
        what = f"property '{name}' of '{self}'"
        if is_optional(current):
            raise TypeMismatchError(
                what=what,
                expected="a non-optional record",
                actual=type_tag(current),
                detail="Unwrap the optional with .not_null first.",
            )
        if not is_record_type(current):
            raise TypeMismatchError(
                what=what, expected="a record type", actual=type_tag(current)
            )
        full_path = name if self.is_root else f"{self}.{name}"
        accessor = schema_for(current).accessor(name, full_path=full_path)
        return self._extend(PropertyStep(name, accessor), accessor.value_type)

    @property
    def not_null(self) -> FieldPath[R, Any]:
        """Unwrap an optional position; absent values resolve to nothing."""
        if not is_optional(self._value_type):
            raise TypeMismatchError(
                what=f"not_null on '{self}'",
                expected="an optional type",
                actual=type_tag(self._value_type),
            )
        return self._extend(NotNullStep(), unwrap_optional(self._value_type))

    @property
    def elements(self) -> FieldPath[R, Any]:
        """Every element of a collection position."""
        if not is_collection_type(self._value_type):
            raise TypeMismatchError(
                what=f"elements of '{self}'",
                expected="a collection",
                actual=type_tag(self._value_type),
            )
        return self._extend(ElementsStep(), element_type(self._value_type))

    def key(self, key: Any) -> FieldPath[R, Any]:
        """The value stored under *key* of a mapping position."""
        if not is_mapping_type(self._value_type):
            raise TypeMismatchError(
                what=f"key {key!r} of '{self}'",
                expected="a mapping",
                actual=type_tag(self._value_type),
            )
        key_type, value_type = mapping_types(self._value_type)
        check_literal(key_type, key, what=f"key of '{self}'")
        return self._extend(KeyStep(key), value_type)

    def __getitem__(self, key: Any) -> FieldPath[R, Any]:
        return self.key(key)

    def split_elements(self) -> tuple[FieldPath[R, Any], FieldPath[Any, Any]]:
        """
        Split at the first ``.elements`` step.

        Returns the path of the collection and the remainder re-rooted at the
        element type.
        """
        for index, step in enumerate(self._steps):
            if isinstance(step, ElementsStep):
                collection = replay(self._root_type, self._steps[:index])
                element = replay(
                    element_type(collection.value_type), self._steps[index + 1 :]
                )
                return collection, element
        raise ConstructionError(f"'{self}' does not address collection elements")

    def element_root(self) -> FieldPath[Any, Any]:
        """Root path of this collection's element type."""
        target = unwrap_optional(self._value_type)
        if not is_collection_type(target):
            raise TypeMismatchError(
                what=f"elements of '{self}'",
                expected="a collection",
                actual=type_tag(target),
            )
        return path_of(element_type(target))

    # -- reading and writing ---------------------------------------------------

    def resolve(self, root: R) -> V | None:
        """
        Value at this position, or ``None`` when there is none.

        Across ``.elements`` steps the first resolved value is returned; use
        ``resolve_all`` for every value.
        """
        if self.has_elements:
            found = self.resolve_all(root)
            return found[0] if found else None
        current: Any = root
        for step in self._steps:
            if current is None:
                return None
            if isinstance(step, PropertyStep):
                current = step.accessor.get(current)
            elif isinstance(step, KeyStep):
                current = current.get(step.key)
        return current

    def resolve_all(self, root: R) -> list[Any]:
        """Every non-absent value at this position, fanning out over elements."""
        values: list[Any] = [root]
        for step in self._steps:
            following: list[Any] = []
            for value in values:
                if value is None:
                    continue
                if isinstance(step, PropertyStep):
                    following.append(step.accessor.get(value))
                elif isinstance(step, ElementsStep):
                    following.extend(value)
                elif isinstance(step, KeyStep):
                    following.append(value.get(step.key))
                else:
                    following.append(value)
            values = following
        return [v for v in values if v is not None]

    def with_value(self, root: R, value: Any) -> R:
        """
        Copy of *root* with this position replaced by *value*.

        The input is never mutated.  Writing below an absent optional returns
        *root* unchanged.

        Raises:
            NotAssignableError: If the path crosses ``.elements``.
        """
        if self.has_elements:
            raise NotAssignableError(
                str(self), "element paths are written through for_each"
            )
        result = _write(root, self._steps, value)
        return root if result is _UNCHANGED else result

    # -- condition builders ----------------------------------------------------

    def _leaf(self, make: Callable[[FieldPath[Any, Any]], Condition[Any]]) -> Condition[R]:
        if not self.has_elements:
            return make(self)
        collection, element = self.split_elements()
        return CollectionAny(collection, element._leaf(make))

    def eq(self, value: Any) -> Condition[R]:
        return self._leaf(lambda p: Equals(p, value))

    def neq(self, value: Any) -> Condition[R]:
        return self._leaf(lambda p: NotEquals(p, value))

    def gt(self, value: Any) -> Condition[R]:
        return self._leaf(lambda p: GreaterThan(p, value))

    def gte(self, value: Any) -> Condition[R]:
        return self._leaf(lambda p: GreaterOrEqual(p, value))

    def lt(self, value: Any) -> Condition[R]:
        return self._leaf(lambda p: LessThan(p, value))

    def lte(self, value: Any) -> Condition[R]:
        return self._leaf(lambda p: LessOrEqual(p, value))

    def inside(self, values: Iterable[Any]) -> Condition[R]:
        values = tuple(values)
        return self._leaf(lambda p: Inside(p, values))

    def not_inside(self, values: Iterable[Any]) -> Condition[R]:
        values = tuple(values)
        return self._leaf(lambda p: NotInside(p, values))

    def is_null(self) -> Condition[R]:
        return self.eq(None)

    def is_not_null(self) -> Condition[R]:
        return self.neq(None)

    def contains(self, needle: str, *, ignore_case: bool = True) -> Condition[R]:
        return self._leaf(lambda p: StringContains(p, needle, ignore_case))

    def matches(self, pattern: str, *, ignore_case: bool = False) -> Condition[R]:
        return self._leaf(lambda p: RegexMatches(p, pattern, ignore_case))

    def full_text_search(
        self,
        query: str,
        *,
        max_edit_distance: int | None = None,
        require_all_terms: bool | None = None,
    ) -> Condition[R]:
        if max_edit_distance is None:
            max_edit_distance = DEFAULT_SETTINGS.default_max_edit_distance
        if require_all_terms is None:
            require_all_terms = DEFAULT_SETTINGS.default_require_all_terms
        return self._leaf(
            lambda p: FullTextSearch(p, query, max_edit_distance, require_all_terms)
        )

    def distance_between(
        self,
        point: GeoPoint,
        *,
        min_km: float | None = None,
        max_km: float | None = None,
    ) -> Condition[R]:
        return self._leaf(lambda p: GeoDistanceBetween(p, point, min_km, max_km))

    def bits_all_set(self, mask: int) -> Condition[R]:
        return self._leaf(lambda p: BitsAllSet(p, mask))

    def bits_any_set(self, mask: int) -> Condition[R]:
        return self._leaf(lambda p: BitsAnySet(p, mask))

    def bits_all_clear(self, mask: int) -> Condition[R]:
        return self._leaf(lambda p: BitsAllClear(p, mask))

    def bits_any_clear(self, mask: int) -> Condition[R]:
        return self._leaf(lambda p: BitsAnyClear(p, mask))

    def size_equals(self, size: int) -> Condition[R]:
        return self._leaf(lambda p: SizeEquals(p, size))

    def has_key(self, key: Any) -> Condition[R]:
        return self._leaf(lambda p: HasKey(p, key))

    def all(self, condition: ConditionArg) -> Condition[R]:
        """Every element satisfies *condition* (a node or ``fn(element_path)``)."""
        return self._leaf(
            lambda p: CollectionAll(p, _condition_for(p.element_root(), condition))
        )

    def any(self, condition: ConditionArg) -> Condition[R]:
        """Some element satisfies *condition* (a node or ``fn(element_path)``)."""
        return self._leaf(
            lambda p: CollectionAny(p, _condition_for(p.element_root(), condition))
        )

    # -- modification builders -------------------------------------------------

    def _update(
        self, make: Callable[[FieldPath[Any, Any]], Modification[Any]]
    ) -> Modification[R]:
        if not self.has_elements:
            return make(self)
        collection, element = self.split_elements()
        return ForEachElement(collection, element._update(make))

    def assign(self, value: Any) -> Modification[R]:
        return self._update(lambda p: Assign(p, value))

    def increment(self, by: Any = 1) -> Modification[R]:
        return self._update(lambda p: Increment(p, by))

    def multiply(self, by: Any) -> Modification[R]:
        return self._update(lambda p: Multiply(p, by))

    def coerce_at_most(self, bound: Any) -> Modification[R]:
        return self._update(lambda p: CoerceAtMost(p, bound))

    def coerce_at_least(self, bound: Any) -> Modification[R]:
        return self._update(lambda p: CoerceAtLeast(p, bound))

    def append_string(self, suffix: str) -> Modification[R]:
        return self._update(lambda p: AppendString(p, suffix))

    def append(self, *items: Any) -> Modification[R]:
        return self._update(lambda p: AppendToCollection(p, items))

    def remove_where(self, condition: ConditionArg) -> Modification[R]:
        return self._update(
            lambda p: RemoveFromCollection(p, _condition_for(p.element_root(), condition))
        )

    def remove_items(self, *items: Any) -> Modification[R]:
        return self._update(lambda p: RemoveItems(p, items))

    def drop_first(self) -> Modification[R]:
        return self._update(DropFirst)

    def drop_last(self) -> Modification[R]:
        return self._update(DropLast)

    def for_each(self, modification: ModificationArg) -> Modification[R]:
        return self._update(
            lambda p: ForEachElement(
                p, _modification_for(p.element_root(), modification)
            )
        )

    def for_each_if(
        self, condition: ConditionArg, modification: ModificationArg
    ) -> Modification[R]:
        def make(p: FieldPath[Any, Any]) -> Modification[Any]:
            root = p.element_root()
            return ForEachElementIf(
                p,
                _condition_for(root, condition),
                _modification_for(root, modification),
            )

        return self._update(make)

    def merge(self, entries: Mapping[Any, Any]) -> Modification[R]:
        return self._update(lambda p: MapMerge(p, entries))

    def remove_keys(self, *keys: Any) -> Modification[R]:
        return self._update(lambda p: MapRemoveKeys(p, keys))

    def modify_key(self, key: Any, modification: ModificationArg) -> Modification[R]:
        def make(p: FieldPath[Any, Any]) -> Modification[Any]:
            _, value_type = mapping_types(unwrap_optional(p.value_type))
            return MapModifyByKey(
                p, key, _modification_for(path_of(value_type), modification)
            )

        return self._update(make)


# -- module helpers ------------------------------------------------------------


def path_of(root_type: type[R] | Any) -> FieldPath[R, R]:
    """The root (identity) path of *root_type*."""
    return FieldPath(root_type, (), root_type)


def replay(root_type: Any, steps: Iterable[Step]) -> FieldPath[Any, Any]:
    """Rebuild a path from *steps*, re-validating each against *root_type*."""
    current: FieldPath[Any, Any] = path_of(root_type)
    for step in steps:
        if isinstance(step, PropertyStep):
            current = current.field(step.name)
        elif isinstance(step, NotNullStep):
            current = current.not_null
        elif isinstance(step, ElementsStep):
            current = current.elements
        elif isinstance(step, KeyStep):
            current = current.key(step.key)
        else:
            raise ConstructionError(f"Unknown path step: {step!r}")
    return current


def _write(current: Any, steps: tuple[Step, ...], value: Any) -> Any:
    if not steps:
        return value
    step, rest = steps[0], steps[1:]
    if isinstance(step, NotNullStep):
        if not rest:
            return value
        if current is None:
            return _UNCHANGED
        return _write(current, rest, value)
    if current is None:
        return _UNCHANGED
    if isinstance(step, PropertyStep):
        child = _write(step.accessor.get(current), rest, value)
        if child is _UNCHANGED:
            return _UNCHANGED
        return step.accessor.set(current, child)
    if isinstance(step, KeyStep):
        existing = current.get(step.key)
        if rest and existing is None:
            return _UNCHANGED
        child = _write(existing, rest, value)
        if child is _UNCHANGED:
            return _UNCHANGED
        return {**current, step.key: child}
    raise NotAssignableError("".join(s.render() for s in steps), "unsupported step")


def _condition_for(root: FieldPath[Any, Any], condition: ConditionArg) -> Condition[Any]:
    if isinstance(condition, Condition):
        return condition
    return condition(root)


def _modification_for(
    root: FieldPath[Any, Any], modification: ModificationArg
) -> Modification[Any]:
    if isinstance(modification, Modification):
        return modification
    built = modification(root)
    if isinstance(built, Modification):
        return built
    return Chain(tuple(built))
