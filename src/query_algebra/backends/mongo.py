"""
MongoDB translator.

Compiles condition trees to MongoDB filter documents and modification trees
to update documents (plus ``arrayFilters`` for conditional per-element
updates)::

    translator = MongoTranslator()
    query = translator.translate_condition_or_raise(P.age.gte(18))
    # {"age": {"$gte": 18}}
    update = translator.translate_modification_or_raise(P.score.increment(1))
    collection.update_many(query, update.update, array_filters=update.array_filters)

Semantics follow the in-memory evaluator; constructs Mongo cannot express
with the same meaning surface as ``UnsupportedOperator``:

* full-text search (``$text`` needs a collection index and does not do
  per-field fuzzy matching) and string append;
* modifying a map entry by key, and non-assign updates of positions that may
  be absent (``$inc``/``$push``/... would create them);
* logical combinations of primitive element values inside ``$elemMatch``;
* chains touching the same path twice.

``GeoPoint`` values are stored and compared as GeoJSON points.
"""

from __future__ import annotations

import dataclasses
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, ClassVar

from pydantic import BaseModel

from ..conditions import (
    Always,
    And,
    BitsAllClear,
    BitsAllSet,
    BitsAnyClear,
    BitsAnySet,
    CollectionAll,
    CollectionAny,
    Condition,
    Equals,
    FieldCondition,
    GeoDistanceBetween,
    GreaterOrEqual,
    GreaterThan,
    HasKey,
    Inside,
    LessOrEqual,
    LessThan,
    Never,
    Not,
    NotEquals,
    NotInside,
    Or,
    RegexMatches,
    SizeEquals,
    StringContains,
)
from ..config import DEFAULT_SETTINGS, AlgebraSettings
from ..geo import GeoPoint
from ..modifications import (
    AppendToCollection,
    Assign,
    Chain,
    CoerceAtLeast,
    CoerceAtMost,
    DropFirst,
    DropLast,
    FieldModification,
    ForEachElement,
    ForEachElementIf,
    Increment,
    MapMerge,
    MapRemoveKeys,
    Modification,
    Multiply,
    RemoveFromCollection,
    RemoveItems,
)
from ..operators import AlgebraOperator
from ..paths import FieldPath, KeyStep, NotNullStep, PropertyStep
from ..schema import is_record_type
from ..translation import BackendTranslator, Untranslatable
from ..typeinfo import (
    base_type,
    element_type,
    is_mapping_type,
    is_optional,
    is_set_type,
)

_O = AlgebraOperator

_COMPARISON_OPS: dict[type, str] = {
    GreaterThan: "$gt",
    GreaterOrEqual: "$gte",
    LessThan: "$lt",
    LessOrEqual: "$lte",
}

_BITS_OPS: dict[type, str] = {
    BitsAllSet: "$bitsAllSet",
    BitsAnySet: "$bitsAnySet",
    BitsAllClear: "$bitsAllClear",
    BitsAnyClear: "$bitsAnyClear",
}

_NUMERIC_UPDATE_OPS: dict[type, str] = {
    Increment: "$inc",
    Multiply: "$mul",
    CoerceAtMost: "$min",
    CoerceAtLeast: "$max",
}

_NEVER: dict[str, Any] = {"$nor": [{}]}


@dataclass(frozen=True)
class MongoUpdate:
    """Update document plus the array filters its positional operators use."""

    update: dict[str, Any]
    array_filters: list[dict[str, Any]] = field(default_factory=list)

    def as_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for ``update_one`` / ``update_many``."""
        kwargs: dict[str, Any] = {"update": self.update}
        if self.array_filters:
            kwargs["array_filters"] = self.array_filters
        return kwargs


def mongo_value(value: Any) -> Any:
    """Plain BSON-friendly form of a literal."""
    if isinstance(value, GeoPoint):
        return value.to_geojson()
    if isinstance(value, BaseModel):
        return {k: mongo_value(v) for k, v in value}
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: mongo_value(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, Mapping):
        return {k: mongo_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [mongo_value(v) for v in value]
    return value


def _join(prefix: str, name: str) -> str:
    if not prefix:
        return name
    if not name:
        return prefix
    return f"{prefix}.{name}"


def _may_be_absent(path: FieldPath[Any, Any]) -> bool:
    return is_optional(path.value_type) or any(
        isinstance(s, (NotNullStep, KeyStep)) for s in path.steps
    )


class _UpdateDocument:
    """Accumulates update operators, rejecting overlapping paths."""

    def __init__(self) -> None:
        self.update: dict[str, dict[str, Any]] = {}
        self.array_filters: list[dict[str, Any]] = []
        self._fields: list[str] = []

    def add(self, node: Any, operator: str, field_name: str, value: Any) -> None:
        for existing in self._fields:
            if (
                existing == field_name
                or field_name.startswith(existing + ".")
                or existing.startswith(field_name + ".")
            ):
                raise Untranslatable(node, f"conflicting updates to '{field_name}'")
        self._fields.append(field_name)
        self.update.setdefault(operator, {})[field_name] = value


class MongoTranslator(BackendTranslator[dict[str, Any], MongoUpdate]):
    name: ClassVar[str] = "mongo"

    _OPERATORS: ClassVar[frozenset[AlgebraOperator]] = frozenset(
        {
            _O.EQ,
            _O.NE,
            _O.GT,
            _O.GE,
            _O.LT,
            _O.LE,
            _O.IN,
            _O.NOT_IN,
            _O.CONTAINS,
            _O.REGEX,
            _O.GEO_DISTANCE,
            _O.BITS_ALL_SET,
            _O.BITS_ANY_SET,
            _O.BITS_ALL_CLEAR,
            _O.BITS_ANY_CLEAR,
            _O.ALL_ELEMENTS,
            _O.ANY_ELEMENT,
            _O.SIZE_EQ,
            _O.HAS_KEY,
            _O.ASSIGN,
            _O.INCREMENT,
            _O.MULTIPLY,
            _O.COERCE_AT_MOST,
            _O.COERCE_AT_LEAST,
            _O.APPEND,
            _O.REMOVE_WHERE,
            _O.REMOVE_ITEMS,
            _O.DROP_FIRST,
            _O.DROP_LAST,
            _O.FOR_EACH,
            _O.FOR_EACH_IF,
            _O.MAP_MERGE,
            _O.MAP_REMOVE_KEYS,
        }
    )

    def __init__(self, settings: AlgebraSettings | None = None) -> None:
        self.settings = settings or DEFAULT_SETTINGS

    @property
    def operators(self) -> frozenset[AlgebraOperator]:
        return self._OPERATORS

    # -- field names -----------------------------------------------------------

    @staticmethod
    def _key_name(node: Any, key: Any) -> str:
        name = str(key)
        if not name or "." in name or name.startswith("$"):
            raise Untranslatable(node, f"map key {key!r} is not a valid field name")
        return name

    def _field_name(self, node: Any, path: FieldPath[Any, Any]) -> str:
        parts: list[str] = []
        for step in path.steps:
            if isinstance(step, PropertyStep):
                parts.append(step.name)
            elif isinstance(step, KeyStep):
                parts.append(self._key_name(node, step.key))
        return ".".join(parts)

    # -- conditions ------------------------------------------------------------

    def _compile_condition(self, condition: Condition[Any]) -> dict[str, Any]:
        return self._filter(condition, "")

    def _filter(self, condition: Condition[Any], prefix: str) -> dict[str, Any]:
        """Compile to a query document; leaf fields are placed under *prefix*."""
        if isinstance(condition, Always):
            return {}
        if isinstance(condition, Never):
            return dict(_NEVER)
        if isinstance(condition, And):
            if not condition.conditions:
                return {}
            return {"$and": [self._filter(c, prefix) for c in condition.conditions]}
        if isinstance(condition, Or):
            if not condition.conditions:
                return dict(_NEVER)
            return {"$or": [self._filter(c, prefix) for c in condition.conditions]}
        if isinstance(condition, Not):
            return {"$nor": [self._filter(condition.condition, prefix)]}
        if not isinstance(condition, FieldCondition):
            raise Untranslatable(condition, "not a condition node")

        name = _join(prefix, self._field_name(condition, condition.path))
        if not name:
            raise Untranslatable(condition, "a whole document cannot be compared")
        return self._leaf_filter(condition, name)

    def _leaf_filter(self, condition: FieldCondition[Any], name: str) -> dict[str, Any]:
        present = {name: {"$exists": True, "$ne": None}}
        if isinstance(condition, GeoDistanceBetween):
            parts: list[dict[str, Any]] = [present]
            if condition.max_km is not None:
                parts.append({name: self._geo_within(condition, condition.max_km)})
            if condition.min_km is not None:
                parts.append({"$nor": [{name: self._geo_within(condition, condition.min_km)}]})
            return parts[0] if len(parts) == 1 else {"$and": parts}
        if isinstance(condition, HasKey):
            return {_join(name, self._key_name(condition, condition.key)): {"$exists": True}}
        if isinstance(condition, CollectionAll):
            negated = self._negated_element(condition)
            return {"$and": [present, {name: {"$not": {"$elemMatch": negated}}}]}
        return {name: self._leaf_ops(condition)}

    def _geo_within(self, condition: GeoDistanceBetween[Any], km: float) -> dict[str, Any]:
        point = condition.point
        radians = km / self.settings.earth_radius_km
        return {
            "$geoWithin": {
                "$centerSphere": [[point.longitude, point.latitude], radians]
            }
        }

    def _leaf_ops(self, condition: FieldCondition[Any]) -> dict[str, Any]:
        """Operator document (``{"$gt": 5}``) for a leaf."""
        if isinstance(condition, Equals):
            return {"$eq": mongo_value(condition.value)}
        if isinstance(condition, NotEquals):
            if condition.value is None:
                return {"$ne": None}
            return {"$nin": [mongo_value(condition.value), None]}
        comparison = _COMPARISON_OPS.get(type(condition))
        if comparison is not None:
            return {comparison: mongo_value(condition.value)}  # type: ignore[attr-defined]
        if isinstance(condition, Inside):
            return {"$in": [mongo_value(v) for v in condition.values]}
        if isinstance(condition, NotInside):
            values = [mongo_value(v) for v in condition.values]
            if None not in values:
                values.append(None)
            return {"$nin": values}
        if isinstance(condition, StringContains):
            return {
                "$regex": re.escape(condition.needle),
                "$options": "i" if condition.ignore_case else "",
            }
        if isinstance(condition, RegexMatches):
            return {
                "$regex": condition.pattern,
                "$options": "i" if condition.ignore_case else "",
            }
        bits = _BITS_OPS.get(type(condition))
        if bits is not None:
            mask = condition.mask  # type: ignore[attr-defined]
            if mask < 0:
                raise Untranslatable(condition, "bit masks must not be negative")
            return {bits: mask}
        if isinstance(condition, SizeEquals):
            if is_mapping_type(base_type(condition.path.value_type)):
                raise Untranslatable(condition, "sizes of embedded documents")
            return {"$size": condition.size}
        if isinstance(condition, CollectionAny):
            return {"$elemMatch": self._element_query(condition, condition.condition)}
        raise Untranslatable(condition, "cannot be used on collection element values")

    # -- element-wise ----------------------------------------------------------

    @staticmethod
    def _documents(path: FieldPath[Any, Any]) -> bool:
        elem = base_type(element_type(base_type(path.value_type)))
        return is_record_type(elem) or is_mapping_type(elem)

    def _element_query(
        self, node: Any, inner: Condition[Any]
    ) -> dict[str, Any]:
        if self._documents(node.path):
            return self._filter(inner, "")
        return self._element_ops(inner)

    def _negated_element(self, node: CollectionAll[Any]) -> dict[str, Any]:
        if self._documents(node.path):
            return {"$nor": [self._filter(node.condition, "")]}
        return {"$not": self._element_ops(node.condition)}

    def _element_ops(self, condition: Condition[Any]) -> dict[str, Any]:
        """Operator document over primitive element values."""
        if isinstance(condition, FieldCondition) and condition.path.is_root:
            return self._leaf_ops(condition)
        if isinstance(condition, Not):
            return {"$not": self._element_ops(condition.condition)}
        if isinstance(condition, And):
            merged: dict[str, Any] = {}
            for c in condition.conditions:
                for op, value in self._element_ops(c).items():
                    if op in merged:
                        raise Untranslatable(condition, f"repeated {op} on element values")
                    merged[op] = value
            return merged
        raise Untranslatable(condition, "cannot combine primitive element values this way")

    # -- modifications ---------------------------------------------------------

    def _compile_modification(self, modification: Modification[Any]) -> MongoUpdate:
        document = _UpdateDocument()
        self._update(modification, "", document)
        return MongoUpdate(document.update, document.array_filters)

    def _update(
        self, modification: Modification[Any], prefix: str, document: _UpdateDocument
    ) -> None:
        if isinstance(modification, Chain):
            for member in modification.modifications:
                self._update(member, prefix, document)
            return
        if not isinstance(modification, FieldModification):
            raise Untranslatable(modification, "not a modification node")

        path = modification.path
        name = _join(prefix, self._field_name(modification, path))
        if not name:
            raise Untranslatable(modification, "a whole document cannot be replaced")
        if not isinstance(modification, Assign) and _may_be_absent(path):
            raise Untranslatable(
                modification, f"'{path}' may be absent and the update would create it"
            )

        if isinstance(modification, Assign):
            document.add(modification, "$set", name, mongo_value(modification.value))
        elif isinstance(modification, (Increment, Multiply)):
            op = _NUMERIC_UPDATE_OPS[type(modification)]
            document.add(modification, op, name, modification.by)
        elif isinstance(modification, (CoerceAtMost, CoerceAtLeast)):
            op = _NUMERIC_UPDATE_OPS[type(modification)]
            document.add(modification, op, name, modification.bound)
        elif isinstance(modification, AppendToCollection):
            op = "$addToSet" if is_set_type(base_type(path.value_type)) else "$push"
            items = [mongo_value(i) for i in modification.items]
            document.add(modification, op, name, {"$each": items})
        elif isinstance(modification, RemoveFromCollection):
            query = self._element_query(modification, modification.condition)
            document.add(modification, "$pull", name, query)
        elif isinstance(modification, RemoveItems):
            items = [mongo_value(i) for i in modification.items]
            document.add(modification, "$pullAll", name, items)
        elif isinstance(modification, DropFirst):
            document.add(modification, "$pop", name, -1)
        elif isinstance(modification, DropLast):
            document.add(modification, "$pop", name, 1)
        elif isinstance(modification, ForEachElement):
            self._update(modification.modification, f"{name}.$[]", document)
        elif isinstance(modification, ForEachElementIf):
            condition = modification.condition
            if isinstance(condition, Never):
                return
            if isinstance(condition, Always):
                self._update(modification.modification, f"{name}.$[]", document)
                return
            identifier = f"e{len(document.array_filters)}"
            document.array_filters.append(self._filter(condition, identifier))
            self._update(modification.modification, f"{name}.$[{identifier}]", document)
        elif isinstance(modification, MapMerge):
            for key, value in modification.entries.items():
                key_name = _join(name, self._key_name(modification, key))
                document.add(modification, "$set", key_name, mongo_value(value))
        elif isinstance(modification, MapRemoveKeys):
            for key in modification.keys:
                key_name = _join(name, self._key_name(modification, key))
                document.add(modification, "$unset", key_name, "")
        else:
            raise Untranslatable(modification, "no update operator")
