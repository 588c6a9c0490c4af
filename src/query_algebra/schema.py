"""
Record accessor tables.

A ``RecordSchema`` maps each field name of a record type to a
``FieldAccessor``: a getter, a structural-copy setter and the field's
declared annotation.  Tables are generated for pydantic models, dataclasses
and TypedDicts, and can be registered by hand for any other record type::

    register_schema(
        Point,
        [
            FieldAccessor("x", int, lambda p: p.x, lambda p, v: Point(v, p.y)),
            FieldAccessor("y", int, lambda p: p.y, lambda p, v: Point(p.x, v)),
        ],
    )
"""

from __future__ import annotations

import dataclasses
import logging
import threading
import typing
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel

from .exceptions import FieldNotFoundError, NotAssignableError
from .typeinfo import type_tag

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FieldAccessor:
    """Getter, copy-setter and declared annotation of one record field."""

    name: str
    value_type: Any
    getter: Callable[[Any], Any] = field(compare=False, repr=False)
    setter: Callable[[Any, Any], Any] = field(compare=False, repr=False)

    def get(self, record: Any) -> Any:
        return self.getter(record)

    def set(self, record: Any, value: Any) -> Any:
        """Return a copy of *record* with this field replaced."""
        return self.setter(record, value)


@dataclass(frozen=True)
class RecordSchema:
    record_type: Any
    fields: Mapping[str, FieldAccessor]

    @property
    def name(self) -> str:
        return type_tag(self.record_type)

    def accessor(self, name: str, *, full_path: str | None = None) -> FieldAccessor:
        """
        Look up a field accessor.

        Raises:
            FieldNotFoundError: With close-match suggestions.
        """
        found = self.fields.get(name)
        if found is None:
            raise FieldNotFoundError(
                field=name,
                model_name=self.name,
                known_fields=self.fields,
                full_path=full_path,
            )
        return found


_REGISTRY: dict[Any, RecordSchema] = {}
_LOCK = threading.Lock()


def register_schema(record_type: Any, accessors: Iterable[FieldAccessor]) -> RecordSchema:
    """Register a hand-written accessor table for *record_type*."""
    schema = RecordSchema(record_type, {a.name: a for a in accessors})
    with _LOCK:
        _REGISTRY[record_type] = schema
    logger.debug("Registered schema for %s (%d fields)", schema.name, len(schema.fields))
    return schema


def is_record_type(tp: Any) -> bool:
    if not isinstance(tp, type):
        return False
    if tp in _REGISTRY:
        return True
    return (
        issubclass(tp, BaseModel)
        or dataclasses.is_dataclass(tp)
        or typing.is_typeddict(tp)
    )


def schema_for(record_type: Any) -> RecordSchema:
    """
    Return (building on first use) the accessor table for *record_type*.

    Raises:
        NotAssignableError: If the type is not a record type.
    """
    cached = _REGISTRY.get(record_type) if isinstance(record_type, type) else None
    if cached is not None:
        return cached
    if not is_record_type(record_type):
        raise NotAssignableError(
            type_tag(record_type), "it is not a record type with named fields"
        )
    schema = RecordSchema(record_type, _build_accessors(record_type))
    with _LOCK:
        _REGISTRY.setdefault(record_type, schema)
    return _REGISTRY[record_type]


def _build_accessors(record_type: type) -> dict[str, FieldAccessor]:
    if issubclass(record_type, BaseModel):
        return {
            name: FieldAccessor(
                name,
                info.annotation,
                _attr_getter(name),
                _model_setter(name),
            )
            for name, info in record_type.model_fields.items()
        }
    hints = typing.get_type_hints(record_type)
    if dataclasses.is_dataclass(record_type):
        return {
            f.name: FieldAccessor(
                f.name,
                hints.get(f.name, Any),
                _attr_getter(f.name),
                _dataclass_setter(f.name),
            )
            for f in dataclasses.fields(record_type)
        }
    return {
        name: FieldAccessor(name, tp, _key_getter(name), _key_setter(name))
        for name, tp in hints.items()
    }


def _attr_getter(name: str) -> Callable[[Any], Any]:
    return lambda record: getattr(record, name)


def _model_setter(name: str) -> Callable[[Any, Any], Any]:
    return lambda record, value: record.model_copy(update={name: value})


def _dataclass_setter(name: str) -> Callable[[Any, Any], Any]:
    return lambda record, value: dataclasses.replace(record, **{name: value})


def _key_getter(name: str) -> Callable[[Any], Any]:
    return lambda record: record.get(name)


def _key_setter(name: str) -> Callable[[Any, Any], Any]:
    return lambda record, value: {**record, name: value}
