"""
Tagged-union codec for paths, conditions and modifications.

Every node encodes to an object with an ``"op"`` discriminator followed by
its fields in declaration order::

    {"op": "ge",
     "path": [{"step": "field", "name": "age"}],
     "value": {"type": "int", "value": 18}}

Literals carry the type tag of the position they occupy; decoding re-derives
that position type from the supplied root type and rejects a mismatch.
Decoding never raises anything but ``DecodeError`` (or its subclass
``UnknownOperatorError``) for malformed or ill-typed input.

``dumps`` produces canonical JSON text: equal trees always yield identical
text, so encodings can serve as cache keys.
"""

from __future__ import annotations

import dataclasses
import json
import logging
from collections.abc import Mapping
from dataclasses import MISSING
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from .conditions import CONDITION_TYPES, Condition
from .exceptions import ConstructionError, DecodeError, UnknownOperatorError
from .modifications import MODIFICATION_TYPES, Modification
from .paths import ElementsStep, FieldPath, KeyStep, NotNullStep, PropertyStep, path_of
from .tree import (
    CONDITION,
    CONDITIONS,
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
)
from .typeinfo import base_type, element_type, is_set_type, mapping_types, type_tag
from .validation import adapter_for

logger = logging.getLogger(__name__)

OP_KEY = "op"
ROOT = "<root>"

_CONDITIONS = {op.value: cls for op, cls in CONDITION_TYPES.items()}
_MODIFICATIONS = {op.value: cls for op, cls in MODIFICATION_TYPES.items()}


# -- position types ------------------------------------------------------------


def position_type(of: str | None, path: FieldPath[Any, Any] | None, root_type: Any) -> Any:
    """Annotation a literal or sub-tree is checked against."""
    if of == OF_ROOT or path is None:
        return root_type
    target = path.value_type
    if of == OF_VALUE:
        return target
    target = base_type(target)
    if of == OF_ELEMENT:
        return element_type(target)
    key_type, value_type = mapping_types(target)
    if of == OF_MAP_KEY:
        return key_type
    if of == OF_MAP_VALUE:
        return value_type
    raise ValueError(f"Unknown position kind: {of!r}")


# -- literals ------------------------------------------------------------------


def _dump(tp: Any, value: Any) -> Any:
    if isinstance(value, Mapping) and not isinstance(value, dict):
        value = dict(value)
    dumped = adapter_for(tp).dump_python(value, mode="json")
    if is_set_type(base_type(tp)) and isinstance(dumped, list):
        dumped.sort(key=lambda item: json.dumps(item, sort_keys=True))
    return dumped


def encode_literal(tp: Any, value: Any) -> dict[str, Any]:
    return {"type": type_tag(tp), "value": _dump(tp, value)}


def encode_literals(tp: Any, values: Any) -> dict[str, Any]:
    return {"type": type_tag(tp), "values": [_dump(tp, v) for v in values]}


def _check_tag(raw: Any, tp: Any, at: str, payload: str) -> None:
    if not isinstance(raw, Mapping) or "type" not in raw or payload not in raw:
        raise DecodeError(f"literal must be an object with 'type' and '{payload}'", at)
    expected = type_tag(tp)
    if raw["type"] != expected:
        raise DecodeError(
            f"literal type '{raw['type']}' does not match expected '{expected}'", at
        )


def _load(tp: Any, value: Any, at: str) -> Any:
    try:
        return adapter_for(tp).validate_json(json.dumps(value), strict=True)
    except PydanticValidationError as exc:
        message = exc.errors()[0]["msg"]
        raise DecodeError(f"invalid literal for {type_tag(tp)}: {message}", at) from exc


def decode_literal(raw: Any, tp: Any, *, at: str = ROOT) -> Any:
    _check_tag(raw, tp, at, "value")
    return _load(tp, raw["value"], at)


def decode_literals(raw: Any, tp: Any, *, at: str = ROOT) -> tuple[Any, ...]:
    _check_tag(raw, tp, at, "values")
    values = raw["values"]
    if not isinstance(values, list):
        raise DecodeError("'values' must be an array", at)
    return tuple(_load(tp, v, f"{at}.values[{i}]") for i, v in enumerate(values))


# -- paths ---------------------------------------------------------------------


def encode_path(path: FieldPath[Any, Any]) -> list[dict[str, Any]]:
    encoded: list[dict[str, Any]] = []
    current: FieldPath[Any, Any] = path_of(path.root_type)
    for step in path.steps:
        if isinstance(step, PropertyStep):
            encoded.append({"step": "field", "name": step.name})
            current = current.field(step.name)
        elif isinstance(step, NotNullStep):
            encoded.append({"step": "not_null"})
            current = current.not_null
        elif isinstance(step, ElementsStep):
            encoded.append({"step": "elements"})
            current = current.elements
        elif isinstance(step, KeyStep):
            key_type, _ = mapping_types(current.value_type)
            encoded.append({"step": "key", "key": encode_literal(key_type, step.key)})
            current = current.key(step.key)
    return encoded


def decode_path(data: Any, root_type: Any, *, at: str = ROOT) -> FieldPath[Any, Any]:
    if not isinstance(data, list):
        raise DecodeError("path must be an array of steps", at)
    current: FieldPath[Any, Any] = path_of(root_type)
    for index, raw in enumerate(data):
        here = f"{at}[{index}]"
        if not isinstance(raw, Mapping):
            raise DecodeError("path step must be an object", here)
        kind = raw.get("step")
        try:
            if kind == "field":
                name = raw.get("name")
                if not isinstance(name, str):
                    raise DecodeError("field step needs a string 'name'", here)
                current = current.field(name)
            elif kind == "not_null":
                current = current.not_null
            elif kind == "elements":
                current = current.elements
            elif kind == "key":
                key_type, _ = mapping_types(current.value_type)
                current = current.key(decode_literal(raw.get("key"), key_type, at=here))
            else:
                raise UnknownOperatorError(
                    str(kind), ["field", "not_null", "elements", "key"], path=here
                )
        except ConstructionError as exc:
            raise DecodeError(str(exc), here) from exc
    return current


# -- nodes ---------------------------------------------------------------------


def _encode_node(node: Any) -> dict[str, Any]:
    out: dict[str, Any] = {OP_KEY: node.operator.value}
    path = getattr(node, "path", None)
    root_type = node.root_type
    for f in dataclasses.fields(node):
        role, of = f.metadata.get("role", SCALAR), f.metadata.get("of")
        value = getattr(node, f.name)
        if role == PATH:
            out[f.name] = encode_path(value)
        elif role == LITERAL:
            out[f.name] = encode_literal(position_type(of, path, root_type), value)
        elif role == LITERALS:
            out[f.name] = encode_literals(position_type(of, path, root_type), value)
        elif role in (CONDITION, MODIFICATION):
            out[f.name] = _encode_node(value)
        elif role in (CONDITIONS, MODIFICATIONS):
            out[f.name] = [_encode_node(v) for v in value]
        else:
            out[f.name] = value
    return out


def _decode_node(
    data: Any,
    root_type: Any,
    at: str,
    table: dict[str, type],
) -> Any:
    if not isinstance(data, Mapping):
        raise DecodeError("node must be an object", at)
    op = data.get(OP_KEY)
    if not isinstance(op, str):
        raise DecodeError(f"missing '{OP_KEY}' discriminator", at)
    cls = table.get(op)
    if cls is None:
        raise UnknownOperatorError(op, list(table), path=at)

    kwargs: dict[str, Any] = {}
    path: FieldPath[Any, Any] | None = None
    for f in dataclasses.fields(cls):
        role, of = f.metadata.get("role", SCALAR), f.metadata.get("of")
        here = f"{at}.{f.name}"
        if f.name not in data:
            if f.default is not MISSING:
                continue
            raise DecodeError(f"missing field '{f.name}'", here)
        raw = data[f.name]
        if role == PATH:
            path = kwargs[f.name] = decode_path(raw, root_type, at=here)
        elif role == LITERAL:
            kwargs[f.name] = decode_literal(raw, position_type(of, path, root_type), at=here)
        elif role == LITERALS:
            kwargs[f.name] = decode_literals(raw, position_type(of, path, root_type), at=here)
        elif role in (CONDITION, MODIFICATION):
            sub_table = _CONDITIONS if role == CONDITION else _MODIFICATIONS
            kwargs[f.name] = _decode_node(
                raw, position_type(of, path, root_type), here, sub_table
            )
        elif role in (CONDITIONS, MODIFICATIONS):
            if not isinstance(raw, list):
                raise DecodeError(f"'{f.name}' must be an array", here)
            sub_table = _CONDITIONS if role == CONDITIONS else _MODIFICATIONS
            kwargs[f.name] = tuple(
                _decode_node(item, root_type, f"{here}[{i}]", sub_table)
                for i, item in enumerate(raw)
            )
        else:
            kwargs[f.name] = raw

    try:
        return cls(**kwargs)
    except ConstructionError as exc:
        logger.debug("Rejected decoded '%s' node at %s: %s", op, at, exc)
        raise DecodeError(str(exc), at) from exc
    except TypeError as exc:
        raise DecodeError(f"malformed '{op}' node: {exc}", at) from exc


def encode_condition(condition: Condition[Any]) -> dict[str, Any]:
    return _encode_node(condition)


def decode_condition(data: Any, root_type: Any, *, at: str = ROOT) -> Condition[Any]:
    """
    Decode a condition for records of *root_type*.

    Raises:
        DecodeError: Malformed structure, unknown discriminator or type mismatch.
    """
    return _decode_node(data, root_type, at, _CONDITIONS)


def encode_modification(modification: Modification[Any]) -> dict[str, Any]:
    return _encode_node(modification)


def decode_modification(
    data: Any, root_type: Any, *, at: str = ROOT
) -> Modification[Any]:
    """
    Decode a modification for records of *root_type*.

    Raises:
        DecodeError: Malformed structure, unknown discriminator or type mismatch.
    """
    return _decode_node(data, root_type, at, _MODIFICATIONS)


# -- JSON text -----------------------------------------------------------------


def encode(node: Any) -> Any:
    """Encode a path, condition or modification to plain data."""
    if isinstance(node, FieldPath):
        return encode_path(node)
    if isinstance(node, (Condition, Modification)):
        return _encode_node(node)
    raise TypeError(f"Cannot encode {type(node).__name__}")


def dumps(node: Any) -> str:
    """Canonical JSON text of a path, condition or modification."""
    return json.dumps(encode(node), sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def _parse(text: str | bytes) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise DecodeError(f"invalid JSON: {exc.msg}", ROOT) from exc


def loads_condition(text: str | bytes, root_type: Any) -> Condition[Any]:
    return decode_condition(_parse(text), root_type)


def loads_modification(text: str | bytes, root_type: Any) -> Modification[Any]:
    return decode_modification(_parse(text), root_type)


def loads_path(text: str | bytes, root_type: Any) -> FieldPath[Any, Any]:
    return decode_path(_parse(text), root_type)
