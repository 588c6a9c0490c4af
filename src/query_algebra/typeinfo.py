"""
Runtime type tags.

Field Paths carry the declared annotation of every position they address
(``int``, ``str | None``, ``list[Address]``, ``dict[str, int]`` ...).  The
helpers here answer the structural questions node constructors ask about
those annotations, and produce canonical ``type_tag()`` strings used for
equality and for the wire format.
"""

from __future__ import annotations

import collections.abc
import datetime
import decimal
import types
import uuid
from typing import Any, Literal, Union, get_args, get_origin

NoneType = type(None)

_UNION_ORIGINS: tuple[Any, ...] = (Union, types.UnionType)
_SEQUENCE_ORIGINS: tuple[Any, ...] = (
    list,
    tuple,
    collections.abc.Sequence,
    collections.abc.MutableSequence,
)
_SET_ORIGINS: tuple[Any, ...] = (
    set,
    frozenset,
    collections.abc.Set,
    collections.abc.MutableSet,
)
_MAPPING_ORIGINS: tuple[Any, ...] = (
    dict,
    collections.abc.Mapping,
    collections.abc.MutableMapping,
)
_NUMERIC_TYPES = (int, float, decimal.Decimal)
_ORDERABLE_TYPES = (
    int,
    float,
    decimal.Decimal,
    str,
    bytes,
    datetime.date,
    datetime.time,
    datetime.timedelta,
    uuid.UUID,
)


def _origin(tp: Any) -> Any:
    return get_origin(tp) or tp


# -- optionality ---------------------------------------------------------------


def is_optional(tp: Any) -> bool:
    return get_origin(tp) in _UNION_ORIGINS and NoneType in get_args(tp)


def unwrap_optional(tp: Any) -> Any:
    """``X | None`` -> ``X``; anything else is returned unchanged."""
    if not is_optional(tp):
        return tp
    rest = tuple(a for a in get_args(tp) if a is not NoneType)
    if len(rest) == 1:
        return rest[0]
    return Union[rest]  # noqa: UP007


def base_type(tp: Any) -> Any:
    """Alias of ``unwrap_optional`` used where absence is handled at run time."""
    return unwrap_optional(tp)


# -- containers ----------------------------------------------------------------


def is_sequence_type(tp: Any) -> bool:
    origin = _origin(tp)
    if origin not in _SEQUENCE_ORIGINS:
        return False
    if origin is tuple:
        args = get_args(tp)
        return not args or (len(args) == 2 and args[1] is Ellipsis)
    return True


def is_set_type(tp: Any) -> bool:
    return _origin(tp) in _SET_ORIGINS


def is_collection_type(tp: Any) -> bool:
    return is_sequence_type(tp) or is_set_type(tp)


def is_mapping_type(tp: Any) -> bool:
    return _origin(tp) in _MAPPING_ORIGINS


def element_type(tp: Any) -> Any:
    """Element annotation of a collection annotation (``Any`` when bare)."""
    args = get_args(tp)
    if not args:
        return Any
    return args[0]


def mapping_types(tp: Any) -> tuple[Any, Any]:
    """``(key, value)`` annotations of a mapping annotation."""
    args = get_args(tp)
    if len(args) != 2:
        return Any, Any
    return args[0], args[1]


# -- scalars -------------------------------------------------------------------


def _is_class(tp: Any) -> bool:
    return isinstance(tp, type) and get_origin(tp) is None


def is_numeric_type(tp: Any) -> bool:
    return _is_class(tp) and tp is not bool and issubclass(tp, _NUMERIC_TYPES)


def is_integer_type(tp: Any) -> bool:
    return _is_class(tp) and tp is not bool and issubclass(tp, int)


def is_string_type(tp: Any) -> bool:
    return _is_class(tp) and issubclass(tp, str)


def is_orderable_type(tp: Any) -> bool:
    if tp is Any:
        return True
    return _is_class(tp) and issubclass(tp, _ORDERABLE_TYPES)


# -- tags ----------------------------------------------------------------------


def type_tag(tp: Any) -> str:
    """
    Canonical, process-independent name of an annotation.

    ``int | None`` and ``Optional[int]`` share the tag ``optional[int]``;
    classes are named by their qualified name.
    """
    if tp is Any:
        return "any"
    if tp is None or tp is NoneType:
        return "none"
    origin = get_origin(tp)
    if origin in _UNION_ORIGINS:
        if is_optional(tp):
            return f"optional[{type_tag(unwrap_optional(tp))}]"
        return "union[" + ",".join(sorted(type_tag(a) for a in get_args(tp))) + "]"
    if origin is Literal:
        return "literal[" + ",".join(repr(a) for a in get_args(tp)) + "]"
    if origin is not None:
        name = getattr(origin, "__name__", repr(origin)).lower()
        args = get_args(tp)
        if not args:
            return name
        inner = ",".join("..." if a is Ellipsis else type_tag(a) for a in args)
        return f"{name}[{inner}]"
    if isinstance(tp, type):
        return tp.__qualname__
    return repr(tp)


def same_type(a: Any, b: Any) -> bool:
    return a is b or type_tag(a) == type_tag(b)
