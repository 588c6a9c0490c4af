"""Literal checks against declared annotations, backed by pydantic ``TypeAdapter``."""

from __future__ import annotations

from functools import lru_cache
from typing import Any

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from .exceptions import TypeMismatchError
from .typeinfo import type_tag


@lru_cache(maxsize=512)
def _cached_adapter(tp: Any) -> TypeAdapter[Any]:
    return TypeAdapter(tp)


def adapter_for(tp: Any) -> TypeAdapter[Any]:
    """Shared ``TypeAdapter`` for an annotation."""
    try:
        return _cached_adapter(tp)
    except TypeError:
        # unhashable annotation
        return TypeAdapter(tp)


def check_literal(expected: Any, value: Any, *, what: str) -> Any:
    """
    Verify that *value* inhabits *expected* without coercion.

    Validation runs in pydantic strict mode, so ``"18"`` is rejected for an
    ``int`` position and ``1`` for a ``bool`` one.  The original object is
    returned untouched.

    Raises:
        TypeMismatchError: If the value does not fit.
    """
    if expected is Any:
        return value
    try:
        adapter_for(expected).validate_python(value, strict=True)
    except PydanticValidationError as exc:
        first = exc.errors()[0]["msg"] if exc.errors() else None
        raise TypeMismatchError(
            what=what,
            expected=type_tag(expected),
            actual=type(value).__name__,
            detail=first,
        ) from exc
    return value


def check_literals(expected: Any, values: Any, *, what: str) -> tuple[Any, ...]:
    return tuple(
        check_literal(expected, v, what=f"{what}[{i}]") for i, v in enumerate(values)
    )


def require(condition: bool, *, what: str, expected: str, actual: Any) -> None:
    """Raise ``TypeMismatchError`` unless *condition* holds."""
    if not condition:
        raise TypeMismatchError(
            what=what,
            expected=expected,
            actual=actual if isinstance(actual, str) else type_tag(actual),
        )
