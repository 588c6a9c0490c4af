"""
Query algebra exception hierarchy with fuzzy-match suggestions.

All exceptions inherit from ``QueryAlgebraError`` and provide
``to_dict()`` for API-friendly error responses.

Three families are raised by the library:

* ``ConstructionError`` -- a node or path was built from inconsistent types.
* ``DecodeError`` -- an encoded tree is malformed or does not fit the root type.
* ``UnsupportedOperatorError`` -- a backend cannot express a node, raised only
  when the caller explicitly asks translation to raise.
"""

from __future__ import annotations

from collections.abc import Iterable
from difflib import get_close_matches
from typing import Any


def _closest(word: str, options: list[str], *, limit: int) -> list[str]:
    return get_close_matches(word, options, n=limit, cutoff=0.6)


class QueryAlgebraError(Exception):
    """Base exception for all query algebra errors."""

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.__class__.__name__,
            "message": str(self),
        }


# -- construction --------------------------------------------------------------


class ConstructionError(QueryAlgebraError):
    """A path, condition or modification was built from inconsistent parts."""

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "CONSTRUCTION_ERROR",
            "message": str(self),
        }


class TypeMismatchError(ConstructionError):
    """An operand does not fit the type the node requires."""

    def __init__(
        self,
        what: str,
        expected: str,
        actual: str,
        detail: str | None = None,
    ) -> None:
        self.what = what
        self.expected = expected
        self.actual = actual
        self.detail = detail

        message = f"Type mismatch for {what}: expected {expected}, got {actual}."
        if detail:
            message += f" {detail}"
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "TYPE_MISMATCH",
            "what": self.what,
            "expected": self.expected,
            "actual": self.actual,
            "detail": self.detail,
        }


class FieldNotFoundError(ConstructionError):
    """
    A path step names a field the record type does not have.

    The message leads with close matches, then a prefix of the known
    field names::

        'Person' has no field 'adress'. Did you mean: address?
        Known fields: address, age, name
    """

    PREVIEW = 15

    def __init__(
        self,
        field: str,
        model_name: str,
        known_fields: Iterable[str],
        full_path: str | None = None,
    ) -> None:
        self.field = field
        self.model_name = model_name
        self.known_fields = sorted(known_fields)
        self.full_path = full_path or field
        self.suggestions = _closest(field, self.known_fields, limit=5)
        super().__init__(self._describe())

    def _describe(self) -> str:
        text = f"'{self.model_name}' has no field '{self.field}'."
        if self.suggestions:
            text += f" Did you mean: {', '.join(self.suggestions)}?"
        shown = ", ".join(self.known_fields[: self.PREVIEW])
        if len(self.known_fields) > self.PREVIEW:
            shown += ", ..."
        return f"{text}\nKnown fields: {shown}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "FIELD_NOT_FOUND",
            "field": self.field,
            "model": self.model_name,
            "path": self.full_path,
            "suggestions": self.suggestions,
            "known_fields": self.known_fields,
        }


class NotAssignableError(ConstructionError):
    """A write was requested through a path that cannot be written."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Path '{path}' is not assignable: {reason}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "NOT_ASSIGNABLE",
            "path": self.path,
            "reason": self.reason,
        }


# -- decoding ------------------------------------------------------------------


class DecodeError(QueryAlgebraError):
    """Encoded tree structure could not be decoded."""

    def __init__(self, message: str, path: str | None = None) -> None:
        self.message = message
        self.path = path
        if path:
            message = f"{message} (at {path})"
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "DECODE_ERROR",
            "message": self.message,
            "path": self.path,
        }


class UnknownOperatorError(DecodeError):
    """An ``op`` (or path ``step``) discriminator outside the known set."""

    def __init__(
        self,
        operator: str,
        known_operators: Iterable[str],
        path: str | None = None,
    ) -> None:
        self.operator = operator
        self.known_operators = sorted(known_operators)
        self.suggestions = _closest(operator, self.known_operators, limit=3)
        hint = f" Did you mean: {', '.join(self.suggestions)}?" if self.suggestions else ""
        super().__init__(f"Unknown operator '{operator}'.{hint}", path=path)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "OPERATOR_NOT_FOUND",
            "operator": self.operator,
            "path": self.path,
            "suggestions": self.suggestions,
            "known_operators": self.known_operators,
        }


# -- translation ---------------------------------------------------------------


class UnsupportedOperatorError(QueryAlgebraError):
    """A backend translator cannot express a node of the tree."""

    def __init__(
        self,
        operator: str,
        backend: str,
        reason: str | None = None,
        node: Any = None,
    ) -> None:
        self.operator = operator
        self.backend = backend
        self.reason = reason
        self.node = node

        message = f"Operator '{operator}' is not supported by the {backend} backend."
        if reason:
            message += f" {reason}"
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "UNSUPPORTED_OPERATOR",
            "operator": self.operator,
            "backend": self.backend,
            "reason": self.reason,
        }
