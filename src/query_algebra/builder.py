"""
Fluent builders for composing condition and modification trees from
path strings, e.g. for trees assembled from user input.

Example::

    condition = (
        ConditionBuilder(Person)
        .where("age", ">=", 18)
        .or_group()
            .where("address?.city", "=", "Paris")
            .where("tags.*", "=", "vip")
        .end_group()
        .build()
    )
    # → And(age >= 18, Or(address?.city == "Paris", any tags == "vip"))

    modification = (
        ModificationBuilder(Person)
        .set("name", "Ada")
        .increment("score", 5)
        .build()
    )

Path strings use the same notation ``str(path)`` renders: ``.`` between
properties, ``?`` for not-null, ``*`` for collection elements and
``['key']`` for map entries.
"""

from __future__ import annotations

import ast
import re
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from .conditions import Always, And, Condition, Not, Or
from .exceptions import ConstructionError, UnknownOperatorError
from .modifications import Chain, Modification
from .operators import AlgebraOperator
from .paths import FieldPath, path_of

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Mapping

R = TypeVar("R")

_TOKEN = re.compile(
    r"""
    (?P<name>[A-Za-z_]\w*)
    | (?P<not_null>\?)
    | (?P<elements>\*)
    | \[(?P<key>'(?:[^'\\]|\\.)*'|"(?:[^"\\]|\\.)*"|-?\d+)\]
    | (?P<dot>\.)
    """,
    re.VERBOSE,
)


def parse_path(root_type: type[R] | Any, text: str | FieldPath[Any, Any]) -> FieldPath[R, Any]:
    """
    Build a path from its rendered form (``"address?.city"``).

    Raises:
        ConstructionError: Malformed text, unknown property or ill-typed step.
    """
    if isinstance(text, FieldPath):
        return text
    current: FieldPath[Any, Any] = path_of(root_type)
    text = text.strip()
    if text in ("", "@"):
        return current
    pos = 0
    while pos < len(text):
        match = _TOKEN.match(text, pos)
        if match is None:
            raise ConstructionError(f"Cannot parse path {text!r} at offset {pos}")
        kind = match.lastgroup
        if kind == "name":
            current = current.field(match.group("name"))
        elif kind == "not_null":
            current = current.not_null
        elif kind == "elements":
            current = current.elements
        elif kind == "key":
            current = current.key(ast.literal_eval(match.group("key")))
        pos = match.end()
    return current


# Operator spellings accepted by ``where``, mapped to FieldPath builder names.
_CONDITION_OPS: dict[str, str] = {
    "=": "eq",
    "==": "eq",
    "!=": "neq",
    "<>": "neq",
    ">": "gt",
    ">=": "gte",
    "<": "lt",
    "<=": "lte",
    AlgebraOperator.EQ.value: "eq",
    AlgebraOperator.NE.value: "neq",
    AlgebraOperator.GT.value: "gt",
    AlgebraOperator.GE.value: "gte",
    AlgebraOperator.LT.value: "lt",
    AlgebraOperator.LE.value: "lte",
    AlgebraOperator.IN.value: "inside",
    AlgebraOperator.NOT_IN.value: "not_inside",
    AlgebraOperator.CONTAINS.value: "contains",
    AlgebraOperator.REGEX.value: "matches",
    AlgebraOperator.FTS.value: "full_text_search",
    AlgebraOperator.BITS_ALL_SET.value: "bits_all_set",
    AlgebraOperator.BITS_ANY_SET.value: "bits_any_set",
    AlgebraOperator.BITS_ALL_CLEAR.value: "bits_all_clear",
    AlgebraOperator.BITS_ANY_CLEAR.value: "bits_any_clear",
    AlgebraOperator.SIZE_EQ.value: "size_equals",
    AlgebraOperator.HAS_KEY.value: "has_key",
}

_NULLARY_OPS: dict[str, str] = {
    "is_null": "is_null",
    "is_not_null": "is_not_null",
}


class ConditionBuilder(Generic[R]):
    """
    Fluent builder for condition trees over records of one type.

    Conditions added at the same level are combined with AND.  Use
    ``or_group()`` / ``and_group()`` / ``not_group()`` for explicit
    grouping, and ``end_group()`` to close the current group.
    """

    def __init__(self, root_type: type[R] | Any) -> None:
        self.root_type = root_type
        self._conditions: list[Condition[R]] = []
        self._stack: list[tuple[str, list[Condition[R]]]] = []

    def path(self, text: str) -> FieldPath[R, Any]:
        return parse_path(self.root_type, text)

    # -- leaf conditions -----------------------------------------------------

    def where(
        self,
        path: str | FieldPath[R, Any],
        op: AlgebraOperator | str,
        value: Any = None,
    ) -> ConditionBuilder[R]:
        """
        Add a single field condition to the current group.

        Raises:
            UnknownOperatorError: If *op* is not a known operator spelling.
            ConstructionError: If the path or value does not type-check.
        """
        target = parse_path(self.root_type, path)
        key = op.value if isinstance(op, AlgebraOperator) else op
        if key in _NULLARY_OPS:
            built = getattr(target, _NULLARY_OPS[key])()
        elif key in _CONDITION_OPS:
            built = getattr(target, _CONDITION_OPS[key])(value)
        else:
            raise UnknownOperatorError(
                str(key), [*_CONDITION_OPS, *_NULLARY_OPS], path=str(target)
            )
        self._current_list().append(built)
        return self

    def add(self, condition: Condition[R]) -> ConditionBuilder[R]:
        """Add an already-constructed condition to the current group."""
        self._current_list().append(condition)
        return self

    # -- grouping ------------------------------------------------------------

    def and_group(self) -> ConditionBuilder[R]:
        self._stack.append(("and", []))
        return self

    def or_group(self) -> ConditionBuilder[R]:
        self._stack.append(("or", []))
        return self

    def not_group(self) -> ConditionBuilder[R]:
        """Open a NOT group (single child).  Close with ``end_group()``."""
        self._stack.append(("not", []))
        return self

    def end_group(self) -> ConditionBuilder[R]:
        """Close the current group and add it to the parent."""
        if not self._stack:
            raise ValueError("No open group to close")
        group_op, conditions = self._stack.pop()
        self._current_list().append(_combine(group_op, conditions))
        return self

    # -- build ---------------------------------------------------------------

    def build(self) -> Condition[R]:
        """
        Return the composed condition; ``Always`` when nothing was added.

        Raises:
            ValueError: If groups are still open.
        """
        if self._stack:
            raise ValueError(
                f"{len(self._stack)} group(s) still open; call end_group() before build()"
            )
        if not self._conditions:
            return Always()
        return _combine("and", self._conditions)

    def reset(self) -> ConditionBuilder[R]:
        self._conditions.clear()
        self._stack.clear()
        return self

    def _current_list(self) -> list[Condition[R]]:
        if self._stack:
            return self._stack[-1][1]
        return self._conditions


def _combine(op: str, conditions: list[Condition[R]]) -> Condition[R]:
    if not conditions:
        raise ValueError("Cannot create an empty group")
    if op == "and":
        return conditions[0] if len(conditions) == 1 else And(tuple(conditions))
    if op == "or":
        return conditions[0] if len(conditions) == 1 else Or(tuple(conditions))
    if op == "not":
        if len(conditions) != 1:
            raise ValueError("NOT group must contain exactly one condition")
        return Not(conditions[0])
    raise ValueError(f"Unknown group operator: {op}")


class ModificationBuilder(Generic[R]):
    """Fluent builder for a chain of modifications, applied in call order."""

    def __init__(self, root_type: type[R] | Any) -> None:
        self.root_type = root_type
        self._modifications: list[Modification[R]] = []

    def _push(self, modification: Modification[R]) -> ModificationBuilder[R]:
        self._modifications.append(modification)
        return self

    def path(self, text: str) -> FieldPath[R, Any]:
        return parse_path(self.root_type, text)

    def set(self, path: str | FieldPath[R, Any], value: Any) -> ModificationBuilder[R]:
        return self._push(parse_path(self.root_type, path).assign(value))

    def increment(self, path: str | FieldPath[R, Any], by: Any = 1) -> ModificationBuilder[R]:
        return self._push(parse_path(self.root_type, path).increment(by))

    def multiply(self, path: str | FieldPath[R, Any], by: Any) -> ModificationBuilder[R]:
        return self._push(parse_path(self.root_type, path).multiply(by))

    def coerce_at_most(self, path: str | FieldPath[R, Any], bound: Any) -> ModificationBuilder[R]:
        return self._push(parse_path(self.root_type, path).coerce_at_most(bound))

    def coerce_at_least(self, path: str | FieldPath[R, Any], bound: Any) -> ModificationBuilder[R]:
        return self._push(parse_path(self.root_type, path).coerce_at_least(bound))

    def append_string(self, path: str | FieldPath[R, Any], suffix: str) -> ModificationBuilder[R]:
        return self._push(parse_path(self.root_type, path).append_string(suffix))

    def append(self, path: str | FieldPath[R, Any], *items: Any) -> ModificationBuilder[R]:
        return self._push(parse_path(self.root_type, path).append(*items))

    def remove_where(
        self,
        path: str | FieldPath[R, Any],
        condition: Condition[Any] | Callable[[FieldPath[Any, Any]], Condition[Any]],
    ) -> ModificationBuilder[R]:
        return self._push(parse_path(self.root_type, path).remove_where(condition))

    def remove_items(self, path: str | FieldPath[R, Any], *items: Any) -> ModificationBuilder[R]:
        return self._push(parse_path(self.root_type, path).remove_items(*items))

    def drop_first(self, path: str | FieldPath[R, Any]) -> ModificationBuilder[R]:
        return self._push(parse_path(self.root_type, path).drop_first())

    def drop_last(self, path: str | FieldPath[R, Any]) -> ModificationBuilder[R]:
        return self._push(parse_path(self.root_type, path).drop_last())

    def merge(
        self, path: str | FieldPath[R, Any], entries: Mapping[Any, Any]
    ) -> ModificationBuilder[R]:
        return self._push(parse_path(self.root_type, path).merge(entries))

    def remove_keys(self, path: str | FieldPath[R, Any], *keys: Any) -> ModificationBuilder[R]:
        return self._push(parse_path(self.root_type, path).remove_keys(*keys))

    def add(self, modification: Modification[R]) -> ModificationBuilder[R]:
        return self._push(modification)

    def extend(self, modifications: Iterable[Modification[R]]) -> ModificationBuilder[R]:
        for modification in modifications:
            self._push(modification)
        return self

    def build(self) -> Modification[R]:
        """The composed modification; the identity when nothing was added."""
        if len(self._modifications) == 1:
            return self._modifications[0]
        return Chain(tuple(self._modifications))

    def reset(self) -> ModificationBuilder[R]:
        self._modifications.clear()
        return self


def condition(
    root_type: type[R] | Any, build: Callable[[FieldPath[R, R]], Condition[R]]
) -> Condition[R]:
    """Build a condition from a function of the root path.

    Example::

        adults = condition(Person, lambda p: p.age.gte(18) & p.email.is_not_null())
    """
    return build(path_of(root_type))


def modification(
    root_type: type[R] | Any,
    build: Callable[[FieldPath[R, R]], Modification[R] | Iterable[Modification[R]]],
) -> Modification[R]:
    """Build a modification from a function of the root path; lists become a chain."""
    built = build(path_of(root_type))
    if isinstance(built, Modification):
        return built
    return Chain(tuple(built))
