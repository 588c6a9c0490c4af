"""
SQLAlchemy Core translator.

Maps flat record properties onto the columns of a ``Table``: a condition
compiles to a boolean ``ColumnElement`` for ``where()``, a modification to
a ``{column name: expression}`` mapping for ``update().values()``::

    translator = SQLAlchemyTranslator(people)
    where = translator.translate_condition_or_raise(P.age.gte(18))
    values = translator.translate_modification_or_raise(P.score.increment(1))
    conn.execute(people.update().where(where).values(values))

Only paths made of one property (optionally followed by ``not_null``) map to
columns.  Every leaf predicate on a nullable column is guarded with
``IS NOT NULL`` so that ``NOT`` keeps the two-valued logic of the in-memory
evaluator.  Chain members are composed in order: a later member reads the
expression an earlier member produced for the same column.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar, cast

from sqlalchemy import and_, case, false, func, literal, not_, null, or_, true

from ..conditions import (
    Always,
    And,
    BitsAllClear,
    BitsAllSet,
    BitsAnyClear,
    BitsAnySet,
    Condition,
    Equals,
    FieldCondition,
    GreaterOrEqual,
    GreaterThan,
    Inside,
    LessOrEqual,
    LessThan,
    Never,
    Not,
    NotEquals,
    NotInside,
    Or,
    RegexMatches,
    StringContains,
)
from ..config import DEFAULT_SETTINGS, AlgebraSettings
from ..modifications import (
    AppendString,
    Assign,
    Chain,
    CoerceAtLeast,
    CoerceAtMost,
    FieldModification,
    Increment,
    Modification,
    Multiply,
)
from ..operators import AlgebraOperator
from ..paths import FieldPath, NotNullStep, PropertyStep
from ..schema import is_record_type
from ..translation import BackendTranslator, Untranslatable
from ..typeinfo import base_type, is_collection_type, is_mapping_type

if TYPE_CHECKING:
    from collections.abc import Mapping

    from sqlalchemy import Table
    from sqlalchemy.sql.elements import ColumnElement

_O = AlgebraOperator

SqlValues = dict[str, Any]


class SQLAlchemyTranslator(BackendTranslator["ColumnElement[bool]", SqlValues]):
    name: ClassVar[str] = "sqlalchemy"

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
            _O.BITS_ALL_SET,
            _O.BITS_ANY_SET,
            _O.BITS_ALL_CLEAR,
            _O.BITS_ANY_CLEAR,
            _O.ASSIGN,
            _O.INCREMENT,
            _O.MULTIPLY,
            _O.COERCE_AT_MOST,
            _O.COERCE_AT_LEAST,
            _O.APPEND_STRING,
        }
    )

    def __init__(
        self,
        table: Table,
        *,
        columns: Mapping[str, str] | None = None,
        dialect_name: str | None = None,
        settings: AlgebraSettings | None = None,
    ) -> None:
        """
        Args:
            table: Table whose columns hold the record properties.
            columns: Optional property name to column name overrides.
            dialect_name: Target dialect (``"sqlite"``, ``"postgresql"``, ...);
                only case-sensitive substring matching depends on it.
            settings: Library settings; defaults to ``DEFAULT_SETTINGS``.
        """
        self.table = table
        self.columns = dict(columns or {})
        self.dialect_name = dialect_name or "sqlite"
        self.settings = settings or DEFAULT_SETTINGS

    @property
    def operators(self) -> frozenset[AlgebraOperator]:
        return self._OPERATORS

    # -- columns ---------------------------------------------------------------

    def _column_name(self, node: Any, path: FieldPath[Any, Any]) -> str:
        steps = path.steps
        if not steps or not isinstance(steps[0], PropertyStep) or any(
            not isinstance(s, NotNullStep) for s in steps[1:]
        ):
            raise Untranslatable(node, f"path '{path}' does not map to a column")
        target = base_type(path.value_type)
        if is_record_type(target) or is_collection_type(target) or is_mapping_type(target):
            raise Untranslatable(node, f"'{path}' is not a scalar column")
        name = self.columns.get(steps[0].name, steps[0].name)  # type: ignore[attr-defined]
        if name not in self.table.c:
            raise Untranslatable(node, f"table '{self.table.name}' has no column '{name}'")
        return name

    # -- conditions ------------------------------------------------------------

    def _compile_condition(self, condition: Condition[Any]) -> ColumnElement[bool]:
        if isinstance(condition, Always):
            return true()
        if isinstance(condition, Never):
            return false()
        if isinstance(condition, And):
            if not condition.conditions:
                return true()
            return and_(*(self._compile_condition(c) for c in condition.conditions))
        if isinstance(condition, Or):
            if not condition.conditions:
                return false()
            return or_(*(self._compile_condition(c) for c in condition.conditions))
        if isinstance(condition, Not):
            return not_(self._compile_condition(condition.condition))
        if not isinstance(condition, FieldCondition):
            raise Untranslatable(condition, "not a condition node")
        return self._compile_leaf(condition)

    def _compile_leaf(self, condition: FieldCondition[Any]) -> ColumnElement[bool]:
        column = self.table.c[self._column_name(condition, condition.path)]

        if isinstance(condition, Equals) and condition.value is None:
            return column.is_(None)
        if isinstance(condition, NotEquals) and condition.value is None:
            return column.is_not(None)
        if isinstance(condition, Inside) and None in condition.values:
            present = [v for v in condition.values if v is not None]
            return or_(column.is_(None), column.in_(present))

        predicate = self._predicate(condition, column)
        if column.nullable:
            return and_(column.is_not(None), predicate)
        return predicate

    def _predicate(self, condition: FieldCondition[Any], column: Any) -> ColumnElement[bool]:
        if isinstance(condition, Equals):
            return cast("ColumnElement[bool]", column == condition.value)
        if isinstance(condition, NotEquals):
            return cast("ColumnElement[bool]", column != condition.value)
        if isinstance(condition, GreaterThan):
            return cast("ColumnElement[bool]", column > condition.value)
        if isinstance(condition, GreaterOrEqual):
            return cast("ColumnElement[bool]", column >= condition.value)
        if isinstance(condition, LessThan):
            return cast("ColumnElement[bool]", column < condition.value)
        if isinstance(condition, LessOrEqual):
            return cast("ColumnElement[bool]", column <= condition.value)
        if isinstance(condition, Inside):
            return cast("ColumnElement[bool]", column.in_(list(condition.values)))
        if isinstance(condition, NotInside):
            present = [v for v in condition.values if v is not None]
            if not present:
                return true()
            return cast("ColumnElement[bool]", column.not_in(present))
        if isinstance(condition, StringContains):
            return self._contains(column, condition.needle, condition.ignore_case)
        if isinstance(condition, RegexMatches):
            return self._regex(column, condition.pattern, condition.ignore_case)
        if isinstance(condition, BitsAllSet):
            return cast("ColumnElement[bool]", column.op("&")(condition.mask) == condition.mask)
        if isinstance(condition, BitsAnySet):
            return cast("ColumnElement[bool]", column.op("&")(condition.mask) != 0)
        if isinstance(condition, BitsAllClear):
            return cast("ColumnElement[bool]", column.op("&")(condition.mask) == 0)
        if isinstance(condition, BitsAnyClear):
            return cast("ColumnElement[bool]", column.op("&")(condition.mask) != condition.mask)
        raise Untranslatable(condition, "no SQL predicate")

    def _contains(self, column: Any, needle: str, ignore_case: bool) -> ColumnElement[bool]:
        if ignore_case:
            return cast(
                "ColumnElement[bool]",
                func.lower(column, type_=column.type).contains(needle.lower(), autoescape=True),
            )
        if self.dialect_name == "sqlite":
            return cast("ColumnElement[bool]", func.instr(column, needle) > 0)
        if self.dialect_name == "postgresql":
            return cast("ColumnElement[bool]", func.strpos(column, needle) > 0)
        return cast("ColumnElement[bool]", column.contains(needle, autoescape=True))

    def _regex(self, column: Any, pattern: str, ignore_case: bool) -> ColumnElement[bool]:
        if not ignore_case:
            return cast("ColumnElement[bool]", column.regexp_match(pattern))
        # the sqlite REGEXP function takes no flags argument
        if self.dialect_name == "sqlite":
            return cast("ColumnElement[bool]", column.regexp_match(f"(?i){pattern}"))
        return cast("ColumnElement[bool]", column.regexp_match(pattern, flags="i"))

    # -- modifications ---------------------------------------------------------

    def _compile_modification(self, modification: Modification[Any]) -> SqlValues:
        values: SqlValues = {}
        self._update(modification, values)
        return values

    def _update(self, modification: Modification[Any], values: SqlValues) -> None:
        if isinstance(modification, Chain):
            for member in modification.modifications:
                self._update(member, values)
            return
        if not isinstance(modification, FieldModification):
            raise Untranslatable(modification, "not a modification node")

        name = self._column_name(modification, modification.path)
        column = self.table.c[name]
        current = values.get(name, column)

        if isinstance(modification, Assign):
            value = modification.value
            values[name] = null() if value is None else literal(value, column.type)
        elif isinstance(modification, Increment):
            values[name] = current + modification.by
        elif isinstance(modification, Multiply):
            values[name] = current * modification.by
        elif isinstance(modification, CoerceAtMost):
            values[name] = case((current > modification.bound, modification.bound), else_=current)
        elif isinstance(modification, CoerceAtLeast):
            values[name] = case((current < modification.bound, modification.bound), else_=current)
        elif isinstance(modification, AppendString):
            values[name] = current.concat(modification.suffix)
        else:
            raise Untranslatable(modification, "no SQL update expression")
