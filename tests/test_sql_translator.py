"""Tests for the SQLAlchemy Core translator, run against in-memory SQLite."""

from __future__ import annotations

import pytest
from sqlalchemy import (
    Column,
    Float,
    Integer,
    MetaData,
    String,
    Table,
    create_engine,
    select,
    update,
)
from sqlalchemy.dialects import postgresql

from query_algebra import (
    DEFAULT_SETTINGS,
    AlgebraOperator,
    AlgebraSettings,
    Always,
    And,
    Never,
    Or,
    UnsupportedOperator,
    UnsupportedOperatorError,
)
from query_algebra.backends.sql import SQLAlchemyTranslator

from .records import ATHENS

COLUMNS = ("name", "age", "score", "rating", "middle_name", "email", "bio", "flags")


def _people_table(metadata: MetaData) -> Table:
    return Table(
        "people",
        metadata,
        Column("id", Integer, primary_key=True),
        Column("name", String, nullable=False),
        Column("age", Integer, nullable=False),
        Column("score", Integer, nullable=False),
        Column("rating", Float, nullable=False),
        Column("middle_name", String, nullable=True),
        Column("email", String, nullable=True),
        Column("bio", String, nullable=False),
        Column("flags", Integer, nullable=False),
    )


@pytest.fixture
def table():
    return _people_table(MetaData())


@pytest.fixture
def engine(table, people):
    engine = create_engine("sqlite://")
    table.metadata.create_all(engine)
    with engine.begin() as conn:
        conn.execute(
            table.insert(),
            [
                {"id": i, **{c: getattr(p, c) for c in COLUMNS}}
                for i, p in enumerate(people)
            ],
        )
    yield engine
    engine.dispose()


@pytest.fixture
def sql(table):
    return SQLAlchemyTranslator(table)


# ══════════════════════════════════════════════════════════════════════
# Filters
# ══════════════════════════════════════════════════════════════════════


class TestFilterConformance:
    """Rows selected by the compiled WHERE clause match the evaluator."""

    @pytest.mark.parametrize(
        "build",
        [
            lambda P: Always(),
            lambda P: Never(),
            lambda P: And(()),
            lambda P: Or(()),
            lambda P: P.age.gte(18),
            lambda P: P.age.lt(18) | P.score.gt(20),
            lambda P: ~P.name.eq("Bob"),
            lambda P: P.rating.gt(1.0),
            lambda P: P.age.inside([17, 52]),
            lambda P: P.age.not_inside([17]),
            lambda P: P.email.is_null(),
            lambda P: P.email.is_not_null(),
            lambda P: P.email.neq("ann@example.com"),
            lambda P: ~P.email.neq("ann@example.com"),
            lambda P: ~P.email.contains("example"),
            lambda P: P.middle_name.inside(["Marie", None]),
            lambda P: P.middle_name.not_inside(["Marie"]),
            lambda P: ~P.middle_name.not_inside(["Marie"]),
            lambda P: P.middle_name.not_null.eq("Marie"),
            lambda P: ~P.middle_name.not_null.gt("A"),
            lambda P: P.name.contains("AN"),
            lambda P: P.name.contains("An", ignore_case=False),
            lambda P: P.name.contains("AN", ignore_case=False),
            lambda P: P.email.contains("%"),
            lambda P: P.name.matches("^[AB]"),
            lambda P: P.name.matches("^b", ignore_case=True),
            lambda P: P.flags.bits_all_set(0b0101),
            lambda P: P.flags.bits_any_set(0b1000),
            lambda P: P.flags.bits_all_clear(0b1010),
            lambda P: P.flags.bits_any_clear(0b0101),
        ],
    )
    def test_filters(self, P, evaluator, people, table, engine, sql, build) -> None:
        condition = build(P)
        expected = {p.name for p in evaluator.filter(condition, people)}
        where = sql.translate_condition_or_raise(condition)
        with engine.connect() as conn:
            found = set(conn.scalars(select(table.c.name).where(where)))
        assert found == expected


class TestFilterCompilation:
    def test_nullable_columns_are_guarded(self, P, sql) -> None:
        text = str(sql.translate_condition_or_raise(P.email.eq("x")))
        assert "people.email IS NOT NULL" in text
        text = str(sql.translate_condition_or_raise(P.age.eq(1)))
        assert "IS NOT NULL" not in text

    def test_column_overrides(self, P) -> None:
        accounts = Table(
            "accounts",
            MetaData(),
            Column("full_name", String, nullable=False),
            Column("years", Integer, nullable=False),
        )
        translator = SQLAlchemyTranslator(
            accounts, columns={"name": "full_name", "age": "years"}
        )
        text = str(translator.translate_condition_or_raise(P.age.gt(3) & P.name.eq("x")))
        assert "accounts.years >" in text
        assert "accounts.full_name =" in text
        assert set(translator.translate_modification_or_raise(P.age.increment())) == {"years"}

    def test_case_sensitive_contains_depends_on_dialect(self, P, table) -> None:
        translator = SQLAlchemyTranslator(table, dialect_name="postgresql")
        where = translator.translate_condition_or_raise(P.name.contains("A", ignore_case=False))
        assert "strpos" in str(where.compile(dialect=postgresql.dialect()))

    def test_settings_default_and_override(self, table) -> None:
        assert SQLAlchemyTranslator(table).settings is DEFAULT_SETTINGS
        settings = AlgebraSettings(earth_radius_km=1.0)
        assert SQLAlchemyTranslator(table, settings=settings).settings is settings


class TestUnsupportedFilters:
    @pytest.mark.parametrize(
        ("build", "operator"),
        [
            (lambda P: P.bio.full_text_search("hiking"), AlgebraOperator.FTS),
            (lambda P: P.tags.elements.eq("x"), AlgebraOperator.ANY_ELEMENT),
            (lambda P: P.scores.size_equals(1), AlgebraOperator.SIZE_EQ),
            (
                lambda P: P.location.distance_between(ATHENS, max_km=5.0),
                AlgebraOperator.GEO_DISTANCE,
            ),
            (lambda P: P.address.not_null.city.eq("Athens"), AlgebraOperator.EQ),
            (lambda P: P.address.is_null(), AlgebraOperator.EQ),
            (lambda P: P.attributes["height"].gt(1), AlgebraOperator.GT),
        ],
    )
    def test_reported(self, P, sql, build, operator) -> None:
        result = sql.translate_condition(P.age.gt(1) & build(P))
        assert isinstance(result, UnsupportedOperator)
        assert result.operator is operator
        assert result.backend == "sqlalchemy"

    def test_missing_column(self, P) -> None:
        narrow = Table("narrow", MetaData(), Column("name", String, nullable=False))
        translator = SQLAlchemyTranslator(narrow)
        result = translator.translate_condition(P.rating.gt(1.0))
        assert isinstance(result, UnsupportedOperator)
        assert "rating" in result.reason
        with pytest.raises(UnsupportedOperatorError):
            translator.translate_condition_or_raise(P.rating.gt(1.0))


# ══════════════════════════════════════════════════════════════════════
# Updates
# ══════════════════════════════════════════════════════════════════════


class TestUpdateConformance:
    """UPDATE ... SET with the compiled values matches the applier row by row."""

    @pytest.mark.parametrize(
        "build",
        [
            lambda P: P.score.increment(5),
            lambda P: P.rating.multiply(2.0),
            lambda P: P.score.coerce_at_most(12),
            lambda P: P.score.coerce_at_least(5),
            lambda P: P.name.append_string(" Jr."),
            lambda P: P.email.append_string(".gr"),
            lambda P: P.email.assign(None),
            lambda P: P.middle_name.assign("Lee"),
            lambda P: P.score.increment(5).then(P.score.multiply(2)),
            lambda P: P.score.assign(1).then(P.score.increment(2)),
            lambda P: P.score.multiply(2).then(P.score.coerce_at_most(30)).then(
                P.age.increment(1)
            ),
        ],
    )
    def test_updates(self, P, applier, people, table, engine, sql, build) -> None:
        modification = build(P)
        values = sql.translate_modification_or_raise(modification)
        with engine.begin() as conn:
            conn.execute(update(table).values(values))
        with engine.connect() as conn:
            rows = {row.id: row for row in conn.execute(select(table))}
        for i, person in enumerate(people):
            expected = applier.apply(modification, person)
            stored = rows[i]
            assert {c: getattr(stored, c) for c in COLUMNS} == {
                c: getattr(expected, c) for c in COLUMNS
            }


class TestUnsupportedUpdates:
    @pytest.mark.parametrize(
        ("build", "operator"),
        [
            (lambda P: P.tags.append("x"), AlgebraOperator.APPEND),
            (lambda P: P.pets.elements.age.increment(), AlgebraOperator.FOR_EACH),
            (lambda P: P.attributes.merge({"a": 1}), AlgebraOperator.MAP_MERGE),
            (lambda P: P.address.not_null.city.assign("X"), AlgebraOperator.ASSIGN),
        ],
    )
    def test_reported(self, P, sql, build, operator) -> None:
        result = sql.translate_modification(P.score.increment(1).then(build(P)))
        assert isinstance(result, UnsupportedOperator)
        assert result.operator is operator
