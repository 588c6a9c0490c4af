"""Tests for path parsing and the fluent condition/modification builders."""

from __future__ import annotations

import pytest

from query_algebra import (
    AlgebraOperator,
    Always,
    Chain,
    ConditionBuilder,
    ConstructionError,
    FieldNotFoundError,
    ModificationBuilder,
    Not,
    TypeMismatchError,
    UnknownOperatorError,
    condition,
    modification,
    parse_path,
)

from .records import Person


class TestParsePath:
    def test_forms(self, P) -> None:
        assert parse_path(Person, "age") == P.age
        assert parse_path(Person, "address?.city") == P.address.not_null.city
        assert parse_path(Person, "tags.*") == P.tags.elements
        assert parse_path(Person, "pets.*.name") == P.pets.elements.name
        assert parse_path(Person, "attributes['height']") == P.attributes["height"]
        assert parse_path(Person, '  attributes["height"] ') == P.attributes["height"]

    def test_root(self, P) -> None:
        assert parse_path(Person, "@") == P
        assert parse_path(Person, "") == P

    def test_rendering_parses_back(self, P) -> None:
        for path in (P.address.not_null.zip_code, P.pets.elements.age, P.attributes["x"]):
            assert parse_path(Person, str(path)) == path

    def test_paths_pass_through(self, P) -> None:
        path = P.age
        assert parse_path(Person, path) is path

    def test_malformed_text(self) -> None:
        with pytest.raises(ConstructionError, match="offset 3"):
            parse_path(Person, "age name")
        with pytest.raises(ConstructionError):
            parse_path(Person, "age-1")

    def test_unknown_field_suggests(self) -> None:
        with pytest.raises(FieldNotFoundError) as exc_info:
            parse_path(Person, "adress?.city")
        assert "address" in exc_info.value.suggestions

    def test_ill_typed_steps(self) -> None:
        with pytest.raises(TypeMismatchError):
            parse_path(Person, "address.city")
        with pytest.raises(TypeMismatchError):
            parse_path(Person, "age.*")


class TestConditionBuilder:
    def test_grouping(self, P) -> None:
        condition = (
            ConditionBuilder(Person)
            .where("age", ">=", 18)
            .or_group()
            .where("address?.city", "=", "Paris")
            .where("tags.*", "=", "vip")
            .end_group()
            .build()
        )
        assert condition == P.age.gte(18) & (
            P.address.not_null.city.eq("Paris") | P.tags.elements.eq("vip")
        )

    def test_operator_spellings(self, P) -> None:
        builder = ConditionBuilder(Person)
        assert builder.where("age", AlgebraOperator.IN, [1, 2]).build() == P.age.inside([1, 2])
        builder.reset()
        assert builder.where("email", "is_null").build() == P.email.is_null()
        builder.reset()
        assert builder.where("name", "contains", "an").build() == P.name.contains("an")
        builder.reset()
        assert builder.where("flags", "bits_any_set", 2).build() == P.flags.bits_any_set(2)

    def test_not_group(self, P) -> None:
        condition = ConditionBuilder(Person).not_group().where("age", "<", 18).end_group().build()
        assert condition == Not(P.age.lt(18))

    def test_add_prebuilt(self, P) -> None:
        condition = ConditionBuilder(Person).add(P.score.gt(1)).build()
        assert condition == P.score.gt(1)

    def test_empty_builder_matches_everything(self) -> None:
        assert ConditionBuilder(Person).build() == Always()

    def test_unknown_operator(self) -> None:
        with pytest.raises(UnknownOperatorError) as exc_info:
            ConditionBuilder(Person).where("age", "=>", 1)
        assert exc_info.value.path == "age"

    def test_value_is_type_checked(self) -> None:
        with pytest.raises(TypeMismatchError):
            ConditionBuilder(Person).where("age", ">", "eighteen")

    def test_group_errors(self) -> None:
        with pytest.raises(ValueError, match="No open group"):
            ConditionBuilder(Person).end_group()
        with pytest.raises(ValueError, match="still open"):
            ConditionBuilder(Person).or_group().where("age", ">", 1).build()
        with pytest.raises(ValueError, match="empty group"):
            ConditionBuilder(Person).and_group().end_group()
        builder = ConditionBuilder(Person).not_group().where("age", ">", 1).where("age", "<", 9)
        with pytest.raises(ValueError, match="exactly one"):
            builder.end_group()


class TestModificationBuilder:
    def test_calls_chain_in_order(self, P, applier, ann) -> None:
        modification = (
            ModificationBuilder(Person)
            .set("name", "Ada")
            .increment("score", 5)
            .multiply("score", 2)
            .append("tags", "gold")
            .remove_keys("attributes", "weight")
            .build()
        )
        assert modification == Chain(
            (
                P.name.assign("Ada"),
                P.score.increment(5),
                P.score.multiply(2),
                P.tags.append("gold"),
                P.attributes.remove_keys("weight"),
            )
        )
        updated = applier.apply(modification, ann)
        assert updated.score == 30
        assert updated.attributes == {"height": 170}

    def test_single_and_empty(self, P) -> None:
        assert ModificationBuilder(Person).drop_last("scores").build() == P.scores.drop_last()
        assert ModificationBuilder(Person).build() == Chain(())

    def test_remove_where_accepts_callables(self, P) -> None:
        built = ModificationBuilder(Person).remove_where("scores", lambda s: s.lt(5)).build()
        assert built == P.scores.remove_where(lambda s: s.lt(5))

    def test_nested_paths(self, P) -> None:
        built = (
            ModificationBuilder(Person)
            .append_string("address?.city", "!")
            .coerce_at_most("pets.*.age", 10)
            .build()
        )
        assert built == Chain(
            (
                P.address.not_null.city.append_string("!"),
                P.pets.elements.age.coerce_at_most(10),
            )
        )

    def test_extend_and_reset(self, P) -> None:
        builder = ModificationBuilder(Person).extend([P.age.increment(), P.score.increment()])
        assert builder.build() == Chain((P.age.increment(), P.score.increment()))
        assert builder.reset().build() == Chain(())


class TestFunctionHelpers:
    def test_condition(self, P) -> None:
        built = condition(Person, lambda p: p.age.gte(18) & p.email.is_not_null())
        assert built == P.age.gte(18) & P.email.is_not_null()

    def test_modification(self, P) -> None:
        assert modification(Person, lambda p: p.age.increment()) == P.age.increment()
        built = modification(Person, lambda p: [p.age.increment(), p.name.assign("X")])
        assert built == Chain((P.age.increment(), P.name.assign("X")))
