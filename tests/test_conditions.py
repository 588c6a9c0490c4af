"""Tests for condition construction and combinators."""

from __future__ import annotations

import pytest

from query_algebra import (
    Always,
    And,
    CollectionAll,
    ConstructionError,
    Equals,
    GreaterOrEqual,
    Never,
    Not,
    Or,
    TypeMismatchError,
    all_of,
    any_of,
    if_then,
    if_then_else,
    path_of,
)
from query_algebra.conditions import CONDITION_TYPES
from query_algebra.operators import AlgebraOperator

from .records import ATHENS, Item, Person, Pet


class TestConstructionTyping:
    """Operands are validated against the path's declared type."""

    def test_string_literal_for_int_path_is_rejected(self, P) -> None:
        with pytest.raises(TypeMismatchError) as exc_info:
            P.age.eq("18")
        assert exc_info.value.expected == "int"
        assert exc_info.value.actual == "str"

    def test_bool_is_not_an_int(self, P) -> None:
        with pytest.raises(TypeMismatchError):
            P.age.gt(True)

    def test_contains_requires_string_path(self, P) -> None:
        with pytest.raises(TypeMismatchError):
            P.age.contains("1")

    def test_ordering_requires_orderable_path(self, P) -> None:
        with pytest.raises(TypeMismatchError):
            P.tags.gt(["a"])

    def test_comparison_on_optional_uses_inner_type(self, P) -> None:
        assert P.email.gt("a").path == P.email
        with pytest.raises(TypeMismatchError):
            P.email.gt(1)

    def test_null_literal_only_for_optional_paths(self, P) -> None:
        assert P.email.is_null() == Equals(P.email, None)
        with pytest.raises(TypeMismatchError):
            P.age.eq(None)

    def test_inside_checks_every_value(self, P) -> None:
        assert P.age.inside([1, 2]).values == (1, 2)
        with pytest.raises(TypeMismatchError):
            P.age.inside([1, "2"])

    def test_invalid_regex_is_rejected(self, P) -> None:
        with pytest.raises(ConstructionError):
            P.name.matches("(unclosed")

    def test_bits_require_integer_path(self, P) -> None:
        assert P.flags.bits_all_set(0b101).mask == 5
        with pytest.raises(TypeMismatchError):
            P.rating.bits_any_set(1)

    def test_geo_requires_point_path_and_ordered_bounds(self, P) -> None:
        assert P.location.distance_between(ATHENS, max_km=10.0).max_km == 10.0
        with pytest.raises(TypeMismatchError):
            P.name.distance_between(ATHENS, max_km=1.0)
        with pytest.raises(ConstructionError):
            P.location.distance_between(ATHENS, min_km=5.0, max_km=1.0)
        with pytest.raises(ConstructionError):
            P.location.distance_between(ATHENS, min_km=-1.0)

    def test_size_and_key_checks(self, P) -> None:
        P.tags.size_equals(2)
        P.attributes.size_equals(0)
        with pytest.raises(ConstructionError):
            P.tags.size_equals(-1)
        with pytest.raises(TypeMismatchError):
            P.name.size_equals(1)
        with pytest.raises(TypeMismatchError):
            P.attributes.has_key(3)
        with pytest.raises(TypeMismatchError):
            P.tags.has_key("a")

    def test_fts_rejects_negative_edit_distance(self, P) -> None:
        with pytest.raises(ConstructionError):
            P.bio.full_text_search("hiking", max_edit_distance=-1)

    def test_leaf_path_cannot_cross_elements(self, P) -> None:
        with pytest.raises(ConstructionError):
            GreaterOrEqual(P.scores.elements, 3)

    def test_element_condition_must_be_rooted_at_element_type(self, P) -> None:
        with pytest.raises(TypeMismatchError):
            CollectionAll(P.pets, P.age.gt(1))
        assert CollectionAll(P.pets, path_of(Pet).age.gt(1)).root_type is Person

    def test_mixed_roots_are_rejected(self, P) -> None:
        with pytest.raises(TypeMismatchError):
            P.age.gt(1) & path_of(Item).quantity.gt(1)

    def test_operands_must_be_conditions(self) -> None:
        with pytest.raises(ConstructionError):
            And((Always(), "age > 1"))


class TestCombinators:
    def test_and_flattens_same_kind(self, P) -> None:
        a, b, c = P.age.gt(1), P.age.lt(90), P.name.eq("Ann")
        combined = a & b & c
        assert combined == And((a, b, c))

    def test_or_flattens_same_kind(self, P) -> None:
        a, b, c = P.age.gt(1), P.age.lt(90), P.name.eq("Ann")
        assert (a | b) | c == Or((a, b, c))

    def test_mixed_kinds_nest(self, P) -> None:
        a, b, c = P.age.gt(1), P.age.lt(90), P.name.eq("Ann")
        assert (a | b) & c == And((Or((a, b)), c))

    def test_invert(self, P) -> None:
        a = P.age.gt(1)
        assert ~a == Not(a)
        assert ~~a == Not(Not(a))

    def test_constants_have_no_root(self, P) -> None:
        assert Always().root_type is None
        assert (Always() & P.age.gt(1)).root_type is Person

    def test_all_of_and_any_of(self, P) -> None:
        a, b = P.age.gt(1), P.age.lt(90)
        assert all_of() == Always()
        assert any_of() == Never()
        assert all_of(a) is a
        assert all_of(a, None, b) == And((a, b))
        assert any_of(None, a, b) == Or((a, b))

    def test_if_then(self, P, ann, bob) -> None:
        rule = if_then(P.age.lt(18), P.tags.elements.eq("new"))
        assert rule.is_satisfied_by(ann)
        assert rule.is_satisfied_by(bob)

    def test_if_then_else(self, P, ann, bob) -> None:
        rule = if_then_else(P.age.gte(18), P.score.gte(10), P.score.lt(5))
        assert rule.is_satisfied_by(ann)
        assert rule.is_satisfied_by(bob)

    def test_structural_equality_and_hash(self) -> None:
        a = path_of(Person).age.gte(18)
        b = GreaterOrEqual(path_of(Person).field("age"), 18)
        assert a == b
        assert len({a, b}) == 1


class TestRegistry:
    def test_node_types_cover_every_operator_once(self) -> None:
        from query_algebra.modifications import MODIFICATION_TYPES

        assert set(CONDITION_TYPES).isdisjoint(MODIFICATION_TYPES)
        assert set(CONDITION_TYPES) | set(MODIFICATION_TYPES) == set(AlgebraOperator)
