"""Tests for Field Paths: navigation, identity, reading and writing."""

from __future__ import annotations

import pytest

from query_algebra import (
    CollectionAny,
    Equals,
    FieldAccessor,
    FieldNotFoundError,
    ForEachElement,
    GreaterThan,
    Increment,
    NotAssignableError,
    TypeMismatchError,
    path_of,
    register_schema,
)
from query_algebra.paths import ElementsStep, KeyStep, NotNullStep, PropertyStep, replay

from .records import Address, Item, Person, Pet, Preferences

# ══════════════════════════════════════════════════════════════════════
# Navigation
# ══════════════════════════════════════════════════════════════════════


class TestNavigation:
    """Each step is validated against the annotation it extends."""

    def test_property_carries_declared_type(self, P) -> None:
        assert P.age.value_type is int
        assert P.tags.value_type == list[str]
        assert P.address.not_null.value_type is Address

    def test_not_null_unwraps_optional(self, P) -> None:
        city = P.address.not_null.city
        assert city.value_type is str
        assert [type(s) for s in city.steps] == [PropertyStep, NotNullStep, PropertyStep]

    def test_property_of_optional_requires_not_null(self, P) -> None:
        with pytest.raises(TypeMismatchError) as exc_info:
            P.address.field("city")
        assert "not_null" in str(exc_info.value)

    def test_attribute_access_reports_attribute_error(self, P) -> None:
        with pytest.raises(AttributeError):
            P.address.city  # noqa: B018

    def test_unknown_field_suggests_close_matches(self, P) -> None:
        with pytest.raises(FieldNotFoundError) as exc_info:
            P.field("nmae")
        assert "name" in exc_info.value.suggestions
        assert exc_info.value.model_name == "Person"

    def test_not_null_on_required_field_is_rejected(self, P) -> None:
        with pytest.raises(TypeMismatchError):
            P.age.not_null  # noqa: B018

    def test_elements_requires_collection(self, P) -> None:
        assert P.tags.elements.value_type is str
        assert P.labels.elements.value_type is str
        with pytest.raises(TypeMismatchError):
            P.name.elements  # noqa: B018

    def test_key_is_type_checked(self, P) -> None:
        assert P.attributes["height"].value_type is int
        assert isinstance(P.attributes["height"].steps[-1], KeyStep)
        with pytest.raises(TypeMismatchError):
            P.attributes[1]
        with pytest.raises(TypeMismatchError):
            P.name["x"]

    def test_property_of_primitive_is_rejected(self, P) -> None:
        with pytest.raises(TypeMismatchError):
            P.name.field("length")

    def test_dataclass_and_typeddict_roots(self) -> None:
        assert path_of(Item).tags.elements.value_type is str
        assert path_of(Preferences).volume.value_type is int

    def test_split_elements(self, P) -> None:
        collection, element = P.pets.elements.age.split_elements()
        assert collection == P.pets
        assert element == path_of(Pet).age

    def test_replay_rebuilds_equal_path(self, P) -> None:
        original = P.address.not_null.zip_code
        assert replay(Person, original.steps) == original


# ══════════════════════════════════════════════════════════════════════
# Identity
# ══════════════════════════════════════════════════════════════════════


class TestIdentity:
    """Paths compare structurally, never by accessor identity."""

    def test_independently_built_paths_are_equal(self) -> None:
        a = path_of(Person).address.not_null.city
        b = path_of(Person).field("address").not_null.field("city")
        assert a == b
        assert hash(a) == hash(b)
        assert {a: 1}[b] == 1

    def test_paths_differ_by_steps_and_root(self, P) -> None:
        assert P.name != P.email
        assert path_of(Pet).name != P.name
        assert P.attributes["height"] != P.attributes["weight"]

    def test_rendering(self, P) -> None:
        assert str(P) == "@"
        assert str(P.address.not_null.city) == "address?.city"
        assert str(P.tags.elements) == "tags.*"
        assert str(P.attributes["height"]) == "attributes['height']"

    def test_steps_are_immutable_values(self, P) -> None:
        assert P.tags.elements.steps[-1] == ElementsStep()
        assert P.address.not_null.steps[-1] == NotNullStep()


# ══════════════════════════════════════════════════════════════════════
# Reading and writing
# ══════════════════════════════════════════════════════════════════════


class TestResolve:
    def test_nested_value(self, P, ann) -> None:
        assert P.address.not_null.city.resolve(ann) == "Athens"

    def test_absent_optional_short_circuits(self, P, bob) -> None:
        assert P.address.not_null.city.resolve(bob) is None
        assert P.address.resolve(bob) is None

    def test_map_value(self, P, ann) -> None:
        assert P.attributes["height"].resolve(ann) == 170
        assert P.attributes["age"].resolve(ann) is None

    def test_elements_fan_out(self, P, ann, bob) -> None:
        assert P.tags.elements.resolve_all(ann) == ["vip", "new"]
        assert P.pets.elements.name.resolve_all(ann) == ["Rex", "Tom"]
        assert P.pets.elements.name.resolve(ann) == "Rex"
        assert P.pets.elements.name.resolve_all(bob) == []
        assert P.pets.elements.name.resolve(bob) is None

    def test_root_path_resolves_to_record(self, ann) -> None:
        assert path_of(Person).resolve(ann) is ann


class TestWithValue:
    def test_replaces_only_addressed_leaf(self, P, ann) -> None:
        moved = P.address.not_null.city.with_value(ann, "Sparta")
        assert moved.address.city == "Sparta"
        assert moved.address.street == ann.address.street
        assert moved.name == ann.name

    def test_input_is_not_mutated(self, P, ann) -> None:
        P.address.not_null.city.with_value(ann, "Sparta")
        P.attributes["height"].with_value(ann, 171)
        assert ann.address.city == "Athens"
        assert ann.attributes == {"height": 170, "weight": 60}

    def test_write_below_absent_optional_is_noop(self, P, bob) -> None:
        assert P.address.not_null.city.with_value(bob, "Sparta") is bob

    def test_write_optional_itself(self, P, bob) -> None:
        updated = P.address.with_value(bob, Address(street="A", city="B"))
        assert updated.address.city == "B"

    def test_map_entry(self, P, ann) -> None:
        updated = P.attributes["height"].with_value(ann, 171)
        assert updated.attributes == {"height": 171, "weight": 60}

    def test_element_paths_are_not_assignable(self, P, ann) -> None:
        with pytest.raises(NotAssignableError):
            P.tags.elements.with_value(ann, "x")

    def test_dataclass_record(self) -> None:
        item = Item(sku="A-1", quantity=2, price=9.5)
        updated = path_of(Item).quantity.with_value(item, 5)
        assert updated == Item(sku="A-1", quantity=5, price=9.5)
        assert item.quantity == 2

    def test_typeddict_record(self) -> None:
        prefs: Preferences = {"theme": "dark", "volume": 3}
        updated = path_of(Preferences).volume.with_value(prefs, 7)
        assert updated == {"theme": "dark", "volume": 7}
        assert prefs["volume"] == 3


class TestRegisteredSchema:
    """Hand-written accessor tables make any class a record type."""

    def test_custom_record(self) -> None:
        class Point:
            def __init__(self, x: int, y: int) -> None:
                self.x = x
                self.y = y

        register_schema(
            Point,
            [
                FieldAccessor("x", int, lambda p: p.x, lambda p, v: Point(v, p.y)),
                FieldAccessor("y", int, lambda p: p.y, lambda p, v: Point(p.x, v)),
            ],
        )
        origin = Point(0, 0)
        moved = path_of(Point).x.with_value(origin, 4)
        assert (moved.x, moved.y) == (4, 0)
        assert origin.x == 0
        assert path_of(Point).y.gt(1).is_satisfied_by(Point(0, 2))


# ══════════════════════════════════════════════════════════════════════
# Builders
# ══════════════════════════════════════════════════════════════════════


class TestBuilderLifting:
    """Builders on element paths produce element-wise nodes."""

    def test_condition_on_elements_becomes_any(self, P) -> None:
        assert P.tags.elements.eq("vip") == CollectionAny(
            P.tags, Equals(path_of(str), "vip")
        )

    def test_condition_on_element_property(self, P) -> None:
        assert P.pets.elements.age.gt(10) == CollectionAny(
            P.pets, GreaterThan(path_of(Pet).age, 10)
        )

    def test_modification_on_elements_becomes_for_each(self, P) -> None:
        assert P.pets.elements.age.increment() == ForEachElement(
            P.pets, Increment(path_of(Pet).age, 1)
        )

    def test_inner_builders_receive_element_root(self, P) -> None:
        built = P.pets.all(lambda pet: pet.age.lt(20))
        assert built.condition == path_of(Pet).age.lt(20)
