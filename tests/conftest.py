"""Shared fixtures for query algebra tests."""

from __future__ import annotations

import pytest

from query_algebra import ConditionEvaluator, ModificationApplier, path_of

from .records import ATHENS, Address, Person, Pet


@pytest.fixture
def P():
    """Root path of ``Person``."""
    return path_of(Person)


@pytest.fixture
def evaluator():
    return ConditionEvaluator()


@pytest.fixture
def applier(evaluator):
    return ModificationApplier(evaluator=evaluator)


@pytest.fixture
def ann():
    return Person(
        name="Ann",
        age=34,
        score=10,
        rating=4.5,
        email="ann@example.com",
        bio="Backend engineer who enjoys hiking and photography",
        address=Address(street="Main St 1", city="Athens", zip_code="10558"),
        tags=["vip", "new"],
        scores=[3, 7, 9],
        pets=[Pet(name="Rex", age=3), Pet(name="Tom", age=12)],
        labels={"admin", "staff"},
        attributes={"height": 170, "weight": 60},
        flags=0b0101,
        location=ATHENS,
    )


@pytest.fixture
def bob():
    return Person(name="Bob", age=17, score=3, tags=["new"], scores=[], flags=0b0010)


@pytest.fixture
def people(ann, bob):
    return [
        ann,
        bob,
        Person(
            name="Cleo",
            age=52,
            score=25,
            middle_name="Marie",
            address=Address(street="Harbour 2", city="Piraeus"),
            tags=[],
            scores=[10, 12],
            pets=[Pet(name="Kit", age=1)],
            attributes={"height": 160},
            flags=0b1111,
        ),
    ]
