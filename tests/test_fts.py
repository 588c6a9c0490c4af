"""Tests for the full-text search helpers."""

from __future__ import annotations

import pytest

from query_algebra.operators_memory.fts import levenshtein, text_of

from .records import Address, Item, Pet


class TestLevenshtein:
    @pytest.mark.parametrize(
        ("a", "b", "distance"),
        [
            ("", "", 0),
            ("", "abc", 3),
            ("kitten", "sitting", 3),
            ("flaw", "lawn", 2),
            ("hiking", "hikng", 1),
            ("same", "same", 0),
        ],
    )
    def test_distance(self, a, b, distance) -> None:
        assert levenshtein(a, b) == distance
        assert levenshtein(b, a) == distance

    def test_limit_stops_early(self) -> None:
        assert levenshtein("abc", "abcdef", limit=2) == 3
        assert levenshtein("kitten", "sitting", limit=1) > 1
        assert levenshtein("hiking", "hikng", limit=1) == 1


class TestTextOf:
    def test_strings_pass_through(self) -> None:
        assert text_of("Hello") == "Hello"

    def test_records_and_containers(self) -> None:
        assert text_of(Pet(name="Rex", age=3)) == "Rex 3"
        assert text_of(Address(street="Main", city="Athens")) == "Main Athens"
        assert text_of(Item(sku="A1", quantity=2, price=1.5, tags=("x",))) == "A1 2 1.5 x"
        assert text_of({"k": "v", "n": 1}) == "v 1"
        assert text_of(["a", None, ["b"]]) == "a b"
