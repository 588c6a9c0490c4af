"""Tests for the exception hierarchy and its API payloads."""

from __future__ import annotations

import pytest

from query_algebra import (
    ConstructionError,
    DecodeError,
    FieldNotFoundError,
    NotAssignableError,
    QueryAlgebraError,
    TypeMismatchError,
    UnknownOperatorError,
    UnsupportedOperatorError,
)


class TestHierarchy:
    @pytest.mark.parametrize(
        ("error", "base"),
        [
            (TypeMismatchError("x", "int", "str"), ConstructionError),
            (FieldNotFoundError("agee", "Person", ["age"]), ConstructionError),
            (NotAssignableError("tags.*", "element"), ConstructionError),
            (UnknownOperatorError("gte", ["ge"]), DecodeError),
            (DecodeError("bad"), QueryAlgebraError),
            (UnsupportedOperatorError("fts", "mongo"), QueryAlgebraError),
        ],
    )
    def test_bases(self, error, base) -> None:
        assert isinstance(error, base)
        assert isinstance(error, QueryAlgebraError)


class TestFieldNotFoundError:
    def test_suggestions(self) -> None:
        error = FieldNotFoundError("adress", "Person", ["address", "age", "name"])
        assert error.suggestions == ["address"]
        assert "Did you mean" in str(error)
        assert str(error).startswith("'Person' has no field 'adress'. Did you mean: address?")

    def test_no_suggestions(self) -> None:
        error = FieldNotFoundError("zzz", "Person", ["address", "age"])
        assert error.suggestions == []
        assert "Did you mean" not in str(error)
        assert "Known fields: address, age" in str(error)

    def test_long_field_lists_are_truncated(self) -> None:
        fields = [f"f{i:02d}" for i in range(20)]
        assert str(FieldNotFoundError("x", "Wide", fields)).endswith(", ...")

    def test_to_dict(self) -> None:
        error = FieldNotFoundError("agee", "Person", ["name", "age"], full_path="address?.agee")
        assert error.to_dict() == {
            "error": "FIELD_NOT_FOUND",
            "field": "agee",
            "model": "Person",
            "path": "address?.agee",
            "suggestions": ["age"],
            "known_fields": ["age", "name"],
        }


class TestPayloads:
    def test_type_mismatch(self) -> None:
        error = TypeMismatchError("Equals.value", "int", "str", detail="Use a number.")
        assert str(error) == "Type mismatch for Equals.value: expected int, got str. Use a number."
        assert error.to_dict() == {
            "error": "TYPE_MISMATCH",
            "what": "Equals.value",
            "expected": "int",
            "actual": "str",
            "detail": "Use a number.",
        }

    def test_not_assignable(self) -> None:
        assert NotAssignableError("tags.*", "element").to_dict() == {
            "error": "NOT_ASSIGNABLE",
            "path": "tags.*",
            "reason": "element",
        }

    def test_decode_error_location(self) -> None:
        error = DecodeError("expected a list", path="<root>.conditions")
        assert str(error) == "expected a list (at <root>.conditions)"
        assert error.to_dict() == {
            "error": "DECODE_ERROR",
            "message": "expected a list",
            "path": "<root>.conditions",
        }

    def test_unknown_operator(self) -> None:
        error = UnknownOperatorError("incremnt", ["increment", "multiply"], path="<root>")
        assert error.suggestions == ["increment"]
        assert "Did you mean: increment?" in str(error)
        assert error.to_dict()["known_operators"] == ["increment", "multiply"]

    def test_unsupported_operator(self) -> None:
        error = UnsupportedOperatorError("fts", "mongo", reason="needs a text index")
        assert str(error) == (
            "Operator 'fts' is not supported by the mongo backend. needs a text index"
        )

    def test_base_payload(self) -> None:
        assert ConstructionError("boom").to_dict() == {
            "error": "CONSTRUCTION_ERROR",
            "message": "boom",
        }
        assert QueryAlgebraError("boom").to_dict() == {
            "error": "QueryAlgebraError",
            "message": "boom",
        }
