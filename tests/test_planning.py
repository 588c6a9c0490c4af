"""Tests for splitting conditions between a backend and in-memory evaluation."""

from __future__ import annotations

import logging

import pytest

from query_algebra import AlgebraOperator, Always, plan_condition
from query_algebra.backends import MongoTranslator


@pytest.fixture
def mongo():
    return MongoTranslator()


class TestPlanCondition:
    def test_supported_condition_is_pushed_whole(self, P, mongo, ann) -> None:
        condition = P.age.gte(18) & P.name.contains("a")
        plan = plan_condition(mongo, condition)
        assert plan.pushed == condition
        assert plan.residual == Always()
        assert plan.needs_fallback is False
        assert plan.unsupported == ()
        assert plan.matches(ann) is True

    def test_unsupported_conjunct_stays_in_memory(self, P, mongo) -> None:
        search = P.bio.full_text_search("hiking")
        plan = plan_condition(mongo, P.age.gte(18) & search)
        assert plan.native == {"age": {"$gte": 18}}
        assert plan.pushed == P.age.gte(18)
        assert plan.residual == search
        assert plan.needs_fallback is True
        assert [u.operator for u in plan.unsupported] == [AlgebraOperator.FTS]

    def test_residual_filters_backend_results(self, P, mongo, evaluator, people) -> None:
        condition = P.age.gte(18) & P.bio.full_text_search("hikng")
        plan = plan_condition(mongo, condition)
        fetched = evaluator.filter(plan.pushed, people)
        assert [p.name for p in fetched] == ["Ann", "Cleo"]
        assert [p.name for p in fetched if plan.matches(p)] == ["Ann"]

    def test_plan_never_loses_records(self, P, mongo, evaluator, people) -> None:
        condition = (
            P.score.gt(5)
            & P.bio.full_text_search("engineer")
            & (P.tags.elements.eq("vip") | P.age.gt(50))
        )
        plan = plan_condition(mongo, condition)
        for person in people:
            if evaluator.evaluate(condition, person):
                assert evaluator.evaluate(plan.pushed, person)
                assert plan.matches(person)
            else:
                assert not (evaluator.evaluate(plan.pushed, person) and plan.matches(person))

    def test_untranslatable_disjunction_is_not_split(self, P, mongo) -> None:
        condition = P.age.gte(18) | P.bio.full_text_search("hiking")
        plan = plan_condition(mongo, condition)
        assert plan.native == {}
        assert plan.pushed == Always()
        assert plan.residual == condition

    def test_fallback_is_logged(self, P, mongo, caplog) -> None:
        caplog.set_level(logging.INFO, logger="query_algebra.planning")
        plan_condition(mongo, P.age.gte(18) & P.bio.full_text_search("x"))
        assert "1 of 2 condition part(s)" in caplog.text
        assert "mongo" in caplog.text
