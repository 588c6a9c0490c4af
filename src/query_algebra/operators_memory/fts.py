"""Fuzzy full-text search operator for in-memory evaluation.

Text and query are tokenised with the configured token pattern and
case-folded.  A query term matches when some text token lies within the
node's edit distance.  Records, mappings and collections are searched
through every string they contain.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import BaseModel

from ..evaluator import ConditionEvaluator, MemoryOperator
from ..operators import AlgebraOperator


def levenshtein(s1: str, s2: str, limit: int | None = None) -> int:
    """
    Edit distance between *s1* and *s2*.

    With *limit*, computation stops as soon as the distance is known to
    exceed it and ``limit + 1`` is returned.
    """
    if len(s1) < len(s2):
        s1, s2 = s2, s1
    if limit is not None and len(s1) - len(s2) > limit:
        return limit + 1
    if len(s2) == 0:
        return len(s1)

    prev_row = list(range(len(s2) + 1))
    for i, c1 in enumerate(s1):
        curr_row = [i + 1]
        for j, c2 in enumerate(s2):
            insertions = prev_row[j + 1] + 1
            deletions = curr_row[j] + 1
            substitutions = prev_row[j] + (c1 != c2)
            curr_row.append(min(insertions, deletions, substitutions))
        if limit is not None and min(curr_row) > limit:
            return limit + 1
        prev_row = curr_row

    return prev_row[-1]


def text_of(value: Any) -> str:
    """Searchable text of a value: strings as is, containers and records recursively."""
    if isinstance(value, str):
        return value
    if isinstance(value, BaseModel):
        return text_of([getattr(value, name) for name in type(value).model_fields])
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return text_of([getattr(value, f.name) for f in dataclasses.fields(value)])
    if isinstance(value, Mapping):
        return text_of(list(value.values()))
    if isinstance(value, Iterable) and not isinstance(value, (bytes, bytearray)):
        return " ".join(text_of(v) for v in value if v is not None)
    return str(value)


class FullTextSearchOperator(MemoryOperator):
    @property
    def name(self) -> AlgebraOperator:
        return AlgebraOperator.FTS

    def evaluate(self, field_value: Any, node: Any, context: ConditionEvaluator) -> bool:
        tokens = context.settings.token_regex.findall
        text_tokens = set(tokens(text_of(field_value).casefold()))
        terms = tokens(node.query.casefold())
        if not terms:
            return bool(node.require_all_terms)

        distance = node.max_edit_distance

        def matched(term: str) -> bool:
            if term in text_tokens:
                return True
            return any(
                levenshtein(term, token, distance) <= distance for token in text_tokens
            )

        if node.require_all_terms:
            return all(matched(t) for t in terms)
        return any(matched(t) for t in terms)
