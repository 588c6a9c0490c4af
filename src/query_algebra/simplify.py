"""
Result-preserving simplification of condition and modification trees.

Conditions: nested ``And``/``Or`` are flattened, identities dropped,
absorbing constants short-circuit and double negation collapses.

Modifications: nested chains are flattened, identities dropped, and chain
members overwritten by a later ``Assign`` of the same (or an enclosing)
path are removed.
"""

from __future__ import annotations

import dataclasses
from typing import Any

from .conditions import (
    Always,
    And,
    CollectionAll,
    CollectionAny,
    Condition,
    Never,
    Not,
    Or,
)
from .modifications import (
    Assign,
    Chain,
    FieldModification,
    ForEachElement,
    ForEachElementIf,
    MapModifyByKey,
    Modification,
    RemoveFromCollection,
)
from .paths import FieldPath
from .typeinfo import same_type


def simplify_condition(condition: Condition[Any]) -> Condition[Any]:
    if isinstance(condition, And):
        return _simplify_junction(condition.conditions, And, Always, Never)
    if isinstance(condition, Or):
        return _simplify_junction(condition.conditions, Or, Never, Always)
    if isinstance(condition, Not):
        inner = simplify_condition(condition.condition)
        if isinstance(inner, Not):
            return inner.condition
        if isinstance(inner, Always):
            return Never()
        if isinstance(inner, Never):
            return Always()
        return Not(inner)
    if isinstance(condition, (CollectionAll, CollectionAny)):
        return dataclasses.replace(
            condition, condition=simplify_condition(condition.condition)
        )
    return condition


def _simplify_junction(
    operands: tuple[Condition[Any], ...],
    kind: type,
    identity: type,
    absorbing: type,
) -> Condition[Any]:
    flat: list[Condition[Any]] = []
    for operand in operands:
        simplified = simplify_condition(operand)
        if isinstance(simplified, absorbing):
            return absorbing()
        if isinstance(simplified, identity):
            continue
        if isinstance(simplified, kind):
            flat.extend(simplified.conditions)  # type: ignore[attr-defined]
        else:
            flat.append(simplified)
    if not flat:
        return identity()
    if len(flat) == 1:
        return flat[0]
    return kind(tuple(flat))


def simplify_modification(modification: Modification[Any]) -> Modification[Any]:
    if isinstance(modification, Chain):
        return _simplify_chain(modification)
    if isinstance(modification, (ForEachElement, MapModifyByKey)):
        inner = simplify_modification(modification.modification)
        if _is_identity(inner):
            return Chain(())
        return dataclasses.replace(modification, modification=inner)
    if isinstance(modification, ForEachElementIf):
        inner = simplify_modification(modification.modification)
        condition = simplify_condition(modification.condition)
        if _is_identity(inner) or isinstance(condition, Never):
            return Chain(())
        if isinstance(condition, Always):
            return ForEachElement(modification.path, inner)
        return dataclasses.replace(modification, condition=condition, modification=inner)
    if isinstance(modification, RemoveFromCollection):
        condition = simplify_condition(modification.condition)
        if isinstance(condition, Never):
            return Chain(())
        return dataclasses.replace(modification, condition=condition)
    return modification


def _is_identity(modification: Modification[Any]) -> bool:
    return isinstance(modification, Chain) and not modification.modifications


def _simplify_chain(chain: Chain[Any]) -> Modification[Any]:
    flat: list[Modification[Any]] = []
    for member in chain.modifications:
        simplified = simplify_modification(member)
        if isinstance(simplified, Chain):
            flat.extend(simplified.modifications)
        else:
            flat.append(simplified)

    kept: list[Modification[Any]] = []
    for index, member in enumerate(flat):
        later = flat[index + 1 :]
        if isinstance(member, FieldModification) and any(
            isinstance(m, Assign) and _encloses(m.path, member.path) for m in later
        ):
            continue
        kept.append(member)

    if len(kept) == 1:
        return kept[0]
    return Chain(tuple(kept))


def _encloses(outer: FieldPath[Any, Any], inner: FieldPath[Any, Any]) -> bool:
    """True when *inner* is *outer* or lies below it."""
    size = len(outer.steps)
    return same_type(outer.root_type, inner.root_type) and inner.steps[:size] == outer.steps
