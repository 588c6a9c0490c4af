"""
Generic structure of algebra nodes.

Every node is a frozen dataclass whose fields are tagged with a *role*
(``path``, ``literal``, ``condition`` ...) and, for literals and sub-trees,
with the position type they are checked against (``of``).  Traversal, the
codec and the translators all read these tags instead of special-casing
each node class.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Iterator
from dataclasses import MISSING
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .paths import FieldPath

PATH = "path"
LITERAL = "literal"
LITERALS = "literals"
SCALAR = "scalar"
CONDITION = "condition"
CONDITIONS = "conditions"
MODIFICATION = "modification"
MODIFICATIONS = "modifications"

# what a literal or sub-tree is typed against
OF_VALUE = "value"
OF_ELEMENT = "element"
OF_MAP_KEY = "map_key"
OF_MAP_VALUE = "map_value"
OF_ROOT = "root"

_SUBTREE_ROLES = (CONDITION, CONDITIONS, MODIFICATION, MODIFICATIONS)


def node_field(role: str, *, of: str | None = None, default: Any = MISSING) -> Any:
    """Declare a dataclass field of a node with its role."""
    return dataclasses.field(default=default, metadata={"role": role, "of": of})


def node_fields(node: Any) -> list[tuple[str, str, str | None]]:
    """``(name, role, of)`` for every field of *node*, in declaration order."""
    return [
        (f.name, f.metadata.get("role", SCALAR), f.metadata.get("of"))
        for f in dataclasses.fields(node)
    ]


def children(node: Any) -> tuple[Any, ...]:
    """Direct sub-conditions and sub-modifications of *node*."""
    found: list[Any] = []
    for name, role, _ in node_fields(node):
        value = getattr(node, name)
        if role in (CONDITION, MODIFICATION):
            found.append(value)
        elif role in (CONDITIONS, MODIFICATIONS):
            found.extend(value)
    return tuple(found)


def walk(node: Any) -> Iterator[Any]:
    """Pre-order traversal of *node* and every descendant."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(children(current)))


def referenced_paths(node: Any) -> list[FieldPath[Any, Any]]:
    """
    Every Field Path the tree reads or writes, outermost first.

    Paths inside element-wise nodes are rooted at the element type, as they
    appear in the tree.
    """
    seen: list[FieldPath[Any, Any]] = []
    for current in walk(node):
        path = getattr(current, "path", None)
        if path is not None and path not in seen:
            seen.append(path)
    return seen
