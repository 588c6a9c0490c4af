from __future__ import annotations

from enum import Enum


class AlgebraOperator(str, Enum):
    """Every node kind of the algebra; the values are the wire discriminators."""

    # Logical
    ALWAYS = "always"
    NEVER = "never"
    AND = "and"
    OR = "or"
    NOT = "not"

    # Standard comparison
    EQ = "eq"
    NE = "ne"
    GT = "gt"
    GE = "ge"
    LT = "lt"
    LE = "le"
    IN = "in"
    NOT_IN = "not_in"

    # String operations
    CONTAINS = "contains"
    REGEX = "regex"

    # Full-text search
    FTS = "fts"

    # Geometry
    GEO_DISTANCE = "geo_distance"

    # Bitwise
    BITS_ALL_SET = "bits_all_set"
    BITS_ANY_SET = "bits_any_set"
    BITS_ALL_CLEAR = "bits_all_clear"
    BITS_ANY_CLEAR = "bits_any_clear"

    # Collections and maps
    ALL_ELEMENTS = "all_elements"
    ANY_ELEMENT = "any_element"
    SIZE_EQ = "size_eq"
    HAS_KEY = "has_key"

    # Modifications
    CHAIN = "chain"
    ASSIGN = "assign"
    INCREMENT = "increment"
    MULTIPLY = "multiply"
    COERCE_AT_MOST = "coerce_at_most"
    COERCE_AT_LEAST = "coerce_at_least"
    APPEND_STRING = "append_string"
    APPEND = "append"
    REMOVE_WHERE = "remove_where"
    REMOVE_ITEMS = "remove_items"
    DROP_FIRST = "drop_first"
    DROP_LAST = "drop_last"
    FOR_EACH = "for_each"
    FOR_EACH_IF = "for_each_if"
    MAP_MERGE = "map_merge"
    MAP_REMOVE_KEYS = "map_remove_keys"
    MAP_MODIFY_KEY = "map_modify_key"


class OperatorFamily(str, Enum):
    """Coarse grouping used by backend support matrices."""

    LOGICAL = "logical"
    COMPARISON = "comparison"
    STRING = "string"
    FULL_TEXT = "full_text"
    GEO = "geo"
    BITWISE = "bitwise"
    COLLECTION = "collection"
    MAP = "map"
    ASSIGNMENT = "assignment"
    NUMERIC = "numeric"
    STRING_UPDATE = "string_update"
    COLLECTION_UPDATE = "collection_update"
    MAP_UPDATE = "map_update"


_O = AlgebraOperator
_F = OperatorFamily

OPERATOR_FAMILIES: dict[AlgebraOperator, OperatorFamily] = {
    _O.ALWAYS: _F.LOGICAL,
    _O.NEVER: _F.LOGICAL,
    _O.AND: _F.LOGICAL,
    _O.OR: _F.LOGICAL,
    _O.NOT: _F.LOGICAL,
    _O.CHAIN: _F.LOGICAL,
    _O.EQ: _F.COMPARISON,
    _O.NE: _F.COMPARISON,
    _O.GT: _F.COMPARISON,
    _O.GE: _F.COMPARISON,
    _O.LT: _F.COMPARISON,
    _O.LE: _F.COMPARISON,
    _O.IN: _F.COMPARISON,
    _O.NOT_IN: _F.COMPARISON,
    _O.CONTAINS: _F.STRING,
    _O.REGEX: _F.STRING,
    _O.FTS: _F.FULL_TEXT,
    _O.GEO_DISTANCE: _F.GEO,
    _O.BITS_ALL_SET: _F.BITWISE,
    _O.BITS_ANY_SET: _F.BITWISE,
    _O.BITS_ALL_CLEAR: _F.BITWISE,
    _O.BITS_ANY_CLEAR: _F.BITWISE,
    _O.ALL_ELEMENTS: _F.COLLECTION,
    _O.ANY_ELEMENT: _F.COLLECTION,
    _O.SIZE_EQ: _F.COLLECTION,
    _O.HAS_KEY: _F.MAP,
    _O.ASSIGN: _F.ASSIGNMENT,
    _O.INCREMENT: _F.NUMERIC,
    _O.MULTIPLY: _F.NUMERIC,
    _O.COERCE_AT_MOST: _F.NUMERIC,
    _O.COERCE_AT_LEAST: _F.NUMERIC,
    _O.APPEND_STRING: _F.STRING_UPDATE,
    _O.APPEND: _F.COLLECTION_UPDATE,
    _O.REMOVE_WHERE: _F.COLLECTION_UPDATE,
    _O.REMOVE_ITEMS: _F.COLLECTION_UPDATE,
    _O.DROP_FIRST: _F.COLLECTION_UPDATE,
    _O.DROP_LAST: _F.COLLECTION_UPDATE,
    _O.FOR_EACH: _F.COLLECTION_UPDATE,
    _O.FOR_EACH_IF: _F.COLLECTION_UPDATE,
    _O.MAP_MERGE: _F.MAP_UPDATE,
    _O.MAP_REMOVE_KEYS: _F.MAP_UPDATE,
    _O.MAP_MODIFY_KEY: _F.MAP_UPDATE,
}

LOGICAL_OPERATORS = frozenset(
    op for op, family in OPERATOR_FAMILIES.items() if family is _F.LOGICAL
)


def operators_in(*families: OperatorFamily) -> frozenset[AlgebraOperator]:
    """All operators belonging to any of *families*."""
    wanted = set(families)
    return frozenset(op for op, family in OPERATOR_FAMILIES.items() if family in wanted)
