from .applier import MemoryModifier, MemoryModifierRegistry, ModificationApplier, apply
from .builder import (
    ConditionBuilder,
    ModificationBuilder,
    condition,
    modification,
    parse_path,
)
from .codec import (
    decode_condition,
    decode_modification,
    decode_path,
    dumps,
    encode,
    encode_condition,
    encode_modification,
    encode_path,
    loads_condition,
    loads_modification,
    loads_path,
)
from .conditions import (
    Always,
    And,
    BitsAllClear,
    BitsAllSet,
    BitsAnyClear,
    BitsAnySet,
    CollectionAll,
    CollectionAny,
    Condition,
    Equals,
    FieldCondition,
    FullTextSearch,
    GeoDistanceBetween,
    GreaterOrEqual,
    GreaterThan,
    HasKey,
    Inside,
    LessOrEqual,
    LessThan,
    Never,
    Not,
    NotEquals,
    NotInside,
    Or,
    RegexMatches,
    SizeEquals,
    StringContains,
    all_of,
    any_of,
    if_then,
    if_then_else,
)
from .config import DEFAULT_SETTINGS, AlgebraSettings
from .evaluator import ConditionEvaluator, MemoryOperator, MemoryOperatorRegistry, evaluate
from .exceptions import (
    ConstructionError,
    DecodeError,
    FieldNotFoundError,
    NotAssignableError,
    QueryAlgebraError,
    TypeMismatchError,
    UnknownOperatorError,
    UnsupportedOperatorError,
)
from .geo import GeoPoint
from .modifications import (
    AppendString,
    AppendToCollection,
    Assign,
    Chain,
    CoerceAtLeast,
    CoerceAtMost,
    DropFirst,
    DropLast,
    FieldModification,
    ForEachElement,
    ForEachElementIf,
    Increment,
    MapMerge,
    MapModifyByKey,
    MapRemoveKeys,
    Modification,
    Multiply,
    RemoveFromCollection,
    RemoveItems,
    chain,
    nothing,
)
from .operators import AlgebraOperator, OperatorFamily
from .paths import FieldPath, path_of
from .planning import QueryPlan, plan_condition
from .schema import FieldAccessor, RecordSchema, register_schema
from .simplify import simplify_condition, simplify_modification
from .translation import BackendTranslator, UnsupportedOperator
from .tree import referenced_paths, walk

__all__ = [
    # Paths
    "FieldPath",
    "path_of",
    "parse_path",
    "FieldAccessor",
    "RecordSchema",
    "register_schema",
    # Conditions
    "Condition",
    "FieldCondition",
    "Always",
    "Never",
    "And",
    "Or",
    "Not",
    "Equals",
    "NotEquals",
    "GreaterThan",
    "GreaterOrEqual",
    "LessThan",
    "LessOrEqual",
    "Inside",
    "NotInside",
    "StringContains",
    "RegexMatches",
    "FullTextSearch",
    "GeoDistanceBetween",
    "BitsAllSet",
    "BitsAnySet",
    "BitsAllClear",
    "BitsAnyClear",
    "CollectionAll",
    "CollectionAny",
    "SizeEquals",
    "HasKey",
    "all_of",
    "any_of",
    "if_then",
    "if_then_else",
    # Modifications
    "Modification",
    "FieldModification",
    "Chain",
    "Assign",
    "Increment",
    "Multiply",
    "CoerceAtMost",
    "CoerceAtLeast",
    "AppendString",
    "AppendToCollection",
    "RemoveFromCollection",
    "RemoveItems",
    "DropFirst",
    "DropLast",
    "ForEachElement",
    "ForEachElementIf",
    "MapMerge",
    "MapRemoveKeys",
    "MapModifyByKey",
    "chain",
    "nothing",
    # Builders
    "ConditionBuilder",
    "ModificationBuilder",
    "condition",
    "modification",
    # Evaluation / application
    "ConditionEvaluator",
    "MemoryOperator",
    "MemoryOperatorRegistry",
    "evaluate",
    "ModificationApplier",
    "MemoryModifier",
    "MemoryModifierRegistry",
    "apply",
    "simplify_condition",
    "simplify_modification",
    "walk",
    "referenced_paths",
    # Codec
    "encode",
    "dumps",
    "encode_path",
    "decode_path",
    "encode_condition",
    "decode_condition",
    "encode_modification",
    "decode_modification",
    "loads_path",
    "loads_condition",
    "loads_modification",
    # Translation
    "AlgebraOperator",
    "OperatorFamily",
    "BackendTranslator",
    "UnsupportedOperator",
    "QueryPlan",
    "plan_condition",
    # Configuration
    "AlgebraSettings",
    "DEFAULT_SETTINGS",
    "GeoPoint",
    # Exceptions
    "QueryAlgebraError",
    "ConstructionError",
    "TypeMismatchError",
    "FieldNotFoundError",
    "NotAssignableError",
    "DecodeError",
    "UnknownOperatorError",
    "UnsupportedOperatorError",
]
