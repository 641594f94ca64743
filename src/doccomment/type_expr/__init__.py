"""Documentation type expressions: parser, printer and tree nodes."""

from doccomment.type_expr.nodes import (
    PARSE_MODES,
    VISITOR_KEYS,
    ParseMode,
    TypeAny,
    TypeFunction,
    TypeGeneric,
    TypeIntersection,
    TypeKeyof,
    TypeKeyValue,
    TypeName,
    TypeNode,
    TypeNotNullable,
    TypeNull,
    TypeNullable,
    TypeNumber,
    TypeObject,
    TypeObjectField,
    TypeOptional,
    TypeParenthesis,
    TypeStringValue,
    TypeTuple,
    TypeTypeof,
    TypeUndefined,
    TypeUnion,
    TypeUnknown,
    TypeVariadic,
    is_type_node,
)
from doccomment.type_expr.parser import parse_type, tokenize_type
from doccomment.type_expr.printer import stringify_type

__all__ = [
    "PARSE_MODES",
    "ParseMode",
    "TypeAny",
    "TypeFunction",
    "TypeGeneric",
    "TypeIntersection",
    "TypeKeyValue",
    "TypeKeyof",
    "TypeName",
    "TypeNode",
    "TypeNotNullable",
    "TypeNull",
    "TypeNullable",
    "TypeNumber",
    "TypeObject",
    "TypeObjectField",
    "TypeOptional",
    "TypeParenthesis",
    "TypeStringValue",
    "TypeTuple",
    "TypeTypeof",
    "TypeUndefined",
    "TypeUnion",
    "TypeUnknown",
    "TypeVariadic",
    "VISITOR_KEYS",
    "is_type_node",
    "parse_type",
    "stringify_type",
    "tokenize_type",
]
