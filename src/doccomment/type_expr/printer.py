"""Type-expression tree back to text."""

from __future__ import annotations

from doccomment.errors import UnknownNodeKindError
from doccomment.type_expr.nodes import (
    TypeFunction,
    TypeGeneric,
    TypeKeyValue,
    TypeNode,
    TypeObject,
    TypeObjectField,
    TypeStringValue,
    TypeVariadic,
)


def _wrap(node: TypeNode, position: str | None, prefix: str) -> str:
    inner = stringify_type(node.element)
    return f"{prefix}{inner}" if position == "prefix" else f"{inner}{prefix}"


def _generic(node: TypeGeneric) -> str:
    if node.brackets == "square":
        return f"{stringify_type(node.elements[0])}[]"
    args = ", ".join(stringify_type(element) for element in node.elements)
    dot = "." if node.dot else ""
    return f"{stringify_type(node.left)}{dot}<{args}>"


def _variadic(node: TypeVariadic) -> str:
    if node.element is None:
        return "..."
    inner = stringify_type(node.element)
    return f"...{inner}" if node.position != "suffix" else f"{inner}..."


def _object_field(node: TypeObjectField) -> str:
    key = f"{node.quote}{node.key}{node.quote}" if node.quote else node.key
    optional = "?" if node.optional else ""
    if node.right is None:
        return f"{key}{optional}"
    return f"{key}{optional}: {stringify_type(node.right)}"


def _object(node: TypeObject) -> str:
    joiner = f"{node.separator} "
    return "{" + joiner.join(_object_field(element) for element in node.elements) + "}"


def _key_value(node: TypeKeyValue) -> str:
    variadic = "..." if node.variadic else ""
    optional = "?" if node.optional else ""
    if node.right is None:
        return f"{variadic}{node.key}{optional}"
    return f"{variadic}{node.key}{optional}: {stringify_type(node.right)}"


def _function(node: TypeFunction) -> str:
    parameters = ", ".join(stringify_type(parameter) for parameter in node.parameters)
    if node.arrow:
        return_type = stringify_type(node.return_type) if node.return_type is not None else "void"
        return f"({parameters}) => {return_type}"
    if node.return_type is None:
        return f"function({parameters})"
    return f"function({parameters}): {stringify_type(node.return_type)}"


def _string_value(node: TypeStringValue) -> str:
    return f"{node.quote}{node.value}{node.quote}"


def stringify_type(node: TypeNode) -> str:
    """Render a type-expression tree in canonical spacing."""

    kind = getattr(node, "kind", None)
    match kind:
        case "JsdocTypeName":
            return node.value
        case "JsdocTypeAny":
            return "*"
        case "JsdocTypeUnknown":
            return "?"
        case "JsdocTypeNull":
            return "null"
        case "JsdocTypeUndefined":
            return "undefined"
        case "JsdocTypeStringValue":
            return _string_value(node)
        case "JsdocTypeNumber":
            return node.value
        case "JsdocTypeUnion":
            return " | ".join(stringify_type(element) for element in node.elements)
        case "JsdocTypeIntersection":
            return " & ".join(stringify_type(element) for element in node.elements)
        case "JsdocTypeGeneric":
            return _generic(node)
        case "JsdocTypeNullable":
            return _wrap(node, node.position, "?")
        case "JsdocTypeNotNullable":
            return _wrap(node, node.position, "!")
        case "JsdocTypeOptional":
            return _wrap(node, node.position, "=")
        case "JsdocTypeVariadic":
            return _variadic(node)
        case "JsdocTypeParenthesis":
            return f"({stringify_type(node.element)})"
        case "JsdocTypeObjectField":
            return _object_field(node)
        case "JsdocTypeObject":
            return _object(node)
        case "JsdocTypeTuple":
            return "[" + ", ".join(stringify_type(element) for element in node.elements) + "]"
        case "JsdocTypeKeyValue":
            return _key_value(node)
        case "JsdocTypeFunction":
            return _function(node)
        case "JsdocTypeTypeof":
            return f"typeof {stringify_type(node.element)}"
        case "JsdocTypeKeyof":
            return f"keyof {stringify_type(node.element)}"
    raise UnknownNodeKindError(kind)
