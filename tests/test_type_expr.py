"""Tests for doccomment.type_expr: type expression parser and printer."""
from __future__ import annotations

import pytest

from doccomment.errors import TypeExpressionError, UnknownNodeKindError
from doccomment.type_expr import (
    TypeAny,
    TypeFunction,
    TypeGeneric,
    TypeIntersection,
    TypeKeyValue,
    TypeName,
    TypeNull,
    TypeNullable,
    TypeObject,
    TypeOptional,
    TypeParenthesis,
    TypeStringValue,
    TypeTuple,
    TypeUnion,
    TypeUnknown,
    TypeVariadic,
    parse_type,
    stringify_type,
    tokenize_type,
)
from doccomment.type_expr.parser import MAX_NESTING


class TestTokenizeType:
    def test_namepaths_are_single_tokens(self) -> None:
        tokens = tokenize_type("module:foo/bar.Baz | a.b#c~d")
        assert [(token.kind, token.value) for token in tokens] == [
            ("NAME", "module:foo/bar.Baz"),
            ("|", "|"),
            ("NAME", "a.b#c~d"),
            ("EOF", ""),
        ]

    def test_unexpected_character(self) -> None:
        with pytest.raises(TypeExpressionError, match="Unexpected character '@'") as info:
            tokenize_type("foo@bar")
        assert info.value.position == 3


class TestParseType:
    def test_name(self) -> None:
        assert parse_type("string") == TypeName(value="string")

    def test_union_across_lines(self) -> None:
        node = parse_type("\n  string|\n  number\n")
        assert node == TypeUnion(elements=[TypeName(value="string"), TypeName(value="number")])

    def test_array_shorthand(self) -> None:
        node = parse_type("string[]")
        assert node == TypeGeneric(
            left=TypeName(value="Array"), elements=[TypeName(value="string")], brackets="square",
        )

    def test_dot_generic(self) -> None:
        node = parse_type("Object.<string, number>", "jsdoc")
        assert isinstance(node, TypeGeneric)
        assert node.dot is True
        assert node.left == TypeName(value="Object")
        assert len(node.elements) == 2

    def test_literals_and_specials(self) -> None:
        node = parse_type("*|?|null|'a'")
        assert isinstance(node, TypeUnion)
        assert node.elements[0] == TypeAny()
        assert node.elements[1] == TypeUnknown()
        assert node.elements[2] == TypeNull()
        assert node.elements[3] == TypeStringValue(value="a", quote="'")

    def test_nullable_prefix_and_optional_suffix(self) -> None:
        node = parse_type("?string=", "closure")
        assert node == TypeNullable(
            element=TypeOptional(element=TypeName(value="string"), position="suffix"),
            position="prefix",
        )

    def test_optional_suffix_rejected_in_typescript(self) -> None:
        with pytest.raises(TypeExpressionError):
            parse_type("string=", "typescript")

    def test_variadic(self) -> None:
        assert parse_type("...number") == TypeVariadic(
            element=TypeName(value="number"), position="prefix",
        )

    def test_intersection_is_typescript_only(self) -> None:
        assert isinstance(parse_type("A & B"), TypeIntersection)
        with pytest.raises(TypeExpressionError, match="Unexpected token '&'"):
            parse_type("A & B", "jsdoc")

    def test_record(self) -> None:
        node = parse_type("{a: string, b?: number}")
        assert isinstance(node, TypeObject)
        assert [field.key for field in node.elements] == ["a", "b"]
        assert [field.optional for field in node.elements] == [False, True]

    def test_tuple(self) -> None:
        node = parse_type("[string, number]")
        assert isinstance(node, TypeTuple)
        assert len(node.elements) == 2

    def test_function(self) -> None:
        node = parse_type("function(string, number): boolean", "jsdoc")
        assert isinstance(node, TypeFunction)
        assert node.arrow is False
        assert node.return_type == TypeName(value="boolean")

    def test_arrow_function(self) -> None:
        node = parse_type("(a: string, ...rest: number[]) => void")
        assert isinstance(node, TypeFunction)
        assert node.arrow is True
        first, second = node.parameters
        assert first == TypeKeyValue(key="a", right=TypeName(value="string"))
        assert isinstance(second, TypeKeyValue) and second.variadic

    def test_parenthesized_union_array(self) -> None:
        node = parse_type("(string|number)[]")
        assert isinstance(node, TypeGeneric)
        assert node.brackets == "square"

    def test_arrow_function_inside_parentheses(self) -> None:
        node = parse_type("((a: string) => void)[]")
        assert isinstance(node, TypeGeneric)
        (inner,) = node.elements
        assert isinstance(inner, TypeParenthesis)
        assert isinstance(inner.element, TypeFunction) and inner.element.arrow

    def test_deeply_parenthesized_name(self) -> None:
        depth = MAX_NESTING - 4
        node = parse_type("(" * depth + "x" + ")" * depth)
        for _ in range(depth):
            assert isinstance(node, TypeParenthesis)
            node = node.element
        assert node == TypeName(value="x")

    @pytest.mark.parametrize(
        "text",
        [
            "Array<" * 200 + "x" + ">" * 200,
            "(" * 200 + "x" + ")" * 200,
            "!" * 200 + "x",
            "{a: " * 200 + "x" + "}" * 200,
        ],
    )
    def test_nesting_limit(self, text: str) -> None:
        with pytest.raises(TypeExpressionError, match="nested deeper than"):
            parse_type(text)

    @pytest.mark.parametrize("text", ["", "   ", "\n"])
    def test_empty_input_rejected(self, text: str) -> None:
        with pytest.raises(TypeExpressionError, match="Empty type expression"):
            parse_type(text)

    @pytest.mark.parametrize("text", ["Array<string", "string|", "{a: }", "(string"])
    def test_malformed_input_rejected(self, text: str) -> None:
        with pytest.raises(TypeExpressionError):
            parse_type(text)

    def test_unknown_mode(self) -> None:
        with pytest.raises(ValueError, match="Unknown parse mode"):
            parse_type("string", "flow")  # type: ignore[arg-type]


class TestStringifyType:
    @pytest.mark.parametrize(
        ("text", "mode"),
        [
            ("string", "typescript"),
            ("string | number", "typescript"),
            ("Array<string>", "typescript"),
            ("Object.<string, number>", "jsdoc"),
            ("string[]", "typescript"),
            ("?string", "jsdoc"),
            ("!Foo", "closure"),
            ("Foo=", "closure"),
            ("...number", "typescript"),
            ("{a: string, b?: number}", "typescript"),
            ("[string, number]", "typescript"),
            ("function(string): number", "jsdoc"),
            ("(a: string) => void", "typescript"),
            ("typeof foo", "typescript"),
            ("keyof T", "typescript"),
            ('"on" | "off"', "typescript"),
            ("A & B", "typescript"),
            ("module:foo/bar", "jsdoc"),
        ],
    )
    def test_canonical_text_is_stable(self, text: str, mode: str) -> None:
        assert stringify_type(parse_type(text, mode)) == text  # type: ignore[arg-type]

    def test_spacing_is_normalized(self) -> None:
        assert stringify_type(parse_type("string|number")) == "string | number"

    def test_unknown_kind(self) -> None:
        with pytest.raises(UnknownNodeKindError, match="Unhandled node type: Bogus"):
            stringify_type(type("Bogus", (), {"kind": "Bogus"})())  # type: ignore[arg-type]
