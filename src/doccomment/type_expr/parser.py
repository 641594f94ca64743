"""Recursive descent parser for documentation type expressions.

Grammar (lowest precedence first)::

    type          := union
    union         := intersection ('|' intersection)*
    intersection  := prefix ('&' prefix)*            # typescript only
    prefix        := '?' prefix | '!' prefix | '...' prefix?
                   | 'typeof' prefix | 'keyof' prefix  # typescript only
                   | postfix
    postfix       := primary ('[]' | '<' args '>' | '.<' args '>'
                              | '?' | '!' | '=')*     # '=' not in typescript
    primary       := '*' | '?' | 'null' | 'undefined' | NAME | STRING | NUMBER
                   | '(' type ')' | arrow_function | function | record | tuple
    function      := 'function' '(' params? ')' (':' type)?
    arrow_function:= '(' params? ')' '=>' type       # typescript only
    record        := '{' (field ((',' | ';') field)*)? '}'
    tuple         := '[' (type (',' type)*)? ']'      # typescript only
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass

from doccomment.errors import TypeExpressionError
from doccomment.type_expr.nodes import (
    PARSE_MODES,
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
)


# ---------------------------------------------------------------------------
# Tokenizer
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class _Token:
    kind: str
    value: str
    pos: int


_NAME_PART = r"[A-Za-z_$\u00a0-\uffff][\w$\u00a0-\uffff]*"

# Order matters: first match wins.
_TOKEN_PATTERNS: list[tuple[str, str]] = [
    ("WHITESPACE", r"\s+"),
    ("ELLIPSIS", r"\.\.\."),
    ("ARROW", r"=>"),
    ("STRING", r'"(?:[^"\\]|\\.)*"|\'(?:[^\'\\]|\\.)*\''),
    ("NUMBER", r"-?\d+(?:\.\d+)?(?:[eE][+-]?\d+)?(?![\w$])"),
    ("MODULE", r"module:[\w$/\-]+(?:[.#~][\w$/\-]+)*"),
    ("NAME", rf"{_NAME_PART}(?:[.#~](?:{_NAME_PART}|\d+))*"),
    ("PUNCT", r"[()<>\[\]{},|&:?!*=.;]"),
]

_COMPILED_PATTERNS = [(name, re.compile(pattern)) for name, pattern in _TOKEN_PATTERNS]


def tokenize_type(text: str) -> list[_Token]:
    tokens: list[_Token] = []
    pos = 0
    while pos < len(text):
        for name, pattern in _COMPILED_PATTERNS:
            match = pattern.match(text, pos)
            if match:
                if name != "WHITESPACE":
                    kind = match.group() if name == "PUNCT" else name
                    if name == "MODULE":
                        kind = "NAME"
                    tokens.append(_Token(kind=kind, value=match.group(), pos=pos))
                pos = match.end()
                break
        else:
            raise TypeExpressionError(f"Unexpected character {text[pos]!r}", pos)
    tokens.append(_Token(kind="EOF", value="", pos=pos))
    return tokens


# Deepest nesting of types accepted before parsing stops with an error.
MAX_NESTING = 64

# Tokens after which a '?' or '...' stands alone instead of prefixing a type.
_TYPE_END_KINDS = frozenset({"EOF", ",", "|", "&", ">", ")", "]", "}", "=", ";", "=>"})


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


class _Parser:
    """Recursive descent parser over ``tokenize_type`` output."""

    def __init__(self, tokens: list[_Token], mode: ParseMode) -> None:
        self._tokens = tokens
        self._mode = mode
        self._pos = 0
        self._depth = 0
        self._closing_paren = _match_parentheses(tokens)

    # -- helpers ----------------------------------------------------------

    def _peek(self, offset: int = 0) -> _Token:
        index = min(self._pos + offset, len(self._tokens) - 1)
        return self._tokens[index]

    def _advance(self) -> _Token:
        token = self._tokens[self._pos]
        if token.kind != "EOF":
            self._pos += 1
        return token

    def _accept(self, kind: str) -> _Token | None:
        if self._peek().kind == kind:
            return self._advance()
        return None

    def _expect(self, kind: str) -> _Token:
        token = self._peek()
        if token.kind != kind:
            raise TypeExpressionError(
                f"Expected {kind!r} but found {token.value or 'end of input'!r}",
                token.pos,
            )
        return self._advance()

    def _error(self, token: _Token) -> TypeExpressionError:
        if token.kind == "EOF":
            return TypeExpressionError("Unexpected end of input", token.pos)
        return TypeExpressionError(f"Unexpected token {token.value!r}", token.pos)

    @property
    def _typescript(self) -> bool:
        return self._mode == "typescript"

    def _starts_type(self, token: _Token) -> bool:
        return token.kind not in _TYPE_END_KINDS

    @contextmanager
    def _nested(self) -> Iterator[None]:
        if self._depth >= MAX_NESTING:
            raise TypeExpressionError(
                f"Type expression nested deeper than {MAX_NESTING} levels", self._peek().pos,
            )
        self._depth += 1
        try:
            yield
        finally:
            self._depth -= 1

    def _is_arrow_function(self) -> bool:
        closing = self._closing_paren.get(self._pos)
        return closing is not None and self._tokens[closing + 1].kind == "ARROW"

    # -- grammar ----------------------------------------------------------

    def parse(self) -> TypeNode:
        if self._peek().kind == "EOF":
            raise TypeExpressionError("Empty type expression", 0)
        node = self._parse_type()
        token = self._peek()
        if token.kind != "EOF":
            raise self._error(token)
        return node

    def _parse_type(self) -> TypeNode:
        with self._nested():
            return self._parse_union()

    def _parse_union(self) -> TypeNode:
        first = self._parse_intersection()
        if self._peek().kind != "|":
            return first
        elements = [first]
        while self._accept("|"):
            elements.append(self._parse_intersection())
        return TypeUnion(elements=elements)

    def _parse_intersection(self) -> TypeNode:
        first = self._parse_prefix()
        if not self._typescript or self._peek().kind != "&":
            return first
        elements = [first]
        while self._accept("&"):
            elements.append(self._parse_prefix())
        return TypeIntersection(elements=elements)

    def _parse_prefix(self) -> TypeNode:
        token = self._peek()
        if token.kind == "?":
            self._advance()
            if not self._starts_type(self._peek()):
                return self._parse_postfix(TypeUnknown())
            with self._nested():
                return TypeNullable(element=self._parse_prefix(), position="prefix")
        if token.kind == "!":
            self._advance()
            with self._nested():
                return TypeNotNullable(element=self._parse_prefix(), position="prefix")
        if token.kind == "ELLIPSIS":
            self._advance()
            if not self._starts_type(self._peek()):
                return TypeVariadic(element=None, position=None)
            with self._nested():
                return TypeVariadic(element=self._parse_prefix(), position="prefix")
        if (
            self._typescript
            and token.kind == "NAME"
            and token.value in ("typeof", "keyof")
            and self._starts_type(self._peek(1))
        ):
            self._advance()
            with self._nested():
                element = self._parse_prefix()
            if token.value == "typeof":
                return TypeTypeof(element=element)
            return TypeKeyof(element=element)
        return self._parse_postfix(self._parse_primary())

    def _parse_postfix(self, node: TypeNode) -> TypeNode:
        while True:
            token = self._peek()
            if token.kind == "[" and self._peek(1).kind == "]":
                self._advance()
                self._advance()
                node = TypeGeneric(left=TypeName(value="Array"), elements=[node], brackets="square")
            elif token.kind == "<":
                self._advance()
                node = TypeGeneric(left=node, elements=self._parse_type_args(), brackets="angle")
            elif token.kind == "." and self._peek(1).kind == "<":
                self._advance()
                self._advance()
                node = TypeGeneric(
                    left=node, elements=self._parse_type_args(), brackets="angle", dot=True,
                )
            elif token.kind == "?" and not isinstance(node, TypeUnknown):
                self._advance()
                node = TypeNullable(element=node, position="suffix")
            elif token.kind == "!":
                self._advance()
                node = TypeNotNullable(element=node, position="suffix")
            elif token.kind == "=" and not self._typescript:
                self._advance()
                node = TypeOptional(element=node, position="suffix")
            else:
                return node

    def _parse_type_args(self) -> list[TypeNode]:
        args = [self._parse_type()]
        while self._accept(","):
            args.append(self._parse_type())
        self._expect(">")
        return args

    def _parse_primary(self) -> TypeNode:
        token = self._peek()
        kind = token.kind
        if kind == "*":
            self._advance()
            return TypeAny()
        if kind == "STRING":
            self._advance()
            return TypeStringValue(value=_unquote(token.value), quote=token.value[0])
        if kind == "NUMBER":
            self._advance()
            return TypeNumber(value=token.value)
        if kind == "(":
            return self._parse_parenthesis_or_arrow()
        if kind == "{":
            return self._parse_record()
        if kind == "[" and self._typescript:
            return self._parse_tuple()
        if kind == "NAME":
            if token.value == "function" and self._peek(1).kind == "(":
                return self._parse_function()
            self._advance()
            if token.value == "null":
                return TypeNull()
            if token.value == "undefined":
                return TypeUndefined()
            return TypeName(value=token.value)
        raise self._error(token)

    def _parse_parenthesis_or_arrow(self) -> TypeNode:
        if self._typescript and self._is_arrow_function():
            return self._parse_arrow_function()
        self._expect("(")
        element = self._parse_type()
        self._expect(")")
        return TypeParenthesis(element=element)

    def _parse_parameters(self) -> list[TypeNode]:
        self._expect("(")
        parameters: list[TypeNode] = []
        if self._accept(")"):
            return parameters
        while True:
            parameters.append(self._parse_parameter())
            if self._accept(")"):
                return parameters
            self._expect(",")

    def _parse_parameter(self) -> TypeNode:
        variadic = False
        offset = 0
        if self._peek().kind == "ELLIPSIS":
            variadic = True
            offset = 1
        name = self._peek(offset)
        after = self._peek(offset + 1)
        optional = after.kind == "?" and self._peek(offset + 2).kind == ":"
        if name.kind == "NAME" and (after.kind == ":" or optional):
            for _ in range(offset + (3 if optional else 2)):
                self._advance()
            return TypeKeyValue(
                key=name.value, right=self._parse_type(), optional=optional, variadic=variadic,
            )
        return self._parse_type()

    def _parse_arrow_function(self) -> TypeNode:
        parameters = self._parse_parameters()
        self._expect("ARROW")
        return TypeFunction(parameters=parameters, return_type=self._parse_type(), arrow=True)

    def _parse_function(self) -> TypeNode:
        self._expect("NAME")
        parameters = self._parse_parameters()
        return_type = None
        if self._accept(":"):
            return_type = self._parse_prefix()
        return TypeFunction(parameters=parameters, return_type=return_type, arrow=False)

    def _parse_record(self) -> TypeNode:
        self._expect("{")
        fields: list[TypeObjectField] = []
        separator = ","
        if self._accept("}"):
            return TypeObject(elements=fields)
        while True:
            fields.append(self._parse_record_field())
            token = self._peek()
            if token.kind in (",", ";"):
                separator = token.kind
                self._advance()
                if self._accept("}"):
                    break
                continue
            self._expect("}")
            break
        return TypeObject(elements=fields, separator=separator)

    def _parse_record_field(self) -> TypeObjectField:
        token = self._peek()
        quote = None
        if token.kind == "STRING":
            key = _unquote(token.value)
            quote = token.value[0]
        elif token.kind in ("NAME", "NUMBER"):
            key = token.value
        else:
            raise self._error(token)
        self._advance()
        optional = self._accept("?") is not None
        right = None
        if self._accept(":"):
            right = self._parse_type()
        return TypeObjectField(key=key, right=right, optional=optional, quote=quote)

    def _parse_tuple(self) -> TypeNode:
        self._expect("[")
        elements: list[TypeNode] = []
        if self._accept("]"):
            return TypeTuple(elements=elements)
        elements.append(self._parse_type())
        while self._accept(","):
            elements.append(self._parse_type())
        self._expect("]")
        return TypeTuple(elements=elements)


def _match_parentheses(tokens: list[_Token]) -> dict[int, int]:
    """Map the index of each balanced ``(`` token to its ``)``."""

    closing: dict[int, int] = {}
    opened: list[int] = []
    for index, token in enumerate(tokens):
        if token.kind == "(":
            opened.append(index)
        elif token.kind == ")" and opened:
            closing[opened.pop()] = index
    return closing


def _unquote(literal: str) -> str:
    return literal[1:-1]


def parse_type(text: str, mode: ParseMode = "typescript") -> TypeNode:
    """Parse a type expression (without its enclosing braces).

    Raises ``TypeExpressionError`` on malformed input, including empty text
    and types nested deeper than ``MAX_NESTING``.
    """

    if mode not in PARSE_MODES:
        raise ValueError(f"Unknown parse mode {mode!r}; expected one of {PARSE_MODES}")
    return _Parser(tokenize_type(text), mode).parse()
