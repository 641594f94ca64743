"""Locate the documentation comment attached to a declaration.

Source is parsed with tree-sitter (JavaScript, TypeScript or TSX grammars).
A declaration node is first reduced to the node a comment would precede (an
``export`` wrapper, or the statement holding a function or class expression);
the lookup then steps over decorators and ``//`` comments to the nearest
block comment and applies the ``[min_lines, max_lines]`` window.
"""

from __future__ import annotations

import functools
import logging
import re
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Literal, TypeAlias

import tree_sitter_javascript
import tree_sitter_typescript
from tree_sitter import Language, Node, Parser, Tree

from doccomment.tree_builder import parse_doc_comment
from doccomment.tree_types import JsdocBlock
from doccomment.type_expr import ParseMode


log = logging.getLogger(__name__)

SourceLanguage: TypeAlias = Literal["javascript", "typescript", "tsx"]

SOURCE_LANGUAGES: tuple[str, ...] = ("javascript", "typescript", "tsx")

_DOC_VALUE_RE = re.compile(r"^\*\s")

# Declarations that are documented through an enclosing ``export``.
_EXPORTABLE_KINDS = frozenset({
    "class_declaration",
    "abstract_class_declaration",
    "function_declaration",
    "generator_function_declaration",
    "interface_declaration",
    "type_alias_declaration",
    "enum_declaration",
})
_EXPRESSION_KINDS = frozenset({
    "arrow_function",
    "function",
    "function_expression",
    "generator_function",
    "class",
    "object",
})
_INVOKED_KINDS = frozenset({"call_expression", "new_expression"})
# Statements and members a function or class expression borrows its comment from.
_COMMENT_HOLDER_KINDS = frozenset({
    "assignment_pattern",
    "lexical_declaration",
    "variable_declaration",
    "expression_statement",
    "method_definition",
    "pair",
    "public_field_definition",
    "field_definition",
    "export_statement",
    "return_statement",
})


@dataclass(frozen=True, slots=True)
class CommentToken:
    """A comment in source text.

    ``start``/``end`` are byte offsets into the UTF-8 source; lines are
    1-based and ``start_column`` is a 0-based byte column.
    """

    kind: Literal["Block", "Line"]
    value: str
    start: int
    end: int
    start_line: int
    end_line: int
    start_column: int

    @property
    def is_doc_comment(self) -> bool:
        return self.kind == "Block" and bool(_DOC_VALUE_RE.match(self.value))


@functools.lru_cache(maxsize=None)
def get_parser(language: SourceLanguage = "typescript") -> Parser:
    """Return a cached tree-sitter parser for ``language``."""

    match language:
        case "javascript":
            grammar = tree_sitter_javascript.language()
        case "typescript":
            grammar = tree_sitter_typescript.language_typescript()
        case "tsx":
            grammar = tree_sitter_typescript.language_tsx()
        case _:
            raise ValueError(
                f"Unknown source language {language!r}; expected one of {SOURCE_LANGUAGES}",
            )
    return Parser(Language(grammar))


def parse_program(source: str | bytes, *, language: SourceLanguage = "typescript") -> Tree:
    data = source.encode("utf-8") if isinstance(source, str) else source
    return get_parser(language).parse(data)


def _is_comment(node: Node) -> bool:
    return node.type == "comment"


def to_comment_token(node: Node) -> CommentToken:
    """Convert a tree-sitter ``comment`` node."""

    text = node.text.decode("utf-8")
    if text.startswith("/*"):
        kind: Literal["Block", "Line"] = "Block"
        value = text[2:-2]
    else:
        kind = "Line"
        value = text[2:]
    return CommentToken(
        kind=kind,
        value=value,
        start=node.start_byte,
        end=node.end_byte,
        start_line=node.start_point.row + 1,
        end_line=node.end_point.row + 1,
        start_column=node.start_point.column,
    )


def iter_comment_nodes(tree: Tree) -> list[Node]:
    comments: list[Node] = []
    stack = [tree.root_node]
    while stack:
        node = stack.pop()
        if _is_comment(node):
            comments.append(node)
        stack.extend(reversed(node.children))
    return comments


def scan_comments(
    source: str | bytes, *, language: SourceLanguage = "typescript",
) -> list[CommentToken]:
    """Return every block and line comment in ``source``, in order."""

    tree = parse_program(source, language=language)
    return [to_comment_token(node) for node in iter_comment_nodes(tree)]


# ---------------------------------------------------------------------------
# Node navigation
# ---------------------------------------------------------------------------


def token_before(node: Node) -> Node | None:
    """Return the leaf (token or comment) that precedes ``node`` in the source."""

    current: Node | None = node
    while current is not None:
        sibling = current.prev_sibling
        if sibling is not None:
            while sibling.child_count:
                sibling = sibling.children[-1]
            return sibling
        current = current.parent
    return None


def get_decorator(node: Node) -> Node | None:
    """Return the first decorator applied to ``node``.

    Decorators are either leading children of the node or, for class
    members in TypeScript, siblings right before it.
    """

    first = None
    sibling = node.prev_sibling
    while sibling is not None and sibling.type == "decorator":
        first = sibling
        sibling = sibling.prev_sibling
    if first is not None:
        return first
    for child in node.children:
        if child.type == "decorator":
            return child
    return None


def declaration_at_line(tree: Tree, line: int) -> Node | None:
    """Return the outermost node starting at the first token of ``line`` (1-based)."""

    root = tree.root_node
    if not 1 <= line <= root.end_point.row + 1:
        raise ValueError(f"Line {line} is outside the source")
    node = next(_row_leaves(root, line - 1), None)
    if node is None:
        return None
    while node.parent is not None and node.parent.type != "program":
        parent = node.parent
        if parent.start_point == node.start_point or _follows_decorators(node):
            node = parent
            continue
        break
    return node


def _row_leaves(node: Node, row: int) -> Iterator[Node]:
    # Leaves starting on ``row``, in source order.
    if node.start_point.row > row or node.end_point.row < row:
        return
    if not node.child_count:
        if node.start_point.row == row:
            yield node
        return
    for child in node.children:
        yield from _row_leaves(child, row)


def _follows_decorators(node: Node) -> bool:
    seen = False
    sibling = node.prev_sibling
    while sibling is not None:
        if sibling.type == "decorator":
            seen = True
        elif not _is_comment(sibling):
            return False
        sibling = sibling.prev_sibling
    return seen


def _is_invoked(node: Node) -> bool:
    # Callee or argument of a call or ``new``.
    parent = node.parent
    if parent is not None and parent.type == "arguments":
        parent = parent.parent
    return parent is not None and parent.type in _INVOKED_KINDS


def reduce_node(node: Node) -> Node:
    """Return the node whose leading comment documents ``node``."""

    parent = node.parent
    if parent is None:
        return node
    if node.type in _EXPORTABLE_KINDS:
        return parent if parent.type == "export_statement" else node
    if node.type not in _EXPRESSION_KINDS or _is_invoked(node):
        return node

    before = token_before(node)
    while before is not None and before.type == "(":
        before = token_before(before)
    if before is not None and _is_comment(before):
        return node

    holder: Node | None = parent
    while holder is not None:
        previous = token_before(holder)
        if (
            (previous is not None and _is_comment(previous))
            or "function" in holder.type
            or holder.type in _COMMENT_HOLDER_KINDS
        ):
            break
        holder = holder.parent
    if holder is None or holder.type in ("function_declaration", "program"):
        return node
    if holder.parent is not None and holder.parent.type == "export_statement":
        return holder.parent
    return holder


def find_doc_comment(
    node: Node,
    *,
    min_lines: int = 0,
    max_lines: int = 1,
) -> CommentToken | None:
    """Return the ``/** */`` comment documenting ``node``.

    Walks back from ``node`` (or its first decorator) over ``//`` comments.
    The first block comment reached is the answer if it is a documentation
    comment and the number of lines between its end and the node that
    follows it lies in ``[min_lines, max_lines]``.
    """

    if min_lines < 0 or max_lines < min_lines:
        raise ValueError(f"Invalid line window: min_lines={min_lines}, max_lines={max_lines}")

    current = node
    while True:
        if not _is_comment(current):
            decorator = get_decorator(current)
            if decorator is not None:
                current = decorator
        before = token_before(current)
        if before is not None and before.type == "(":
            before = token_before(before)
        if before is None or not _is_comment(before):
            log.debug("No comment before %s at line %d", node.type, node.start_point.row + 1)
            return None
        token = to_comment_token(before)
        if token.kind == "Line":
            current = before
            continue
        break

    gap = current.start_point.row + 1 - token.end_line
    if token.is_doc_comment and min_lines <= gap <= max_lines:
        return token
    return None


def get_jsdoc_comment(
    node: Node, *, min_lines: int = 0, max_lines: int = 1,
) -> CommentToken | None:
    """Reduce ``node`` to its documented form and find its comment."""

    return find_doc_comment(reduce_node(node), min_lines=min_lines, max_lines=max_lines)


def get_doc_comment_block(
    source: str,
    declaration_line: int,
    *,
    language: SourceLanguage = "typescript",
    min_lines: int = 0,
    max_lines: int = 1,
    mode: ParseMode = "typescript",
    throw_on_type_parsing_errors: bool = False,
) -> JsdocBlock | None:
    """Find and parse the documentation comment for the declaration on a line."""

    tree = parse_program(source, language=language)
    node = declaration_at_line(tree, declaration_line)
    if node is None:
        log.debug("No declaration on line %d", declaration_line)
        return None
    token = get_jsdoc_comment(node, min_lines=min_lines, max_lines=max_lines)
    if token is None:
        return None
    line = source.encode("utf-8").split(b"\n")[token.start_line - 1]
    prefix = line[:token.start_column].decode("utf-8")
    indent = prefix if not prefix.strip() else ""
    return parse_doc_comment(
        token.value,
        indent,
        mode=mode,
        throw_on_type_parsing_errors=throw_on_type_parsing_errors,
    )
