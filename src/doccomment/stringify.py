"""Comment tree back to source text.

Children are rendered first by walking ``ALL_VISITOR_KEYS``; each node kind
then concatenates its own formatting fields with the rendered children in a
fixed order. Type-expression nodes render as ``{<type>}`` through the type
printer, or as nothing when the raw type text is preferred.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, replace
from typing import Any, TypeAlias

from doccomment.errors import UnknownNodeKindError
from doccomment.inline_tags import format_inline_tag
from doccomment.tree_types import (
    ALL_VISITOR_KEYS,
    JsdocBlock,
    JsdocDescriptionLine,
    JsdocInlineTag,
    JsdocTag,
    JsdocTypeLine,
)
from doccomment.type_expr import TypeNode, is_type_node, stringify_type


TypePrinter: TypeAlias = Callable[[TypeNode], str]


@dataclass(frozen=True, slots=True)
class _RenderContext:
    prefer_raw_type: bool
    type_printer: TypePrinter
    line_end: str = ""

    @property
    def newline(self) -> str:
        return f"{self.line_end}\n"


def _join_lines(ctx: _RenderContext, nodes: list[Any], rendered: list[str]) -> str:
    """Join rendered line nodes, breaking before every node that starts a line."""

    parts = []
    for node, text in zip(nodes, rendered, strict=True):
        parts.append(ctx.newline + text if node.starts_line else text)
    return "".join(parts)


def _render_block(
    node: JsdocBlock,
    ctx: _RenderContext,
    description_lines: list[str],
    tags: list[str],
    inline_tags: list[str],
) -> str:
    body = _join_lines(
        ctx,
        [*node.description_lines, *node.tags],
        [*description_lines, *tags],
    )
    if node.end_line == 0 or node.has_preterminal_description or node.has_preterminal_tag_description:
        closing = node.terminal
    else:
        terminal_initial = node.terminal_initial
        if terminal_initial is None:
            terminal_initial = f" {node.initial}"
        closing = f"{ctx.newline}{terminal_initial}{node.terminal}"
    return f"{node.initial}{node.delimiter}{node.post_delimiter}{body}{closing}"


def _render_description_line(node: JsdocDescriptionLine, ctx: _RenderContext) -> str:
    return f"{node.initial}{node.delimiter}{node.post_delimiter}{node.description}"


def _render_type_line(node: JsdocTypeLine, ctx: _RenderContext) -> str:
    return f"{node.initial}{node.delimiter}{node.post_delimiter}{node.raw_type}"


def _render_inline_tag(node: JsdocInlineTag, ctx: _RenderContext) -> str:
    return format_inline_tag(node.tag, node.namepath_or_url, node.text, node.format)


def _render_tag(
    node: JsdocTag,
    ctx: _RenderContext,
    parsed_type: str | None,
    type_lines: list[str],
    description_lines: list[str],
    inline_tags: list[str],
) -> str:
    if ctx.prefer_raw_type or not parsed_type:
        type_text = "{" + _join_lines(ctx, node.type_lines, type_lines) + "}" if type_lines else ""
    else:
        type_text = parsed_type
    header = (
        f"{node.initial}{node.delimiter}{node.post_delimiter}"
        f"@{node.tag}{node.post_tag}{type_text}{node.post_type}{node.name}{node.post_name}"
    )
    body = _join_lines(ctx, node.description_lines, description_lines)
    return header + body


_RENDERERS: dict[str, Callable[..., str]] = {
    "JsdocBlock": _render_block,
    "JsdocDescriptionLine": _render_description_line,
    "JsdocTypeLine": _render_type_line,
    "JsdocInlineTag": _render_inline_tag,
    "JsdocTag": _render_tag,
}


def _render(node: Any, ctx: _RenderContext) -> str:
    kind = getattr(node, "kind", None)
    renderer = _RENDERERS.get(kind) if isinstance(kind, str) else None
    if renderer is not None:
        if kind == "JsdocBlock":
            ctx = replace(ctx, line_end=node.line_end)
        args: list[list[str] | str | None] = []
        for key in ALL_VISITOR_KEYS[kind]:
            child = getattr(node, key)
            if isinstance(child, list):
                args.append([_render(item, ctx) for item in child])
            elif child is None:
                args.append(None)
            else:
                args.append(_render(child, ctx))
        return renderer(node, ctx, *args)

    # Type nodes stay traversable; their text comes from the type printer.
    if is_type_node(node):
        return "" if ctx.prefer_raw_type else "{" + ctx.type_printer(node) + "}"
    raise UnknownNodeKindError(kind)


def stringify(
    node: Any,
    *,
    prefer_raw_type: bool = False,
    type_printer: TypePrinter = stringify_type,
) -> str:
    """Render a comment tree (or any node in it) back to text.

    A tag's type comes from ``parsed_type`` through ``type_printer`` unless
    ``prefer_raw_type`` is set or no parsed type exists, in which case the
    tag's ``type_lines`` are used.
    """

    ctx = _RenderContext(prefer_raw_type=prefer_raw_type, type_printer=type_printer)
    return _render(node, ctx)
