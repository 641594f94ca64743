"""Comment tree node types, traversal keys and JSON serialization.

Every formatting field (``initial``, ``delimiter``, ``post_*``, ``line_end``,
``terminal``) holds source text verbatim. ``starts_line`` records whether a
line, type line or tag opens a new physical line; with the content fields
they let ``doccomment.stringify`` rebuild the comment exactly.
"""

from __future__ import annotations

import dataclasses
import re
from dataclasses import dataclass, field
from typing import Any, ClassVar, TypeAlias

import orjson

from doccomment.inline_tags import InlineTagFormat
from doccomment.type_expr import VISITOR_KEYS as TYPE_VISITOR_KEYS
from doccomment.type_expr import TypeNode


@dataclass(slots=True)
class JsdocDescriptionLine:
    """One physical line's share of a description."""

    kind: ClassVar[str] = "JsdocDescriptionLine"

    description: str = ""
    initial: str = ""
    delimiter: str = ""
    post_delimiter: str = ""
    starts_line: bool = False


@dataclass(slots=True)
class JsdocTypeLine:
    """One physical line's share of a (possibly multi-line) tag type."""

    kind: ClassVar[str] = "JsdocTypeLine"

    raw_type: str = ""
    initial: str = ""
    delimiter: str = ""
    post_delimiter: str = ""
    starts_line: bool = False


@dataclass(slots=True)
class JsdocInlineTag:
    kind: ClassVar[str] = "JsdocInlineTag"

    tag: str
    namepath_or_url: str
    text: str
    format: InlineTagFormat


@dataclass(slots=True)
class JsdocTag:
    """One ``@tag`` entry.

    ``raw_type`` is the newline-joined type text without its enclosing
    braces; ``parsed_type`` is ``None`` when the type is absent or failed to
    parse.
    """

    kind: ClassVar[str] = "JsdocTag"

    tag: str
    name: str = ""
    raw_type: str = ""
    parsed_type: TypeNode | None = None
    type_lines: list[JsdocTypeLine] = field(default_factory=list)
    description: str = ""
    description_lines: list[JsdocDescriptionLine] = field(default_factory=list)
    inline_tags: list[JsdocInlineTag] = field(default_factory=list)
    post_tag: str = ""
    post_type: str = ""
    post_name: str = ""
    initial: str = ""
    delimiter: str = ""
    post_delimiter: str = ""
    starts_line: bool = False


@dataclass(slots=True)
class JsdocBlock:
    """A whole documentation comment.

    ``terminal_initial`` holds the text before ``terminal`` when the closing
    mark sits alone on its line; ``None`` means one space plus ``initial``.
    """

    kind: ClassVar[str] = "JsdocBlock"

    delimiter: str = "/**"
    initial: str = ""
    post_delimiter: str = ""
    terminal: str = "*/"
    terminal_initial: str | None = None
    line_end: str = ""
    end_line: int = 0
    description: str = ""
    description_lines: list[JsdocDescriptionLine] = field(default_factory=list)
    tags: list[JsdocTag] = field(default_factory=list)
    inline_tags: list[JsdocInlineTag] = field(default_factory=list)
    description_start_line: int | None = None
    description_end_line: int | None = None
    last_description_line: int | None = None
    has_preterminal_description: int = 0
    has_preterminal_tag_description: int | None = None


JsdocNode: TypeAlias = JsdocBlock | JsdocTag | JsdocDescriptionLine | JsdocTypeLine | JsdocInlineTag


VISITOR_KEYS: dict[str, tuple[str, ...]] = {
    "JsdocBlock": ("description_lines", "tags", "inline_tags"),
    "JsdocDescriptionLine": (),
    "JsdocTypeLine": (),
    "JsdocTag": ("parsed_type", "type_lines", "description_lines", "inline_tags"),
    "JsdocInlineTag": (),
}

ALL_VISITOR_KEYS: dict[str, tuple[str, ...]] = {**VISITOR_KEYS, **TYPE_VISITOR_KEYS}


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------

_CAMEL_RE = re.compile(r"_([a-z])")

# Public ESTree names that plain camel-casing does not produce.
FIELD_ALIASES: dict[str, str] = {
    "namepath_or_url": "namepathOrURL",
}
FIELD_NAMES_BY_ALIAS: dict[str, str] = {alias: name for name, alias in FIELD_ALIASES.items()}


def to_camel_case(name: str) -> str:
    """``post_delimiter`` -> ``postDelimiter``; aliased fields keep their public name."""

    if name in FIELD_ALIASES:
        return FIELD_ALIASES[name]
    return _CAMEL_RE.sub(lambda match: match.group(1).upper(), name)


def tree_to_dict(node: Any) -> Any:
    """Serialize a comment or type-expression tree to an ESTree-style dict.

    Keys are camelCase and each node carries its kind under ``"type"``.
    """

    if isinstance(node, list):
        return [tree_to_dict(item) for item in node]
    if not dataclasses.is_dataclass(node) or isinstance(node, type):
        return node
    payload: dict[str, Any] = {"type": node.kind}
    for item in dataclasses.fields(node):
        payload[to_camel_case(item.name)] = tree_to_dict(getattr(node, item.name))
    return payload


def dumps_tree(node: Any, *, indent: bool = False) -> str:
    """Render ``tree_to_dict(node)`` as JSON text."""

    option = orjson.OPT_INDENT_2 if indent else 0
    return orjson.dumps(tree_to_dict(node), option=option).decode("utf-8")
