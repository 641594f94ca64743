"""Per-physical-line tokenizer for documentation comments.

Each line of a ``/** ... */`` block is split into raw fields that together
reproduce the line exactly::

    start + delimiter + post_delimiter + tag + post_tag + type + post_type
          + name + post_name + description + end + line_end

Only ``start``, ``delimiter``, ``post_delimiter``, ``description``, ``end``
and ``line_end`` are filled here; the spec tokenizers split ``description``
further into tag/type/name fields.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class Markers:
    """Comment delimiters recognized by the line tokenizer."""

    start: str = "/**"
    nostart: str = "/***"
    delim: str = "*"
    end: str = "*/"


DEFAULT_MARKERS = Markers()

_LEADING_SPACE_RE = re.compile(r"^\s+")


@dataclass(slots=True)
class LineTokens:
    """Raw fields of one physical comment line."""

    start: str = ""
    delimiter: str = ""
    post_delimiter: str = ""
    tag: str = ""
    post_tag: str = ""
    name: str = ""
    post_name: str = ""
    type: str = ""
    post_type: str = ""
    description: str = ""
    end: str = ""
    line_end: str = ""

    def render(self) -> str:
        return "".join((
            self.start,
            self.delimiter,
            self.post_delimiter,
            self.tag,
            self.post_tag,
            self.type,
            self.post_type,
            self.name,
            self.post_name,
            self.description,
            self.end,
            self.line_end,
        ))


@dataclass(slots=True)
class SourceLine:
    """A physical line: 0-based number, original text and its tokens."""

    number: int
    source: str
    tokens: LineTokens = field(default_factory=LineTokens)


def split_space(source: str) -> tuple[str, str]:
    match = _LEADING_SPACE_RE.match(source)
    if match is None:
        return "", source
    return source[:match.end()], source[match.end():]


def split_cr(source: str) -> tuple[str, str]:
    if source.endswith("\r"):
        return "\r", source[:-1]
    return "", source


def split_lines(source: str) -> list[str]:
    return source.split("\n")


def tokenize_line(
    number: int,
    source: str,
    *,
    is_first: bool,
    markers: Markers = DEFAULT_MARKERS,
) -> SourceLine | None:
    """Tokenize one line; returns ``None`` for a first line without an opener."""

    tokens = LineTokens()
    tokens.line_end, rest = split_cr(source)
    tokens.start, rest = split_space(rest)

    if is_first:
        if not rest.startswith(markers.start) or rest.startswith(markers.nostart):
            return None
        tokens.delimiter = markers.start
        rest = rest[len(markers.start):]
        tokens.post_delimiter, rest = split_space(rest)

    is_closed = rest.rstrip().endswith(markers.end)

    if (
        tokens.delimiter == ""
        and rest.startswith(markers.delim)
        and not rest.startswith(markers.end)
    ):
        tokens.delimiter = markers.delim
        rest = rest[len(markers.delim):]
        tokens.post_delimiter, rest = split_space(rest)

    if is_closed:
        trimmed = rest.rstrip()
        tokens.end = rest[len(trimmed) - len(markers.end):]
        rest = trimmed[:-len(markers.end)]

    tokens.description = rest
    return SourceLine(number=number, source=source, tokens=tokens)


def parse_source(
    text: str,
    *,
    start_line: int = 0,
    markers: Markers = DEFAULT_MARKERS,
) -> list[SourceLine]:
    """Tokenize the lines of the first comment block in ``text``.

    Lines before the opener are skipped; tokenizing stops at the first line
    carrying the closing marker. An unterminated block yields every line up to
    the end of input.
    """

    lines: list[SourceLine] = []
    opened = False
    for offset, raw in enumerate(split_lines(text)):
        number = start_line + offset
        line = tokenize_line(number, raw, is_first=not opened, markers=markers)
        if line is None:
            continue
        opened = True
        lines.append(line)
        if line.tokens.end:
            break
    return lines
