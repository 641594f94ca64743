"""Comment text to tokenized lines and specs."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from doccomment.inline_tags import InlineTagMatch, extract_inline_tags
from doccomment.source_lines import DEFAULT_MARKERS, Markers, SourceLine, parse_source
from doccomment.tokenizers import (
    Problem,
    Spec,
    Tokenizer,
    get_tokenizers,
    join_description,
    tokenize_spec,
)


_TAG_LINE_RE = re.compile(r"^@\S+")
DEFAULT_FENCE = "```"


@dataclass(slots=True)
class ParsedComment:
    """Tokenized comment block: its lines, specs and inline tags."""

    source: list[SourceLine]
    description: str = ""
    tags: list[Spec] = field(default_factory=list)
    problems: list[Problem] = field(default_factory=list)
    inline_tags: list[InlineTagMatch] = field(default_factory=list)


def _is_fence_toggle(description: str, fence: str) -> bool:
    return len(description.split(fence)) % 2 == 0


def split_sections(lines: list[SourceLine], fence: str = DEFAULT_FENCE) -> list[list[SourceLine]]:
    """Split lines into the description section followed by one per tag.

    A line opens a new section when its description starts with ``@`` and it
    is not inside a fenced code sample.
    """

    sections: list[list[SourceLine]] = [[]]
    fenced = False
    for line in lines:
        if _TAG_LINE_RE.match(line.tokens.description) and not fenced:
            sections.append([line])
        else:
            sections[-1].append(line)
        if _is_fence_toggle(line.tokens.description, fence):
            fenced = not fenced
    return sections


def parse_inline_tags(parsed: ParsedComment) -> ParsedComment:
    """Fill ``inline_tags`` on the comment and on each of its specs."""

    parsed.inline_tags = extract_inline_tags(parsed.description)
    for spec in parsed.tags:
        spec.inline_tags = extract_inline_tags(spec.description)
    return parsed


def parse_lines(
    lines: list[SourceLine],
    *,
    tokenizers: list[Tokenizer] | None = None,
    fence: str = DEFAULT_FENCE,
    markers: Markers = DEFAULT_MARKERS,
) -> ParsedComment:
    """Tokenize already split source lines into a ``ParsedComment``."""

    pipeline = tokenizers if tokenizers is not None else get_tokenizers()
    sections = split_sections(lines, fence)
    specs = [tokenize_spec(section, pipeline) for section in sections[1:]]
    parsed = ParsedComment(
        source=lines,
        description=join_description(sections[0], "compact", markers),
        tags=specs,
        problems=[problem for spec in specs for problem in spec.problems],
    )
    return parse_inline_tags(parsed)


def parse_comment(
    value: str,
    indent: str = "",
    *,
    tokenizers: list[Tokenizer] | None = None,
) -> ParsedComment:
    """Parse the inner text of a block comment.

    ``value`` is the comment body without the surrounding ``/*`` and ``*/``
    (as reported by JavaScript parsers for ``Block`` comment tokens);
    ``indent`` is the whitespace preceding the comment on its first line.
    """

    lines = parse_source(f"{indent}/*{value}*/")
    return parse_lines(lines, tokenizers=tokenizers)
