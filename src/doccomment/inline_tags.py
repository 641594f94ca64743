"""Inline tag extraction from description text.

Recognizes the two inline reference forms::

    [display text]{@link target}
    {@link target}  {@link target|display text}  {@link target display text}

Two separate patterns are scanned instead of one combined pattern: a single
pattern with an optional leading bracket group backtracks exponentially on
long runs of nested braces and brackets.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Literal, TypeAlias


InlineTagFormat: TypeAlias = Literal["pipe", "plain", "prefix", "space"]

INLINE_TAG_FORMATS: tuple[InlineTagFormat, ...] = ("pipe", "plain", "prefix", "space")

_PREFIXED_TEXT_RE = re.compile(
    r"\[(?P<text>[^\]]+)\]\{@(?P<tag>[^}\s]+)\s?(?P<namepath>[^}\s|]*)\}",
)
# Negative lookbehind on "]" keeps the prefixed form from matching twice.
_SUFFIXED_TEXT_RE = re.compile(
    r"(?<!\])\{@(?P<tag>[^}\s]+)\s?(?P<namepath>[^}\s|]*)\s*(?P<separator>[\s|])?\s*(?P<text>[^}]*)\}",
)


@dataclass(frozen=True, slots=True)
class InlineTagMatch:
    """One inline tag found in a description, with its character span."""

    tag: str
    namepath_or_url: str
    text: str
    format: InlineTagFormat
    start: int
    end: int

    def __post_init__(self) -> None:
        if self.format not in INLINE_TAG_FORMATS:
            raise ValueError(f"Unknown inline tag format: {self.format!r}")
        if self.start < 0 or self.end <= self.start:
            raise ValueError(f"Invalid inline tag span: {self.start}..{self.end}")


def _determine_format(match: re.Match[str]) -> InlineTagFormat:
    text = match.group("text")
    if match.re is _PREFIXED_TEXT_RE and match.end("text") < match.start("tag"):
        return "prefix"
    if not text:
        return "plain"
    if match.groupdict().get("separator") == "|":
        return "pipe"
    return "space"


def extract_inline_tags(description: str) -> list[InlineTagMatch]:
    """Return the inline tags in ``description`` ordered by source offset."""

    if "{@" not in description:
        return []
    matches = [
        *_PREFIXED_TEXT_RE.finditer(description),
        *_SUFFIXED_TEXT_RE.finditer(description),
    ]
    result = [
        InlineTagMatch(
            tag=match.group("tag"),
            namepath_or_url=match.group("namepath"),
            text=match.group("text") or "",
            format=_determine_format(match),
            start=match.start(),
            end=match.end(),
        )
        for match in matches
    ]
    result.sort(key=lambda row: (row.start, row.end))
    return result


def format_inline_tag(
    tag: str, namepath_or_url: str, text: str, format: InlineTagFormat,
) -> str:
    """Render an inline tag back into its source form."""

    if format == "pipe":
        return f"{{@{tag} {namepath_or_url}|{text}}}"
    if format == "plain":
        return f"{{@{tag} {namepath_or_url}}}"
    if format == "prefix":
        return f"[{text}]{{@{tag} {namepath_or_url}}}"
    if format == "space":
        return f"{{@{tag} {namepath_or_url} {text}}}"
    raise ValueError(f"Unknown inline tag format: {format!r}")
