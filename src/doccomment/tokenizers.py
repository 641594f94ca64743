"""Spec tokenizers and the tokenization policy.

A *spec* is one ``@tag`` section of a comment: the tag line plus every
following line up to the next tag. The tokenizers run in order over a spec,
moving text out of ``tokens.description`` into the tag/type/name fields of
its lines and filling the spec-level summary values.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Literal, TypeAlias

from doccomment.inline_tags import InlineTagMatch
from doccomment.source_lines import DEFAULT_MARKERS, Markers, SourceLine, split_space


Spacing: TypeAlias = Literal["compact", "preserve"]


@dataclass(frozen=True, slots=True)
class Problem:
    """A tokenizer complaint about one spec."""

    code: str
    message: str
    line: int
    critical: bool = False


@dataclass(slots=True)
class Spec:
    """Tokenized ``@tag`` section."""

    source: list[SourceLine]
    tag: str = ""
    name: str = ""
    type: str = ""
    optional: bool = False
    default: str | None = None
    description: str = ""
    problems: list[Problem] = field(default_factory=list)
    inline_tags: list[InlineTagMatch] = field(default_factory=list)

    @property
    def has_critical_problem(self) -> bool:
        return bool(self.problems) and self.problems[-1].critical


Tokenizer: TypeAlias = Callable[[Spec], Spec]


DEFAULT_NO_TYPES: tuple[str, ...] = (
    "default",
    "defaultvalue",
    "description",
    "example",
    "file",
    "fileoverview",
    "license",
    "overview",
    "see",
    "summary",
)

DEFAULT_NO_NAMES: tuple[str, ...] = (
    "access",
    "author",
    "default",
    "defaultvalue",
    "description",
    "example",
    "exception",
    "file",
    "fileoverview",
    "kind",
    "license",
    "overview",
    "return",
    "returns",
    "since",
    "summary",
    "throws",
    "version",
    "variation",
)

_TAG_RE = re.compile(r"\s*(@(\S+))(\s*)")
_SEE_LINK_RE = re.compile(r"\{@link.+?\}")
_OPTIONAL_BRACKETS_RE = re.compile(r"^\[(?P<name>[^=]*)=[^\]]*\]")
_TEMPLATE_SPLIT_RE = re.compile(r"(?<![\s,])\s")
_TEMPLATE_REST_RE = re.compile(r"(\s*)([^\r]*)(\r)?")
_DEFAULT_EQUALS_RE = re.compile(r"=(?!>)")


def _problem(spec: Spec, code: str, message: str) -> Spec:
    spec.problems.append(
        Problem(code=code, message=message, line=spec.source[0].number, critical=True),
    )
    return spec


# ---------------------------------------------------------------------------
# Field-splitting primitives
# ---------------------------------------------------------------------------


def tag_tokenizer() -> Tokenizer:
    """Split ``@tag`` and the whitespace after it off the first line."""

    def tokenize(spec: Spec) -> Spec:
        tokens = spec.source[0].tokens
        match = _TAG_RE.match(tokens.description)
        if match is None:
            return _problem(spec, "spec:tag:prefix", 'tag should start with "@" symbol')
        tokens.tag = match.group(1)
        tokens.post_tag = match.group(3)
        tokens.description = tokens.description[match.end():]
        spec.tag = match.group(2)
        return spec

    return tokenize


def _join_type_parts(parts: list[str], spacing: Spacing) -> str:
    if spacing == "compact":
        return "".join(part.strip() for part in parts)
    return "\n".join(parts)


def type_tokenizer(spacing: Spacing = "compact") -> Tokenizer:
    """Split a curly-braced type, possibly spanning several lines."""

    def tokenize(spec: Spec) -> Spec:
        curlies = 0
        lines = []
        for index, line in enumerate(spec.source):
            tokens = line.tokens
            if index == 0 and not tokens.description.startswith("{"):
                return spec
            chunk = []
            for char in tokens.description:
                if char == "{":
                    curlies += 1
                elif char == "}":
                    curlies -= 1
                chunk.append(char)
                if curlies == 0:
                    break
            lines.append((tokens, "".join(chunk)))
            if curlies == 0:
                break

        if curlies != 0:
            return _problem(spec, "spec:type:unpaired-curlies", "unpaired curlies")

        parts: list[str] = []
        offset = len(lines[0][0].post_delimiter)
        for index, (tokens, type_text) in enumerate(lines):
            consumed = len(type_text)
            tokens.type = type_text
            if index > 0:
                # Indentation past the first line's alignment belongs to the type.
                tokens.type = tokens.post_delimiter[offset:] + type_text
                tokens.post_delimiter = tokens.post_delimiter[:offset]
            tokens.post_type, tokens.description = split_space(tokens.description[consumed:])
            parts.append(tokens.type)

        parts[0] = parts[0][1:]
        parts[-1] = parts[-1][:-1]
        spec.type = _join_type_parts(parts, spacing)
        return spec

    return tokenize


def _is_quoted(value: str | None) -> bool:
    return bool(value) and value.startswith('"') and value.endswith('"')


def _last_type_line(lines: list[SourceLine]) -> int:
    index = 0
    for position, line in enumerate(lines):
        if line.tokens.type:
            index = position
    return index


def name_tokenizer() -> Tokenizer:
    """Split the name (plain, quoted or ``[optional=default]``)."""

    def tokenize(spec: Spec) -> Spec:
        tokens = spec.source[_last_type_line(spec.source)].tokens
        source = tokens.description.lstrip()

        quoted_groups = source.split('"')
        if len(quoted_groups) > 1 and quoted_groups[0] == "" and len(quoted_groups) % 2 == 1:
            spec.name = quoted_groups[1]
            tokens.name = f'"{quoted_groups[1]}"'
            tokens.post_name, tokens.description = split_space(source[len(tokens.name):])
            return spec

        brackets = 0
        chars = []
        for char in source:
            if brackets == 0 and char.isspace():
                break
            if char == "[":
                brackets += 1
            elif char == "]":
                brackets -= 1
            chars.append(char)
        if brackets != 0:
            return _problem(spec, "spec:name:unpaired-brackets", "unpaired brackets")

        name_token = "".join(chars)
        name = name_token
        optional = False
        default: str | None = None
        if name.startswith("[") and name.endswith("]"):
            optional = True
            parts = name[1:-1].split("=")
            name = parts[0].strip()
            if len(parts) > 1:
                default = "=".join(parts[1:]).strip()
            if name == "":
                return _problem(spec, "spec:name:empty-name", "empty name")
            if default == "":
                return _problem(spec, "spec:name:empty-default", "empty default value")
            if default is not None and not _is_quoted(default) and _DEFAULT_EQUALS_RE.search(default):
                return _problem(spec, "spec:name:invalid-default", "invalid default value syntax")

        spec.optional = optional
        spec.name = name
        spec.default = default
        tokens.name = name_token
        tokens.post_name, tokens.description = split_space(source[len(name_token):])
        return spec

    return tokenize


def join_description(
    lines: list[SourceLine],
    spacing: Spacing = "compact",
    markers: Markers = DEFAULT_MARKERS,
) -> str:
    """Join the description fields of ``lines``.

    ``compact`` trims every line and joins the non-empty ones with a space;
    ``preserve`` keeps line breaks and the indentation past the delimiter.
    """

    if spacing == "compact":
        return " ".join(
            text for text in (line.tokens.description.strip() for line in lines) if text
        )
    if not lines:
        return ""
    if lines[0].tokens.description == "" and lines[0].tokens.delimiter == markers.start:
        lines = lines[1:]
    if lines:
        last = lines[-1]
        if last.tokens.description == "" and last.tokens.end.endswith(markers.end):
            lines = lines[:-1]
    lines = lines[_last_type_line(lines):]
    return "\n".join(
        (line.tokens.start if line.tokens.delimiter == "" else line.tokens.post_delimiter[1:])
        + line.tokens.description
        for line in lines
    )


def description_tokenizer(
    spacing: Spacing = "compact", markers: Markers = DEFAULT_MARKERS,
) -> Tokenizer:
    def tokenize(spec: Spec) -> Spec:
        spec.description = join_description(spec.source, spacing, markers)
        return spec

    return tokenize


# ---------------------------------------------------------------------------
# Policy
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class TokenizerSettings:
    """Which tags skip type and name tokenizing."""

    no_types: tuple[str, ...] = DEFAULT_NO_TYPES
    no_names: tuple[str, ...] = DEFAULT_NO_NAMES

    def __post_init__(self) -> None:
        for label, values in (("no_types", self.no_types), ("no_names", self.no_names)):
            if isinstance(values, str):
                raise ValueError(f"{label} must be a sequence of tag names, not a string")


def has_see_with_link(spec: Spec) -> bool:
    """True for a ``@see`` whose first line holds a ``{@link ...}``."""

    return spec.tag == "see" and bool(_SEE_LINK_RE.search(spec.source[0].source))


def _template_name_tokenizer(spec: Spec) -> Spec:
    tokens = spec.source[0].tokens
    remainder = tokens.description
    split = _TEMPLATE_SPLIT_RE.search(remainder)
    name = remainder if split is None else remainder[:split.start()]
    post_name = description = line_end = ""
    if split is not None:
        rest = _TEMPLATE_REST_RE.match(remainder[split.start():])
        post_name, description, line_end = rest.group(1), rest.group(2), rest.group(3) or ""

    # The raw token keeps the brackets so the line still renders verbatim.
    tokens.name = name
    optional = _OPTIONAL_BRACKETS_RE.match(name)
    if optional is not None:
        name = optional.group("name")
        spec.optional = True
    else:
        spec.optional = False

    spec.name = name
    tokens.post_name = post_name
    tokens.description = description
    tokens.line_end = line_end or tokens.line_end
    return spec


def _tag_names(values: Iterable[str]) -> tuple[str, ...]:
    # A bare string is passed through so TokenizerSettings can reject it.
    return values if isinstance(values, str) else tuple(values)  # type: ignore[return-value]


def get_tokenizers(
    *,
    no_types: Iterable[str] = DEFAULT_NO_TYPES,
    no_names: Iterable[str] = DEFAULT_NO_NAMES,
) -> list[Tokenizer]:
    """Return the ``[tag, type, name, description]`` tokenizer pipeline."""

    settings = TokenizerSettings(no_types=_tag_names(no_types), no_names=_tag_names(no_names))
    tokenize_tag = tag_tokenizer()
    tokenize_type = type_tokenizer("preserve")
    tokenize_name = name_tokenizer()
    tokenize_description = description_tokenizer("preserve")

    def tokenize_policy_type(spec: Spec) -> Spec:
        if spec.tag in settings.no_types:
            return spec
        return tokenize_type(spec)

    def tokenize_policy_name(spec: Spec) -> Spec:
        if spec.tag == "template":
            return _template_name_tokenizer(spec)
        if spec.tag in settings.no_names or has_see_with_link(spec):
            return spec
        return tokenize_name(spec)

    return [tokenize_tag, tokenize_policy_type, tokenize_policy_name, tokenize_description]


def tokenize_spec(source: list[SourceLine], tokenizers: list[Tokenizer]) -> Spec:
    """Run ``tokenizers`` over one section, stopping at a critical problem."""

    spec = Spec(source=source)
    for tokenize in tokenizers:
        spec = tokenize(spec)
        if spec.has_critical_problem:
            break
    return spec
