"""Fold tokenized comment lines into a ``JsdocBlock`` tree.

The fold walks physical lines once, in order. Each line that starts on a new
physical line becomes exactly one node with ``starts_line`` set and its own
formatting fields (a ``JsdocTag``, a continuation ``JsdocTypeLine`` or a
``JsdocDescriptionLine``); content sharing a line with an earlier node (the
opener, a tag header or a type line) has ``starts_line`` unset and empty
formatting fields. ``doccomment.stringify`` puts line breaks back from the flag,
so lines without a leading ``*`` and blank lines survive a round trip.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from doccomment.comment_parser import ParsedComment, parse_comment
from doccomment.errors import InlineTagAlignmentError, TypeExpressionError, TypeParsingError
from doccomment.inline_tags import InlineTagMatch, extract_inline_tags
from doccomment.source_lines import LineTokens, SourceLine
from doccomment.tree_types import (
    JsdocBlock,
    JsdocDescriptionLine,
    JsdocInlineTag,
    JsdocTag,
    JsdocTypeLine,
)
from doccomment.type_expr import PARSE_MODES, ParseMode, TypeNode, parse_type


log = logging.getLogger(__name__)


class TypeParser(Protocol):
    def parse(self, raw_type: str, mode: ParseMode) -> TypeNode: ...


class DefaultTypeParser:
    """``TypeParser`` backed by ``doccomment.type_expr.parse_type``."""

    def parse(self, raw_type: str, mode: ParseMode) -> TypeNode:
        return parse_type(raw_type, mode)


@dataclass(frozen=True, slots=True)
class BuildOptions:
    """Tree build settings."""

    mode: ParseMode = "typescript"
    throw_on_type_parsing_errors: bool = False

    def __post_init__(self) -> None:
        if self.mode not in PARSE_MODES:
            raise ValueError(f"Unknown parse mode {self.mode!r}; expected one of {PARSE_MODES}")


@dataclass(frozen=True, slots=True)
class InlineTagLists:
    """Precomputed inline tags: the block's and one list per tag, in tag order."""

    block: list[InlineTagMatch]
    tags: list[list[InlineTagMatch]]

    @classmethod
    def from_parsed(cls, parsed: ParsedComment) -> InlineTagLists:
        return cls(
            block=list(parsed.inline_tags),
            tags=[list(spec.inline_tags) for spec in parsed.tags],
        )


class FoldState(Enum):
    IN_BLOCK_DESCRIPTION = "in_block_description"
    IN_TAG = "in_tag"
    CLOSED = "closed"


def strip_encapsulating_brackets(raw_type: str) -> str:
    """Remove one leading ``{`` and one trailing ``}``."""

    if raw_type.startswith("{"):
        raw_type = raw_type[1:]
    if raw_type.endswith("}"):
        raw_type = raw_type[:-1]
    return raw_type


def to_inline_tag_node(match: InlineTagMatch) -> JsdocInlineTag:
    return JsdocInlineTag(
        tag=match.tag,
        namepath_or_url=match.namepath_or_url,
        text=match.text,
        format=match.format,
    )


def join_description_lines(lines: list[JsdocDescriptionLine]) -> str:
    """Newline-join line descriptions, dropping leading and trailing blank lines."""

    return "\n".join(line.description for line in lines).strip("\n")


class _TreeFold:
    """Single-pass fold state for one comment."""

    def __init__(
        self,
        lines: list[SourceLine],
        *,
        options: BuildOptions,
        type_parser: TypeParser,
        inline_tags: InlineTagLists | None,
    ) -> None:
        self._lines = lines
        self._options = options
        self._type_parser = type_parser
        self._inline_tags = inline_tags
        self._state = FoldState.IN_BLOCK_DESCRIPTION
        self._tags: list[JsdocTag] = []
        self._first_marker_line: int | None = None
        self._block = self._seed_block()

    # -- state ------------------------------------------------------------

    @property
    def _current_tag(self) -> JsdocTag | None:
        if self._state is FoldState.IN_TAG:
            return self._tags[-1]
        if self._state is FoldState.CLOSED and self._tags:
            return self._tags[-1]
        return None

    def _seed_block(self) -> JsdocBlock:
        if not self._lines:
            return JsdocBlock(delimiter="", terminal="")
        tokens = self._lines[0].tokens
        return JsdocBlock(
            delimiter=tokens.delimiter,
            initial=tokens.start,
            post_delimiter=tokens.post_delimiter,
            terminal=tokens.end,
            line_end=tokens.line_end,
            end_line=len(self._lines) - 1,
        )

    # -- fold -------------------------------------------------------------

    def run(self) -> JsdocBlock:
        for index, line in enumerate(self._lines):
            self._fold_line(index, line.tokens)
        if self._state is FoldState.IN_TAG:
            # Unterminated comment: the last tag is still complete.
            self._finalize_tag(self._tags[-1])
        block = self._block
        block.description = join_description_lines(block.description_lines)
        if self._inline_tags is not None:
            block.inline_tags = [to_inline_tag_node(row) for row in self._inline_tags.block]
        else:
            block.inline_tags = [
                to_inline_tag_node(row) for row in extract_inline_tags(block.description)
            ]
        block.last_description_line = self._first_marker_line
        block.tags = self._tags
        return block

    def _fold_line(self, index: int, tokens: LineTokens) -> None:
        has_tag = bool(tokens.tag)
        has_end = bool(tokens.end)
        block = self._block

        if not has_tag and tokens.description and self._state is FoldState.IN_BLOCK_DESCRIPTION:
            if block.description_start_line is None:
                block.description_start_line = index
            block.description_end_line = index

        if (has_tag or has_end) and self._first_marker_line is None:
            self._first_marker_line = index

        if has_tag:
            if self._state is FoldState.IN_TAG:
                self._finalize_tag(self._tags[-1])
            self._open_tag(index, tokens)

        if tokens.type and self._current_tag is not None:
            self._add_type_line(index, tokens, self._current_tag)

        shares_line = index == 0 or has_tag or bool(tokens.type)
        carries_text = bool(tokens.description)
        if shares_line:
            if carries_text:
                self._add_description_line(tokens, inline=True)
        elif carries_text or not has_end:
            self._add_description_line(tokens, inline=False)
        elif has_end:
            block.terminal_initial = tokens.start + tokens.delimiter + tokens.post_delimiter

        if has_end:
            self._close(tokens, tag_content=has_tag or bool(tokens.type))

    def _open_tag(self, index: int, tokens: LineTokens) -> None:
        name, post_name, post_type = tokens.name, tokens.post_name, tokens.post_type
        if not name:
            for follower in self._lines[index + 1:]:
                if follower.tokens.tag:
                    break
                if follower.tokens.name:
                    name = follower.tokens.name
                    post_name = follower.tokens.post_name
                    post_type = follower.tokens.post_type
                    break

        own_line = index > 0
        tag = JsdocTag(
            tag=tokens.tag.removeprefix("@"),
            name=name,
            post_tag=tokens.post_tag,
            post_type=post_type,
            post_name=post_name,
            initial=tokens.start if own_line else "",
            delimiter=tokens.delimiter if own_line else "",
            post_delimiter=tokens.post_delimiter if own_line else "",
            starts_line=own_line,
        )
        if self._inline_tags is not None:
            position = len(self._tags)
            if position >= len(self._inline_tags.tags):
                raise InlineTagAlignmentError(
                    f"Inline tags supplied for {len(self._inline_tags.tags)} tag(s) "
                    f"but tag #{position + 1} (@{tag.tag}) was found",
                )
            tag.inline_tags = [to_inline_tag_node(row) for row in self._inline_tags.tags[position]]
        self._tags.append(tag)
        self._state = FoldState.IN_TAG

    def _add_type_line(self, index: int, tokens: LineTokens, tag: JsdocTag) -> None:
        if tag.type_lines:
            type_line = JsdocTypeLine(
                raw_type=tokens.type,
                initial=tokens.start,
                delimiter=tokens.delimiter,
                post_delimiter=tokens.post_delimiter,
                starts_line=True,
            )
        else:
            type_line = JsdocTypeLine(raw_type=tokens.type)
        tag.type_lines.append(type_line)
        tag.raw_type = f"{tag.raw_type}\n{tokens.type}" if tag.raw_type else tokens.type
        # The gap after the type is the one on the line where the type ends.
        tag.post_type = tokens.post_type

    def _add_description_line(self, tokens: LineTokens, *, inline: bool) -> None:
        if inline:
            line = JsdocDescriptionLine(description=tokens.description)
        else:
            line = JsdocDescriptionLine(
                description=tokens.description,
                initial=tokens.start,
                delimiter=tokens.delimiter,
                post_delimiter=tokens.post_delimiter,
                starts_line=True,
            )
        holder = self._current_tag or self._block
        holder.description_lines.append(line)

    def _close(self, tokens: LineTokens, *, tag_content: bool) -> None:
        block = self._block
        block.terminal = tokens.end
        tag = self._current_tag
        if tag is not None and (tag_content or tokens.description):
            block.has_preterminal_tag_description = 1
        elif tag is None and tokens.description:
            block.has_preterminal_description = 1
        if self._state is FoldState.IN_TAG:
            self._finalize_tag(tag)
        self._state = FoldState.CLOSED

    def _finalize_tag(self, tag: JsdocTag) -> None:
        tag.raw_type = strip_encapsulating_brackets(tag.raw_type)
        if tag.type_lines:
            first, last = tag.type_lines[0], tag.type_lines[-1]
            first.raw_type = first.raw_type.removeprefix("{")
            last.raw_type = last.raw_type.removesuffix("}")
        tag.parsed_type = self._parse_tag_type(tag)
        tag.description = join_description_lines(tag.description_lines)
        if self._inline_tags is None:
            tag.inline_tags = [
                to_inline_tag_node(row) for row in extract_inline_tags(tag.description)
            ]

    def _parse_tag_type(self, tag: JsdocTag) -> TypeNode | None:
        if not tag.raw_type:
            return None
        try:
            return self._type_parser.parse(tag.raw_type, self._options.mode)
        except TypeExpressionError as exc:
            if self._options.throw_on_type_parsing_errors:
                raise TypeParsingError(tag.tag, tag.raw_type, str(exc)) from exc
            log.debug("Type of @%s left unparsed: %s", tag.tag, exc)
            return None


def build_tree(
    payload: ParsedComment | list[SourceLine],
    *,
    mode: ParseMode = "typescript",
    throw_on_type_parsing_errors: bool = False,
    type_parser: TypeParser | None = None,
    inline_tags: InlineTagLists | None = None,
) -> JsdocBlock:
    """Build the comment tree from tokenized lines.

    Inline tags are extracted from each finalized description unless
    ``inline_tags`` supplies them; a supplied list must cover every tag.
    """

    options = BuildOptions(mode=mode, throw_on_type_parsing_errors=throw_on_type_parsing_errors)
    lines = payload.source if isinstance(payload, ParsedComment) else payload
    fold = _TreeFold(
        lines,
        options=options,
        type_parser=type_parser or DefaultTypeParser(),
        inline_tags=inline_tags,
    )
    return fold.run()


def parse_doc_comment(
    value: str,
    indent: str = "",
    *,
    mode: ParseMode = "typescript",
    throw_on_type_parsing_errors: bool = False,
) -> JsdocBlock:
    """Parse the inner text of a ``/** */`` comment straight into a tree."""

    return build_tree(
        parse_comment(value, indent),
        mode=mode,
        throw_on_type_parsing_errors=throw_on_type_parsing_errors,
    )
