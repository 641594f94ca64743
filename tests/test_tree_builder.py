"""Tests for doccomment.tree_builder: folding lines into a JsdocBlock."""
from __future__ import annotations

import logging

import pytest

from doccomment.comment_parser import parse_comment, parse_lines
from doccomment.errors import InlineTagAlignmentError, TypeParsingError
from doccomment.source_lines import parse_source
from doccomment.tree_builder import (
    BuildOptions,
    InlineTagLists,
    build_tree,
    parse_doc_comment,
    strip_encapsulating_brackets,
)
from doccomment.tree_types import JsdocInlineTag
from doccomment.type_expr import TypeName, TypeUnion


MULTI_TAG = (
    "*\n"
    " * Adds numbers.\n"
    " *\n"
    " * See {@link Calculator}.\n"
    " * @param {number} a First operand.\n"
    " * @param {number} b Second operand\n"
    " *   spanning lines.\n"
    " * @returns {number} The sum.\n"
    " "
)

DEEP_TYPE = "Array<" * 1200 + "x" + ">" * 1200


class TestScenarios:
    def test_simple_param(self) -> None:
        block = parse_doc_comment("*\n * @param {string} x description\n ")
        (tag,) = block.tags
        assert tag.tag == "param"
        assert tag.name == "x"
        assert tag.raw_type == "string"
        assert tag.parsed_type == TypeName(value="string")
        assert tag.description == "description"

    def test_multiline_type(self) -> None:
        block = parse_doc_comment("*\n * @param {\n *   string|\n *   number\n * } x\n ")
        (tag,) = block.tags
        assert [line.raw_type for line in tag.type_lines] == ["", "  string|", "  number", ""]
        assert tag.raw_type == "\n  string|\n  number\n"
        assert tag.parsed_type == TypeUnion(
            elements=[TypeName(value="string"), TypeName(value="number")],
        )
        assert tag.name == "x"
        assert tag.post_type == " "

    def test_plain_inline_tag(self) -> None:
        block = parse_doc_comment("*\n * See {@link Foo}.\n ")
        assert block.description == "See {@link Foo}."
        assert block.inline_tags == [
            JsdocInlineTag(tag="link", namepath_or_url="Foo", text="", format="plain"),
        ]

    def test_prefix_inline_tag(self) -> None:
        block = parse_doc_comment("*\n * Read [see this]{@link Foo}\n ")
        (inline,) = block.inline_tags
        assert inline.format == "prefix"
        assert inline.text == "see this"

    def test_tag_description_on_terminator_line(self) -> None:
        block = parse_doc_comment("*\n * @returns value ")
        (tag,) = block.tags
        assert tag.tag == "returns"
        assert tag.description == "value "
        assert block.has_preterminal_tag_description == 1
        assert block.has_preterminal_description == 0
        assert block.terminal == "*/"

    @pytest.mark.parametrize("strict", [False, True])
    def test_empty_type_braces(self, strict: bool) -> None:
        block = parse_doc_comment("* @param {} x ", throw_on_type_parsing_errors=strict)
        (tag,) = block.tags
        assert tag.raw_type == ""
        assert tag.parsed_type is None


class TestBlockFields:
    def test_multi_tag_block(self) -> None:
        block = parse_doc_comment(MULTI_TAG)
        assert block.description == "Adds numbers.\n\nSee {@link Calculator}."
        assert [row.namepath_or_url for row in block.inline_tags] == ["Calculator"]
        assert block.description_start_line == 1
        assert block.description_end_line == 3
        assert block.last_description_line == 4
        assert block.end_line == 8
        assert [tag.tag for tag in block.tags] == ["param", "param", "returns"]
        assert [tag.name for tag in block.tags] == ["a", "b", ""]
        assert block.tags[1].description == "Second operand\nspanning lines."
        assert block.has_preterminal_tag_description is None

    def test_tag_formatting_kept_off_the_first_line(self) -> None:
        block = parse_doc_comment(MULTI_TAG)
        tag = block.tags[0]
        assert (tag.initial, tag.delimiter, tag.post_delimiter) == (" ", "*", " ")
        assert (tag.post_tag, tag.post_type, tag.post_name) == (" ", " ", " ")

    def test_tag_on_opening_line_has_no_formatting(self) -> None:
        block = parse_doc_comment("* @param {string} x ")
        tag = block.tags[0]
        assert (tag.initial, tag.delimiter, tag.post_delimiter) == ("", "", "")
        assert block.end_line == 0

    def test_starts_line_flags(self) -> None:
        block = parse_doc_comment("*\n * @param x first\nsecond\n\n * @returns y\n ")
        param, returns = block.tags
        assert param.starts_line and returns.starts_line
        assert [line.starts_line for line in param.description_lines] == [False, True, True]
        assert [line.description for line in param.description_lines] == ["first", "second", ""]
        assert (param.description_lines[1].initial, param.description_lines[1].delimiter) == ("", "")
        assert param.description == "first\nsecond"

    def test_opening_line_content_does_not_start_a_line(self) -> None:
        block = parse_doc_comment("* @param {string} x desc ")
        (tag,) = block.tags
        assert not tag.starts_line
        assert not tag.type_lines[0].starts_line
        assert not tag.description_lines[0].starts_line

    def test_single_line_description(self) -> None:
        block = parse_doc_comment("* Just text ")
        assert block.description == "Just text "
        assert block.has_preterminal_description == 1
        assert block.tags == []

    def test_crlf_line_end(self) -> None:
        block = parse_doc_comment("*\r\n * @param {string} x desc\r\n ")
        assert block.line_end == "\r"
        assert block.tags[0].description == "desc"

    def test_unterminated_lines_still_finalize_tag(self) -> None:
        block = build_tree(parse_lines(parse_source("/**\n * @param {string} x")))
        (tag,) = block.tags
        assert tag.parsed_type == TypeName(value="string")
        assert tag.name == "x"

    def test_no_lines(self) -> None:
        block = build_tree([])
        assert block.delimiter == ""
        assert block.terminal == ""
        assert block.tags == []


class TestTypeParsing:
    def test_failure_is_recovered_by_default(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.DEBUG, logger="doccomment.tree_builder"):
            block = parse_doc_comment("* @param {string<} x ")
        tag = block.tags[0]
        assert tag.raw_type == "string<"
        assert tag.parsed_type is None
        assert "left unparsed" in caplog.text

    def test_strict_mode_raises(self) -> None:
        with pytest.raises(TypeParsingError, match="Tag @param with raw type `string<`") as info:
            parse_doc_comment("* @param {string<} x ", throw_on_type_parsing_errors=True)
        assert info.value.tag == "param"
        assert info.value.raw_type == "string<"

    def test_deeply_nested_type_is_left_unparsed(self) -> None:
        block = parse_doc_comment(f"*\n * @param {{{DEEP_TYPE}}} x\n ")
        (tag,) = block.tags
        assert tag.raw_type == DEEP_TYPE
        assert tag.parsed_type is None
        assert tag.name == "x"

    def test_deeply_nested_type_raises_in_strict_mode(self) -> None:
        with pytest.raises(TypeParsingError, match="nested deeper than"):
            parse_doc_comment(f"* @param {{{DEEP_TYPE}}} x ", throw_on_type_parsing_errors=True)

    def test_mode_changes_grammar(self) -> None:
        assert parse_doc_comment("* @param {string=} x ", mode="jsdoc").tags[0].parsed_type
        assert parse_doc_comment("* @param {string=} x ").tags[0].parsed_type is None

    def test_custom_type_parser(self) -> None:
        calls = []

        class RecordingParser:
            def parse(self, raw_type: str, mode: str) -> TypeName:
                calls.append((raw_type, mode))
                return TypeName(value=raw_type.upper())

        block = build_tree(
            parse_comment("* @param {foo} x "), mode="closure", type_parser=RecordingParser(),
        )
        assert calls == [("foo", "closure")]
        assert block.tags[0].parsed_type == TypeName(value="FOO")

    def test_unknown_mode(self) -> None:
        with pytest.raises(ValueError, match="Unknown parse mode"):
            BuildOptions(mode="flow")  # type: ignore[arg-type]


class TestInlineTagLists:
    def test_per_tag_inline_tags(self) -> None:
        block = parse_doc_comment("*\n * @param x see {@link A}\n * @param y see {@link B}\n ")
        assert [tag.inline_tags[0].namepath_or_url for tag in block.tags] == ["A", "B"]

    def test_supplied_lists_match_computed(self) -> None:
        parsed = parse_comment(MULTI_TAG)
        supplied = build_tree(parsed, inline_tags=InlineTagLists.from_parsed(parsed))
        computed = build_tree(parse_comment(MULTI_TAG))
        assert supplied == computed

    def test_short_list_raises(self) -> None:
        parsed = parse_comment(MULTI_TAG)
        short = InlineTagLists(block=[], tags=[[]])
        with pytest.raises(InlineTagAlignmentError, match=r"tag #2 \(@param\)"):
            build_tree(parsed, inline_tags=short)


class TestStripEncapsulatingBrackets:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [("{string}", "string"), ("{}", ""), ("string", "string"), ("{{a: b}}", "{a: b}")],
    )
    def test_strips_once(self, raw: str, expected: str) -> None:
        assert strip_encapsulating_brackets(raw) == expected

    def test_idempotent_without_inner_braces(self) -> None:
        once = strip_encapsulating_brackets("{Array<string>}")
        assert strip_encapsulating_brackets(once) == once
