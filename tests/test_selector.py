"""Tests for doccomment.selector: selector queries over comment trees."""
from __future__ import annotations

import pytest

from doccomment.comment_parser import parse_comment
from doccomment.errors import SelectorSyntaxError
from doccomment.selector import (
    comment_handler,
    compile_selector,
    iter_children,
    matches,
    query,
)
from doccomment.tree_builder import parse_doc_comment


SAMPLE = (
    "*\n"
    " * Sum.\n"
    " * @param {number} a First {@link A}.\n"
    " * @param {string|number} [opt_b] Second.\n"
    " * @returns {number} Total.\n"
    " "
)

UNION_FIRST_BAR = (
    'JsdocBlock:has(JsdocTag[tag="param"]:has(JsdocTypeUnion:has('
    'JsdocTypeName[value="Bar"]:nth-child(1))))'
)


@pytest.fixture
def block():
    return parse_doc_comment(SAMPLE)


class TestCommentHandler:
    def test_union_member_order(self) -> None:
        handler = comment_handler(mode="typescript")
        assert handler(UNION_FIRST_BAR, parse_comment("*\n * @param {Bar|Foo} foo\n "))
        assert not handler(UNION_FIRST_BAR, parse_comment("*\n * @param {Foo|Bar} foo\n "))

    def test_unknown_mode(self) -> None:
        with pytest.raises(ValueError, match="Unknown parse mode"):
            comment_handler(mode="flow")  # type: ignore[arg-type]


class TestQuery:
    def test_kind(self, block) -> None:
        assert [tag.tag for tag in query(block, "JsdocTag")] == ["param", "param", "returns"]

    def test_kind_is_case_insensitive(self, block) -> None:
        assert len(query(block, "jsdoctag")) == 3

    def test_child_and_descendant(self, block) -> None:
        child = query(block, 'JsdocTag[tag="param"] > JsdocTypeName')
        assert [node.value for node in child] == ["number"]
        descendant = query(block, 'JsdocTag[tag="param"] JsdocTypeName')
        assert [node.value for node in descendant] == ["number", "string", "number"]

    def test_regex_attribute(self, block) -> None:
        (tag,) = query(block, "JsdocTag[name=/opt_/]")
        assert tag.name == "[opt_b]"

    def test_nested_attribute_path(self, block) -> None:
        (tag,) = query(block, 'JsdocTag[parsedType.type="JsdocTypeUnion"]')
        assert tag.name == "[opt_b]"

    def test_camel_case_attribute(self, block) -> None:
        (inline,) = query(block, 'JsdocInlineTag[namepathOrUrl="A"]')
        assert inline.tag == "link"

    def test_public_field_alias(self, block) -> None:
        (inline,) = query(block, "JsdocInlineTag[namepathOrURL=A]")
        assert inline.namepath_or_url == "A"
        assert query(block, "JsdocInlineTag[namepath_or_url=A]") == [inline]

    def test_numeric_comparison(self, block) -> None:
        assert query(block, "JsdocBlock[endLine>=4]") == [block]
        assert query(block, "JsdocBlock[endLine<2]") == []
        assert query(block, "JsdocBlock[hasPreterminalDescription=0]") == [block]

    def test_not(self, block) -> None:
        assert len(query(block, 'JsdocTag:not([tag="returns"])')) == 2

    def test_alternatives(self, block) -> None:
        kinds = [node.kind for node in query(block, "JsdocInlineTag, JsdocTypeUnion")]
        assert sorted(kinds) == ["JsdocInlineTag", "JsdocTypeUnion"]

    def test_positional(self, block) -> None:
        assert [tag.name for tag in query(block, "JsdocTag:first-child")] == ["a"]
        assert [tag.tag for tag in query(block, "JsdocTag:last-child")] == ["returns"]
        assert [tag.name for tag in query(block, "JsdocTag:nth-last-child(2)")] == ["[opt_b]"]

    def test_siblings(self, block) -> None:
        assert [tag.name for tag in query(block, 'JsdocTag[name="a"] + JsdocTag')] == ["[opt_b]"]
        assert len(query(block, 'JsdocTag[name="a"] ~ JsdocTag')) == 2


class TestMatches:
    def test_ancestry_is_needed_for_relations(self, block) -> None:
        tag = block.tags[0]
        assert matches(tag, "JsdocTag")
        assert not matches(tag, "JsdocBlock > JsdocTag")
        assert matches(tag, "JsdocBlock > JsdocTag", [block])

    def test_iter_children_follows_visitor_keys(self, block) -> None:
        kinds = [child.kind for child in iter_children(block.tags[0])]
        assert kinds == [
            "JsdocTypeName",
            "JsdocTypeLine",
            "JsdocDescriptionLine",
            "JsdocInlineTag",
        ]


class TestCompileSelector:
    def test_cached(self) -> None:
        assert compile_selector("JsdocTag") is compile_selector("JsdocTag")

    def test_string_escapes(self) -> None:
        selector = compile_selector(r'JsdocTag[name="a\"b"]')
        (atom,) = selector.atoms[1:]
        assert atom.value == 'a"b'

    @pytest.mark.parametrize("text", ["", "   ", "JsdocTag[", "JsdocTag >", ":bogus", "JsdocTag)"])
    def test_syntax_errors(self, text: str) -> None:
        with pytest.raises(SelectorSyntaxError):
            compile_selector(text)
