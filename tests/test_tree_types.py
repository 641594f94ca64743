"""Tests for doccomment.tree_types: traversal keys and serialization."""
from __future__ import annotations

import dataclasses

import orjson
import pytest

from doccomment.tree_builder import parse_doc_comment
from doccomment.tree_types import (
    ALL_VISITOR_KEYS,
    VISITOR_KEYS,
    JsdocBlock,
    JsdocDescriptionLine,
    JsdocInlineTag,
    JsdocTag,
    JsdocTypeLine,
    dumps_tree,
    to_camel_case,
    tree_to_dict,
)


class TestVisitorKeys:
    def test_comment_kinds(self) -> None:
        assert VISITOR_KEYS["JsdocBlock"] == ("description_lines", "tags", "inline_tags")
        assert VISITOR_KEYS["JsdocTag"] == (
            "parsed_type", "type_lines", "description_lines", "inline_tags",
        )

    @pytest.mark.parametrize(
        "node_type",
        [JsdocBlock, JsdocTag, JsdocDescriptionLine, JsdocTypeLine, JsdocInlineTag],
    )
    def test_keys_name_fields(self, node_type: type) -> None:
        names = {item.name for item in dataclasses.fields(node_type)}
        assert set(VISITOR_KEYS[node_type.kind]) <= names

    def test_type_kinds_are_merged(self) -> None:
        assert "JsdocTypeUnion" in ALL_VISITOR_KEYS
        assert set(VISITOR_KEYS) <= set(ALL_VISITOR_KEYS)


class TestSerialization:
    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("post_delimiter", "postDelimiter"),
            ("namepath_or_url", "namepathOrURL"),
            ("starts_line", "startsLine"),
            ("tag", "tag"),
        ],
    )
    def test_to_camel_case(self, name: str, expected: str) -> None:
        assert to_camel_case(name) == expected

    def test_tree_to_dict(self) -> None:
        payload = tree_to_dict(parse_doc_comment("* @param {string} x "))
        assert payload["type"] == "JsdocBlock"
        assert payload["postDelimiter"] == " "
        (tag,) = payload["tags"]
        assert tag["type"] == "JsdocTag"
        assert tag["rawType"] == "string"
        assert tag["parsedType"] == {"type": "JsdocTypeName", "value": "string"}
        assert tag["typeLines"] == [
            {
                "type": "JsdocTypeLine",
                "rawType": "string",
                "initial": "",
                "delimiter": "",
                "postDelimiter": "",
                "startsLine": False,
            },
        ]

    def test_inline_tag_keys(self) -> None:
        block = parse_doc_comment("* See {@link Foo|the foo}. ")
        assert tree_to_dict(block)["inlineTags"] == [
            {
                "type": "JsdocInlineTag",
                "tag": "link",
                "namepathOrURL": "Foo",
                "text": "the foo",
                "format": "pipe",
            },
        ]

    def test_dumps_tree(self) -> None:
        block = parse_doc_comment("*\n * See {@link Foo}.\n * @returns {number} Count.\n ")
        text = dumps_tree(block)
        assert orjson.loads(text) == tree_to_dict(block)
        assert "\n" not in text
        assert "\n" in dumps_tree(block, indent=True)
