"""Documentation comments as whitespace-preserving trees."""

from doccomment.comment_lookup import (
    CommentToken,
    declaration_at_line,
    find_doc_comment,
    get_decorator,
    get_doc_comment_block,
    get_jsdoc_comment,
    parse_program,
    reduce_node,
    scan_comments,
)
from doccomment.comment_parser import ParsedComment, parse_comment
from doccomment.errors import (
    DocCommentError,
    InlineTagAlignmentError,
    SelectorSyntaxError,
    TypeExpressionError,
    TypeParsingError,
    UnknownNodeKindError,
)
from doccomment.inline_tags import InlineTagMatch, extract_inline_tags, format_inline_tag
from doccomment.selector import comment_handler, compile_selector, matches, query
from doccomment.stringify import stringify
from doccomment.tokenizers import (
    DEFAULT_NO_NAMES,
    DEFAULT_NO_TYPES,
    get_tokenizers,
    has_see_with_link,
)
from doccomment.tree_builder import (
    BuildOptions,
    InlineTagLists,
    build_tree,
    parse_doc_comment,
    strip_encapsulating_brackets,
)
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
from doccomment.type_expr import parse_type, stringify_type

__all__ = [
    "ALL_VISITOR_KEYS",
    "BuildOptions",
    "CommentToken",
    "DEFAULT_NO_NAMES",
    "DEFAULT_NO_TYPES",
    "DocCommentError",
    "InlineTagAlignmentError",
    "InlineTagLists",
    "InlineTagMatch",
    "JsdocBlock",
    "JsdocDescriptionLine",
    "JsdocInlineTag",
    "JsdocTag",
    "JsdocTypeLine",
    "ParsedComment",
    "SelectorSyntaxError",
    "TypeExpressionError",
    "TypeParsingError",
    "UnknownNodeKindError",
    "VISITOR_KEYS",
    "build_tree",
    "comment_handler",
    "compile_selector",
    "declaration_at_line",
    "dumps_tree",
    "extract_inline_tags",
    "find_doc_comment",
    "format_inline_tag",
    "get_decorator",
    "get_doc_comment_block",
    "get_jsdoc_comment",
    "get_tokenizers",
    "has_see_with_link",
    "matches",
    "parse_comment",
    "parse_doc_comment",
    "parse_program",
    "parse_type",
    "query",
    "reduce_node",
    "scan_comments",
    "strip_encapsulating_brackets",
    "stringify",
    "stringify_type",
    "to_camel_case",
    "tree_to_dict",
]
