"""Exception types raised by doccomment."""

from __future__ import annotations


class DocCommentError(ValueError):
    """Base class for all doccomment errors."""


class TypeExpressionError(DocCommentError):
    """A type expression could not be parsed."""

    def __init__(self, message: str, position: int = 0) -> None:
        super().__init__(message)
        self.position = position


class TypeParsingError(DocCommentError):
    """Strict-mode failure to parse the raw type of a tag."""

    def __init__(self, tag: str, raw_type: str, reason: str) -> None:
        super().__init__(
            f"Tag @{tag} with raw type `{raw_type}` had parsing error: {reason}",
        )
        self.tag = tag
        self.raw_type = raw_type
        self.reason = reason


class UnknownNodeKindError(DocCommentError):
    """The stringifier was handed a node kind it cannot render."""

    def __init__(self, kind: object) -> None:
        super().__init__(f"Unhandled node type: {kind}")
        self.kind = kind


class InlineTagAlignmentError(DocCommentError):
    """Supplied per-tag inline tags do not cover every tag in the block."""


class SelectorSyntaxError(DocCommentError):
    """A selector string could not be parsed."""

    def __init__(self, message: str, position: int = 0) -> None:
        super().__init__(message)
        self.position = position
