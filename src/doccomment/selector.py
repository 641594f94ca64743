"""Selector queries over comment trees.

Supports the commonly used subset of the ESTree selector syntax::

    JsdocBlock:has(JsdocTag[tag="param"][name=/opt_/] > JsdocTypeUnion)

* node kinds (case-insensitive) and ``*``
* attributes: ``[attr]``, ``[attr=value]``, ``[attr!=value]``,
  ``[attr=/regex/flags]``, ``[attr<3]`` (also ``<=``, ``>``, ``>=``);
  dotted paths and camelCase names are accepted
* combinators: descendant (whitespace), child ``>``, sibling ``~``,
  adjacent ``+`` and alternatives ``,``
* pseudo-classes: ``:has()``, ``:not()``, ``:matches()``/``:is()``,
  ``:nth-child(n)``, ``:nth-last-child(n)``, ``:first-child``,
  ``:last-child``

Traversal follows a visitor key table (``ALL_VISITOR_KEYS`` by default).
"""

from __future__ import annotations

import functools
import logging
import re
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass
from typing import Any, TypeAlias

from doccomment.comment_parser import ParsedComment
from doccomment.errors import SelectorSyntaxError
from doccomment.tree_builder import build_tree
from doccomment.tree_types import ALL_VISITOR_KEYS, FIELD_NAMES_BY_ALIAS
from doccomment.type_expr import PARSE_MODES, ParseMode


log = logging.getLogger(__name__)

VisitorKeys: TypeAlias = Mapping[str, tuple[str, ...]]


# ---------------------------------------------------------------------------
# Selector AST
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Wildcard:
    pass


@dataclass(frozen=True, slots=True)
class KindSelector:
    name: str


@dataclass(frozen=True, slots=True)
class AttributeSelector:
    """``[path op value]``; ``op`` is ``None`` for a presence test."""

    path: tuple[str, ...]
    op: str | None = None
    value: str | float | re.Pattern[str] | None = None


@dataclass(frozen=True, slots=True)
class HasSelector:
    selectors: tuple[Selector, ...]


@dataclass(frozen=True, slots=True)
class NotSelector:
    selectors: tuple[Selector, ...]


@dataclass(frozen=True, slots=True)
class MatchesSelector:
    selectors: tuple[Selector, ...]


@dataclass(frozen=True, slots=True)
class NthChildSelector:
    index: int
    from_end: bool = False


@dataclass(frozen=True, slots=True)
class Compound:
    """Atoms that must all match the same node."""

    atoms: tuple[Atom, ...]


@dataclass(frozen=True, slots=True)
class Relation:
    """``left <combinator> right``; the subject is the ``right`` node."""

    left: Selector
    combinator: str  # " " | ">" | "~" | "+"
    right: Compound


@dataclass(frozen=True, slots=True)
class Alternatives:
    selectors: tuple[Selector, ...]


Atom: TypeAlias = (
    Wildcard
    | KindSelector
    | AttributeSelector
    | HasSelector
    | NotSelector
    | MatchesSelector
    | NthChildSelector
)
Selector: TypeAlias = Compound | Relation | Alternatives


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------

_IDENT_RE = re.compile(r"[A-Za-z_$][\w$-]*")
_NUMBER_RE = re.compile(r"-?\d+(?:\.\d+)?")
_STRING_RE = re.compile(r'"(?:[^"\\]|\\.)*"|\'(?:[^\'\\]|\\.)*\'')
_REGEX_RE = re.compile(r"/((?:[^/\\]|\\.)+)/([imsu]*)")
_BARE_VALUE_RE = re.compile(r"[^\s\]]+")
_ESCAPE_RE = re.compile(r"\\(.)")
_ATTR_OP_RE = re.compile(r"!=|<=|>=|=|<|>")
_POSITION_RE = re.compile(r"\d+")
_REGEX_FLAGS = {"i": re.IGNORECASE, "m": re.MULTILINE, "s": re.DOTALL, "u": 0}


class _SelectorParser:
    """Character-level recursive descent parser for selector strings."""

    def __init__(self, text: str) -> None:
        self._text = text
        self._pos = 0

    # -- helpers ----------------------------------------------------------

    def _error(self, message: str) -> SelectorSyntaxError:
        return SelectorSyntaxError(f"{message} at position {self._pos} in {self._text!r}", self._pos)

    def _peek(self) -> str:
        return self._text[self._pos] if self._pos < len(self._text) else ""

    def _skip_ws(self) -> bool:
        start = self._pos
        while self._pos < len(self._text) and self._text[self._pos].isspace():
            self._pos += 1
        return self._pos > start

    def _consume(self, literal: str) -> bool:
        if self._text.startswith(literal, self._pos):
            self._pos += len(literal)
            return True
        return False

    def _expect(self, literal: str) -> None:
        if not self._consume(literal):
            raise self._error(f"Expected {literal!r}")

    def _match(self, pattern: re.Pattern[str]) -> re.Match[str] | None:
        match = pattern.match(self._text, self._pos)
        if match:
            self._pos = match.end()
        return match

    # -- grammar ----------------------------------------------------------

    def parse(self) -> Selector:
        selector = self._parse_alternatives()
        if self._pos != len(self._text):
            raise self._error(f"Unexpected {self._peek()!r}")
        return selector

    def _parse_alternatives(self) -> Selector:
        self._skip_ws()
        selectors = [self._parse_relation()]
        self._skip_ws()
        while self._consume(","):
            self._skip_ws()
            selectors.append(self._parse_relation())
            self._skip_ws()
        if len(selectors) == 1:
            return selectors[0]
        return Alternatives(selectors=tuple(selectors))

    def _parse_relation(self) -> Selector:
        selector: Selector = self._parse_compound()
        while True:
            mark = self._pos
            had_space = self._skip_ws()
            char = self._peek()
            if char in (">", "~", "+"):
                self._pos += 1
                self._skip_ws()
                selector = Relation(left=selector, combinator=char, right=self._parse_compound())
            elif had_space and char and char not in (",", ")"):
                selector = Relation(left=selector, combinator=" ", right=self._parse_compound())
            else:
                self._pos = mark
                return selector

    def _parse_compound(self) -> Compound:
        self._consume("!")
        atoms: list[Atom] = []
        while True:
            atom = self._parse_atom()
            if atom is None:
                break
            atoms.append(atom)
        if not atoms:
            raise self._error("Expected a selector")
        return Compound(atoms=tuple(atoms))

    def _parse_atom(self) -> Atom | None:
        char = self._peek()
        if char == "*":
            self._pos += 1
            return Wildcard()
        if char == "[":
            self._pos += 1
            return self._parse_attribute()
        if char == ":":
            self._pos += 1
            return self._parse_pseudo()
        match = self._match(_IDENT_RE)
        if match:
            return KindSelector(name=match.group())
        return None

    def _parse_attribute(self) -> AttributeSelector:
        self._skip_ws()
        path = []
        while True:
            match = self._match(_IDENT_RE)
            if match is None:
                raise self._error("Expected attribute name")
            path.append(match.group())
            if not self._consume("."):
                break
        self._skip_ws()
        op_match = self._match(_ATTR_OP_RE)
        if op_match is None:
            self._expect("]")
            return AttributeSelector(path=tuple(path))
        self._skip_ws()
        value = self._parse_attribute_value(op_match.group())
        self._skip_ws()
        self._expect("]")
        return AttributeSelector(path=tuple(path), op=op_match.group(), value=value)

    def _parse_attribute_value(self, op: str) -> str | float | re.Pattern[str]:
        match = self._match(_STRING_RE)
        if match:
            return _ESCAPE_RE.sub(r"\1", match.group()[1:-1])
        if op in ("=", "!="):
            match = self._match(_REGEX_RE)
            if match:
                flags = 0
                for flag in match.group(2):
                    flags |= _REGEX_FLAGS[flag]
                return re.compile(match.group(1), flags)
        match = self._match(_NUMBER_RE)
        if match:
            return float(match.group())
        match = self._match(_BARE_VALUE_RE)
        if match:
            return match.group()
        raise self._error("Expected attribute value")

    def _parse_pseudo(self) -> Atom:
        match = self._match(_IDENT_RE)
        if match is None:
            raise self._error("Expected pseudo-class name")
        name = match.group().lower()
        if name == "first-child":
            return NthChildSelector(index=1)
        if name == "last-child":
            return NthChildSelector(index=1, from_end=True)
        self._expect("(")
        if name in ("nth-child", "nth-last-child"):
            self._skip_ws()
            number = self._match(_POSITION_RE)
            if number is None:
                raise self._error("Expected a position")
            self._skip_ws()
            self._expect(")")
            return NthChildSelector(index=int(number.group()), from_end=name == "nth-last-child")
        inner = self._parse_alternatives()
        self._expect(")")
        selectors = inner.selectors if isinstance(inner, Alternatives) else (inner,)
        if name == "has":
            return HasSelector(selectors=selectors)
        if name == "not":
            return NotSelector(selectors=selectors)
        if name in ("matches", "is"):
            return MatchesSelector(selectors=selectors)
        raise self._error(f"Unknown pseudo-class {name!r}")


@functools.lru_cache(maxsize=256)
def compile_selector(text: str) -> Selector:
    """Parse a selector string; raises ``SelectorSyntaxError``."""

    if not text.strip():
        raise SelectorSyntaxError("Empty selector", 0)
    return _SelectorParser(text).parse()


# ---------------------------------------------------------------------------
# Matching
# ---------------------------------------------------------------------------

_SNAKE_RE = re.compile(r"(?<!^)(?=[A-Z])")


def _snake_case(name: str) -> str:
    if name in FIELD_NAMES_BY_ALIAS:
        return FIELD_NAMES_BY_ALIAS[name]
    return _SNAKE_RE.sub("_", name).lower()


def _node_kind(node: Any) -> str | None:
    kind = getattr(node, "kind", None)
    return kind if isinstance(kind, str) else None


def _resolve_attribute(node: Any, path: tuple[str, ...]) -> Any:
    value = node
    for part in path:
        if value is None:
            return None
        if part == "type" and _node_kind(value) is not None:
            value = _node_kind(value)
            continue
        if hasattr(value, part):
            value = getattr(value, part)
        else:
            value = getattr(value, _snake_case(part), None)
    return value


def _as_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


_NUMERIC_OPS: dict[str, Callable[[float, float], bool]] = {
    "<": lambda left, right: left < right,
    "<=": lambda left, right: left <= right,
    ">": lambda left, right: left > right,
    ">=": lambda left, right: left >= right,
}


def _match_attribute(node: Any, selector: AttributeSelector) -> bool:
    value = _resolve_attribute(node, selector.path)
    if selector.op is None:
        return value is not None
    if selector.op in ("=", "!="):
        if value is None:
            matched = False
        elif isinstance(selector.value, re.Pattern):
            matched = isinstance(value, str) and selector.value.search(value) is not None
        else:
            matched = _as_text(value) == _as_text(selector.value)
        return matched if selector.op == "=" else not matched
    if isinstance(value, bool) or not isinstance(value, int | float):
        return False
    if not isinstance(selector.value, float):
        return False
    return _NUMERIC_OPS[selector.op](float(value), selector.value)


def _sibling_list(node: Any, parent: Any, visitor_keys: VisitorKeys) -> list[Any] | None:
    for key in visitor_keys.get(_node_kind(parent) or "", ()):
        child = getattr(parent, key, None)
        if isinstance(child, list) and any(item is node for item in child):
            return child
    return None


def _index_of(items: list[Any], node: Any) -> int:
    return next(position for position, item in enumerate(items) if item is node)


def _match_nth_child(
    node: Any, selector: NthChildSelector, ancestry: list[Any], visitor_keys: VisitorKeys,
) -> bool:
    if not ancestry:
        return False
    siblings = _sibling_list(node, ancestry[0], visitor_keys)
    if siblings is None:
        return False
    position = _index_of(siblings, node)
    if selector.from_end:
        return len(siblings) - position == selector.index
    return position + 1 == selector.index


def iter_children(node: Any, visitor_keys: VisitorKeys = ALL_VISITOR_KEYS) -> Iterator[Any]:
    """Yield the traversable children of ``node`` in visitor key order."""

    for key in visitor_keys.get(_node_kind(node) or "", ()):
        child = getattr(node, key, None)
        if isinstance(child, list):
            yield from (item for item in child if item is not None)
        elif child is not None:
            yield child


def _iter_descendants(
    node: Any, ancestry: list[Any], visitor_keys: VisitorKeys,
) -> Iterator[tuple[Any, list[Any]]]:
    for child in iter_children(node, visitor_keys):
        child_ancestry = [node, *ancestry]
        yield child, child_ancestry
        yield from _iter_descendants(child, child_ancestry, visitor_keys)


def _match_atom(node: Any, atom: Atom, ancestry: list[Any], visitor_keys: VisitorKeys) -> bool:
    match atom:
        case Wildcard():
            return True
        case KindSelector(name=name):
            kind = _node_kind(node)
            return kind is not None and kind.lower() == name.lower()
        case AttributeSelector():
            return _match_attribute(node, atom)
        case HasSelector(selectors=selectors):
            return any(
                _match(descendant, selector, descendant_ancestry, visitor_keys)
                for descendant, descendant_ancestry in _iter_descendants(node, [], visitor_keys)
                for selector in selectors
            )
        case NotSelector(selectors=selectors):
            return not any(_match(node, selector, ancestry, visitor_keys) for selector in selectors)
        case MatchesSelector(selectors=selectors):
            return any(_match(node, selector, ancestry, visitor_keys) for selector in selectors)
        case NthChildSelector():
            return _match_nth_child(node, atom, ancestry, visitor_keys)
    raise TypeError(f"Unknown selector atom: {atom!r}")


def _match(node: Any, selector: Selector, ancestry: list[Any], visitor_keys: VisitorKeys) -> bool:
    match selector:
        case Compound(atoms=atoms):
            return all(_match_atom(node, atom, ancestry, visitor_keys) for atom in atoms)
        case Alternatives(selectors=selectors):
            return any(_match(node, item, ancestry, visitor_keys) for item in selectors)
        case Relation(left=left, combinator=combinator, right=right):
            if not _match(node, right, ancestry, visitor_keys):
                return False
            if combinator == ">":
                return bool(ancestry) and _match(ancestry[0], left, ancestry[1:], visitor_keys)
            if combinator == " ":
                return any(
                    _match(ancestor, left, ancestry[depth + 1:], visitor_keys)
                    for depth, ancestor in enumerate(ancestry)
                )
            if not ancestry:
                return False
            siblings = _sibling_list(node, ancestry[0], visitor_keys)
            if siblings is None:
                return False
            position = _index_of(siblings, node)
            if combinator == "+":
                return position > 0 and _match(siblings[position - 1], left, ancestry, visitor_keys)
            return any(
                _match(sibling, left, ancestry, visitor_keys) for sibling in siblings[:position]
            )
    raise TypeError(f"Unknown selector: {selector!r}")


def matches(
    node: Any,
    selector: str | Selector,
    ancestry: list[Any] | None = None,
    *,
    visitor_keys: VisitorKeys = ALL_VISITOR_KEYS,
) -> bool:
    """True if ``node`` matches ``selector``.

    ``ancestry`` lists the node's ancestors nearest first; relations that
    look above ``node`` only see those.
    """

    compiled = compile_selector(selector) if isinstance(selector, str) else selector
    return _match(node, compiled, list(ancestry or []), visitor_keys)


def query(
    root: Any,
    selector: str | Selector,
    *,
    visitor_keys: VisitorKeys = ALL_VISITOR_KEYS,
) -> list[Any]:
    """Return every node under (and including) ``root`` matching ``selector``."""

    compiled = compile_selector(selector) if isinstance(selector, str) else selector
    found = []
    if _match(root, compiled, [], visitor_keys):
        found.append(root)
    for node, ancestry in _iter_descendants(root, [], visitor_keys):
        if _match(node, compiled, ancestry, visitor_keys):
            found.append(node)
    return found


CommentHandler: TypeAlias = Callable[[str, ParsedComment], bool]


def comment_handler(*, mode: ParseMode = "typescript") -> CommentHandler:
    """Return ``handler(selector, parsed_comment) -> bool``.

    The handler builds the comment tree in ``mode`` and matches its root.
    """

    if mode not in PARSE_MODES:
        raise ValueError(f"Unknown parse mode {mode!r}; expected one of {PARSE_MODES}")

    def handle(comment_selector: str, parsed: ParsedComment) -> bool:
        block = build_tree(parsed, mode=mode)
        result = matches(block, comment_selector)
        log.debug("Selector %r matched=%s", comment_selector, result)
        return result

    return handle
