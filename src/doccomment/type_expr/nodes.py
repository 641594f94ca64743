"""Type-expression tree nodes and their traversal key table."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar, Literal, TypeAlias


ParseMode: TypeAlias = Literal["closure", "jsdoc", "typescript"]
Position: TypeAlias = Literal["prefix", "suffix"]

PARSE_MODES: tuple[ParseMode, ...] = ("closure", "jsdoc", "typescript")


@dataclass(slots=True)
class TypeName:
    kind: ClassVar[str] = "JsdocTypeName"

    value: str


@dataclass(slots=True)
class TypeAny:
    kind: ClassVar[str] = "JsdocTypeAny"


@dataclass(slots=True)
class TypeUnknown:
    kind: ClassVar[str] = "JsdocTypeUnknown"


@dataclass(slots=True)
class TypeNull:
    kind: ClassVar[str] = "JsdocTypeNull"


@dataclass(slots=True)
class TypeUndefined:
    kind: ClassVar[str] = "JsdocTypeUndefined"


@dataclass(slots=True)
class TypeStringValue:
    kind: ClassVar[str] = "JsdocTypeStringValue"

    value: str
    quote: Literal["'", '"'] = '"'


@dataclass(slots=True)
class TypeNumber:
    """Numeric literal; ``value`` keeps the source spelling."""

    kind: ClassVar[str] = "JsdocTypeNumber"

    value: str


@dataclass(slots=True)
class TypeUnion:
    kind: ClassVar[str] = "JsdocTypeUnion"

    elements: list[TypeNode] = field(default_factory=list)


@dataclass(slots=True)
class TypeIntersection:
    kind: ClassVar[str] = "JsdocTypeIntersection"

    elements: list[TypeNode] = field(default_factory=list)


@dataclass(slots=True)
class TypeGeneric:
    """``A<B>``, ``A.<B>`` or ``B[]`` (``brackets == "square"``)."""

    kind: ClassVar[str] = "JsdocTypeGeneric"

    left: TypeNode
    elements: list[TypeNode] = field(default_factory=list)
    brackets: Literal["angle", "square"] = "angle"
    dot: bool = False


@dataclass(slots=True)
class TypeNullable:
    kind: ClassVar[str] = "JsdocTypeNullable"

    element: TypeNode
    position: Position = "prefix"


@dataclass(slots=True)
class TypeNotNullable:
    kind: ClassVar[str] = "JsdocTypeNotNullable"

    element: TypeNode
    position: Position = "prefix"


@dataclass(slots=True)
class TypeOptional:
    kind: ClassVar[str] = "JsdocTypeOptional"

    element: TypeNode
    position: Position = "suffix"


@dataclass(slots=True)
class TypeVariadic:
    """``...T``; ``element`` is ``None`` for a bare ``...``."""

    kind: ClassVar[str] = "JsdocTypeVariadic"

    element: TypeNode | None = None
    position: Position | None = "prefix"


@dataclass(slots=True)
class TypeParenthesis:
    kind: ClassVar[str] = "JsdocTypeParenthesis"

    element: TypeNode


@dataclass(slots=True)
class TypeObjectField:
    kind: ClassVar[str] = "JsdocTypeObjectField"

    key: str
    right: TypeNode | None = None
    optional: bool = False
    quote: Literal["'", '"'] | None = None


@dataclass(slots=True)
class TypeObject:
    kind: ClassVar[str] = "JsdocTypeObject"

    elements: list[TypeObjectField] = field(default_factory=list)
    separator: Literal[",", ";"] = ","


@dataclass(slots=True)
class TypeTuple:
    kind: ClassVar[str] = "JsdocTypeTuple"

    elements: list[TypeNode] = field(default_factory=list)


@dataclass(slots=True)
class TypeKeyValue:
    """Named function parameter, e.g. ``this: Foo`` or ``a?: string``."""

    kind: ClassVar[str] = "JsdocTypeKeyValue"

    key: str
    right: TypeNode | None = None
    optional: bool = False
    variadic: bool = False


@dataclass(slots=True)
class TypeFunction:
    kind: ClassVar[str] = "JsdocTypeFunction"

    parameters: list[TypeNode] = field(default_factory=list)
    return_type: TypeNode | None = None
    arrow: bool = False


@dataclass(slots=True)
class TypeTypeof:
    kind: ClassVar[str] = "JsdocTypeTypeof"

    element: TypeNode


@dataclass(slots=True)
class TypeKeyof:
    kind: ClassVar[str] = "JsdocTypeKeyof"

    element: TypeNode


TypeNode: TypeAlias = (
    TypeName
    | TypeAny
    | TypeUnknown
    | TypeNull
    | TypeUndefined
    | TypeStringValue
    | TypeNumber
    | TypeUnion
    | TypeIntersection
    | TypeGeneric
    | TypeNullable
    | TypeNotNullable
    | TypeOptional
    | TypeVariadic
    | TypeParenthesis
    | TypeObjectField
    | TypeObject
    | TypeTuple
    | TypeKeyValue
    | TypeFunction
    | TypeTypeof
    | TypeKeyof
)


VISITOR_KEYS: dict[str, tuple[str, ...]] = {
    "JsdocTypeName": (),
    "JsdocTypeAny": (),
    "JsdocTypeUnknown": (),
    "JsdocTypeNull": (),
    "JsdocTypeUndefined": (),
    "JsdocTypeStringValue": (),
    "JsdocTypeNumber": (),
    "JsdocTypeUnion": ("elements",),
    "JsdocTypeIntersection": ("elements",),
    "JsdocTypeGeneric": ("left", "elements"),
    "JsdocTypeNullable": ("element",),
    "JsdocTypeNotNullable": ("element",),
    "JsdocTypeOptional": ("element",),
    "JsdocTypeVariadic": ("element",),
    "JsdocTypeParenthesis": ("element",),
    "JsdocTypeObjectField": ("right",),
    "JsdocTypeObject": ("elements",),
    "JsdocTypeTuple": ("elements",),
    "JsdocTypeKeyValue": ("right",),
    "JsdocTypeFunction": ("parameters", "return_type"),
    "JsdocTypeTypeof": ("element",),
    "JsdocTypeKeyof": ("element",),
}


def is_type_node(node: object) -> bool:
    return getattr(node, "kind", None) in VISITOR_KEYS
