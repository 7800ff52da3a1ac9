# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Syntax model for record declarations and the type expressions they hold."""

from dataclasses import dataclass
from typing import Literal

from dismantler.diagnostics import Span
from dismantler.lexer import Token

FieldShape = Literal["named", "positional", "unit"]
GenericParamKind = Literal["lifetime", "type", "const"]


class SyntaxNode:
    """Base class for every node the type walker descends into."""


@dataclass(frozen=True)
class Attribute:
    """Represent one outer attribute.

    Attributes:
        text: Attribute content between ``#[`` and ``]``.
        doc: Documentation text when the attribute is a doc attribute.
        sugared: Whether the doc attribute is written as ``///`` lines.
        span: Source position, ``None`` for generated attributes.
    """

    text: str
    doc: str | None = None
    sugared: bool = False
    span: Span | None = None

    @property
    def path(self) -> str:
        head = self.text.split("(", 1)[0].split("=", 1)[0].split("[", 1)[0]
        return head.strip()

    @property
    def is_doc(self) -> bool:
        return self.path == "doc"


@dataclass(frozen=True)
class Visibility:
    """Represent a visibility qualifier; empty text means inherited."""

    text: str = ""


PUBLIC = Visibility("pub")
INHERITED = Visibility("")


@dataclass(frozen=True)
class ConstExpr(SyntaxNode):
    """Represent an opaque const expression such as an array length."""

    tokens: tuple[Token, ...]


@dataclass(frozen=True)
class LifetimeBound(SyntaxNode):
    name: str


@dataclass(frozen=True)
class TraitBound(SyntaxNode):
    """Represent ``?Sized``, ``for<'a> Fn(&'a T)`` or ``Trait<T>`` bounds."""

    path: "PathType"
    maybe: bool = False
    for_lifetimes: tuple[str, ...] = ()
    parenthesized: bool = False


Bound = LifetimeBound | TraitBound


@dataclass(frozen=True)
class TypeArg(SyntaxNode):
    ty: "TypeExpr"


@dataclass(frozen=True)
class LifetimeArg(SyntaxNode):
    name: str


@dataclass(frozen=True)
class ConstArg(SyntaxNode):
    expr: ConstExpr


@dataclass(frozen=True)
class BindingArg(SyntaxNode):
    """Represent an associated type binding ``Item = T``."""

    name: str
    ty: "TypeExpr"


@dataclass(frozen=True)
class ConstraintArg(SyntaxNode):
    """Represent an associated type constraint ``Item: Bound``."""

    name: str
    bounds: tuple[Bound, ...]


GenericArg = TypeArg | LifetimeArg | ConstArg | BindingArg | ConstraintArg


@dataclass(frozen=True)
class AngleArgs(SyntaxNode):
    args: tuple[GenericArg, ...]
    turbofish: bool = False


@dataclass(frozen=True)
class ParenArgs(SyntaxNode):
    """Represent ``Fn(A, B) -> C`` sugar."""

    inputs: tuple["TypeExpr", ...]
    output: "TypeExpr | None" = None


@dataclass(frozen=True)
class PathSegment(SyntaxNode):
    name: str
    args: AngleArgs | ParenArgs | None = None


@dataclass(frozen=True)
class QualifiedSelf(SyntaxNode):
    """Represent the ``<T as Trait>`` prefix of a qualified path."""

    ty: "TypeExpr"
    trait_path: "PathType | None" = None


@dataclass(frozen=True)
class PathType(SyntaxNode):
    segments: tuple[PathSegment, ...]
    leading_colon: bool = False
    qself: QualifiedSelf | None = None


@dataclass(frozen=True)
class ReferenceType(SyntaxNode):
    elem: "TypeExpr"
    lifetime: str | None = None
    mutable: bool = False


@dataclass(frozen=True)
class PointerType(SyntaxNode):
    elem: "TypeExpr"
    mutable: bool = False


@dataclass(frozen=True)
class SliceType(SyntaxNode):
    elem: "TypeExpr"


@dataclass(frozen=True)
class ArrayType(SyntaxNode):
    elem: "TypeExpr"
    length: ConstExpr


@dataclass(frozen=True)
class TupleType(SyntaxNode):
    elems: tuple["TypeExpr", ...]


@dataclass(frozen=True)
class ParenType(SyntaxNode):
    elem: "TypeExpr"


@dataclass(frozen=True)
class NeverType(SyntaxNode):
    pass


@dataclass(frozen=True)
class InferType(SyntaxNode):
    pass


@dataclass(frozen=True)
class BareFnArg(SyntaxNode):
    ty: "TypeExpr"
    name: str | None = None


@dataclass(frozen=True)
class BareFnType(SyntaxNode):
    inputs: tuple[BareFnArg, ...]
    output: "TypeExpr | None" = None
    for_lifetimes: tuple[str, ...] = ()
    unsafe: bool = False
    abi: str | None = None
    variadic: bool = False


@dataclass(frozen=True)
class TraitObjectType(SyntaxNode):
    bounds: tuple[Bound, ...]
    dyn: bool = True


@dataclass(frozen=True)
class ImplTraitType(SyntaxNode):
    bounds: tuple[Bound, ...]


@dataclass(frozen=True)
class MacroType(SyntaxNode):
    """Represent a type-position macro call; its tokens stay opaque."""

    path: PathType
    tokens: tuple[Token, ...]
    delimiter: str


TypeExpr = (
    PathType
    | ReferenceType
    | PointerType
    | SliceType
    | ArrayType
    | TupleType
    | ParenType
    | NeverType
    | InferType
    | BareFnType
    | TraitObjectType
    | ImplTraitType
    | MacroType
)


@dataclass(frozen=True)
class GenericParam:
    """Represent one declared generic parameter.

    Attributes:
        kind: Lifetime, type or const parameter.
        name: Parameter identifier; lifetimes keep their leading quote.
        bounds: Trait or lifetime bounds declared inline.
        const_type: Declared type of a const parameter.
        default: Default type (type parameters) or expression (const parameters).
        attrs: Attributes attached to the parameter.
    """

    kind: GenericParamKind
    name: str
    bounds: tuple[Bound, ...] = ()
    const_type: TypeExpr | None = None
    default: TypeExpr | ConstExpr | None = None
    attrs: tuple[Attribute, ...] = ()


@dataclass(frozen=True)
class WherePredicate:
    """Represent ``T: Bound`` or ``'a: 'b`` inside a where clause."""

    bounded: TypeExpr | LifetimeBound
    bounds: tuple[Bound, ...]
    for_lifetimes: tuple[str, ...] = ()


@dataclass(frozen=True)
class Generics:
    params: tuple[GenericParam, ...] = ()
    where: tuple[WherePredicate, ...] = ()

    @property
    def identifiers(self) -> tuple[str, ...]:
        return tuple(param.name for param in self.params)


@dataclass(frozen=True)
class Field:
    """Represent one declared field.

    Attributes:
        ty: Field type expression.
        name: Explicit identifier; ``None`` for positional fields.
        vis: Field visibility.
        attrs: Field attributes, doc comments included.
        span: Source position of the field start.
    """

    ty: TypeExpr
    name: str | None = None
    vis: Visibility = INHERITED
    attrs: tuple[Attribute, ...] = ()
    span: Span | None = None


@dataclass(frozen=True)
class Fields:
    """Represent the field list together with its shape tag."""

    shape: FieldShape
    items: tuple[Field, ...] = ()


@dataclass(frozen=True)
class RecordDeclaration:
    """Represent one parsed ``struct`` declaration.

    Attributes:
        name: Declared record name.
        generics: Generic parameters and where clause.
        fields: Field list and shape.
        attrs: Outer attributes, doc comments included.
        vis: Record visibility.
        semicolon: Whether a trailing ``;`` terminator was present.
        source: Raw item text the declaration was parsed from.
    """

    name: str
    generics: Generics
    fields: Fields
    attrs: tuple[Attribute, ...] = ()
    vis: Visibility = INHERITED
    semicolon: bool = False
    source: str = ""
