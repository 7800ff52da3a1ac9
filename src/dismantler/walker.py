# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Collect the identifiers a type expression refers to.

The walk is purely syntactic: it records the head segment of every type path
it meets, without resolving names. A field type that mentions an unrelated
type sharing a generic parameter's name is therefore reported as referring
to that parameter.
"""

import dataclasses
import logging
from collections.abc import Iterator

from dismantler.syntax import (
    ConstExpr,
    LifetimeArg,
    LifetimeBound,
    MacroType,
    PathType,
    ReferenceType,
    SyntaxNode,
    TraitBound,
    TypeExpr,
)

logger = logging.getLogger(__name__)


class TypeVisitor:
    """Walk syntax nodes, dispatching to ``visit_<ClassName>`` methods."""

    def visit(self, node: SyntaxNode) -> None:
        method = getattr(self, f"visit_{type(node).__name__}", self.generic_visit)
        method(node)

    def generic_visit(self, node: SyntaxNode) -> None:
        for child in iter_child_nodes(node):
            self.visit(child)


def iter_child_nodes(node: SyntaxNode) -> Iterator[SyntaxNode]:
    """Yield the direct child nodes of ``node`` in field order."""
    for field in dataclasses.fields(node):
        value = getattr(node, field.name)
        if isinstance(value, SyntaxNode):
            yield value
        elif isinstance(value, tuple):
            for item in value:
                if isinstance(item, SyntaxNode):
                    yield item


class _ReferencedIdents(TypeVisitor):
    """Collect path heads, lifetimes and const-expression path heads."""

    def __init__(self) -> None:
        self.idents: set[str] = set()

    def visit_PathType(self, node: PathType) -> None:
        if node.qself is not None and node.qself.trait_path is not None:
            self.idents.add(node.qself.trait_path.segments[0].name)
        elif node.segments:
            self.idents.add(node.segments[0].name)
        self.generic_visit(node)

    def visit_ReferenceType(self, node: ReferenceType) -> None:
        if node.lifetime is not None:
            self.idents.add(node.lifetime)
        self.generic_visit(node)

    def visit_LifetimeArg(self, node: LifetimeArg) -> None:
        self.idents.add(node.name)

    def visit_LifetimeBound(self, node: LifetimeBound) -> None:
        self.idents.add(node.name)

    def visit_ConstExpr(self, node: ConstExpr) -> None:
        previous = None
        for token in node.tokens:
            is_head = previous is None or not (
                previous.is_punct("::") or previous.is_punct(".")
            )
            if token.kind == "ident" and is_head:
                self.idents.add(token.text)
            previous = token

    def visit_MacroType(self, node: MacroType) -> None:
        pass

    def visit_TraitBound(self, node: TraitBound) -> None:
        # Trait paths themselves are not type paths; only their arguments are.
        for segment in node.path.segments:
            if segment.args is not None:
                self.visit(segment.args)


def referenced_identifiers(ty: TypeExpr) -> frozenset[str]:
    """Return the identifiers a type expression syntactically refers to.

    Args:
        ty: Field type expression.

    Returns:
        Head identifiers of every nested type path, plus the lifetimes and
        the path heads of const expressions used inside the type.
    """
    collector = _ReferencedIdents()
    collector.visit(ty)
    logger.debug(f"Collected referenced identifiers (count={len(collector.idents)})")
    return frozenset(collector.idents)
