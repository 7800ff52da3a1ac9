# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Classify fields by whether their type depends on the record's generics."""

import logging
from dataclasses import dataclass

from dismantler.docs import doc_type
from dismantler.normalizer import FieldEntry
from dismantler.printer import render_params, render_type
from dismantler.syntax import GenericParam, Generics, TypeExpr
from dismantler.walker import referenced_identifiers

logger = logging.getLogger(__name__)

SELF_TYPE = "Self"


@dataclass(frozen=True)
class FieldTypeAlias:
    """Represent the named type derived from one field.

    Attributes:
        ident: Field identifier.
        ty: Field type expression.
        docs: Generated type documentation.
        generics: Declared parameters the type refers to, in declaration
            order. Empty for independent fields.
        uses_self: Whether the type mentions ``Self``, which only resolves
            inside the contract implementation.
    """

    ident: str
    ty: TypeExpr
    docs: str
    generics: tuple[GenericParam, ...] = ()
    uses_self: bool = False

    @property
    def dependent(self) -> bool:
        return bool(self.generics) or self.uses_self


@dataclass(frozen=True)
class Classification:
    """Hold the one classification shared by alias and contract synthesis."""

    aliases: tuple[FieldTypeAlias, ...]

    @property
    def independent(self) -> tuple[FieldTypeAlias, ...]:
        return tuple(alias for alias in self.aliases if not alias.dependent)

    @property
    def dependent(self) -> tuple[FieldTypeAlias, ...]:
        return tuple(alias for alias in self.aliases if alias.dependent)


def dependent_params(ty: TypeExpr, generics: Generics) -> tuple[GenericParam, ...]:
    """Return the declared parameters referenced by ``ty``.

    Args:
        ty: Field type expression.
        generics: Declared generics of the record.

    Returns:
        The intersection of the declared parameters and the identifiers the
        type refers to, in declaration order, with bounds and defaults kept.
    """
    referenced = referenced_identifiers(ty)
    return tuple(param for param in generics.params if param.name in referenced)


def classify_fields(
    entries: tuple[FieldEntry, ...], generics: Generics, original: str
) -> Classification:
    """Classify normalized fields once for the whole declaration.

    Args:
        entries: Normalized fields in declaration order.
        generics: Declared generics of the record.
        original: Formatted record source embedded in the type docs.

    Returns:
        Classification holding one alias per field, in field order.
    """
    aliases: list[FieldTypeAlias] = []
    for entry in entries:
        params = dependent_params(entry.ty, generics)
        rendered_params = render_params(params, "declaration") if params else None
        aliases.append(
            FieldTypeAlias(
                ident=entry.ident,
                ty=entry.ty,
                docs=doc_type(entry.ident, render_type(entry.ty), original, rendered_params),
                generics=params,
                uses_self=SELF_TYPE in referenced_identifiers(entry.ty),
            )
        )
    classification = Classification(aliases=tuple(aliases))
    logger.debug(
        f"Classified fields (independent={len(classification.independent)} "
        f"dependent={len(classification.dependent)})"
    )
    return classification
