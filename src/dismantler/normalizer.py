# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Field normalization: canonical identifiers, public visibility, field docs."""

import logging
from dataclasses import dataclass, replace

from dismantler.docs import doc_attribute, doc_field
from dismantler.printer import render_type
from dismantler.syntax import PUBLIC, Field, RecordDeclaration, TypeExpr

logger = logging.getLogger(__name__)

POSITIONAL_PREFIX = "field_"


@dataclass(frozen=True)
class FieldEntry:
    """Represent one field after normalization.

    Attributes:
        ident: Explicit field name, or ``field_<index>`` for positional fields.
        index: 0-based declaration position.
        ty: Field type expression.
        docs: Generated field description.
        field: Field re-emitted on the canonical record: public, documented.
    """

    ident: str
    index: int
    ty: TypeExpr
    docs: str
    field: Field


def field_identifier(field: Field, index: int) -> str:
    return field.name if field.name is not None else f"{POSITIONAL_PREFIX}{index}"


def normalize_fields(declaration: RecordDeclaration) -> tuple[FieldEntry, ...]:
    """Normalize the fields of a declaration in declaration order.

    Args:
        declaration: Parsed record declaration.

    Returns:
        One entry per declared field.
    """
    entries: list[FieldEntry] = []
    for index, field in enumerate(declaration.fields.items):
        ident = field_identifier(field, index)
        docs = doc_field(ident, render_type(field.ty), declaration.name)
        normalized = replace(
            field, vis=PUBLIC, attrs=(*field.attrs, doc_attribute(docs))
        )
        entries.append(
            FieldEntry(ident=ident, index=index, ty=field.ty, docs=docs, field=normalized)
        )
    logger.debug(
        f"Normalized fields (record={declaration.name} count={len(entries)})"
    )
    return tuple(entries)
