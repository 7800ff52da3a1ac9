# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Re-emit the original declaration as the canonical record."""

import logging
from dataclasses import replace

from dismantler.docs import doc_attribute
from dismantler.normalizer import FieldEntry
from dismantler.syntax import PUBLIC, Fields, RecordDeclaration

logger = logging.getLogger(__name__)

CANONICAL_RECORD_IDENT = "core"


def assemble_record(
    declaration: RecordDeclaration,
    entries: tuple[FieldEntry, ...],
    struct_doc: str,
) -> RecordDeclaration:
    """Build the canonical record from the original declaration.

    The name becomes ``core``, the record and its fields become public and
    the generated docs are attached. Generics, field types, field order,
    field shape and the trailing terminator are kept as parsed.

    Args:
        declaration: Original declaration.
        entries: Normalized fields of ``declaration``.
        struct_doc: Generated record documentation.

    Returns:
        The canonical record declaration.
    """
    fields = Fields(
        shape=declaration.fields.shape,
        items=tuple(entry.field for entry in entries),
    )
    record = replace(
        declaration,
        name=CANONICAL_RECORD_IDENT,
        vis=PUBLIC,
        attrs=(*declaration.attrs, doc_attribute(struct_doc)),
        fields=fields,
    )
    logger.debug(
        f"Assembled canonical record (record={declaration.name} shape={fields.shape})"
    )
    return record
