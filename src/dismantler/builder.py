# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Dismantle one record declaration into its companion namespace."""

import logging
from dataclasses import dataclass

from dismantler.aliases import synthesize_aliases
from dismantler.assembler import CANONICAL_RECORD_IDENT, assemble_record
from dismantler.classifier import Classification, classify_fields
from dismantler.contract import CONTRACT_IDENT, synthesize_contract
from dismantler.diagnostics import MalformedDeclaration
from dismantler.docs import compact, doc_marker, doc_marker_module, doc_struct
from dismantler.emitter import MARKER_MODULE_IDENT, FieldMarker, Namespace, emit_namespace
from dismantler.formatter import DeclarationFormatter, Formatter
from dismantler.normalizer import FieldEntry, normalize_fields
from dismantler.parser import parse_declaration
from dismantler.printer import render_type
from dismantler.syntax import FieldShape, RecordDeclaration

logger = logging.getLogger(__name__)

NAMESPACE_ITEMS = frozenset({MARKER_MODULE_IDENT, CANONICAL_RECORD_IDENT, CONTRACT_IDENT})
MODULE_ATTRIBUTES = frozenset({"doc", "cfg"})


@dataclass(frozen=True)
class FieldReport:
    """Describe how one field was classified."""

    ident: str
    ty: str
    dependent: bool
    generics: tuple[str, ...]


@dataclass(frozen=True)
class RecordReport:
    """Describe the fields of one record declaration."""

    name: str
    shape: FieldShape
    generics: tuple[str, ...]
    fields: tuple[FieldReport, ...]


def dismantle(attr: str, item: str, formatter: Formatter | None = None) -> str:
    """Expand an annotated record declaration.

    Args:
        attr: Arguments of the annotating attribute. They carry no meaning
            and are ignored.
        item: Record declaration text.
        formatter: Formatter for the source embedded in documentation;
            defaults to ``DeclarationFormatter``.

    Returns:
        Source of the namespace replacing the declaration.

    Raises:
        MalformedDeclaration: If ``item`` is not a struct declaration,
            or an independent field is named like a generated item.
        UnformattableSource: If the formatter cannot format ``item``.
    """
    if attr.strip():
        logger.warning(f"Ignoring attribute arguments (attr={attr.strip()})")
    declaration = parse_declaration(item)
    namespace = build_namespace(declaration, formatter or DeclarationFormatter())
    logger.debug(f"Dismantled record (name={declaration.name})")
    return emit_namespace(namespace)


def build_namespace(declaration: RecordDeclaration, formatter: Formatter) -> Namespace:
    """Run normalization, classification and synthesis for one declaration.

    Args:
        declaration: Parsed record declaration.
        formatter: Formatter for the source embedded in documentation.

    Returns:
        All artifacts of the companion namespace.
    """
    original = formatter.format(declaration.source)
    entries = normalize_fields(declaration)
    classification = classify_fields(entries, declaration.generics, original)
    _check_namespace_items(entries, classification)
    record = assemble_record(declaration, entries, doc_struct(declaration.name, original))
    return Namespace(
        ident=declaration.name,
        vis=declaration.vis,
        attrs=tuple(attr for attr in declaration.attrs if attr.path in MODULE_ATTRIBUTES),
        marker_docs=doc_marker_module(declaration.name),
        markers=tuple(
            FieldMarker(ident=entry.ident, docs=doc_marker(entry.ident, declaration.name))
            for entry in entries
        ),
        aliases=synthesize_aliases(classification),
        record=record,
        contract=synthesize_contract(classification, declaration.generics, declaration.name),
    )


def _check_namespace_items(
    entries: tuple[FieldEntry, ...], classification: Classification
) -> None:
    """Reject independent fields whose alias would redefine a generated item.

    Raises:
        MalformedDeclaration: If an alias name is already taken.
    """
    spans = {entry.ident: entry.field.span for entry in entries}
    for alias in classification.independent:
        if alias.ident in NAMESPACE_ITEMS:
            raise MalformedDeclaration(
                f"field `{alias.ident}` clashes with the generated `{alias.ident}` item",
                span=spans[alias.ident],
            )


def inspect_item(item: str) -> RecordReport:
    """Report the field classification of a declaration without emitting code.

    Raises:
        MalformedDeclaration: If ``item`` is not a struct declaration.
    """
    declaration = parse_declaration(item)
    entries = normalize_fields(declaration)
    classification = classify_fields(entries, declaration.generics, original="")
    fields = tuple(
        FieldReport(
            ident=alias.ident,
            ty=compact(render_type(alias.ty)),
            dependent=alias.dependent,
            generics=tuple(param.name for param in alias.generics),
        )
        for alias in classification.aliases
    )
    return RecordReport(
        name=declaration.name,
        shape=declaration.fields.shape,
        generics=declaration.generics.identifiers,
        fields=fields,
    )
