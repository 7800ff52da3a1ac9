# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Documentation text attached to generated items."""

import re

from dismantler.syntax import Attribute
from dismantler.printer import escape_string

FIELD_TEMPLATE = "Field `{name}` of `{parent}`, of type `{ty}`."
TYPE_TEMPLATE = "Type of the `{name}` field: `{ty}`.{generics}\n\n```rust,ignore\n{original}\n```"
TYPE_GENERICS_TEMPLATE = "\n\nVaries with the record's generic parameters `{generics}`."
STRUCT_TEMPLATE = (
    "Canonical form of `{name}`, with every field public.\n\n```rust,ignore\n{original}\n```"
)
MARKER_TEMPLATE = "Marker naming the `{name}` field of `{parent}`."
MARKER_MODULE_TEMPLATE = "Zero-sized markers, one per field of `{parent}`."
CONTRACT_TEMPLATE = (
    "Associated types of records shaped like `{name}`.\n\n"
    "`{binding}` names the canonical record of an implementer."
)

_WHITESPACE = re.compile(r"\s+")


def compact(text: str) -> str:
    """Remove every whitespace character from rendered source."""
    return _WHITESPACE.sub("", text)


def doc_field(name: str, ty: str, parent: str) -> str:
    return FIELD_TEMPLATE.format(name=name, ty=compact(ty), parent=parent)


def doc_type(name: str, ty: str, original: str, generics: str | None = None) -> str:
    """Describe a field type alias or associated type.

    Args:
        name: Field identifier.
        ty: Rendered field type.
        original: Formatted source of the whole record.
        generics: Rendered minimal generic parameter list, for dependent fields.

    Returns:
        Documentation text.
    """
    generics_text = TYPE_GENERICS_TEMPLATE.format(generics=generics) if generics else ""
    return TYPE_TEMPLATE.format(
        name=name, ty=compact(ty), generics=generics_text, original=original
    )


def doc_struct(name: str, original: str) -> str:
    return STRUCT_TEMPLATE.format(name=name, original=original)


def doc_marker(name: str, parent: str) -> str:
    return MARKER_TEMPLATE.format(name=name, parent=parent)


def doc_marker_module(parent: str) -> str:
    return MARKER_MODULE_TEMPLATE.format(parent=parent)


def doc_contract(name: str, binding: str) -> str:
    return CONTRACT_TEMPLATE.format(name=name, binding=binding)


def doc_attribute(text: str) -> Attribute:
    """Build a ``///`` doc attribute carrying ``text``."""
    doc = "\n".join(f" {line}" if line else "" for line in text.split("\n"))
    return Attribute(text=f"doc = {escape_string(doc)}", doc=doc, sugared=True)
