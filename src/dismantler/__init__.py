# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Public import surface for record dismantling components."""

from dismantler.builder import FieldReport, RecordReport, dismantle, inspect_item
from dismantler.diagnostics import ContractError, MalformedDeclaration, Span, UnformattableSource
from dismantler.expander import (
    AnnotatedItem,
    ExpansionError,
    ExpansionResult,
    expand_source,
    find_annotated_items,
    item_error,
)
from dismantler.formatter import DeclarationFormatter, Formatter, RustfmtFormatter
from dismantler.parser import parse_declaration

__all__ = [
    "AnnotatedItem",
    "ContractError",
    "DeclarationFormatter",
    "ExpansionError",
    "ExpansionResult",
    "FieldReport",
    "Formatter",
    "MalformedDeclaration",
    "RecordReport",
    "RustfmtFormatter",
    "Span",
    "UnformattableSource",
    "dismantle",
    "expand_source",
    "find_annotated_items",
    "inspect_item",
    "item_error",
    "parse_declaration",
]
