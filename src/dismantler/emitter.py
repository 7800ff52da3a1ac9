# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Emit the companion namespace as Rust source text."""

import logging
from dataclasses import dataclass

from dismantler.aliases import TypeAliasDecl
from dismantler.contract import Contract, ContractImpl, ContractInterface
from dismantler.docs import doc_attribute
from dismantler.printer import (
    INDENT,
    render_attribute,
    render_generics,
    render_struct,
    render_type,
    render_visibility,
    render_where,
)
from dismantler.syntax import Attribute, RecordDeclaration, Visibility

logger = logging.getLogger(__name__)

MARKER_MODULE_IDENT = "__fields"
MARKER_DERIVE = "derive(Clone, Copy, Debug, Default, PartialEq, Eq, Hash)"


@dataclass(frozen=True)
class FieldMarker:
    """Represent the zero-size type naming one field."""

    ident: str
    docs: str


@dataclass(frozen=True)
class Namespace:
    """Represent everything emitted for one record declaration.

    Attributes:
        ident: Namespace name, the original record name.
        vis: Namespace visibility, the original record visibility.
        attrs: Original doc and cfg attributes repeated on the namespace.
        marker_docs: Documentation of the marker module.
        markers: One marker per field, in field order.
        aliases: Aliases of the independent fields, in field order.
        record: Canonical record.
        contract: Contract trait and its implementation.
    """

    ident: str
    vis: Visibility
    attrs: tuple[Attribute, ...]
    marker_docs: str
    markers: tuple[FieldMarker, ...]
    aliases: tuple[TypeAliasDecl, ...]
    record: RecordDeclaration
    contract: Contract


def emit_namespace(namespace: Namespace) -> str:
    """Render the namespace.

    Args:
        namespace: Synthesized artifacts of one declaration.

    Returns:
        Rust source of the enclosing ``mod``, newline-terminated.
    """
    blocks: list[list[str]] = [
        _marker_block(namespace),
        *(_alias_block(alias) for alias in namespace.aliases),
        render_struct(namespace.record),
        _interface_block(namespace.contract.interface),
        _impl_block(namespace.contract.implementation),
    ]
    lines: list[str] = []
    for attr in namespace.attrs:
        lines.extend(render_attribute(attr))
    lines.append("#[allow(non_snake_case)]")
    lines.append(f"{render_visibility(namespace.vis)}mod {namespace.ident} {{")
    lines.append(f"{INDENT}#![allow(non_camel_case_types)]")
    for block in blocks:
        lines.append("")
        lines.extend(_indent(block))
    lines.append("}")
    logger.debug(f"Emitted namespace (name={namespace.ident} lines={len(lines)})")
    return "\n".join(lines) + "\n"


def _indent(block: list[str]) -> list[str]:
    return [f"{INDENT}{line}" if line else "" for line in block]


def _doc_lines(text: str) -> list[str]:
    return render_attribute(doc_attribute(text))


def _marker_block(namespace: Namespace) -> list[str]:
    lines = _doc_lines(namespace.marker_docs)
    if not namespace.markers:
        lines.append(f"pub mod {MARKER_MODULE_IDENT} {{}}")
        return lines
    lines.append(f"pub mod {MARKER_MODULE_IDENT} {{")
    for marker in namespace.markers:
        lines.extend(_indent(_doc_lines(marker.docs)))
        lines.append(f"{INDENT}#[{MARKER_DERIVE}]")
        lines.append(f"{INDENT}pub struct {marker.ident};")
    lines.append("}")
    return lines


def _alias_block(alias: TypeAliasDecl) -> list[str]:
    return [*_doc_lines(alias.docs), f"pub type {alias.ident} = {render_type(alias.ty)};"]


def _interface_block(interface: ContractInterface) -> list[str]:
    bound = interface.ident
    if interface.self_bindings:
        pairs = ", ".join(f"{ident} = {target}" for ident, target in interface.self_bindings)
        bound = f"{bound}<{pairs}>"
    lines = _doc_lines(interface.docs)
    lines.append(f"pub trait {interface.ident} {{")
    lines.append(f"{INDENT}type {interface.self_binding}: {bound};")
    for item in interface.associated:
        lines.append("")
        lines.extend(_indent(_doc_lines(item.docs)))
        lines.append(f"{INDENT}type {item.ident}: ?Sized;")
    lines.append("}")
    return lines


def _impl_block(implementation: ContractImpl) -> list[str]:
    generics = implementation.generics
    head = (
        f"impl{render_generics(generics, 'impl')} {implementation.contract} "
        f"for {implementation.record}{render_generics(generics, 'type')}"
    )
    lines: list[str] = []
    if generics.where:
        lines.append(head)
        lines.append("where")
        lines.extend(_indent(render_where(generics.where)))
        lines.append("{")
    else:
        lines.append(f"{head} {{")
    lines.append(f"{INDENT}type {implementation.self_binding} = Self;")
    for binding in implementation.bindings:
        lines.append("")
        lines.extend(_indent(_doc_lines(binding.docs)))
        lines.append(f"{INDENT}type {binding.ident} = {render_type(binding.ty)};")
    lines.append("}")
    return lines
