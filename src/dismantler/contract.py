# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Synthesize the associated-type contract implemented by the canonical record.

The contract declares one associated type per dependent field plus the
self-referential ``__Core`` type, bound by the contract itself with every
associated type rebound to the implementer's own. The canonical record
implements it over its full generic parameter list, binding ``__Core`` to
``Self`` and each associated type to the literal field type.
"""

import logging
from dataclasses import dataclass

from dismantler.assembler import CANONICAL_RECORD_IDENT
from dismantler.classifier import Classification
from dismantler.diagnostics import ContractError
from dismantler.docs import doc_contract
from dismantler.syntax import Generics, TypeExpr

logger = logging.getLogger(__name__)

CONTRACT_IDENT = "protocol"
SELF_BINDING_IDENT = "__Core"


@dataclass(frozen=True)
class AssociatedType:
    """Represent ``type <ident>: ?Sized;`` declared on the contract."""

    ident: str
    docs: str


@dataclass(frozen=True)
class ContractInterface:
    """Represent the contract trait.

    Attributes:
        ident: Trait name.
        self_binding: Name of the self-referential associated type.
        associated: One declaration per dependent field, in field order.
        docs: Trait documentation.
    """

    ident: str
    self_binding: str
    associated: tuple[AssociatedType, ...]
    docs: str

    @property
    def associated_idents(self) -> tuple[str, ...]:
        return tuple(item.ident for item in self.associated)

    @property
    def self_bindings(self) -> tuple[tuple[str, str], ...]:
        """Return the ``ident = Self::ident`` pairs bounding ``__Core``."""
        return tuple((ident, f"Self::{ident}") for ident in self.associated_idents)


@dataclass(frozen=True)
class AssociatedBinding:
    """Represent ``type <ident> = <ty>;`` in the implementation."""

    ident: str
    ty: TypeExpr
    docs: str


@dataclass(frozen=True)
class ContractImpl:
    """Represent the implementation of the contract for the canonical record.

    Attributes:
        contract: Implemented trait name.
        record: Implementing record name.
        generics: Full generic parameter list of the original declaration.
        bindings: One binding per declared associated type, in declaration order.
        self_binding: Name of the self-referential associated type, bound to ``Self``.
    """

    contract: str
    record: str
    generics: Generics
    bindings: tuple[AssociatedBinding, ...]
    self_binding: str = SELF_BINDING_IDENT


@dataclass(frozen=True)
class Contract:
    interface: ContractInterface
    implementation: ContractImpl


def declare_interface(classification: Classification, record_name: str) -> ContractInterface:
    """Declare the contract trait from the dependent fields.

    Args:
        classification: Shared field classification.
        record_name: Original record name, used in documentation.

    Returns:
        Interface with one associated type per dependent field.
    """
    associated = tuple(
        AssociatedType(ident=alias.ident, docs=alias.docs)
        for alias in classification.dependent
    )
    return ContractInterface(
        ident=CONTRACT_IDENT,
        self_binding=SELF_BINDING_IDENT,
        associated=associated,
        docs=doc_contract(record_name, SELF_BINDING_IDENT),
    )


def implement_interface(
    interface: ContractInterface,
    classification: Classification,
    generics: Generics,
    record_ident: str = CANONICAL_RECORD_IDENT,
) -> ContractImpl:
    """Bind every associated type of ``interface`` for the canonical record.

    Args:
        interface: Declared contract.
        classification: The classification the interface was declared from.
        generics: Full generics of the original declaration.
        record_ident: Name of the implementing record.

    Returns:
        Implementation binding exactly the declared associated types.

    Raises:
        ContractError: If a declared associated type has no dependent field
            to bind, or a dependent field has no declared associated type.
    """
    dependent = {alias.ident: alias for alias in classification.dependent}
    declared = interface.associated_idents
    missing = [ident for ident in declared if ident not in dependent]
    if missing:
        raise ContractError(f"Associated types without a binding: {', '.join(missing)}")
    unknown = [ident for ident in dependent if ident not in declared]
    if unknown:
        raise ContractError(f"Bindings for undeclared associated types: {', '.join(unknown)}")

    bindings = tuple(
        AssociatedBinding(ident=ident, ty=dependent[ident].ty, docs=dependent[ident].docs)
        for ident in declared
    )
    return ContractImpl(
        contract=interface.ident,
        record=record_ident,
        generics=generics,
        bindings=bindings,
        self_binding=interface.self_binding,
    )


def synthesize_contract(
    classification: Classification, generics: Generics, record_name: str
) -> Contract:
    """Build the contract trait and its implementation for the canonical record."""
    interface = declare_interface(classification, record_name)
    implementation = implement_interface(interface, classification, generics)
    logger.debug(
        f"Synthesized contract (record={record_name} "
        f"associated_types={len(interface.associated)})"
    )
    return Contract(interface=interface, implementation=implementation)
