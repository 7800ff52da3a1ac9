# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Free-standing type aliases for fields independent of the record's generics."""

import logging
from dataclasses import dataclass

from dismantler.classifier import Classification
from dismantler.syntax import TypeExpr

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TypeAliasDecl:
    """Represent ``pub type <ident> = <ty>;`` at namespace scope."""

    ident: str
    ty: TypeExpr
    docs: str


def synthesize_aliases(classification: Classification) -> tuple[TypeAliasDecl, ...]:
    """Build zero-arity aliases for independent fields.

    Dependent fields get no alias here: their type only has a meaning for a
    concrete instantiation of the record and is bound by the contract.

    Args:
        classification: Shared field classification.

    Returns:
        Aliases in field order.
    """
    aliases = tuple(
        TypeAliasDecl(ident=alias.ident, ty=alias.ty, docs=alias.docs)
        for alias in classification.independent
    )
    logger.debug(f"Synthesized type aliases (count={len(aliases)})")
    return aliases
