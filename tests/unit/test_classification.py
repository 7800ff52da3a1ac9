# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Unit tests for field normalization, classification and contract synthesis."""

import pytest

from dismantler.aliases import synthesize_aliases
from dismantler.assembler import assemble_record
from dismantler.classifier import classify_fields, dependent_params
from dismantler.contract import declare_interface, implement_interface, synthesize_contract
from dismantler.diagnostics import ContractError
from dismantler.normalizer import normalize_fields
from dismantler.parser import parse_declaration, parse_type_expr
from dismantler.printer import render_type
from dismantler.syntax import PUBLIC, Generics
from dismantler.walker import referenced_identifiers

CONTAINER = "struct Container<C: Clone, T = i64> { a: C, b: Vec<T>, c: u8 }"


def _classify(source: str):
    declaration = parse_declaration(source)
    entries = normalize_fields(declaration)
    return declaration, entries, classify_fields(entries, declaration.generics, "original")


@pytest.mark.parametrize(
    ("source", "expected"),
    [
        ("HashMap<K, Vec<V>>", {"HashMap", "K", "Vec", "V"}),
        ("&'a T", {"'a", "T"}),
        ("[u8; N]", {"u8", "N"}),
        ("Box<dyn Iterator<Item = T>>", {"Box", "T"}),
        ("T::Assoc", {"T"}),
        ("<T as Trait>::Out", {"T", "Trait"}),
        ("vec![T]", set()),
        ("fn(A) -> B", {"A", "B"}),
    ],
)
def test_ph2_wlk_001_walker_collects_referenced_identifiers(
    source: str, expected: set[str]
) -> None:
    assert referenced_identifiers(parse_type_expr(source)) == frozenset(expected)


def test_ph2_nrm_001_positional_fields_get_indexed_identifiers() -> None:
    declaration = parse_declaration("struct Tuple(i32, i32);")

    entries = normalize_fields(declaration)

    assert [entry.ident for entry in entries] == ["field_0", "field_1"]
    assert [entry.index for entry in entries] == [0, 1]
    assert all(entry.field.vis == PUBLIC for entry in entries)
    assert entries[0].docs == "Field `field_0` of `Tuple`, of type `i32`."
    assert entries[0].field.attrs[-1].doc == " Field `field_0` of `Tuple`, of type `i32`."


def test_ph2_nrm_002_named_fields_keep_names_order_and_attributes() -> None:
    declaration = parse_declaration("struct A { #[serde(skip)] z: u8, a: Vec<u8> }")

    entries = normalize_fields(declaration)

    assert [entry.ident for entry in entries] == ["z", "a"]
    assert entries[0].field.attrs[0].text == "serde(skip)"
    assert entries[1].docs == "Field `a` of `A`, of type `Vec<u8>`."


def test_ph2_cls_001_classification_separates_dependent_and_independent_fields() -> None:
    _, _, classification = _classify(CONTAINER)

    assert [alias.ident for alias in classification.dependent] == ["a", "b"]
    assert [alias.ident for alias in classification.independent] == ["c"]
    assert [param.name for param in classification.aliases[0].generics] == ["C"]
    assert [param.name for param in classification.aliases[1].generics] == ["T"]
    assert "`<C: Clone>`" in classification.aliases[0].docs
    assert "`<T = i64>`" in classification.aliases[1].docs
    assert "generic parameters" not in classification.aliases[2].docs


def test_ph2_cls_002_classification_is_idempotent() -> None:
    declaration, entries, first = _classify(CONTAINER)

    second = classify_fields(entries, declaration.generics, "original")

    assert first == second


def test_ph2_cls_003_lifetimes_and_const_parameters_make_fields_dependent() -> None:
    declaration = parse_declaration(
        "struct View<'a, const N: usize> { text: &'a str, data: [u8; N], flag: bool }"
    )

    params = [
        dependent_params(field.ty, declaration.generics) for field in declaration.fields.items
    ]

    assert [[param.name for param in found] for found in params] == [["'a"], ["N"], []]


def test_ph2_cls_004_minimal_subset_follows_declaration_order() -> None:
    declaration = parse_declaration("struct M<A, B, C> { pair: (C, A) }")

    params = dependent_params(declaration.fields.items[0].ty, declaration.generics)

    assert [param.name for param in params] == ["A", "C"]


def test_ph2_cls_005_self_references_make_fields_dependent_without_parameters() -> None:
    _, _, classification = _classify("struct Node { value: u8, next: Option<Box<Self>> }")

    assert [alias.ident for alias in classification.independent] == ["value"]
    assert [alias.ident for alias in classification.dependent] == ["next"]
    assert classification.aliases[1].uses_self
    assert classification.aliases[1].generics == ()


def test_ph2_ali_001_aliases_cover_only_independent_fields() -> None:
    _, _, classification = _classify(CONTAINER)

    aliases = synthesize_aliases(classification)

    assert [(alias.ident, render_type(alias.ty)) for alias in aliases] == [("c", "u8")]


def test_ph2_con_001_contract_declares_one_associated_type_per_dependent_field() -> None:
    declaration, _, classification = _classify(CONTAINER)

    contract = synthesize_contract(classification, declaration.generics, declaration.name)

    assert contract.interface.ident == "protocol"
    assert contract.interface.self_binding == "__Core"
    assert contract.interface.associated_idents == ("a", "b")
    assert contract.interface.self_bindings == (("a", "Self::a"), ("b", "Self::b"))
    assert contract.implementation.record == "core"
    assert [
        (binding.ident, render_type(binding.ty))
        for binding in contract.implementation.bindings
    ] == [("a", "C"), ("b", "Vec<T>")]
    assert contract.implementation.generics == declaration.generics


def test_ph2_con_002_contract_without_dependent_fields_has_only_self_binding() -> None:
    declaration, _, classification = _classify("struct Tuple(i32, i32);")

    contract = synthesize_contract(classification, declaration.generics, declaration.name)

    assert contract.interface.associated == ()
    assert contract.implementation.bindings == ()


def test_ph2_con_003_implementation_rejects_mismatched_interface() -> None:
    _, _, pair = _classify("struct Pair<T> { a: i32, b: T }")
    _, _, plain = _classify("struct Plain { a: i32, b: u8 }")

    with pytest.raises(ContractError, match="Associated types without a binding: b"):
        implement_interface(declare_interface(pair, "Pair"), plain, _pair_generics())
    with pytest.raises(ContractError, match="Bindings for undeclared associated types: b"):
        implement_interface(declare_interface(plain, "Plain"), pair, _pair_generics())


def test_ph2_asm_001_canonical_record_is_public_renamed_and_documented() -> None:
    declaration, entries, _ = _classify("#[derive(Debug)]\nstruct Tuple(i32, u8);")

    record = assemble_record(declaration, entries, "Canonical.")

    assert record.name == "core"
    assert record.vis == PUBLIC
    assert record.fields.shape == "positional"
    assert record.semicolon is True
    assert [attr.text for attr in record.attrs][0] == "derive(Debug)"
    assert record.attrs[-1].doc == " Canonical."
    assert all(field.vis == PUBLIC for field in record.fields.items)


def _pair_generics() -> Generics:
    return parse_declaration("struct Pair<T> { b: T }").generics
