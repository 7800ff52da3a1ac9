# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Unit tests for declaration tokenizing and parsing."""

import pytest

from dismantler.diagnostics import MalformedDeclaration
from dismantler.lexer import tokenize
from dismantler.parser import parse_declaration, parse_type_expr
from dismantler.printer import render_type
from dismantler.syntax import PUBLIC, PathType, TraitBound


def test_ph1_lex_001_tokenizer_splits_declaration_into_kinds() -> None:
    tokens = tokenize("struct Pair<T> { a: i32, b: T }")

    assert [token.text for token in tokens] == [
        "struct", "Pair", "<", "T", ">", "{", "a", ":", "i32", ",", "b", ":", "T", "}",
    ]
    assert tokens[0].kind == "ident"
    assert tokens[2].kind == "punct"
    assert tokens[0].span.line == 1
    assert tokens[0].span.column == 1


def test_ph1_lex_002_tokenizer_keeps_doc_comments_and_drops_plain_comments() -> None:
    source = "/// Hello\n// note\n/* block */\nstruct A;"

    tokens = tokenize(source)

    assert tokens[0].kind == "doc"
    assert tokens[0].text == " Hello"
    assert [token.text for token in tokens[1:]] == ["struct", "A", ";"]
    assert tokens[1].span.line == 4


def test_ph1_lex_003_tokenizer_separates_lifetimes_chars_and_path_separators() -> None:
    tokens = tokenize("&'a std::string::String 'x' r#\"raw\"#")

    texts = [(token.kind, token.text) for token in tokens]
    assert ("lifetime", "'a") in texts
    assert ("punct", "::") in texts
    assert ("literal", "'x'") in texts
    assert ("literal", 'r#"raw"#') in texts


def test_ph1_lex_004_tokenizer_rejects_unknown_characters() -> None:
    with pytest.raises(MalformedDeclaration) as excinfo:
        tokenize("struct A`")

    assert excinfo.value.span is not None
    assert excinfo.value.span.line == 1


def test_ph1_par_001_parser_reads_named_record_with_generics() -> None:
    declaration = parse_declaration("struct Pair<T> { a: i32, b: T }")

    assert declaration.name == "Pair"
    assert declaration.generics.identifiers == ("T",)
    assert declaration.fields.shape == "named"
    assert [field.name for field in declaration.fields.items] == ["a", "b"]
    assert [render_type(field.ty) for field in declaration.fields.items] == ["i32", "T"]
    assert declaration.semicolon is False


def test_ph1_par_002_parser_reads_positional_and_unit_records() -> None:
    tuple_record = parse_declaration("pub(crate) struct Tuple(i32, pub i32);")
    unit_record = parse_declaration("struct Empty;")

    assert tuple_record.fields.shape == "positional"
    assert tuple_record.vis.text == "pub(crate)"
    assert tuple_record.semicolon is True
    assert tuple_record.fields.items[1].vis == PUBLIC
    assert [field.name for field in tuple_record.fields.items] == [None, None]
    assert unit_record.fields.shape == "unit"
    assert unit_record.fields.items == ()
    assert unit_record.semicolon is True


def test_ph1_par_003_parser_reads_bounds_defaults_and_where_clause() -> None:
    declaration = parse_declaration(
        "struct Container<'a, C: Clone + 'a, T = i64, const N: usize = 4>\n"
        "where\n"
        "    T: Default,\n"
        "{\n"
        "    items: [&'a C; N],\n"
        "    extra: T,\n"
        "}"
    )

    params = declaration.generics.params
    assert [param.kind for param in params] == ["lifetime", "type", "type", "const"]
    assert declaration.generics.identifiers == ("'a", "C", "T", "N")
    assert isinstance(params[1].bounds[0], TraitBound)
    assert isinstance(params[2].default, PathType)
    assert len(declaration.generics.where) == 1
    assert render_type(declaration.fields.items[0].ty) == "[&'a C; N]"


def test_ph1_par_004_parser_keeps_outer_attributes_and_docs() -> None:
    declaration = parse_declaration(
        "/// A pair.\n#[derive(Debug, Clone)]\n#[repr(C)]\npub struct Pair { a: u8 }"
    )

    assert [attr.path for attr in declaration.attrs] == ["doc", "derive", "repr"]
    assert declaration.attrs[0].doc == " A pair."
    assert declaration.attrs[1].text == "derive(Debug, Clone)"
    assert declaration.vis == PUBLIC


def test_ph1_par_005_parser_rejects_enum_declarations() -> None:
    with pytest.raises(MalformedDeclaration) as excinfo:
        parse_declaration("enum E { A, B }")

    assert "only struct declarations can be dismantled, found `enum`" in str(excinfo.value)


def test_ph1_par_006_parser_suggests_struct_keyword_for_typos() -> None:
    with pytest.raises(MalformedDeclaration) as excinfo:
        parse_declaration("strcut Foo;")

    assert excinfo.value.message == "expected `struct`, found `strcut`"
    assert excinfo.value.suggestion == "did you mean `struct`?"
    assert str(excinfo.value) == "1:1: expected `struct`, found `strcut` (did you mean `struct`?)"


def test_ph1_par_007_parser_gives_no_suggestion_for_unrelated_items() -> None:
    with pytest.raises(MalformedDeclaration) as excinfo:
        parse_declaration("fn foo() {}")

    assert excinfo.value.suggestion is None


def test_ph1_par_008_parser_rejects_duplicate_fields_and_parameters() -> None:
    with pytest.raises(MalformedDeclaration, match="duplicate field `a`"):
        parse_declaration("struct A { a: u8, a: u16 }")
    with pytest.raises(MalformedDeclaration, match="duplicate generic parameter `T`"):
        parse_declaration("struct A<T, T> { a: T }")


def test_ph1_par_009_parser_rejects_trailing_tokens_and_misplaced_where() -> None:
    with pytest.raises(MalformedDeclaration, match="unexpected token `x` after declaration"):
        parse_declaration("struct A; x")
    with pytest.raises(MalformedDeclaration, match="where clause of a tuple struct"):
        parse_declaration("struct A<'a> where 'a: 'a (&'a u8);")


def test_ph1_par_010_parser_reports_unclosed_field_list_position() -> None:
    with pytest.raises(MalformedDeclaration) as excinfo:
        parse_declaration("struct A {\n    a: u8,\n")

    assert excinfo.value.message == "unclosed delimiter `{`"
    assert excinfo.value.span is not None
    assert excinfo.value.span.line == 1


@pytest.mark.parametrize(
    "source",
    [
        "Vec<Option<T>>",
        "&'a mut [T; N]",
        "Box<dyn Fn(&str) -> u8 + Send>",
        "<T as Iterator>::Item",
        "fn(u8) -> bool",
        "(i32,)",
        "HashMap<K, Vec<V>>",
        "*const u8",
        "impl Iterator<Item = T>",
        "for<'b> fn(&'b str)",
        "Foo<3, { N + 1 }>",
    ],
)
def test_ph1_par_011_type_expressions_render_back_canonically(source: str) -> None:
    assert render_type(parse_type_expr(source)) == source
