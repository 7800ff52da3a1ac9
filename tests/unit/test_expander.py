# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Unit tests for formatters and source file expansion."""

import sys
from pathlib import Path

import pytest

from dismantler import (
    DeclarationFormatter,
    RustfmtFormatter,
    UnformattableSource,
    expand_source,
    find_annotated_items,
)


def _write_script(path: Path, body: str) -> Path:
    path.write_text(f"#!/bin/sh\n{body}\n", encoding="utf-8")
    path.chmod(0o755)
    return path


def test_ph4_fmt_001_declaration_formatter_prints_canonical_layout() -> None:
    formatted = DeclarationFormatter().format("struct  Pair<T>{a:i32,b:T}")

    assert formatted == "struct Pair<T> {\n    a: i32,\n    b: T,\n}"


def test_ph4_fmt_002_declaration_formatter_rejects_malformed_source() -> None:
    with pytest.raises(UnformattableSource, match="could not format source for documentation"):
        DeclarationFormatter().format("struct {")


def test_ph4_fmt_003_rustfmt_formatter_reports_missing_binary(tmp_path: Path) -> None:
    formatter = RustfmtFormatter(binary=str(tmp_path / "missing-rustfmt"))

    with pytest.raises(UnformattableSource):
        formatter.format("struct Empty;")


@pytest.mark.skipif(sys.platform == "win32", reason="requires a POSIX shell")
def test_ph4_fmt_004_rustfmt_formatter_returns_stdout_and_reports_failures(
    tmp_path: Path,
) -> None:
    echo = _write_script(tmp_path / "echo-rustfmt", "cat")
    failing = _write_script(tmp_path / "failing-rustfmt", "echo 'bad input' >&2\nexit 1")

    assert RustfmtFormatter(binary=str(echo)).format("struct Empty;\n") == "struct Empty;"
    with pytest.raises(UnformattableSource, match="bad input"):
        RustfmtFormatter(binary=str(failing)).format("struct Empty;")


def test_ph4_exp_001_finder_matches_dismantle_attributes_only() -> None:
    source = (
        "#[derive(Debug)]\n"
        "struct Plain;\n"
        "\n"
        "/// Documented.\n"
        "#[dismantler::dismantle(extra)]\n"
        "#[derive(Clone)]\n"
        "struct Marked { x: u8 }\n"
    )

    items = find_annotated_items(source)

    assert len(items) == 1
    assert items[0].line == 4
    assert items[0].attr == "extra"
    assert items[0].item.startswith("/// Documented.\n")
    assert "dismantle" not in items[0].item
    assert items[0].item.endswith("struct Marked { x: u8 }")
    assert items[0].item.count("\n") == 3


def test_ph4_exp_002_expansion_replaces_items_and_keeps_surrounding_code() -> None:
    source = (
        "use std::fmt;\n"
        "\n"
        "#[dismantle]\n"
        "struct Pair<T> { a: i32, b: T }\n"
        "\n"
        "fn main() {}\n"
    )

    result = expand_source(source)

    assert result.expanded == 1
    assert result.failed == 0
    assert result.errors == ()
    assert result.source.startswith(
        "use std::fmt;\n\n#[allow(non_snake_case)]\nmod Pair {\n"
    )
    assert result.source.endswith("}\n\nfn main() {}\n")


def test_ph4_exp_003_failing_items_are_reported_and_left_untouched() -> None:
    source = "#[dismantle]\nenum E { A }\n\n#[dismantle]\nstruct Fine;\n"

    result = expand_source(source)

    assert result.expanded == 1
    assert result.failed == 1
    assert result.errors[0].line == 2
    assert result.errors[0].message == "only struct declarations can be dismantled, found `enum`"
    assert result.source.startswith("#[dismantle]\nenum E { A }\n\n")
    assert "mod Fine {" in result.source


def test_ph4_exp_004_nested_items_keep_their_indentation() -> None:
    source = "mod outer {\n    #[dismantle]\n    struct Inner;\n}\n"

    result = expand_source(source)

    assert result.source.startswith(
        "mod outer {\n"
        "    #[allow(non_snake_case)]\n"
        "    mod Inner {\n"
        "        #![allow(non_camel_case_types)]\n"
    )
    assert result.source.endswith("        }\n    }\n}\n")


def test_ph4_exp_005_braces_inside_generics_do_not_end_the_item() -> None:
    source = (
        "#[dismantle]\n"
        "struct Arr<const N: usize = { 4 }> { data: [u8; N] }\n"
        "struct Other;\n"
    )

    result = expand_source(source)

    assert result.expanded == 1
    assert "        type data = [u8; N];" in result.source.splitlines()
    assert result.source.endswith("}\nstruct Other;\n")


def test_ph4_exp_006_formatter_failures_are_reported_per_item() -> None:
    class _Offline:
        def format(self, source: str) -> str:
            raise UnformattableSource("offline")

    result = expand_source("\n#[dismantle]\nstruct A;\n", formatter=_Offline())

    assert result.failed == 1
    assert result.errors[0].line == 2
    assert "offline" in result.errors[0].message
    assert result.source == "\n#[dismantle]\nstruct A;\n"
