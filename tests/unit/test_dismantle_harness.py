# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Unit tests for the dismantle CLI harness."""

import io
import json
import re
from pathlib import Path

from cli.dismantle_harness import run

PAIR_SOURCE = "#[dismantle]\nstruct Pair<T> { a: i32, b: T }\n"
CONTAINER_SOURCE = (
    "#[dismantle]\n"
    "struct Container<C: Clone, T = i64> { a: C, b: Vec<T>, c: u8 }\n"
)


def _write_file(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def _strip_ansi(text: str) -> str:
    return re.sub(r"\x1b\[[0-9;]*m", "", text)


def test_ph5_cli_001_cli_requires_a_command() -> None:
    stdout = io.StringIO()
    stderr = io.StringIO()

    exit_code = run([], stdout=stdout, stderr=stderr)

    assert exit_code == 2


def test_ph5_cli_002_expand_fails_when_source_is_missing(tmp_path: Path) -> None:
    stdout = io.StringIO()
    stderr = io.StringIO()

    exit_code = run(
        ["expand", "--path", str(tmp_path / "missing.rs")], stdout=stdout, stderr=stderr
    )

    assert exit_code == 2
    assert "Source path does not exist" in stderr.getvalue()


def test_ph5_cli_003_expand_prints_expanded_source(tmp_path: Path) -> None:
    source_path = tmp_path / "lib.rs"
    _write_file(source_path, PAIR_SOURCE)
    stdout = io.StringIO()
    stderr = io.StringIO()

    exit_code = run(["expand", "--path", str(source_path)], stdout=stdout, stderr=stderr)

    assert exit_code == 0
    assert "mod Pair {" in stdout.getvalue()
    assert "#[dismantle]" not in stdout.getvalue()
    assert stderr.getvalue() == ""


def test_ph5_cli_004_expand_writes_output_file_and_summary(tmp_path: Path) -> None:
    source_path = tmp_path / "lib.rs"
    output_path = tmp_path / "expanded.rs"
    _write_file(source_path, PAIR_SOURCE)
    stdout = io.StringIO()
    stderr = io.StringIO()

    exit_code = run(
        ["expand", "--path", str(source_path), "--output", str(output_path)],
        stdout=stdout,
        stderr=stderr,
    )

    assert exit_code == 0
    assert "impl<T> protocol for core<T> {" in output_path.read_text(encoding="utf-8")
    assert "items_expanded=1 items_failed=0" in _strip_ansi(stdout.getvalue())
    assert source_path.read_text(encoding="utf-8") == PAIR_SOURCE


def test_ph5_cli_005_expand_reports_failed_items_with_exit_code_one(tmp_path: Path) -> None:
    source_path = tmp_path / "lib.rs"
    _write_file(source_path, "#[dismantle]\nenum E { A }\n")
    stdout = io.StringIO()
    stderr = io.StringIO()

    exit_code = run(["expand", "--path", str(source_path)], stdout=stdout, stderr=stderr)

    assert exit_code == 1
    assert ":2: only struct declarations can be dismantled" in stderr.getvalue()
    assert stdout.getvalue() == "#[dismantle]\nenum E { A }\n"


def test_ph5_cli_006_expand_with_unavailable_rustfmt_fails_per_item(tmp_path: Path) -> None:
    source_path = tmp_path / "lib.rs"
    _write_file(source_path, PAIR_SOURCE)
    stdout = io.StringIO()
    stderr = io.StringIO()

    exit_code = run(
        [
            "expand",
            "--path",
            str(source_path),
            "--formatter",
            "rustfmt",
            "--rustfmt",
            str(tmp_path / "missing-rustfmt"),
        ],
        stdout=stdout,
        stderr=stderr,
    )

    assert exit_code == 1
    assert "could not format source for documentation" in stderr.getvalue()


def test_ph5_cli_007_inspect_prints_json_report(tmp_path: Path) -> None:
    source_path = tmp_path / "lib.rs"
    _write_file(source_path, CONTAINER_SOURCE)
    stdout = io.StringIO()
    stderr = io.StringIO()

    exit_code = run(
        ["inspect", "--path", str(source_path), "--format", "json"],
        stdout=stdout,
        stderr=stderr,
    )

    assert exit_code == 0
    payload = json.loads(stdout.getvalue())
    assert payload["records"][0]["name"] == "Container"
    assert payload["records"][0]["generics"] == ["C", "T"]
    assert payload["records"][0]["fields"][1] == {
        "ident": "b",
        "ty": "Vec<T>",
        "dependent": True,
        "generics": ["T"],
    }
    assert payload["errors"] == []


def test_ph5_cli_008_inspect_writes_json_to_output_file(tmp_path: Path) -> None:
    source_path = tmp_path / "lib.rs"
    output_path = tmp_path / "report.json"
    _write_file(source_path, PAIR_SOURCE)
    stdout = io.StringIO()
    stderr = io.StringIO()

    exit_code = run(
        [
            "inspect",
            "--path",
            str(source_path),
            "--format",
            "json",
            "--output",
            str(output_path),
        ],
        stdout=stdout,
        stderr=stderr,
    )

    assert exit_code == 0
    payload = json.loads(output_path.read_text(encoding="utf-8"))
    assert [field["ident"] for field in payload["records"][0]["fields"]] == ["a", "b"]
    assert stdout.getvalue() == ""


def test_ph5_cli_009_inspect_prints_table_by_default(tmp_path: Path) -> None:
    source_path = tmp_path / "lib.rs"
    _write_file(source_path, PAIR_SOURCE)
    stdout = io.StringIO()
    stderr = io.StringIO()

    exit_code = run(["inspect", "--path", str(source_path)], stdout=stdout, stderr=stderr)

    assert exit_code == 0
    output = _strip_ansi(stdout.getvalue())
    assert "Pair (named)" in output
    assert "i32" in output



def test_ph5_cli_010_inspect_walks_crate_and_skips_gitignored_files(tmp_path: Path) -> None:
    crate = tmp_path / "crate"
    _write_file(crate / ".gitignore", "target/\n")
    _write_file(crate / "src" / "lib.rs", PAIR_SOURCE)
    _write_file(crate / "src" / "broken.rs", "#[dismantle]\nunion U { a: u8 }\n")
    _write_file(crate / "src" / "plain.rs", "fn main() {}\n")
    _write_file(crate / "target" / "debug" / "gen.rs", CONTAINER_SOURCE)
    stdout = io.StringIO()
    stderr = io.StringIO()

    exit_code = run(
        ["inspect", "--path", str(crate), "--format", "json"], stdout=stdout, stderr=stderr
    )

    assert exit_code == 1
    payload = json.loads(stdout.getvalue())
    assert [record["name"] for record in payload["records"]] == ["Pair"]
    assert payload["records"][0]["path"].endswith("lib.rs")
    assert payload["errors"][0]["path"].endswith("broken.rs")
    assert payload["errors"][0]["line"] == 2
    assert "broken.rs:2: only struct declarations can be dismantled" in stderr.getvalue()


def test_ph5_cli_011_expand_rejects_directories(tmp_path: Path) -> None:
    stdout = io.StringIO()
    stderr = io.StringIO()

    exit_code = run(["expand", "--path", str(tmp_path)], stdout=stdout, stderr=stderr)

    assert exit_code == 2
    assert "Source path must be a file" in stderr.getvalue()
