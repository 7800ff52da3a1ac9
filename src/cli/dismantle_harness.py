# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Run record dismantling over Rust source files and crates."""

import argparse
import json
import logging
import sys
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import TextIO

import pathspec
from dismantler import (
    DeclarationFormatter,
    ExpansionError,
    Formatter,
    MalformedDeclaration,
    RecordReport,
    RustfmtFormatter,
    expand_source,
    find_annotated_items,
    inspect_item,
    item_error,
)
from rich.console import Console
from rich.logging import RichHandler
from rich.style import Style
from rich.table import Table

logger = logging.getLogger(__name__)

RUST_SUFFIX = ".rs"
GITIGNORE_NAME = ".gitignore"


@dataclass(frozen=True)
class FileInspection:
    """Represent the classification reports and failures of one source file."""

    path: Path
    reports: tuple[RecordReport, ...]
    errors: tuple[ExpansionError, ...]


class ValidationError(RuntimeError):
    """Represent user input validation failure."""


def configure_logging(level: int = logging.INFO) -> None:
    """Configure application logging with Rich handler.

    Args:
        level: Logging severity threshold.
    """
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )


def build_parser() -> argparse.ArgumentParser:
    """Build CLI parser."""
    parser = argparse.ArgumentParser(prog="dismantle")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    commands = parser.add_subparsers(dest="command", required=True)

    expand = commands.add_parser("expand", help="Expand annotated records of one file.")
    expand.add_argument("--path", required=True, help="Rust source file.")
    expand.add_argument("--output", help="Output file; defaults to standard output.")
    expand.add_argument(
        "--formatter",
        choices=("builtin", "rustfmt"),
        default="builtin",
        help="Formatter for the source embedded in generated docs.",
    )
    expand.add_argument("--rustfmt", default="rustfmt", help="rustfmt executable.")

    inspect = commands.add_parser(
        "inspect", help="Report field classification of a file or a crate directory."
    )
    inspect.add_argument(
        "--path",
        required=True,
        help="Rust source file, or a directory searched for .rs files outside .gitignore.",
    )
    inspect.add_argument("--format", choices=("table", "json"), default="table")
    inspect.add_argument("--output", help="Output file; defaults to standard output.")
    return parser


def run(argv: list[str], stdout: TextIO, stderr: TextIO) -> int:
    """Run dismantle command.

    Args:
        argv: CLI arguments.
        stdout: Standard output stream.
        stderr: Standard error stream.

    Returns:
        Exit code: 0 on success, 1 when some items failed, 2 on invalid
        arguments or I/O failure.
    """
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit:
        logger.warning("Argument parsing failed (argv=%s)", argv)
        return 2
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    console = Console(file=stdout, force_terminal=False, color_system="truecolor")
    try:
        if args.command == "expand":
            return _run_expand(args=args, stdout=stdout, stderr=stderr, console=console)
        return _run_inspect(args=args, stderr=stderr, console=console)
    except ValidationError as exc:
        logger.warning("Validation failed (error=%s)", exc)
        stderr.write(f"{exc}\n")
        return 2


def _run_expand(
    args: argparse.Namespace, stdout: TextIO, stderr: TextIO, console: Console
) -> int:
    path = _validate_source_path(Path(args.path), allow_directory=False)
    try:
        source = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning("Failed reading file (path=%s error=%s)", path, exc)
        stderr.write(f"Failed reading {path}: {exc}\n")
        return 2
    try:
        result = expand_source(source, formatter=_build_formatter(args))
    except MalformedDeclaration as exc:
        logger.warning("Failed tokenizing file (path=%s error=%s)", path, exc)
        stderr.write(f"{path}:{exc}\n")
        return 2
    _write_errors(stderr=stderr, path=path, errors=result.errors)

    if args.output is None:
        stdout.write(result.source)
    else:
        try:
            _write_atomically(Path(args.output), result.source)
        except OSError as exc:
            logger.warning("Failed writing file (path=%s error=%s)", args.output, exc)
            stderr.write(f"Failed writing {args.output}: {exc}\n")
            return 2
        console.print(f"items_expanded={result.expanded} items_failed={result.failed}")
    logger.info("Expanded file (path=%s items=%s failed=%s)", path, result.expanded, result.failed)
    return 1 if result.failed else 0


def _run_inspect(args: argparse.Namespace, stderr: TextIO, console: Console) -> int:
    root = _validate_source_path(Path(args.path), allow_directory=True)
    inspections: list[FileInspection] = []
    try:
        for path in _rust_sources(root):
            inspections.append(_inspect_file(path))
    except (OSError, UnicodeDecodeError, MalformedDeclaration) as exc:
        logger.warning("Failed reading sources (path=%s error=%s)", root, exc)
        stderr.write(f"Failed reading {root}: {exc}\n")
        return 2

    for inspection in inspections:
        _write_errors(stderr=stderr, path=inspection.path, errors=inspection.errors)

    if args.format == "json" and args.output is not None:
        try:
            _write_json_file(inspections=inspections, output_path=Path(args.output))
        except OSError as exc:
            logger.warning("Failed writing file (path=%s error=%s)", args.output, exc)
            stderr.write(f"Failed writing {args.output}: {exc}\n")
            return 2
    elif args.format == "json":
        _write_json(inspections=inspections, console=console)
    else:
        _write_table(inspections=inspections, console=console)
    return 1 if any(inspection.errors for inspection in inspections) else 0


def _build_formatter(args: argparse.Namespace) -> Formatter:
    if args.formatter == "rustfmt":
        return RustfmtFormatter(binary=args.rustfmt)
    return DeclarationFormatter()


def _rust_sources(root: Path) -> list[Path]:
    """List the Rust files to inspect under ``root``.

    A file is returned as is. In a directory, files matched by the
    directory's own .gitignore are skipped, and so is anything under ``.git``.

    Raises:
        OSError: If the .gitignore file cannot be read.
        UnicodeDecodeError: If the .gitignore file is not valid UTF-8.
    """
    if root.is_file():
        return [root]
    ignore_path = root / GITIGNORE_NAME
    lines = ignore_path.read_text(encoding="utf-8").splitlines() if ignore_path.is_file() else []
    ignored = pathspec.GitIgnoreSpec.from_lines(lines)
    sources = []
    for path in sorted(root.rglob(f"*{RUST_SUFFIX}")):
        relative = path.relative_to(root)
        if ".git" in relative.parts or not path.is_file():
            continue
        if ignored.match_file(relative.as_posix()):
            logger.debug("Skipping ignored file (path=%s)", relative)
            continue
        sources.append(path)
    logger.debug("Collected Rust sources (root=%s count=%s)", root, len(sources))
    return sources


def _inspect_file(path: Path) -> FileInspection:
    items = find_annotated_items(path.read_text(encoding="utf-8"))
    reports: list[RecordReport] = []
    errors: list[ExpansionError] = []
    for item in items:
        try:
            reports.append(inspect_item(item.item))
        except MalformedDeclaration as exc:
            errors.append(item_error(item, exc))
    return FileInspection(path=path, reports=tuple(reports), errors=tuple(errors))


def _inspection_payload(inspections: list[FileInspection]) -> dict[str, list[dict[str, object]]]:
    return {
        "records": [
            {"path": str(inspection.path), **asdict(report)}
            for inspection in inspections
            for report in inspection.reports
        ],
        "errors": [
            {"path": str(inspection.path), **asdict(error)}
            for inspection in inspections
            for error in inspection.errors
        ],
    }


def _write_json(inspections: list[FileInspection], console: Console) -> None:
    """Write inspection reports and errors in JSON format.

    Args:
        inspections: Per-file inspection results.
        console: Console bound to standard output.
    """
    console.print(
        json.dumps(_inspection_payload(inspections), indent=2, sort_keys=True),
        markup=False,
        highlight=False,
        soft_wrap=True,
    )


def _write_json_file(inspections: list[FileInspection], output_path: Path) -> None:
    """Write raw JSON payload to an output file.

    Raises:
        OSError: If directory creation or file writing fails.
    """
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(
        json.dumps(_inspection_payload(inspections), indent=2, sort_keys=True),
        encoding="utf-8",
    )


def _write_table(inspections: list[FileInspection], console: Console) -> None:
    """Write one field table per record.

    Args:
        inspections: Per-file inspection results.
        console: Console bound to standard output.
    """
    for inspection in inspections:
        for report in inspection.reports:
            console.rule(
                f"{report.name} ({report.shape}) {inspection.path}",
                style=Style(color="cyan"),
                characters="-",
            )
            table = Table(show_header=True, show_lines=True, expand=True)
            table.add_column("field", ratio=2, overflow="fold")
            table.add_column("type", ratio=4, overflow="fold")
            table.add_column("dependent", ratio=1, overflow="fold")
            table.add_column("generics", ratio=2, overflow="fold")
            for field in report.fields:
                table.add_row(
                    field.ident,
                    field.ty,
                    "yes" if field.dependent else "no",
                    ", ".join(field.generics),
                )
            console.print(table)


def _write_errors(stderr: TextIO, path: Path, errors: tuple[ExpansionError, ...]) -> None:
    for error in errors:
        stderr.write(f"{path}:{error.line}: {error.message}\n")


def _validate_source_path(path: Path, allow_directory: bool) -> Path:
    """Validate a source path argument.

    Raises:
        ValidationError: If the path is missing, or is a directory where a
            file is required.
    """
    resolved = path.resolve()
    if not resolved.exists():
        raise ValidationError(f"Source path does not exist: {resolved}")
    if resolved.is_dir() and allow_directory:
        return resolved
    if not resolved.is_file():
        raise ValidationError(f"Source path must be a file: {resolved}")
    return resolved


def _write_atomically(path: Path, content: str) -> None:
    tmp_path = path.with_suffix(f"{path.suffix}.tmp")
    tmp_path.write_text(content, encoding="utf-8")
    tmp_path.replace(path)


def main() -> None:
    """Run dismantle CLI."""
    configure_logging()
    exit_code = run(sys.argv[1:], stdout=sys.stdout, stderr=sys.stderr)
    raise SystemExit(exit_code)


if __name__ == "__main__":
    main()
