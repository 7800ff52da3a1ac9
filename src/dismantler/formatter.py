# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Formatters producing readable record source for generated documentation."""

import logging
import subprocess
from typing import Protocol

from dismantler.diagnostics import MalformedDeclaration, UnformattableSource
from dismantler.parser import parse_declaration
from dismantler.printer import render_struct

logger = logging.getLogger(__name__)

DEFAULT_RUSTFMT = "rustfmt"
DEFAULT_EDITION = "2021"
RUSTFMT_TIMEOUT_SECONDS = 30


class Formatter(Protocol):
    """Turn record source text into its formatted form."""

    def format(self, source: str) -> str:
        """Format source text.

        Args:
            source: Record declaration text.

        Returns:
            Formatted text without a trailing newline.

        Raises:
            UnformattableSource: If the text cannot be formatted.
        """


class DeclarationFormatter:
    """Format a record by parsing it and printing it in canonical layout."""

    def format(self, source: str) -> str:
        try:
            declaration = parse_declaration(source)
        except MalformedDeclaration as exc:
            logger.warning(f"Declaration formatting failed (error={exc})")
            raise UnformattableSource(str(exc)) from exc
        return "\n".join(render_struct(declaration))


class RustfmtFormatter:
    """Format a record with the ``rustfmt`` binary."""

    def __init__(self, binary: str = DEFAULT_RUSTFMT, edition: str = DEFAULT_EDITION) -> None:
        """Initialize formatter configuration.

        Args:
            binary: Path or name of the ``rustfmt`` executable.
            edition: Rust edition passed to ``rustfmt``.
        """
        self._binary = binary
        self._edition = edition

    def format(self, source: str) -> str:
        command = [self._binary, "--emit", "stdout", "--edition", self._edition]
        try:
            completed = subprocess.run(
                command,
                input=source,
                capture_output=True,
                text=True,
                check=False,
                timeout=RUSTFMT_TIMEOUT_SECONDS,
            )
        except (OSError, subprocess.TimeoutExpired) as exc:
            logger.warning(f"rustfmt could not run (binary={self._binary} error={exc})")
            raise UnformattableSource(str(exc)) from exc
        if completed.returncode != 0:
            detail = completed.stderr.strip() or f"rustfmt exited with {completed.returncode}"
            logger.warning(
                f"rustfmt rejected source (binary={self._binary} "
                f"returncode={completed.returncode})"
            )
            raise UnformattableSource(detail)
        return completed.stdout.rstrip("\n")
