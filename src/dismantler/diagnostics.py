# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Diagnostics raised while dismantling record declarations."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Span:
    """Locate one token in the declaration text.

    Attributes:
        line: 1-based line number.
        column: 1-based column number.
    """

    line: int
    column: int

    def __str__(self) -> str:
        return f"{self.line}:{self.column}"


class MalformedDeclaration(RuntimeError):
    """Represent input that does not match the record declaration grammar."""

    def __init__(
        self, message: str, span: Span | None = None, suggestion: str | None = None
    ) -> None:
        super().__init__(message)
        self.message = message
        self.span = span
        self.suggestion = suggestion

    def __str__(self) -> str:
        text = self.message
        if self.span is not None:
            text = f"{self.span}: {text}"
        if self.suggestion:
            text = f"{text} ({self.suggestion})"
        return text


class UnformattableSource(RuntimeError):
    """Represent a formatter failure while preparing documentation snippets."""

    def __init__(self, detail: str) -> None:
        super().__init__(f"could not format source for documentation: {detail}")
        self.detail = detail


class ContractError(RuntimeError):
    """Represent a contract implementation that disagrees with its interface."""
