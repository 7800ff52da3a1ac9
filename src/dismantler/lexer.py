# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Tokenize Rust item text into a flat token buffer."""

import logging
from dataclasses import dataclass
from typing import Literal

from lark import Lark
from lark.exceptions import UnexpectedInput

from dismantler.diagnostics import MalformedDeclaration, Span

logger = logging.getLogger(__name__)

TokenKind = Literal["ident", "lifetime", "literal", "punct", "doc", "block_doc", "inner_doc"]

_GRAMMAR = r"""
start: _token*

_token: IDENT | LIFETIME | STRING | RAW_STRING | CHAR | NUMBER
      | PATH_SEP | ARROW | FAT_ARROW | PUNCT | OUTER_DOC | OUTER_BLOCK_DOC | INNER_DOC

OUTER_DOC.5: /\/\/\/(?!\/)[^\n]*/
OUTER_BLOCK_DOC.5: /\/\*\*(?![*\/])[\s\S]*?\*\//
INNER_DOC.5: /\/\/![^\n]*/ | /\/\*![\s\S]*?\*\//
LINE_COMMENT.4: /\/\/[^\n]*/
BLOCK_COMMENT.4: /\/\*[\s\S]*?\*\//
RAW_STRING.3: /b?r"[^"]*"/ | /b?r#"[\s\S]*?"#/ | /b?r##"[\s\S]*?"##/ | /b?r###"[\s\S]*?"###/
STRING.3: /b?"(?:[^"\\]|\\[\s\S])*"/
CHAR.2: /b?'(?:[^'\\\n]|\\[^\n]{1,9}?)'/
LIFETIME: /'(?:r#)?[^\W\d]\w*/
NUMBER: /[0-9][0-9a-zA-Z_]*(?:\.[0-9][0-9a-zA-Z_]*)?/
IDENT: /(?:r#)?[^\W\d]\w*/
PATH_SEP: "::"
ARROW: "->"
FAT_ARROW: "=>"
PUNCT: /[!#$%&*+,\-.\/:;<=>?@^|~()\[\]{}]/
WS: /\s+/

%ignore WS
%ignore LINE_COMMENT
%ignore BLOCK_COMMENT
"""

_KIND_BY_TERMINAL: dict[str, TokenKind] = {
    "IDENT": "ident",
    "LIFETIME": "lifetime",
    "STRING": "literal",
    "RAW_STRING": "literal",
    "CHAR": "literal",
    "NUMBER": "literal",
    "PATH_SEP": "punct",
    "ARROW": "punct",
    "FAT_ARROW": "punct",
    "PUNCT": "punct",
    "OUTER_DOC": "doc",
    "OUTER_BLOCK_DOC": "block_doc",
    "INNER_DOC": "inner_doc",
}

_LEXER = Lark(_GRAMMAR, parser="lalr", lexer="basic")


@dataclass(frozen=True)
class Token:
    """Represent one lexical token of the item text.

    Attributes:
        kind: Token category.
        text: Token text; doc comments keep only their content.
        span: Position of the first character.
        start: Offset of the first character in the source.
        end: Offset one past the last character in the source.
    """

    kind: TokenKind
    text: str
    span: Span
    start: int
    end: int

    def is_punct(self, text: str) -> bool:
        return self.kind == "punct" and self.text == text

    def is_ident(self, text: str | None = None) -> bool:
        if self.kind != "ident":
            return False
        return text is None or self.text == text


def tokenize(source: str) -> list[Token]:
    """Split source text into tokens.

    Args:
        source: Rust item or file text.

    Returns:
        Tokens in source order, without whitespace and plain comments.

    Raises:
        MalformedDeclaration: If the text contains a character sequence that is
            not a Rust token.
    """
    tokens: list[Token] = []
    try:
        for raw in _LEXER.lex(source):
            kind = _KIND_BY_TERMINAL[raw.type]
            tokens.append(
                Token(
                    kind=kind,
                    text=_token_text(kind, str(raw)),
                    span=Span(line=raw.line, column=raw.column),
                    start=raw.start_pos,
                    end=raw.end_pos,
                )
            )
    except UnexpectedInput as exc:
        span = Span(line=exc.line, column=exc.column)
        logger.debug(f"Tokenization failed (span={span})")
        raise MalformedDeclaration("unexpected character in source", span) from exc
    return tokens


def end_span(source: str) -> Span:
    """Return the position just past the last character of ``source``."""
    lines = source.split("\n")
    return Span(line=len(lines), column=len(lines[-1]) + 1)


def _token_text(kind: TokenKind, text: str) -> str:
    if kind == "doc":
        return text[3:]
    if kind == "block_doc":
        return text[3:-2]
    return text
