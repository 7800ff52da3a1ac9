# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Expand every ``#[dismantle]`` record declaration of a source file."""

import logging
from dataclasses import dataclass

from dismantler.builder import dismantle
from dismantler.diagnostics import ContractError, MalformedDeclaration, UnformattableSource
from dismantler.formatter import DeclarationFormatter, Formatter
from dismantler.lexer import Token, tokenize

logger = logging.getLogger(__name__)

ATTRIBUTE_NAME = "dismantle"
_OPENERS = {"(": ")", "[": "]", "{": "}"}
_CLOSERS = frozenset(_OPENERS.values())


@dataclass(frozen=True)
class AnnotatedItem:
    """Represent one annotated item found in a source file.

    Attributes:
        start: Offset of the first attribute or doc comment of the item.
        end: Offset one past the last character of the item.
        line: 1-based line of ``start``.
        attr: Arguments of the ``dismantle`` attribute, without parentheses.
        item: Item text with the ``dismantle`` attribute blanked out. Line
            breaks are kept so that positions inside the item map back to
            the file.
    """

    start: int
    end: int
    line: int
    attr: str
    item: str


@dataclass(frozen=True)
class ExpansionError:
    """Represent one item that could not be expanded."""

    line: int
    message: str

    def __str__(self) -> str:
        return f"line {self.line}: {self.message}"


@dataclass(frozen=True)
class ExpansionResult:
    """Represent the outcome of expanding one source file.

    Attributes:
        source: Source text with every expandable item replaced.
        expanded: Number of items replaced by their namespace.
        failed: Number of items left untouched because they failed.
        errors: One entry per failed item, in source order.
    """

    source: str
    expanded: int
    failed: int
    errors: tuple[ExpansionError, ...]


def find_annotated_items(source: str) -> tuple[AnnotatedItem, ...]:
    """Locate items annotated with an attribute whose path ends in ``dismantle``.

    Args:
        source: Rust source file text.

    Returns:
        Annotated items in source order.

    Raises:
        MalformedDeclaration: If the file cannot be tokenized.
    """
    tokens = tokenize(source)
    items: list[AnnotatedItem] = []
    index = 0
    while index < len(tokens):
        if not _starts_attribute_run(tokens, index):
            index += 1
            continue
        run_start = index
        annotation: tuple[int, int, str] | None = None
        while index < len(tokens):
            if tokens[index].kind in ("doc", "block_doc"):
                index += 1
                continue
            if not _starts_attribute(tokens, index):
                break
            close = _matching_close(tokens, index + 1)
            args = _dismantle_args(source, tokens[index + 2 : close])
            if args is not None and annotation is None:
                annotation = (index, close, args)
            index = close + 1
        if annotation is None:
            continue
        last = _item_last_token(tokens, index)
        items.append(_annotated_item(source, tokens, run_start, last, annotation))
        index = last + 1
    logger.debug(f"Found annotated items (count={len(items)})")
    return tuple(items)


def expand_source(source: str, formatter: Formatter | None = None) -> ExpansionResult:
    """Replace each annotated item of a file by its companion namespace.

    Items are expanded independently: an item that fails is reported and
    left untouched while the others are still replaced.

    Args:
        source: Rust source file text.
        formatter: Formatter for generated documentation; defaults to
            ``DeclarationFormatter``.

    Returns:
        Expanded source with counters and per-item errors.

    Raises:
        MalformedDeclaration: If the file cannot be tokenized.
    """
    formatter = formatter or DeclarationFormatter()
    pieces: list[str] = []
    errors: list[ExpansionError] = []
    expanded = 0
    cursor = 0
    for item in find_annotated_items(source):
        pieces.append(source[cursor : item.start])
        try:
            expansion = dismantle(item.attr, item.item, formatter)
        except (MalformedDeclaration, UnformattableSource, ContractError) as exc:
            error = item_error(item, exc)
            logger.warning(f"Item expansion failed (line={error.line} error={error.message})")
            errors.append(error)
            pieces.append(source[item.start : item.end])
        else:
            pieces.append(_reindent(expansion, _line_indent(source, item.start)))
            expanded += 1
        cursor = item.end
    pieces.append(source[cursor:])
    return ExpansionResult(
        source="".join(pieces),
        expanded=expanded,
        failed=len(errors),
        errors=tuple(errors),
    )


def _starts_attribute(tokens: list[Token], index: int) -> bool:
    return (
        tokens[index].is_punct("#")
        and index + 1 < len(tokens)
        and tokens[index + 1].is_punct("[")
    )


def _starts_attribute_run(tokens: list[Token], index: int) -> bool:
    return tokens[index].kind in ("doc", "block_doc") or _starts_attribute(tokens, index)


def _matching_close(tokens: list[Token], open_index: int) -> int:
    """Return the index of the delimiter closing ``tokens[open_index]``.

    An unbalanced group runs to the last token.
    """
    depth = 0
    for position in range(open_index, len(tokens)):
        token = tokens[position]
        if token.kind != "punct":
            continue
        if token.text in _OPENERS:
            depth += 1
        elif token.text in _CLOSERS:
            depth -= 1
            if depth == 0:
                return position
    return len(tokens) - 1


def _dismantle_args(source: str, inner: list[Token]) -> str | None:
    """Return the attribute arguments, or ``None`` for other attributes."""
    position = 0
    if position < len(inner) and inner[position].is_punct("::"):
        position += 1
    name = None
    while position < len(inner) and inner[position].is_ident():
        name = inner[position].text
        position += 1
        if position < len(inner) and inner[position].is_punct("::"):
            position += 1
            continue
        break
    if name != ATTRIBUTE_NAME:
        return None
    rest = inner[position:]
    if not rest:
        return ""
    if rest[0].is_punct("(") and rest[-1].is_punct(")"):
        return source[rest[0].end : rest[-1].start].strip()
    return source[rest[0].start : rest[-1].end].strip()


def _item_last_token(tokens: list[Token], index: int) -> int:
    """Return the index of the token ending the item starting at ``index``.

    The item ends at a top-level ``;`` or at the brace closing its top-level
    body. Braces nested in a generic parameter list do not end it.
    """
    depth = 0
    angle = 0
    for position in range(index, len(tokens)):
        token = tokens[position]
        if token.kind != "punct":
            continue
        text = token.text
        if text in _OPENERS:
            depth += 1
        elif text in _CLOSERS:
            depth -= 1
            if depth == 0 and text == "}" and angle == 0:
                return position
        elif depth == 0 and text == "<":
            angle += 1
        elif depth == 0 and text == ">":
            angle = max(angle - 1, 0)
        elif depth == 0 and angle == 0 and text == ";":
            return position
    return len(tokens) - 1


def _annotated_item(
    source: str,
    tokens: list[Token],
    run_start: int,
    last: int,
    annotation: tuple[int, int, str],
) -> AnnotatedItem:
    attr_open, attr_close, args = annotation
    start = tokens[run_start].start
    end = max(tokens[last].end, tokens[attr_close].end)
    attr_start = tokens[attr_open].start
    attr_end = tokens[attr_close].end
    blank = "\n" * source.count("\n", attr_start, attr_end)
    item = source[start:attr_start] + blank + source[attr_end:end]
    return AnnotatedItem(
        start=start,
        end=end,
        line=tokens[run_start].span.line,
        attr=args,
        item=item,
    )


def item_error(item: AnnotatedItem, exc: RuntimeError) -> ExpansionError:
    """Describe why an annotated item failed, with the line mapped to the file."""
    if isinstance(exc, MalformedDeclaration):
        line = item.line + exc.span.line - 1 if exc.span is not None else item.line
        message = exc.message
        if exc.suggestion:
            message = f"{message} ({exc.suggestion})"
        return ExpansionError(line=line, message=message)
    return ExpansionError(line=item.line, message=str(exc))


def _line_indent(source: str, offset: int) -> str:
    line_start = source.rfind("\n", 0, offset) + 1
    prefix = source[line_start:offset]
    return prefix if not prefix.strip() else ""


def _reindent(expansion: str, indent: str) -> str:
    lines = expansion.rstrip("\n").split("\n")
    if not indent:
        return "\n".join(lines)
    return "\n".join(
        [lines[0], *(f"{indent}{line}" if line else "" for line in lines[1:])]
    )
