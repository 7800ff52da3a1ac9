# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Parse Rust ``struct`` declarations into the syntax model."""

import logging
from dataclasses import replace

import Levenshtein

from dismantler.diagnostics import MalformedDeclaration, Span
from dismantler.lexer import Token, end_span, tokenize
from dismantler.printer import escape_string, render_tokens
from dismantler.syntax import (
    INHERITED,
    PUBLIC,
    AngleArgs,
    ArrayType,
    Attribute,
    BareFnArg,
    BareFnType,
    BindingArg,
    Bound,
    ConstArg,
    ConstExpr,
    ConstraintArg,
    Field,
    Fields,
    GenericArg,
    GenericParam,
    Generics,
    ImplTraitType,
    InferType,
    LifetimeArg,
    LifetimeBound,
    MacroType,
    NeverType,
    ParenArgs,
    ParenType,
    PathSegment,
    PathType,
    PointerType,
    QualifiedSelf,
    RecordDeclaration,
    ReferenceType,
    SliceType,
    TraitBound,
    TraitObjectType,
    TupleType,
    TypeArg,
    TypeExpr,
    Visibility,
    WherePredicate,
)

logger = logging.getLogger(__name__)

RESERVED_WORDS: frozenset[str] = frozenset(
    {
        "abstract", "as", "async", "await", "become", "box", "break", "const",
        "continue", "crate", "do", "dyn", "else", "enum", "extern", "false",
        "final", "fn", "for", "if", "impl", "in", "let", "loop", "macro",
        "match", "mod", "move", "mut", "override", "priv", "pub", "ref",
        "return", "self", "Self", "static", "struct", "super", "trait", "true",
        "try", "type", "typeof", "unsafe", "unsized", "use", "virtual", "where",
        "while", "yield",
    }
)
PATH_KEYWORDS: frozenset[str] = frozenset({"crate", "self", "super", "Self"})
KEYWORD_SUGGESTION_RATIO = 0.6

_CLOSERS: dict[str, str] = {"(": ")", "[": "]", "{": "}"}


def parse_declaration(source: str) -> RecordDeclaration:
    """Parse one record declaration.

    Args:
        source: Item text: attributes, visibility, ``struct``, name, generics
            and field list.

    Returns:
        Parsed immutable declaration.

    Raises:
        MalformedDeclaration: If the text is not a struct declaration.
    """
    declaration = _DeclarationParser(source).parse()
    logger.debug(
        f"Parsed record declaration (name={declaration.name} "
        f"shape={declaration.fields.shape} fields={len(declaration.fields.items)})"
    )
    return declaration


def parse_type_expr(source: str) -> TypeExpr:
    """Parse a standalone type expression.

    Raises:
        MalformedDeclaration: If the text is not exactly one type.
    """
    parser = _DeclarationParser(source)
    ty = parser.parse_type()
    parser.expect_end()
    return ty


class _DeclarationParser:
    """Recursive descent parser over the token buffer of one item."""

    def __init__(self, source: str) -> None:
        self._source = source
        self._tokens = tokenize(source)
        self._index = 0

    def parse(self) -> RecordDeclaration:
        attrs = self._parse_outer_attributes()
        vis = self._parse_visibility()
        self._parse_struct_keyword()
        name = self._expect_name("record name")
        params: tuple[GenericParam, ...] = ()
        if self._at_punct("<"):
            params = self._parse_generic_params()
        where: tuple[WherePredicate, ...] = ()
        if self._at_ident("where"):
            where = self._parse_where_clause()

        if self._at_punct("{"):
            fields = Fields(shape="named", items=self._parse_named_fields())
        elif self._at_punct("("):
            if where:
                raise self._error("where clause of a tuple struct must follow its fields")
            fields = Fields(shape="positional", items=self._parse_positional_fields())
            if self._at_ident("where"):
                where = self._parse_where_clause()
        else:
            fields = Fields(shape="unit")

        semicolon = self._eat_punct(";")
        self.expect_end()
        return RecordDeclaration(
            name=name.text,
            generics=Generics(params=params, where=where),
            fields=fields,
            attrs=attrs,
            vis=vis,
            semicolon=semicolon,
            source=self._source,
        )

    def expect_end(self) -> None:
        token = self._peek()
        if token is not None:
            raise self._error(f"unexpected token `{token.text}` after declaration", token)

    # ===--- token cursor ---=== #

    def _peek(self, offset: int = 0) -> Token | None:
        index = self._index + offset
        if index < len(self._tokens):
            return self._tokens[index]
        return None

    def _advance(self) -> Token:
        token = self._peek()
        if token is None:
            raise self._error("unexpected end of input")
        self._index += 1
        return token

    def _at_punct(self, text: str, offset: int = 0) -> bool:
        token = self._peek(offset)
        return token is not None and token.is_punct(text)

    def _at_ident(self, text: str | None = None, offset: int = 0) -> bool:
        token = self._peek(offset)
        return token is not None and token.is_ident(text)

    def _eat_punct(self, text: str) -> bool:
        if self._at_punct(text):
            self._index += 1
            return True
        return False

    def _eat_ident(self, text: str) -> bool:
        if self._at_ident(text):
            self._index += 1
            return True
        return False

    def _expect_punct(self, text: str) -> Token:
        token = self._peek()
        if token is None or not token.is_punct(text):
            raise self._error(f"expected `{text}`, found {_describe(token)}", token)
        self._index += 1
        return token

    def _expect_name(self, what: str) -> Token:
        token = self._peek()
        if token is None or token.kind != "ident" or token.text in RESERVED_WORDS:
            raise self._error(f"expected {what}, found {_describe(token)}", token)
        self._index += 1
        return token

    def _error(
        self,
        message: str,
        token: Token | None = None,
        suggestion: str | None = None,
    ) -> MalformedDeclaration:
        if token is None:
            token = self._peek()
        span: Span = token.span if token is not None else end_span(self._source)
        return MalformedDeclaration(message, span, suggestion)

    def _at_path_start(self, offset: int = 0) -> bool:
        token = self._peek(offset)
        if token is None or token.kind != "ident":
            return False
        return token.text not in RESERVED_WORDS or token.text in PATH_KEYWORDS

    def _take_group(self, opener: Token) -> tuple[tuple[Token, ...], Token]:
        """Consume tokens up to the delimiter closing ``opener``."""
        stack = [_CLOSERS[opener.text]]
        collected: list[Token] = []
        while True:
            token = self._peek()
            if token is None:
                raise self._error(f"unclosed delimiter `{opener.text}`", opener)
            self._index += 1
            if token.kind == "punct" and token.text in _CLOSERS:
                stack.append(_CLOSERS[token.text])
            elif token.kind == "punct" and token.text in (")", "]", "}"):
                expected = stack.pop()
                if token.text != expected:
                    raise self._error(
                        f"mismatched closing delimiter `{token.text}`, expected `{expected}`",
                        token,
                    )
                if not stack:
                    return tuple(collected), token
            collected.append(token)

    # ===--- declaration head ---=== #

    def _parse_outer_attributes(self) -> tuple[Attribute, ...]:
        attrs: list[Attribute] = []
        while True:
            token = self._peek()
            if token is None:
                break
            if token.kind in ("doc", "block_doc"):
                self._index += 1
                attrs.append(
                    Attribute(
                        text=f"doc = {escape_string(token.text)}",
                        doc=token.text,
                        sugared=token.kind == "doc",
                        span=token.span,
                    )
                )
                continue
            if token.kind == "inner_doc":
                raise self._error("inner doc comments are not allowed on a record", token)
            if not token.is_punct("#"):
                break
            if self._at_punct("!", 1):
                raise self._error("inner attributes are not allowed on a record", token)
            self._index += 1
            opener = self._expect_punct("[")
            inner, _ = self._take_group(opener)
            if not inner:
                raise self._error("empty attribute", opener)
            attrs.append(Attribute(text=render_tokens(inner), span=token.span))
        return tuple(attrs)

    def _parse_visibility(self) -> Visibility:
        if not self._eat_ident("pub"):
            return INHERITED
        if not self._at_punct("("):
            return PUBLIC
        scope = self._peek(1)
        if (
            scope is not None
            and scope.kind == "ident"
            and scope.text in ("crate", "self", "super")
            and self._at_punct(")", 2)
        ):
            self._index += 3
            return Visibility(f"pub({scope.text})")
        if scope is not None and scope.is_ident("in"):
            opener = self._advance()
            inner, _ = self._take_group(opener)
            return Visibility(f"pub({render_tokens(inner)})")
        return PUBLIC

    def _parse_struct_keyword(self) -> None:
        token = self._peek()
        if token is not None and token.is_ident("struct"):
            self._index += 1
            return
        if token is not None and token.kind == "ident" and token.text in ("enum", "union"):
            raise self._error(
                f"only struct declarations can be dismantled, found `{token.text}`", token
            )
        suggestion = None
        if token is not None and token.kind == "ident":
            if Levenshtein.ratio(token.text, "struct") >= KEYWORD_SUGGESTION_RATIO:
                suggestion = "did you mean `struct`?"
        raise self._error(f"expected `struct`, found {_describe(token)}", token, suggestion)

    # ===--- generics ---=== #

    def _parse_generic_params(self) -> tuple[GenericParam, ...]:
        self._expect_punct("<")
        params: list[GenericParam] = []
        seen: set[str] = set()
        while not self._at_punct(">"):
            start = self._peek()
            param = self._parse_generic_param()
            if param.name in seen:
                raise self._error(f"duplicate generic parameter `{param.name}`", start)
            seen.add(param.name)
            params.append(param)
            if not self._eat_punct(","):
                break
        self._expect_punct(">")
        return tuple(params)

    def _parse_generic_param(self) -> GenericParam:
        attrs = self._parse_outer_attributes()
        token = self._peek()
        if token is not None and token.kind == "lifetime":
            self._index += 1
            bounds: tuple[Bound, ...] = ()
            if self._eat_punct(":"):
                bounds = self._parse_lifetime_bounds()
            return GenericParam(kind="lifetime", name=token.text, bounds=bounds, attrs=attrs)
        if self._eat_ident("const"):
            name = self._expect_name("const parameter name")
            self._expect_punct(":")
            const_type = self.parse_type()
            default = self._parse_const_arg() if self._eat_punct("=") else None
            return GenericParam(
                kind="const",
                name=name.text,
                const_type=const_type,
                default=default,
                attrs=attrs,
            )
        name = self._expect_name("generic parameter")
        bounds = self._parse_bounds() if self._eat_punct(":") else ()
        default_type = self.parse_type() if self._eat_punct("=") else None
        return GenericParam(
            kind="type", name=name.text, bounds=bounds, default=default_type, attrs=attrs
        )

    def _parse_lifetime_bounds(self) -> tuple[Bound, ...]:
        bounds: list[Bound] = []
        while True:
            token = self._peek()
            if token is None or token.kind != "lifetime":
                break
            self._index += 1
            bounds.append(LifetimeBound(name=token.text))
            if not self._eat_punct("+"):
                break
        return tuple(bounds)

    def _parse_bounds(self) -> tuple[Bound, ...]:
        bounds: list[Bound] = []
        while True:
            token = self._peek()
            if token is None:
                break
            if token.kind == "lifetime":
                self._index += 1
                bounds.append(LifetimeBound(name=token.text))
            elif token.is_punct("("):
                self._index += 1
                bound = self._parse_trait_bound()
                self._expect_punct(")")
                bounds.append(replace(bound, parenthesized=True))
            elif (
                token.is_punct("?")
                or token.is_punct("::")
                or token.is_ident("for")
                or self._at_path_start()
            ):
                bounds.append(self._parse_trait_bound())
            else:
                break
            if not self._eat_punct("+"):
                break
        return tuple(bounds)

    def _parse_trait_bound(self) -> TraitBound:
        maybe = self._eat_punct("?")
        for_lifetimes = self._parse_for_binder() if self._at_ident("for") else ()
        return TraitBound(path=self._parse_path(), maybe=maybe, for_lifetimes=for_lifetimes)

    def _parse_for_binder(self) -> tuple[str, ...]:
        self._advance()
        self._expect_punct("<")
        lifetimes: list[str] = []
        while not self._at_punct(">"):
            token = self._peek()
            if token is None or token.kind != "lifetime":
                raise self._error(f"expected lifetime, found {_describe(token)}", token)
            self._index += 1
            lifetimes.append(token.text)
            if not self._eat_punct(","):
                break
        self._expect_punct(">")
        return tuple(lifetimes)

    def _parse_where_clause(self) -> tuple[WherePredicate, ...]:
        self._advance()
        predicates: list[WherePredicate] = []
        while True:
            token = self._peek()
            if token is None or token.is_punct("{") or token.is_punct(";"):
                break
            if token.kind == "lifetime":
                self._index += 1
                self._expect_punct(":")
                predicates.append(
                    WherePredicate(
                        bounded=LifetimeBound(name=token.text),
                        bounds=self._parse_lifetime_bounds(),
                    )
                )
            else:
                binder: tuple[str, ...] = ()
                if self._at_ident("for") and self._at_punct("<", 1):
                    binder = self._parse_for_binder()
                bounded = self.parse_type(allow_plus=False)
                self._expect_punct(":")
                predicates.append(
                    WherePredicate(
                        bounded=bounded, bounds=self._parse_bounds(), for_lifetimes=binder
                    )
                )
            if not self._eat_punct(","):
                break
        return tuple(predicates)

    # ===--- fields ---=== #

    def _parse_named_fields(self) -> tuple[Field, ...]:
        opener = self._expect_punct("{")
        fields: list[Field] = []
        seen: set[str] = set()
        while not self._at_punct("}"):
            start = self._peek()
            if start is None:
                raise self._error("unclosed delimiter `{`", opener)
            attrs = self._parse_outer_attributes()
            vis = self._parse_visibility()
            name = self._expect_name("field name")
            if name.text in seen:
                raise self._error(f"duplicate field `{name.text}`", name)
            seen.add(name.text)
            self._expect_punct(":")
            ty = self.parse_type()
            fields.append(Field(ty=ty, name=name.text, vis=vis, attrs=attrs, span=start.span))
            if not self._eat_punct(","):
                break
        self._expect_punct("}")
        return tuple(fields)

    def _parse_positional_fields(self) -> tuple[Field, ...]:
        opener = self._expect_punct("(")
        fields: list[Field] = []
        while not self._at_punct(")"):
            start = self._peek()
            if start is None:
                raise self._error("unclosed delimiter `(`", opener)
            attrs = self._parse_outer_attributes()
            vis = self._parse_visibility()
            ty = self.parse_type()
            fields.append(Field(ty=ty, vis=vis, attrs=attrs, span=start.span))
            if not self._eat_punct(","):
                break
        self._expect_punct(")")
        return tuple(fields)

    # ===--- types ---=== #

    def parse_type(self, allow_plus: bool = True) -> TypeExpr:
        token = self._peek()
        if token is None:
            raise self._error("expected type, found end of input")
        if token.is_punct("("):
            return self._parse_paren_or_tuple()
        if token.is_punct("["):
            self._index += 1
            elem = self.parse_type()
            if self._eat_punct(";"):
                length = self._parse_array_length(token)
                self._expect_punct("]")
                return ArrayType(elem=elem, length=length)
            self._expect_punct("]")
            return SliceType(elem=elem)
        if token.is_punct("&"):
            self._index += 1
            lifetime = None
            following = self._peek()
            if following is not None and following.kind == "lifetime":
                self._index += 1
                lifetime = following.text
            mutable = self._eat_ident("mut")
            return ReferenceType(
                elem=self.parse_type(allow_plus=False), lifetime=lifetime, mutable=mutable
            )
        if token.is_punct("*"):
            self._index += 1
            if self._eat_ident("mut"):
                mutable = True
            elif self._eat_ident("const"):
                mutable = False
            else:
                raise self._error("expected `const` or `mut` after `*`")
            return PointerType(elem=self.parse_type(allow_plus=False), mutable=mutable)
        if token.is_punct("!"):
            self._index += 1
            return NeverType()
        if token.is_punct("<"):
            return self._parse_qualified_path()
        if token.is_ident("_"):
            self._index += 1
            return InferType()
        if token.kind == "ident" and token.text in ("fn", "unsafe", "extern"):
            return self._parse_bare_fn()
        if token.is_ident("for"):
            return self._parse_higher_ranked(allow_plus)
        if token.is_ident("dyn") or token.is_ident("impl"):
            self._index += 1
            bounds = self._parse_bounds() if allow_plus else (self._parse_trait_bound(),)
            if not bounds:
                raise self._error(f"expected trait bound after `{token.text}`")
            if token.text == "dyn":
                return TraitObjectType(bounds=bounds)
            return ImplTraitType(bounds=bounds)
        if token.is_punct("::") or self._at_path_start():
            path = self._parse_path()
            if self._at_punct("!"):
                self._index += 1
                opener = self._peek()
                if opener is None or opener.kind != "punct" or opener.text not in _CLOSERS:
                    raise self._error(f"expected macro delimiter, found {_describe(opener)}")
                self._index += 1
                inner, _ = self._take_group(opener)
                return MacroType(path=path, tokens=inner, delimiter=opener.text)
            if allow_plus and self._eat_punct("+"):
                bounds = (TraitBound(path=path), *self._parse_bounds())
                return TraitObjectType(bounds=bounds, dyn=False)
            return path
        raise self._error(f"expected type, found {_describe(token)}", token)

    def _parse_paren_or_tuple(self) -> TypeExpr:
        self._expect_punct("(")
        if self._eat_punct(")"):
            return TupleType(elems=())
        first = self.parse_type()
        if self._eat_punct(")"):
            return ParenType(elem=first)
        elems = [first]
        while self._eat_punct(","):
            if self._at_punct(")"):
                break
            elems.append(self.parse_type())
        self._expect_punct(")")
        return TupleType(elems=tuple(elems))

    def _parse_array_length(self, opener: Token) -> ConstExpr:
        collected: list[Token] = []
        while True:
            token = self._peek()
            if token is None:
                raise self._error("unclosed delimiter `[`", opener)
            if token.is_punct("]"):
                break
            if token.kind == "punct" and token.text in (")", "}"):
                raise self._error(f"mismatched closing delimiter `{token.text}`", token)
            self._index += 1
            collected.append(token)
            if token.kind == "punct" and token.text in _CLOSERS:
                inner, closer = self._take_group(token)
                collected.extend(inner)
                collected.append(closer)
        if not collected:
            raise self._error("expected array length")
        return ConstExpr(tokens=tuple(collected))

    def _parse_const_arg(self) -> ConstExpr:
        token = self._peek()
        if token is None:
            raise self._error("expected const expression, found end of input")
        if token.is_punct("{"):
            self._index += 1
            inner, closer = self._take_group(token)
            return ConstExpr(tokens=(token, *inner, closer))
        if token.is_punct("-"):
            self._index += 1
            literal = self._peek()
            if literal is None or literal.kind != "literal":
                raise self._error(f"expected literal, found {_describe(literal)}", literal)
            self._index += 1
            return ConstExpr(tokens=(token, literal))
        if token.kind == "literal":
            self._index += 1
            return ConstExpr(tokens=(token,))
        if self._at_path_start():
            collected = [self._advance()]
            while self._at_punct("::") and self._at_path_start(1):
                collected.append(self._advance())
                collected.append(self._advance())
            return ConstExpr(tokens=tuple(collected))
        raise self._error(f"expected const expression, found {_describe(token)}", token)

    def _parse_qualified_path(self) -> PathType:
        self._expect_punct("<")
        ty = self.parse_type()
        trait_path = self._parse_path() if self._eat_ident("as") else None
        self._expect_punct(">")
        self._expect_punct("::")
        segments = [self._parse_segment()]
        while self._at_punct("::") and self._at_path_start(1):
            self._index += 1
            segments.append(self._parse_segment())
        return PathType(
            segments=tuple(segments), qself=QualifiedSelf(ty=ty, trait_path=trait_path)
        )

    def _parse_path(self) -> PathType:
        leading_colon = self._eat_punct("::")
        segments = [self._parse_segment()]
        while self._at_punct("::"):
            if self._at_punct("<", 1) and segments[-1].args is None:
                self._index += 1
                segments[-1] = replace(segments[-1], args=self._parse_angle_args(True))
            elif self._at_path_start(1):
                self._index += 1
                segments.append(self._parse_segment())
            else:
                break
        return PathType(segments=tuple(segments), leading_colon=leading_colon)

    def _parse_segment(self) -> PathSegment:
        if not self._at_path_start():
            token = self._peek()
            raise self._error(f"expected path segment, found {_describe(token)}", token)
        name = self._advance().text
        if self._at_punct("<"):
            return PathSegment(name=name, args=self._parse_angle_args(False))
        if self._at_punct("("):
            return PathSegment(name=name, args=self._parse_paren_args())
        return PathSegment(name=name)

    def _parse_angle_args(self, turbofish: bool) -> AngleArgs:
        self._expect_punct("<")
        args: list[GenericArg] = []
        while not self._at_punct(">"):
            args.append(self._parse_generic_arg())
            if not self._eat_punct(","):
                break
        self._expect_punct(">")
        return AngleArgs(args=tuple(args), turbofish=turbofish)

    def _parse_generic_arg(self) -> GenericArg:
        token = self._peek()
        if token is None:
            raise self._error("expected generic argument, found end of input")
        if token.kind == "lifetime":
            self._index += 1
            return LifetimeArg(name=token.text)
        if token.kind == "literal" or token.is_punct("-") or token.is_punct("{"):
            return ConstArg(expr=self._parse_const_arg())
        if token.kind == "ident" and token.text not in RESERVED_WORDS:
            if self._at_punct("=", 1):
                self._index += 2
                return BindingArg(name=token.text, ty=self.parse_type())
            if self._at_punct(":", 1):
                self._index += 2
                return ConstraintArg(name=token.text, bounds=self._parse_bounds())
        return TypeArg(ty=self.parse_type())

    def _parse_paren_args(self) -> ParenArgs:
        self._expect_punct("(")
        inputs: list[TypeExpr] = []
        while not self._at_punct(")"):
            inputs.append(self.parse_type())
            if not self._eat_punct(","):
                break
        self._expect_punct(")")
        output = self.parse_type(allow_plus=False) if self._eat_punct("->") else None
        return ParenArgs(inputs=tuple(inputs), output=output)

    def _parse_higher_ranked(self, allow_plus: bool) -> TypeExpr:
        start = self._index
        self._parse_for_binder()
        if self._peek() is not None and self._peek().text in ("fn", "unsafe", "extern"):
            self._index = start
            return self._parse_bare_fn()
        self._index = start
        bounds = self._parse_bounds() if allow_plus else (self._parse_trait_bound(),)
        return TraitObjectType(bounds=bounds, dyn=False)

    def _parse_bare_fn(self) -> BareFnType:
        for_lifetimes = self._parse_for_binder() if self._at_ident("for") else ()
        unsafe = self._eat_ident("unsafe")
        abi: str | None = None
        if self._eat_ident("extern"):
            abi = ""
            token = self._peek()
            if token is not None and token.kind == "literal":
                self._index += 1
                abi = token.text
        fn_token = self._peek()
        if fn_token is None or not fn_token.is_ident("fn"):
            raise self._error(f"expected `fn`, found {_describe(fn_token)}", fn_token)
        self._index += 1
        self._expect_punct("(")
        inputs: list[BareFnArg] = []
        variadic = False
        while not self._at_punct(")"):
            if self._at_punct(".") and self._at_punct(".", 1) and self._at_punct(".", 2):
                self._index += 3
                variadic = True
                break
            self._parse_outer_attributes()
            name = None
            if self._at_ident() and self._at_punct(":", 1):
                name = self._advance().text
                self._index += 1
            inputs.append(BareFnArg(ty=self.parse_type(), name=name))
            if not self._eat_punct(","):
                break
        self._expect_punct(")")
        output = self.parse_type(allow_plus=False) if self._eat_punct("->") else None
        return BareFnType(
            inputs=tuple(inputs),
            output=output,
            for_lifetimes=for_lifetimes,
            unsafe=unsafe,
            abi=abi,
            variadic=variadic,
        )


def _describe(token: Token | None) -> str:
    if token is None:
        return "end of input"
    return f"`{token.text}`"
