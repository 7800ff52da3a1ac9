# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Render syntax model values back to Rust source text."""

from typing import Literal

from dismantler.lexer import Token
from dismantler.syntax import (
    AngleArgs,
    ArrayType,
    Attribute,
    BareFnType,
    BindingArg,
    Bound,
    ConstArg,
    ConstExpr,
    ConstraintArg,
    Field,
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

GenericsMode = Literal["declaration", "impl", "type"]

INDENT = "    "


def render_tokens(tokens: tuple[Token, ...] | list[Token]) -> str:
    """Render tokens, keeping adjacency and collapsing whitespace runs.

    Args:
        tokens: Tokens taken from one source text.

    Returns:
        Token text joined with a single space wherever the source had
        whitespace between two tokens.
    """
    parts: list[str] = []
    previous: Token | None = None
    for token in tokens:
        if previous is not None and token.start != previous.end:
            parts.append(" ")
        parts.append(token.text)
        previous = token
    return "".join(parts)


def escape_string(text: str) -> str:
    return '"' + text.replace("\\", "\\\\").replace('"', '\\"') + '"'


def render_attribute(attr: Attribute) -> list[str]:
    """Render one attribute as source lines."""
    if attr.sugared and attr.doc is not None:
        return [f"///{line}" for line in attr.doc.split("\n")]
    return [f"#[{attr.text}]"]


def render_visibility(vis: Visibility) -> str:
    return f"{vis.text} " if vis.text else ""


def render_type(ty: TypeExpr) -> str:
    """Render a type expression in canonical spacing."""
    if isinstance(ty, PathType):
        return render_path(ty)
    if isinstance(ty, ReferenceType):
        lifetime = f"{ty.lifetime} " if ty.lifetime else ""
        mutable = "mut " if ty.mutable else ""
        return f"&{lifetime}{mutable}{render_type(ty.elem)}"
    if isinstance(ty, PointerType):
        qualifier = "mut" if ty.mutable else "const"
        return f"*{qualifier} {render_type(ty.elem)}"
    if isinstance(ty, SliceType):
        return f"[{render_type(ty.elem)}]"
    if isinstance(ty, ArrayType):
        return f"[{render_type(ty.elem)}; {render_const(ty.length)}]"
    if isinstance(ty, TupleType):
        if len(ty.elems) == 1:
            return f"({render_type(ty.elems[0])},)"
        return "(" + ", ".join(render_type(elem) for elem in ty.elems) + ")"
    if isinstance(ty, ParenType):
        return f"({render_type(ty.elem)})"
    if isinstance(ty, NeverType):
        return "!"
    if isinstance(ty, InferType):
        return "_"
    if isinstance(ty, BareFnType):
        return _render_bare_fn(ty)
    if isinstance(ty, TraitObjectType):
        bounds = render_bounds(ty.bounds)
        return f"dyn {bounds}" if ty.dyn else bounds
    if isinstance(ty, ImplTraitType):
        return f"impl {render_bounds(ty.bounds)}"
    if isinstance(ty, MacroType):
        close = {"(": ")", "[": "]", "{": "}"}[ty.delimiter]
        return f"{render_path(ty.path)}!{ty.delimiter}{render_tokens(ty.tokens)}{close}"
    raise TypeError(f"Unsupported type node: {ty!r}")


def render_path(path: PathType) -> str:
    text = "::".join(_render_segment(segment) for segment in path.segments)
    if path.qself is not None:
        inner = render_type(path.qself.ty)
        if path.qself.trait_path is not None:
            inner = f"{inner} as {render_path(path.qself.trait_path)}"
        return f"<{inner}>::{text}"
    if path.leading_colon:
        return f"::{text}"
    return text


def render_const(expr: ConstExpr) -> str:
    return render_tokens(expr.tokens)


def render_bounds(bounds: tuple[Bound, ...]) -> str:
    return " + ".join(_render_bound(bound) for bound in bounds)


def render_generics(generics: Generics, mode: GenericsMode = "declaration") -> str:
    """Render the ``<...>`` parameter list of a declaration.

    Args:
        generics: Declared generics.
        mode: ``declaration`` keeps bounds and defaults, ``impl`` drops
            defaults, ``type`` keeps only the parameter names.

    Returns:
        Rendered parameter list, or an empty string without parameters.
    """
    return render_params(generics.params, mode)


def render_params(params: tuple[GenericParam, ...], mode: GenericsMode) -> str:
    if not params:
        return ""
    return "<" + ", ".join(_render_param(param, mode) for param in params) + ">"


def render_where(predicates: tuple[WherePredicate, ...]) -> list[str]:
    """Render where-clause predicates, one per line with a trailing comma."""
    lines: list[str] = []
    for predicate in predicates:
        binder = _render_binder(predicate.for_lifetimes)
        if isinstance(predicate.bounded, LifetimeBound):
            bounded = predicate.bounded.name
        else:
            bounded = render_type(predicate.bounded)
        lines.append(f"{binder}{bounded}: {render_bounds(predicate.bounds)},")
    return lines


def render_field(field: Field) -> list[str]:
    lines: list[str] = []
    for attr in field.attrs:
        lines.extend(render_attribute(attr))
    head = render_visibility(field.vis)
    if field.name is not None:
        head = f"{head}{field.name}: "
    lines.append(f"{head}{render_type(field.ty)},")
    return lines


def render_struct(declaration: RecordDeclaration) -> list[str]:
    """Render a record declaration in rustfmt-like layout.

    Args:
        declaration: Declaration to print.

    Returns:
        Source lines without indentation applied.
    """
    lines: list[str] = []
    for attr in declaration.attrs:
        lines.extend(render_attribute(attr))
    head = (
        f"{render_visibility(declaration.vis)}struct {declaration.name}"
        f"{render_generics(declaration.generics)}"
    )
    where_lines = [INDENT + line for line in render_where(declaration.generics.where)]
    terminator = ";" if declaration.semicolon else ""
    fields = declaration.fields

    match fields.shape:
        case "named":
            if where_lines:
                lines.extend([head, "where", *where_lines])
                opener = "{"
            else:
                opener = f"{head} {{"
            if not fields.items:
                lines.append(f"{opener}}}{terminator}")
                return lines
            lines.append(opener)
            for field in fields.items:
                lines.extend(INDENT + line for line in render_field(field))
            lines.append(f"}}{terminator}")
        case "positional":
            if any(field.attrs for field in fields.items):
                lines.append(f"{head}(")
                for field in fields.items:
                    lines.extend(INDENT + line for line in render_field(field))
                closing = ")"
            else:
                items = ", ".join(
                    render_field(field)[-1].rstrip(",") for field in fields.items
                )
                lines.append(f"{head}({items})")
                closing = ""
            if where_lines:
                if closing:
                    lines.append(closing)
                lines.append("where")
                where_lines[-1] = where_lines[-1].rstrip(",") + terminator
                lines.extend(where_lines)
            else:
                if closing:
                    lines.append(f"{closing}{terminator}")
                else:
                    lines[-1] = f"{lines[-1]}{terminator}"
        case "unit":
            if where_lines:
                lines.extend([head, "where"])
                where_lines[-1] = where_lines[-1].rstrip(",") + terminator
                lines.extend(where_lines)
            else:
                lines.append(f"{head}{terminator}")
    return lines


def _render_segment(segment: PathSegment) -> str:
    if segment.args is None:
        return segment.name
    if isinstance(segment.args, ParenArgs):
        inputs = ", ".join(render_type(ty) for ty in segment.args.inputs)
        output = f" -> {render_type(segment.args.output)}" if segment.args.output else ""
        return f"{segment.name}({inputs}){output}"
    return segment.name + _render_angle_args(segment.args)


def _render_angle_args(args: AngleArgs) -> str:
    prefix = "::" if args.turbofish else ""
    return prefix + "<" + ", ".join(_render_generic_arg(arg) for arg in args.args) + ">"


def _render_generic_arg(arg: GenericArg) -> str:
    if isinstance(arg, TypeArg):
        return render_type(arg.ty)
    if isinstance(arg, LifetimeArg):
        return arg.name
    if isinstance(arg, ConstArg):
        return render_const(arg.expr)
    if isinstance(arg, BindingArg):
        return f"{arg.name} = {render_type(arg.ty)}"
    if isinstance(arg, ConstraintArg):
        return f"{arg.name}: {render_bounds(arg.bounds)}"
    raise TypeError(f"Unsupported generic argument: {arg!r}")


def _render_bound(bound: Bound) -> str:
    if isinstance(bound, LifetimeBound):
        return bound.name
    text = render_path(bound.path)
    if bound.maybe:
        text = f"?{text}"
    text = _render_binder(bound.for_lifetimes) + text
    if bound.parenthesized:
        text = f"({text})"
    return text


def _render_binder(lifetimes: tuple[str, ...]) -> str:
    if not lifetimes:
        return ""
    return "for<" + ", ".join(lifetimes) + "> "


def _render_param(param: GenericParam, mode: GenericsMode) -> str:
    if mode == "type":
        return param.name
    attrs = "".join(f"#[{attr.text}] " for attr in param.attrs)
    if param.kind == "const":
        text = f"const {param.name}: {render_type(param.const_type)}"
    else:
        text = param.name
        if param.bounds:
            text = f"{text}: {render_bounds(param.bounds)}"
    if mode == "declaration" and param.default is not None:
        if isinstance(param.default, ConstExpr):
            text = f"{text} = {render_const(param.default)}"
        else:
            text = f"{text} = {render_type(param.default)}"
    return attrs + text


def _render_bare_fn(ty: BareFnType) -> str:
    prefix = _render_binder(ty.for_lifetimes)
    if ty.unsafe:
        prefix += "unsafe "
    if ty.abi is not None:
        prefix += f"extern {ty.abi} " if ty.abi else "extern "
    inputs = [
        f"{arg.name}: {render_type(arg.ty)}" if arg.name else render_type(arg.ty)
        for arg in ty.inputs
    ]
    if ty.variadic:
        inputs.append("...")
    output = f" -> {render_type(ty.output)}" if ty.output is not None else ""
    return f"{prefix}fn({', '.join(inputs)}){output}"
