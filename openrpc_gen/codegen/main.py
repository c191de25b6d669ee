"""
Rust Code Generator - Renders the type graph as serde-annotated Rust code.

Every type declaration and every method group is rendered from its own
Jinja2 template and written to the output stream as soon as it is
ready. The pass is deterministic: types are emitted in the insertion
order of `File.types`, methods in declaration order.
"""

from __future__ import annotations

import io
import json
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any, Final, TextIO

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from ..config import Config
from ..model import (
    AliasKind,
    EnumKind,
    File,
    Method,
    StructKind,
    TagStyle,
    TypeDef,
)
from ..resolver import TypeResolver
from ..shared import (
    sanitize_field_name,
    strip_prefix,
    to_pascal_case,
    to_screaming_snake_case,
)

# Template configuration
TEMPLATE_DIR: Final[Path] = Path(__file__).parent / "templates"

STRUCT_DERIVES: Final[str] = "Debug, Clone, Serialize, Deserialize"
ENUM_DERIVES: Final[str] = "Serialize, Deserialize"
PARAMS_DERIVES: Final[str] = "Debug, Clone"

# Decoder entry points by accepted parameter shape (positional, named)
DISPATCH_METHODS: Final[dict[tuple[bool, bool], str]] = {
    (True, False): "deserialize_seq",
    (False, True): "deserialize_map",
    (True, True): "deserialize_any",
}


@dataclass(frozen=True, slots=True)
class FieldView:
    """A struct field, ready for rendering."""

    path: str
    name: str
    type_name: str
    attributes: list[str]
    documentation: str | None


@dataclass(frozen=True, slots=True)
class VariantView:
    """An enum arm, ready for rendering."""

    path: str
    name: str
    payload: str | None
    attributes: list[str]
    documentation: str | None


@dataclass(frozen=True, slots=True)
class ParamView:
    """A method parameter as a field of the parameter struct."""

    ident: str
    wire_name: str
    type_name: str
    required: bool
    position: int
    documentation: str | None

    @property
    def rename(self) -> bool:
        return self.ident.removeprefix("r#") != self.wire_name

    @property
    def local(self) -> str:
        """Binding used while decoding positionally.

        Sanitized identifiers never start with `__`, so codec locals cannot
        shadow one another.
        """
        return f"__field{self.position}"


@dataclass(frozen=True, slots=True)
class ResultView:
    name: str
    type_name: str | None
    documentation: str | None


@dataclass(frozen=True, slots=True)
class ParamsView:
    """The parameter struct of a method and the shape of its codec."""

    name: str
    fields: list[ParamView]
    derives: list[str]
    encode_positional: bool
    decode_positional: bool
    decode_named: bool
    dispatch: str
    expecting: str

    @property
    def count(self) -> int:
        return len(self.fields)

    @property
    def length_message(self) -> str:
        noun = "parameter" if self.count == 1 else "parameters"
        return f"{self.count} {noun}"


@lru_cache(maxsize=256)
def _quote(value: str) -> str:
    """Quote a string for Rust literal embedding. Cached for performance."""
    return json.dumps(value, ensure_ascii=False)


def _doc_lines(documentation: str | None) -> list[str]:
    """Split documentation into the text following each `///` marker."""
    if not documentation:
        return []
    return [f" {line}" if line else "" for line in documentation.strip().splitlines()]


def _derive_names(derives: list[str]) -> set[str]:
    return {name.strip() for derive in derives for name in derive.split(",")}


def _copy_derives(configured: list[str]) -> list[str]:
    """Derives making an enum `Copy` that are not configured already."""
    present = _derive_names(configured)
    missing = [name for name in ("Clone", "Copy") if name not in present]
    return [", ".join(missing)] if missing else []


@dataclass
class GeneratorContext:
    """Context for code generation with cached resources."""

    template_env: Environment = field(init=False)

    def __post_init__(self) -> None:
        self.template_env = Environment(
            loader=FileSystemLoader(TEMPLATE_DIR),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
            undefined=StrictUndefined,
            auto_reload=False,
        )
        self.template_env.filters["quote"] = _quote
        self.template_env.filters["doc_lines"] = _doc_lines
        # Pre-compile templates
        self._header_template = self.template_env.get_template("header.rs.j2")
        self._alias_template = self.template_env.get_template("alias.rs.j2")
        self._struct_template = self.template_env.get_template("struct.rs.j2")
        self._enum_template = self.template_env.get_template("enum.rs.j2")
        self._method_template = self.template_env.get_template("method.rs.j2")

    @property
    def header_template(self):
        return self._header_template

    @property
    def alias_template(self):
        return self._alias_template

    @property
    def struct_template(self):
        return self._struct_template

    @property
    def enum_template(self):
        return self._enum_template

    @property
    def method_template(self):
        return self._method_template


def render_header(ctx: GeneratorContext, config: Config) -> str:
    """Render the provenance header and the import lines."""
    return ctx.header_template.render(imports=config.generation.additional_imports)


def _build_fields(resolver: TypeResolver, kind: StructKind) -> list[FieldView]:
    views: list[FieldView] = []
    for f in kind.fields.values():
        attributes: list[str] = []
        if not f.required:
            attributes.append("#[serde(default)]")
        if f.flatten:
            attributes.append("#[serde(flatten)]")
        if f.name.removeprefix("r#") != f.name_in_json:
            attributes.append(f"#[serde(rename = {_quote(f.name_in_json)})]")
        attributes.extend(resolver.attributes(f.ty))

        views.append(
            FieldView(
                path=f.path,
                name=f.name,
                type_name=resolver.type_name(f.ty, f.required),
                attributes=attributes,
                documentation=f.documentation,
            )
        )
    return views


def _build_variants(resolver: TypeResolver, kind: EnumKind) -> list[VariantView]:
    views: list[VariantView] = []
    for variant in kind.variants.values():
        attributes: list[str] = []
        if variant.name_in_json is not None and variant.name_in_json != variant.name:
            attributes.append(f"#[serde(rename = {_quote(variant.name_in_json)})]")

        views.append(
            VariantView(
                path=variant.path,
                name=variant.name,
                payload=resolver.type_name(variant.ty) if variant.ty is not None else None,
                attributes=attributes,
                documentation=variant.documentation,
            )
        )
    return views


def render_type(
    ctx: GeneratorContext,
    resolver: TypeResolver,
    config: Config,
    type_def: TypeDef,
) -> str:
    """Render the declaration of a single type."""
    common: dict[str, Any] = {
        "debug_path": config.debug_path,
        "path": type_def.path,
        "name": type_def.name,
        "documentation": type_def.documentation,
    }
    path_derives = config.generation.derives.get(type_def.path, [])
    kind = type_def.kind

    if isinstance(kind, AliasKind):
        return ctx.alias_template.render(
            **common,
            target=resolver.type_name(kind.target),
        )

    if isinstance(kind, StructKind):
        return ctx.struct_template.render(
            **common,
            derives=[STRUCT_DERIVES, *path_derives],
            fields=_build_fields(resolver, kind),
        )

    if isinstance(kind, EnumKind):
        derives = [ENUM_DERIVES, *config.generation.global_derives, *path_derives]
        if kind.is_copyable:
            derives.extend(_copy_derives(derives))
        return ctx.enum_template.render(
            **common,
            derives=derives,
            tag_style=kind.tag.style.value,
            tag_field=kind.tag.field if kind.tag.style is TagStyle.TAGGED else None,
            variants=_build_variants(resolver, kind),
        )

    raise TypeError(f"Unknown type kind: {kind!r}")


def _unique_ident(ident: str, taken: set[str]) -> str:
    candidate = ident
    suffix = 2
    while candidate in taken:
        candidate = f"{ident}_{suffix}"
        suffix += 1
    taken.add(candidate)
    return candidate


def _build_params(
    resolver: TypeResolver,
    method: Method,
    name: str,
) -> ParamsView:
    taken: set[str] = set()
    fields = [
        ParamView(
            ident=_unique_ident(sanitize_field_name(param.name), taken),
            wire_name=param.name,
            type_name=resolver.type_name(param.ty, param.required),
            required=param.required,
            position=index,
            documentation=param.documentation,
        )
        for index, param in enumerate(method.params, start=1)
    ]
    structure = method.param_structure
    positional = structure.accepts_positional
    named = structure.accepts_named

    return ParamsView(
        name=name,
        fields=fields,
        derives=[PARAMS_DERIVES],
        encode_positional=not named,
        decode_positional=positional,
        decode_named=named,
        dispatch=DISPATCH_METHODS[(positional, named)],
        expecting=f"the parameters of `{method.name}`",
    )


def render_method(
    ctx: GeneratorContext,
    resolver: TypeResolver,
    config: Config,
    method: Method,
) -> str:
    """Render the declarations derived from a method.

    Depending on the configuration this is a method-name constant, a
    result type alias and a parameter struct with its serde codec.
    """
    options = config.generation
    ident_base = strip_prefix(method.name, options.method_name_prefix)
    pascal = to_pascal_case(ident_base)

    constant = to_screaming_snake_case(ident_base) if options.method_name_constants else None

    result: ResultView | None = None
    if options.result_types:
        if method.result is not None:
            result = ResultView(
                name=f"{pascal}Result",
                type_name=resolver.type_name(method.result.ty),
                documentation=method.result.documentation,
            )
        else:
            result = ResultView(name=f"{pascal}Result", type_name=None, documentation=None)

    params = _build_params(resolver, method, f"{pascal}Params") if options.param_types else None

    return ctx.method_template.render(
        method_name=method.name,
        constant=constant,
        result=result,
        params=params,
    )


def generate(
    w: TextIO,
    file: File,
    config: Config,
    ctx: GeneratorContext | None = None,
) -> None:
    """Write the Rust code for `file` to `w`.

    Unresolved references never stop the pass; only errors raised by `w`
    itself propagate, leaving whatever was written so far in place.
    """
    ctx = ctx or GeneratorContext()
    resolver = TypeResolver(file, config)

    w.write(render_header(ctx, config))
    for type_def in file.types.values():
        w.write(render_type(ctx, resolver, config, type_def))
    for method in file.methods:
        w.write(render_method(ctx, resolver, config, method))


def render(file: File, config: Config, ctx: GeneratorContext | None = None) -> str:
    """Render the Rust code for `file` into a string."""
    buffer = io.StringIO()
    generate(buffer, file, config, ctx)
    return buffer.getvalue()
