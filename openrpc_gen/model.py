"""Type graph produced by the schema loader and rendered by the code generator.

Type definitions live in a single mapping (`File.types`) keyed by their
schema path. References between types are plain path lookups, which keeps
recursive and forward-referenced definitions free of ownership cycles.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field


class TypeRef:
    """Base class of every type reference."""

    __slots__ = ()


@dataclass(frozen=True, slots=True)
class ArrayType(TypeRef):
    item: TypeRef


@dataclass(frozen=True, slots=True)
class OptionalType(TypeRef):
    """A nullable value (the optional-of-T primitive)."""

    inner: TypeRef


@dataclass(frozen=True, slots=True)
class BooleanType(TypeRef):
    pass


@dataclass(frozen=True, slots=True)
class IntegerType(TypeRef):
    """An integer, with the JSON-Schema `format` if one was given."""

    format: str | None = None


@dataclass(frozen=True, slots=True)
class NullType(TypeRef):
    pass


@dataclass(frozen=True, slots=True)
class NumberType(TypeRef):
    pass


@dataclass(frozen=True, slots=True)
class StringType(TypeRef):
    pass


@dataclass(frozen=True, slots=True)
class KeywordType(TypeRef):
    """A single-value (`const`) string."""

    value: str


@dataclass(frozen=True, slots=True)
class LocalRef(TypeRef):
    """A reference to a type of the same document, by schema path."""

    path: str


@dataclass(frozen=True, slots=True)
class ExternalRef(TypeRef):
    """A type assumed to be in scope of the generated file."""

    name: str


class TagStyle(enum.Enum):
    NORMAL = "normal"
    TAGGED = "tagged"
    UNTAGGED = "untagged"


@dataclass(frozen=True, slots=True)
class EnumTag:
    """Wire representation of an enum."""

    style: TagStyle
    field: str | None = None

    @classmethod
    def normal(cls) -> EnumTag:
        return cls(TagStyle.NORMAL)

    @classmethod
    def tagged(cls, field_name: str) -> EnumTag:
        return cls(TagStyle.TAGGED, field_name)

    @classmethod
    def untagged(cls) -> EnumTag:
        return cls(TagStyle.UNTAGGED)


@dataclass(frozen=True, slots=True)
class Field:
    """A field of a struct."""

    path: str
    name: str
    name_in_json: str
    ty: TypeRef
    required: bool = True
    flatten: bool = False
    documentation: str | None = None


@dataclass(frozen=True, slots=True)
class Variant:
    """An arm of an enum. Variants without `ty` are unit variants."""

    path: str
    name: str
    ty: TypeRef | None = None
    name_in_json: str | None = None
    documentation: str | None = None


@dataclass(frozen=True, slots=True)
class AliasKind:
    target: TypeRef


@dataclass(frozen=True, slots=True)
class StructKind:
    fields: dict[str, Field] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class EnumKind:
    tag: EnumTag
    variants: dict[str, Variant] = field(default_factory=dict)
    is_copyable: bool = False


TypeKind = AliasKind | StructKind | EnumKind


@dataclass(frozen=True, slots=True)
class TypeDef:
    """A named type declaration."""

    path: str
    name: str
    kind: TypeKind
    documentation: str | None = None


class ParamStructure(str, enum.Enum):
    """How the parameters of a method travel on the wire."""

    BY_POSITION = "by-position"
    BY_NAME = "by-name"
    EITHER = "either"

    @property
    def accepts_positional(self) -> bool:
        return self is not ParamStructure.BY_NAME

    @property
    def accepts_named(self) -> bool:
        return self is not ParamStructure.BY_POSITION


@dataclass(frozen=True, slots=True)
class Param:
    name: str
    ty: TypeRef
    required: bool = False
    documentation: str | None = None


@dataclass(frozen=True, slots=True)
class MethodResult:
    ty: TypeRef
    documentation: str | None = None


@dataclass(frozen=True, slots=True)
class Method:
    """An RPC method signature."""

    name: str
    params: list[Param] = field(default_factory=list)
    result: MethodResult | None = None
    param_structure: ParamStructure = ParamStructure.EITHER
    documentation: str | None = None


@dataclass(slots=True)
class File:
    """The root of the type graph: everything one generated file holds."""

    types: dict[str, TypeDef] = field(default_factory=dict)
    methods: list[Method] = field(default_factory=list)
