"""Resolution of type references to target-language spellings.

Resolution never fails: a reference to a path missing from the type
graph resolves to a `Broken` placeholder that still renders as valid
text, so one bad reference only affects the declaration using it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Final

from .config import TEMPLATE_SLOT, Config
from .model import (
    ArrayType,
    BooleanType,
    ExternalRef,
    File,
    IntegerType,
    KeywordType,
    LocalRef,
    NullType,
    NumberType,
    OptionalType,
    StringType,
    TypeRef,
)

logger = logging.getLogger(__name__)

BROKEN_REFERENCE: Final[str] = "BrokenReference"


def _comment(text: str) -> str:
    """Embed `text` in an inline block comment."""
    escaped = text.replace("*/", "* /")
    return f"/* {escaped} */"


@dataclass(frozen=True, slots=True)
class Resolved:
    """A reference that resolved to a known type."""

    text: str

    def wrap(self, template: str) -> Resolved:
        return Resolved(template.replace(TEMPLATE_SLOT, self.text))

    def __str__(self) -> str:
        return self.text


@dataclass(frozen=True, slots=True)
class Broken:
    """A reference to a schema path that is not part of the type graph."""

    path: str
    text: str

    def wrap(self, template: str) -> Broken:
        return Broken(self.path, template.replace(TEMPLATE_SLOT, self.text))

    def __str__(self) -> str:
        return self.text


Resolution = Resolved | Broken


class TypeResolver:
    """Turns `TypeRef`s into the spelling used at a reference site."""

    __slots__ = ("_file", "_config")

    def __init__(self, file: File, config: Config) -> None:
        self._file = file
        self._config = config

    def resolve(self, ref: TypeRef, required: bool = True) -> Resolution:
        """Resolve `ref`; non-required positions are wrapped in the optional template."""
        primitives = self._config.primitives

        if not required:
            return self.resolve(ref).wrap(primitives.optional)

        if isinstance(ref, ArrayType):
            return self.resolve(ref.item).wrap(primitives.array)
        if isinstance(ref, OptionalType):
            return self.resolve(ref.inner).wrap(primitives.optional)
        if isinstance(ref, BooleanType):
            return Resolved(primitives.boolean)
        if isinstance(ref, IntegerType):
            if ref.format is not None and ref.format in primitives.integer_formats:
                return Resolved(primitives.integer_formats[ref.format])
            return Resolved(primitives.integer)
        if isinstance(ref, NullType):
            return Resolved(primitives.null)
        if isinstance(ref, NumberType):
            return Resolved(primitives.number)
        if isinstance(ref, StringType):
            return Resolved(primitives.string)
        if isinstance(ref, KeywordType):
            return Resolved(f"{primitives.string} {_comment(ref.value)}")
        if isinstance(ref, LocalRef):
            type_def = self._file.types.get(ref.path)
            if type_def is None:
                logger.warning("Unresolved type reference '%s'", ref.path)
                return Broken(ref.path, f"{BROKEN_REFERENCE} {_comment(ref.path)}")
            return Resolved(type_def.name)
        if isinstance(ref, ExternalRef):
            return Resolved(ref.name)

        raise TypeError(f"Not a type reference: {ref!r}")

    def type_name(self, ref: TypeRef, required: bool = True) -> str:
        """Return the rendered spelling of `ref`."""
        return str(self.resolve(ref, required))

    def attributes(self, ref: TypeRef) -> list[str]:
        """Return the configured field attributes contributed by the type of `ref`."""
        attributes = self._config.generation.field_attributes
        if isinstance(ref, LocalRef):
            return list(attributes.get(ref.path, []))
        if isinstance(ref, ExternalRef):
            return list(attributes.get(ref.name, []))
        return []
