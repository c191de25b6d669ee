"""Naming utilities for code generation."""

from __future__ import annotations

import re
from functools import lru_cache

RUST_KEYWORDS: frozenset[str] = frozenset({
    "as",
    "async",
    "await",
    "box",
    "break",
    "const",
    "continue",
    "crate",
    "dyn",
    "else",
    "enum",
    "extern",
    "false",
    "fn",
    "for",
    "if",
    "impl",
    "in",
    "let",
    "loop",
    "macro",
    "match",
    "mod",
    "move",
    "mut",
    "pub",
    "ref",
    "return",
    "self",
    "Self",
    "static",
    "struct",
    "super",
    "trait",
    "true",
    "try",
    "type",
    "union",
    "unsafe",
    "use",
    "where",
    "while",
    "yield",
})

# Keywords that cannot be written as raw identifiers.
_NON_RAW_KEYWORDS: frozenset[str] = frozenset({"crate", "self", "Self", "super"})

# Common irregular plurals
_IRREGULAR_PLURALS: dict[str, str] = {
    "children": "child",
    "people": "person",
    "men": "man",
    "women": "woman",
    "indices": "index",
    "matrices": "matrix",
    "vertices": "vertex",
}

_ACRONYM_BOUNDARY = re.compile(r"([A-Z]+)([A-Z][a-z])")
_CAMEL_BOUNDARY = re.compile(r"([a-z0-9])([A-Z])")
_SEPARATORS = re.compile(r"[^A-Za-z0-9]+")


def _split_words(value: str) -> list[str]:
    """Split an identifier into words on case changes and separators."""
    value = _ACRONYM_BOUNDARY.sub(r"\1_\2", value)
    value = _CAMEL_BOUNDARY.sub(r"\1_\2", value)
    return [part for part in _SEPARATORS.split(value) if part]


@lru_cache(maxsize=1024)
def singularize(name: str) -> str:
    """Convert a plural word to singular form.

    Only the trailing word is affected, so ``BlockTransactions`` becomes
    ``BlockTransaction``.
    """
    lower = name.lower()
    for plural, singular in _IRREGULAR_PLURALS.items():
        if lower.endswith(plural):
            head = name[: len(name) - len(plural)]
            tail = name[len(name) - len(plural):]
            if tail[0].isupper():
                singular = singular.capitalize()
            return head + singular

    if name.endswith("ies") and len(name) > 3:
        return name[:-3] + "y"
    if name.endswith(("ses", "xes", "zes")) and len(name) > 3:
        return name[:-2]
    if name.endswith(("ches", "shes")) and len(name) > 4:
        return name[:-2]
    if name.endswith("s") and not name.endswith(("ss", "us", "is")) and len(name) > 1:
        return name[:-1]
    return name


@lru_cache(maxsize=1024)
def to_pascal_case(value: str) -> str:
    """Convert a string to PascalCase.

    Examples:
        >>> to_pascal_case("hello_world")
        'HelloWorld'
        >>> to_pascal_case("eth_getBlockByHash")
        'EthGetBlockByHash'
    """
    return "".join(part.capitalize() for part in _split_words(value))


@lru_cache(maxsize=1024)
def to_camel_case(value: str) -> str:
    """Convert a string to camelCase."""
    pascal = to_pascal_case(value)
    return pascal[:1].lower() + pascal[1:]


@lru_cache(maxsize=1024)
def to_snake_case(value: str) -> str:
    """Convert a string to snake_case.

    Examples:
        >>> to_snake_case("HelloWorld")
        'hello_world'
        >>> to_snake_case("hello-world")
        'hello_world'
    """
    return "_".join(part.lower() for part in _split_words(value))


@lru_cache(maxsize=1024)
def to_screaming_snake_case(value: str) -> str:
    """Convert a string to SCREAMING_SNAKE_CASE."""
    return "_".join(part.upper() for part in _split_words(value))


def strip_prefix(name: str, prefix: str | None) -> str:
    """Remove `prefix` from `name`; a non-matching prefix leaves it untouched."""
    if prefix and name.startswith(prefix):
        return name[len(prefix):]
    return name


@lru_cache(maxsize=1024)
def sanitize_field_name(value: str) -> str:
    """Sanitize a value for use as a Rust field name."""
    sanitized = to_snake_case(value) or "field"
    if sanitized[0].isdigit():
        return f"_{sanitized}"
    if sanitized in _NON_RAW_KEYWORDS:
        return f"{sanitized}_"
    if sanitized in RUST_KEYWORDS:
        return f"r#{sanitized}"
    return sanitized


@lru_cache(maxsize=1024)
def sanitize_type_name(value: str) -> str:
    """Sanitize a value for use as a Rust type or variant name."""
    sanitized = to_pascal_case(value) or "Unnamed"
    if sanitized[0].isdigit():
        return f"_{sanitized}"
    if sanitized == "Self":
        return "Self_"
    return sanitized
