"""Shared utilities for the generator."""

from .schema_loader import (
    load_document,
    parse_document,
)
from .naming import (
    to_camel_case,
    to_pascal_case,
    to_screaming_snake_case,
    to_snake_case,
    singularize,
    strip_prefix,
    sanitize_field_name,
    sanitize_type_name,
    RUST_KEYWORDS,
)
from .errors import (
    SchemaError,
    SchemaValidationError,
    TypeMappingError,
    ConfigError,
)

__all__ = [
    # Document loading
    "load_document",
    "parse_document",
    # Naming utilities
    "to_camel_case",
    "to_pascal_case",
    "to_screaming_snake_case",
    "to_snake_case",
    "singularize",
    "strip_prefix",
    "sanitize_field_name",
    "sanitize_type_name",
    "RUST_KEYWORDS",
    # Errors
    "SchemaError",
    "SchemaValidationError",
    "TypeMappingError",
    "ConfigError",
]
