"""Custom exceptions for the generator."""

from __future__ import annotations


class SchemaError(Exception):
    """Base exception for schema-related errors."""

    def __init__(self, message: str, schema_path: str | None = None) -> None:
        self.schema_path = schema_path
        full_message = f"{message}" if not schema_path else f"[{schema_path}] {message}"
        super().__init__(full_message)


class SchemaValidationError(SchemaError):
    """Raised when the OpenRPC document is structurally invalid."""

    def __init__(
        self,
        message: str,
        schema_path: str | None = None,
        field: str | None = None,
    ) -> None:
        self.field = field
        if field:
            message = f"Field '{field}': {message}"
        super().__init__(message, schema_path)


class TypeMappingError(SchemaError):
    """Raised when a schema `type` keyword has no mapping."""

    def __init__(
        self,
        type_name: str,
        context: str,
        schema_path: str | None = None,
    ) -> None:
        self.type_name = type_name
        super().__init__(f"No type mapping for '{type_name}' ({context})", schema_path)


class ConfigError(SchemaError):
    """Raised when the configuration file is invalid."""

    def __init__(
        self,
        message: str,
        config_path: str | None = None,
        key: str | None = None,
    ) -> None:
        self.key = key
        if key:
            message = f"Key '{key}': {message}"
        super().__init__(message, config_path)

    @property
    def config_path(self) -> str | None:
        return self.schema_path
