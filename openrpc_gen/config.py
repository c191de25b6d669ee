"""Generator configuration.

The configuration is a YAML (or JSON) mapping with three optional
sections plus the top-level `debug_path` flag::

    debug_path: false
    primitives:
      array: "Vec<{}>"
      optional: "Option<{}>"
      integer_formats: {uint64: u64}
    generation:
      additional_imports: ["crate::types::Felt"]
      global_derives: ["Debug, Clone"]
      derives: {"#/components/schemas/BlockTag": ["Copy, PartialEq, Eq"]}
      method_name_prefix: "starknet_"
    parsing:
      external_refs: {"#/components/schemas/FELT": "Felt"}
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Final

from .shared import ConfigError, SchemaError, load_document

TEMPLATE_SLOT: Final[str] = "{}"


@dataclass(frozen=True, slots=True)
class Primitives:
    """Target-language spellings of the primitive types."""

    array: str = "Vec<{}>"
    boolean: str = "bool"
    integer: str = "i64"
    null: str = "()"
    number: str = "f64"
    string: str = "String"
    optional: str = "Option<{}>"
    integer_formats: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class GenerationOptions:
    additional_imports: list[str] = field(default_factory=list)
    global_derives: list[str] = field(default_factory=list)
    derives: dict[str, list[str]] = field(default_factory=dict)
    field_attributes: dict[str, list[str]] = field(default_factory=dict)
    method_name_prefix: str | None = None
    method_name_constants: bool = True
    result_types: bool = True
    param_types: bool = True


@dataclass(frozen=True, slots=True)
class ParsingOptions:
    external_refs: dict[str, str] = field(default_factory=dict)
    fallback_type: str = "serde_json::Value"


@dataclass(frozen=True, slots=True)
class Config:
    primitives: Primitives = field(default_factory=Primitives)
    generation: GenerationOptions = field(default_factory=GenerationOptions)
    parsing: ParsingOptions = field(default_factory=ParsingOptions)
    debug_path: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any], source: str | None = None) -> Config:
        """Build a configuration from its parsed mapping.

        Raises:
            ConfigError: On unknown keys or values of the wrong type.
        """
        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            if key == "debug_path":
                kwargs[key] = _bool(value, key, source)
            elif key in _SECTIONS:
                section_cls, validators = _SECTIONS[key]
                kwargs[key] = _build_section(section_cls, validators, value, key, source)
            else:
                raise ConfigError("unknown option", source, key)
        return cls(**kwargs)


Validator = Callable[[Any, str, "str | None"], Any]


def _bool(value: Any, key: str, source: str | None) -> bool:
    if not isinstance(value, bool):
        raise ConfigError("expected a boolean", source, key)
    return value


def _str(value: Any, key: str, source: str | None) -> str:
    if not isinstance(value, str):
        raise ConfigError("expected a string", source, key)
    return value


def _template(value: Any, key: str, source: str | None) -> str:
    value = _str(value, key, source)
    if TEMPLATE_SLOT not in value:
        raise ConfigError(f"template must contain '{TEMPLATE_SLOT}'", source, key)
    return value


def _optional_str(value: Any, key: str, source: str | None) -> str | None:
    if value is None:
        return None
    return _str(value, key, source)


def _str_list(value: Any, key: str, source: str | None) -> list[str]:
    if not isinstance(value, list):
        raise ConfigError("expected a list of strings", source, key)
    return [_str(item, f"{key}[{i}]", source) for i, item in enumerate(value)]


def _str_map(value: Any, key: str, source: str | None) -> dict[str, str]:
    if not isinstance(value, dict):
        raise ConfigError("expected a mapping of strings", source, key)
    return {str(k): _str(v, f"{key}.{k}", source) for k, v in value.items()}


def _str_list_map(value: Any, key: str, source: str | None) -> dict[str, list[str]]:
    if not isinstance(value, dict):
        raise ConfigError("expected a mapping of string lists", source, key)
    return {str(k): _str_list(v, f"{key}.{k}", source) for k, v in value.items()}


_SECTIONS: Final[dict[str, tuple[type, dict[str, Validator]]]] = {
    "primitives": (
        Primitives,
        {
            "array": _template,
            "boolean": _str,
            "integer": _str,
            "null": _str,
            "number": _str,
            "string": _str,
            "optional": _template,
            "integer_formats": _str_map,
        },
    ),
    "generation": (
        GenerationOptions,
        {
            "additional_imports": _str_list,
            "global_derives": _str_list,
            "derives": _str_list_map,
            "field_attributes": _str_list_map,
            "method_name_prefix": _optional_str,
            "method_name_constants": _bool,
            "result_types": _bool,
            "param_types": _bool,
        },
    ),
    "parsing": (
        ParsingOptions,
        {
            "external_refs": _str_map,
            "fallback_type": _str,
        },
    ),
}


def _build_section(
    section_cls: type,
    validators: dict[str, Validator],
    data: Any,
    section: str,
    source: str | None,
) -> Any:
    if data is None:
        return section_cls()
    if not isinstance(data, dict):
        raise ConfigError("expected a mapping", source, section)

    kwargs: dict[str, Any] = {}
    for key, value in data.items():
        dotted = f"{section}.{key}"
        validator = validators.get(key)
        if validator is None:
            raise ConfigError("unknown option", source, dotted)
        kwargs[key] = validator(value, dotted, source)
    return section_cls(**kwargs)


def load_config(path: Path) -> Config:
    """Load the configuration file at `path`.

    Raises:
        ConfigError: If the file is not a valid configuration.
    """
    try:
        data = load_document(path)
    except SchemaError as e:
        raise ConfigError(f"Cannot load configuration: {e}") from e
    return Config.from_dict(data, str(path))
