"""
OpenRPC Schema Loader - Builds the type graph from an OpenRPC document.

Component schemas become named types at `#/components/schemas/<name>`.
Inline schemas that need a declaration of their own (objects with
properties, enumerations, unions, `allOf` compositions) are hoisted to a
type at their own schema path and referenced from where they appeared.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Final

from .config import Config
from .model import (
    AliasKind,
    ArrayType,
    BooleanType,
    EnumKind,
    EnumTag,
    ExternalRef,
    Field,
    File,
    IntegerType,
    KeywordType,
    LocalRef,
    Method,
    MethodResult,
    NullType,
    NumberType,
    OptionalType,
    Param,
    ParamStructure,
    StringType,
    StructKind,
    TypeDef,
    TypeKind,
    TypeRef,
    Variant,
)
from .shared import (
    SchemaValidationError,
    TypeMappingError,
    sanitize_field_name,
    sanitize_type_name,
    singularize,
    strip_prefix,
    to_pascal_case,
)

logger = logging.getLogger(__name__)

SCHEMAS_PREFIX: Final[str] = "#/components/schemas/"
CONTENT_DESCRIPTORS_PREFIX: Final[str] = "#/components/contentDescriptors/"

PRIMITIVE_TYPES: Final[dict[str, TypeRef]] = {
    "boolean": BooleanType(),
    "null": NullType(),
    "number": NumberType(),
    "string": StringType(),
}

UNION_KEYWORDS: Final[tuple[str, ...]] = ("oneOf", "anyOf")


def _escape(segment: str) -> str:
    """Escape a JSON-pointer path segment."""
    return segment.replace("~", "~0").replace("/", "~1")


def _ref_name(ref: str) -> str:
    """The last segment of a `$ref`, e.g. `Block` for `#/components/schemas/Block`."""
    return ref.rstrip("/").rsplit("/", 1)[-1].replace("~1", "/").replace("~0", "~")


def _ensure_unique(base: str, used: dict[str, int]) -> str:
    """Ensure a name is unique by appending a suffix if needed."""
    if base not in used:
        used[base] = 1
        return base
    used[base] += 1
    return f"{base}_{used[base]}"


def _documentation(schema: Any) -> str | None:
    if not isinstance(schema, dict):
        return None
    return schema.get("description") or schema.get("title") or None


def _item_hint(hint: str) -> str:
    singular = singularize(hint)
    return singular if singular != hint else f"{hint}Item"


def _is_null_schema(schema: Any) -> bool:
    return isinstance(schema, dict) and schema.get("type") == "null" and len(schema) == 1


class DocumentParser:
    """Converts one OpenRPC document into a `File`."""

    def __init__(self, document: dict[str, Any], config: Config) -> None:
        self._document = document
        self._config = config
        self._external_refs = config.parsing.external_refs
        self._fallback = ExternalRef(config.parsing.fallback_type)
        # Slots are reserved before a definition is built so that a type
        # precedes the inline types it hoists.
        self._types: dict[str, TypeDef | None] = {}
        self._used_names: dict[str, int] = {}

    def parse(self) -> File:
        components = self._mapping(self._document.get("components", {}), "#/components")
        schemas = self._mapping(components.get("schemas", {}), "#/components/schemas")

        for key, schema in schemas.items():
            path = SCHEMAS_PREFIX + _escape(key)
            if path in self._external_refs:
                logger.debug("Skipping external schema %s", path)
                continue
            self._define(path, key, schema)

        raw_methods = self._document.get("methods", [])
        if not isinstance(raw_methods, list):
            raise SchemaValidationError("'methods' must be a list", "#/methods")
        methods = [self._parse_method(raw, index) for index, raw in enumerate(raw_methods)]

        types = {path: ty for path, ty in self._types.items() if ty is not None}
        return File(types=types, methods=methods)

    @staticmethod
    def _mapping(value: Any, path: str) -> dict[str, Any]:
        if value is None:
            return {}
        if not isinstance(value, dict):
            raise SchemaValidationError("expected a mapping", path)
        return value

    # Types

    def _define(self, path: str, hint: str, schema: Any) -> LocalRef:
        """Declare a named type for `schema` at `path`."""
        name = _ensure_unique(sanitize_type_name(hint), self._used_names)
        self._types[path] = None
        kind = self._build_kind(path, name, schema)
        self._types[path] = TypeDef(
            path=path,
            name=name,
            kind=kind,
            documentation=_documentation(schema),
        )
        logger.debug("Defined type %s at %s", name, path)
        return LocalRef(path)

    def _needs_declaration(self, schema: dict[str, Any]) -> bool:
        if "$ref" in schema or self._nullable_inner(schema, "") is not None:
            return False
        if isinstance(schema.get("enum"), list):
            return True
        if any(isinstance(schema.get(key), list) for key in UNION_KEYWORDS):
            return True
        if isinstance(schema.get("allOf"), list):
            return True
        return bool(schema.get("properties"))

    def _build_kind(self, path: str, name: str, schema: Any) -> TypeKind:
        if not isinstance(schema, dict) or not self._needs_declaration(schema):
            return AliasKind(self._type_ref(schema, path, name))

        if isinstance(schema.get("enum"), list):
            return self._build_value_enum(path, schema)
        for key in UNION_KEYWORDS:
            if isinstance(schema.get(key), list):
                return self._build_union(path, name, schema, key)
        if isinstance(schema.get("allOf"), list):
            return self._build_all_of(path, name, schema)

        fields: dict[str, Field] = {}
        self._add_properties(fields, schema, path, name)
        return StructKind(fields)

    def _build_value_enum(self, path: str, schema: dict[str, Any]) -> TypeKind:
        values = [value for value in schema["enum"] if value is not None]
        if not all(isinstance(value, str) for value in values):
            # Only string enumerations map onto unit variants.
            base = {key: value for key, value in schema.items() if key != "enum"}
            return AliasKind(self._type_ref(base, path, "Value"))

        used: dict[str, int] = {}
        variants: dict[str, Variant] = {}
        for index, value in enumerate(values):
            name = _ensure_unique(sanitize_type_name(value), used)
            variants[name] = Variant(
                path=f"{path}/enum/{index}",
                name=name,
                name_in_json=value,
            )
        return EnumKind(EnumTag.normal(), variants, is_copyable=True)

    def _build_union(
        self,
        path: str,
        name: str,
        schema: dict[str, Any],
        key: str,
    ) -> TypeKind:
        discriminator = schema.get("discriminator")
        tag_field = discriminator.get("propertyName") if isinstance(discriminator, dict) else None
        tag = EnumTag.tagged(tag_field) if tag_field else EnumTag.untagged()

        tag_values: dict[str, str] = {}
        if isinstance(discriminator, dict) and isinstance(discriminator.get("mapping"), dict):
            for value, target in discriminator["mapping"].items():
                tag_values.setdefault(str(target), str(value))

        used: dict[str, int] = {}
        variants: dict[str, Variant] = {}
        for index, member in enumerate(schema[key]):
            member_path = f"{path}/{key}/{index}"
            if not isinstance(member, dict):
                raise SchemaValidationError("union member must be a mapping", member_path)

            name_in_json: str | None = None
            ty: TypeRef | None
            if "$ref" in member:
                ref = member["$ref"]
                raw_name = member.get("title") or _ref_name(ref)
                ty = self._reference(ref)
                if tag_field:
                    name_in_json = tag_values.get(ref, tag_values.get(_ref_name(ref), _ref_name(ref)))
            elif _is_null_schema(member):
                raw_name = member.get("title") or "Null"
                ty = None
            else:
                raw_name = member.get("title") or f"Variant{index}"
                ty = self._type_ref(member, member_path, f"{name}{sanitize_type_name(raw_name)}")

            variant_name = _ensure_unique(sanitize_type_name(raw_name), used)
            variants[variant_name] = Variant(
                path=member_path,
                name=variant_name,
                ty=ty,
                name_in_json=name_in_json,
                documentation=member.get("description"),
            )

        is_copyable = all(variant.ty is None for variant in variants.values())
        return EnumKind(tag, variants, is_copyable=is_copyable)

    def _build_all_of(self, path: str, name: str, schema: dict[str, Any]) -> TypeKind:
        fields: dict[str, Field] = {}
        for index, member in enumerate(schema["allOf"]):
            member_path = f"{path}/allOf/{index}"
            if not isinstance(member, dict):
                raise SchemaValidationError("allOf member must be a mapping", member_path)

            if "$ref" in member:
                field_name = self._unique_field(fields, sanitize_field_name(_ref_name(member["$ref"])))
                ty = self._reference(member["$ref"])
            elif member.get("properties") and not self._needs_union(member):
                self._add_properties(fields, member, member_path, name)
                continue
            else:
                field_name = self._unique_field(fields, f"part_{index}")
                ty = self._type_ref(member, member_path, f"{name}Part{index}")

            fields[field_name] = Field(
                path=member_path,
                name=field_name,
                name_in_json=field_name,
                ty=ty,
                flatten=True,
                documentation=member.get("description"),
            )

        if schema.get("properties"):
            self._add_properties(fields, schema, path, name)
        return StructKind(fields)

    @staticmethod
    def _needs_union(schema: dict[str, Any]) -> bool:
        return any(isinstance(schema.get(key), list) for key in (*UNION_KEYWORDS, "allOf"))

    @staticmethod
    def _unique_field(fields: dict[str, Field], name: str) -> str:
        candidate = name
        suffix = 2
        while candidate in fields:
            candidate = f"{name}_{suffix}"
            suffix += 1
        return candidate

    def _add_properties(
        self,
        fields: dict[str, Field],
        schema: dict[str, Any],
        path: str,
        parent_name: str,
    ) -> None:
        properties = self._mapping(schema.get("properties"), f"{path}/properties")
        required = set(schema.get("required") or [])

        for prop, prop_schema in properties.items():
            prop_path = f"{path}/properties/{_escape(prop)}"
            field_name = self._unique_field(fields, sanitize_field_name(prop))
            fields[field_name] = Field(
                path=prop_path,
                name=field_name,
                name_in_json=prop,
                ty=self._type_ref(prop_schema, prop_path, f"{parent_name}{to_pascal_case(prop)}"),
                required=prop in required,
                documentation=_documentation(prop_schema),
            )

    # References

    def _reference(self, ref: Any) -> TypeRef:
        if not isinstance(ref, str):
            raise SchemaValidationError("'$ref' must be a string")
        if ref in self._external_refs:
            return ExternalRef(self._external_refs[ref])
        if not ref.startswith("#/"):
            logger.debug("Not resolving remote reference %s", ref)
        return LocalRef(ref)

    def _nullable_inner(self, schema: dict[str, Any], path: str) -> tuple[Any, str] | None:
        """Return the non-null part of a nullable schema and its path, if any."""
        type_name = schema.get("type")
        if isinstance(type_name, list) and "null" in type_name:
            others = [t for t in type_name if t != "null"]
            if len(others) == 1:
                return {**schema, "type": others[0]}, path
        if schema.get("nullable") is True:
            return {key: value for key, value in schema.items() if key != "nullable"}, path
        for key in UNION_KEYWORDS:
            members = schema.get(key)
            if isinstance(members, list) and len(members) == 2:
                non_null = [(i, m) for i, m in enumerate(members) if not _is_null_schema(m)]
                if len(non_null) == 1:
                    index, member = non_null[0]
                    return member, f"{path}/{key}/{index}"
        return None

    def _type_ref(self, schema: Any, path: str, hint: str) -> TypeRef:
        """Convert an inline schema into a reference, hoisting it if needed."""
        if schema is True or schema == {}:
            return self._fallback
        if not isinstance(schema, dict):
            raise SchemaValidationError("schema must be a mapping", path)

        if "$ref" in schema:
            return self._reference(schema["$ref"])
        if "const" in schema:
            value = schema["const"]
            return KeywordType(value if isinstance(value, str) else json.dumps(value))

        nullable = self._nullable_inner(schema, path)
        if nullable is not None:
            inner, inner_path = nullable
            if inner_path in self._types:
                inner_path, hint = f"{inner_path}/nonNull", f"{hint}Inner"
            return OptionalType(self._type_ref(inner, inner_path, hint))

        if self._needs_declaration(schema):
            return self._define(path, hint, schema)

        type_name = schema.get("type")
        if type_name is None or isinstance(type_name, list):
            return self._fallback
        if type_name == "array":
            items = schema.get("items", {})
            return ArrayType(self._type_ref(items, f"{path}/items", _item_hint(hint)))
        if type_name == "integer":
            return IntegerType(schema.get("format"))
        if type_name == "object":
            return self._fallback
        if type_name in PRIMITIVE_TYPES:
            return PRIMITIVE_TYPES[type_name]

        raise TypeMappingError(str(type_name), "schema type", path)

    # Methods

    def _content_descriptor(self, raw: Any, path: str) -> dict[str, Any]:
        if not isinstance(raw, dict):
            raise SchemaValidationError("content descriptor must be a mapping", path)
        ref = raw.get("$ref")
        if ref is None:
            return raw

        descriptors: dict[str, Any] = {}
        components = self._document.get("components")
        if isinstance(components, dict) and isinstance(components.get("contentDescriptors"), dict):
            descriptors = components["contentDescriptors"]
        if isinstance(ref, str) and ref.startswith(CONTENT_DESCRIPTORS_PREFIX):
            resolved = descriptors.get(_ref_name(ref))
            if isinstance(resolved, dict):
                return resolved
        raise SchemaValidationError(f"unresolved content descriptor '{ref}'", path)

    def _parse_method(self, raw: Any, index: int) -> Method:
        if not isinstance(raw, dict) or not isinstance(raw.get("name"), str):
            raise SchemaValidationError("method is missing 'name'", f"#/methods/{index}", "name")

        name = raw["name"]
        method_path = f"#/methods/{_escape(name)}"
        base = to_pascal_case(strip_prefix(name, self._config.generation.method_name_prefix))

        raw_params = raw.get("params", [])
        if not isinstance(raw_params, list):
            raise SchemaValidationError("'params' must be a list", method_path, "params")

        params: list[Param] = []
        for position, raw_param in enumerate(raw_params):
            descriptor = self._content_descriptor(raw_param, f"{method_path}/params/{position}")
            param_name = descriptor.get("name")
            if not isinstance(param_name, str):
                raise SchemaValidationError(
                    "parameter is missing 'name'",
                    f"{method_path}/params/{position}",
                    "name",
                )
            params.append(
                Param(
                    name=param_name,
                    ty=self._type_ref(
                        descriptor.get("schema", {}),
                        f"{method_path}/params/{_escape(param_name)}",
                        f"{base}{to_pascal_case(param_name)}",
                    ),
                    required=bool(descriptor.get("required", False)),
                    documentation=descriptor.get("description") or descriptor.get("summary"),
                )
            )

        result: MethodResult | None = None
        if raw.get("result") is not None:
            descriptor = self._content_descriptor(raw["result"], f"{method_path}/result")
            result = MethodResult(
                ty=self._type_ref(
                    descriptor.get("schema", {}),
                    f"{method_path}/result",
                    f"{base}Response",
                ),
                documentation=descriptor.get("description") or descriptor.get("summary"),
            )

        structure = raw.get("paramStructure", ParamStructure.EITHER.value)
        try:
            param_structure = ParamStructure(structure)
        except ValueError as e:
            raise SchemaValidationError(
                f"unknown parameter structure '{structure}'",
                method_path,
                "paramStructure",
            ) from e

        return Method(
            name=name,
            params=params,
            result=result,
            param_structure=param_structure,
            documentation=raw.get("summary") or raw.get("description"),
        )


def parse_openrpc(document: dict[str, Any], config: Config) -> File:
    """Build the type graph of an OpenRPC document.

    Raises:
        SchemaValidationError: If the document is structurally invalid.
        TypeMappingError: If a schema uses an unknown `type`.
    """
    if not isinstance(document, dict):
        raise SchemaValidationError("document root must be a mapping")
    return DocumentParser(document, config).parse()
