"""Document loading utilities."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml

from .errors import SchemaError

JSON_SUFFIXES: frozenset[str] = frozenset({".json"})


def parse_document(raw: str, source: str | None = None, *, json_only: bool = False) -> dict[str, Any]:
    """Parse the text of a JSON or YAML document.

    Args:
        raw: The document text.
        source: Where the text came from, for error messages.
        json_only: Parse strictly as JSON instead of YAML.

    Returns:
        The parsed mapping.

    Raises:
        SchemaError: If the text cannot be parsed or is not a mapping.
    """
    if json_only:
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise SchemaError(f"Invalid JSON: {e}", source) from e
    else:
        try:
            data = yaml.safe_load(raw)
        except yaml.YAMLError as e:
            raise SchemaError(f"Invalid YAML: {e}", source) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise SchemaError("Document root must be a mapping", source)

    return data


def load_document(path: Path) -> dict[str, Any]:
    """Load a document from a file.

    Supports both YAML and JSON formats; `.json` files are parsed
    strictly as JSON.

    Raises:
        SchemaError: If the file cannot be read or parsed.
    """
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise SchemaError(f"Failed to read file: {e}", str(path)) from e

    return parse_document(
        raw,
        str(path),
        json_only=path.suffix.lower() in JSON_SUFFIXES,
    )
