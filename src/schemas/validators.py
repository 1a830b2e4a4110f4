"""Utilities for validating glTF documents before packing."""
from __future__ import annotations

from collections.abc import Iterable, Mapping
from functools import lru_cache
from pathlib import Path
from typing import Any

import json

from jsonschema import Draft202012Validator, ValidationError

__all__ = [
    "GLTF_RESOURCE_SCHEMA",
    "GltfParseError",
    "SchemaValidationError",
    "load_gltf",
    "validate_gltf_document",
]


_INDEX = {"type": "integer", "minimum": 0}

# Only the members that resource consolidation reads or rewrites are checked;
# everything else in a glTF document is passed through as-is.
GLTF_RESOURCE_SCHEMA: Mapping[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "title": "glTF resource references",
    "type": "object",
    "properties": {
        "asset": {
            "type": "object",
            "properties": {"version": {"type": "string"}},
        },
        "buffers": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["byteLength"],
                "properties": {
                    "uri": {"type": "string"},
                    "byteLength": _INDEX,
                },
            },
        },
        "bufferViews": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["buffer", "byteLength"],
                "properties": {
                    "buffer": _INDEX,
                    "byteOffset": _INDEX,
                    "byteLength": _INDEX,
                },
            },
        },
        "images": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "uri": {"type": "string"},
                    "bufferView": _INDEX,
                    "mimeType": {"type": "string"},
                },
            },
        },
    },
}


class GltfParseError(ValueError):
    """Raised when a ``.gltf`` file does not contain a JSON object."""

    def __init__(self, path: Path | None, reason: str):
        self.path = path
        location = f"{path}: " if path is not None else ""
        super().__init__(f"{location}{reason}")


class SchemaValidationError(RuntimeError):
    """Raised when an instance fails schema validation."""

    def __init__(self, errors: Iterable[ValidationError]):
        self.errors = tuple(errors)
        message = "Schema validation failed:\n" + "\n".join(_format_error(e) for e in self.errors)
        super().__init__(message)


@lru_cache(maxsize=1)
def _validator() -> Draft202012Validator:
    return Draft202012Validator(GLTF_RESOURCE_SCHEMA)


def validate_gltf_document(instance: Any) -> None:
    """Validate the buffer, buffer view and image members of *instance*."""

    errors = sorted(_validator().iter_errors(instance), key=lambda exc: [str(part) for part in exc.absolute_path])
    if errors:
        raise SchemaValidationError(errors)


def load_gltf(path: Path, *, validate: bool = True) -> dict[str, Any]:
    """Load a ``.gltf`` JSON document from *path*, optionally validating it."""

    with path.open("r", encoding="utf-8-sig") as handle:
        try:
            payload = json.load(handle)
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise GltfParseError(path, f"invalid JSON ({exc})") from exc

    if not isinstance(payload, dict):
        raise GltfParseError(path, f"glTF document must be a JSON object, received {type(payload).__name__}")

    if validate:
        validate_gltf_document(payload)
    return payload


def _format_error(error: ValidationError) -> str:
    location = " / ".join(str(component) for component in error.absolute_path)
    prefix = f"[{location}] " if location else ""
    return f"{prefix}{error.message}"
