from __future__ import annotations

import json
from pathlib import Path

import pytest

from schemas.validators import GltfParseError, SchemaValidationError, load_gltf, validate_gltf_document
from tests.helpers.gltf import triangle_document


def test_valid_document_passes():
    validate_gltf_document(triangle_document())


def test_buffer_view_without_buffer_is_rejected():
    document = triangle_document()
    del document["bufferViews"][0]["buffer"]

    with pytest.raises(SchemaValidationError) as excinfo:
        validate_gltf_document(document)

    assert "bufferViews / 0" in str(excinfo.value)
    assert len(excinfo.value.errors) == 1


def test_negative_offsets_are_rejected():
    document = triangle_document()
    document["bufferViews"][0]["byteOffset"] = -4

    with pytest.raises(SchemaValidationError):
        validate_gltf_document(document)


def test_non_string_uri_is_rejected():
    with pytest.raises(SchemaValidationError, match="images / 0 / uri"):
        validate_gltf_document({"images": [{"uri": 7}]})


def test_load_gltf_reports_invalid_json(tmp_path: Path):
    path = tmp_path / "broken.gltf"
    path.write_text("{ not json", encoding="utf-8")

    with pytest.raises(GltfParseError, match="broken.gltf"):
        load_gltf(path)


def test_load_gltf_requires_object(tmp_path: Path):
    path = tmp_path / "list.gltf"
    path.write_text("[]", encoding="utf-8")

    with pytest.raises(GltfParseError, match="JSON object"):
        load_gltf(path)


def test_load_gltf_can_skip_validation(tmp_path: Path):
    path = tmp_path / "loose.gltf"
    path.write_text(json.dumps({"bufferViews": [{"byteLength": "x"}]}), encoding="utf-8")

    assert load_gltf(path, validate=False) == {"bufferViews": [{"byteLength": "x"}]}
    with pytest.raises(SchemaValidationError):
        load_gltf(path)


def test_load_gltf_accepts_byte_order_mark(tmp_path: Path):
    path = tmp_path / "bom.gltf"
    path.write_bytes(b"\xef\xbb\xbf" + json.dumps(triangle_document()).encode("utf-8"))

    assert load_gltf(path)["asset"]["version"] == "2.0"
