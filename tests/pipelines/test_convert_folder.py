from __future__ import annotations

import struct
from pathlib import Path

import pytest

import gltf2glb.pipelines.convert as pipeline
from exporters.resource_bundle import MissingResourcePolicy
from gltf2glb.pipelines import ConversionOptions, convert_file, convert_folder, discover_gltf_files
from tests.helpers.glb import parse_glb
from tests.helpers.gltf import triangle_document, write_asset


def _populate(folder: Path) -> None:
    write_asset(folder, triangle_document("a.bin", 10), {"a.bin": b"\x01" * 10}, name="alpha.gltf")
    document = triangle_document("b.bin", 3)
    document["images"] = [{"uri": "b.png"}]
    write_asset(folder, document, {"b.bin": b"\x02" * 3, "b.png": b"\x89PNG"}, name="beta.gltf")


def test_discover_is_sorted_and_case_insensitive(tmp_path: Path):
    for name in ("b.gltf", "A.GLTF", "c.glb", "notes.txt"):
        (tmp_path / name).write_text("{}", encoding="utf-8")
    (tmp_path / "nested.gltf").mkdir()

    assert [path.name for path in discover_gltf_files(tmp_path)] == ["A.GLTF", "b.gltf"]


def test_convert_file_writes_glb_named_after_input(tmp_path: Path):
    gltf_path = write_asset(tmp_path / "in", triangle_document("mesh.bin", 10), {"mesh.bin": bytes(10)})

    result = convert_file(gltf_path, tmp_path / "out")

    assert result.ok
    assert result.output == tmp_path / "out" / "model.glb"
    document, binary = parse_glb(result.output)
    assert document["buffers"] == [{"byteLength": 12}]
    assert binary == bytes(12)
    assert struct.unpack_from("<I", result.output.read_bytes(), 8)[0] == result.output.stat().st_size


def test_convert_folder_uses_default_output_dir(tmp_path: Path, capsys: pytest.CaptureFixture[str]):
    _populate(tmp_path)

    results = convert_folder(tmp_path)

    assert [result.source.name for result in results] == ["alpha.gltf", "beta.gltf"]
    assert all(result.ok for result in results)
    output_dir = tmp_path / "glb_output"
    assert sorted(path.name for path in output_dir.iterdir()) == ["alpha.glb", "beta.glb"]

    document, binary = parse_glb(output_dir / "beta.glb")
    assert document["images"] == [{"bufferView": 1, "mimeType": "image/png"}]
    assert binary == b"\x02" * 3 + b"\x00" + b"\x89PNG"

    out = capsys.readouterr().out
    assert "Found 2 GLTF file(s) to convert:" in out
    assert "✓ Converted: alpha.gltf" in out


def test_parse_errors_do_not_stop_the_batch(tmp_path: Path, capsys: pytest.CaptureFixture[str]):
    _populate(tmp_path)
    (tmp_path / "broken.gltf").write_text("{ nope", encoding="utf-8")

    results = convert_folder(tmp_path, ConversionOptions(output_dir=tmp_path / "out"))

    by_name = {result.source.name: result for result in results}
    assert not by_name["broken.gltf"].ok
    assert by_name["alpha.gltf"].ok and by_name["beta.gltf"].ok
    assert not (tmp_path / "out" / "broken.glb").exists()
    assert "✗ Failed to convert broken.gltf" in capsys.readouterr().err


def test_output_write_failure_is_per_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    _populate(tmp_path)
    real_write = pipeline.write_glb

    def flaky_write(output, document, binary=b""):
        if Path(output).stem == "alpha":
            raise PermissionError("read-only destination")
        return real_write(output, document, binary)

    monkeypatch.setattr(pipeline, "write_glb", flaky_write)

    results = convert_folder(tmp_path)

    assert isinstance(results[0].error, PermissionError)
    assert results[1].ok


def test_missing_resources_are_reported(tmp_path: Path, capsys: pytest.CaptureFixture[str]):
    write_asset(tmp_path, triangle_document("gone.bin", 8))

    results = convert_folder(tmp_path, ConversionOptions(missing=MissingResourcePolicy.IGNORE))

    assert results[0].ok
    assert [resource.uri for resource in results[0].missing] == ["gone.bin"]
    assert "! Missing buffer 0: gone.bin" in capsys.readouterr().out


def test_error_policy_fails_the_file(tmp_path: Path):
    write_asset(tmp_path, triangle_document("gone.bin", 8))

    results = convert_folder(tmp_path, ConversionOptions(missing=MissingResourcePolicy.ERROR))

    assert isinstance(results[0].error, FileNotFoundError)


def test_parallel_workers_keep_input_order(tmp_path: Path):
    for index in range(6):
        write_asset(
            tmp_path,
            triangle_document(f"m{index}.bin", index + 1),
            {f"m{index}.bin": bytes([index]) * (index + 1)},
            name=f"model{index}.gltf",
        )

    results = convert_folder(tmp_path, ConversionOptions(workers=3))

    assert [result.source.name for result in results] == [f"model{index}.gltf" for index in range(6)]
    for index, result in enumerate(results):
        _, binary = parse_glb(result.output)
        assert binary[: index + 1] == bytes([index]) * (index + 1)


def test_empty_folder_is_a_no_op(tmp_path: Path, capsys: pytest.CaptureFixture[str]):
    assert convert_folder(tmp_path) == []
    assert "No .gltf files found" in capsys.readouterr().out
    assert not (tmp_path / "glb_output").exists()


def test_missing_input_folder_raises(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        convert_folder(tmp_path / "absent")
