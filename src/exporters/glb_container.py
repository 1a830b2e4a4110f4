"""Binary glTF (GLB) container framing."""
from __future__ import annotations

import json
import struct
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping

__all__ = [
    "GLB_MAGIC",
    "GLB_VERSION",
    "CHUNK_TYPE_JSON",
    "CHUNK_TYPE_BIN",
    "HEADER_SIZE",
    "CHUNK_HEADER_SIZE",
    "GlbFormatError",
    "GlbContainer",
    "pad_bytes",
    "encode_json_chunk",
    "build_glb",
    "write_glb",
    "parse_glb",
    "read_glb",
]


GLB_MAGIC = 0x46546C67
GLB_VERSION = 2
CHUNK_TYPE_JSON = 0x4E4F534A
CHUNK_TYPE_BIN = 0x004E4942
HEADER_SIZE = 12
CHUNK_HEADER_SIZE = 8
MAX_CONTAINER_LENGTH = 0xFFFFFFFF


class GlbFormatError(ValueError):
    """Raised when a GLB container cannot be written or decoded."""


@dataclass(frozen=True, slots=True)
class GlbContainer:
    """Decoded GLB container."""

    version: int
    length: int
    document: Dict[str, Any]
    binary: bytes
    json_chunk_length: int
    bin_chunk_length: int | None


def pad_bytes(data: bytes, alignment: int, pad: bytes) -> bytes:
    """Return *data* extended with *pad* until its length is a multiple of *alignment*."""

    if len(pad) != 1:
        raise ValueError("pad must be a single byte")
    padding = (-len(data)) % alignment
    if padding:
        data += pad * padding
    return data


def encode_json_chunk(document: Mapping[str, Any]) -> bytes:
    """Serialise *document* as UTF-8 JSON padded with spaces to 4 bytes."""

    text = json.dumps(document, separators=(",", ":"), ensure_ascii=False)
    return pad_bytes(text.encode("utf-8"), 4, pad=b" ")


def build_glb(document: Mapping[str, Any], binary: bytes = b"") -> bytes:
    """Frame *document* and *binary* into a GLB container.

    The BIN chunk is omitted when *binary* is empty.
    """

    json_padded = encode_json_chunk(document)
    bin_chunk = pad_bytes(bytes(binary), 4, pad=b"\x00")

    total_length = HEADER_SIZE + CHUNK_HEADER_SIZE + len(json_padded)
    if bin_chunk:
        total_length += CHUNK_HEADER_SIZE + len(bin_chunk)
    if total_length > MAX_CONTAINER_LENGTH:
        raise GlbFormatError(f"GLB container of {total_length} bytes exceeds the 32-bit length field")

    parts = [
        struct.pack("<III", GLB_MAGIC, GLB_VERSION, total_length),
        struct.pack("<II", len(json_padded), CHUNK_TYPE_JSON),
        json_padded,
    ]
    if bin_chunk:
        parts.append(struct.pack("<II", len(bin_chunk), CHUNK_TYPE_BIN))
        parts.append(bin_chunk)
    data = b"".join(parts)
    if len(data) != total_length:
        raise GlbFormatError(f"GLB length mismatch: header declares {total_length}, emitted {len(data)}")
    return data


def write_glb(output: Path | str, document: Mapping[str, Any], binary: bytes = b"") -> Path:
    """Write a GLB container to *output*, creating parent directories."""

    output_path = Path(output)
    data = build_glb(document, binary)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_bytes(data)
    return output_path


def parse_glb(data: bytes) -> GlbContainer:
    """Decode a GLB container held in memory."""

    if len(data) < HEADER_SIZE:
        raise GlbFormatError("File too small for GLB header")
    magic, version, length = struct.unpack_from("<III", data, 0)
    if magic != GLB_MAGIC:
        raise GlbFormatError("Not a GLB file (magic mismatch)")
    if version != GLB_VERSION:
        raise GlbFormatError(f"Unsupported GLB version {version}")
    if length != len(data):
        raise GlbFormatError(f"GLB header declares {length} bytes but {len(data)} are present")

    offset = HEADER_SIZE
    document: Dict[str, Any] | None = None
    json_chunk_length = 0
    binary = b""
    bin_chunk_length: int | None = None
    while offset < length:
        if offset + CHUNK_HEADER_SIZE > length:
            raise GlbFormatError(f"Truncated chunk header at byte {offset}")
        chunk_length, chunk_type = struct.unpack_from("<II", data, offset)
        offset += CHUNK_HEADER_SIZE
        if offset + chunk_length > length:
            raise GlbFormatError(f"Chunk at byte {offset - CHUNK_HEADER_SIZE} overruns the container")
        chunk = data[offset : offset + chunk_length]
        offset += chunk_length

        if document is None:
            if chunk_type != CHUNK_TYPE_JSON:
                raise GlbFormatError("First GLB chunk must be JSON")
            try:
                payload = json.loads(chunk.decode("utf-8"))
            except (UnicodeDecodeError, json.JSONDecodeError) as exc:
                raise GlbFormatError(f"JSON chunk is not valid UTF-8 JSON: {exc}") from exc
            if not isinstance(payload, dict):
                raise GlbFormatError("JSON chunk must contain an object")
            document = payload
            json_chunk_length = chunk_length
        elif chunk_type == CHUNK_TYPE_BIN and bin_chunk_length is None:
            binary = chunk
            bin_chunk_length = chunk_length

    if document is None:
        raise GlbFormatError("GLB missing JSON chunk")
    return GlbContainer(
        version=version,
        length=length,
        document=document,
        binary=binary,
        json_chunk_length=json_chunk_length,
        bin_chunk_length=bin_chunk_length,
    )


def read_glb(path: Path | str) -> GlbContainer:
    """Read and decode the GLB container stored at *path*."""

    return parse_glb(Path(path).read_bytes())
