"""Typed view over the parts of a glTF document touched by GLB packing."""
from __future__ import annotations

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple

__all__ = [
    "DATA_URI_PREFIX",
    "ResourceKind",
    "Buffer",
    "BufferView",
    "Image",
    "GltfDocument",
]


DATA_URI_PREFIX = "data:"


class ResourceKind(str, Enum):
    """Where the bytes of a buffer or image live."""

    EXTERNAL = "external"
    DATA_URI = "data-uri"
    BUFFER_VIEW = "buffer-view"
    EMBEDDED = "embedded"


def _classify_uri(uri: Optional[str]) -> Optional[ResourceKind]:
    if uri is None:
        return None
    if uri.startswith(DATA_URI_PREFIX):
        return ResourceKind.DATA_URI
    return ResourceKind.EXTERNAL


def _split(payload: Mapping[str, Any], keys: Tuple[str, ...]) -> Dict[str, Any]:
    return {key: copy.deepcopy(value) for key, value in payload.items() if key not in keys}


@dataclass(frozen=True, slots=True)
class Buffer:
    """A ``buffers[i]`` entry."""

    byte_length: int
    uri: Optional[str] = None
    passthrough: Mapping[str, Any] = field(default_factory=dict)

    _KEYS = ("uri", "byteLength")

    @property
    def kind(self) -> ResourceKind:
        return _classify_uri(self.uri) or ResourceKind.EMBEDDED

    @classmethod
    def from_json(cls, payload: Mapping[str, Any]) -> "Buffer":
        return cls(
            byte_length=int(payload["byteLength"]),
            uri=payload.get("uri"),
            passthrough=_split(payload, cls._KEYS),
        )

    def to_json(self) -> Dict[str, Any]:
        data = copy.deepcopy(dict(self.passthrough))
        if self.uri is not None:
            data["uri"] = self.uri
        data["byteLength"] = self.byte_length
        return data


@dataclass(frozen=True, slots=True)
class BufferView:
    """A ``bufferViews[i]`` entry.

    ``byte_offset`` stays ``None`` when the source omitted it so untouched views
    serialise exactly as they were read.
    """

    buffer: int
    byte_length: int
    byte_offset: Optional[int] = None
    passthrough: Mapping[str, Any] = field(default_factory=dict)

    _KEYS = ("buffer", "byteOffset", "byteLength")

    @property
    def offset(self) -> int:
        return self.byte_offset or 0

    @classmethod
    def from_json(cls, payload: Mapping[str, Any]) -> "BufferView":
        offset = payload.get("byteOffset")
        return cls(
            buffer=int(payload["buffer"]),
            byte_length=int(payload["byteLength"]),
            byte_offset=int(offset) if offset is not None else None,
            passthrough=_split(payload, cls._KEYS),
        )

    def to_json(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"buffer": self.buffer}
        if self.byte_offset is not None:
            data["byteOffset"] = self.byte_offset
        data["byteLength"] = self.byte_length
        data.update(copy.deepcopy(dict(self.passthrough)))
        return data


@dataclass(frozen=True, slots=True)
class Image:
    """An ``images[i]`` entry in one of its three reference states."""

    uri: Optional[str] = None
    buffer_view: Optional[int] = None
    mime_type: Optional[str] = None
    passthrough: Mapping[str, Any] = field(default_factory=dict)

    _KEYS = ("uri", "bufferView", "mimeType")

    @property
    def kind(self) -> ResourceKind:
        uri_kind = _classify_uri(self.uri)
        if uri_kind is not None:
            return uri_kind
        if self.buffer_view is not None:
            return ResourceKind.BUFFER_VIEW
        return ResourceKind.EMBEDDED

    @classmethod
    def from_json(cls, payload: Mapping[str, Any]) -> "Image":
        view = payload.get("bufferView")
        return cls(
            uri=payload.get("uri"),
            buffer_view=int(view) if view is not None else None,
            mime_type=payload.get("mimeType"),
            passthrough=_split(payload, cls._KEYS),
        )

    def to_json(self) -> Dict[str, Any]:
        data = copy.deepcopy(dict(self.passthrough))
        if self.uri is not None:
            data["uri"] = self.uri
        if self.buffer_view is not None:
            data["bufferView"] = self.buffer_view
        if self.mime_type is not None:
            data["mimeType"] = self.mime_type
        return data


@dataclass(frozen=True, slots=True)
class GltfDocument:
    """Immutable glTF document.

    ``buffers``, ``buffer_views`` and ``images`` are ``None`` when the source
    document has no such array; every other top-level member lives in ``rest``
    and is emitted unchanged.
    """

    buffers: Optional[Tuple[Buffer, ...]] = None
    buffer_views: Optional[Tuple[BufferView, ...]] = None
    images: Optional[Tuple[Image, ...]] = None
    rest: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_json(cls, payload: Mapping[str, Any]) -> "GltfDocument":
        """Build a document from parsed JSON without retaining references to it."""

        def entries(key: str, factory):
            values = payload.get(key)
            if values is None:
                return None
            return tuple(factory(value) for value in values)

        return cls(
            buffers=entries("buffers", Buffer.from_json),
            buffer_views=entries("bufferViews", BufferView.from_json),
            images=entries("images", Image.from_json),
            rest=_split(payload, ("buffers", "bufferViews", "images")),
        )

    def to_json(self) -> Dict[str, Any]:
        data = copy.deepcopy(dict(self.rest))
        if self.buffers is not None:
            data["buffers"] = [buffer.to_json() for buffer in self.buffers]
        if self.buffer_views is not None:
            data["bufferViews"] = [view.to_json() for view in self.buffer_views]
        if self.images is not None:
            data["images"] = [image.to_json() for image in self.images]
        return data
