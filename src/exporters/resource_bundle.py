"""Consolidate external glTF resources into a single binary region.

The collector walks ``buffers`` and then ``images``, appending the bytes of every
entry that references a file on disk to a :class:`SegmentAccumulator`. Buffer
views are retargeted to buffer ``0`` while the running offset is known, and
embedded images receive freshly appended buffer views. The patcher then
collapses the buffer list so the consolidated region becomes buffer ``0``.
"""
from __future__ import annotations

import warnings
from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path, PurePosixPath
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Sequence, Tuple
from urllib.parse import unquote, urlsplit

from .gltf_document import Buffer, BufferView, GltfDocument, Image, ResourceKind
from .media_types import guess_image_mime_type

__all__ = [
    "ALIGNMENT",
    "BinarySegment",
    "SegmentAccumulator",
    "join_segments",
    "MissingResource",
    "MissingResourcePolicy",
    "MissingResourceWarning",
    "MissingResourceError",
    "CollectedResources",
    "PackedAsset",
    "collect_resources",
    "patch_document",
    "pack_gltf",
]


ALIGNMENT = 4


class MissingResourceWarning(UserWarning):
    """Emitted when a buffer or image URI does not resolve to a file."""


class MissingResourcePolicy(str, Enum):
    """How the collector reacts to URIs that do not resolve to a file."""

    WARN = "warn"
    ERROR = "error"
    IGNORE = "ignore"


@dataclass(frozen=True, slots=True)
class MissingResource:
    """A buffer or image whose URI does not name a readable file inside the resource folder."""

    kind: str
    index: int
    uri: str
    path: Path

    def describe(self) -> str:
        return f"{self.kind} {self.index} references missing file {self.uri!r} ({self.path})"


class MissingResourceError(FileNotFoundError):
    """Raised for a missing resource under :attr:`MissingResourcePolicy.ERROR`."""

    def __init__(self, resource: MissingResource):
        self.resource = resource
        super().__init__(resource.describe())


@dataclass(frozen=True, slots=True)
class BinarySegment:
    """Bytes placed at ``offset`` in the consolidated region, followed by zero padding."""

    offset: int
    data: bytes
    padding: int

    @property
    def length(self) -> int:
        return len(self.data) + self.padding

    @property
    def end(self) -> int:
        return self.offset + self.length


class SegmentAccumulator:
    """Running offset and ordered segment list for the consolidated region."""

    def __init__(self, alignment: int = ALIGNMENT) -> None:
        if alignment <= 0:
            raise ValueError("alignment must be positive")
        self.alignment = alignment
        self.segments: List[BinarySegment] = []
        self.total = 0

    def append(self, data: bytes) -> BinarySegment:
        """Append *data* at the current offset and pad up to the alignment."""

        padding = (-len(data)) % self.alignment
        segment = BinarySegment(offset=self.total, data=bytes(data), padding=padding)
        self.segments.append(segment)
        self.total = segment.end
        return segment

    def to_bytes(self) -> bytes:
        return join_segments(self.segments)


def join_segments(segments: Sequence[BinarySegment]) -> bytes:
    """Concatenate *segments* with their zero padding."""

    return b"".join(segment.data + b"\x00" * segment.padding for segment in segments)


@dataclass(frozen=True, slots=True)
class CollectedResources:
    """Outcome of the collection pass, before the buffer list is collapsed."""

    document: GltfDocument
    segments: Tuple[BinarySegment, ...]
    byte_length: int
    buffer_offsets: Mapping[int, int]
    retargeted_views: FrozenSet[int]
    missing: Tuple[MissingResource, ...] = ()

    def to_bytes(self) -> bytes:
        return join_segments(self.segments)


@dataclass(frozen=True, slots=True)
class PackedAsset:
    """Patched JSON document and the binary region that accompanies it."""

    document: Dict[str, Any]
    binary: bytes
    segments: Tuple[BinarySegment, ...] = ()
    missing: Tuple[MissingResource, ...] = ()


def _load(resource_dir: Path, uri: str) -> Tuple[Optional[bytes], Path]:
    """Read the file *uri* names relative to *resource_dir*.

    Only relative references are read; absolute paths and URIs with a scheme or
    host load nothing.
    """

    parts = urlsplit(uri)
    relative = unquote(parts.path)
    if parts.scheme or parts.netloc or PurePosixPath(relative).is_absolute() or Path(relative).is_absolute():
        return None, Path(relative)
    path = resource_dir / relative
    if not path.is_file():
        return None, path
    return path.read_bytes(), path


def _report_missing(resource: MissingResource, policy: MissingResourcePolicy) -> None:
    if policy is MissingResourcePolicy.ERROR:
        raise MissingResourceError(resource)
    if policy is MissingResourcePolicy.WARN:
        warnings.warn(resource.describe(), MissingResourceWarning, stacklevel=3)


def collect_resources(
    document: GltfDocument,
    resource_dir: Path | str,
    *,
    missing: MissingResourcePolicy | str = MissingResourcePolicy.WARN,
) -> CollectedResources:
    """Load every external buffer and image referenced by *document*.

    Returns a new document in which views over loaded buffers point at buffer
    ``0`` with shifted offsets and loaded images are backed by new buffer views.
    Views over buffers whose file is missing keep their original reference.
    """

    policy = MissingResourcePolicy(missing)
    base = Path(resource_dir)
    accumulator = SegmentAccumulator()
    views: List[BufferView] = list(document.buffer_views or ())
    retargeted: set[int] = set()
    buffer_offsets: Dict[int, int] = {}
    missing_resources: List[MissingResource] = []

    for index, buffer in enumerate(document.buffers or ()):
        if buffer.kind is not ResourceKind.EXTERNAL:
            continue
        data, path = _load(base, buffer.uri)
        if data is None:
            record = MissingResource("buffer", index, buffer.uri, path)
            _report_missing(record, policy)
            missing_resources.append(record)
            continue
        segment = accumulator.append(data)
        buffer_offsets[index] = segment.offset
        for view_index, view in enumerate(views):
            if view_index in retargeted or view.buffer != index:
                continue
            views[view_index] = replace(view, buffer=0, byte_offset=view.offset + segment.offset)
            retargeted.add(view_index)

    images: Optional[List[Image]] = None if document.images is None else list(document.images)
    for index, image in enumerate(images or ()):
        if image.kind is not ResourceKind.EXTERNAL:
            continue
        data, path = _load(base, image.uri)
        if data is None:
            record = MissingResource("image", index, image.uri, path)
            _report_missing(record, policy)
            missing_resources.append(record)
            continue
        segment = accumulator.append(data)
        views.append(BufferView(buffer=0, byte_offset=segment.offset, byte_length=len(data)))
        retargeted.add(len(views) - 1)
        images[index] = replace(
            image,
            uri=None,
            buffer_view=len(views) - 1,
            mime_type=guess_image_mime_type(image.uri),
        )

    has_views = document.buffer_views is not None or len(views) > 0
    collected_document = replace(
        document,
        buffer_views=tuple(views) if has_views else None,
        images=tuple(images) if images is not None else None,
    )
    return CollectedResources(
        document=collected_document,
        segments=tuple(accumulator.segments),
        byte_length=accumulator.total,
        buffer_offsets=buffer_offsets,
        retargeted_views=frozenset(retargeted),
        missing=tuple(missing_resources),
    )


def _ensure_asset_version(rest: Mapping[str, Any]) -> Dict[str, Any]:
    patched = dict(rest)
    asset = dict(patched.get("asset") or {})
    asset.setdefault("version", "2.0")
    patched["asset"] = asset
    return patched


def patch_document(collected: CollectedResources) -> GltfDocument:
    """Collapse the buffer list around the consolidated region.

    The consolidated region becomes buffer ``0`` whenever an external buffer
    was referenced or an image was embedded. Buffers carrying ``data:`` URIs
    and external buffers whose file is missing are kept after it, in their
    original order, and the views over them are renumbered so an unresolved
    view still names its missing file. Loaded and embedded buffers are
    dropped. A document with nothing external keeps its buffer list unchanged.
    """

    document = collected.document
    buffers = document.buffers or ()
    consolidate = bool(collected.segments) or any(
        buffer.kind is ResourceKind.EXTERNAL for buffer in buffers
    )
    rest = _ensure_asset_version(document.rest)
    if not consolidate:
        return replace(document, rest=rest)

    missing_buffers = {resource.index for resource in collected.missing if resource.kind == "buffer"}
    kept = [
        index
        for index, buffer in enumerate(buffers)
        if buffer.kind is ResourceKind.DATA_URI or index in missing_buffers
    ]
    renumbered = {old: new for new, old in enumerate(kept, start=1)}
    new_buffers = (Buffer(byte_length=collected.byte_length),) + tuple(buffers[i] for i in kept)

    views = document.buffer_views
    if views is not None and renumbered:
        views = tuple(
            replace(view, buffer=renumbered[view.buffer])
            if index not in collected.retargeted_views and view.buffer in renumbered
            else view
            for index, view in enumerate(views)
        )
    return replace(document, buffers=new_buffers, buffer_views=views, rest=rest)


def pack_gltf(
    payload: Mapping[str, Any],
    resource_dir: Path | str,
    *,
    missing: MissingResourcePolicy | str = MissingResourcePolicy.WARN,
) -> PackedAsset:
    """Collect and patch *payload*, returning the JSON document and binary region.

    *payload* is never modified.
    """

    document = GltfDocument.from_json(payload)
    collected = collect_resources(document, resource_dir, missing=missing)
    patched = patch_document(collected)
    return PackedAsset(
        document=patched.to_json(),
        binary=collected.to_bytes(),
        segments=collected.segments,
        missing=collected.missing,
    )
