"""Packing utilities that turn glTF assets into binary GLB containers."""

from .glb_container import (
    GlbContainer,
    GlbFormatError,
    build_glb,
    parse_glb,
    read_glb,
    write_glb,
)
from .gltf_document import Buffer, BufferView, GltfDocument, Image, ResourceKind
from .media_types import guess_image_mime_type
from .resource_bundle import (
    BinarySegment,
    CollectedResources,
    MissingResource,
    MissingResourceError,
    MissingResourcePolicy,
    MissingResourceWarning,
    PackedAsset,
    SegmentAccumulator,
    collect_resources,
    pack_gltf,
    patch_document,
)

__all__ = [
    "GlbContainer",
    "GlbFormatError",
    "build_glb",
    "parse_glb",
    "read_glb",
    "write_glb",
    "Buffer",
    "BufferView",
    "GltfDocument",
    "Image",
    "ResourceKind",
    "guess_image_mime_type",
    "BinarySegment",
    "CollectedResources",
    "MissingResource",
    "MissingResourceError",
    "MissingResourcePolicy",
    "MissingResourceWarning",
    "PackedAsset",
    "SegmentAccumulator",
    "collect_resources",
    "pack_gltf",
    "patch_document",
]
