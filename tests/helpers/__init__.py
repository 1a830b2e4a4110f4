"""Test helper utilities exposed for import convenience."""
from .glb import parse_glb, read_chunks
from .gltf import triangle_document, write_asset

__all__ = [
    "parse_glb",
    "read_chunks",
    "triangle_document",
    "write_asset",
]
