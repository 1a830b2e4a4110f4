"""Command pipelines for converting and inspecting glTF assets."""

from __future__ import annotations

from .convert import (
    ConversionOptions,
    ConversionResult,
    convert_file,
    convert_folder,
    default_output_dir,
    discover_gltf_files,
)
from .inspect_glb import describe_container

__all__ = [
    "ConversionOptions",
    "ConversionResult",
    "convert_file",
    "convert_folder",
    "default_output_dir",
    "describe_container",
    "discover_gltf_files",
]
