"""Convert glTF assets with external resources into self-contained GLB files."""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.1.0"
