"""Static media type table used when embedding image files."""
from __future__ import annotations

from pathlib import PurePosixPath
from typing import Mapping
from urllib.parse import unquote, urlsplit

__all__ = ["DEFAULT_MIME_TYPE", "IMAGE_MIME_TYPES", "guess_image_mime_type"]


DEFAULT_MIME_TYPE = "application/octet-stream"

IMAGE_MIME_TYPES: Mapping[str, str] = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".bmp": "image/bmp",
    ".webp": "image/webp",
}


def guess_image_mime_type(uri: str) -> str:
    """Return the MIME type for *uri* based on its file extension."""

    path = unquote(urlsplit(uri).path)
    suffix = PurePosixPath(path).suffix.lower()
    return IMAGE_MIME_TYPES.get(suffix, DEFAULT_MIME_TYPE)
