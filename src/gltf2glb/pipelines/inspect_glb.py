"""Summarise the header and chunks of a GLB container."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Sequence

from exporters.glb_container import GlbContainer, GlbFormatError, read_glb

__all__ = ["describe_container", "main"]


def describe_container(container: GlbContainer) -> str:
    document = container.document
    bin_length = "absent" if container.bin_chunk_length is None else f"{container.bin_chunk_length} bytes"
    lines = [
        f"Version: {container.version}",
        f"Length: {container.length} bytes",
        f"JSON chunk: {container.json_chunk_length} bytes",
        f"BIN chunk: {bin_length}",
        f"Buffers: {len(document.get('buffers') or [])}",
        f"BufferViews: {len(document.get('bufferViews') or [])}",
        f"Images: {len(document.get('images') or [])}",
    ]
    return "\n".join(lines)


def add_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("glb", type=Path, help="Path to a .glb file")


def run(args: argparse.Namespace) -> int:
    try:
        container = read_glb(args.glb)
    except (OSError, GlbFormatError) as exc:
        print(f"Failed to read {args.glb}: {exc}", file=sys.stderr)
        return 1
    print(describe_container(container))
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Print a summary of a GLB container.")
    add_arguments(parser)
    return run(parser.parse_args(argv))


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
