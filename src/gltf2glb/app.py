"""Command line launcher for the glTF to GLB tools."""

from __future__ import annotations

from typing import Sequence

__all__ = ["build_cli"]


def build_cli(argv: Sequence[str] | None = None) -> int:
    import argparse

    from .pipelines.convert import add_arguments as add_convert_arguments
    from .pipelines.convert import run as run_convert
    from .pipelines.inspect_glb import add_arguments as add_inspect_arguments
    from .pipelines.inspect_glb import run as run_inspect

    parser = argparse.ArgumentParser(description="glTF to GLB packing tools")
    subparsers = parser.add_subparsers(dest="command", required=True)

    convert = subparsers.add_parser(
        "convert",
        help="Pack every .gltf file in a folder into a self-contained .glb",
    )
    add_convert_arguments(convert)

    inspect = subparsers.add_parser(
        "inspect",
        help="Print the header and chunk summary of a .glb file",
    )
    add_inspect_arguments(inspect)

    args = parser.parse_args(argv)

    if args.command == "convert":
        return run_convert(args)

    if args.command == "inspect":
        return run_inspect(args)

    parser.error(f"Unknown command: {args.command}")
    return 0
