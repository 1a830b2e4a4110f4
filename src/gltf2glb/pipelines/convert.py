"""Batch conversion of ``.gltf`` folders into GLB containers."""

from __future__ import annotations

import argparse
import sys
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import List, Sequence, Tuple

from exporters.glb_container import write_glb
from exporters.resource_bundle import MissingResource, MissingResourcePolicy, pack_gltf
from schemas.validators import load_gltf

__all__ = [
    "DEFAULT_OUTPUT_DIRNAME",
    "ConversionOptions",
    "ConversionResult",
    "convert_file",
    "convert_folder",
    "default_output_dir",
    "discover_gltf_files",
    "main",
]


DEFAULT_OUTPUT_DIRNAME = "glb_output"


@dataclass(frozen=True)
class ConversionOptions:
    """Settings shared by every file in a batch run."""

    output_dir: Path | None = None
    missing: MissingResourcePolicy = MissingResourcePolicy.WARN
    workers: int = 1
    validate: bool = True


@dataclass(frozen=True)
class ConversionResult:
    """Outcome of converting a single ``.gltf`` file."""

    source: Path
    output: Path | None = None
    missing: Tuple[MissingResource, ...] = ()
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def default_output_dir(input_dir: Path) -> Path:
    return Path(input_dir) / DEFAULT_OUTPUT_DIRNAME


def discover_gltf_files(input_dir: Path) -> List[Path]:
    """Return the ``.gltf`` files directly inside *input_dir*, sorted by name."""

    return sorted(
        path for path in Path(input_dir).iterdir() if path.is_file() and path.suffix.lower() == ".gltf"
    )


def convert_file(
    gltf_path: Path,
    output_dir: Path,
    *,
    missing: MissingResourcePolicy | str = MissingResourcePolicy.WARN,
    validate: bool = True,
) -> ConversionResult:
    """Convert *gltf_path* into ``<output_dir>/<stem>.glb``.

    Resources are resolved relative to the folder holding *gltf_path*. Errors
    propagate to the caller.
    """

    gltf_path = Path(gltf_path)
    payload = load_gltf(gltf_path, validate=validate)
    packed = pack_gltf(payload, gltf_path.parent, missing=missing)
    output = write_glb(Path(output_dir) / f"{gltf_path.stem}.glb", packed.document, packed.binary)
    return ConversionResult(source=gltf_path, output=output, missing=packed.missing)


def _convert_safely(gltf_path: Path, output_dir: Path, options: ConversionOptions) -> ConversionResult:
    try:
        return convert_file(
            gltf_path,
            output_dir,
            missing=options.missing,
            validate=options.validate,
        )
    except Exception as exc:  # reported per file
        return ConversionResult(source=gltf_path, error=exc)


def convert_folder(input_dir: Path | str, options: ConversionOptions | None = None) -> List[ConversionResult]:
    """Convert every ``.gltf`` file in *input_dir*.

    Returns one :class:`ConversionResult` per file in discovery order. Files
    are independent, so ``options.workers > 1`` converts them on a bounded
    thread pool.
    """

    options = options or ConversionOptions()
    input_path = Path(input_dir)
    if not input_path.is_dir():
        raise FileNotFoundError(f"Input folder does not exist: {input_path}")

    gltf_files = discover_gltf_files(input_path)
    if not gltf_files:
        print("No .gltf files found in the input folder.")
        return []

    output_dir = options.output_dir or default_output_dir(input_path)
    print(f"Found {len(gltf_files)} GLTF file(s) to convert:")

    if options.workers > 1:
        with ThreadPoolExecutor(max_workers=options.workers) as pool:
            results = list(pool.map(lambda path: _convert_safely(path, output_dir, options), gltf_files))
    else:
        results = [_convert_safely(path, output_dir, options) for path in gltf_files]

    for result in results:
        _report(result)
    return results


def _report(result: ConversionResult) -> None:
    name = result.source.name
    if not result.ok:
        print(f"✗ Failed to convert {name}: {result.error}", file=sys.stderr)
        return
    print(f"✓ Converted: {name}")
    for resource in result.missing:
        print(f"  ! Missing {resource.kind} {resource.index}: {resource.uri}")


def add_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("input", type=Path, help="Folder containing .gltf files and their resources")
    parser.add_argument(
        "output",
        type=Path,
        nargs="?",
        help=f"Folder for generated .glb files (default: <input>/{DEFAULT_OUTPUT_DIRNAME})",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=1,
        help="Number of files converted in parallel (default: 1).",
    )
    parser.add_argument(
        "--on-missing",
        choices=[policy.value for policy in MissingResourcePolicy],
        default=MissingResourcePolicy.WARN.value,
        help="What to do when a buffer or image file is missing (default: warn).",
    )
    parser.add_argument(
        "--no-validate",
        action="store_true",
        help="Skip schema checks on buffers, buffer views and images.",
    )


def run(args: argparse.Namespace) -> int:
    if args.workers < 1:
        print("--workers must be at least 1", file=sys.stderr)
        return 2
    if not args.input.is_dir():
        print(f"Input folder does not exist: {args.input}", file=sys.stderr)
        return 1

    output_dir = args.output or default_output_dir(args.input)
    print(f"Converting GLTF files from: {args.input}")
    print(f"Output folder: {output_dir}")
    print("---")

    options = ConversionOptions(
        output_dir=output_dir,
        missing=MissingResourcePolicy(args.on_missing),
        workers=args.workers,
        validate=not args.no_validate,
    )
    results = convert_folder(args.input, options)

    print("---")
    print("Conversion complete!")
    return 0 if all(result.ok for result in results) else 1


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Convert .gltf files and their resources into .glb containers.")
    add_arguments(parser)
    return run(parser.parse_args(argv))


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
