"""Command-line entry point for building a relief from an image file."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Optional, Sequence

import numpy as np
from PIL import Image

from relief_engine.config import ReliefConfig, ReliefParams
from relief_engine.errors import GeometryConstructionFailure, ImageDecodeFailure
from relief_engine.presets import params_for_preset, preset_names
from relief_engine.relief_workflow import ReliefResult, ReliefWorkflow
from relief_engine.utils.generation_context import GenerationContext
from relief_engine.utils.manifest import build_manifest, write_manifest


def _threshold(value: str) -> float:
    parsed = float(value)
    if not (0.0 < parsed < 1.0):
        raise argparse.ArgumentTypeError("threshold must be in (0, 1)")
    return parsed


def _non_negative(value: str) -> float:
    parsed = float(value)
    if parsed < 0:
        raise argparse.ArgumentTypeError("value must be >= 0")
    return parsed


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="relief-engine",
        description="Convert an image into a printable relief mesh",
    )
    parser.add_argument("image", type=Path, help="Source image file")
    parser.add_argument(
        "--preset",
        choices=preset_names(),
        default=None,
        help="Scene preset supplying default relief parameters",
    )
    parser.add_argument("--depth", type=_non_negative, default=None)
    parser.add_argument("--base-height", type=_non_negative, default=None)
    parser.add_argument(
        "--resolution",
        type=int,
        default=None,
        help="Sampling grid size (clamped to 256)",
    )
    parser.add_argument(
        "--inverted", action=argparse.BooleanOptionalAction, default=None
    )
    parser.add_argument(
        "--mirrored", action=argparse.BooleanOptionalAction, default=None
    )
    parser.add_argument("--cutout", action=argparse.BooleanOptionalAction, default=None)
    parser.add_argument(
        "--threshold",
        type=_threshold,
        default=None,
        help="Background brightness threshold for cutout mode",
    )
    parser.add_argument(
        "--manifest", type=Path, default=None, help="Write a JSON run manifest"
    )
    parser.add_argument(
        "--preview",
        type=Path,
        default=None,
        help="Write the height map as a grayscale PNG",
    )
    parser.add_argument("--progress", action="store_true", help="Show progress bars")
    parser.add_argument("--quiet", action="store_true", help="Suppress log lines")
    return parser.parse_args(argv)


def params_from_args(args: argparse.Namespace) -> ReliefParams:
    """Resolve relief parameters from a preset plus explicit overrides."""
    overrides = {
        "depth": args.depth,
        "base_height": args.base_height,
        "resolution": args.resolution,
        "inverted": args.inverted,
        "mirrored": args.mirrored,
        "cutout": args.cutout,
        "cutout_threshold": args.threshold,
    }
    if args.preset:
        return params_for_preset(args.preset, **overrides)
    params = ReliefParams(
        **{key: value for key, value in overrides.items() if value is not None}
    )
    params.validate()
    return params


def write_height_preview(result: ReliefResult, path: Path) -> Path:
    """Save the result's height map as an 8-bit grayscale image."""
    if result.maps is None:
        raise ValueError("result was built without maps")
    height = result.maps.height
    peak = float(height.max())
    scaled = height / peak if peak > 0 else np.zeros_like(height)
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.fromarray(np.round(scaled * 255.0).astype(np.uint8)).save(path)
    return path


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parse_args(argv)
    try:
        params = params_from_args(args)
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2

    context = GenerationContext(source=str(args.image), quiet=args.quiet)
    config = ReliefConfig(params=params, show_progress=args.progress)
    workflow = ReliefWorkflow(config, context=context)

    errors = []
    result = None
    try:
        result = workflow.run(args.image, keep_maps=args.preview is not None)
    except (ImageDecodeFailure, GeometryConstructionFailure) as exc:
        errors.append(str(exc))
        print(f"Error: {exc}", file=sys.stderr)

    if args.manifest is not None:
        outputs = result.summary() if result is not None else {}
        write_manifest(args.manifest, build_manifest(context, outputs, errors=errors))

    if result is None:
        return 1

    if args.preview is not None:
        write_height_preview(result, args.preview)

    print(
        f"Relief {result.resolution}x{result.resolution}: "
        f"{result.foreground_count} foreground cells, "
        f"{result.mesh.vertex_count} vertices, "
        f"{result.mesh.triangle_count} triangles"
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
