#!/usr/bin/env python3
"""
crest_map command line.

Usage:
  crest-map INPUT [--outdir DIR] --mode [combined|clan] --pipeline [modern|pixel]
            --preset NAME --dither MODE --strength F [--two-step] [--center-weighted]
            [--noise] [--sharpen] [--cleanup] [--invert] --brightness N --contrast N
            --crop X,Y,W,H --engine [auto|local|worker] --preview SCALE --debug

Output:
  combined mode : ally_8x12_256.bmp, clan_16x12_256.bmp, crest_24x12_256.bmp
  clan mode     : clan_16x12_256.bmp
  Written next to INPUT unless --outdir is given. --preview also writes
  <name>_preview.png for each BMP.
"""

from __future__ import annotations

import argparse
import sys
import time
from pathlib import Path
from typing import List, Optional, Tuple

from crest_map.constants import (
    DITHER_MODES,
    MODERN_PRESETS,
    OUTPUT_MODES,
    PIPELINES,
    PIXEL_PRESETS,
)
from crest_map.core_types import CropRect, PipelineResult, PipelineSettings
from crest_map.engine import LocalEngine, WorkerEngine, create_engine, resolve_now
from crest_map.errors import CrestMapError
from crest_map.image_io import render_preview, save_bmp, save_png
from crest_map.utils import (
    debug_log,
    error,
    format_seconds_compact,
    log,
    print_banner,
    print_config_line,
)

OUTPUT_NAMES = {
    "ally": "ally_8x12_256.bmp",
    "clan": "clan_16x12_256.bmp",
    "combined": "crest_24x12_256.bmp",
}


def _parse_crop(text: str) -> CropRect:
    parts = [p.strip() for p in text.split(",")]
    if len(parts) != 4:
        raise argparse.ArgumentTypeError("crop must be X,Y,W,H")
    try:
        x, y, w, h = (int(p) for p in parts)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"crop values must be integers: {e}") from e
    return (x, y, w, h)


def parse_cli_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse CLI arguments.

    Returns:
      argparse.Namespace with src, outdir, mode, pipeline, preset, dither,
      strength, two_step, center_weighted, noise, sharpen, cleanup, invert,
      brightness, contrast, crop, engine, preview, debug.
    """
    parser = argparse.ArgumentParser(
        prog="crest-map",
        description="Convert an image to 256-colour indexed crest icons.",
    )
    parser.add_argument("src", type=Path, help="Input image")
    parser.add_argument("--outdir", type=Path, default=None, help="Output directory")
    parser.add_argument("--mode", choices=OUTPUT_MODES, default="combined")
    parser.add_argument("--pipeline", choices=PIPELINES, default="modern")
    parser.add_argument(
        "--preset",
        choices=MODERN_PRESETS + PIXEL_PRESETS,
        default=None,
        help="Preset of the chosen pipeline (default: balanced / pixel-clean).",
    )
    parser.add_argument("--dither", choices=DITHER_MODES, default="none")
    parser.add_argument(
        "--strength", type=float, default=0.0, help="Dither strength 0..1 (capped per preset)"
    )
    parser.add_argument("--two-step", action="store_true", help="Resample via a 4x intermediate")
    parser.add_argument("--center-weighted", action="store_true", help="Favour centre colours in the palette")
    parser.add_argument("--noise", action="store_true", help="Hash noise instead of Bayer for ordered dither")
    parser.add_argument("--sharpen", action="store_true", help="Edge-aware sharpen (modern)")
    parser.add_argument("--cleanup", action="store_true", help="Majority-safe denoise (combined)")
    parser.add_argument("--invert", action="store_true")
    parser.add_argument("--brightness", type=int, default=0, help="-50..50")
    parser.add_argument("--contrast", type=int, default=0, help="-50..50")
    parser.add_argument("--crop", type=_parse_crop, default=None, help="X,Y,W,H in source pixels")
    parser.add_argument("--engine", choices=["auto", "local", "worker"], default="local")
    parser.add_argument("--preview", type=int, default=0, help="Also write PNG previews at this scale")
    parser.add_argument("--debug", action="store_true", help="Verbose stage details")
    return parser.parse_args(argv)


def settings_from_args(args: argparse.Namespace) -> PipelineSettings:
    preset = args.preset
    allowed = PIXEL_PRESETS if args.pipeline == "pixel" else MODERN_PRESETS
    if preset is not None and preset not in allowed:
        raise ValueError(f"preset {preset!r} does not belong to the {args.pipeline} pipeline")
    return PipelineSettings.from_mapping(
        {
            "mode": args.mode,
            "pipeline": args.pipeline,
            "preset": preset,
            "dither": args.dither,
            "strength": args.strength,
            "two_step": args.two_step,
            "center_weighted": args.center_weighted,
            "noise": args.noise,
            "sharpen": args.sharpen,
            "cleanup": args.cleanup,
            "invert": args.invert,
            "brightness": args.brightness,
            "contrast": args.contrast,
        }
    )


def write_outputs(
    result: PipelineResult, outdir: Path, preview_scale: int = 0
) -> List[Path]:
    """Write one BMP per present icon (plus optional PNG previews)."""
    if not result.can_download:
        raise CrestMapError("result is incomplete; nothing to export")
    outdir.mkdir(parents=True, exist_ok=True)
    written: List[Path] = []
    for name, indices in result.buffers().items():
        height, width = indices.shape
        path = save_bmp(outdir / OUTPUT_NAMES[name], width, height, result.palette, indices)
        written.append(path)
        if preview_scale > 0:
            preview = render_preview(result.palette, indices, preview_scale)
            written.append(save_png(path.with_name(f"{path.stem}_preview.png"), preview))
    return written


def _make_engine(kind: str, debug: bool):
    if kind == "worker":
        return WorkerEngine(debug=debug)
    if kind == "auto":
        return create_engine(True, debug=debug)
    return LocalEngine(debug=debug)


def run(args: argparse.Namespace) -> Tuple[int, List[Path]]:
    """Run one conversion; returns (exit code, written paths)."""
    src: Path = args.src
    if not src.exists():
        error(f"not found: {src}")
        return 2, []

    try:
        settings = settings_from_args(args)
    except ValueError as e:
        error(str(e))
        return 2, []

    print_banner(src.name)
    print_config_line(
        "run",
        [
            ("Mode", settings.output_mode),
            ("Pipeline", settings.pipeline),
            ("Preset", settings.family.preset),
            ("Engine", args.engine),
        ],
        debug=False,
    )

    t_start = time.perf_counter()
    engine = _make_engine(args.engine, args.debug)
    try:
        result = resolve_now(engine.compute(src, settings, args.crop))
        outdir = args.outdir if args.outdir is not None else src.parent
        written = write_outputs(result, outdir, args.preview)
    except (CrestMapError, OSError) as e:
        error(str(e))
        return 1, []
    finally:
        engine.close()

    for path in written:
        log(f"Wrote {path.name}")
    if args.debug:
        used = {int(v) for buf in result.buffers().values() for v in buf.ravel()}
        debug_log(f"palette entries used: {len(used)}")
    log(f"Total time {format_seconds_compact(time.perf_counter() - t_start)}")
    return 0, written


def main(argv: Optional[List[str]] = None) -> None:
    code, _written = run(parse_cli_args(argv))
    if code:
        sys.exit(code)


if __name__ == "__main__":
    main()
