# crest_map/pixel/run.py
from __future__ import annotations

"""
Pixel-family quantiser.

Fixed halftone palette plus a light Bayer 8x8 dither, tuned per preset to
stay predictable and distinct from the modern family. The indexed preset
builds an adaptive palette instead and maps without dithering.
"""

from typing import Tuple

from crest_map.cleanup import cleanup_majority_safe
from crest_map.constants import (
    PIXEL_CRISP_SHARPEN_AMOUNT,
    PIXEL_CRISP_SHARPEN_THRESHOLD,
    PIXEL_STABLE_CLEANUP_PASSES,
    PIXEL_STABLE_MAX_JUMP,
    PIXEL_STABLE_MIN_MAJORITY,
    PIXEL_STRENGTH,
)
from crest_map.core_types import PixelOptions, U8Image, U8Indices, U8Palette
from crest_map.dither import dither_pixel_ordered, quantize_to_palette
from crest_map.enhance import edge_aware_sharpen
from crest_map.quantize import HalftonePalette, MedianCutPalette
from crest_map.utils import debug_log


def run_pixel(
    rgba: U8Image, options: PixelOptions, *, debug: bool = False
) -> Tuple[U8Palette, U8Indices]:
    preset = options.preset

    if preset == "pixel-indexed":
        palette = MedianCutPalette().build(rgba)
        if debug:
            debug_log("[pixel] indexed: adaptive palette, no dither")
        return palette, quantize_to_palette(rgba, palette, "none", 0.0)

    palette = HalftonePalette().build(rgba)
    strength = PIXEL_STRENGTH[preset]
    work = rgba
    edge_bias = False
    if preset == "pixel-crisp":
        work = edge_aware_sharpen(
            rgba, PIXEL_CRISP_SHARPEN_AMOUNT, PIXEL_CRISP_SHARPEN_THRESHOLD
        )
        edge_bias = True

    indices = dither_pixel_ordered(work, palette, strength, edge_bias=edge_bias)

    if preset == "pixel-stable":
        indices = cleanup_majority_safe(
            indices,
            palette,
            passes=PIXEL_STABLE_CLEANUP_PASSES,
            min_majority=PIXEL_STABLE_MIN_MAJORITY,
            max_color_jump=PIXEL_STABLE_MAX_JUMP,
        )

    if debug:
        debug_log(f"[pixel] {preset}: strength={strength} edge_bias={edge_bias}")
    return palette, indices


__all__ = ["run_pixel"]
