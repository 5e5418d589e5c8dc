# crest_map/modern/run.py
from __future__ import annotations

"""
Modern-family quantiser: normalise, sharpen, adaptive palette, dither.
"""

from typing import Optional, Tuple

from crest_map.core_types import ModernOptions, U8Image, U8Indices, U8Palette
from crest_map.dither import quantize_to_palette
from crest_map.enhance import (
    edge_aware_sharpen,
    normalize_strength,
    sharpen_amount,
    soft_normalize_levels,
)
from crest_map.quantize import MedianCutPalette, PaletteBuilder
from crest_map.utils import print_config_line


def prepare_modern(rgba: U8Image, options: ModernOptions) -> U8Image:
    """Level stretch and optional sharpen, as fed to the palette builder."""
    work = soft_normalize_levels(rgba, normalize_strength(options.preset))
    if options.sharpen:
        work = edge_aware_sharpen(work, sharpen_amount(options.preset))
    return work


def run_modern(
    rgba: U8Image,
    options: ModernOptions,
    *,
    builder: Optional[PaletteBuilder] = None,
    debug: bool = False,
) -> Tuple[U8Palette, U8Indices]:
    strength = options.effective_strength
    if debug:
        print_config_line(
            "modern",
            [
                ("Preset", options.preset),
                ("Dither", options.dither),
                ("Strength", strength),
                ("Noise", options.noise_ordered),
                ("Sharpen", options.sharpen),
                ("Centre-weighted", options.center_weighted),
            ],
            debug=True,
        )

    work = prepare_modern(rgba, options)
    if builder is None:
        builder = MedianCutPalette(center_weighted=options.center_weighted)
    palette = builder.build(work)
    indices = quantize_to_palette(
        work, palette, options.dither, strength, noise=options.noise_ordered
    )
    return palette, indices


__all__ = ["prepare_modern", "run_modern"]
