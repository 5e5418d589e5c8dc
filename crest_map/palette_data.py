# crest_map/palette_data.py
from __future__ import annotations

"""
Fixed palette definitions and palette array helpers.

Exports:
  HALFTONE_PALETTE: uint8 [256,3]  # 6x6x6 cube + grey ramp, read-only
  build_halftone_palette() -> uint8 [256,3]
  pad_palette(colours) -> uint8 [256,3]
"""

from typing import List, Sequence

import numpy as np

from .constants import HALFTONE_GREY_STEPS, HALFTONE_LEVELS, PALETTE_SIZE
from .core_types import RGBTuple, U8Palette


def pad_palette(colours: np.ndarray | Sequence[RGBTuple]) -> U8Palette:
    """Zero-pad or truncate RGB rows to exactly 256 entries."""
    rows = np.asarray(colours, dtype=np.uint8).reshape(-1, 3)
    out = np.zeros((PALETTE_SIZE, 3), dtype=np.uint8)
    n = min(PALETTE_SIZE, rows.shape[0])
    out[:n] = rows[:n]
    return out


def halftone_colours() -> List[RGBTuple]:
    """Cube colours in r-major order, then ramp greys the cube lacks."""
    colours: List[RGBTuple] = [
        (r, g, b) for r in HALFTONE_LEVELS for g in HALFTONE_LEVELS for b in HALFTONE_LEVELS
    ]
    cube_greys = {r for r, g, b in colours if r == g == b}
    last = HALFTONE_GREY_STEPS - 1
    for k in range(HALFTONE_GREY_STEPS):
        v = int(np.floor(k * 255 / last + 0.5))
        if v not in cube_greys:
            colours.append((v, v, v))
    return colours


def build_halftone_palette() -> U8Palette:
    """Fresh copy of the deterministic 256-entry halftone palette."""
    return pad_palette(halftone_colours())


HALFTONE_PALETTE: U8Palette = build_halftone_palette()
HALFTONE_PALETTE.setflags(write=False)


__all__ = [
    "pad_palette",
    "halftone_colours",
    "build_halftone_palette",
    "HALFTONE_PALETTE",
]
