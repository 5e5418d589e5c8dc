# crest_map/cleanup.py
from __future__ import annotations

"""
Majority-safe denoise of an index buffer.

An interior pixel that shares its index with none of its 8 neighbours is
replaced by the neighbours' plurality index, but only when that plurality is
large enough and its palette colour is close to the pixel's own. Isolated
accents far from their surroundings survive.

Each pass reads the previous pass's finished output, never its own partial
writes, so there is no scan-direction bias.
"""

from collections import Counter

import numpy as np

from .constants import (
    CLEANUP_DEFAULT_MAX_JUMP,
    CLEANUP_DEFAULT_MIN_MAJORITY,
    CLEANUP_DEFAULT_PASSES,
)
from .core_types import U8Indices, U8Palette

_NEIGHBOURS = tuple(
    (dy, dx) for dy in (-1, 0, 1) for dx in (-1, 0, 1) if (dy, dx) != (0, 0)
)


def _cleanup_pass(
    src: U8Indices, pal: np.ndarray, min_majority: float, max_jump: float
) -> U8Indices:
    height, width = src.shape
    out = src.copy()
    for y in range(1, height - 1):
        for x in range(1, width - 1):
            own = int(src[y, x])
            neighbours = [int(src[y + dy, x + dx]) for dy, dx in _NEIGHBOURS]
            if own in neighbours:
                continue
            # Counter keeps first-seen order, so ties go to the earliest neighbour
            best, count = Counter(neighbours).most_common(1)[0]
            if count < min_majority:
                continue
            if float(np.linalg.norm(pal[own] - pal[best])) > max_jump:
                continue
            out[y, x] = best
    return out


def cleanup_majority_safe(
    indices: U8Indices,
    palette: U8Palette,
    passes: int = CLEANUP_DEFAULT_PASSES,
    min_majority: float = CLEANUP_DEFAULT_MIN_MAJORITY,
    max_color_jump: float = CLEANUP_DEFAULT_MAX_JUMP,
) -> U8Indices:
    """Run ``passes`` majority-safe passes over an (H, W) index buffer; returns a new array."""
    out = np.array(indices, dtype=np.uint8, copy=True)
    if out.ndim != 2:
        raise ValueError("indices must be a 2-D (H, W) buffer")
    pal = np.asarray(palette, dtype=np.float64).reshape(-1, 3)
    for _ in range(max(0, int(passes))):
        out = _cleanup_pass(out, pal, float(min_majority), float(max_color_jump))
    return out


__all__ = ["cleanup_majority_safe"]
