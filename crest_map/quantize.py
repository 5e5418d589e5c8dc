# crest_map/quantize.py
from __future__ import annotations

"""
Palette builders.

Every builder takes an RGBA working buffer and returns a (256, 3) uint8
palette. The ditherer only ever sees that array, so builders are freely
interchangeable.

  MedianCutPalette : adaptive, Pillow median cut over visible pixels
  HalftonePalette  : fixed 6x6x6 cube + grey ramp, no data dependency
"""

from typing import Protocol

import numpy as np
from PIL import Image

from .constants import PALETTE_SIZE
from .core_types import U8Image, U8Palette
from .palette_data import HALFTONE_PALETTE, pad_palette
from .utils import visible_mask


class PaletteBuilder(Protocol):
    def build(self, rgba: U8Image) -> U8Palette: ...


def center_weights(height: int, width: int) -> np.ndarray:
    """
    Integer sampling weights in {1, 2, 3}, highest at the canvas centre.

    Uses the normalised elliptical distance from the centre so a 24x12 and a
    16x12 canvas both fall off toward their own borders.
    """
    ys = (np.arange(height, dtype=np.float64) + 0.5) / height - 0.5
    xs = (np.arange(width, dtype=np.float64) + 0.5) / width - 0.5
    dist = np.sqrt((2 * ys[:, None]) ** 2 + (2 * xs[None, :]) ** 2)
    return 1 + np.rint(2.0 * (1.0 - np.minimum(dist, 1.0))).astype(np.int64)


class MedianCutPalette:
    """
    Adaptive palette from the image's own visible colours.

    Median cut minimises aggregate squared RGB error well enough at icon size.
    ``kmeans`` adds Pillow's k-means refinement passes on top.
    """

    def __init__(self, center_weighted: bool = False, kmeans: int = 0):
        self.center_weighted = center_weighted
        self.kmeans = kmeans

    def _samples(self, rgba: U8Image) -> np.ndarray:
        mask = visible_mask(rgba)
        rgb = rgba[..., :3]
        if not self.center_weighted:
            return rgb[mask]
        weights = center_weights(*rgba.shape[:2])
        return np.repeat(rgb[mask], weights[mask], axis=0)

    def build(self, rgba: U8Image) -> U8Palette:
        samples = self._samples(rgba)
        if samples.shape[0] == 0:
            # nothing visible: all-black palette
            return np.zeros((PALETTE_SIZE, 3), dtype=np.uint8)

        strip = Image.fromarray(np.ascontiguousarray(samples.reshape(1, -1, 3)))
        quantised = strip.quantize(
            colors=PALETTE_SIZE,
            method=Image.Quantize.MEDIANCUT,
            kmeans=self.kmeans,
            dither=Image.Dither.NONE,
        )
        raw = quantised.getpalette() or []
        table = np.asarray(raw, dtype=np.uint8).reshape(-1, 3)
        used = np.unique(np.asarray(quantised, dtype=np.uint8))
        used = used[used < table.shape[0]]
        return pad_palette(table[used])


class HalftonePalette:
    """Constant palette, identical for every image."""

    def build(self, rgba: U8Image) -> U8Palette:
        return HALFTONE_PALETTE.copy()


__all__ = [
    "PaletteBuilder",
    "center_weights",
    "MedianCutPalette",
    "HalftonePalette",
]
