# crest_map/dither.py
from __future__ import annotations

"""
Palette index mapping with optional dithering.

- Nearest mapping by squared RGB distance; the lowest index wins ties, the
  same answer as a linear scan that stops on an exact match.
- Ordered dithering (Bayer 4x4 / 8x8, or a coordinate-hash noise variant).
- Serial error diffusion (Floyd-Steinberg, Atkinson), left to right, top to
  bottom, no serpentine.
- The pixel family's Bayer 8x8 variant with optional luma correction.

Transparent pixels always map to the palette's nearest black and never
diffuse error. Offsets are applied in float; nothing here is random, so the
same input always gives the same indices.
"""

from typing import Tuple

import numpy as np

from .constants import (
    BAYER4,
    BAYER8,
    DIFFUSION_STRENGTH_CAPS,
    KERNEL_ATKINSON,
    KERNEL_FLOYD,
    NOISE_AMPLITUDE,
    ORDERED_AMPLITUDE,
    ORDERED_STRENGTH_CAPS,
    PIXEL_LUMA_CORRECTION,
    PIXEL_ORDERED_AMPLITUDE,
)
from .core_types import U8Image, U8Indices, U8Palette, clamp_value
from .utils import luma_rec709, visible_mask

BLACK = (0, 0, 0)

_BAYER4 = np.array(BAYER4, dtype=np.float64).reshape(4, 4)
_BAYER8 = np.array(BAYER8, dtype=np.float64).reshape(8, 8)


# Strength caps


def clamp_dither_strength(preset: str, mode: str, value: float) -> float:
    """Clamp a raw [0,1] strength to the (preset, mode) cap table."""
    v = clamp_value(float(value), 0.0, 1.0) if np.isfinite(value) else 0.0
    if mode == "none":
        return 0.0
    if mode in ("ordered4", "ordered8"):
        return min(v, ORDERED_STRENGTH_CAPS.get(preset, v))
    if mode in ("floyd", "atkinson"):
        return min(v, DIFFUSION_STRENGTH_CAPS.get(preset, v))
    return v


# Nearest lookup


def _distances(rgb: np.ndarray, palette: U8Palette) -> np.ndarray:
    pal = palette.astype(np.float64, copy=False)
    diff = rgb.astype(np.float64, copy=False)[..., None, :] - pal
    return np.einsum("...k,...k->...", diff, diff)


def nearest_indices(rgb: np.ndarray, palette: U8Palette) -> np.ndarray:
    """Nearest palette index for every (..., 3) colour. Returns uint8 (...)."""
    return np.argmin(_distances(rgb, palette), axis=-1).astype(np.uint8)


def nearest_index(rgb: Tuple[float, float, float] | np.ndarray, palette: U8Palette) -> int:
    """Nearest palette index for a single colour."""
    return int(nearest_indices(np.asarray(rgb, dtype=np.float64).reshape(1, 3), palette)[0])


def _map_with_black(rgb: np.ndarray, mask: np.ndarray, palette: U8Palette) -> U8Indices:
    indices = nearest_indices(rgb, palette)
    if not np.all(mask):
        indices[~mask] = nearest_index(BLACK, palette)
    return indices


# Ordered


def bayer_offsets(height: int, width: int, size: int) -> np.ndarray:
    """Threshold in [0, 1] per pixel from the Bayer matrix of ``size``."""
    matrix, tmax = (_BAYER8, 63.0) if size == 8 else (_BAYER4, 15.0)
    ys = np.arange(height) % size
    xs = np.arange(width) % size
    return matrix[ys[:, None], xs[None, :]] / tmax


def hash01(height: int, width: int) -> np.ndarray:
    """
    Deterministic per-coordinate noise in [0, 1].

    Integer hash evaluated with 32-bit wrap-around so results do not depend
    on platform integer width.
    """
    ys = np.arange(height, dtype=np.uint64)[:, None]
    xs = np.arange(width, dtype=np.uint64)[None, :]
    mask = np.uint64(0xFFFFFFFF)
    n = ((xs * np.uint64(374761393)) & mask) ^ ((ys * np.uint64(668265263)) & mask)
    n = ((n ^ (n >> np.uint64(13))) * np.uint64(1274126177)) & mask
    n = (n ^ (n >> np.uint64(16))) & mask
    return n.astype(np.float64) / float(0xFFFFFFFF)


def dither_ordered(
    rgba: U8Image,
    palette: U8Palette,
    mode: str,
    strength: float,
    noise: bool = False,
) -> U8Indices:
    """Ordered dither: add a symmetric per-pixel offset to every channel, then map."""
    height, width = rgba.shape[:2]
    if noise:
        offset = (hash01(height, width) - 0.5) * NOISE_AMPLITUDE * strength
    else:
        size = 8 if mode == "ordered8" else 4
        offset = (bayer_offsets(height, width, size) - 0.5) * ORDERED_AMPLITUDE * strength
    rgb = np.clip(rgba[..., :3].astype(np.float64) + offset[..., None], 0.0, 255.0)
    return _map_with_black(rgb, visible_mask(rgba), palette)


# Error diffusion


def dither_error_diffusion(
    rgba: U8Image, palette: U8Palette, mode: str, strength: float
) -> U8Indices:
    """
    Serial error diffusion. The residual of each pick, scaled by strength,
    is pushed to not-yet-visited neighbours with the kernel's weights.
    """
    height, width = rgba.shape[:2]
    kernel = KERNEL_ATKINSON if mode == "atkinson" else KERNEL_FLOYD
    src = rgba[..., :3].astype(np.float64)
    mask = visible_mask(rgba)
    err = np.zeros((height, width, 3), dtype=np.float64)
    pal = palette.astype(np.float64)
    black = nearest_index(BLACK, palette)
    out = np.zeros((height, width), dtype=np.uint8)

    for y in range(height):
        for x in range(width):
            if not mask[y, x]:
                out[y, x] = black
                continue
            value = np.clip(src[y, x] + err[y, x], 0.0, 255.0)
            j = nearest_index(value, palette)
            out[y, x] = j
            residual = (value - pal[j]) * strength
            for dx, dy, w in kernel:
                nx, ny = x + dx, y + dy
                if 0 <= nx < width and 0 <= ny < height:
                    err[ny, nx] += residual * w
    return out


# Dispatch


def quantize_to_palette(
    rgba: U8Image,
    palette: U8Palette,
    mode: str = "none",
    strength: float = 0.0,
    noise: bool = False,
) -> U8Indices:
    """Map an RGBA buffer to palette indices with the chosen dither mode."""
    if mode in ("floyd", "atkinson"):
        return dither_error_diffusion(rgba, palette, mode, strength)
    if mode in ("ordered4", "ordered8"):
        return dither_ordered(rgba, palette, mode, strength, noise=noise)
    rgb = rgba[..., :3].astype(np.float64)
    return _map_with_black(rgb, visible_mask(rgba), palette)


# Pixel family


def dither_pixel_ordered(
    rgba: U8Image, palette: U8Palette, strength: float, edge_bias: bool = False
) -> U8Indices:
    """
    Bayer 8x8 ordered dither with amplitude 24*strength over d in [-1, 1].

    With ``edge_bias`` the offset colour is pulled a quarter of the way back
    toward the original luma, keeping edges from dissolving into the pattern.
    """
    height, width = rgba.shape[:2]
    amp = PIXEL_ORDERED_AMPLITUDE * clamp_value(float(strength), 0.0, 1.0)
    d = (bayer_offsets(height, width, 8) - 0.5) * 2.0
    rgb = rgba[..., :3].astype(np.float64)
    shifted = np.clip(rgb + (d * amp)[..., None], 0.0, 255.0)
    if edge_bias:
        drift = luma_rec709(rgb) - luma_rec709(shifted)
        shifted = np.clip(shifted + (drift * PIXEL_LUMA_CORRECTION)[..., None], 0.0, 255.0)
    return _map_with_black(shifted, visible_mask(rgba), palette)


__all__ = [
    "clamp_dither_strength",
    "nearest_indices",
    "nearest_index",
    "bayer_offsets",
    "hash01",
    "dither_ordered",
    "dither_error_diffusion",
    "quantize_to_palette",
    "dither_pixel_ordered",
]
