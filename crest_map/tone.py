# crest_map/tone.py
from __future__ import annotations

"""
Tone adjustments on RGBA working buffers.

Order is fixed: binarise alpha, invert, brightness/contrast. Every function
returns a new array and leaves its input untouched.
"""

import numpy as np

from .constants import ALPHA_CUTOFF
from .core_types import Adjustments, U8Image


def binarise_alpha(rgba: U8Image, threshold: int = ALPHA_CUTOFF) -> U8Image:
    """Alpha below threshold becomes 0, everything else 255."""
    out = rgba.copy()
    out[..., 3] = np.where(rgba[..., 3] < threshold, 0, 255).astype(np.uint8)
    return out


def invert_rgb(rgba: U8Image) -> U8Image:
    """RGB <- 255 - RGB. Alpha untouched."""
    out = rgba.copy()
    out[..., :3] = 255 - rgba[..., :3]
    return out


def contrast_factor(contrast: float) -> float:
    """Classic 259-based contrast factor; 1.0 at contrast 0."""
    c = float(contrast)
    return (259.0 * (c + 255.0)) / (255.0 * (259.0 - c))


def apply_brightness_contrast(rgba: U8Image, brightness: float, contrast: float) -> U8Image:
    """Per channel: clamp((in + brightness - 128) * k + 128)."""
    if brightness == 0 and contrast == 0:
        return rgba.copy()
    k = contrast_factor(contrast)
    rgb = rgba[..., :3].astype(np.float64)
    rgb = (rgb + float(brightness) - 128.0) * k + 128.0
    out = rgba.copy()
    # clamped byte store: round half to even, then clip
    out[..., :3] = np.clip(np.round(rgb), 0, 255).astype(np.uint8)
    return out


def apply_tone(rgba: U8Image, adjustments: Adjustments) -> U8Image:
    """Binarise alpha, then invert and brightness/contrast as configured."""
    out = binarise_alpha(rgba)
    if adjustments.invert:
        out = invert_rgb(out)
    if adjustments.brightness != 0 or adjustments.contrast != 0:
        out = apply_brightness_contrast(out, adjustments.brightness, adjustments.contrast)
    return out


__all__ = [
    "binarise_alpha",
    "invert_rgb",
    "contrast_factor",
    "apply_brightness_contrast",
    "apply_tone",
]
