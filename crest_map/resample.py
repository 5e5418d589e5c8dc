# crest_map/resample.py
from __future__ import annotations

"""
Cover-fit resampling into the working buffer.

The source is centre-cropped to the target aspect ratio and scaled with
Pillow. Two-step mode renders a larger intermediate first (smoothed per
preset), then point-samples it down to the final size for crisper pixels.
"""

from typing import Optional, Tuple

import numpy as np
from PIL import Image

from .constants import TWO_STEP_FACTOR
from .core_types import CropRect, U8Image
from .utils import pillow_resample_from_name

Box = Tuple[float, float, float, float]


def cover_crop_box(src_w: int, src_h: int, dst_w: int, dst_h: int) -> Box:
    """Centred (x0, y0, x1, y1) crop of the source matching dst aspect ratio."""
    src_ratio = src_w / src_h
    dst_ratio = dst_w / dst_h
    if src_ratio > dst_ratio:
        crop_w, crop_h = src_h * dst_ratio, float(src_h)
    else:
        crop_w, crop_h = float(src_w), src_w / dst_ratio
    x0 = (src_w - crop_w) / 2.0
    y0 = (src_h - crop_h) / 2.0
    return (x0, y0, x0 + crop_w, y0 + crop_h)


def _ensure_nonempty(rgba: U8Image) -> U8Image:
    if rgba.shape[0] > 0 and rgba.shape[1] > 0:
        return rgba
    # zero-size source: a single transparent pixel
    return np.zeros((1, 1, 4), dtype=np.uint8)


def crop_source(rgba: U8Image, crop: Optional[CropRect]) -> U8Image:
    """Apply an (x, y, w, h) crop clamped to the image bounds."""
    if crop is None:
        return rgba
    height, width = rgba.shape[:2]
    x, y, w, h = (int(round(v)) for v in crop)
    x0 = min(max(x, 0), width)
    y0 = min(max(y, 0), height)
    x1 = min(max(x + max(w, 0), x0), width)
    y1 = min(max(y + max(h, 0), y0), height)
    return rgba[y0:y1, x0:x1]


def render_cover(rgba: U8Image, dst_w: int, dst_h: int, smoothing: bool) -> U8Image:
    """Cover-fit rgba into (dst_h, dst_w, 4). Nearest when smoothing is off."""
    src = _ensure_nonempty(rgba)
    src_h, src_w = src.shape[:2]
    box = cover_crop_box(src_w, src_h, dst_w, dst_h)
    resample = pillow_resample_from_name("bicubic" if smoothing else "nearest")
    im = Image.fromarray(np.ascontiguousarray(src))
    out = im.resize((dst_w, dst_h), resample=resample, box=box)
    return np.array(out, dtype=np.uint8)


def resample_smoothing(preset: str) -> Tuple[bool, bool]:
    """(single-pass smoothing, first-of-two-steps smoothing) for a preset."""
    if preset == "legacy":
        return False, False
    smooth_single = preset == "complex"
    smooth_first = preset != "simple"
    return smooth_single, smooth_first


def render_to_size(
    rgba: U8Image, preset: str, two_step: bool, dst_w: int, dst_h: int
) -> U8Image:
    """Preset-aware cover-fit render, optionally through a 4x intermediate."""
    smooth_single, smooth_first = resample_smoothing(preset)
    if not two_step:
        return render_cover(rgba, dst_w, dst_h, smooth_single)
    mid = render_cover(
        rgba, dst_w * TWO_STEP_FACTOR, dst_h * TWO_STEP_FACTOR, smooth_first
    )
    # final step without smoothing for sharper pixels
    return render_cover(mid, dst_w, dst_h, False)


__all__ = [
    "cover_crop_box",
    "crop_source",
    "render_cover",
    "resample_smoothing",
    "render_to_size",
]
