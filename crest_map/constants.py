# crest_map/constants.py
from __future__ import annotations

"""
Tunables and fixed tables shared by the pipeline stages.

Grouped by stage. Values are tuned for 24x12 / 16x12 output where a single
pixel is a large share of the picture.
"""

from typing import Dict, Tuple

# Icon geometry

ICON_HEIGHT = 12
COMBINED_WIDTH = 24
ALLY_WIDTH = 8
CLAN_WIDTH = 16

PALETTE_SIZE = 256

# Output modes and pipeline families

OUTPUT_MODES = ("combined", "clan")
PIPELINES = ("modern", "pixel")

MODERN_PRESETS = ("legacy", "simple", "balanced", "complex")
PIXEL_PRESETS = ("pixel-clean", "pixel-crisp", "pixel-stable", "pixel-indexed")
DITHER_MODES = ("none", "ordered4", "ordered8", "floyd", "atkinson")

DEFAULT_MODERN_PRESET = "balanced"
DEFAULT_PIXEL_PRESET = "pixel-clean"

# Resample

# Side factor of the intermediate buffer used by two-step resampling.
TWO_STEP_FACTOR = 4

# Tone

ALPHA_CUTOFF = 128
ADJUST_MIN = -50
ADJUST_MAX = 50

# Normalise / sharpen

# Channel range below which the image counts as flat and is left alone.
NORMALIZE_MIN_RANGE = 8

NORMALIZE_STRENGTH: Dict[str, float] = {
    "legacy": 0.0,
    "simple": 0.18,
    "balanced": 0.14,
    "complex": 0.06,
}

SHARPEN_EDGE_THRESHOLD = 10.0
SHARPEN_AMOUNT_SIMPLE = 0.10
SHARPEN_AMOUNT_DEFAULT = 0.12

# Rec. 709 luma weights.
LUMA_WEIGHTS = (0.2126, 0.7152, 0.0722)

# Dither strength caps. Ordered patterns tolerate more than diffusion at this size.

ORDERED_STRENGTH_CAPS: Dict[str, float] = {
    "legacy": 0.0,
    "simple": 0.45,
    "balanced": 0.60,
    "complex": 0.45,
}

DIFFUSION_STRENGTH_CAPS: Dict[str, float] = {
    "legacy": 0.0,
    "simple": 0.22,
    "balanced": 0.30,
    "complex": 0.26,
}

ORDERED_AMPLITUDE = 32.0
NOISE_AMPLITUDE = 36.0

BAYER4: Tuple[int, ...] = (
    0, 8, 2, 10,
    12, 4, 14, 6,
    3, 11, 1, 9,
    15, 7, 13, 5,
)

BAYER8: Tuple[int, ...] = (
    0, 48, 12, 60, 3, 51, 15, 63,
    32, 16, 44, 28, 35, 19, 47, 31,
    8, 56, 4, 52, 11, 59, 7, 55,
    40, 24, 36, 20, 43, 27, 39, 23,
    2, 50, 14, 62, 1, 49, 13, 61,
    34, 18, 46, 30, 33, 17, 45, 29,
    10, 58, 6, 54, 9, 57, 5, 53,
    42, 26, 38, 22, 41, 25, 37, 21,
)

# Error diffusion kernels as (dx, dy, weight).
KERNEL_FLOYD: Tuple[Tuple[int, int, float], ...] = (
    (1, 0, 7 / 16),
    (-1, 1, 3 / 16),
    (0, 1, 5 / 16),
    (1, 1, 1 / 16),
)

KERNEL_ATKINSON: Tuple[Tuple[int, int, float], ...] = (
    (1, 0, 1 / 8),
    (2, 0, 1 / 8),
    (-1, 1, 1 / 8),
    (0, 1, 1 / 8),
    (1, 1, 1 / 8),
    (0, 2, 1 / 8),
)

# Halftone palette

HALFTONE_LEVELS: Tuple[int, ...] = (0, 51, 102, 153, 204, 255)
HALFTONE_GREY_STEPS = 40

# Pixel family presets

PIXEL_ORDERED_AMPLITUDE = 24.0

# Share of the luma drift pulled back after the ordered offset (crisp preset).
PIXEL_LUMA_CORRECTION = 0.25

PIXEL_STRENGTH: Dict[str, float] = {
    "pixel-clean": 0.28,
    "pixel-crisp": 0.38,
    "pixel-stable": 0.45,
}

PIXEL_CRISP_SHARPEN_AMOUNT = 0.75
PIXEL_CRISP_SHARPEN_THRESHOLD = 12.0

PIXEL_STABLE_CLEANUP_PASSES = 2
PIXEL_STABLE_MIN_MAJORITY = 5
PIXEL_STABLE_MAX_JUMP = 85.0

# Cleanup

CLEANUP_DEFAULT_PASSES = 1
CLEANUP_DEFAULT_MIN_MAJORITY = 6
CLEANUP_DEFAULT_MAX_JUMP = 90.0

# Values the engine uses for the user-facing cleanup toggle. A count below 1
# lets any plurality through; only the colour jump gates.
ENGINE_CLEANUP_PASSES = 1
ENGINE_CLEANUP_MIN_MAJORITY = 0.55
ENGINE_CLEANUP_MAX_JUMP = 110.0

# Scheduler

DEFAULT_DEBOUNCE_SECONDS = 0.12

__all__ = [name for name in dir() if name.isupper()]
