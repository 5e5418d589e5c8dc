# crest_map/utils.py
from __future__ import annotations

"""
Shared utilities for crest_map.

Small image-space helpers used by several stages, timing formatters and
tidy print-based logging.
"""

import sys
from typing import Any, Iterable, List, Tuple

import numpy as np
from PIL import Image

from .constants import LUMA_WEIGHTS


#  Time formatting


def format_seconds_compact(seconds: float) -> str:
    """Human-friendly seconds: '<ms>ms', '<s>s', or 'Mm Ss'."""
    if seconds < 1.0:
        return f"{seconds * 1000.0:.1f}ms"
    if seconds < 60.0:
        return f"{seconds:.3f}s"
    minutes = int(seconds // 60)
    return f"{minutes}m {seconds - 60 * minutes:.1f}s"


# Image-space helpers


def pillow_resample_from_name(name: str) -> Image.Resampling:
    """Map a string to a Pillow resampling filter enum."""
    if name == "nearest":
        return Image.Resampling.NEAREST
    if name == "bilinear":
        return Image.Resampling.BILINEAR
    if name == "bicubic":
        return Image.Resampling.BICUBIC
    if name == "lanczos":
        return Image.Resampling.LANCZOS
    return Image.Resampling.BICUBIC  # default


def luma_rec709(rgb: np.ndarray) -> np.ndarray:
    """Rec. 709 luma of an (..., 3) array. Returns float64."""
    wr, wg, wb = LUMA_WEIGHTS
    rgb_f = rgb.astype(np.float64, copy=False)
    return wr * rgb_f[..., 0] + wg * rgb_f[..., 1] + wb * rgb_f[..., 2]


def pad_edge(arr: np.ndarray, radius: int = 1) -> np.ndarray:
    """Pad the two leading axes by repeating border samples."""
    pad = [(radius, radius), (radius, radius)] + [(0, 0)] * (arr.ndim - 2)
    return np.pad(arr, pad, mode="edge")


def box_mean_3x3(arr: np.ndarray) -> np.ndarray:
    """3x3 box mean with clamped borders over the two leading axes."""
    height, width = arr.shape[:2]
    padded = pad_edge(arr.astype(np.float64, copy=False))
    acc = np.zeros(arr.shape, dtype=np.float64)
    for dy in range(3):
        for dx in range(3):
            acc += padded[dy : dy + height, dx : dx + width]
    return acc / 9.0


def sobel_magnitude(lightness: np.ndarray) -> np.ndarray:
    """Sobel gradient magnitude with clamped borders. Returns float64."""
    height, width = lightness.shape
    p = pad_edge(lightness.astype(np.float64, copy=False))

    def at(dy: int, dx: int) -> np.ndarray:
        return p[1 + dy : 1 + dy + height, 1 + dx : 1 + dx + width]

    gx = (at(-1, 1) + 2 * at(0, 1) + at(1, 1)) - (at(-1, -1) + 2 * at(0, -1) + at(1, -1))
    gy = (at(1, -1) + 2 * at(1, 0) + at(1, 1)) - (at(-1, -1) + 2 * at(-1, 0) + at(-1, 1))
    return np.sqrt(gx * gx + gy * gy)


def visible_mask(rgba: np.ndarray) -> np.ndarray:
    """Boolean (H,W) mask of pixels with non-zero alpha."""
    return rgba[..., 3] != 0


# Pretty logging


def format_bool_on_off(value: Any) -> str:
    """Pretty boolean: 'on'/'off' for bools; str(value) otherwise."""
    if isinstance(value, bool):
        return "on" if value else "off"
    return str(value)


def format_number_compact(value: Any) -> str:
    """Pretty number: 1,234 style for ints; compact for floats; passthrough otherwise."""
    if isinstance(value, int):
        return f"{value:,}"
    if isinstance(value, float):
        text = f"{value:.3f}".rstrip("0").rstrip(".")
        return text
    return str(value)


def key_value_pairs_to_string(
    pairs: Iterable[Tuple[str, Any]], sep: str = "  ", eq: str = ": "
) -> str:
    """
    Format (name, value) pairs as 'Name: value' blocks separated by sep.
    Uses format_bool_on_off / format_number_compact for readability.
    """
    out: List[str] = []
    for name, value in pairs:
        display = (
            format_bool_on_off(value)
            if isinstance(value, bool)
            else format_number_compact(value)
        )
        out.append(f"{name}{eq}{display}")
    return sep.join(out)


def print_config_line(
    section: str, pairs: Iterable[Tuple[str, Any]], debug: bool
) -> None:
    """
    Emit a single human-readable config line, e.g.:
      [modern] Preset: balanced  Dither: floyd  Strength: 0.3
    Routes to debug_log() when debug=True, else to log().
    """
    line = f"[{section}] {key_value_pairs_to_string(pairs)}"
    (debug_log if debug else log)(line)


def print_banner(title: str) -> None:
    """Section banner."""
    print(f"\n=== {title} ===", flush=True)


def log(message: str) -> None:
    """Plain log line."""
    print(message, flush=True)


def debug_log(message: str) -> None:
    """Debug log line."""
    print(f"[debug] {message}", flush=True)


def warn(message: str) -> None:
    """Warning log line."""
    print(f"[warn] {message}", flush=True)


def error(message: str) -> None:
    """Error log line to stderr."""
    print(f"[error] {message}", file=sys.stderr, flush=True)


__all__ = [
    "format_seconds_compact",
    "pillow_resample_from_name",
    "luma_rec709",
    "pad_edge",
    "box_mean_3x3",
    "sobel_magnitude",
    "visible_mask",
    "format_bool_on_off",
    "format_number_compact",
    "key_value_pairs_to_string",
    "print_config_line",
    "print_banner",
    "log",
    "debug_log",
    "warn",
    "error",
]
