"""
Pixel-family API.

Provides:
  run_pixel(rgba, options, *, debug=False) -> (palette, indices)

Presets:
  pixel-clean   : halftone palette, light Bayer 8x8 dither
  pixel-crisp   : edge sharpen first, stronger dither with luma correction
  pixel-stable  : strongest dither, then two majority cleanup passes
  pixel-indexed : adaptive palette, no dither
"""

from .run import run_pixel

__all__ = ["run_pixel"]
