"""
Modern-family API.

Provides:
  run_modern(rgba, options, *, debug=False) -> (palette, indices)
    Adaptive 256-colour palette with optional ordered or error-diffusion
    dithering.

    Args:
      rgba    : uint8 [H,W,4], alpha already binarised
      options : ModernOptions
      debug   : bool, print stage details

    Returns:
      palette : uint8 [256,3]
      indices : uint8 [H,W]

    Notes:
      - Soft level stretch (preset strength) and optional edge-aware sharpen
        run before the palette is built.
      - Dither strength is capped per preset and mode.
"""

from .run import run_modern

__all__ = ["run_modern"]
