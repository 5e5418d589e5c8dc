from __future__ import annotations

import numpy as np
import pytest


def solid_rgba(height: int, width: int, rgba=(255, 0, 0, 255)) -> np.ndarray:
    out = np.empty((height, width, 4), dtype=np.uint8)
    out[...] = np.asarray(rgba, dtype=np.uint8)
    return out


def gradient_rgba(height: int = 36, width: int = 72) -> np.ndarray:
    """Smooth colour ramp with a transparent corner; exercises every stage."""
    ys, xs = np.mgrid[0:height, 0:width]
    out = np.empty((height, width, 4), dtype=np.uint8)
    out[..., 0] = (xs * 255 // max(1, width - 1)).astype(np.uint8)
    out[..., 1] = (ys * 255 // max(1, height - 1)).astype(np.uint8)
    out[..., 2] = ((xs + ys) * 255 // max(1, width + height - 2)).astype(np.uint8)
    out[..., 3] = 255
    out[: height // 4, : width // 4, 3] = 0
    return out


@pytest.fixture
def red_24x12() -> np.ndarray:
    return solid_rgba(12, 24, (255, 0, 0, 255))


@pytest.fixture
def transparent_16x12() -> np.ndarray:
    return solid_rgba(12, 16, (0, 0, 0, 0))


@pytest.fixture
def gradient() -> np.ndarray:
    return gradient_rgba()


@pytest.fixture
def grey_palette() -> np.ndarray:
    """Black, white and a few greys; unused slots zero."""
    pal = np.zeros((256, 3), dtype=np.uint8)
    for i, v in enumerate((0, 255, 64, 128, 192)):
        pal[i] = v
    return pal
