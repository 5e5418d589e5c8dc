import numpy as np
import pytest

from crest_map.dither import (
    bayer_offsets,
    clamp_dither_strength,
    dither_error_diffusion,
    dither_ordered,
    dither_pixel_ordered,
    hash01,
    nearest_index,
    nearest_indices,
    quantize_to_palette,
)
from crest_map.palette_data import HALFTONE_PALETTE

from conftest import gradient_rgba, solid_rgba


def _black_white() -> np.ndarray:
    pal = np.zeros((256, 3), dtype=np.uint8)
    pal[1] = 255
    return pal


@pytest.mark.parametrize(
    "preset, mode, value, expected",
    [
        ("legacy", "floyd", 1.0, 0.0),
        ("legacy", "ordered8", 0.7, 0.0),
        ("balanced", "ordered4", 1.0, 0.60),
        ("balanced", "ordered4", 0.2, 0.2),
        ("simple", "ordered8", 1.0, 0.45),
        ("complex", "atkinson", 1.0, 0.26),
        ("balanced", "floyd", 5.0, 0.30),
        ("balanced", "none", 1.0, 0.0),
        ("balanced", "floyd", -1.0, 0.0),
        ("balanced", "floyd", float("nan"), 0.0),
    ],
)
def test_clamp_dither_strength(preset, mode, value, expected):
    assert clamp_dither_strength(preset, mode, value) == pytest.approx(expected)


def test_nearest_ties_pick_lowest_index():
    pal = np.zeros((256, 3), dtype=np.uint8)
    pal[3] = (10, 10, 10)
    pal[7] = (10, 10, 10)
    pal[:3] = 200
    pal[4:7] = 200
    pal[8:] = 200
    assert nearest_index((12, 11, 9), pal) == 3


def test_nearest_indices_exact_match():
    rgb = HALFTONE_PALETTE[[5, 100, 230]].astype(np.float64)
    assert nearest_indices(rgb, HALFTONE_PALETTE).tolist() == [5, 100, 230]


def test_transparent_maps_to_nearest_black(grey_palette):
    pal = grey_palette.copy()
    pal[0] = (30, 30, 30)
    pal[5:] = 255
    pal[4] = (0, 0, 0)
    img = solid_rgba(4, 4, (255, 255, 255, 0))
    for mode in ("none", "ordered4", "ordered8", "floyd", "atkinson"):
        out = quantize_to_palette(img, pal, mode, 1.0)
        assert (out == 4).all(), mode


@pytest.mark.parametrize("mode", ["none", "ordered4", "ordered8", "floyd", "atkinson"])
def test_quantize_is_deterministic(mode):
    img = gradient_rgba(12, 24)
    a = quantize_to_palette(img, HALFTONE_PALETTE, mode, 0.5)
    b = quantize_to_palette(img, HALFTONE_PALETTE, mode, 0.5)
    assert a.shape == (12, 24)
    assert a.dtype == np.uint8
    assert np.array_equal(a, b)


@pytest.mark.parametrize("mode", ["ordered4", "ordered8", "floyd", "atkinson"])
def test_zero_strength_equals_plain_mapping(mode):
    img = gradient_rgba(12, 24)
    plain = quantize_to_palette(img, HALFTONE_PALETTE, "none")
    assert np.array_equal(quantize_to_palette(img, HALFTONE_PALETTE, mode, 0.0), plain)


def test_noise_variant_differs_from_bayer_but_is_stable():
    img = solid_rgba(12, 24, (128, 128, 128, 255))
    pal = _black_white()
    bayer = dither_ordered(img, pal, "ordered4", 1.0)
    noise = dither_ordered(img, pal, "ordered4", 1.0, noise=True)
    assert np.array_equal(noise, dither_ordered(img, pal, "ordered4", 1.0, noise=True))
    assert not np.array_equal(bayer, noise)


def test_floyd_mixes_black_and_white_on_mid_grey():
    img = solid_rgba(12, 24, (128, 128, 128, 255))
    out = dither_error_diffusion(img, _black_white(), "floyd", 1.0)
    whites = int((out == 1).sum())
    assert 0.35 * out.size < whites < 0.65 * out.size


def test_bayer_offsets_range():
    off = bayer_offsets(12, 24, 8)
    assert off.min() == 0.0 and off.max() == 1.0
    assert np.array_equal(off[:, :8], off[:, 8:16])


def test_hash01_is_unit_interval():
    h = hash01(12, 24)
    assert h.shape == (12, 24)
    assert h.min() >= 0.0 and h.max() <= 1.0
    assert np.array_equal(h, hash01(12, 24))


def test_pixel_ordered_edge_bias_keeps_valid_indices():
    img = gradient_rgba(12, 24)
    plain = dither_pixel_ordered(img, HALFTONE_PALETTE, 0.38)
    biased = dither_pixel_ordered(img, HALFTONE_PALETTE, 0.38, edge_bias=True)
    assert plain.shape == biased.shape == (12, 24)
    assert int(biased.max()) < 254
    assert np.array_equal(biased, dither_pixel_ordered(img, HALFTONE_PALETTE, 0.38, edge_bias=True))
