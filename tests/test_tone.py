import numpy as np

from crest_map.core_types import Adjustments
from crest_map.tone import (
    apply_brightness_contrast,
    apply_tone,
    binarise_alpha,
    contrast_factor,
    invert_rgb,
)

from conftest import gradient_rgba, solid_rgba


def test_binarise_alpha_cutoff_at_128():
    img = solid_rgba(1, 4, (10, 20, 30, 0))
    img[0, :, 3] = [0, 127, 128, 255]
    out = binarise_alpha(img)
    assert out[0, :, 3].tolist() == [0, 0, 255, 255]
    assert np.array_equal(out[..., :3], img[..., :3])


def test_invert_keeps_alpha():
    img = solid_rgba(2, 2, (0, 100, 255, 0))
    out = invert_rgb(img)
    assert out[0, 0].tolist() == [255, 155, 0, 0]


def test_contrast_factor_is_one_at_zero():
    assert contrast_factor(0) == 1.0
    assert contrast_factor(50) > 1.0
    assert contrast_factor(-50) < 1.0


def test_brightness_only_shifts_and_clamps():
    img = solid_rgba(1, 2, (100, 250, 0, 255))
    out = apply_brightness_contrast(img, 20, 0)
    assert out[0, 0, :3].tolist() == [120, 255, 20]


def test_contrast_pushes_away_from_mid_grey():
    img = solid_rgba(1, 1, (200, 128, 50, 255))
    out = apply_brightness_contrast(img, 0, 40)
    r, g, b = out[0, 0, :3].tolist()
    assert r > 200 and g == 128 and b < 50


def test_zero_adjustments_are_idempotent():
    img = gradient_rgba()
    img[0, 0, 3] = 90
    once = apply_tone(img, Adjustments())
    twice = apply_tone(once, Adjustments())
    assert np.array_equal(once, twice)
    assert once[0, 0, 3] == 0


def test_input_is_not_mutated():
    img = solid_rgba(2, 2, (1, 2, 3, 100))
    before = img.copy()
    apply_tone(img, Adjustments(invert=True, brightness=10, contrast=-10))
    assert np.array_equal(img, before)


def test_adjustments_clamped_factory():
    adj = Adjustments.clamped(invert=True, brightness=80, contrast=float("nan"))
    assert adj == Adjustments(True, 50, 0)
