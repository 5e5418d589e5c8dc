import numpy as np
import pytest

from crest_map.constants import DITHER_MODES, MODERN_PRESETS, PIXEL_PRESETS
from crest_map.core_types import (
    Adjustments,
    ModernOptions,
    PipelineSettings,
    PixelOptions,
)
from crest_map.dither import nearest_index
from crest_map.engine import compute_pipeline
from crest_map.errors import DecodeError
from crest_map.palette_data import HALFTONE_PALETTE
from crest_map.split import join_icons

from conftest import gradient_rgba, solid_rgba


def _check_result(result, settings):
    assert result.palette.shape == (256, 3)
    assert result.palette.dtype == np.uint8
    assert len(result.palette_bytes()) == 768
    for buf in result.buffers().values():
        assert buf.dtype == np.uint8
        assert buf.shape[0] == 12
    if settings.output_mode == "clan":
        assert result.clan.shape == (12, 16)
        assert result.ally is None and result.combined is None
    else:
        assert result.combined.shape == (12, 24)
        assert np.array_equal(join_icons(result.ally, result.clan), result.combined)
    assert result.can_download


def test_solid_red_combined(red_24x12):
    settings = PipelineSettings(family=ModernOptions(preset="balanced", dither="none"))
    result = compute_pipeline(red_24x12, settings)
    _check_result(result, settings)
    red = nearest_index((255, 0, 0), result.palette)
    assert (result.combined == red).all()
    assert result.palette[red].tolist() == [255, 0, 0]
    assert result.ally.shape == (12, 8)
    assert result.clan.shape == (12, 16)


def test_transparent_clan_maps_to_black(transparent_16x12):
    settings = PipelineSettings(output_mode="clan")
    result = compute_pipeline(transparent_16x12, settings)
    _check_result(result, settings)
    assert (result.clan == nearest_index((0, 0, 0), result.palette)).all()


@pytest.mark.parametrize("preset", MODERN_PRESETS)
@pytest.mark.parametrize("dither", DITHER_MODES)
def test_modern_matrix_is_valid_and_deterministic(preset, dither):
    settings = PipelineSettings(
        family=ModernOptions(preset=preset, dither=dither, dither_strength=0.8, sharpen=True)
    )
    img = gradient_rgba()
    first = compute_pipeline(img, settings)
    second = compute_pipeline(img, settings)
    _check_result(first, settings)
    assert np.array_equal(first.palette, second.palette)
    assert np.array_equal(first.combined, second.combined)


@pytest.mark.parametrize("preset", PIXEL_PRESETS)
@pytest.mark.parametrize("mode", ["combined", "clan"])
def test_pixel_presets(preset, mode):
    settings = PipelineSettings(output_mode=mode, family=PixelOptions(preset))
    result = compute_pipeline(gradient_rgba(), settings)
    _check_result(result, settings)
    if preset != "pixel-indexed":
        assert np.array_equal(result.palette, HALFTONE_PALETTE)


def test_two_step_noise_and_center_weighting():
    settings = PipelineSettings(
        family=ModernOptions(
            preset="complex",
            dither="ordered8",
            dither_strength=1.0,
            two_step=True,
            center_weighted=True,
            noise_ordered=True,
        )
    )
    _check_result(compute_pipeline(gradient_rgba(), settings), settings)


def test_cleanup_keeps_split_consistent():
    settings = PipelineSettings(
        family=ModernOptions(dither="floyd", dither_strength=1.0), cleanup=True
    )
    result = compute_pipeline(gradient_rgba(), settings)
    _check_result(result, settings)


def test_invert_turns_black_white():
    settings = PipelineSettings(adjustments=Adjustments(invert=True))
    result = compute_pipeline(solid_rgba(12, 24, (0, 0, 0, 255)), settings)
    white = nearest_index((255, 255, 255), result.palette)
    assert result.palette[white].tolist() == [255, 255, 255]
    assert (result.combined == white).all()


def test_crop_selects_region():
    img = solid_rgba(24, 48, (255, 0, 0, 255))
    img[:, 24:] = (0, 0, 255, 255)
    settings = PipelineSettings(output_mode="clan")
    result = compute_pipeline(img, settings, crop=(24, 0, 24, 24))
    blue = nearest_index((0, 0, 255), result.palette)
    assert result.palette[blue].tolist() == [0, 0, 255]
    assert (result.clan == blue).all()


def test_unreadable_source_raises_decode_error():
    with pytest.raises(DecodeError):
        compute_pipeline(b"definitely not an image", PipelineSettings())


def test_settings_from_mapping():
    settings = PipelineSettings.from_mapping(
        {"mode": "clan", "pipeline": "pixel", "preset": "pixel-crisp", "brightness": 99}
    )
    assert settings.output_mode == "clan"
    assert settings.family == PixelOptions("pixel-crisp")
    assert settings.adjustments.brightness == 50
    assert settings.base_width == 16 and settings.base_height == 12

    modern = PipelineSettings.from_mapping({"dither": "floyd", "strength": 1.0})
    assert modern.pipeline == "modern"
    assert modern.family.effective_strength == pytest.approx(0.30)


def test_family_options_reject_foreign_presets():
    with pytest.raises(ValueError):
        ModernOptions(preset="pixel-clean")
    with pytest.raises(ValueError):
        PixelOptions(preset="balanced")
    with pytest.raises(ValueError):
        PipelineSettings(output_mode="ally")
