import numpy as np
import pytest

from crest_map.cleanup import cleanup_majority_safe
from crest_map.constants import (
    ENGINE_CLEANUP_MAX_JUMP,
    ENGINE_CLEANUP_MIN_MAJORITY,
    ENGINE_CLEANUP_PASSES,
)
from crest_map.split import join_icons, split_combined


def _palette(*colours) -> np.ndarray:
    pal = np.zeros((256, 3), dtype=np.uint8)
    for i, c in enumerate(colours):
        pal[i] = c
    return pal


def test_engine_cleanup_accepts_any_near_plurality():
    pal = _palette((0, 0, 0), (110, 110, 110), (104, 104, 104), (200, 0, 0))
    idx = np.array([[2, 2, 2], [2, 1, 0], [0, 0, 3]], dtype=np.uint8)
    out = cleanup_majority_safe(
        idx,
        pal,
        passes=ENGINE_CLEANUP_PASSES,
        min_majority=ENGINE_CLEANUP_MIN_MAJORITY,
        max_color_jump=ENGINE_CLEANUP_MAX_JUMP,
    )
    # plurality of four neighbours is enough; the jump of ~10 passes
    assert out[1, 1] == 2


def test_min_majority_is_a_plain_count():
    pal = _palette((0, 0, 0), (110, 110, 110), (104, 104, 104), (200, 0, 0))
    idx = np.array([[2, 2, 2], [2, 1, 0], [0, 0, 3]], dtype=np.uint8)
    assert cleanup_majority_safe(idx, pal, min_majority=4, max_color_jump=110)[1, 1] == 2
    assert cleanup_majority_safe(idx, pal, min_majority=5, max_color_jump=110)[1, 1] == 1


def test_far_accent_survives():
    pal = _palette((0, 0, 0), (255, 255, 255))
    idx = np.zeros((5, 5), dtype=np.uint8)
    idx[2, 2] = 1
    out = cleanup_majority_safe(idx, pal, passes=1, min_majority=6, max_color_jump=90)
    assert out[2, 2] == 1


def test_near_speck_is_absorbed():
    pal = _palette((100, 100, 100), (110, 110, 110))
    idx = np.zeros((5, 5), dtype=np.uint8)
    idx[2, 2] = 1
    out = cleanup_majority_safe(idx, pal, passes=1, min_majority=6, max_color_jump=90)
    assert out[2, 2] == 0
    assert idx[2, 2] == 1


def test_pixel_with_matching_neighbour_is_kept():
    pal = _palette((100, 100, 100), (110, 110, 110))
    idx = np.zeros((5, 5), dtype=np.uint8)
    idx[2, 2] = 1
    idx[2, 3] = 1
    out = cleanup_majority_safe(idx, pal, passes=2, min_majority=5, max_color_jump=90)
    assert np.array_equal(out, idx)


def test_weak_plurality_is_kept():
    pal = _palette((100, 100, 100), (110, 110, 110), (104, 104, 104))
    idx = np.zeros((3, 3), dtype=np.uint8)
    idx[0, :] = 2
    idx[1, 0] = 2
    idx[1, 1] = 1
    # neighbours: four of index 2, four of index 0
    out = cleanup_majority_safe(idx, pal, passes=1, min_majority=5, max_color_jump=90)
    assert out[1, 1] == 1


def test_border_is_never_touched():
    pal = _palette((100, 100, 100), (110, 110, 110))
    idx = np.zeros((4, 4), dtype=np.uint8)
    idx[0, 0] = 1
    idx[3, 2] = 1
    out = cleanup_majority_safe(idx, pal, passes=3, min_majority=1, max_color_jump=255)
    assert out[0, 0] == 1 and out[3, 2] == 1


def test_cleanup_rejects_non_2d():
    with pytest.raises(ValueError):
        cleanup_majority_safe(np.zeros((2, 2, 2), dtype=np.uint8), _palette())


def test_split_and_join():
    rng = np.random.default_rng(7)
    combined = rng.integers(0, 256, size=(12, 24), dtype=np.uint8)
    ally, clan = split_combined(combined)
    assert ally.shape == (12, 8)
    assert clan.shape == (12, 16)
    assert np.array_equal(join_icons(ally, clan), combined)
    ally[0, 0] = combined[0, 0] ^ 1
    assert combined[0, 0] != ally[0, 0]


def test_split_requires_24_columns():
    with pytest.raises(ValueError):
        split_combined(np.zeros((12, 16), dtype=np.uint8))
