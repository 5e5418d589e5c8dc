# crest_map/split.py
from __future__ import annotations

"""Slice the combined 24x12 buffer into ally (8x12) and clan (16x12) icons."""

from typing import Tuple

import numpy as np

from .constants import ALLY_WIDTH, CLAN_WIDTH, COMBINED_WIDTH
from .core_types import U8Indices


def split_combined(combined: U8Indices) -> Tuple[U8Indices, U8Indices]:
    """(ally, clan) as fresh arrays: columns 0..7 and 8..23."""
    if combined.ndim != 2 or combined.shape[1] != COMBINED_WIDTH:
        raise ValueError(f"combined buffer must be (H, {COMBINED_WIDTH}), got {combined.shape}")
    ally = np.ascontiguousarray(combined[:, :ALLY_WIDTH]).copy()
    clan = np.ascontiguousarray(combined[:, ALLY_WIDTH:]).copy()
    return ally, clan


def join_icons(ally: U8Indices, clan: U8Indices) -> U8Indices:
    """Inverse of split_combined."""
    if ally.shape[1] != ALLY_WIDTH or clan.shape[1] != CLAN_WIDTH:
        raise ValueError("ally must be 8 and clan 16 columns wide")
    return np.concatenate([ally, clan], axis=1)


__all__ = ["split_combined", "join_icons"]
