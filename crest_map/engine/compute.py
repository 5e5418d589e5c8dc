# crest_map/engine/compute.py
from __future__ import annotations

"""
The stage composition every engine runs.

resample -> tone -> family quantiser (normalise/sharpen/palette/dither)
-> cleanup (combined buffer only) -> split.
"""

import time
from typing import Optional, Tuple

import numpy as np

from crest_map.cleanup import cleanup_majority_safe
from crest_map.constants import (
    DEFAULT_MODERN_PRESET,
    ENGINE_CLEANUP_MAX_JUMP,
    ENGINE_CLEANUP_MIN_MAJORITY,
    ENGINE_CLEANUP_PASSES,
    PALETTE_SIZE,
)
from crest_map.core_types import (
    CropRect,
    PipelineResult,
    PipelineSettings,
    PixelOptions,
    U8Image,
    U8Indices,
    U8Palette,
    has_required_buffers,
)
from crest_map.image_io import SourceLike, decode_source
from crest_map.modern import run_modern
from crest_map.pixel import run_pixel
from crest_map.resample import crop_source, render_to_size
from crest_map.split import split_combined
from crest_map.tone import apply_tone
from crest_map.utils import debug_log, format_seconds_compact, warn


def _resample_params(settings: PipelineSettings) -> Tuple[str, bool]:
    family = settings.family
    if isinstance(family, PixelOptions):
        # pixel family: plain single-pass point sampling
        return DEFAULT_MODERN_PRESET, False
    return family.preset, family.two_step


def render_working_buffer(
    rgba: U8Image, settings: PipelineSettings, crop: Optional[CropRect] = None
) -> U8Image:
    """Crop, cover-fit and tone-adjust the source into the (12, W, 4) working buffer."""
    preset, two_step = _resample_params(settings)
    work = render_to_size(
        crop_source(rgba, crop),
        preset,
        two_step,
        settings.base_width,
        settings.base_height,
    )
    return apply_tone(work, settings.adjustments)


def _black_fallback(height: int, width: int) -> Tuple[U8Palette, U8Indices]:
    return (
        np.zeros((PALETTE_SIZE, 3), dtype=np.uint8),
        np.zeros((height, width), dtype=np.uint8),
    )


def quantize_working_buffer(
    work: U8Image, settings: PipelineSettings, *, debug: bool = False
) -> Tuple[U8Palette, U8Indices]:
    """Run the family quantiser; degenerate stage failures fall back to black."""
    family = settings.family
    height, width = work.shape[:2]
    try:
        if isinstance(family, PixelOptions):
            palette, indices = run_pixel(work, family, debug=debug)
        else:
            palette, indices = run_modern(work, family, debug=debug)
        if palette.shape != (PALETTE_SIZE, 3) or indices.shape != (height, width):
            raise ValueError(
                f"invalid quantiser output palette={palette.shape} indices={indices.shape}"
            )
    except (ValueError, ArithmeticError, np.linalg.LinAlgError) as e:
        warn(f"quantiser failed ({e}); falling back to black")
        palette, indices = _black_fallback(height, width)
    return palette.astype(np.uint8, copy=False), indices.astype(np.uint8, copy=False)


def compute_pipeline(
    source: SourceLike,
    settings: PipelineSettings,
    crop: Optional[CropRect] = None,
    *,
    debug: bool = False,
) -> PipelineResult:
    """
    Run every stage on one source and return freshly allocated buffers.

    Raises DecodeError when the source cannot be decoded. Nothing else in
    the stage chain is allowed to fail the call.
    """
    t_start = time.perf_counter()
    rgba = decode_source(source)
    work = render_working_buffer(rgba, settings, crop)
    palette, indices = quantize_working_buffer(work, settings, debug=debug)

    ally: Optional[U8Indices] = None
    clan: Optional[U8Indices] = None
    combined: Optional[U8Indices] = None
    if settings.output_mode == "clan":
        clan = indices
    else:
        if settings.cleanup:
            indices = cleanup_majority_safe(
                indices,
                palette,
                passes=ENGINE_CLEANUP_PASSES,
                min_majority=ENGINE_CLEANUP_MIN_MAJORITY,
                max_color_jump=ENGINE_CLEANUP_MAX_JUMP,
            )
        combined = indices
        ally, clan = split_combined(combined)

    result = PipelineResult(
        palette=palette,
        ally=ally,
        clan=clan,
        combined=combined,
        base_width=settings.base_width,
        base_height=settings.base_height,
        can_download=has_required_buffers(
            settings.output_mode, palette, ally, clan, combined
        ),
    )
    if debug:
        debug_log(
            f"compute {settings.pipeline}/{settings.output_mode} "
            f"{rgba.shape[1]}x{rgba.shape[0]} -> {settings.base_width}x{settings.base_height} "
            f"in {format_seconds_compact(time.perf_counter() - t_start)}"
        )
    return result


__all__ = [
    "render_working_buffer",
    "quantize_working_buffer",
    "compute_pipeline",
]
