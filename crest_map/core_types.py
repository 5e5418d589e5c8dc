# crest_map/core_types.py
from __future__ import annotations

"""
Core type aliases, settings value objects and the pipeline result.
"""

from dataclasses import dataclass, field
from typing import Any, Literal, Mapping, Optional, Tuple, Union

import numpy as np
from numpy.typing import NDArray

from .constants import (
    ADJUST_MAX,
    ADJUST_MIN,
    CLAN_WIDTH,
    COMBINED_WIDTH,
    DEFAULT_MODERN_PRESET,
    DEFAULT_PIXEL_PRESET,
    DITHER_MODES,
    ICON_HEIGHT,
    MODERN_PRESETS,
    OUTPUT_MODES,
    PALETTE_SIZE,
    PIXEL_PRESETS,
)

# Basic aliases

RGBTuple = Tuple[int, int, int]
CropRect = Tuple[int, int, int, int]  # (x, y, w, h) in source pixels

U8Image = NDArray[np.uint8]  # (H, W, 4) RGBA
U8Palette = NDArray[np.uint8]  # (256, 3)
U8Indices = NDArray[np.uint8]  # (H, W) palette indices

OutputMode = Literal["combined", "clan"]
PipelineName = Literal["modern", "pixel"]
Preset = Literal["legacy", "simple", "balanced", "complex"]
PixelPreset = Literal["pixel-clean", "pixel-crisp", "pixel-stable", "pixel-indexed"]
DitherMode = Literal["none", "ordered4", "ordered8", "floyd", "atkinson"]


# Small helpers


def clamp_value(value: float, lo: float, hi: float) -> float:
    """Clamp value to [lo, hi]."""
    return lo if value < lo else hi if value > hi else value


def _check_choice(name: str, value: str, choices: Tuple[str, ...]) -> None:
    if value not in choices:
        raise ValueError(f"{name} must be one of {', '.join(choices)}; got {value!r}")


# Settings value objects


@dataclass(frozen=True)
class Adjustments:
    """Universal tone adjustments, applied by every pipeline family."""

    invert: bool = False
    brightness: int = 0  # [-50, 50]
    contrast: int = 0  # [-50, 50]

    def __post_init__(self) -> None:
        for name in ("brightness", "contrast"):
            v = getattr(self, name)
            if not ADJUST_MIN <= v <= ADJUST_MAX:
                raise ValueError(f"{name} must be in [{ADJUST_MIN}, {ADJUST_MAX}]")

    @classmethod
    def clamped(
        cls, invert: bool = False, brightness: float = 0, contrast: float = 0
    ) -> "Adjustments":
        """Build adjustments, clamping out-of-range or non-finite sliders."""

        def fix(v: float) -> int:
            if not np.isfinite(v):
                return 0
            return int(round(clamp_value(float(v), ADJUST_MIN, ADJUST_MAX)))

        return cls(bool(invert), fix(brightness), fix(contrast))

    @property
    def is_identity(self) -> bool:
        return not self.invert and self.brightness == 0 and self.contrast == 0


@dataclass(frozen=True)
class ModernOptions:
    """Options of the modern (adaptive palette) family."""

    preset: Preset = DEFAULT_MODERN_PRESET  # type: ignore[assignment]
    dither: DitherMode = "none"
    dither_strength: float = 0.0  # raw [0, 1], capped per preset and mode
    two_step: bool = False
    center_weighted: bool = False
    noise_ordered: bool = False
    sharpen: bool = False

    def __post_init__(self) -> None:
        _check_choice("preset", self.preset, MODERN_PRESETS)
        _check_choice("dither", self.dither, DITHER_MODES)

    @property
    def effective_strength(self) -> float:
        from .dither import clamp_dither_strength

        return clamp_dither_strength(self.preset, self.dither, self.dither_strength)


@dataclass(frozen=True)
class PixelOptions:
    """Options of the pixel (fixed palette) family."""

    preset: PixelPreset = DEFAULT_PIXEL_PRESET  # type: ignore[assignment]

    def __post_init__(self) -> None:
        _check_choice("preset", self.preset, PIXEL_PRESETS)


FamilyOptions = Union[ModernOptions, PixelOptions]


@dataclass(frozen=True)
class PipelineSettings:
    """
    Immutable description of one compute request.

    The family variant carries the options that only make sense for that
    family, so a modern preset can never be paired with pixel options.
    """

    output_mode: OutputMode = "combined"
    family: FamilyOptions = field(default_factory=ModernOptions)
    cleanup: bool = False
    adjustments: Adjustments = field(default_factory=Adjustments)

    def __post_init__(self) -> None:
        _check_choice("output_mode", self.output_mode, OUTPUT_MODES)
        if not isinstance(self.family, (ModernOptions, PixelOptions)):
            raise TypeError("family must be ModernOptions or PixelOptions")

    @property
    def pipeline(self) -> PipelineName:
        return "pixel" if isinstance(self.family, PixelOptions) else "modern"

    @property
    def base_width(self) -> int:
        return CLAN_WIDTH if self.output_mode == "clan" else COMBINED_WIDTH

    @property
    def base_height(self) -> int:
        return ICON_HEIGHT

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "PipelineSettings":
        """
        Build settings from flat option names.

        Keys: mode, pipeline, preset, dither, strength, two_step,
        center_weighted, noise, sharpen, cleanup, invert, brightness, contrast.
        Missing keys take their defaults; ``preset`` is read for whichever
        family ``pipeline`` selects.
        """
        pipeline = values.get("pipeline", "modern")
        _check_choice("pipeline", pipeline, ("modern", "pixel"))
        preset = values.get("preset")
        family: FamilyOptions
        if pipeline == "pixel":
            family = PixelOptions(preset=preset or DEFAULT_PIXEL_PRESET)
        else:
            strength = float(values.get("strength", 0.0) or 0.0)
            if not np.isfinite(strength):
                strength = 0.0
            family = ModernOptions(
                preset=preset or DEFAULT_MODERN_PRESET,
                dither=values.get("dither", "none"),
                dither_strength=strength,
                two_step=bool(values.get("two_step", False)),
                center_weighted=bool(values.get("center_weighted", False)),
                noise_ordered=bool(values.get("noise", False)),
                sharpen=bool(values.get("sharpen", False)),
            )
        return cls(
            output_mode=values.get("mode", "combined"),
            family=family,
            cleanup=bool(values.get("cleanup", False)),
            adjustments=Adjustments.clamped(
                invert=bool(values.get("invert", False)),
                brightness=values.get("brightness", 0) or 0,
                contrast=values.get("contrast", 0) or 0,
            ),
        )


# Result


@dataclass
class PipelineResult:
    """
    Indexed output of one compute call.

    ``palette`` is (256, 3) uint8; each icon is an (H, W) uint8 index buffer
    or None when the output mode does not produce it.
    """

    palette: U8Palette
    ally: Optional[U8Indices]
    clan: Optional[U8Indices]
    combined: Optional[U8Indices]
    base_width: int
    base_height: int
    can_download: bool

    def palette_bytes(self) -> bytes:
        """Flat 768-byte RGB palette."""
        return np.ascontiguousarray(self.palette, dtype=np.uint8).tobytes()

    def buffers(self) -> Mapping[str, U8Indices]:
        """Present index buffers keyed by icon name."""
        named = (("ally", self.ally), ("clan", self.clan), ("combined", self.combined))
        return {name: buf for name, buf in named if buf is not None}


def has_required_buffers(
    output_mode: OutputMode,
    palette: Optional[U8Palette],
    ally: Optional[U8Indices],
    clan: Optional[U8Indices],
    combined: Optional[U8Indices],
) -> bool:
    """True when every buffer the output mode needs is present."""
    if palette is None or palette.shape != (PALETTE_SIZE, 3):
        return False
    if output_mode == "clan":
        return clan is not None
    return ally is not None and clan is not None and combined is not None


__all__ = [
    # aliases / types
    "RGBTuple",
    "CropRect",
    "U8Image",
    "U8Palette",
    "U8Indices",
    "OutputMode",
    "PipelineName",
    "Preset",
    "PixelPreset",
    "DitherMode",
    # value objects
    "Adjustments",
    "ModernOptions",
    "PixelOptions",
    "FamilyOptions",
    "PipelineSettings",
    "PipelineResult",
    # helpers
    "clamp_value",
    "has_required_buffers",
]
