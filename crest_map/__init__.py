"""
crest_map package.

Purpose:
  Turn any source image into 256-colour indexed crest icons: a 24x12
  combined crest split into an 8x12 ally and a 16x12 clan icon, or a single
  16x12 clan icon. See crest_map.cli for the command line.

Public API:
  compute_pipeline : run every stage on one source, in-thread.
  LocalEngine      : in-thread engine.
  WorkerEngine     : background-process engine returning Futures.
  Scheduler        : debounced, stale-safe driver above an engine.
  PipelineSettings : immutable compute settings (ModernOptions | PixelOptions).
  core_types       : shared type aliases and value objects.
  dither           : nearest mapping, ordered and error-diffusion dithering.
  quantize         : palette builders (median cut, halftone).
  image_io         : source decoding, BMP export, previews.
  utils            : shared helpers (image ops, logging).

Quick start:
  from crest_map import PipelineSettings, compute_pipeline
  result = compute_pipeline("logo.png", PipelineSettings())
"""

__version__ = "0.2.0"

# Re-export namespaces for convenience.
from . import constants
from . import core_types
from . import errors
from . import utils
from . import dither
from . import quantize
from . import image_io

from .core_types import (  # noqa: E402
    Adjustments,
    ModernOptions,
    PipelineResult,
    PipelineSettings,
    PixelOptions,
)
from .errors import CrestMapError, DecodeError, WorkerTransportError  # noqa: E402
from .engine import (  # noqa: E402
    LocalEngine,
    Scheduler,
    WorkerEngine,
    compute_pipeline,
    create_engine,
)

__all__ = [
    "__version__",
    "constants",
    "core_types",
    "errors",
    "utils",
    "dither",
    "quantize",
    "image_io",
    "Adjustments",
    "ModernOptions",
    "PixelOptions",
    "PipelineSettings",
    "PipelineResult",
    "CrestMapError",
    "DecodeError",
    "WorkerTransportError",
    "compute_pipeline",
    "LocalEngine",
    "WorkerEngine",
    "Scheduler",
    "create_engine",
]
