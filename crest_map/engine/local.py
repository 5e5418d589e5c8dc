# crest_map/engine/local.py
from __future__ import annotations

"""In-thread engine: runs the pipeline on the caller's thread and blocks until done."""

from typing import Optional

from crest_map.core_types import CropRect, PipelineResult, PipelineSettings
from crest_map.image_io import SourceBitmap, SourceLike

from .compute import compute_pipeline


class LocalEngine:
    """
    Synchronous engine. A SourceBitmap handed to compute() is owned by the
    engine from then on and closed on every exit path.
    """

    def __init__(self, *, debug: bool = False):
        self.debug = debug

    def compute(
        self,
        source: SourceLike | SourceBitmap,
        settings: PipelineSettings,
        crop: Optional[CropRect] = None,
    ) -> PipelineResult:
        try:
            return compute_pipeline(source, settings, crop, debug=self.debug)
        finally:
            if isinstance(source, SourceBitmap):
                source.close()

    def close(self) -> None:
        """Nothing to release; present for parity with WorkerEngine."""


__all__ = ["LocalEngine"]
