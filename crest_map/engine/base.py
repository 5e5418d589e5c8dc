# crest_map/engine/base.py
from __future__ import annotations

"""
Engine contract.

compute(source, settings, crop=None) returns either a PipelineResult
(in-thread engines) or a concurrent.futures.Future resolving to one
(offloaded engines). Callers that accept both use resolve_now().
"""

from concurrent.futures import Future
from typing import Optional, Protocol, Union

from crest_map.core_types import CropRect, PipelineResult, PipelineSettings
from crest_map.image_io import SourceLike

ComputeOutcome = Union[PipelineResult, "Future[PipelineResult]"]


class PipelineEngine(Protocol):
    def compute(
        self,
        source: SourceLike,
        settings: PipelineSettings,
        crop: Optional[CropRect] = None,
    ) -> ComputeOutcome: ...

    def close(self) -> None: ...


def resolve_now(outcome: ComputeOutcome, timeout: Optional[float] = None) -> PipelineResult:
    """Block on a pending outcome; pass a ready result straight through."""
    if isinstance(outcome, Future):
        return outcome.result(timeout=timeout)
    return outcome


__all__ = ["ComputeOutcome", "PipelineEngine", "resolve_now"]
