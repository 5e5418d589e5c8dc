"""
Engine API.

Provides:
  compute_pipeline(source, settings, crop=None, *, debug=False) -> PipelineResult
    The pure stage composition.

  LocalEngine   : runs compute_pipeline on the caller's thread.
  WorkerEngine  : runs it in a background process; compute() returns a Future.
  create_engine : worker if possible, local otherwise.
  Scheduler     : debounce + generation guard above any engine.
"""

from .base import ComputeOutcome, PipelineEngine, resolve_now
from .compute import compute_pipeline
from .factory import create_engine
from .local import LocalEngine
from .scheduler import Scheduler
from .worker import PendingRequest, WorkerEngine

__all__ = [
    "ComputeOutcome",
    "PipelineEngine",
    "resolve_now",
    "compute_pipeline",
    "create_engine",
    "LocalEngine",
    "Scheduler",
    "PendingRequest",
    "WorkerEngine",
]
