# crest_map/engine/factory.py
from __future__ import annotations

"""
Engine selection: prefer the worker engine to keep the caller responsive,
fall back to the in-thread engine where processes or shared memory are
unavailable.
"""

from crest_map.utils import debug_log, warn

from .base import PipelineEngine
from .local import LocalEngine
from .worker import WorkerEngine


def create_engine(prefer_worker: bool = True, *, debug: bool = False) -> PipelineEngine:
    if prefer_worker:
        try:
            engine = WorkerEngine(debug=debug)
        except (OSError, ImportError, NotImplementedError) as e:
            warn(f"worker engine unavailable ({e}); using local engine")
        else:
            if debug:
                debug_log("engine: worker")
            return engine
    if debug:
        debug_log("engine: local")
    return LocalEngine(debug=debug)


__all__ = ["create_engine"]
