# crest_map/engine/worker.py
from __future__ import annotations

"""
Worker-offloaded engine.

An explicit request/response channel to a single background process:

  request  : {"id", "source": {"shm", "shape"}, "settings", "crop"}
  response : {"id", "ok": True, "result"} | {"id", "ok": False, "error"}

The source buffer moves through shared memory. The sender's SourceBitmap
is closed at hand-off and its shared-memory handle released; the worker
copies the pixels out, then closes and unlinks the block. If the worker
dies first, the parent unlinks it while rejecting the request.

Outstanding ids live in a pending map. A broken pool rejects every pending
request made through it with WorkerTransportError; the next compute() starts
a fresh pool, so the engine stays usable.
"""

import itertools
import threading
from concurrent.futures import Future, ProcessPoolExecutor
from dataclasses import dataclass
from functools import partial
from multiprocessing import shared_memory
from multiprocessing.context import BaseContext
from typing import Any, Dict, List, Optional, Tuple

import numpy as np

from crest_map.core_types import CropRect, PipelineResult, PipelineSettings
from crest_map.errors import CrestMapError, DecodeError, WorkerTransportError
from crest_map.image_io import SourceBitmap, SourceLike
from crest_map.utils import debug_log, warn

from .compute import compute_pipeline


# Shared-memory hand-off


def _export_pixels(bitmap: SourceBitmap) -> Tuple[str, Tuple[int, ...]]:
    """Move a bitmap's pixels into a new shared-memory block; closes the bitmap."""
    pixels = bitmap.detach()
    block = shared_memory.SharedMemory(create=True, size=max(1, pixels.nbytes))
    try:
        view = np.ndarray(pixels.shape, dtype=np.uint8, buffer=block.buf)
        view[...] = pixels
        del view
    except BaseException:
        block.close()
        block.unlink()
        raise
    # the sender keeps no mapping; unlinking is up to the receiver
    block.close()
    return block.name, tuple(pixels.shape)


def _import_pixels(name: str, shape: Tuple[int, ...]) -> np.ndarray:
    """Copy pixels out of a shared-memory block, then close and unlink it."""
    block = shared_memory.SharedMemory(name=name)
    try:
        view = np.ndarray(shape, dtype=np.uint8, buffer=block.buf)
        pixels = np.array(view, copy=True)
        del view
        return pixels
    finally:
        block.close()
        block.unlink()


def _release_block(name: Optional[str]) -> None:
    """Unlink a block the receiver never consumed. Missing blocks are fine."""
    if name is None:
        return
    try:
        block = shared_memory.SharedMemory(name=name)
    except FileNotFoundError:
        return
    block.close()
    block.unlink()


# Receiver side (runs in the worker process)


def _serve_request(request: Dict[str, Any]) -> Dict[str, Any]:
    """Run one request; compute failures become an ok=False response."""
    request_id = request["id"]
    source = request["source"]
    try:
        pixels = _import_pixels(source["shm"], tuple(source["shape"]))
        result = compute_pipeline(pixels, request["settings"], request.get("crop"))
    except Exception as e:  # reported to the caller as a reason string
        return {"id": request_id, "ok": False, "error": str(e) or type(e).__name__}
    return {"id": request_id, "ok": True, "result": result}


# Sender side


@dataclass
class PendingRequest:
    """Correlation record for one outstanding request."""

    id: int
    future: "Future[PipelineResult]"
    pool: ProcessPoolExecutor
    shm_name: Optional[str]


class WorkerEngine:
    """
    Engine that computes in a background process.

    compute() returns a Future. Results are independent copies owned by the
    caller; the worker keeps nothing between requests.
    """

    def __init__(
        self,
        *,
        mp_context: Optional[BaseContext] = None,
        debug: bool = False,
    ):
        self.debug = debug
        self._mp_context = mp_context
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self._pending: Dict[int, PendingRequest] = {}
        self._pool: Optional[ProcessPoolExecutor] = None
        self._closed = False
        _probe_shared_memory()

    @property
    def pending_count(self) -> int:
        with self._lock:
            return len(self._pending)

    def _ensure_pool(self) -> ProcessPoolExecutor:
        if self._pool is None:
            self._pool = ProcessPoolExecutor(max_workers=1, mp_context=self._mp_context)
            if self.debug:
                debug_log("worker pool started")
        return self._pool

    def compute(
        self,
        source: SourceLike | SourceBitmap,
        settings: PipelineSettings,
        crop: Optional[CropRect] = None,
    ) -> "Future[PipelineResult]":
        future: "Future[PipelineResult]" = Future()
        # in-flight work cannot be aborted, only ignored
        future.set_running_or_notify_cancel()
        try:
            bitmap = (
                source
                if isinstance(source, SourceBitmap)
                else SourceBitmap.from_source(source)
            )
        except DecodeError as e:
            future.set_exception(e)
            return future

        with self._lock:
            if self._closed:
                bitmap.close()
                future.set_exception(WorkerTransportError("worker engine is closed"))
                return future
            request_id = next(self._ids)
            shm_name: Optional[str] = None
            try:
                shm_name, shape = _export_pixels(bitmap)
                pool = self._ensure_pool()
                request = {
                    "id": request_id,
                    "source": {"shm": shm_name, "shape": shape},
                    "settings": settings,
                    "crop": crop,
                }
                self._pending[request_id] = PendingRequest(
                    request_id, future, pool, shm_name
                )
                submitted = pool.submit(_serve_request, request)
            except (OSError, RuntimeError) as e:
                self._pending.pop(request_id, None)
                _release_block(shm_name)
                self._drop_pool_locked()
                future.set_exception(WorkerTransportError(f"worker submit failed: {e}"))
                return future
            finally:
                bitmap.close()

        submitted.add_done_callback(partial(self._on_transport_done, request_id, pool))
        return future

    def _on_transport_done(
        self, request_id: int, pool: ProcessPoolExecutor, submitted: Future
    ) -> None:
        try:
            response = submitted.result()
        except Exception as e:
            self._fail_pool(pool, WorkerTransportError(str(e) or "worker pipeline error"))
            return
        self._on_response(response)

    def _on_response(self, response: Dict[str, Any]) -> None:
        with self._lock:
            entry = self._pending.pop(response.get("id"), None)
        if entry is None:
            # already rejected, or an id we never issued
            return
        if response.get("ok"):
            entry.future.set_result(response["result"])
        else:
            entry.future.set_exception(
                CrestMapError(response.get("error") or "worker pipeline failed")
            )

    def _fail_pool(self, pool: ProcessPoolExecutor, exc: WorkerTransportError) -> None:
        """Reject every request that went through ``pool`` and retire it."""
        with self._lock:
            failed: List[PendingRequest] = [
                p for p in self._pending.values() if p.pool is pool
            ]
            for entry in failed:
                del self._pending[entry.id]
            if self._pool is pool:
                self._drop_pool_locked()
        if failed:
            warn(f"worker transport failed; rejecting {len(failed)} pending request(s)")
        for entry in failed:
            _release_block(entry.shm_name)
            entry.future.set_exception(exc)

    def _drop_pool_locked(self) -> None:
        pool, self._pool = self._pool, None
        if pool is not None:
            pool.shutdown(wait=False, cancel_futures=True)

    def close(self) -> None:
        """Shut the worker down and reject anything still pending."""
        with self._lock:
            self._closed = True
            pool = self._pool
            pending = list(self._pending.values())
            self._pending.clear()
            self._drop_pool_locked()
        for entry in pending:
            _release_block(entry.shm_name)
            entry.future.set_exception(WorkerTransportError("worker engine closed"))
        if pool is not None and self.debug:
            debug_log("worker pool stopped")

    def __enter__(self) -> "WorkerEngine":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def _probe_shared_memory() -> None:
    """Raise OSError early when the platform has no usable shared memory."""
    block = shared_memory.SharedMemory(create=True, size=1)
    block.close()
    block.unlink()


__all__ = ["PendingRequest", "WorkerEngine"]
