# crest_map/engine/scheduler.py
from __future__ import annotations

"""
Debounced, stale-safe driver above an engine.

schedule() coalesces bursts of requests into one compute after ``delay``
seconds; the compute itself is handed to ``dispatch`` (the caller's
"next frame" hook, or a direct call). Every compute gets a new generation
number and only the newest generation may publish. Older results are
dropped without error; their computation still runs to completion.

States: idle -> requested -> computing -> resolved | rejected.
"""

import threading
from concurrent.futures import Future
from functools import partial
from typing import Callable, Optional, Union

from crest_map.constants import DEFAULT_DEBOUNCE_SECONDS
from crest_map.core_types import CropRect, PipelineResult, PipelineSettings
from crest_map.image_io import SourceBitmap, SourceLike
from crest_map.utils import debug_log

from .base import PipelineEngine

ResultCallback = Callable[[PipelineResult], None]
ErrorCallback = Callable[[BaseException], None]
Dispatch = Callable[[Callable[[], None]], None]
Source = Union[SourceLike, SourceBitmap]


def _call_now(fn: Callable[[], None]) -> None:
    fn()


def _release(source: Optional[Source]) -> None:
    if isinstance(source, SourceBitmap):
        source.close()


class Scheduler:
    def __init__(
        self,
        engine: PipelineEngine,
        on_result: ResultCallback,
        on_error: Optional[ErrorCallback] = None,
        *,
        delay: float = DEFAULT_DEBOUNCE_SECONDS,
        dispatch: Optional[Dispatch] = None,
        debug: bool = False,
    ):
        self.engine = engine
        self.on_result = on_result
        self.on_error = on_error
        self.delay = float(delay)
        self.debug = debug
        self._dispatch = dispatch or _call_now
        self._lock = threading.Lock()
        # held while publishing so results reach callbacks in generation order
        self._publish_lock = threading.RLock()
        self._timer: Optional[threading.Timer] = None
        # source armed with _timer; owned here until the timer fires
        self._armed: Optional[Source] = None
        self._generation = 0
        self._published = 0
        self._state = "idle"

    @property
    def generation(self) -> int:
        with self._lock:
            return self._generation

    @property
    def state(self) -> str:
        with self._lock:
            return self._state

    @property
    def pending(self) -> bool:
        """True while a debounce timer is armed."""
        with self._lock:
            return self._timer is not None

    def schedule(
        self,
        source: Source,
        settings: PipelineSettings,
        crop: Optional[CropRect] = None,
        *,
        delay: Optional[float] = None,
    ) -> None:
        """
        (Re)arm the debounce timer; only the last call before it fires runs.

        The scheduler owns ``source`` until the compute starts. A superseded
        SourceBitmap is closed.
        """
        wait = self.delay if delay is None else float(delay)
        timer = threading.Timer(wait, self._fire, args=(source, settings, crop))
        timer.daemon = True
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            superseded, self._armed = self._armed, source
            self._timer = timer
            self._state = "requested"
        if superseded is not source:
            _release(superseded)
        timer.start()

    def _fire(
        self,
        source: Source,
        settings: PipelineSettings,
        crop: Optional[CropRect],
    ) -> None:
        with self._lock:
            if self._timer is None or self._timer is not threading.current_thread():
                return
            self._timer = None
            self._armed = None
        self._dispatch(partial(self.recompute, source, settings, crop))

    def recompute(
        self,
        source: Source,
        settings: PipelineSettings,
        crop: Optional[CropRect] = None,
    ) -> int:
        """Start a compute right away; returns its generation."""
        with self._lock:
            self._generation += 1
            generation = self._generation
            self._state = "computing"
        try:
            outcome = self.engine.compute(source, settings, crop)
        except Exception as e:
            self._publish_error(generation, e)
            return generation

        if isinstance(outcome, Future):
            outcome.add_done_callback(partial(self._settle, generation))
        else:
            self._publish_result(generation, outcome)
        return generation

    def _settle(self, generation: int, outcome: "Future[PipelineResult]") -> None:
        try:
            result = outcome.result()
        except Exception as e:
            self._publish_error(generation, e)
            return
        self._publish_result(generation, result)

    def _claim(self, generation: int, state: str) -> bool:
        with self._lock:
            if generation != self._generation or generation <= self._published:
                return False
            self._published = generation
            self._state = state
            return True

    def _publish_result(self, generation: int, result: PipelineResult) -> None:
        with self._publish_lock:
            if not self._claim(generation, "resolved"):
                if self.debug:
                    debug_log(f"dropped stale result (generation {generation})")
                return
            self.on_result(result)

    def _publish_error(self, generation: int, exc: BaseException) -> None:
        with self._publish_lock:
            if not self._claim(generation, "rejected"):
                if self.debug:
                    debug_log(f"dropped stale error (generation {generation}): {exc}")
                return
            if self.on_error is not None:
                self.on_error(exc)
            elif self.debug:
                debug_log(f"compute failed: {exc}")

    def cancel(self) -> None:
        """Disarm a pending debounce timer. In-flight computes are unaffected."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            dropped, self._armed = self._armed, None
            if self._state == "requested":
                self._state = "idle"
        _release(dropped)

    def close(self) -> None:
        """Cancel the timer and make every in-flight result stale."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            dropped, self._armed = self._armed, None
            self._generation += 1
            self._state = "idle"
        _release(dropped)


__all__ = ["Scheduler"]
