"""Background execution of simulation runs with progress streaming."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from functools import partial
from queue import Empty, Queue
from typing import Optional

from ..engine import simulate
from ..models.pipeline import PipelineConfig
from ..models.progress import SimulationProgressEvent
from ..models.results import SimulationResult

LOGGER = logging.getLogger(__name__)


class SimulationRunner:
    """
    Run one simulation at a time on a worker thread.

    Cancellation is cooperative: :meth:`cancel` sets a flag the driver checks
    between units, after which :meth:`result` raises ``SimulationCancelled``
    (``CancelledError`` if the run never left the queue).
    """

    def __init__(self) -> None:
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="simulation-runner")
        self._future: Optional["Future[SimulationResult]"] = None
        self._cancel_event = threading.Event()
        self._progress: "Queue[SimulationProgressEvent]" = Queue()
        self._lock = threading.Lock()

    # ------------------------------------------------------------------ status
    @property
    def running(self) -> bool:
        with self._lock:
            return self._future is not None and not self._future.done()

    @property
    def done(self) -> bool:
        with self._lock:
            return self._future is not None and self._future.done()

    # ------------------------------------------------------------------ control
    def start(self, config: PipelineConfig, *, seed: Optional[int] = None) -> None:
        """Submit a run; raises ``RuntimeError`` if one is already in flight."""
        with self._lock:
            if self._future is not None and not self._future.done():
                raise RuntimeError("SimulationRunner is already executing a run.")
            self._progress.queue.clear()
            self._cancel_event = threading.Event()
            cancel_event = self._cancel_event

            def _invoke() -> SimulationResult:
                return simulate(
                    config,
                    seed=seed,
                    progress_callback=partial(self._enqueue_progress, cancel_event),
                    cancel_event=cancel_event,
                )

            LOGGER.debug("Submitting simulation of %s units", config.simulation_count)
            self._future = self._executor.submit(_invoke)

    def cancel(self) -> None:
        with self._lock:
            if self._future and not self._future.done():
                self._cancel_event.set()
                self._future.cancel()

    # ------------------------------------------------------------------ progress
    def _enqueue_progress(self, token: threading.Event, completed: int, total: int) -> None:
        with self._lock:
            # runs abandoned by reset() or a newer start() stay silent
            if token is not self._cancel_event:
                return
            self._progress.put(
                SimulationProgressEvent(
                    completed_units=completed,
                    total_units=total,
                    message=f"Simulated {completed}/{total} units",
                )
            )

    def drain_progress(self) -> list[SimulationProgressEvent]:
        updates: list[SimulationProgressEvent] = []
        while True:
            try:
                updates.append(self._progress.get_nowait())
            except Empty:
                break
        return updates

    # ------------------------------------------------------------------ results
    def result(self, timeout: Optional[float] = None) -> SimulationResult:
        with self._lock:
            if self._future is None:
                raise RuntimeError("SimulationRunner has not started a run.")
            future = self._future
        return future.result(timeout=timeout)

    def exception(self) -> Optional[BaseException]:
        with self._lock:
            if self._future is None:
                return None
            future = self._future
        return future.exception()

    def reset(self) -> None:
        """Forget the current run, cancelling it first if it is still in flight."""
        with self._lock:
            if self._future is not None and not self._future.done():
                self._cancel_event.set()
                self._future.cancel()
            self._cancel_event = threading.Event()
            self._future = None
            self._progress.queue.clear()

    # ------------------------------------------------------------------- cleanup
    def shutdown(self, wait: bool = False) -> None:
        self._executor.shutdown(wait=wait)


__all__ = ["SimulationRunner"]
