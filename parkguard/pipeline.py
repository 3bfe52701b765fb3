"""Batch orchestrator: classify vessel batches in chunks without blocking the host."""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from enum import Enum
from typing import Any, Callable, Iterator, Sequence

from parkguard.config import AppConfig
from parkguard.errors import BatchAbortedError
from parkguard.geometry.boundaries import BoundaryIndex
from parkguard.models import (
    BatchProgress,
    ClassificationResult,
    Diagnostic,
    DiagnosticKind,
    VesselSample,
)
from parkguard.processing.classifier import Classifier
from parkguard.processing.exemptions import ExemptionSnapshot

logger = logging.getLogger(__name__)


class BatchState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class BatchRun:
    """State of one batch run: idle → running → completed | failed."""

    def __init__(self, total: int):
        self.total = total
        self.state = BatchState.IDLE
        self.progress = BatchProgress.of(0, total)
        self.results: list[ClassificationResult] | None = None
        self.error: BaseException | None = None
        self.diagnostics: list[Diagnostic] = []
        self.started_at: float | None = None
        self.finished_at: float | None = None
        self._done = threading.Event()
        self._thread: threading.Thread | None = None

    def __repr__(self) -> str:
        return (f"BatchRun(state={self.state.value}, "
                f"processed={self.progress.processed}/{self.total})")

    @property
    def done(self) -> bool:
        return self._done.is_set()

    @property
    def elapsed(self) -> float | None:
        if self.started_at is None:
            return None
        end = self.finished_at if self.finished_at is not None else time.monotonic()
        return end - self.started_at

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the run finishes. Returns False on timeout."""
        return self._done.wait(timeout)

    def _begin(self) -> None:
        if self.state != BatchState.IDLE:
            raise RuntimeError(f"Batch run already {self.state.value}")
        self.state = BatchState.RUNNING
        self.started_at = time.monotonic()

    def _complete(self, results: list[ClassificationResult]) -> None:
        self.results = results
        self.state = BatchState.COMPLETED
        self.finished_at = time.monotonic()
        self._done.set()

    def _fail(self, error: BaseException) -> None:
        self.results = None
        self.error = error
        self.state = BatchState.FAILED
        self.finished_at = time.monotonic()
        self._done.set()


class BatchOrchestrator:
    """Applies the classifier to a batch of samples, one chunk at a time.

    Between chunks control returns to the host (an ``await`` in
    ``process_all``); that is the only suspension point in the engine.
    Progress, diagnostics and completion are pushed to registered callbacks.
    """

    def __init__(self, config: AppConfig, classifier: Classifier | None = None):
        config.validate()
        self._config = config
        self._classifier = classifier or Classifier(config.rules)

        # Event subscribers (progress indicator, telemetry, result consumers)
        self._progress_callbacks: list[Callable[[BatchProgress], Any]] = []
        self._diagnostic_callbacks: list[Callable[[Diagnostic], Any]] = []
        self._completion_callbacks: list[Callable[[list[ClassificationResult]], Any]] = []
        self._loop: asyncio.AbstractEventLoop | None = None

    @property
    def config(self) -> AppConfig:
        return self._config

    @property
    def classifier(self) -> Classifier:
        return self._classifier

    def set_event_loop(self, loop: asyncio.AbstractEventLoop | None) -> None:
        """Deliver callbacks on ``loop`` (thread-safe) instead of inline."""
        self._loop = loop

    def add_progress_callback(self, callback: Callable[[BatchProgress], Any]) -> None:
        self._progress_callbacks.append(callback)

    def add_diagnostic_callback(self, callback: Callable[[Diagnostic], Any]) -> None:
        self._diagnostic_callbacks.append(callback)

    def add_completion_callback(
            self, callback: Callable[[list[ClassificationResult]], Any]) -> None:
        self._completion_callbacks.append(callback)

    # --- entry points ---

    async def process_all(self, samples: Sequence[VesselSample],
                          index: BoundaryIndex | None,
                          exemptions: ExemptionSnapshot | None = None,
                          run: BatchRun | None = None) -> list[ClassificationResult]:
        """Classify every sample, yielding to the event loop between chunks.

        Results come back in input order. Raises BatchAbortedError when no
        boundary index is supplied.
        """
        samples = list(samples)
        run = run or BatchRun(len(samples))
        yield_seconds = self._config.batch.yield_seconds

        run._begin()
        try:
            for _ in self._steps(samples, index, exemptions, run):
                await asyncio.sleep(yield_seconds)
        except BaseException as exc:
            self._abort(run, exc)
            raise

        return self._finish(run)

    def run_sync(self, samples: Sequence[VesselSample],
                 index: BoundaryIndex | None,
                 exemptions: ExemptionSnapshot | None = None) -> list[ClassificationResult]:
        """Synchronous fallback: same chunk loop on the caller's thread, no yielding."""
        samples = list(samples)
        run = BatchRun(len(samples))
        run._begin()
        try:
            for _ in self._steps(samples, index, exemptions, run):
                pass
        except BaseException as exc:
            self._abort(run, exc)
            raise

        return self._finish(run)

    def start(self, samples: Sequence[VesselSample],
              index: BoundaryIndex | None,
              exemptions: ExemptionSnapshot | None = None) -> BatchRun:
        """Run ``process_all`` on one background thread and return its handle.

        Failures are recorded on the returned run rather than raised.
        """
        samples = list(samples)
        run = BatchRun(len(samples))

        def target() -> None:
            try:
                asyncio.run(self.process_all(samples, index, exemptions, run=run))
            except Exception as exc:
                # process_all has already moved the run to FAILED
                logger.debug("Background batch ended with %r", exc)

        run._thread = threading.Thread(target=target, daemon=True, name="parkguard-batch")
        run._thread.start()
        return run

    # --- chunk loop ---

    def _steps(self, samples: list[VesselSample], index: BoundaryIndex | None,
               exemptions: ExemptionSnapshot | None, run: BatchRun) -> Iterator[None]:
        """Classify chunk by chunk, yielding once between consecutive chunks."""
        if not isinstance(index, BoundaryIndex):
            raise BatchAbortedError("No boundary index supplied; batch aborted")

        total = len(samples)
        chunk_size = self._config.batch.chunk_size
        logger.info("Batch started: %d samples, chunk size %d", total, chunk_size)

        for set_name in index.missing_sets():
            self._diagnose(run, Diagnostic(
                kind=DiagnosticKind.MISSING_GEOMETRY,
                message=f"Geometry set '{set_name}' is not loaded; results may under-report",
            ))

        results: list[ClassificationResult] = []
        self._set_progress(run, BatchProgress.of(0, total))

        for start in range(0, total, chunk_size):
            chunk = samples[start:start + chunk_size]
            for offset, sample in enumerate(chunk):
                results.append(self._classify_one(sample, start + offset, index,
                                                   exemptions, run))

            self._set_progress(run, BatchProgress.of(len(results), total))

            if start + chunk_size < total:
                yield

        run.results = results

    def _classify_one(self, sample: VesselSample, position: int, index: BoundaryIndex,
                      exemptions: ExemptionSnapshot | None,
                      run: BatchRun) -> ClassificationResult:
        def on_diagnostic(diagnostic: Diagnostic) -> None:
            self._diagnose(run, diagnostic, logged=True)

        try:
            entry = exemptions.lookup(sample) if exemptions is not None else None
            return self._classifier.classify(
                sample, index,
                is_exempt=entry is not None,
                exemption_reason=entry.reason if entry is not None else None,
                on_diagnostic=on_diagnostic,
                sample_index=position,
            )
        except Exception as exc:
            vessel_id = getattr(sample, "vessel_id", None)
            self._diagnose(run, Diagnostic(
                kind=DiagnosticKind.SAMPLE_FAILURE,
                message=f"Sample could not be classified: {exc!r}",
                sample_index=position,
                vessel_id=vessel_id,
            ))
            return ClassificationResult(sample=sample)

    # --- state & events ---

    def _finish(self, run: BatchRun) -> list[ClassificationResult]:
        results = run.results if run.results is not None else []
        run._complete(results)
        logger.info("Batch completed: %d results, %d diagnostics in %.3fs",
                    len(results), len(run.diagnostics), run.elapsed or 0.0)
        self._dispatch(self._completion_callbacks, list(results))
        return results

    def _abort(self, run: BatchRun, error: BaseException) -> None:
        if run.state != BatchState.RUNNING:
            return
        run._fail(error)
        logger.error("Batch failed: %s", error)

    def _set_progress(self, run: BatchRun, progress: BatchProgress) -> None:
        run.progress = progress
        logger.debug("Batch progress %d/%d (%d%%)",
                     progress.processed, progress.total, progress.percent)
        self._dispatch(self._progress_callbacks, progress)

    def _diagnose(self, run: BatchRun, diagnostic: Diagnostic, logged: bool = False) -> None:
        run.diagnostics.append(diagnostic)
        if not logged:
            logger.warning("%s", diagnostic.message)
        self._dispatch(self._diagnostic_callbacks, diagnostic)

    def _dispatch(self, callbacks: list[Callable], payload: Any) -> None:
        for callback in callbacks:
            try:
                if self._loop is not None:
                    self._loop.call_soon_threadsafe(callback, payload)
                else:
                    callback(payload)
            except Exception:
                logger.exception("Error in batch callback")
