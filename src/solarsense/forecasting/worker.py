"""
Background training queue for the forecast model.

Predictions enqueue a TrainingJob and return immediately; a daemon thread (or
an explicit drain() call) later turns each job into a training step.
"""

import logging
import queue
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional, Tuple


@dataclass(frozen=True)
class TrainingJob:
    """Everything needed to train on one prediction after the fact."""
    household_id: int
    kind: str  # generation, demand
    inputs: Tuple[float, ...]
    baseline: float
    predicted: float
    scale: float  # estimator output -> kW
    created_at: datetime = field(default_factory=datetime.now)


class TrainingWorker:
    """Drains training jobs on a daemon thread."""

    def __init__(self, handler: Callable[[TrainingJob], None], maxsize: int = 10000):
        self.handler = handler
        self.logger = logging.getLogger("solarsense.forecasting.worker")

        self._queue: "queue.Queue[TrainingJob]" = queue.Queue(maxsize=maxsize)
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

        self.metrics = {
            "jobs_submitted": 0,
            "jobs_processed": 0,
            "jobs_dropped": 0,
            "jobs_failed": 0,
        }

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def submit(self, job: TrainingJob) -> bool:
        """Queue a job without blocking; a full queue drops it."""
        try:
            self._queue.put_nowait(job)
        except queue.Full:
            self.metrics["jobs_dropped"] += 1
            self.logger.debug(f"Training queue full, dropped {job.kind} job for {job.household_id}")
            return False
        self.metrics["jobs_submitted"] += 1
        return True

    def start(self) -> None:
        if self.is_running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._process_jobs, daemon=True)
        self._thread.start()
        self.logger.info("Training worker started")

    def stop(self, timeout: float = 5.0) -> None:
        if self._thread is None:
            return
        self._stop_event.set()
        self._thread.join(timeout=timeout)
        self._thread = None
        self.logger.info("Training worker stopped")

    def drain(self) -> int:
        """Process all queued jobs on the calling thread."""
        processed = 0
        while True:
            try:
                job = self._queue.get_nowait()
            except queue.Empty:
                return processed
            self._run(job)
            processed += 1

    def _process_jobs(self) -> None:
        while not self._stop_event.is_set():
            try:
                job = self._queue.get(timeout=1.0)
            except queue.Empty:
                continue
            self._run(job)

    def _run(self, job: TrainingJob) -> None:
        try:
            self.handler(job)
            self.metrics["jobs_processed"] += 1
        except Exception as e:
            self.metrics["jobs_failed"] += 1
            self.logger.error(f"Training failed for household {job.household_id} ({job.kind}): {e}")
        finally:
            self._queue.task_done()
