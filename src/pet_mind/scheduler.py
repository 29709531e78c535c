"""Schedulers. Repeating jobs with cancel handles, real or virtual time."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Protocol

logger = logging.getLogger(__name__)

Callback = Callable[[], None]


class CancelHandle(Protocol):
    def cancel(self) -> None: ...

    @property
    def cancelled(self) -> bool: ...


class Scheduler(Protocol):
    def schedule_repeating(self, interval: float, callback: Callback) -> CancelHandle: ...


# ── Threads ────────────────────────────────────────────────────────────


class _ThreadJob:
    def __init__(self, interval: float, callback: Callback, name: str) -> None:
        self.interval = interval
        self.callback = callback
        self._stop_event = threading.Event()
        self._lock = threading.RLock()
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)

    def start(self) -> None:
        self._thread.start()

    def _run(self) -> None:
        while not self._stop_event.wait(self.interval):
            with self._lock:
                if self._stop_event.is_set():
                    break
                try:
                    self.callback()
                except Exception:
                    logger.exception("scheduled job %s failed", self._thread.name)

    def cancel(self) -> None:
        """Stop the job. Returns after any in-flight callback has finished."""
        self._stop_event.set()
        # Waits for a running callback; re-entrant when cancelled from inside it.
        with self._lock:
            pass

    @property
    def cancelled(self) -> bool:
        return self._stop_event.is_set()


class ThreadScheduler:
    """One daemon thread per repeating job."""

    def __init__(self) -> None:
        self._jobs: list[_ThreadJob] = []
        self._counter = 0

    def schedule_repeating(self, interval: float, callback: Callback) -> CancelHandle:
        self._counter += 1
        job = _ThreadJob(interval, callback, name=f"pet-mind-job-{self._counter}")
        self._jobs = [j for j in self._jobs if not j.cancelled]
        self._jobs.append(job)
        job.start()
        return job

    def shutdown(self) -> None:
        for job in self._jobs:
            job.cancel()
        self._jobs = []


# ── Virtual time ───────────────────────────────────────────────────────


class _ManualJob:
    def __init__(self, interval: float, callback: Callback, due: float) -> None:
        self.interval = interval
        self.callback = callback
        self.due = due
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class ManualScheduler:
    """Virtual clock for tests: nothing fires until advance() is called."""

    def __init__(self) -> None:
        self.now = 0.0
        self._jobs: list[_ManualJob] = []

    def schedule_repeating(self, interval: float, callback: Callback) -> CancelHandle:
        if interval <= 0:
            raise ValueError("interval must be positive")
        job = _ManualJob(interval, callback, self.now + interval)
        self._jobs.append(job)
        return job

    def advance(self, seconds: float) -> int:
        """Move time forward, firing due callbacks in time order. Returns fire count."""
        target = self.now + seconds
        fired = 0
        while True:
            live = [j for j in self._jobs if not j.cancelled]
            self._jobs = live
            due = [j for j in live if j.due <= target]
            if not due:
                break
            job = min(due, key=lambda j: j.due)
            self.now = job.due
            job.due += job.interval
            job.callback()
            fired += 1
        self.now = target
        return fired

    @property
    def active_jobs(self) -> int:
        return sum(1 for j in self._jobs if not j.cancelled)
