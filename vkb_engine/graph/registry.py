from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Iterator

from vkb_core.errors import JobAlreadyRunning


class RelationshipJobRegistry:
    """
    Cancel tokens for in-flight relationship builds, keyed by job id.

    Each owner (an API app, a CLI run, a test) holds its own registry, so
    separate engine instances never see each other's jobs.
    """

    def __init__(self):
        self._events: dict[str, threading.Event] = {}
        self._lock = threading.Lock()

    def register(self, job_id: str) -> threading.Event:
        with self._lock:
            if job_id in self._events:
                raise JobAlreadyRunning(f"Job {job_id!r} is already running")
            event = threading.Event()
            self._events[job_id] = event
            return event

    def cancel(self, job_id: str) -> bool:
        """Signal a running job to stop at its next insert batch. False if unknown."""
        with self._lock:
            event = self._events.get(job_id)
        if event is None:
            return False
        event.set()
        return True

    def release(self, job_id: str) -> None:
        with self._lock:
            self._events.pop(job_id, None)

    def active_jobs(self) -> list[str]:
        with self._lock:
            return sorted(self._events)

    @contextmanager
    def track(self, job_id: str | None) -> Iterator[threading.Event | None]:
        """Register `job_id` for the duration of the block; no-op for None."""
        if job_id is None:
            yield None
            return
        event = self.register(job_id)
        try:
            yield event
        finally:
            self.release(job_id)
