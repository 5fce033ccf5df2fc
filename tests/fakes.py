"""Test doubles for the remote endpoint and progress observer."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from typing import Any

from gwasm_runner.models import RemoteStatus, TaskInfo

TASK_ID = "task-1"


def running(progress: float | None) -> TaskInfo:
    return TaskInfo(status=RemoteStatus.RUNNING, progress=progress, raw_status="Computing")


def finished() -> TaskInfo:
    return TaskInfo(status=RemoteStatus.FINISHED, progress=1.0, raw_status="Finished")


class FakeEndpoint:
    """Scripted endpoint: each ``get_task`` call consumes one scripted item.

    Items are ``TaskInfo``, ``None`` or an exception to raise. The last item
    repeats once the script is exhausted. When ``gate`` is given, every
    ``get_task`` call blocks until it is set.
    """

    def __init__(
        self,
        statuses: list[TaskInfo | None | Exception] | None = None,
        *,
        abort_error: Exception | None = None,
        gate: threading.Event | None = None,
    ) -> None:
        self.statuses = list(statuses or [finished()])
        self.abort_error = abort_error
        self.gate = gate
        self.created: list[dict[str, Any]] = []
        self.get_calls = 0
        self.abort_calls: list[str] = []
        self.closed = False
        self._lock = threading.Lock()

    def create_task(self, manifest: dict[str, Any]) -> str:
        self.created.append(manifest)
        return TASK_ID

    def get_task(self, task_id: str) -> TaskInfo | None:
        with self._lock:
            self.get_calls += 1
            item = self.statuses.pop(0) if len(self.statuses) > 1 else self.statuses[0]
        if self.gate is not None:
            self.gate.wait(timeout=5)
        if isinstance(item, Exception):
            raise item
        return item

    def abort_task(self, task_id: str) -> None:
        with self._lock:
            self.abort_calls.append(task_id)
        if self.abort_error is not None:
            raise self.abort_error

    def close(self) -> None:
        self.closed = True


class RecordingObserver:
    """Records every hook call as ``(event, value)``."""

    def __init__(self, *, fail_on: str | None = None, fail_after: int = 0) -> None:
        self.events: list[tuple[str, float | None]] = []
        self.threads: set[str] = set()
        self._fail_on = fail_on
        self._fail_after = fail_after

    def _record(self, event: str, value: float | None = None) -> None:
        self.threads.add(threading.current_thread().name)
        self.events.append((event, value))
        if event == self._fail_on:
            count = sum(1 for name, _ in self.events if name == event)
            if count > self._fail_after:
                raise ValueError(f"{event} exploded")

    def start(self) -> None:
        self._record("start")

    def update(self, progress: float) -> None:
        self._record("update", progress)

    def stop(self) -> None:
        self._record("stop")


def wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()
