"""Pull-based polling of a remote task's status."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Iterator

from gwasm_runner.endpoint.base import RemoteEndpoint
from gwasm_runner.errors import (
    EmptyStatus,
    MissingProgress,
    RemoteQueryFailed,
    TaskAborted,
    TaskTimedOut,
    TransportError,
)
from gwasm_runner.models import PollState, RemoteStatus

logger = logging.getLogger(__name__)

DEFAULT_POLLING_INTERVAL_SECONDS = 2.0


def poll_task_progress(
    endpoint: RemoteEndpoint,
    task_id: str,
    polling_interval: float | None = None,
    *,
    stop: threading.Event | None = None,
) -> Iterator[float]:
    """Yield the task's progress once per polling interval until it finishes.

    The first query is issued immediately. Each following query waits a full
    interval after the consumer pulls the next value, so query latency adds to
    the interval. The generator returns when the node reports ``FINISHED`` and
    raises on aborted/timed-out tasks, failed queries and malformed answers.
    Setting ``stop`` ends the sequence quietly before the next query.
    """

    interval = DEFAULT_POLLING_INTERVAL_SECONDS if polling_interval is None else polling_interval
    state = PollState()
    first = True
    while True:
        if not first and not _sleep_with_stop(interval, stop):
            return
        first = False
        if stop is not None and stop.is_set():
            return

        try:
            info = endpoint.get_task(task_id)
        except TransportError as error:
            raise RemoteQueryFailed(task_id, str(error)) from error
        if info is None:
            raise EmptyStatus(task_id)

        if info.status is RemoteStatus.FINISHED:
            logger.debug("Task %s finished", task_id)
            return
        if info.status is RemoteStatus.ABORTED:
            raise TaskAborted(task_id)
        if info.status is RemoteStatus.TIMED_OUT:
            raise TaskTimedOut(task_id)
        if info.progress is None:
            raise MissingProgress(task_id, info.raw_status or info.status.value)

        if info.progress < state.progress:
            logger.warning(
                "Task %s progress went backwards: %.3f -> %.3f",
                task_id,
                state.progress,
                info.progress,
            )
        state = PollState(status=info.status, progress=info.progress)
        logger.debug("Task %s status=%s progress=%.3f", task_id, state.status, state.progress)
        yield state.progress


def _sleep_with_stop(seconds: float, stop: threading.Event | None) -> bool:
    """Sleep ``seconds``; return False if ``stop`` was set meanwhile."""

    if stop is None:
        if seconds > 0:
            time.sleep(seconds)
        return True
    return not stop.wait(timeout=max(0.0, seconds))
