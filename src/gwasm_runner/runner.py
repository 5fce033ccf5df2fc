"""Race a task's status polling against a local interrupt."""

from __future__ import annotations

import logging
import queue
import threading
from dataclasses import dataclass
from enum import Enum
from typing import NoReturn

from gwasm_runner.endpoint.base import RemoteEndpoint
from gwasm_runner.errors import AbortFailed, GwasmError, UserInterrupted
from gwasm_runner.interrupt import InterruptSignal
from gwasm_runner.poller import poll_task_progress
from gwasm_runner.progress import ProgressNotifier, ProgressObserver

logger = logging.getLogger(__name__)

DEFAULT_WAKE_INTERVAL_SECONDS = 0.1


class RunState(str, Enum):
    """Lifecycle of one :meth:`TaskRunner.run` call."""

    IDLE = "idle"
    POLLING = "polling"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    INTERRUPTED = "interrupted"


@dataclass(slots=True)
class _PollOutcome:
    error: BaseException | None = None


class TaskRunner:
    """Track one submitted task until it finishes, fails or is interrupted.

    Polling runs on a daemon thread that forwards progress to a
    :class:`ProgressNotifier`. The calling thread waits for whichever comes
    first: the poll sequence ending, or ``interrupt`` firing. The poll thread
    is never killed. When the interrupt wins it is told to stop, and whatever
    its in-flight query returns is discarded.

    The observer's ``stop`` hook runs only when the task finishes. Failures
    and interrupts close the notifier without calling it.
    """

    def __init__(
        self,
        endpoint: RemoteEndpoint,
        *,
        polling_interval: float | None = None,
        interrupt: InterruptSignal | None = None,
        wake_interval_seconds: float = DEFAULT_WAKE_INTERVAL_SECONDS,
    ) -> None:
        self.endpoint = endpoint
        self.polling_interval = polling_interval
        self.interrupt = interrupt
        self.wake_interval_seconds = wake_interval_seconds
        self.state = RunState.IDLE

    def run(self, task_id: str, observer: ProgressObserver) -> None:
        """Block until the task finishes; raise on any other outcome.

        Raises :class:`UserInterrupted` when the interrupt wins and the abort
        succeeds, :class:`AbortFailed` when the abort itself fails, and the
        poller's error when the remote reports a failure.
        """

        self.state = RunState.POLLING
        try:
            notifier = ProgressNotifier(observer, name=f"gwasm-progress-{task_id}")
        except BaseException:
            self.state = RunState.FAILED
            raise

        stop = threading.Event()
        outcomes: queue.Queue[_PollOutcome] = queue.Queue()
        driver = threading.Thread(
            target=self._drive,
            args=(task_id, notifier, stop, outcomes),
            daemon=True,
            name=f"gwasm-poll-{task_id}",
        )
        driver.start()
        logger.info("Tracking task %s", task_id)

        try:
            outcome = self._await_first(outcomes)
        except BaseException:
            stop.set()
            notifier.close()
            self.state = RunState.FAILED
            raise

        if outcome is None:
            stop.set()
            notifier.close()
            self._abort(task_id)

        if outcome.error is not None:
            notifier.close()
            self.state = RunState.FAILED
            logger.info("Task %s failed: %s", task_id, outcome.error)
            raise outcome.error

        try:
            notifier.finish()
        except BaseException:
            self.state = RunState.FAILED
            raise
        self.state = RunState.SUCCEEDED
        logger.info("Task %s finished", task_id)

    def _await_first(self, outcomes: queue.Queue[_PollOutcome]) -> _PollOutcome | None:
        """Return the poll outcome, or None when the interrupt fired first."""

        while True:
            if self.interrupt is not None and self.interrupt.is_set():
                return None
            try:
                return outcomes.get(timeout=self.wake_interval_seconds)
            except queue.Empty:
                continue

    def _drive(
        self,
        task_id: str,
        notifier: ProgressNotifier,
        stop: threading.Event,
        outcomes: queue.Queue[_PollOutcome],
    ) -> None:
        try:
            for progress in poll_task_progress(
                self.endpoint,
                task_id,
                self.polling_interval,
                stop=stop,
            ):
                if stop.is_set():
                    logger.debug("Discarding late progress %.3f for task %s", progress, task_id)
                    return
                notifier.notify(progress)
        except Exception as error:  # noqa: BLE001
            if stop.is_set():
                logger.debug("Discarding late poll error for task %s: %s", task_id, error)
                return
            outcomes.put(_PollOutcome(error=error))
            return
        outcomes.put(_PollOutcome())

    def _abort(self, task_id: str) -> NoReturn:
        reason = (self.interrupt.reason if self.interrupt is not None else None) or "interrupt"
        logger.info("Interrupted by %s; aborting task %s", reason, task_id)
        try:
            self.endpoint.abort_task(task_id)
        except GwasmError as error:
            self.state = RunState.FAILED
            logger.error("Abort of task %s failed: %s", task_id, error)
            raise AbortFailed(task_id, error) from error
        self.state = RunState.INTERRUPTED
        raise UserInterrupted(task_id, reason)
