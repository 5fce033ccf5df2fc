"""Use-case entry points: submit a staged task and compute it end to end."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from gwasm_runner.config import Settings
from gwasm_runner.contracts import Task
from gwasm_runner.endpoint import RemoteEndpoint, connect
from gwasm_runner.interrupt import InterruptSignal
from gwasm_runner.outputs import ComputedTask, materialize_outputs
from gwasm_runner.progress import ProgressObserver
from gwasm_runner.runner import TaskRunner

logger = logging.getLogger(__name__)


def create_task(endpoint: RemoteEndpoint, task: Task) -> str:
    """Submit ``task``'s manifest and return the id the node assigned."""

    task_id = endpoint.create_task(task.to_manifest())
    logger.info("Submitted task %s as %s", task.name, task_id)
    return task_id


def compute(
    task: Task,
    observer: ProgressObserver,
    *,
    settings: Settings | None = None,
    endpoint: RemoteEndpoint | None = None,
    polling_interval: float | None = None,
    interrupt: InterruptSignal | None = None,
) -> ComputedTask:
    """Submit ``task``, track it to completion and open its outputs.

    Connects using ``settings`` (environment by default) unless an
    ``endpoint`` is given. Without an explicit ``interrupt``, SIGINT/SIGTERM
    cancel the run for its duration.
    """

    settings = settings or Settings.from_env()
    if polling_interval is None:
        polling_interval = settings.task.poll_interval_seconds

    with _endpoint_scope(settings, endpoint) as active_endpoint:
        with _interrupt_scope(interrupt) as active_interrupt:
            task_id = create_task(active_endpoint, task)
            TaskRunner(
                active_endpoint,
                polling_interval=polling_interval,
                interrupt=active_interrupt,
            ).run(task_id, observer)

    return materialize_outputs(task)


@contextmanager
def _endpoint_scope(
    settings: Settings,
    endpoint: RemoteEndpoint | None,
) -> Iterator[RemoteEndpoint]:
    if endpoint is not None:
        yield endpoint
        return
    settings.validate()
    owned = connect(
        settings.endpoint.data_dir,
        settings.endpoint.net,
        settings.endpoint.address,
        settings.endpoint.port,
        request_timeout_seconds=settings.endpoint.request_timeout_seconds,
    )
    try:
        yield owned
    finally:
        owned.close()


@contextmanager
def _interrupt_scope(interrupt: InterruptSignal | None) -> Iterator[InterruptSignal]:
    if interrupt is not None:
        yield interrupt
        return
    with InterruptSignal.from_signals() as from_signals:
        yield from_signals
