"""End-to-end tests for submitting, tracking and collecting a task."""

from __future__ import annotations

import signal
import threading
from collections.abc import Callable
from pathlib import Path

import allure
import pytest

from gwasm_runner.config import EndpointSettings, Settings
from gwasm_runner.contracts import Task
from gwasm_runner.errors import ConfigError, OutputUnavailable, TaskTimedOut, UserInterrupted
from gwasm_runner.interrupt import InterruptSignal
from gwasm_runner.models import RemoteStatus, TaskInfo
from gwasm_runner.services import compute, create_task

from .fakes import TASK_ID, FakeEndpoint, RecordingObserver, finished, running

pytestmark = [
    allure.epic("Task Tracking"),
    allure.feature("Compute End To End"),
]


def test_create_task_submits_manifest(stage_task: Callable[..., Task]) -> None:
    task = stage_task([b"a"])
    endpoint = FakeEndpoint()

    assert create_task(endpoint, task) == TASK_ID
    assert endpoint.created == [task.to_manifest()]


def test_compute_returns_outputs_for_every_subtask(stage_task: Callable[..., Task]) -> None:
    task = stage_task([b"one", b"two", b"three"], write_outputs=True)
    endpoint = FakeEndpoint([running(0.2), running(0.9), finished()])
    observer = RecordingObserver()

    computed = compute(
        task,
        observer,
        endpoint=endpoint,
        polling_interval=0,
        interrupt=InterruptSignal(),
    )

    with computed:
        assert [s.name for s in computed.subtasks] == ["subtask_0", "subtask_1", "subtask_2"]
        assert computed.subtasks[2].data[Path("in.wav")].read() == b"out:three"
    assert endpoint.created == [task.to_manifest()]
    assert observer.events == [
        ("start", None),
        ("update", 0.2),
        ("update", 0.9),
        ("stop", None),
    ]
    assert not endpoint.closed


def test_compute_installs_signal_handlers_without_explicit_interrupt(
    stage_task: Callable[..., Task],
) -> None:
    task = stage_task([b"a"], write_outputs=True)

    with compute(
        task,
        RecordingObserver(),
        endpoint=FakeEndpoint([finished()]),
        polling_interval=0,
    ) as computed:
        assert len(computed.subtasks) == 1


def test_compute_reports_missing_output_after_success(stage_task: Callable[..., Task]) -> None:
    task = stage_task([b"a", b"b"], write_outputs=True)
    (task.options.output_dir / "subtask_0" / "in.wav").unlink()

    with pytest.raises(OutputUnavailable):
        compute(
            task,
            RecordingObserver(),
            endpoint=FakeEndpoint([finished()]),
            polling_interval=0,
            interrupt=InterruptSignal(),
        )


def test_compute_propagates_remote_timeout(stage_task: Callable[..., Task]) -> None:
    task = stage_task([b"a"])

    with pytest.raises(TaskTimedOut):
        compute(
            task,
            RecordingObserver(),
            endpoint=FakeEndpoint([TaskInfo(status=RemoteStatus.TIMED_OUT)]),
            polling_interval=0,
            interrupt=InterruptSignal(),
        )


def test_compute_interrupted_aborts_remote_task(stage_task: Callable[..., Task]) -> None:
    task = stage_task([b"a"])
    gate = threading.Event()
    endpoint = FakeEndpoint([running(0.1)], gate=gate)
    interrupt = InterruptSignal()
    interrupt.fire()

    try:
        with pytest.raises(UserInterrupted):
            compute(
                task,
                RecordingObserver(),
                endpoint=endpoint,
                polling_interval=0,
                interrupt=interrupt,
            )
    finally:
        gate.set()

    assert endpoint.abort_calls == [TASK_ID]


def test_compute_aborts_task_interrupted_during_submission(
    stage_task: Callable[..., Task],
) -> None:
    interrupt = InterruptSignal()

    class InterruptedWhileSubmitting(FakeEndpoint):
        def create_task(self, manifest: dict) -> str:
            task_id = super().create_task(manifest)
            interrupt.fire("SIGINT")
            return task_id

    endpoint = InterruptedWhileSubmitting([running(0.1)])

    with pytest.raises(UserInterrupted, match="SIGINT"):
        compute(
            stage_task([b"a"]),
            RecordingObserver(),
            endpoint=endpoint,
            polling_interval=0,
            interrupt=interrupt,
        )

    assert endpoint.abort_calls == [TASK_ID]


def test_compute_installs_signal_handlers_before_submitting(
    stage_task: Callable[..., Task],
) -> None:
    class SubmitsUnderSignalHandlers(FakeEndpoint):
        def create_task(self, manifest: dict) -> str:
            self.sigint_handler = signal.getsignal(signal.SIGINT)
            return super().create_task(manifest)

    endpoint = SubmitsUnderSignalHandlers([finished()])
    original = signal.getsignal(signal.SIGINT)

    with compute(
        stage_task([b"a"], write_outputs=True),
        RecordingObserver(),
        endpoint=endpoint,
        polling_interval=0,
    ):
        pass

    assert endpoint.sigint_handler is not original
    assert signal.getsignal(signal.SIGINT) is original


def test_compute_connects_from_settings(stage_task: Callable[..., Task], tmp_path: Path) -> None:
    settings = Settings(endpoint=EndpointSettings(data_dir=tmp_path / "missing"))

    with pytest.raises(ConfigError, match="data dir"):
        compute(stage_task([]), RecordingObserver(), settings=settings)
