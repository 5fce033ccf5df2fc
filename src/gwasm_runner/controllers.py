"""Controllers for gwasm-runner CLI commands."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path

from rich.console import Console
from rich.progress import BarColumn, Progress, TaskID, TextColumn, TimeElapsedColumn

from gwasm_runner.config import Settings
from gwasm_runner.contracts import Task
from gwasm_runner.errors import GwasmError
from gwasm_runner.models import Net
from gwasm_runner.progress import ProgressObserverBase
from gwasm_runner.services import compute
from gwasm_runner.timeout import Timeout
from gwasm_runner.workdir import GWasmBinary, TaskBuilder

EXIT_INTERRUPTED = 130


@dataclass(slots=True)
class StageCommand:
    """CLI input shared by commands that stage a task."""

    js_path: Path
    wasm_path: Path
    input_paths: tuple[Path, ...]
    workspace: Path
    name: str | None = None
    bid: float | None = None
    timeout: str | None = None
    subtask_timeout: str | None = None


@dataclass(slots=True)
class RunCommand:
    """CLI input for staging and computing a task."""

    stage: StageCommand
    data_dir: Path | None = None
    net: str | None = None
    address: str | None = None
    port: int | None = None
    poll_interval_seconds: float | None = None


@dataclass(slots=True)
class CommandResult:
    """Lines to print and the process exit code."""

    lines: list[str] = field(default_factory=list)
    exit_code: int = 0


class RichProgressObserver(ProgressObserverBase):
    """Renders task progress as a rich progress bar."""

    def __init__(self, description: str, console: Console | None = None) -> None:
        self._progress = Progress(
            TextColumn("[bold]{task.description}"),
            BarColumn(),
            TextColumn("{task.percentage:>5.1f}%"),
            TimeElapsedColumn(),
            console=console,
            transient=False,
        )
        self._description = description
        self._task_id: TaskID | None = None

    def start(self) -> None:
        self._progress.start()
        self._task_id = self._progress.add_task(self._description, total=100.0)

    def update(self, progress: float) -> None:
        if self._task_id is not None:
            self._progress.update(self._task_id, completed=progress * 100.0)

    def stop(self) -> None:
        if self._task_id is not None:
            self._progress.update(self._task_id, completed=100.0)
        self._progress.stop()

    def abandon(self) -> None:
        """Tear down the live display without marking the task complete."""

        self._progress.stop()


class GwasmCliController:
    """CLI controller for task staging and computation."""

    def stage(self, command: StageCommand, settings: Settings | None = None) -> Task:
        settings = settings or Settings.from_env()
        command.workspace.mkdir(parents=True, exist_ok=True)
        builder = TaskBuilder(
            command.workspace,
            GWasmBinary.from_files(command.js_path, command.wasm_path),
        )
        if command.name:
            builder.name(command.name)
        builder.bid(command.bid if command.bid is not None else settings.task.bid)
        builder.timeout(Timeout.parse(command.timeout or settings.task.timeout))
        builder.subtask_timeout(
            Timeout.parse(command.subtask_timeout or settings.task.subtask_timeout),
        )
        for input_path in command.input_paths:
            builder.push_subtask_data(input_path.read_bytes())
        return builder.build()

    def manifest(self, command: StageCommand) -> CommandResult:
        task = self.stage(command)
        return CommandResult(lines=[json.dumps(task.to_manifest(), indent=2)])

    def run(self, command: RunCommand, console: Console | None = None) -> CommandResult:
        settings = _apply_overrides(Settings.from_env(), command)
        settings.validate()
        task = self.stage(command.stage, settings)

        observer = RichProgressObserver(f"Computing {task.name}", console=console)
        try:
            computed = compute(task, observer, settings=settings)
        except GwasmError as error:
            observer.abandon()
            if error.is_cancellation:
                return CommandResult(lines=[f"Cancelled: {error}"], exit_code=EXIT_INTERRUPTED)
            raise

        lines = [
            f"Task {computed.name} finished: {len(computed.subtasks)} subtask(s), "
            f"bid={computed.bid} timeout={computed.timeout} "
            f"subtask_timeout={computed.subtask_timeout}",
        ]
        with computed:
            for subtask in computed.subtasks:
                for out_path, handle in subtask.data.items():
                    lines.append(f"{subtask.name}/{out_path}: {len(handle.read())} bytes")
        return CommandResult(lines=lines)


def _apply_overrides(settings: Settings, command: RunCommand) -> Settings:
    if command.data_dir is not None:
        settings.endpoint.data_dir = command.data_dir
    if command.net is not None:
        settings.endpoint.net = Net(command.net)
    if command.address is not None:
        settings.endpoint.address = command.address
    if command.port is not None:
        settings.endpoint.port = command.port
    if command.poll_interval_seconds is not None:
        settings.task.poll_interval_seconds = command.poll_interval_seconds
    return settings
