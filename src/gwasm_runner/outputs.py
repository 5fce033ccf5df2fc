"""Open the output files of a finished task."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO

from gwasm_runner.contracts import Task
from gwasm_runner.errors import OutputUnavailable
from gwasm_runner.timeout import Timeout

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ComputedSubtask:
    """Open handles keyed by declared output path, in declaration order."""

    name: str
    data: dict[Path, BinaryIO] = field(default_factory=dict)

    def close(self) -> None:
        for handle in self.data.values():
            handle.close()


@dataclass(slots=True)
class ComputedTask:
    """Finished task: original parameters plus one entry per staged subtask."""

    name: str
    bid: float
    timeout: Timeout
    subtask_timeout: Timeout
    subtasks: list[ComputedSubtask] = field(default_factory=list)

    def close(self) -> None:
        for subtask in self.subtasks:
            subtask.close()

    def __enter__(self) -> ComputedTask:
        return self

    def __exit__(self, *_: object) -> None:
        self.close()


def materialize_outputs(task: Task) -> ComputedTask:
    """Open every declared output file of ``task`` for reading.

    Handles are returned unread, positioned at the start. A single missing or
    unreadable file fails the whole call with :class:`OutputUnavailable`; any
    handle opened before that point is closed first.
    """

    computed = ComputedTask(
        name=task.name,
        bid=task.bid,
        timeout=task.timeout,
        subtask_timeout=task.subtask_timeout,
    )
    try:
        for subtask in task.options.iter_subtasks():
            output_dir = task.options.output_dir / subtask.name
            computed_subtask = ComputedSubtask(name=subtask.name)
            computed.subtasks.append(computed_subtask)
            for out_path in subtask.output_file_paths:
                full_path = output_dir / out_path
                try:
                    computed_subtask.data[out_path] = full_path.open("rb")
                except OSError as error:
                    raise OutputUnavailable(full_path, error.strerror or str(error)) from error
    except OutputUnavailable:
        computed.close()
        raise

    logger.info("Collected outputs of task %s (%d subtask(s))", task.name, len(computed.subtasks))
    return computed
