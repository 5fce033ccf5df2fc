"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from gwasm_runner.contracts import Task
from gwasm_runner.workdir import GWasmBinary, TaskBuilder


@pytest.fixture()
def binary() -> GWasmBinary:
    return GWasmBinary(js=b"// loader", wasm=b"\x00asm\x01\x00\x00\x00")


@pytest.fixture()
def stage_task(tmp_path: Path, binary: GWasmBinary) -> Callable[..., Task]:
    """Stage a task with one subtask per chunk inside ``tmp_path``."""

    def _stage(chunks: list[bytes], *, name: str = "echo", write_outputs: bool = False) -> Task:
        builder = TaskBuilder(tmp_path, binary).name(name)
        for chunk in chunks:
            builder.push_subtask_data(chunk)
        task = builder.build()
        if write_outputs:
            for subtask in task.options.iter_subtasks():
                for out_path in subtask.output_file_paths:
                    source = task.options.input_dir / subtask.name / "in.txt"
                    target = task.options.output_dir / subtask.name / out_path
                    target.write_bytes(b"out:" + source.read_bytes())
        return task

    return _stage
