"""Workspace staging for gWasm tasks.

Layout created under the workspace::

    in/<name>.js
    in/<name>.wasm
    in/subtask_<i>/in.txt
    out/subtask_<i>/
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from gwasm_runner.contracts import Options, Subtask, Task
from gwasm_runner.timeout import Timeout

logger = logging.getLogger(__name__)

DEFAULT_TASK_NAME = "unknown"
DEFAULT_BID = 1.0
SUBTASK_INPUT_NAME = "in.txt"
SUBTASK_OUTPUT_NAME = "in.wav"


@dataclass(frozen=True, slots=True)
class GWasmBinary:
    """Emscripten-generated JavaScript loader and Wasm module."""

    js: bytes
    wasm: bytes

    @classmethod
    def from_files(cls, js_path: Path, wasm_path: Path) -> GWasmBinary:
        return cls(js=js_path.read_bytes(), wasm=wasm_path.read_bytes())


def subtask_name(index: int) -> str:
    return f"subtask_{index}"


class TaskBuilder:
    """Collects task parameters and subtask data, then stages them on disk.

    Each pushed data chunk becomes one subtask. :meth:`build` may be called
    once; the workspace ``in`` and ``out`` directories must not exist yet.
    """

    def __init__(self, workspace: Path, binary: GWasmBinary) -> None:
        self.binary = binary
        self.input_dir = Path(workspace) / "in"
        self.output_dir = Path(workspace) / "out"
        self._name: str | None = None
        self._bid: float | None = None
        self._timeout: Timeout | None = None
        self._subtask_timeout: Timeout | None = None
        self._subtask_data: list[bytes] = []

    def name(self, name: str) -> TaskBuilder:
        self._name = name
        return self

    def bid(self, bid: float) -> TaskBuilder:
        self._bid = bid
        return self

    def timeout(self, timeout: Timeout) -> TaskBuilder:
        self._timeout = timeout
        return self

    def subtask_timeout(self, subtask_timeout: Timeout) -> TaskBuilder:
        self._subtask_timeout = subtask_timeout
        return self

    def push_subtask_data(self, data: bytes | str) -> TaskBuilder:
        self._subtask_data.append(data.encode("utf-8") if isinstance(data, str) else bytes(data))
        return self

    def build(self) -> Task:
        name = self._name or DEFAULT_TASK_NAME
        bid = DEFAULT_BID if self._bid is None else self._bid
        timeout = self._timeout or Timeout.default()
        subtask_timeout = self._subtask_timeout or Timeout.default()
        js_name = f"{name}.js"
        wasm_name = f"{name}.wasm"

        self.input_dir.mkdir()
        (self.input_dir / js_name).write_bytes(self.binary.js)
        (self.input_dir / wasm_name).write_bytes(self.binary.wasm)
        self.output_dir.mkdir()

        subtasks: list[Subtask] = []
        for index, chunk in enumerate(self._subtask_data):
            s_name = subtask_name(index)
            subtask_input_dir = self.input_dir / s_name
            subtask_input_dir.mkdir()
            (self.output_dir / s_name).mkdir()
            (subtask_input_dir / SUBTASK_INPUT_NAME).write_bytes(chunk)
            subtasks.append(
                Subtask(
                    name=s_name,
                    exec_args=(SUBTASK_INPUT_NAME, SUBTASK_OUTPUT_NAME),
                    output_file_paths=(Path(SUBTASK_OUTPUT_NAME),),
                ),
            )

        logger.info(
            "Staged task %s with %d subtask(s) in %s",
            name,
            len(subtasks),
            self.input_dir.parent,
        )
        return Task(
            name=name,
            bid=bid,
            timeout=timeout,
            subtask_timeout=subtask_timeout,
            options=Options(
                js_name=js_name,
                wasm_name=wasm_name,
                input_dir=self.input_dir,
                output_dir=self.output_dir,
                subtasks=tuple(subtasks),
            ),
        )
