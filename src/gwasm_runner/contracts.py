"""Task descriptor types and the JSON manifest sent to the node."""

from __future__ import annotations

import json
from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from gwasm_runner.timeout import Timeout

TASK_TYPE = "wasm"


@dataclass(frozen=True, slots=True)
class Subtask:
    """Execution arguments and declared outputs of one subtask."""

    name: str
    exec_args: tuple[str, ...] = ()
    output_file_paths: tuple[Path, ...] = ()

    def to_manifest(self) -> dict[str, Any]:
        return {
            "exec_args": list(self.exec_args),
            "output_file_paths": [str(path) for path in self.output_file_paths],
        }


@dataclass(frozen=True, slots=True)
class Options:
    """Options block of the manifest: binary names, staging dirs and subtasks."""

    js_name: str
    wasm_name: str
    input_dir: Path
    output_dir: Path
    subtasks: tuple[Subtask, ...] = field(default_factory=tuple)

    def iter_subtasks(self) -> Iterator[Subtask]:
        """Subtasks in staging order."""

        return iter(self.subtasks)

    def to_manifest(self) -> dict[str, Any]:
        return {
            "js_name": self.js_name,
            "wasm_name": self.wasm_name,
            "input_dir": str(self.input_dir),
            "output_dir": str(self.output_dir),
            "subtasks": {subtask.name: subtask.to_manifest() for subtask in self.subtasks},
        }


@dataclass(frozen=True, slots=True)
class Task:
    """Staged gWasm task.

    Serializes to the manifest accepted by ``comp.task.create`` and remembers
    where every subtask's inputs and outputs live on disk. Built by
    :class:`gwasm_runner.workdir.TaskBuilder`.
    """

    name: str
    bid: float
    timeout: Timeout
    subtask_timeout: Timeout
    options: Options
    task_type: str = TASK_TYPE

    def to_manifest(self) -> dict[str, Any]:
        return {
            "type": self.task_type,
            "name": self.name,
            "bid": self.bid,
            "timeout": str(self.timeout),
            "subtask_timeout": str(self.subtask_timeout),
            "options": self.options.to_manifest(),
        }


def write_json(path: Path, payload: dict[str, Any]) -> None:
    """Persist JSON payload using deterministic formatting."""

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), "utf-8")


def load_json(path: Path) -> dict[str, Any]:
    """Load JSON document and validate top-level object type."""

    payload = json.loads(path.read_text("utf-8"))
    if not isinstance(payload, dict):
        raise TypeError(f"Expected JSON object in {path}")
    return payload


def write_task_manifest(path: Path, task: Task) -> None:
    write_json(path, task.to_manifest())


def read_task_manifest(path: Path) -> Task:
    """Load a manifest written by :func:`write_task_manifest`."""

    return task_from_manifest(load_json(path))


def task_from_manifest(raw: dict[str, Any]) -> Task:
    """Rebuild a :class:`Task` from its manifest payload, validating shape."""

    required = {"type", "name", "bid", "timeout", "subtask_timeout", "options"}
    missing = [key for key in sorted(required) if key not in raw]
    if missing:
        raise ValueError(f"Manifest missing required fields: {', '.join(missing)}")

    task_type = raw["type"]
    if task_type != TASK_TYPE:
        raise ValueError(f"Unsupported task type: {task_type!r}")
    name = raw["name"]
    if not isinstance(name, str) or not name.strip():
        raise ValueError("manifest.name must be a non-empty string")
    bid = raw["bid"]
    if isinstance(bid, bool) or not isinstance(bid, int | float):
        raise TypeError("manifest.bid must be a number")

    raw_options = raw["options"]
    if not isinstance(raw_options, dict):
        raise TypeError("manifest.options must be an object")
    for key in ("js_name", "wasm_name", "input_dir", "output_dir"):
        if not isinstance(raw_options.get(key), str):
            raise TypeError(f"manifest.options.{key} must be a string")
    raw_subtasks = raw_options.get("subtasks", {})
    if not isinstance(raw_subtasks, dict):
        raise TypeError("manifest.options.subtasks must be an object")

    subtasks: list[Subtask] = []
    for subtask_name, item in raw_subtasks.items():
        if not isinstance(item, dict):
            raise TypeError(f"manifest subtask {subtask_name!r} must be an object")
        exec_args = item.get("exec_args", [])
        output_paths = item.get("output_file_paths", [])
        if not isinstance(exec_args, list) or not all(isinstance(a, str) for a in exec_args):
            raise TypeError(f"manifest subtask {subtask_name!r}: exec_args must be strings")
        if not isinstance(output_paths, list) or not all(
            isinstance(p, str) for p in output_paths
        ):
            raise TypeError(
                f"manifest subtask {subtask_name!r}: output_file_paths must be strings",
            )
        subtasks.append(
            Subtask(
                name=subtask_name,
                exec_args=tuple(exec_args),
                output_file_paths=tuple(Path(p) for p in output_paths),
            ),
        )

    return Task(
        name=name,
        bid=float(bid),
        timeout=Timeout.parse(raw["timeout"]),
        subtask_timeout=Timeout.parse(raw["subtask_timeout"]),
        options=Options(
            js_name=raw_options["js_name"],
            wasm_name=raw_options["wasm_name"],
            input_dir=Path(raw_options["input_dir"]),
            output_dir=Path(raw_options["output_dir"]),
            subtasks=tuple(subtasks),
        ),
    )
