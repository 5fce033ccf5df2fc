"""Remote endpoint interface used by the task runner."""

from __future__ import annotations

from typing import Any, Protocol

from gwasm_runner.models import TaskInfo


class RemoteEndpoint(Protocol):
    """Connected handle to a Golem node.

    Implementations must allow ``get_task`` and ``abort_task`` to run
    concurrently from different threads.
    """

    def create_task(self, manifest: dict[str, Any]) -> str:
        """Submit a task manifest and return the task id assigned by the node."""

    def get_task(self, task_id: str) -> TaskInfo | None:
        """Return the current status record, or ``None`` if the node has none."""

    def abort_task(self, task_id: str) -> None:
        """Ask the node to abort the task."""

    def close(self) -> None:
        """Release the underlying connection."""
