"""Domain models for remote task status and progress tracking."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Net(str, Enum):
    """Golem network a node is connected to."""

    MAINNET = "mainnet"
    TESTNET = "testnet"


class RemoteStatus(str, Enum):
    """Task lifecycle states reported by the remote node."""

    RUNNING = "running"
    FINISHED = "finished"
    ABORTED = "aborted"
    TIMED_OUT = "timeout"
    OTHER = "other"

    @property
    def is_terminal(self) -> bool:
        return self in {RemoteStatus.FINISHED, RemoteStatus.ABORTED, RemoteStatus.TIMED_OUT}


_RUNNING_STATES = frozenset(
    {
        "creating",
        "notstarted",
        "sending",
        "waiting",
        "starting",
        "computing",
        "restarted",
    },
)


def parse_remote_status(raw: str) -> RemoteStatus:
    """Map a node status string onto :class:`RemoteStatus`."""

    normalized = raw.strip().lower().replace("_", "").replace(" ", "")
    if normalized == "finished":
        return RemoteStatus.FINISHED
    if normalized == "aborted":
        return RemoteStatus.ABORTED
    if normalized in {"timeout", "timedout"}:
        return RemoteStatus.TIMED_OUT
    if normalized in _RUNNING_STATES:
        return RemoteStatus.RUNNING
    return RemoteStatus.OTHER


@dataclass(frozen=True, slots=True)
class TaskInfo:
    """Raw status record returned by ``get_task``."""

    status: RemoteStatus
    progress: float | None = None
    raw_status: str | None = None


@dataclass(frozen=True, slots=True)
class PollState:
    """Poller cursor; replaced on every tick, never mutated."""

    status: RemoteStatus | None = None
    progress: float = 0.0


class ProgressEvent(str, Enum):
    """Notifications delivered to a progress observer, in order."""

    START = "start"
    UPDATE = "update"
    STOP = "stop"
