"""Error taxonomy for task submission, polling and output collection."""

from __future__ import annotations

from enum import Enum
from pathlib import Path


class FailureClass(str, Enum):
    """Normalized failure classes reported to callers."""

    TRANSPORT = "transport"
    PROTOCOL = "protocol"
    REMOTE_TASK_FAILURE = "remote_task_failure"
    USER_INTERRUPTED = "user_interrupted"
    ABORT_FAILED = "abort_failed"
    OUTPUT_UNAVAILABLE = "output_unavailable"
    CONFIG = "config"
    OBSERVER_FAILED = "observer_failed"


class GwasmError(RuntimeError):
    """Base class for every error raised by gwasm-runner."""

    failure_class: FailureClass = FailureClass.TRANSPORT
    is_cancellation = False


class TransportError(GwasmError):
    """Remote endpoint unreachable or a call to it failed."""

    failure_class = FailureClass.TRANSPORT


class RemoteQueryFailed(TransportError):
    """A task status query failed while polling."""

    def __init__(self, task_id: str, reason: str) -> None:
        super().__init__(f"Status query for task {task_id} failed: {reason}")
        self.task_id = task_id


class ProtocolError(GwasmError):
    """Remote returned an empty or malformed answer."""

    failure_class = FailureClass.PROTOCOL


class EmptyStatus(ProtocolError):
    def __init__(self, task_id: str) -> None:
        super().__init__(f"Remote returned no status for task {task_id}")
        self.task_id = task_id


class MissingProgress(ProtocolError):
    def __init__(self, task_id: str, status: str) -> None:
        super().__init__(f"Remote status {status!r} for task {task_id} carries no progress")
        self.task_id = task_id
        self.status = status


class RemoteTaskFailure(GwasmError):
    """Remote reported the task as aborted or timed out."""

    failure_class = FailureClass.REMOTE_TASK_FAILURE

    def __init__(self, task_id: str, message: str) -> None:
        super().__init__(message)
        self.task_id = task_id


class TaskAborted(RemoteTaskFailure):
    def __init__(self, task_id: str) -> None:
        super().__init__(task_id, f"Task {task_id} was aborted on the remote node")


class TaskTimedOut(RemoteTaskFailure):
    def __init__(self, task_id: str) -> None:
        super().__init__(task_id, f"Task {task_id} timed out on the remote node")


class UserInterrupted(GwasmError):
    """Local interrupt won the race and the remote task was aborted."""

    failure_class = FailureClass.USER_INTERRUPTED
    is_cancellation = True

    def __init__(self, task_id: str, reason: str = "interrupt") -> None:
        super().__init__(f"Task {task_id} cancelled by {reason}")
        self.task_id = task_id
        self.reason = reason


class AbortFailed(GwasmError):
    """Abort issued after an interrupt failed; remote task state is unknown."""

    failure_class = FailureClass.ABORT_FAILED

    def __init__(self, task_id: str, cause: GwasmError) -> None:
        super().__init__(f"Failed to abort task {task_id}: {cause}")
        self.task_id = task_id
        self.cause = cause


class OutputUnavailable(GwasmError):
    """A declared subtask output file could not be opened."""

    failure_class = FailureClass.OUTPUT_UNAVAILABLE

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"Output file {path} is unavailable: {reason}")
        self.path = path


class ObserverFailed(GwasmError):
    """A progress observer hook raised."""

    failure_class = FailureClass.OBSERVER_FAILED

    def __init__(self, hook: str, error: BaseException) -> None:
        super().__init__(f"Progress observer hook {hook}() failed: {error}")
        self.hook = hook


class ConfigError(GwasmError, ValueError):
    """Invalid configuration or parameter value."""

    failure_class = FailureClass.CONFIG


class TimeoutParseError(ConfigError):
    def __init__(self, value: str) -> None:
        super().__init__(f"Invalid timeout {value!r}: expected HH:MM:SS")
        self.value = value


class ZeroTimeoutError(ConfigError):
    def __init__(self) -> None:
        super().__init__("Timeout must be greater than 00:00:00")
