"""Runtime configuration for talking to a Golem node."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from gwasm_runner.errors import ConfigError
from gwasm_runner.models import Net
from gwasm_runner.timeout import DEFAULT_TIMEOUT, Timeout


@dataclass(slots=True)
class EndpointSettings:
    """Where the node lives and how to reach it."""

    data_dir: Path = Path("~/.local/share/golem/default")
    net: Net = Net.TESTNET
    address: str = "127.0.0.1"
    port: int = 61000
    request_timeout_seconds: float = 30.0


@dataclass(slots=True)
class TaskDefaults:
    """Defaults applied to staged tasks and their tracking."""

    bid: float = 1.0
    timeout: str = DEFAULT_TIMEOUT
    subtask_timeout: str = DEFAULT_TIMEOUT
    poll_interval_seconds: float = 2.0


@dataclass(slots=True)
class Settings:
    """Application settings grouped by concern."""

    endpoint: EndpointSettings = field(default_factory=EndpointSettings)
    task: TaskDefaults = field(default_factory=TaskDefaults)

    @classmethod
    def from_env(cls) -> Settings:
        """Load settings from ``GWASM_RUNNER_*`` environment variables."""

        return cls(
            endpoint=EndpointSettings(
                data_dir=Path(
                    os.getenv("GWASM_RUNNER_DATA_DIR", "~/.local/share/golem/default"),
                ).expanduser(),
                net=_env_net("GWASM_RUNNER_NET", Net.TESTNET),
                address=os.getenv("GWASM_RUNNER_ADDRESS", "127.0.0.1"),
                port=_env_int("GWASM_RUNNER_PORT", 61000),
                request_timeout_seconds=_env_float(
                    "GWASM_RUNNER_REQUEST_TIMEOUT_SECONDS",
                    30.0,
                ),
            ),
            task=TaskDefaults(
                bid=_env_float("GWASM_RUNNER_BID", 1.0),
                timeout=os.getenv("GWASM_RUNNER_TASK_TIMEOUT", DEFAULT_TIMEOUT),
                subtask_timeout=os.getenv("GWASM_RUNNER_SUBTASK_TIMEOUT", DEFAULT_TIMEOUT),
                poll_interval_seconds=_env_float("GWASM_RUNNER_POLL_INTERVAL_SECONDS", 2.0),
            ),
        )

    def validate(self) -> None:
        """Raise :class:`ConfigError` if any value is out of range."""

        if not 0 < self.endpoint.port < 65536:
            raise ConfigError("GWASM_RUNNER_PORT must be between 1 and 65535.")
        if self.endpoint.request_timeout_seconds <= 0:
            raise ConfigError("GWASM_RUNNER_REQUEST_TIMEOUT_SECONDS must be > 0.")
        if not self.endpoint.address.strip():
            raise ConfigError("GWASM_RUNNER_ADDRESS must not be empty.")
        if self.task.bid <= 0:
            raise ConfigError("GWASM_RUNNER_BID must be > 0.")
        if self.task.poll_interval_seconds <= 0:
            raise ConfigError("GWASM_RUNNER_POLL_INTERVAL_SECONDS must be > 0.")
        Timeout.parse(self.task.timeout)
        Timeout.parse(self.task.subtask_timeout)


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError as error:
        raise ConfigError(f"Invalid integer value for {name}: {value!r}") from error


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return float(value)
    except ValueError as error:
        raise ConfigError(f"Invalid number value for {name}: {value!r}") from error


def _env_net(name: str, default: Net) -> Net:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return Net(value.strip().lower())
    except ValueError as error:
        choices = ", ".join(net.value for net in Net)
        raise ConfigError(f"Invalid value for {name}: {value!r} (expected {choices})") from error
