from __future__ import annotations

from pathlib import Path

import allure
import pytest

from gwasm_runner.config import EndpointSettings, Settings, TaskDefaults
from gwasm_runner.errors import ConfigError, ZeroTimeoutError
from gwasm_runner.models import Net

pytestmark = [
    allure.epic("Configuration"),
    allure.feature("Environment Settings"),
]


def test_from_env_defaults(monkeypatch) -> None:
    for name in (
        "GWASM_RUNNER_NET",
        "GWASM_RUNNER_PORT",
        "GWASM_RUNNER_ADDRESS",
        "GWASM_RUNNER_POLL_INTERVAL_SECONDS",
        "GWASM_RUNNER_BID",
        "GWASM_RUNNER_TASK_TIMEOUT",
        "GWASM_RUNNER_SUBTASK_TIMEOUT",
        "GWASM_RUNNER_REQUEST_TIMEOUT_SECONDS",
    ):
        monkeypatch.delenv(name, raising=False)

    settings = Settings.from_env()

    assert settings.endpoint.net is Net.TESTNET
    assert settings.endpoint.address == "127.0.0.1"
    assert settings.endpoint.port == 61000
    assert settings.task.poll_interval_seconds == 2.0
    assert settings.task.bid == 1.0
    assert settings.task.timeout == "00:10:00"
    settings.validate()


def test_from_env_reads_overrides(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("GWASM_RUNNER_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("GWASM_RUNNER_NET", "MAINNET")
    monkeypatch.setenv("GWASM_RUNNER_PORT", "6000")
    monkeypatch.setenv("GWASM_RUNNER_POLL_INTERVAL_SECONDS", "0.5")
    monkeypatch.setenv("GWASM_RUNNER_SUBTASK_TIMEOUT", "00:01:00")

    settings = Settings.from_env()

    assert settings.endpoint.data_dir == tmp_path
    assert settings.endpoint.net is Net.MAINNET
    assert settings.endpoint.port == 6000
    assert settings.task.poll_interval_seconds == 0.5
    assert settings.task.subtask_timeout == "00:01:00"


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("GWASM_RUNNER_NET", "devnet"),
        ("GWASM_RUNNER_PORT", "sixty"),
        ("GWASM_RUNNER_BID", "cheap"),
    ],
)
def test_from_env_rejects_invalid_values(monkeypatch, name: str, value: str) -> None:
    monkeypatch.setenv(name, value)

    with pytest.raises(ConfigError, match=name):
        Settings.from_env()


@pytest.mark.parametrize(
    ("settings", "match"),
    [
        (Settings(endpoint=EndpointSettings(port=0)), "PORT"),
        (Settings(endpoint=EndpointSettings(request_timeout_seconds=0)), "REQUEST_TIMEOUT"),
        (Settings(endpoint=EndpointSettings(address=" ")), "ADDRESS"),
        (Settings(task=TaskDefaults(bid=0)), "BID"),
        (Settings(task=TaskDefaults(poll_interval_seconds=-1)), "POLL_INTERVAL"),
    ],
)
def test_validate_rejects_out_of_range_values(settings: Settings, match: str) -> None:
    with pytest.raises(ConfigError, match=match):
        settings.validate()


def test_validate_rejects_zero_task_timeout() -> None:
    with pytest.raises(ZeroTimeoutError):
        Settings(task=TaskDefaults(timeout="00:00:00")).validate()
