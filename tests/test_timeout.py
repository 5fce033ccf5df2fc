from __future__ import annotations

import allure
import pytest

from gwasm_runner.errors import ConfigError, TimeoutParseError, ZeroTimeoutError
from gwasm_runner.timeout import Timeout

pytestmark = [
    allure.epic("Task Staging"),
    allure.feature("Timeout Values"),
]


@pytest.mark.parametrize("raw", ["00:00:10", "00:10:00", "10:00:00", "23:59:59", "01:02:03"])
def test_timeout_text_round_trip(raw: str) -> None:
    timeout = Timeout.parse(raw)

    assert str(timeout) == raw
    assert Timeout.parse(str(timeout)) == timeout


def test_timeout_total_seconds() -> None:
    assert Timeout.parse("01:02:03").total_seconds == 3723
    assert Timeout.default().total_seconds == 600


def test_zero_timeout_is_rejected() -> None:
    with pytest.raises(ZeroTimeoutError):
        Timeout.parse("00:00:00")


@pytest.mark.parametrize(
    "raw",
    ["24:00:00", "10", "10:00", "", "ab:cd:ef", "00:00:10 ", "1:2:3", "0:10:00"],
)
def test_malformed_timeout_is_rejected(raw: str) -> None:
    with pytest.raises(TimeoutParseError) as exc_info:
        Timeout.parse(raw)

    assert isinstance(exc_info.value, ConfigError)
    assert not isinstance(exc_info.value, ZeroTimeoutError)
