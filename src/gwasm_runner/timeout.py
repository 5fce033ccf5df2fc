"""Task and subtask timeout values in ``HH:MM:SS`` form."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time

from gwasm_runner.errors import TimeoutParseError, ZeroTimeoutError

TIMEOUT_FORMAT = "%H:%M:%S"
DEFAULT_TIMEOUT = "00:10:00"


@dataclass(frozen=True, slots=True)
class Timeout:
    """Non-zero duration of at most ``23:59:59``.

    Only constructed through :meth:`parse`; ``str()`` gives back the same text.
    """

    value: time

    @classmethod
    def parse(cls, raw: str) -> Timeout:
        try:
            parsed = datetime.strptime(raw, TIMEOUT_FORMAT).time()
        except (TypeError, ValueError) as error:
            raise TimeoutParseError(str(raw)) from error
        if parsed.strftime(TIMEOUT_FORMAT) != raw:
            # strptime also accepts unpadded fields such as "1:2:3".
            raise TimeoutParseError(raw)
        if parsed == time(0, 0, 0):
            raise ZeroTimeoutError
        return cls(parsed)

    @classmethod
    def default(cls) -> Timeout:
        return cls.parse(DEFAULT_TIMEOUT)

    @property
    def total_seconds(self) -> int:
        return self.value.hour * 3600 + self.value.minute * 60 + self.value.second

    def __str__(self) -> str:
        return self.value.strftime(TIMEOUT_FORMAT)
