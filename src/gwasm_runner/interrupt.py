"""Single-fire interrupt signal, optionally wired to SIGINT/SIGTERM."""

from __future__ import annotations

import logging
import signal
import threading
from collections.abc import Iterator
from contextlib import contextmanager

logger = logging.getLogger(__name__)


class InterruptSignal:
    """Fires at most once per run and is never re-armed."""

    def __init__(self) -> None:
        self._event = threading.Event()
        self._reason: str | None = None

    @property
    def reason(self) -> str | None:
        return self._reason

    def fire(self, reason: str = "interrupt") -> bool:
        """Fire the signal; returns False if it had already fired."""

        if self._event.is_set():
            return False
        self._reason = reason
        self._event.set()
        return True

    def is_set(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: float | None = None) -> bool:
        return self._event.wait(timeout=timeout)

    @classmethod
    @contextmanager
    def from_signals(cls) -> Iterator[InterruptSignal]:
        """Yield a signal fired by SIGINT or SIGTERM while the block runs.

        Previous handlers are restored on exit. Outside the main thread no
        handlers can be installed and the yielded signal only fires manually.
        """

        interrupt = cls()
        if not hasattr(signal, "SIGINT"):
            yield interrupt
            return

        original_sigint = signal.getsignal(signal.SIGINT)
        original_sigterm = signal.getsignal(signal.SIGTERM)

        def _handler(signum: int, _: object | None) -> None:
            try:
                name = signal.Signals(signum).name
            except ValueError:
                name = str(signum)
            interrupt.fire(reason=name)

        try:
            signal.signal(signal.SIGINT, _handler)
            signal.signal(signal.SIGTERM, _handler)
        except ValueError:
            # Signal handlers can only be installed in main thread.
            logger.debug("Not in main thread; interrupt will not be wired to signals")
            installed = False
        else:
            installed = True
        if not installed:
            yield interrupt
            return

        try:
            yield interrupt
        finally:
            signal.signal(signal.SIGINT, original_sigint)
            signal.signal(signal.SIGTERM, original_sigterm)
