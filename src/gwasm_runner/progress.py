"""Ordered delivery of progress notifications to a caller-supplied observer."""

from __future__ import annotations

import logging
import queue
import threading
from abc import ABC, abstractmethod
from concurrent.futures import Future
from typing import NamedTuple, Protocol

from gwasm_runner.errors import ObserverFailed
from gwasm_runner.models import ProgressEvent

logger = logging.getLogger(__name__)


class ProgressObserver(Protocol):
    """Receives ``start``, then ``update`` calls, then ``stop``."""

    def start(self) -> None: ...

    def update(self, progress: float) -> None: ...

    def stop(self) -> None: ...


class ProgressObserverBase(ABC):
    """Observer with no-op ``start``/``stop``; subclasses implement ``update``."""

    def start(self) -> None:
        return None

    @abstractmethod
    def update(self, progress: float) -> None: ...

    def stop(self) -> None:
        return None


class _Message(NamedTuple):
    event: ProgressEvent
    progress: float | None
    done: Future[None]


_CLOSE = object()


class ProgressNotifier:
    """Single worker thread that owns the observer.

    Construction runs the observer's ``start`` hook. :meth:`notify` and
    :meth:`finish` block until the worker has handled the message, so hooks
    never overlap and run in submission order. :meth:`finish` runs ``stop``
    exactly once; :meth:`close` shuts the worker down without it. Once a hook
    raises, every later call raises the same :class:`ObserverFailed`.
    """

    def __init__(self, observer: ProgressObserver, *, name: str = "gwasm-progress") -> None:
        self._observer = observer
        self._queue: queue.Queue[_Message | object] = queue.Queue()
        self._lock = threading.Lock()
        self._closed = False
        self._failed: ObserverFailed | None = None
        self._thread = threading.Thread(target=self._loop, daemon=True, name=name)
        self._thread.start()
        self._submit(ProgressEvent.START, None)

    @property
    def closed(self) -> bool:
        return self._closed

    def notify(self, progress: float) -> None:
        self._submit(ProgressEvent.UPDATE, progress)

    def finish(self) -> None:
        self._submit(ProgressEvent.STOP, None, closing=True)
        self._thread.join()

    def close(self, timeout: float | None = 5.0) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._queue.put(_CLOSE)
        self._thread.join(timeout=timeout)

    def _submit(
        self,
        event: ProgressEvent,
        progress: float | None,
        *,
        closing: bool = False,
    ) -> None:
        done: Future[None] = Future()
        with self._lock:
            if self._failed is not None:
                raise self._failed
            if self._closed:
                raise RuntimeError("Progress notifier is closed.")
            if closing:
                self._closed = True
            self._queue.put(_Message(event=event, progress=progress, done=done))
        done.result()

    def _loop(self) -> None:
        while True:
            message = self._queue.get()
            if message is _CLOSE:
                return
            assert isinstance(message, _Message)
            try:
                self._dispatch(message)
            except Exception as error:  # noqa: BLE001
                failure = ObserverFailed(message.event.value, error)
                failure.__cause__ = error
                logger.error("Progress observer failed in %s(): %s", message.event.value, error)
                with self._lock:
                    self._failed = failure
                    self._closed = True
                message.done.set_exception(failure)
                self._fail_pending(failure)
                return
            message.done.set_result(None)
            if message.event is ProgressEvent.STOP:
                return

    def _dispatch(self, message: _Message) -> None:
        if message.event is ProgressEvent.START:
            self._observer.start()
        elif message.event is ProgressEvent.UPDATE:
            assert message.progress is not None
            self._observer.update(message.progress)
        else:
            self._observer.stop()

    def _fail_pending(self, failure: ObserverFailed) -> None:
        while True:
            try:
                message = self._queue.get_nowait()
            except queue.Empty:
                return
            if isinstance(message, _Message):
                message.done.set_exception(failure)
