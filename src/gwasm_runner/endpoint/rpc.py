"""JSON-RPC over HTTP endpoint for a Golem node."""

from __future__ import annotations

import itertools
import logging
import threading
from pathlib import Path
from typing import Any

import httpx

from gwasm_runner.errors import ConfigError, ProtocolError, TransportError
from gwasm_runner.models import Net, TaskInfo, parse_remote_status

logger = logging.getLogger(__name__)

DEFAULT_ADDRESS = "127.0.0.1"
DEFAULT_PORT = 61000
DEFAULT_TIMEOUT_SECONDS = 30.0
SECRET_FILE_NAME = "rpc_secret"

CREATE_TASK = "comp.task.create"
GET_TASK = "comp.task"
ABORT_TASK = "comp.task.abort"


class RpcEndpoint:
    """Thread-safe JSON-RPC 2.0 client for the node's ``comp.*`` procedures."""

    def __init__(
        self,
        *,
        base_url: str,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        secret: str | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        headers = {"Content-Type": "application/json"}
        if secret:
            headers["Authorization"] = f"Bearer {secret}"
        self.base_url = base_url
        self._client = httpx.Client(
            base_url=base_url,
            timeout=httpx.Timeout(timeout_seconds, connect=10.0),
            headers=headers,
            transport=transport,
        )
        self._ids = itertools.count(1)
        self._ids_lock = threading.Lock()

    def create_task(self, manifest: dict[str, Any]) -> str:
        result = self._call(CREATE_TASK, [manifest])
        # Some node versions answer [task_id, error] instead of a bare id.
        if isinstance(result, list) and result:
            task_id, *rest = result
            if rest and rest[0]:
                raise TransportError(f"Node rejected task: {rest[0]}")
            result = task_id
        if not isinstance(result, str) or not result:
            raise ProtocolError(f"{CREATE_TASK} returned no task id: {result!r}")
        return result

    def get_task(self, task_id: str) -> TaskInfo | None:
        result = self._call(GET_TASK, [task_id])
        if result is None:
            return None
        if not isinstance(result, dict):
            raise ProtocolError(f"{GET_TASK} returned {type(result).__name__}, expected object")
        raw_status = result.get("status")
        if not isinstance(raw_status, str):
            raise ProtocolError(f"{GET_TASK} result has no status string")
        raw_progress = result.get("progress")
        progress: float | None = None
        if raw_progress is not None:
            if isinstance(raw_progress, bool) or not isinstance(raw_progress, int | float):
                raise ProtocolError(f"{GET_TASK} progress is not a number: {raw_progress!r}")
            progress = float(raw_progress)
        return TaskInfo(
            status=parse_remote_status(raw_status),
            progress=progress,
            raw_status=raw_status,
        )

    def abort_task(self, task_id: str) -> None:
        self._call(ABORT_TASK, [task_id])

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> RpcEndpoint:
        return self

    def __exit__(self, *_: object) -> None:
        self.close()

    def _next_id(self) -> int:
        with self._ids_lock:
            return next(self._ids)

    def _call(self, method: str, params: list[Any]) -> Any:
        request_id = self._next_id()
        logger.debug("RPC -> %s id=%d", method, request_id)
        try:
            response = self._client.post(
                "",
                json={"jsonrpc": "2.0", "id": request_id, "method": method, "params": params},
            )
            response.raise_for_status()
        except httpx.HTTPError as error:
            raise TransportError(f"{method} failed: {error}") from error

        try:
            payload = response.json()
        except ValueError as error:
            raise ProtocolError(f"{method} returned invalid JSON") from error
        if not isinstance(payload, dict):
            raise ProtocolError(f"{method} returned a non-object JSON-RPC response")
        if payload.get("error"):
            rpc_error = payload["error"]
            message = rpc_error.get("message") if isinstance(rpc_error, dict) else rpc_error
            raise TransportError(f"{method} failed: {message}")
        return payload.get("result")


def connect(
    data_dir: Path,
    net: Net,
    address: str = DEFAULT_ADDRESS,
    port: int = DEFAULT_PORT,
    *,
    request_timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    transport: httpx.BaseTransport | None = None,
) -> RpcEndpoint:
    """Open an endpoint to the node whose data lives in ``data_dir``."""

    data_dir = Path(data_dir).expanduser()
    if not data_dir.is_dir():
        raise ConfigError(f"Golem data dir does not exist: {data_dir}")

    secret: str | None = None
    secret_path = data_dir / net.value / SECRET_FILE_NAME
    if secret_path.is_file():
        secret = secret_path.read_text("utf-8").strip() or None

    base_url = f"http://{address}:{port}/{net.value}"
    logger.info("Connecting to Golem node at %s", base_url)
    return RpcEndpoint(
        base_url=base_url,
        timeout_seconds=request_timeout_seconds,
        secret=secret,
        transport=transport,
    )
