"""Remote endpoint implementations."""

from gwasm_runner.endpoint.base import RemoteEndpoint
from gwasm_runner.endpoint.rpc import RpcEndpoint, connect

__all__ = [
    "RemoteEndpoint",
    "RpcEndpoint",
    "connect",
]
