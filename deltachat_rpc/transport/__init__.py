"""JSON-RPC transports to the Delta Chat core server.

This module provides:
- RpcTransport: Protocol implemented by every transport
- IOTransport: Transport over the stdio of a ``deltachat-rpc-server`` child process

Usage Examples
--------------

    >>> from deltachat_rpc.transport import IOTransport
    >>>
    >>> async with IOTransport(accounts_dir="/tmp/accounts") as transport:
    ...     info = await transport.call_result("get_system_info")

Notes
-----
- One JSON object per line in both directions
- Responses are matched to requests by id, so calls may run concurrently
- Closing the transport cancels pending calls with TransportClosedError
"""

from .base import NO_TIMEOUT, RpcTransport, decode_message, decode_result, encode_request
from .process import HOST_STDERR, IOTransport

__all__ = [
    "RpcTransport",
    "IOTransport",
    "HOST_STDERR",
    "NO_TIMEOUT",
    # Framing
    "encode_request",
    "decode_message",
    "decode_result",
]
