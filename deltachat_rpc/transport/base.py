"""Transport abstraction and JSON-RPC framing helpers."""

from __future__ import annotations

import json
from functools import lru_cache
from typing import Any, Dict, Optional, Protocol, Sequence

from pydantic import BaseModel, TypeAdapter, ValidationError

from deltachat_rpc.types import to_wire
from deltachat_rpc.utils.errors import ProtocolError, ResultDecodeError, RpcError

JSONRPC_VERSION = "2.0"

# Pass as timeout= to wait without limit, ignoring the configured call_timeout.
NO_TIMEOUT: Any = object()


class RpcTransport(Protocol):
    """Protocol for objects able to carry JSON-RPC calls to the core server."""

    async def call(
        self, method: str, *params: Any, timeout: Optional[float] = None
    ) -> None:
        """Call a method whose result is not needed."""
        ...

    async def call_result(
        self,
        method: str,
        *params: Any,
        result_type: Any = None,
        timeout: Optional[float] = None,
    ) -> Any:
        """Call a method and return its result, decoded into result_type."""
        ...

    async def close(self) -> None:
        """Release the transport; pending calls are cancelled."""
        ...


## Framing


def encode_request(request_id: int, method: str, params: Sequence[Any]) -> bytes:
    """Serialise one request as a single newline-terminated JSON line."""
    request = {
        "jsonrpc": JSONRPC_VERSION,
        "id": request_id,
        "method": method,
        "params": to_wire(list(params)),
    }
    return json.dumps(request, ensure_ascii=False, separators=(",", ":")).encode() + b"\n"


def decode_message(line: bytes) -> Dict[str, Any]:
    """Parse one line received from the server."""
    try:
        message = json.loads(line.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ProtocolError(f"Invalid JSON from RPC server: {str(e)}") from e

    if not isinstance(message, dict):
        raise ProtocolError(
            f"JSON-RPC message must be an object, got {type(message).__name__}"
        )

    return message


def error_from_response(error: Any) -> RpcError:
    """Build an RpcError from the ``error`` member of a response."""
    if not isinstance(error, dict):
        return RpcError(message=str(error))

    return RpcError(
        code=int(error.get("code", 0) or 0),
        message=str(error.get("message") or RpcError.user_message),
        data=error.get("data"),
    )


## Result Decoding


@lru_cache(maxsize=256)
def _type_adapter(result_type: Any) -> TypeAdapter:
    return TypeAdapter(result_type)


def decode_result(value: Any, result_type: Any = None) -> Any:
    """Validate a JSON result into result_type.

    result_type may be a pydantic model, any type pydantic can validate
    (``List[MsgId]``, ``Dict[str, str]``...) or a plain callable.
    """
    if result_type is None:
        return value

    try:
        if isinstance(result_type, type) and issubclass(result_type, BaseModel):
            return result_type.model_validate(value)
        try:
            adapter = _type_adapter(result_type)
        except TypeError:
            return result_type(value)
        return adapter.validate_python(value)

    except ValidationError as e:
        raise ResultDecodeError(
            f"Result does not match {getattr(result_type, '__name__', result_type)}: "
            f"{e.error_count()} validation error(s)",
            details={"errors": e.errors(include_url=False)},
        ) from e
    except (TypeError, ValueError) as e:
        raise ResultDecodeError(f"Failed to decode result: {str(e)}") from e
