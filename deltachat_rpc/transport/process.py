"""JSON-RPC transport over the stdio of a ``deltachat-rpc-server`` child process.

One IOTransport owns one child process from open() to close(). Any number of
tasks may call into it concurrently: each request gets a fresh id, requests are
written one line at a time under a lock, and a single reader task hands each
response to the future waiting for its id.

Usage Examples
--------------

Open, call and close:
    >>> transport = IOTransport(accounts_dir="/tmp/accounts")
    >>> await transport.open()
    >>> info = await transport.call_result("get_system_info")
    >>> await transport.close()

As an async context manager:
    >>> async with IOTransport() as transport:
    ...     ids = await transport.call_result("get_all_account_ids")
"""

from __future__ import annotations

import asyncio
import itertools
import os
import sys
from typing import IO, Any, Dict, List, Optional, Sequence

from deltachat_rpc.transport.base import (
    decode_message,
    NO_TIMEOUT,
    decode_result,
    encode_request,
    error_from_response,
)
from deltachat_rpc.utils.config import TransportConfig, get_config
from deltachat_rpc.utils.errors import (
    DeltaChatError,
    ProtocolError,
    RpcTimeoutError,
    ServerNotFoundError,
    TransportClosedError,
    TransportError,
    TransportNotStartedError,
    TransportStartedError,
)
from deltachat_rpc.utils.logging import get_logger, log_event
from deltachat_rpc.utils.paths import ACCOUNTS_PATH_ENV

logger = get_logger(__name__)

# Forward stderr to whatever sys.stderr is when open() runs.
HOST_STDERR: Any = object()

# Responses can carry whole blobs, so lines are allowed to be large.
STREAM_LIMIT = 64 * 1024 * 1024


class IOTransport:
    """Delta Chat RPC transport using an external ``deltachat-rpc-server`` program."""

    def __init__(
        self,
        cmd: Optional[str] = None,
        args: Sequence[str] = (),
        accounts_dir: Optional[str] = None,
        stderr: Optional[IO[str]] = HOST_STDERR,
        config: Optional[TransportConfig] = None,
        check_startup: bool = True,
    ):
        self.config = config or get_config().config.transport
        self.cmd = cmd or self.config.server_path
        self.args = list(args)
        self.accounts_dir = accounts_dir or self.config.accounts_dir
        if stderr is HOST_STDERR and not self.config.forward_stderr:
            stderr = None
        self.stderr = stderr
        self.check_startup = check_startup

        self._process: Optional[asyncio.subprocess.Process] = None
        self._reader_task: Optional[asyncio.Task] = None
        self._stderr_task: Optional[asyncio.Task] = None
        self._pending: Dict[int, asyncio.Future] = {}
        self._ids = itertools.count(1)
        self._write_lock = asyncio.Lock()
        self._state_lock = asyncio.Lock()
        self._closed = False
        self._failure: Optional[DeltaChatError] = None

    ## Lifecycle

    @property
    def is_open(self) -> bool:
        """True between a successful open() and close(), while the child is alive."""
        return (
            self._process is not None
            and not self._closed
            and self._failure is None
            and self._process.returncode is None
        )

    @property
    def pid(self) -> Optional[int]:
        return self._process.pid if self._process else None

    async def open(self) -> None:
        """Spawn the server process and wire its stdio to the JSON-RPC codec."""

        async with self._state_lock:
            if self._process is not None and not self._closed:
                raise TransportStartedError()

            self._reset()
            env = None
            if self.accounts_dir:
                env = dict(os.environ)
                env[ACCOUNTS_PATH_ENV] = str(self.accounts_dir)

            stderr_target, stderr_writer = self._stderr_target()

            try:
                self._process = await asyncio.create_subprocess_exec(
                    self.cmd,
                    *self.args,
                    stdin=asyncio.subprocess.PIPE,
                    stdout=asyncio.subprocess.PIPE,
                    stderr=stderr_target,
                    env=env,
                    limit=STREAM_LIMIT,
                )
            except (FileNotFoundError, PermissionError) as e:
                raise ServerNotFoundError(
                    f"Cannot execute RPC server '{self.cmd}': {str(e)}",
                    details={"cmd": self.cmd},
                ) from e
            except OSError as e:
                raise TransportError(f"Failed to spawn RPC server: {str(e)}") from e

            self._reader_task = asyncio.create_task(
                self._read_loop(), name=f"rpc-reader-{self._process.pid}"
            )
            if stderr_writer is not None:
                self._stderr_task = asyncio.create_task(
                    self._pump_stderr(stderr_writer),
                    name=f"rpc-stderr-{self._process.pid}",
                )

            logger.info(f"RPC server started (PID: {self._process.pid})")
            log_event(
                "rpc_server_started",
                {"pid": self._process.pid, "cmd": self.cmd, "accounts_dir": self.accounts_dir},
            )

        if self.check_startup:
            try:
                await self.call_result("get_system_info", timeout=self.config.start_timeout)
            except TransportClosedError:
                raise
            except DeltaChatError as e:
                await self.close()
                raise TransportError(
                    f"RPC server failed before its first response: {e.message}"
                ) from e

    def _reset(self) -> None:
        self._process = None
        self._reader_task = None
        self._stderr_task = None
        self._pending = {}
        self._ids = itertools.count(1)
        self._closed = False
        self._failure = None

    def _stderr_target(self):
        """Return (subprocess stderr argument, writer to pump into or None)."""
        writer = sys.stderr if self.stderr is HOST_STDERR else self.stderr
        if writer is None:
            return asyncio.subprocess.DEVNULL, None

        try:
            writer.fileno()
            return writer, None
        except (AttributeError, OSError, ValueError):
            return asyncio.subprocess.PIPE, writer

    async def close(self) -> None:
        """Close stdin, cancel pending calls and reap the child. Idempotent."""

        async with self._state_lock:
            if self._process is None or self._closed:
                return
            self._closed = True
            process = self._process

            if process.stdin is not None and not process.stdin.is_closing():
                process.stdin.close()

            self._fail_pending(TransportClosedError())

            try:
                await asyncio.wait_for(process.wait(), timeout=self.config.close_timeout)
            except asyncio.TimeoutError:
                logger.warning(
                    f"RPC server (PID: {process.pid}) did not exit after stdin was closed, terminating"
                )
                await self._terminate(process)

            # Both streams hit EOF once the child is gone.
            tasks = [t for t in (self._reader_task, self._stderr_task) if t is not None]
            if tasks:
                _, pending = await asyncio.wait(tasks, timeout=self.config.close_timeout)
                for task in pending:
                    task.cancel()
                await asyncio.gather(*tasks, return_exceptions=True)

            logger.info(f"RPC server stopped (PID: {process.pid}, exit code: {process.returncode})")
            log_event(
                "rpc_server_stopped", {"pid": process.pid, "returncode": process.returncode}
            )

    async def _terminate(self, process: asyncio.subprocess.Process) -> None:
        try:
            process.terminate()
            await asyncio.wait_for(process.wait(), timeout=self.config.close_timeout)
        except ProcessLookupError:
            return
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()

    async def __aenter__(self) -> "IOTransport":
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc_value, exc_tb) -> None:
        await self.close()

    ## Calls

    async def call(
        self, method: str, *params: Any, timeout: Optional[float] = None
    ) -> None:
        """Call a method, discarding its result."""
        await self._request(method, params, timeout)

    async def call_result(
        self,
        method: str,
        *params: Any,
        result_type: Any = None,
        timeout: Optional[float] = None,
    ) -> Any:
        """Call a method and return its JSON result, decoded into result_type."""
        result = await self._request(method, params, timeout)
        return decode_result(result, result_type)

    def _ensure_usable(self) -> None:
        if self._process is None:
            raise TransportNotStartedError()
        if self._closed:
            raise TransportClosedError()
        if self._failure is not None:
            raise TransportError(
                f"RPC transport is broken: {self._failure.message}",
                details={"cause": self._failure.to_dict()},
            )

    async def _request(
        self, method: str, params: Sequence[Any], timeout: Optional[float]
    ) -> Any:
        self._ensure_usable()
        if timeout is NO_TIMEOUT:
            timeout = None
        elif timeout is None:
            timeout = self.config.call_timeout

        request_id = next(self._ids)
        line = encode_request(request_id, method, params)
        future: asyncio.Future = asyncio.get_running_loop().create_future()
        self._pending[request_id] = future

        try:
            logger.debug(f"-> [{request_id}] {method}")
            async with self._write_lock:
                self._ensure_usable()
                stdin = self._process.stdin
                stdin.write(line)
                await stdin.drain()

            if timeout is None:
                return await future
            try:
                return await asyncio.wait_for(future, timeout=timeout)
            except asyncio.TimeoutError as e:
                raise RpcTimeoutError(
                    f"Call to '{method}' timed out after {timeout}s",
                    details={"method": method, "id": request_id},
                ) from e

        except (ConnectionError, OSError) as e:
            raise TransportError(
                f"Failed to write request '{method}' to RPC server: {str(e)}"
            ) from e

        finally:
            self._pending.pop(request_id, None)

    ## Reader

    async def _read_loop(self) -> None:
        """Demultiplex responses from stdout until EOF or a fatal error."""

        stdout = self._process.stdout
        failure: DeltaChatError

        try:
            while True:
                line = await stdout.readline()
                if not line:
                    failure = TransportError("RPC server closed its stdout")
                    break
                if not line.strip():
                    continue
                self._dispatch(decode_message(line))

        except ProtocolError as e:
            logger.error(f"Protocol error, giving up on RPC server: {e.message}")
            failure = e
        except (OSError, ValueError) as e:
            failure = TransportError(f"Failed to read from RPC server: {str(e)}")

        if not self._closed:
            self._failure = failure
            logger.warning(f"RPC transport failed: {failure.message}")
        self._fail_pending(failure)

    def _dispatch(self, message: Dict[str, Any]) -> None:
        request_id = message.get("id")

        if request_id is None:
            if "method" in message:
                logger.debug(f"Ignoring server notification '{message.get('method')}'")
            elif "error" in message:
                logger.error(f"RPC server reported an error: {message['error']!r}")
            return

        future = self._pending.pop(request_id, None)
        if future is None or future.done():
            logger.debug(f"Discarding response for abandoned request {request_id}")
            return

        if "error" in message and message["error"] is not None:
            future.set_exception(error_from_response(message["error"]))
        else:
            future.set_result(message.get("result"))

    def _fail_pending(self, error: DeltaChatError) -> None:
        pending: List[asyncio.Future] = list(self._pending.values())
        self._pending.clear()
        for future in pending:
            if not future.done():
                future.set_exception(error)

    async def _pump_stderr(self, writer: IO[str]) -> None:
        stream = self._process.stderr
        while True:
            line = await stream.readline()
            if not line:
                return
            writer.write(line.decode("utf-8", errors="replace"))
            if hasattr(writer, "flush"):
                writer.flush()
