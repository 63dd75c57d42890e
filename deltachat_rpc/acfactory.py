"""Factory of throwaway accounts for testing clients and bots.

Accounts are created against a test mail server (for example
https://github.com/deltachat/mail-server-tester) whose settings come from the
``test_server`` section of the client configuration.

Usage Examples
--------------

    >>> factory = AcFactory()
    >>> factory.tear_up()
    >>> async with factory.online_account() as (rpc, acc_id):
    ...     await rpc.set_config(acc_id, "displayname", "Alice")
    >>> factory.tear_down()
"""

from __future__ import annotations

import asyncio
import inspect
import shutil
import tempfile
import threading
import time
import zipfile
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator, Callable, Dict, Optional, Tuple, Type, Union

from deltachat_rpc.bot import Bot
from deltachat_rpc.const import CONFIG_ADDR, CONFIG_MAIL_PW, CONTACT_SELF, PROGRESS_DONE
from deltachat_rpc.events import (
    Event,
    IncomingMsgEvent,
    SecurejoinInviterProgressEvent,
    SecurejoinJoinerProgressEvent,
    event_chat_id,
)
from deltachat_rpc.models import MsgSnapshot
from deltachat_rpc.rpc import Rpc
from deltachat_rpc.transport import HOST_STDERR, IOTransport
from deltachat_rpc.types import AccountId, ChatId, OptionalStr
from deltachat_rpc.utils.config import ClientConfig, get_config
from deltachat_rpc.utils.errors import FactoryNotReadyError, FileSystemError, TransportError
from deltachat_rpc.utils.logging import async_log_call, get_logger

logger = get_logger(__name__)

WEBXDC_FILES = {
    "index.html": '<html><head><script src="webxdc.js"></script></head><body>test</body></html>',
    "manifest.toml": 'name = "TestApp"',
}


async def _maybe_await(result: Any) -> Any:
    if inspect.isawaitable(result):
        return await result
    return result


class AcFactory:
    """Provision disposable accounts, bots and server processes for tests."""

    def __init__(
        self,
        default_cfg: Optional[Dict[str, OptionalStr]] = None,
        debug: bool = False,
        config: Optional[ClientConfig] = None,
    ):
        self.default_cfg = default_cfg
        self.debug = debug
        self.config = config or get_config().config

        self._temp_dir: Optional[Path] = None
        self._start_time = 0
        self._serial = 0
        self._serial_lock = threading.Lock()
        self._ready = False

    ## Setup

    def tear_up(self) -> None:
        """Prepare the factory. Adjust ``default_cfg`` afterwards if needed."""
        if self.default_cfg is None:
            self.default_cfg = dict(self.config.test_server.as_account_config())

        self._start_time = int(time.time())
        try:
            self._temp_dir = Path(tempfile.mkdtemp(prefix="acfactory-"))
        except OSError as e:
            raise FileSystemError(f"Failed to create temporary directory: {str(e)}") from e

        self._ready = True
        logger.debug(f"AcFactory ready in {self._temp_dir}")

    def tear_down(self) -> None:
        """Remove the temporary files of every account created by this factory."""
        self._ensure_tear_up()
        shutil.rmtree(self._temp_dir, ignore_errors=True)
        self._ready = False

    def mkdir_temp(self) -> Path:
        """Create a new directory, removed again on tear_down()."""
        self._ensure_tear_up()
        return Path(tempfile.mkdtemp(dir=self._temp_dir))

    def _ensure_tear_up(self) -> None:
        if not self._ready:
            raise FactoryNotReadyError()

    def _next_serial(self) -> int:
        with self._serial_lock:
            self._serial += 1
            return self._serial

    ## Scoped resources

    @asynccontextmanager
    async def rpc(self) -> AsyncIterator[Rpc]:
        """A new server process with its own empty accounts directory."""
        self._ensure_tear_up()
        transport = IOTransport(
            accounts_dir=str(self.mkdir_temp() / "accounts"),
            stderr=HOST_STDERR if self.debug else None,
            config=self.config.transport,
        )
        await transport.open()
        try:
            yield Rpc(transport)
        finally:
            await transport.close()

    @asynccontextmanager
    async def unconfigured_account(self) -> AsyncIterator[Tuple[Rpc, AccountId]]:
        """An account with test credentials set, ready to be configured."""
        async with self.rpc() as rpc:
            acc_id = await rpc.add_account()
            serial = self._next_serial()

            if self.default_cfg:
                await rpc.batch_set_config(acc_id, self.default_cfg)
            await rpc.batch_set_config(
                acc_id,
                {
                    CONFIG_ADDR: f"acc{serial}.{self._start_time}@localhost",
                    CONFIG_MAIL_PW: f"password{serial}",
                },
            )

            yield rpc, acc_id

    @asynccontextmanager
    async def online_account(self) -> AsyncIterator[Tuple[Rpc, AccountId]]:
        """A configured account with I/O started."""
        async with self.unconfigured_account() as (rpc, acc_id):
            await rpc.configure(acc_id)
            await rpc.start_io(acc_id)
            yield rpc, acc_id

    @asynccontextmanager
    async def unconfigured_bot(self) -> AsyncIterator[Tuple[Bot, AccountId]]:
        async with self.unconfigured_account() as (rpc, acc_id):
            yield Bot(rpc), acc_id

    @asynccontextmanager
    async def online_bot(self) -> AsyncIterator[Tuple[Bot, AccountId]]:
        """A configured bot account; the bot is not running yet."""
        async with self.unconfigured_account() as (rpc, acc_id):
            addr = await rpc.get_config(acc_id, CONFIG_ADDR)
            password = await rpc.get_config(acc_id, CONFIG_MAIL_PW)
            bot = Bot(rpc)
            await bot.configure(acc_id, addr.unwrap(), password.unwrap())
            yield bot, acc_id

    @asynccontextmanager
    async def running_bot(self) -> AsyncIterator[Tuple[Bot, AccountId]]:
        """A configured bot whose run() loop is active; stopped on exit."""
        async with self.online_bot() as (bot, acc_id):
            task = asyncio.create_task(bot.run(), name="acfactory-bot")
            try:
                while not bot.is_running():
                    if task.done():
                        task.result()
                        raise TransportError("Bot stopped before it started running")
                    await asyncio.sleep(0.01)

                yield bot, acc_id

            except BaseException:
                # The bot's own failure must not replace the one raised here.
                bot.stop()
                await asyncio.gather(task, return_exceptions=True)
                raise

            bot.stop()
            await task

    ## Callback forms

    async def with_rpc(self, callback: Callable[[Rpc], Any]) -> Any:
        async with self.rpc() as rpc:
            return await _maybe_await(callback(rpc))

    async def with_unconfigured_account(
        self, callback: Callable[[Rpc, AccountId], Any]
    ) -> Any:
        async with self.unconfigured_account() as (rpc, acc_id):
            return await _maybe_await(callback(rpc, acc_id))

    async def with_online_account(self, callback: Callable[[Rpc, AccountId], Any]) -> Any:
        async with self.online_account() as (rpc, acc_id):
            return await _maybe_await(callback(rpc, acc_id))

    async def with_unconfigured_bot(self, callback: Callable[[Bot, AccountId], Any]) -> Any:
        async with self.unconfigured_bot() as (bot, acc_id):
            return await _maybe_await(callback(bot, acc_id))

    async def with_online_bot(self, callback: Callable[[Bot, AccountId], Any]) -> Any:
        async with self.online_bot() as (bot, acc_id):
            return await _maybe_await(callback(bot, acc_id))

    async def with_running_bot(self, callback: Callable[[Bot, AccountId], Any]) -> Any:
        async with self.running_bot() as (bot, acc_id):
            return await _maybe_await(callback(bot, acc_id))

    ## Event helpers

    async def wait_for_event(
        self, rpc: Rpc, acc_id: AccountId, event: Union[Type[Event], Event]
    ) -> Event:
        """Wait for an event of the given type in the given account.

        Events of other accounts sharing the server are discarded.
        """
        event_type = event if isinstance(event, type) else type(event)

        while True:
            other_acc_id, received = await rpc.get_next_event()
            if other_acc_id != acc_id:
                logger.warning(
                    f"Waiting for event in account {acc_id}, but got event for "
                    f"account {other_acc_id}, discarding {received!r}"
                )
                continue

            if type(received) is event_type:
                if self.debug:
                    logger.info(f"Got awaited event {event_type.kind}")
                return received

            if self.debug:
                logger.info(f"Waiting for event {event_type.kind}, got: {received.kind}")

    async def wait_for_event_in_chat(
        self,
        rpc: Rpc,
        acc_id: AccountId,
        chat_id: ChatId,
        event: Union[Type[Event], Event],
    ) -> Event:
        """Wait for an event of the given type that belongs to the given chat."""
        while True:
            received = await self.wait_for_event(rpc, acc_id, event)
            if event_chat_id(received) == chat_id:
                return received

    async def next_msg(self, rpc: Rpc, acc_id: AccountId) -> MsgSnapshot:
        """Wait for the next incoming message of the account."""
        event = await self.wait_for_event(rpc, acc_id, IncomingMsgEvent)
        return await rpc.get_message(acc_id, event.msg_id)

    @async_log_call
    async def introduce_each_other(
        self, rpc1: Rpc, acc_id1: AccountId, rpc2: Rpc, acc_id2: AccountId
    ) -> None:
        """Run the secure-join handshake between two accounts to completion."""
        qr = await rpc1.get_chat_securejoin_qr_code(acc_id1)
        await rpc2.secure_join(acc_id2, qr)

        while True:
            event = await self.wait_for_event(rpc1, acc_id1, SecurejoinInviterProgressEvent)
            if event.progress == PROGRESS_DONE:
                break

        while True:
            event = await self.wait_for_event(rpc2, acc_id2, SecurejoinJoinerProgressEvent)
            if event.progress == PROGRESS_DONE:
                break

    @async_log_call
    async def create_chat(
        self, rpc1: Rpc, acc_id1: AccountId, rpc2: Rpc, acc_id2: AccountId
    ) -> ChatId:
        """Create a 1:1 chat with the second account in the first account's chat list."""
        vcard = await rpc2.make_vcard(acc_id2, [CONTACT_SELF])
        contact_ids = await rpc1.import_vcard_contents(acc_id1, vcard)
        return await rpc1.create_chat_by_contact_id(acc_id1, contact_ids[0])

    ## Test files

    async def test_image(self) -> str:
        """Path to an image file usable in tests (the saved-messages avatar)."""
        async with self.online_account() as (rpc, acc_id):
            chat_id = await rpc.create_chat_by_contact_id(acc_id, CONTACT_SELF)
            chat = await rpc.get_basic_chat_info(acc_id, chat_id)
            return chat.profile_image or ""

    def test_webxdc(self) -> str:
        """Path to a minimal webxdc app archive."""
        path = self.mkdir_temp() / "test.xdc"
        try:
            with zipfile.ZipFile(path, "w") as archive:
                for name, body in WEBXDC_FILES.items():
                    archive.writestr(name, body)
        except OSError as e:
            raise FileSystemError(f"Failed to write {path}: {str(e)}") from e

        return str(path)
