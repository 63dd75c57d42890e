"""Event dispatcher for bots, processing events of all accounts of one server.

A Bot pulls events with ``get_next_event`` in a producer task, hands them to a
single consumer that calls the handler registered for the event type, and
processes new messages by draining ``get_next_msgs`` and advancing the
account's ``last_msg_id`` cursor one message at a time.

Usage Examples
--------------

    >>> bot = Bot(Rpc(transport))
    >>> @bot.on(InfoEvent)
    ... def log_info(bot, acc_id, event):
    ...     print(event.msg)
    >>> async def echo(bot, acc_id, msg_id):
    ...     msg = await bot.rpc.get_message(acc_id, msg_id)
    ...     await bot.rpc.misc_send_text_message(acc_id, msg.chat_id, msg.text)
    >>> bot.on_new_msg(echo)
    >>> await bot.run()
"""

from __future__ import annotations

import asyncio
import inspect
from typing import Any, Awaitable, Callable, Dict, Optional, Type, Union

from deltachat_rpc.const import (
    CONFIG_ADDR,
    CONFIG_BOT,
    CONFIG_LAST_MSG_ID,
    CONFIG_MAIL_PW,
    UI_CONFIG_PREFIX,
)
from deltachat_rpc.events import Event, IncomingMsgEvent
from deltachat_rpc.rpc import Rpc
from deltachat_rpc.types import AccountId, MsgId, Option, OptionalStr
from deltachat_rpc.utils.errors import (
    BotRunningError,
    DeltaChatError,
    ProtocolError,
    ignore_errors,
)
from deltachat_rpc.utils.logging import async_log_call, get_logger, log_event

logger = get_logger(__name__)

EventHandler = Callable[["Bot", AccountId, Event], Union[None, Awaitable[None]]]
NewMsgHandler = Callable[["Bot", AccountId, MsgId], Union[None, Awaitable[None]]]

EventKey = Union[Type[Event], Event]

# Queued after the last event once the producer stops.
_END_OF_STREAM = object()


def _event_type(event: EventKey) -> Type[Event]:
    if isinstance(event, Event):
        return type(event)
    if isinstance(event, type) and issubclass(event, Event):
        return event
    raise TypeError(f"Expected an Event type or instance, got {event!r}")


async def _invoke(handler: Callable[..., Any], *args: Any) -> None:
    result = handler(*args)
    if inspect.isawaitable(result):
        await result


class Bot:
    """Delta Chat bot listening to the events of all accounts."""

    def __init__(self, rpc: Rpc):
        self.rpc = rpc
        self._handlers: Dict[Type[Event], EventHandler] = {}
        self._unhandled_handler: Optional[EventHandler] = None
        self._new_msg_handler: Optional[NewMsgHandler] = None

        self._stop_signal: Optional[asyncio.Event] = None
        self._queue: Optional[asyncio.Queue] = None
        self._producer: Optional[asyncio.Task] = None
        self._last_msg_ids: Dict[AccountId, int] = {}

    ## Handler registry

    def on(self, event: EventKey, handler: Optional[EventHandler] = None):
        """Set the handler for an event type, replacing any previous one.

        ``event`` is an Event subclass or an instance of it. Without a handler
        this returns a decorator.
        """
        event_type = _event_type(event)

        if handler is None:

            def decorator(func: EventHandler) -> EventHandler:
                self._handlers[event_type] = func
                return func

            return decorator

        self._handlers[event_type] = handler
        return handler

    def remove_event_handler(self, event: EventKey) -> None:
        self._handlers.pop(_event_type(event), None)

    def on_unhandled_event(self, handler: EventHandler) -> EventHandler:
        """Set the handler for events without a handler of their own."""
        self._unhandled_handler = handler
        return handler

    def remove_unhandled_event_handler(self) -> None:
        self._unhandled_handler = None

    def on_new_msg(self, handler: NewMsgHandler) -> NewMsgHandler:
        """Set the handler called once per new message."""
        self._new_msg_handler = handler
        return handler

    def remove_new_msg_handler(self) -> None:
        self._new_msg_handler = None

    ## Account helpers

    @async_log_call
    async def configure(self, acc_id: AccountId, addr: str, password: str) -> None:
        """Configure one of the bot's accounts with email credentials."""
        await self.rpc.batch_set_config(
            acc_id,
            {CONFIG_BOT: "1", CONFIG_ADDR: addr, CONFIG_MAIL_PW: password},
        )
        await self.rpc.configure(acc_id)

    async def set_ui_config(self, acc_id: AccountId, key: str, value: OptionalStr) -> None:
        """Set a custom ``ui.`` scoped configuration value of an account."""
        await self.rpc.set_config(acc_id, UI_CONFIG_PREFIX + key, value)

    async def get_ui_config(self, acc_id: AccountId, key: str) -> Option[str]:
        return await self.rpc.get_config(acc_id, UI_CONFIG_PREFIX + key)

    ## Run loop

    def is_running(self) -> bool:
        """True from the start of run() until stop() is called or run() returns."""
        return self._stop_signal is not None and not self._stop_signal.is_set()

    def stop(self) -> None:
        """Stop processing events. Safe to call from handlers."""
        if not self.is_running():
            return

        logger.info("Stopping bot")
        self._stop_signal.set()
        if self._producer is not None:
            self._producer.cancel()
        if self._queue is not None:
            self._queue.put_nowait(_END_OF_STREAM)

    async def run(self) -> None:
        """Process events until stop() is called or the transport fails.

        Raises BotRunningError if the bot is already running. A run that is
        still winding down after stop() does not block a new one. Exceptions
        raised by handlers propagate once the event producer has been stopped.
        """
        if self.is_running():
            raise BotRunningError()

        stop_signal = asyncio.Event()
        queue: asyncio.Queue = asyncio.Queue()
        producer: Optional[asyncio.Task] = None
        self._stop_signal = stop_signal
        self._queue = queue
        self._producer = None
        log_event("bot_started", "Bot started")

        try:
            await ignore_errors(
                self.rpc.start_io_for_all_accounts, context="Starting I/O"
            )

            account_ids = await ignore_errors(
                self.rpc.get_all_account_ids, context="Listing accounts", default=[]
            )
            for acc_id in account_ids:
                if stop_signal.is_set():
                    break
                configured = await ignore_errors(
                    self.rpc.is_configured, acc_id, context="Checking account", default=False
                )
                if configured:
                    await self._process_messages(acc_id, stop_signal)

            if not stop_signal.is_set():
                producer = asyncio.create_task(
                    self._produce_events(queue), name="bot-event-producer"
                )
                self._producer = producer

            while not stop_signal.is_set():
                item = await queue.get()
                if item is _END_OF_STREAM or stop_signal.is_set():
                    break

                acc_id, event = item
                await self._on_event(acc_id, event)
                if isinstance(event, IncomingMsgEvent) and not stop_signal.is_set():
                    await self._process_messages(acc_id, stop_signal)

        finally:
            stop_signal.set()
            if producer is not None:
                producer.cancel()
                await asyncio.gather(producer, return_exceptions=True)
            if self._stop_signal is stop_signal:
                self._producer = None
                self._queue = None
            log_event("bot_stopped", "Bot stopped")

    async def _produce_events(self, queue: asyncio.Queue) -> None:
        try:
            while True:
                try:
                    acc_id, event = await self.rpc.get_next_event()
                except ProtocolError as e:
                    logger.warning(f"Dropping undecodable event: {e.message}")
                    continue
                queue.put_nowait((acc_id, event))

        except DeltaChatError as e:
            logger.warning(f"Event stream ended: {e.message}")

        finally:
            queue.put_nowait(_END_OF_STREAM)

    async def _on_event(self, acc_id: AccountId, event: Event) -> None:
        handler = self._handlers.get(type(event), self._unhandled_handler)
        if handler is not None:
            await _invoke(handler, self, acc_id, event)

    async def _process_messages(self, acc_id: AccountId, stop_signal: asyncio.Event) -> None:
        """Hand every message newer than the cursor to the new-message handler."""

        try:
            msg_ids = await self.rpc.get_next_msgs(acc_id)
        except DeltaChatError as e:
            logger.warning(f"Failed to get new messages of account {acc_id}: {e.message}")
            return

        for msg_id in sorted(msg_ids):
            if stop_signal.is_set():
                return

            if msg_id <= self._last_msg_ids.get(acc_id, 0):
                logger.debug(f"Skipping already processed message {msg_id}")
                continue

            await ignore_errors(
                self.rpc.set_config,
                acc_id,
                CONFIG_LAST_MSG_ID,
                str(msg_id),
                context=f"Advancing {CONFIG_LAST_MSG_ID} of account {acc_id}",
            )
            self._last_msg_ids[acc_id] = msg_id

            if self._new_msg_handler is not None:
                await _invoke(self._new_msg_handler, self, acc_id, msg_id)
