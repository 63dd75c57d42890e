"""Async client for the Delta Chat core server (``deltachat-rpc-server``).

This package provides:
- IOTransport: JSON-RPC over the stdio of the server child process
- Rpc: Typed wrappers for the server's remote procedures
- Event types: One dataclass per event kind, decoded from ``get_next_event``
- Bot: Event loop dispatching events and new messages to handlers
- AcFactory: Throwaway accounts against a test mail server

Usage Examples
--------------

Echo every new message:
    >>> from deltachat_rpc import Bot, IOTransport, Rpc
    >>>
    >>> async with IOTransport() as transport:
    ...     bot = Bot(Rpc(transport))
    ...
    ...     async def echo(bot, acc_id, msg_id):
    ...         msg = await bot.rpc.get_message(acc_id, msg_id)
    ...         await bot.rpc.misc_send_text_message(acc_id, msg.chat_id, msg.text)
    ...
    ...     bot.on_new_msg(echo)
    ...     await bot.run()

Notes
-----
- All state lives in the server; this package keeps none between runs
- Events unknown to this version decode to UnknownEvent

See Also
--------
- deltachat_rpc.events: Event catalogue
- deltachat_rpc.utils.errors: Error hierarchy
"""

from .bot import Bot
from .const import (
    CONTACT_DEVICE,
    CONTACT_INFO,
    CONTACT_LAST_SPECIAL,
    CONTACT_SELF,
    ChatType,
    ChatVisibility,
    Connectivity,
    DownloadState,
    MsgType,
    is_special_contact,
)
from .events import EVENT_TYPES, Event, UnknownEvent, decode_event, event_from_wire
from .models import (
    BasicChatSnapshot,
    ChatListItem,
    ContactSnapshot,
    FullChatSnapshot,
    MsgData,
    MsgSearchResult,
    MsgSnapshot,
    Reactions,
    WebxdcMsgInfo,
)
from .rpc import DeltaChat, Rpc, get_account
from .transport import IOTransport, RpcTransport
from .types import AccountId, ChatId, ContactId, MsgId, Option, Timestamp, none, some
from .utils.errors import (
    BotRunningError,
    DeltaChatError,
    ProtocolError,
    RpcCancelledError,
    RpcError,
    TransportError,
    TransportStartedError,
)

__version__ = "0.1.0"

__all__ = [
    # Transport and facade
    "IOTransport",
    "RpcTransport",
    "Rpc",
    "DeltaChat",
    "get_account",
    # Bot
    "Bot",
    # Types
    "AccountId",
    "ChatId",
    "ContactId",
    "MsgId",
    "Option",
    "some",
    "none",
    "Timestamp",
    # Events
    "Event",
    "UnknownEvent",
    "EVENT_TYPES",
    "decode_event",
    "event_from_wire",
    # Models
    "MsgSnapshot",
    "MsgData",
    "ContactSnapshot",
    "BasicChatSnapshot",
    "FullChatSnapshot",
    "ChatListItem",
    "MsgSearchResult",
    "Reactions",
    "WebxdcMsgInfo",
    # Constants
    "CONTACT_SELF",
    "CONTACT_INFO",
    "CONTACT_DEVICE",
    "CONTACT_LAST_SPECIAL",
    "ChatType",
    "ChatVisibility",
    "Connectivity",
    "DownloadState",
    "MsgType",
    "is_special_contact",
    # Errors
    "DeltaChatError",
    "TransportError",
    "TransportStartedError",
    "ProtocolError",
    "RpcError",
    "RpcCancelledError",
    "BotRunningError",
]
