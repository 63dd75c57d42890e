"""Typed events decoded from ``get_next_event`` records.

Every event kind known to the client is a frozen dataclass carrying only the
fields relevant to it. Kinds added by newer server versions decode to
``UnknownEvent`` so old clients keep working.

Usage Examples
--------------

Decode a record returned by ``get_next_event``:
    >>> acc_id, event = decode_event(
    ...     {"contextId": 1, "event": {"kind": "Info", "msg": "hello"}}
    ... )
    >>> event
    InfoEvent(msg='hello')

Switch on the variant:
    >>> if isinstance(event, IncomingMsgEvent):
    ...     print(event.chat_id, event.msg_id)
"""

from dataclasses import dataclass, fields
from functools import lru_cache
from typing import Any, ClassVar, Dict, Mapping, Tuple, Type

from pydantic import TypeAdapter, ValidationError
from pydantic.alias_generators import to_camel

from deltachat_rpc.types import AccountId, ChatId, ContactId, MsgId
from deltachat_rpc.utils.errors import ProtocolError


@lru_cache(maxsize=None)
def _field_adapter(field_type: Any) -> TypeAdapter:
    return TypeAdapter(field_type)


def _validate(field_type: Any, value: Any) -> Any:
    """Validate a wire value without coercion: 1.9, true or "1" are not ints."""
    return _field_adapter(field_type).validate_python(value, strict=True)


class Event:
    """Base class of all events."""

    kind: ClassVar[str] = ""

    @classmethod
    def from_wire(cls, data: Mapping[str, Any]) -> "Event":
        """Build the event from its wire object, ignoring undeclared fields.

        Null or missing fields keep their default. Raises ValidationError for
        values of the wrong type.
        """
        values = {}
        for f in fields(cls):
            raw = data.get(to_camel(f.name))
            if raw is None:
                continue
            values[f.name] = _validate(f.type, raw)
        return cls(**values)

    def to_wire(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"kind": self.kind}
        for f in fields(self):
            data[to_camel(f.name)] = getattr(self, f.name)
        return data


@dataclass(frozen=True)
class UnknownEvent(Event):
    """Event of a kind this client does not know, e.g. from a newer server."""

    kind: str = ""

    @classmethod
    def from_wire(cls, data: Mapping[str, Any]) -> "UnknownEvent":
        return cls(kind=str(data.get("kind", "")))

    def to_wire(self) -> Dict[str, Any]:
        return {"kind": self.kind}


## Log Events


@dataclass(frozen=True)
class InfoEvent(Event):
    """Informational string for the log, not meant for the end user."""

    kind: ClassVar[str] = "Info"
    msg: str = ""


@dataclass(frozen=True)
class WarningEvent(Event):
    """Warning string for the log, not meant for the end user."""

    kind: ClassVar[str] = "Warning"
    msg: str = ""


@dataclass(frozen=True)
class ErrorEvent(Event):
    """Error that should be reported to the end user, unobtrusively."""

    kind: ClassVar[str] = "Error"
    msg: str = ""


@dataclass(frozen=True)
class ErrorSelfNotInGroupEvent(Event):
    """An action failed because the user is not a member of the group."""

    kind: ClassVar[str] = "ErrorSelfNotInGroup"
    msg: str = ""


@dataclass(frozen=True)
class SmtpConnectedEvent(Event):
    kind: ClassVar[str] = "SmtpConnected"
    msg: str = ""


@dataclass(frozen=True)
class ImapConnectedEvent(Event):
    kind: ClassVar[str] = "ImapConnected"
    msg: str = ""


@dataclass(frozen=True)
class SmtpMessageSentEvent(Event):
    kind: ClassVar[str] = "SmtpMessageSent"
    msg: str = ""


@dataclass(frozen=True)
class ImapMessageDeletedEvent(Event):
    kind: ClassVar[str] = "ImapMessageDeleted"
    msg: str = ""


@dataclass(frozen=True)
class ImapMessageMovedEvent(Event):
    kind: ClassVar[str] = "ImapMessageMoved"
    msg: str = ""


## Blob Events


@dataclass(frozen=True)
class NewBlobFileEvent(Event):
    kind: ClassVar[str] = "NewBlobFile"
    file: str = ""


@dataclass(frozen=True)
class DeletedBlobFileEvent(Event):
    kind: ClassVar[str] = "DeletedBlobFile"
    file: str = ""


## Marker Events


@dataclass(frozen=True)
class ImapInboxIdleEvent(Event):
    """Emitted before going into IDLE on the inbox folder."""

    kind: ClassVar[str] = "ImapInboxIdle"


@dataclass(frozen=True)
class IncomingMsgBunchEvent(Event):
    """Downloading a bunch of messages just finished."""

    kind: ClassVar[str] = "IncomingMsgBunch"


@dataclass(frozen=True)
class ConnectivityChangedEvent(Event):
    kind: ClassVar[str] = "ConnectivityChanged"


@dataclass(frozen=True)
class SelfavatarChangedEvent(Event):
    kind: ClassVar[str] = "SelfavatarChanged"


@dataclass(frozen=True)
class AccountsBackgroundFetchDoneEvent(Event):
    """All events emitted during a background fetch have been delivered."""

    kind: ClassVar[str] = "AccountsBackgroundFetchDone"


## Message Events


@dataclass(frozen=True)
class MsgsChangedEvent(Event):
    """Messages or chats changed; ids are 0 when more than one is affected."""

    kind: ClassVar[str] = "MsgsChanged"
    chat_id: ChatId = ChatId(0)
    msg_id: MsgId = MsgId(0)


@dataclass(frozen=True)
class IncomingMsgEvent(Event):
    """There is a fresh message."""

    kind: ClassVar[str] = "IncomingMsg"
    chat_id: ChatId = ChatId(0)
    msg_id: MsgId = MsgId(0)


@dataclass(frozen=True)
class MsgDeliveredEvent(Event):
    kind: ClassVar[str] = "MsgDelivered"
    chat_id: ChatId = ChatId(0)
    msg_id: MsgId = MsgId(0)


@dataclass(frozen=True)
class MsgFailedEvent(Event):
    kind: ClassVar[str] = "MsgFailed"
    chat_id: ChatId = ChatId(0)
    msg_id: MsgId = MsgId(0)


@dataclass(frozen=True)
class MsgReadEvent(Event):
    kind: ClassVar[str] = "MsgRead"
    chat_id: ChatId = ChatId(0)
    msg_id: MsgId = MsgId(0)


@dataclass(frozen=True)
class MsgDeletedEvent(Event):
    kind: ClassVar[str] = "MsgDeleted"
    chat_id: ChatId = ChatId(0)
    msg_id: MsgId = MsgId(0)


@dataclass(frozen=True)
class ReactionsChangedEvent(Event):
    kind: ClassVar[str] = "ReactionsChanged"
    chat_id: ChatId = ChatId(0)
    msg_id: MsgId = MsgId(0)
    contact_id: ContactId = ContactId(0)


@dataclass(frozen=True)
class MsgsNoticedEvent(Event):
    kind: ClassVar[str] = "MsgsNoticed"
    chat_id: ChatId = ChatId(0)


## Chat Events


@dataclass(frozen=True)
class ChatModifiedEvent(Event):
    """Name, image, members or protection of a chat changed."""

    kind: ClassVar[str] = "ChatModified"
    chat_id: ChatId = ChatId(0)


@dataclass(frozen=True)
class ChatEphemeralTimerModifiedEvent(Event):
    kind: ClassVar[str] = "ChatEphemeralTimerModified"
    chat_id: ChatId = ChatId(0)
    timer: int = 0


## Contact Events


@dataclass(frozen=True)
class ContactsChangedEvent(Event):
    """Contact created, renamed, blocked or deleted; 0 for several contacts."""

    kind: ClassVar[str] = "ContactsChanged"
    contact_id: ContactId = ContactId(0)


@dataclass(frozen=True)
class LocationChangedEvent(Event):
    kind: ClassVar[str] = "LocationChanged"
    contact_id: ContactId = ContactId(0)


## Progress Events


@dataclass(frozen=True)
class ConfigureProgressEvent(Event):
    """Progress of configure(): 0 error, 1..999 permille, 1000 done."""

    kind: ClassVar[str] = "ConfigureProgress"
    progress: int = 0
    comment: str = ""


@dataclass(frozen=True)
class ImexProgressEvent(Event):
    """Progress of a backup import or export."""

    kind: ClassVar[str] = "ImexProgress"
    progress: int = 0


@dataclass(frozen=True)
class ImexFileWrittenEvent(Event):
    kind: ClassVar[str] = "ImexFileWritten"
    path: str = ""


@dataclass(frozen=True)
class SecurejoinInviterProgressEvent(Event):
    """Secure-join progress on the side that showed the QR code.

    300 request received, 600 contact verified, 800 member added,
    1000 protocol finished.
    """

    kind: ClassVar[str] = "SecurejoinInviterProgress"
    contact_id: ContactId = ContactId(0)
    progress: int = 0


@dataclass(frozen=True)
class SecurejoinJoinerProgressEvent(Event):
    """Secure-join progress on the side that scanned the QR code."""

    kind: ClassVar[str] = "SecurejoinJoinerProgress"
    contact_id: ContactId = ContactId(0)
    progress: int = 0


## Misc Events


@dataclass(frozen=True)
class ConfigSyncedEvent(Event):
    """A multi-device synced config value changed; the value is not included."""

    kind: ClassVar[str] = "ConfigSynced"
    key: str = ""


@dataclass(frozen=True)
class WebxdcStatusUpdateEvent(Event):
    kind: ClassVar[str] = "WebxdcStatusUpdate"
    msg_id: MsgId = MsgId(0)
    status_update_serial: int = 0


@dataclass(frozen=True)
class WebxdcInstanceDeletedEvent(Event):
    kind: ClassVar[str] = "WebxdcInstanceDeleted"
    msg_id: MsgId = MsgId(0)


## Decoder

EVENT_TYPES: Dict[str, Type[Event]] = {
    cls.kind: cls
    for cls in (
        InfoEvent,
        SmtpConnectedEvent,
        ImapConnectedEvent,
        SmtpMessageSentEvent,
        ImapMessageDeletedEvent,
        ImapMessageMovedEvent,
        ImapInboxIdleEvent,
        NewBlobFileEvent,
        DeletedBlobFileEvent,
        WarningEvent,
        ErrorEvent,
        ErrorSelfNotInGroupEvent,
        MsgsChangedEvent,
        ReactionsChangedEvent,
        IncomingMsgEvent,
        IncomingMsgBunchEvent,
        MsgsNoticedEvent,
        MsgDeliveredEvent,
        MsgFailedEvent,
        MsgReadEvent,
        MsgDeletedEvent,
        ChatModifiedEvent,
        ChatEphemeralTimerModifiedEvent,
        ContactsChangedEvent,
        LocationChangedEvent,
        ConfigureProgressEvent,
        ImexProgressEvent,
        ImexFileWrittenEvent,
        SecurejoinInviterProgressEvent,
        SecurejoinJoinerProgressEvent,
        ConnectivityChangedEvent,
        SelfavatarChangedEvent,
        ConfigSyncedEvent,
        WebxdcStatusUpdateEvent,
        WebxdcInstanceDeletedEvent,
        AccountsBackgroundFetchDoneEvent,
    )
}

CHAT_EVENTS = (
    MsgsChangedEvent,
    ReactionsChangedEvent,
    IncomingMsgEvent,
    MsgsNoticedEvent,
    MsgDeliveredEvent,
    MsgFailedEvent,
    MsgReadEvent,
    MsgDeletedEvent,
    ChatModifiedEvent,
    ChatEphemeralTimerModifiedEvent,
)


def event_from_wire(data: Mapping[str, Any]) -> Event:
    """Decode the inner ``event`` object of a record."""
    if not isinstance(data, Mapping):
        raise ProtocolError(f"Event data must be an object, got {type(data).__name__}")

    event_type = EVENT_TYPES.get(data.get("kind"))
    if event_type is None:
        return UnknownEvent.from_wire(data)

    try:
        return event_type.from_wire(data)
    except ValidationError as e:
        raise ProtocolError(
            f"Malformed {event_type.kind} event: {str(e)}", details={"event": dict(data)}
        ) from e


def decode_event(record: Mapping[str, Any]) -> Tuple[AccountId, Event]:
    """Decode a full ``get_next_event`` record into its account id and event."""
    if not isinstance(record, Mapping) or "event" not in record:
        raise ProtocolError("Event record is missing the 'event' object")

    try:
        account_id = _validate(AccountId, record.get("contextId") or 0)
    except ValidationError as e:
        raise ProtocolError(f"Invalid event contextId: {record.get('contextId')!r}") from e

    return account_id, event_from_wire(record["event"])


def event_chat_id(event: Event) -> ChatId:
    """Chat id of a chat-scoped event, 0 for any other event."""
    if isinstance(event, CHAT_EVENTS):
        return event.chat_id
    return ChatId(0)
