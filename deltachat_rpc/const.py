"""Well-known identifiers, flags and enumerations of the core server API."""

from enum import Enum

from deltachat_rpc.types import ChatId, ContactId, MsgId

## Special Contact Ids

CONTACT_SELF = ContactId(1)
CONTACT_INFO = ContactId(2)
CONTACT_DEVICE = ContactId(5)
CONTACT_LAST_SPECIAL = ContactId(9)

## Special Chat and Message Ids

CHAT_TRASH = ChatId(3)
CHAT_ARCHIVED_LINK = ChatId(6)
CHAT_ALLDONE_HINT = ChatId(7)
CHAT_LAST_SPECIAL = ChatId(9)

MSG_DAYMARKER = MsgId(9)
MSG_LAST_SPECIAL = MsgId(9)

## Chat List Flags

GCL_ARCHIVED_ONLY = 0x01
GCL_NO_SPECIALS = 0x02
GCL_ADD_ALLDONE_HINT = 0x04
GCL_FOR_FORWARDING = 0x08

## Contact List Flags

GCL_VERIFIED_ONLY = 0x01
GCL_ADD_SELF = 0x02

## Progress

PROGRESS_ERROR = 0
PROGRESS_DONE = 1000

## Config Keys

CONFIG_LAST_MSG_ID = "last_msg_id"
CONFIG_BOT = "bot"
CONFIG_ADDR = "addr"
CONFIG_MAIL_PW = "mail_pw"
UI_CONFIG_PREFIX = "ui."


class ChatVisibility(str, Enum):
    """Visibility of a chat in the chat list."""

    NORMAL = "Normal"
    ARCHIVED = "Archived"
    PINNED = "Pinned"


class MsgType(str, Enum):
    """View type of a message."""

    UNKNOWN = "Unknown"
    TEXT = "Text"
    IMAGE = "Image"
    GIF = "Gif"
    STICKER = "Sticker"
    AUDIO = "Audio"
    VOICE = "Voice"
    VIDEO = "Video"
    FILE = "File"
    VIDEOCHAT_INVITATION = "VideochatInvitation"
    WEBXDC = "Webxdc"
    VCARD = "Vcard"


class ChatType(int, Enum):
    """Type of a chat."""

    UNDEFINED = 0
    SINGLE = 100
    GROUP = 120
    MAILINGLIST = 140
    BROADCAST = 160


class Connectivity(int, Enum):
    """Connectivity levels reported by get_connectivity()."""

    NOT_CONNECTED = 1000
    CONNECTING = 2000
    WORKING = 3000
    CONNECTED = 4000


class DownloadState(str, Enum):
    """Download state of a message."""

    DONE = "Done"
    AVAILABLE = "Available"
    FAILURE = "Failure"
    UNDECIPHERABLE = "Undecipherable"
    IN_PROGRESS = "InProgress"


def is_special_contact(contact_id: int) -> bool:
    """Return True for system contacts such as the device or info contact."""
    return contact_id <= CONTACT_LAST_SPECIAL
