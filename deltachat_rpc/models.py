"""Snapshot records returned by the core server.

The wire uses camelCase keys; every model accepts both the wire alias and the
Python field name, and ignores fields added by newer server versions.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from deltachat_rpc.types import ChatId, ContactId, MsgId, Timestamp


class WireModel(BaseModel):
    """Base model for camelCase JSON records."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class ContactSnapshot(WireModel):
    """A contact as seen from one account."""

    id: ContactId
    address: str = ""
    color: str = ""
    auth_name: str = ""
    status: str = ""
    display_name: str = ""
    name: str = ""
    profile_image: Optional[str] = None
    name_and_addr: str = ""
    is_blocked: bool = False
    is_verified: bool = False
    verifier_id: Optional[ContactId] = None
    last_seen: int = 0
    was_seen_recently: bool = False
    is_bot: bool = False


class Reaction(WireModel):
    emoji: str
    count: int = 0
    is_from_self: bool = False


class Reactions(WireModel):
    """Reactions to one message, by contact and aggregated by emoji."""

    reactions_by_contact: Dict[str, List[str]] = Field(default_factory=dict)
    reactions: List[Reaction] = Field(default_factory=list)


class MsgSnapshot(WireModel):
    """A message with the fields a client typically needs."""

    id: MsgId
    chat_id: ChatId
    from_id: ContactId
    quote: Optional[Dict[str, Any]] = None
    parent_id: Optional[MsgId] = None
    text: str = ""
    has_location: bool = False
    has_html: bool = False
    view_type: str = "Text"
    state: int = 0
    error: Optional[str] = None
    timestamp: Timestamp = Timestamp(0)
    sort_timestamp: Timestamp = Timestamp(0)
    received_timestamp: Timestamp = Timestamp(0)
    has_deviating_timestamp: bool = False
    subject: str = ""
    show_padlock: bool = False
    is_setupmessage: bool = False
    is_info: bool = False
    is_forwarded: bool = False
    is_bot: bool = False
    system_message_type: str = ""
    duration: int = 0
    dimensions_height: int = 0
    dimensions_width: int = 0
    videochat_type: Optional[int] = None
    videochat_url: Optional[str] = None
    override_sender_name: Optional[str] = None
    sender: Optional[ContactSnapshot] = None
    setup_code_begin: Optional[str] = None
    file: Optional[str] = None
    file_mime: Optional[str] = None
    file_bytes: int = 0
    file_name: Optional[str] = None
    webxdc_href: Optional[str] = None
    download_state: str = "Done"
    original_msg_id: Optional[MsgId] = None
    saved_message_id: Optional[MsgId] = None
    reactions: Optional[Reactions] = None
    vcard_contact: Optional[Dict[str, Any]] = None


class MsgData(WireModel):
    """Outgoing message draft for send_msg()."""

    text: Optional[str] = None
    html: Optional[str] = None
    viewtype: Optional[str] = None
    file: Optional[str] = None
    filename: Optional[str] = None
    location: Optional[List[float]] = None
    override_sender_name: Optional[str] = None
    quoted_message_id: Optional[MsgId] = None
    quoted_text: Optional[str] = None


class BasicChatSnapshot(WireModel):
    """Cheap subset of the chat fields."""

    id: ChatId
    name: str = ""
    is_protected: bool = False
    profile_image: Optional[str] = None
    archived: bool = False
    chat_type: int = 0
    is_unpromoted: bool = False
    is_self_talk: bool = False
    color: str = ""
    is_contact_request: bool = False
    is_device_talk: bool = False
    is_muted: bool = False


class FullChatSnapshot(BasicChatSnapshot):
    """All chat fields, including members."""

    contact_ids: List[ContactId] = Field(default_factory=list)
    contacts: List[ContactSnapshot] = Field(default_factory=list)
    fresh_message_counter: int = 0
    ephemeral_timer: int = 0
    can_send: bool = False
    was_seen_recently: bool = False
    mailing_list_address: Optional[str] = None
    self_in_group: bool = False


class ChatListItem(WireModel):
    """One chat list entry; ``kind`` is ChatListItem, ArchiveLink or Error."""

    kind: str = "ChatListItem"
    id: ChatId = ChatId(0)
    name: str = ""
    avatar_path: Optional[str] = None
    color: str = ""
    last_updated: Optional[Timestamp] = None
    summary_text1: str = ""
    summary_text2: str = ""
    summary_status: int = 0
    is_protected: bool = False
    is_group: bool = False
    fresh_message_counter: int = 0
    is_self_talk: bool = False
    is_device_talk: bool = False
    is_sending_location: bool = False
    is_self_in_group: bool = False
    is_archived: bool = False
    is_pinned: bool = False
    is_muted: bool = False
    is_contact_request: bool = False
    is_broadcast: bool = False
    dm_chat_contact: Optional[ContactId] = None
    was_seen_recently: bool = False
    last_message_type: Optional[str] = None
    last_message_id: Optional[MsgId] = None
    error: Optional[str] = None


class MsgSearchResult(WireModel):
    """Message search hit with author and chat details."""

    id: MsgId
    author_profile_image: Optional[str] = None
    author_name: str = ""
    author_color: str = ""
    author_id: ContactId = ContactId(0)
    chat_profile_image: Optional[str] = None
    chat_color: str = ""
    chat_name: str = ""
    chat_type: int = 0
    is_chat_protected: bool = False
    is_chat_contact_request: bool = False
    is_chat_archived: bool = False
    message: str = ""
    timestamp: Timestamp = Timestamp(0)


class WebxdcMsgInfo(WireModel):
    """Manifest information of a webxdc app message."""

    name: str = ""
    icon: str = ""
    document: Optional[str] = None
    summary: Optional[str] = None
    source_code_url: Optional[str] = None
    internet_access: bool = False
    self_addr: str = ""
    send_update_interval: int = 0
    send_update_max_size: int = 0
