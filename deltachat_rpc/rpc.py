"""Typed async facade over the core server's JSON-RPC methods.

Every method maps one-to-one onto a remote procedure of the same (snake_case)
name. Identifier parameters and results use the id types from
``deltachat_rpc.types``; nullable values are wrapped in ``Option``; records are
decoded into the pydantic snapshot models of ``deltachat_rpc.models``.

Usage Examples
--------------

    >>> async with IOTransport() as transport:
    ...     rpc = Rpc(transport)
    ...     acc_id = await rpc.add_account()
    ...     await rpc.set_config(acc_id, "displayname", some("Alice"))
    ...     name = await rpc.get_config(acc_id, "displayname")
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from deltachat_rpc.const import ChatVisibility, MsgType
from deltachat_rpc.events import Event, decode_event
from deltachat_rpc.models import (
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
from deltachat_rpc.transport.base import NO_TIMEOUT, RpcTransport, decode_result
from deltachat_rpc.types import (
    AccountId,
    ChatId,
    ContactId,
    MsgId,
    Option,
    OptionalStr,
    as_option,
    to_wire,
)
from deltachat_rpc.utils.logging import get_logger

logger = get_logger(__name__)


class Rpc:
    """Delta Chat RPC client, the root of the API."""

    def __init__(self, transport: RpcTransport, timeout: Optional[float] = None):
        self.transport = transport
        self.timeout = timeout

    def bind(self, transport: RpcTransport) -> "Rpc":
        """Return a facade over another transport with the same default timeout."""
        return Rpc(transport, self.timeout)

    def with_timeout(self, timeout: Optional[float]) -> "Rpc":
        """Return a facade over the same transport with another default timeout."""
        return Rpc(self.transport, timeout)

    async def _call(self, method: str, *params: Any) -> None:
        logger.debug(f"{method}{tuple(to_wire(list(params)))!r}")
        await self.transport.call(method, *params, timeout=self.timeout)

    async def _call_result(
        self, method: str, *params: Any, result_type: Any = None, timeout: Any = None
    ) -> Any:
        logger.debug(f"{method}{tuple(to_wire(list(params)))!r}")
        if timeout is None:
            timeout = self.timeout
        return await self.transport.call_result(
            method, *params, result_type=result_type, timeout=timeout
        )

    async def _call_option(
        self, method: str, *params: Any, result_type: Any = None
    ) -> Option[Any]:
        value = await self._call_result(method, *params)
        return Option.from_wire(
            value, (lambda v: decode_result(v, result_type)) if result_type else None
        )

    ## Misc top level functions

    async def check_email_validity(self, email: str) -> bool:
        """Check if an email address is valid."""
        return await self._call_result("check_email_validity", email, result_type=bool)

    async def get_system_info(self) -> Dict[str, str]:
        """Get general system info."""
        return await self._call_result("get_system_info", result_type=Dict[str, str])

    async def get_next_event(self) -> Tuple[AccountId, Event]:
        """Wait for the next event from the server.

        Blocks until an event is available, regardless of the facade timeout.
        Cancel the awaiting task to stop waiting.
        """
        record = await self._call_result("get_next_event", timeout=NO_TIMEOUT)
        return decode_event(record)

    async def set_stock_strings(self, translations: Mapping[int, str]) -> None:
        """Set stock translation strings, keyed by stock string id."""
        await self._call("set_stock_strings", dict(translations))

    async def maybe_network(self) -> None:
        """Indicate that the network likely came back or its conditions changed."""
        await self._call("maybe_network")

    ## Account management

    async def add_account(self) -> AccountId:
        """Create a new, unconfigured account."""
        return await self._call_result("add_account", result_type=AccountId)

    async def remove_account(self, account_id: AccountId) -> None:
        await self._call("remove_account", account_id)

    async def get_all_account_ids(self) -> List[AccountId]:
        return await self._call_result("get_all_account_ids", result_type=List[AccountId])

    async def select_account(self, account_id: AccountId) -> None:
        await self._call("select_account", account_id)

    async def get_selected_account_id(self) -> Option[AccountId]:
        return await self._call_option("get_selected_account_id", result_type=AccountId)

    async def get_account_file_size(self, account_id: AccountId) -> int:
        """Get the combined size in bytes of the account's database and blobs."""
        return await self._call_result("get_account_file_size", account_id, result_type=int)

    ## I/O control

    async def start_io_for_all_accounts(self) -> None:
        await self._call("start_io_for_all_accounts")

    async def stop_io_for_all_accounts(self) -> None:
        await self._call("stop_io_for_all_accounts")

    async def start_io(self, account_id: AccountId) -> None:
        """Start the account's I/O. The account must be configured."""
        await self._call("start_io", account_id)

    async def stop_io(self, account_id: AccountId) -> None:
        await self._call("stop_io", account_id)

    ## Configuration

    async def is_configured(self, account_id: AccountId) -> bool:
        return await self._call_result("is_configured", account_id, result_type=bool)

    async def get_info(self, account_id: AccountId) -> Dict[str, str]:
        """Get a map of diagnostic information about the account."""
        return await self._call_result("get_info", account_id, result_type=Dict[str, str])

    async def set_config(
        self, account_id: AccountId, key: str, value: OptionalStr
    ) -> None:
        """Set a configuration value; ``None`` resets the key to its default."""
        await self._call("set_config", account_id, key, as_option(value))

    async def batch_set_config(
        self, account_id: AccountId, config: Mapping[str, OptionalStr]
    ) -> None:
        """Set several configuration values in one call."""
        values = {key: as_option(value) for key, value in config.items()}
        await self._call("batch_set_config", account_id, values)

    async def set_config_from_qr(self, account_id: AccountId, qr_content: str) -> None:
        """Apply account settings encoded in a ``DCACCOUNT:`` or ``DCLOGIN:`` QR code."""
        await self._call("set_config_from_qr", account_id, qr_content)

    async def get_config(self, account_id: AccountId, key: str) -> Option[str]:
        return await self._call_option("get_config", account_id, key, result_type=str)

    async def batch_get_config(
        self, account_id: AccountId, keys: Sequence[str]
    ) -> Dict[str, Option[str]]:
        values = await self._call_result(
            "batch_get_config", account_id, list(keys), result_type=Dict[str, Optional[str]]
        )
        return {key: Option.from_wire(value) for key, value in values.items()}

    async def configure(self, account_id: AccountId) -> None:
        """Configure the account with the credentials set beforehand.

        Returns once configuration finished; progress is reported through
        ``ConfigureProgress`` events.
        """
        await self._call("configure", account_id)

    async def stop_ongoing_process(self, account_id: AccountId) -> None:
        """Signal an ongoing process such as configure() or a backup to stop."""
        await self._call("stop_ongoing_process", account_id)

    ## Autocrypt

    async def initiate_autocrypt_key_transfer(self, account_id: AccountId) -> str:
        """Send an Autocrypt Setup Message and return its setup code."""
        return await self._call_result(
            "initiate_autocrypt_key_transfer", account_id, result_type=str
        )

    async def continue_autocrypt_key_transfer(
        self, account_id: AccountId, msg_id: MsgId, setup_code: str
    ) -> None:
        await self._call("continue_autocrypt_key_transfer", account_id, msg_id, setup_code)

    ## Messages

    async def get_fresh_msgs(self, account_id: AccountId) -> List[MsgId]:
        """Get the ids of all fresh messages, most recent first.

        Messages of muted chats and of contact requests are not included.
        """
        return await self._call_result("get_fresh_msgs", account_id, result_type=List[MsgId])

    async def get_fresh_msg_cnt(self, account_id: AccountId, chat_id: ChatId) -> int:
        return await self._call_result(
            "get_fresh_msg_cnt", account_id, chat_id, result_type=int
        )

    async def get_next_msgs(self, account_id: AccountId) -> List[MsgId]:
        """Get the ids of messages to process, those newer than ``last_msg_id``.

        The caller advances ``last_msg_id`` once a message is processed,
        directly or through markseen_msgs().
        """
        return await self._call_result("get_next_msgs", account_id, result_type=List[MsgId])

    async def wait_next_msgs(self, account_id: AccountId) -> List[MsgId]:
        """Like get_next_msgs(), but wait until at least one message is available."""
        return await self._call_result(
            "wait_next_msgs", account_id, result_type=List[MsgId], timeout=NO_TIMEOUT
        )

    async def estimate_auto_deletion_count(
        self, account_id: AccountId, from_server: bool, seconds: int
    ) -> int:
        return await self._call_result(
            "estimate_auto_deletion_count", account_id, from_server, seconds, result_type=int
        )

    async def add_device_message(
        self, account_id: AccountId, label: str, msg: Union[Option[MsgData], MsgData, None]
    ) -> MsgId:
        """Add a message to the device chat.

        A non-empty ``label`` makes the message unique: adding another message
        with the same label is a no-op returning ``MsgId(0)``.
        """
        return await self._call_result(
            "add_device_message", account_id, label, as_option(msg), result_type=MsgId
        )

    async def markseen_msgs(self, account_id: AccountId, msg_ids: Sequence[MsgId]) -> None:
        """Mark messages as seen and advance ``last_msg_id`` past them."""
        await self._call("markseen_msgs", account_id, list(msg_ids))

    async def get_message_ids(
        self,
        account_id: AccountId,
        chat_id: ChatId,
        info_only: bool = False,
        add_daymarker: bool = False,
    ) -> List[MsgId]:
        return await self._call_result(
            "get_message_ids",
            account_id,
            chat_id,
            info_only,
            add_daymarker,
            result_type=List[MsgId],
        )

    async def get_message(self, account_id: AccountId, msg_id: MsgId) -> MsgSnapshot:
        return await self._call_result(
            "get_message", account_id, msg_id, result_type=MsgSnapshot
        )

    async def get_messages(
        self, account_id: AccountId, msg_ids: Sequence[MsgId]
    ) -> Dict[MsgId, Option[MsgSnapshot]]:
        """Load several messages at once; messages failing to load map to None."""
        results = await self._call_result(
            "get_messages", account_id, list(msg_ids), result_type=Dict[MsgId, Dict[str, Any]]
        )
        messages = {}
        for msg_id, result in results.items():
            if result.get("kind") == "loadingError":
                logger.debug(f"Message {msg_id} failed to load: {result.get('error')}")
                messages[msg_id] = Option.none()
            else:
                messages[msg_id] = Option.some(decode_result(result, MsgSnapshot))
        return messages

    async def get_message_html(self, account_id: AccountId, msg_id: MsgId) -> Option[str]:
        return await self._call_option("get_message_html", account_id, msg_id, result_type=str)

    async def get_message_info(self, account_id: AccountId, msg_id: MsgId) -> str:
        """Get a multi-line informational text about a message."""
        return await self._call_result(
            "get_message_info", account_id, msg_id, result_type=str
        )

    async def delete_messages(self, account_id: AccountId, msg_ids: Sequence[MsgId]) -> None:
        """Delete messages locally and on the IMAP server."""
        await self._call("delete_messages", account_id, list(msg_ids))

    async def download_full_message(self, account_id: AccountId, msg_id: MsgId) -> None:
        await self._call("download_full_message", account_id, msg_id)

    async def search_messages(
        self,
        account_id: AccountId,
        query: str,
        chat_id: Union[Option[ChatId], ChatId, None] = None,
    ) -> List[MsgId]:
        """Search messages of all chats, or of one chat if chat_id is given."""
        return await self._call_result(
            "search_messages", account_id, query, as_option(chat_id), result_type=List[MsgId]
        )

    async def message_ids_to_search_results(
        self, account_id: AccountId, msg_ids: Sequence[MsgId]
    ) -> Dict[MsgId, MsgSearchResult]:
        return await self._call_result(
            "message_ids_to_search_results",
            account_id,
            list(msg_ids),
            result_type=Dict[MsgId, MsgSearchResult],
        )

    async def forward_messages(
        self, account_id: AccountId, msg_ids: Sequence[MsgId], chat_id: ChatId
    ) -> None:
        await self._call("forward_messages", account_id, list(msg_ids), chat_id)

    async def resend_messages(self, account_id: AccountId, msg_ids: Sequence[MsgId]) -> None:
        """Resend messages that failed or that other members did not receive."""
        await self._call("resend_messages", account_id, list(msg_ids))

    async def send_sticker(self, account_id: AccountId, chat_id: ChatId, path: str) -> MsgId:
        return await self._call_result(
            "send_sticker", account_id, chat_id, path, result_type=MsgId
        )

    async def send_msg(self, account_id: AccountId, chat_id: ChatId, data: MsgData) -> MsgId:
        """Send a message and return its id."""
        return await self._call_result(
            "send_msg", account_id, chat_id, data, result_type=MsgId
        )

    async def can_send(self, account_id: AccountId, chat_id: ChatId) -> bool:
        return await self._call_result("can_send", account_id, chat_id, result_type=bool)

    ## Reactions

    async def send_reaction(
        self, account_id: AccountId, msg_id: MsgId, *reaction: str
    ) -> MsgId:
        """React to a message; no emoji at all removes the previous reaction."""
        return await self._call_result(
            "send_reaction", account_id, msg_id, list(reaction), result_type=MsgId
        )

    async def get_message_reactions(
        self, account_id: AccountId, msg_id: MsgId
    ) -> Option[Reactions]:
        return await self._call_option(
            "get_message_reactions", account_id, msg_id, result_type=Reactions
        )

    ## Chat list

    async def get_chatlist_entries(
        self,
        account_id: AccountId,
        list_flags: Union[Option[int], int, None] = None,
        query: OptionalStr = None,
        contact_id: Union[Option[ContactId], ContactId, None] = None,
    ) -> List[ChatId]:
        return await self._call_result(
            "get_chatlist_entries",
            account_id,
            as_option(list_flags),
            as_option(query),
            as_option(contact_id),
            result_type=List[ChatId],
        )

    async def get_chatlist_items_by_entries(
        self, account_id: AccountId, entries: Sequence[ChatId]
    ) -> Dict[ChatId, ChatListItem]:
        return await self._call_result(
            "get_chatlist_items_by_entries",
            account_id,
            list(entries),
            result_type=Dict[ChatId, ChatListItem],
        )

    ## Chats

    async def get_full_chat_by_id(
        self, account_id: AccountId, chat_id: ChatId
    ) -> FullChatSnapshot:
        return await self._call_result(
            "get_full_chat_by_id", account_id, chat_id, result_type=FullChatSnapshot
        )

    async def get_basic_chat_info(
        self, account_id: AccountId, chat_id: ChatId
    ) -> BasicChatSnapshot:
        """Get basic info about a chat; use get_full_chat_by_id() for more."""
        return await self._call_result(
            "get_basic_chat_info", account_id, chat_id, result_type=BasicChatSnapshot
        )

    async def accept_chat(self, account_id: AccountId, chat_id: ChatId) -> None:
        await self._call("accept_chat", account_id, chat_id)

    async def block_chat(self, account_id: AccountId, chat_id: ChatId) -> None:
        await self._call("block_chat", account_id, chat_id)

    async def delete_chat(self, account_id: AccountId, chat_id: ChatId) -> None:
        """Delete a chat and its messages on this device."""
        await self._call("delete_chat", account_id, chat_id)

    async def get_chat_encryption_info(self, account_id: AccountId, chat_id: ChatId) -> str:
        return await self._call_result(
            "get_chat_encryption_info", account_id, chat_id, result_type=str
        )

    async def get_chat_securejoin_qr_code(
        self, account_id: AccountId, chat_id: Union[Option[ChatId], ChatId, None] = None
    ) -> str:
        """Get the secure-join QR code text.

        For a group chat id this is the group invite; without a chat id it is
        the setup-contact code of the account.
        """
        return await self._call_result(
            "get_chat_securejoin_qr_code", account_id, as_option(chat_id), result_type=str
        )

    async def get_chat_securejoin_qr_code_svg(
        self, account_id: AccountId, chat_id: Union[Option[ChatId], ChatId, None] = None
    ) -> Tuple[str, str]:
        """Get the secure-join QR code text and its SVG rendering."""
        return await self._call_result(
            "get_chat_securejoin_qr_code_svg",
            account_id,
            as_option(chat_id),
            result_type=Tuple[str, str],
        )

    async def secure_join(self, account_id: AccountId, qr: str) -> ChatId:
        """Start the secure-join handshake from a scanned QR code."""
        return await self._call_result("secure_join", account_id, qr, result_type=ChatId)

    async def leave_group(self, account_id: AccountId, chat_id: ChatId) -> None:
        await self._call("leave_group", account_id, chat_id)

    async def remove_contact_from_chat(
        self, account_id: AccountId, chat_id: ChatId, contact_id: ContactId
    ) -> None:
        await self._call("remove_contact_from_chat", account_id, chat_id, contact_id)

    async def add_contact_to_chat(
        self, account_id: AccountId, chat_id: ChatId, contact_id: ContactId
    ) -> None:
        await self._call("add_contact_to_chat", account_id, chat_id, contact_id)

    async def get_chat_contacts(self, account_id: AccountId, chat_id: ChatId) -> List[ContactId]:
        return await self._call_result(
            "get_chat_contacts", account_id, chat_id, result_type=List[ContactId]
        )

    async def create_group_chat(
        self, account_id: AccountId, name: str, protected: bool = False
    ) -> ChatId:
        return await self._call_result(
            "create_group_chat", account_id, name, protected, result_type=ChatId
        )

    async def create_broadcast_list(self, account_id: AccountId) -> ChatId:
        return await self._call_result("create_broadcast_list", account_id, result_type=ChatId)

    async def set_chat_name(self, account_id: AccountId, chat_id: ChatId, name: str) -> None:
        await self._call("set_chat_name", account_id, chat_id, name)

    async def set_chat_profile_image(
        self, account_id: AccountId, chat_id: ChatId, path: OptionalStr
    ) -> None:
        """Set the group image; ``None`` removes it."""
        await self._call("set_chat_profile_image", account_id, chat_id, as_option(path))

    async def set_chat_visibility(
        self, account_id: AccountId, chat_id: ChatId, visibility: ChatVisibility
    ) -> None:
        await self._call("set_chat_visibility", account_id, chat_id, ChatVisibility(visibility))

    async def set_chat_ephemeral_timer(
        self, account_id: AccountId, chat_id: ChatId, timer: int
    ) -> None:
        """Set the ephemeral message timer in seconds, 0 disables it."""
        await self._call("set_chat_ephemeral_timer", account_id, chat_id, timer)

    async def get_chat_ephemeral_timer(self, account_id: AccountId, chat_id: ChatId) -> int:
        return await self._call_result(
            "get_chat_ephemeral_timer", account_id, chat_id, result_type=int
        )

    async def marknoticed_chat(self, account_id: AccountId, chat_id: ChatId) -> None:
        await self._call("marknoticed_chat", account_id, chat_id)

    async def get_first_unread_message_of_chat(
        self, account_id: AccountId, chat_id: ChatId
    ) -> Option[MsgId]:
        return await self._call_option(
            "get_first_unread_message_of_chat", account_id, chat_id, result_type=MsgId
        )

    async def get_chat_media(
        self,
        account_id: AccountId,
        chat_id: ChatId,
        msg_type: MsgType,
        or_msg_type2: Union[Option[MsgType], MsgType, None] = None,
        or_msg_type3: Union[Option[MsgType], MsgType, None] = None,
    ) -> List[MsgId]:
        """Get the ids of messages of up to three view types in a chat."""
        return await self._call_result(
            "get_chat_media",
            account_id,
            chat_id,
            MsgType(msg_type),
            as_option(or_msg_type2),
            as_option(or_msg_type3),
            result_type=List[MsgId],
        )

    ## Contacts

    async def get_contact(self, account_id: AccountId, contact_id: ContactId) -> ContactSnapshot:
        return await self._call_result(
            "get_contact", account_id, contact_id, result_type=ContactSnapshot
        )

    async def create_contact(self, account_id: AccountId, email: str, name: str = "") -> ContactId:
        """Add a contact, returning the id of the created or existing contact."""
        return await self._call_result(
            "create_contact", account_id, email, name, result_type=ContactId
        )

    async def import_vcard_contents(self, account_id: AccountId, vcard: str) -> List[ContactId]:
        """Import contacts from a vCard, returning their ids in vCard order."""
        return await self._call_result(
            "import_vcard_contents", account_id, vcard, result_type=List[ContactId]
        )

    async def make_vcard(self, account_id: AccountId, contacts: Sequence[ContactId]) -> str:
        return await self._call_result(
            "make_vcard", account_id, list(contacts), result_type=str
        )

    async def create_chat_by_contact_id(
        self, account_id: AccountId, contact_id: ContactId
    ) -> ChatId:
        """Return the id of the created or existing 1:1 chat with a contact."""
        return await self._call_result(
            "create_chat_by_contact_id", account_id, contact_id, result_type=ChatId
        )

    async def block_contact(self, account_id: AccountId, contact_id: ContactId) -> None:
        await self._call("block_contact", account_id, contact_id)

    async def unblock_contact(self, account_id: AccountId, contact_id: ContactId) -> None:
        await self._call("unblock_contact", account_id, contact_id)

    async def get_blocked_contacts(self, account_id: AccountId) -> List[ContactSnapshot]:
        return await self._call_result(
            "get_blocked_contacts", account_id, result_type=List[ContactSnapshot]
        )

    async def get_contact_ids(
        self, account_id: AccountId, list_flags: int = 0, query: OptionalStr = None
    ) -> List[ContactId]:
        return await self._call_result(
            "get_contact_ids",
            account_id,
            list_flags,
            as_option(query),
            result_type=List[ContactId],
        )

    async def delete_contact(self, account_id: AccountId, contact_id: ContactId) -> None:
        await self._call("delete_contact", account_id, contact_id)

    async def change_contact_name(
        self, account_id: AccountId, contact_id: ContactId, name: str
    ) -> None:
        await self._call("change_contact_name", account_id, contact_id, name)

    async def get_contact_encryption_info(
        self, account_id: AccountId, contact_id: ContactId
    ) -> str:
        return await self._call_result(
            "get_contact_encryption_info", account_id, contact_id, result_type=str
        )

    async def lookup_contact_id_by_addr(
        self, account_id: AccountId, addr: str
    ) -> Option[ContactId]:
        return await self._call_option(
            "lookup_contact_id_by_addr", account_id, addr, result_type=ContactId
        )

    async def get_chat_id_by_contact_id(
        self, account_id: AccountId, contact_id: ContactId
    ) -> Option[ChatId]:
        """Get the 1:1 chat with a contact, if one exists."""
        return await self._call_option(
            "get_chat_id_by_contact_id", account_id, contact_id, result_type=ChatId
        )

    ## Backup

    async def export_backup(
        self, account_id: AccountId, destination: str, passphrase: OptionalStr = None
    ) -> None:
        """Write a backup file into the destination directory."""
        await self._call("export_backup", account_id, destination, as_option(passphrase))

    async def import_backup(
        self, account_id: AccountId, path: str, passphrase: OptionalStr = None
    ) -> None:
        await self._call("import_backup", account_id, path, as_option(passphrase))

    async def provide_backup(self, account_id: AccountId) -> None:
        """Offer a backup for transfer to another device until it is fetched."""
        await self._call("provide_backup", account_id)

    async def get_backup_qr(self, account_id: AccountId) -> str:
        return await self._call_result("get_backup_qr", account_id, result_type=str)

    async def get_backup_qr_svg(self, account_id: AccountId) -> str:
        return await self._call_result("get_backup_qr_svg", account_id, result_type=str)

    async def get_backup(self, account_id: AccountId, qr_text: str) -> None:
        """Receive a backup offered by provide_backup() on another device."""
        await self._call("get_backup", account_id, qr_text)

    ## Connectivity

    async def get_connectivity(self, account_id: AccountId) -> int:
        """Get the connectivity level, compare with ``Connectivity`` values."""
        return await self._call_result("get_connectivity", account_id, result_type=int)

    async def get_connectivity_html(self, account_id: AccountId) -> str:
        return await self._call_result("get_connectivity_html", account_id, result_type=str)

    ## Webxdc

    async def send_webxdc_status_update(
        self, account_id: AccountId, msg_id: MsgId, update: str, description: str = ""
    ) -> None:
        await self._call("send_webxdc_status_update", account_id, msg_id, update, description)

    async def get_webxdc_status_updates(
        self, account_id: AccountId, msg_id: MsgId, last_known_serial: int = 0
    ) -> str:
        """Get the JSON-encoded status updates newer than last_known_serial."""
        return await self._call_result(
            "get_webxdc_status_updates", account_id, msg_id, last_known_serial, result_type=str
        )

    async def get_webxdc_info(self, account_id: AccountId, msg_id: MsgId) -> WebxdcMsgInfo:
        return await self._call_result(
            "get_webxdc_info", account_id, msg_id, result_type=WebxdcMsgInfo
        )

    async def get_webxdc_blob(self, account_id: AccountId, msg_id: MsgId, path: str) -> str:
        """Get a file of a webxdc archive, base64 encoded."""
        return await self._call_result(
            "get_webxdc_blob", account_id, msg_id, path, result_type=str
        )

    ## Drafts

    async def get_draft(self, account_id: AccountId, chat_id: ChatId) -> Option[MsgSnapshot]:
        return await self._call_option("get_draft", account_id, chat_id, result_type=MsgSnapshot)

    async def remove_draft(self, account_id: AccountId, chat_id: ChatId) -> None:
        await self._call("remove_draft", account_id, chat_id)

    async def misc_set_draft(
        self,
        account_id: AccountId,
        chat_id: ChatId,
        text: OptionalStr = None,
        file: OptionalStr = None,
        filename: OptionalStr = None,
        quoted_message_id: Union[Option[MsgId], MsgId, None] = None,
        view_type: Union[Option[MsgType], MsgType, None] = None,
    ) -> None:
        await self._call(
            "misc_set_draft",
            account_id,
            chat_id,
            as_option(text),
            as_option(file),
            as_option(filename),
            as_option(quoted_message_id),
            as_option(view_type),
        )

    async def misc_send_draft(self, account_id: AccountId, chat_id: ChatId) -> MsgId:
        """Send the chat's current draft."""
        return await self._call_result("misc_send_draft", account_id, chat_id, result_type=MsgId)

    async def misc_send_text_message(
        self, account_id: AccountId, chat_id: ChatId, text: str
    ) -> MsgId:
        """Send a plain text message and return its id."""
        return await self._call_result(
            "misc_send_text_message", account_id, chat_id, text, result_type=MsgId
        )


## Account manager


class DeltaChat:
    """Accounts manager over one Rpc facade."""

    def __init__(self, rpc: Rpc):
        self.rpc = rpc

    async def add_account(self) -> AccountId:
        return await self.rpc.add_account()

    async def accounts(self) -> List[AccountId]:
        """Return the ids of all available accounts."""
        return await self.rpc.get_all_account_ids()

    async def start_io(self) -> None:
        """Start the I/O of all accounts."""
        await self.rpc.start_io_for_all_accounts()

    async def stop_io(self) -> None:
        """Stop the I/O of all accounts."""
        await self.rpc.stop_io_for_all_accounts()

    async def maybe_network(self) -> None:
        await self.rpc.maybe_network()

    async def get_system_info(self) -> Dict[str, str]:
        return await self.rpc.get_system_info()

    async def set_translations(self, translations: Mapping[int, str]) -> None:
        await self.rpc.set_stock_strings(translations)


async def get_account(rpc: Rpc) -> AccountId:
    """Return the first existing account, creating one if there is none."""
    account_ids = await rpc.get_all_account_ids()
    if account_ids:
        return account_ids[0]

    account_id = await rpc.add_account()
    logger.info(f"Created account {account_id}")
    return account_id
