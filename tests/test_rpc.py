"""
Tests for the typed RPC facade

Tests cover:
- Method names and parameter encoding on the wire
- Optional parameters and Option results
- Snapshot model decoding
- Per-facade timeouts
- DeltaChat account manager and get_account()
"""
import pytest

from deltachat_rpc.const import ChatVisibility, MsgType
from deltachat_rpc.events import IncomingMsgEvent, UnknownEvent
from deltachat_rpc.models import MsgData
from deltachat_rpc.rpc import DeltaChat, Rpc, get_account
from deltachat_rpc.transport import NO_TIMEOUT
from deltachat_rpc.types import Option, none, some
from deltachat_rpc.utils.errors import ProtocolError, ResultDecodeError, RpcError

from .test_helpers import FakeTransport


def make_rpc(**results):
    transport = FakeTransport(results)
    return Rpc(transport), transport


class TestRpcBasics:
    """Tests for facade plumbing"""

    @pytest.mark.asyncio
    async def test_system_info(self):
        """Test get_system_info returns the server map"""
        rpc, transport = make_rpc(get_system_info={"deltachat_core_version": "v1.2.3"})
        info = await rpc.get_system_info()
        assert info["deltachat_core_version"] == "v1.2.3"
        assert transport.calls == [("get_system_info", [])]

    @pytest.mark.asyncio
    async def test_default_timeout_passed_to_transport(self):
        """Test the facade timeout is used for every call"""
        rpc, transport = make_rpc(get_all_account_ids=[1])
        await rpc.with_timeout(2.5).get_all_account_ids()
        await rpc.get_all_account_ids()
        assert transport.timeouts == [2.5, None]

    @pytest.mark.asyncio
    async def test_bind_keeps_timeout(self):
        """Test bind() creates a facade over another transport"""
        rpc = Rpc(FakeTransport(), timeout=3.0)
        other = FakeTransport({"add_account": 7})
        bound = rpc.bind(other)

        assert bound.transport is other
        assert bound.timeout == 3.0
        assert await bound.add_account() == 7

    @pytest.mark.asyncio
    async def test_server_error_propagates(self):
        """Test RpcError from the transport reaches the caller unchanged"""
        rpc, _ = make_rpc(configure=RpcError(code=-1, message="Missing email address"))
        with pytest.raises(RpcError, match="Missing email address"):
            await rpc.configure(1)

    @pytest.mark.asyncio
    async def test_result_shape_mismatch(self):
        """Test a malformed result raises ResultDecodeError"""
        rpc, _ = make_rpc(get_all_account_ids="not a list")
        with pytest.raises(ResultDecodeError):
            await rpc.get_all_account_ids()


class TestConfiguration:
    """Tests for configuration methods"""

    @pytest.mark.asyncio
    async def test_set_config_plain_value(self):
        """Test a plain string is sent as is"""
        rpc, transport = make_rpc()
        await rpc.set_config(1, "displayname", "Alice")
        assert transport.params_of("set_config") == [1, "displayname", "Alice"]

    @pytest.mark.asyncio
    async def test_set_config_none_resets(self):
        """Test None and none() are both sent as null"""
        rpc, transport = make_rpc()
        await rpc.set_config(1, "displayname", None)
        assert transport.params_of("set_config") == [1, "displayname", None]

        await rpc.set_config(1, "displayname", none())
        assert transport.params_of("set_config") == [1, "displayname", None]

    @pytest.mark.asyncio
    async def test_set_config_empty_string_is_not_null(self):
        """Test an empty string stays distinct from an absent value"""
        rpc, transport = make_rpc()
        await rpc.set_config(1, "displayname", some(""))
        assert transport.params_of("set_config") == [1, "displayname", ""]

    @pytest.mark.asyncio
    async def test_get_config_option(self):
        """Test null results become none() and values some()"""
        rpc, _ = make_rpc(get_config=None)
        assert (await rpc.get_config(1, "displayname")).is_none()

        rpc, _ = make_rpc(get_config="")
        value = await rpc.get_config(1, "displayname")
        assert value == some("")

    @pytest.mark.asyncio
    async def test_batch_set_config(self):
        """Test a mapping of optional values is sent as one object"""
        rpc, transport = make_rpc()
        await rpc.batch_set_config(1, {"addr": "a@example.org", "selfstatus": None})
        assert transport.params_of("batch_set_config") == [
            1,
            {"addr": "a@example.org", "selfstatus": None},
        ]

    @pytest.mark.asyncio
    async def test_batch_get_config(self):
        """Test each key maps to an Option"""
        rpc, _ = make_rpc(batch_get_config={"addr": "a@example.org", "selfstatus": None})
        values = await rpc.batch_get_config(1, ["addr", "selfstatus"])
        assert values == {"addr": some("a@example.org"), "selfstatus": none()}

    @pytest.mark.asyncio
    async def test_is_configured(self):
        """Test boolean results decode"""
        rpc, _ = make_rpc(is_configured=False)
        assert await rpc.is_configured(1) is False


class TestAccounts:
    """Tests for account management methods"""

    @pytest.mark.asyncio
    async def test_selected_account_none(self):
        """Test no selected account maps to none()"""
        rpc, _ = make_rpc(get_selected_account_id=None)
        assert (await rpc.get_selected_account_id()).is_none()

    @pytest.mark.asyncio
    async def test_selected_account_some(self):
        """Test a selected account id is wrapped in some()"""
        rpc, _ = make_rpc(get_selected_account_id=2)
        assert (await rpc.get_selected_account_id()).unwrap() == 2

    @pytest.mark.asyncio
    async def test_get_account_existing(self):
        """Test get_account() returns the first existing account"""
        rpc, transport = make_rpc(get_all_account_ids=[3, 4])
        assert await get_account(rpc) == 3
        assert "add_account" not in transport.methods()

    @pytest.mark.asyncio
    async def test_get_account_creates(self):
        """Test get_account() adds an account when none exists"""
        rpc, transport = make_rpc(get_all_account_ids=[], add_account=1)
        assert await get_account(rpc) == 1
        assert transport.methods() == ["get_all_account_ids", "add_account"]

    @pytest.mark.asyncio
    async def test_delta_chat_manager(self):
        """Test DeltaChat delegates to the facade"""
        rpc, transport = make_rpc(get_all_account_ids=[1, 2])
        dc = DeltaChat(rpc)

        assert await dc.accounts() == [1, 2]
        await dc.start_io()
        await dc.stop_io()
        await dc.set_translations({1: "No messages."})

        assert transport.methods() == [
            "get_all_account_ids",
            "start_io_for_all_accounts",
            "stop_io_for_all_accounts",
            "set_stock_strings",
        ]
        assert transport.params_of("set_stock_strings") == [{"1": "No messages."}]


class TestEvents:
    """Tests for get_next_event decoding"""

    @pytest.mark.asyncio
    async def test_next_event(self):
        """Test a record decodes into the account id and the typed event"""
        rpc, transport = make_rpc()
        transport.push_event(2, {"kind": "IncomingMsg", "chatId": 10, "msgId": 11})

        acc_id, event = await rpc.get_next_event()
        assert acc_id == 2
        assert event == IncomingMsgEvent(chat_id=10, msg_id=11)

    @pytest.mark.asyncio
    async def test_next_event_unknown_kind(self):
        """Test unknown kinds decode to UnknownEvent"""
        rpc, transport = make_rpc()
        transport.push_event(1, {"kind": "FancyNewKind", "data": 1})

        _, event = await rpc.get_next_event()
        assert isinstance(event, UnknownEvent)
        assert event.kind == "FancyNewKind"

    @pytest.mark.asyncio
    async def test_next_event_malformed(self):
        """Test a record without an event object raises ProtocolError"""
        rpc, transport = make_rpc()
        transport.push_record({"contextId": 1})
        with pytest.raises(ProtocolError):
            await rpc.get_next_event()

    @pytest.mark.asyncio
    async def test_long_polls_ignore_facade_timeout(self):
        """Test get_next_event and wait_next_msgs wait without a time limit"""
        transport = FakeTransport({"wait_next_msgs": [5], "get_next_msgs": []})
        rpc = Rpc(transport, timeout=0.5)
        transport.push_event(1, {"kind": "Info", "msg": "hello"})

        await rpc.get_next_event()
        await rpc.wait_next_msgs(1)
        await rpc.get_next_msgs(1)
        assert transport.timeouts == [NO_TIMEOUT, NO_TIMEOUT, 0.5]


class TestMessages:
    """Tests for message methods"""

    @pytest.mark.asyncio
    async def test_get_message(self):
        """Test a message record decodes into MsgSnapshot"""
        rpc, _ = make_rpc(get_message={
            "id": 10,
            "chatId": 12,
            "fromId": 13,
            "text": "hello",
            "viewType": "Text",
            "timestamp": 1700000000,
            "sender": {"id": 13, "address": "bob@example.org", "displayName": "Bob"},
            "someFutureField": True,
        })
        msg = await rpc.get_message(1, 10)

        assert msg.id == 10
        assert msg.chat_id == 12
        assert msg.text == "hello"
        assert msg.timestamp == 1700000000
        assert msg.sender.display_name == "Bob"

    @pytest.mark.asyncio
    async def test_get_messages_loading_error(self):
        """Test messages failing to load map to none()"""
        rpc, _ = make_rpc(get_messages={
            "10": {"id": 10, "chatId": 12, "fromId": 1, "text": "ok"},
            "11": {"kind": "loadingError", "error": "broken"},
        })
        messages = await rpc.get_messages(1, [10, 11])

        assert messages[10].unwrap().text == "ok"
        assert messages[11].is_none()

    @pytest.mark.asyncio
    async def test_get_message_ids_flags(self):
        """Test the flag parameters default to False"""
        rpc, transport = make_rpc(get_message_ids=[10, 11])
        assert await rpc.get_message_ids(1, 12) == [10, 11]
        assert transport.params_of("get_message_ids") == [1, 12, False, False]

    @pytest.mark.asyncio
    async def test_send_msg(self):
        """Test MsgData is sent in wire form without unset fields"""
        rpc, transport = make_rpc(send_msg=20)
        msg_id = await rpc.send_msg(1, 12, MsgData(text="hi", quoted_message_id=10))

        assert msg_id == 20
        assert transport.params_of("send_msg") == [1, 12, {"text": "hi", "quotedMessageId": 10}]

    @pytest.mark.asyncio
    async def test_add_device_message_without_msg(self):
        """Test a missing device message is sent as null"""
        rpc, transport = make_rpc(add_device_message=0)
        assert await rpc.add_device_message(1, "welcome", None) == 0
        assert transport.params_of("add_device_message") == [1, "welcome", None]

    @pytest.mark.asyncio
    async def test_send_reaction(self):
        """Test reactions are sent as a list of emojis"""
        rpc, transport = make_rpc(send_reaction=30)
        await rpc.send_reaction(1, 10, "👍", "🎉")
        assert transport.params_of("send_reaction") == [1, 10, ["👍", "🎉"]]

        await rpc.send_reaction(1, 10)
        assert transport.params_of("send_reaction") == [1, 10, []]

    @pytest.mark.asyncio
    async def test_get_message_reactions_none(self):
        """Test a message without reactions returns none()"""
        rpc, _ = make_rpc(get_message_reactions=None)
        assert (await rpc.get_message_reactions(1, 10)).is_none()

    @pytest.mark.asyncio
    async def test_get_message_reactions(self):
        """Test reactions decode into the Reactions model"""
        rpc, _ = make_rpc(get_message_reactions={
            "reactionsByContact": {"5": ["👍"]},
            "reactions": [{"emoji": "👍", "count": 1, "isFromSelf": False}],
        })
        reactions = (await rpc.get_message_reactions(1, 10)).unwrap()
        assert reactions.reactions[0].emoji == "👍"
        assert reactions.reactions_by_contact == {"5": ["👍"]}

    @pytest.mark.asyncio
    async def test_search_messages_chat_filter(self):
        """Test the optional chat filter is sent as value or null"""
        rpc, transport = make_rpc(search_messages=[])
        await rpc.search_messages(1, "hello")
        assert transport.params_of("search_messages") == [1, "hello", None]

        await rpc.search_messages(1, "hello", 12)
        assert transport.params_of("search_messages") == [1, "hello", 12]


class TestChats:
    """Tests for chat and contact methods"""

    @pytest.mark.asyncio
    async def test_securejoin_qr_without_chat(self):
        """Test the setup-contact code is requested with a null chat id"""
        rpc, transport = make_rpc(get_chat_securejoin_qr_code="OPENPGP4FPR:ABC")
        assert await rpc.get_chat_securejoin_qr_code(1) == "OPENPGP4FPR:ABC"
        assert transport.params_of("get_chat_securejoin_qr_code") == [1, None]

    @pytest.mark.asyncio
    async def test_securejoin_qr_svg(self):
        """Test the text and SVG pair decodes into a tuple"""
        rpc, _ = make_rpc(get_chat_securejoin_qr_code_svg=["OPENPGP4FPR:ABC", "<svg/>"])
        assert await rpc.get_chat_securejoin_qr_code_svg(1, 12) == ("OPENPGP4FPR:ABC", "<svg/>")

    @pytest.mark.asyncio
    async def test_create_group_chat(self):
        """Test group creation sends name and protection flag"""
        rpc, transport = make_rpc(create_group_chat=15)
        assert await rpc.create_group_chat(1, "Team") == 15
        assert transport.params_of("create_group_chat") == [1, "Team", False]

    @pytest.mark.asyncio
    async def test_set_chat_visibility(self):
        """Test the visibility enum is sent by value"""
        rpc, transport = make_rpc()
        await rpc.set_chat_visibility(1, 12, ChatVisibility.PINNED)
        assert transport.params_of("set_chat_visibility") == [1, 12, "Pinned"]

    @pytest.mark.asyncio
    async def test_get_chat_media(self):
        """Test missing extra view types are sent as null"""
        rpc, transport = make_rpc(get_chat_media=[10])
        await rpc.get_chat_media(1, 12, MsgType.IMAGE, MsgType.VIDEO)
        assert transport.params_of("get_chat_media") == [1, 12, "Image", "Video", None]

    @pytest.mark.asyncio
    async def test_get_full_chat(self):
        """Test a full chat record decodes with its contacts"""
        rpc, _ = make_rpc(get_full_chat_by_id={
            "id": 12,
            "name": "Bob",
            "contactIds": [13],
            "contacts": [{"id": 13, "address": "bob@example.org"}],
            "canSend": True,
        })
        chat = await rpc.get_full_chat_by_id(1, 12)
        assert chat.contact_ids == [13]
        assert chat.contacts[0].address == "bob@example.org"
        assert chat.can_send is True

    @pytest.mark.asyncio
    async def test_get_chatlist_items(self):
        """Test chat list items are keyed by chat id"""
        rpc, _ = make_rpc(get_chatlist_items_by_entries={
            "12": {"kind": "ChatListItem", "id": 12, "name": "Bob"},
        })
        items = await rpc.get_chatlist_items_by_entries(1, [12])
        assert items[12].name == "Bob"

    @pytest.mark.asyncio
    async def test_lookup_contact_missing(self):
        """Test an unknown address maps to none()"""
        rpc, _ = make_rpc(lookup_contact_id_by_addr=None)
        result = await rpc.lookup_contact_id_by_addr(1, "nobody@example.org")
        assert isinstance(result, Option)
        assert result.is_none()

    @pytest.mark.asyncio
    async def test_get_chat_id_by_contact_id(self):
        """Test an existing 1:1 chat is wrapped in some()"""
        rpc, _ = make_rpc(get_chat_id_by_contact_id=12)
        assert (await rpc.get_chat_id_by_contact_id(1, 13)) == some(12)

    @pytest.mark.asyncio
    async def test_contact_ids_query(self):
        """Test the optional query is sent as null by default"""
        rpc, transport = make_rpc(get_contact_ids=[10, 11])
        await rpc.get_contact_ids(1)
        assert transport.params_of("get_contact_ids") == [1, 0, None]

    @pytest.mark.asyncio
    async def test_misc_set_draft(self):
        """Test unset draft parts are sent as null"""
        rpc, transport = make_rpc()
        await rpc.misc_set_draft(1, 12, text="draft")
        assert transport.params_of("misc_set_draft") == [1, 12, "draft", None, None, None, None]

    @pytest.mark.asyncio
    async def test_export_backup_passphrase(self):
        """Test the optional passphrase is sent as null"""
        rpc, transport = make_rpc()
        await rpc.export_backup(1, "/tmp/backups")
        assert transport.params_of("export_backup") == [1, "/tmp/backups", None]
