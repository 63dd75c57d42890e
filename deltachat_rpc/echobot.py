"""Echo bot: replies to every message with the same text.

Run with an account invite the first time, the account is kept in the
accounts directory afterwards:

    deltachat-echobot DCACCOUNT:https://nine.testrun.org/new
    deltachat-echobot --addr bot@example.org --password secret
    deltachat-echobot
"""

import argparse
import asyncio
import sys
from typing import List, Optional

from deltachat_rpc.bot import Bot
from deltachat_rpc.const import CONFIG_ADDR, CONFIG_BOT, CONTACT_LAST_SPECIAL
from deltachat_rpc.events import ErrorEvent, Event, InfoEvent, WarningEvent
from deltachat_rpc.rpc import Rpc, get_account
from deltachat_rpc.transport import IOTransport
from deltachat_rpc.types import AccountId, MsgId
from deltachat_rpc.utils.config import get_config
from deltachat_rpc.utils.console import print_failure, print_invite, print_setup_step
from deltachat_rpc.utils.errors import ConfigurationError, DeltaChatError, ErrorHandler
from deltachat_rpc.utils.logging import get_logger, init_logging

logger = get_logger(__name__)


## Argument Parsing

def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser of the echo bot."""

    parser = argparse.ArgumentParser(
        prog="deltachat-echobot",
        description="Delta Chat bot echoing back every text message it receives",
    )
    parser.add_argument(
        "qr",
        nargs="?",
        help="DCACCOUNT: or DCLOGIN: code used to set up the account on first run"
    )

    account_group = parser.add_argument_group("account", "Configure the bot with credentials")
    account_group.add_argument(
        "--addr",
        help="Email address of the bot account"
    )
    account_group.add_argument(
        "--password",
        help="Password of the bot account"
    )

    server_group = parser.add_argument_group("server", "Core server process")
    server_group.add_argument(
        "--accounts-dir",
        help="Directory holding the accounts (default: DC_ACCOUNTS_PATH or the server default)"
    )
    server_group.add_argument(
        "--server",
        help="Path of the deltachat-rpc-server binary"
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Console log level (default: from configuration)"
    )

    return parser


## Handlers

def log_event(bot: Bot, acc_id: AccountId, event: Event) -> None:
    """Forward core log events to the logger."""

    if isinstance(event, InfoEvent):
        logger.info(event.msg)
    elif isinstance(event, WarningEvent):
        logger.warning(event.msg)
    elif isinstance(event, ErrorEvent):
        logger.error(event.msg)


async def echo(bot: Bot, acc_id: AccountId, msg_id: MsgId) -> None:
    """Send the text of a message back to its chat."""

    msg = await bot.rpc.get_message(acc_id, msg_id)
    if msg.from_id > CONTACT_LAST_SPECIAL and msg.text:
        await bot.rpc.misc_send_text_message(acc_id, msg.chat_id, msg.text)


def setup_handlers(bot: Bot) -> None:
    for event_type in (InfoEvent, WarningEvent, ErrorEvent):
        bot.on(event_type, log_event)
    bot.on_new_msg(echo)


## Bot Lifecycle

async def run_echobot(args: argparse.Namespace) -> int:
    """Start the server, configure the account if needed and run the bot."""

    transport_config = get_config().config.transport
    transport = IOTransport(
        cmd=args.server,
        accounts_dir=args.accounts_dir,
        config=transport_config,
    )

    async with transport:
        rpc = Rpc(transport)
        bot = Bot(rpc)
        setup_handlers(bot)

        sysinfo = await rpc.get_system_info()
        logger.info(f"Running deltachat core {sysinfo.get('deltachat_core_version', '?')}")

        acc_id = await get_account(rpc)

        if not await rpc.is_configured(acc_id):
            if args.addr and args.password:
                await print_setup_step("Bot not configured, configuring with credentials...")
                await bot.configure(acc_id, args.addr, args.password)
            elif args.qr:
                await print_setup_step("Bot not configured, configuring from QR code...")
                await rpc.set_config_from_qr(acc_id, args.qr)
                await rpc.set_config(acc_id, CONFIG_BOT, "1")
                await rpc.configure(acc_id)
            else:
                raise ConfigurationError(
                    "Bot not configured: pass a QR code or --addr and --password"
                )

        addr = await rpc.get_config(acc_id, CONFIG_ADDR)
        invite_link = await rpc.get_chat_securejoin_qr_code(acc_id)
        await print_invite(addr.unwrap_or("?"), invite_link)

        await bot.run()

    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point of the ``deltachat-echobot`` command."""

    args = build_parser().parse_args(argv)

    config = get_config()
    if args.log_level:
        config.set("logging.console_level", args.log_level)
        init_logging().apply_config(config.config.logging)

    try:
        return asyncio.run(run_echobot(args))

    except KeyboardInterrupt:
        return 130

    except DeltaChatError as e:
        ErrorHandler.handle(e, "Echo bot", log_traceback=args.log_level == "DEBUG")
        asyncio.run(print_failure(e))
        return ErrorHandler.exit_code(e)


if __name__ == "__main__":
    sys.exit(main())
