"""Shared rich console and the terminal output of the echo bot"""

from typing import Optional

from rich.console import Console
from rich.rule import Rule

from deltachat_rpc.utils.errors import DeltaChatError, RpcError, format_error_message

_console: Optional[Console] = None


def get_console() -> Console:
    """Get the shared Console instance"""
    global _console

    if _console is None:
        _console = Console()

    return _console


def reset_console() -> None:
    """Reset the shared Console instance (for testing purposes)"""
    global _console
    _console = None


## Echo Bot Output

async def print_setup_step(message: str, console: Optional[Console] = None) -> None:
    """Print a step of the account setup"""
    output_console = console or get_console()
    output_console.print(f"[cyan]{message}[/]")


async def print_invite(addr: str, link: str, console: Optional[Console] = None) -> None:
    """Print the link other users open or scan to start a verified chat with the bot.

    The link is printed unwrapped so it can be copied from the terminal.
    """
    output_console = console or get_console()
    output_console.print(Rule(f"[green]Listening as {addr}[/]", align="left"))
    output_console.print(link, style="bold", soft_wrap=True, markup=False, highlight=False)


async def print_failure(error: Exception, console: Optional[Console] = None) -> None:
    """Print why the bot could not start, with the server's error code if any"""
    output_console = console or get_console()
    message = format_error_message(error)

    if isinstance(error, RpcError):
        message = f"{message} (server error {error.code})"
    elif isinstance(error, DeltaChatError):
        message = f"{message} ({error.category.value} error)"

    output_console.print(message, style="red", soft_wrap=True, markup=False, highlight=False)

