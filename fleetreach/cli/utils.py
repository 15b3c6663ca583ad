import asyncio
import functools
import sys

from rich.console import Console
from rich.markup import escape

console = Console(soft_wrap=True)


def print_error(message: str) -> None:
    console.print(f"[red]Error: {escape(message)}[/red]")


def handle_async_command(async_func):
    """Decorator to handle async CLI commands.

    Any error is reported as ``Error: <message>`` and exits with status 1.
    The traceback is printed too when the command was given ``trace=True``.
    """
    @functools.wraps(async_func)
    def wrapper(*args, **kwargs):
        try:
            return asyncio.run(async_func(*args, **kwargs))
        except KeyboardInterrupt:
            console.print("\n[yellow]Operation cancelled by user[/yellow]")
            sys.exit(1)
        except Exception as e:
            print_error(str(e))
            if kwargs.get("trace"):
                console.print_exception()
            sys.exit(1)
    return wrapper
