"""
Terminal rendering using Rich.
"""
from typing import ContextManager, Sequence

from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.text import Text

from parley import __version__
from parley.protocol import Role, Turn

console = Console()
err_console = Console(stderr=True)

ROLE_LABELS = {
    Role.USER: "[bold cyan]You:[/bold cyan]",
    Role.ASSISTANT: "[bold green]Assistant:[/bold green]",
    Role.SYSTEM: "[bold red]System:[/bold red]",
}


def print_header(model: str, session: str = None):
    """Print application header."""
    header = Text()
    header.append("parley", style="bold cyan")
    header.append(f" v{__version__}", style="dim")
    header.append(f"\nmodel: {model}", style="dim")
    if session:
        header.append(f"\nsession: {session}", style="dim")
    console.print(Panel(header, border_style="cyan"))
    console.print("[dim]Ctrl+D or Ctrl+C to exit[/dim]\n")


def print_error(message: str):
    err_console.print(Text(f"Error: {message}", style="red"), soft_wrap=True)


class RichRenderer:
    """Spinner while waiting, markdown for replies."""

    def __init__(self, console: Console = console, spinner: str = "dots2"):
        self.console = console
        self.spinner = spinner

    def progress(self) -> ContextManager[object]:
        # Status clears itself on exit, so the reply takes its place.
        return self.console.status("", spinner=self.spinner)

    def reply(self, turn: Turn) -> None:
        self.console.print(Markdown(turn.content))
        self.console.print()

    def recap(self, turns: Sequence[Turn]) -> None:
        """Show the tail of a resumed session."""
        if not turns:
            return
        self.console.print("[dim]━━━ Previous messages ━━━[/dim]")
        for i, turn in enumerate(turns):
            self.console.print(ROLE_LABELS[turn.role])
            self.console.print(turn.content, markup=False)
            # Blank line between messages, not after the last one
            if i < len(turns) - 1:
                self.console.print()
        self.console.print("[dim]━━━━━━━━━━━━━━━━━━━━━━━━━[/dim]\n")
