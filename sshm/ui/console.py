"""
sshm UI - Console implementation.

Rich-based console with panels and host tables, prompt_toolkit prompts.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from prompt_toolkit import PromptSession
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.theme import Theme

from sshm.persistence.models import HostRecord
from sshm.utils.display import format_relative_time, truncate

# Custom theme
SSHM_THEME = Theme(
    {
        "info": "cyan",
        "warning": "yellow",
        "error": "red bold",
        "success": "green",
        "muted": "dim",
        "highlight": "magenta",
    }
)


class ConsoleUI:
    """
    Console user interface.

    Provides rich formatting for output.
    """

    def __init__(self, console: Console | None = None, theme: Theme | None = None) -> None:
        self.console = console or Console(theme=theme or SSHM_THEME)

    def print(self, *args: Any, **kwargs: Any) -> None:
        self.console.print(*args, **kwargs)

    def panel(self, content: str, title: str | None = None, style: str = "info") -> None:
        """Display a panel."""
        self.console.print(Panel(content, title=title, border_style=style))

    def success(self, message: str) -> None:
        self.console.print(f"[success]{message}[/success]")

    def error(self, message: str) -> None:
        self.console.print(f"[error]{message}[/error]")

    def warning(self, message: str) -> None:
        self.console.print(f"[warning]{message}[/warning]")

    def info(self, message: str) -> None:
        self.console.print(f"[info]{message}[/info]")

    def muted(self, message: str) -> None:
        self.console.print(f"[muted]{message}[/muted]")

    def newline(self) -> None:
        self.console.print()

    def hosts_table(
        self,
        records: Sequence[HostRecord],
        title: str | None = None,
        numbered: bool = False,
        show_sources: bool = False,
    ) -> None:
        """Display host records, one row each, in the given order."""
        table = Table(title=title, show_header=True, header_style="bold")
        if numbered:
            table.add_column("#", justify="right", style="muted")
        table.add_column("Name", style="highlight")
        table.add_column("Host")
        table.add_column("User")
        table.add_column("Port", justify="right")
        table.add_column("Last used")
        show_notes = any(r.description or r.tags for r in records)
        if show_notes:
            table.add_column("Notes", style="muted")
        if show_sources:
            table.add_column("Sources", style="muted")

        for index, record in enumerate(records, start=1):
            row = [
                escape(truncate(record.display_name, 30)),
                escape(truncate(record.address, 40)),
                escape(record.username) or "-",
                str(record.port),
                format_relative_time(record.last_used),
            ]
            if show_notes:
                row.append(escape(self._notes(record)))
            if numbered:
                row.insert(0, str(index))
            if show_sources:
                row.append(record.sources_label)
            table.add_row(*row)

        self.console.print(table)

    @staticmethod
    def _notes(record: HostRecord) -> str:
        notes = truncate(record.description, 50)
        if record.tags:
            notes = f"{notes} [{record.tags_label}]".strip()
        return notes

    def host_details(self, record: HostRecord, command: str) -> None:
        """Display every field of a record plus its ssh command."""
        edited = " (edited)" if record.user_edited else ""
        lines = [
            f"[bold]Name:[/bold]        {escape(record.display_name)}{edited}",
            f"[bold]Key:[/bold]         {record.key}",
            f"[bold]Address:[/bold]     {record.address}",
            f"[bold]Port:[/bold]        {record.port}",
            f"[bold]Username:[/bold]    {escape(record.username) or '-'}"
            + (f" [muted]({record.username_source})[/muted]" if record.username_source else ""),
            f"[bold]Key file:[/bold]    {escape(record.key_path) or '-'}",
            f"[bold]Description:[/bold] {escape(record.description) or '-'}",
            f"[bold]Tags:[/bold]        {escape(record.tags_label) or '-'}",
            f"[bold]Sources:[/bold]     {record.sources_label}",
            f"[bold]Use count:[/bold]   {record.use_count}",
            f"[bold]Last used:[/bold]   {format_relative_time(record.last_used)}",
            f"[bold]Created:[/bold]     {record.created_at:%Y-%m-%d %H:%M:%S}",
            f"[bold]Updated:[/bold]     {record.updated_at:%Y-%m-%d %H:%M:%S}",
            "",
            f"[success]{escape(command)}[/success]",
        ]
        self.panel("\n".join(lines), title="Host details")

    def prompt(self, message: str, default: str = "") -> str:
        """Prompt for input."""
        session: PromptSession[str] = PromptSession()
        result = session.prompt(f"{message}: ", default=default)
        return result.strip()

    def prompt_confirm(self, message: str, default: bool = False) -> bool:
        """Prompt for yes/no confirmation."""
        suffix = " [Y/n]" if default else " [y/N]"
        session: PromptSession[str] = PromptSession()
        result = session.prompt(f"{message}{suffix}: ").strip().lower()

        if not result:
            return default

        return result in ("y", "yes")
