"""
sshm Browser - interactive host picker.

A prompt_toolkit prompt loop over a rich host table. Refresh runs in the
background; the bottom toolbar shows its progress and the table picks
up the new store state on the next redraw.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path

from loguru import logger
from prompt_toolkit import PromptSession
from prompt_toolkit.auto_suggest import AutoSuggestFromHistory
from prompt_toolkit.history import FileHistory, InMemoryHistory
from prompt_toolkit.styles import Style
from rich.markup import escape

from sshm.config.models import Config
from sshm.core.exceptions import SshmError
from sshm.discovery.merge import MergeReport
from sshm.discovery.refresh import RefreshJob
from sshm.discovery.service import DiscoveryService
from sshm.inventory.service import HostService
from sshm.persistence.models import HostRecord
from sshm.ssh.command import connect
from sshm.ui.console import ConsoleUI

# Prompt style
PROMPT_STYLE = Style.from_dict(
    {
        "prompt": "#00aa00 bold",
        "query": "#888888",
        "bottom-toolbar": "noreverse #888888",
    }
)

HELP_TEXT = """\
[bold]N[/bold]          connect to host number N
[bold]/text[/bold]      filter hosts (plain text works too)
[bold]c[/bold]          clear the filter
[bold]e N[/bold]        edit host N
[bold]x N[/bold]        delete host N
[bold]r[/bold]          refresh from known_hosts, history and ssh config
[bold]q[/bold]          quit"""

_INDEXED = re.compile(r"^(x|d|del|delete|e|edit)\s+(\d+)$", re.IGNORECASE)


class ActionKind(StrEnum):
    SHOW = "show"
    CONNECT = "connect"
    SEARCH = "search"
    CLEAR = "clear"
    DELETE = "delete"
    EDIT = "edit"
    REFRESH = "refresh"
    HELP = "help"
    QUIT = "quit"
    INVALID = "invalid"


@dataclass(frozen=True)
class Action:
    kind: ActionKind
    index: int | None = None
    text: str = ""


_KEYWORDS = {
    "q": ActionKind.QUIT,
    "quit": ActionKind.QUIT,
    "exit": ActionKind.QUIT,
    "r": ActionKind.REFRESH,
    "refresh": ActionKind.REFRESH,
    "c": ActionKind.CLEAR,
    "clear": ActionKind.CLEAR,
    "h": ActionKind.HELP,
    "?": ActionKind.HELP,
    "help": ActionKind.HELP,
}


def parse_action(text: str) -> Action:
    """Turn one line of browser input into an Action."""
    text = text.strip()
    if not text:
        return Action(ActionKind.SHOW)
    if text.isdigit():
        return Action(ActionKind.CONNECT, index=int(text))
    if text.startswith("/"):
        return Action(ActionKind.SEARCH, text=text[1:].strip())

    keyword = _KEYWORDS.get(text.lower())
    if keyword is not None:
        return Action(keyword)

    m = _INDEXED.match(text)
    if m:
        kind = ActionKind.EDIT if m.group(1).lower().startswith("e") else ActionKind.DELETE
        return Action(kind, index=int(m.group(2)))
    if text.split()[0].lower() in ("x", "e", "d", "del", "delete", "edit"):
        return Action(ActionKind.INVALID, text=text)

    return Action(ActionKind.SEARCH, text=text)


class HostBrowser:
    """Interactive host list: search, connect, edit, delete, refresh."""

    def __init__(
        self,
        hosts: HostService,
        discovery: DiscoveryService,
        config: Config,
        ui: ConsoleUI | None = None,
        session: PromptSession | None = None,
        connector: Callable[..., int] = connect,
    ) -> None:
        self.hosts = hosts
        self.discovery = discovery
        self.config = config
        self.ui = ui or ConsoleUI()
        self.connector = connector
        self.query = ""
        self.visible: list[HostRecord] = []
        self.job: RefreshJob | None = None
        self.status = ""
        self.running = False
        self.session = session or PromptSession(
            history=self._history(config.general.data_dir / "browser_history"),
            auto_suggest=AutoSuggestFromHistory(),
            style=PROMPT_STYLE,
        )

    @staticmethod
    def _history(path: Path):
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            return FileHistory(str(path))
        except OSError as e:
            logger.debug(f"Prompt history disabled: {e}")
            return InMemoryHistory()

    # =========================================================================
    # Loop
    # =========================================================================

    def run(self, refresh_on_start: bool = True) -> None:
        """Run the browser until the user quits."""
        if refresh_on_start:
            if self.hosts.store.count() == 0:
                # Empty store: block on the first pass
                with self.ui.console.status("Discovering hosts..."):
                    self._apply_report(self.discovery.run())
            else:
                self.start_refresh()

        self.render()
        self.running = True
        try:
            while self.running:
                try:
                    text = self.session.prompt(
                        self._prompt_message,
                        bottom_toolbar=self._toolbar,
                        refresh_interval=0.5,
                    )
                except KeyboardInterrupt:
                    continue
                except EOFError:
                    break

                try:
                    self.handle(parse_action(text))
                except SshmError as e:
                    logger.error(f"❌ Browser action failed: {e}")
                    self.ui.error(escape(e.message))
        finally:
            if self.job is not None and not self.job.done:
                # Let the pass finish in the background; just stop listening
                self.job.cancel()
            self.running = False

    def _prompt_message(self):
        if self.query:
            return [("class:prompt", "sshm"), ("class:query", f" /{self.query}"), ("class:prompt", " > ")]
        return [("class:prompt", "sshm > ")]

    def _toolbar(self) -> str:
        if self.job is not None and not self.job.done:
            return " Refreshing hosts... "
        return f" {self.status} " if self.status else " h for help "

    def reload(self) -> list[HostRecord]:
        self.visible = self.hosts.search(self.query)
        return self.visible

    def render(self) -> None:
        self.reload()
        if self.visible:
            title = f"Hosts matching '{escape(self.query)}'" if self.query else "Hosts"
            self.ui.hosts_table(self.visible, title=title, numbered=True)
        elif self.query:
            self.ui.warning(f"No hosts match '{escape(self.query)}'")
        else:
            self.ui.panel(
                "No hosts yet.\n\n"
                "sshm reads ~/.ssh/config, ~/.ssh/known_hosts and your shell history.\n"
                "Connect somewhere with ssh and press [bold]r[/bold], or add a host with "
                "[bold]sshm add[/bold].",
                title="Welcome to sshm",
            )

    # =========================================================================
    # Actions
    # =========================================================================

    def handle(self, action: Action) -> None:
        """Execute one action; stops the loop on quit."""
        if action.kind is ActionKind.QUIT:
            self.running = False
        elif action.kind is ActionKind.SHOW:
            self.render()
        elif action.kind is ActionKind.HELP:
            self.ui.panel(HELP_TEXT, title="Keys")
        elif action.kind is ActionKind.SEARCH:
            self.query = action.text
            self.render()
        elif action.kind is ActionKind.CLEAR:
            self.query = ""
            self.render()
        elif action.kind is ActionKind.REFRESH:
            self.start_refresh()
        elif action.kind is ActionKind.CONNECT:
            self.connect(action.index)
        elif action.kind is ActionKind.DELETE:
            self.delete(action.index)
        elif action.kind is ActionKind.EDIT:
            self.edit(action.index)
        else:
            self.ui.error(f"Unknown command '{escape(action.text)}' (h for help)")

    def select(self, index: int | None) -> HostRecord | None:
        """Visible record by its 1-based number."""
        if index is None or not 1 <= index <= len(self.visible):
            self.ui.error(f"No host number {index}")
            return None
        return self.visible[index - 1]

    def connect(self, index: int | None) -> None:
        record = self.select(index)
        if record is None:
            return
        self.hosts.record_connection(record.key)
        name = escape(record.display_name)
        self.ui.info(f"🔗 Connecting to {name} ({escape(record.destination)}:{record.port})...")
        code = self.connector(
            record,
            binary=self.config.ssh.binary,
            extra_args=self.config.ssh.extra_args,
        )
        if code == 0:
            self.ui.success(f"Connection to {name} closed.")
        else:
            self.ui.warning(f"ssh exited with code {code}")
        self.render()

    def delete(self, index: int | None) -> None:
        record = self.select(index)
        if record is None:
            return
        if not self.ui.prompt_confirm(f"Delete {record.display_name} ({record.key})?"):
            self.ui.muted("Cancelled")
            return
        self.hosts.delete_host(record.key)
        self.ui.success(f"Deleted {escape(record.display_name)}")
        self.render()

    def edit(self, index: int | None) -> None:
        record = self.select(index)
        if record is None:
            return
        fields = {
            "display_name": ("Name", record.display_name),
            "username": ("Username", record.username),
            "port": ("Port", str(record.port)),
            "key_path": ("Key file", record.key_path),
            "description": ("Description", record.description),
            "tags": ("Tags", record.tags_label),
        }
        changes = {}
        for name, (label, current) in fields.items():
            answer = self.ui.prompt(label, default=current)
            if answer != current:
                changes[name] = answer
        if not changes:
            self.ui.muted("No changes")
            return
        updated = self.hosts.edit_host(record.key, **changes)
        self.ui.success(f"Saved {escape(updated.display_name)}")
        self.render()

    def start_refresh(self) -> None:
        if self.job is not None and not self.job.done:
            self.ui.muted("Refresh already running")
            return
        self.job = RefreshJob(self.discovery, on_done=self._refresh_done).start()

    def _refresh_done(self, job: RefreshJob) -> None:
        if job.error is not None:
            self.status = f"Refresh failed: {job.error}"
        elif job.report is not None:
            self._apply_report(job.report)

    def _apply_report(self, report: MergeReport) -> None:
        self.status = f"Last refresh: {report.summary()}"
        if report.warnings:
            self.status += f" ({len(report.warnings)} warnings)"
