"""
Tests for the interactive host browser.
"""
import io

import pytest
from rich.console import Console

from sshm.core.types import SourceKind
from sshm.discovery.models import HostKey
from sshm.discovery.service import DiscoveryService
from sshm.inventory.service import HostService
from sshm.ui import SSHM_THEME, ConsoleUI
from sshm.ui.browser import Action, ActionKind, HostBrowser, parse_action


class FakeSession:
    """Stands in for PromptSession, replaying scripted input."""

    def __init__(self, *lines):
        self.lines = list(lines)
        self.prompts = 0

    def prompt(self, message, **kwargs):
        self.prompts += 1
        if not self.lines:
            raise EOFError
        line = self.lines.pop(0)
        if isinstance(line, BaseException):
            raise line
        return line


class FakeConnector:
    def __init__(self, code=0):
        self.code = code
        self.calls = []

    def __call__(self, record, binary="ssh", extra_args=()):
        self.calls.append((record, binary, list(extra_args)))
        return self.code


@pytest.fixture
def output():
    return io.StringIO()


@pytest.fixture
def ui(output):
    return ConsoleUI(console=Console(file=output, width=120, theme=SSHM_THEME))


@pytest.fixture
def hosts(store, clock):
    return HostService(store, clock=clock)


@pytest.fixture
def connector():
    return FakeConnector()


@pytest.fixture
def make_browser(hosts, store, config, ui, connector):
    def _make(*lines):
        return HostBrowser(
            hosts,
            DiscoveryService(store, config),
            config,
            ui=ui,
            session=FakeSession(*lines),
            connector=connector,
        )

    return _make


@pytest.fixture
def three_hosts(hosts):
    hosts.add_host("10.0.0.1", display_name="db-prod", username="carol")
    hosts.add_host("10.0.0.2", display_name="db-staging")
    hosts.add_host("10.0.0.3", port=2222, display_name="web-prod")


class TestParseAction:
    """Tests for parse_action."""

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("", Action(ActionKind.SHOW)),
            ("   ", Action(ActionKind.SHOW)),
            ("3", Action(ActionKind.CONNECT, index=3)),
            ("/db", Action(ActionKind.SEARCH, text="db")),
            ("/", Action(ActionKind.SEARCH, text="")),
            ("prod", Action(ActionKind.SEARCH, text="prod")),
            ("q", Action(ActionKind.QUIT)),
            ("EXIT", Action(ActionKind.QUIT)),
            ("r", Action(ActionKind.REFRESH)),
            ("c", Action(ActionKind.CLEAR)),
            ("?", Action(ActionKind.HELP)),
            ("x 2", Action(ActionKind.DELETE, index=2)),
            ("delete 2", Action(ActionKind.DELETE, index=2)),
            ("e 1", Action(ActionKind.EDIT, index=1)),
            ("Edit 4", Action(ActionKind.EDIT, index=4)),
            ("x", Action(ActionKind.INVALID, text="x")),
            ("e two", Action(ActionKind.INVALID, text="e two")),
        ],
    )
    def test_parse(self, text, expected):
        assert parse_action(text) == expected


class TestHostBrowser:
    """Tests for HostBrowser actions."""

    def test_render_lists_hosts(self, make_browser, three_hosts, output):
        browser = make_browser()
        browser.render()
        text = output.getvalue()
        assert "db-prod" in text and "web-prod" in text
        assert [r.display_name for r in browser.visible] == ["db-prod", "db-staging", "web-prod"]

    def test_welcome_when_empty(self, make_browser, output):
        make_browser().render()
        assert "Welcome to sshm" in output.getvalue()

    def test_search_then_clear(self, make_browser, three_hosts):
        browser = make_browser()
        browser.handle(parse_action("db"))
        assert [r.display_name for r in browser.visible] == ["db-prod", "db-staging"]
        browser.handle(parse_action("c"))
        assert len(browser.visible) == 3

    def test_search_without_matches(self, make_browser, three_hosts, output):
        browser = make_browser()
        browser.handle(parse_action("/nothing"))
        assert browser.visible == []
        assert "No hosts match" in output.getvalue()

    def test_connect_uses_visible_numbering(self, make_browser, three_hosts, connector, store, config):
        config.ssh.extra_args = ["-A"]
        browser = make_browser()
        browser.handle(parse_action("web"))
        browser.handle(parse_action("1"))

        [(record, binary, extra)] = connector.calls
        assert record.display_name == "web-prod"
        assert (binary, extra) == ("ssh", ["-A"])
        assert store.get(HostKey("10.0.0.3", 2222)).use_count == 1

    def test_connect_moves_host_to_top(self, make_browser, three_hosts):
        browser = make_browser()
        browser.render()
        browser.handle(parse_action("3"))
        assert browser.visible[0].display_name == "web-prod"

    def test_connect_failure_code_reported(self, make_browser, three_hosts, connector, output):
        connector.code = 255
        browser = make_browser()
        browser.render()
        browser.handle(parse_action("1"))
        assert "exited with code 255" in output.getvalue()

    def test_bad_number(self, make_browser, three_hosts, connector, output):
        browser = make_browser()
        browser.render()
        browser.handle(parse_action("9"))
        assert connector.calls == []
        assert "No host number 9" in output.getvalue()

    def test_delete_confirmed(self, make_browser, three_hosts, ui, store, monkeypatch):
        monkeypatch.setattr(ui, "prompt_confirm", lambda message, default=False: True)
        browser = make_browser()
        browser.render()
        browser.handle(parse_action("x 2"))
        assert store.get(HostKey("10.0.0.2", 22)) is None
        assert len(browser.visible) == 2

    def test_delete_cancelled(self, make_browser, three_hosts, ui, store, monkeypatch):
        monkeypatch.setattr(ui, "prompt_confirm", lambda message, default=False: False)
        browser = make_browser()
        browser.render()
        browser.handle(parse_action("x 2"))
        assert store.count() == 3

    def test_edit_changes_only_what_changed(self, make_browser, three_hosts, ui, store, monkeypatch):
        answers = iter(["db-primary", "carol", "22", "", "", ""])
        monkeypatch.setattr(ui, "prompt", lambda message, default="": next(answers))
        browser = make_browser()
        browser.render()
        browser.handle(parse_action("e 1"))

        record = store.get(HostKey("10.0.0.1", 22))
        assert record.display_name == "db-primary"
        assert record.username == "carol"
        assert record.user_edited is True

    def test_edit_description_and_tags(self, make_browser, three_hosts, ui, store, monkeypatch):
        answers = iter(["db-prod", "carol", "22", "", "primary database", "db, prod"])
        monkeypatch.setattr(ui, "prompt", lambda message, default="": next(answers))
        browser = make_browser()
        browser.render()
        browser.handle(parse_action("e 1"))

        record = store.get(HostKey("10.0.0.1", 22))
        assert record.description == "primary database"
        assert record.tags == ("db", "prod")

    def test_edit_without_changes(self, make_browser, three_hosts, ui, store, output, monkeypatch):
        monkeypatch.setattr(ui, "prompt", lambda message, default="": default)
        browser = make_browser()
        browser.render()
        before = store.get(HostKey("10.0.0.1", 22))
        browser.handle(parse_action("e 1"))
        assert store.get(HostKey("10.0.0.1", 22)) == before
        assert "No changes" in output.getvalue()

    def test_search_matches_tags(self, make_browser, three_hosts, hosts):
        hosts.edit_host(HostKey("10.0.0.3", 2222), tags="frontend")
        browser = make_browser()
        browser.handle(parse_action("/FRONT"))
        assert [r.display_name for r in browser.visible] == ["web-prod"]

    def test_edit_invalid_port_reported_by_loop(self, make_browser, three_hosts, ui, output, monkeypatch):
        answers = iter(["db-prod", "carol", "99999", "", "", ""])
        monkeypatch.setattr(ui, "prompt", lambda message, default="": next(answers))
        browser = make_browser("e 1")
        browser.run(refresh_on_start=False)
        assert "Invalid value for 'port'" in output.getvalue()

    def test_help(self, make_browser, output):
        make_browser().handle(parse_action("h"))
        assert "connect to host number N" in output.getvalue()

    def test_unknown_command(self, make_browser, output):
        make_browser().handle(parse_action("x [red]"))
        assert "Unknown command 'x [red]'" in output.getvalue()


class TestBrowserLoop:
    """Tests for HostBrowser.run."""

    def test_quit(self, make_browser, three_hosts):
        browser = make_browser("q", "never reached")
        browser.run(refresh_on_start=False)
        assert browser.session.lines == ["never reached"]
        assert browser.running is False

    def test_eof_exits(self, make_browser):
        browser = make_browser()
        browser.run(refresh_on_start=False)
        assert browser.session.prompts == 1

    def test_ctrl_c_keeps_going(self, make_browser):
        browser = make_browser(KeyboardInterrupt(), "q")
        browser.run(refresh_on_start=False)
        assert browser.session.prompts == 2

    def test_first_run_discovers_synchronously(self, make_browser, store):
        browser = make_browser("q")
        browser.run()
        assert browser.job is None
        assert store.count() == 5
        assert browser.status.startswith("Last refresh: 5 new")

    def test_refresh_in_background_when_store_has_hosts(self, make_browser, three_hosts, store):
        browser = make_browser("q")
        browser.run()
        assert browser.job is not None
        assert browser.job.wait(10)
        assert store.get(HostKey("10.0.0.1", 22)).last_seen_sources == {
            SourceKind.KNOWN_HOSTS,
            SourceKind.SHELL_HISTORY,
            SourceKind.SSH_CONFIG,
        }

    def test_refresh_action_updates_status(self, make_browser, store):
        browser = make_browser()
        browser.handle(parse_action("r"))
        assert browser.job.wait(10)
        assert browser.status == "Last refresh: 5 new, 0 updated, 0 unchanged, 1 skipped"
        assert browser._toolbar() == f" {browser.status} "

    def test_prompt_shows_query(self, make_browser):
        browser = make_browser()
        assert browser._prompt_message() == [("class:prompt", "sshm > ")]
        browser.query = "db"
        assert ("class:query", " /db") in browser._prompt_message()
