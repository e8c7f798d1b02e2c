"""
Tests for the shell history parser.
"""

import pytest

from sshm.core.types import Confidence, SourceKind
from sshm.discovery.sources import ParseStats, ShellHistorySource


def parse(text, stats=None):
    return list(ShellHistorySource([]).parse(text, stats))


def one(text):
    [candidate] = parse(text)
    return candidate


class TestShellHistoryParser:
    """Tests for ShellHistorySource.parse."""

    def test_bare_host(self):
        candidate = one("ssh server.example.com\n")
        assert candidate.address == "server.example.com"
        assert candidate.port is None
        assert candidate.username == ""
        assert candidate.confidence is Confidence.NONE
        assert candidate.source_kind is SourceKind.SHELL_HISTORY

    def test_user_at_host_is_strong(self):
        candidate = one("ssh dave@10.0.0.1\n")
        assert (candidate.address, candidate.username) == ("10.0.0.1", "dave")
        assert candidate.confidence is Confidence.STRONG

    def test_host_colon_port(self):
        candidate = one("ssh admin@box.example.com:2222\n")
        assert (candidate.address, candidate.port, candidate.username) == ("box.example.com", 2222, "admin")

    @pytest.mark.parametrize(
        "line",
        [
            "ssh -p 2200 deploy@staging",
            "ssh -p2200 deploy@staging",
            "ssh -l deploy -p 2200 staging",
            "ssh -o Port=2200 -o User=deploy staging",
            "ssh -vp 2200 deploy@staging",
            "ssh ssh://deploy@staging:2200",
        ],
    )
    def test_option_forms(self, line):
        candidate = one(line)
        assert (candidate.address, candidate.port, candidate.username) == ("staging", 2200, "deploy")

    def test_user_at_beats_dash_l(self):
        assert one("ssh -l other root@box").username == "root"

    def test_options_with_arguments_are_not_destinations(self):
        candidate = one("ssh -i ~/.ssh/id_ed25519 -J jump@bastion -F cfg target\n")
        assert candidate.address == "target"

    def test_remote_command_ignored(self):
        assert one("ssh box uptime\n").address == "box"

    def test_zsh_extended_history(self):
        candidate = one(": 1700000000:0;ssh alice@zsh-host\n")
        assert (candidate.address, candidate.username) == ("zsh-host", "alice")

    def test_bash_timestamps(self):
        text = "#1700000000\nssh bash-host\n#1700000100\nls\n"
        assert [c.address for c in parse(text)] == ["bash-host"]

    def test_fish_history(self):
        text = "- cmd: ssh fish-host\n  when: 1700000000\n- cmd: ls\n  when: 1700000001\n"
        assert [c.address for c in parse(text)] == ["fish-host"]

    @pytest.mark.parametrize(
        "line",
        [
            "sudo ssh box",
            "TERM=xterm ssh box",
            "/usr/bin/ssh box",
            "cd /tmp && ssh box",
            "time ssh box",
        ],
    )
    def test_ssh_inside_larger_commands(self, line):
        assert one(line).address == "box"

    @pytest.mark.parametrize(
        "line",
        ["ssh-keygen -t ed25519", "ssh-add -l", "git clone ssh://git@host/repo", "echo ssh", "sshfs box:/ mnt"],
    )
    def test_non_ssh_commands(self, line):
        stats = ParseStats()
        assert parse(line, stats) == []
        assert stats.skipped == 0

    @pytest.mark.parametrize("line", ["ssh", "ssh -v", "ssh $HOST", "ssh -p", "ssh box:notaport"])
    def test_malformed_invocations_are_skipped(self, line):
        stats = ParseStats()
        assert parse(line, stats) == []
        assert stats.skipped == 1

    def test_unbalanced_quotes_fall_back_to_split(self):
        assert one("ssh box 'unterminated").address == "box"

    def test_seen_order_increases(self):
        candidates = parse("ssh old\nls\nssh new\n")
        assert [c.seen_order for c in candidates] == [1, 3]
