"""
Tests for the known_hosts parser.
"""

from sshm.core.types import Confidence, SourceKind
from sshm.discovery.sources import KnownHostsSource, ParseStats


def parse(text, stats=None):
    return list(KnownHostsSource([]).parse(text, stats))


class TestKnownHostsParser:
    """Tests for KnownHostsSource.parse."""

    def test_plain_entry(self):
        [candidate] = parse("server.example.com ssh-ed25519 AAAAkey\n")
        assert candidate.address == "server.example.com"
        assert candidate.port is None
        assert candidate.source_kind is SourceKind.KNOWN_HOSTS
        assert candidate.source_detail == "ssh-ed25519"
        assert candidate.username == ""
        assert candidate.confidence is Confidence.NONE

    def test_comma_separated_hosts(self):
        candidates = parse("web1,10.0.0.5 ssh-rsa AAAAkey comment here\n")
        assert [c.address for c in candidates] == ["web1", "10.0.0.5"]

    def test_bracketed_port(self):
        [candidate] = parse("[git.example.com]:2222 ssh-ed25519 AAAAkey\n")
        assert candidate.address == "git.example.com"
        assert candidate.port == 2222

    def test_bracketed_ipv6(self):
        [candidate] = parse("[2001:db8::1]:22 ssh-ed25519 AAAAkey\n")
        assert candidate.address == "2001:db8::1"
        assert candidate.port == 22

    def test_hashed_entries_skipped(self):
        stats = ParseStats()
        assert parse("|1|c2FsdA==|aGFzaA== ssh-ed25519 AAAAkey\n", stats) == []
        assert stats.skipped == 1

    def test_mixed_hashed_and_plain(self):
        candidates = parse("|1|c2FsdA==|aGFzaA==,plain.example.com ssh-ed25519 AAAAkey\n")
        assert [c.address for c in candidates] == ["plain.example.com"]

    def test_comments_and_blank_lines(self):
        stats = ParseStats()
        assert parse("# comment\n\n   \n", stats) == []
        assert stats.skipped == 0
        assert stats.lines == 3

    def test_short_lines_skipped(self):
        stats = ParseStats()
        text = "broken-line\nhost ssh-rsa\ngood ssh-rsa AAAAkey\n"
        candidates = parse(text, stats)
        assert [c.address for c in candidates] == ["good"]
        assert stats.skipped == 2

    def test_markers(self):
        text = (
            "@cert-authority *.example.com ssh-rsa AAAAkey\n"
            "@revoked revoked.example.com ssh-rsa AAAAkey\n"
        )
        candidates = parse(text)
        assert [c.address for c in candidates] == ["revoked.example.com"]

    def test_wildcards_and_negations_skipped(self):
        candidates = parse("*.example.com,!bad.example.com,ok.example.com ssh-rsa AAAAkey\n")
        assert [c.address for c in candidates] == ["ok.example.com"]

    def test_seen_order_follows_lines(self):
        candidates = parse("a ssh-rsa K\nb ssh-rsa K\n")
        assert [c.seen_order for c in candidates] == [1, 2]

    def test_accepts_iterable_of_lines(self):
        candidates = parse(["a ssh-rsa K\n", "b ssh-rsa K\n"])
        assert [c.address for c in candidates] == ["a", "b"]

    def test_parse_is_lazy(self):
        gen = KnownHostsSource([]).parse("a ssh-rsa K\n")
        assert next(gen).address == "a"
