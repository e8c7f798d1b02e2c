"""
Tests for the ssh_config parser.
"""

from sshm.core.types import Confidence, SourceKind
from sshm.discovery.sources import ParseStats, SshConfigSource


def parse(text, stats=None):
    return list(SshConfigSource([]).parse(text, stats))


class TestSshConfigParser:
    """Tests for SshConfigSource.parse."""

    def test_full_stanza(self):
        text = """
Host db
    HostName 10.0.0.1
    User carol
    Port 2200
"""
        [candidate] = parse(text)
        assert candidate.address == "10.0.0.1"
        assert candidate.port == 2200
        assert candidate.username == "carol"
        assert candidate.confidence is Confidence.STRONG
        assert candidate.source_kind is SourceKind.SSH_CONFIG
        assert candidate.source_detail == "db"

    def test_alias_without_hostname(self):
        [candidate] = parse("Host plain.example.com\n")
        assert candidate.address == "plain.example.com"
        assert candidate.port is None
        assert candidate.username == ""
        assert candidate.confidence is Confidence.NONE

    def test_equals_syntax_and_case_insensitive_keys(self):
        text = 'host=box\nHOSTNAME = box.example.com\nuser="root"\nport=2022\n'
        [candidate] = parse(text)
        assert candidate.address == "box.example.com"
        assert candidate.username == "root"
        assert candidate.port == 2022

    def test_wildcard_patterns_are_not_hosts(self):
        text = "Host *\n  User x\nHost web-?\n  User y\nHost *.corp\n  Port 2\n"
        assert parse(text) == []

    def test_multiple_aliases_and_negation(self):
        text = "Host alpha beta !gamma\n  User ops\n"
        candidates = parse(text)
        assert [c.source_detail for c in candidates] == ["alpha", "beta"]
        assert all(c.username == "ops" for c in candidates)

    def test_wildcard_user_applies_as_strong(self):
        text = """
Host *
    User fallback

Host one
    HostName one.example.com

Host two
    User explicit
"""
        one, two = parse(text)
        assert (one.username, one.confidence) == ("fallback", Confidence.STRONG)
        assert (two.username, two.confidence) == ("explicit", Confidence.STRONG)

    def test_pattern_user_applies_only_to_matching_aliases(self):
        text = """
Host *.internal
    User ops

Host db.internal
Host db.public
"""
        internal, public = parse(text)
        assert internal.username == "ops"
        assert internal.confidence is Confidence.STRONG
        assert public.username == ""

    def test_global_user_before_first_host(self):
        text = "User early\n\nHost box\n"
        [candidate] = parse(text)
        assert (candidate.username, candidate.confidence) == ("early", Confidence.STRONG)

    def test_identity_file(self):
        text = """
IdentityFile ~/.ssh/global_key

Host own
    IdentityFile ~/.ssh/own_key

Host *.corp
    IdentityFile ~/.ssh/corp_key

Host db.corp
Host plain
Host nokey
    IdentityFile none
"""
        own, corp, plain, nokey = parse(text)
        assert own.key_path == "~/.ssh/own_key"
        assert corp.key_path == "~/.ssh/corp_key"
        assert plain.key_path == "~/.ssh/global_key"
        assert nokey.key_path == ""

    def test_no_identity_file(self):
        [candidate] = parse("Host box\n  User root\n")
        assert candidate.key_path == ""

    def test_first_value_wins(self):
        text = "Host box\n  User first\n  User second\n"
        [candidate] = parse(text)
        assert candidate.username == "first"

    def test_hostname_token_expansion(self):
        [candidate] = parse("Host web1\n  HostName %h.example.com\n")
        assert candidate.address == "web1.example.com"

    def test_match_block_ends_stanza(self):
        text = """
Host box
    User one
Match host box exec "true"
    User two
    Port 9999
"""
        [candidate] = parse(text)
        assert candidate.username == "one"
        assert candidate.port is None

    def test_invalid_port_skips_stanza(self):
        stats = ParseStats()
        text = "Host bad\n  Port ssh\nHost good\n"
        candidates = parse(text, stats)
        assert [c.source_detail for c in candidates] == ["good"]
        assert stats.skipped == 1

    def test_comments_ignored(self):
        stats = ParseStats()
        details = [c.source_detail for c in parse("# Host commented\n\nHost real\n", stats)]
        assert details == ["real"]
        assert stats.skipped == 0

    def test_unparseable_line_counted(self):
        stats = ParseStats()
        parse("Host box\n  !!!\n", stats)
        assert stats.skipped == 1

    def test_seen_order_is_stanza_line(self):
        candidates = parse("Host a\n\nHost b\n")
        assert [c.seen_order for c in candidates] == [1, 3]
