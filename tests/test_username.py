"""
Tests for username inference.
"""

import itertools

from sshm.core.types import Confidence, SourceKind
from sshm.discovery.username import UsernameChoice, choose_username


class TestChooseUsername:
    """Tests for choose_username ordering rules."""

    def test_no_candidates(self):
        choice = choose_username([])
        assert choice == UsernameChoice()
        assert choice.confidence is Confidence.NONE
        assert choice.source_label == ""

    def test_candidates_without_usernames(self, make_candidate):
        choice = choose_username([make_candidate("a"), make_candidate("a", SourceKind.SHELL_HISTORY)])
        assert choice.username == ""

    def test_confidence_wins(self, make_candidate):
        candidates = [
            make_candidate("h", SourceKind.SSH_CONFIG, "medium", Confidence.MEDIUM),
            make_candidate("h", SourceKind.SHELL_HISTORY, "strong", Confidence.STRONG),
        ]
        assert choose_username(candidates).username == "strong"

    def test_config_outranks_history_at_equal_confidence(self, make_candidate):
        candidates = [
            make_candidate("h", SourceKind.SHELL_HISTORY, "dave", order=99),
            make_candidate("h", SourceKind.SSH_CONFIG, "carol", order=1),
        ]
        choice = choose_username(candidates)
        assert choice.username == "carol"
        assert choice.source_kind is SourceKind.SSH_CONFIG
        assert choice.source_label == "ssh_config:strong"

    def test_most_recent_wins_within_source(self, make_candidate):
        candidates = [
            make_candidate("h", SourceKind.SHELL_HISTORY, "old", order=1),
            make_candidate("h", SourceKind.SHELL_HISTORY, "new", order=5),
        ]
        assert choose_username(candidates).username == "new"

    def test_full_tie_breaks_alphabetically(self, make_candidate):
        candidates = [
            make_candidate("h", SourceKind.SHELL_HISTORY, "zed", order=3),
            make_candidate("h", SourceKind.SHELL_HISTORY, "amy", order=3),
        ]
        assert choose_username(candidates).username == "amy"

    def test_independent_of_input_order(self, make_candidate):
        candidates = [
            make_candidate("h", SourceKind.SHELL_HISTORY, "bob", order=2),
            make_candidate("h", SourceKind.SHELL_HISTORY, "alice", order=2),
            make_candidate("h", SourceKind.SSH_CONFIG, "ops", Confidence.MEDIUM, order=1),
            make_candidate("h", SourceKind.KNOWN_HOSTS),
        ]
        results = {choose_username(list(p)).username for p in itertools.permutations(candidates)}
        assert results == {"alice"}

    def test_fallback_user_is_weak(self, make_candidate):
        choice = choose_username([make_candidate("h")], fallback_user="me")
        assert choice.username == "me"
        assert choice.confidence is Confidence.WEAK
        assert choice.source_label == "default:weak"

    def test_fallback_ignored_when_evidence_exists(self, make_candidate):
        choice = choose_username(
            [make_candidate("h", SourceKind.SHELL_HISTORY, "dave")], fallback_user="me"
        )
        assert choice.username == "dave"
