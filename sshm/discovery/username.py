"""
Username Inference - pick the best username for a group of candidates.

Ordering, strongest first:
1. confidence (STRONG > MEDIUM > WEAK)
2. source priority (ssh_config > known_hosts > shell_history)
3. most recently seen within the source
4. username, alphabetically (only so the result never depends on input order)
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from sshm.core.types import Confidence, SourceKind
from sshm.discovery.models import RawCandidate

# Origin recorded for the configured default user
FALLBACK_SOURCE = "default"


@dataclass(frozen=True)
class UsernameChoice:
    """Winning username and the evidence behind it."""

    username: str = ""
    confidence: Confidence = Confidence.NONE
    source_kind: SourceKind | None = None

    @property
    def source_label(self) -> str:
        """Value stored as ``username_source`` on a host record."""
        if not self.username:
            return ""
        origin = self.source_kind.value if self.source_kind else FALLBACK_SOURCE
        return f"{origin}:{self.confidence.label}"


def _rank(candidate: RawCandidate) -> tuple[int, int, int]:
    return (
        int(candidate.confidence),
        candidate.source_kind.priority,
        candidate.seen_order,
    )


def choose_username(
    candidates: Iterable[RawCandidate],
    fallback_user: str | None = None,
) -> UsernameChoice:
    """
    Select the single best username among candidates sharing a host key.

    Args:
        candidates: Candidates for one host.
        fallback_user: Returned with WEAK confidence when no candidate
            carries a username.

    Returns:
        UsernameChoice, empty with NONE confidence if nothing is known.
    """
    with_user = [c for c in candidates if c.username]
    if not with_user:
        if fallback_user:
            return UsernameChoice(fallback_user, Confidence.WEAK, None)
        return UsernameChoice()

    # Two passes keep the username tie-break ascending while rank is descending
    with_user.sort(key=lambda c: c.username)
    best = max(with_user, key=_rank)
    return UsernameChoice(best.username, best.confidence, best.source_kind)
