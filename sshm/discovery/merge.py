"""
Merge Engine - reconcile one pass worth of candidates with the host store.

Records are applied one at a time. A store failure costs that record only;
whatever was committed before stays, and running the pass again converges
to the same state.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from loguru import logger

from sshm.core.exceptions import InvalidAddressError, PersistenceError
from sshm.core.types import SourceKind
from sshm.discovery.identity import resolve
from sshm.discovery.models import HostKey, RawCandidate
from sshm.discovery.username import FALLBACK_SOURCE, choose_username
from sshm.persistence.models import HostRecord, utcnow
from sshm.persistence.store import HostStore


class Outcome(Enum):
    NEW = "new"
    UPDATED = "updated"
    UNCHANGED = "unchanged"


@dataclass
class MergeReport:
    """Summary of a discovery pass."""

    new: int = 0
    updated: int = 0
    unchanged: int = 0
    failed: int = 0
    skipped: int = 0
    warnings: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    candidates_by_source: dict[SourceKind, int] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return self.new + self.updated + self.unchanged

    @property
    def ok(self) -> bool:
        return not self.failed

    def count(self, outcome: Outcome) -> None:
        setattr(self, outcome.value, getattr(self, outcome.value) + 1)

    def summary(self) -> str:
        text = f"{self.new} new, {self.updated} updated, {self.unchanged} unchanged"
        if self.failed:
            text += f", {self.failed} failed"
        if self.skipped:
            text += f", {self.skipped} skipped"
        return text


class MergeEngine:
    """Group candidates by host key and write the reconciled records."""

    def __init__(
        self,
        store: HostStore,
        fallback_user: str | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.fallback_user = fallback_user
        self._clock = clock

    def group(
        self, candidates: Iterable[RawCandidate]
    ) -> tuple[dict[HostKey, list[RawCandidate]], int]:
        """Group candidates by key; returns the groups and the invalid count."""
        groups: dict[HostKey, list[RawCandidate]] = defaultdict(list)
        invalid = 0
        for candidate in candidates:
            try:
                key = resolve(candidate)
            except InvalidAddressError as e:
                invalid += 1
                logger.debug(f"Skipping candidate from {candidate.source_kind.value}: {e.message}")
                continue
            groups[key].append(candidate)
        return dict(groups), invalid

    def provisional(self, key: HostKey, group: list[RawCandidate], now: datetime) -> HostRecord:
        """Build the record this pass would produce for ``key`` from scratch."""
        choice = choose_username(group, self.fallback_user)

        # Earliest stanza first
        stanzas = sorted(
            (c for c in group if c.source_kind is SourceKind.SSH_CONFIG),
            key=lambda c: (c.seen_order, c.source_detail),
        )
        display_name = next((c.source_detail for c in stanzas if c.source_detail), key.host)
        key_path = next((c.key_path for c in stanzas if c.key_path), "")

        return HostRecord(
            key=key,
            address=key.host,
            port=key.port,
            display_name=display_name,
            username=choice.username,
            username_source=choice.source_label,
            key_path=key_path,
            last_seen_sources=frozenset(c.source_kind for c in group),
            created_at=now,
            updated_at=now,
        )

    def reconcile(
        self, existing: HostRecord | None, fresh: HostRecord, now: datetime
    ) -> tuple[HostRecord | None, Outcome]:
        """
        Decide what to write for one key.

        Returns:
            The record to store (None when nothing changed) and the outcome.
        """
        if existing is None:
            return fresh, Outcome.NEW

        if existing.user_edited:
            merged = existing.copy(last_seen_sources=fresh.last_seen_sources)
        else:
            # A bare fallback never replaces a username some source gave earlier
            is_fallback = fresh.username_source.startswith(f"{FALLBACK_SOURCE}:")
            keep_username = not fresh.username or (is_fallback and bool(existing.username))
            merged = existing.copy(
                address=fresh.address,
                port=fresh.port,
                display_name=fresh.display_name,
                key_path=fresh.key_path or existing.key_path,
                last_seen_sources=fresh.last_seen_sources,
                username=existing.username if keep_username else fresh.username,
                username_source=existing.username_source if keep_username else fresh.username_source,
            )

        if merged == existing:
            return None, Outcome.UNCHANGED
        return merged.copy(updated_at=now), Outcome.UPDATED

    def apply(
        self,
        candidates: Iterable[RawCandidate],
        warnings: Iterable[str] = (),
    ) -> MergeReport:
        """Reconcile ``candidates`` with the store, one record at a time."""
        report = MergeReport(warnings=list(warnings))
        groups, report.skipped = self.group(candidates)
        now = self._clock()

        for key in sorted(groups):
            fresh = self.provisional(key, groups[key], now)
            try:
                with self.store.write_lock:
                    record, outcome = self.reconcile(self.store.get(key), fresh, now)
                    if record is not None:
                        self.store.put(record)
            except PersistenceError as e:
                report.failed += 1
                report.errors.append(str(e))
                logger.error(f"❌ Could not merge host {key}: {e.reason}")
                continue
            report.count(outcome)

        logger.info(f"🔄 Merge complete: {report.summary()}")
        return report
