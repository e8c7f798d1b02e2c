"""
Host record model.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone

from sshm.core.types import DEFAULT_SSH_PORT, SourceKind
from sshm.discovery.models import HostKey

MANUAL_SOURCE = "manual"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class HostRecord:
    """The persisted, deduplicated, user-facing host entry.

    ``key`` never changes once the record exists. ``address`` and ``port``
    are what the connect action uses; for discovered hosts they match the
    key, a manual edit may change the port. ``key_path`` is handed to ssh
    as ``-i``. ``description`` and ``tags`` are only ever set by hand.
    """

    key: HostKey
    address: str
    port: int = DEFAULT_SSH_PORT
    display_name: str = ""
    username: str = ""
    username_source: str = ""
    key_path: str = ""
    description: str = ""
    tags: tuple[str, ...] = ()
    last_seen_sources: frozenset[SourceKind] = frozenset()
    user_edited: bool = False
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
    last_used: datetime | None = None
    use_count: int = 0

    def __post_init__(self) -> None:
        if not self.display_name:
            self.display_name = self.address
        self.last_seen_sources = frozenset(self.last_seen_sources)
        self.tags = tuple(self.tags)

    @property
    def destination(self) -> str:
        """``user@address`` or just the address."""
        if self.username:
            return f"{self.username}@{self.address}"
        return self.address

    @property
    def tags_label(self) -> str:
        return ", ".join(self.tags)

    @property
    def sources_label(self) -> str:
        return ", ".join(sorted(k.value for k in self.last_seen_sources)) or "-"

    def copy(self, **changes) -> HostRecord:
        return replace(self, **changes)
