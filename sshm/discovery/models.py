"""
Discovery data types.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from sshm.core.types import DEFAULT_SSH_PORT, Confidence, SourceKind


@dataclass(frozen=True)
class RawCandidate:
    """An unreconciled observation of a possible host from one source.

    Attributes:
        address: Hostname or IP as written in the source.
        source_kind: Source the observation came from.
        port: Explicit port, or None for the SSH default.
        username: Username guess, empty when the source gives none.
        confidence: How much the username guess can be trusted.
        key_path: Identity file named by the source, if any.
        source_detail: Provenance (config alias, file:line, ...).
        seen_order: Position within the source; larger means seen more recently.
    """

    address: str
    source_kind: SourceKind
    port: int | None = None
    username: str = ""
    confidence: Confidence = Confidence.NONE
    key_path: str = ""
    source_detail: str = ""
    seen_order: int = 0


@dataclass(frozen=True, order=True)
class HostKey:
    """Canonical identity of a host: normalized address plus port."""

    host: str
    port: int = DEFAULT_SSH_PORT

    @property
    def is_ipv6(self) -> bool:
        return ":" in self.host

    def __str__(self) -> str:
        if self.is_ipv6:
            return f"[{self.host}]:{self.port}"
        return f"{self.host}:{self.port}"


@dataclass
class SourceResult:
    """Candidates and warnings produced by scanning one source kind."""

    kind: SourceKind
    candidates: list[RawCandidate] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    files_read: int = 0
    lines_skipped: int = 0
