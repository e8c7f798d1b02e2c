"""
sshm Core - Shared types and enums.
"""

from __future__ import annotations

from enum import IntEnum, StrEnum


class SourceKind(StrEnum):
    """Kind of local source a host candidate was discovered in."""

    KNOWN_HOSTS = "known_hosts"
    SHELL_HISTORY = "shell_history"
    SSH_CONFIG = "ssh_config"

    @property
    def priority(self) -> int:
        """Rank used to break username ties (higher wins)."""
        return SOURCE_PRIORITY[self]


class Confidence(IntEnum):
    """How much a username guess can be trusted."""

    NONE = 0
    WEAK = 1
    MEDIUM = 2
    STRONG = 3

    @property
    def label(self) -> str:
        return self.name.lower()


# An explicit config alias is stronger evidence than an inferred login name
SOURCE_PRIORITY: dict[SourceKind, int] = {
    SourceKind.SSH_CONFIG: 3,
    SourceKind.KNOWN_HOSTS: 2,
    SourceKind.SHELL_HISTORY: 1,
}

DEFAULT_SSH_PORT = 22
MIN_PORT = 1
MAX_PORT = 65535
