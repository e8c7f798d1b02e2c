"""
sshm Discovery Sources - known_hosts, shell history and ssh_config parsers.
"""

from __future__ import annotations

from sshm.config.models import SourcesConfig
from sshm.core.types import SourceKind
from sshm.discovery.sources.base import BaseSource, ParseStats, read_bounded
from sshm.discovery.sources.history import ShellHistorySource
from sshm.discovery.sources.known_hosts import KnownHostsSource
from sshm.discovery.sources.ssh_config import SshConfigSource

SOURCE_CLASSES: dict[SourceKind, type[BaseSource]] = {
    SourceKind.KNOWN_HOSTS: KnownHostsSource,
    SourceKind.SHELL_HISTORY: ShellHistorySource,
    SourceKind.SSH_CONFIG: SshConfigSource,
}


def build_sources(config: SourcesConfig) -> list[BaseSource]:
    """Instantiate one source per enabled kind."""
    paths = {
        SourceKind.KNOWN_HOSTS: [config.known_hosts],
        SourceKind.SHELL_HISTORY: list(config.history_files),
        SourceKind.SSH_CONFIG: [config.ssh_config],
    }
    return [
        SOURCE_CLASSES[kind](paths[kind], max_bytes=config.max_bytes)
        for kind in SourceKind
        if kind in config.enabled
    ]


__all__ = [
    "BaseSource",
    "KnownHostsSource",
    "ParseStats",
    "SOURCE_CLASSES",
    "ShellHistorySource",
    "SshConfigSource",
    "build_sources",
    "read_bounded",
]
