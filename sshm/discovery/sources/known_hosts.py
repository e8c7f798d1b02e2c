"""
known_hosts source.

Line format: ``[marker] hostpatterns keytype base64key [comment]`` where
hostpatterns is a comma list of ``host``, ``[host]:port`` or hashed
``|1|salt|hash`` entries. Hashed and wildcard entries carry no usable
address and are ignored. known_hosts never says which user logged in.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from loguru import logger

from sshm.core.exceptions import InvalidAddressError, ParseSkip
from sshm.core.types import SourceKind
from sshm.discovery.identity import split_host_port
from sshm.discovery.models import RawCandidate
from sshm.discovery.sources.base import BaseSource, ParseStats, iter_lines

_MARKERS = ("@cert-authority", "@revoked")


class KnownHostsSource(BaseSource):
    """Parse OpenSSH known_hosts files."""

    kind = SourceKind.KNOWN_HOSTS

    def parse(
        self,
        text: str | Iterable[str],
        stats: ParseStats | None = None,
    ) -> Iterator[RawCandidate]:
        stats = stats if stats is not None else ParseStats()
        for line in iter_lines(text):
            stats.lines += 1
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            try:
                candidates = self._parse_line(line, stats.lines)
            except ParseSkip as e:
                stats.skipped += 1
                logger.trace(f"known_hosts line {stats.lines} skipped: {e.message}")
                continue
            yield from candidates

    def _parse_line(self, line: str, order: int) -> list[RawCandidate]:
        fields = line.split()
        if fields[0] in _MARKERS:
            fields = fields[1:]
        if len(fields) < 3:
            raise ParseSkip("expected 'hosts keytype key'")

        patterns, key_type = fields[0], fields[1]
        candidates = []
        for pattern in patterns.split(","):
            if not pattern or pattern[0] in "|!" or "*" in pattern or "?" in pattern:
                continue
            try:
                host, port = split_host_port(pattern)
            except InvalidAddressError:
                continue
            candidates.append(
                RawCandidate(
                    address=host,
                    port=port,
                    source_kind=self.kind,
                    source_detail=key_type,
                    seen_order=order,
                )
            )

        if not candidates:
            raise ParseSkip(f"no plain host in {patterns[:40]!r}")
        return candidates
