"""
ssh_config source.

Each concrete ``Host`` alias becomes a candidate. The address is the
stanza's ``HostName`` when set (``%h`` expands to the alias), the port
comes from ``Port``, the key path from ``IdentityFile`` and an explicit
``User`` is a STRONG username.

Stanzas whose patterns are all wildcards or negations are not hosts, but
their ``User`` and ``IdentityFile`` (and those set before the first
``Host`` line) apply to matching aliases that lack their own. An
inherited ``User`` is still a STRONG username. ``Match`` blocks
are conditional and are not evaluated; their directives are ignored.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from fnmatch import fnmatchcase

from loguru import logger

from sshm.core.exceptions import ParseSkip
from sshm.core.types import Confidence, SourceKind
from sshm.discovery.models import RawCandidate
from sshm.discovery.sources.base import BaseSource, ParseStats, iter_lines

# "Key value", "Key=value" or "Key = value"
_DIRECTIVE = re.compile(r"^([A-Za-z][A-Za-z0-9]*)\s*(?:=\s*|\s+)(.*)$")
_WILDCARD_CHARS = set("*?")


@dataclass
class _Stanza:
    patterns: list[str]
    order: int
    options: dict[str, str] = field(default_factory=dict)

    @property
    def aliases(self) -> list[str]:
        """Patterns naming one concrete host."""
        return [
            p for p in self.patterns
            if not p.startswith("!") and not _WILDCARD_CHARS.intersection(p)
        ]

    def matches(self, alias: str) -> bool:
        negated = [p[1:] for p in self.patterns if p.startswith("!")]
        if any(fnmatchcase(alias, p) for p in negated):
            return False
        return any(fnmatchcase(alias, p) for p in self.patterns if not p.startswith("!"))


def _unquote(value: str) -> str:
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] == '"':
        return value[1:-1]
    return value


class SshConfigSource(BaseSource):
    """Parse OpenSSH client configuration files."""

    kind = SourceKind.SSH_CONFIG

    def parse(
        self,
        text: str | Iterable[str],
        stats: ParseStats | None = None,
    ) -> Iterator[RawCandidate]:
        stats = stats if stats is not None else ParseStats()
        stanzas, global_options = self._read_stanzas(text, stats)

        defaults = [s for s in stanzas if not s.aliases]
        for stanza in stanzas:
            for alias in stanza.aliases:
                try:
                    candidate = self._candidate(stanza, alias, defaults, global_options)
                except ParseSkip as e:
                    stats.skipped += 1
                    logger.trace(f"ssh_config host {alias!r} skipped: {e.message}")
                    continue
                yield candidate

    def _read_stanzas(
        self, text: str | Iterable[str], stats: ParseStats
    ) -> tuple[list[_Stanza], dict[str, str]]:
        stanzas: list[_Stanza] = []
        current: _Stanza | None = None
        in_match = False
        global_options: dict[str, str] = {}

        for line in iter_lines(text):
            stats.lines += 1
            line = line.strip()
            if not line or line.startswith("#"):
                continue

            m = _DIRECTIVE.match(line)
            if not m:
                stats.skipped += 1
                continue
            key, value = m.group(1).lower(), m.group(2).strip()

            if key == "host":
                patterns = [_unquote(p) for p in value.split()]
                current = _Stanza(patterns=[p for p in patterns if p], order=stats.lines)
                stanzas.append(current)
                in_match = False
            elif key == "match":
                current = None
                in_match = True
            elif in_match:
                continue
            elif current is None:
                global_options.setdefault(key, _unquote(value))
            else:
                # First value wins, as in ssh itself
                current.options.setdefault(key, _unquote(value))

        return stanzas, global_options

    @staticmethod
    def _option(
        name: str,
        stanza: _Stanza,
        alias: str,
        defaults: list[_Stanza],
        global_options: dict[str, str],
    ) -> str:
        """The stanza's own value, else the first matching wildcard stanza's, else the global one."""
        if name in stanza.options:
            return stanza.options[name]
        inherited = (d.options[name] for d in defaults if name in d.options and d.matches(alias))
        return next(inherited, global_options.get(name, ""))

    def _candidate(
        self,
        stanza: _Stanza,
        alias: str,
        defaults: list[_Stanza],
        global_options: dict[str, str],
    ) -> RawCandidate:
        hostname = stanza.options.get("hostname", alias).replace("%h", alias)
        if "%" in hostname:
            raise ParseSkip(f"unsupported token in HostName {hostname!r}")

        port = None
        if "port" in stanza.options:
            raw_port = stanza.options["port"]
            if not raw_port.isdigit():
                raise ParseSkip(f"invalid Port {raw_port!r}")
            port = int(raw_port)

        username = self._option("user", stanza, alias, defaults, global_options)
        key_path = self._option("identityfile", stanza, alias, defaults, global_options)
        if key_path.lower() == "none":
            key_path = ""

        return RawCandidate(
            address=hostname,
            port=port,
            username=username,
            confidence=Confidence.STRONG if username else Confidence.NONE,
            key_path=key_path,
            source_kind=self.kind,
            source_detail=alias,
            seen_order=stanza.order,
        )
