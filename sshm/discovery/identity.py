"""
Identity Resolver - turn candidate addresses into canonical host keys.

Normalization rules:
- hostnames are lowercased and lose any trailing dot
- IP literals are canonicalized (``ipaddress`` compressed form), so
  bracketed/unbracketed and long/short IPv6 spellings collapse
- a missing port becomes 22

Every function here is pure.
"""

from __future__ import annotations

import ipaddress
import re

from sshm.core.exceptions import InvalidAddressError
from sshm.core.types import DEFAULT_SSH_PORT, MAX_PORT, MIN_PORT
from sshm.discovery.models import HostKey, RawCandidate

# RFC 1123 labels, plus underscores which ssh accepts in practice
_HOSTNAME_PATTERN = re.compile(r"^[a-z0-9_](?:[a-z0-9_.-]*[a-z0-9_])?$")
_MAX_HOSTNAME_LENGTH = 253


def split_host_port(text: str) -> tuple[str, int | None]:
    """
    Split ``host:port`` / ``[host]:port`` into its parts.

    Unbracketed text with more than one colon is taken as a bare IPv6
    address. Returns ``(host, None)`` when no port is present.

    Raises:
        InvalidAddressError: Malformed brackets or a non-numeric port.
    """
    text = text.strip()

    if text.startswith("["):
        end = text.find("]")
        if end == -1:
            raise InvalidAddressError(text, "unterminated '['")
        host = text[1:end]
        rest = text[end + 1:]
        if not rest:
            return host, None
        if rest.startswith(":") and rest[1:].isdigit():
            return host, int(rest[1:])
        raise InvalidAddressError(text, "expected ':port' after ']'")

    if text.count(":") == 1:
        host, _, port = text.partition(":")
        if not port.isdigit():
            raise InvalidAddressError(text, f"invalid port {port!r}")
        return host, int(port)

    return text, None


def normalize_host(address: str) -> str:
    """Return the canonical form of a hostname or IP literal."""
    host = address.strip()
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    host = host.rstrip(".").lower()

    if not host:
        raise InvalidAddressError(address, "empty address")

    try:
        return ipaddress.ip_address(host).compressed
    except ValueError:
        pass

    if len(host) > _MAX_HOSTNAME_LENGTH:
        raise InvalidAddressError(address, f"hostname too long ({len(host)} chars)")
    if not _HOSTNAME_PATTERN.match(host):
        raise InvalidAddressError(address, "not a valid hostname or IP address")
    return host


def normalize_port(port: int | str | None) -> int:
    """Default a missing port to 22 and range-check the rest."""
    if port is None:
        return DEFAULT_SSH_PORT
    if isinstance(port, bool):
        raise InvalidAddressError(str(port), "port must be an integer")
    try:
        value = int(port)
    except (TypeError, ValueError):
        raise InvalidAddressError(str(port), "port must be an integer") from None
    if not MIN_PORT <= value <= MAX_PORT:
        raise InvalidAddressError(str(port), f"port must be {MIN_PORT}-{MAX_PORT}")
    return value


def make_key(address: str, port: int | str | None = None) -> HostKey:
    """
    Build a HostKey from an address and optional port.

    The address may carry its own port (``host:2222``). An explicit port
    that disagrees with an embedded one is rejected.
    """
    host_text, embedded_port = split_host_port(address)
    if port is None:
        port = embedded_port
    elif embedded_port is not None and normalize_port(port) != embedded_port:
        raise InvalidAddressError(address, f"conflicting ports {embedded_port} and {port}")
    return HostKey(host=normalize_host(host_text), port=normalize_port(port))


def resolve(candidate: RawCandidate) -> HostKey:
    """Canonical key of a raw candidate."""
    return make_key(candidate.address, candidate.port)


def parse_key(text: str) -> HostKey:
    """Inverse of ``str(HostKey)``; also accepts bare hosts."""
    return make_key(text)
