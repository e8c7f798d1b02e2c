"""
Host Service - manual inventory operations.

Everything a person does to the inventory goes through here: input is
validated before the store is touched, and manual changes mark the record
as user-edited so later discovery passes leave them alone.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from datetime import datetime
from pathlib import Path

from loguru import logger

from sshm.core.exceptions import (
    DuplicateHostError,
    HostNotFoundError,
    InvalidAddressError,
    InvalidUserEditError,
)
from sshm.discovery.identity import make_key, normalize_port, parse_key
from sshm.discovery.models import HostKey
from sshm.persistence.models import MANUAL_SOURCE, HostRecord, utcnow
from sshm.persistence.store import HostStore

_USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9._][A-Za-z0-9._@-]*$")
_MAX_DISPLAY_NAME = 128
_MAX_DESCRIPTION = 256
_MAX_TAG = 64

# Fields discovery would otherwise overwrite
_DISCOVERED_FIELDS = frozenset({"username", "display_name", "port", "key_path"})


def validate_username(username: str) -> str:
    username = username.strip()
    if username and not _USERNAME_PATTERN.match(username):
        raise InvalidUserEditError("username", f"invalid username {username!r}")
    return username


def validate_display_name(display_name: str) -> str:
    display_name = display_name.strip()
    if not display_name:
        raise InvalidUserEditError("display_name", "must not be empty")
    if len(display_name) > _MAX_DISPLAY_NAME:
        raise InvalidUserEditError("display_name", f"longer than {_MAX_DISPLAY_NAME} characters")
    return display_name


def validate_port(port: int | str) -> int:
    try:
        return normalize_port(port)
    except InvalidAddressError as e:
        raise InvalidUserEditError("port", e.reason) from None


def validate_key_path(key_path: str) -> str:
    """An empty path clears the key; anything else must be an existing file."""
    key_path = key_path.strip()
    if not key_path:
        return ""
    path = Path(key_path).expanduser()
    if not path.is_file():
        raise InvalidUserEditError("key_path", f"SSH key file does not exist: {key_path}")
    return str(path)


def validate_description(description: str) -> str:
    description = description.strip()
    if "\n" in description or "\r" in description:
        raise InvalidUserEditError("description", "must be a single line")
    if len(description) > _MAX_DESCRIPTION:
        raise InvalidUserEditError("description", f"longer than {_MAX_DESCRIPTION} characters")
    return description


def validate_tags(tags: str | Iterable[str]) -> tuple[str, ...]:
    """
    Normalize tags given as ``"web, prod"`` or ``["web", "prod"]``.

    Blanks and repeats are dropped; order is kept.
    """
    if isinstance(tags, str):
        tags = [tags]
    result: list[str] = []
    for chunk in tags:
        for tag in chunk.split(","):
            tag = tag.strip()
            if not tag or tag in result:
                continue
            if len(tag) > _MAX_TAG:
                raise InvalidUserEditError("tags", f"tag longer than {_MAX_TAG} characters")
            result.append(tag)
    return tuple(result)


class HostService:
    """Manual add / edit / delete / lookup on top of a HostStore."""

    def __init__(self, store: HostStore, clock: Callable[[], datetime] = utcnow):
        self.store = store
        self._clock = clock

    # =========================================================================
    # Lookup
    # =========================================================================

    def list_hosts(self) -> list[HostRecord]:
        return self.store.list()

    def search(self, query: str) -> list[HostRecord]:
        return self.store.search(query)

    def get(self, key: HostKey) -> HostRecord:
        record = self.store.get(key)
        if record is None:
            raise HostNotFoundError(str(key))
        return record

    def find(self, identifier: str) -> HostRecord:
        """
        Resolve what a user typed to one record.

        Tries, in order: exact display name, exact address, host key text
        (``host``, ``host:port``, ``[v6]:port``).

        Raises:
            HostNotFoundError: Nothing matches.
        """
        identifier = identifier.strip()
        matches = self.store.find_by_name(identifier)
        by_name = [r for r in matches if r.display_name.casefold() == identifier.casefold()]
        if by_name:
            return by_name[0]
        if matches:
            return matches[0]

        try:
            key = parse_key(identifier)
        except InvalidAddressError:
            raise HostNotFoundError(identifier) from None
        record = self.store.get(key)
        if record is None:
            raise HostNotFoundError(identifier)
        return record

    # =========================================================================
    # Mutations
    # =========================================================================

    def add_host(
        self,
        address: str,
        port: int | str | None = None,
        username: str = "",
        display_name: str = "",
        key_path: str = "",
        description: str = "",
        tags: str | Iterable[str] = (),
    ) -> HostRecord:
        """
        Add a host by hand.

        Raises:
            InvalidUserEditError: Bad address, port, username, name, key
                path, description or tags.
            DuplicateHostError: The host key already exists.
        """
        if not address or not address.strip():
            raise InvalidUserEditError("address", "must not be empty")
        if port is not None:
            port = validate_port(port)
        try:
            key = make_key(address, port)
        except InvalidAddressError as e:
            raise InvalidUserEditError("address", e.reason) from None

        username = validate_username(username)
        display_name = validate_display_name(display_name) if display_name else key.host

        now = self._clock()
        record = HostRecord(
            key=key,
            address=key.host,
            port=key.port,
            display_name=display_name,
            username=username,
            username_source=MANUAL_SOURCE if username else "",
            key_path=validate_key_path(key_path),
            description=validate_description(description),
            tags=validate_tags(tags),
            user_edited=True,
            created_at=now,
            updated_at=now,
        )
        with self.store.write_lock:
            if self.store.get(key) is not None:
                raise DuplicateHostError(str(key))
            self.store.put(record)

        logger.info(f"➕ Host {display_name} ({key}) added")
        return record

    def edit_host(
        self,
        key: HostKey,
        *,
        username: str | None = None,
        display_name: str | None = None,
        port: int | str | None = None,
        key_path: str | None = None,
        description: str | None = None,
        tags: str | Iterable[str] | None = None,
    ) -> HostRecord:
        """
        Change fields of an existing host.

        Only the given fields change. Changing the username, display name,
        port or key path makes the record user-edited, so discovery stops
        overwriting it. Description and tags never come from discovery.
        """
        changes: dict = {}
        if username is not None:
            changes["username"] = validate_username(username)
            changes["username_source"] = MANUAL_SOURCE if changes["username"] else ""
        if display_name is not None:
            changes["display_name"] = validate_display_name(display_name)
        if port is not None:
            changes["port"] = validate_port(port)
        if key_path is not None:
            changes["key_path"] = validate_key_path(key_path)
        if description is not None:
            changes["description"] = validate_description(description)
        if tags is not None:
            changes["tags"] = validate_tags(tags)

        with self.store.write_lock:
            record = self.get(key)
            if not changes:
                return record
            if _DISCOVERED_FIELDS.intersection(changes):
                changes["user_edited"] = True
            updated = record.copy(**changes, updated_at=self._clock())
            self.store.put(updated)

        fields = [k for k in changes if k not in ("username_source", "user_edited")]
        logger.info(f"✏️ Host {key} edited: {', '.join(fields)}")
        return updated

    def delete_host(self, key: HostKey) -> None:
        """
        Remove a host. Discovery brings it back only if a source still
        lists it, as a fresh record.

        Raises:
            HostNotFoundError: The key is not in the store.
        """
        if not self.store.delete(key):
            raise HostNotFoundError(str(key))

    def record_connection(self, key: HostKey) -> bool:
        """Bump usage statistics before connecting."""
        used = self.store.mark_used(key, self._clock())
        if not used:
            logger.warning(f"⚠️ Usage not recorded, host {key} is gone")
        return used
