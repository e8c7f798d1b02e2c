"""
Host Data Converters.
"""

from __future__ import annotations

import json
import sqlite3
from datetime import datetime
from typing import Any

from loguru import logger

from sshm.core.types import SourceKind
from sshm.discovery.models import HostKey
from sshm.persistence.models import HostRecord


def format_timestamp(value: datetime | None) -> str | None:
    # Fixed width so that text ordering in SQL matches time ordering
    if value is None:
        return None
    return value.isoformat(timespec="microseconds")


def parse_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    return datetime.fromisoformat(value)


def format_tags(tags: tuple[str, ...]) -> str:
    return ",".join(tags)


def parse_tags(raw: str | None) -> tuple[str, ...]:
    """Split a comma-separated tag string, dropping blanks."""
    if not raw:
        return ()
    return tuple(t.strip() for t in raw.split(",") if t.strip())


def _parse_sources(raw: str | None) -> frozenset[SourceKind]:
    if not raw:
        return frozenset()
    try:
        values = json.loads(raw)
    except (json.JSONDecodeError, TypeError):
        return frozenset()
    kinds = set()
    for value in values:
        try:
            kinds.add(SourceKind(value))
        except ValueError:
            logger.debug(f"Ignoring unknown source kind {value!r} in store")
    return frozenset(kinds)


def record_to_row(record: HostRecord) -> dict[str, Any]:
    """Convert a HostRecord to named SQL parameters."""
    return {
        "host_key": str(record.key),
        "key_host": record.key.host,
        "key_port": record.key.port,
        "display_name": record.display_name,
        "address": record.address,
        "port": record.port,
        "username": record.username,
        "username_source": record.username_source,
        "key_path": record.key_path,
        "description": record.description,
        "tags": format_tags(record.tags),
        "last_seen_sources": json.dumps(sorted(k.value for k in record.last_seen_sources)),
        "user_edited": int(record.user_edited),
        "created_at": format_timestamp(record.created_at),
        "updated_at": format_timestamp(record.updated_at),
        "last_used": format_timestamp(record.last_used),
        "use_count": record.use_count,
    }


def row_to_record(row: sqlite3.Row) -> HostRecord:
    """Convert a hosts row back into a HostRecord."""
    d = dict(row)
    return HostRecord(
        key=HostKey(d["key_host"], d["key_port"]),
        address=d["address"],
        port=d["port"],
        display_name=d["display_name"],
        username=d["username"] or "",
        username_source=d["username_source"] or "",
        key_path=d["key_path"] or "",
        description=d["description"] or "",
        tags=parse_tags(d["tags"]),
        last_seen_sources=_parse_sources(d["last_seen_sources"]),
        user_edited=bool(d["user_edited"]),
        created_at=parse_timestamp(d["created_at"]),
        updated_at=parse_timestamp(d["updated_at"]),
        last_used=parse_timestamp(d["last_used"]),
        use_count=d["use_count"] or 0,
    )
