"""
known_hosts backup.

Housekeeping only: a copy of the user's known_hosts is kept before the
first discovery read of a session. Failures are logged and ignored.
"""

from __future__ import annotations

import shutil
from datetime import datetime
from pathlib import Path

from loguru import logger

BACKUP_PREFIX = "known_hosts."
BACKUP_SUFFIX = ".bak"


def list_backups(backup_dir: Path) -> list[Path]:
    """Existing backups, oldest first."""
    if not backup_dir.is_dir():
        return []
    return sorted(backup_dir.glob(f"{BACKUP_PREFIX}*{BACKUP_SUFFIX}"))


def prune_backups(backup_dir: Path, keep: int) -> list[Path]:
    """Delete all but the ``keep`` newest backups; returns what was removed."""
    backups = list_backups(backup_dir)
    removed = backups[:-keep] if keep > 0 else backups
    for path in removed:
        try:
            path.unlink()
        except OSError as e:
            logger.warning(f"⚠️ Could not remove old backup {path}: {e}")
    return removed


def backup_known_hosts(
    known_hosts: Path,
    backup_dir: Path,
    keep: int = 5,
    now: datetime | None = None,
) -> Path | None:
    """
    Copy ``known_hosts`` into ``backup_dir``.

    Returns:
        Path of the new backup, or None if there was nothing to copy or
        the copy failed.
    """
    if not known_hosts.is_file():
        logger.debug(f"📁 No known_hosts at {known_hosts}, nothing to back up")
        return None

    stamp = (now or datetime.now()).strftime("%Y%m%d-%H%M%S-%f")
    target = backup_dir / f"{BACKUP_PREFIX}{stamp}{BACKUP_SUFFIX}"
    try:
        backup_dir.mkdir(parents=True, exist_ok=True)
        shutil.copy2(known_hosts, target)
    except OSError as e:
        logger.warning(f"⚠️ known_hosts backup failed: {e}")
        return None

    logger.debug(f"💾 known_hosts backed up to {target}")
    prune_backups(backup_dir, keep)
    return target
