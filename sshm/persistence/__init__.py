"""
sshm Persistence - SQLite host store.
"""

from sshm.persistence.models import MANUAL_SOURCE, HostRecord, utcnow
from sshm.persistence.store import HostStore

__all__ = ["MANUAL_SOURCE", "HostRecord", "HostStore", "utcnow"]
