"""
sshm Discovery - find hosts in local SSH artifacts and reconcile them with the store.

Submodules:
- sources: known_hosts, shell history and ssh_config parsers
- identity: canonical host keys
- username: username inference
- merge: reconciliation with the host store
- service: one coordinated discovery pass
- refresh: background refresh job
"""

from sshm.discovery.identity import make_key, parse_key, resolve, split_host_port
from sshm.discovery.models import HostKey, RawCandidate, SourceResult
from sshm.discovery.username import UsernameChoice, choose_username

__all__ = [
    "HostKey",
    "RawCandidate",
    "SourceResult",
    "UsernameChoice",
    "choose_username",
    "make_key",
    "parse_key",
    "resolve",
    "split_host_port",
]
