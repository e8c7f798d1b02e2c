"""
sshm SSH - connect action and known_hosts housekeeping.
"""

from sshm.ssh.command import build_ssh_args, build_ssh_command, connect
from sshm.ssh.known_hosts import backup_known_hosts, list_backups, prune_backups

__all__ = [
    "backup_known_hosts",
    "build_ssh_args",
    "build_ssh_command",
    "connect",
    "list_backups",
    "prune_backups",
]
