"""
Connection action - turn a host record into an ssh invocation.
"""

from __future__ import annotations

import shlex
import subprocess
from collections.abc import Sequence

from sshm.core.exceptions import SshClientError
from sshm.core.types import DEFAULT_SSH_PORT
from sshm.persistence.models import HostRecord
from sshm.utils.logger import log_prefix, logger


def build_ssh_args(record: HostRecord, extra_args: Sequence[str] = ()) -> list[str]:
    """
    Arguments for the ssh client, without the binary itself.

    ``-p`` is only added for a non-default port and ``-i`` only when the
    record has a key path. IPv6 addresses need no brackets in the
    ``user@host`` form.
    """
    args = list(extra_args)
    if record.port != DEFAULT_SSH_PORT:
        args += ["-p", str(record.port)]
    if record.key_path:
        args += ["-i", record.key_path]
    args.append(record.destination)
    return args


def build_ssh_command(record: HostRecord, binary: str = "ssh", extra_args: Sequence[str] = ()) -> str:
    """Shell-quoted command line, for display and copy/paste."""
    return shlex.join([binary, *build_ssh_args(record, extra_args)])


def connect(record: HostRecord, binary: str = "ssh", extra_args: Sequence[str] = ()) -> int:
    """
    Run ssh in the foreground on the current terminal.

    Returns:
        The ssh exit code.

    Raises:
        SshClientError: The binary is missing or cannot be executed.
    """
    argv = [binary, *build_ssh_args(record, extra_args)]
    logger.info(f"{log_prefix('🔗')} Connecting to {record.display_name}: {shlex.join(argv)}")
    try:
        result = subprocess.run(argv, check=False)
    except FileNotFoundError:
        raise SshClientError(binary, "not found in PATH") from None
    except OSError as e:
        raise SshClientError(binary, e.strerror or str(e)) from e

    logger.info(f"{log_prefix('🔗')} Session to {record.display_name} ended with exit code {result.returncode}")
    return result.returncode
