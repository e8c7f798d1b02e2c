"""
sshm Core - Exceptions and shared types.
"""

from sshm.core.exceptions import (
    ConfigurationError,
    DuplicateHostError,
    HostNotFoundError,
    InvalidAddressError,
    InvalidUserEditError,
    ParseSkip,
    PersistenceError,
    SourceUnavailableError,
    SshClientError,
    SshmError,
    ValidationError,
)
from sshm.core.types import DEFAULT_SSH_PORT, Confidence, SourceKind

__all__ = [
    "ConfigurationError",
    "Confidence",
    "DEFAULT_SSH_PORT",
    "DuplicateHostError",
    "HostNotFoundError",
    "InvalidAddressError",
    "InvalidUserEditError",
    "ParseSkip",
    "PersistenceError",
    "SourceKind",
    "SourceUnavailableError",
    "SshClientError",
    "SshmError",
    "ValidationError",
]
