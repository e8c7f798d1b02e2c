"""
Core Exceptions - Unified error hierarchy for sshm.

Discovery-level errors (sources, lines) are soft and never abort a pass.
Store-level errors are reported to the caller. Validation errors are
raised at the edit boundary before anything reaches the store.
"""


class SshmError(Exception):
    """Base exception for all sshm errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | {self.details}"
        return self.message


# =============================================================================
# Discovery Errors
# =============================================================================

class SourceUnavailableError(SshmError):
    """A discovery source is missing or unreadable."""

    def __init__(self, path: str, reason: str):
        super().__init__(
            f"Source '{path}' unavailable: {reason}",
            {"path": path, "reason": reason}
        )
        self.path = path
        self.reason = reason


class ParseSkip(SshmError):
    """A single line or stanza could not be parsed and is skipped."""
    pass


# =============================================================================
# Validation Errors
# =============================================================================

class ValidationError(SshmError):
    """Input validation failed."""
    pass


class InvalidAddressError(ValidationError):
    """Address/port pair cannot be turned into a host key."""

    def __init__(self, address: str, reason: str):
        super().__init__(
            f"Invalid address '{address}': {reason}",
            {"address": address, "reason": reason}
        )
        self.address = address
        self.reason = reason


class InvalidUserEditError(ValidationError):
    """A manual add/edit was rejected before reaching the store."""

    def __init__(self, field: str, reason: str):
        super().__init__(
            f"Invalid value for '{field}': {reason}",
            {"field": field, "reason": reason}
        )
        self.field = field
        self.reason = reason


class HostNotFoundError(ValidationError):
    """Host not found in inventory."""

    def __init__(self, host: str):
        super().__init__(
            f"Host '{host}' not found in inventory",
            {"host": host}
        )
        self.host = host


class DuplicateHostError(ValidationError):
    """A host with the same key already exists."""

    def __init__(self, key: str):
        super().__init__(
            f"Host '{key}' already exists in inventory",
            {"key": key}
        )
        self.key = key


# =============================================================================
# Persistence Errors
# =============================================================================

class PersistenceError(SshmError):
    """Database persistence operation failed (insert, update, delete).

    Use this for failures where a record could not be committed. Records
    committed earlier stay valid.
    """

    def __init__(self, operation: str, reason: str, details: dict | None = None):
        super().__init__(
            f"Persistence error during {operation}: {reason}",
            {**(details or {}), "operation": operation, "reason": reason}
        )
        self.operation = operation
        self.reason = reason


# =============================================================================
# Connection Errors
# =============================================================================

class SshClientError(SshmError):
    """The ssh client could not be started."""

    def __init__(self, binary: str, reason: str):
        super().__init__(
            f"Cannot run '{binary}': {reason}",
            {"binary": binary, "reason": reason}
        )
        self.binary = binary
        self.reason = reason


# =============================================================================
# Configuration Errors
# =============================================================================

class ConfigurationError(SshmError):
    """Configuration error."""
    pass
