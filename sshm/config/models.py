"""
sshm Config - Configuration models.

Pydantic models for type-safe configuration.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator

from sshm.core.types import SourceKind


def _home() -> Path:
    return Path.home()


class GeneralConfig(BaseModel):
    """General application settings."""

    data_dir: Path = Field(default_factory=lambda: _home() / ".sshm", description="Data directory path")
    db_name: str = Field(default="hosts.db", description="Host store file name inside data_dir")

    @field_validator("data_dir", mode="after")
    @classmethod
    def _expand_data_dir(cls, value: Path) -> Path:
        return value.expanduser()

    @property
    def db_path(self) -> Path:
        return self.data_dir / self.db_name


class SourcesConfig(BaseModel):
    """Where discovery looks for hosts."""

    known_hosts: Path = Field(
        default_factory=lambda: _home() / ".ssh" / "known_hosts",
        description="SSH known_hosts file",
    )
    ssh_config: Path = Field(
        default_factory=lambda: _home() / ".ssh" / "config",
        description="SSH client configuration file",
    )
    history_files: list[Path] = Field(
        default_factory=lambda: [
            _home() / ".bash_history",
            _home() / ".zsh_history",
            _home() / ".history",
            _home() / ".local" / "share" / "fish" / "fish_history",
        ],
        description="Shell history files, oldest-to-newest priority order",
    )
    max_bytes: int = Field(
        default=8 * 1024 * 1024, ge=1024, description="Maximum bytes read from a single source file"
    )
    enabled: list[SourceKind] = Field(
        default_factory=lambda: list(SourceKind), description="Source kinds scanned during discovery"
    )

    @field_validator("known_hosts", "ssh_config", mode="after")
    @classmethod
    def _expand_path(cls, value: Path) -> Path:
        return value.expanduser()

    @field_validator("history_files", mode="after")
    @classmethod
    def _expand_paths(cls, value: list[Path]) -> list[Path]:
        return [p.expanduser() for p in value]


class DiscoveryConfig(BaseModel):
    """Discovery pass behaviour."""

    default_user: str | None = Field(
        default=None, description="Weak username fallback for hosts without evidence"
    )
    on_start: bool = Field(default=True, description="Run discovery when the browser opens")
    backup_known_hosts: bool = Field(
        default=True, description="Copy known_hosts aside once per session before reading it"
    )
    keep_backups: int = Field(default=5, ge=1, le=100, description="known_hosts backups to keep")


class SSHConfig(BaseModel):
    """SSH client settings used by the connect action."""

    binary: str = Field(default="ssh", description="SSH client executable")
    extra_args: list[str] = Field(default_factory=list, description="Arguments added to every ssh call")


class Config(BaseModel):
    """Root configuration."""

    general: GeneralConfig = Field(default_factory=GeneralConfig)
    sources: SourcesConfig = Field(default_factory=SourcesConfig)
    discovery: DiscoveryConfig = Field(default_factory=DiscoveryConfig)
    ssh: SSHConfig = Field(default_factory=SSHConfig)
    logging: dict[str, Any] = Field(
        default_factory=dict, description="Log file settings, overridden by SSHM_LOG_* variables"
    )
