"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from loguru import logger

from sshm.config.models import Config, DiscoveryConfig, GeneralConfig, SourcesConfig
from sshm.core.types import Confidence, SourceKind
from sshm.discovery.models import RawCandidate
from sshm.persistence.store import HostStore

SSH_CONFIG_TEXT = """\
Host *
    User fallback
    ServerAliveInterval 30

Host db-prod
    HostName 10.0.0.1
    User carol

Host web-prod
    HostName 10.0.0.3
    Port 2222

Host *.internal
    User ops
"""

KNOWN_HOSTS_TEXT = """\
10.0.0.1 ssh-ed25519 AAAAC3NzaC1lZDI1NTE5AAAAIExample1
[10.0.0.3]:2222 ssh-ed25519 AAAAC3NzaC1lZDI1NTE5AAAAIExample2
bastion.example.com,192.168.1.10 ecdsa-sha2-nistp256 AAAAE2VjZHNhExample3
|1|abcdefghijk=|lmnopqrstu= ssh-rsa AAAAB3NzaC1yc2EExample4
"""

HISTORY_TEXT = """\
ls -la
ssh dave@10.0.0.1
git status
ssh -p 2200 deploy@staging.example.com
ssh bastion.example.com
"""


@pytest.fixture(autouse=True)
def isolated_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Keep every test away from the real ~/.sshm and ~/.ssh."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("SSHM_CONFIG", str(home / ".sshm" / "config.yaml"))
    monkeypatch.setenv("SSHM_LOG_DIR", str(tmp_path / "logs"))
    yield home
    logger.remove()


@pytest.fixture
def store(tmp_path: Path) -> HostStore:
    """Create a host store in a temporary directory."""
    return HostStore(tmp_path / "data" / "hosts.db")


class FakeClock:
    """Deterministic clock advancing one minute per call."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        current = self.now
        self.now += timedelta(minutes=1)
        return current


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_candidate():
    """Factory for RawCandidate with sensible defaults."""

    def _make(
        address: str,
        kind: SourceKind = SourceKind.KNOWN_HOSTS,
        username: str = "",
        confidence: Confidence | None = None,
        port: int | None = None,
        detail: str = "",
        order: int = 0,
        key_path: str = "",
    ) -> RawCandidate:
        if confidence is None:
            confidence = Confidence.STRONG if username else Confidence.NONE
        return RawCandidate(
            address=address,
            source_kind=kind,
            port=port,
            username=username,
            confidence=confidence,
            source_detail=detail,
            seen_order=order,
            key_path=key_path,
        )

    return _make


@pytest.fixture
def source_files(tmp_path: Path) -> dict[str, Path]:
    """Sample ssh config, known_hosts and history files."""
    ssh_dir = tmp_path / "ssh"
    ssh_dir.mkdir()
    paths = {
        "ssh_config": ssh_dir / "config",
        "known_hosts": ssh_dir / "known_hosts",
        "history": tmp_path / "bash_history",
    }
    paths["ssh_config"].write_text(SSH_CONFIG_TEXT)
    paths["known_hosts"].write_text(KNOWN_HOSTS_TEXT)
    paths["history"].write_text(HISTORY_TEXT)
    return paths


@pytest.fixture
def config(tmp_path: Path, source_files: dict[str, Path]) -> Config:
    """Config pointing at the sample source files."""
    return Config(
        general=GeneralConfig(data_dir=tmp_path / "data"),
        sources=SourcesConfig(
            known_hosts=source_files["known_hosts"],
            ssh_config=source_files["ssh_config"],
            history_files=[source_files["history"]],
        ),
        discovery=DiscoveryConfig(),
    )
