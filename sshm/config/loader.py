"""
sshm Config - YAML loading and saving.
"""

from __future__ import annotations

import os
from pathlib import Path

import yaml
from loguru import logger
from pydantic import ValidationError

from sshm.config.models import Config
from sshm.core.exceptions import ConfigurationError

DEFAULT_CONFIG_PATH = Path.home() / ".sshm" / "config.yaml"
CONFIG_ENV_VAR = "SSHM_CONFIG"


def resolve_config_path(path: Path | None = None) -> Path:
    """Explicit path, then $SSHM_CONFIG, then ~/.sshm/config.yaml."""
    if path is not None:
        return Path(path).expanduser()
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path).expanduser()
    return DEFAULT_CONFIG_PATH


def load_config(path: Path | None = None) -> Config:
    """
    Load configuration from YAML.

    A missing file yields defaults. A file that cannot be parsed or does
    not validate raises ConfigurationError.
    """
    config_path = resolve_config_path(path)

    if not config_path.exists():
        logger.debug(f"Config file not found, using defaults: {config_path}")
        return Config()

    try:
        with open(config_path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(
            f"Cannot read config file {config_path}: {e}", {"path": str(config_path)}
        ) from e

    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Config file {config_path} must contain a mapping", {"path": str(config_path)}
        )

    try:
        config = Config.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(
            f"Invalid config file {config_path}: {e}", {"path": str(config_path)}
        ) from e

    logger.debug(f"Config loaded from {config_path}")
    return config


def save_config(config: Config, path: Path | None = None) -> Path:
    """Write configuration to YAML and return the path written."""
    config_path = resolve_config_path(path)
    config_path.parent.mkdir(parents=True, exist_ok=True)
    data = config.model_dump(mode="json")
    with open(config_path, "w", encoding="utf-8") as f:
        yaml.safe_dump(data, f, sort_keys=False)
    logger.debug(f"Config saved to {config_path}")
    return config_path
