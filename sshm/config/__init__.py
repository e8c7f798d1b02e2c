"""
sshm Config - Configuration management.
"""

from sshm.config.loader import load_config, resolve_config_path, save_config
from sshm.config.models import (
    Config,
    DiscoveryConfig,
    GeneralConfig,
    SourcesConfig,
    SSHConfig,
)

__all__ = [
    "Config",
    "DiscoveryConfig",
    "GeneralConfig",
    "SSHConfig",
    "SourcesConfig",
    "load_config",
    "resolve_config_path",
    "save_config",
]
