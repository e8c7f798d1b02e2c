"""
sshm - SSH host manager.

Keeps a local inventory of SSH hosts, populated automatically from
known_hosts, shell history and ~/.ssh/config, and lets you search
and connect from the terminal.
"""
from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("sshm")
except PackageNotFoundError:
    # Package not installed, fallback to pyproject.toml
    __version__ = "0.4.0"

__author__ = "sshm Contributors"
