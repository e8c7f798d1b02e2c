"""
sshm Inventory - manual host management.
"""

from sshm.inventory.service import HostService

__all__ = ["HostService"]
