"""
sshm UI - console output and the interactive browser.
"""

from sshm.ui.console import SSHM_THEME, ConsoleUI

__all__ = ["SSHM_THEME", "ConsoleUI"]
