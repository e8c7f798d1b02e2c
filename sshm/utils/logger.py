"""
Centralized logging for sshm.

Provides:
- Configurable log levels and rotation
- Session-specific logging
- Multiple output targets (file, console)

Settings come from the ``logging`` section of config.yaml and SSHM_LOG_*
environment variables. See log_config.py for details.
"""
import json
import os
import sys
from typing import Optional

from loguru import logger

from sshm.utils.log_config import LogConfig, load_log_config


def use_emoji_logs() -> bool:
    """
    Check if emoji prefixes should be used in log messages.

    Returns True unless SSHM_EMOJI_LOGS is set to "0" or "false".
    """
    value = os.environ.get("SSHM_EMOJI_LOGS", "1").lower()
    return value not in ("0", "false", "no", "off")


_EMOJI_TO_ASCII = {
    "🔍": "[DISCOVER]",
    "⚠️": "[WARN]",
    "✅": "[OK]",
    "❌": "[ERROR]",
    "🗄️": "[DB]",
    "📁": "[FILE]",
    "🔗": "[CONNECT]",
    "🧹": "[CLEANUP]",
}


def log_prefix(emoji: str) -> str:
    """
    Return the appropriate log prefix based on SSHM_EMOJI_LOGS.

    Args:
        emoji: The emoji to use when emoji logs are enabled.

    Returns:
        The emoji if enabled, otherwise the ASCII equivalent
        (or empty string if no mapping exists).
    """
    if use_emoji_logs():
        return emoji
    return _EMOJI_TO_ASCII.get(emoji, "")


def setup_logger(
    verbose: bool = False,
    session_id: Optional[str] = None,
    config: Optional[LogConfig] = None,
) -> None:
    """
    Configure the logger.

    Rules:
    1. FILE: Always log to ~/.sshm/logs/sshm.log (rotated).
    2. CONSOLE:
       - If verbose: Log DEBUG+ to stderr.
       - If NOT verbose: stay quiet on stderr (the UI reports to the user).

    Args:
        verbose: Enable console logging
        session_id: Optional session ID bound into every record
        config: Log settings (default: built from SSHM_LOG_* variables)
    """
    logger.remove()

    if config is None:
        config = load_log_config()

    log_path = config.log_path
    log_path.parent.mkdir(parents=True, exist_ok=True)

    def format_record(record):
        """Format log record with optional session_id."""
        sid = record["extra"].get("session_id", "")

        if config.json_logs:
            log_entry = {
                "timestamp": record["time"].isoformat(),
                "level": record["level"].name,
                "message": record["message"],
                "module": record["name"],
                "function": record["function"],
                "line": record["line"],
            }
            if sid:
                log_entry["session_id"] = sid
            # Braces would be read as format fields by loguru
            return json.dumps(log_entry).replace("{", "{{").replace("}", "}}") + "\n"

        prefix = "{time:YYYY-MM-DD HH:mm:ss} | "
        if sid:
            prefix += sid + " | "
        if config.include_caller:
            return prefix + "{level: <8} | {name}:{function}:{line} - {message}\n"
        return prefix + "{level: <8} | {message}\n"

    logger.add(
        log_path,
        rotation=config.rotation,
        retention=config.retention,
        level=config.file_level,
        format=format_record,
        compression=config.compression,
        enqueue=True,
    )

    if verbose or config.console_enabled:
        console_format = (
            "<green>{time:HH:mm:ss}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{line}</cyan> - "
            "<level>{message}</level>"
        )
        logger.add(
            sys.stderr,
            format=console_format,
            level=config.console_level if not verbose else "DEBUG",
            colorize=True,
        )

    if session_id:
        logger.configure(extra={"session_id": session_id})
