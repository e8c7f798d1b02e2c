"""
Display helpers shared by the CLI and the browser.
"""

from __future__ import annotations

from datetime import datetime

NEVER = "never"


def format_relative_time(when: datetime | None, now: datetime | None = None) -> str:
    """
    Human form of a past timestamp: ``5m ago``, ``3h ago``, ``2d ago``,
    then the plain date once it is a week old.
    """
    if when is None:
        return NEVER
    if now is None:
        now = datetime.now(when.tzinfo)

    seconds = max((now - when).total_seconds(), 0)
    if seconds < 3600:
        return f"{int(seconds // 60)}m ago"
    if seconds < 86400:
        return f"{int(seconds // 3600)}h ago"
    if seconds < 7 * 86400:
        return f"{int(seconds // 86400)}d ago"
    return when.strftime("%Y-%m-%d")


def truncate(text: str, width: int) -> str:
    """Cut ``text`` to ``width`` characters, marking the cut with an ellipsis."""
    if width <= 0:
        return ""
    if len(text) <= width:
        return text
    if width == 1:
        return "…"
    return text[: width - 1] + "…"
