"""
views/components/timer.py

Remaining-time display helpers.
Below the warning threshold (5 minutes) the UI shows the clock in red.
Presentation only, submission logic never looks at it.
"""

from config import WARNING_THRESHOLD_SECONDS


def format_time(seconds: int) -> str:
    """
    Format remaining seconds for the clock badge.

    Returns:
        "m:ss", or "h:mm:ss" once an hour or more is left.
    """
    seconds = max(0, int(seconds))
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def is_urgent(seconds: int, threshold: int = WARNING_THRESHOLD_SECONDS) -> bool:
    return 0 < seconds < threshold


def render(seconds: int) -> dict:
    """Clock badge payload for the web client."""
    urgent = is_urgent(seconds)
    return {
        "remaining_seconds": seconds,
        "display": format_time(seconds),
        "urgent": urgent,
        "css_class": "timer-display timer-warning" if urgent else "timer-display",
    }
