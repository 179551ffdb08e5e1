# frame_annote/timeutils.py
from __future__ import annotations

import math
from datetime import datetime, timezone


# -----------------------------
# Time formatting / conversion
# -----------------------------

def format_timecode(ms: int) -> str:
    """
    Render a millisecond timestamp as HH:MM:SS.mmm.

    Hours are not wrapped at 24, so the string keeps growing for very long
    media while staying zero-padded to at least two digits.
    """
    ms = int(ms)
    if ms < 0:
        raise ValueError("timestamp must be non-negative")
    total_seconds = ms // 1000
    ms_part = ms % 1000
    hours = total_seconds // 3600
    minutes = (total_seconds % 3600) // 60
    seconds = total_seconds % 60
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}.{ms_part:03d}"


def seconds_to_ms(sec: float) -> int:
    """Floor a playback position in seconds to whole milliseconds."""
    if sec is None:
        return 0
    sec = float(sec)
    if sec <= 0 or math.isnan(sec):
        return 0
    return int(math.floor(sec * 1000.0))


def ms_to_time_str(ms: int) -> str:
    """Short clock display for the player (MM:SS, or H:MM:SS past an hour)."""
    if ms is None:
        ms = 0
    ms = max(0, int(ms))
    s = ms // 1000
    h = s // 3600
    m = (s % 3600) // 60
    s = s % 60
    if h:
        return f"{h}:{m:02d}:{s:02d}"
    return f"{m:02d}:{s:02d}"


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
