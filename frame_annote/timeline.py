# frame_annote/timeline.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from .domain import Annotation


# -----------------------------
# Normalized positions
# -----------------------------

def _valid_duration(duration) -> float:
    if duration is None:
        return 0.0
    try:
        d = float(duration)
    except (TypeError, ValueError):
        return 0.0
    if d != d or d <= 0:  # NaN or non-positive
        return 0.0
    return d


def progress_ratio(current_time: float, duration: float) -> float:
    """current / duration in seconds; 0 when the duration is unknown."""
    d = _valid_duration(duration)
    if d <= 0:
        return 0.0
    return max(0.0, float(current_time or 0.0)) / d


def marker_position(timestamp_ms: int, duration: float) -> float:
    """Fraction of the timeline width for a timestamp, duration in seconds."""
    d = _valid_duration(duration)
    if d <= 0:
        return 0.0
    return int(timestamp_ms) / (d * 1000.0)


def fraction_to_time(fraction: float, duration: float) -> float:
    """Seek target in seconds for a click at `fraction` of the timeline width."""
    d = _valid_duration(duration)
    f = max(0.0, min(float(fraction), 1.0))
    return f * d


# -----------------------------
# Index
# -----------------------------

@dataclass(frozen=True)
class Marker:
    position: float
    annotation: Annotation


@dataclass(frozen=True)
class TimelineIndex:
    """
    Read-only view of one video's annotations for drawing and hit-testing.

    Never stored; rebuild it whenever the annotation set, the duration or the
    playhead changes.
    """
    duration: float
    current_time: float
    markers: Tuple[Marker, ...]

    @staticmethod
    def build(annotations: Iterable[Annotation], duration: float, current_time: float = 0.0) -> "TimelineIndex":
        ordered = sorted(annotations or [], key=lambda a: a.timestamp_ms)
        markers = tuple(Marker(position=marker_position(a.timestamp_ms, duration), annotation=a) for a in ordered)
        return TimelineIndex(
            duration=_valid_duration(duration),
            current_time=float(current_time or 0.0),
            markers=markers,
        )

    @property
    def progress(self) -> float:
        return progress_ratio(self.current_time, self.duration)

    def positions(self) -> List[float]:
        return [m.position for m in self.markers]

    def time_at(self, fraction: float) -> float:
        return fraction_to_time(fraction, self.duration)

    def marker_at(self, fraction: float, tolerance: float = 0.01) -> Optional[Marker]:
        """Closest marker within `tolerance` of `fraction`; earliest wins a tie."""
        best: Optional[Marker] = None
        best_d = float("inf")
        for m in self.markers:
            d = abs(m.position - float(fraction))
            if d <= tolerance and d < best_d:
                best, best_d = m, d
        return best
