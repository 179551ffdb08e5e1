# frame_annote/capture.py
from __future__ import annotations

import logging

from .domain import CapturedFrame
from .errors import CaptureEncodingFailed, CaptureNotReady
from .snapshots import encode_png
from .timeutils import seconds_to_ms

logger = logging.getLogger(__name__)


# A playback surface is anything with:
#   pause(), play(), seek(ms)
#   is_ready() -> bool            metadata loaded
#   frame_size() -> (w, h)        intrinsic video size
#   current_time() -> float       seconds
#   grab_frame() -> QImage        the frame currently shown
# widgets.player_view.PlayerView is the Qt implementation.


def capture_frame(surface) -> CapturedFrame:
    """
    Pause the surface and take the frame it is showing.

    Pausing always happens first (and is harmless if already paused) so the
    sampled pixels belong to the reported timestamp. Nothing else about the
    playback state is changed, including on failure.
    """
    surface.pause()

    if not surface.is_ready():
        raise CaptureNotReady("Video is still loading. Please wait a moment and try again.")

    w, h = surface.frame_size()
    if int(w or 0) <= 0 or int(h or 0) <= 0:
        raise CaptureNotReady("Unable to capture frame. Video dimensions are invalid.")

    timestamp_ms = seconds_to_ms(surface.current_time())

    image = surface.grab_frame()
    if image is None or image.isNull():
        raise CaptureEncodingFailed("Failed to capture frame. Please try again.")

    try:
        png = encode_png(image)
    except ValueError as e:
        raise CaptureEncodingFailed(f"Failed to capture frame: {e}") from e

    logger.debug("Captured %dx%d frame at %d ms", image.width(), image.height(), timestamp_ms)
    return CapturedFrame(
        png=png,
        width=int(image.width()),
        height=int(image.height()),
        timestamp_ms=timestamp_ms,
    )


def resume_playback(surface, timestamp_ms: int) -> None:
    """Continue from the captured position, however long the editor was open."""
    surface.seek(max(0, int(timestamp_ms)))
    surface.play()
