"""Frame capture against a fake playback surface."""

from unittest.mock import patch

import pytest
from PyQt5.QtGui import QImage

from frame_annote.capture import capture_frame, resume_playback
from frame_annote.errors import CaptureEncodingFailed, CaptureNotReady

from conftest import solid_image


class FakeSurface:
    """Records calls in order; mimics PlayerView's playback-surface methods."""

    def __init__(self, ready=True, size=(64, 48), time_s=12.3456, frame="default"):
        self.calls = []
        self._ready = ready
        self._size = size
        self._time = time_s
        self._frame = solid_image(*size, color="#336699") if frame == "default" else frame

    def pause(self):
        self.calls.append("pause")

    def play(self):
        self.calls.append("play")

    def seek(self, ms):
        self.calls.append(("seek", ms))

    def is_ready(self):
        return self._ready

    def frame_size(self):
        return self._size

    def current_time(self):
        return self._time

    def grab_frame(self):
        return self._frame


def test_capture_pauses_then_returns_frame():
    surface = FakeSurface()
    frame = capture_frame(surface)
    assert surface.calls == ["pause"]
    assert frame.timestamp_ms == 12345
    assert (frame.width, frame.height) == (64, 48)
    assert frame.png.startswith(b"\x89PNG")
    img = frame.to_image()
    assert img.pixelColor(10, 10).name() == "#336699"


def test_capture_not_ready_still_pauses():
    surface = FakeSurface(ready=False)
    with pytest.raises(CaptureNotReady, match="still loading"):
        capture_frame(surface)
    assert surface.calls == ["pause"]


@pytest.mark.parametrize("size", [(0, 0), (640, 0), (0, 480)])
def test_capture_zero_size_is_not_ready(size):
    surface = FakeSurface(size=size, frame=QImage())
    with pytest.raises(CaptureNotReady, match="dimensions are invalid"):
        capture_frame(surface)
    assert "play" not in surface.calls


def test_capture_null_frame_is_encoding_failure():
    surface = FakeSurface(frame=None)
    with pytest.raises(CaptureEncodingFailed):
        capture_frame(surface)


def test_capture_encoder_error_is_encoding_failure():
    surface = FakeSurface()
    with patch("frame_annote.capture.encode_png", side_effect=ValueError("PNG encoder failed")):
        with pytest.raises(CaptureEncodingFailed, match="PNG encoder failed"):
            capture_frame(surface)
    assert surface.calls == ["pause"]


def test_capture_at_start_of_video():
    frame = capture_frame(FakeSurface(time_s=0.0))
    assert frame.timestamp_ms == 0


def test_resume_playback_seeks_then_plays():
    surface = FakeSurface()
    resume_playback(surface, 12345)
    assert surface.calls == [("seek", 12345), "play"]
