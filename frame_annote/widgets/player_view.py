# frame_annote/widgets/player_view.py
from __future__ import annotations

from typing import List, Optional, Tuple

from PyQt5.QtCore import QRect, QSize, Qt, pyqtSignal
from PyQt5.QtGui import QColor, QImage, QPainter
from PyQt5.QtMultimedia import (
    QAbstractVideoBuffer,
    QAbstractVideoSurface,
    QMediaContent,
    QMediaPlayer,
    QVideoFrame,
)
from PyQt5.QtWidgets import QSizePolicy, QWidget

from ..media_source import to_qurl


class FrameSink(QAbstractVideoSurface):
    """
    Video output that keeps a CPU copy of the most recent frame, so the
    player can paint it and the capture adapter can read it back.
    """

    frame_ready = pyqtSignal()

    _FORMATS = [
        QVideoFrame.Format_ARGB32,
        QVideoFrame.Format_ARGB32_Premultiplied,
        QVideoFrame.Format_RGB32,
        QVideoFrame.Format_RGB24,
        QVideoFrame.Format_RGB565,
    ]

    def __init__(self, parent=None):
        super().__init__(parent)
        self._last: Optional[QImage] = None

    def supportedPixelFormats(self, handle_type=QAbstractVideoBuffer.NoHandle) -> List[int]:
        if handle_type == QAbstractVideoBuffer.NoHandle:
            return list(self._FORMATS)
        return []

    def present(self, frame: QVideoFrame) -> bool:
        if not frame.isValid():
            return False
        f = QVideoFrame(frame)
        if not f.map(QAbstractVideoBuffer.ReadOnly):
            return False
        try:
            fmt = QVideoFrame.imageFormatFromPixelFormat(f.pixelFormat())
            if fmt == QImage.Format_Invalid:
                return False
            ptr = f.bits()
            ptr.setsize(f.mappedBytes())
            img = QImage(bytes(ptr), f.width(), f.height(), f.bytesPerLine(), fmt).copy()
        finally:
            f.unmap()
        self._last = img
        self.frame_ready.emit()
        return True

    def last_frame(self) -> Optional[QImage]:
        return self._last

    def reset(self) -> None:
        self._last = None


class PlayerView(QWidget):
    """
    Single-video player: QMediaPlayer rendered through a FrameSink.

    Implements the playback-surface calls used by capture.capture_frame:
    pause / play / seek / is_ready / frame_size / current_time / grab_frame.
    """

    position_changed = pyqtSignal(int)   # ms
    duration_changed = pyqtSignal(int)   # ms
    playing_changed = pyqtSignal(bool)
    media_error = pyqtSignal(str)

    def __init__(self, parent: Optional[QWidget] = None):
        super().__init__(parent)
        self.setSizePolicy(QSizePolicy.Expanding, QSizePolicy.Expanding)
        self.setMinimumSize(320, 180)

        self._sink = FrameSink(self)
        self._sink.frame_ready.connect(self.update)

        self._player = QMediaPlayer(None, QMediaPlayer.VideoSurface)
        self._player.setVideoOutput(self._sink)
        self._player.positionChanged.connect(lambda pos: self.position_changed.emit(int(pos)))
        self._player.durationChanged.connect(lambda dur: self.duration_changed.emit(int(dur or 0)))
        self._player.stateChanged.connect(
            lambda st: self.playing_changed.emit(st == QMediaPlayer.PlayingState)
        )
        self._player.error.connect(lambda _err: self.media_error.emit(self._player.errorString()))

    # ---------------- Media ----------------

    def load(self, source: str) -> None:
        self._sink.reset()
        self._player.setMedia(QMediaContent(to_qurl(source)))
        # Show the first frame without starting playback
        self._player.play()
        self._player.pause()

    def unload(self) -> None:
        self._player.stop()
        self._player.setMedia(QMediaContent())
        self._sink.reset()
        self.update()

    # ---------------- Playback surface ----------------

    def play(self) -> None:
        self._player.play()

    def pause(self) -> None:
        self._player.pause()

    def toggle(self) -> None:
        if self.is_playing():
            self.pause()
        else:
            self.play()

    def seek(self, ms: int) -> None:
        self._player.setPosition(max(0, int(ms)))

    def is_playing(self) -> bool:
        return self._player.state() == QMediaPlayer.PlayingState

    def is_ready(self) -> bool:
        status = self._player.mediaStatus()
        if status not in (
            QMediaPlayer.LoadedMedia,
            QMediaPlayer.BufferingMedia,
            QMediaPlayer.BufferedMedia,
            QMediaPlayer.EndOfMedia,
        ):
            return False
        return self._sink.last_frame() is not None

    def frame_size(self) -> Tuple[int, int]:
        img = self._sink.last_frame()
        if img is None:
            return (0, 0)
        return (img.width(), img.height())

    def current_time(self) -> float:
        return float(self._player.position() or 0) / 1000.0

    def position_ms(self) -> int:
        return int(self._player.position() or 0)

    def duration_ms(self) -> int:
        return int(self._player.duration() or 0)

    def grab_frame(self) -> Optional[QImage]:
        img = self._sink.last_frame()
        return QImage(img) if img is not None else None

    # ---------------- Painting ----------------

    def sizeHint(self) -> QSize:
        return QSize(960, 540)

    def _target_rect(self, img: QImage) -> QRect:
        size = img.size().scaled(self.size(), Qt.KeepAspectRatio)
        x = (self.width() - size.width()) // 2
        y = (self.height() - size.height()) // 2
        return QRect(x, y, size.width(), size.height())

    def paintEvent(self, event):
        painter = QPainter(self)
        painter.fillRect(self.rect(), QColor("#000000"))
        img = self._sink.last_frame()
        if img is not None and not img.isNull():
            painter.setRenderHint(QPainter.SmoothPixmapTransform, True)
            painter.drawImage(self._target_rect(img), img)
        painter.end()
