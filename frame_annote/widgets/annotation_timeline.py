# frame_annote/widgets/annotation_timeline.py
from __future__ import annotations

from typing import List, Optional

from PyQt5.QtCore import QPoint, QRect, QSize, Qt, pyqtSignal
from PyQt5.QtGui import QBrush, QColor, QPainter, QPen
from PyQt5.QtWidgets import QSizePolicy, QToolTip, QWidget

from ..domain import Annotation
from ..timeline import Marker, TimelineIndex


class AnnotationTimeline(QWidget):
    """
    Progress bar with one marker per saved annotation.

    Use:
      - set_duration_ms(duration_ms) when the player reports it
      - set_position_ms(ms) on every player tick
      - set_annotations(records) whenever the server list changes

    The TimelineIndex is rebuilt from these on every paint / click; the
    widget itself keeps no derived state.
    """

    seek_requested = pyqtSignal(float)           # seconds
    marker_clicked = pyqtSignal(object)          # Annotation

    def __init__(self, parent: Optional[QWidget] = None):
        super().__init__(parent)

        # Data
        self._annotations: List[Annotation] = []
        self._duration_ms: int = 0
        self._position_ms: int = 0

        # Styling/layout
        self._pad_x = 10
        self._bar_h = 8
        self._marker_r = 6
        self._thumb_r = 8

        self._hover_id: Optional[str] = None

        self.setMouseTracking(True)
        self.setSizePolicy(QSizePolicy.Expanding, QSizePolicy.Fixed)
        self.setMinimumHeight(32)
        self.setCursor(Qt.PointingHandCursor)

    # ---------------- Public API ----------------

    def set_duration_ms(self, duration_ms: int) -> None:
        self._duration_ms = max(0, int(duration_ms or 0))
        self.update()

    def set_position_ms(self, ms: int) -> None:
        self._position_ms = max(0, int(ms or 0))
        self.update()

    def set_annotations(self, annotations: List[Annotation]) -> None:
        self._annotations = list(annotations or [])
        self.update()

    def index(self) -> TimelineIndex:
        return TimelineIndex.build(
            self._annotations,
            duration=self._duration_ms / 1000.0,
            current_time=self._position_ms / 1000.0,
        )

    # ---------------- Geometry helpers ----------------

    def sizeHint(self) -> QSize:
        return QSize(600, 32)

    def _bar_rect(self) -> QRect:
        y = (self.height() - self._bar_h) // 2
        return QRect(self._pad_x, y, max(1, self.width() - 2 * self._pad_x), self._bar_h)

    def _fraction_to_x(self, fraction: float) -> int:
        bar = self._bar_rect()
        f = max(0.0, min(float(fraction), 1.0))
        return bar.left() + int(round(f * bar.width()))

    def _x_to_fraction(self, x: int) -> float:
        bar = self._bar_rect()
        return (int(x) - bar.left()) / float(bar.width())

    def _marker_at(self, pos: QPoint, idx: TimelineIndex) -> Optional[Marker]:
        bar = self._bar_rect()
        tolerance = (self._marker_r + 2) / float(bar.width())
        return idx.marker_at(self._x_to_fraction(pos.x()), tolerance=tolerance)

    # ---------------- Painting ----------------

    def paintEvent(self, event):
        idx = self.index()
        painter = QPainter(self)
        painter.setRenderHint(QPainter.Antialiasing, True)

        bar = self._bar_rect()
        cy = bar.center().y()

        # Track + progress fill
        painter.setPen(Qt.NoPen)
        painter.setBrush(QColor("#d1d5db"))
        painter.drawRoundedRect(bar, 4, 4)
        fill = QRect(bar.left(), bar.top(), self._fraction_to_x(idx.progress) - bar.left(), bar.height())
        painter.setBrush(QColor("#2563eb"))
        painter.drawRoundedRect(fill, 4, 4)

        # Current time indicator
        px = self._fraction_to_x(idx.progress)
        painter.drawEllipse(QPoint(px, cy), self._thumb_r, self._thumb_r)

        # Annotation markers
        for m in idx.markers:
            x = self._fraction_to_x(m.position)
            r = self._marker_r + (3 if m.annotation.id == self._hover_id else 0)
            painter.setPen(QPen(QColor("#ffffff"), 2))
            painter.setBrush(QBrush(QColor("#22c55e")))
            painter.drawEllipse(QPoint(x, cy), r, r)

        painter.end()

    # ---------------- Interaction ----------------

    def mousePressEvent(self, event):
        if event.button() != Qt.LeftButton:
            return super().mousePressEvent(event)
        idx = self.index()
        marker = self._marker_at(event.pos(), idx)
        if marker is not None:
            self.marker_clicked.emit(marker.annotation)
        elif idx.duration > 0:
            self.seek_requested.emit(idx.time_at(self._x_to_fraction(event.pos().x())))
        event.accept()

    def mouseMoveEvent(self, event):
        marker = self._marker_at(event.pos(), self.index())
        hover_id = marker.annotation.id if marker is not None else None
        if hover_id != self._hover_id:
            self._hover_id = hover_id
            if marker is not None:
                rec = marker.annotation
                tip = rec.timecode
                if rec.notes:
                    tip += f"\n{rec.notes}"
                QToolTip.showText(event.globalPos(), tip, self)
            else:
                QToolTip.hideText()
            self.update()
        return super().mouseMoveEvent(event)

    def leaveEvent(self, event):
        self._hover_id = None
        self.update()
        return super().leaveEvent(event)
