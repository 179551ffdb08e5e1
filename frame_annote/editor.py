# frame_annote/editor.py
from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple, Union

from PyQt5.QtCore import QPointF, Qt
from PyQt5.QtGui import QColor, QFont, QImage, QPainter, QPainterPath, QPen

from .errors import EditorStateError, ExportFailed
from .snapshots import SnapshotStore, encode_png


ANNOTATION_COLOR = "#FF0000"
TEXT_OUTLINE_COLOR = "#FFFFFF"
TEXT_OUTLINE_WIDTH = 2
TEXT_PIXEL_SIZE = 24
TEXT_FONT_FAMILY = "Arial"


class StrokeWidth(int, Enum):
    THIN = 2
    THICK = 5


class ToolMode(str, Enum):
    PEN = "pen"
    TEXT = "text"


class EditorState(str, Enum):
    UNINITIALIZED = "uninitialized"
    IDLE = "idle"
    DRAWING = "drawing"
    CLOSED = "closed"


@dataclass(eq=False)
class TextLabel:
    """A text label anchored in bitmap coordinates (baseline-left)."""
    label_id: int
    anchor: QPointF
    text: str = ""


# -----------------------------
# Tool states
# -----------------------------

@dataclass
class PenState:
    """Pen tool: press starts a path, drags extend it, release bakes it in."""
    width: int = StrokeWidth.THIN
    path: Optional[QPainterPath] = None

    mode = ToolMode.PEN

    def press(self, editor: "AnnotationEditor", pt: QPointF) -> None:
        self.path = QPainterPath(pt)

    def move(self, editor: "AnnotationEditor", pt: QPointF) -> None:
        # moves without a press are hover events
        if self.path is None:
            return
        self.path.lineTo(pt)

    def release(self, editor: "AnnotationEditor", pt: QPointF) -> bool:
        if self.path is None:
            return False
        path, self.path = self.path, None
        if path.currentPosition() != pt:
            path.lineTo(pt)
        editor._commit_stroke(path, int(self.width))
        return True


@dataclass
class TextState:
    """Text tool: press places a pending label; commit renders it."""
    pending: List[TextLabel] = field(default_factory=list)

    mode = ToolMode.TEXT

    def press(self, editor: "AnnotationEditor", pt: QPointF) -> TextLabel:
        # Clicking elsewhere takes focus away from whatever label was open.
        editor.commit_pending_text()
        label = TextLabel(label_id=next(editor._label_ids), anchor=pt)
        self.pending.append(label)
        return label

    def move(self, editor: "AnnotationEditor", pt: QPointF) -> None:
        return None

    def release(self, editor: "AnnotationEditor", pt: QPointF) -> bool:
        return False


ToolState = Union[PenState, TextState]


# -----------------------------
# Engine
# -----------------------------

class AnnotationEditor:
    """
    In-memory editing engine for one captured frame.

    The raster surface is only ever replaced by a fully painted copy that has
    already been pushed onto the snapshot history, so a failed paint or encode
    leaves the last good snapshot in place. Pointer events arrive in display
    coordinates together with the current display size; mapping to bitmap
    space is done per event because the view may be resized at any time.

    States: UNINITIALIZED -> IDLE <-> DRAWING, and terminal CLOSED.
    """

    def __init__(self):
        self._surface: Optional[QImage] = None
        self._snapshots: Optional[SnapshotStore] = None
        self._closed = False

        self._pen = PenState()
        self._text = TextState()
        self._tool: ToolState = self._pen
        self._label_ids = itertools.count(1)

    # ---------------- Lifecycle ----------------

    def load(self, png: bytes) -> None:
        """Seed the surface from an encoded frame (PNG or any Qt-readable format)."""
        img = QImage.fromData(png)
        if img.isNull():
            raise ValueError("captured frame could not be decoded")
        self.load_image(img)

    def load_image(self, image: QImage) -> None:
        if self._closed:
            raise EditorStateError("editor is closed")
        if self._snapshots is not None:
            raise EditorStateError("editor already holds a frame")
        if image is None or image.isNull() or image.width() <= 0 or image.height() <= 0:
            raise ValueError("cannot edit an empty image")
        surface = image.convertToFormat(QImage.Format_ARGB32_Premultiplied)
        self._snapshots = SnapshotStore(surface)
        self._surface = surface

    def close(self) -> None:
        """Discard everything. No further operations are permitted."""
        self._closed = True
        self._pen.path = None
        self._text.pending.clear()
        self._surface = None
        self._snapshots = None

    @property
    def state(self) -> EditorState:
        if self._closed:
            return EditorState.CLOSED
        if self._snapshots is None:
            return EditorState.UNINITIALIZED
        if self._pen.path is not None:
            return EditorState.DRAWING
        return EditorState.IDLE

    def _require_ready(self) -> None:
        if self._closed:
            raise EditorStateError("editor is closed")
        if self._snapshots is None:
            raise EditorStateError("no frame loaded")

    # ---------------- Tools ----------------

    @property
    def tool(self) -> ToolMode:
        return self._tool.mode

    def set_tool(self, mode: ToolMode) -> None:
        """Switch tools. An unfinished stroke is dropped; history is untouched."""
        self._require_ready()
        mode = ToolMode(mode)
        self._pen.path = None
        self._tool = self._pen if mode == ToolMode.PEN else self._text

    @property
    def stroke_width(self) -> StrokeWidth:
        return StrokeWidth(self._pen.width)

    def set_stroke_width(self, width) -> None:
        self._pen.width = StrokeWidth(width)

    # ---------------- Coordinates ----------------

    def size(self) -> Tuple[int, int]:
        self._require_ready()
        return (self._surface.width(), self._surface.height())

    def map_to_bitmap(self, x: float, y: float, display_w: float, display_h: float) -> QPointF:
        """Scale a display-space point into bitmap space, x and y independently."""
        self._require_ready()
        if display_w is None or display_h is None or display_w <= 0 or display_h <= 0:
            raise ValueError("display surface has no size")
        sx = self._surface.width() / float(display_w)
        sy = self._surface.height() / float(display_h)
        return QPointF(float(x) * sx, float(y) * sy)

    # ---------------- Pointer dispatch ----------------

    def press(self, x: float, y: float, display_size: Tuple[float, float]):
        """Returns the new TextLabel in text mode, None in pen mode."""
        self._require_ready()
        pt = self.map_to_bitmap(x, y, *display_size)
        return self._tool.press(self, pt)

    def move(self, x: float, y: float, display_size: Tuple[float, float]) -> None:
        self._require_ready()
        if self.state != EditorState.DRAWING:
            return
        self._tool.move(self, self.map_to_bitmap(x, y, *display_size))

    def release(self, x: float, y: float, display_size: Tuple[float, float]) -> bool:
        """Finish the current stroke. Returns True if a snapshot was appended."""
        self._require_ready()
        return self._tool.release(self, self.map_to_bitmap(x, y, *display_size))

    def finish_stroke(self) -> bool:
        """Commit an in-progress stroke at its last point (pointer left the view)."""
        self._require_ready()
        if self._pen.path is None:
            return False
        return self._pen.release(self, self._pen.path.currentPosition())

    # ---------------- Text labels ----------------

    @property
    def pending_labels(self) -> Tuple[TextLabel, ...]:
        return tuple(self._text.pending)

    def set_text(self, label: TextLabel, text: str) -> None:
        self._require_ready()
        if label not in self._text.pending:
            raise EditorStateError("text label is not pending")
        label.text = text or ""

    def commit_text(self, label: TextLabel) -> bool:
        """
        Bake a pending label into the raster.

        Returns False when the text is blank after trimming; the label is then
        dropped without a snapshot.
        """
        self._require_ready()
        if label not in self._text.pending:
            return False
        if not (label.text or "").strip():
            self._text.pending.remove(label)
            return False
        # stays pending if painting fails so the typed text is not lost
        self._commit_text(label)
        self._text.pending.remove(label)
        return True

    def discard_text(self, label: TextLabel) -> None:
        self._require_ready()
        if label in self._text.pending:
            self._text.pending.remove(label)

    def commit_pending_text(self) -> int:
        committed = 0
        for label in list(self._text.pending):
            if self.commit_text(label):
                committed += 1
        return committed

    # ---------------- History ----------------

    @property
    def history_length(self) -> int:
        self._require_ready()
        return len(self._snapshots)

    def can_undo(self) -> bool:
        return self._snapshots is not None and not self._closed and self._snapshots.can_pop()

    def undo(self) -> bool:
        """Restore the previous snapshot. Returns False at the pristine frame."""
        self._require_ready()
        self._pen.path = None
        if not self._snapshots.pop():
            return False
        self._surface = self._snapshots.current()
        return True

    def clear(self) -> None:
        """Back to the pristine frame: one snapshot, no pending labels."""
        self._require_ready()
        self._pen.path = None
        self._text.pending.clear()
        self._snapshots.reset()
        self._surface = self._snapshots.current()

    # ---------------- Output ----------------

    def surface(self) -> QImage:
        """Copy of the committed raster."""
        self._require_ready()
        return QImage(self._surface)

    def pristine(self) -> QImage:
        self._require_ready()
        return self._snapshots.pristine()

    def render(self) -> QImage:
        """Committed raster plus the in-progress stroke, for display only."""
        self._require_ready()
        img = QImage(self._surface)
        if self._pen.path is not None:
            painter = QPainter(img)
            try:
                self._paint_stroke(painter, self._pen.path, int(self._pen.width))
            finally:
                painter.end()
        return img

    def export(self) -> bytes:
        """
        Encode the raster as PNG.

        An in-progress stroke and any pending labels are committed first, the
        same as when the pointer leaves the view or a label loses focus.
        """
        self._require_ready()
        self.finish_stroke()
        self.commit_pending_text()
        try:
            return encode_png(self._surface)
        except ValueError as e:
            raise ExportFailed(str(e)) from e

    # ---------------- Raster mutation ----------------

    @staticmethod
    def _stroke_pen(width: int) -> QPen:
        pen = QPen(QColor(ANNOTATION_COLOR))
        pen.setWidthF(float(width))
        pen.setCapStyle(Qt.RoundCap)
        pen.setJoinStyle(Qt.RoundJoin)
        return pen

    def _paint_stroke(self, painter: QPainter, path: QPainterPath, width: int) -> None:
        painter.setRenderHint(QPainter.Antialiasing, True)
        painter.setPen(self._stroke_pen(width))
        painter.setBrush(Qt.NoBrush)
        if path.elementCount() <= 1:
            # press + release without movement leaves a dot
            painter.drawPoint(path.currentPosition())
        else:
            painter.drawPath(path)

    def _commit_stroke(self, path: QPainterPath, width: int) -> None:
        img = QImage(self._surface)
        painter = QPainter(img)
        try:
            self._paint_stroke(painter, path, width)
        finally:
            painter.end()
        self._apply(img)

    def _commit_text(self, label: TextLabel) -> None:
        font = QFont(TEXT_FONT_FAMILY)
        font.setPixelSize(TEXT_PIXEL_SIZE)
        font.setBold(True)

        path = QPainterPath()
        path.addText(label.anchor, font, label.text)

        img = QImage(self._surface)
        painter = QPainter(img)
        try:
            painter.setRenderHint(QPainter.Antialiasing, True)
            painter.strokePath(path, QPen(QColor(TEXT_OUTLINE_COLOR), TEXT_OUTLINE_WIDTH))
            painter.fillPath(path, QColor(ANNOTATION_COLOR))
        finally:
            painter.end()
        self._apply(img)

    def _apply(self, img: QImage) -> None:
        # push first: if encoding fails the surface is left as it was
        try:
            self._snapshots.push(img)
        except ValueError as e:
            raise ExportFailed(f"edit could not be recorded: {e}") from e
        self._surface = img
