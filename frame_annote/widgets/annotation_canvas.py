# frame_annote/widgets/annotation_canvas.py
from __future__ import annotations

from typing import Dict, Optional, Tuple

from PyQt5.QtCore import QPoint, QRect, QSize, Qt, pyqtSignal
from PyQt5.QtGui import QColor, QPainter
from PyQt5.QtWidgets import QLineEdit, QSizePolicy, QWidget

from ..editor import ANNOTATION_COLOR, AnnotationEditor, EditorState, TextLabel, ToolMode
from ..errors import AnnotateError


class _LabelInput(QLineEdit):
    """Inline text box for one pending label. Enter or focus loss commits it."""

    def __init__(self, label: TextLabel, parent: QWidget):
        super().__init__(parent)
        self.label = label
        self.setPlaceholderText("Type label…")
        self.setMinimumWidth(160)
        self.setStyleSheet(
            "QLineEdit { background: white; color: %s; border: 2px solid #3b82f6;"
            " padding: 2px 6px; font-weight: bold; }" % ANNOTATION_COLOR
        )


class AnnotationCanvas(QWidget):
    """
    Shows an AnnotationEditor's surface and feeds it pointer/text input.

    The image is drawn aspect-fit inside the widget; pointer positions are
    taken relative to that rectangle and passed with its current size, so
    the editor maps them into bitmap space on every event.
    """

    history_changed = pyqtSignal()
    error = pyqtSignal(str)

    def __init__(self, editor: AnnotationEditor, parent: Optional[QWidget] = None):
        super().__init__(parent)
        self._editor = editor
        self._inputs: Dict[int, _LabelInput] = {}

        self.setSizePolicy(QSizePolicy.Expanding, QSizePolicy.Expanding)
        self.setMouseTracking(True)
        self.setCursor(Qt.CrossCursor)
        self.setFocusPolicy(Qt.ClickFocus)

    # ---------------- Geometry ----------------

    def sizeHint(self) -> QSize:
        if self._editor.state in (EditorState.IDLE, EditorState.DRAWING):
            w, h = self._editor.size()
            return QSize(min(w, 1280), min(h, 720))
        return QSize(640, 360)

    def _image_rect(self) -> QRect:
        w, h = self._editor.size()
        size = QSize(w, h).scaled(self.size(), Qt.KeepAspectRatio)
        x = (self.width() - size.width()) // 2
        y = (self.height() - size.height()) // 2
        return QRect(x, y, max(1, size.width()), max(1, size.height()))

    def _display_point(self, pos: QPoint) -> Tuple[float, float, Tuple[float, float]]:
        rect = self._image_rect()
        return (
            float(pos.x() - rect.x()),
            float(pos.y() - rect.y()),
            (float(rect.width()), float(rect.height())),
        )

    # ---------------- Painting ----------------

    def paintEvent(self, event):
        painter = QPainter(self)
        painter.fillRect(self.rect(), QColor("#111827"))
        if self._editor.state in (EditorState.IDLE, EditorState.DRAWING):
            painter.setRenderHint(QPainter.SmoothPixmapTransform, True)
            painter.drawImage(self._image_rect(), self._editor.render())
        painter.end()

    # ---------------- Pointer ----------------

    def mousePressEvent(self, event):
        if event.button() != Qt.LeftButton:
            return super().mousePressEvent(event)
        x, y, display = self._display_point(event.pos())
        try:
            committed_before = self._editor.history_length
            label = self._editor.press(x, y, display)
        except (AnnotateError, ValueError) as e:
            self.error.emit(str(e))
            return
        self._sync_inputs()
        if self._editor.history_length != committed_before:
            self.history_changed.emit()
        if isinstance(label, TextLabel):
            self._open_input(label, event.pos())
        self.update()
        event.accept()

    def mouseMoveEvent(self, event):
        if self._editor.state != EditorState.DRAWING:
            return super().mouseMoveEvent(event)
        x, y, display = self._display_point(event.pos())
        try:
            self._editor.move(x, y, display)
        except (AnnotateError, ValueError) as e:
            self.error.emit(str(e))
            return
        self.update()

    def mouseReleaseEvent(self, event):
        if event.button() != Qt.LeftButton:
            return super().mouseReleaseEvent(event)
        x, y, display = self._display_point(event.pos())
        try:
            changed = self._editor.release(x, y, display)
        except (AnnotateError, ValueError) as e:
            self.error.emit(str(e))
            return
        if changed:
            self.history_changed.emit()
        self.update()

    def leaveEvent(self, event):
        # leaving the view ends the stroke, same as a release
        try:
            if self._editor.state == EditorState.DRAWING and self._editor.finish_stroke():
                self.history_changed.emit()
        except AnnotateError as e:
            self.error.emit(str(e))
        self.update()
        return super().leaveEvent(event)

    # ---------------- Text inputs ----------------

    def _open_input(self, label: TextLabel, pos: QPoint) -> None:
        box = _LabelInput(label, self)
        box.move(pos.x(), max(0, pos.y() - 30))
        box.textChanged.connect(lambda text, _label=label: self._editor.set_text(_label, text))
        box.editingFinished.connect(lambda _label=label: self._commit_input(_label))
        self._inputs[label.label_id] = box
        box.show()
        box.setFocus(Qt.MouseFocusReason)

    def _commit_input(self, label: TextLabel) -> None:
        if self._editor.state == EditorState.CLOSED:
            return
        try:
            changed = self._editor.commit_text(label)
        except AnnotateError as e:
            self.error.emit(str(e))
            changed = False
        self._sync_inputs()
        if changed:
            self.history_changed.emit()
        self.update()

    def _sync_inputs(self) -> None:
        """Drop text boxes whose labels are no longer pending."""
        if self._editor.state == EditorState.CLOSED:
            pending = set()
        else:
            pending = {lbl.label_id for lbl in self._editor.pending_labels}
        for label_id in list(self._inputs.keys()):
            if label_id not in pending:
                box = self._inputs.pop(label_id)
                box.blockSignals(True)
                box.hide()
                box.deleteLater()

    def commit_inputs(self) -> None:
        """Commit whatever is being typed (used before export)."""
        for box in list(self._inputs.values()):
            self._commit_input(box.label)

    def refresh(self) -> None:
        """Call after undo/clear/tool changes made outside the canvas."""
        self._sync_inputs()
        self.update()

    def current_tool(self) -> ToolMode:
        return self._editor.tool
