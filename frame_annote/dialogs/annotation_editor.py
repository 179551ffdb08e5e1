# frame_annote/dialogs/annotation_editor.py
from __future__ import annotations

import logging
from typing import Optional

from PyQt5.QtCore import QObject, Qt, QThread, pyqtSignal, pyqtSlot
from PyQt5.QtWidgets import (
    QButtonGroup,
    QDialog,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QMessageBox,
    QPushButton,
    QVBoxLayout,
)

from ..client import AnnotationClient, SaveSession
from ..domain import Annotation, CapturedFrame
from ..editor import AnnotationEditor, StrokeWidth, ToolMode
from ..errors import AnnotateError, SaveInProgress
from ..timeutils import format_timecode
from ..widgets.annotation_canvas import AnnotationCanvas

logger = logging.getLogger(__name__)


class _SaveWorker(QObject):
    """Uploads one exported image off the UI thread."""

    saved = pyqtSignal(object)   # Annotation
    failed = pyqtSignal(str)

    def __init__(self, client: AnnotationClient, video_id: str, timestamp_ms: int, png: bytes, notes: str):
        super().__init__()
        self._client = client
        self._video_id = video_id
        self._timestamp_ms = timestamp_ms
        self._png = png
        self._notes = notes

    @pyqtSlot()
    def run(self) -> None:
        try:
            rec = self._client.create_annotation(self._video_id, self._timestamp_ms, self._png, self._notes)
        except AnnotateError as e:
            logger.error("Failed to save annotation: %s", e)
            self.failed.emit(str(e))
            return
        self.saved.emit(rec)


class AnnotationEditorDialog(QDialog):
    """
    Modal editor for one captured frame.

    Cancel / Escape discards everything. Save exports the surface and uploads
    it; the dialog stays open (history intact) if the upload fails, and only
    one upload may be in flight at a time.
    """

    annotation_saved = pyqtSignal(object)   # Annotation

    def __init__(self, client: AnnotationClient, video_id: str, frame: CapturedFrame, parent=None):
        super().__init__(parent)
        self.setWindowTitle(f"Annotate Frame @ {format_timecode(frame.timestamp_ms)}")
        self.setModal(True)
        self.resize(1100, 760)

        self._client = client
        self._video_id = video_id
        self._frame = frame
        self._session = SaveSession()
        self._thread: Optional[QThread] = None
        self._worker: Optional[_SaveWorker] = None

        self.editor = AnnotationEditor()
        self.editor.load(frame.png)

        self._build_ui()
        self._refresh_controls()

    # ---------------- UI ----------------

    def _build_ui(self):
        layout = QVBoxLayout(self)
        layout.setSpacing(8)

        # Toolbar
        bar = QHBoxLayout()
        bar.setSpacing(6)
        layout.addLayout(bar)

        bar.addWidget(QLabel("Tool:"))
        self.btn_pen = QPushButton("Pen")
        self.btn_text = QPushButton("Text")
        self._tool_group = QButtonGroup(self)
        for btn, mode in ((self.btn_pen, ToolMode.PEN), (self.btn_text, ToolMode.TEXT)):
            btn.setCheckable(True)
            btn.clicked.connect(lambda _checked, _mode=mode: self._set_tool(_mode))
            self._tool_group.addButton(btn)
            bar.addWidget(btn)
        self.btn_pen.setChecked(True)

        bar.addSpacing(12)
        self.stroke_label = QLabel("Stroke:")
        bar.addWidget(self.stroke_label)
        self.btn_thin = QPushButton("Thin")
        self.btn_thick = QPushButton("Thick")
        self._width_group = QButtonGroup(self)
        for btn, width in ((self.btn_thin, StrokeWidth.THIN), (self.btn_thick, StrokeWidth.THICK)):
            btn.setCheckable(True)
            btn.clicked.connect(lambda _checked, _w=width: self.editor.set_stroke_width(_w))
            self._width_group.addButton(btn)
            bar.addWidget(btn)
        self.btn_thin.setChecked(True)

        bar.addSpacing(12)
        self.btn_undo = QPushButton("Undo")
        self.btn_undo.setShortcut("Ctrl+Z")
        self.btn_undo.clicked.connect(self._undo)
        bar.addWidget(self.btn_undo)
        self.btn_clear = QPushButton("Clear")
        self.btn_clear.clicked.connect(self._clear)
        bar.addWidget(self.btn_clear)
        bar.addStretch()

        # Canvas
        self.canvas = AnnotationCanvas(self.editor, self)
        self.canvas.history_changed.connect(self._refresh_controls)
        self.canvas.error.connect(lambda msg: QMessageBox.warning(self, "Annotation", msg))
        layout.addWidget(self.canvas, stretch=1)

        # Notes
        layout.addWidget(QLabel("Notes (optional):"))
        self.notes_edit = QLineEdit()
        self.notes_edit.setPlaceholderText("Add notes about this annotation...")
        layout.addWidget(self.notes_edit)

        # Actions
        actions = QHBoxLayout()
        actions.addStretch()
        self.btn_cancel = QPushButton("Cancel")
        self.btn_cancel.clicked.connect(self.reject)
        self.btn_save = QPushButton("Save Annotation")
        self.btn_save.setDefault(False)
        self.btn_save.setAutoDefault(False)
        self.btn_save.clicked.connect(self._save)
        actions.addWidget(self.btn_cancel)
        actions.addWidget(self.btn_save)
        layout.addLayout(actions)

    def _refresh_controls(self):
        saving = self._session.in_flight
        is_pen = self.editor.tool == ToolMode.PEN
        for w in (self.stroke_label, self.btn_thin, self.btn_thick):
            w.setVisible(is_pen)
        self.btn_undo.setEnabled(not saving and self.editor.can_undo())
        self.btn_clear.setEnabled(not saving)
        self.btn_cancel.setEnabled(not saving)
        self.btn_save.setEnabled(not saving)
        self.btn_save.setText("Saving..." if saving else "Save Annotation")
        self.canvas.setEnabled(not saving)

    # ---------------- Editing actions ----------------

    def _set_tool(self, mode: ToolMode):
        self.canvas.commit_inputs()
        self.editor.set_tool(mode)
        self.canvas.refresh()
        self._refresh_controls()

    def _undo(self):
        self.editor.undo()
        self.canvas.refresh()
        self._refresh_controls()

    def _clear(self):
        self.editor.clear()
        self.canvas.refresh()
        self._refresh_controls()

    # ---------------- Save ----------------

    def _save(self):
        try:
            self._session.begin()
        except SaveInProgress:
            return

        try:
            self.canvas.commit_inputs()
            png = self.editor.export()
        except AnnotateError as e:
            self._session.end()
            QMessageBox.critical(self, "Save Annotation", f"Failed to export the annotation:\n{e}")
            return

        self._refresh_controls()

        self._thread = QThread(self)
        self._worker = _SaveWorker(
            self._client, self._video_id, self._frame.timestamp_ms, png, self.notes_edit.text(),
        )
        self._worker.moveToThread(self._thread)
        self._thread.started.connect(self._worker.run)
        self._worker.saved.connect(self._on_saved)
        self._worker.failed.connect(self._on_failed)
        self._thread.start()

    def _join_worker(self):
        if self._thread is not None:
            self._thread.quit()
            self._thread.wait()
            self._thread = None
        self._worker = None

    def _on_saved(self, rec: Annotation):
        self._join_worker()
        self._session.end()
        self.annotation_saved.emit(rec)
        self.editor.close()
        super().accept()

    def _on_failed(self, message: str):
        self._join_worker()
        self._session.end()
        self._refresh_controls()
        QMessageBox.critical(
            self,
            "Save Annotation",
            f"Failed to save annotation. Please try again.\n\n{message}",
        )

    # ---------------- Close ----------------

    def reject(self):
        if self._session.in_flight:
            return
        self.editor.close()
        super().reject()

    def closeEvent(self, event):
        if self._session.in_flight:
            event.ignore()
            return
        super().closeEvent(event)

    def keyPressEvent(self, event):
        # Enter inside a label box must not trigger Save
        if event.key() in (Qt.Key_Return, Qt.Key_Enter):
            event.accept()
            return
        super().keyPressEvent(event)
