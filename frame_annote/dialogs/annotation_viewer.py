# frame_annote/dialogs/annotation_viewer.py
from __future__ import annotations

import logging

from PyQt5.QtCore import Qt, pyqtSignal
from PyQt5.QtGui import QImage, QPixmap
from PyQt5.QtWidgets import (
    QDialog,
    QHBoxLayout,
    QLabel,
    QMessageBox,
    QPushButton,
    QScrollArea,
    QVBoxLayout,
)

from ..client import AnnotationClient
from ..domain import Annotation
from ..errors import AnnotateError

logger = logging.getLogger(__name__)


class AnnotationViewerDialog(QDialog):
    """
    Read-only view of one saved annotation.

    Edit and Delete are delegated: the dialog emits the request and closes,
    and the main window does the work (open editor / call the API).
    """

    edit_requested = pyqtSignal(object)     # Annotation
    delete_requested = pyqtSignal(object)   # Annotation

    def __init__(self, client: AnnotationClient, annotation: Annotation, parent=None):
        super().__init__(parent)
        self.setWindowTitle(f"Annotation @ {annotation.timecode}")
        self.setModal(True)
        self.resize(1000, 720)

        self._client = client
        self.annotation = annotation
        self.image_bytes = None

        self._build_ui()
        self._load_image()

    def _build_ui(self):
        layout = QVBoxLayout(self)
        layout.setSpacing(8)

        self.image_label = QLabel("Loading image…")
        self.image_label.setAlignment(Qt.AlignCenter)
        scroll = QScrollArea()
        scroll.setWidgetResizable(True)
        scroll.setWidget(self.image_label)
        layout.addWidget(scroll, stretch=1)

        rec = self.annotation
        meta = QLabel(f"<b>Timecode:</b> {rec.timecode}&nbsp;&nbsp;&nbsp;<b>Created:</b> {rec.created_at}")
        meta.setTextInteractionFlags(Qt.TextSelectableByMouse)
        layout.addWidget(meta)

        if rec.notes:
            notes = QLabel(rec.notes)
            notes.setWordWrap(True)
            notes.setTextFormat(Qt.PlainText)
            notes.setTextInteractionFlags(Qt.TextSelectableByMouse)
            layout.addWidget(notes)

        actions = QHBoxLayout()
        self.btn_edit = QPushButton("Edit")
        self.btn_edit.clicked.connect(self._on_edit)
        self.btn_delete = QPushButton("Delete")
        self.btn_delete.clicked.connect(self._on_delete)
        self.btn_close = QPushButton("Close")
        self.btn_close.clicked.connect(self.reject)
        actions.addWidget(self.btn_edit)
        actions.addWidget(self.btn_delete)
        actions.addStretch()
        actions.addWidget(self.btn_close)
        layout.addLayout(actions)

        for b in (self.btn_edit, self.btn_delete, self.btn_close):
            b.setCursor(Qt.PointingHandCursor)

    def _load_image(self):
        try:
            data = self._client.fetch_asset(self.annotation.image_path)
        except AnnotateError as e:
            logger.warning("Could not load annotation image %s: %s", self.annotation.image_path, e)
            self.image_label.setText(f"Could not load image:\n{e}")
            self.btn_edit.setEnabled(False)
            return
        img = QImage.fromData(data)
        if img.isNull():
            self.image_label.setText("Could not decode image.")
            self.btn_edit.setEnabled(False)
            return
        self.image_bytes = data
        self.image_label.setPixmap(QPixmap.fromImage(img))

    def _on_edit(self):
        self.edit_requested.emit(self.annotation)
        self.accept()

    def _on_delete(self):
        resp = QMessageBox.question(
            self,
            "Delete annotation",
            "Are you sure you want to delete this annotation?",
            QMessageBox.Yes | QMessageBox.No,
            QMessageBox.No,
        )
        if resp != QMessageBox.Yes:
            return
        self.delete_requested.emit(self.annotation)
        self.accept()
