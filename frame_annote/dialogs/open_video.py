# frame_annote/dialogs/open_video.py
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

from PyQt5.QtCore import Qt
from PyQt5.QtWidgets import (
    QAbstractItemView,
    QDialog,
    QDialogButtonBox,
    QFileDialog,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QListWidget,
    QListWidgetItem,
    QMessageBox,
    QPushButton,
    QVBoxLayout,
)

from ..domain import Video
from ..errors import InvalidInput
from ..media_source import validate_local_video_path, validate_source, video_id_for
from ..store import check_path_segment
from ..timeutils import ms_to_time_str


@dataclass
class OpenRequest:
    """Which video to play, and under which id its annotations live on the server."""
    video_id: str
    source: str


class OpenVideoDialog(QDialog):
    """
    Picks the video to annotate.

    Either choose one of the server's registered videos, or open a local file /
    URL and give it a video id. The dialog only validates; the main window
    loads the media and fetches annotations.
    """

    def __init__(self, videos: Optional[List[Video]] = None, parent=None):
        super().__init__(parent)
        self.setWindowTitle("Open Video")
        self.setModal(True)
        self.resize(720, 420)

        self._videos: List[Video] = list(videos or [])
        self._request: Optional[OpenRequest] = None

        self._build_ui()
        self._refresh_list()

    # ---------------- UI ----------------

    def _build_ui(self):
        layout = QVBoxLayout(self)
        layout.setSpacing(10)

        layout.addWidget(QLabel("Registered videos:"))
        self.list = QListWidget()
        self.list.setSelectionMode(QAbstractItemView.SingleSelection)
        self.list.currentRowChanged.connect(self._on_row_changed)
        self.list.itemDoubleClicked.connect(lambda _it: self._on_accept())
        layout.addWidget(self.list, stretch=1)

        src_row = QHBoxLayout()
        src_row.addWidget(QLabel("Source:"))
        self.source_edit = QLineEdit()
        self.source_edit.setPlaceholderText("Local path or https://…")
        self.source_edit.textEdited.connect(self._on_source_edited)
        src_row.addWidget(self.source_edit, stretch=1)
        self.btn_browse = QPushButton("Local file…")
        self.btn_browse.clicked.connect(self._browse_local)
        src_row.addWidget(self.btn_browse)
        layout.addLayout(src_row)

        id_row = QHBoxLayout()
        id_row.addWidget(QLabel("Video id:"))
        self.id_edit = QLineEdit()
        self.id_edit.setPlaceholderText("e.g., sample-video-1")
        id_row.addWidget(self.id_edit, stretch=1)
        layout.addLayout(id_row)

        buttons = QDialogButtonBox(QDialogButtonBox.Ok | QDialogButtonBox.Cancel)
        buttons.accepted.connect(self._on_accept)
        buttons.rejected.connect(self.reject)
        layout.addWidget(buttons)

        for btn in [self.btn_browse] + list(buttons.buttons()):
            btn.setCursor(Qt.PointingHandCursor)

    # ---------------- Public API ----------------

    def request(self) -> Optional[OpenRequest]:
        return self._request

    # ---------------- Actions ----------------

    def _on_row_changed(self, row: int):
        if row < 0 or row >= len(self._videos):
            return
        v = self._videos[row]
        self.source_edit.setText(v.url)
        self.id_edit.setText(v.id)

    def _on_source_edited(self, text: str):
        # Typing a new source drops the list selection; suggest an id
        self.list.clearSelection()
        if text.strip():
            self.id_edit.setText(video_id_for(text))

    def _browse_local(self):
        path, _ = QFileDialog.getOpenFileName(
            self,
            "Select Video File",
            "",
            "Video Files (*.mp4 *.mov *.mkv *.avi *.m4v *.webm);;All Files (*)",
        )
        if not path:
            return
        ok, msg = validate_local_video_path(path)
        if not ok:
            QMessageBox.warning(self, "Invalid file", msg)
            return
        self.list.clearSelection()
        self.source_edit.setText(path)
        self.id_edit.setText(video_id_for(path))

    def _on_accept(self):
        source, video_id = self._values()
        if not source:
            QMessageBox.warning(self, "No video", "Please choose a video or enter a source.")
            return

        ok, msg = validate_source(source)
        if not ok:
            QMessageBox.warning(self, "Invalid source", msg)
            return

        try:
            check_path_segment(video_id)
        except InvalidInput as e:
            QMessageBox.warning(self, "Invalid video id", str(e))
            return

        self._request = OpenRequest(video_id=video_id, source=source)
        self.accept()

    # ---------------- Helpers ----------------

    def _values(self) -> Tuple[str, str]:
        return (self.source_edit.text().strip(), self.id_edit.text().strip())

    def _refresh_list(self):
        self.list.clear()
        for v in self._videos:
            url = v.url
            if len(url) > 80:
                url = url[:40] + " … " + url[-35:]
            dur = f"  |  {ms_to_time_str(v.duration_ms)}" if v.duration_ms else ""
            it = QListWidgetItem(f"{v.id}  |  {v.title}{dur}  |  {url}")
            it.setToolTip(v.url)
            self.list.addItem(it)
