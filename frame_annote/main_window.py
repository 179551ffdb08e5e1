# frame_annote/main_window.py
from __future__ import annotations

import logging
from typing import List, Optional

from PyQt5.QtCore import Qt
from PyQt5.QtGui import QImage, QKeySequence
from PyQt5.QtWidgets import (
    QGroupBox,
    QHBoxLayout,
    QLabel,
    QMainWindow,
    QMessageBox,
    QPushButton,
    QShortcut,
    QVBoxLayout,
    QWidget,
)

from .capture import capture_frame, resume_playback
from .client import AnnotationClient
from .dialogs.annotation_editor import AnnotationEditorDialog
from .dialogs.annotation_viewer import AnnotationViewerDialog
from .dialogs.open_video import OpenRequest, OpenVideoDialog
from .domain import Annotation, CapturedFrame
from .errors import AnnotateError, CaptureEncodingFailed, CaptureNotReady
from .media_source import validate_source, video_id_for
from .snapshots import encode_png
from .timeutils import ms_to_time_str
from .widgets.annotation_timeline import AnnotationTimeline
from .widgets.player_view import PlayerView

logger = logging.getLogger(__name__)

SEEK_STEP_MS = 5000


class MainWindow(QMainWindow):
    def __init__(self, client: AnnotationClient):
        super().__init__()
        self.setWindowTitle("Frame-Annote (Video Frame Annotation Tool)")
        self.resize(1400, 920)

        self.client = client
        self.current: Optional[OpenRequest] = None
        self.annotations: List[Annotation] = []

        self._build_ui()
        self._install_shortcuts()
        self._update_enabled_state()

    # ---------------- UI ----------------

    def _build_ui(self):
        central = QWidget()
        self.setCentralWidget(central)

        main_layout = QVBoxLayout(central)
        main_layout.setContentsMargins(6, 6, 6, 6)
        main_layout.setSpacing(6)

        # ===== Top: video source =====
        top_box = QGroupBox("Video")
        top = QHBoxLayout(top_box)
        top.setContentsMargins(6, 6, 6, 6)
        self.video_label = QLabel("No video loaded")
        self.video_label.setTextInteractionFlags(Qt.TextSelectableByMouse)
        self.btn_open = QPushButton("Change Video")
        self.btn_open.clicked.connect(self.open_video_dialog)
        self.btn_reload = QPushButton("Reload Annotations")
        self.btn_reload.clicked.connect(self.reload_annotations)
        top.addWidget(self.video_label, stretch=1)
        top.addWidget(self.btn_reload)
        top.addWidget(self.btn_open)
        main_layout.addWidget(top_box)

        # ===== Middle: player =====
        self.player = PlayerView()
        self.player.position_changed.connect(self._on_position)
        self.player.duration_changed.connect(self._on_duration)
        self.player.playing_changed.connect(self._on_playing_changed)
        self.player.media_error.connect(self._on_media_error)
        main_layout.addWidget(self.player, stretch=12)

        # ===== Timeline with markers =====
        self.timeline = AnnotationTimeline()
        self.timeline.seek_requested.connect(lambda sec: self.player.seek(int(sec * 1000)))
        self.timeline.marker_clicked.connect(self._on_marker_clicked)
        main_layout.addWidget(self.timeline)

        # ===== Controls =====
        bar = QHBoxLayout()
        bar.setSpacing(8)
        self.btn_play = QPushButton("Play")
        self.btn_play.clicked.connect(self.player.toggle)
        self.time_label = QLabel("00:00 / 00:00")
        self.btn_annotate = QPushButton("Annotate")
        self.btn_annotate.setToolTip("Pause and annotate the current frame (A)")
        self.btn_annotate.clicked.connect(self._annotate)
        self.count_label = QLabel("0 annotations")
        bar.addWidget(self.btn_play)
        bar.addSpacing(12)
        bar.addWidget(self.time_label)
        bar.addStretch()
        bar.addWidget(self.count_label)
        bar.addSpacing(12)
        bar.addWidget(self.btn_annotate)
        main_layout.addLayout(bar)

        help_label = QLabel("Space: play/pause    A: annotate frame    ← / →: seek 5s    Click a marker to view it")
        help_label.setStyleSheet("color: #6b7280;")
        main_layout.addWidget(help_label)

        for w in (self.btn_open, self.btn_reload, self.btn_play, self.btn_annotate):
            w.setCursor(Qt.PointingHandCursor)

    def _install_shortcuts(self):
        for key, slot in (
            (Qt.Key_Space, self.player.toggle),
            (Qt.Key_A, self._annotate),
            (Qt.Key_Left, lambda: self._seek_relative(-SEEK_STEP_MS)),
            (Qt.Key_Right, lambda: self._seek_relative(SEEK_STEP_MS)),
        ):
            sc = QShortcut(QKeySequence(key), self)
            sc.setContext(Qt.WindowShortcut)
            sc.activated.connect(slot)

    def _update_enabled_state(self):
        has_video = self.current is not None
        self.btn_play.setEnabled(has_video)
        self.btn_annotate.setEnabled(has_video)
        self.btn_reload.setEnabled(has_video)
        self.timeline.setEnabled(has_video)

    # ---------------- Video ----------------

    def open_video_dialog(self):
        try:
            videos = self.client.list_videos()
        except AnnotateError as e:
            logger.warning("Could not list videos: %s", e)
            videos = []
        dlg = OpenVideoDialog(videos, self)
        if dlg.exec_() != dlg.Accepted or dlg.request() is None:
            return
        req = dlg.request()
        self.open_video(req.source, req.video_id)

    def open_video(self, source: str, video_id: Optional[str] = None) -> bool:
        ok, msg = validate_source(source)
        if not ok:
            QMessageBox.warning(self, "Invalid video", msg)
            return False
        self.current = OpenRequest(video_id=video_id or video_id_for(source), source=source)
        self.video_label.setText(f"{self.current.video_id}  |  {source}")
        self.annotations = []
        self.timeline.set_annotations([])
        self.timeline.set_position_ms(0)
        self.player.load(source)
        self._update_enabled_state()
        self.reload_annotations()
        return True

    def reload_annotations(self):
        if self.current is None:
            return
        try:
            self.annotations = self.client.list_annotations(self.current.video_id)
        except AnnotateError as e:
            logger.error("Failed to load annotations: %s", e)
            QMessageBox.warning(self, "Annotations", f"Failed to load annotations:\n{e}")
            return
        self._refresh_annotations()

    def _refresh_annotations(self):
        self.annotations.sort(key=lambda a: a.timestamp_ms)
        self.timeline.set_annotations(self.annotations)
        n = len(self.annotations)
        self.count_label.setText(f"{n} annotation" + ("" if n == 1 else "s"))

    # ---------------- Playback ----------------

    def _seek_relative(self, delta_ms: int):
        if self.current is None:
            return
        target = self.player.position_ms() + delta_ms
        dur = self.player.duration_ms()
        if dur > 0:
            target = min(target, dur)
        self.player.seek(max(0, target))

    def _on_position(self, ms: int):
        self.timeline.set_position_ms(ms)
        self._update_time_label()

    def _on_duration(self, ms: int):
        self.timeline.set_duration_ms(ms)
        self._update_time_label()

    def _update_time_label(self):
        self.time_label.setText(
            f"{ms_to_time_str(self.player.position_ms())} / {ms_to_time_str(self.player.duration_ms())}"
        )

    def _on_playing_changed(self, playing: bool):
        self.btn_play.setText("Pause" if playing else "Play")

    def _on_media_error(self, message: str):
        QMessageBox.warning(self, "Video error", message or "The video could not be played.")

    # ---------------- Annotate ----------------

    def _annotate(self):
        if self.current is None:
            return
        try:
            frame = capture_frame(self.player)
        except CaptureNotReady as e:
            resp = QMessageBox.question(
                self,
                "Capture",
                f"{e}\n\nTry again?",
                QMessageBox.Retry | QMessageBox.Cancel,
                QMessageBox.Retry,
            )
            if resp == QMessageBox.Retry:
                self._annotate()
            return
        except CaptureEncodingFailed as e:
            logger.error("Frame capture failed: %s", e)
            QMessageBox.critical(self, "Capture", f"Failed to capture frame. Please try again.\n\n{e}")
            return
        self._edit_frame(frame)

    def _edit_frame(self, frame: CapturedFrame):
        assert self.current is not None
        dlg = AnnotationEditorDialog(self.client, self.current.video_id, frame, self)
        dlg.annotation_saved.connect(self._on_annotation_saved)
        dlg.exec_()
        # Saved or cancelled, playback picks up where the frame was taken
        resume_playback(self.player, frame.timestamp_ms)

    def _on_annotation_saved(self, rec: Annotation):
        self.annotations.append(rec)
        self._refresh_annotations()

    # ---------------- Saved annotations ----------------

    def _on_marker_clicked(self, rec: Annotation):
        self.player.pause()
        self.player.seek(rec.timestamp_ms)
        dlg = AnnotationViewerDialog(self.client, rec, self)
        to_edit: List[Annotation] = []
        to_delete: List[Annotation] = []
        dlg.edit_requested.connect(to_edit.append)
        dlg.delete_requested.connect(to_delete.append)
        dlg.exec_()
        # act once the viewer is gone
        if to_delete:
            self._delete_annotation(to_delete[0])
        elif to_edit:
            self._edit_existing(to_edit[0], dlg.image_bytes)

    def _edit_existing(self, rec: Annotation, image_bytes: Optional[bytes]):
        """Re-open a saved image in the editor; saving creates a new annotation at the same time."""
        img = QImage.fromData(image_bytes or b"")
        if img.isNull():
            QMessageBox.warning(self, "Edit annotation", "The annotation image could not be loaded.")
            return
        try:
            png = encode_png(img)
        except ValueError as e:
            QMessageBox.warning(self, "Edit annotation", str(e))
            return
        self._edit_frame(CapturedFrame(png=png, width=img.width(), height=img.height(), timestamp_ms=rec.timestamp_ms))

    def _delete_annotation(self, rec: Annotation):
        assert self.current is not None
        try:
            self.client.delete_annotation(self.current.video_id, rec.id)
        except AnnotateError as e:
            logger.error("Failed to delete annotation %s: %s", rec.id, e)
            QMessageBox.critical(self, "Delete annotation", f"Failed to delete annotation.\n\n{e}")
            return
        self.annotations = [a for a in self.annotations if a.id != rec.id]
        self._refresh_annotations()

    # ---------------- Shutdown ----------------

    def closeEvent(self, event):
        self.player.unload()
        super().closeEvent(event)
