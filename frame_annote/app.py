# frame_annote/app.py
from __future__ import annotations

import sys
from typing import Optional

from PyQt5.QtWidgets import QApplication, QMessageBox

from .client import AnnotationClient
from .config import ClientConfig
from .errors import AnnotateError
from .main_window import MainWindow


def run_app(config: Optional[ClientConfig] = None, video: Optional[str] = None, video_id: Optional[str] = None) -> int:
    app = QApplication(sys.argv)

    with AnnotationClient(config) as client:
        win = MainWindow(client)
        win.show()

        try:
            client.health()
        except AnnotateError as e:
            QMessageBox.warning(
                win,
                "Annotation server",
                f"Could not reach the annotation server at {client.config.api_url}.\n\n{e}\n\n"
                "Start it with: frame-annote serve",
            )

        if video:
            win.open_video(video, video_id)
        else:
            # Prompt once (non-blocking for main window usage)
            win.open_video_dialog()

        return app.exec_()
