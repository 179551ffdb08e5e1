# frame_annote/__init__.py
'''
frame_annote/
    __init__.py
    __main__.py
    cli.py                 # typer commands: serve / seed / gui, logging setup

    errors.py              # error taxonomy shared by core, server and client
    domain.py              # dataclasses: Annotation, Video, CapturedFrame
    timeutils.py           # timecode formatting, seconds<->ms, clock display
    config.py              # ServerConfig / ClientConfig (env + CLI overrides)

    capture.py             # pause + grab a frame from a playback surface
    snapshots.py           # PNG snapshot history for undo
    editor.py              # annotation editing engine (pen/text, undo, clear, export)
    thumbnails.py          # bounded-size thumbnail derivation
    store.py               # db.json + image files: create/list/get/delete
    timeline.py            # marker positions, progress, click-to-seek math

    server.py              # Flask app: annotation routes + static storage
    client.py              # httpx client + single-flight save guard
    media_source.py        # local path / URL validation for the player

    app.py                 # QApplication boot
    main_window.py         # player + timeline + annotate/view wiring

    widgets/
      player_view.py       # QMediaPlayer + frame sink (the playback surface)
      annotation_canvas.py # displays the editor surface, routes pointer/text input
      annotation_timeline.py # progress bar with annotation markers

    dialogs/
      annotation_editor.py # edit captured frame, notes, save/cancel
      annotation_viewer.py # show a saved annotation, edit/delete
      open_video.py        # pick a registered video or a local file / URL
'''

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.1.0"
