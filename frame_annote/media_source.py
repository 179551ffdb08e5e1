# frame_annote/media_source.py
from __future__ import annotations

import os
from typing import Tuple
from urllib.parse import urlparse

from PyQt5.QtCore import QUrl


# Allowed local extensions (strict)
ALLOWED_VIDEO_EXTS = {
    ".mp4", ".mov", ".mkv", ".avi", ".m4v", ".webm",
}
ALLOWED_URL_EXTS = ALLOWED_VIDEO_EXTS | {".m3u8"}


def is_probably_url(s: str) -> bool:
    p = urlparse((s or "").strip())
    return p.scheme in ("http", "https") and bool(p.netloc)


def ext_lower(path_or_url: str) -> str:
    base = path_or_url.strip().split("?")[0].split("#")[0]
    _, ext = os.path.splitext(base)
    return ext.lower().strip()


def validate_local_video_path(path: str) -> Tuple[bool, str]:
    if not path:
        return (False, "No file selected.")
    if not os.path.exists(path):
        return (False, f"File does not exist: {path}")
    if not os.path.isfile(path):
        return (False, f"Not a file: {path}")
    ext = ext_lower(path)
    if ext not in ALLOWED_VIDEO_EXTS:
        return (False, f"Unsupported file type '{ext}'. Allowed: {sorted(ALLOWED_VIDEO_EXTS)}")
    return (True, "OK")


def validate_video_url(url: str) -> Tuple[bool, str]:
    if not url or not is_probably_url(url):
        return (False, "Invalid URL.")
    ext = ext_lower(url)
    if ext and ext not in ALLOWED_URL_EXTS:
        return (False, f"Unsupported URL type '{ext}'. Allowed: {sorted(ALLOWED_URL_EXTS)}")
    # ext may be empty for some CDNs; allow if it's http(s)
    return (True, "OK")


def validate_source(source: str) -> Tuple[bool, str]:
    if is_probably_url(source):
        return validate_video_url(source)
    return validate_local_video_path(source)


def to_qurl(source: str) -> QUrl:
    if is_probably_url(source):
        return QUrl(source.strip())
    return QUrl.fromLocalFile(os.path.abspath(source))


def video_id_for(source: str) -> str:
    """
    Default video id when the user opens a source that is not in the server's
    videos list: the file stem, or the last URL path segment.
    """
    s = (source or "").strip()
    if is_probably_url(s):
        s = urlparse(s).path.rstrip("/").split("/")[-1] or urlparse(s).netloc
    stem = os.path.splitext(os.path.basename(s))[0]
    safe = "".join(c if (c.isalnum() or c in "-_") else "-" for c in stem).strip("-")
    return safe.lower() or "video"
