# frame_annote/store.py
from __future__ import annotations

import json
import logging
import os
import shutil
import tempfile
import threading
import uuid
from typing import Dict, List, Optional

from .domain import Annotation, Video
from .errors import (
    FileCleanupFailed,
    InvalidInput,
    NotFound,
    StorageError,
)
from .thumbnails import file_extension, make_thumbnail
from .timeutils import format_timecode, utc_now_iso

logger = logging.getLogger(__name__)


# Base filenames within an annotation's asset dir (extension = encoded format)
IMAGE_BASENAME = "image"
THUMB_BASENAME = "thumb"

MISSING_FIELDS_MESSAGE = "Missing required fields: timestamp_ms and image file"


# -----------------------------
# Atomic file helpers
# -----------------------------

def _atomic_write_bytes(path: str, data: bytes) -> None:
    d = os.path.dirname(path)
    os.makedirs(d, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(prefix=".tmp_", dir=d)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
    finally:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)


def _atomic_write_json(path: str, payload: Dict) -> None:
    text = json.dumps(payload, indent=2, ensure_ascii=False)
    _atomic_write_bytes(path, (text + "\n").encode("utf-8"))


def _read_json(path: str) -> Dict:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def empty_db() -> Dict:
    return {"videos": [], "annotations": []}


# -----------------------------
# Input validation
# -----------------------------

def parse_timestamp_ms(value) -> int:
    """
    Accepts an int or a decimal digit string. Missing values are a
    missing-field error; anything else non-numeric or negative is rejected.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        raise InvalidInput(MISSING_FIELDS_MESSAGE)
    if isinstance(value, bool):
        raise InvalidInput("timestamp_ms must be an integer")
    if isinstance(value, int):
        ms = value
    else:
        s = str(value).strip()
        # isdigit() alone also accepts digits int() cannot parse ("²")
        if not (s.isascii() and s.isdigit()):
            raise InvalidInput("timestamp_ms must be a non-negative integer")
        ms = int(s)
    if ms < 0:
        raise InvalidInput("timestamp_ms must be a non-negative integer")
    return ms


def check_path_segment(value: str, what: str = "video id") -> str:
    """Ids become directory names under storage/; refuse anything that is not a plain name."""
    s = str(value or "").strip()
    if not s or s in (".", "..") or "/" in s or "\\" in s or "\x00" in s:
        raise InvalidInput(f"invalid {what}: {value!r}")
    return s


# -----------------------------
# Store
# -----------------------------

class AnnotationStore:
    """
    Durable annotation records backed by one JSON document plus image files.

    Layout under data_dir:
        db.json                                            {"videos": [...], "annotations": [...]}
        storage/videos/<videoId>/annotations/<id>/image.<ext>
        storage/videos/<videoId>/annotations/<id>/thumb.<ext>

    Every mutation reads the whole document, changes it and writes it back
    atomically. A per-instance lock serializes these cycles; separate
    processes sharing one data_dir are not coordinated (last writer wins).

    Create ordering: thumbnail derived in memory, then image and thumbnail
    written, then metadata committed. A failure at any step removes the
    asset dir before raising, so a record never points at missing files; a
    crash mid-create can only leave an unreferenced asset dir behind.
    """

    def __init__(self, data_dir: str, url_prefix: str = "/storage"):
        self.data_dir = data_dir
        self.url_prefix = "/" + (url_prefix or "/storage").strip("/")
        self._lock = threading.RLock()

    # ---------------- Paths ----------------

    @property
    def db_path(self) -> str:
        return os.path.join(self.data_dir, "db.json")

    @property
    def storage_dir(self) -> str:
        return os.path.join(self.data_dir, "storage")

    def asset_dir(self, video_id: str, annotation_id: str) -> str:
        return os.path.join(self.storage_dir, "videos", video_id, "annotations", annotation_id)

    def asset_url(self, video_id: str, annotation_id: str, filename: str) -> str:
        return f"{self.url_prefix}/videos/{video_id}/annotations/{annotation_id}/{filename}"

    # ---------------- Document I/O ----------------

    def _load(self) -> Dict:
        if not os.path.exists(self.db_path):
            return empty_db()
        try:
            data = _read_json(self.db_path)
        except (OSError, ValueError) as e:
            raise StorageError(f"could not read {self.db_path}: {e}") from e
        if not isinstance(data, dict):
            raise StorageError(f"{self.db_path} is not a JSON object")
        data.setdefault("videos", [])
        data.setdefault("annotations", [])
        return data

    def _commit(self, data: Dict) -> None:
        try:
            _atomic_write_json(self.db_path, data)
        except OSError as e:
            raise StorageError(f"could not write {self.db_path}: {e}") from e

    def initialize(self) -> None:
        """Create an empty db.json if none exists."""
        with self._lock:
            if not os.path.exists(self.db_path):
                self._commit(empty_db())

    # ---------------- Annotations ----------------

    def create(self, video_id: str, timestamp_ms, image: Optional[bytes], notes: Optional[str] = "") -> Annotation:
        if not image:
            raise InvalidInput(MISSING_FIELDS_MESSAGE)
        video_id = check_path_segment(video_id)
        ms = parse_timestamp_ms(timestamp_ms)

        # fails before anything touches disk
        thumb = make_thumbnail(image)
        image_name = f"{IMAGE_BASENAME}.{file_extension(thumb.source_fmt)}"
        thumb_name = f"{THUMB_BASENAME}.{file_extension(thumb.fmt)}"

        annotation_id = str(uuid.uuid4())
        rec = Annotation(
            id=annotation_id,
            video_id=str(video_id),
            timestamp_ms=ms,
            timecode=format_timecode(ms),
            image_path=self.asset_url(video_id, annotation_id, image_name),
            thumb_path=self.asset_url(video_id, annotation_id, thumb_name),
            notes=notes or "",
            created_at=utc_now_iso(),
        )

        adir = self.asset_dir(video_id, annotation_id)
        with self._lock:
            try:
                _atomic_write_bytes(os.path.join(adir, image_name), image)
                _atomic_write_bytes(os.path.join(adir, thumb_name), thumb.data)
                data = self._load()
                data["annotations"].append(rec.to_dict())
                self._commit(data)
            except (OSError, StorageError) as e:
                shutil.rmtree(adir, ignore_errors=True)
                if isinstance(e, StorageError):
                    raise
                raise StorageError(f"could not write annotation assets: {e}") from e

        logger.info("Created annotation %s for video %s at %s", rec.id, rec.video_id, rec.timecode)
        return rec

    def list(self, video_id: str) -> List[Annotation]:
        """All annotations of a video, ascending by timestamp (insertion order on ties)."""
        with self._lock:
            data = self._load()
        recs = [Annotation.from_dict(d) for d in data["annotations"] if d.get("videoId") == video_id]
        recs.sort(key=lambda r: r.timestamp_ms)
        return recs

    def get(self, video_id: str, annotation_id: str) -> Annotation:
        with self._lock:
            data = self._load()
        for d in data["annotations"]:
            if d.get("id") == annotation_id and d.get("videoId") == video_id:
                return Annotation.from_dict(d)
        raise NotFound("Annotation not found")

    def delete(self, video_id: str, annotation_id: str) -> None:
        """
        Remove the record, then its files. The record removal is what counts:
        a failed file cleanup is logged and does not undo it.
        """
        with self._lock:
            data = self._load()
            idx = next(
                (i for i, d in enumerate(data["annotations"])
                 if d.get("id") == annotation_id and d.get("videoId") == video_id),
                None,
            )
            if idx is None:
                raise NotFound("Annotation not found")
            del data["annotations"][idx]
            self._commit(data)

        logger.info("Deleted annotation %s for video %s", annotation_id, video_id)
        try:
            self._remove_assets(video_id, annotation_id)
        except FileCleanupFailed as e:
            logger.warning("Could not delete files: %s", e)

    def _remove_assets(self, video_id: str, annotation_id: str) -> None:
        adir = self.asset_dir(video_id, annotation_id)
        if not os.path.exists(adir):
            return
        try:
            shutil.rmtree(adir)
        except OSError as e:
            raise FileCleanupFailed(f"{adir}: {e}") from e

    # ---------------- Videos ----------------

    def list_videos(self) -> List[Video]:
        with self._lock:
            data = self._load()
        return [Video.from_dict(d) for d in data["videos"]]

    def get_video(self, video_id: str) -> Video:
        for v in self.list_videos():
            if v.id == video_id:
                return v
        raise NotFound("Video not found")

    def add_video(self, video: Video) -> Video:
        """Insert or replace a video entry by id."""
        if not video.id:
            raise InvalidInput("video id is required")
        if not video.created_at:
            video.created_at = utc_now_iso()
        with self._lock:
            data = self._load()
            data["videos"] = [d for d in data["videos"] if d.get("id") != video.id]
            data["videos"].append(video.to_dict())
            self._commit(data)
        return video
