# frame_annote/domain.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

from PyQt5.QtGui import QImage


# -----------------------------
# Core Dataclasses
# -----------------------------

@dataclass(frozen=True)
class Annotation:
    """
    One saved annotation: an edited frame of a video at a given timestamp.

    Field names follow Python conventions; to_dict/from_dict use the wire
    keys shared by the HTTP API and db.json (videoId, timestamp_ms, ...).
    """
    id: str
    video_id: str
    timestamp_ms: int
    timecode: str
    image_path: str
    thumb_path: str
    notes: str = ""
    created_at: str = ""

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "videoId": self.video_id,
            "timestamp_ms": int(self.timestamp_ms),
            "timecode": self.timecode,
            "image_path": self.image_path,
            "thumb_path": self.thumb_path,
            "notes": self.notes or "",
            "created_at": self.created_at,
        }

    @staticmethod
    def from_dict(d: Dict) -> "Annotation":
        return Annotation(
            id=str(d["id"]),
            video_id=str(d["videoId"]),
            timestamp_ms=int(d["timestamp_ms"]),
            timecode=str(d.get("timecode", "")),
            image_path=str(d.get("image_path", "")),
            thumb_path=str(d.get("thumb_path", "")),
            notes=str(d.get("notes") or ""),
            created_at=str(d.get("created_at", "")),
        )


@dataclass
class Video:
    """
    A video known to the server (the db.json "videos" collection).

    duration_ms is best-effort; 0 if unknown.
    """
    id: str
    title: str
    url: str
    duration_ms: int = 0
    created_at: str = ""

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "title": self.title,
            "url": self.url,
            "duration_ms": int(self.duration_ms),
            "created_at": self.created_at,
        }

    @staticmethod
    def from_dict(d: Dict) -> "Video":
        return Video(
            id=str(d["id"]),
            title=str(d.get("title", "")),
            url=str(d.get("url", "")),
            duration_ms=int(d.get("duration_ms", 0) or 0),
            created_at=str(d.get("created_at", "")),
        )


@dataclass(frozen=True)
class CapturedFrame:
    """A paused frame, PNG-encoded, plus the playback position it was taken at."""
    png: bytes
    width: int
    height: int
    timestamp_ms: int

    def to_image(self) -> Optional[QImage]:
        img = QImage.fromData(self.png, "PNG")
        if img.isNull():
            return None
        return img
