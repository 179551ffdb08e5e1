# frame_annote/client.py
from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import List, Optional

import httpx

from .config import ClientConfig
from .domain import Annotation, Video
from .errors import ApiError, InvalidInput, NotFound, SaveInProgress

logger = logging.getLogger(__name__)


class AnnotationClient:
    """
    Thin synchronous client for the annotation HTTP API.

    api_url is the base the JSON routes hang off (including any api prefix);
    asset paths returned by the server are resolved against its origin.
    """

    def __init__(self, config: Optional[ClientConfig] = None, transport: Optional[httpx.BaseTransport] = None):
        self.config = config or ClientConfig.from_env()
        self._http = httpx.Client(
            base_url=self.config.api_url,
            timeout=httpx.Timeout(self.config.timeout),
            transport=transport,
        )

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "AnnotationClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    # ---------------- Helpers ----------------

    def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            resp = self._http.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            raise ApiError(f"Request timed out: {method} {url}") from e
        except httpx.RequestError as e:
            raise ApiError(f"Could not reach annotation server: {e}") from e

        if resp.is_success:
            return resp

        try:
            message = resp.json().get("error") or resp.text
        except ValueError:
            message = resp.text or resp.reason_phrase
        if resp.status_code == 400:
            raise InvalidInput(message)
        if resp.status_code == 404:
            raise NotFound(message)
        raise ApiError(message, status_code=resp.status_code)

    # ---------------- API ----------------

    def health(self) -> bool:
        return self._request("GET", "/health").json().get("status") == "ok"

    def list_videos(self) -> List[Video]:
        return [Video.from_dict(d) for d in self._request("GET", "/videos").json()]

    def create_annotation(self, video_id: str, timestamp_ms: int, image_png: bytes, notes: str = "") -> Annotation:
        resp = self._request(
            "POST",
            f"/videos/{video_id}/annotations",
            data={"timestamp_ms": str(int(timestamp_ms)), "notes": notes or ""},
            files={"image": ("annotation.png", image_png, "image/png")},
        )
        rec = Annotation.from_dict(resp.json())
        logger.info("Saved annotation %s at %s", rec.id, rec.timecode)
        return rec

    def list_annotations(self, video_id: str) -> List[Annotation]:
        resp = self._request("GET", f"/videos/{video_id}/annotations")
        return [Annotation.from_dict(d) for d in resp.json()]

    def get_annotation(self, video_id: str, annotation_id: str) -> Annotation:
        resp = self._request("GET", f"/videos/{video_id}/annotations/{annotation_id}")
        return Annotation.from_dict(resp.json())

    def delete_annotation(self, video_id: str, annotation_id: str) -> bool:
        resp = self._request("DELETE", f"/videos/{video_id}/annotations/{annotation_id}")
        return bool(resp.json().get("deleted"))

    def fetch_asset(self, path: str) -> bytes:
        """Download an image_path / thumb_path (absolute paths resolve against the server origin)."""
        url = httpx.URL(self.config.api_url).join(path)
        return self._request("GET", str(url)).content


class SaveSession:
    """
    Allows one outstanding save per editing session.

    A second save while one is in flight is rejected with SaveInProgress,
    not queued.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._in_flight = False

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    def begin(self) -> None:
        with self._lock:
            if self._in_flight:
                raise SaveInProgress("A save is already in progress")
            self._in_flight = True

    def end(self) -> None:
        with self._lock:
            self._in_flight = False

    @contextmanager
    def guard(self):
        self.begin()
        try:
            yield
        finally:
            self.end()
