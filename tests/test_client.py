"""httpx client against a mock transport and against the real Flask app."""

import httpx
import pytest

from frame_annote.client import AnnotationClient, SaveSession
from frame_annote.config import ClientConfig, ServerConfig
from frame_annote.errors import ApiError, InvalidInput, NotFound, SaveInProgress
from frame_annote.server import create_app

RECORD = {
    "id": "a1",
    "videoId": "v1",
    "timestamp_ms": 12345,
    "timecode": "00:00:12.345",
    "image_path": "/storage/videos/v1/annotations/a1/image.png",
    "thumb_path": "/storage/videos/v1/annotations/a1/thumb.png",
    "notes": "n",
    "created_at": "2024-01-01T00:00:00Z",
}


def _client(handler, api_url="http://test"):
    return AnnotationClient(ClientConfig(api_url=api_url), transport=httpx.MockTransport(handler))


def test_create_annotation_posts_multipart():
    seen = {}

    def handler(request):
        seen["method"] = request.method
        seen["path"] = request.url.path
        seen["body"] = request.content
        seen["type"] = request.headers["content-type"]
        return httpx.Response(201, json=RECORD)

    with _client(handler) as client:
        rec = client.create_annotation("v1", 12345, b"\x89PNGfake", "n")

    assert rec.id == "a1"
    assert rec.timecode == "00:00:12.345"
    assert seen["method"] == "POST"
    assert seen["path"] == "/videos/v1/annotations"
    assert seen["type"].startswith("multipart/form-data")
    assert b'name="timestamp_ms"' in seen["body"]
    assert b"12345" in seen["body"]
    assert b'name="image"; filename="annotation.png"' in seen["body"]
    assert b"\x89PNGfake" in seen["body"]


def test_api_prefix_is_kept_in_requests():
    paths = []

    def handler(request):
        paths.append(request.url.path)
        return httpx.Response(200, json=[RECORD])

    with _client(handler, api_url="http://test/api") as client:
        recs = client.list_annotations("v1")

    assert [r.id for r in recs] == ["a1"]
    assert paths == ["/api/videos/v1/annotations"]


def test_fetch_asset_resolves_against_origin():
    urls = []

    def handler(request):
        urls.append(str(request.url))
        return httpx.Response(200, content=b"img")

    with _client(handler, api_url="http://test/api") as client:
        assert client.fetch_asset(RECORD["image_path"]) == b"img"
    assert urls == ["http://test/storage/videos/v1/annotations/a1/image.png"]


@pytest.mark.parametrize(
    "status, exc",
    [(400, InvalidInput), (404, NotFound), (500, ApiError), (503, ApiError)],
)
def test_error_statuses_map_to_exceptions(status, exc):
    def handler(request):
        return httpx.Response(status, json={"error": "boom"})

    with _client(handler) as client:
        with pytest.raises(exc, match="boom") as info:
            client.get_annotation("v1", "a1")
    assert info.value.status_code == status


def test_non_json_error_body():
    def handler(request):
        return httpx.Response(502, text="Bad Gateway")

    with _client(handler) as client:
        with pytest.raises(ApiError, match="Bad Gateway"):
            client.list_videos()


def test_unreachable_server_is_api_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with _client(handler) as client:
        with pytest.raises(ApiError, match="Could not reach"):
            client.health()


def test_delete_annotation():
    def handler(request):
        assert request.method == "DELETE"
        return httpx.Response(200, json={"message": "Annotation deleted successfully", "deleted": True})

    with _client(handler) as client:
        assert client.delete_annotation("v1", "a1") is True


def test_round_trip_through_flask_app(tmp_path, make_png):
    app = create_app(ServerConfig(data_dir=str(tmp_path)))
    client = AnnotationClient(ClientConfig(api_url="http://frame-annote"), transport=httpx.WSGITransport(app=app))
    with client:
        assert client.health() is True
        png = make_png(300, 150)
        rec = client.create_annotation("v1", 4321, png, "round trip")
        assert client.get_annotation("v1", rec.id) == rec
        assert [r.id for r in client.list_annotations("v1")] == [rec.id]
        assert client.fetch_asset(rec.image_path) == png
        assert client.delete_annotation("v1", rec.id) is True
        with pytest.raises(NotFound):
            client.get_annotation("v1", rec.id)


# ---------------- Single-flight save ----------------

def test_save_session_rejects_reentrant_save():
    session = SaveSession()
    with session.guard():
        assert session.in_flight
        with pytest.raises(SaveInProgress):
            with session.guard():
                pass
    assert not session.in_flight


def test_save_session_releases_after_failure():
    session = SaveSession()
    with pytest.raises(RuntimeError):
        with session.guard():
            raise RuntimeError("upload failed")
    assert not session.in_flight
    session.begin()
    with pytest.raises(SaveInProgress):
        session.begin()
    session.end()
    assert not session.in_flight
