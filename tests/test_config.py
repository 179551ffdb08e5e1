"""Server/client settings from the environment and CLI overrides."""

from frame_annote.config import MAX_UPLOAD_BYTES, ClientConfig, ServerConfig


def test_server_defaults(monkeypatch):
    for name in ("DATA_DIR", "HOST", "PORT", "API_PREFIX", "CORS_ORIGINS", "MAX_UPLOAD_BYTES"):
        monkeypatch.delenv(f"FRAME_ANNOTE_{name}", raising=False)
    cfg = ServerConfig.from_env()
    assert cfg.port == 3001
    assert cfg.api_prefix == ""
    assert cfg.storage_url_prefix == "/storage"
    assert cfg.max_upload_bytes == MAX_UPLOAD_BYTES == 10 * 1024 * 1024
    assert cfg.cors_origins == ["*"]


def test_server_from_env(monkeypatch, tmp_path):
    monkeypatch.setenv("FRAME_ANNOTE_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("FRAME_ANNOTE_PORT", "8080")
    monkeypatch.setenv("FRAME_ANNOTE_API_PREFIX", "api/")
    monkeypatch.setenv("FRAME_ANNOTE_CORS_ORIGINS", "http://a.test, http://b.test")
    cfg = ServerConfig.from_env()
    assert cfg.data_dir == str(tmp_path)
    assert cfg.port == 8080
    assert cfg.api_prefix == "/api"
    assert cfg.cors_origins == ["http://a.test", "http://b.test"]
    assert cfg.db_path == str(tmp_path / "db.json")
    assert cfg.storage_dir == str(tmp_path / "storage")


def test_with_overrides_skips_none():
    cfg = ServerConfig(port=3001, host="127.0.0.1")
    out = cfg.with_overrides(port=9000, host=None, api_prefix="v1")
    assert out.port == 9000
    assert out.host == "127.0.0.1"
    assert out.api_prefix == "/v1"
    assert cfg.port == 3001


def test_client_from_env(monkeypatch):
    monkeypatch.setenv("FRAME_ANNOTE_API_URL", "http://server:3001/api/")
    monkeypatch.setenv("FRAME_ANNOTE_TIMEOUT", "5")
    cfg = ClientConfig.from_env()
    assert cfg.api_url == "http://server:3001/api"
    assert cfg.timeout == 5.0
