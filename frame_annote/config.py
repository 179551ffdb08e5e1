# frame_annote/config.py
from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from typing import List, Optional


# Environment overrides (CLI options take precedence over these)
ENV_PREFIX = "FRAME_ANNOTE_"

DEFAULT_DATA_DIR = "data"
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 3001
DEFAULT_API_URL = f"http://{DEFAULT_HOST}:{DEFAULT_PORT}"
MAX_UPLOAD_BYTES = 10 * 1024 * 1024


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    v = os.environ.get(ENV_PREFIX + name)
    if v is None or not v.strip():
        return default
    return v.strip()


def _normalize_prefix(prefix: Optional[str]) -> str:
    p = (prefix or "").strip().rstrip("/")
    if p and not p.startswith("/"):
        p = "/" + p
    return p


@dataclass
class ServerConfig:
    """
    Settings for the annotation server.

    data_dir holds db.json and the storage/ tree of annotation images.
    api_prefix is prepended to every JSON route ("" or e.g. "/api").
    """
    data_dir: str = DEFAULT_DATA_DIR
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    api_prefix: str = ""
    storage_url_prefix: str = "/storage"
    max_upload_bytes: int = MAX_UPLOAD_BYTES
    cors_origins: List[str] = field(default_factory=lambda: ["*"])

    @property
    def db_path(self) -> str:
        return os.path.join(self.data_dir, "db.json")

    @property
    def storage_dir(self) -> str:
        return os.path.join(self.data_dir, "storage")

    @staticmethod
    def from_env() -> "ServerConfig":
        origins = _env("CORS_ORIGINS", "*")
        return ServerConfig(
            data_dir=_env("DATA_DIR", DEFAULT_DATA_DIR),
            host=_env("HOST", DEFAULT_HOST),
            port=int(_env("PORT", str(DEFAULT_PORT))),
            api_prefix=_normalize_prefix(_env("API_PREFIX", "")),
            storage_url_prefix=_normalize_prefix(_env("STORAGE_URL_PREFIX", "/storage")) or "/storage",
            max_upload_bytes=int(_env("MAX_UPLOAD_BYTES", str(MAX_UPLOAD_BYTES))),
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
        )

    def with_overrides(self, **kwargs) -> "ServerConfig":
        """Copy with the non-None keyword values applied."""
        updates = {k: v for k, v in kwargs.items() if v is not None}
        if "api_prefix" in updates:
            updates["api_prefix"] = _normalize_prefix(updates["api_prefix"])
        return replace(self, **updates)


@dataclass
class ClientConfig:
    """Where the desktop client finds the server (api_url includes any api prefix)."""
    api_url: str = DEFAULT_API_URL
    timeout: float = 30.0

    @staticmethod
    def from_env() -> "ClientConfig":
        return ClientConfig(
            api_url=(_env("API_URL", DEFAULT_API_URL) or DEFAULT_API_URL).rstrip("/"),
            timeout=float(_env("TIMEOUT", "30")),
        )
