"""
Configuration helpers for the ScholarMind backend.

Routers/services never read os.environ directly; they call get_settings().
"""

from dataclasses import dataclass
from functools import lru_cache
import os

STORAGE_BACKENDS = {"sql", "json", "memory"}


@dataclass(frozen=True)
class Settings:
    """Typed view of environment variables."""

    app_env: str
    database_url: str
    storage_backend: str
    storage_path: str
    namespace_by_user: bool
    session_ttl_seconds: int
    log_level: str


@lru_cache
def get_settings() -> Settings:
    """Read the current environment and build a Settings instance."""
    def _int(value: str, default: int = 0) -> int:
        try:
            return int(value)
        except (TypeError, ValueError):
            return default

    def _bool(value: str | None, default: bool = False) -> bool:
        if value is None:
            return default
        return value.strip().lower() in {"1", "true", "yes", "on"}

    backend = (os.getenv("STORAGE_BACKEND") or "sql").strip().lower()
    if backend not in STORAGE_BACKENDS:
        backend = "sql"

    return Settings(
        app_env=(os.getenv("APP_ENV") or "dev").lower(),
        database_url=os.getenv("DATABASE_URL", "sqlite:///./scholarmind.db"),
        storage_backend=backend,
        storage_path=os.getenv("STORAGE_PATH", "./scholarmind-data.json"),
        namespace_by_user=_bool(os.getenv("NAMESPACE_BY_USER"), True),
        session_ttl_seconds=_int(os.getenv("SESSION_TTL_SECONDS", "86400"), 86400),
        log_level=(os.getenv("LOG_LEVEL") or "INFO").upper(),
    )
