"""
Configuration helpers for the Users API.

Exposes a Settings object that reads environment variables (bind address,
storage path, logging) so that routers/services do not fetch os.environ
directly.
"""

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
import os

PROJECT_ROOT = Path(__file__).resolve().parents[2]
DEFAULT_DATA_FILE = PROJECT_ROOT / "users.json"


@dataclass(frozen=True)
class Settings:
    """Typed view of environment variables."""

    app_env: str
    host: str
    port: int
    data_file: Path
    log_level: str
    log_file: str | None


@lru_cache
def get_settings() -> Settings:
    """Read the current environment and build a Settings instance."""
    def _int(value: str, default: int = 0) -> int:
        try:
            return int(value)
        except (TypeError, ValueError):
            return default

    def _path(value: str | None, default: Path) -> Path:
        if not value or not value.strip():
            return default
        candidate = Path(value.strip()).expanduser()
        if not candidate.is_absolute():
            candidate = PROJECT_ROOT / candidate
        return candidate

    return Settings(
        app_env=(os.getenv("APP_ENV") or "dev").lower(),
        host=os.getenv("HOST", "127.0.0.1"),
        port=_int(os.getenv("PORT", "3000"), 3000),
        data_file=_path(os.getenv("USERS_DATA_FILE"), DEFAULT_DATA_FILE),
        log_level=(os.getenv("LOG_LEVEL") or "INFO").upper(),
        log_file=os.getenv("LOG_FILE") or None,
    )
