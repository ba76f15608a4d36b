import json
import logging
from pathlib import Path

from pydantic_settings import BaseSettings
from functools import lru_cache

_config_logger = logging.getLogger(__name__)

_SETTINGS_FILE = Path("data/settings.json")
_BACKEND_DIR = Path(__file__).resolve().parents[1]
_ENV_FILES = (
    _BACKEND_DIR / ".env",
    ".env",
)
_OVERRIDABLE_KEYS = frozenset({
    "search_page_size",
    "search_value_cap",
})


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    app_title: str = "Layer Search API"
    app_version: str = "0.1.0"
    app_env: str = "development"
    cors_origins: list[str] = ["http://localhost:3020"]

    # Local layer store (uploaded layers)
    database_url: str = "sqlite:///data/layers.db"

    # Remote layers (ArcGIS feature services) listed in a YAML catalog
    layer_catalog_file: str = "data/layers.yaml"
    arcgis_token: str = ""
    arcgis_timeout: float = 30.0

    # Search defaults
    search_page_size: int = 10
    search_value_cap: int = 100
    search_reserved_fields: list[str] = ["OBJECTID", "FID"]
    search_export_title: str = "Advanced search results"
    search_session_ttl: float = 3600.0       # Seconds of inactivity before a session expires
    search_max_sessions: int = 1000          # Least recently used session is evicted beyond this

    # Logging: per-category log levels (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    log_level: str = "INFO"                  # Root / app-wide
    log_level_sql: str = "WARNING"           # sqlalchemy.engine: SQL queries
    log_level_http: str = "WARNING"          # httpx / httpcore: outbound HTTP
    log_level_uvicorn: str = "INFO"          # uvicorn.access / uvicorn.error
    log_level_search: str = "INFO"           # Search pipeline (executor, sampler, export)
    log_color: bool = True                   # False strips ANSI colours (log files, CI)

    model_config = {
        "env_file": _ENV_FILES,
        "env_file_encoding": "utf-8",
    }

    def model_post_init(self, __context: object) -> None:
        """Merge runtime overrides from data/settings.json into search settings."""
        if _SETTINGS_FILE.exists():
            try:
                overrides = json.loads(_SETTINGS_FILE.read_text("utf-8"))
                for key in _OVERRIDABLE_KEYS:
                    value = overrides.get(key)
                    if isinstance(value, int) and not isinstance(value, bool) and value > 0:
                        object.__setattr__(self, key, value)
            except Exception as exc:
                _config_logger.warning("Could not load settings overrides: %s", exc)


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance: reads .env once."""
    return Settings()
