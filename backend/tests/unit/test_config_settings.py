"""Unit tests for application settings configuration."""

import json
from pathlib import Path

from layer_search.config import Settings


def test_settings_uses_backend_env_file_independent_of_cwd():
    """Settings should always include backend/.env as an env source."""
    env_files = Settings.model_config.get("env_file")
    assert env_files is not None

    normalized = {str(Path(item)) for item in env_files}
    expected_backend_env = str(Path(__file__).resolve().parents[2] / ".env")

    assert expected_backend_env in normalized
    assert str(Path(".env")) in normalized


def test_search_defaults():
    settings = Settings()

    assert settings.search_page_size == 10
    assert settings.search_value_cap == 100
    assert settings.search_reserved_fields == ["OBJECTID", "FID"]


def test_settings_json_overrides_search_limits(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "data").mkdir()
    (tmp_path / "data" / "settings.json").write_text(
        json.dumps({"search_page_size": 25, "search_value_cap": -1, "app_title": "ignored"}),
        encoding="utf-8",
    )

    settings = Settings()

    assert settings.search_page_size == 25
    assert settings.search_value_cap == 100
    assert settings.app_title == "Layer Search API"
