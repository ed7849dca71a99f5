# tests/config/test_loader.py
"""
Тесты для модуля загрузки конфигурации.
"""

from __future__ import annotations

import os
from pathlib import Path
from unittest.mock import patch

import pytest

from src.config.loader import (
    get_project_root,
    get_config_path,
    load_config_json,
    ApiSettings,
    MapSettings,
    SystemSettings,
    TrackingSettings,
    Settings,
)


class TestGetProjectRoot:
    """Тесты для функции get_project_root."""

    def test_returns_path_object(self) -> None:
        assert isinstance(get_project_root(), Path)

    def test_root_contains_src_and_config(self) -> None:
        root = get_project_root()
        assert (root / "src").exists()
        assert (root / "config").exists()


class TestGetConfigPath:
    """Тесты для функции get_config_path."""

    def test_path_ends_with_config_json(self) -> None:
        path = get_config_path()
        assert path.name == "config.json"
        assert path.parent.name == "config"


class TestLoadConfigJson:
    """Тесты для функции load_config_json."""

    def test_contains_required_keys(self) -> None:
        """Проверяет наличие обязательных ключей."""
        config = load_config_json()

        for key in ("PROJECT_NAME", "VERSION", "API_BASE_URL", "POLL_INTERVAL", "FIT_PADDING"):
            assert key in config, f"Отсутствует ключ: {key}"

    def test_raises_file_not_found(self, tmp_path: Path) -> None:
        with patch("src.config.loader.get_config_path") as mock_path:
            mock_path.return_value = tmp_path / "nonexistent.json"

            with pytest.raises(FileNotFoundError):
                load_config_json()


class TestApiSettings:
    """Тесты для ApiSettings и адреса WebSocket."""

    @pytest.mark.parametrize(
        "base_url, expected",
        [
            ("http://localhost:8081/api/v1", "ws://localhost:8081/ws-native"),
            ("https://admin.example.com/api/v1/", "wss://admin.example.com/ws-native"),
            ("https://admin.example.com/backend/api/v1", "wss://admin.example.com/backend/ws-native"),
            ("http://localhost:8081", "ws://localhost:8081/ws-native"),
        ],
    )
    def test_ws_base_url(self, base_url: str, expected: str) -> None:
        assert ApiSettings(API_BASE_URL=base_url).ws_base_url == expected

    def test_ws_url_escapes_token(self) -> None:
        api = ApiSettings(API_BASE_URL="http://localhost:8081/api/v1")

        assert api.ws_url("a b/c") == "ws://localhost:8081/ws-native?token=a%20b%2Fc"
        assert api.ws_url(None) == "ws://localhost:8081/ws-native?token="

    def test_unparseable_base(self) -> None:
        api = ApiSettings(API_BASE_URL="not a url")

        assert api.ws_base_url is None
        assert api.ws_url("tok") is None

    def test_token_from_env(self) -> None:
        with patch.dict(os.environ, {"API_TOKEN": "env-token"}):
            assert ApiSettings(API_TOKEN="").API_TOKEN == "env-token"


class TestMapSettings:
    """Тесты для MapSettings."""

    def test_defaults(self) -> None:
        settings = MapSettings(MAP_API_KEY="key")

        assert settings.FIT_PADDING == 40
        assert settings.FIT_MAX_ZOOM == 16

    def test_style_url_with_key(self) -> None:
        settings = MapSettings(MAP_STYLE_URL="https://tiles.test/style.json", MAP_API_KEY="key")

        assert settings.style_url == "https://tiles.test/style.json?api_key=key"


class TestTrackingSettings:
    """Тесты для TrackingSettings."""

    def test_defaults(self) -> None:
        settings = TrackingSettings()

        assert settings.POLL_INTERVAL == 15.0
        assert settings.STOMP_ACCEPT_VERSION == "1.2"
        assert settings.STOMP_HOST == "/"


class TestSettings:
    """Тесты главного класса настроек."""

    def test_from_config_json(self) -> None:
        settings = Settings.from_config_json()

        assert isinstance(settings.system, SystemSettings)
        assert settings.api.WS_SUBPROTOCOL == "v12.stomp"
        assert settings.tracking.POLL_INTERVAL == 15

    def test_env_overrides_base_url(self) -> None:
        with patch.dict(os.environ, {"API_BASE_URL": "https://prod.example.com/api/v1"}):
            settings = Settings.from_config_json()

        assert settings.api.ws_base_url == "wss://prod.example.com/ws-native"
