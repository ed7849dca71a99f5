# src/config/loader.py
"""
Загрузчик конфигурации проекта.
Единственный источник истины — config/config.json.
Секретные данные и адреса переопределяются из переменных окружения.
"""

from __future__ import annotations

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Any
from urllib.parse import quote, urlsplit

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings


# =============================================================================
# ОПРЕДЕЛЕНИЕ ПУТЕЙ
# =============================================================================

def get_project_root() -> Path:
    """Возвращает корневую директорию проекта."""
    return Path(__file__).parent.parent.parent


def get_config_path() -> Path:
    """Возвращает путь к файлу конфигурации."""
    return get_project_root() / "config" / "config.json"


def load_config_json() -> dict[str, Any]:
    """Загружает config.json и возвращает словарь."""
    config_path = get_config_path()
    if not config_path.exists():
        raise FileNotFoundError(f"Файл конфигурации не найден: {config_path}")
    
    with open(config_path, "r", encoding="utf-8") as f:
        return json.load(f)


# =============================================================================
# PYDANTIC МОДЕЛИ КОНФИГУРАЦИИ
# =============================================================================

class SystemSettings(BaseModel):
    """Системные настройки."""
    PROJECT_NAME: str = "ride_admin_tracking"
    VERSION: str = "1.0.0"
    DEBUG: bool = True
    ENVIRONMENT: str = "development"
    STORAGE_SECRET: str = "change-me"


class DeploymentSettings(BaseModel):
    """Настройки развертывания компонентов."""
    WEB_ADMIN_PORT: int = 8082


class LoggingSettings(BaseModel):
    """Настройки логирования."""
    LOG_LEVEL: str = "DEBUG"
    LOG_TO_FILE: bool = False
    LOG_FILE_PATH: str = "logs/app.log"
    LOG_FORMAT: str = "colored"
    LOG_MAX_BYTES: int = 10485760
    LOG_BACKUP_COUNT: int = 5


class ApiSettings(BaseModel):
    """Настройки backend API админки."""
    API_BASE_URL: str = "http://localhost:8081/api/v1"
    API_TOKEN: str = ""
    HTTP_TIMEOUT: float = 10.0
    WS_PATH: str = "/ws-native"
    WS_SUBPROTOCOL: str = "v12.stomp"

    @field_validator("API_TOKEN", mode="before")
    @classmethod
    def get_from_env(cls, v: str | None) -> str:
        """Получает токен из переменных окружения, если не задан."""
        if not v:
            return os.getenv("API_TOKEN", "")
        return v

    @property
    def ws_base_url(self) -> str | None:
        """
        Адрес WebSocket endpoint, вычисленный из API_BASE_URL.

        http -> ws, https -> wss, суффикс /api/v1 отбрасывается.
        Возвращает None, если базовый адрес не разбирается.
        """
        parts = urlsplit(self.API_BASE_URL)
        if not parts.scheme or not parts.netloc:
            return None
        scheme = "wss" if parts.scheme == "https" else "ws"
        path = parts.path.rstrip("/")
        if path.endswith("/api/v1"):
            path = path[: -len("/api/v1")]
        return f"{scheme}://{parts.netloc}{path}{self.WS_PATH}"

    def ws_url(self, token: str | None) -> str | None:
        """Полный адрес WebSocket с токеном в query-параметре."""
        base = self.ws_base_url
        if base is None:
            return None
        return f"{base}?token={quote(token or '', safe='')}"


class TrackingSettings(BaseModel):
    """Настройки отслеживания поездки."""
    POLL_INTERVAL: float = 15.0
    STOMP_ACCEPT_VERSION: str = "1.2"
    STOMP_HOST: str = "/"


class MapSettings(BaseModel):
    """Настройки карты."""
    MAP_STYLE_URL: str = "https://tiles.goong.io/assets/goong_map_web.json"
    MAP_API_KEY: str = ""
    FIT_PADDING: int = 40
    FIT_MAX_ZOOM: float = 16
    DEFAULT_CENTER_LAT: float = 10.84148
    DEFAULT_CENTER_LNG: float = 106.809844
    DEFAULT_ZOOM: float = 13

    @field_validator("MAP_API_KEY", mode="before")
    @classmethod
    def get_from_env(cls, v: str | None) -> str:
        """Получает API ключ карты из переменных окружения."""
        if not v:
            return os.getenv("MAP_API_KEY", "")
        return v

    @property
    def style_url(self) -> str:
        """URL стиля карты с ключом."""
        if not self.MAP_API_KEY:
            return self.MAP_STYLE_URL
        return f"{self.MAP_STYLE_URL}?api_key={self.MAP_API_KEY}"


# =============================================================================
# ГЛАВНЫЙ КЛАСС НАСТРОЕК
# =============================================================================

class Settings(BaseSettings):
    """
    Главный класс настроек приложения.
    Агрегирует все секции конфигурации.
    """
    system: SystemSettings = Field(default_factory=SystemSettings)
    deployment: DeploymentSettings = Field(default_factory=DeploymentSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    api: ApiSettings = Field(default_factory=ApiSettings)
    tracking: TrackingSettings = Field(default_factory=TrackingSettings)
    map: MapSettings = Field(default_factory=MapSettings)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    @classmethod
    def from_config_json(cls) -> "Settings":
        """
        Создаёт объект Settings из config.json.
        Секреты переопределяются из переменных окружения.
        """
        config_data = load_config_json()
        
        # Фильтруем комментарии (ключи, начинающиеся с _comment_)
        filtered_data = {k: v for k, v in config_data.items() if not k.startswith("_comment_")}
        
        return cls(
            system=SystemSettings(
                PROJECT_NAME=filtered_data.get("PROJECT_NAME", "ride_admin_tracking"),
                VERSION=filtered_data.get("VERSION", "1.0.0"),
                DEBUG=filtered_data.get("DEBUG", True),
                ENVIRONMENT=os.getenv("ENVIRONMENT", filtered_data.get("ENVIRONMENT", "development")),
                STORAGE_SECRET=os.getenv("STORAGE_SECRET", filtered_data.get("STORAGE_SECRET", "change-me")),
            ),
            deployment=DeploymentSettings(
                WEB_ADMIN_PORT=int(os.getenv("WEB_ADMIN_PORT", filtered_data.get("WEB_ADMIN_PORT", 8082))),
            ),
            logging=LoggingSettings(
                LOG_LEVEL=filtered_data.get("LOG_LEVEL", "DEBUG"),
                LOG_TO_FILE=filtered_data.get("LOG_TO_FILE", False),
                LOG_FILE_PATH=filtered_data.get("LOG_FILE_PATH", "logs/app.log"),
                LOG_FORMAT=filtered_data.get("LOG_FORMAT", "colored"),
                LOG_MAX_BYTES=filtered_data.get("LOG_MAX_BYTES", 10485760),
                LOG_BACKUP_COUNT=filtered_data.get("LOG_BACKUP_COUNT", 5),
            ),
            api=ApiSettings(
                API_BASE_URL=os.getenv("API_BASE_URL", filtered_data.get("API_BASE_URL", "http://localhost:8081/api/v1")),
                API_TOKEN=os.getenv("API_TOKEN", filtered_data.get("API_TOKEN", "")),
                HTTP_TIMEOUT=filtered_data.get("HTTP_TIMEOUT", 10.0),
                WS_PATH=filtered_data.get("WS_PATH", "/ws-native"),
                WS_SUBPROTOCOL=filtered_data.get("WS_SUBPROTOCOL", "v12.stomp"),
            ),
            tracking=TrackingSettings(
                POLL_INTERVAL=filtered_data.get("POLL_INTERVAL", 15.0),
                STOMP_ACCEPT_VERSION=filtered_data.get("STOMP_ACCEPT_VERSION", "1.2"),
                STOMP_HOST=filtered_data.get("STOMP_HOST", "/"),
            ),
            map=MapSettings(
                MAP_STYLE_URL=filtered_data.get("MAP_STYLE_URL", "https://tiles.goong.io/assets/goong_map_web.json"),
                MAP_API_KEY=os.getenv("MAP_API_KEY", filtered_data.get("MAP_API_KEY", "")),
                FIT_PADDING=filtered_data.get("FIT_PADDING", 40),
                FIT_MAX_ZOOM=filtered_data.get("FIT_MAX_ZOOM", 16),
                DEFAULT_CENTER_LAT=filtered_data.get("DEFAULT_CENTER_LAT", 10.84148),
                DEFAULT_CENTER_LNG=filtered_data.get("DEFAULT_CENTER_LNG", 106.809844),
                DEFAULT_ZOOM=filtered_data.get("DEFAULT_ZOOM", 13),
            ),
        )


@lru_cache()
def get_settings() -> Settings:
    """
    Возвращает синглтон настроек приложения.
    Использует кэширование для производительности.
    """
    from dotenv import load_dotenv
    
    # Загружаем .env файл
    env_path = get_project_root() / ".env"
    if env_path.exists():
        load_dotenv(env_path)
    
    return Settings.from_config_json()


# Экспорт синглтона для удобного импорта
settings = get_settings()
