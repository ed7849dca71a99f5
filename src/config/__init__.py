# src/config/__init__.py
"""
Конфигурация Ride Admin.
Секции: system, deployment, logging, api, tracking, map.
"""

from src.config.loader import Settings, get_settings, settings

__all__ = ["Settings", "get_settings", "settings"]
