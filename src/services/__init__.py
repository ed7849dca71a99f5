# src/services/__init__.py
"""
Внешние каналы данных.

Сервисы:
- tracking_ws: STOMP поверх WebSocket, live-обновления поездки
"""

__all__: list[str] = []
