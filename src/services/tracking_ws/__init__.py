# src/services/tracking_ws/__init__.py
"""
Live-обновления поездки: STOMP 1.2 поверх WebSocket.
"""

from src.services.tracking_ws.client import ConnectionSession, TrackingProtocolClient
from src.services.tracking_ws.transport import WebSocketTransport

__all__ = ["ConnectionSession", "TrackingProtocolClient", "WebSocketTransport"]
