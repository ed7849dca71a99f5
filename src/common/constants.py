# src/common/constants.py
"""
Общие константы и перечисления.
"""

from enum import Enum


class TypeMsg(str, Enum):
    """Типы сообщений для логирования."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class RideStatus(str, Enum):
    """Статусы поездки, как их отдаёт backend."""
    PENDING = "pending"
    ACCEPTED = "accepted"
    ONGOING = "ongoing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    SCHEDULED = "scheduled"


class ConnectionState(str, Enum):
    """Состояния STOMP-сессии отслеживания."""
    CONNECTING = "connecting"
    CONNECTED = "connected"
    SUBSCRIBED = "subscribed"
    CLOSED = "closed"


class MarkerId(str, Enum):
    """Идентификаторы маркеров на карте SOS-алерта."""
    PICKUP = "pickup"
    DROPOFF = "dropoff"
    SOS_ORIGIN = "sos-origin"
    DRIVER = "driver"
    RIDER = "rider"


class LayerId(str, Enum):
    """Идентификаторы линейных слоёв карты."""
    PLANNED_ROUTE = "planned-route"
    TRACKING_ROUTE = "tracking-route"


# Цвета маркеров
MARKER_COLORS: dict[MarkerId, str] = {
    MarkerId.PICKUP: "#10B981",
    MarkerId.DROPOFF: "#EF4444",
    MarkerId.SOS_ORIGIN: "#DC2626",
    MarkerId.DRIVER: "#2563EB",
    MarkerId.RIDER: "#F59E0B",
}
