# src/shared/models/tracking.py
"""
Модели состояния отслеживания поездки.

TrackingSnapshot: входящие данные (push или poll);
TrackingState: согласованное состояние одного открытого SOS-алерта.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from src.common.constants import RideStatus
from src.shared.models.geo import EMPTY_PATH, GeoPoint, PathPoints


@dataclass(frozen=True)
class TrackingSnapshot:
    """
    Срез данных отслеживания на момент времени.

    Каждое поле независимо необязательно: None означает
    «нового значения нет», а не «значение стало пустым».
    """
    driver_position: Optional[GeoPoint] = None
    rider_position: Optional[GeoPoint] = None
    path: Optional[PathPoints] = None
    polyline: Optional[str] = None
    estimated_arrival: Optional[datetime] = None
    observed_at: Optional[datetime] = None


@dataclass(frozen=True)
class TrackingMarkers:
    """Позиции маркеров карты."""
    pickup: Optional[GeoPoint] = None
    dropoff: Optional[GeoPoint] = None
    sos_origin: Optional[GeoPoint] = None
    driver: Optional[GeoPoint] = None
    rider: Optional[GeoPoint] = None

    def points(self) -> list[Optional[GeoPoint]]:
        """Все маркеры списком (для расчёта границ карты)."""
        return [self.pickup, self.dropoff, self.sos_origin, self.driver, self.rider]


@dataclass(frozen=True)
class RideMetadata:
    """Статичные данные поездки и алерта, известные при открытии карточки."""
    ride_id: str
    status: Optional[RideStatus] = None
    planned_path: PathPoints = EMPTY_PATH
    pickup: Optional[GeoPoint] = None
    dropoff: Optional[GeoPoint] = None
    sos_origin: Optional[GeoPoint] = None

    @property
    def is_live(self) -> bool:
        """Нужна ли live-подписка: поездка идёт или статус неизвестен."""
        return self.status is None or self.status == RideStatus.ONGOING


@dataclass(frozen=True)
class TrackingState:
    """Согласованное состояние карты одного SOS-алерта."""
    ride_id: str
    planned_path: PathPoints = EMPTY_PATH
    live_path: PathPoints = EMPTY_PATH
    markers: TrackingMarkers = field(default_factory=TrackingMarkers)
    estimated_arrival: Optional[datetime] = None
    observed_at: Optional[datetime] = None

    @property
    def active_path(self) -> PathPoints:
        """Фактический маршрут, если он есть, иначе плановый."""
        return self.live_path if self.live_path else self.planned_path
