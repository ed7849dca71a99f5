# src/shared/models/tracking_dto.py
"""
DTO полезной нагрузки отслеживания.

Один и тот же JSON приходит и из GET /ride-tracking/{id}/snapshot,
и в теле STOMP MESSAGE. Позиция водителя может называться
currentLat/currentLng или driverLat/driverLng.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

from src.common.constants import RideStatus
from src.core.tracking.polyline import decode as decode_polyline
from src.shared.models.geo import GeoPoint, to_coordinate
from src.shared.models.tracking import TrackingSnapshot

_datetime_adapter = TypeAdapter(datetime)


def _lenient_datetime(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    try:
        return _datetime_adapter.validate_python(value)
    except ValidationError:
        return None


def _first_present(*values: Any) -> Any:
    """Первое значение, отличное от None (аналог оператора ??)."""
    for value in values:
        if value is not None:
            return value
    return None


class TrackingPayloadDTO(BaseModel):
    """Сырые данные отслеживания от backend."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    current_lat: Optional[float] = Field(default=None, alias="currentLat")
    current_lng: Optional[float] = Field(default=None, alias="currentLng")
    driver_lat: Optional[float] = Field(default=None, alias="driverLat")
    driver_lng: Optional[float] = Field(default=None, alias="driverLng")
    rider_lat: Optional[float] = Field(default=None, alias="riderLat")
    rider_lng: Optional[float] = Field(default=None, alias="riderLng")
    polyline: Optional[str] = None
    estimated_arrival: Optional[datetime] = Field(default=None, alias="estimatedArrival")
    timestamp: Optional[datetime] = None

    @field_validator(
        "current_lat", "current_lng", "driver_lat", "driver_lng", "rider_lat", "rider_lng",
        mode="before",
    )
    @classmethod
    def parse_coordinate(cls, v: Any) -> Optional[float]:
        """Числа и числовые строки; всё остальное считается отсутствием значения."""
        return to_coordinate(v)

    @field_validator("polyline", mode="before")
    @classmethod
    def parse_polyline(cls, v: Any) -> Optional[str]:
        return v if isinstance(v, str) else None

    @field_validator("estimated_arrival", "timestamp", mode="before")
    @classmethod
    def parse_datetime(cls, v: Any) -> Optional[datetime]:
        return _lenient_datetime(v)

    @property
    def driver_position(self) -> Optional[GeoPoint]:
        """Позиция водителя: currentLat ?? driverLat, currentLng ?? driverLng."""
        return GeoPoint.from_values(
            _first_present(self.current_lat, self.driver_lat),
            _first_present(self.current_lng, self.driver_lng),
        )

    @property
    def rider_position(self) -> Optional[GeoPoint]:
        return GeoPoint.from_values(self.rider_lat, self.rider_lng)

    def to_snapshot(self) -> TrackingSnapshot:
        """Преобразует полезную нагрузку в TrackingSnapshot, декодируя polyline."""
        return TrackingSnapshot(
            driver_position=self.driver_position,
            rider_position=self.rider_position,
            path=decode_polyline(self.polyline) if self.polyline else None,
            polyline=self.polyline,
            estimated_arrival=self.estimated_arrival,
            observed_at=self.timestamp,
        )


class SosAlertDTO(BaseModel):
    """SOS-алерт в объёме, нужном карте."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    shared_ride_id: Optional[str] = Field(default=None, alias="sharedRideId")
    current_lat: float = Field(default=0.0, alias="currentLat")
    current_lng: float = Field(default=0.0, alias="currentLng")
    status: Optional[str] = None
    description: Optional[str] = None

    @field_validator("id", "shared_ride_id", mode="before")
    @classmethod
    def parse_id(cls, v: Any) -> Optional[str]:
        if v is None or v == "":
            return None
        return str(v)

    @field_validator("current_lat", "current_lng", mode="before")
    @classmethod
    def parse_coordinate(cls, v: Any) -> float:
        # Backend отдаёт null для неизвестной позиции; приводим к 0, как и он
        value = to_coordinate(v)
        return 0.0 if value is None else value

    @property
    def origin(self) -> Optional[GeoPoint]:
        """Точка срабатывания SOS; (0, 0) означает «неизвестно»."""
        point = GeoPoint(lat=self.current_lat, lng=self.current_lng)
        if point.is_null_island:
            return None
        return point


def parse_ride_status(value: Any) -> Optional[RideStatus]:
    """Статус поездки из произвольной строки; неизвестный статус -> None."""
    if not isinstance(value, str):
        return None
    try:
        return RideStatus(value.strip().lower())
    except ValueError:
        return None
