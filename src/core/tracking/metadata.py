# src/core/tracking/metadata.py
"""
Извлечение статичных данных карты из деталей поездки и SOS-алерта.

Backend отдаёт поездку в нескольких формах (snake_case и camelCase,
lat/latitude и т.д.), поэтому ключи перебираются по списку.
"""

from __future__ import annotations

from typing import Any, Iterable, Optional

from src.core.tracking.polyline import decode
from src.shared.models.geo import GeoPoint
from src.shared.models.tracking import RideMetadata
from src.shared.models.tracking_dto import SosAlertDTO, parse_ride_status

LAT_KEYS = ("lat", "latitude", "pickupLat", "startLat")
LNG_KEYS = ("lng", "longitude", "pickupLng", "startLng", "lon")


def pick_value(source: Any, keys: Iterable[str]) -> Any:
    """Первое значение по списку ключей, отличное от None."""
    if not isinstance(source, dict):
        return None
    for key in keys:
        value = source.get(key)
        if value is not None:
            return value
    return None


def normalize_location(location: Any) -> Optional[GeoPoint]:
    """Точка из объекта локации backend или None."""
    if not isinstance(location, dict):
        return None
    return GeoPoint.from_values(pick_value(location, LAT_KEYS), pick_value(location, LNG_KEYS))


def planned_polyline(detail: dict[str, Any]) -> Optional[str]:
    """Encoded polyline планового маршрута: route.polyline, route_polyline, polyline."""
    value = pick_value(detail.get("route") or {}, ("polyline",)) or pick_value(
        detail, ("route_polyline", "polyline")
    )
    return value if isinstance(value, str) else None


def build_ride_metadata(
    ride_id: str,
    detail: Optional[dict[str, Any]],
    alert: Optional[SosAlertDTO] = None,
) -> RideMetadata:
    """
    Собирает RideMetadata.

    Args:
        ride_id: Идентификатор поездки
        detail: Ответ GET /rides/{id} (None, если не загрузился)
        alert: SOS-алерт, открытый в карточке
    """
    detail = detail or {}
    return RideMetadata(
        ride_id=ride_id,
        status=parse_ride_status(detail.get("status")),
        planned_path=decode(planned_polyline(detail)),
        pickup=normalize_location(pick_value(detail, ("start_location", "startLocation", "pickupLocation"))),
        dropoff=normalize_location(pick_value(detail, ("end_location", "endLocation", "destination"))),
        sos_origin=alert.origin if alert else None,
    )
