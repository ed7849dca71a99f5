# src/shared/models/geo.py
"""
Геометрические примитивы отслеживания: точка и маршрут.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Iterable, Optional


MAX_LAT = 90.0
MAX_LNG = 180.0


def to_coordinate(value: Any) -> Optional[float]:
    """
    Приводит значение из JSON к float.

    None, bool, нечисловые строки и целые вне диапазона float дают None.
    NaN/inf пропускаются как есть, их отсеивает GeoPoint.is_valid.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            return float(value)
        except OverflowError:
            return None
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


@dataclass(frozen=True)
class GeoPoint:
    """Геоточка. Может быть невалидной, если так пришло с backend."""
    lat: float
    lng: float

    @property
    def is_valid(self) -> bool:
        """Обе координаты конечны и лежат в допустимых диапазонах."""
        return (
            math.isfinite(self.lat)
            and math.isfinite(self.lng)
            and abs(self.lat) <= MAX_LAT
            and abs(self.lng) <= MAX_LNG
        )

    @property
    def is_null_island(self) -> bool:
        """Точка (0, 0): так backend кодирует неизвестную позицию."""
        return self.lat == 0 and self.lng == 0

    def to_lng_lat(self) -> list[float]:
        """Координаты в порядке карты: [lng, lat]."""
        return [self.lng, self.lat]

    @classmethod
    def from_values(cls, lat: Any, lng: Any) -> Optional["GeoPoint"]:
        """Создаёт точку из сырых значений или None, если их нет."""
        lat_value = to_coordinate(lat)
        lng_value = to_coordinate(lng)
        if lat_value is None or lng_value is None:
            return None
        return cls(lat=lat_value, lng=lng_value)


# Маршрут: упорядоченная неизменяемая последовательность точек (начало -> конец)
PathPoints = tuple[GeoPoint, ...]

EMPTY_PATH: PathPoints = ()


def valid_point(point: Optional[GeoPoint]) -> Optional[GeoPoint]:
    """Возвращает точку, если она валидна, иначе None."""
    if point is not None and point.is_valid:
        return point
    return None


def path_to_lng_lat(points: Iterable[GeoPoint]) -> list[list[float]]:
    """Преобразует маршрут в список пар [lng, lat] для GeoJSON."""
    return [point.to_lng_lat() for point in points]
