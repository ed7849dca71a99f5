# src/core/tracking/polyline.py
"""
Кодек encoded polyline (точность 1e-5 градуса).

Каждая дельта координаты хранится группами по 5 бит, смещёнными на 63;
бит 0x20 означает продолжение группы, младший бит накопленного значения задаёт знак.
Сначала идёт дельта широты, затем долготы.
"""

from __future__ import annotations

import math
from typing import Iterable, Optional

from src.common.logger import get_logger
from src.core.tracking.errors import DecodeError
from src.shared.models.geo import EMPTY_PATH, GeoPoint, PathPoints

logger = get_logger("polyline")

PRECISION = 1e5
_OFFSET = 63
_CHUNK_MASK = 0x1F
_CONTINUATION = 0x20


def _read_value(encoded: str, index: int) -> tuple[int, int]:
    """
    Читает одно знаковое значение начиная с index.

    Returns:
        (значение, индекс следующего символа)

    Raises:
        DecodeError: строка оборвалась посреди группы или символ вне алфавита
    """
    result = 0
    shift = 0
    length = len(encoded)
    while True:
        if index >= length:
            raise DecodeError("Обрыв группы", index)
        chunk = ord(encoded[index]) - _OFFSET
        if chunk < 0:
            raise DecodeError(f"Недопустимый символ {encoded[index]!r}", index)
        index += 1
        result |= (chunk & _CHUNK_MASK) << shift
        shift += 5
        if chunk < _CONTINUATION:
            break
    value = ~(result >> 1) if result & 1 else result >> 1
    return value, index


def decode(encoded: Optional[str], *, strict: bool = False) -> PathPoints:
    """
    Декодирует encoded polyline в маршрут.

    Пустая строка или None дают пустой маршрут. На повреждённой строке
    возвращаются точки, разобранные до места повреждения (или DecodeError
    при strict=True).
    """
    if not encoded:
        return EMPTY_PATH

    points: list[GeoPoint] = []
    index = 0
    lat = 0
    lng = 0
    try:
        while index < len(encoded):
            dlat, index = _read_value(encoded, index)
            dlng, index = _read_value(encoded, index)
            lat += dlat
            lng += dlng
            points.append(GeoPoint(lat=lat / PRECISION, lng=lng / PRECISION))
    except DecodeError as e:
        if strict:
            raise
        logger.warning(f"Повреждённая polyline, использовано {len(points)} точек: {e}")

    return tuple(points)


def _round(value: float) -> int:
    # Округление половины вверх, как Math.round
    return int(math.floor(value * PRECISION + 0.5))


def _write_value(value: int, out: list[str]) -> None:
    value = ~(value << 1) if value < 0 else value << 1
    while value >= _CONTINUATION:
        out.append(chr((_CONTINUATION | (value & _CHUNK_MASK)) + _OFFSET))
        value >>= 5
    out.append(chr(value + _OFFSET))


def encode(points: Iterable[GeoPoint]) -> str:
    """Кодирует маршрут в encoded polyline."""
    out: list[str] = []
    prev_lat = 0
    prev_lng = 0
    for point in points:
        lat = _round(point.lat)
        lng = _round(point.lng)
        _write_value(lat - prev_lat, out)
        _write_value(lng - prev_lng, out)
        prev_lat, prev_lng = lat, lng
    return "".join(out)
