# tests/core/test_polyline.py
"""
Тесты кодека encoded polyline.
"""

from __future__ import annotations

import pytest

from src.core.tracking.errors import DecodeError
from src.core.tracking.polyline import decode, encode
from src.shared.models.geo import GeoPoint


class TestDecode:
    """Тесты для decode."""

    def test_decodes_reference_string(self, sample_polyline: str) -> None:
        """Эталонная строка даёт три известные точки."""
        points = decode(sample_polyline)

        assert len(points) == 3
        assert points[0].lat == pytest.approx(38.5)
        assert points[0].lng == pytest.approx(-120.2)
        assert points[1].lat == pytest.approx(40.7)
        assert points[1].lng == pytest.approx(-120.95)
        assert points[2].lat == pytest.approx(43.252)
        assert points[2].lng == pytest.approx(-126.453)

    @pytest.mark.parametrize("encoded", ["", None])
    def test_empty_input(self, encoded) -> None:
        """Пустой ввод даёт пустой маршрут."""
        assert decode(encoded) == ()

    def test_returns_tuple(self, sample_polyline: str) -> None:
        """Маршрут неизменяем."""
        assert isinstance(decode(sample_polyline), tuple)

    def test_truncated_returns_partial(self, sample_polyline: str) -> None:
        """Обрыв посреди группы: возвращаются уже разобранные точки."""
        truncated = sample_polyline[:11]  # первая точка + начало второй

        points = decode(truncated)

        assert len(points) == 1
        assert points[0].lat == pytest.approx(38.5)

    def test_truncated_strict_raises(self, sample_polyline: str) -> None:
        """В строгом режиме обрыв поднимает DecodeError."""
        with pytest.raises(DecodeError) as exc_info:
            decode(sample_polyline[:11], strict=True)

        assert exc_info.value.position == 11

    def test_invalid_character(self, sample_polyline: str) -> None:
        """Символ ниже смещения 63 останавливает разбор."""
        points = decode(sample_polyline[:10] + " abc")

        assert len(points) == 1

    def test_invalid_character_strict(self) -> None:
        with pytest.raises(DecodeError):
            decode("!!!", strict=True)

    def test_latitude_only_is_incomplete(self) -> None:
        """Дельта широты без долготы не даёт точку."""
        assert decode("_p~iF") == ()


class TestEncode:
    """Тесты для encode."""

    def test_encodes_reference_points(self, sample_polyline: str) -> None:
        points = [
            GeoPoint(38.5, -120.2),
            GeoPoint(40.7, -120.95),
            GeoPoint(43.252, -126.453),
        ]

        assert encode(points) == sample_polyline

    def test_empty(self) -> None:
        assert encode([]) == ""

    def test_round_trip(self) -> None:
        """decode(encode(p)) == p для координат с 5 знаками."""
        points = [
            GeoPoint(10.84148, 106.80984),
            GeoPoint(-33.86785, 151.20732),
            GeoPoint(0.0, 0.0),
            GeoPoint(-89.99999, -179.99999),
        ]

        decoded = decode(encode(points))

        assert len(decoded) == len(points)
        for original, result in zip(points, decoded):
            assert result.lat == pytest.approx(original.lat, abs=1e-9)
            assert result.lng == pytest.approx(original.lng, abs=1e-9)

    def test_rounds_to_precision(self) -> None:
        """Лишние знаки отбрасываются округлением до 1e-5."""
        decoded = decode(encode([GeoPoint(1.000004, 2.000006)]))

        assert decoded[0].lat == pytest.approx(1.0)
        assert decoded[0].lng == pytest.approx(2.00001)
