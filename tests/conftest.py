# tests/conftest.py
"""
Общие фикстуры и настройки для тестов.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Optional, Sequence

import pytest

# Устанавливаем переменные окружения перед импортом модулей
os.environ.setdefault("API_BASE_URL", "http://api.test/api/v1")
os.environ.setdefault("API_TOKEN", "")
os.environ.setdefault("MAP_API_KEY", "test_map_key")

from src.shared.models.geo import GeoPoint
from src.shared.models.tracking import RideMetadata
from src.common.constants import RideStatus


# =============================================================================
# ФИКСТУРЫ КОНФИГУРАЦИИ
# =============================================================================

@pytest.fixture(scope="session")
def project_root() -> Path:
    """Корневая директория проекта."""
    return Path(__file__).parent.parent


@pytest.fixture(scope="session")
def config_path(project_root: Path) -> Path:
    """Путь к файлу конфигурации."""
    return project_root / "config" / "config.json"


# =============================================================================
# ФЕЙКОВЫЙ ТРАНСПОРТ
# =============================================================================

class FakeTransport:
    """Транспорт в памяти: запоминает отправленные кадры, события вызываются вручную."""

    def __init__(self, url: str, subprotocols: Sequence[str], listener: Any) -> None:
        self.url = url
        self.subprotocols = list(subprotocols)
        self.listener = listener
        self.sent: list[str] = []
        self.connected = False
        self.closed = False
        self.fail_send = False

    @property
    def is_open(self) -> bool:
        return self.connected and not self.closed

    async def connect(self) -> None:
        self.connected = True

    async def send(self, data: str) -> None:
        if self.fail_send:
            raise ConnectionError("send failed")
        self.sent.append(data)

    async def close(self) -> None:
        self.closed = True

    # Имитация событий сервера

    async def server_open(self) -> None:
        await self.listener.on_transport_open()

    async def server_send(self, data: str) -> None:
        await self.listener.on_transport_message(data)

    async def server_close(self) -> None:
        self.closed = True
        await self.listener.on_transport_close()


class FakeTransportFactory:
    """Фабрика, запоминающая все созданные транспорты."""

    def __init__(self) -> None:
        self.created: list[FakeTransport] = []

    def __call__(self, url: str, subprotocols: Sequence[str], listener: Any) -> FakeTransport:
        transport = FakeTransport(url, subprotocols, listener)
        self.created.append(transport)
        return transport

    @property
    def last(self) -> FakeTransport:
        return self.created[-1]


@pytest.fixture
def transport_factory() -> FakeTransportFactory:
    return FakeTransportFactory()


# =============================================================================
# ДВИЖОК КАРТЫ
# =============================================================================

class RecordingMapEngine:
    """Движок карты, записывающий вызовы. Операции из fail_on бросают исключение."""

    def __init__(self, fail_on: Optional[set[str]] = None) -> None:
        self.calls: list[tuple] = []
        self.markers: dict[str, list[float]] = {}
        self.lines: dict[str, list[list[float]]] = {}
        self.fail_on = fail_on or set()
        self.destroyed = False

    def _record(self, name: str, *args: Any) -> None:
        self.calls.append((name, *args))
        if name in self.fail_on:
            raise RuntimeError(f"{name} failed")

    def add_marker(self, marker_id, lng_lat, color):
        self._record("add_marker", marker_id, lng_lat, color)
        self.markers[marker_id] = lng_lat
        return f"handle-{marker_id}"

    def move_marker(self, handle, lng_lat):
        self._record("move_marker", handle, lng_lat)
        self.markers[handle.removeprefix("handle-")] = lng_lat

    def remove_marker(self, handle):
        self._record("remove_marker", handle)
        self.markers.pop(handle.removeprefix("handle-"), None)

    def set_line(self, layer_id, coordinates, style):
        self._record("set_line", layer_id, coordinates, style)
        self.lines[layer_id] = coordinates

    def remove_line(self, layer_id):
        self._record("remove_line", layer_id)
        self.lines.pop(layer_id, None)

    def fit_bounds(self, bounds, padding, max_zoom):
        self._record("fit_bounds", bounds, padding, max_zoom)

    def destroy(self):
        self._record("destroy")
        self.destroyed = True

    def names(self) -> list[str]:
        return [call[0] for call in self.calls]


@pytest.fixture
def map_engine() -> RecordingMapEngine:
    return RecordingMapEngine()


# =============================================================================
# ДАННЫЕ
# =============================================================================

SAMPLE_POLYLINE = "_p~iF~ps|U_ulLnnqC_mqNvxq`@"


@pytest.fixture
def sample_polyline() -> str:
    return SAMPLE_POLYLINE


@pytest.fixture
def ride_detail() -> dict[str, Any]:
    """Ответ GET /rides/42."""
    return {
        "id": 42,
        "status": "ongoing",
        "route": {"polyline": SAMPLE_POLYLINE},
        "start_location": {"latitude": 38.5, "longitude": -120.2},
        "endLocation": {"lat": "43.252", "lng": "-126.453"},
    }


@pytest.fixture
def live_metadata() -> RideMetadata:
    """Метаданные идущей поездки 42 без маркеров."""
    return RideMetadata(ride_id="42", status=RideStatus.ONGOING)


@pytest.fixture
def static_metadata() -> RideMetadata:
    return RideMetadata(
        ride_id="7",
        status=RideStatus.COMPLETED,
        pickup=GeoPoint(10.0, 106.0),
    )


@pytest.fixture
def make_map_engine():
    """Фабрика движков с заданными сбоями."""
    return RecordingMapEngine
