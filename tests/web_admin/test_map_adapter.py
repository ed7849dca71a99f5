# tests/web_admin/test_map_adapter.py
"""
Тесты адаптера карты.
"""

from __future__ import annotations

import math

import pytest

from src.common.constants import RideStatus
from src.core.tracking.reconciler import create_state, merge_snapshot
from src.shared.models.geo import GeoPoint
from src.shared.models.tracking import RideMetadata, TrackingSnapshot
from src.web_admin.components.map_adapter import (
    PLANNED_ROUTE_STYLE,
    TRACKING_ROUTE_STYLE,
    MapViewAdapter,
    compute_bounds,
)
from src.web_admin.components.map_engine import Bounds


@pytest.fixture
def adapter(map_engine) -> MapViewAdapter:
    return MapViewAdapter(map_engine, padding=40, max_zoom=16)


class TestComputeBounds:
    """Тесты расчёта границ."""

    def test_only_valid_points(self) -> None:
        """Из [(200, 10), (10, 20), (NaN, 5)] остаётся только (10, 20)."""
        bounds = compute_bounds([GeoPoint(200, 10), GeoPoint(10, 20), GeoPoint(math.nan, 5)])

        assert bounds == Bounds(west=20, south=10, east=20, north=10)

    def test_none_and_empty(self) -> None:
        assert compute_bounds([]) is None
        assert compute_bounds([None, GeoPoint(math.inf, 0)]) is None

    def test_extent(self) -> None:
        bounds = compute_bounds([GeoPoint(1, 5), GeoPoint(-2, 7), GeoPoint(3, -1)])

        assert bounds == Bounds(west=-1, south=-2, east=7, north=3)


class TestUpsertMarker:
    """Тесты для upsert_marker."""

    @pytest.mark.asyncio
    async def test_create_then_move(self, adapter, map_engine) -> None:
        await adapter.upsert_marker("driver", GeoPoint(1.0, 2.0), "#2563EB")
        await adapter.upsert_marker("driver", GeoPoint(1.5, 2.5), "#2563EB")

        assert map_engine.names() == ["add_marker", "move_marker"]
        assert map_engine.calls[0] == ("add_marker", "driver", [2.0, 1.0], "#2563EB")
        assert map_engine.markers["driver"] == [2.5, 1.5]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "point",
        [None, GeoPoint(0.0, 0.0), GeoPoint(math.nan, 1.0), GeoPoint(1.0, 200.0)],
    )
    async def test_unrenderable_removes(self, adapter, map_engine, point) -> None:
        await adapter.upsert_marker("rider", GeoPoint(1.0, 2.0), "#F59E0B")

        await adapter.upsert_marker("rider", point, "#F59E0B")

        assert map_engine.names() == ["add_marker", "remove_marker"]
        assert "rider" not in map_engine.markers

    @pytest.mark.asyncio
    async def test_invalid_never_reaches_engine(self, adapter, map_engine) -> None:
        await adapter.upsert_marker("driver", GeoPoint(math.nan, 1.0), "#2563EB")

        assert map_engine.calls == []

    @pytest.mark.asyncio
    async def test_failed_add_retried(self, make_map_engine) -> None:
        """Маркер, который не удалось создать, создаётся заново в следующем цикле."""
        engine = make_map_engine(fail_on={"add_marker"})
        adapter = MapViewAdapter(engine)

        await adapter.upsert_marker("driver", GeoPoint(1.0, 2.0), "#2563EB")
        engine.fail_on.clear()
        await adapter.upsert_marker("driver", GeoPoint(1.0, 2.0), "#2563EB")

        assert engine.names() == ["add_marker", "add_marker"]

    @pytest.mark.asyncio
    async def test_failed_remove_retried(self, make_map_engine) -> None:
        """Маркер, который не удалось удалить, остаётся за адаптером и удаляется позже."""
        engine = make_map_engine()
        adapter = MapViewAdapter(engine)

        await adapter.upsert_marker("driver", GeoPoint(10.0, 106.0), "#2563EB")
        engine.fail_on.add("remove_marker")
        await adapter.upsert_marker("driver", None, "#2563EB")
        assert engine.markers == {"driver": [106.0, 10.0]}

        engine.fail_on.clear()
        await adapter.upsert_marker("driver", None, "#2563EB")
        await adapter.destroy()

        assert engine.markers == {}
        assert engine.names() == ["add_marker", "remove_marker", "remove_marker", "destroy"]

    @pytest.mark.asyncio
    async def test_failed_remove_cleared_on_destroy(self, make_map_engine) -> None:
        engine = make_map_engine()
        adapter = MapViewAdapter(engine)

        await adapter.upsert_marker("driver", GeoPoint(10.0, 106.0), "#2563EB")
        engine.fail_on.add("remove_marker")
        await adapter.upsert_marker("driver", None, "#2563EB")
        engine.fail_on.clear()
        await adapter.destroy()

        assert engine.markers == {}
        assert engine.destroyed


class TestRenderLine:
    """Тесты для render_line."""

    @pytest.mark.asyncio
    async def test_set_and_remove(self, adapter, map_engine) -> None:
        await adapter.render_line("tracking-route", (GeoPoint(1, 2), GeoPoint(3, 4)), TRACKING_ROUTE_STYLE)
        await adapter.render_line("tracking-route", (), TRACKING_ROUTE_STYLE)

        assert map_engine.calls[0] == ("set_line", "tracking-route", [[2, 1], [4, 3]], TRACKING_ROUTE_STYLE)
        assert map_engine.calls[1] == ("remove_line", "tracking-route")

    @pytest.mark.asyncio
    async def test_failed_remove_keeps_layer(self, make_map_engine) -> None:
        """Слой, который не удалось убрать, убирается при следующем пустом маршруте."""
        engine = make_map_engine()
        adapter = MapViewAdapter(engine)

        await adapter.render_line("tracking-route", (GeoPoint(1, 2),), TRACKING_ROUTE_STYLE)
        engine.fail_on.add("remove_line")
        await adapter.render_line("tracking-route", (), TRACKING_ROUTE_STYLE)
        assert "tracking-route" in engine.lines

        engine.fail_on.clear()
        await adapter.render_line("tracking-route", (), TRACKING_ROUTE_STYLE)

        assert engine.lines == {}
        assert engine.names() == ["set_line", "remove_line", "remove_line"]

    @pytest.mark.asyncio
    async def test_empty_without_layer(self, adapter, map_engine) -> None:
        await adapter.render_line("planned-route", (), PLANNED_ROUTE_STYLE)

        assert map_engine.calls == []


class TestFitToContent:
    """Тесты для fit_to_content."""

    @pytest.mark.asyncio
    async def test_uses_valid_points(self, adapter, map_engine) -> None:
        await adapter.fit_to_content((GeoPoint(200, 10), GeoPoint(10, 20)), [GeoPoint(math.nan, 5), None])

        assert map_engine.calls == [("fit_bounds", Bounds(20, 10, 20, 10), 40, 16)]

    @pytest.mark.asyncio
    async def test_nothing_valid_is_noop(self, adapter, map_engine) -> None:
        await adapter.fit_to_content((), [None, GeoPoint(math.nan, 0)])

        assert map_engine.calls == []


class TestRender:
    """Тесты полного цикла отрисовки."""

    @pytest.mark.asyncio
    async def test_full_state(self, adapter, map_engine) -> None:
        metadata = RideMetadata(
            ride_id="42",
            status=RideStatus.ONGOING,
            planned_path=(GeoPoint(1, 1), GeoPoint(2, 2)),
            pickup=GeoPoint(1, 1),
            dropoff=GeoPoint(2, 2),
        )
        state = merge_snapshot(
            create_state(metadata),
            TrackingSnapshot(driver_position=GeoPoint(1.5, 1.5), path=(GeoPoint(1, 1), GeoPoint(3, 3))),
        )

        await adapter.render(state)

        assert set(map_engine.markers) == {"pickup", "dropoff", "driver"}
        assert map_engine.calls[0] == ("add_marker", "pickup", [1, 1], "#10B981")
        assert map_engine.lines["planned-route"] == [[1, 1], [2, 2]]
        assert map_engine.lines["tracking-route"] == [[1, 1], [3, 3]]
        assert map_engine.calls[-1] == ("fit_bounds", Bounds(1, 1, 3, 3), 40, 16)

    @pytest.mark.asyncio
    async def test_null_island_excluded_from_bounds(self, adapter, map_engine) -> None:
        state = merge_snapshot(
            create_state(RideMetadata(ride_id="42")),
            TrackingSnapshot(driver_position=GeoPoint(0, 0), rider_position=GeoPoint(10, 20)),
        )

        await adapter.render(state)

        assert set(map_engine.markers) == {"rider"}
        assert map_engine.calls[-1] == ("fit_bounds", Bounds(20, 10, 20, 10), 40, 16)

    @pytest.mark.asyncio
    async def test_failure_isolated(self, make_map_engine) -> None:
        """Сбой одной операции не прерывает цикл."""
        engine = make_map_engine(fail_on={"set_line"})
        adapter = MapViewAdapter(engine)
        state = merge_snapshot(
            create_state(RideMetadata(ride_id="42", planned_path=(GeoPoint(1, 1), GeoPoint(2, 2)))),
            TrackingSnapshot(driver_position=GeoPoint(1.5, 1.5)),
        )

        await adapter.render(state)

        assert "add_marker" in engine.names()
        assert "set_line" in engine.names()
        assert engine.names()[-1] == "fit_bounds"


class TestDestroy:
    """Тесты освобождения ресурсов."""

    @pytest.mark.asyncio
    async def test_removes_everything(self, adapter, map_engine) -> None:
        await adapter.upsert_marker("driver", GeoPoint(1, 2), "#2563EB")
        await adapter.render_line("tracking-route", (GeoPoint(1, 2), GeoPoint(3, 4)), TRACKING_ROUTE_STYLE)

        await adapter.destroy()

        assert map_engine.names()[-3:] == ["remove_marker", "remove_line", "destroy"]
        assert map_engine.markers == {}
        assert map_engine.lines == {}
        assert map_engine.destroyed

    @pytest.mark.asyncio
    async def test_clear_keeps_map(self, adapter, map_engine) -> None:
        await adapter.upsert_marker("driver", GeoPoint(1, 2), "#2563EB")

        await adapter.clear()

        assert map_engine.markers == {}
        assert not map_engine.destroyed
