"""
Адаптер карты SOS-алерта.

Единственный компонент, вызывающий движок карты. Каждый вызов движка
изолирован: ошибка логируется как RenderError, цикл отрисовки продолжается.
"""

from __future__ import annotations

from typing import Any, Callable, Iterable, Optional, Sequence

from src.common.constants import MARKER_COLORS, LayerId, MarkerId
from src.common.logger import log_warning
from src.config import settings
from src.core.tracking.errors import RenderError
from src.shared.models.geo import GeoPoint, path_to_lng_lat
from src.shared.models.tracking import TrackingState
from src.web_admin.components.map_engine import Bounds, LineStyle, MapEngine

LOGGER_NAME = "map_adapter"

PLANNED_ROUTE_STYLE = LineStyle(color="#94A3B8", width=3, opacity=0.65, dasharray=(1.5, 1.5))
TRACKING_ROUTE_STYLE = LineStyle(color="#2563EB", width=4, opacity=0.95)


def _is_renderable(point: Optional[GeoPoint]) -> bool:
    """Точку можно рисовать: она есть, валидна и не (0, 0)."""
    return point is not None and point.is_valid and not point.is_null_island


def compute_bounds(points: Iterable[Optional[GeoPoint]]) -> Optional[Bounds]:
    """Границы по валидным точкам; None, если таких нет."""
    valid = [p for p in points if p is not None and p.is_valid]
    if not valid:
        return None
    return Bounds(
        west=min(p.lng for p in valid),
        south=min(p.lat for p in valid),
        east=max(p.lng for p in valid),
        north=max(p.lat for p in valid),
    )


class MapViewAdapter:
    """Переводит TrackingState в команды движка карты."""

    def __init__(
        self,
        engine: MapEngine,
        padding: Optional[int] = None,
        max_zoom: Optional[float] = None,
    ) -> None:
        self.engine = engine
        self.padding = padding if padding is not None else settings.map.FIT_PADDING
        self.max_zoom = max_zoom if max_zoom is not None else settings.map.FIT_MAX_ZOOM
        self._markers: dict[str, Any] = {}
        self._layers: set[str] = set()

    async def _call(self, operation: str, target: str, func: Callable[..., Any], *args: Any) -> tuple[bool, Any]:
        try:
            return True, func(*args)
        except Exception as e:
            error = RenderError(operation, target, e)
            await log_warning(str(error), logger_name=LOGGER_NAME)
            return False, None

    async def upsert_marker(self, marker_id: str, point: Optional[GeoPoint], color: str) -> None:
        """Создаёт маркер один раз, затем двигает; удаляет при отсутствии точки."""
        marker_id = str(getattr(marker_id, "value", marker_id))
        handle = self._markers.get(marker_id)

        if not _is_renderable(point):
            if marker_id in self._markers:
                ok, _ = await self._call("remove_marker", marker_id, self.engine.remove_marker, handle)
                if ok:
                    self._markers.pop(marker_id, None)
            return

        lng_lat = point.to_lng_lat()
        if marker_id in self._markers:
            await self._call("move_marker", marker_id, self.engine.move_marker, handle, lng_lat)
            return

        ok, handle = await self._call("add_marker", marker_id, self.engine.add_marker, marker_id, lng_lat, color)
        if ok:
            self._markers[marker_id] = handle

    async def render_line(self, layer_id: str, points: Sequence[GeoPoint], style: LineStyle) -> None:
        """Заменяет геометрию слоя; пустой маршрут убирает слой."""
        layer_id = str(getattr(layer_id, "value", layer_id))
        coordinates = path_to_lng_lat(p for p in points if p.is_valid)

        if not coordinates:
            if layer_id in self._layers:
                ok, _ = await self._call("remove_line", layer_id, self.engine.remove_line, layer_id)
                if ok:
                    self._layers.discard(layer_id)
            return

        ok, _ = await self._call("set_line", layer_id, self.engine.set_line, layer_id, coordinates, style)
        if ok:
            self._layers.add(layer_id)

    async def fit_to_content(
        self,
        active_path: Sequence[GeoPoint],
        marker_points: Iterable[Optional[GeoPoint]],
    ) -> None:
        """Подгоняет вид под маршрут и маркеры. Без валидных точек ничего не делает."""
        bounds = compute_bounds([*active_path, *marker_points])
        if bounds is None:
            return
        await self._call("fit_bounds", "viewport", self.engine.fit_bounds, bounds, self.padding, self.max_zoom)

    async def render(self, state: TrackingState) -> None:
        """Полный цикл отрисовки состояния."""
        markers = state.markers
        for marker_id, point in (
            (MarkerId.PICKUP, markers.pickup),
            (MarkerId.DROPOFF, markers.dropoff),
            (MarkerId.SOS_ORIGIN, markers.sos_origin),
            (MarkerId.DRIVER, markers.driver),
            (MarkerId.RIDER, markers.rider),
        ):
            await self.upsert_marker(marker_id, point, MARKER_COLORS[marker_id])

        await self.render_line(LayerId.PLANNED_ROUTE, state.planned_path, PLANNED_ROUTE_STYLE)
        await self.render_line(LayerId.TRACKING_ROUTE, state.live_path, TRACKING_ROUTE_STYLE)

        # (0, 0) не рисуется, значит и в границы не входит
        visible = [p for p in markers.points() if _is_renderable(p)]
        await self.fit_to_content(state.active_path, visible)

    async def clear(self) -> None:
        """Удаляет все свои маркеры и слои, карта остаётся."""
        for marker_id, handle in list(self._markers.items()):
            await self._call("remove_marker", marker_id, self.engine.remove_marker, handle)
        self._markers.clear()
        for layer_id in list(self._layers):
            await self._call("remove_line", layer_id, self.engine.remove_line, layer_id)
        self._layers.clear()

    async def destroy(self) -> None:
        """Удаляет все маркеры и слои, затем саму карту."""
        await self.clear()
        await self._call("destroy", "map", self.engine.destroy)
