from __future__ import annotations

import json
import uuid
from dataclasses import dataclass
from typing import Any, Optional, Protocol

from nicegui import ui

from src.common.logger import get_logger
from src.config import settings

MAPLIBRE_VERSION = "4.7.1"


@dataclass(frozen=True)
class LineStyle:
    """Стиль линейного слоя."""
    color: str
    width: float = 4
    opacity: float = 0.9
    dasharray: Optional[tuple[float, ...]] = None

    def to_paint(self) -> dict[str, Any]:
        paint: dict[str, Any] = {
            "line-color": self.color,
            "line-width": self.width,
            "line-opacity": self.opacity,
        }
        if self.dasharray:
            paint["line-dasharray"] = list(self.dasharray)
        return paint


@dataclass(frozen=True)
class Bounds:
    """Прямоугольник карты в градусах."""
    west: float
    south: float
    east: float
    north: float

    def to_lng_lat(self) -> list[list[float]]:
        return [[self.west, self.south], [self.east, self.north]]


class MapEngine(Protocol):
    """
    Внешний движок карты.

    Любой вызов может бросить исключение (например, карта ещё не создана);
    MapViewAdapter перехватывает их по одному.
    """

    def add_marker(self, marker_id: str, lng_lat: list[float], color: str) -> Any: ...

    def move_marker(self, handle: Any, lng_lat: list[float]) -> None: ...

    def remove_marker(self, handle: Any) -> None: ...

    def set_line(self, layer_id: str, coordinates: list[list[float]], style: LineStyle) -> None: ...

    def remove_line(self, layer_id: str) -> None: ...

    def fit_bounds(self, bounds: Bounds, padding: int, max_zoom: float) -> None: ...

    def destroy(self) -> None: ...


class MapLibreEngine:
    """
    Карта MapLibre GL в браузере, управляемая через ui.run_javascript.
    Команды, пришедшие до загрузки стиля, ставятся в очередь.
    """

    def __init__(
        self,
        center: Optional[tuple[float, float]] = None,
        zoom: Optional[float] = None,
        style_url: Optional[str] = None,
    ) -> None:
        self.map_id = f"map_{uuid.uuid4().hex}"
        self.center = center or (settings.map.DEFAULT_CENTER_LAT, settings.map.DEFAULT_CENTER_LNG)
        self.zoom = zoom if zoom is not None else settings.map.DEFAULT_ZOOM
        self.style_url = style_url or settings.map.style_url
        self.map_element: Optional[ui.element] = None

    def render(self) -> None:
        """Рендерит контейнер карты и инициализирует JS."""
        ui.add_head_html(
            f'<link href="https://unpkg.com/maplibre-gl@{MAPLIBRE_VERSION}/dist/maplibre-gl.css" rel="stylesheet" />'
            f'<script src="https://unpkg.com/maplibre-gl@{MAPLIBRE_VERSION}/dist/maplibre-gl.js"></script>'
        )
        self.map_element = ui.element("div").props(f'id="{self.map_id}"').classes("w-full h-full")
        self._run(f"""
            window.markers_{self.map_id} = {{}};
            window.onMapReady_{self.map_id} = [];
            window.whenMapReady_{self.map_id} = (callback) => {{
                const map = window.map_{self.map_id};
                if (map && map.isStyleLoaded()) {{
                    callback(map);
                }} else {{
                    window.onMapReady_{self.map_id}.push(callback);
                }}
            }};
            const map = new maplibregl.Map({{
                container: "{self.map_id}",
                style: {json.dumps(self.style_url)},
                center: [{self.center[1]}, {self.center[0]}],
                zoom: {self.zoom},
            }});
            map.addControl(new maplibregl.NavigationControl(), "top-right");
            map.on("load", () => {{
                window.onMapReady_{self.map_id}.forEach(cb => cb(map));
                window.onMapReady_{self.map_id} = [];
            }});
            window.map_{self.map_id} = map;
        """)

    def _run(self, js: str) -> None:
        # Вызовы из фоновых задач (опрос, WebSocket) идут вне слота страницы
        if self.map_element is not None:
            with self.map_element:
                ui.run_javascript(js)
        else:
            ui.run_javascript(js)

    def _when_ready(self, body: str) -> None:
        self._run(f"""
        if (window.whenMapReady_{self.map_id}) {{
            window.whenMapReady_{self.map_id}(map => {{
                {body}
            }});
        }}
        """)

    def add_marker(self, marker_id: str, lng_lat: list[float], color: str) -> str:
        self._when_ready(f"""
                const old = window.markers_{self.map_id}[{json.dumps(marker_id)}];
                if (old) old.remove();
                window.markers_{self.map_id}[{json.dumps(marker_id)}] = new maplibregl.Marker({{ color: {json.dumps(color)} }})
                    .setLngLat({json.dumps(lng_lat)})
                    .addTo(map);
        """)
        return marker_id

    def move_marker(self, handle: str, lng_lat: list[float]) -> None:
        self._when_ready(f"""
                const marker = window.markers_{self.map_id}[{json.dumps(handle)}];
                if (marker) marker.setLngLat({json.dumps(lng_lat)});
        """)

    def remove_marker(self, handle: str) -> None:
        self._when_ready(f"""
                const marker = window.markers_{self.map_id}[{json.dumps(handle)}];
                if (marker) {{
                    marker.remove();
                    delete window.markers_{self.map_id}[{json.dumps(handle)}];
                }}
        """)

    def set_line(self, layer_id: str, coordinates: list[list[float]], style: LineStyle) -> None:
        data = {
            "type": "Feature",
            "properties": {},
            "geometry": {"type": "LineString", "coordinates": coordinates},
        }
        layer_js = json.dumps(layer_id)
        self._when_ready(f"""
                if (map.getLayer({layer_js})) map.removeLayer({layer_js});
                if (map.getSource({layer_js})) map.removeSource({layer_js});
                map.addSource({layer_js}, {{ type: "geojson", data: {json.dumps(data)} }});
                map.addLayer({{
                    id: {layer_js},
                    type: "line",
                    source: {layer_js},
                    paint: {json.dumps(style.to_paint())},
                }});
        """)

    def remove_line(self, layer_id: str) -> None:
        layer_js = json.dumps(layer_id)
        self._when_ready(f"""
                if (map.getLayer({layer_js})) map.removeLayer({layer_js});
                if (map.getSource({layer_js})) map.removeSource({layer_js});
        """)

    def fit_bounds(self, bounds: Bounds, padding: int, max_zoom: float) -> None:
        self._when_ready(f"""
                map.fitBounds({json.dumps(bounds.to_lng_lat())}, {{
                    padding: {padding},
                    maxZoom: {max_zoom},
                    duration: 0,
                }});
        """)

    def destroy(self) -> None:
        self._run(f"""
        if (window.map_{self.map_id}) {{
            window.map_{self.map_id}.remove();
            window.map_{self.map_id} = null;
        }}
        window.markers_{self.map_id} = {{}};
        window.onMapReady_{self.map_id} = [];
        """)
        if self.map_element is not None and not self.map_element.is_deleted:
            self.map_element.delete()
            self.map_element = None


class LoggingMapEngine:
    """Движок без отрисовки: пишет команды в лог (headless-режим main.py)."""

    def __init__(self, logger_name: str = "map_engine") -> None:
        self._logger = get_logger(logger_name)

    def add_marker(self, marker_id: str, lng_lat: list[float], color: str) -> str:
        self._logger.info(f"marker+ {marker_id} {lng_lat}")
        return marker_id

    def move_marker(self, handle: str, lng_lat: list[float]) -> None:
        self._logger.info(f"marker~ {handle} {lng_lat}")

    def remove_marker(self, handle: str) -> None:
        self._logger.info(f"marker- {handle}")

    def set_line(self, layer_id: str, coordinates: list[list[float]], style: LineStyle) -> None:
        self._logger.info(f"line {layer_id}: {len(coordinates)} точек")

    def remove_line(self, layer_id: str) -> None:
        self._logger.info(f"line- {layer_id}")

    def fit_bounds(self, bounds: Bounds, padding: int, max_zoom: float) -> None:
        self._logger.info(f"fit {bounds.to_lng_lat()} padding={padding} maxZoom={max_zoom}")

    def destroy(self) -> None:
        self._logger.info("map destroyed")
