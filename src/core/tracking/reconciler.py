# src/core/tracking/reconciler.py
"""
Согласование состояния карты SOS-алерта.

Чистые функции без сети и отрисовки: (состояние, снимок) -> состояние.
Push и poll снимки для них неразличимы.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Optional

from src.common.logger import get_logger
from src.shared.models.geo import GeoPoint, valid_point
from src.shared.models.tracking import RideMetadata, TrackingMarkers, TrackingSnapshot, TrackingState

logger = get_logger("tracking_reconciler")


def create_state(metadata: RideMetadata) -> TrackingState:
    """Начальное состояние: плановый маршрут и статичные маркеры из метаданных."""
    return TrackingState(
        ride_id=metadata.ride_id,
        planned_path=metadata.planned_path,
        markers=TrackingMarkers(
            pickup=valid_point(metadata.pickup),
            dropoff=valid_point(metadata.dropoff),
            sos_origin=valid_point(metadata.sos_origin),
        ),
    )


def _pick_marker(current: Optional[GeoPoint], incoming: Optional[GeoPoint]) -> Optional[GeoPoint]:
    # Невалидная точка в снимке не затирает последнюю валидную
    if incoming is not None and incoming.is_valid:
        return incoming
    if incoming is not None:
        logger.debug(f"Отброшена невалидная позиция {incoming}")
    return current


def merge_snapshot(state: TrackingState, snapshot: TrackingSnapshot) -> TrackingState:
    """
    Вливает снимок в состояние.

    - planned_path не меняется никогда;
    - live_path заменяется только непустым маршрутом;
    - driver/rider заменяются только валидными точками;
    - pickup/dropoff/sos_origin не меняются.
    """
    live_path = snapshot.path if snapshot.path else state.live_path
    markers = replace(
        state.markers,
        driver=_pick_marker(state.markers.driver, snapshot.driver_position),
        rider=_pick_marker(state.markers.rider, snapshot.rider_position),
    )
    return replace(
        state,
        live_path=live_path,
        markers=markers,
        estimated_arrival=snapshot.estimated_arrival or state.estimated_arrival,
        observed_at=snapshot.observed_at or state.observed_at,
    )


class TrackingStateReconciler:
    """
    Владелец состояния одной открытой карточки.

    Каждая карточка создаёт свой экземпляр; общий экземпляр
    между сессиями не допускается.
    """

    def __init__(self, metadata: RideMetadata) -> None:
        self._state = create_state(metadata)

    @property
    def state(self) -> TrackingState:
        return self._state

    def apply(self, snapshot: TrackingSnapshot) -> TrackingState:
        """Применяет снимок и возвращает новое состояние."""
        self._state = merge_snapshot(self._state, snapshot)
        return self._state
