# src/shared/models/__init__.py
"""
Общие модели отслеживания.

DTO полезной нагрузки (tracking_dto) импортируются напрямую,
так как зависят от кодека polyline.
"""

from src.shared.models.geo import (
    EMPTY_PATH,
    GeoPoint,
    PathPoints,
    path_to_lng_lat,
    valid_point,
)
from src.shared.models.tracking import (
    RideMetadata,
    TrackingMarkers,
    TrackingSnapshot,
    TrackingState,
)

__all__ = [
    # Geo
    "EMPTY_PATH",
    "GeoPoint",
    "PathPoints",
    "path_to_lng_lat",
    "valid_point",
    # Tracking
    "RideMetadata",
    "TrackingMarkers",
    "TrackingSnapshot",
    "TrackingState",
]
