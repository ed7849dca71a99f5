# src/core/tracking/errors.py
"""
Ошибки подсистемы отслеживания.

Ни одна из них не должна выходить за пределы подсистемы: каждая
перехватывается там, где возникла, и превращается в запись в логе.
"""

from __future__ import annotations

from typing import Optional


class TrackingError(Exception):
    """Базовая ошибка отслеживания."""


class DecodeError(TrackingError):
    """Повреждённая encoded polyline."""

    def __init__(self, message: str, position: int) -> None:
        super().__init__(f"{message} (позиция {position})")
        self.position = position


class TransientFetchError(TrackingError):
    """Снимок не получен: сеть, не-2xx ответ или не-JSON тело."""

    def __init__(self, ride_id: str, reason: str, status_code: Optional[int] = None) -> None:
        super().__init__(f"Снимок поездки {ride_id} не получен: {reason}")
        self.ride_id = ride_id
        self.status_code = status_code


class ProtocolFrameError(TrackingError):
    """Тело STOMP-кадра не разбирается."""


class TransportError(TrackingError):
    """Ошибка уровня сокета."""


class RenderError(TrackingError):
    """Вызов движка карты завершился ошибкой."""

    def __init__(self, operation: str, target: str, cause: BaseException) -> None:
        super().__init__(f"Ошибка карты при {operation} [{target}]: {cause}")
        self.operation = operation
        self.target = target
        self.cause = cause
