# src/services/tracking_ws/client.py
"""
STOMP-клиент live-обновлений поездки.

Одна сессия (ConnectionSession) на открытую карточку SOS-алерта.
Состояния: CLOSED -> CONNECTING -> CONNECTED -> SUBSCRIBED -> CLOSED.
Автоматического переподключения нет: пропуски закрывает поллинг снимков.
"""

from __future__ import annotations

import inspect
import json
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Union

from pydantic import ValidationError

from src.common.constants import ConnectionState, TypeMsg
from src.common.logger import log_debug, log_error, log_info, log_warning
from src.config import settings
from src.core.tracking.errors import ProtocolFrameError, TransportError
from src.services.tracking_ws.frames import (
    CMD_CONNECTED,
    CMD_ERROR,
    CMD_MESSAGE,
    connect_frame,
    destination_for,
    disconnect_frame,
    parse_frame,
    subscribe_frame,
    subscription_id_for,
    unsubscribe_frame,
)
from src.services.tracking_ws.transport import Transport, TransportFactory, websocket_transport_factory
from src.shared.models.tracking import TrackingSnapshot
from src.shared.models.tracking_dto import TrackingPayloadDTO

LOGGER_NAME = "tracking_ws"

UpdateCallback = Callable[[TrackingSnapshot], Union[Awaitable[None], None]]


@dataclass
class ConnectionSession:
    """Сессия подписки на одну поездку."""
    ride_id: str
    subscription_id: str
    destination: str
    token: Optional[str] = None
    transport: Optional[Transport] = None
    state: ConnectionState = ConnectionState.CONNECTING


class _SessionListener:
    """Привязывает события транспорта к конкретной сессии."""

    def __init__(self, client: "TrackingProtocolClient", session: ConnectionSession) -> None:
        self._client = client
        self._session = session

    async def on_transport_open(self) -> None:
        await self._client._handle_open(self._session)

    async def on_transport_message(self, data: str) -> None:
        await self._client._handle_message(self._session, data)

    async def on_transport_error(self, error: TransportError) -> None:
        await self._client._handle_error(self._session, error)

    async def on_transport_close(self) -> None:
        await self._client._handle_close(self._session)


def decode_body(body: str) -> TrackingSnapshot:
    """
    Тело MESSAGE -> TrackingSnapshot.

    Raises:
        ProtocolFrameError: тело не JSON-объект или не проходит валидацию
    """
    try:
        parsed = json.loads(body)
    except (ValueError, RecursionError) as e:
        # JSONDecodeError, слишком длинные числа, слишком глубокая вложенность
        raise ProtocolFrameError(f"Тело кадра не JSON: {e.__class__.__name__}") from e
    if not isinstance(parsed, dict):
        raise ProtocolFrameError(f"Тело кадра не объект: {type(parsed).__name__}")
    try:
        return TrackingPayloadDTO.model_validate(parsed).to_snapshot()
    except ValidationError as e:
        raise ProtocolFrameError(f"Тело кадра не прошло валидацию: {e}") from e
    except (ValueError, ArithmeticError, RecursionError) as e:
        raise ProtocolFrameError(f"Тело кадра не приводится к снимку: {e.__class__.__name__}") from e


class TrackingProtocolClient:
    """
    Клиент подписки на /topic/ride.tracking.{rideId}.

    Ошибки не выходят наружу: битые кадры отбрасываются,
    сбои транспорта логируются и закрывают сессию.
    """

    def __init__(
        self,
        transport_factory: Optional[TransportFactory] = None,
        *,
        ws_url_builder: Optional[Callable[[Optional[str]], Optional[str]]] = None,
        subprotocol: Optional[str] = None,
        accept_version: Optional[str] = None,
        host: Optional[str] = None,
    ) -> None:
        self._transport_factory = transport_factory or websocket_transport_factory
        self._ws_url_builder = ws_url_builder or settings.api.ws_url
        self._subprotocol = subprotocol or settings.api.WS_SUBPROTOCOL
        self._accept_version = accept_version or settings.tracking.STOMP_ACCEPT_VERSION
        self._host = host or settings.tracking.STOMP_HOST
        self._session: Optional[ConnectionSession] = None
        self._callback: Optional[UpdateCallback] = None

    @property
    def session(self) -> Optional[ConnectionSession]:
        return self._session

    @property
    def state(self) -> ConnectionState:
        if self._session is None:
            return ConnectionState.CLOSED
        return self._session.state

    def on_update(self, callback: Optional[UpdateCallback]) -> None:
        """Регистрирует единственного получателя снимков (заменяет прежнего)."""
        self._callback = callback

    async def open(self, ride_id: Any, auth_token: Optional[str] = None) -> None:
        """
        Открывает сессию для поездки.

        Повторный вызов для той же поездки ничего не делает;
        для другой поездки старая сессия сначала закрывается.
        """
        ride_id = str(ride_id)
        current = self._session
        if current is not None and current.state != ConnectionState.CLOSED:
            if current.ride_id == ride_id:
                return
            await self.close()

        url = self._ws_url_builder(auth_token)
        if not url:
            await log_warning("Не удалось определить WebSocket endpoint", logger_name=LOGGER_NAME)
            return

        session = ConnectionSession(
            ride_id=ride_id,
            subscription_id=subscription_id_for(ride_id),
            destination=destination_for(ride_id),
            token=auth_token,
        )
        self._session = session
        await log_info(
            f"Подключение к отслеживанию поездки {ride_id}",
            type_msg=TypeMsg.DEBUG,
            logger_name=LOGGER_NAME,
        )
        try:
            session.transport = self._transport_factory(url, [self._subprotocol], _SessionListener(self, session))
            await session.transport.connect()
        except Exception as e:
            await log_error(f"Не удалось подключить отслеживание поездки {ride_id}: {e}", logger_name=LOGGER_NAME)
            session.state = ConnectionState.CLOSED

    async def close(self, ride_id: Any = None) -> None:
        """
        Закрывает сессию: UNSUBSCRIBE и DISCONNECT, если соединение открыто,
        затем закрытие транспорта в любом случае.
        """
        session = self._session
        if session is None:
            return
        if ride_id is not None and str(ride_id) != session.ride_id:
            return
        self._session = None

        transport = session.transport
        was_open = session.state != ConnectionState.CLOSED
        session.state = ConnectionState.CLOSED
        if transport is None:
            return

        if was_open and transport.is_open:
            try:
                await transport.send(unsubscribe_frame(session.subscription_id))
                await transport.send(disconnect_frame())
            except Exception as e:
                await log_debug(f"Кадры закрытия не отправлены: {e}", logger_name=LOGGER_NAME)

        try:
            await transport.close()
        except Exception as e:
            await log_warning(f"Ошибка при закрытии транспорта: {e}", logger_name=LOGGER_NAME)
        session.transport = None
        await log_info(
            f"Отслеживание поездки {session.ride_id} закрыто",
            type_msg=TypeMsg.DEBUG,
            logger_name=LOGGER_NAME,
        )

    # -------------------------------------------------------------------------
    # События транспорта
    # -------------------------------------------------------------------------

    def _is_active(self, session: ConnectionSession) -> bool:
        return session is self._session and session.state != ConnectionState.CLOSED

    async def _send(self, session: ConnectionSession, frame: str) -> bool:
        if session.transport is None:
            return False
        try:
            await session.transport.send(frame)
            return True
        except Exception as e:
            await log_error(f"Ошибка отправки кадра: {e}", logger_name=LOGGER_NAME)
            return False

    async def _handle_open(self, session: ConnectionSession) -> None:
        if not self._is_active(session):
            return
        frame = connect_frame(session.token, self._accept_version, self._host)
        if await self._send(session, frame):
            session.state = ConnectionState.CONNECTED

    async def _handle_message(self, session: ConnectionSession, data: str) -> None:
        if not self._is_active(session):
            return

        frame = parse_frame(data)
        if frame is None:
            return

        if frame.command == CMD_CONNECTED:
            if await self._send(session, subscribe_frame(session.subscription_id, session.destination)):
                session.state = ConnectionState.SUBSCRIBED
                await log_info(
                    f"Подписка {session.subscription_id} на {session.destination}",
                    type_msg=TypeMsg.DEBUG,
                    logger_name=LOGGER_NAME,
                )
            return

        if frame.command == CMD_ERROR:
            await log_warning(
                f"STOMP ERROR: {frame.headers.get('message', '')} {frame.body}".strip(),
                logger_name=LOGGER_NAME,
            )
            return

        if frame.command != CMD_MESSAGE:
            await log_debug(f"Пропущен кадр {frame.command}", logger_name=LOGGER_NAME)
            return

        try:
            snapshot = decode_body(frame.body)
        except ProtocolFrameError as e:
            await log_warning(f"Не удалось разобрать данные отслеживания: {e}", logger_name=LOGGER_NAME)
            return

        await self._emit(snapshot)

    async def _handle_error(self, session: ConnectionSession, error: TransportError) -> None:
        await log_error(
            f"Ошибка WebSocket отслеживания поездки {session.ride_id}: {error}",
            logger_name=LOGGER_NAME,
        )

    async def _handle_close(self, session: ConnectionSession) -> None:
        session.state = ConnectionState.CLOSED
        session.transport = None

    async def _emit(self, snapshot: TrackingSnapshot) -> None:
        callback = self._callback
        if callback is None:
            return
        try:
            result = callback(snapshot)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            await log_error(f"Ошибка обработчика обновлений: {e}", logger_name=LOGGER_NAME, exc_info=True)
