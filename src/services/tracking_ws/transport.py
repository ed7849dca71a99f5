# src/services/tracking_ws/transport.py
"""
Транспорт для STOMP-клиента.

Клиент не знает о конкретной библиотеке сокетов: он получает
события через TransportListener и отправляет текст через Transport.
Боевая реализация: WebSocketTransport на websockets.
"""

from __future__ import annotations

import asyncio
from typing import Callable, Optional, Protocol, Sequence

import websockets

from src.core.tracking.errors import TransportError


class TransportListener(Protocol):
    """Получатель событий транспорта."""

    async def on_transport_open(self) -> None: ...

    async def on_transport_message(self, data: str) -> None: ...

    async def on_transport_error(self, error: TransportError) -> None: ...

    async def on_transport_close(self) -> None: ...


class Transport(Protocol):
    """Полнодуплексное текстовое соединение."""

    @property
    def is_open(self) -> bool: ...

    async def connect(self) -> None: ...

    async def send(self, data: str) -> None: ...

    async def close(self) -> None: ...


TransportFactory = Callable[[str, Sequence[str], TransportListener], Transport]


class WebSocketTransport:
    """
    Транспорт поверх websockets.

    connect() только запускает фоновую задачу; открытие, сообщения,
    ошибки и закрытие приходят в listener из этой задачи.
    """

    def __init__(self, url: str, subprotocols: Sequence[str], listener: TransportListener) -> None:
        self._url = url
        self._subprotocols = list(subprotocols)
        self._listener = listener
        self._ws = None
        self._task: Optional[asyncio.Task] = None

    @property
    def is_open(self) -> bool:
        return self._ws is not None

    async def connect(self) -> None:
        if self._task is not None:
            return
        self._task = asyncio.create_task(self._run(), name="tracking_ws_transport")

    async def _run(self) -> None:
        try:
            async with websockets.connect(self._url, subprotocols=self._subprotocols) as ws:
                self._ws = ws
                await self._listener.on_transport_open()
                async for message in ws:
                    if isinstance(message, bytes):
                        message = message.decode("utf-8", errors="replace")
                    await self._listener.on_transport_message(message)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            await self._listener.on_transport_error(TransportError(str(e) or e.__class__.__name__))
        finally:
            self._ws = None
            await self._listener.on_transport_close()

    async def send(self, data: str) -> None:
        if self._ws is None:
            raise TransportError("Соединение не открыто")
        await self._ws.send(data)

    async def close(self) -> None:
        ws = self._ws
        task = self._task
        if ws is not None:
            await ws.close()
        if task is None or task.done():
            return
        # Закрытие изнутри задачи чтения: ждать саму себя нельзя
        if task is asyncio.current_task():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass


def websocket_transport_factory(
    url: str,
    subprotocols: Sequence[str],
    listener: TransportListener,
) -> Transport:
    return WebSocketTransport(url, subprotocols, listener)
