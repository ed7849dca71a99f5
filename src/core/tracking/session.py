# src/core/tracking/session.py
"""
Сессия отслеживания одной карточки SOS-алерта.

Связывает источники снимков (push и poll), согласование состояния
и отрисовку карты. Одна сессия обслуживает ровно одну поездку.
"""

from __future__ import annotations

import asyncio
from typing import Optional, Protocol

from src.common.constants import TypeMsg
from src.common.logger import log_info, log_warning
from src.config import settings
from src.core.tracking.errors import TransientFetchError
from src.core.tracking.reconciler import TrackingStateReconciler
from src.shared.models.tracking import RideMetadata, TrackingSnapshot, TrackingState

LOGGER_NAME = "tracking_session"


class SnapshotFetcher(Protocol):
    async def fetch(self, ride_id: str) -> TrackingSnapshot: ...


class TrackingRenderer(Protocol):
    async def render(self, state: TrackingState) -> None: ...

    async def clear(self) -> None: ...

    async def destroy(self) -> None: ...


class TrackingSession:
    """
    Оркестратор: первичный снимок, live-подписка и резервный опрос.

    Для завершённых поездок выполняется только первичный снимок,
    без сокета и без таймера.
    """

    def __init__(
        self,
        fetcher: SnapshotFetcher,
        client,
        adapter: TrackingRenderer,
        poll_interval: Optional[float] = None,
    ) -> None:
        self.fetcher = fetcher
        self.client = client
        self.adapter = adapter
        self.poll_interval = poll_interval if poll_interval is not None else settings.tracking.POLL_INTERVAL
        self._reconciler: Optional[TrackingStateReconciler] = None
        self._metadata: Optional[RideMetadata] = None
        self._poll_task: Optional[asyncio.Task] = None

    @property
    def state(self) -> Optional[TrackingState]:
        return self._reconciler.state if self._reconciler else None

    @property
    def ride_id(self) -> Optional[str]:
        return self._metadata.ride_id if self._metadata else None

    @property
    def is_polling(self) -> bool:
        return self._poll_task is not None and not self._poll_task.done()

    async def open(self, metadata: RideMetadata, auth_token: Optional[str] = None) -> None:
        """Открывает отслеживание поездки; предыдущая сессия закрывается."""
        if self._reconciler is not None:
            await self._teardown()
            await self.adapter.clear()

        self._metadata = metadata
        self._reconciler = TrackingStateReconciler(metadata)
        await self.adapter.render(self._reconciler.state)

        await self.refresh()

        if not metadata.is_live:
            await log_info(
                f"Поездка {metadata.ride_id} не активна ({metadata.status}), live-отслеживание не запускается",
                type_msg=TypeMsg.DEBUG,
                logger_name=LOGGER_NAME,
            )
            return

        self.client.on_update(self.apply)
        await self.client.open(metadata.ride_id, auth_token)
        self._poll_task = asyncio.create_task(self._poll_loop())

    async def apply(self, snapshot: TrackingSnapshot) -> None:
        """Вливает снимок (push или poll) и перерисовывает карту."""
        if self._reconciler is None:
            return
        state = self._reconciler.apply(snapshot)
        await self.adapter.render(state)

    async def refresh(self) -> None:
        """Один запрос снимка. Ошибка логируется, состояние не меняется."""
        if self._metadata is None:
            return
        ride_id = self._metadata.ride_id
        try:
            snapshot = await self.fetcher.fetch(ride_id)
        except TransientFetchError as e:
            await log_warning(str(e), logger_name=LOGGER_NAME)
            return
        # За время запроса сессия могла закрыться или переключиться
        if self._metadata is None or self._metadata.ride_id != ride_id:
            return
        await self.apply(snapshot)

    async def _poll_loop(self) -> None:
        while True:
            try:
                await asyncio.sleep(self.poll_interval)
                await self.refresh()
            except asyncio.CancelledError:
                break
            except Exception as e:
                await log_warning(f"Ошибка опроса снимка: {e}", logger_name=LOGGER_NAME)

    async def close(self) -> None:
        """Останавливает опрос, закрывает подписку, освобождает карту."""
        opened = self._reconciler is not None
        await self._teardown()
        if opened:
            await self.adapter.destroy()

    async def _teardown(self) -> None:
        task = self._poll_task
        self._poll_task = None
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        if self._metadata is not None and self._metadata.is_live:
            self.client.on_update(None)
            await self.client.close()

        self._reconciler = None
        self._metadata = None
