from __future__ import annotations

from typing import Optional

from nicegui import context, ui

from src.common.logger import log_error, log_info
from src.config import settings
from src.core.tracking.metadata import build_ride_metadata
from src.core.tracking.session import TrackingSession
from src.services.tracking_ws.client import TrackingProtocolClient
from src.shared.models.tracking import TrackingState
from src.shared.models.tracking_dto import SosAlertDTO
from src.web_admin.components.map_adapter import MapViewAdapter
from src.web_admin.components.map_engine import MapLibreEngine
from src.web_admin.infra.api_clients import RideClient, RideTrackingClient, SosClient


class SosAlertDetailPage:
    """Карточка SOS-алерта с картой поездки."""

    def __init__(self, alert_id: str):
        self.alert_id = alert_id
        self.sos_client = SosClient()
        self.ride_client = RideClient()
        self.tracking_client = RideTrackingClient()
        self.engine = MapLibreEngine()
        self.adapter = MapViewAdapter(self.engine)
        self.session = TrackingSession(self.tracking_client, TrackingProtocolClient(), self)
        self.alert: Optional[SosAlertDTO] = None
        self.eta_label: Optional[ui.label] = None
        self.updated_label: Optional[ui.label] = None

    async def mount(self):
        try:
            self.alert = await self.sos_client.get_alert(self.alert_id)
        except Exception as e:
            await log_error(f"Error loading SOS alert {self.alert_id}: {e}")
            ui.notify('Ошибка загрузки SOS-алерта', type='negative')
            await self._close_clients()
            return

        alert = self.alert
        ui.markdown(f'## SOS-алерт #{alert.id}')
        if alert.description:
            ui.label(alert.description).classes('text-gray-600')

        if not alert.shared_ride_id:
            ui.label('Алерт не привязан к поездке').classes('text-lg text-gray-500')
            await self._close_clients()
            return

        detail = None
        try:
            detail = await self.ride_client.get_ride_detail(alert.shared_ride_id)
        except Exception as e:
            # Без деталей карта всё равно покажет точку SOS и live-данные
            await log_error(f"Error loading ride {alert.shared_ride_id}: {e}")

        metadata = build_ride_metadata(alert.shared_ride_id, detail, alert)

        with ui.card().classes('w-full p-4'):
            ui.label(f"Поездка: {metadata.ride_id}").classes('text-lg font-bold')
            ui.label(f"Статус: {metadata.status.value if metadata.status else 'неизвестен'}")
            self.eta_label = ui.label("Прибытие: —")
            self.updated_label = ui.label("Обновлено: —")

        with ui.element('div').classes('w-full').style('height: 480px'):
            self.engine.render()

        self.bind_lifecycle(context.client)
        await self.session.open(metadata, settings.api.API_TOKEN or None)
        await log_info(f"SOS alert {alert.id}: tracking ride {metadata.ride_id}", type_msg="debug")

    def bind_lifecycle(self, client) -> None:
        # Сессия живёт, пока жив клиент страницы: краткий обрыв сокета с переподключением её не закрывает
        client.on_delete(self.unmount)

    async def unmount(self):
        await self.session.close()
        await self._close_clients()

    async def _close_clients(self):
        await self.sos_client.close()
        await self.ride_client.close()
        await self.tracking_client.close()

    # Рендерер сессии: карта плюс подписи карточки

    async def render(self, state: TrackingState) -> None:
        await self.adapter.render(state)
        if self.eta_label is not None and state.estimated_arrival:
            self.eta_label.text = f"Прибытие: {state.estimated_arrival:%H:%M}"
        if self.updated_label is not None and state.observed_at:
            self.updated_label.text = f"Обновлено: {state.observed_at:%H:%M:%S}"

    async def clear(self) -> None:
        await self.adapter.clear()

    async def destroy(self) -> None:
        await self.adapter.destroy()


async def sos_alert_page(alert_id: str):
    page = SosAlertDetailPage(alert_id)
    await page.mount()
