import httpx
from typing import Optional, Dict, Any
from src.config import settings
from src.core.tracking.errors import TransientFetchError
from src.shared.models.tracking import TrackingSnapshot
from src.shared.models.tracking_dto import SosAlertDTO, TrackingPayloadDTO

class BaseClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        token: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url or settings.api.API_BASE_URL
        self.timeout = timeout or settings.api.HTTP_TIMEOUT
        token = token if token is not None else settings.api.API_TOKEN
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            headers=headers,
            transport=transport,
        )

    async def close(self):
        await self.client.aclose()

    async def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        response = await self.client.get(path, params=params)
        response.raise_for_status()
        return response.json()

class RideTrackingClient(BaseClient):
    """Снимки отслеживания: GET /ride-tracking/{rideId}/snapshot"""

    async def fetch(self, ride_id: str) -> TrackingSnapshot:
        try:
            data = await self._get(f"/ride-tracking/{ride_id}/snapshot")
        except httpx.HTTPStatusError as e:
            raise TransientFetchError(ride_id, f"HTTP {e.response.status_code}", e.response.status_code) from e
        except httpx.HTTPError as e:
            raise TransientFetchError(ride_id, str(e) or e.__class__.__name__) from e
        except (ValueError, RecursionError) as e:
            # Тело не JSON
            raise TransientFetchError(ride_id, f"некорректный ответ: {e.__class__.__name__}") from e

        if not isinstance(data, dict):
            # Пустой ответ: новых данных нет
            return TrackingSnapshot()
        try:
            return TrackingPayloadDTO.model_validate(data).to_snapshot()
        except (ValueError, ArithmeticError, RecursionError) as e:
            raise TransientFetchError(ride_id, f"снимок не разобран: {e.__class__.__name__}") from e

class RideClient(BaseClient):
    async def get_ride_detail(self, ride_id: str) -> Optional[Dict[str, Any]]:
        try:
            data = await self._get(f"/rides/{ride_id}")
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 404:
                return None
            raise
        return data if isinstance(data, dict) else None

class SosClient(BaseClient):
    async def get_alert(self, alert_id: str) -> SosAlertDTO:
        data = await self._get(f"/sos/alerts/{alert_id}")
        return SosAlertDTO.model_validate(data)
