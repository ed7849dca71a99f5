#!/usr/bin/env python3
# main.py
"""
Главная точка входа приложения Ride Admin.
Запускает Web Admin UI или headless-отслеживание SOS-алерта.
"""

from __future__ import annotations

import asyncio
import signal
import sys

from src.config import settings
from src.common.logger import setup_logging, log_info, log_error
from src.common.constants import TypeMsg


# Глобальный флаг для graceful shutdown
_shutdown_event: asyncio.Event | None = None


def setup_signal_handlers() -> None:
    """Настраивает обработчики сигналов для graceful shutdown."""
    global _shutdown_event
    _shutdown_event = asyncio.Event()

    def signal_handler(sig: int) -> None:
        """Обработчик сигналов SIGINT и SIGTERM."""
        if _shutdown_event and not _shutdown_event.is_set():
            print(f"\nПолучен сигнал остановки (sig={sig}), завершаем работу...")
            _shutdown_event.set()

    try:
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, lambda s=sig: signal_handler(s))
    except NotImplementedError:
        # Windows не поддерживает add_signal_handler
        signal.signal(signal.SIGINT, lambda s, f: signal_handler(s))
        signal.signal(signal.SIGTERM, lambda s, f: signal_handler(s))


def run_web_admin() -> None:
    """Запускает Web Admin UI (NiceGUI сам управляет event loop)."""
    from src.web_admin.app import run_web as start_web_admin

    setup_logging()
    start_web_admin(port=settings.deployment.WEB_ADMIN_PORT)


async def run_track(alert_id: str) -> None:
    """
    Headless-отслеживание SOS-алерта: команды карты пишутся в лог.
    Работает до сигнала остановки.
    """
    from src.core.tracking.metadata import build_ride_metadata
    from src.core.tracking.session import TrackingSession
    from src.services.tracking_ws.client import TrackingProtocolClient
    from src.web_admin.components.map_adapter import MapViewAdapter
    from src.web_admin.components.map_engine import LoggingMapEngine
    from src.web_admin.infra.api_clients import RideClient, RideTrackingClient, SosClient

    sos_client = SosClient()
    ride_client = RideClient()
    tracking_client = RideTrackingClient()
    session = TrackingSession(tracking_client, TrackingProtocolClient(), MapViewAdapter(LoggingMapEngine()))

    try:
        alert = await sos_client.get_alert(alert_id)
        if not alert.shared_ride_id:
            await log_error(f"SOS-алерт {alert_id} не привязан к поездке")
            return

        detail = await ride_client.get_ride_detail(alert.shared_ride_id)
        metadata = build_ride_metadata(alert.shared_ride_id, detail, alert)
        await log_info(
            f"Отслеживание поездки {metadata.ride_id} (статус: {metadata.status})",
            type_msg=TypeMsg.INFO,
        )

        await session.open(metadata, settings.api.API_TOKEN or None)
        if metadata.is_live and _shutdown_event is not None:
            await _shutdown_event.wait()
    finally:
        await session.close()
        await sos_client.close()
        await ride_client.close()
        await tracking_client.close()


async def main(mode: str, args: list[str]) -> None:
    """
    Главная функция запуска асинхронных режимов.

    Args:
        mode: Режим запуска (track)
        args: Оставшиеся аргументы командной строки
    """
    setup_logging()
    setup_signal_handlers()

    await log_info(
        f"Ride Admin v{settings.system.VERSION} — запуск в режиме '{mode}'",
        type_msg=TypeMsg.INFO
    )

    try:
        if mode == "track":
            await run_track(args[0])
    except Exception as e:
        await log_error(f"Критическая ошибка: {e}", exc_info=True)
        raise
    finally:
        await log_info("Приложение остановлено", type_msg=TypeMsg.INFO)


def print_usage() -> None:
    """Выводит справку по использованию."""
    print("""
Ride Admin — карта поездки в карточке SOS-алерта

Использование:
    python main.py [mode] [args]

Режимы:
    web_admin              — Web Admin UI (по умолчанию)
    track <alert_id>       — headless-отслеживание SOS-алерта с логированием карты

Примеры:
    python main.py
    python main.py track 17
    """)


if __name__ == "__main__":
    mode = sys.argv[1].lower() if len(sys.argv) > 1 else "web_admin"

    if mode in ("--help", "-h"):
        print_usage()
        sys.exit(0)
    elif mode == "web_admin":
        run_web_admin()
    elif mode == "track":
        if len(sys.argv) < 3:
            print("Ошибка: не указан ID SOS-алерта")
            print_usage()
            sys.exit(1)
        try:
            asyncio.run(main(mode, sys.argv[2:]))
        except KeyboardInterrupt:
            pass
    else:
        print(f"Ошибка: неизвестный режим '{mode}'")
        print_usage()
        sys.exit(1)
