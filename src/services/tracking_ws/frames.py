# src/services/tracking_ws/frames.py
"""
Кадры STOMP 1.2 в объёме, нужном для отслеживания поездки.

Кадр: строка команды, заголовки key:value по одному на строку,
пустая строка, тело, завершающий NUL.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Optional

NUL = "\0"
HEADER_SEPARATOR = "\n\n"

CMD_CONNECT = "CONNECT"
CMD_CONNECTED = "CONNECTED"
CMD_SUBSCRIBE = "SUBSCRIBE"
CMD_UNSUBSCRIBE = "UNSUBSCRIBE"
CMD_DISCONNECT = "DISCONNECT"
CMD_MESSAGE = "MESSAGE"
CMD_ERROR = "ERROR"


@dataclass(frozen=True)
class StompFrame:
    """Разобранный входящий кадр."""
    command: str
    headers: dict[str, str] = field(default_factory=dict)
    body: str = ""


def build_frame(command: str, headers: Iterable[tuple[str, str]] = (), body: str = "") -> str:
    """Собирает кадр; порядок заголовков сохраняется."""
    header_lines = "".join(f"{key}:{value}\n" for key, value in headers)
    return f"{command}\n{header_lines}\n{body}{NUL}"


def connect_frame(token: Optional[str], accept_version: str = "1.2", host: str = "/") -> str:
    """CONNECT; Authorization добавляется только при наличии токена."""
    headers = [("accept-version", accept_version), ("host", host)]
    if token:
        headers.append(("Authorization", f"Bearer {token}"))
    return build_frame(CMD_CONNECT, headers)


def subscribe_frame(subscription_id: str, destination: str) -> str:
    return build_frame(CMD_SUBSCRIBE, [("id", subscription_id), ("destination", destination)])


def unsubscribe_frame(subscription_id: str) -> str:
    return build_frame(CMD_UNSUBSCRIBE, [("id", subscription_id)])


def disconnect_frame() -> str:
    return build_frame(CMD_DISCONNECT)


def subscription_id_for(ride_id: str) -> str:
    """Идентификатор подписки, производный от поездки."""
    return f"ride-{ride_id}"


def destination_for(ride_id: str) -> str:
    """Топик обновлений поездки."""
    return f"/topic/ride.tracking.{ride_id}"


def parse_frame(data: str) -> Optional[StompFrame]:
    """
    Разбирает входящий текст в кадр.

    Heart-beat (пустые строки) даёт None. Тело идёт от разделителя
    заголовков до первого NUL, а если NUL нет, то до конца текста.
    """
    data = data.lstrip("\r\n")
    if not data:
        return None

    split_index = data.find(HEADER_SEPARATOR)
    if split_index == -1:
        head = data.rstrip(NUL)
        body = ""
    else:
        head = data[:split_index]
        body_start = split_index + len(HEADER_SEPARATOR)
        nul_index = data.find(NUL, body_start)
        body = data[body_start:] if nul_index == -1 else data[body_start:nul_index]

    lines = head.split("\n")
    headers: dict[str, str] = {}
    for line in lines[1:]:
        key, sep, value = line.partition(":")
        # По STOMP 1.2 при повторе заголовка действует первое вхождение
        if sep and key not in headers:
            headers[key] = value
    return StompFrame(command=lines[0].strip(), headers=headers, body=body)
