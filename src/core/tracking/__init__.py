# src/core/tracking/__init__.py
"""
Отслеживание поездки в карточке SOS-алерта.

- polyline: кодек encoded polyline
- reconciler: согласование состояния карты
- metadata: статичные данные поездки и алерта
- session: оркестратор push/poll и отрисовки
"""
