# src/core/__init__.py
"""
Доменный слой.
Чистая логика отслеживания, независимая от транспорта и карты.
"""
