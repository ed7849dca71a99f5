# src/shared/__init__.py
"""
Общий код между слоями.

Модули:
- models: геоточки, состояние отслеживания и DTO полезной нагрузки
"""

__all__: list[str] = []
