# src/web_admin/__init__.py
"""
Web Admin на NiceGUI.
"""

from src.web_admin.app import create_app

__all__ = ["create_app"]
