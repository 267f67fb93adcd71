# app/core/__init__.py
"""
Message Service Core Module
Application assembly: state, lifespan, middleware, routes, error handlers
"""

from app import __version__, __description__, __author__

from app.core.app_state import AppState, get_start_time

__all__ = [
    "__version__",
    "__description__",
    "__author__",
    "AppState",
    "get_start_time"
]
