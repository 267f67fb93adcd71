# app/core/fastapi_types.py
"""
FastAPI subclass whose state attribute is typed as AppState,
so editors resolve app.state.message_service and friends.
"""

from __future__ import annotations
from typing import TYPE_CHECKING

from fastapi import FastAPI as _FastAPI

if TYPE_CHECKING:
    from app.core.app_state import AppState


class FastAPI(_FastAPI):
    state: AppState
