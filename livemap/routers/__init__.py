"""Aggregate router exports."""
from .realtime import create_realtime_router
from .system import router as system_router

__all__ = [
    "create_realtime_router",
    "system_router",
]
