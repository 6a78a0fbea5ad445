"""
API Routers Package.

- notifications: producer and mutation actions for notifications
- collections: cached lookup and soft delete
- cache_monitor: cache insights
"""

from .cache_monitor import router as cache_monitor_router
from .collections import router as collections_router
from .notifications import router as notifications_router

__all__ = [
    "cache_monitor_router",
    "collections_router",
    "notifications_router",
]
