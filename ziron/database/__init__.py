"""
Database Package.

Provides the shared async engine and sessions.
"""

from .engine import dispose_engines, get_async_engine
from .session import get_async_db_session, get_db
