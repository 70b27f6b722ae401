"""API endpoint modules for version 1."""

from .messages import router as messages_router
from .realtime import router as realtime_router
from .system import router as system_router
from .users import router as users_router

__all__ = [
    "messages_router",
    "realtime_router",
    "system_router",
    "users_router",
]
