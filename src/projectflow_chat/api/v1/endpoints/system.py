"""System endpoints exposing public runtime configuration."""

from __future__ import annotations

from fastapi import APIRouter

from projectflow_chat.api.v1.dependencies import RegistryDep
from projectflow_chat.core.settings import settings

router = APIRouter(prefix="/system", tags=["system"])


@router.get("/config")
async def get_public_config(registry: RegistryDep) -> dict[str, object]:
    """Return a sanitized snapshot of public runtime configuration.

    Excludes secrets and connection strings. Clients read the unread poll
    interval from here instead of hard-coding it.

    Args:
        registry: Live connection registry

    Returns:
        Dictionary containing app metadata and chat settings
    """
    return {
        "app": {
            "name": settings.app_name,
            "version": settings.app_version,
        },
        "chat": {
            "global_room": settings.global_chat_room,
            "message_list_limit": settings.message_list_limit,
            "message_max_length": settings.message_max_length,
            "unread_poll_interval_seconds": settings.unread_poll_interval_seconds,
        },
        "realtime": {
            "connections": registry.connection_count,
        },
    }
