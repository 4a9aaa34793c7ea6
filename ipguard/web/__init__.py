"""FastAPI integration helpers."""

from .dependencies import (
    get_api_settings,
    get_client_ip,
    get_throttle_tracker,
    require_not_blocked,
)
from .settings import APISettings, get_settings

__all__ = [
    "APISettings",
    "get_settings",
    "get_api_settings",
    "get_client_ip",
    "get_throttle_tracker",
    "require_not_blocked",
]
