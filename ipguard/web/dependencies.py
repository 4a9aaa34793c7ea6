"""FastAPI dependencies for guarding login routes."""

import structlog
from fastapi import Depends, HTTPException, Request, status

import ipguard
from ipguard.auth import ThrottleTracker
from ipguard.common.logging_config import bind_client_address

from .settings import APISettings, get_settings

logger = structlog.get_logger(__name__)


def get_api_settings() -> APISettings:
    """Dependency that provides API settings."""
    return get_settings()


def get_client_ip(request: Request, settings: APISettings = Depends(get_api_settings)) -> str:
    """Extract client IP from request, considering trusted proxies.

    Only parses X-Forwarded-For when trusted_proxy_count > 0.
    Takes the Nth-from-right IP where N = trusted_proxy_count.
    """
    if settings.trusted_proxy_count > 0:
        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            ips = [ip.strip() for ip in forwarded.split(",") if ip.strip()]
            if ips:
                index = max(0, len(ips) - settings.trusted_proxy_count)
                return ips[index]
    return request.client.host if request.client else "unknown"


def get_throttle_tracker() -> ThrottleTracker:
    """
    Dependency that provides the process-wide ThrottleTracker.

    Requires ipguard.configure() to have been awaited (done in app lifespan).
    """
    return ipguard.get_tracker()


async def require_not_blocked(
    client_ip: str = Depends(get_client_ip),
    tracker: ThrottleTracker = Depends(get_throttle_tracker),
    settings: APISettings = Depends(get_api_settings),
) -> str:
    """
    Reject requests from blocked addresses before authentication runs.

    The client address is bound into the structlog context, so events the
    route logs afterwards carry ``ip_address`` too.

    Returns:
        The client address, for the route to pass to
        ``handle_login_failure`` or ``handle_login_success``

    Raises:
        HTTPException(429): If the address is blocked

    Example:
        @router.post("/login")
        async def login(
            body: LoginRequest,
            client_ip: str = Depends(require_not_blocked),
            tracker: ThrottleTracker = Depends(get_throttle_tracker),
        ):
            if not await verify(body):
                result = await tracker.handle_login_failure(client_ip)
                ...
    """
    bind_client_address(client_ip)
    block = await tracker.is_blocked(client_ip)
    if block.blocked:
        logger.warning("login_rejected_blocked", retry_after=block.retry_after)
        headers = {"Retry-After": str(block.retry_after)} if settings.retry_after_header else None
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=block.message,
            headers=headers,
        )
    return client_ip
