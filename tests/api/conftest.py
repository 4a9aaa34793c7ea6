"""Shared pytest fixtures for API tests."""

from typing import Generator

import pytest
from fastapi import Depends, FastAPI, HTTPException, status
from fastapi.testclient import TestClient
from pydantic import BaseModel

from ipguard.auth import ThrottleTracker
from ipguard.core.store import InMemoryAttemptStore
from ipguard.web.dependencies import (
    get_api_settings,
    get_throttle_tracker,
    require_not_blocked,
)
from ipguard.web.settings import APISettings

TEST_PASSWORD = "correct-horse"


class LoginRequest(BaseModel):
    username: str
    password: str


def create_login_app() -> FastAPI:
    """Minimal login route wired the way a host application would use ipguard."""
    app = FastAPI()

    @app.post("/auth/login")
    async def login(
        body: LoginRequest,
        client_ip: str = Depends(require_not_blocked),
        tracker: ThrottleTracker = Depends(get_throttle_tracker),
    ) -> dict:
        if body.password != TEST_PASSWORD:
            result = await tracker.handle_login_failure(client_ip)
            if result.blocked:
                raise HTTPException(
                    status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                    detail=result.messages.block_duration_message,
                    headers={"Retry-After": str(result.retry_after)},
                )
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail=result.messages.remaining_attempts_message,
            )

        await tracker.handle_login_success(client_ip)
        return {"username": body.username, "client_ip": client_ip}

    return app


@pytest.fixture
def api_settings() -> APISettings:
    """Provide test API settings (no trusted proxies)."""
    return APISettings(trusted_proxy_count=0)


@pytest.fixture
def api_tracker(fake_clock) -> ThrottleTracker:
    """Provide an in-memory tracker driven by the fake clock."""
    return ThrottleTracker(
        store=InMemoryAttemptStore(),
        block_duration=30,
        max_failed_attempts=5,
        reset_window=300,
        clock=fake_clock,
    )


@pytest.fixture
def test_app(api_tracker: ThrottleTracker, api_settings: APISettings) -> FastAPI:
    """Provide the login app with dependencies overridden for tests."""
    app = create_login_app()
    app.dependency_overrides[get_throttle_tracker] = lambda: api_tracker
    app.dependency_overrides[get_api_settings] = lambda: api_settings
    return app


@pytest.fixture
def client(test_app: FastAPI) -> Generator[TestClient, None, None]:
    """Provide a test client for the login app."""
    with TestClient(test_app) as test_client:
        yield test_client


@pytest.fixture
def good_login() -> dict:
    """Login body that passes authentication."""
    return {"username": "admin", "password": TEST_PASSWORD}


@pytest.fixture
def bad_login() -> dict:
    """Login body that fails authentication."""
    return {"username": "admin", "password": "wrong"}
