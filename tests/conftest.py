"""Shared fixtures for the paystream test suite."""

from __future__ import annotations

import asyncio
from typing import Any, AsyncGenerator, Callable

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI

from paystream.core.config import MerchantConfig, Settings
from paystream.main import create_app


def make_settings(**overrides: Any) -> Settings:
    """Settings isolated from the environment's .env file."""
    values = {
        "SEED_DEMO_PAYMENTS": False,
        "SSE_KEEPALIVE_SECONDS": 60.0,
        "RATE_LIMIT_MAX_REQUESTS": 1000,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


async def wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    """Poll until predicate() is true or fail after timeout seconds."""
    async def poll() -> None:
        while not predicate():
            await asyncio.sleep(0.01)

    await asyncio.wait_for(poll(), timeout)


# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------

@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def app(settings: Settings) -> FastAPI:
    return create_app(settings)


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[httpx.AsyncClient, Any]:
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


# ---------------------------------------------------------------------------
# Merchant validation
# ---------------------------------------------------------------------------

@pytest.fixture
def merchant_config() -> MerchantConfig:
    return MerchantConfig(
        enabled=True,
        merchant_id="merchant.com.example.shop",
        domain="shop.example.com",
        display_name="Example Shop",
        cert_path="/etc/paystream/merchant.pem",
        timeout=5.0,
    )


class UpstreamRecorder:
    """httpx.MockTransport handler that records every outbound request."""

    def __init__(self, status_code: int = 200, content: bytes = b'{"ok":true}',
                 error: Exception | None = None) -> None:
        self.status_code = status_code
        self.content = content
        self.error = error
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return httpx.Response(
            self.status_code,
            content=self.content,
            headers={"Content-Type": "application/json"},
        )

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


@pytest.fixture
def upstream() -> UpstreamRecorder:
    return UpstreamRecorder()
