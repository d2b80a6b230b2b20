"""Tests for running the API under uvicorn."""

from __future__ import annotations

import asyncio

import httpx
import pytest
import uvicorn

from paystream.main import create_app
from paystream.server import server_options

from conftest import make_settings, wait_until


def test_server_options_carry_shutdown_timeout():
    options = server_options(make_settings(HOST="127.0.0.1", PORT=8123, SHUTDOWN_TIMEOUT_SECONDS=3))
    assert options["host"] == "127.0.0.1"
    assert options["port"] == 8123
    assert options["timeout_graceful_shutdown"] == 3
    assert options["log_level"] == "info"


@pytest.mark.asyncio
async def test_shutdown_ends_open_streams():
    settings = make_settings(HOST="127.0.0.1", PORT=0, SHUTDOWN_TIMEOUT_SECONDS=0.5)
    app = create_app(settings)
    broadcaster = app.state.broadcaster
    server = uvicorn.Server(uvicorn.Config(app, **server_options(settings)))

    serving = asyncio.create_task(server.serve())
    try:
        await wait_until(lambda: server.started, timeout=5)
        port = server.servers[0].sockets[0].getsockname()[1]

        async with httpx.AsyncClient(base_url=f"http://127.0.0.1:{port}") as client:
            async with client.stream("GET", "/api/payments/stream") as resp:
                assert resp.status_code == 200
                first = await asyncio.wait_for(resp.aiter_text().__anext__(), 5)
                assert first.startswith('event: hello\ndata: "connected"')
                assert broadcaster.subscriber_count == 1

                # Viewer still connected while the server is asked to stop
                server.should_exit = True
                await asyncio.wait_for(asyncio.shield(serving), 5)

        assert broadcaster.subscriber_count == 0
    finally:
        if not serving.done():
            server.force_exit = True
            serving.cancel()
