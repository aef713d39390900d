"""Tests for MCPRequestGuardMiddleware on the HTTP transport.

Each test exercises the middleware directly via httpx's ASGI transport so no
real server is started. The inner app is a trivial 200-OK responder that never
runs if the middleware short-circuits.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
import pytest

from appledocs.config import ServerSettings
from appledocs.transport import (
    SUPPORTED_PROTOCOL_VERSIONS,
    MCPRequestGuardMiddleware,
    is_origin_allowed,
)

if TYPE_CHECKING:
    from starlette.types import ASGIApp, Receive, Scope, Send

_LOCAL_HOSTS = frozenset(ServerSettings().allowed_origin_hosts)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def _ok_app(scope: Scope, receive: Receive, send: Send) -> None:
    """Minimal ASGI app that always returns 200 OK."""
    await send({"type": "http.response.start", "status": 200, "headers": []})
    await send({"type": "http.response.body", "body": b"ok"})


def _guarded(hosts: frozenset[str] = _LOCAL_HOSTS) -> MCPRequestGuardMiddleware:
    return MCPRequestGuardMiddleware(_ok_app, allowed_origin_hosts=hosts)


def _client(app: ASGIApp) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app),
        base_url="http://localhost",
    )


# ---------------------------------------------------------------------------
# is_origin_allowed
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "origin",
    ["http://localhost", "http://localhost:3000", "https://127.0.0.1:8443"],
)
def test_local_origins_allowed(origin: str) -> None:
    assert is_origin_allowed(origin, _LOCAL_HOSTS)


@pytest.mark.parametrize(
    "origin",
    [
        "https://evil.com",
        "http://localhost.evil.com",
        "ftp://localhost",
        "http://[::1",
        "null",
    ],
)
def test_other_origins_rejected(origin: str) -> None:
    assert not is_origin_allowed(origin, _LOCAL_HOSTS)


# ---------------------------------------------------------------------------
# Origin validation
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_no_origin_header_passes() -> None:
    async with _client(_guarded()) as client:
        response = await client.get("/mcp")
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_localhost_origin_passes() -> None:
    async with _client(_guarded()) as client:
        response = await client.get("/mcp", headers={"Origin": "http://localhost:5173"})
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_foreign_origin_returns_403() -> None:
    async with _client(_guarded()) as client:
        response = await client.get("/mcp", headers={"Origin": "https://evil.example.com"})
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_configured_origin_host_passes() -> None:
    app = _guarded(frozenset({"docs.internal"}))
    async with _client(app) as client:
        allowed = await client.get("/mcp", headers={"Origin": "https://docs.internal"})
        rejected = await client.get("/mcp", headers={"Origin": "http://localhost"})
    assert allowed.status_code == 200
    assert rejected.status_code == 403


# ---------------------------------------------------------------------------
# Protocol version validation
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_supported_protocol_version_passes() -> None:
    version = sorted(SUPPORTED_PROTOCOL_VERSIONS)[-1]
    async with _client(_guarded()) as client:
        response = await client.get("/mcp", headers={"MCP-Protocol-Version": version})
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_unknown_protocol_version_returns_400() -> None:
    async with _client(_guarded()) as client:
        response = await client.get("/mcp", headers={"MCP-Protocol-Version": "1999-01-01"})
    assert response.status_code == 400
    assert "1999-01-01" in response.text


def test_supports_current_stdio_handshake_version() -> None:
    assert "2025-06-18" in SUPPORTED_PROTOCOL_VERSIONS
