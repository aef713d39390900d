"""Streamable HTTP transport and request-validation middleware for the MCP server."""

from __future__ import annotations

from typing import TYPE_CHECKING
from urllib.parse import urlsplit

import structlog
import uvicorn
from mcp.shared.version import SUPPORTED_PROTOCOL_VERSIONS as _SDK_PROTOCOL_VERSIONS
from starlette.datastructures import Headers
from starlette.responses import Response

if TYPE_CHECKING:
    from collections.abc import Iterable

    from mcp.server.fastmcp import FastMCP
    from starlette.types import ASGIApp, Receive, Scope, Send

    from appledocs.config import Settings

log = structlog.get_logger()

SUPPORTED_PROTOCOL_VERSIONS: frozenset[str] = frozenset(_SDK_PROTOCOL_VERSIONS)


def is_origin_allowed(origin: str, allowed_hosts: frozenset[str]) -> bool:
    """True for an http(s) Origin whose host is in ``allowed_hosts``."""
    try:
        parts = urlsplit(origin)
    except ValueError:
        return False
    return parts.scheme in {"http", "https"} and parts.hostname in allowed_hosts


class MCPRequestGuardMiddleware:
    """Pure ASGI middleware for HTTP transport request validation.

    Enforces two checks on every HTTP request:
    1. Origin validation against the configured hosts, to prevent DNS rebinding.
    2. Protocol version validation via the MCP-Protocol-Version header.

    Implemented as pure ASGI (not BaseHTTPMiddleware) so that SSE streaming
    responses are never buffered by the middleware layer.
    """

    def __init__(self, app: ASGIApp, *, allowed_origin_hosts: Iterable[str]) -> None:
        self.app = app
        self.allowed_origin_hosts = frozenset(allowed_origin_hosts)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http":
            headers = Headers(scope=scope)

            origin = headers.get("origin", "")
            if origin and not is_origin_allowed(origin, self.allowed_origin_hosts):
                log.warning("http_request_rejected", reason="origin_not_allowed", origin=origin)
                await Response("Forbidden", status_code=403)(scope, receive, send)
                return

            proto_version = headers.get("mcp-protocol-version", "")
            if proto_version and proto_version not in SUPPORTED_PROTOCOL_VERSIONS:
                log.warning(
                    "http_request_rejected",
                    reason="unsupported_protocol_version",
                    protocol_version=proto_version,
                )
                await Response(
                    f"Unsupported protocol version: {proto_version}",
                    status_code=400,
                )(scope, receive, send)
                return

        await self.app(scope, receive, send)


def run_http_server(mcp: FastMCP, settings: Settings) -> None:
    """Start the MCP server with Streamable HTTP transport."""
    log.info(
        "http_server_starting",
        host=settings.server.host,
        port=settings.server.port,
        allowed_origin_hosts=settings.server.allowed_origin_hosts,
    )

    guarded_app = MCPRequestGuardMiddleware(
        mcp.streamable_http_app(),
        allowed_origin_hosts=settings.server.allowed_origin_hosts,
    )

    uvicorn.run(
        guarded_app,
        host=settings.server.host,
        port=settings.server.port,
        log_config=None,  # structlog handles logging
    )
