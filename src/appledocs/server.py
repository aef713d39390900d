"""MCP server entrypoint.

Responsibilities (and nothing more):
- Configure structlog
- Create AppState via the FastMCP lifespan context manager
- Bind the resource registry to FastMCP resources
- Register tools
- Start the correct transport (stdio or HTTP)
"""

from __future__ import annotations

import json
import logging
import sys
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Literal

import structlog
from mcp.server.fastmcp import Context, FastMCP
from mcp.server.fastmcp.resources import FunctionResource
from mcp.types import CallToolResult, TextContent

import appledocs.tools.cache_stats as t_cache_stats
import appledocs.tools.clear_cache as t_clear_cache
import appledocs.tools.download_sample as t_download
import appledocs.tools.get_doc_content as t_get_doc
import appledocs.tools.search_docs as t_search
from appledocs import SERVER_NAME, __version__
from appledocs.cache import DocumentCache
from appledocs.config import Settings
from appledocs.errors import AppleDocsError, ResourceUriConflictError
from appledocs.fetcher import Fetcher, build_http_client
from appledocs.integration import CacheIntegration
from appledocs.resources import ResourceRegistry
from appledocs.state import AppState
from appledocs.transport import run_http_server

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from appledocs.models.resources import ResourceMetadata
    from appledocs.protocols import ReadCallback

log = structlog.get_logger()


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def _setup_logging(settings: Settings) -> None:
    """Configure structlog. Called once at startup before any log statements."""
    log_level = logging.getLevelNamesMapping()[settings.logging.level]

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if settings.logging.format == "json":
        processors = [
            *shared_processors,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = [*shared_processors, structlog.dev.ConsoleRenderer()]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        # Logs go to stderr; stdout is reserved for the MCP JSON-RPC stream
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


# ---------------------------------------------------------------------------
# Resource registrar
# ---------------------------------------------------------------------------


class FastMCPResourceRegistrar:
    """ResourceRegistrar backed by FastMCP's resource manager.

    FastMCP keeps the first resource added under a URI and has no removal
    API. The registrar therefore remembers which source URL owns each URI.
    The owner may register again (an evicted-then-recached page swaps in its
    new read callback); a different page mapping to the same URI is refused
    with ResourceUriConflictError instead of being silently dropped.
    """

    def __init__(self, server: FastMCP) -> None:
        self._server = server
        self._owners: dict[str, str] = {}  # uri -> source_url
        self._callbacks: dict[str, ReadCallback] = {}

    def register(
        self,
        name: str,
        uri: str,
        metadata: ResourceMetadata,
        read_callback: ReadCallback,
    ) -> None:
        owner = self._owners.get(uri)
        if owner is not None and owner != metadata.source_url:
            log.warning(
                "resource_uri_conflict", uri=uri, owner=owner, source_url=metadata.source_url
            )
            raise ResourceUriConflictError(uri, owner)

        self._callbacks[uri] = read_callback
        if owner is not None:
            return

        callbacks = self._callbacks

        def read() -> str:
            return "\n\n".join(item.text for item in callbacks[uri]())

        resource = FunctionResource(
            uri=uri,
            name=name,
            title=metadata.title,
            description=metadata.description,
            mime_type=metadata.mime_type,
            fn=read,
        )
        self._server.add_resource(resource)
        self._owners[uri] = metadata.source_url


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


def build_integration(settings: Settings, server: FastMCP) -> CacheIntegration:
    """Wire cache, registry and orchestrator for one server instance."""
    cache = DocumentCache()
    registry = ResourceRegistry(cache, FastMCPResourceRegistrar(server))
    return CacheIntegration(cache, registry, settings.cache)


@asynccontextmanager
async def lifespan(server: FastMCP) -> AsyncGenerator[AppState, None]:
    """Create and tear down all shared resources for the server's lifetime."""
    settings = Settings()
    _setup_logging(settings)

    log.info(
        "server_starting",
        version=__version__,
        transport=settings.server.transport,
    )

    http_client = build_http_client(settings.fetcher)
    state = AppState(
        settings=settings,
        integration=build_integration(settings, server),
        fetcher=Fetcher(http_client),
        http_client=http_client,
    )

    log.info(
        "server_started",
        version=__version__,
        transport=settings.server.transport,
        cache_enabled=settings.cache.enabled,
        max_cache_size=settings.cache.max_cache_size,
    )

    try:
        yield state
    finally:
        await http_client.aclose()
        log.info("server_stopping")


# ---------------------------------------------------------------------------
# FastMCP instance and tool registration
# ---------------------------------------------------------------------------

mcp = FastMCP(SERVER_NAME, lifespan=lifespan)
# FastMCP doesn't expose a version kwarg, so set it on the underlying Server
# so the MCP initialize handshake reports our version, not the SDK's.
mcp._mcp_server.version = __version__  # pyright: ignore[reportPrivateUsage]


def _serialise_tool_error(error: AppleDocsError) -> CallToolResult:
    """Convert an AppleDocsError to the MCP tool error result envelope."""
    return CallToolResult(
        content=[TextContent(type="text", text=json.dumps(error.to_dict()))],
        isError=True,
    )


def _log_tool_error(tool: str, exc: AppleDocsError) -> None:
    log.warning(
        "tool_error",
        tool=tool,
        code=exc.code,
        message=exc.message,
        recoverable=exc.recoverable,
    )


@mcp.tool()
async def get_apple_doc_content(url: str, ctx: Context, skip_cache: bool = False) -> object:
    """Get detailed content from a specific Apple Developer Documentation page.

    Pages are cached after the first fetch and exposed as MCP resources under
    apple-docs://docs/<path>. A cache hit returns the same markdown and links
    as the original fetch. Set skip_cache to force a fresh fetch.
    """
    state: AppState = ctx.request_context.lifespan_context
    try:
        return await t_get_doc.handle(url, state, skip_cache=skip_cache)
    except AppleDocsError as exc:
        _log_tool_error("get_apple_doc_content", exc)
        return _serialise_tool_error(exc)
    except Exception:
        log.error("tool_unexpected_error", tool="get_apple_doc_content", exc_info=True)
        raise


@mcp.tool()
async def search_apple_docs(
    query: str,
    ctx: Context,
    type: Literal["all", "api", "guide", "sample", "video"] = "all",
) -> object:
    """Search Apple Developer Documentation for APIs, frameworks, guides, samples, and videos."""
    state: AppState = ctx.request_context.lifespan_context
    try:
        return await t_search.handle(query, state, type=type)
    except AppleDocsError as exc:
        _log_tool_error("search_apple_docs", exc)
        return _serialise_tool_error(exc)
    except Exception:
        log.error("tool_unexpected_error", tool="search_apple_docs", exc_info=True)
        raise


@mcp.tool()
async def download_apple_code_sample(zip_url: str, ctx: Context) -> object:
    """Download, unzip, and analyze an Apple Developer code sample.

    zip_url is either a sample's documentation page on developer.apple.com
    or its ZIP archive on docs-assets.developer.apple.com.
    """
    state: AppState = ctx.request_context.lifespan_context
    try:
        return await t_download.handle(zip_url, state)
    except AppleDocsError as exc:
        _log_tool_error("download_apple_code_sample", exc)
        return _serialise_tool_error(exc)
    except Exception:
        log.error("tool_unexpected_error", tool="download_apple_code_sample", exc_info=True)
        raise


@mcp.tool()
async def get_cache_stats(ctx: Context) -> object:
    """Report documentation cache usage and resource registration statistics."""
    state: AppState = ctx.request_context.lifespan_context
    try:
        return await t_cache_stats.handle(state)
    except Exception:
        log.error("tool_unexpected_error", tool="get_cache_stats", exc_info=True)
        raise


@mcp.tool()
async def clear_cache(ctx: Context) -> object:
    """Remove every cached documentation page and its resource registration."""
    state: AppState = ctx.request_context.lifespan_context
    try:
        return await t_clear_cache.handle(state)
    except Exception:
        log.error("tool_unexpected_error", tool="clear_cache", exc_info=True)
        raise


# ---------------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------------


def main() -> None:
    settings = Settings()

    if settings.server.transport == "http":
        _setup_logging(settings)
        run_http_server(mcp, settings)
        return

    mcp.run()


if __name__ == "__main__":
    main()
