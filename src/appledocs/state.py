"""Application state container.

AppState is created once at server startup (inside the FastMCP lifespan context
manager) and injected into every tool handler via the MCP Context object.
The cache integration is reached through here, never through module globals.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import httpx

    from appledocs.config import Settings
    from appledocs.integration import CacheIntegration
    from appledocs.protocols import FetcherProtocol


@dataclass
class AppState:
    """Holds all shared runtime state. Passed to every tool handler."""

    settings: Settings
    integration: CacheIntegration
    fetcher: FetcherProtocol
    http_client: httpx.AsyncClient | None = None
