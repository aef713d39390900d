"""Integration test fixtures.

Provides a fully wired AppState: real DocumentCache, ResourceRegistry and
CacheIntegration over the in-memory FakeRegistrar from tests/conftest.py,
plus a real Fetcher on an httpx client that tests mock with respx.
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

import httpx
import pytest

from appledocs.config import Settings
from appledocs.fetcher import Fetcher
from appledocs.integration import CacheIntegration
from appledocs.state import AppState

if TYPE_CHECKING:
    from pathlib import Path

    from appledocs.cache import DocumentCache
    from appledocs.resources import ResourceRegistry


@pytest.fixture()
def subprocess_env(tmp_path: Path) -> dict[str, str]:
    """Baseline env dict for subprocess-based MCP integration tests.

    Overrides any local appledocs.yaml by forcing stdio transport and
    pointing the config directory lookup at an empty tmp directory.
    """
    env = os.environ.copy()
    env["APPLEDOCS__SERVER__TRANSPORT"] = "stdio"
    env["APPLEDOCS__LOGGING__LEVEL"] = "WARNING"
    env["XDG_CONFIG_HOME"] = str(tmp_path)
    return env


@pytest.fixture()
async def app_state(cache: DocumentCache, registry: ResourceRegistry) -> AppState:
    """Full AppState wired for tool handler tests."""
    settings = Settings()
    async with httpx.AsyncClient() as client:
        state = AppState(
            settings=settings,
            integration=CacheIntegration(cache, registry, settings.cache),
            fetcher=Fetcher(client),
            http_client=client,
        )
        yield state
