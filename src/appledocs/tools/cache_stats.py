"""Tool handler for get_cache_stats."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from appledocs.models.tools import CacheStatsOutput

if TYPE_CHECKING:
    from appledocs.state import AppState


async def handle(state: AppState) -> dict:
    """Report cache usage, resource registration counters and cache config."""
    log = structlog.get_logger().bind(tool="get_cache_stats")
    log.info("handler_called")

    integration = state.integration
    output = CacheStatsOutput(
        cache=integration.cache_stats(),
        resources=integration.resource_stats(),
        config=integration.config,
    )
    return output.model_dump(mode="json")
