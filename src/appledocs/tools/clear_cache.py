"""Tool handler for clear_cache."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from appledocs.models.tools import ClearCacheOutput

if TYPE_CHECKING:
    from appledocs.state import AppState


async def handle(state: AppState) -> dict:
    """Drop every cached document and its resource registration."""
    log = structlog.get_logger().bind(tool="clear_cache")
    log.info("handler_called")

    documents_removed, registrations_removed = state.integration.clear_all()
    output = ClearCacheOutput(
        documents_removed=documents_removed,
        registrations_removed=registrations_removed,
    )
    return output.model_dump(mode="json")
