"""Tool handler for search_apple_docs.

Fetches the developer.apple.com search page for the query, parses the hits
and applies the type filter. Search results are not cached. No MCP or
FastMCP imports; server.py handles the MCP wiring.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from appledocs.errors import AppleDocsError, ErrorCode
from appledocs.models.tools import SearchDocsInput, SearchDocsOutput
from appledocs.search import (
    filter_results_by_type,
    format_search_results,
    parse_search_results,
    search_url_for,
)

if TYPE_CHECKING:
    from appledocs.state import AppState


async def handle(query: str, state: AppState, type: str = "all") -> dict:
    """Handle a search_apple_docs tool call."""
    log = structlog.get_logger().bind(tool="search_apple_docs", query=query, type=type)
    log.info("handler_called")

    try:
        validated = SearchDocsInput(query=query, type=type)
    except ValueError as exc:
        raise AppleDocsError(
            code=ErrorCode.INVALID_INPUT,
            message=str(exc),
            suggestion="Provide a non-empty query and a type of all, api, guide, sample or video.",
            recoverable=False,
        ) from exc

    search_url = search_url_for(validated.query)
    html = await state.fetcher.fetch_html(search_url)
    results = filter_results_by_type(parse_search_results(html), validated.type)
    log.info("search_complete", result_count=len(results))

    output = SearchDocsOutput(
        query=validated.query,
        type=validated.type,
        search_url=search_url,
        results=results,
        content=format_search_results(results, validated.query, search_url),
    )
    return output.model_dump(mode="json")
