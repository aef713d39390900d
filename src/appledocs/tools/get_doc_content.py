"""Tool handler for get_apple_doc_content.

Receives AppState, validates the URL, and runs fetch + format through the
cache integration. ``/documentation/`` pages are read from the JSON API;
other developer.apple.com pages are read as HTML. Both go through the same
cache. Returns a structured dict. No MCP or FastMCP imports; server.py
handles the MCP wiring.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from appledocs.errors import AppleDocsError, ErrorCode
from appledocs.fetcher import has_json_twin
from appledocs.formatter import format_html_documentation, format_json_documentation
from appledocs.models.content import FormattedContent
from appledocs.models.tools import GetDocContentInput, GetDocContentOutput

if TYPE_CHECKING:
    from appledocs.state import AppState


async def handle(url: str, state: AppState, skip_cache: bool = False) -> dict:
    """Handle a get_apple_doc_content tool call.

    Cache hits return the same ``links`` as the original fetch.
    """
    log = structlog.get_logger().bind(tool="get_apple_doc_content", url=url)
    log.info("handler_called", skip_cache=skip_cache)

    try:
        validated = GetDocContentInput(url=url, skip_cache=skip_cache)
    except ValueError as exc:
        raise AppleDocsError(
            code=ErrorCode.INVALID_INPUT,
            message=str(exc),
            suggestion="Provide an https://developer.apple.com/documentation/... URL.",
            recoverable=False,
        ) from exc

    async def format_page() -> FormattedContent:
        # Fetch failures become an error result so nothing gets cached.
        try:
            if has_json_twin(validated.url):
                data = await state.fetcher.fetch_json(
                    validated.url, max_depth=state.settings.fetcher.max_reference_depth
                )
                return format_json_documentation(data, validated.url)
            html = await state.fetcher.fetch_html(validated.url)
            return format_html_documentation(html, validated.url)
        except AppleDocsError as exc:
            log.warning("fetch_failed", code=exc.code, message=exc.message)
            return FormattedContent.from_text(
                f"Error: Failed to get Apple doc content: {exc.message}\n\n"
                f"Please try accessing the documentation directly at: {validated.url}",
                is_error=True,
            )

    result = await state.integration.cache_aware_format(
        validated.url, format_page, skip_cache=validated.skip_cache
    )

    if result.error:
        log.warning("cache_advisory", error=result.error)

    output = GetDocContentOutput(
        url=validated.url,
        content=result.content.markdown(),
        links=result.content.links(),
        cached=result.from_cache,
        cache_key=result.cache_key,
        resource_uri=result.resource_uri,
        warning=result.error,
        is_error=result.content.is_error,
    )
    return output.model_dump(mode="json")
