"""Tool handler for download_apple_code_sample.

Validates the URL, then downloads, unpacks and analyses the sample archive.
Failures surface as AppleDocsError. No MCP or FastMCP imports; server.py
handles the MCP wiring.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from appledocs.download import download_sample, render_sample_report
from appledocs.errors import AppleDocsError, ErrorCode
from appledocs.models.tools import DownloadSampleInput, DownloadSampleOutput

if TYPE_CHECKING:
    from appledocs.state import AppState


async def handle(zip_url: str, state: AppState) -> dict:
    """Handle a download_apple_code_sample tool call."""
    log = structlog.get_logger().bind(tool="download_apple_code_sample", url=zip_url)
    log.info("handler_called")

    try:
        validated = DownloadSampleInput(zip_url=zip_url)
    except ValueError as exc:
        raise AppleDocsError(
            code=ErrorCode.INVALID_INPUT,
            message=str(exc),
            suggestion=(
                "Provide a developer.apple.com sample-code page or a "
                "docs-assets.developer.apple.com ZIP URL."
            ),
            recoverable=False,
        ) from exc

    download_url, analysis = await download_sample(
        validated.zip_url, fetcher=state.fetcher, settings=state.settings.samples
    )
    log.info("sample_analyzed", name=analysis.name, file_count=len(analysis.files))

    output = DownloadSampleOutput(
        url=validated.zip_url,
        download_url=download_url,
        sample=analysis,
        content=render_sample_report(analysis, download_url, validated.zip_url),
    )
    return output.model_dump(mode="json")
