"""HTTP fetcher for Apple Developer documentation.

Documentation pages at ``developer.apple.com/documentation/<path>`` have a
machine-readable twin at ``/tutorials/data/documentation/<path>.json``. The
Fetcher converts the URL, follows redirects one hop at a time (every hop must
stay on an allowed host), and returns the decoded JSON. Pages without a JSON
twin and the search page are read as HTML; sample-code archives come from
the assets host as raw bytes. It receives an httpx.AsyncClient via
constructor injection; the lifespan owns the client.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any
from urllib.parse import urljoin, urlsplit, urlunsplit

import httpx
import structlog

from appledocs.errors import AppleDocsError, ErrorCode

if TYPE_CHECKING:
    from appledocs.config import FetcherSettings

log = structlog.get_logger()

APPLE_DOCS_HOST = "developer.apple.com"
SAMPLE_ASSETS_HOST = "docs-assets.developer.apple.com"
JSON_API_BASE = f"https://{APPLE_DOCS_HOST}/tutorials/data/documentation/"
ALLOWED_HOSTS: frozenset[str] = frozenset({APPLE_DOCS_HOST})
# Sample-code archives are served from a separate assets host.
ASSET_HOSTS: frozenset[str] = frozenset({SAMPLE_ASSETS_HOST})


def build_http_client(settings: FetcherSettings) -> httpx.AsyncClient:
    """Create the shared httpx client. Called once at startup."""
    return httpx.AsyncClient(
        follow_redirects=False,
        timeout=httpx.Timeout(settings.timeout_seconds),
        headers={
            "User-Agent": settings.user_agent,
            "Accept": "application/json",
        },
        limits=httpx.Limits(
            max_connections=10,
            max_keepalive_connections=5,
        ),
    )


def _host_allowed(url: str, allowed_hosts: frozenset[str]) -> bool:
    try:
        return urlsplit(url).hostname in allowed_hosts
    except ValueError:
        return False


def is_apple_docs_url(url: str) -> bool:
    return _host_allowed(url, ALLOWED_HOSTS)


def canonical_doc_url(url: str) -> str:
    """Collapse equivalent spellings of a documentation URL onto one form.

    Forces https, lowercases the host, and drops the query, fragment and
    trailing slash, so ``http://Developer.apple.com/documentation/swiftui/view/?language=objc``
    and ``https://developer.apple.com/documentation/swiftui/view`` share a
    cache key. The JSON API ignores the query, so no content is lost.
    """
    parts = urlsplit(url)
    # urlsplit already lowercases hostname
    return urlunsplit(("https", parts.hostname or "", parts.path.rstrip("/"), "", ""))


def to_json_api_url(url: str) -> str:
    """Map a documentation web URL to its JSON API URL.

    ``https://developer.apple.com/documentation/swiftui/view`` →
    ``https://developer.apple.com/tutorials/data/documentation/swiftui/view.json``.
    URLs that already point at JSON, or are not under ``/documentation/``,
    are returned unchanged.
    """
    url = url.removesuffix("/")
    path = urlsplit(url).path
    if path.endswith(".json"):
        return url
    if "/documentation/" in path:
        doc_path = path.split("/documentation/", 1)[1]
        return f"{JSON_API_BASE}{doc_path}.json"
    return url


def reference_json_url(reference_url: str) -> str:
    """JSON API URL for a ``references[*].url`` value like ``/documentation/uikit``."""
    doc_path = reference_url.strip("/").removeprefix("documentation/")
    return f"{JSON_API_BASE}{doc_path}.json"


def has_json_twin(url: str) -> bool:
    """True for ``/documentation/`` pages, which the JSON API can serve."""
    return "/documentation/" in urlsplit(url).path


class Fetcher:
    """Documentation fetcher with per-hop host validation.

    ``fetch_json`` reads Apple's JSON API, ``fetch_html`` reads web pages
    (search results and pages without a JSON twin), ``fetch_bytes`` downloads
    sample-code archives from the assets host.
    """

    def __init__(self, client: httpx.AsyncClient, max_redirects: int = 3) -> None:
        self._client = client
        self._max_redirects = max_redirects

    async def fetch_json(self, url: str, max_depth: int = 2) -> dict[str, Any]:
        """Fetch the JSON document behind ``url``.

        A document without ``primaryContentSections`` is usually a thin index
        page; while ``max_depth`` allows, follow its first reference that has
        a URL. Raises AppleDocsError on host violations, HTTP errors and
        undecodable bodies.
        """
        json_url = to_json_api_url(url)
        log.info("fetch_started", url=url, json_url=json_url, depth_remaining=max_depth)

        response = await self._get(json_url, source_url=url)
        try:
            data = response.json()
        except json.JSONDecodeError as exc:
            raise AppleDocsError(
                code=ErrorCode.PAGE_FETCH_FAILED,
                message=f"Invalid JSON returned for {url}",
                suggestion="The page may not have a JSON representation.",
                recoverable=False,
            ) from exc
        if not isinstance(data, dict):
            raise AppleDocsError(
                code=ErrorCode.PAGE_FETCH_FAILED,
                message=f"Unexpected JSON payload for {url}",
                suggestion="The page may not have a JSON representation.",
                recoverable=False,
            )

        if data.get("primaryContentSections") or max_depth <= 0:
            return data

        references = data.get("references") or {}
        if not isinstance(references, dict) or not references:
            return data

        first = next(iter(references.values()))
        ref_url = first.get("url") if isinstance(first, dict) else None
        if not ref_url:
            return data

        log.info("fetch_following_reference", url=url, reference=ref_url)
        return await self.fetch_json(reference_json_url(ref_url), max_depth - 1)

    async def fetch_html(self, url: str) -> str:
        """Fetch a developer.apple.com web page and return its decoded body."""
        log.info("fetch_started", url=url, kind="html")
        response = await self._get(url, source_url=url, accept="text/html")
        return response.text

    async def fetch_bytes(self, url: str, *, max_bytes: int) -> bytes:
        """Download a sample-code archive from the documentation assets host.

        Raises AppleDocsError with ``DOWNLOAD_TOO_LARGE`` when the body
        exceeds ``max_bytes``.
        """
        log.info("fetch_started", url=url, kind="bytes")
        response = await self._get(
            url, source_url=url, accept="application/zip", allowed_hosts=ASSET_HOSTS
        )
        if len(response.content) > max_bytes:
            raise AppleDocsError(
                code=ErrorCode.DOWNLOAD_TOO_LARGE,
                message=f"Download of {url} is {len(response.content)} bytes (limit {max_bytes})",
                suggestion="Raise samples.max_download_bytes to allow larger archives.",
                recoverable=False,
            )
        return response.content

    async def _get(
        self,
        url: str,
        *,
        source_url: str,
        accept: str | None = None,
        allowed_hosts: frozenset[str] = ALLOWED_HOSTS,
    ) -> httpx.Response:
        current_url = url
        headers = {"Accept": accept} if accept else None
        host_names = " or ".join(sorted(allowed_hosts))

        try:
            for hop in range(self._max_redirects + 1):
                if not _host_allowed(current_url, allowed_hosts):
                    log.warning("fetch_blocked", url=current_url, reason="host_not_allowed")
                    raise AppleDocsError(
                        code=ErrorCode.URL_NOT_ALLOWED,
                        message=f"URL must be from {host_names}: {current_url}",
                        suggestion="Only Apple Developer documentation URLs are supported.",
                        recoverable=False,
                    )

                response = await self._client.get(current_url, headers=headers)

                if response.is_redirect and "location" in response.headers:
                    if hop == self._max_redirects:
                        raise AppleDocsError(
                            code=ErrorCode.PAGE_FETCH_FAILED,
                            message=f"Too many redirects fetching {source_url}",
                            suggestion="The documentation URL has an unusually long redirect chain.",
                            recoverable=False,
                        )
                    current_url = urljoin(current_url, response.headers["location"])
                    continue

                if not response.is_success:
                    if response.status_code == 404:
                        raise AppleDocsError(
                            code=ErrorCode.PAGE_NOT_FOUND,
                            message=f"HTTP 404 fetching {source_url}",
                            suggestion="Check the documentation URL; the page may have moved.",
                            recoverable=False,
                        )
                    raise AppleDocsError(
                        code=ErrorCode.PAGE_FETCH_FAILED,
                        message=f"HTTP {response.status_code} fetching {source_url}",
                        suggestion="Apple's documentation API may be temporarily unavailable.",
                        recoverable=True,
                    )

                log.info(
                    "fetch_complete",
                    url=current_url,
                    status_code=response.status_code,
                    content_length=len(response.content),
                )
                return response

        except AppleDocsError:
            raise
        except httpx.HTTPError as exc:
            raise AppleDocsError(
                code=ErrorCode.PAGE_FETCH_FAILED,
                message=f"Network error fetching {source_url}: {exc}",
                suggestion="Apple's documentation API may be temporarily unavailable.",
                recoverable=True,
            ) from exc

        # Unreachable but satisfies the type checker
        raise AppleDocsError(
            code=ErrorCode.PAGE_FETCH_FAILED,
            message="Redirect loop",
            suggestion="",
            recoverable=False,
        )
