"""Apple Developer search page parsing.

The search page at ``developer.apple.com/search/?q=...`` lists hits as
``.search-results .search-result`` elements. The result kind is carried as a
CSS class on each element (``documentation``, ``video``, ``sample``,
``general``), the title and link sit under ``.result-title`` and the summary
under ``.result-description``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING
from urllib.parse import quote, urljoin

import structlog
from bs4 import BeautifulSoup

from appledocs.fetcher import APPLE_DOCS_HOST
from appledocs.models.search import SearchResult

if TYPE_CHECKING:
    from collections.abc import Iterable

    from appledocs.models.search import SearchFilter, SearchResultType

log = structlog.get_logger()

SEARCH_URL = f"https://{APPLE_DOCS_HOST}/search/"

_RESULT_TYPES: tuple[SearchResultType, ...] = ("documentation", "video", "sample", "general")

# Which result kinds each filter keeps. API references and guides are both
# tagged "documentation" on the search page, so those two filters coincide.
_FILTER_TYPES: dict[str, frozenset[str]] = {
    "api": frozenset({"documentation"}),
    "guide": frozenset({"documentation"}),
    "sample": frozenset({"sample"}),
    "video": frozenset({"video"}),
}


def search_url_for(query: str) -> str:
    return f"{SEARCH_URL}?q={quote(query, safe='')}"


def parse_search_results(html: str) -> list[SearchResult]:
    """Extract results from a search page. Entries without a title or link are skipped."""
    soup = BeautifulSoup(html, "html.parser")
    results: list[SearchResult] = []

    for item in soup.select(".search-results .search-result"):
        classes = item.get("class") or []
        result_type: SearchResultType = next(
            (kind for kind in _RESULT_TYPES if kind in classes), "other"
        )

        title_el = item.select_one(".result-title")
        if title_el is None:
            continue
        title = title_el.get_text().strip()
        anchor = title_el.find("a")
        href = anchor.get("href") if anchor is not None else None
        if not title or not href:
            continue

        description_el = item.select_one(".result-description")
        results.append(
            SearchResult(
                title=title,
                url=urljoin(f"https://{APPLE_DOCS_HOST}/", str(href)),
                description=description_el.get_text().strip() if description_el else "",
                type=result_type,
            )
        )

    log.debug("search_results_parsed", count=len(results))
    return results


def filter_results_by_type(
    results: Iterable[SearchResult], type: SearchFilter
) -> list[SearchResult]:
    if type == "all":
        return list(results)
    allowed = _FILTER_TYPES[type]
    return [result for result in results if result.type in allowed]


def format_search_results(results: list[SearchResult], query: str, search_url: str) -> str:
    if not results:
        return (
            f'No results found for "{query}". '
            f"You can view the search page directly at: {search_url}"
        )

    entries = "\n".join(
        f"## [{result.title}]({result.url})\n{result.description}\n*Type: {result.type}*\n"
        for result in results
    )
    return f'# Search Results for "{query}"\n\n{entries}\n\nView all results: {search_url}'
