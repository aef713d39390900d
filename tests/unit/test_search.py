"""Unit tests for appledocs.search."""

from __future__ import annotations

import pytest

from appledocs.models.search import SearchResult
from appledocs.search import (
    SEARCH_URL,
    filter_results_by_type,
    format_search_results,
    parse_search_results,
    search_url_for,
)

SEARCH_PAGE = """
<html><body>
<ul class="search-results">
  <li class="search-result documentation">
    <p class="result-title"><a href="/documentation/swiftui/view">View</a></p>
    <p class="result-description">A type that represents part of your app's UI.</p>
  </li>
  <li class="search-result sample">
    <p class="result-title">
      <a href="https://developer.apple.com/documentation/mapkit/displaying-overlays">
        Displaying overlays on a map
      </a>
    </p>
    <p class="result-description">Add shapes to a map view.</p>
  </li>
  <li class="search-result video">
    <p class="result-title"><a href="/videos/play/wwdc2024/10001">What's new in SwiftUI</a></p>
  </li>
  <li class="search-result forums">
    <p class="result-title"><a href="/forums/thread/1">Forum thread</a></p>
  </li>
  <li class="search-result documentation">
    <p class="result-title"><a>No link</a></p>
  </li>
  <li class="search-result documentation">
    <p class="result-description">No title element at all</p>
  </li>
</ul>
</body></html>
"""


def _result(type: str) -> SearchResult:
    return SearchResult(title=type, url=f"https://developer.apple.com/{type}", type=type)


# ---------------------------------------------------------------------------
# parse_search_results
# ---------------------------------------------------------------------------


class TestParseSearchResults:
    def test_extracts_complete_entries(self) -> None:
        results = parse_search_results(SEARCH_PAGE)
        assert [r.title for r in results] == [
            "View",
            "Displaying overlays on a map",
            "What's new in SwiftUI",
            "Forum thread",
        ]

    def test_relative_links_made_absolute(self) -> None:
        results = parse_search_results(SEARCH_PAGE)
        assert results[0].url == "https://developer.apple.com/documentation/swiftui/view"
        assert results[1].url == (
            "https://developer.apple.com/documentation/mapkit/displaying-overlays"
        )

    def test_type_from_css_class(self) -> None:
        results = parse_search_results(SEARCH_PAGE)
        assert [r.type for r in results] == ["documentation", "sample", "video", "other"]

    def test_missing_description_is_empty(self) -> None:
        results = parse_search_results(SEARCH_PAGE)
        assert results[0].description == "A type that represents part of your app's UI."
        assert results[2].description == ""

    def test_page_without_results(self) -> None:
        assert parse_search_results("<html><body><p>Nothing here</p></body></html>") == []


# ---------------------------------------------------------------------------
# filter_results_by_type
# ---------------------------------------------------------------------------


class TestFilterResultsByType:
    RESULTS = [_result("documentation"), _result("sample"), _result("video"), _result("general")]

    def test_all_keeps_everything(self) -> None:
        assert filter_results_by_type(self.RESULTS, "all") == self.RESULTS

    @pytest.mark.parametrize("kind", ["api", "guide"])
    def test_api_and_guide_select_documentation(self, kind: str) -> None:
        assert [r.type for r in filter_results_by_type(self.RESULTS, kind)] == ["documentation"]

    @pytest.mark.parametrize("kind", ["sample", "video"])
    def test_sample_and_video_match_their_kind(self, kind: str) -> None:
        assert [r.type for r in filter_results_by_type(self.RESULTS, kind)] == [kind]


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------


class TestFormatSearchResults:
    def test_search_url_encodes_query(self) -> None:
        assert search_url_for("view & model") == f"{SEARCH_URL}?q=view%20%26%20model"

    def test_lists_results(self) -> None:
        results = parse_search_results(SEARCH_PAGE)[:1]
        text = format_search_results(results, "view", f"{SEARCH_URL}?q=view")
        assert text.startswith('# Search Results for "view"\n\n')
        assert "## [View](https://developer.apple.com/documentation/swiftui/view)" in text
        assert "*Type: documentation*" in text
        assert text.endswith(f"View all results: {SEARCH_URL}?q=view")

    def test_no_results_points_at_search_page(self) -> None:
        text = format_search_results([], "zzz", f"{SEARCH_URL}?q=zzz")
        assert text == (
            'No results found for "zzz". '
            f"You can view the search page directly at: {SEARCH_URL}?q=zzz"
        )
