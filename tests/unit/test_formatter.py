"""Unit tests for the JSON and HTML documentation formatters."""

from __future__ import annotations

from appledocs.formatter import (
    format_html_documentation,
    format_json_documentation,
    render_blocks,
    render_inline,
)
from appledocs.models.content import ResourceLinkBlock

_URL = "https://developer.apple.com/documentation/mapkit/mapview"


def _payload(**overrides: object) -> dict:
    payload: dict = {
        "metadata": {
            "title": "MapView",
            "roleHeading": "Class",
            "platforms": [
                {"name": "iOS", "introducedAt": "3.0"},
                {"name": "visionOS", "introducedAt": "1.0", "beta": True},
            ],
        },
        "abstract": [
            {"type": "text", "text": "An embeddable map interface, similar to the one "},
            {"type": "reference", "identifier": "doc://com.apple.mapkit/documentation/MapKit"},
            {"type": "text", "text": " provides."},
        ],
        "primaryContentSections": [
            {
                "kind": "declarations",
                "declarations": [
                    {
                        "tokens": [
                            {"kind": "keyword", "text": "class"},
                            {"kind": "text", "text": " "},
                            {"kind": "identifier", "text": "MKMapView"},
                        ]
                    }
                ],
            },
            {
                "kind": "content",
                "content": [
                    {"type": "heading", "text": "Overview", "level": 2},
                    {
                        "type": "paragraph",
                        "inlineContent": [{"type": "text", "text": "Use a map view."}],
                    },
                    {"type": "codeBlock", "syntax": "swift", "code": ["let m = MKMapView()"]},
                ],
            },
            {"kind": "mentions", "mentions": ["something"]},
        ],
        "topicSections": [
            {
                "title": "Essentials",
                "identifiers": ["doc://com.apple.mapkit/documentation/MapKit/MKMapView/region"],
            }
        ],
        "references": {
            "doc://com.apple.mapkit/documentation/MapKit/MKMapView/region": {
                "title": "region",
                "url": "/documentation/mapkit/mkmapview/region",
                "abstract": [{"type": "text", "text": "The area the map displays."}],
            }
        },
    }
    payload.update(overrides)
    return payload


class TestInlineAndBlocks:
    def test_inline_text_reference_and_code(self) -> None:
        items = [
            {"type": "text", "text": "Call "},
            {"type": "codeVoice", "code": "reload()"},
            {"type": "text", "text": " on "},
            {"type": "reference", "identifier": "doc://x/documentation/UIKit/UITableView"},
            {"type": "emphasis", "inlineContent": [{"type": "text", "text": "!"}]},
        ]
        assert render_inline(items) == "Call `reload()` on `UITableView`!"

    def test_lists_and_aside(self) -> None:
        para = {"type": "paragraph", "inlineContent": [{"type": "text", "text": "item"}]}
        blocks = [
            {"type": "unorderedList", "items": [{"content": [para]}]},
            {"type": "orderedList", "items": [{"content": [para]}, {"content": [para]}]},
            {"type": "aside", "style": "note", "content": [para]},
        ]
        assert render_blocks(blocks) == "- item\n\n1. item\n2. item\n\n> **NOTE**: item\n\n"

    def test_unknown_blocks_ignored(self) -> None:
        assert render_blocks([{"type": "video"}, "junk"]) == ""  # type: ignore[list-item]


class TestFormatJsonDocumentation:
    def test_renders_main_sections(self) -> None:
        result = format_json_documentation(_payload(), _URL)
        markdown = result.markdown()

        assert result.is_error is False
        assert markdown.startswith(f"# MapView\n\n**Source:** [{_URL}]({_URL})\n\n")
        assert "## Overview\n\nAn embeddable map interface, similar to the one `MapKit` provides." in (
            markdown
        )
        assert "## Declaration\n\n```swift\nclass MKMapView\n```" in markdown
        assert "## Description\n\n### Overview\n\nUse a map view.\n\n" in markdown
        assert "```swift\nlet m = MKMapView()\n```" in markdown
        assert "- **iOS**: Introduced in 3.0" in markdown
        assert "- **visionOS (Beta)**: Introduced in 1.0" in markdown

    def test_unknown_section_kind_is_skipped(self) -> None:
        result = format_json_documentation(_payload(), _URL)
        assert "mentions" not in result.markdown()

    def test_parameters_and_return_value(self) -> None:
        para = {"type": "paragraph", "inlineContent": [{"type": "text", "text": "The value."}]}
        payload = _payload(
            primaryContentSections=[
                {"kind": "parameters", "parameters": [{"name": "animated", "content": [para]}]},
                {"kind": "returnValue", "content": [para]},
            ]
        )
        markdown = format_json_documentation(payload, _URL).markdown()
        assert "## Parameters\n\n### `animated`\n\nThe value.\n\n" in markdown
        assert "## Return Value\n\nThe value.\n\n" in markdown

    def test_topic_links(self) -> None:
        links = format_json_documentation(_payload(), _URL).links()
        assert links == [
            ResourceLinkBlock(
                uri="https://developer.apple.com/documentation/mapkit/mkmapview/region",
                name="region",
                description="The area the map displays.",
                mime_type="text/html",
            )
        ]

    def test_sample_code_and_see_also_links(self) -> None:
        payload = _payload(
            topicSections=[],
            sampleCodeDownload={"title": "Food Truck", "action": {"identifier": "abc/food.zip"}},
            seeAlsoSections=[
                {"identifiers": ["https://example.com/more-info", "doc://com.apple.mapkit.Thing"]}
            ],
        )
        links = format_json_documentation(payload, _URL).links()

        assert links[0].uri == "https://docs-assets.developer.apple.com/published/abc/food.zip"
        assert links[0].mime_type == "application/zip"
        assert links[0].name == "Food Truck"
        assert links[1].uri == "https://example.com/more-info"
        assert links[1].name == "more info"
        assert links[2].uri == "https://developer.apple.com/documentation/com/apple/mapkit/Thing"

    def test_missing_title_falls_back(self) -> None:
        result = format_json_documentation({}, _URL)
        assert result.markdown().startswith("# Untitled Documentation")

    def test_invalid_payload_renders_unparseable_page(self) -> None:
        result = format_json_documentation({"primaryContentSections": "nope"}, _URL)
        assert result.is_error is False
        assert "Unable to parse the full documentation content" in result.markdown()


# ---------------------------------------------------------------------------
# HTML pages
# ---------------------------------------------------------------------------

_HTML_URL = "https://developer.apple.com/design/human-interface-guidelines/maps"

_DOC_PAGE = """
<html><head><title>Maps | Apple Developer</title></head><body>
<main class="documentation-main">
  <h1>Maps</h1>
  <div class="description"><p>A map presents geographic data.</p></div>
  <pre><code class="language-swift">let map = MKMapView()</code></pre>
  <pre><code class="objective-c">MKMapView *map;</code></pre>
  <pre><code>plain</code></pre>
  <section class="topics-section">
    <div class="topic"><a href="/documentation/mapkit/mkmapview">MKMapView</a></div>
    <div class="topic"><a href="https://example.com/annotations">Annotations</a></div>
    <div class="topic"><a>No href</a></div>
  </section>
</main>
</body></html>
"""


class TestFormatHtmlDocumentation:
    def test_documentation_container(self) -> None:
        result = format_html_documentation(_DOC_PAGE, _HTML_URL)
        text = result.markdown()
        assert text.startswith(f"# Maps\n\n**Source:** [{_HTML_URL}]({_HTML_URL})")
        assert "## Overview\n\nA map presents geographic data." in text
        assert "```swift\nlet map = MKMapView()\n```" in text
        assert "```objective-c\nMKMapView *map;\n```" in text
        assert "```\nplain\n```" in text
        assert result.is_error is False

    def test_topic_links(self) -> None:
        links = format_html_documentation(_DOC_PAGE, _HTML_URL).links()
        assert [link.uri for link in links] == [
            "https://developer.apple.com/documentation/mapkit/mkmapview",
            "https://example.com/annotations",
        ]
        assert links[0].name == "MKMapView"
        assert links[0].description == "Apple Developer Documentation: MKMapView"
        assert links[0].mime_type == "text/html"

    def test_title_falls_back_to_title_element(self) -> None:
        page = "<html><head><title>News</title></head><body><p>Hi</p></body></html>"
        assert format_html_documentation(page, _HTML_URL).markdown().startswith("# News\n\n")

    def test_plain_page_keeps_visible_text(self) -> None:
        page = """
        <html><body>
          <header>Site header</header>
          <nav>Menu</nav>
          <script>var hidden = 1;</script>
          <style>p { color: red; }</style>
          <h1>Release notes</h1>
          <p>Xcode   16
             adds new features.</p>
          <footer>Copyright</footer>
        </body></html>
        """
        result = format_html_documentation(page, _HTML_URL)
        text = result.markdown()
        assert "## Content\n\nRelease notes Xcode 16 adds new features." in text
        for hidden in ("Site header", "Menu", "hidden", "color: red", "Copyright"):
            assert hidden not in text
        assert result.links() == []

    def test_plain_page_text_truncated(self) -> None:
        page = f"<html><body><h1>Long</h1><p>{'x' * 7000}</p></body></html>"
        text = format_html_documentation(page, _HTML_URL).markdown()
        body = text.split("## Content\n\n", 1)[1].strip()
        assert len(body) == 6000
