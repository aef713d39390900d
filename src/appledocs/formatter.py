"""Markdown formatters for Apple Developer documentation.

``format_json_documentation`` renders a JSON API payload: one text block
holding the page markdown, followed by resource links for sample code,
topics, relationships and see-also entries. Payloads that fail validation
render as a short "unable to parse" page rather than raising.
``format_html_documentation`` covers web pages that have no JSON twin.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any
from urllib.parse import urljoin

import structlog
from bs4 import BeautifulSoup
from pydantic import ValidationError

from appledocs.models.content import FormattedContent, ResourceLinkBlock, TextBlock
from appledocs.models.docjson import (
    AppleDocument,
    ContentSection,
    DeclarationsSection,
    ParametersSection,
    ReturnValueSection,
    UnknownSection,
)

if TYPE_CHECKING:
    from bs4 import Tag

    from appledocs.models.docjson import BlockContent, InlineContent, Reference

log = structlog.get_logger()

APPLE_DEVELOPER_ORIGIN = "https://developer.apple.com"
SAMPLE_CODE_BASE = "https://docs-assets.developer.apple.com/published/"


# ---------------------------------------------------------------------------
# Inline and block content
# ---------------------------------------------------------------------------


def render_inline(items: InlineContent) -> str:
    parts: list[str] = []
    for item in items:
        if not isinstance(item, dict):
            continue
        if item.get("text"):
            parts.append(item["text"])
        elif item.get("type") == "codeVoice" and item.get("code"):
            parts.append(f"`{item['code']}`")
        elif item.get("inlineContent"):
            parts.append(render_inline(item["inlineContent"]))
        elif item.get("type") == "reference" and item.get("identifier"):
            parts.append(f"`{item['identifier'].split('/')[-1]}`")
    return "".join(parts)


def _render_list(items: list[dict[str, Any]], *, ordered: bool) -> str:
    lines = []
    for index, list_item in enumerate(items, start=1):
        content = list_item.get("content") if isinstance(list_item, dict) else None
        if not content:
            continue
        bullet = f"{index}." if ordered else "-"
        lines.append(f"{bullet} {render_blocks(content).strip()}")
    return "\n".join(lines) + "\n\n"


def render_blocks(items: BlockContent) -> str:
    out: list[str] = []
    for item in items:
        if not isinstance(item, dict):
            continue
        match item.get("type"):
            case "paragraph" if item.get("inlineContent"):
                out.append(f"{render_inline(item['inlineContent'])}\n\n")
            case "heading":
                out.append(f"### {item.get('text', '')}\n\n")
            case "codeBlock":
                code = item.get("code") or ""
                if isinstance(code, list):
                    code = "\n".join(code)
                out.append(f"```{item.get('syntax') or ''}\n{code}\n```\n\n")
            case "unorderedList" if item.get("items"):
                out.append(_render_list(item["items"], ordered=False))
            case "orderedList" if item.get("items"):
                out.append(_render_list(item["items"], ordered=True))
            case "aside" if item.get("style") and item.get("content"):
                body = render_blocks(item["content"]).strip()
                out.append(f"> **{item['style'].upper()}**: {body}\n\n")
    return "".join(out)


# ---------------------------------------------------------------------------
# Sections
# ---------------------------------------------------------------------------


def _render_declarations(section: DeclarationsSection) -> str:
    if not section.declarations:
        return ""
    lines = ["## Declaration\n\n```swift\n"]
    for declaration in section.declarations:
        if declaration.tokens:
            lines.append("".join(token.text for token in declaration.tokens) + "\n")
    lines.append("```\n\n")
    return "".join(lines)


def _render_parameters(section: ParametersSection) -> str:
    if not section.parameters:
        return ""
    out = ["## Parameters\n\n"]
    for param in section.parameters:
        out.append(f"### `{param.name}`\n\n")
        out.append(render_blocks(param.content))
    return "".join(out)


def _render_primary_sections(doc: AppleDocument) -> str:
    sections = doc.primary_content_sections or []

    # Fixed output order regardless of upstream ordering.
    declarations = [s for s in sections if isinstance(s, DeclarationsSection)]
    discussions = [s for s in sections if isinstance(s, ContentSection)]
    parameters = [s for s in sections if isinstance(s, ParametersSection)]
    returns = [s for s in sections if isinstance(s, ReturnValueSection)]

    unknown = [s.kind for s in sections if isinstance(s, UnknownSection)]
    if unknown:
        log.debug("formatter_unknown_sections", kinds=unknown)

    out: list[str] = []
    if declarations:
        out.append(_render_declarations(declarations[0]))
    if discussions and discussions[0].content:
        out.append("## Description\n\n" + render_blocks(discussions[0].content))
    if parameters:
        out.append(_render_parameters(parameters[0]))
    if returns and returns[0].content:
        out.append("## Return Value\n\n" + render_blocks(returns[0].content))
    return "".join(out)


# ---------------------------------------------------------------------------
# Resource links
# ---------------------------------------------------------------------------


def title_from_url(url: str) -> str:
    last = url.rstrip("/").split("/")[-1]
    return last.replace("-", " ").replace("_", " ")


def _absolute_doc_url(reference: Reference | None, identifier: str) -> str:
    if reference is not None and reference.url:
        if reference.url.startswith("http"):
            return reference.url
        return f"{APPLE_DEVELOPER_ORIGIN}{reference.url}"
    if identifier.startswith("http"):
        return identifier
    path = identifier.removeprefix("doc://").replace(".", "/")
    return f"{APPLE_DEVELOPER_ORIGIN}/documentation/{path}"


def resource_link_for(reference: Reference | None, identifier: str) -> ResourceLinkBlock:
    uri = _absolute_doc_url(reference, identifier)
    name = (
        (reference.title if reference is not None else None)
        or title_from_url(uri)
        or identifier.split("/")[-1]
        or identifier
    )
    description = None
    if reference is not None and reference.abstract:
        description = render_inline(reference.abstract) or None
    return ResourceLinkBlock(uri=uri, name=name, description=description, mime_type="text/html")


def _sample_code_link(doc: AppleDocument) -> ResourceLinkBlock | None:
    download = doc.sample_code_download
    if download is None or download.action is None or not download.action.identifier:
        return None
    return ResourceLinkBlock(
        uri=f"{SAMPLE_CODE_BASE}{download.action.identifier}",
        name=download.title or "Sample Code",
        description="Downloadable sample code from Apple Developer Documentation",
        mime_type="application/zip",
    )


def _section_links(doc: AppleDocument) -> list[ResourceLinkBlock]:
    links: list[ResourceLinkBlock] = []
    for section in [*doc.topic_sections, *doc.relationships_sections]:
        for identifier in section.identifiers:
            links.append(resource_link_for(doc.references.get(identifier), identifier))

    for section in doc.see_also_sections:
        for identifier in section.identifiers:
            if identifier.startswith("http"):
                links.append(
                    ResourceLinkBlock(
                        uri=identifier,
                        name=title_from_url(identifier),
                        description="External reference from Apple Developer Documentation",
                        mime_type="text/html",
                    )
                )
            else:
                links.append(resource_link_for(doc.references.get(identifier), identifier))
    return links


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def _unparseable(url: str) -> FormattedContent:
    return FormattedContent.from_text(
        f"# Documentation: {url}\n\n"
        "Unable to parse the full documentation content. Please visit the original "
        "documentation page for complete information."
    )


def format_json_documentation(data: dict[str, Any], url: str) -> FormattedContent:
    """Render a JSON documentation payload to markdown plus resource links."""
    try:
        doc = AppleDocument.model_validate(data)
    except ValidationError:
        log.warning("formatter_validation_failed", url=url, exc_info=True)
        return _unparseable(url)

    title = doc.title or doc.metadata.title or "Untitled Documentation"

    markdown = f"# {title}\n\n**Source:** [{url}]({url})\n\n"
    if doc.abstract:
        markdown += f"## Overview\n\n{render_inline(doc.abstract)}\n\n"
    markdown += _render_primary_sections(doc)

    if doc.metadata.platforms:
        markdown += "## Availability\n\n"
        for platform in doc.metadata.platforms:
            beta = " (Beta)" if platform.beta else ""
            markdown += f"- **{platform.name}{beta}**: Introduced in {platform.introduced_at}\n"
        markdown += "\n"

    blocks: list[TextBlock | ResourceLinkBlock] = [TextBlock(text=markdown)]
    sample_link = _sample_code_link(doc)
    if sample_link is not None:
        blocks.append(sample_link)
    blocks.extend(_section_links(doc))

    return FormattedContent(content=blocks)


# ---------------------------------------------------------------------------
# HTML pages
# ---------------------------------------------------------------------------

_HTML_TEXT_LIMIT = 6000
_WHITESPACE_RE = re.compile(r"\s+")


def _code_language(code: Tag) -> str:
    classes = " ".join(code.get("class") or [])
    if "swift" in classes:
        return "swift"
    if "objective-c" in classes:
        return "objective-c"
    return ""


def format_html_documentation(html: str, url: str) -> FormattedContent:
    """Render a documentation web page when no JSON twin is available.

    Reads the ``.documentation-main`` container when present: its overview,
    code samples, and topic links. Otherwise the page's visible body text is
    kept, whitespace-collapsed and truncated.
    """
    soup = BeautifulSoup(html, "html.parser")

    heading = soup.find("h1")
    title = heading.get_text().strip() if heading is not None else ""
    if not title and soup.title is not None:
        title = soup.title.get_text().strip()

    markdown = f"# {title}\n\n**Source:** [{url}]({url})\n\n"
    links: list[ResourceLinkBlock] = []

    main = soup.select_one(".documentation-main")
    if main is not None:
        description = main.select_one(".description, .abstract, .content-section")
        if description is not None:
            markdown += f"## Overview\n\n{description.get_text().strip()}\n\n"

        code_blocks = main.select("pre code")
        if code_blocks:
            markdown += "## Code Examples\n\n"
            for code in code_blocks:
                markdown += f"```{_code_language(code)}\n{code.get_text().strip()}\n```\n\n"

        for anchor in main.select(".topics-section .topic a"):
            text = anchor.get_text().strip()
            href = anchor.get("href")
            if not text or not href:
                continue
            links.append(
                ResourceLinkBlock(
                    uri=urljoin(f"{APPLE_DEVELOPER_ORIGIN}/", str(href)),
                    name=text,
                    description=f"Apple Developer Documentation: {text}",
                    mime_type="text/html",
                )
            )
    else:
        for element in soup.select("script, style, nav, header, footer"):
            element.decompose()
        body = soup.body if soup.body is not None else soup
        text = _WHITESPACE_RE.sub(" ", body.get_text(" ")).strip()[:_HTML_TEXT_LIMIT]
        markdown += f"## Content\n\n{text}\n\n"

    log.debug("html_formatted", url=url, has_main=main is not None, links=len(links))
    return FormattedContent(content=[TextBlock(text=markdown), *links])
