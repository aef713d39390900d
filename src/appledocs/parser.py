"""Title extraction and document-type classification for formatted pages.

Both functions are pure and total: any input yields a usable value, falling
back to ``"Untitled Document"`` and ``"documentation"`` respectively. The
type is only used for resource statistics and never affects caching.
"""

from __future__ import annotations

import re
from urllib.parse import urlsplit

DEFAULT_TITLE = "Untitled Document"
DEFAULT_DOC_TYPE = "documentation"

_H1_RE = re.compile(r"^#\s+(.+)$", re.MULTILINE)
_H2_RE = re.compile(r"^##\s+(.+)$", re.MULTILINE)
_SOURCE_LINK_RE = re.compile(r"\*\*Source:\*\*\s+\[([^\]]+)\]")

# Checked in order against the lowercased path.
_PATH_MARKERS: tuple[tuple[str, str], ...] = (
    ("/tutorials/", "tutorial"),
    ("/sample-code/", "sample"),
    ("/guides/", "guide"),
)
_SYMBOL_KINDS: tuple[str, ...] = ("protocol", "class", "struct", "enum")
_CONTENT_MARKERS: tuple[tuple[str, str], ...] = (
    ("## Declaration", "api"),
    ("## Tutorial", "tutorial"),
    ("## Sample Code", "sample"),
)


def extract_title(markdown: str) -> str:
    """Return the first H1, else the first H2, else the Source link text."""
    for pattern in (_H1_RE, _H2_RE):
        match = pattern.search(markdown)
        if match:
            return match.group(1).strip()

    match = _SOURCE_LINK_RE.search(markdown)
    if match:
        return match.group(1)

    return DEFAULT_TITLE


def _type_from_path(url: str) -> str | None:
    try:
        path = urlsplit(url).path.lower()
    except ValueError:
        return None

    if "/documentation/" not in path:
        return None

    for marker, doc_type in _PATH_MARKERS:
        if marker in path:
            return doc_type

    segments = [s for s in path.split("/") if s]
    if len(segments) == 2:
        # /documentation/swiftui
        return "framework"
    if len(segments) >= 3:
        last = segments[-1]
        for kind in _SYMBOL_KINDS:
            if kind in last:
                return kind
        return "api"
    return None


def detect_document_type(url: str, content: str | None = None) -> str:
    """Classify a page from its URL path, then from its markdown."""
    doc_type = _type_from_path(url)
    if doc_type is not None:
        return doc_type

    if content:
        for marker, content_type in _CONTENT_MARKERS:
            if marker in content:
                return content_type

    return DEFAULT_DOC_TYPE
