"""In-memory document cache with access-count LRU eviction.

Entries are keyed by ``derive_key(url)``, never by the URL itself. Lookups
that find an entry bump its ``access_count``; eviction removes the entries
with the lowest count first, oldest ``created_at`` breaking ties.

Not-found is always ``None`` (or ``False`` for deletes). Nothing here raises
for well-formed input. The cache runs on a single event loop with no
``await`` inside any operation, so the dict needs no locking.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

import structlog

from appledocs.keys import derive_key
from appledocs.models.cache import CachedDocument, CacheStats

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from appledocs.models.content import ResourceLinkBlock

log = structlog.get_logger()

# Rough per-entry figures for stats(): two bytes per character plus a fixed
# object overhead.
_BYTES_PER_CHAR = 2
_ENTRY_OVERHEAD_BYTES = 100


def _utcnow() -> datetime:
    return datetime.now(UTC)


class DocumentCache:
    """Key → CachedDocument store."""

    def __init__(self, clock: Callable[[], datetime] = _utcnow) -> None:
        self._entries: dict[str, CachedDocument] = {}
        self._clock = clock

    # ------------------------------------------------------------------
    # Read / write
    # ------------------------------------------------------------------

    def store(
        self,
        url: str,
        *,
        markdown: str,
        title: str,
        doc_type: str,
        links: Iterable[ResourceLinkBlock] = (),
    ) -> CachedDocument:
        """Insert or overwrite the entry for ``url``.

        Overwriting replaces the document wholesale: ``access_count`` goes back
        to 0 and ``created_at`` to now.
        """
        document = CachedDocument(
            url=url,
            key=derive_key(url),
            markdown=markdown,
            title=title,
            doc_type=doc_type,
            created_at=self._clock(),
            access_count=0,
            links=list(links),
        )
        self._entries[document.key] = document
        log.debug("cache_store", key=document.key, url=url, doc_type=doc_type)
        return document

    def get(self, url: str) -> CachedDocument | None:
        """Look up by URL. A hit increments ``access_count``."""
        return self.get_by_key(derive_key(url))

    def get_by_key(self, key: str) -> CachedDocument | None:
        """Look up by cache key. A hit increments ``access_count``."""
        document = self._entries.get(key)
        if document is not None:
            document.access_count += 1
        return document

    def peek_by_key(self, key: str) -> CachedDocument | None:
        """Look up by cache key without touching ``access_count``."""
        return self._entries.get(key)

    def has(self, url: str) -> bool:
        return derive_key(url) in self._entries

    def has_key(self, key: str) -> bool:
        return key in self._entries

    def delete(self, url: str) -> bool:
        return self.delete_by_key(derive_key(url))

    def delete_by_key(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    def list_all(self) -> list[CachedDocument]:
        return list(self._entries.values())

    def list_all_keys(self) -> list[str]:
        return list(self._entries)

    def size(self) -> int:
        return len(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def clear(self) -> None:
        self._entries.clear()

    def stats(self) -> CacheStats:
        documents = self.list_all()
        total_documents = len(documents)
        total_access_count = sum(doc.access_count for doc in documents)
        estimated_memory_usage = sum(
            _BYTES_PER_CHAR
            * (
                len(doc.url)
                + len(doc.key)
                + len(doc.markdown)
                + len(doc.title)
                + len(doc.doc_type)
            )
            + _ENTRY_OVERHEAD_BYTES
            for doc in documents
        )
        return CacheStats(
            total_documents=total_documents,
            total_access_count=total_access_count,
            average_access_count=(
                total_access_count / total_documents if total_documents else 0.0
            ),
            estimated_memory_usage=estimated_memory_usage,
        )

    # ------------------------------------------------------------------
    # Eviction
    # ------------------------------------------------------------------

    def least_recently_used(self, count: int) -> list[CachedDocument]:
        """Return up to ``count`` eviction candidates, best candidate first.

        Ordered by ascending ``access_count``, then ascending ``created_at``.
        """
        if count <= 0:
            return []
        ranked = sorted(self._entries.values(), key=lambda doc: (doc.access_count, doc.created_at))
        return ranked[:count]

    def evict_lru(self, count: int) -> list[str]:
        """Evict up to ``count`` entries. Returns the keys actually removed."""
        evicted = [
            doc.key for doc in self.least_recently_used(count) if self.delete_by_key(doc.key)
        ]
        if evicted:
            log.info("cache_evicted", count=len(evicted), keys=evicted)
        return evicted
