from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from appledocs.models.content import ResourceLinkBlock


class CachedDocument(BaseModel):
    """Formatted documentation page held in the in-memory cache."""

    url: str
    key: str  # SHA-256 of url (cache key)
    markdown: str  # Formatted page markdown
    title: str
    doc_type: str  # "api" | "guide" | "tutorial" | "sample" | ... | "documentation"
    created_at: datetime
    access_count: int = 0
    links: list[ResourceLinkBlock] = []  # Served again on a cache hit


class CacheStats(BaseModel):
    """Aggregate view over the cache, computed on demand."""

    total_documents: int
    total_access_count: int
    average_access_count: float
    estimated_memory_usage: int  # Rough byte estimate, advisory only
