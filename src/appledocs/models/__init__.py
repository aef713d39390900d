from __future__ import annotations

from appledocs.models.cache import CachedDocument, CacheStats
from appledocs.models.content import (
    ContentBlock,
    FormattedContent,
    IntegrationResult,
    ResourceLinkBlock,
    TextBlock,
)
from appledocs.models.resources import (
    ResourceContent,
    ResourceMetadata,
    ResourceRegistration,
    ResourceStats,
)
from appledocs.models.samples import CodeExcerpt, SampleAnalysis
from appledocs.models.search import SearchFilter, SearchResult, SearchResultType
from appledocs.models.tools import (
    CacheStatsOutput,
    ClearCacheOutput,
    DownloadSampleInput,
    DownloadSampleOutput,
    GetDocContentInput,
    GetDocContentOutput,
    SearchDocsInput,
    SearchDocsOutput,
)

__all__ = [
    # cache
    "CachedDocument",
    "CacheStats",
    # content
    "ContentBlock",
    "TextBlock",
    "ResourceLinkBlock",
    "FormattedContent",
    "IntegrationResult",
    # resources
    "ResourceMetadata",
    "ResourceRegistration",
    "ResourceContent",
    "ResourceStats",
    # search
    "SearchFilter",
    "SearchResult",
    "SearchResultType",
    # samples
    "CodeExcerpt",
    "SampleAnalysis",
    # tools
    "GetDocContentInput",
    "GetDocContentOutput",
    "SearchDocsInput",
    "SearchDocsOutput",
    "DownloadSampleInput",
    "DownloadSampleOutput",
    "CacheStatsOutput",
    "ClearCacheOutput",
]
