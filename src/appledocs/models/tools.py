from __future__ import annotations

from urllib.parse import urlparse

from pydantic import BaseModel, field_validator

from appledocs.config import CacheSettings
from appledocs.fetcher import APPLE_DOCS_HOST, SAMPLE_ASSETS_HOST, canonical_doc_url
from appledocs.models.cache import CacheStats
from appledocs.models.content import ResourceLinkBlock
from appledocs.models.resources import ResourceStats
from appledocs.models.samples import SampleAnalysis
from appledocs.models.search import SearchFilter, SearchResult


def _validate_http_url(v: str, hosts: frozenset[str]) -> str:
    v = v.strip()
    if len(v) > 2048:
        raise ValueError("url must be <= 2048 characters")
    parsed = urlparse(v)
    if parsed.scheme not in {"http", "https"}:
        raise ValueError("url must use http or https")
    if parsed.hostname not in hosts:
        raise ValueError(f"url must be from {' or '.join(sorted(hosts))}")
    return v


class GetDocContentInput(BaseModel):
    url: str
    skip_cache: bool = False

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        # Equivalent spellings must land on one cache key and resource URI
        return canonical_doc_url(_validate_http_url(v, frozenset({APPLE_DOCS_HOST})))


class GetDocContentOutput(BaseModel):
    url: str
    content: str  # Page markdown
    links: list[ResourceLinkBlock] = []  # Same on a cache hit as on the miss
    cached: bool
    cache_key: str
    resource_uri: str | None = None
    warning: str | None = None  # Soft cache/registration failure
    is_error: bool = False


class SearchDocsInput(BaseModel):
    query: str
    type: SearchFilter = "all"

    @field_validator("query")
    @classmethod
    def validate_query(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("query must not be empty")
        if len(v) > 500:
            raise ValueError("query must be <= 500 characters")
        return v


class SearchDocsOutput(BaseModel):
    query: str
    type: SearchFilter
    search_url: str
    results: list[SearchResult]
    content: str  # Markdown listing of results


class DownloadSampleInput(BaseModel):
    zip_url: str

    @field_validator("zip_url")
    @classmethod
    def validate_zip_url(cls, v: str) -> str:
        return _validate_http_url(v, frozenset({APPLE_DOCS_HOST, SAMPLE_ASSETS_HOST}))


class DownloadSampleOutput(BaseModel):
    url: str  # As requested
    download_url: str  # Resolved archive URL on the assets host
    sample: SampleAnalysis
    content: str  # Markdown report


class CacheStatsOutput(BaseModel):
    cache: CacheStats
    resources: ResourceStats
    config: CacheSettings


class ClearCacheOutput(BaseModel):
    documents_removed: int
    registrations_removed: int
