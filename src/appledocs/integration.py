"""Cache-aware wrapper around documentation formatting.

``CacheIntegration.cache_aware_format`` is the single entry point tool
handlers use. Per request, keyed by URL:

    lookup ─┬─ hit ──────────────────────────────────────────────► done
            └─ miss ─► format ─┬─ error ─────────────────────────► done
                               └─ capacity check ─┬─ full, no evict ─► done (uncached)
                                                  └─ evict? ─► store ─► register ─► done

Soft failures (capacity without eviction, registration errors, anything
unexpected while caching) come back as ``IntegrationResult.error``; the
formatted content is always returned. The size check, eviction and store run
without an ``await`` between them, so concurrent requests on the event loop
cannot push the cache past ``max_cache_size``.
"""

from __future__ import annotations

import inspect
from typing import TYPE_CHECKING, Any

import structlog

from appledocs.config import CacheSettings
from appledocs.keys import derive_key
from appledocs.models.content import FormattedContent, IntegrationResult, TextBlock
from appledocs.parser import detect_document_type, extract_title

if TYPE_CHECKING:
    from appledocs.cache import DocumentCache
    from appledocs.models.cache import CacheStats
    from appledocs.models.resources import ResourceStats
    from appledocs.protocols import FormatOperation, TitleExtractor, TypeClassifier
    from appledocs.resources import ResourceRegistry

CACHE_FULL_MESSAGE = "Cache size limit reached"


class CacheIntegration:
    """Coordinates the DocumentCache and ResourceRegistry for formatters."""

    def __init__(
        self,
        cache: DocumentCache,
        registry: ResourceRegistry,
        config: CacheSettings | None = None,
        *,
        title_extractor: TitleExtractor = extract_title,
        type_classifier: TypeClassifier = detect_document_type,
    ) -> None:
        self._cache = cache
        self._registry = registry
        self._config = config if config is not None else CacheSettings()
        self._extract_title = title_extractor
        self._classify = type_classifier

    @property
    def cache(self) -> DocumentCache:
        return self._cache

    @property
    def registry(self) -> ResourceRegistry:
        return self._registry

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    async def cache_aware_format(
        self,
        url: str,
        format_operation: FormatOperation,
        *,
        skip_cache: bool = False,
    ) -> IntegrationResult:
        """Serve ``url`` from cache, or format it and populate the cache."""
        cache_key = derive_key(url)
        log = structlog.get_logger().bind(url=url, cache_key=cache_key)

        if self._config.enabled and not skip_cache:
            cached = self._cache.get(url)
            if cached is not None:
                log.info("cache_hit", access_count=cached.access_count)
                return IntegrationResult(
                    content=FormattedContent(
                        content=[TextBlock(text=cached.markdown), *cached.links]
                    ),
                    from_cache=True,
                    cache_key=cache_key,
                    resource_uri=self._registry.uri_for(cached.key),
                )

        log.info("cache_miss_formatting", skip_cache=skip_cache)
        produced = format_operation()
        content: FormattedContent = await produced if inspect.isawaitable(produced) else produced

        if not self._config.enabled:
            return IntegrationResult(content=content, from_cache=False, cache_key=cache_key)

        if content.is_error:
            log.info("format_error_not_cached")
            return IntegrationResult(content=content, from_cache=False, cache_key=cache_key)

        try:
            return self._store_and_register(url, cache_key, content)
        except Exception as exc:
            log.warning("cache_integration_error", exc_info=True)
            return IntegrationResult(
                content=content,
                from_cache=False,
                cache_key=cache_key,
                error=str(exc),
            )

    def _store_and_register(
        self, url: str, cache_key: str, content: FormattedContent
    ) -> IntegrationResult:
        log = structlog.get_logger().bind(url=url, cache_key=cache_key)

        markdown = content.markdown()
        title = self._extract_title(markdown)
        doc_type = self._classify(url, markdown)

        # Checked on size alone: an overwrite at capacity evicts too.
        if self._at_capacity():
            if not self._config.auto_evict:
                log.warning("cache_size_limit_reached", max_cache_size=self._config.max_cache_size)
                return IntegrationResult(
                    content=content,
                    from_cache=False,
                    cache_key=cache_key,
                    error=CACHE_FULL_MESSAGE,
                )
            for evicted_key in self._cache.evict_lru(1):
                self._registry.unregister(evicted_key)

        document = self._cache.store(
            url, markdown=markdown, title=title, doc_type=doc_type, links=content.links()
        )
        log.info("cache_stored", title=title, doc_type=doc_type, size=self._cache.size())

        resource_uri: str | None = None
        error: str | None = None
        if self._config.register_resources:
            registration = self._registry.register(document)
            if registration.success:
                resource_uri = registration.uri
            else:
                error = f"Resource registration failed: {registration.error}"

        return IntegrationResult(
            content=content,
            from_cache=False,
            cache_key=cache_key,
            resource_uri=resource_uri,
            error=error,
        )

    def _at_capacity(self) -> bool:
        limit = self._config.max_cache_size
        return limit > 0 and self._cache.size() >= limit

    # ------------------------------------------------------------------
    # Administration
    # ------------------------------------------------------------------

    def cache_stats(self) -> CacheStats:
        return self._cache.stats()

    def resource_stats(self) -> ResourceStats:
        return self._registry.stats()

    @property
    def config(self) -> CacheSettings:
        return self._config.model_copy()

    def update_config(self, **changes: Any) -> CacheSettings:
        """Apply validated config changes. Returns the new config."""
        self._config = CacheSettings.model_validate({**self._config.model_dump(), **changes})
        return self.config

    def clear_all(self) -> tuple[int, int]:
        """Unregister every resource, then empty the cache.

        Returns ``(documents_removed, registrations_removed)``.
        """
        keys = set(self._cache.list_all_keys()) | set(self._registry.list_registered_keys())
        registrations_removed = sum(1 for key in keys if self._registry.unregister(key))
        documents_removed = self._cache.size()
        self._cache.clear()
        structlog.get_logger().info(
            "cache_cleared",
            documents_removed=documents_removed,
            registrations_removed=registrations_removed,
        )
        return documents_removed, registrations_removed
