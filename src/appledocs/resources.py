"""Resource registry: keeps MCP resources in step with the document cache.

Every cached document can be exposed as an MCP resource under a stable
``apple-docs://docs/<slug>`` URI. The registry records which cache keys have
been handed to the registrar and drops that bookkeeping again when the
document leaves the cache.

MCP has no primitive for withdrawing a resource, so ``unregister`` only
forgets the local entry. The registrar keeps its read callback, and that
callback resolves the cache by key on every read: once the document is gone
it raises ``DocumentNotFoundError``. That late-bound lookup is what actually
retires a resource from a client's point of view.

Registration failures never raise out of this module. They are logged and
reported through ``ResourceRegistration.success`` / ``error``.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING
from urllib.parse import urlsplit

import structlog

from appledocs.errors import DocumentNotFoundError
from appledocs.keys import derive_key
from appledocs.models.resources import (
    ResourceContent,
    ResourceMetadata,
    ResourceRegistration,
    ResourceStats,
)

if TYPE_CHECKING:
    from collections.abc import Iterable

    from appledocs.cache import DocumentCache
    from appledocs.models.cache import CachedDocument
    from appledocs.protocols import ReadCallback, ResourceRegistrar

log = structlog.get_logger()

RESOURCE_URI_SCHEME = "apple-docs://docs/"
RESOURCE_MIME_TYPE = "text/markdown"

# Path segments that only add structure to developer.apple.com URLs.
_STRUCTURAL_SEGMENTS = frozenset({"documentation"})
_UNKNOWN_SLUG = "unknown"

_NAME_DISALLOWED_RE = re.compile(r"[^a-zA-Z0-9\s\-.]")
_WHITESPACE_RE = re.compile(r"\s+")


def fallback_uri_for_key(key: str) -> str:
    """Synthetic URI used when no registered or derivable URI exists."""
    return f"{RESOURCE_URI_SCHEME}doc-{key[:8]}"


def resource_uri_for_url(url: str) -> str:
    """Derive the external resource URI for a documentation URL.

    ``https://developer.apple.com/documentation/mapkit/mapview`` becomes
    ``apple-docs://docs/mapkit/mapview``. URLs without a scheme and host fall
    back to a key-derived URI.
    """
    try:
        parts = urlsplit(url)
    except ValueError:
        return fallback_uri_for_key(derive_key(url))
    if not parts.scheme or not parts.netloc:
        return fallback_uri_for_key(derive_key(url))

    segments = [
        segment
        for segment in parts.path.split("/")
        if segment and segment not in _STRUCTURAL_SEGMENTS
    ]
    slug = "/".join(segments) or _UNKNOWN_SLUG
    return f"{RESOURCE_URI_SCHEME}{slug}"


def resource_name_for_title(title: str) -> str:
    """Sanitise a document title into a URI-safe resource name."""
    sanitized = _NAME_DISALLOWED_RE.sub("", title)
    return _WHITESPACE_RE.sub("-", sanitized).lower()


def resource_metadata_for(document: CachedDocument) -> ResourceMetadata:
    return ResourceMetadata(
        title=document.title,
        description=f"Apple Developer documentation: {document.title}",
        mime_type=RESOURCE_MIME_TYPE,
        source_url=document.url,
        doc_type=document.doc_type,
        cached_at=document.created_at,
    )


class ResourceRegistry:
    """Bookkeeping of cache key → MCP resource registration."""

    def __init__(self, cache: DocumentCache, registrar: ResourceRegistrar) -> None:
        self._cache = cache
        self._registrar = registrar
        self._registrations: dict[str, ResourceRegistration] = {}
        # doc_type per registered key, so type counters can be decremented
        # even after the document itself has been evicted.
        self._types: dict[str, str] = {}
        self._stats = ResourceStats()

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(self, document: CachedDocument) -> ResourceRegistration:
        """Register ``document`` as an MCP resource. Idempotent per cache key."""
        existing = self._registrations.get(document.key)
        if existing is not None:
            log.debug("resource_already_registered", key=document.key, uri=existing.uri)
            return existing.model_copy()

        uri = resource_uri_for_url(document.url)
        name = resource_name_for_title(document.title)
        metadata = resource_metadata_for(document)

        try:
            self._registrar.register(
                name,
                uri,
                metadata,
                self._make_read_callback(document.key, document.title, uri),
            )
        except Exception as exc:
            self._stats.total_resources += 1
            self._stats.failed_registrations += 1
            log.warning(
                "resource_registration_failed",
                key=document.key,
                uri=uri,
                title=document.title,
                exc_info=True,
            )
            return ResourceRegistration(uri=uri, name=name, success=False, error=str(exc))

        registration = ResourceRegistration(uri=uri, name=name, success=True)
        self._registrations[document.key] = registration
        self._types[document.key] = document.doc_type

        self._stats.total_resources += 1
        self._stats.successful_registrations += 1
        self._stats.resource_types[document.doc_type] = (
            self._stats.resource_types.get(document.doc_type, 0) + 1
        )
        log.info("resource_registered", key=document.key, uri=uri, doc_type=document.doc_type)
        return registration.model_copy()

    def register_all(
        self, documents: Iterable[CachedDocument] | None = None
    ) -> list[ResourceRegistration]:
        """Register every document, continuing past individual failures.

        Defaults to everything currently in the cache.
        """
        if documents is None:
            documents = self._cache.list_all()
        results = [self.register(document) for document in documents]
        successful = sum(1 for r in results if r.success)
        log.info(
            "resource_registration_batch_complete",
            successful=successful,
            failed=len(results) - successful,
        )
        return results

    def _make_read_callback(self, key: str, title: str, uri: str) -> ReadCallback:
        cache = self._cache

        def read() -> list[ResourceContent]:
            # Resolved at read time: the document may have been evicted or
            # replaced since registration.
            document = cache.get_by_key(key)
            if document is None:
                raise DocumentNotFoundError(title, key)
            return [ResourceContent(uri=uri, text=document.markdown, mime_type=RESOURCE_MIME_TYPE)]

        return read

    # ------------------------------------------------------------------
    # Unregistration
    # ------------------------------------------------------------------

    def unregister(self, key: str) -> bool:
        """Forget the registration for ``key``. Returns False if there was none.

        The registrar keeps its own handle; see the module docstring.
        """
        registration = self._registrations.pop(key, None)
        if registration is None:
            return False

        doc_type = self._types.pop(key, None)
        if doc_type is not None:
            self._stats.resource_types[doc_type] = max(
                0, self._stats.resource_types.get(doc_type, 0) - 1
            )
        log.info("resource_unregistered", key=key, uri=registration.uri)
        return True

    def cleanup_stale(self) -> int:
        """Unregister every key whose document is no longer cached."""
        stale = [key for key in self._registrations if not self._cache.has_key(key)]
        cleaned = sum(1 for key in stale if self.unregister(key))
        if cleaned:
            log.info("resource_stale_cleanup", cleaned=cleaned)
        return cleaned

    def refresh_all(self) -> list[ResourceRegistration]:
        """Drop stale registrations, then register whatever is cached."""
        log.info("resource_refresh_started", registered=len(self._registrations))
        self.cleanup_stale()
        return self.register_all()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def uri_for(self, key: str) -> str:
        registration = self._registrations.get(key)
        if registration is not None:
            return registration.uri
        return fallback_uri_for_key(key)

    def is_registered(self, key: str) -> bool:
        return key in self._registrations

    def get_registration(self, key: str) -> ResourceRegistration | None:
        registration = self._registrations.get(key)
        return registration.model_copy() if registration is not None else None

    def list_registrations(self) -> list[ResourceRegistration]:
        return [registration.model_copy() for registration in self._registrations.values()]

    def list_registered_keys(self) -> list[str]:
        return list(self._registrations)

    def list_uris(self) -> list[str]:
        return [registration.uri for registration in self._registrations.values()]

    def stats(self) -> ResourceStats:
        return self._stats.model_copy(
            update={
                "resource_types": dict(self._stats.resource_types),
                "registered_count": len(self._registrations),
            }
        )
