"""Shared test fixtures for the appledocs test suite."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

import pytest

from appledocs.cache import DocumentCache
from appledocs.config import CacheSettings
from appledocs.integration import CacheIntegration
from appledocs.resources import ResourceRegistry

if TYPE_CHECKING:
    from appledocs.models.resources import ResourceMetadata
    from appledocs.protocols import ReadCallback


class ManualClock:
    """Deterministic clock: every call returns a time one second later."""

    def __init__(self) -> None:
        self._now = datetime(2026, 1, 1, tzinfo=UTC)

    def __call__(self) -> datetime:
        self._now += timedelta(seconds=1)
        return self._now


@dataclass
class RegisteredResource:
    name: str
    uri: str
    metadata: ResourceMetadata
    read_callback: ReadCallback


@dataclass
class FakeRegistrar:
    """In-memory ResourceRegistrar that records every call."""

    registered: list[RegisteredResource] = field(default_factory=list)
    fail_with: Exception | None = None

    def register(
        self,
        name: str,
        uri: str,
        metadata: ResourceMetadata,
        read_callback: ReadCallback,
    ) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        self.registered.append(RegisteredResource(name, uri, metadata, read_callback))

    def by_uri(self, uri: str) -> RegisteredResource:
        return next(r for r in self.registered if r.uri == uri)


@pytest.fixture()
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture()
def cache(clock: ManualClock) -> DocumentCache:
    return DocumentCache(clock=clock)


@pytest.fixture()
def registrar() -> FakeRegistrar:
    return FakeRegistrar()


@pytest.fixture()
def registry(cache: DocumentCache, registrar: FakeRegistrar) -> ResourceRegistry:
    return ResourceRegistry(cache, registrar)


@pytest.fixture()
def make_integration(cache: DocumentCache, registry: ResourceRegistry):
    """Factory for a CacheIntegration over the shared cache and registry."""

    def _make(**config: object) -> CacheIntegration:
        return CacheIntegration(cache, registry, CacheSettings(**config))

    return _make
