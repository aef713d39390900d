"""Protocol interfaces for swappable components.

The registry, orchestrator and tool handlers reference these protocols, not
the concrete implementations. This allows:
- Tests to use lightweight fakes (e.g. a registrar that records calls)
- The MCP binding to live entirely in server.py
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from appledocs.models.content import FormattedContent
    from appledocs.models.resources import ResourceContent, ResourceMetadata

# Invoked by the registrar whenever a client reads the resource, possibly long
# after registration. Must resolve current cache state on every call.
ReadCallback = Callable[[], list["ResourceContent"]]

# Produces the formatted page on a cache miss. May be sync or async.
FormatOperation = Callable[[], "FormattedContent | Awaitable[FormattedContent]"]

TitleExtractor = Callable[[str], str]
TypeClassifier = Callable[[str, "str | None"], str]


class ResourceRegistrar(Protocol):
    """Interface for the external resource registration collaborator.

    There is deliberately no ``unregister``: MCP offers no way to withdraw a
    resource once registered.
    """

    def register(
        self,
        name: str,
        uri: str,
        metadata: ResourceMetadata,
        read_callback: ReadCallback,
    ) -> None: ...


class FetcherProtocol(Protocol):
    """Interface for the documentation fetcher."""

    async def fetch_json(self, url: str, max_depth: int = 2) -> dict[str, Any]: ...

    async def fetch_html(self, url: str) -> str: ...

    async def fetch_bytes(self, url: str, *, max_bytes: int) -> bytes: ...
