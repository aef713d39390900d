"""Formatter output shapes.

Mirrors the MCP tool result content: a list of text blocks and resource
links, plus an error flag set by formatters that could not produce a page.
"""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, Field


class TextBlock(BaseModel):
    type: Literal["text"] = "text"
    text: str


class ResourceLinkBlock(BaseModel):
    type: Literal["resource_link"] = "resource_link"
    uri: str
    name: str
    description: str | None = None
    mime_type: str = "text/html"


ContentBlock = Annotated[TextBlock | ResourceLinkBlock, Field(discriminator="type")]


class FormattedContent(BaseModel):
    content: list[ContentBlock] = Field(default_factory=list)
    is_error: bool = False

    @classmethod
    def from_text(cls, text: str, *, is_error: bool = False) -> FormattedContent:
        return cls(content=[TextBlock(text=text)], is_error=is_error)

    def markdown(self) -> str:
        """Join every text block into the single string that gets cached."""
        return "\n\n".join(block.text for block in self.content if isinstance(block, TextBlock))

    def links(self) -> list[ResourceLinkBlock]:
        return [block for block in self.content if isinstance(block, ResourceLinkBlock)]


class IntegrationResult(BaseModel):
    """Return value of CacheIntegration.cache_aware_format."""

    content: FormattedContent
    from_cache: bool
    cache_key: str
    resource_uri: str | None = None
    error: str | None = None  # Advisory; content is still usable
