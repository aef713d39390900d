from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class ResourceMetadata(BaseModel):
    """Descriptive fields handed to the MCP resource registrar."""

    title: str
    description: str
    mime_type: str = "text/markdown"
    source_url: str
    doc_type: str
    cached_at: datetime


class ResourceRegistration(BaseModel):
    """Outcome of registering one cached document as an MCP resource."""

    uri: str
    name: str
    success: bool = False
    error: str | None = None  # Set iff success is False


class ResourceContent(BaseModel):
    """Single item returned by a resource read callback."""

    uri: str
    text: str
    mime_type: str = "text/markdown"


class ResourceStats(BaseModel):
    total_resources: int = 0
    successful_registrations: int = 0
    failed_registrations: int = 0
    resource_types: dict[str, int] = Field(default_factory=dict)
    registered_count: int = 0  # Live bookkeeping entries right now
