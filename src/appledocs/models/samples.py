from __future__ import annotations

from pydantic import BaseModel, Field


class CodeExcerpt(BaseModel):
    path: str  # Relative to the sample root
    language: str  # Markdown fence tag, "" when unknown
    content: str  # Leading lines only


class SampleAnalysis(BaseModel):
    """Summary of an unpacked sample-code archive."""

    name: str
    directory: str
    files: list[str] = Field(default_factory=list)  # Relative POSIX paths, sorted
    file_types: dict[str, int] = Field(default_factory=dict)  # Extension -> count
    readme: str | None = None
    excerpts: list[CodeExcerpt] = Field(default_factory=list)
    key_files: list[str] = Field(default_factory=list)
