"""Shape of Apple's JSON documentation payloads.

Only the fields the formatter renders are modelled. ``primaryContentSections``
is a tagged union over ``kind`` with an ``UnknownSection`` fallback, so a new
section kind from upstream degrades to "not rendered" instead of a
validation error. Inline and block content stay as plain dict trees.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Discriminator, Field, Tag

InlineContent = list[dict[str, Any]]
BlockContent = list[dict[str, Any]]


class _DocModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class DeclarationToken(_DocModel):
    kind: str | None = None
    text: str = ""


class Declaration(_DocModel):
    tokens: list[DeclarationToken] = Field(default_factory=list)
    languages: list[str] = Field(default_factory=list)


class DeclarationsSection(_DocModel):
    kind: Literal["declarations"] = "declarations"
    declarations: list[Declaration] = Field(default_factory=list)


class ContentSection(_DocModel):
    kind: Literal["content"] = "content"
    content: BlockContent = Field(default_factory=list)


class Parameter(_DocModel):
    name: str
    content: BlockContent = Field(default_factory=list)


class ParametersSection(_DocModel):
    kind: Literal["parameters"] = "parameters"
    parameters: list[Parameter] = Field(default_factory=list)


class ReturnValueSection(_DocModel):
    kind: Literal["returnValue"] = "returnValue"
    content: BlockContent = Field(default_factory=list)


class UnknownSection(_DocModel):
    model_config = ConfigDict(extra="allow")

    kind: str | None = None


_KNOWN_SECTION_KINDS = frozenset({"declarations", "content", "parameters", "returnValue"})


def _section_tag(value: Any) -> str:
    kind = value.get("kind") if isinstance(value, dict) else getattr(value, "kind", None)
    return kind if kind in _KNOWN_SECTION_KINDS else "unknown"


PrimaryContentSection = Annotated[
    Annotated[DeclarationsSection, Tag("declarations")]
    | Annotated[ContentSection, Tag("content")]
    | Annotated[ParametersSection, Tag("parameters")]
    | Annotated[ReturnValueSection, Tag("returnValue")]
    | Annotated[UnknownSection, Tag("unknown")],
    Discriminator(_section_tag),
]


class Platform(_DocModel):
    name: str
    introduced_at: str | None = Field(default=None, alias="introducedAt")
    beta: bool = False


class DocMetadata(_DocModel):
    title: str | None = None
    role_heading: str | None = Field(default=None, alias="roleHeading")
    platforms: list[Platform] = Field(default_factory=list)


class Reference(_DocModel):
    title: str | None = None
    url: str | None = None
    type: str | None = None
    role: str | None = None
    abstract: InlineContent = Field(default_factory=list)


class IdentifierSection(_DocModel):
    """topicSections / relationshipsSections / seeAlsoSections entry."""

    title: str | None = None
    identifiers: list[str] = Field(default_factory=list)


class SampleCodeAction(_DocModel):
    identifier: str | None = None


class SampleCodeDownload(_DocModel):
    title: str | None = None
    action: SampleCodeAction | None = None


class AppleDocument(_DocModel):
    """Top-level JSON documentation payload."""

    identifier: dict[str, Any] | str | None = None
    title: str | None = None
    abstract: InlineContent = Field(default_factory=list)
    metadata: DocMetadata = Field(default_factory=DocMetadata)
    primary_content_sections: list[PrimaryContentSection] | None = Field(
        default=None, alias="primaryContentSections"
    )
    topic_sections: list[IdentifierSection] = Field(default_factory=list, alias="topicSections")
    relationships_sections: list[IdentifierSection] = Field(
        default_factory=list, alias="relationshipsSections"
    )
    see_also_sections: list[IdentifierSection] = Field(
        default_factory=list, alias="seeAlsoSections"
    )
    sample_code_download: SampleCodeDownload | None = Field(
        default=None, alias="sampleCodeDownload"
    )
    references: dict[str, Reference] = Field(default_factory=dict)
