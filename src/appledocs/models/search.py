from __future__ import annotations

from typing import Literal

from pydantic import BaseModel

# Result kinds as tagged by CSS class on the search page
SearchResultType = Literal["documentation", "video", "sample", "general", "other"]
SearchFilter = Literal["all", "api", "guide", "sample", "video"]


class SearchResult(BaseModel):
    title: str
    url: str
    description: str = ""
    type: SearchResultType = "other"
