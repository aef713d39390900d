from __future__ import annotations

from enum import StrEnum


class ErrorCode(StrEnum):
    PAGE_NOT_FOUND = "PAGE_NOT_FOUND"
    PAGE_FETCH_FAILED = "PAGE_FETCH_FAILED"
    URL_NOT_ALLOWED = "URL_NOT_ALLOWED"
    INVALID_INPUT = "INVALID_INPUT"
    SAMPLE_NOT_AVAILABLE = "SAMPLE_NOT_AVAILABLE"
    DOWNLOAD_TOO_LARGE = "DOWNLOAD_TOO_LARGE"
    INVALID_ARCHIVE = "INVALID_ARCHIVE"


class AppleDocsError(Exception):
    """Raised by tool handlers and the fetcher for expected failure conditions.

    Caught by server.py and serialised into the MCP error response.
    The format operation inside get_apple_doc_content converts it into an
    error result instead, so that nothing is cached for a failed fetch.
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        suggestion: str,
        recoverable: bool = False,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion
        self.recoverable = recoverable

    def to_dict(self) -> dict:
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "suggestion": self.suggestion,
                "recoverable": self.recoverable,
            }
        }


class DocumentNotFoundError(LookupError):
    """A registered resource was read after its cached document went away.

    Raised from resource read callbacks. MCP has no way to withdraw a
    registered resource, so this is how a client learns the entry was evicted.
    """

    def __init__(self, title: str, key: str) -> None:
        super().__init__(f"Documentation not found: {title}")
        self.title = title
        self.key = key


class ResourceUriConflictError(ValueError):
    """A resource URI is already registered for a different documentation page.

    Raised by the resource registrar; the registry reports it as a failed
    registration while the page itself stays cached.
    """

    def __init__(self, uri: str, owner: str) -> None:
        super().__init__(f"Resource URI {uri} already belongs to {owner}")
        self.uri = uri
        self.owner = owner
