"""Cache key derivation.

Keys are the lowercase hex SHA-256 digest of the source URL. No salt, so the
same URL maps to the same key in every process.
"""

from __future__ import annotations

import hashlib

KEY_LENGTH = 64


def derive_key(url: str) -> str:
    """Return the content-addressable cache key for ``url``."""
    return hashlib.sha256(url.encode("utf-8")).hexdigest()
