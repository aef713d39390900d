"""apple-docs-mcp: Apple Developer documentation over MCP, with an in-memory page cache."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

# Distribution name on the package index; also the MCP server name.
SERVER_NAME = "apple-docs-mcp"

try:
    __version__ = version(SERVER_NAME)
except PackageNotFoundError:
    # Running from a source checkout without installed metadata
    __version__ = "0.0.0+unknown"
