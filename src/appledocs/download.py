"""Sample-code download, extraction and analysis.

A sample is addressed either by its documentation page
(``developer.apple.com/documentation/...``), whose JSON carries
``sampleCodeDownload.action.identifier``, or directly by its archive URL on
``docs-assets.developer.apple.com``. The archive is downloaded through the
Fetcher, unpacked under ``samples.directory/<sample name>`` and summarised:
file list, counts per extension, README, a few code excerpts and the files
worth opening first.
"""

from __future__ import annotations

import asyncio
import io
import re
import shutil
import stat
import zipfile
from collections import Counter
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING, Any
from urllib.parse import urlsplit

import structlog

from appledocs.errors import AppleDocsError, ErrorCode
from appledocs.fetcher import SAMPLE_ASSETS_HOST
from appledocs.formatter import SAMPLE_CODE_BASE
from appledocs.models.samples import CodeExcerpt, SampleAnalysis

if TYPE_CHECKING:
    from appledocs.config import SampleSettings
    from appledocs.protocols import FetcherProtocol

log = structlog.get_logger()

README_LIMIT = 2000
EXCERPT_FILES = 3
EXCERPT_LINES = 50

_UNSAFE_NAME_RE = re.compile(r"[^A-Za-z0-9._-]")
_README_RE = re.compile(r"^readme(\.(md|txt))?$", re.IGNORECASE)
# macOS resource-fork folders that Finder adds to archives
_JUNK_DIRS = frozenset({"__MACOSX"})

_CODE_LANGUAGES = {
    ".swift": "swift",
    ".m": "objective-c",
    ".h": "objective-c",
    ".c": "c",
    ".cpp": "cpp",
    ".java": "java",
    ".kt": "kotlin",
    ".js": "javascript",
    ".py": "python",
}
_OTHER_LANGUAGES = {
    ".cc": "cpp",
    ".cxx": "cpp",
    ".rb": "ruby",
    ".sh": "bash",
    ".json": "json",
    ".xml": "xml",
    ".md": "markdown",
}

_KEY_FILE_PATTERNS = [
    re.compile(r"readme\.(md|txt)", re.IGNORECASE),
    re.compile(r"^main\.(swift|m|java|kt|js)$", re.IGNORECASE),
    re.compile(r"AppDelegate\.(swift|m)$"),
    re.compile(r"SceneDelegate\.(swift|m)$"),
    re.compile(r"ViewController\.(swift|m)$"),
    re.compile(r"ContentView\.swift$"),
    re.compile(r"build\.gradle$"),
    re.compile(r"index\.(html|js)$"),
    re.compile(r"package\.json$"),
]
# Xcode bundles are directories, so they are matched separately
_PROJECT_SUFFIXES = frozenset({".xcodeproj", ".xcworkspace"})


# ---------------------------------------------------------------------------
# Locating the archive
# ---------------------------------------------------------------------------


def sample_download_url(data: dict[str, Any]) -> str | None:
    """Archive URL from a documentation JSON payload, if the page has one."""
    download = data.get("sampleCodeDownload")
    action = download.get("action") if isinstance(download, dict) else None
    identifier = action.get("identifier") if isinstance(action, dict) else None
    if not identifier:
        return None
    return f"{SAMPLE_CODE_BASE}{identifier}"


async def resolve_download_url(url: str, fetcher: FetcherProtocol) -> str:
    if urlsplit(url).hostname == SAMPLE_ASSETS_HOST:
        return url

    data = await fetcher.fetch_json(url, max_depth=0)
    download_url = sample_download_url(data)
    if download_url is None:
        raise AppleDocsError(
            code=ErrorCode.SAMPLE_NOT_AVAILABLE,
            message=f"No sample code download found for {url}",
            suggestion="Pass a sample-code documentation page or a docs-assets ZIP URL.",
            recoverable=False,
        )
    log.info("sample_download_resolved", url=url, download_url=download_url)
    return download_url


def sample_name_for(download_url: str) -> str:
    """Directory name for an archive: its file name without ``.zip``, made path-safe."""
    name = PurePosixPath(urlsplit(download_url).path).name.removesuffix(".zip")
    return _UNSAFE_NAME_RE.sub("-", name).strip(".-") or "sample"


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------


def _invalid_archive(message: str) -> AppleDocsError:
    return AppleDocsError(
        code=ErrorCode.INVALID_ARCHIVE,
        message=message,
        suggestion="The download is not a usable sample-code archive.",
        recoverable=False,
    )


def _member_path(member_name: str) -> Path:
    relative = PurePosixPath(member_name.replace("\\", "/"))
    if relative.is_absolute() or any(part in {"", ".", ".."} for part in relative.parts):
        raise _invalid_archive(f"Unsafe path in archive: {member_name}")
    return Path(*relative.parts)


def extract_archive(data: bytes, destination: Path, *, max_extracted_bytes: int) -> int:
    """Unpack a ZIP archive into ``destination``. Returns the number of files written.

    Rejects absolute or parent-relative member paths and symlinks, and refuses
    archives whose uncompressed size exceeds ``max_extracted_bytes``.
    Existing files are overwritten.
    """
    try:
        archive = zipfile.ZipFile(io.BytesIO(data))
    except zipfile.BadZipFile as exc:
        raise _invalid_archive(f"Not a ZIP archive: {exc}") from exc

    with archive:
        members: list[tuple[zipfile.ZipInfo, Path]] = []
        total = 0
        for member in archive.infolist():
            path = _member_path(member.filename)
            if path.parts and path.parts[0] in _JUNK_DIRS:
                continue
            if stat.S_ISLNK(member.external_attr >> 16):
                raise _invalid_archive(f"Symlink in archive: {member.filename}")
            total += member.file_size
            members.append((member, path))

        if total > max_extracted_bytes:
            raise _invalid_archive(
                f"Archive expands to {total} bytes (limit {max_extracted_bytes})"
            )

        written = 0
        destination.mkdir(parents=True, exist_ok=True)
        for member, path in members:
            target = destination / path
            if member.is_dir():
                target.mkdir(parents=True, exist_ok=True)
                continue
            target.parent.mkdir(parents=True, exist_ok=True)
            with archive.open(member) as source, target.open("wb") as sink:
                shutil.copyfileobj(source, sink)
            written += 1
    return written


# ---------------------------------------------------------------------------
# Analysis
# ---------------------------------------------------------------------------


def language_for(path: str) -> str:
    """Markdown fence tag for a file, or "" when unknown."""
    suffix = PurePosixPath(path).suffix.lower()
    return _CODE_LANGUAGES.get(suffix) or _OTHER_LANGUAGES.get(suffix, "")


def _read_text(path: Path) -> str:
    return path.read_text(encoding="utf-8", errors="replace")


def _find_readme(directory: Path, files: list[str]) -> str | None:
    candidates = [f for f in files if _README_RE.match(PurePosixPath(f).name)]
    if not candidates:
        return None
    # Shallowest README wins; archives usually wrap everything in one folder
    shallowest = min(candidates, key=lambda f: (len(PurePosixPath(f).parts), f))
    return _read_text(directory / shallowest)[:README_LIMIT]


def _excerpts(directory: Path, files: list[str]) -> list[CodeExcerpt]:
    code_files = [f for f in files if PurePosixPath(f).suffix in _CODE_LANGUAGES]
    excerpts = []
    for relative in code_files[:EXCERPT_FILES]:
        lines = _read_text(directory / relative).split("\n")[:EXCERPT_LINES]
        excerpts.append(
            CodeExcerpt(path=relative, language=language_for(relative), content="\n".join(lines))
        )
    return excerpts


def _key_files(directory: Path, files: list[str]) -> list[str]:
    keys = set()
    for relative in files:
        path = PurePosixPath(relative)
        if any(pattern.search(path.name) for pattern in _KEY_FILE_PATTERNS):
            keys.add(relative)
        elif path.name.startswith("Main") and path.parent.name != "Resources":
            keys.add(relative)
    for bundle in directory.rglob("*"):
        if bundle.is_dir() and bundle.suffix in _PROJECT_SUFFIXES:
            keys.add(bundle.relative_to(directory).as_posix())
    return sorted(keys)


def analyze_sample(name: str, directory: Path) -> SampleAnalysis:
    paths = sorted(p for p in directory.rglob("*") if p.is_file())
    files = [p.relative_to(directory).as_posix() for p in paths]
    counts = Counter(PurePosixPath(f).suffix or "(no extension)" for f in files)

    return SampleAnalysis(
        name=name,
        directory=str(directory),
        files=files,
        file_types=dict(sorted(counts.items())),
        readme=_find_readme(directory, files),
        excerpts=_excerpts(directory, files),
        key_files=_key_files(directory, files),
    )


def render_sample_report(analysis: SampleAnalysis, download_url: str, url: str) -> str:
    markdown = f"# Code Sample: {analysis.name}\n\n"
    markdown += f"**Source:** [{download_url}]({download_url})\n\n"
    markdown += f"**Original URL:** {url if url != download_url else 'Same as download URL'}\n\n"
    markdown += f"**Extracted to:** {analysis.directory}\n\n"

    if analysis.readme:
        markdown += f"## README\n\n{analysis.readme}\n\n"

    markdown += "## Contents\n\n"
    markdown += f"The sample contains {len(analysis.files)} files:\n\n"
    markdown += "### File Types\n\n"
    for suffix, count in analysis.file_types.items():
        markdown += f"- {suffix}: {count} files\n"
    markdown += "\n"

    if analysis.excerpts:
        markdown += "## Representative Code Samples\n\n"
        for excerpt in analysis.excerpts:
            markdown += f"### {excerpt.path}\n\n```{excerpt.language}\n{excerpt.content}\n```\n\n"

    if analysis.key_files:
        markdown += "## Key Files to Explore\n\n"
        markdown += "".join(f"- `{path}`\n" for path in analysis.key_files)
        markdown += "\n"

    markdown += "## Opening the Project\n\n"
    markdown += "You can open this project in Xcode by:\n\n"
    markdown += "1. Looking for a .xcodeproj or .xcworkspace file in the extracted directory\n"
    markdown += (
        "2. Double-clicking the project file or opening it from Xcode's \"Open...\" menu\n\n"
    )
    markdown += f"The sample code has been downloaded and extracted to: `{analysis.directory}`\n"
    return markdown


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


async def download_sample(
    url: str, *, fetcher: FetcherProtocol, settings: SampleSettings
) -> tuple[str, SampleAnalysis]:
    """Resolve, download, unpack and analyse a sample. Returns ``(download_url, analysis)``."""
    download_url = await resolve_download_url(url, fetcher)
    data = await fetcher.fetch_bytes(download_url, max_bytes=settings.max_download_bytes)

    name = sample_name_for(download_url)
    destination = Path(settings.directory) / name
    if destination.is_dir():
        log.info("sample_overwriting_existing", directory=str(destination))

    # File I/O runs off the event loop
    written = await asyncio.to_thread(
        extract_archive, data, destination, max_extracted_bytes=settings.max_extracted_bytes
    )
    log.info("sample_extracted", name=name, directory=str(destination), files=written)

    analysis = await asyncio.to_thread(analyze_sample, name, destination)
    return download_url, analysis
