"""Content fetcher: turn one repository path into one formatted output block.

Every path produces a block.  Binary files and unreachable files become a
one-line bracketed placeholder under the same header, so a single bad file
never aborts an acquisition.
"""

from __future__ import annotations

import logging

from repo_extractor.domain.entities import (
    FetchedFile,
    FileKind,
    HeaderStyle,
    RawContent,
    RepositoryIdentity,
)
from repo_extractor.domain.ports.content_source import ContentSource
from repo_extractor.services.binary_classifier import is_binary

logger = logging.getLogger(__name__)

SEPARATOR = "=" * 80
DEFAULT_MAX_LINES = 2000

BINARY_PLACEHOLDER = "[Binary file - content skipped]"
UNAVAILABLE_PLACEHOLDER = "[File content could not be retrieved]"

_SNIFF_BYTES = 8192
_NON_TEXT_MEDIA_PREFIXES: tuple[str, ...] = ("image/", "audio/", "video/", "font/")
_NON_TEXT_MEDIA_TYPES: frozenset[str] = frozenset(
    {"application/octet-stream", "application/zip", "application/pdf"}
)


def count_lines(text: str) -> int:
    """Newline-delimited line count (an empty file is one empty line)."""
    return len(text.split("\n"))


def truncate_lines(text: str, max_lines: int) -> tuple[str, int]:
    """Return ``(body, total_lines)`` keeping at most *max_lines* lines plus a notice."""
    lines = text.split("\n")
    total = len(lines)
    if max_lines <= 0 or total <= max_lines:
        return text, total
    kept = "\n".join(lines[:max_lines])
    return f"{kept}\n[... truncated: showing {max_lines} of {total} lines]", total


def format_block(path: str, body: str, style: HeaderStyle = HeaderStyle.SEPARATOR) -> str:
    """Prefix *body* with a path header and close it with a blank line."""
    if style is HeaderStyle.MARKER:
        header = f"# /{path}\n"
    else:
        header = f"{SEPARATOR}\n{path}\n{SEPARATOR}\n"
    return f"{header}{body}\n\n"


def looks_textual(raw: RawContent) -> bool:
    """Return *False* when the transport or the bytes themselves say "binary"."""
    media_type = (raw.media_type or "").split(";")[0].strip().lower()
    if media_type.startswith(_NON_TEXT_MEDIA_PREFIXES) or media_type in _NON_TEXT_MEDIA_TYPES:
        return False
    return b"\x00" not in raw.data[:_SNIFF_BYTES]


class ContentFetcher:
    """Retrieve, decode, truncate and format the content of single files."""

    def __init__(
        self,
        max_lines: int = DEFAULT_MAX_LINES,
        header_style: HeaderStyle = HeaderStyle.SEPARATOR,
    ) -> None:
        self._max_lines = max_lines
        self._style = header_style

    def placeholder(self, path: str, kind: FileKind) -> FetchedFile:
        text = BINARY_PLACEHOLDER if kind is FileKind.BINARY else UNAVAILABLE_PLACEHOLDER
        return FetchedFile(
            path=path,
            formatted_content=format_block(path, text, self._style),
            line_count=1,
            kind=kind,
        )

    async def fetch(
        self,
        identity: RepositoryIdentity,
        branch: str,
        path: str,
        source: ContentSource,
    ) -> FetchedFile:
        """Return the formatted block for *path*; ordinary errors become placeholders."""
        if is_binary(path):
            return self.placeholder(path, FileKind.BINARY)

        try:
            raw = await source.read(identity, branch, path)
        except Exception as exc:
            logger.debug("Could not retrieve %s: %s", path, exc)
            return self.placeholder(path, FileKind.UNAVAILABLE)

        if not looks_textual(raw):
            return self.placeholder(path, FileKind.BINARY)

        try:
            text = raw.data.decode("utf-8")
        except UnicodeDecodeError:
            logger.debug("%s is not valid UTF-8, treating as binary", path)
            return self.placeholder(path, FileKind.BINARY)

        body, total = truncate_lines(text, self._max_lines)
        if total > self._max_lines > 0:
            logger.debug("Truncated %s to %d of %d lines", path, self._max_lines, total)

        return FetchedFile(
            path=path,
            formatted_content=format_block(path, body, self._style),
            line_count=total,
            kind=FileKind.TEXT,
        )
