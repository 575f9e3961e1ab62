"""Domain entities: pure data structures with no external dependencies."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from repo_extractor.domain.ports.content_source import ContentSource


class FileKind(str, Enum):
    """What a fetched block ended up containing."""

    TEXT = "text"
    BINARY = "binary"
    UNAVAILABLE = "unavailable"


class HeaderStyle(str, Enum):
    """How each file block is introduced in the output."""

    SEPARATOR = "separator"  # ===== / path / =====
    MARKER = "marker"  # "# /path"


class DiscoveryPolicy(str, Enum):
    """Which discovery result the orchestrator accepts."""

    FIRST_NON_EMPTY = "first_non_empty"
    MOST_FILES = "most_files"


@dataclass(frozen=True, slots=True)
class RepositoryIdentity:
    """The (owner, name) pair addressing one repository."""

    owner: str
    name: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"


@dataclass(frozen=True, slots=True)
class FileNode:
    """A single node from the GitHub tree API (blob or sub-tree)."""

    path: str
    type: str  # "blob", "tree" or "commit"


@dataclass(frozen=True, slots=True)
class RepoMetadata:
    """High-level metadata about a GitHub repository."""

    owner: str
    name: str
    default_branch: str


@dataclass(frozen=True, slots=True)
class RawContent:
    """Undecoded bytes of one file as returned by a transport."""

    data: bytes
    media_type: str | None = None


@dataclass(frozen=True, slots=True)
class Discovery:
    """Candidate paths produced by one strategy, plus the transport to read them."""

    strategy: str
    paths: list[str] = field(default_factory=list)
    source: ContentSource | None = None

    def __bool__(self) -> bool:
        return bool(self.paths) and self.source is not None


@dataclass(frozen=True, slots=True)
class FetchedFile:
    """One formatted block of the output artifact."""

    path: str
    formatted_content: str
    line_count: int
    kind: FileKind = FileKind.TEXT


@dataclass(frozen=True, slots=True)
class AcquisitionResult:
    """The final artifact returned to the caller."""

    content: str
    file_count: int
    line_count: int


@dataclass(frozen=True, slots=True)
class ProcessingLogEntry:
    """One acquisition attempt, as handed to the log store."""

    repository_url: str
    file_count: int
    line_count: int
    processed_at: str
    success: bool
    error_message: str | None = None


@dataclass(frozen=True, slots=True)
class ProcessingLogRecord:
    """A stored :class:`ProcessingLogEntry` with its assigned id."""

    id: int
    entry: ProcessingLogEntry
