"""Domain exception hierarchy.

Adapters raise these; the services recover from them phase by phase and
only the interface layer ever turns one into an HTTP response.
"""

from __future__ import annotations


class RepoExtractorError(Exception):
    """Base exception for the entire application."""


# ── Input validation ────────────────────────────────────────────────────────


class InvalidGitHubUrlError(RepoExtractorError):
    """The supplied URL does not point to a valid GitHub repository."""


# ── GitHub API errors ───────────────────────────────────────────────────────


class RepositoryNotFoundError(RepoExtractorError):
    """The repository or branch does not exist or is not accessible (404)."""


class RepositoryAccessDeniedError(RepoExtractorError):
    """Access to the repository was denied (403)."""


class GitHubRateLimitError(RepoExtractorError):
    """GitHub API rate limit exceeded (429 / 403 with rate-limit header)."""


# ── Acquisition errors ──────────────────────────────────────────────────────


class DiscoveryError(RepoExtractorError):
    """A discovery strategy could not produce a file list."""


class ContentFetchError(RepoExtractorError):
    """Failed to retrieve the content of a single path."""


class CloneError(DiscoveryError):
    """``git clone`` failed or timed out."""


class WorkspaceError(RepoExtractorError):
    """The temporary workspace could not be allocated."""
