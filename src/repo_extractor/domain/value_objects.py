"""Self-validating domain primitives."""

from __future__ import annotations

import re
from dataclasses import dataclass
from urllib.parse import urlsplit

from repo_extractor.domain.entities import RepositoryIdentity
from repo_extractor.domain.exceptions import InvalidGitHubUrlError

_GITHUB_HOSTS = frozenset({"github.com", "www.github.com"})
_NAME_RE = re.compile(r"^[A-Za-z0-9_.\-]+$")


@dataclass(frozen=True, slots=True)
class GitHubUrl:
    """A ``http(s)://github.com/<owner>/<repo>`` URL.

    Anything after the repository segment (``/tree/main/src``, a query
    string, a fragment) is ignored, as is a trailing ``.git``.  ``raw`` keeps
    the caller's text, stripped of surrounding whitespace, for logging.
    """

    owner: str
    repo: str
    raw: str

    @classmethod
    def from_string(cls, url: str) -> GitHubUrl:
        raw = url.strip()
        parts = urlsplit(raw)
        segments = [s for s in parts.path.split("/") if s]
        if (
            parts.scheme not in ("http", "https")
            or (parts.hostname or "") not in _GITHUB_HOSTS
            or len(segments) < 2
        ):
            raise InvalidGitHubUrlError(
                f"Invalid GitHub URL: '{raw}'. "
                "Expected format: https://github.com/<owner>/<repo>"
            )

        owner, repo = segments[0], segments[1].removesuffix(".git")
        for name in (owner, repo):
            if not _NAME_RE.match(name) or name in (".", ".."):
                raise InvalidGitHubUrlError(f"Invalid GitHub URL: '{raw}'. Bad name segment '{name}'.")
        return cls(owner=owner, repo=repo, raw=raw)

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"

    @property
    def identity(self) -> RepositoryIdentity:
        return RepositoryIdentity(owner=self.owner, name=self.repo)
