"""Exception handlers for the HTTP boundary.

The acquisition pipeline reports its own failures as data, so in practice
only URL validation errors reach these handlers.  Every response, whatever
the cause, uses the ``{"status": "error", "message": "..."}`` envelope.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from repo_extractor.domain.exceptions import (
    ContentFetchError,
    DiscoveryError,
    GitHubRateLimitError,
    InvalidGitHubUrlError,
    RepoExtractorError,
    RepositoryAccessDeniedError,
    RepositoryNotFoundError,
    WorkspaceError,
)
from repo_extractor.interface.schemas import ErrorResponse

logger = logging.getLogger(__name__)

STATUS_BY_ERROR: dict[type[RepoExtractorError], int] = {
    InvalidGitHubUrlError: 422,
    RepositoryNotFoundError: 404,
    RepositoryAccessDeniedError: 403,
    GitHubRateLimitError: 429,
    DiscoveryError: 502,
    ContentFetchError: 502,
    WorkspaceError: 500,
}


def status_for(exc: RepoExtractorError) -> int:
    """Most specific mapped status for *exc*; subclasses inherit their parent's."""
    for cls in type(exc).__mro__:
        if cls in STATUS_BY_ERROR:
            return STATUS_BY_ERROR[cls]
    return 500


def _envelope(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(message=message).model_dump(),
    )


async def _domain_error(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, RepoExtractorError)
    code = status_for(exc)
    logger.warning("%s %s -> %d %s: %s", request.method, request.url.path, code, type(exc).__name__, exc)
    return _envelope(code, str(exc))


async def _validation_error(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, RequestValidationError)
    parts = []
    for err in exc.errors():
        # drop the leading "body" so messages read "url: ..."
        loc = [str(p) for p in err.get("loc", ()) if p != "body"]
        msg = str(err.get("msg", "validation error")).removeprefix("Value error, ")
        parts.append(f"{'.'.join(loc)}: {msg}" if loc else msg)
    return _envelope(422, "; ".join(parts) or "Invalid request.")


async def _unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _envelope(500, "An unexpected error occurred. Please try again later.")


def register_error_handlers(app: FastAPI) -> None:
    """Attach exception handlers to the FastAPI application."""
    app.add_exception_handler(RepoExtractorError, _domain_error)
    app.add_exception_handler(RequestValidationError, _validation_error)
    app.add_exception_handler(Exception, _unexpected_error)
