"""API routes: thin controllers that delegate to the use case."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from repo_extractor.domain.ports.log_store import LogStore
from repo_extractor.domain.value_objects import GitHubUrl
from repo_extractor.interface.dependencies import get_credential, get_log_store, get_use_case
from repo_extractor.interface.schemas import (
    ProcessingLogResponse,
    ProcessRepositoryRequest,
    ProcessRepositoryResponse,
)
from repo_extractor.services.acquire_repository import AcquireRepositoryUseCase

router = APIRouter(prefix="/api")


@router.post(
    "/process-repository",
    response_model=ProcessRepositoryResponse,
    response_model_by_alias=True,
    responses={422: {"description": "Invalid GitHub repository URL"}},
)
async def process_repository(
    body: ProcessRepositoryRequest,
    use_case: AcquireRepositoryUseCase = Depends(get_use_case),
    credential: str | None = Depends(get_credential),
) -> ProcessRepositoryResponse:
    """Flatten a public GitHub repository into one text document."""
    url = GitHubUrl.from_string(body.url)
    result = await use_case.execute(url.identity, credential=credential, repository_url=url.raw)
    return ProcessRepositoryResponse(
        content=result.content,
        file_count=result.file_count,
        line_count=result.line_count,
    )


@router.get(
    "/logs",
    response_model=list[ProcessingLogResponse],
    response_model_by_alias=True,
)
async def recent_logs(log_store: LogStore = Depends(get_log_store)) -> list[ProcessingLogResponse]:
    """Return the ten most recent processing attempts."""
    records = await log_store.recent(10)
    return [
        ProcessingLogResponse(
            id=record.id,
            repository_url=record.entry.repository_url,
            file_count=record.entry.file_count,
            line_count=record.entry.line_count,
            processed_at=record.entry.processed_at,
            success=record.entry.success,
            error_message=record.entry.error_message,
        )
        for record in records
    ]
