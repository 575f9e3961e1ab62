"""Pydantic request / response DTOs for the API boundary."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ProcessRepositoryRequest(BaseModel):
    """Request body for ``POST /api/process-repository``."""

    url: str

    @field_validator("url")
    @classmethod
    def _must_be_github(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            msg = "url must not be empty."
            raise ValueError(msg)
        if "github.com" not in stripped.lower():
            msg = (
                f"Invalid URL: '{stripped}'. "
                "Only public GitHub repository URLs are supported."
            )
            raise ValueError(msg)
        return stripped


class ProcessRepositoryResponse(_CamelModel):
    """Successful response from ``POST /api/process-repository``."""

    content: str
    file_count: int
    line_count: int


class ProcessingLogResponse(_CamelModel):
    """One entry of ``GET /api/logs``."""

    id: int
    repository_url: str
    file_count: int
    line_count: int
    processed_at: str
    success: bool
    error_message: str | None = Field(default=None)


class ErrorResponse(BaseModel):
    """Standard error envelope returned on all failure paths."""

    status: str = "error"
    message: str
