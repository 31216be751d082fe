"""Deal status request/response schemas for API contracts."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from railmatch.models.enums import DealStatus


class DealTransitionRequest(BaseModel):
    match_id: int | None = None
    request_id: int | None = None
    status: str = Field(min_length=1, max_length=20)
    comment: str | None = Field(default=None, max_length=2000)


class DealStatusHistoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    match_id: int | None = None
    request_id: int | None = None
    status: DealStatus
    comment: str | None = None
    created_at: datetime


class DealStatusResponse(BaseModel):
    match_id: int | None = None
    request_id: int | None = None
    current_status: DealStatus
    allowed_transitions: list[DealStatus]
    is_terminal: bool
