"""Interview session Pydantic schemas: API contracts for the session lifecycle."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class CreateSessionRequest(BaseModel):
    organization_id: str = Field(..., min_length=1)
    user_id: str = Field(..., min_length=1)
    content_type: str
    question_ids: list[str]


class CreateSessionResponse(BaseModel):
    session_id: UUID


class SaveAnswerRequest(BaseModel):
    answer: str
    # Optimistic concurrency: reject the save if the session moved past this version
    expected_version: int | None = Field(default=None, ge=1)


class InterviewSessionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    organization_id: str
    user_id: str
    content_type: str
    status: str
    answers: dict[str, str]
    generated_content: str | None = None
    version: int
    created_at: datetime
    updated_at: datetime


class AnswerSavedResponse(BaseModel):
    session: InterviewSessionResponse
    contains_pii: bool
    warnings: list[str] = []


class FinalizeResponse(BaseModel):
    session_id: UUID
    status: str
    generated_content: str
