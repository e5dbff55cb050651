"""Interview session routes: create, answer, finalize, read, delete."""

from fastapi import APIRouter, Depends

from interview_studio.api.deps import get_interview_service
from interview_studio.core.exceptions import NotFoundError
from interview_studio.schemas.common import ApiResponse
from interview_studio.schemas.interview import (
    AnswerSavedResponse,
    CreateSessionRequest,
    CreateSessionResponse,
    FinalizeResponse,
    InterviewSessionResponse,
    SaveAnswerRequest,
)
from interview_studio.services.interview_service import InterviewService

router = APIRouter()


@router.post("/sessions", response_model=ApiResponse[CreateSessionResponse], status_code=201)
async def create_session(
    request: CreateSessionRequest,
    service: InterviewService = Depends(get_interview_service),
):
    """Create a draft session with every selected question unanswered."""
    session_id = await service.create_session(
        request.organization_id,
        request.user_id,
        request.content_type,
        request.question_ids,
    )
    return ApiResponse(data=CreateSessionResponse(session_id=session_id))


@router.get("/sessions", response_model=ApiResponse[list[InterviewSessionResponse]])
async def list_sessions(
    user_id: str,
    service: InterviewService = Depends(get_interview_service),
):
    """List a user's sessions, most recent first."""
    sessions = await service.list_by_user(user_id)
    return ApiResponse(data=[InterviewSessionResponse.model_validate(s) for s in sessions])


@router.get("/sessions/{session_id}", response_model=ApiResponse[InterviewSessionResponse])
async def get_session(
    session_id: str,
    service: InterviewService = Depends(get_interview_service),
):
    session = await service.get(session_id)
    if session is None:
        raise NotFoundError("Session not found")
    return ApiResponse(data=InterviewSessionResponse.model_validate(session))


@router.put("/sessions/{session_id}/answers/{question_id}", response_model=ApiResponse[AnswerSavedResponse])
async def save_answer(
    session_id: str,
    question_id: str,
    request: SaveAnswerRequest,
    service: InterviewService = Depends(get_interview_service),
):
    """Save one answer. PII is masked before storage and reported in ``warnings``."""
    saved = await service.save_answer(session_id, question_id, request.answer, request.expected_version)
    return ApiResponse(
        data=AnswerSavedResponse(
            session=InterviewSessionResponse.model_validate(saved.session),
            contains_pii=saved.contains_pii,
            warnings=saved.warnings,
        )
    )


@router.post("/sessions/{session_id}/finalize", response_model=ApiResponse[FinalizeResponse])
async def finalize_session(
    session_id: str,
    service: InterviewService = Depends(get_interview_service),
):
    """Complete the session. Safe to repeat: later calls return the stored content."""
    generated_content = await service.finalize(session_id)
    session = await service.get(session_id)
    if session is None:
        raise NotFoundError("Session not found")
    return ApiResponse(
        data=FinalizeResponse(
            session_id=session.id,
            status=session.status,
            generated_content=generated_content,
        )
    )


@router.delete("/sessions/{session_id}", response_model=ApiResponse[dict])
async def delete_session(
    session_id: str,
    service: InterviewService = Depends(get_interview_service),
):
    await service.delete(session_id)
    return ApiResponse(data={"deleted": True})
