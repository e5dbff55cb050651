"""Derived content routes: blog / Q&A / case-study drafts from completed sessions."""

from fastapi import APIRouter, Depends

from interview_studio.api.deps import get_derived_content_service
from interview_studio.schemas.common import ApiResponse
from interview_studio.schemas.generation import DerivedContentResponse
from interview_studio.services.derived_content_service import DerivedContentService

router = APIRouter()


@router.post(
    "/sessions/{session_id}/generate/{content_type}",
    response_model=ApiResponse[DerivedContentResponse],
    status_code=201,
)
async def generate_derived_content(
    session_id: str,
    content_type: str,
    service: DerivedContentService = Depends(get_derived_content_service),
):
    """Generate one draft (blog, qna or case_study) from a completed session.

    Returns the generation job id and the new draft row. The draft is never
    published by this call.
    """
    result = await service.generate(session_id, content_type)
    return ApiResponse(
        data=DerivedContentResponse(
            job_id=result.job_id,
            content_id=result.content_id,
            content_type=result.content_type.value,
            table_name=result.table_name,
            title=result.title,
            slug=result.slug,
            summary=result.summary,
            cost_usd=result.cost_usd,
            source_unit_ids=result.source_unit_ids,
        )
    )
