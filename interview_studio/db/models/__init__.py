"""Re-export all models so Base.metadata sees them."""

from interview_studio.db.models.citation import CitationItem, CitationResponse
from interview_studio.db.models.content_link import ContentInterviewLink, ContentUnitLink
from interview_studio.db.models.content_unit import ContentUnit
from interview_studio.db.models.generated_content import CaseStudy, Post, QAEntry
from interview_studio.db.models.generation_job import GenerationJob
from interview_studio.db.models.generation_stat import GenerationStat
from interview_studio.db.models.interview_session import InterviewSession

__all__ = [
    "CaseStudy",
    "CitationItem",
    "CitationResponse",
    "ContentInterviewLink",
    "ContentUnit",
    "ContentUnitLink",
    "GenerationJob",
    "GenerationStat",
    "InterviewSession",
    "Post",
    "QAEntry",
]
