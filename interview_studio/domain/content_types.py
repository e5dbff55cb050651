"""Content-type catalogue for interview sessions and derived content."""

from dataclasses import dataclass
from enum import Enum

from interview_studio.core.exceptions import ValidationError

# Session content type -> label used in prompts and the fallback banner
SESSION_CONTENT_TYPES: dict[str, str] = {
    "service": "Service",
    "product": "Product",
    "faq": "FAQ",
    "case_study": "Case study",
}


class DerivedContentType(str, Enum):
    """Downstream content produced from a completed session."""

    BLOG = "blog"
    QNA = "qna"
    CASE_STUDY = "case_study"


@dataclass(frozen=True)
class GenerationTarget:
    """Where a derived content type is stored and how it is tagged."""

    cms_content_type: str
    generation_source: str
    table_name: str
    label: str


GENERATION_TARGETS: dict[DerivedContentType, GenerationTarget] = {
    DerivedContentType.BLOG: GenerationTarget(
        cms_content_type="post",
        generation_source="interview_blog",
        table_name="posts",
        label="blog article",
    ),
    DerivedContentType.QNA: GenerationTarget(
        cms_content_type="qa_entry",
        generation_source="interview_qna",
        table_name="qa_entries",
        label="Q&A",
    ),
    DerivedContentType.CASE_STUDY: GenerationTarget(
        cms_content_type="case_study",
        generation_source="interview_case_study",
        table_name="case_studies",
        label="case study",
    ),
}


def content_type_label(content_type: str) -> str:
    return SESSION_CONTENT_TYPES.get(content_type, "Content")


def validate_session_content_type(content_type: str) -> str:
    if content_type not in SESSION_CONTENT_TYPES:
        allowed = ", ".join(sorted(SESSION_CONTENT_TYPES))
        raise ValidationError(f"Unsupported content type '{content_type}'. Expected one of: {allowed}")
    return content_type


def parse_derived_content_type(value: str) -> DerivedContentType:
    try:
        return DerivedContentType(value)
    except ValueError:
        allowed = ", ".join(t.value for t in DerivedContentType)
        raise ValidationError(f"Unsupported derived content type '{value}'. Expected one of: {allowed}") from None
