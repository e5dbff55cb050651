"""FastAPI dependencies wiring services to the datastore and AI provider."""

from fastapi import Depends

from interview_studio.core.config import get_settings
from interview_studio.db.base import get_session_factory
from interview_studio.providers.base import ContentProvider
from interview_studio.providers.fake import ProviderFake
from interview_studio.services.answer_sanitizer import AnswerSanitizer
from interview_studio.services.citation_recorder import CitationRecorder
from interview_studio.services.content_synthesizer import ContentSynthesizer
from interview_studio.services.derived_content_service import DerivedContentService
from interview_studio.services.interview_service import InterviewService
from interview_studio.services.session_store import SessionStore


def get_provider() -> ContentProvider:
    """Dependency that provides the AI provider.

    Returns AnthropicProvider when ANTHROPIC_API_KEY is set, otherwise
    ProviderFake for local development. Override via app.dependency_overrides
    in tests.
    """
    settings = get_settings()

    if settings.anthropic_api_key:
        from interview_studio.providers.anthropic_provider import AnthropicProvider

        return AnthropicProvider(
            settings.anthropic_api_key,
            timeout_seconds=settings.provider_timeout_seconds,
            max_attempts=settings.provider_max_attempts,
        )
    return ProviderFake()


def get_synthesizer(provider: ContentProvider = Depends(get_provider)) -> ContentSynthesizer:
    return ContentSynthesizer(provider, get_settings())


def get_interview_service(synthesizer: ContentSynthesizer = Depends(get_synthesizer)) -> InterviewService:
    settings = get_settings()
    factory = get_session_factory()
    return InterviewService(
        store=SessionStore(factory),
        sanitizer=AnswerSanitizer(mask_token=settings.pii_mask_token, max_length=settings.max_answer_length),
        synthesizer=synthesizer,
        recorder=CitationRecorder(factory, locale=settings.citation_locale),
    )


def get_derived_content_service(
    synthesizer: ContentSynthesizer = Depends(get_synthesizer),
) -> DerivedContentService:
    settings = get_settings()
    factory = get_session_factory()
    return DerivedContentService(factory, synthesizer, CitationRecorder(factory, locale=settings.citation_locale))
