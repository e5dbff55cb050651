"""Shared test fixtures for all test groups.

Tests run against an in-memory SQLite database (aiosqlite), built through the
same ``init_db`` the API lifespan uses.
"""

import uuid

import pytest

from interview_studio.core.config import Settings
from interview_studio.db.base import close_db, get_session_factory, init_db
from interview_studio.db.models.content_unit import ContentUnit
from interview_studio.providers.fake import ProviderFake
from interview_studio.services.answer_sanitizer import AnswerSanitizer
from interview_studio.services.citation_recorder import CitationRecorder
from interview_studio.services.content_synthesizer import ContentSynthesizer
from interview_studio.services.derived_content_service import DerivedContentService
from interview_studio.services.interview_service import InterviewService
from interview_studio.services.session_store import SessionStore

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def engine():
    """Fresh in-memory database with all tables, installed as the app's engine."""
    await close_db()
    engine = await init_db(TEST_DB_URL)
    yield engine
    await close_db()


@pytest.fixture
def session_factory(engine):
    return get_session_factory()


@pytest.fixture
def settings():
    return Settings(anthropic_api_key="", provider_timeout_seconds=5.0)


@pytest.fixture
def provider_fake():
    """Fresh ProviderFake with happy_path scenario (default)."""
    return ProviderFake(scenario="happy_path")


@pytest.fixture
def provider_fake_failing():
    """ProviderFake with llm_failure scenario."""
    return ProviderFake(scenario="llm_failure")


@pytest.fixture
def make_interview_service(session_factory, settings):
    """Build an InterviewService around the given provider."""

    def _make(provider) -> InterviewService:
        return InterviewService(
            store=SessionStore(session_factory),
            sanitizer=AnswerSanitizer(),
            synthesizer=ContentSynthesizer(provider, settings),
            recorder=CitationRecorder(session_factory),
        )

    return _make


@pytest.fixture
def make_derived_service(session_factory, settings):
    def _make(provider) -> DerivedContentService:
        return DerivedContentService(
            session_factory,
            ContentSynthesizer(provider, settings),
            CitationRecorder(session_factory),
        )

    return _make


@pytest.fixture
def add_content_units(session_factory):
    """Insert content units for a session; returns them in insertion order."""

    async def _add(session_id: uuid.UUID, scores: list[float | None]) -> list[ContentUnit]:
        units = [
            ContentUnit(
                session_id=session_id,
                organization_id="org-1",
                section_key=f"section-{i}",
                title=f"Unit {i}",
                content=f"Content unit number {i} about onboarding.",
                order_no=i,
                visibility_score=score,
            )
            for i, score in enumerate(scores)
        ]
        async with session_factory() as db:
            db.add_all(units)
            await db.commit()
        return units

    return _add
