"""Tests for InterviewService.

Coverage:
- create_session(): seeds empty answers, draft status, rejects bad input
- save_answer(): masks PII, merges by question id, draft -> in_progress
- save_answer(): completed session, rejected answer, version conflict
- finalize(): one provider call, one citation with equal-weight items
- finalize(): idempotent on a completed session
- finalize(): nothing answered -> ValidationError, session untouched
- finalize(): provider failure -> fallback content, session still completes
- get / list_by_user / delete
"""

import uuid
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest
from sqlalchemy import select, update

from interview_studio.core.exceptions import (
    ConflictError,
    InvalidStateError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from interview_studio.db.models.citation import CitationResponse
from interview_studio.db.models.generation_stat import GenerationStat
from interview_studio.db.models.interview_session import InterviewSession
from interview_studio.services.content_synthesizer import FALLBACK_MODEL
from interview_studio.services.interview_service import MAX_MERGE_ATTEMPTS

pytestmark = pytest.mark.unit


async def _citations(session_factory, session_id) -> list[CitationResponse]:
    async with session_factory() as db:
        result = await db.execute(select(CitationResponse).where(CitationResponse.session_id == session_id))
        return list(result.scalars().all())


class TestCreateSession:
    async def test_seeds_empty_answers_in_draft(self, make_interview_service, provider_fake) -> None:
        service = make_interview_service(provider_fake)

        session_id = await service.create_session("org-1", "user-1", "product", ["q1", "q2"])
        session = await service.get(session_id)

        assert session.status == "draft"
        assert session.answers == {"q1": "", "q2": ""}
        assert session.generated_content is None
        assert session.version == 1

    async def test_duplicate_and_blank_ids_are_dropped(self, make_interview_service, provider_fake) -> None:
        service = make_interview_service(provider_fake)

        session_id = await service.create_session("org-1", "user-1", "faq", ["q1", " q1 ", "", "q2"])

        assert list((await service.get(session_id)).answers) == ["q1", "q2"]

    async def test_no_questions_is_rejected(self, make_interview_service, provider_fake) -> None:
        service = make_interview_service(provider_fake)

        with pytest.raises(ValidationError):
            await service.create_session("org-1", "user-1", "product", [])

    async def test_unknown_content_type_is_rejected(self, make_interview_service, provider_fake) -> None:
        service = make_interview_service(provider_fake)

        with pytest.raises(ValidationError):
            await service.create_session("org-1", "user-1", "podcast", ["q1"])


class TestSaveAnswer:
    async def test_first_save_moves_to_in_progress(self, make_interview_service, provider_fake) -> None:
        service = make_interview_service(provider_fake)
        session_id = await service.create_session("org-1", "user-1", "product", ["q1", "q2"])

        saved = await service.save_answer(session_id, "q1", "CRM for SMBs")

        assert saved.session.status == "in_progress"
        assert saved.session.answers == {"q1": "CRM for SMBs", "q2": ""}
        assert saved.session.version == 2
        assert not saved.contains_pii

    async def test_pii_is_masked_before_storage(self, make_interview_service, provider_fake) -> None:
        service = make_interview_service(provider_fake)
        session_id = await service.create_session("org-1", "user-1", "product", ["q1"])

        saved = await service.save_answer(session_id, "q1", "Email me at founder@example.com")
        stored = await service.get(session_id)

        assert saved.contains_pii
        assert "email address detected and masked" in saved.warnings
        assert "founder@example.com" not in stored.answers["q1"]
        assert "[MASKED]" in stored.answers["q1"]

    async def test_last_write_wins_per_question(self, make_interview_service, provider_fake) -> None:
        service = make_interview_service(provider_fake)
        session_id = await service.create_session("org-1", "user-1", "product", ["q1"])

        await service.save_answer(session_id, "q1", "first")
        await service.save_answer(session_id, "q1", "second")

        assert (await service.get(session_id)).answers == {"q1": "second"}

    async def test_unlisted_question_is_added(self, make_interview_service, provider_fake) -> None:
        service = make_interview_service(provider_fake)
        session_id = await service.create_session("org-1", "user-1", "product", ["q1"])

        await service.save_answer(session_id, "q9", "extra")

        assert (await service.get(session_id)).answers == {"q1": "", "q9": "extra"}

    async def test_lost_race_is_merged_on_retry(self, make_interview_service, provider_fake) -> None:
        service = make_interview_service(provider_fake)
        session_id = await service.create_session("org-1", "user-1", "product", ["q1", "q2"])
        real_write = service.store.write
        raced = False

        async def _racing_write(sid, *, expected_version, values):
            nonlocal raced
            if not raced:
                # Another writer saves q2 between our read and our write.
                raced = True
                await real_write(
                    sid,
                    expected_version=expected_version,
                    values={"answers": {"q1": "", "q2": "two"}, "status": "in_progress"},
                )
            return await real_write(sid, expected_version=expected_version, values=values)

        service.store.write = _racing_write

        saved = await service.save_answer(session_id, "q1", "one")

        assert saved.session.answers == {"q1": "one", "q2": "two"}
        assert saved.session.version == 3

    async def test_lost_race_with_expected_version_conflicts(self, make_interview_service, provider_fake) -> None:
        service = make_interview_service(provider_fake)
        session_id = await service.create_session("org-1", "user-1", "product", ["q1"])
        service.store.write = AsyncMock(return_value=False)

        with pytest.raises(ConflictError):
            await service.save_answer(session_id, "q1", "one", expected_version=1)
        assert service.store.write.await_count == 1

    async def test_gives_up_after_repeated_races(self, make_interview_service, provider_fake) -> None:
        service = make_interview_service(provider_fake)
        session_id = await service.create_session("org-1", "user-1", "product", ["q1"])
        service.store.write = AsyncMock(return_value=False)

        with pytest.raises(ConflictError, match="busy"):
            await service.save_answer(session_id, "q1", "one")
        assert service.store.write.await_count == MAX_MERGE_ATTEMPTS

    async def test_rejected_answer_leaves_session_unchanged(self, make_interview_service, provider_fake) -> None:
        service = make_interview_service(provider_fake)
        session_id = await service.create_session("org-1", "user-1", "product", ["q1"])

        with pytest.raises(ValidationError) as exc_info:
            await service.save_answer(session_id, "q1", "   ")

        assert exc_info.value.warnings == ["answer is empty"]
        session = await service.get(session_id)
        assert session.status == "draft"
        assert session.version == 1

    async def test_stale_expected_version_conflicts(self, make_interview_service, provider_fake) -> None:
        service = make_interview_service(provider_fake)
        session_id = await service.create_session("org-1", "user-1", "product", ["q1"])
        await service.save_answer(session_id, "q1", "first")

        with pytest.raises(ConflictError) as exc_info:
            await service.save_answer(session_id, "q1", "stale", expected_version=1)

        assert exc_info.value.actual_version == 2
        assert (await service.get(session_id)).answers == {"q1": "first"}

    async def test_matching_expected_version_saves(self, make_interview_service, provider_fake) -> None:
        service = make_interview_service(provider_fake)
        session_id = await service.create_session("org-1", "user-1", "product", ["q1"])

        saved = await service.save_answer(session_id, "q1", "ok", expected_version=1)

        assert saved.session.version == 2

    async def test_unknown_session(self, make_interview_service, provider_fake) -> None:
        service = make_interview_service(provider_fake)

        with pytest.raises(NotFoundError):
            await service.save_answer(uuid.uuid4(), "q1", "answer")
        with pytest.raises(NotFoundError):
            await service.save_answer("not-a-uuid", "q1", "answer")

    async def test_completed_session_is_frozen(self, make_interview_service, provider_fake) -> None:
        service = make_interview_service(provider_fake)
        session_id = await service.create_session("org-1", "user-1", "product", ["q1"])
        await service.save_answer(session_id, "q1", "answer")
        content = await service.finalize(session_id)

        with pytest.raises(InvalidStateError):
            await service.save_answer(session_id, "q1", "changed")

        session = await service.get(session_id)
        assert session.answers == {"q1": "answer"}
        assert session.generated_content == content


class TestFinalize:
    async def test_two_answers_one_citation(self, make_interview_service, provider_fake, session_factory) -> None:
        service = make_interview_service(provider_fake)
        session_id = await service.create_session("org-1", "user-1", "product", ["q1", "q2"])
        await service.save_answer(session_id, "q1", "CRM for SMBs")
        await service.save_answer(session_id, "q2", "Fast onboarding")

        content = await service.finalize(session_id)

        session = await service.get(session_id)
        assert session.status == "completed"
        assert session.generated_content == content
        assert content.startswith("# Streamlined CRM")
        assert len(provider_fake.calls) == 1

        citations = await _citations(session_factory, session_id)
        assert len(citations) == 1
        citation = citations[0]
        assert citation.request_id == f"interview-finalize-{session_id}"
        assert citation.meta["feature"] == "session-finalize"
        assert citation.meta["question_count"] == 2
        assert [item.source_id for item in citation.items] == ["q1", "q2"]
        assert [item.weight for item in citation.items] == [pytest.approx(0.5), pytest.approx(0.5)]

    async def test_crm_scenario(self, make_interview_service, provider_fake, session_factory) -> None:
        service = make_interview_service(provider_fake)
        session_id = await service.create_session("org-1", "user-1", "product", ["q1", "q2"])
        await service.save_answer(session_id, "q1", "We build CRM software")
        await service.save_answer(session_id, "q2", "Target customer: SMBs")

        content = await service.finalize(session_id)

        assert content
        assert (await service.get(session_id)).status == "completed"
        citations = await _citations(session_factory, session_id)
        assert len(citations) == 1
        assert len(citations[0].items) == 2
        assert all(item.weight == pytest.approx(0.5) for item in citations[0].items)

    async def test_finalize_is_idempotent(self, make_interview_service, provider_fake, session_factory) -> None:
        service = make_interview_service(provider_fake)
        session_id = await service.create_session("org-1", "user-1", "product", ["q1"])
        await service.save_answer(session_id, "q1", "answer")

        first = await service.finalize(session_id)
        second = await service.finalize(session_id)

        assert first == second
        assert len(provider_fake.calls) == 1
        assert len(await _citations(session_factory, session_id)) == 1

    async def test_blank_answers_are_not_sent(self, make_interview_service, provider_fake) -> None:
        service = make_interview_service(provider_fake)
        session_id = await service.create_session("org-1", "user-1", "product", ["q1", "q2"])
        await service.save_answer(session_id, "q2", "only this")

        await service.finalize(session_id)

        prompt = provider_fake.calls[0].prompt
        assert "Question q2: only this" in prompt
        assert "Question q1" not in prompt

    async def test_nothing_answered_is_rejected(self, make_interview_service, provider_fake, session_factory) -> None:
        service = make_interview_service(provider_fake)
        session_id = await service.create_session("org-1", "user-1", "product", ["q1", "q2"])

        with pytest.raises(ValidationError, match="No answers provided"):
            await service.finalize(session_id)

        session = await service.get(session_id)
        assert session.status == "draft"
        assert provider_fake.calls == []
        assert await _citations(session_factory, session_id) == []

    async def test_provider_failure_falls_back(
        self, make_interview_service, provider_fake_failing, session_factory
    ) -> None:
        service = make_interview_service(provider_fake_failing)
        session_id = await service.create_session("org-1", "user-1", "service", ["q1", "q2"])
        await service.save_answer(session_id, "q1", "We build websites")
        await service.save_answer(session_id, "q2", "For clinics")

        content = await service.finalize(session_id)

        assert "We build websites" in content
        assert "For clinics" in content
        session = await service.get(session_id)
        assert session.status == "completed"
        assert session.generated_content == content

        citations = await _citations(session_factory, session_id)
        assert citations[0].model == FALLBACK_MODEL
        assert citations[0].meta["used_fallback"] is True

        async with session_factory() as db:
            stat = (
                await db.execute(select(GenerationStat).where(GenerationStat.session_id == session_id))
            ).scalar_one()
        assert stat.success is False
        assert stat.feature == "session_finalize"

    async def test_stat_records_cost(self, make_interview_service, provider_fake, session_factory) -> None:
        service = make_interview_service(provider_fake)
        session_id = await service.create_session("org-1", "user-1", "product", ["q1"])
        await service.save_answer(session_id, "q1", "answer")

        await service.finalize(session_id)

        async with session_factory() as db:
            stat = (
                await db.execute(select(GenerationStat).where(GenerationStat.session_id == session_id))
            ).scalar_one()
        assert stat.success is True
        assert stat.input_tokens == 1200
        assert stat.output_tokens == 800
        assert stat.cost_usd == pytest.approx(0.084)

    async def test_failed_write_leaves_session_in_progress(self, make_interview_service, provider_fake) -> None:
        service = make_interview_service(provider_fake)
        session_id = await service.create_session("org-1", "user-1", "product", ["q1"])
        await service.save_answer(session_id, "q1", "answer")
        service.store.write = AsyncMock(side_effect=PersistenceError("db down"))

        with pytest.raises(PersistenceError):
            await service.finalize(session_id)

        session = await service.get(session_id)
        assert session.status == "in_progress"
        assert session.generated_content is None

    async def test_lost_race_returns_stored_content(
        self, make_interview_service, provider_fake, session_factory
    ) -> None:
        service = make_interview_service(provider_fake)
        session_id = await service.create_session("org-1", "user-1", "product", ["q1"])
        await service.save_answer(session_id, "q1", "answer")

        real_write = service.store.write

        async def _complete_first(sid, *, expected_version, values):
            # Another finalize lands between our read and our write.
            await real_write(
                sid,
                expected_version=expected_version,
                values={"status": "completed", "generated_content": "winner"},
            )
            return await real_write(sid, expected_version=expected_version, values=values)

        service.store.write = _complete_first

        assert await service.finalize(session_id) == "winner"
        assert (await service.get(session_id)).generated_content == "winner"

    async def test_retry_after_conflict_keeps_one_citation(
        self, make_interview_service, provider_fake, session_factory
    ) -> None:
        service = make_interview_service(provider_fake)
        session_id = await service.create_session("org-1", "user-1", "product", ["q1", "q2"])
        await service.save_answer(session_id, "q1", "CRM for SMBs")
        real_synthesize = service.synthesizer.synthesize
        interleaved = False

        async def _synthesize_with_save(answers, content_type, **kwargs):
            nonlocal interleaved
            if not interleaved:
                # An answer lands after finalize has read the session.
                interleaved = True
                await service.save_answer(session_id, "q2", "Fast onboarding")
            return await real_synthesize(answers, content_type, **kwargs)

        service.synthesizer.synthesize = _synthesize_with_save

        with pytest.raises(ConflictError):
            await service.finalize(session_id)
        assert len(await _citations(session_factory, session_id)) == 1

        content = await service.finalize(session_id)
        await service.finalize(session_id)

        assert (await service.get(session_id)).generated_content == content
        assert len(await _citations(session_factory, session_id)) == 1

    async def test_unknown_session(self, make_interview_service, provider_fake) -> None:
        service = make_interview_service(provider_fake)

        with pytest.raises(NotFoundError):
            await service.finalize(uuid.uuid4())


class TestReadAndDelete:
    async def test_get_missing_returns_none(self, make_interview_service, provider_fake) -> None:
        service = make_interview_service(provider_fake)

        assert await service.get(uuid.uuid4()) is None
        assert await service.get("garbage") is None

    async def test_list_by_user_newest_first(self, make_interview_service, provider_fake, session_factory) -> None:
        service = make_interview_service(provider_fake)
        older = await service.create_session("org-1", "user-1", "product", ["q1"])
        newer = await service.create_session("org-1", "user-1", "faq", ["q1"])
        await service.create_session("org-1", "user-2", "faq", ["q1"])

        base = datetime(2025, 1, 1, tzinfo=timezone.utc)
        async with session_factory() as db:
            await db.execute(update(InterviewSession).where(InterviewSession.id == older).values(created_at=base))
            await db.execute(
                update(InterviewSession)
                .where(InterviewSession.id == newer)
                .values(created_at=base + timedelta(hours=1))
            )
            await db.commit()

        sessions = await service.list_by_user("user-1")

        assert [s.id for s in sessions] == [newer, older]

    async def test_list_by_user_unknown_is_empty(self, make_interview_service, provider_fake) -> None:
        service = make_interview_service(provider_fake)

        assert await service.list_by_user("nobody") == []

    async def test_delete_hides_session(self, make_interview_service, provider_fake) -> None:
        service = make_interview_service(provider_fake)
        session_id = await service.create_session("org-1", "user-1", "product", ["q1"])

        await service.delete(session_id)

        assert await service.get(session_id) is None
        assert await service.list_by_user("user-1") == []
        with pytest.raises(NotFoundError):
            await service.delete(session_id)
        with pytest.raises(NotFoundError):
            await service.save_answer(session_id, "q1", "late")

    async def test_delete_unknown(self, make_interview_service, provider_fake) -> None:
        service = make_interview_service(provider_fake)

        with pytest.raises(NotFoundError):
            await service.delete("not-a-uuid")
