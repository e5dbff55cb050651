"""DerivedContentService: blog / Q&A / case-study drafts from a completed session.

Flow per call:
1. Load the completed, non-deleted session and its content units
2. Build the type-specific system + user prompt (top-ranked units only)
3. Insert a GenerationJob row (status running) before the provider call
4. Call the provider with FailurePolicy.RAISE -- no fallback text
5. Parse title / summary / body / slug
6. Insert the draft content row and its link rows in one transaction
7. Update the job with target_content_id, call count and cost
8. Record a citation (best-effort)

A failure after step 3 marks the job failed but never deletes it, and no
content or link rows are written unless the whole of step 6 commits.
Once step 6 has committed the call succeeds even if the job update in
step 7 fails; that failure is logged and the job is left running.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from interview_studio.core.exceptions import (
    InterviewStudioError,
    InvalidStateError,
    NotFoundError,
    PersistenceError,
)
from interview_studio.db.models.content_link import ContentInterviewLink, ContentUnitLink
from interview_studio.db.models.content_unit import ContentUnit
from interview_studio.db.models.generated_content import CaseStudy, Post, QAEntry
from interview_studio.db.models.generation_job import GenerationJob
from interview_studio.db.models.interview_session import InterviewSession
from interview_studio.domain.content_parsing import ParsedContent, parse_generated_content, rank_content_units
from interview_studio.domain.content_types import (
    GENERATION_TARGETS,
    DerivedContentType,
    GenerationTarget,
    parse_derived_content_type,
)
from interview_studio.domain.pricing import calculate_cost
from interview_studio.domain.session_states import SessionStatus
from interview_studio.providers.base import CompletionRequest
from interview_studio.services.citation_recorder import CitationRecorder, CitationSource
from interview_studio.services.content_synthesizer import ContentSynthesizer, FailurePolicy
from interview_studio.services.prompts import DERIVED_SYSTEM_PROMPTS, DERIVED_TASKS, DERIVED_USER_TEMPLATE
from interview_studio.services.session_store import SessionStore

logger = structlog.get_logger(__name__)

# Derived content type -> ORM model of its draft table
CONTENT_MODELS = {
    DerivedContentType.BLOG: Post,
    DerivedContentType.QNA: QAEntry,
    DerivedContentType.CASE_STUDY: CaseStudy,
}


@dataclass(frozen=True)
class PromptPair:
    system: str
    user: str


@dataclass(frozen=True)
class DerivedContentResult:
    job_id: uuid.UUID
    content_id: uuid.UUID
    content_type: DerivedContentType
    table_name: str
    title: str
    slug: str
    summary: str | None
    cost_usd: float
    source_unit_ids: list[uuid.UUID]


def build_derived_prompt(
    content_type: DerivedContentType,
    session: InterviewSession,
    ranked_units: list[ContentUnit],
) -> PromptPair:
    """Render the system instructions and user payload for one content type.

    ``ranked_units`` must already be ranked and truncated.
    """
    target = GENERATION_TARGETS[content_type]
    answers = "\n\n".join(
        f"Q: {qid}\nA: {answer}" for qid, answer in (session.answers or {}).items() if answer and answer.strip()
    )
    units = "\n\n---\n\n".join(f"[{unit.section_key}] {unit.title or ''}\n{unit.content}" for unit in ranked_units)

    user = DERIVED_USER_TEMPLATE.format(
        label=target.label,
        answers=answers or "(none)",
        summary=session.generated_content or "(none)",
        units=units or "(none)",
        task=DERIVED_TASKS[content_type],
    )
    return PromptPair(system=DERIVED_SYSTEM_PROMPTS[content_type], user=user)


class DerivedContentService:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        synthesizer: ContentSynthesizer,
        recorder: CitationRecorder,
    ):
        self.session_factory = session_factory
        self.store = SessionStore(session_factory)
        self.synthesizer = synthesizer
        self.recorder = recorder
        self.settings = synthesizer.settings

    async def generate(self, session_id: str | uuid.UUID, content_type: str) -> DerivedContentResult:
        """Generate one draft of ``content_type`` from a completed session.

        Raises:
            ValidationError: unknown content type
            NotFoundError: unknown or soft-deleted session
            InvalidStateError: session not completed yet
            GenerationError: provider failed or returned nothing
            PersistenceError: job, content or link rows could not be written
        """
        try:
            return await self._generate(session_id, content_type)
        except InterviewStudioError as exc:
            logger.warning(
                "interview_operation_failed",
                operation="generate_derived_content",
                session_id=str(session_id),
                content_type=content_type,
                error_code=exc.code,
                error=exc.message,
            )
            raise

    async def _generate(self, session_id: str | uuid.UUID, content_type: str) -> DerivedContentResult:
        derived_type = parse_derived_content_type(content_type)
        target = GENERATION_TARGETS[derived_type]

        session = await self.store.get(session_id)
        if session is None:
            raise NotFoundError("Session not found")
        if session.status != SessionStatus.COMPLETED.value:
            raise InvalidStateError("Derived content requires a completed session")

        units = await self._load_units(session.id)
        ranked = rank_content_units(units, self.settings.max_source_units)
        prompt = build_derived_prompt(derived_type, session, ranked)

        job_id = await self._create_job(session, target)

        try:
            result = await self.synthesizer.run(
                CompletionRequest(
                    system=prompt.system,
                    prompt=prompt.user,
                    model=self.settings.derived_model,
                    max_tokens=self.settings.derived_max_tokens,
                    temperature=self.settings.derived_temperature,
                ),
                policy=FailurePolicy.RAISE,
            )
        except InterviewStudioError as exc:
            await self._fail_job(job_id, exc, provider_calls=1)
            await self.recorder.record_generation_stat(
                session_id=session.id,
                organization_id=session.organization_id,
                user_id=session.user_id,
                feature=f"derived_{derived_type.value}",
                model=self.settings.derived_model,
                input_tokens=0,
                output_tokens=0,
                duration_ms=0,
                success=False,
                error=exc.message,
            )
            raise

        cost = calculate_cost(
            result.usage.prompt_tokens,
            result.usage.completion_tokens,
            self.settings.prompt_cost_per_1k,
            self.settings.completion_cost_per_1k,
        )
        parsed = parse_generated_content(result.text, fallback_title=f"AI-generated {target.label}")

        try:
            content_id = await self._save_content(derived_type, target, session, parsed, ranked)
        except PersistenceError as exc:
            await self._fail_job(job_id, exc, provider_calls=1, cost_usd=cost)
            raise

        try:
            await self._complete_job(job_id, content_id, cost, result.usage.prompt_tokens, result.usage.completion_tokens)
        except PersistenceError as exc:
            # Draft and links are already committed.
            logger.error(
                "generation_job_complete_update_failed",
                job_id=str(job_id),
                content_id=str(content_id),
                error=exc.message,
            )

        sources = [
            CitationSource(
                source_type="content_unit",
                source_id=str(unit.id),
                text=unit.content,
                fragment_hint=unit.section_key,
            )
            for unit in ranked
        ] or [
            CitationSource(source_type="question", source_id=qid, text=answer, fragment_hint=f"question-{qid}")
            for qid, answer in (session.answers or {}).items()
            if answer and answer.strip()
        ]
        await self.recorder.record_citation(
            session_id=session.id,
            organization_id=session.organization_id,
            request_id=f"interview-generate-{derived_type.value}-{job_id}",
            model=result.model,
            prompt_text=prompt.system + "\n\n" + prompt.user,
            completion_text=result.text,
            sources=sources,
            meta={
                "source": "ai-interviewer",
                "feature": f"generate-{derived_type.value}",
                "content_type": target.cms_content_type,
                "content_id": str(content_id),
                "job_id": str(job_id),
                "unit_count": len(ranked),
            },
        )
        await self.recorder.record_generation_stat(
            session_id=session.id,
            organization_id=session.organization_id,
            user_id=session.user_id,
            feature=f"derived_{derived_type.value}",
            model=result.model,
            input_tokens=result.usage.prompt_tokens,
            output_tokens=result.usage.completion_tokens,
            duration_ms=result.duration_ms,
            success=True,
            cost_usd=cost,
        )

        logger.info(
            "derived_content_generated",
            session_id=str(session.id),
            job_id=str(job_id),
            content_type=derived_type.value,
            content_id=str(content_id),
            source_units=len(ranked),
            cost_usd=cost,
        )
        return DerivedContentResult(
            job_id=job_id,
            content_id=content_id,
            content_type=derived_type,
            table_name=target.table_name,
            title=parsed.title,
            slug=parsed.slug,
            summary=parsed.summary,
            cost_usd=cost,
            source_unit_ids=[unit.id for unit in ranked],
        )

    # =========================================================================
    # PRIVATE HELPERS
    # =========================================================================

    async def _load_units(self, session_id: uuid.UUID) -> list[ContentUnit]:
        try:
            return await self.store.list_content_units(session_id)
        except PersistenceError as exc:
            # Units only enrich the prompt; generate from the answers alone.
            logger.warning("content_units_fetch_failed", session_id=str(session_id), error=exc.message)
            return []

    async def _create_job(self, session: InterviewSession, target: GenerationTarget) -> uuid.UUID:
        job = GenerationJob(
            organization_id=session.organization_id,
            interview_session_id=session.id,
            target_content_type=target.cms_content_type,
            generation_source=target.generation_source,
            status="running",
            provider_calls=0,
            cost_usd=0.0,
            meta={"started_at": datetime.now(timezone.utc).isoformat()},
        )
        try:
            async with self.session_factory() as db:
                db.add(job)
                await db.commit()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to create generation job: {exc}") from exc

        logger.info(
            "generation_job_created",
            job_id=str(job.id),
            session_id=str(session.id),
            target_content_type=target.cms_content_type,
        )
        return job.id

    async def _save_content(
        self,
        derived_type: DerivedContentType,
        target: GenerationTarget,
        session: InterviewSession,
        parsed: ParsedContent,
        ranked: list[ContentUnit],
    ) -> uuid.UUID:
        """Insert the draft row plus generated_from and source_unit links atomically."""
        common = {
            "organization_id": session.organization_id,
            "interview_session_id": session.id,
            "is_ai_generated": True,
            "generation_source": target.generation_source,
            "content_type": target.cms_content_type,
            "status": "draft",
            "title": parsed.title,
            "slug": parsed.slug,
        }
        if derived_type is DerivedContentType.QNA:
            row = QAEntry(**common, question=parsed.title, answer=parsed.content)
        else:
            row = CONTENT_MODELS[derived_type](**common, content=parsed.content, summary=parsed.summary)

        try:
            async with self.session_factory() as db:
                db.add(row)
                await db.flush()
                db.add(
                    ContentInterviewLink(
                        content_type=target.cms_content_type,
                        content_id=row.id,
                        interview_session_id=session.id,
                        relation_type="generated_from",
                    )
                )
                db.add_all(
                    [
                        ContentUnitLink(
                            interview_session_id=session.id,
                            content_type=target.cms_content_type,
                            content_id=row.id,
                            content_unit_id=unit.id,
                            relation_type="source_unit",
                            visibility_score=unit.visibility_score,
                            rank=rank,
                        )
                        for rank, unit in enumerate(ranked)
                    ]
                )
                await db.commit()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to save content to {target.table_name}: {exc}") from exc
        return row.id

    async def _complete_job(
        self,
        job_id: uuid.UUID,
        content_id: uuid.UUID,
        cost_usd: float,
        prompt_tokens: int,
        completion_tokens: int,
    ) -> None:
        await self._update_job(
            job_id,
            status="succeeded",
            target_content_id=content_id,
            provider_calls=1,
            cost_usd=cost_usd,
            meta={
                "completed_at": datetime.now(timezone.utc).isoformat(),
                "prompt_tokens": prompt_tokens,
                "completion_tokens": completion_tokens,
            },
        )
        logger.info("generation_job_completed", job_id=str(job_id), content_id=str(content_id), cost_usd=cost_usd)

    async def _fail_job(self, job_id: uuid.UUID, exc: InterviewStudioError, **values) -> None:
        """Mark the job failed; the row itself is always kept."""
        try:
            await self._update_job(
                job_id,
                status="failed",
                error=exc.message,
                meta={"failed_at": datetime.now(timezone.utc).isoformat(), "error_code": exc.code},
                **values,
            )
        except PersistenceError as update_exc:
            logger.error("generation_job_fail_update_failed", job_id=str(job_id), error=update_exc.message)
            return
        logger.warning("generation_job_failed", job_id=str(job_id), error_code=exc.code, error=exc.message)

    async def _update_job(self, job_id: uuid.UUID, *, meta: dict | None = None, **values) -> None:
        try:
            async with self.session_factory() as db:
                job = await db.get(GenerationJob, job_id)
                if job is None:
                    raise PersistenceError(f"Generation job {job_id} disappeared")
                for key, value in values.items():
                    setattr(job, key, value)
                if meta:
                    job.meta = {**(job.meta or {}), **meta}
                await db.commit()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to update generation job: {exc}") from exc
