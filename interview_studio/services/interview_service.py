"""InterviewService: interview session lifecycle.

Responsibilities:
- create: seed every selected question with an empty answer, status draft
- save_answer: sanitize, merge by question id, move to in_progress
- finalize: synthesize a summary, record provenance, move to completed
- get / list_by_user / delete

Status only moves draft -> in_progress -> completed. Once completed, the
answer map and generated content are frozen; finalize on a completed
session is a pure read.
"""

import uuid
from dataclasses import dataclass, field

import structlog

from interview_studio.core.exceptions import (
    ConflictError,
    InterviewStudioError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from interview_studio.db.models.interview_session import InterviewSession
from interview_studio.domain.content_types import validate_session_content_type
from interview_studio.domain.pricing import calculate_cost
from interview_studio.domain.session_states import SessionStatus, can_transition, is_terminal
from interview_studio.services.answer_sanitizer import AnswerSanitizer, SanitizedAnswer
from interview_studio.services.citation_recorder import CitationRecorder, CitationSource
from interview_studio.services.content_synthesizer import ContentSynthesizer, answered_pairs
from interview_studio.services.session_store import SessionStore, coerce_session_id

logger = structlog.get_logger(__name__)

# Read-merge-write attempts before a save gives up on a busy session
MAX_MERGE_ATTEMPTS = 3


@dataclass
class AnswerSaved:
    session: InterviewSession
    contains_pii: bool
    warnings: list[str] = field(default_factory=list)


class InterviewService:
    def __init__(
        self,
        store: SessionStore,
        sanitizer: AnswerSanitizer,
        synthesizer: ContentSynthesizer,
        recorder: CitationRecorder,
    ):
        self.store = store
        self.sanitizer = sanitizer
        self.synthesizer = synthesizer
        self.recorder = recorder

    async def create_session(
        self,
        organization_id: str,
        user_id: str,
        content_type: str,
        question_ids: list[str],
    ) -> uuid.UUID:
        """Create a draft session with an empty answer for each question.

        Raises:
            ValidationError: no question ids, or unknown content type
        """
        try:
            validate_session_content_type(content_type)
            selected = list(dict.fromkeys(qid.strip() for qid in question_ids if qid and qid.strip()))
            if not selected:
                raise ValidationError("At least one question must be selected")

            row = await self.store.insert(
                organization_id=organization_id,
                user_id=user_id,
                content_type=content_type,
                answers={qid: "" for qid in selected},
            )
        except InterviewStudioError as exc:
            raise self._failed("create_session", None, exc)

        logger.info(
            "interview_session_created",
            session_id=str(row.id),
            organization_id=organization_id,
            content_type=content_type,
            question_count=len(selected),
        )
        return row.id

    async def save_answer(
        self,
        session_id: str | uuid.UUID,
        question_id: str,
        raw_answer: str,
        expected_version: int | None = None,
    ) -> AnswerSaved:
        """Sanitize and store one answer, last write wins per question id.

        A save that loses a race to another writer re-reads the session and
        merges again. When ``expected_version`` is given, any mismatch is a
        ConflictError instead.

        Raises:
            NotFoundError: unknown or deleted session
            InvalidStateError: session already completed
            ValidationError: sanitizer rejected the answer
            ConflictError: version mismatch, or still racing after retries
        """
        try:
            saved = await self._save_answer(session_id, question_id, raw_answer, expected_version)
        except InterviewStudioError as exc:
            raise self._failed("save_answer", session_id, exc, question_id=question_id)
        return saved

    async def _save_answer(
        self,
        session_id: str | uuid.UUID,
        question_id: str,
        raw_answer: str,
        expected_version: int | None,
    ) -> AnswerSaved:
        sanitized: SanitizedAnswer | None = None

        for _attempt in range(MAX_MERGE_ATTEMPTS):
            row = await self._require(session_id)
            if not can_transition(row.status, SessionStatus.IN_PROGRESS):
                raise InvalidStateError("Cannot modify a completed session")
            if expected_version is not None and row.version != expected_version:
                raise ConflictError(
                    "Session was modified elsewhere; reload and try again",
                    expected_version=expected_version,
                    actual_version=row.version,
                )

            if sanitized is None:
                sanitized = self.sanitizer.validate_and_mask(raw_answer)
                if not sanitized.is_valid:
                    raise ValidationError(
                        f"Invalid answer: {', '.join(sanitized.warnings)}",
                        details=sanitized.warnings,
                    )

            answers = {**(row.answers or {}), question_id: sanitized.masked_text}
            written = await self.store.write(
                row.id,
                expected_version=row.version,
                values={"answers": answers, "status": SessionStatus.IN_PROGRESS.value},
            )
            if written:
                break
            if expected_version is not None:
                raise ConflictError(
                    "Session was modified elsewhere; reload and try again",
                    expected_version=expected_version,
                )
        else:
            raise ConflictError(f"Session is busy; answer not saved after {MAX_MERGE_ATTEMPTS} attempts")

        if sanitized.contains_pii:
            logger.warning(
                "interview_answer_pii_detected",
                session_id=str(row.id),
                question_id=question_id,
                warnings=sanitized.warnings,
                original_length=len(raw_answer),
                masked_length=len(sanitized.masked_text),
            )

        logger.info(
            "interview_answer_saved",
            session_id=str(row.id),
            question_id=question_id,
            answer_length=len(sanitized.masked_text),
            has_pii=sanitized.contains_pii,
        )

        updated = await self._require(row.id)
        return AnswerSaved(session=updated, contains_pii=sanitized.contains_pii, warnings=sanitized.warnings)

    async def finalize(self, session_id: str | uuid.UUID) -> str:
        """Complete the session and return its generated content.

        Idempotent: a completed session returns its stored content with no
        provider call and no new citation record. Provider failure is
        absorbed by the synthesizer's fallback template. The citation request
        id is fixed per session, so a retry after ConflictError does not add a
        second citation record.

        Raises:
            NotFoundError: unknown or deleted session
            ValidationError: no non-blank answers to summarise
            PersistenceError: the completion write failed (session unchanged)
            ConflictError: session was modified while finalizing
        """
        try:
            return await self._finalize(session_id)
        except InterviewStudioError as exc:
            raise self._failed("finalize", session_id, exc)

    async def _finalize(self, session_id: str | uuid.UUID) -> str:
        row = await self._require(session_id)
        if is_terminal(row.status):
            return row.generated_content or ""

        pairs = answered_pairs(row.answers or {})
        if not pairs:
            raise ValidationError("No answers provided")
        if not can_transition(row.status, SessionStatus.COMPLETED):
            raise InvalidStateError(f"Cannot finalize a session in status '{row.status}'")

        result = await self.synthesizer.synthesize(dict(pairs), row.content_type)

        await self.recorder.record_citation(
            session_id=row.id,
            organization_id=row.organization_id,
            request_id=f"interview-finalize-{row.id}",
            model=result.model,
            prompt_text=result.prompt,
            completion_text=result.text,
            sources=[
                CitationSource(
                    source_type="question",
                    source_id=qid,
                    text=answer,
                    fragment_hint=f"question-{qid}",
                )
                for qid, answer in pairs
            ],
            meta={
                "source": "ai-interviewer",
                "feature": "session-finalize",
                "content_type": row.content_type,
                "question_count": len(pairs),
                "used_fallback": result.used_fallback,
            },
        )
        settings = self.synthesizer.settings
        await self.recorder.record_generation_stat(
            session_id=row.id,
            organization_id=row.organization_id,
            user_id=row.user_id,
            feature="session_finalize",
            model=result.model,
            input_tokens=result.usage.prompt_tokens,
            output_tokens=result.usage.completion_tokens,
            duration_ms=result.duration_ms,
            success=not result.used_fallback,
            cost_usd=calculate_cost(
                result.usage.prompt_tokens,
                result.usage.completion_tokens,
                settings.prompt_cost_per_1k,
                settings.completion_cost_per_1k,
            ),
            error=result.error,
        )

        written = await self.store.write(
            row.id,
            expected_version=row.version,
            values={"status": SessionStatus.COMPLETED.value, "generated_content": result.text},
        )
        if not written:
            current = await self._require(row.id)
            if current.status == SessionStatus.COMPLETED.value:
                # Another finalize won the race; its content is canonical.
                return current.generated_content or ""
            raise ConflictError("Session was modified while finalizing; retry")

        logger.info(
            "interview_session_finalized",
            session_id=str(row.id),
            question_count=len(pairs),
            generated_content_length=len(result.text),
            total_tokens=result.usage.total_tokens,
            used_fallback=result.used_fallback,
        )
        return result.text

    async def get(self, session_id: str | uuid.UUID) -> InterviewSession | None:
        return await self.store.get(session_id)

    async def list_by_user(self, user_id: str) -> list[InterviewSession]:
        return await self.store.list_by_user(user_id)

    async def delete(self, session_id: str | uuid.UUID) -> None:
        """Soft-delete a session. Raises NotFoundError if it is already gone."""
        sid = coerce_session_id(session_id)
        try:
            if sid is None or not await self.store.soft_delete(sid):
                raise NotFoundError("Session not found")
        except InterviewStudioError as exc:
            raise self._failed("delete", session_id, exc)
        logger.info("interview_session_deleted", session_id=str(sid))

    # =========================================================================
    # PRIVATE HELPERS
    # =========================================================================

    async def _require(self, session_id: str | uuid.UUID) -> InterviewSession:
        row = await self.store.get(session_id)
        if row is None:
            raise NotFoundError("Session not found")
        return row

    @staticmethod
    def _failed(operation: str, session_id, exc: InterviewStudioError, **context) -> InterviewStudioError:
        logger.warning(
            "interview_operation_failed",
            operation=operation,
            session_id=str(session_id) if session_id is not None else None,
            error_code=exc.code,
            error=exc.message,
            **context,
        )
        return exc
