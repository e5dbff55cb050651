"""CitationRecorder: provenance and usage records for AI synthesis calls.

Both writes are best-effort: a failure is logged at error level and the
caller carries on. Neither method raises.
"""

import uuid
from dataclasses import dataclass
from typing import Any

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from interview_studio.db.models.citation import CitationItem, CitationResponse
from interview_studio.db.models.generation_stat import GenerationStat
from interview_studio.domain.pricing import estimate_tokens

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CitationSource:
    """One piece of source material quoted into a prompt."""

    source_type: str  # question, content_unit
    source_id: str
    text: str
    fragment_hint: str | None = None


class CitationRecorder:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession], locale: str = "en"):
        self.session_factory = session_factory
        self.locale = locale

    async def record_citation(
        self,
        *,
        session_id: uuid.UUID,
        organization_id: str | None,
        request_id: str,
        model: str,
        prompt_text: str,
        completion_text: str,
        sources: list[CitationSource],
        meta: dict[str, Any],
    ) -> uuid.UUID | None:
        """Persist one CitationResponse with an equal-weight item per source.

        Token counts are estimated from text length (``ceil(len / 4)``).
        A ``request_id`` that was already recorded is not written again.

        Returns:
            The response id (the existing one for a repeated ``request_id``),
            or None if the write failed.
        """
        prompt_tokens = estimate_tokens(prompt_text)
        completion_tokens = estimate_tokens(completion_text)
        weight = 1.0 / len(sources) if sources else 0.0

        items = [
            CitationItem(
                position=position,
                source_type=source.source_type,
                source_id=source.source_id,
                weight=weight,
                quoted_tokens=estimate_tokens(source.text),
                quoted_chars=len(source.text),
                fragment_hint=source.fragment_hint,
                locale=self.locale,
            )
            for position, source in enumerate(sources)
        ]
        response = CitationResponse(
            organization_id=organization_id,
            session_id=session_id,
            request_id=request_id,
            model=model,
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            total_tokens=prompt_tokens + completion_tokens,
            quoted_tokens_total=sum(item.quoted_tokens for item in items),
            quoted_chars_total=sum(item.quoted_chars for item in items),
            meta=meta,
            items=items,
        )

        try:
            async with self.session_factory() as session:
                existing_id = await session.scalar(
                    select(CitationResponse.id).where(CitationResponse.request_id == request_id)
                )
                if existing_id is None:
                    session.add(response)
                    await session.commit()
        except Exception as exc:
            logger.error(
                "citation_record_failed",
                session_id=str(session_id),
                request_id=request_id,
                model=model,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            return None

        if existing_id is not None:
            logger.info("citation_already_recorded", session_id=str(session_id), request_id=request_id)
            return existing_id

        logger.info(
            "citation_recorded",
            session_id=str(session_id),
            response_id=str(response.id),
            model=model,
            items=len(items),
            total_tokens=prompt_tokens + completion_tokens,
        )
        return response.id

    async def record_generation_stat(
        self,
        *,
        session_id: uuid.UUID,
        organization_id: str | None,
        user_id: str | None,
        feature: str,
        model: str,
        input_tokens: int,
        output_tokens: int,
        duration_ms: int,
        success: bool,
        cost_usd: float | None = None,
        error: str | None = None,
    ) -> None:
        stat = GenerationStat(
            session_id=session_id,
            organization_id=organization_id,
            user_id=user_id,
            feature=feature,
            model=model,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            duration_ms=duration_ms,
            cost_usd=cost_usd,
            success=success,
            error={"message": error} if error else None,
        )
        try:
            async with self.session_factory() as session:
                session.add(stat)
                await session.commit()
        except Exception as exc:
            logger.error(
                "generation_stat_record_failed",
                session_id=str(session_id),
                feature=feature,
                error=str(exc),
                error_type=type(exc).__name__,
            )
