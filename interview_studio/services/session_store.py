"""SessionStore: the only read/write path for interview session rows.

Thin adapter over the async session factory. Every write is conditional on
the row's ``version`` so callers can detect a concurrent writer, and every
datastore failure surfaces as ``PersistenceError``.
"""

import uuid
from typing import Any

import structlog
from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from interview_studio.core.exceptions import PersistenceError
from interview_studio.db.models._common import utcnow
from interview_studio.db.models.content_unit import ContentUnit
from interview_studio.db.models.interview_session import InterviewSession
from interview_studio.domain.session_states import SessionStatus

logger = structlog.get_logger(__name__)


def coerce_session_id(value: str | uuid.UUID) -> uuid.UUID | None:
    """Parse a session id, returning None for malformed input."""
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


class SessionStore:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def insert(
        self,
        *,
        organization_id: str,
        user_id: str,
        content_type: str,
        answers: dict[str, str],
    ) -> InterviewSession:
        row = InterviewSession(
            organization_id=organization_id,
            user_id=user_id,
            content_type=content_type,
            status=SessionStatus.DRAFT.value,
            answers=answers,
            generated_content=None,
            version=1,
        )
        try:
            async with self.session_factory() as session:
                session.add(row)
                await session.commit()
                await session.refresh(row)
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to create session: {exc}") from exc
        return row

    async def get(self, session_id: str | uuid.UUID, *, include_deleted: bool = False) -> InterviewSession | None:
        sid = coerce_session_id(session_id)
        if sid is None:
            return None

        query = select(InterviewSession).where(InterviewSession.id == sid)
        if not include_deleted:
            query = query.where(InterviewSession.deleted_at.is_(None))

        try:
            async with self.session_factory() as session:
                result = await session.execute(query)
                return result.scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to fetch session: {exc}") from exc

    async def list_by_user(self, user_id: str) -> list[InterviewSession]:
        """Return the user's live sessions, most recently created first."""
        try:
            async with self.session_factory() as session:
                result = await session.execute(
                    select(InterviewSession)
                    .where(
                        InterviewSession.user_id == user_id,
                        InterviewSession.deleted_at.is_(None),
                    )
                    .order_by(InterviewSession.created_at.desc())
                )
                return list(result.scalars().all())
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to fetch sessions: {exc}") from exc

    async def write(self, session_id: uuid.UUID, *, expected_version: int, values: dict[str, Any]) -> bool:
        """Apply ``values`` if the row is still at ``expected_version``.

        Bumps ``version`` and ``updated_at`` on success.

        Returns:
            True if the row was updated, False if another writer got there
            first (or the row was deleted meanwhile).
        """
        stmt = (
            update(InterviewSession)
            .where(
                InterviewSession.id == session_id,
                InterviewSession.version == expected_version,
                InterviewSession.deleted_at.is_(None),
            )
            .values(**values, version=expected_version + 1, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        try:
            async with self.session_factory() as session:
                result = await session.execute(stmt)
                await session.commit()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to update session: {exc}") from exc
        return result.rowcount == 1

    async def soft_delete(self, session_id: uuid.UUID) -> bool:
        now = utcnow()
        stmt = (
            update(InterviewSession)
            .where(InterviewSession.id == session_id, InterviewSession.deleted_at.is_(None))
            .values(deleted_at=now, updated_at=now, version=InterviewSession.version + 1)
            .execution_options(synchronize_session=False)
        )
        try:
            async with self.session_factory() as session:
                result = await session.execute(stmt)
                await session.commit()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to delete session: {exc}") from exc
        return result.rowcount == 1

    async def list_content_units(self, session_id: uuid.UUID) -> list[ContentUnit]:
        """Return the session's content units in ``order_no`` order."""
        try:
            async with self.session_factory() as session:
                result = await session.execute(
                    select(ContentUnit)
                    .where(ContentUnit.session_id == session_id)
                    .order_by(ContentUnit.order_no.asc())
                )
                return list(result.scalars().all())
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to fetch content units: {exc}") from exc
