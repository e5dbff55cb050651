"""Linkage rows from a generated content item back to its interview sources."""

import uuid

from sqlalchemy import Column, DateTime, Float, Integer, String, Uuid

from interview_studio.db.base import Base
from interview_studio.db.models._common import utcnow


class ContentInterviewLink(Base):
    """``generated_from`` link: content row -> interview session."""

    __tablename__ = "content_interview_links"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    content_type = Column(String(50), nullable=False)
    content_id = Column(Uuid, nullable=False, index=True)
    interview_session_id = Column(Uuid, nullable=False, index=True)
    relation_type = Column(String(30), nullable=False, default="generated_from")

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class ContentUnitLink(Base):
    """``source_unit`` link: content row -> content unit used in the prompt."""

    __tablename__ = "ai_content_unit_links"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    interview_session_id = Column(Uuid, nullable=False, index=True)
    content_type = Column(String(50), nullable=False)
    content_id = Column(Uuid, nullable=False, index=True)
    content_unit_id = Column(Uuid, nullable=False)
    relation_type = Column(String(30), nullable=False, default="source_unit")
    visibility_score = Column(Float, nullable=True)
    rank = Column(Integer, nullable=False)  # 0 = highest score

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
