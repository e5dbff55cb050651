"""Draft content rows produced from interviews, one table per content type.

Rows are always inserted with ``status="draft"`` and ``is_ai_generated=True``;
publishing happens elsewhere.
"""

import uuid

from sqlalchemy import Boolean, Column, DateTime, String, Text, Uuid

from interview_studio.db.base import Base
from interview_studio.db.models._common import utcnow


class _GeneratedContentColumns:
    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id = Column(String(255), nullable=False, index=True)
    interview_session_id = Column(Uuid, nullable=True, index=True)

    is_ai_generated = Column(Boolean, nullable=False, default=False)
    generation_source = Column(String(50), nullable=True)
    content_type = Column(String(50), nullable=False)
    status = Column(String(20), nullable=False, default="draft")

    title = Column(String(500), nullable=False)
    slug = Column(String(120), nullable=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)


class Post(_GeneratedContentColumns, Base):
    __tablename__ = "posts"

    content = Column(Text, nullable=False)
    summary = Column(Text, nullable=True)


class QAEntry(_GeneratedContentColumns, Base):
    __tablename__ = "qa_entries"

    question = Column(Text, nullable=False)
    answer = Column(Text, nullable=False)


class CaseStudy(_GeneratedContentColumns, Base):
    __tablename__ = "case_studies"

    content = Column(Text, nullable=False)
    summary = Column(Text, nullable=True)
