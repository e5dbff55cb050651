"""InterviewSession model: one interview attempt and its answer map."""

import uuid

from sqlalchemy import Column, DateTime, Integer, JSON, String, Text, Uuid

from interview_studio.db.base import Base
from interview_studio.db.models._common import utcnow


class InterviewSession(Base):
    __tablename__ = "ai_interview_sessions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id = Column(String(255), nullable=False, index=True)
    user_id = Column(String(255), nullable=False, index=True)

    content_type = Column(String(50), nullable=False)  # service, product, faq, case_study
    status = Column(String(20), nullable=False, default="draft")  # draft, in_progress, completed

    answers = Column(JSON, nullable=False, default=dict)  # {question_id: answer_text}
    generated_content = Column(Text, nullable=True)

    # Bumped on every write; writes are conditional on the value read
    version = Column(Integer, nullable=False, default=1)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
    deleted_at = Column(DateTime(timezone=True), nullable=True)
