"""ContentUnit model: a ranked fragment of prior content attached to a session."""

import uuid

from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, JSON, String, Text, Uuid

from interview_studio.db.base import Base
from interview_studio.db.models._common import utcnow


class ContentUnit(Base):
    __tablename__ = "ai_content_units"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    session_id = Column(Uuid, ForeignKey("ai_interview_sessions.id"), nullable=False, index=True)
    organization_id = Column(String(255), nullable=True)

    section_key = Column(String(100), nullable=False)
    title = Column(String(500), nullable=True)
    content = Column(Text, nullable=False)
    order_no = Column(Integer, nullable=False, default=0)

    # Ranking only; never used to filter units out
    visibility_score = Column(Float, nullable=True)
    meta = Column(JSON, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
