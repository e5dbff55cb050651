"""GenerationJob model: audit and cost record of one derived-content attempt."""

import uuid

from sqlalchemy import Column, DateTime, Float, Integer, JSON, String, Text, Uuid

from interview_studio.db.base import Base
from interview_studio.db.models._common import utcnow


class GenerationJob(Base):
    __tablename__ = "ai_generation_jobs"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id = Column(String(255), nullable=False, index=True)
    interview_session_id = Column(Uuid, nullable=False, index=True)

    target_content_type = Column(String(50), nullable=False)  # post, qa_entry, case_study
    generation_source = Column(String(50), nullable=False)
    target_content_id = Column(Uuid, nullable=True)  # set once the draft row is saved

    status = Column(String(20), nullable=False, default="running")  # running, succeeded, failed
    provider_calls = Column(Integer, nullable=False, default=0)
    cost_usd = Column(Float, nullable=False, default=0.0)
    error = Column(Text, nullable=True)
    meta = Column(JSON, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
