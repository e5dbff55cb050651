"""GenerationStat model: per-call AI usage and cost, aggregated per organization."""

import uuid

from sqlalchemy import Boolean, Column, DateTime, Float, Integer, JSON, String, Uuid

from interview_studio.db.base import Base
from interview_studio.db.models._common import utcnow


class GenerationStat(Base):
    __tablename__ = "ai_generation_stats"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    session_id = Column(Uuid, nullable=False, index=True)
    organization_id = Column(String(255), nullable=True, index=True)
    user_id = Column(String(255), nullable=True)

    feature = Column(String(50), nullable=False)  # session_finalize, derived_<type>
    model = Column(String(100), nullable=False)
    input_tokens = Column(Integer, nullable=False, default=0)
    output_tokens = Column(Integer, nullable=False, default=0)
    duration_ms = Column(Integer, nullable=False, default=0)
    cost_usd = Column(Float, nullable=True)
    success = Column(Boolean, nullable=False)
    error = Column(JSON, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
