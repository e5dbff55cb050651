"""Citation models: provenance of one AI synthesis call and its weighted sources.

Rows are append-only; nothing in this service updates them after insert.
"""

import uuid

from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, JSON, String, Uuid
from sqlalchemy.orm import relationship

from interview_studio.db.base import Base
from interview_studio.db.models._common import utcnow


class CitationResponse(Base):
    __tablename__ = "ai_citations_responses"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id = Column(String(255), nullable=True, index=True)
    session_id = Column(Uuid, nullable=False, index=True)
    # One response per request; finalize retries reuse the same id
    request_id = Column(String(255), nullable=False, unique=True)

    model = Column(String(100), nullable=False)
    prompt_tokens = Column(Integer, nullable=False, default=0)
    completion_tokens = Column(Integer, nullable=False, default=0)
    total_tokens = Column(Integer, nullable=False, default=0)
    quoted_tokens_total = Column(Integer, nullable=False, default=0)
    quoted_chars_total = Column(Integer, nullable=False, default=0)

    meta = Column(JSON, nullable=True)  # source, feature, content_type, counts

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    items = relationship(
        "CitationItem",
        back_populates="response",
        order_by="CitationItem.position",
        lazy="selectin",
    )


class CitationItem(Base):
    __tablename__ = "ai_citations_items"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    response_id = Column(Uuid, ForeignKey("ai_citations_responses.id"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)

    source_type = Column(String(30), nullable=False)  # question, content_unit
    source_id = Column(String(255), nullable=False)
    weight = Column(Float, nullable=False)
    quoted_tokens = Column(Integer, nullable=False, default=0)
    quoted_chars = Column(Integer, nullable=False, default=0)
    fragment_hint = Column(String(255), nullable=True)
    locale = Column(String(10), nullable=True)

    response = relationship("CitationResponse", back_populates="items")
