"""Derived content generation schemas."""

from uuid import UUID

from pydantic import BaseModel


class DerivedContentResponse(BaseModel):
    job_id: UUID
    content_id: UUID
    content_type: str
    table_name: str
    title: str
    slug: str
    summary: str | None = None
    cost_usd: float
    source_unit_ids: list[UUID] = []
