"""Response envelopes shared by every route.

Success: ``{"success": true, "data": ...}``
Failure: ``{"success": false, "code": ..., "message": ..., "details": [...], "debug_id": ...}``
"""

from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    success: bool = True
    data: T


class ErrorResponse(BaseModel):
    success: bool = False
    code: str
    message: str
    details: list[str] = []
    debug_id: str | None = None
