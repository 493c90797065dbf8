"""
Common schema types used across the API.
"""

from datetime import datetime
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


class ErrorResponse(BaseModel):
    """Standard error body."""

    success: bool = False
    error: str
    message: str
    path: Optional[str] = None
    timestamp: datetime
    request_id: Optional[str] = None


class ApiResponse(BaseModel, Generic[T]):
    """Standard success envelope."""

    success: bool = True
    data: T
    message: Optional[str] = None


class Pagination(BaseModel):
    """Paging metadata for list endpoints."""

    model_config = ConfigDict(populate_by_name=True)

    page: int
    limit: int
    total: int
    total_pages: int = Field(..., alias="totalPages")

    @classmethod
    def create(cls, page: int, limit: int, total: int) -> "Pagination":
        return cls(
            page=page,
            limit=limit,
            total=total,
            total_pages=(total + limit - 1) // limit if limit else 0,
        )


class PaginatedResponse(BaseModel, Generic[T]):
    """Success envelope with a page of items."""

    success: bool = True
    data: List[T]
    pagination: Pagination


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    version: str
    environment: str
    database: str = "connected"
    timestamp: datetime
