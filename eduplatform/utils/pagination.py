# eduplatform/utils/pagination.py
"""Pagination utilities for consistent API responses."""
from typing import Any, Dict, List, Optional
from math import ceil

from fastapi import Query
from pydantic import BaseModel, Field


class PaginationParams(BaseModel):
    """Standard pagination parameters."""
    page: int = Field(1, ge=1, description="Page number (starts from 1)")
    size: int = Field(20, ge=1, le=100, description="Items per page")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.size


def pagination_params(
    page: int = Query(1, ge=1, description="Page number"),
    size: int = Query(20, ge=1, le=100, description="Items per page")
) -> PaginationParams:
    """FastAPI dependency for pagination parameters."""
    return PaginationParams(page=page, size=size)


def paginated_response(
    items: List[Any],
    page: int,
    size: int,
    total: int,
    additional_info: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """Build the standard list envelope used by every paginated endpoint."""
    total_pages = ceil(total / size) if size > 0 else 0
    meta = {
        "page": page,
        "size": size,
        "total": total,
        "total_pages": total_pages,
        "has_next": page < total_pages,
        "has_previous": page > 1,
    }
    response = {"items": items, "meta": meta}
    # Flat copies of the meta fields for older clients
    response.update(meta)

    if additional_info:
        response.update(additional_info)
    return response
