"""
Response Envelopes
==================
Every endpoint answers with ``{success, data}``; list endpoints add
``count``, ``total`` and ``pagination`` so the web client can page
without a second request.
"""

from __future__ import annotations

from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class PageRef(BaseModel):
    page: int
    limit: int


class Pagination(BaseModel):
    next: Optional[PageRef] = None
    prev: Optional[PageRef] = None


class DataResponse(BaseModel, Generic[T]):
    success: bool = True
    data: T


class ListResponse(BaseModel, Generic[T]):
    success: bool = True
    count: int = Field(..., description="Number of items in this page.")
    total: int = Field(..., description="Number of items matching the filters.")
    pagination: Pagination
    data: list[T]


class EmptyData(BaseModel):
    """Body of a successful DELETE."""


def build_pagination(page: int, limit: int, total: int) -> Pagination:
    """Return next/prev page references for a 1-based *page*."""
    start_index = (page - 1) * limit
    end_index = page * limit
    return Pagination(
        next=PageRef(page=page + 1, limit=limit) if end_index < total else None,
        prev=PageRef(page=page - 1, limit=limit) if start_index > 0 else None,
    )
