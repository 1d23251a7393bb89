"""
Stress Entry Router
===================
POST   /api/v1/stress            — Log a stress entry
GET    /api/v1/stress            — Page through entries (newest first)
GET    /api/v1/stress/stats      — Level summary, top stressors, weekly pattern
GET    /api/v1/stress/insights   — Stressor frequency, coping-method ranking,
                                   hour-of-day pattern
GET    /api/v1/stress/{id}       — Fetch one entry
PUT    /api/v1/stress/{id}       — Partial update
DELETE /api/v1/stress/{id}       — Delete
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.config import get_settings
from app.dependencies import (
    PageParams,
    date_range_filters,
    get_current_user,
    load_owned_entry,
    page_params,
)
from app.models.common import DataResponse, EmptyData, ListResponse, build_pagination
from app.models.stats import StressInsights, StressStats
from app.models.stress import StressEntry, StressEntryCreate, StressEntryUpdate
from app.services.analytics import get_analytics_service
from app.services.entry_store import get_entry_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/stress", tags=["stress"])


@router.post(
    "",
    response_model=DataResponse[StressEntry],
    status_code=status.HTTP_201_CREATED,
    summary="Log a stress entry",
)
async def create_stress_entry(
    body: StressEntryCreate,
    user: dict = Depends(get_current_user),
) -> DataResponse[StressEntry]:
    row = get_entry_store("stress").create(user["id"], body.model_dump(mode="json"))
    return DataResponse[StressEntry](data=StressEntry(**row))


@router.get("", response_model=ListResponse[StressEntry], summary="List stress entries")
async def list_stress_entries(
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    min_stress_level: Optional[int] = Query(None, ge=1, le=10),
    max_stress_level: Optional[int] = Query(None, ge=1, le=10),
    paging: PageParams = Depends(page_params),
    user: dict = Depends(get_current_user),
) -> ListResponse[StressEntry]:
    if (
        min_stress_level is not None
        and max_stress_level is not None
        and min_stress_level > max_stress_level
    ):
        raise HTTPException(
            status_code=422,
            detail={
                "message": "min_stress_level cannot exceed max_stress_level",
                "code": "invalid_range",
            },
        )

    filters = date_range_filters("created_at", start_date, end_date)
    if min_stress_level is not None:
        filters.append(("stress_level", "gte", min_stress_level))
    if max_stress_level is not None:
        filters.append(("stress_level", "lte", max_stress_level))

    store = get_entry_store("stress")
    total = store.count(user["id"], filters)
    rows = store.find(user["id"], filters, limit=paging.limit, offset=paging.offset)

    return ListResponse[StressEntry](
        count=len(rows),
        total=total,
        pagination=build_pagination(paging.page, paging.limit, total),
        data=[StressEntry(**row) for row in rows],
    )


@router.get("/stats", response_model=DataResponse[StressStats], summary="Stress statistics")
async def get_stress_stats(
    days: Optional[int] = Query(None, ge=1, le=365, description="Lookback window in days (default 30)"),
    user: dict = Depends(get_current_user),
) -> DataResponse[StressStats]:
    days = days or get_settings().stress_stats_days
    return DataResponse[StressStats](data=get_analytics_service().stress_stats(user["id"], days))


@router.get("/insights", response_model=DataResponse[StressInsights], summary="Stress insights")
async def get_stress_insights(
    days: Optional[int] = Query(None, ge=1, le=365, description="Lookback window in days (default 30)"),
    user: dict = Depends(get_current_user),
) -> DataResponse[StressInsights]:
    days = days or get_settings().stress_stats_days
    return DataResponse[StressInsights](data=get_analytics_service().stress_insights(user["id"], days))


@router.get("/{entry_id}", response_model=DataResponse[StressEntry])
async def get_stress_entry(
    entry_id: str,
    user: dict = Depends(get_current_user),
) -> DataResponse[StressEntry]:
    row = load_owned_entry(get_entry_store("stress"), entry_id, user["id"])
    return DataResponse[StressEntry](data=StressEntry(**row))


@router.put("/{entry_id}", response_model=DataResponse[StressEntry])
async def update_stress_entry(
    entry_id: str,
    body: StressEntryUpdate,
    user: dict = Depends(get_current_user),
) -> DataResponse[StressEntry]:
    store = get_entry_store("stress")
    load_owned_entry(store, entry_id, user["id"])
    row = store.update_by_id(entry_id, body.model_dump(mode="json", exclude_unset=True, exclude_none=True))
    return DataResponse[StressEntry](data=StressEntry(**row))


@router.delete("/{entry_id}", response_model=DataResponse[EmptyData])
async def delete_stress_entry(
    entry_id: str,
    user: dict = Depends(get_current_user),
) -> DataResponse[EmptyData]:
    store = get_entry_store("stress")
    load_owned_entry(store, entry_id, user["id"])
    store.delete_by_id(entry_id)
    return DataResponse[EmptyData](data=EmptyData())
