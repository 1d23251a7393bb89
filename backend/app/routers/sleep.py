"""
Sleep Entry Router
==================
POST   /api/v1/sleep            — Log a night
GET    /api/v1/sleep            — Page through nights (newest sleep_time first)
GET    /api/v1/sleep/stats      — Duration / quality summary (default 7 days)
GET    /api/v1/sleep/insights   — Environment, activity and aid impact,
                                  schedule consistency, recommendations
                                  (default 30 days)
GET    /api/v1/sleep/{id}       — Fetch one night
PUT    /api/v1/sleep/{id}       — Partial update
DELETE /api/v1/sleep/{id}       — Delete

A partial update may move only one end of the sleep window, so the
window is re-checked against the merged record before anything is
written. An inverted window answers 422 ``invalid_sleep_window``.
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
from app.models.sleep import (
    SleepEntry,
    SleepEntryCreate,
    SleepEntryUpdate,
    SleepWindowError,
    check_sleep_window,
)
from app.models.stats import SleepInsights, SleepStats
from app.services.analytics import get_analytics_service
from app.services.entry_store import get_entry_store
from app.services.statistics import parse_timestamp

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/sleep", tags=["sleep"])


@router.post(
    "",
    response_model=DataResponse[SleepEntry],
    status_code=status.HTTP_201_CREATED,
    summary="Log a night of sleep",
    responses={422: {"description": "Validation error (including sleep_time >= wake_time)"}},
)
async def create_sleep_entry(
    body: SleepEntryCreate,
    user: dict = Depends(get_current_user),
) -> DataResponse[SleepEntry]:
    row = get_entry_store("sleep").create(user["id"], body.model_dump(mode="json"))
    return DataResponse[SleepEntry](data=SleepEntry(**row))


@router.get("", response_model=ListResponse[SleepEntry], summary="List sleep entries")
async def list_sleep_entries(
    start_date: Optional[datetime] = Query(None, description="Inclusive lower bound on sleep_time"),
    end_date: Optional[datetime] = Query(None, description="Inclusive upper bound on sleep_time"),
    quality: Optional[int] = Query(None, ge=1, le=5),
    paging: PageParams = Depends(page_params),
    user: dict = Depends(get_current_user),
) -> ListResponse[SleepEntry]:
    filters = date_range_filters("sleep_time", start_date, end_date)
    if quality is not None:
        filters.append(("quality", "eq", quality))

    store = get_entry_store("sleep")
    total = store.count(user["id"], filters)
    rows = store.find(user["id"], filters, limit=paging.limit, offset=paging.offset)

    return ListResponse[SleepEntry](
        count=len(rows),
        total=total,
        pagination=build_pagination(paging.page, paging.limit, total),
        data=[SleepEntry(**row) for row in rows],
    )


@router.get("/stats", response_model=DataResponse[SleepStats], summary="Sleep statistics")
async def get_sleep_stats(
    days: Optional[int] = Query(None, ge=1, le=365, description="Lookback window in days (default 7)"),
    user: dict = Depends(get_current_user),
) -> DataResponse[SleepStats]:
    days = days or get_settings().sleep_stats_days
    return DataResponse[SleepStats](data=get_analytics_service().sleep_stats(user["id"], days))


@router.get("/insights", response_model=DataResponse[SleepInsights], summary="Sleep insights")
async def get_sleep_insights(
    days: Optional[int] = Query(None, ge=1, le=365, description="Lookback window in days (default 30)"),
    user: dict = Depends(get_current_user),
) -> DataResponse[SleepInsights]:
    days = days or get_settings().sleep_insights_days
    return DataResponse[SleepInsights](data=get_analytics_service().sleep_insights(user["id"], days))


@router.get("/{entry_id}", response_model=DataResponse[SleepEntry])
async def get_sleep_entry(
    entry_id: str,
    user: dict = Depends(get_current_user),
) -> DataResponse[SleepEntry]:
    row = load_owned_entry(get_entry_store("sleep"), entry_id, user["id"])
    return DataResponse[SleepEntry](data=SleepEntry(**row))


@router.put(
    "/{entry_id}",
    response_model=DataResponse[SleepEntry],
    responses={422: {"description": "Merged sleep window is inverted"}},
)
async def update_sleep_entry(
    entry_id: str,
    body: SleepEntryUpdate,
    user: dict = Depends(get_current_user),
) -> DataResponse[SleepEntry]:
    store = get_entry_store("sleep")
    existing = load_owned_entry(store, entry_id, user["id"])

    sleep_time = body.sleep_time or parse_timestamp(existing["sleep_time"])
    wake_time = body.wake_time or parse_timestamp(existing["wake_time"])
    try:
        check_sleep_window(sleep_time, wake_time)
    except SleepWindowError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={
                "message": str(exc),
                "code": "invalid_sleep_window",
                "sleep_time": sleep_time.isoformat(),
                "wake_time": wake_time.isoformat(),
            },
        ) from exc

    row = store.update_by_id(entry_id, body.model_dump(mode="json", exclude_unset=True, exclude_none=True))
    return DataResponse[SleepEntry](data=SleepEntry(**row))


@router.delete("/{entry_id}", response_model=DataResponse[EmptyData])
async def delete_sleep_entry(
    entry_id: str,
    user: dict = Depends(get_current_user),
) -> DataResponse[EmptyData]:
    store = get_entry_store("sleep")
    load_owned_entry(store, entry_id, user["id"])
    store.delete_by_id(entry_id)
    return DataResponse[EmptyData](data=EmptyData())
