"""
Mood Entry Router
=================
POST   /api/v1/mood           — Log a mood entry
GET    /api/v1/mood           — Page through the caller's entries (newest first)
GET    /api/v1/mood/stats     — Summary, per-mood breakdown and weekly pattern
GET    /api/v1/mood/{id}      — Fetch one entry
PUT    /api/v1/mood/{id}      — Partial update
DELETE /api/v1/mood/{id}      — Delete

All routes require a Supabase bearer token. Entries are only ever
visible to their owner: another user's id answers 403, an unknown id 404.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from app.config import get_settings
from app.dependencies import (
    PageParams,
    date_range_filters,
    get_current_user,
    load_owned_entry,
    page_params,
)
from app.models.common import DataResponse, EmptyData, ListResponse, build_pagination
from app.models.mood import Mood, MoodEntry, MoodEntryCreate, MoodEntryUpdate
from app.models.stats import MoodStats
from app.services.analytics import get_analytics_service
from app.services.entry_store import get_entry_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/mood", tags=["mood"])


@router.post(
    "",
    response_model=DataResponse[MoodEntry],
    status_code=status.HTTP_201_CREATED,
    summary="Log a mood entry",
)
async def create_mood_entry(
    body: MoodEntryCreate,
    user: dict = Depends(get_current_user),
) -> DataResponse[MoodEntry]:
    row = get_entry_store("mood").create(user["id"], body.model_dump(mode="json"))
    return DataResponse[MoodEntry](data=MoodEntry(**row))


@router.get(
    "",
    response_model=ListResponse[MoodEntry],
    summary="List mood entries",
)
async def list_mood_entries(
    start_date: Optional[datetime] = Query(None, description="Inclusive lower bound on created_at"),
    end_date: Optional[datetime] = Query(None, description="Inclusive upper bound on created_at"),
    mood: Optional[Mood] = Query(None),
    paging: PageParams = Depends(page_params),
    user: dict = Depends(get_current_user),
) -> ListResponse[MoodEntry]:
    filters = date_range_filters("created_at", start_date, end_date)
    if mood:
        filters.append(("mood", "eq", mood))

    store = get_entry_store("mood")
    total = store.count(user["id"], filters)
    rows = store.find(user["id"], filters, limit=paging.limit, offset=paging.offset)

    return ListResponse[MoodEntry](
        count=len(rows),
        total=total,
        pagination=build_pagination(paging.page, paging.limit, total),
        data=[MoodEntry(**row) for row in rows],
    )


@router.get(
    "/stats",
    response_model=DataResponse[MoodStats],
    summary="Mood statistics over a lookback window",
)
async def get_mood_stats(
    days: Optional[int] = Query(None, ge=1, le=365, description="Lookback window in days (default 30)"),
    user: dict = Depends(get_current_user),
) -> DataResponse[MoodStats]:
    days = days or get_settings().mood_stats_days
    stats = get_analytics_service().mood_stats(user["id"], days)
    return DataResponse[MoodStats](data=stats)


@router.get("/{entry_id}", response_model=DataResponse[MoodEntry])
async def get_mood_entry(
    entry_id: str,
    user: dict = Depends(get_current_user),
) -> DataResponse[MoodEntry]:
    row = load_owned_entry(get_entry_store("mood"), entry_id, user["id"])
    return DataResponse[MoodEntry](data=MoodEntry(**row))


@router.put("/{entry_id}", response_model=DataResponse[MoodEntry])
async def update_mood_entry(
    entry_id: str,
    body: MoodEntryUpdate,
    user: dict = Depends(get_current_user),
) -> DataResponse[MoodEntry]:
    store = get_entry_store("mood")
    load_owned_entry(store, entry_id, user["id"])
    row = store.update_by_id(entry_id, body.model_dump(mode="json", exclude_unset=True, exclude_none=True))
    return DataResponse[MoodEntry](data=MoodEntry(**row))


@router.delete("/{entry_id}", response_model=DataResponse[EmptyData])
async def delete_mood_entry(
    entry_id: str,
    user: dict = Depends(get_current_user),
) -> DataResponse[EmptyData]:
    store = get_entry_store("mood")
    load_owned_entry(store, entry_id, user["id"])
    store.delete_by_id(entry_id)
    return DataResponse[EmptyData](data=EmptyData())
