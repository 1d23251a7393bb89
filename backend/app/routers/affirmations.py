"""
Affirmation Router
==================
Public:
    GET    /api/v1/affirmations                 — Paged library (active only)
    GET    /api/v1/affirmations/random          — Random pick for a mood
    GET    /api/v1/affirmations/{id}            — One affirmation

Authenticated:
    GET    /api/v1/affirmations/favorites/mine  — Caller's favorites
    POST   /api/v1/affirmations/{id}/favorite   — Add to favorites
    DELETE /api/v1/affirmations/{id}/favorite   — Remove from favorites
    POST   /api/v1/affirmations/{id}/rate       — Rate 1-5
    POST   /api/v1/affirmations                 — Create (admin: system, others: custom)
    PUT    /api/v1/affirmations/{id}            — Update (admin or author)
    DELETE /api/v1/affirmations/{id}            — Delete (admin or author)

Reading a single or random affirmation counts as a use
(usage_count + 1, last_used = now).
"""

from __future__ import annotations

import logging
import math
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.dependencies import PageParams, get_current_user, page_params
from app.models.affirmation import (
    Affirmation,
    AffirmationCategory,
    AffirmationCreate,
    AffirmationPage,
    AffirmationRating,
    AffirmationUpdate,
    MoodAssociation,
)
from app.models.common import DataResponse, EmptyData
from app.services.affirmations import (
    AffirmationNotFoundError,
    AffirmationPermissionError,
    get_affirmation_service,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/affirmations", tags=["affirmations"])


def _not_found(exc: AffirmationNotFoundError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail={"message": str(exc), "code": "affirmation_not_found"},
    )


def _forbidden(exc: AffirmationPermissionError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail={"message": str(exc), "code": "not_owner"},
    )


# ---------------------------------------------------------------------------
# Public
# ---------------------------------------------------------------------------

@router.get("", response_model=AffirmationPage, summary="Browse affirmations")
async def list_affirmations(
    category: Optional[AffirmationCategory] = Query(None),
    search: Optional[str] = Query(None, min_length=1, max_length=100),
    paging: PageParams = Depends(page_params),
) -> AffirmationPage:
    rows, total = get_affirmation_service().list_active(
        category=category, search=search, page=paging.page, limit=paging.limit
    )
    return AffirmationPage(
        count=len(rows),
        total=total,
        total_pages=math.ceil(total / paging.limit),
        current_page=paging.page,
        data=[Affirmation(**row) for row in rows],
    )


@router.get(
    "/random",
    response_model=DataResponse[Affirmation],
    summary="Random affirmation",
    responses={404: {"description": "Nothing matches the filters"}},
)
async def random_affirmation(
    mood: Optional[MoodAssociation] = Query(None),
    category: Optional[AffirmationCategory] = Query(None),
) -> DataResponse[Affirmation]:
    try:
        row = get_affirmation_service().pick_random(mood=mood, category=category)
    except AffirmationNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={
                "message": "No affirmations found with the specified filters",
                "code": "no_affirmations",
            },
        ) from exc
    return DataResponse[Affirmation](data=Affirmation(**row))


# ---------------------------------------------------------------------------
# Authenticated
# ---------------------------------------------------------------------------

@router.get("/favorites/mine", response_model=DataResponse[list[Affirmation]])
async def my_favorites(user: dict = Depends(get_current_user)) -> DataResponse[list[Affirmation]]:
    rows = get_affirmation_service().favorites(user["id"])
    return DataResponse[list[Affirmation]](data=[Affirmation(**row) for row in rows])


@router.post(
    "",
    response_model=DataResponse[Affirmation],
    status_code=status.HTTP_201_CREATED,
    summary="Create an affirmation",
)
async def create_affirmation(
    body: AffirmationCreate,
    user: dict = Depends(get_current_user),
) -> DataResponse[Affirmation]:
    row = get_affirmation_service().create(user, body.model_dump(mode="json"))
    return DataResponse[Affirmation](data=Affirmation(**row))


@router.get("/{affirmation_id}", response_model=DataResponse[Affirmation])
async def get_affirmation(affirmation_id: str) -> DataResponse[Affirmation]:
    try:
        row = get_affirmation_service().get(affirmation_id)
    except AffirmationNotFoundError as exc:
        raise _not_found(exc) from exc
    return DataResponse[Affirmation](data=Affirmation(**row))


@router.put("/{affirmation_id}", response_model=DataResponse[Affirmation])
async def update_affirmation(
    affirmation_id: str,
    body: AffirmationUpdate,
    user: dict = Depends(get_current_user),
) -> DataResponse[Affirmation]:
    changes = body.model_dump(mode="json", exclude_unset=True, exclude_none=True)
    try:
        row = get_affirmation_service().update(affirmation_id, user, changes)
    except AffirmationNotFoundError as exc:
        raise _not_found(exc) from exc
    except AffirmationPermissionError as exc:
        raise _forbidden(exc) from exc
    return DataResponse[Affirmation](data=Affirmation(**row))


@router.delete("/{affirmation_id}", response_model=DataResponse[EmptyData])
async def delete_affirmation(
    affirmation_id: str,
    user: dict = Depends(get_current_user),
) -> DataResponse[EmptyData]:
    try:
        get_affirmation_service().delete(affirmation_id, user)
    except AffirmationNotFoundError as exc:
        raise _not_found(exc) from exc
    except AffirmationPermissionError as exc:
        raise _forbidden(exc) from exc
    return DataResponse[EmptyData](data=EmptyData())


@router.post("/{affirmation_id}/favorite", response_model=DataResponse[Affirmation])
async def favorite_affirmation(
    affirmation_id: str,
    user: dict = Depends(get_current_user),
) -> DataResponse[Affirmation]:
    try:
        row = get_affirmation_service().add_favorite(affirmation_id, user["id"])
    except AffirmationNotFoundError as exc:
        raise _not_found(exc) from exc
    return DataResponse[Affirmation](data=Affirmation(**row))


@router.delete("/{affirmation_id}/favorite", response_model=DataResponse[Affirmation])
async def unfavorite_affirmation(
    affirmation_id: str,
    user: dict = Depends(get_current_user),
) -> DataResponse[Affirmation]:
    try:
        row = get_affirmation_service().remove_favorite(affirmation_id, user["id"])
    except AffirmationNotFoundError as exc:
        raise _not_found(exc) from exc
    return DataResponse[Affirmation](data=Affirmation(**row))


@router.post("/{affirmation_id}/rate", response_model=DataResponse[Affirmation])
async def rate_affirmation(
    affirmation_id: str,
    body: AffirmationRating,
    user: dict = Depends(get_current_user),
) -> DataResponse[Affirmation]:
    try:
        row = get_affirmation_service().rate(affirmation_id, body.rating)
    except AffirmationNotFoundError as exc:
        raise _not_found(exc) from exc
    logger.info("User %s rated affirmation %s: %d", user["id"], affirmation_id, body.rating)
    return DataResponse[Affirmation](data=Affirmation(**row))
