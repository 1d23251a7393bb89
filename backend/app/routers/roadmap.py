"""
Healing Roadmap Router
======================
GET /api/v1/roadmap — Generate a fresh 4-week roadmap for the caller.

Answers 200 with ``{success: true, data: {...}}`` when a completion came
back (even if the model's JSON could not be parsed; the fallback roadmap
carries the raw reply). Any other failure answers 502 with the
``{success: false, message, error}`` body.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from app.dependencies import get_current_user
from app.services.roadmap import get_roadmap_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/roadmap", tags=["roadmap"])


@router.get(
    "",
    summary="Generate a healing roadmap",
    responses={
        200: {"description": "Roadmap generated"},
        401: {"description": "Authentication required"},
        502: {"description": "Roadmap could not be generated"},
    },
)
async def get_roadmap(user: dict = Depends(get_current_user)):
    result = await get_roadmap_service().generate_for_user(user["id"])
    if not result["success"]:
        return JSONResponse(status_code=status.HTTP_502_BAD_GATEWAY, content=result)
    return result
