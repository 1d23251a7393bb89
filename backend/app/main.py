"""
MindCare Hub API
================
FastAPI application entry point. Mount routers here.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import get_settings
from app.routers import affirmations, auth, mood, roadmap, sleep, stress
from app.services.entry_store import EmptyWriteError, EntryStoreError

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="MindCare Hub API",
    description="Mood, sleep and stress tracking with analytics and healing roadmaps",
    version="0.1.0",
    docs_url="/api/docs" if settings.environment != "production" else None,
    redoc_url="/api/redoc" if settings.environment != "production" else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.router)
app.include_router(mood.router)
app.include_router(sleep.router)
app.include_router(stress.router)
app.include_router(affirmations.router)
app.include_router(roadmap.router)


@app.exception_handler(EmptyWriteError)
async def empty_write_handler(request: Request, exc: EmptyWriteError) -> JSONResponse:
    logger.error("Write returned no row on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"success": False, "message": str(exc), "code": "db_error"},
    )


@app.exception_handler(EntryStoreError)
async def store_error_handler(request: Request, exc: EntryStoreError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content={"success": False, "message": str(exc), "code": "upstream_failure"},
    )


@app.get("/api/v1/health")
async def health_check() -> dict:
    return {"status": "ok", "service": "mindcare-hub-api"}
