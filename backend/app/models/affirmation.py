"""
Affirmation Schemas
===================
Pydantic models for the affirmation library.

favorite_count and the metadata block are maintained server-side and are
never accepted from the client.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from app.models.mood import unique_in_order


# ---------------------------------------------------------------------------
# Allowed values
# ---------------------------------------------------------------------------

AffirmationCategory = Literal[
    "self_love",
    "confidence",
    "motivation",
    "gratitude",
    "anxiety",
    "stress",
    "positivity",
    "general",
    "other",
]

MoodAssociation = Literal[
    "happy",
    "sad",
    "anxious",
    "stressed",
    "angry",
    "tired",
    "neutral",
    "excited",
    "grateful",
    "overwhelmed",
    "all",
]


# ---------------------------------------------------------------------------
# Request
# ---------------------------------------------------------------------------

class AffirmationCreate(BaseModel):
    text: str = Field(..., min_length=1, max_length=500)
    category: AffirmationCategory = "general"
    mood_association: list[MoodAssociation] = Field(default_factory=lambda: ["all"])
    is_public: bool = True
    tags: list[str] = Field(default_factory=list)

    @field_validator("mood_association")
    @classmethod
    def default_to_all(cls, values):
        return unique_in_order(values) or ["all"]


class AffirmationUpdate(BaseModel):
    text: Optional[str] = Field(default=None, min_length=1, max_length=500)
    category: Optional[AffirmationCategory] = None
    mood_association: Optional[list[MoodAssociation]] = None
    is_active: Optional[bool] = None
    is_public: Optional[bool] = None

    @field_validator("mood_association")
    @classmethod
    def default_to_all(cls, values):
        if values is None:
            return None
        return unique_in_order(values) or ["all"]


class AffirmationRating(BaseModel):
    rating: int = Field(..., ge=1, le=5)


# ---------------------------------------------------------------------------
# Response
# ---------------------------------------------------------------------------

class Affirmation(BaseModel):
    id: str
    created_at: datetime
    text: str
    category: str
    mood_association: list[str] = Field(default_factory=lambda: ["all"])
    tags: list[str] = Field(default_factory=list)
    favorites: list[str] = Field(default_factory=list)
    favorite_count: int = 0
    usage_count: int = 0
    last_used: Optional[datetime] = None
    effectiveness: float = Field(default=0.0, ge=0.0, le=5.0)
    rating_count: int = 0
    is_active: bool = True
    is_public: bool = True
    is_custom: bool = False
    created_by: Optional[str] = None
    source: str = "system"

    @field_validator("favorites", "tags", mode="before")
    @classmethod
    def _null_as_empty(cls, value):
        return value or []


class AffirmationPage(BaseModel):
    """Paged affirmation listing."""

    success: bool = True
    count: int
    total: int
    total_pages: int
    current_page: int
    data: list[Affirmation]
