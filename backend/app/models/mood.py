"""
Mood Entry Schemas
==================
Pydantic models for the mood tracking API. These are the contract
between the web client and the backend.

Key design decisions:
- mood is a closed vocabulary of 20 labels so the per-mood breakdown
  in /stats never fragments on spelling variants.
- activities and triggers have set semantics: duplicates are dropped,
  first occurrence wins.
- user_id is never accepted from the client — it comes from the JWT.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator


# ---------------------------------------------------------------------------
# Allowed values
# ---------------------------------------------------------------------------

Mood = Literal[
    "happy",
    "sad",
    "angry",
    "anxious",
    "stressed",
    "calm",
    "tired",
    "energetic",
    "neutral",
    "excited",
    "grateful",
    "overwhelmed",
    "frustrated",
    "content",
    "proud",
    "hopeful",
    "lonely",
    "motivated",
    "bored",
    "other",
]

Activity = Literal[
    "exercise",
    "work",
    "social",
    "family",
    "hobby",
    "rest",
    "meditation",
    "reading",
    "watching_tv",
    "gaming",
    "cooking",
    "cleaning",
    "shopping",
    "commuting",
    "learning",
    "other",
]

Trigger = Literal[
    "work",
    "relationships",
    "health",
    "finances",
    "news",
    "social_media",
    "lack_of_sleep",
    "diet",
    "weather",
    "no_specific_trigger",
    "other",
]


def unique_in_order(values: Optional[list]) -> Optional[list]:
    """Drop repeated values while keeping first-seen order."""
    if values is None:
        return None
    return list(dict.fromkeys(values))


# ---------------------------------------------------------------------------
# Request
# ---------------------------------------------------------------------------

class MoodEntryCreate(BaseModel):
    """Payload the web client sends when the user logs a mood."""

    mood: Mood
    mood_score: int = Field(
        ...,
        ge=1,
        le=10,
        description="Self-reported mood score. 1 = very low, 10 = excellent.",
    )
    note: Optional[str] = Field(default=None, max_length=1000)
    activities: list[Activity] = Field(default_factory=list)
    triggers: list[Trigger] = Field(default_factory=list)

    @field_validator("activities", "triggers")
    @classmethod
    def dedupe_lists(cls, values):
        return unique_in_order(values)


class MoodEntryUpdate(BaseModel):
    """Partial update — only the provided fields are written."""

    mood: Optional[Mood] = None
    mood_score: Optional[int] = Field(default=None, ge=1, le=10)
    note: Optional[str] = Field(default=None, max_length=1000)
    activities: Optional[list[Activity]] = None
    triggers: Optional[list[Trigger]] = None

    @field_validator("activities", "triggers")
    @classmethod
    def dedupe_lists(cls, values):
        return unique_in_order(values)


# ---------------------------------------------------------------------------
# Response
# ---------------------------------------------------------------------------

class MoodEntry(BaseModel):
    """A stored mood entry."""

    id: str
    user_id: str
    created_at: datetime
    mood: Mood
    mood_score: int
    note: Optional[str] = None
    activities: list[str] = Field(default_factory=list)
    triggers: list[str] = Field(default_factory=list)

    @field_validator("activities", "triggers", mode="before")
    @classmethod
    def _null_as_empty(cls, value):
        return value or []
