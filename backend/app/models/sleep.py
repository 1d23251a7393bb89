"""
Sleep Entry Schemas
===================
Pydantic models for the sleep tracking API.

sleep_time must be strictly before wake_time. The check runs here for
creates and again in the router for partial updates (against the merged
record), so an inverted window is never persisted.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from app.models.mood import unique_in_order


# ---------------------------------------------------------------------------
# Allowed values
# ---------------------------------------------------------------------------

NoiseLevel = Literal["very_quiet", "quiet", "moderate", "noisy", "very_noisy"]
LightLevel = Literal["pitch_black", "very_dark", "dim", "some_light", "bright"]
Temperature = Literal["very_cold", "cold", "comfortable", "warm", "hot"]
Comfort = Literal[
    "very_uncomfortable", "uncomfortable", "neutral", "comfortable", "very_comfortable",
]

BedtimeActivity = Literal[
    "screen_time",
    "reading",
    "shower",
    "meditation",
    "exercise",
    "eating",
    "drinking",
    "socializing",
    "working",
    "other",
]

SleepAid = Literal[
    "melatonin",
    "prescription_meds",
    "natural_supplements",
    "white_noise",
    "weighted_blanket",
    "eye_mask",
    "ear_plugs",
    "aromatherapy",
    "none",
    "other",
]

WakeUpMood = Literal[
    "refreshed", "tired", "groggy", "energetic", "irritable", "anxious", "neutral", "other",
]


def as_utc(value: datetime) -> datetime:
    """Treat naive timestamps as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class SleepWindowError(ValueError):
    """Raised when sleep_time is not strictly before wake_time."""


def check_sleep_window(sleep_time: datetime, wake_time: datetime) -> None:
    if as_utc(sleep_time) >= as_utc(wake_time):
        raise SleepWindowError("sleep_time must be before wake_time")


# ---------------------------------------------------------------------------
# Nested objects
# ---------------------------------------------------------------------------

class SleepEnvironment(BaseModel):
    noise_level: Optional[NoiseLevel] = None
    light_level: Optional[LightLevel] = None
    temperature: Optional[Temperature] = None
    comfort: Optional[Comfort] = None


class ActivityBeforeBed(BaseModel):
    activity: BedtimeActivity
    duration_minutes: Optional[int] = Field(default=None, ge=0)
    note: Optional[str] = Field(default=None, max_length=200)


# ---------------------------------------------------------------------------
# Request
# ---------------------------------------------------------------------------

class SleepEntryCreate(BaseModel):
    """Payload the web client sends when logging a night."""

    sleep_time: datetime
    wake_time: datetime
    quality: int = Field(..., ge=1, le=5, description="1 = very poor, 5 = excellent.")
    interruptions: int = Field(default=0, ge=0)
    note: Optional[str] = Field(default=None, max_length=1000)
    sleep_environment: Optional[SleepEnvironment] = None
    activities_before_bed: list[ActivityBeforeBed] = Field(default_factory=list)
    sleep_aids: list[SleepAid] = Field(default_factory=list)
    wake_up_mood: Optional[WakeUpMood] = None

    @field_validator("sleep_time", "wake_time")
    @classmethod
    def normalise_timezone(cls, value: datetime) -> datetime:
        return as_utc(value)

    @field_validator("sleep_aids")
    @classmethod
    def dedupe_aids(cls, values):
        return unique_in_order(values)

    @model_validator(mode="after")
    def sleep_before_wake(self) -> "SleepEntryCreate":
        check_sleep_window(self.sleep_time, self.wake_time)
        return self


class SleepEntryUpdate(BaseModel):
    """Partial update. The sleep window is re-checked by the router
    against the stored record, since only one end may be supplied."""

    sleep_time: Optional[datetime] = None
    wake_time: Optional[datetime] = None
    quality: Optional[int] = Field(default=None, ge=1, le=5)
    interruptions: Optional[int] = Field(default=None, ge=0)
    note: Optional[str] = Field(default=None, max_length=1000)
    sleep_environment: Optional[SleepEnvironment] = None
    activities_before_bed: Optional[list[ActivityBeforeBed]] = None
    sleep_aids: Optional[list[SleepAid]] = None
    wake_up_mood: Optional[WakeUpMood] = None

    @field_validator("sleep_time", "wake_time")
    @classmethod
    def normalise_timezone(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value) if value is not None else None

    @field_validator("sleep_aids")
    @classmethod
    def dedupe_aids(cls, values):
        return unique_in_order(values)


# ---------------------------------------------------------------------------
# Response
# ---------------------------------------------------------------------------

class SleepEntry(BaseModel):
    """A stored sleep entry."""

    id: str
    user_id: str
    created_at: datetime
    sleep_time: datetime
    wake_time: datetime
    quality: int
    interruptions: int = 0
    note: Optional[str] = None
    sleep_environment: Optional[SleepEnvironment] = None
    activities_before_bed: list[ActivityBeforeBed] = Field(default_factory=list)
    sleep_aids: list[str] = Field(default_factory=list)
    wake_up_mood: Optional[str] = None

    @field_validator("activities_before_bed", "sleep_aids", mode="before")
    @classmethod
    def _null_as_empty(cls, value):
        return value or []
