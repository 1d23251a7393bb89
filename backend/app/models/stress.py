"""
Stress Entry Schemas
====================
Pydantic models for the stress tracking API. At least one stressor is
required on create, and on update whenever stressors are supplied.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from app.models.mood import unique_in_order


# ---------------------------------------------------------------------------
# Allowed values
# ---------------------------------------------------------------------------

Stressor = Literal[
    "work",
    "relationships",
    "health",
    "financial",
    "academic",
    "family",
    "social",
    "time_management",
    "uncertainty",
    "other",
]

PhysicalSymptom = Literal[
    "headache",
    "fatigue",
    "muscle_tension",
    "stomach_issues",
    "chest_pain",
    "sleep_problems",
    "appetite_changes",
    "dizziness",
    "rapid_heartbeat",
    "sweating",
    "none",
]

CopingMethod = Literal[
    "exercise",
    "meditation",
    "talking",
    "hobbies",
    "rest",
    "professional_help",
    "time_management",
    "relaxation_techniques",
    "other",
]


# ---------------------------------------------------------------------------
# Request
# ---------------------------------------------------------------------------

class StressEntryCreate(BaseModel):
    stress_level: int = Field(..., ge=1, le=10, description="1 = calm, 10 = extreme stress.")
    stressors: list[Stressor] = Field(..., min_length=1)
    physical_symptoms: list[PhysicalSymptom] = Field(default_factory=list)
    coping_methods: list[CopingMethod] = Field(default_factory=list)
    note: Optional[str] = Field(default=None, max_length=1000)
    is_recurring: bool = False

    @field_validator("stressors", "physical_symptoms", "coping_methods")
    @classmethod
    def dedupe_lists(cls, values):
        return unique_in_order(values)


class StressEntryUpdate(BaseModel):
    stress_level: Optional[int] = Field(default=None, ge=1, le=10)
    stressors: Optional[list[Stressor]] = None
    physical_symptoms: Optional[list[PhysicalSymptom]] = None
    coping_methods: Optional[list[CopingMethod]] = None
    note: Optional[str] = Field(default=None, max_length=1000)
    is_recurring: Optional[bool] = None

    @field_validator("stressors")
    @classmethod
    def stressors_not_empty(cls, values):
        if values is not None and len(values) == 0:
            raise ValueError("at least one stressor is required")
        return unique_in_order(values)

    @field_validator("physical_symptoms", "coping_methods")
    @classmethod
    def dedupe_lists(cls, values):
        return unique_in_order(values)


# ---------------------------------------------------------------------------
# Response
# ---------------------------------------------------------------------------

class StressEntry(BaseModel):
    id: str
    user_id: str
    created_at: datetime
    stress_level: int
    stressors: list[str]
    physical_symptoms: list[str] = Field(default_factory=list)
    coping_methods: list[str] = Field(default_factory=list)
    note: Optional[str] = None
    is_recurring: bool = False

    @field_validator("physical_symptoms", "coping_methods", mode="before")
    @classmethod
    def _null_as_empty(cls, value):
        return value or []
