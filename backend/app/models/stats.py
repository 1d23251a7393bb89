"""
Analytics Schemas
=================
Response models for the /stats and /insights endpoints.

Averages, minima and maxima are Optional: a window with no entries
reports count 0 and null aggregates rather than 0.0, so the client can
tell "no data" from "scored zero".

Bucketed patterns (day-of-week, hour, category impact) are plain dicts
keyed by the bucket name plus one ``avg_*`` field per metric and a
``count``, mirroring the shape the web dashboard charts consume.
"""

from __future__ import annotations

from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Summaries
# ---------------------------------------------------------------------------

class MetricSummary(BaseModel):
    """Count / mean / min / max of one numeric field."""

    count: int = 0
    average: Optional[float] = None
    minimum: Optional[float] = None
    maximum: Optional[float] = None


class SleepSummary(BaseModel):
    total_entries: int = 0
    avg_duration: Optional[float] = Field(default=None, description="Hours, overnight-corrected.")
    avg_quality: Optional[float] = None
    avg_interruptions: Optional[float] = None
    best_night: Optional[int] = Field(default=None, description="Highest quality rating.")
    worst_night: Optional[int] = Field(default=None, description="Lowest quality rating.")
    total_sleep: Optional[float] = Field(default=None, description="Hours.")


class ValueCount(BaseModel):
    value: Union[int, str]
    count: int


class MoodBreakdown(BaseModel):
    mood: str
    count: int
    avg_mood_score: float


class StressorFrequency(BaseModel):
    stressor: str
    count: int
    avg_stress_level: float


class CopingEffectiveness(BaseModel):
    """Average of (10 - stress_level) on entries that list the method.

    A correlational proxy: it ranks methods by how low stress was when
    they were used, not by how much they reduced it.
    """

    coping_method: str
    count: int
    avg_stress_reduction: float
    avg_stress_level: float


class ScheduleConsistency(BaseModel):
    nights: int = 0
    bedtime_std_minutes: Optional[float] = None
    wake_time_std_minutes: Optional[float] = None
    bedtime_inconsistent: bool = False
    wake_time_inconsistent: bool = False


class SleepMoodCorrelation(BaseModel):
    """Pearson correlation of nightly sleep duration with that day's mood."""

    correlation_r: float
    p_value: float
    sample_size: int
    insight_text: str


class Recommendation(BaseModel):
    type: Literal["schedule_consistency", "wakeup_consistency", "sleep_duration"]
    priority: Literal["high", "medium", "low"]
    message: str
    suggestion: str


# ---------------------------------------------------------------------------
# Endpoint payloads
# ---------------------------------------------------------------------------

class MoodStats(BaseModel):
    days: int
    summary: MetricSummary
    by_mood: list[MoodBreakdown]
    score_distribution: list[ValueCount]
    weekly_patterns: list[dict[str, Any]]
    recent_entries: list[dict[str, Any]]


class SleepStats(BaseModel):
    days: int
    stats: SleepSummary
    quality_distribution: list[ValueCount]
    weekly_patterns: list[dict[str, Any]]
    recent_entries: list[dict[str, Any]]


class SleepInsights(BaseModel):
    days: int
    environment_impact: list[dict[str, Any]]
    activities_impact: list[dict[str, Any]]
    sleep_aid_effectiveness: list[dict[str, Any]]
    schedule_consistency: ScheduleConsistency
    mood_correlation: Optional[SleepMoodCorrelation] = None
    recommendations: list[Recommendation]


class StressStats(BaseModel):
    days: int
    summary: MetricSummary
    common_stressors: list[ValueCount]
    distribution: list[ValueCount]
    weekly_patterns: list[dict[str, Any]]
    recent_entries: list[dict[str, Any]]


class StressInsights(BaseModel):
    days: int
    common_stressors: list[StressorFrequency]
    coping_effectiveness: list[CopingEffectiveness]
    time_of_day_patterns: list[dict[str, Any]]
