"""
Sleep Recommendation Rules
==========================
Fixed threshold rules over sleep aggregates. Each rule is evaluated
independently and, when it fires, contributes one recommendation. Output
order is the rule order below, never by severity.

    1. bedtime std-dev    > 60 min  → schedule_consistency
    2. wake-time std-dev  > 60 min  → wakeup_consistency
    3. average duration   < 7 h     → sleep_duration

A rule whose input is missing (no nights in the window) is skipped.
"""

from __future__ import annotations

from typing import Optional

from app.models.stats import Recommendation, ScheduleConsistency
from app.services.patterns import SCHEDULE_VARIANCE_THRESHOLD_MINUTES

MIN_RECOMMENDED_SLEEP_HOURS = 7.0

RECOMMENDATION_TEMPLATES: dict[str, dict] = {
    "schedule_consistency": {
        "priority": "high",
        "message": (
            "Your bedtime varies significantly. Try to go to bed at the same "
            "time each night to regulate your internal clock."
        ),
        "suggestion": "Set a consistent bedtime and create a relaxing pre-sleep routine.",
    },
    "wakeup_consistency": {
        "priority": "high",
        "message": (
            "Your wake-up time varies significantly. Waking up at the same time "
            "daily helps regulate your sleep cycle."
        ),
        "suggestion": (
            "Set a consistent wake-up time, even on weekends, and use an alarm "
            "if necessary."
        ),
    },
    "sleep_duration": {
        "priority": "high",
        "message": (
            "You might not be getting enough sleep. Most adults need 7-9 hours "
            "per night."
        ),
        "suggestion": (
            "Aim for at least 7 hours of sleep each night. Consider adjusting "
            "your schedule to prioritize sleep."
        ),
    },
}


def _exceeds(std_minutes: Optional[float]) -> bool:
    return std_minutes is not None and std_minutes > SCHEDULE_VARIANCE_THRESHOLD_MINUTES


def build_sleep_recommendations(
    consistency: ScheduleConsistency,
    avg_duration_hours: Optional[float],
) -> list[Recommendation]:
    fired: list[str] = []
    if _exceeds(consistency.bedtime_std_minutes):
        fired.append("schedule_consistency")
    if _exceeds(consistency.wake_time_std_minutes):
        fired.append("wakeup_consistency")
    if avg_duration_hours is not None and avg_duration_hours < MIN_RECOMMENDED_SLEEP_HOURS:
        fired.append("sleep_duration")

    return [Recommendation(type=kind, **RECOMMENDATION_TEMPLATES[kind]) for kind in fired]
