"""
Analytics Service
=================
Backs the /stats and /insights endpoints. Loads the user's entries for
the lookback window from the entry stores and hands them to the pure
aggregation functions in statistics / patterns / recommendations.

Windows are anchored on each kind's time column: created_at for mood
and stress, sleep_time for sleep.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from supabase import Client

from app.models.stats import MoodStats, SleepInsights, SleepStats, StressInsights, StressStats
from app.services import patterns
from app.services.entry_store import EntryStore
from app.services.recommendations import build_sleep_recommendations
from app.services.statistics import (
    list_value_frequency,
    mood_breakdown,
    recent_entries,
    summarize_metric,
    summarize_sleep,
    value_distribution,
)

logger = logging.getLogger(__name__)

RECENT_MOOD_FIELDS = ("id", "mood", "mood_score", "note", "created_at")
RECENT_SLEEP_FIELDS = ("id", "sleep_time", "wake_time", "quality", "interruptions", "note")
RECENT_STRESS_FIELDS = ("id", "stress_level", "stressors", "coping_methods", "note", "created_at")


def window_start(days: int, now: datetime | None = None) -> datetime:
    return (now or datetime.now(timezone.utc)) - timedelta(days=days)


class AnalyticsService:
    def __init__(self, db: Client | None = None) -> None:
        self._mood = EntryStore("mood", db)
        self._sleep = EntryStore("sleep", db)
        self._stress = EntryStore("stress", db)

    # ---- mood ------------------------------------------------------------

    def mood_stats(self, user_id: str, days: int) -> MoodStats:
        rows = self._mood.find_since(user_id, window_start(days))
        logger.debug("Mood stats for user %s over %d days: %d entries", user_id, days, len(rows))
        return MoodStats(
            days=days,
            summary=summarize_metric(rows, "mood_score"),
            by_mood=mood_breakdown(rows),
            score_distribution=value_distribution(rows, "mood_score"),
            weekly_patterns=patterns.weekly_pattern(
                rows, "created_at", {"avg_mood_score": "mood_score"}
            ),
            recent_entries=recent_entries(rows[::-1], RECENT_MOOD_FIELDS),
        )

    # ---- sleep -----------------------------------------------------------

    def sleep_stats(self, user_id: str, days: int) -> SleepStats:
        rows = self._sleep.find_since(user_id, window_start(days))
        return SleepStats(
            days=days,
            stats=summarize_sleep(rows),
            quality_distribution=value_distribution(rows, "quality"),
            weekly_patterns=patterns.weekly_pattern(
                patterns.with_sleep_duration(rows), "sleep_time", patterns.SLEEP_METRICS
            ),
            recent_entries=recent_entries(rows[::-1], RECENT_SLEEP_FIELDS),
        )

    def sleep_insights(self, user_id: str, days: int) -> SleepInsights:
        since = window_start(days)
        rows = self._sleep.find_since(user_id, since)
        with_duration = patterns.with_sleep_duration(rows)
        consistency = patterns.schedule_consistency(rows)

        # Mood rows are only needed for the correlation
        mood_rows = self._mood.find_since(user_id, since, columns="created_at,mood_score")

        return SleepInsights(
            days=days,
            environment_impact=patterns.category_impact(
                with_duration, patterns.comfort_level, "comfort", patterns.SLEEP_METRICS
            ),
            activities_impact=patterns.category_impact(
                with_duration, patterns.bedtime_activities, "activity", patterns.SLEEP_METRICS
            ),
            sleep_aid_effectiveness=patterns.category_impact(
                with_duration, patterns.sleep_aids, "sleep_aid", patterns.SLEEP_METRICS
            ),
            schedule_consistency=consistency,
            mood_correlation=patterns.sleep_mood_correlation(rows, mood_rows),
            recommendations=build_sleep_recommendations(
                consistency, summarize_sleep(rows).avg_duration
            ),
        )

    # ---- stress ----------------------------------------------------------

    def stress_stats(self, user_id: str, days: int) -> StressStats:
        rows = self._stress.find_since(user_id, window_start(days))
        return StressStats(
            days=days,
            summary=summarize_metric(rows, "stress_level"),
            common_stressors=list_value_frequency(rows, "stressors", limit=5),
            distribution=value_distribution(rows, "stress_level"),
            weekly_patterns=patterns.weekly_pattern(
                rows, "created_at", {"avg_stress_level": "stress_level"}
            ),
            recent_entries=recent_entries(rows[::-1], RECENT_STRESS_FIELDS),
        )

    def stress_insights(self, user_id: str, days: int) -> StressInsights:
        rows = self._stress.find_since(user_id, window_start(days))
        return StressInsights(
            days=days,
            common_stressors=patterns.stressor_frequency(rows),
            coping_effectiveness=patterns.coping_effectiveness(rows),
            time_of_day_patterns=patterns.hourly_pattern(
                rows, "created_at", {"avg_stress_level": "stress_level"}
            ),
        )


# ---------------------------------------------------------------------------
# Singleton
# ---------------------------------------------------------------------------

_default_service: AnalyticsService | None = None


def get_analytics_service() -> AnalyticsService:
    global _default_service
    if _default_service is None:
        _default_service = AnalyticsService()
    return _default_service
