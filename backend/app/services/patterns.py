"""
Pattern Analyzer
================
Buckets entries by a derived key and averages a metric per bucket:

    day-of-week   1–7, 1 = Sunday (UTC)
    hour-of-day   0–23 (UTC)
    category      sleep comfort, activity before bed, sleep aid,
                  stressor, coping method (list fields are exploded,
                  so one entry counts once per listed value)

Buckets with no entries are omitted, never zero-filled. Time buckets
come back in key order; category buckets ranked by their first metric,
descending, ties broken by key so identical input always yields
identical order.

Also here: bedtime / wake-time consistency, coping-method ranking and
the sleep-duration vs. mood correlation.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, Optional

import numpy as np
import pandas as pd
from scipy.stats import pearsonr

from app.models.stats import (
    CopingEffectiveness,
    ScheduleConsistency,
    SleepMoodCorrelation,
    StressorFrequency,
)
from app.services.statistics import sleep_duration_hours

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

SCHEDULE_VARIANCE_THRESHOLD_MINUTES = 60
MIN_CORRELATION_SAMPLES = 5
STRESS_SCALE_MAX = 10

# Sleep impact lists rank by the first entry (quality)
SLEEP_METRICS = {"avg_quality": "quality", "avg_duration": "duration"}


# ---------------------------------------------------------------------------
# Frame helpers
# ---------------------------------------------------------------------------

def _frame(rows: Iterable[dict], time_columns: tuple[str, ...] = ()) -> pd.DataFrame:
    df = pd.DataFrame(list(rows))
    for column in time_columns:
        if column in df.columns:
            df[column] = pd.to_datetime(df[column], utc=True, format="ISO8601")
    return df


def _py(value: Any) -> Any:
    """numpy scalar → plain Python, so buckets serialise cleanly."""
    return value.item() if hasattr(value, "item") else value


def _bucket_means(df: pd.DataFrame, key_column: str, key_name: str, metrics: dict[str, str]) -> list[dict]:
    buckets: list[dict] = []
    for key, group in df.groupby(key_column, sort=True):
        bucket: dict[str, Any] = {key_name: _py(key)}
        for out_name, column in metrics.items():
            bucket[out_name] = float(group[column].mean())
        bucket["count"] = int(len(group))
        buckets.append(bucket)
    return buckets


def with_sleep_duration(rows: Iterable[dict]) -> list[dict]:
    """Copy of *rows* with an overnight-corrected ``duration`` (hours) column."""
    return [
        {**row, "duration": sleep_duration_hours(row["sleep_time"], row["wake_time"])}
        for row in rows
    ]


def day_of_week(timestamps: pd.Series) -> pd.Series:
    """pandas Monday=0..Sunday=6 → 1..7 with Sunday=1."""
    return (timestamps.dt.dayofweek + 1) % 7 + 1


# ---------------------------------------------------------------------------
# Time buckets
# ---------------------------------------------------------------------------

def weekly_pattern(rows: Iterable[dict], time_field: str, metrics: dict[str, str]) -> list[dict]:
    df = _frame(rows, (time_field,))
    if df.empty:
        return []
    df["_day"] = day_of_week(df[time_field])
    return _bucket_means(df, "_day", "day_of_week", metrics)


def hourly_pattern(rows: Iterable[dict], time_field: str, metrics: dict[str, str]) -> list[dict]:
    df = _frame(rows, (time_field,))
    if df.empty:
        return []
    df["_hour"] = df[time_field].dt.hour
    return _bucket_means(df, "_hour", "hour", metrics)


# ---------------------------------------------------------------------------
# Category buckets
# ---------------------------------------------------------------------------

def category_impact(
    rows: Iterable[dict],
    extract: Callable[[dict], Iterable[Optional[str]]],
    key_name: str,
    metrics: dict[str, str],
) -> list[dict]:
    """Average *metrics* per category value pulled out of each row by *extract*."""
    records = [
        {**row, "_key": key}
        for row in rows
        for key in extract(row)
        if key is not None
    ]
    if not records:
        return []

    buckets = _bucket_means(pd.DataFrame(records), "_key", key_name, metrics)
    rank_by = next(iter(metrics))
    buckets.sort(key=lambda b: (-b[rank_by], str(b[key_name])))
    return buckets


def comfort_level(row: dict) -> list[Optional[str]]:
    return [(row.get("sleep_environment") or {}).get("comfort")]


def bedtime_activities(row: dict) -> list[Optional[str]]:
    return [item.get("activity") for item in row.get("activities_before_bed") or []]


def sleep_aids(row: dict) -> list[str]:
    return list(row.get("sleep_aids") or [])


# ---------------------------------------------------------------------------
# Schedule consistency
# ---------------------------------------------------------------------------

def _minutes_since_midnight(timestamps: pd.Series) -> np.ndarray:
    return (timestamps.dt.hour * 60 + timestamps.dt.minute).to_numpy(dtype=float)


def schedule_consistency(rows: Iterable[dict]) -> ScheduleConsistency:
    """Population std-dev of bedtimes and wake times, one night per date.

    When several entries start on the same calendar date, the earliest
    one represents that night.
    """
    df = _frame(rows, ("sleep_time", "wake_time"))
    if df.empty:
        return ScheduleConsistency()

    df = df[["sleep_time", "wake_time"]].sort_values("sleep_time")
    nights = df.groupby(df["sleep_time"].dt.date, sort=True).first()

    bed_std = float(np.std(_minutes_since_midnight(nights["sleep_time"]), ddof=0))
    wake_std = float(np.std(_minutes_since_midnight(nights["wake_time"]), ddof=0))

    return ScheduleConsistency(
        nights=int(len(nights)),
        bedtime_std_minutes=bed_std,
        wake_time_std_minutes=wake_std,
        bedtime_inconsistent=bed_std > SCHEDULE_VARIANCE_THRESHOLD_MINUTES,
        wake_time_inconsistent=wake_std > SCHEDULE_VARIANCE_THRESHOLD_MINUTES,
    )


# ---------------------------------------------------------------------------
# Stress
# ---------------------------------------------------------------------------

def _explode(rows: Iterable[dict], field: str) -> pd.DataFrame:
    df = _frame(rows)
    if df.empty or field not in df.columns:
        return pd.DataFrame()
    df = df.explode(field)
    return df[df[field].notna()]


def stressor_frequency(rows: Iterable[dict]) -> list[StressorFrequency]:
    """How often each stressor appears and the mean stress level alongside it."""
    df = _explode(rows, "stressors")
    if df.empty:
        return []

    result = [
        StressorFrequency(
            stressor=str(stressor),
            count=int(len(group)),
            avg_stress_level=float(group["stress_level"].mean()),
        )
        for stressor, group in df.groupby("stressors", sort=True)
    ]
    result.sort(key=lambda s: (-s.count, s.stressor))
    return result


def coping_effectiveness(rows: Iterable[dict]) -> list[CopingEffectiveness]:
    """Rank coping methods by mean (10 - stress_level) on entries using them.

    This is a correlational proxy, not a measured reduction: a method
    used mostly on calm days ranks high regardless of its effect.
    """
    df = _explode(rows, "coping_methods")
    if df.empty:
        return []

    df = df[df["stress_level"].notna()]
    df = df.assign(_reduction=STRESS_SCALE_MAX - df["stress_level"].astype(float))

    result = [
        CopingEffectiveness(
            coping_method=str(method),
            count=int(len(group)),
            avg_stress_reduction=float(group["_reduction"].mean()),
            avg_stress_level=float(group["stress_level"].astype(float).mean()),
        )
        for method, group in df.groupby("coping_methods", sort=True)
    ]
    result.sort(key=lambda c: (-c.avg_stress_reduction, c.coping_method))
    return result


# ---------------------------------------------------------------------------
# Sleep ↔ mood
# ---------------------------------------------------------------------------

def sleep_mood_correlation(
    sleep_rows: Iterable[dict],
    mood_rows: Iterable[dict],
) -> Optional[SleepMoodCorrelation]:
    """Pearson r between each night's duration and mean mood on the wake date.

    Returns None with fewer than MIN_CORRELATION_SAMPLES paired nights or
    when either series is constant (r is undefined).
    """
    mood_df = _frame(mood_rows, ("created_at",))
    sleep_df = _frame(with_sleep_duration(sleep_rows), ("wake_time",))
    if mood_df.empty or sleep_df.empty:
        return None

    daily_mood = mood_df.groupby(mood_df["created_at"].dt.date)["mood_score"].mean()
    sleep_df = sleep_df.assign(_wake_date=sleep_df["wake_time"].dt.date)
    paired = sleep_df[sleep_df["_wake_date"].isin(daily_mood.index)]

    sample_size = int(len(paired))
    if sample_size < MIN_CORRELATION_SAMPLES:
        logger.debug("Only %d sleep/mood pairs — skipping correlation", sample_size)
        return None

    durations = paired["duration"].to_numpy(dtype=float)
    moods = paired["_wake_date"].map(daily_mood).to_numpy(dtype=float)
    if np.std(durations) == 0 or np.std(moods) == 0:
        return None

    r, p = pearsonr(durations, moods)
    direction = "higher" if r >= 0 else "lower"
    if p < 0.05:
        insight = (
            f"Longer nights are linked to {direction} mood the next day "
            f"(r={r:.2f}, n={sample_size})"
        )
    else:
        insight = (
            f"Sleep length shows a small association with next-day mood "
            f"(r={r:.2f}, n={sample_size})"
        )

    return SleepMoodCorrelation(
        correlation_r=float(r),
        p_value=float(p),
        sample_size=sample_size,
        insight_text=insight,
    )
