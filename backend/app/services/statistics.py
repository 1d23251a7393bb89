"""
Statistics Aggregator
=====================
Pure summary functions over entry rows as returned by the entry store.

Every function here is a deterministic function of its input rows: no
database access, no clock. The analytics service selects the lookback
window and hands the rows in.

Sleep duration is always overnight-corrected: if wake_time is earlier
than sleep_time (clock-time entry that crossed midnight), 24 hours are
added. Valid rows never need the correction because the API rejects
inverted windows, but summaries built from any row source stay
non-negative.
"""

from __future__ import annotations

from collections import Counter
from datetime import datetime, timedelta
from typing import Any, Iterable, Optional

import pandas as pd

from app.models.stats import MetricSummary, MoodBreakdown, SleepSummary, ValueCount

_DAY = timedelta(hours=24)


# ---------------------------------------------------------------------------
# Parsing helpers
# ---------------------------------------------------------------------------

def parse_timestamp(value: Any) -> datetime:
    """Parse an ISO-8601 string (or pass a datetime through) as aware UTC."""
    ts = pd.Timestamp(value)
    ts = ts.tz_localize("UTC") if ts.tzinfo is None else ts.tz_convert("UTC")
    return ts.to_pydatetime()


def sleep_duration_hours(sleep_time: Any, wake_time: Any) -> float:
    """Hours between *sleep_time* and *wake_time*, overnight-corrected."""
    delta = parse_timestamp(wake_time) - parse_timestamp(sleep_time)
    if delta < timedelta(0):
        delta += _DAY
    return delta.total_seconds() / 3600


def _mean(values: list[float]) -> Optional[float]:
    return sum(values) / len(values) if values else None


# ---------------------------------------------------------------------------
# Summaries
# ---------------------------------------------------------------------------

def summarize_metric(rows: Iterable[dict], field: str) -> MetricSummary:
    """Count, mean, min and max of *field*. Empty input → count 0, nulls."""
    values = [float(row[field]) for row in rows if row.get(field) is not None]
    if not values:
        return MetricSummary()
    return MetricSummary(
        count=len(values),
        average=_mean(values),
        minimum=min(values),
        maximum=max(values),
    )


def summarize_sleep(rows: Iterable[dict]) -> SleepSummary:
    rows = list(rows)
    if not rows:
        return SleepSummary()

    durations = [sleep_duration_hours(r["sleep_time"], r["wake_time"]) for r in rows]
    qualities = [int(r["quality"]) for r in rows]
    interruptions = [float(r.get("interruptions") or 0) for r in rows]

    return SleepSummary(
        total_entries=len(rows),
        avg_duration=_mean(durations),
        avg_quality=_mean([float(q) for q in qualities]),
        avg_interruptions=_mean(interruptions),
        best_night=max(qualities),
        worst_night=min(qualities),
        total_sleep=sum(durations),
    )


def value_distribution(rows: Iterable[dict], field: str) -> list[ValueCount]:
    """How many rows have each value of *field*, ascending by value."""
    counts = Counter(row[field] for row in rows if row.get(field) is not None)
    return [ValueCount(value=value, count=count) for value, count in sorted(counts.items())]


def list_value_frequency(rows: Iterable[dict], field: str, limit: Optional[int] = None) -> list[ValueCount]:
    """Frequency of each element across list-valued *field*, most common first."""
    counts = Counter(item for row in rows for item in (row.get(field) or []))
    ranked = sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))
    if limit is not None:
        ranked = ranked[:limit]
    return [ValueCount(value=value, count=count) for value, count in ranked]


def mood_breakdown(rows: Iterable[dict]) -> list[MoodBreakdown]:
    """Count and average score per mood label, most frequent first."""
    scores: dict[str, list[float]] = {}
    for row in rows:
        scores.setdefault(row["mood"], []).append(float(row["mood_score"]))

    breakdown = [
        MoodBreakdown(mood=mood, count=len(values), avg_mood_score=_mean(values))
        for mood, values in scores.items()
    ]
    breakdown.sort(key=lambda b: (-b.count, b.mood))
    return breakdown


def most_common(values: Iterable[str]) -> Optional[str]:
    """Most frequent value; ties go to the value seen first."""
    counts = Counter(values)
    if not counts:
        return None
    return counts.most_common(1)[0][0]


def recent_entries(rows: list[dict], fields: tuple[str, ...], limit: int = 5) -> list[dict]:
    """Project the first *limit* rows (caller supplies newest-first order)."""
    return [{f: row.get(f) for f in fields} for row in rows[:limit]]
