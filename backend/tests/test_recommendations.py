"""
Tests for the sleep recommendation rules
========================================
Rules are independent, fire in fixed order and skip when their input
is missing.

Run: pytest tests/test_recommendations.py -v
"""

from __future__ import annotations

from app.models.stats import ScheduleConsistency
from app.services.recommendations import build_sleep_recommendations


def _consistency(bed: float | None, wake: float | None) -> ScheduleConsistency:
    return ScheduleConsistency(
        nights=4 if bed is not None else 0,
        bedtime_std_minutes=bed,
        wake_time_std_minutes=wake,
    )


class TestRules:

    def test_all_rules_fire_in_fixed_order(self):
        recs = build_sleep_recommendations(_consistency(61.2, 75.0), 6.2)
        assert [r.type for r in recs] == [
            "schedule_consistency",
            "wakeup_consistency",
            "sleep_duration",
        ]
        assert all(r.priority == "high" for r in recs)

    def test_only_bedtime(self):
        recs = build_sleep_recommendations(_consistency(61.2, 10.0), 7.5)
        assert [r.type for r in recs] == ["schedule_consistency"]
        assert "bedtime varies" in recs[0].message

    def test_threshold_is_strict(self):
        assert build_sleep_recommendations(_consistency(60.0, 60.0), 7.0) == []

    def test_short_sleep_only(self):
        recs = build_sleep_recommendations(_consistency(5.0, 5.0), 6.99)
        assert [r.type for r in recs] == ["sleep_duration"]
        assert "7-9 hours" in recs[0].message

    def test_missing_data_skips_rules(self):
        assert build_sleep_recommendations(_consistency(None, None), None) == []
