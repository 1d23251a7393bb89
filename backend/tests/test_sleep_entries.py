"""
Tests for /api/v1/sleep
=======================
Covers:
- Create: inverted / zero-length window → 422, nested environment
- Update: window re-checked against the merged record
- List: quality filter, newest sleep_time first
- Stats: 7-day default window, overnight-corrected durations
- Insights: impact buckets, schedule consistency, recommendations

Run: pytest tests/test_sleep_entries.py -v
"""

from __future__ import annotations

from datetime import timedelta

import pytest

from tests.factories import days_ago, iso


def _night(length_hours: float = 8.0, **extra) -> dict:
    sleep = days_ago(2, hour=22)
    return {
        "sleep_time": iso(sleep),
        "wake_time": iso(sleep + timedelta(hours=length_hours)),
        "quality": 4,
        **extra,
    }


def _seed(fake_db, user_id: str, sleep, length_hours: float = 8.0, **extra) -> dict:
    return fake_db.seed("sleep_entries", {
        "user_id": user_id,
        "sleep_time": iso(sleep),
        "wake_time": iso(sleep + timedelta(hours=length_hours)),
        "quality": 3,
        "interruptions": 0,
        **extra,
    })


class TestCreate:

    def test_create_returns_201(self, client, auth_headers):
        body = _night(
            sleep_environment={"noise_level": "quiet", "comfort": "comfortable"},
            activities_before_bed=[{"activity": "reading", "duration_minutes": 20}],
            sleep_aids=["eye_mask", "eye_mask"],
        )
        response = client.post("/api/v1/sleep", json=body, headers=auth_headers)
        assert response.status_code == 201
        data = response.json()["data"]
        assert data["sleep_environment"]["comfort"] == "comfortable"
        assert data["sleep_aids"] == ["eye_mask"]

    def test_inverted_window_rejected(self, client, auth_headers):
        body = _night()
        body["sleep_time"], body["wake_time"] = body["wake_time"], body["sleep_time"]
        response = client.post("/api/v1/sleep", json=body, headers=auth_headers)
        assert response.status_code == 422

    def test_zero_length_window_rejected(self, client, auth_headers):
        body = _night()
        body["wake_time"] = body["sleep_time"]
        response = client.post("/api/v1/sleep", json=body, headers=auth_headers)
        assert response.status_code == 422

    @pytest.mark.parametrize("quality", [0, 6])
    def test_quality_bounds(self, client, auth_headers, quality):
        response = client.post("/api/v1/sleep", json=_night(quality=quality), headers=auth_headers)
        assert response.status_code == 422

    def test_negative_interruptions(self, client, auth_headers):
        response = client.post("/api/v1/sleep", json=_night(interruptions=-1), headers=auth_headers)
        assert response.status_code == 422

    def test_unknown_sleep_aid(self, client, auth_headers):
        response = client.post("/api/v1/sleep", json=_night(sleep_aids=["whisky"]), headers=auth_headers)
        assert response.status_code == 422


class TestUpdate:

    def test_moving_wake_before_stored_sleep_is_rejected(self, client, auth_headers, fake_db, user):
        sleep = days_ago(1, hour=23)
        entry = _seed(fake_db, user["id"], sleep)
        response = client.put(
            f"/api/v1/sleep/{entry['id']}",
            json={"wake_time": iso(sleep - timedelta(hours=1))},
            headers=auth_headers,
        )
        assert response.status_code == 422
        assert response.json()["detail"]["code"] == "invalid_sleep_window"
        assert fake_db.tables["sleep_entries"][0]["wake_time"] == entry["wake_time"]

    def test_valid_partial_update(self, client, auth_headers, fake_db, user):
        sleep = days_ago(1, hour=23)
        entry = _seed(fake_db, user["id"], sleep)
        response = client.put(
            f"/api/v1/sleep/{entry['id']}",
            json={"quality": 5, "wake_time": iso(sleep + timedelta(hours=9))},
            headers=auth_headers,
        )
        assert response.status_code == 200
        assert response.json()["data"]["quality"] == 5

    def test_update_other_users_night_is_403(self, client, auth_headers, fake_db, other_user):
        entry = _seed(fake_db, other_user["id"], days_ago(1, hour=23))
        response = client.put(f"/api/v1/sleep/{entry['id']}", json={"quality": 1}, headers=auth_headers)
        assert response.status_code == 403


class TestList:

    def test_quality_filter_and_order(self, client, auth_headers, fake_db, user):
        _seed(fake_db, user["id"], days_ago(3, hour=23), quality=5)
        _seed(fake_db, user["id"], days_ago(1, hour=23), quality=5)
        _seed(fake_db, user["id"], days_ago(2, hour=23), quality=2)

        body = client.get("/api/v1/sleep?quality=5", headers=auth_headers).json()
        assert body["total"] == 2
        sleep_times = [e["sleep_time"] for e in body["data"]]
        assert sleep_times == sorted(sleep_times, reverse=True)

    def test_quality_filter_bounds(self, client, auth_headers):
        assert client.get("/api/v1/sleep?quality=9", headers=auth_headers).status_code == 422


class TestStats:

    def test_default_window_is_seven_days(self, client, auth_headers, fake_db, user):
        _seed(fake_db, user["id"], days_ago(2, hour=23), length_hours=7.5, quality=4, interruptions=2)
        _seed(fake_db, user["id"], days_ago(10, hour=23), length_hours=5.0, quality=1)

        data = client.get("/api/v1/sleep/stats", headers=auth_headers).json()["data"]
        assert data["days"] == 7
        stats = data["stats"]
        assert stats["total_entries"] == 1
        assert stats["avg_duration"] == pytest.approx(7.5)
        assert stats["avg_interruptions"] == pytest.approx(2.0)
        assert stats["best_night"] == 4
        assert data["quality_distribution"] == [{"value": 4, "count": 1}]

    def test_empty_window(self, client, auth_headers):
        data = client.get("/api/v1/sleep/stats", headers=auth_headers).json()["data"]
        assert data["stats"]["total_entries"] == 0
        assert data["stats"]["avg_duration"] is None
        assert data["weekly_patterns"] == []


class TestInsights:

    def _seed_erratic_short_nights(self, fake_db, user_id: str) -> None:
        # Bedtimes cycle 19:00 / 21:00 / 23:00 → std ≈ 98 min; every night 6h
        for i, hour in enumerate([19, 21, 23, 19, 21, 23]):
            _seed(
                fake_db, user_id, days_ago(i + 1, hour=hour), length_hours=6.0,
                quality=2 if hour == 23 else 4,
                sleep_environment={"comfort": "comfortable" if hour != 23 else "uncomfortable"},
                activities_before_bed=[{"activity": "screen_time"}] if hour == 23 else [],
                sleep_aids=["melatonin"],
            )

    def test_recommendations_fire(self, client, auth_headers, fake_db, user):
        self._seed_erratic_short_nights(fake_db, user["id"])

        data = client.get("/api/v1/sleep/insights", headers=auth_headers).json()["data"]

        assert data["days"] == 30
        consistency = data["schedule_consistency"]
        assert consistency["nights"] == 6
        assert consistency["bedtime_inconsistent"] is True
        assert [r["type"] for r in data["recommendations"]] == [
            "schedule_consistency",
            "wakeup_consistency",
            "sleep_duration",
        ]

    def test_impact_buckets(self, client, auth_headers, fake_db, user):
        self._seed_erratic_short_nights(fake_db, user["id"])

        data = client.get("/api/v1/sleep/insights", headers=auth_headers).json()["data"]

        environment = data["environment_impact"]
        assert [b["comfort"] for b in environment] == ["comfortable", "uncomfortable"]
        assert environment[0]["avg_quality"] == pytest.approx(4.0)
        assert environment[0]["count"] == 4
        assert data["activities_impact"] == [
            {"activity": "screen_time", "avg_quality": 2.0, "avg_duration": 6.0, "count": 2}
        ]
        assert data["sleep_aid_effectiveness"][0]["count"] == 6

    def test_no_mood_data_means_no_correlation(self, client, auth_headers, fake_db, user):
        self._seed_erratic_short_nights(fake_db, user["id"])
        data = client.get("/api/v1/sleep/insights", headers=auth_headers).json()["data"]
        assert data["mood_correlation"] is None

    def test_empty_window(self, client, auth_headers):
        data = client.get("/api/v1/sleep/insights", headers=auth_headers).json()["data"]
        assert data["schedule_consistency"]["nights"] == 0
        assert data["recommendations"] == []
        assert data["environment_impact"] == []
