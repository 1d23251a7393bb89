"""
Tests for /api/v1/stress
========================
Covers:
- Create: at least one stressor, level bounds, de-duplication
- Update: empty stressor list rejected
- List: min / max level filters, inverted range → 422
- Stats and insights: top stressors, coping ranking, hour buckets

Run: pytest tests/test_stress_entries.py -v
"""

from __future__ import annotations

import pytest

from tests.factories import days_ago, iso


def _seed(fake_db, user_id: str, level: int, stressors: list[str], coping: list[str] | None = None, **extra) -> dict:
    return fake_db.seed("stress_entries", {
        "user_id": user_id,
        "stress_level": level,
        "stressors": stressors,
        "coping_methods": coping or [],
        "physical_symptoms": [],
        **extra,
    })


class TestCreate:

    def test_create_returns_201(self, client, auth_headers):
        response = client.post(
            "/api/v1/stress",
            json={"stress_level": 6, "stressors": ["work", "work", "financial"], "coping_methods": ["rest"]},
            headers=auth_headers,
        )
        assert response.status_code == 201
        data = response.json()["data"]
        assert data["stressors"] == ["work", "financial"]
        assert data["is_recurring"] is False

    def test_stressors_required(self, client, auth_headers):
        response = client.post("/api/v1/stress", json={"stress_level": 6, "stressors": []}, headers=auth_headers)
        assert response.status_code == 422

    @pytest.mark.parametrize("level", [0, 11])
    def test_level_bounds(self, client, auth_headers, level):
        response = client.post(
            "/api/v1/stress", json={"stress_level": level, "stressors": ["work"]}, headers=auth_headers
        )
        assert response.status_code == 422

    def test_unknown_symptom(self, client, auth_headers):
        response = client.post(
            "/api/v1/stress",
            json={"stress_level": 4, "stressors": ["work"], "physical_symptoms": ["hiccups"]},
            headers=auth_headers,
        )
        assert response.status_code == 422


class TestUpdate:

    def test_clearing_stressors_rejected(self, client, auth_headers, fake_db, user):
        entry = _seed(fake_db, user["id"], 5, ["work"])
        response = client.put(f"/api/v1/stress/{entry['id']}", json={"stressors": []}, headers=auth_headers)
        assert response.status_code == 422

    def test_level_update(self, client, auth_headers, fake_db, user):
        entry = _seed(fake_db, user["id"], 5, ["work"])
        response = client.put(f"/api/v1/stress/{entry['id']}", json={"stress_level": 2}, headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["data"]["stress_level"] == 2
        assert response.json()["data"]["stressors"] == ["work"]


class TestList:

    def test_level_range_filter(self, client, auth_headers, fake_db, user):
        for level in (2, 4, 6, 8):
            _seed(fake_db, user["id"], level, ["work"])
        body = client.get(
            "/api/v1/stress?min_stress_level=4&max_stress_level=6", headers=auth_headers
        ).json()
        assert sorted(e["stress_level"] for e in body["data"]) == [4, 6]

    def test_inverted_range(self, client, auth_headers):
        response = client.get("/api/v1/stress?min_stress_level=8&max_stress_level=3", headers=auth_headers)
        assert response.status_code == 422
        assert response.json()["detail"]["code"] == "invalid_range"


class TestStats:

    def test_common_stressors_top_five(self, client, auth_headers, fake_db, user):
        _seed(fake_db, user["id"], 7, ["work", "health", "family"], created_at=iso(days_ago(1)))
        _seed(fake_db, user["id"], 5, ["work", "social", "academic"], created_at=iso(days_ago(2)))
        _seed(fake_db, user["id"], 3, ["work", "health", "uncertainty"], created_at=iso(days_ago(3)))

        data = client.get("/api/v1/stress/stats", headers=auth_headers).json()["data"]

        assert data["summary"]["count"] == 3
        assert data["summary"]["average"] == pytest.approx(5.0)
        assert data["common_stressors"] == [
            {"value": "work", "count": 3},
            {"value": "health", "count": 2},
            {"value": "academic", "count": 1},
            {"value": "family", "count": 1},
            {"value": "social", "count": 1},
        ]
        assert data["recent_entries"][0]["stress_level"] == 7


class TestInsights:

    def test_coping_and_time_of_day(self, client, auth_headers, fake_db, user):
        _seed(fake_db, user["id"], 8, ["work"], ["talking"], created_at=iso(days_ago(1, hour=9)))
        _seed(fake_db, user["id"], 6, ["work"], ["talking", "exercise"], created_at=iso(days_ago(2, hour=9)))
        _seed(fake_db, user["id"], 2, ["health"], ["exercise"], created_at=iso(days_ago(3, hour=21)))

        data = client.get("/api/v1/stress/insights", headers=auth_headers).json()["data"]

        assert [c["coping_method"] for c in data["coping_effectiveness"]] == ["exercise", "talking"]
        assert data["coping_effectiveness"][0]["avg_stress_reduction"] == pytest.approx(6.0)
        assert data["common_stressors"][0] == {"stressor": "work", "count": 2, "avg_stress_level": 7.0}
        assert data["time_of_day_patterns"] == [
            {"hour": 9, "avg_stress_level": 7.0, "count": 2},
            {"hour": 21, "avg_stress_level": 2.0, "count": 1},
        ]

    def test_empty_window(self, client, auth_headers):
        data = client.get("/api/v1/stress/insights?days=7", headers=auth_headers).json()["data"]
        assert data["common_stressors"] == []
        assert data["coping_effectiveness"] == []
        assert data["time_of_day_patterns"] == []
