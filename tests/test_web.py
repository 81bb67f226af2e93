"""
Tests for the JSON API.
"""

import pytest


class TestScheduleEndpoint:
    """Test POST /api/schedule."""

    def test_equal_principal_schedule(self, client):
        response = client.post(
            "/api/schedule",
            json={
                "principal": 1200,
                "rate": 12,
                "term_months": 12,
                "start_date": "2024-01-01",
                "convention": "equal_principal",
            },
        )
        assert response.status_code == 200
        data = response.get_json()
        assert data["monthly_payment"] == 112.0
        assert data["totals"] == {"total_payment": 1278.0, "total_interest": 78.0}
        assert len(data["schedule"]) == 12
        assert data["schedule"][0] == {
            "month": 1,
            "payment_date": "2024-01-01",
            "payment": 112.0,
            "principal": 100.0,
            "interest": 12.0,
            "remaining_balance": 1100.0,
        }
        assert "truncated" not in data

    def test_long_schedule_is_truncated(self, app, client):
        app.config["MAX_SCHEDULE_ROWS"] = 120
        response = client.post(
            "/api/schedule",
            json={"principal": "3000000", "rate": "3.0", "term_months": 360, "start_date": "2024-01-01"},
        )
        assert response.status_code == 200
        data = response.get_json()
        assert len(data["schedule"]) == 120
        assert data["truncated"] == 240
        assert abs(data["monthly_payment"] - 12648.1) < 0.1

    def test_missing_field(self, client):
        response = client.post("/api/schedule", json={"principal": 1200, "rate": 3})
        assert response.status_code == 400
        assert response.get_json()["error"] == "invalid_request"

    def test_malformed_number(self, client):
        response = client.post("/api/schedule", json={"principal": "abc", "rate": 3, "term_months": 12})
        assert response.status_code == 400
        assert response.get_json()["error"] == "invalid_request"

    @pytest.mark.parametrize("principal", ["NaN", "Infinity", "-inf"])
    def test_non_finite_number(self, client, principal):
        response = client.post("/api/schedule", json={"principal": principal, "rate": 3, "term_months": 12})
        assert response.status_code == 400
        assert response.get_json()["error"] == "invalid_request"

    def test_overflowing_json_number(self, client):
        response = client.post(
            "/api/schedule",
            data='{"principal": 1e999, "rate": 3, "term_months": 12}',
            content_type="application/json",
        )
        assert response.status_code == 400
        assert response.get_json()["error"] == "invalid_request"

    @pytest.mark.parametrize("term", [12.7, "12.5"])
    def test_fractional_term(self, client, term):
        response = client.post("/api/schedule", json={"principal": 1200, "rate": 3, "term_months": term})
        assert response.status_code == 400
        assert response.get_json()["error"] == "invalid_request"

    def test_body_must_be_json_object(self, client):
        response = client.post("/api/schedule", data="principal=1200")
        assert response.status_code == 400

    def test_invalid_input(self, client):
        response = client.post("/api/schedule", json={"principal": 0, "rate": 3, "term_months": 12})
        assert response.status_code == 400
        assert response.get_json()["error"] == "invalid_input"

    def test_unsupported_convention(self, client):
        response = client.post(
            "/api/schedule",
            json={"principal": 1200, "rate": 3, "term_months": 12, "convention": "balloon"},
        )
        assert response.status_code == 400
        assert response.get_json()["error"] == "unsupported_convention"


class TestDetailsEndpoint:
    """Test POST /api/details."""

    def test_returns_entry(self, client):
        response = client.post(
            "/api/details",
            json={
                "principal": 1200,
                "rate": 12,
                "term_months": 12,
                "target_month": 12,
                "start_date": "2024-01-01",
                "convention": "equal_principal",
            },
        )
        assert response.status_code == 200
        data = response.get_json()
        assert data["month"] == 12
        assert data["payment_date"] == "2024-12-01"
        assert data["remaining_balance"] == 0.0

    def test_out_of_range(self, client):
        response = client.post(
            "/api/details",
            json={"principal": 3000000, "rate": 3, "term_months": 360, "target_month": 361},
        )
        assert response.status_code == 400
        assert response.get_json()["error"] == "out_of_range"


class TestEstimateRateEndpoint:
    """Test POST /api/estimate-rate."""

    def test_estimate(self, client):
        response = client.post(
            "/api/estimate-rate",
            json={"monthly_payment": 12652.36, "principal": 3000000, "months": 360},
        )
        assert response.status_code == 200
        assert abs(response.get_json()["estimated_rate"] - 3.0) <= 0.02

    def test_invalid_payment(self, client):
        response = client.post(
            "/api/estimate-rate",
            json={"monthly_payment": -1, "principal": 3000000, "months": 360},
        )
        assert response.status_code == 400
        assert response.get_json()["error"] == "invalid_input"

    def test_infinite_payment(self, client):
        response = client.post(
            "/api/estimate-rate",
            json={"monthly_payment": "Infinity", "principal": 3000000, "months": 360},
        )
        assert response.status_code == 400
        assert response.get_json()["error"] == "invalid_request"


class TestAnalyzeEndpoint:
    """Test POST /api/analyze."""

    def test_analysis(self, client):
        response = client.post(
            "/api/analyze",
            json={
                "start_date": "2020-01-01",
                "monthly_payment": 12652.36,
                "principal": 3000000,
                "term_months": 360,
            },
        )
        assert response.status_code == 200
        data = response.get_json()
        assert data["payoff_date"] == "2050-01-01"
        assert data["convention"] == "equal_payment"
        assert abs(data["estimated_rate"] - 3.0) <= 0.02

    def test_missing_start_date(self, client):
        response = client.post("/api/analyze", json={"monthly_payment": 100, "principal": 1200})
        assert response.status_code == 400

    def test_analysis_failure(self, client):
        response = client.post(
            "/api/analyze",
            json={"start_date": "2024-01-01", "monthly_payment": 1000, "principal": 1000000},
        )
        assert response.status_code == 422
        body = response.get_json()
        assert body["error"] == "analysis_failed"
        assert "600 months" in body["message"]


def test_healthz(client):
    response = client.get("/healthz")
    assert response.status_code == 200
    assert response.get_json() == {"status": "ok"}
