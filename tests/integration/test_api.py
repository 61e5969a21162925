"""
Integration tests for the HTTP API.

The client is used as a context manager so the application lifespan
creates the scheduler and background jobs run on the client's loop.
"""

import time

import pytest
from fastapi.testclient import TestClient

from agent_backtester.api.main import create_app

BACKTEST_BODY = {
    "name": "API momentum",
    "description": "Synthetic data run",
    "config": {
        "startDate": "2023-01-01T00:00:00Z",
        "endDate": "2023-03-31T00:00:00Z",
        "initialCapital": 50000,
        "symbols": ["AAPL", "MSFT"],
        "commission": 0.001,
        "slippage": 0.0005,
    },
    "agentConfigs": [{"id": "agent-1", "name": "Trend", "type": "TECHNICAL"}],
    "dataProvider": {"type": "mock", "config": {"seed": 7}},
}


@pytest.fixture
def client():
    with TestClient(create_app()) as test_client:
        yield test_client


def wait_until_finished(client: TestClient, job_id: str, timeout: float = 10.0) -> dict:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        body = client.get(f"/api/backtests/{job_id}").json()
        if body["status"] in ("COMPLETED", "FAILED", "CANCELLED"):
            return body
        time.sleep(0.05)
    raise AssertionError(f"Backtest {job_id} did not finish")


def submit(client: TestClient, **overrides) -> str:
    response = client.post("/api/backtests", json={**BACKTEST_BODY, **overrides})
    assert response.status_code == 201
    return response.json()["jobId"]


@pytest.mark.integration
class TestBacktestApi:
    """End-to-end tests through the backtest endpoints."""

    def test_should_run_submitted_backtest_to_completion(self, client) -> None:
        """Test submit, poll and fetch the result."""
        response = client.post("/api/backtests", json=BACKTEST_BODY)

        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "RUNNING"
        assert body["message"] == "Backtest job queued successfully"

        status = wait_until_finished(client, body["jobId"])
        assert status["status"] == "COMPLETED"
        assert status["progress"] == 100
        assert status["name"] == "API momentum"

        result = client.get(f"/api/backtests/{body['jobId']}/result").json()
        assert result["initialCapital"] == 50000
        assert result["totalTrades"] == 0
        assert result["finalCapital"] == pytest.approx(50000)

    def test_should_report_every_validation_error(self, client) -> None:
        """Test an invalid request returns 400 with all errors."""
        response = client.post(
            "/api/backtests", json={**BACKTEST_BODY, "name": "", "agentConfigs": []}
        )

        assert response.status_code == 400
        assert response.json() == {
            "error": "Invalid backtest request",
            "errors": [
                "Backtest name is required",
                "At least one agent configuration is required",
            ],
        }

    def test_should_reject_malformed_body(self, client) -> None:
        """Test schema violations are client errors."""
        config = {**BACKTEST_BODY["config"], "commission": 5}

        response = client.post("/api/backtests", json={**BACKTEST_BODY, "config": config})

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid request"

    def test_should_return_404_for_unknown_job(self, client) -> None:
        """Test unknown ids."""
        for path in ("/api/backtests/missing", "/api/backtests/missing/result"):
            response = client.get(path)
            assert response.status_code == 404
            assert response.json() == {"error": "Backtest job not found"}

        assert client.delete("/api/backtests/missing").status_code == 404
        assert client.post("/api/backtests/missing/cancel").status_code == 404

    def test_should_list_compare_export_and_delete(self, client) -> None:
        """Test the reporting endpoints on finished jobs."""
        first = submit(client)
        second = submit(client, name="API momentum 2")
        wait_until_finished(client, first)
        wait_until_finished(client, second)

        listing = client.get("/api/backtests", params={"status": "COMPLETED", "limit": 10}).json()
        assert listing["total"] == 2
        assert listing["completed"] == 2
        assert listing["running"] == 0

        comparison = client.post("/api/backtests/compare", json={"jobIds": [first, second]})
        assert comparison.status_code == 200
        assert set(comparison.json()["rankings"]["byReturn"]) == {first, second}

        export = client.get(f"/api/backtests/{first}/export", params={"format": "csv"})
        assert export.status_code == 200
        assert export.headers["content-type"].startswith("text/csv")
        assert export.headers["content-disposition"] == f'attachment; filename="backtest_{first}.csv"'
        assert export.text.startswith("timestamp,total_value,cash")

        deleted = client.delete(f"/api/backtests/{first}")
        assert deleted.json() == {"message": "Backtest deleted successfully", "jobId": first, "status": None}
        assert client.get(f"/api/backtests/{first}").status_code == 404

    def test_should_reject_comparison_of_single_job(self, client) -> None:
        """Test comparison input validation."""
        response = client.post("/api/backtests/compare", json={"jobIds": ["only-one"]})

        assert response.status_code == 400
        assert response.json()["error"] == "At least 2 job IDs required for comparison"

    def test_should_refuse_to_cancel_finished_job(self, client) -> None:
        """Test cancelling a terminal job."""
        job_id = submit(client)
        wait_until_finished(client, job_id)

        response = client.post(f"/api/backtests/{job_id}/cancel")

        assert response.status_code == 400
        assert response.json() == {"error": "Cannot cancel backtest", "status": "COMPLETED"}

    def test_should_reject_unknown_status_filter(self, client) -> None:
        """Test listing validation."""
        response = client.get("/api/backtests", params={"status": "sleeping"})

        assert response.status_code == 400


@pytest.mark.integration
class TestServiceEndpoints:
    """Tests for the data catalogue and service endpoints."""

    def test_should_list_data_providers(self, client) -> None:
        """Test the provider catalogue."""
        providers = client.get("/api/data/providers").json()["providers"]

        assert [provider["type"] for provider in providers] == ["alphavantage", "mock", "csv"]
        assert providers[0]["requiresApiKey"] is True

    def test_should_report_health(self, client) -> None:
        """Test root and health endpoints."""
        assert client.get("/health").json() == {"status": "healthy"}
        assert client.get("/").json()["version"] == "1.0.0"
