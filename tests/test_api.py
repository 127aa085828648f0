"""
API tests for the analyze, upload, health and metrics endpoints.
"""

import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from fastapi.testclient import TestClient

from app.main import app


@pytest.fixture
def client():
    return TestClient(app)


def _cycle_transactions() -> list:
    return [
        {"transaction_id": "T1", "sender_id": "ACC_001", "receiver_id": "ACC_002", "amount": 1000, "timestamp": "2024-01-10 10:00:00"},
        {"transaction_id": "T2", "sender_id": "ACC_002", "receiver_id": "ACC_003", "amount": 1010, "timestamp": "2024-01-10 10:05:00"},
        {"transaction_id": "T3", "sender_id": "ACC_003", "receiver_id": "ACC_001", "amount": 990, "timestamp": "2024-01-10 10:10:00"},
        {"transaction_id": "T4", "sender_id": "ACC_003", "receiver_id": "ACC_009", "amount": 15, "timestamp": "2024-01-10 11:00:00"},
    ]


def _cycle_csv() -> bytes:
    lines = ["transaction_id,sender_id,receiver_id,amount,timestamp"]
    for tx in _cycle_transactions():
        lines.append(
            f"{tx['transaction_id']},{tx['sender_id']},{tx['receiver_id']},{tx['amount']},{tx['timestamp']}"
        )
    return ("\n".join(lines) + "\n").encode("utf-8")


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestAnalyzeEndpoint:
    def test_detects_cycle(self, client):
        response = client.post("/api/analyze", json={"transactions": _cycle_transactions()})
        assert response.status_code == 200
        body = response.json()
        assert body["fraud_rings"] == [
            {
                "ring_id": "RING_001",
                "member_accounts": ["ACC_001", "ACC_002", "ACC_003"],
                "pattern_type": "cycle",
                "risk_score": 85.0,
            }
        ]
        assert body["summary"]["total_accounts_analyzed"] == 4
        assert "transaction_patterns" not in body

    def test_ring_ids_restart_per_request(self, client):
        for _ in range(2):
            body = client.post("/api/analyze", json={"transactions": _cycle_transactions()}).json()
            assert body["fraud_rings"][0]["ring_id"] == "RING_001"

    def test_include_patterns(self, client):
        response = client.post(
            "/api/analyze",
            params={"include_patterns": "true"},
            json={"transactions": _cycle_transactions()},
        )
        assert response.status_code == 200
        assert response.json()["transaction_patterns"] == {"T1": "cycle", "T2": "cycle", "T3": "cycle"}

    def test_empty_batch(self, client):
        response = client.post("/api/analyze", json={"transactions": []})
        assert response.status_code == 200
        assert response.json()["summary"]["fraud_rings_detected"] == 0

    def test_transactions_not_a_list(self, client):
        response = client.post("/api/analyze", json={"transactions": "T1,T2"})
        assert response.status_code == 400
        assert "Invalid transactions data" in response.json()["detail"]

    def test_missing_transactions_key(self, client):
        assert client.post("/api/analyze", json={"rows": []}).status_code == 400

    def test_invalid_json_body(self, client):
        response = client.post(
            "/api/analyze",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 400

    def test_missing_field(self, client):
        transactions = _cycle_transactions()
        del transactions[0]["amount"]
        response = client.post("/api/analyze", json={"transactions": transactions})
        assert response.status_code == 400
        assert "amount" in response.json()["detail"]

    def test_malformed_timestamp(self, client):
        transactions = _cycle_transactions()
        transactions[2]["timestamp"] = "not-a-date"
        response = client.post("/api/analyze", json={"transactions": transactions})
        assert response.status_code == 400
        assert "T3" in response.json()["detail"]

    def test_out_of_range_epoch_timestamp(self, client):
        transactions = [
            {"transaction_id": f"E{i}", "sender_id": f"S{i}", "receiver_id": "H", "amount": 50, "timestamp": 1e300}
            for i in range(10)
        ]
        response = client.post("/api/analyze", json={"transactions": transactions})
        assert response.status_code == 400
        assert "E0" in response.json()["detail"]

    def test_clock_relative_timestamp(self, client):
        transactions = _cycle_transactions()
        transactions[0]["timestamp"] = "now"
        response = client.post("/api/analyze", json={"transactions": transactions})
        assert response.status_code == 400

    def test_infinite_amount(self, client):
        body = (
            b'{"transactions": [{"transaction_id": "T1", "sender_id": "A", "receiver_id": "B", '
            b'"amount": Infinity, "timestamp": "2024-01-10 10:00:00"}]}'
        )
        response = client.post("/api/analyze", content=body, headers={"Content-Type": "application/json"})
        assert response.status_code == 400
        assert "amount" in response.json()["detail"]


class TestUploadEndpoint:
    def test_upload_csv(self, client):
        response = client.post("/upload", files={"file": ("transactions.csv", _cycle_csv(), "text/csv")})
        assert response.status_code == 200
        body = response.json()
        assert len(body["fraud_rings"]) == 1
        assert [a["account_id"] for a in body["suspicious_accounts"]] == ["ACC_001", "ACC_002", "ACC_003"]

    def test_rejects_non_csv(self, client):
        response = client.post("/upload", files={"file": ("transactions.txt", _cycle_csv(), "text/plain")})
        assert response.status_code == 400

    def test_rejects_missing_columns(self, client):
        csv = b"transaction_id,sender_id,receiver_id,amount\nT1,A,B,10\n"
        response = client.post("/upload", files={"file": ("transactions.csv", csv, "text/csv")})
        assert response.status_code == 400
        assert "timestamp" in response.json()["detail"]


class TestMetricsEndpoint:
    def test_metrics_after_run(self, client):
        client.post("/api/analyze", json={"transactions": _cycle_transactions()})
        body = client.get("/metrics").json()
        assert body["status"] == "ready"
        assert body["total_runs"] >= 1
        assert body["last_run"]["fraud_rings_detected"] == 1
