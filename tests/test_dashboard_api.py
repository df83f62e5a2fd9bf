"""Tests for the dashboard HTTP layer."""
import random

import pytest
from fastapi.testclient import TestClient

from analytics.config import AnalyticsSettings
from analytics.errors import PersistenceError
from analytics.generator import SyntheticGenerator
from analytics.runtime import AnalyticsRuntime
from dashboard.app import create_app


@pytest.fixture
def runtime(tmp_path):
    settings = AnalyticsSettings(
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'api.db'}",
        _env_file=None,
    )
    return AnalyticsRuntime(settings, generator=SyntheticGenerator(rng=random.Random(7)))


@pytest.fixture
def client(runtime):
    with TestClient(create_app(runtime, schedule=False)) as client:
        yield client


def test_network_latest(client):
    response = client.get("/api/network")
    assert response.status_code == 200
    body = response.json()
    assert body["blockHeight"] >= 5_000_000
    assert body["networkHashrate"].endswith("TH/s")


def test_network_404_before_first_tick(runtime):
    with TestClient(create_app(runtime, schedule=False, initial_load=False)) as client:
        response = client.get("/api/network")
    assert response.status_code == 404


def test_network_history(client):
    response = client.get("/api/network/history", params={"hours": 1})
    assert response.status_code == 200
    assert len(response.json()) == 1

    assert client.get("/api/network/history", params={"hours": 0}).status_code == 422


def test_transactions(client):
    response = client.get("/api/transactions", params={"limit": 5})
    assert response.status_code == 200
    transactions = response.json()
    assert len(transactions) == 5
    assert {tx["status"] for tx in transactions} <= {"success", "failed"}


def test_transactions_for_address(client):
    address = "0x" + "ab" * 20
    response = client.get("/api/transactions", params={"address": address, "limit": 3})
    assert response.status_code == 200
    assert [tx["fromAddress"] for tx in response.json()] == [address] * 3


def test_validators_and_dapps(client):
    validators = client.get("/api/validators").json()
    dapps = client.get("/api/dapps").json()
    assert len(validators) == 8
    assert len(dapps) == 5
    assert {d["category"] for d in dapps} <= {"DeFi", "Gaming", "NFT", "Infrastructure", "Social", "Other"}


def test_dashboard(client):
    body = client.get("/api/dashboard").json()
    assert body["network"] is not None
    assert len(body["recentTransactions"]) == 10
    assert len(body["topValidators"]) == 5
    assert len(body["topDapps"]) == 5
    assert body["metrics"]["totalValidators"] == 8
    assert body["metrics"]["totalTvl"] == pytest.approx(sum(d["tvl"] for d in body["topDapps"]))


def test_health(client):
    body = client.get("/api/health").json()
    assert body["status"] == "healthy"
    assert body["uptime"] >= 0
    assert body["scheduler_running"] is False


def test_metrics_endpoint(client):
    client.get("/api/validators")
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "analytics_ingestion_ticks_total" in response.text
    assert "analytics_cache_misses_total" in response.text


def test_read_failure_without_cache_returns_503(runtime):
    async def broken():
        raise PersistenceError("connection lost")
    runtime.store.active_validators = broken

    with TestClient(create_app(runtime, schedule=False)) as client:
        response = client.get("/api/validators")
    assert response.status_code == 503
    assert response.json()["error"] == "Service unavailable"
