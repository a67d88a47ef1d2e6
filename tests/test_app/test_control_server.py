from __future__ import annotations

import asyncio

import pytest
from fastapi.testclient import TestClient

from fakes import FakeExchange, descriptor, entry
from meme_trader.app.control_server import create_app
from meme_trader.core.config import AppConfig
from meme_trader.engine.orchestrator import Orchestrator


@pytest.fixture()
def orchestrator() -> Orchestrator:
    ex = FakeExchange(now=5000.0)
    ex.symbols = [descriptor("AAA-USDT"), descriptor("BBB-USDT")]
    ex.stats = {"AAA-USDT": entry("AAA-USDT", change=0.5), "BBB-USDT": entry("BBB-USDT")}
    orch = Orchestrator(AppConfig(), ex, clock=lambda: 5000.0)
    asyncio.run(orch.tick())
    asyncio.run(orch.tick())
    return orch


@pytest.fixture()
def client(orchestrator: Orchestrator) -> TestClient:
    return TestClient(create_app(orchestrator, token="test-token"))


def test_status(client: TestClient):
    r = client.get("/status")
    assert r.status_code == 200
    data = r.json()
    assert data["universe_complete"] is True
    assert data["traders"] == 1
    assert data["pause"] is False
    assert data["drain"] is False


def test_symbols(client: TestClient):
    r = client.get("/symbols")
    assert r.json() == {"count": 2, "items": ["AAA-USDT", "BBB-USDT"]}

    r2 = client.get("/symbols/aaa-usdt")
    assert r2.status_code == 200
    assert r2.json()["change_rate_24h"] == 0.5

    assert client.get("/symbols/XXX-USDT").status_code == 404


def test_traders(client: TestClient):
    r = client.get("/traders")
    assert r.json() == {"count": 1, "items": ["AAA-USDT"]}

    r2 = client.get("/traders/AAA-USDT")
    assert r2.status_code == 200
    assert r2.json()["state"] == "IDLE"
    assert r2.json()["running"] is True

    r3 = client.get("/traders/aaa-usdt/candles")
    assert r3.status_code == 200
    assert r3.json()["candles"] == []
    assert r3.json()["signal"] == "NONE"

    assert client.get("/traders/BBB-USDT").status_code == 404
    assert client.get("/traders/BBB-USDT/candles").status_code == 404


def test_switches_require_token(client: TestClient, orchestrator: Orchestrator):
    # Missing token -> 401
    r = client.post("/drain", json={"enabled": True})
    assert r.status_code == 401
    assert orchestrator.controls.drain is False

    r2 = client.post("/drain", headers={"X-CONTROL-TOKEN": "test-token"}, json={"enabled": True})
    assert r2.status_code == 200
    assert r2.json() == {"drain": True}
    assert orchestrator.controls.drain is True

    r3 = client.post("/pause", headers={"X-CONTROL-TOKEN": "wrong"}, json={"enabled": True})
    assert r3.status_code == 401

    r4 = client.post("/pause", headers={"X-CONTROL-TOKEN": "test-token"}, json={"enabled": True})
    assert r4.json() == {"pause": True}
    assert client.get("/status").json()["pause"] is True


def test_switches_open_without_token(orchestrator: Orchestrator):
    client = TestClient(create_app(orchestrator))
    r = client.post("/pause", json={"enabled": True})
    assert r.status_code == 200
    assert orchestrator.controls.pause is True
    assert client.post("/pause", json={}).status_code == 422
