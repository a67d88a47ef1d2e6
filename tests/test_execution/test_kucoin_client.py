from __future__ import annotations

import asyncio
import base64
import hashlib
import hmac
import json

import httpx
import pytest

from meme_trader.core.config import ExchangeConfig
from meme_trader.core.errors import BudgetExhausted, ExchangeError
from meme_trader.core.types import Side
from meme_trader.exchange.adapters.auth import ApiKeys, auth_headers, load_keys_from_env, sign_request
from meme_trader.exchange.adapters.rate_limiter import CallBudget, SimpleRateLimiter
from meme_trader.exchange.kucoin.spot_client import KucoinSpotClient, _fmt

KEYS = ApiKeys(api_key="key", api_secret="secret", passphrase="pass")


def _ok(data) -> httpx.Response:
    return httpx.Response(200, json={"code": "200000", "data": data})


def _client(handler, *, keys: ApiKeys | None = KEYS) -> KucoinSpotClient:
    return KucoinSpotClient(ExchangeConfig(), keys=keys, transport=httpx.MockTransport(handler))


def test_list_symbols():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return _ok(
            [
                {"symbol": "ZZZ-USDT", "baseCurrency": "ZZZ", "quoteCurrency": "USDT", "enableTrading": True},
                {"symbol": "AAA-USDT", "baseCurrency": "AAA", "quoteCurrency": "USDT", "enableTrading": False},
            ]
        )

    symbols = asyncio.run(_client(handler).list_symbols("USDS"))
    assert seen[0].url.path == "/api/v2/symbols"
    assert seen[0].url.params["market"] == "USDS"
    assert "KC-API-KEY" not in seen[0].headers
    assert [s.symbol for s in symbols] == ["AAA-USDT", "ZZZ-USDT"]
    assert symbols[0].trading_enabled is False
    assert symbols[1].base_currency == "ZZZ"


def test_get_24h_stats():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["symbol"] == "AAA-USDT"
        return _ok({"time": 1700000000123, "last": "0.25", "volValue": "1234567.8", "changeRate": "0.42"})

    e = asyncio.run(_client(handler).get_24h_stats("AAA-USDT"))
    assert e.symbol == "AAA-USDT"
    assert e.last_price == 0.25
    assert e.volume_quote == 1234567.8
    assert e.change_rate_24h == 0.42
    assert e.captured_at == pytest.approx(1700000000.123)


def test_get_candles_ascending():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/v1/market/candles"
        assert request.url.params["type"] == "1hour"
        assert request.url.params["startAt"] == "3600"
        return _ok([["7200", "2", "3", "4", "1", "5", "6"], ["3600", "1", "2", "3", "0.5", "5", "6"]])

    candles = asyncio.run(_client(handler).get_candles("AAA-USDT", "1hour", 3600))
    assert [c.time for c in candles] == [3600, 7200]
    assert candles[1].close == 3.0


def test_business_error_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"code": "400100", "msg": "Parameter error"})

    with pytest.raises(ExchangeError) as ei:
        asyncio.run(_client(handler).ping())
    assert ei.value.code == "400100"
    assert ei.value.message == "Parameter error"


def test_http_error_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(429, json={"code": "429000", "msg": "Too Many Requests"})

    with pytest.raises(ExchangeError) as ei:
        asyncio.run(_client(handler).ping())
    assert ei.value.status == 429


def test_place_market_order_is_signed():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return _ok({"orderId": "abc123"})

    oid = asyncio.run(_client(handler).place_market_order("cid", Side.BUY, "AAA-USDT", funds=10.0))
    assert oid == "abc123"
    req = seen[0]
    assert req.method == "POST"
    body = json.loads(req.content)
    assert body == {"clientOid": "cid", "side": "buy", "symbol": "AAA-USDT", "type": "market", "funds": "10"}

    ts = req.headers["KC-API-TIMESTAMP"]
    assert req.headers["KC-API-KEY"] == "key"
    assert req.headers["KC-API-KEY-VERSION"] == "2"
    assert req.headers["KC-API-SIGN"] == sign_request("secret", int(ts), "POST", "/api/v1/orders", req.content.decode())


def test_sell_by_size():
    seen: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(json.loads(request.content))
        return _ok({"orderId": "x"})

    asyncio.run(_client(handler).place_market_order("cid", Side.SELL, "AAA-USDT", size=0.000123))
    assert seen[0]["size"] == "0.000123"
    assert "funds" not in seen[0]


def test_signed_call_without_keys():
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("must not be sent")

    with pytest.raises(ExchangeError):
        asyncio.run(_client(handler, keys=None).place_market_order("cid", Side.BUY, "AAA-USDT", funds=1.0))


def test_list_orders_merges_active_and_done():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.headers["KC-API-KEY"] == "key"
        if request.url.params["status"] == "active":
            items = [{"id": "2", "symbol": "AAA-USDT", "side": "sell", "isActive": True, "createdAt": 200}]
        else:
            items = [
                {"id": "3", "symbol": "BBB-USDT", "side": "buy", "isActive": False, "dealSize": "4", "createdAt": 300},
                {"id": "1", "symbol": "AAA-USDT", "side": "buy", "isActive": False, "dealSize": "2", "createdAt": 100},
            ]
        return _ok({"items": items})

    orders = asyncio.run(_client(handler).list_orders())
    assert [o.order_id for o in orders] == ["3", "2", "1"]
    assert orders[1].side == Side.SELL
    assert orders[1].is_active is True
    assert orders[0].deal_size == 4.0


def test_signature_matches_kucoin_scheme():
    expected = base64.b64encode(
        hmac.new(b"secret", b"1000GET/api/v1/orders?status=active", hashlib.sha256).digest()
    ).decode()
    assert sign_request("secret", 1000, "get", "/api/v1/orders?status=active") == expected

    h1 = auth_headers(KEYS, timestamp_ms=1000, method="GET", endpoint="/x", body="", key_version=1)
    h2 = auth_headers(KEYS, timestamp_ms=1000, method="GET", endpoint="/x", body="", key_version=2)
    assert h1["KC-API-PASSPHRASE"] == "pass"
    assert h2["KC-API-PASSPHRASE"] == base64.b64encode(hmac.new(b"secret", b"pass", hashlib.sha256).digest()).decode()


def test_load_keys_from_env(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("KUCOINAPI_AUTH_KEY", "k")
    monkeypatch.setenv("KUCOINAPI_AUTH_SECRET", "s")
    monkeypatch.delenv("KUCOINAPI_AUTH_PASS", raising=False)
    with pytest.raises(RuntimeError):
        load_keys_from_env()
    monkeypatch.setenv("KUCOINAPI_AUTH_PASS", "p")
    assert load_keys_from_env() == ApiKeys("k", "s", "p")


def test_call_budget_rejects_instead_of_queueing():
    budget = CallBudget(1)

    async def scenario() -> None:
        async with budget.slot("first"):
            assert budget.available == 0
            with pytest.raises(BudgetExhausted):
                async with budget.slot("second"):
                    pass
        assert budget.available == 1

    asyncio.run(scenario())


def test_fmt():
    assert _fmt(10.0) == "10"
    assert _fmt(0.5) == "0.5"
    assert _fmt(1e-7) == "0.0000001"


def test_rate_limiter_admits_up_to_limit():
    limiter = SimpleRateLimiter(max_per_sec=2, clock=lambda: 0.0)
    asyncio.run(limiter.acquire())
    asyncio.run(limiter.acquire())
    assert len(limiter._starts) == 2
