from __future__ import annotations

import json
import logging
import time
from typing import Any
from urllib.parse import urlencode

import httpx

from meme_trader.core.config import ExchangeConfig
from meme_trader.core.errors import ExchangeError
from meme_trader.core.types import Candle, ExchangeOrder, Side, SymbolDescriptor, UniverseEntry
from meme_trader.data.candles import klines_to_candles
from meme_trader.exchange.adapters.auth import ApiKeys, auth_headers
from meme_trader.exchange.adapters.rate_limiter import CallBudget, SimpleRateLimiter
from meme_trader.exchange.adapters.retry_policy import default_retry
from meme_trader.exchange.adapters.symbol_mapper import parse_order, parse_stats, parse_symbols
from meme_trader.exchange.base import ExchangeClient

SUCCESS_CODE = "200000"


def _fmt(x: float) -> str:
    # plain decimal notation, no exponent, no trailing zeros
    s = f"{x:.10f}".rstrip("0").rstrip(".")
    return s or "0"


class KucoinSpotClient(ExchangeClient):
    def __init__(
        self,
        cfg: ExchangeConfig,
        keys: ApiKeys | None = None,
        limiter: SimpleRateLimiter | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._cfg = cfg
        self._keys = keys
        self._limiter = limiter or SimpleRateLimiter(max_per_sec=cfg.max_per_sec)
        self._history = CallBudget(cfg.history_calls)
        self._http = httpx.AsyncClient(base_url=cfg.base_url, timeout=cfg.timeout_sec, transport=transport)
        self._log = logging.getLogger("kucoin")

    async def close(self) -> None:
        await self._http.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        signed: bool = False,
        params: dict[str, Any] | None = None,
        body: dict[str, Any] | None = None,
    ) -> Any:
        await self._limiter.acquire()
        items = [(k, str(v)) for k, v in (params or {}).items() if v is not None]
        # IMPORTANT: sign and send the exact same querystring and body bytes
        endpoint = f"{path}?{urlencode(items)}" if items else path
        payload = json.dumps(body, separators=(",", ":")) if body is not None else ""

        headers = {"Content-Type": "application/json"} if body is not None else {}
        if signed:
            if self._keys is None:
                raise ExchangeError(None, f"{method} {path} requires API keys")
            headers.update(
                auth_headers(
                    self._keys,
                    timestamp_ms=int(time.time() * 1000),
                    method=method,
                    endpoint=endpoint,
                    body=payload,
                    key_version=self._cfg.key_version,
                )
            )

        r = await self._http.request(method, endpoint, content=payload or None, headers=headers)
        try:
            data = r.json()
        except ValueError:
            raise ExchangeError(None, r.text, status=r.status_code) from None

        # KuCoin returns {"code": "200000", "data": ...}; anything else is an error
        code = str(data.get("code", "")) if isinstance(data, dict) else ""
        if r.status_code >= 400 or code != SUCCESS_CODE:
            msg = data.get("msg") if isinstance(data, dict) else r.text
            raise ExchangeError(code or None, str(msg), status=r.status_code)
        return data.get("data")

    @default_retry()
    async def _get(self, path: str, *, signed: bool = False, params: dict[str, Any] | None = None) -> Any:
        return await self._request("GET", path, signed=signed, params=params)

    async def ping(self) -> int:
        return int(await self._get("/api/v1/timestamp"))

    async def list_symbols(self, market: str) -> list[SymbolDescriptor]:
        data = await self._get("/api/v2/symbols", params={"market": market})
        symbols = parse_symbols(data or [])
        self._log.debug("list_symbols market=%s -> %d", market, len(symbols))
        return symbols

    async def get_24h_stats(self, symbol: str) -> UniverseEntry:
        data = await self._get("/api/v1/market/stats", params={"symbol": symbol})
        return parse_stats({"symbol": symbol, **(data or {})}, now=time.time())

    async def get_candles(self, symbol: str, timeframe: str, start_at: int) -> list[Candle]:
        async with self._history.slot(f"candles {symbol}"):
            data = await self._get(
                "/api/v1/market/candles",
                params={"type": timeframe, "symbol": symbol, "startAt": int(start_at)},
            )
        return klines_to_candles(data or [])

    async def place_market_order(
        self,
        client_id: str,
        side: Side,
        symbol: str,
        *,
        funds: float | None = None,
        size: float | None = None,
    ) -> str:
        if (funds is None) == (size is None):
            raise ValueError("exactly one of funds or size is required")
        body: dict[str, Any] = {
            "clientOid": client_id,
            "side": side.value,
            "symbol": symbol,
            "type": "market",
        }
        if funds is not None:
            body["funds"] = _fmt(funds)
        else:
            body["size"] = _fmt(size)  # type: ignore[arg-type]
        data = await self._request("POST", "/api/v1/orders", signed=True, body=body)
        order_id = str((data or {}).get("orderId", ""))
        self._log.info("Order placed: %s %s %s -> %s", side.value, symbol, body.get("funds") or body.get("size"), order_id)
        return order_id

    async def _orders_page(self, status: str) -> list[ExchangeOrder]:
        data = await self._get(
            "/api/v1/orders",
            signed=True,
            params={"status": status, "tradeType": "TRADE", "pageSize": 500},
        )
        return [parse_order(o) for o in (data or {}).get("items", [])]

    async def list_orders(self) -> list[ExchangeOrder]:
        orders = await self._orders_page("active") + await self._orders_page("done")
        orders.sort(key=lambda o: o.created_at, reverse=True)
        return orders
