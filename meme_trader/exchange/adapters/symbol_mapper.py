from __future__ import annotations

from typing import Any

from meme_trader.core.types import ExchangeOrder, Side, SymbolDescriptor, UniverseEntry


def _as_float(v: Any) -> float:
    try:
        return float(v)
    except (TypeError, ValueError):
        return 0.0


def _as_bool(v: Any) -> bool:
    if isinstance(v, bool):
        return v
    return str(v).strip().lower() in {"true", "1", "yes", "on"}


def parse_symbols(items: list[dict[str, Any]]) -> list[SymbolDescriptor]:
    out = [
        SymbolDescriptor(
            symbol=s["symbol"],
            base_currency=s.get("baseCurrency", ""),
            quote_currency=s.get("quoteCurrency", ""),
            trading_enabled=_as_bool(s.get("enableTrading", False)),
        )
        for s in items
        if s.get("symbol")
    ]
    out.sort(key=lambda d: d.symbol)
    return out


def parse_stats(data: dict[str, Any], *, now: float) -> UniverseEntry:
    """
    KuCoin /api/v1/market/stats payload. `time` is in milliseconds; local time is
    used when absent.
    """
    ts = data.get("time")
    captured_at = int(ts) / 1000.0 if ts else now
    return UniverseEntry(
        symbol=data.get("symbol", ""),
        last_price=_as_float(data.get("last")),
        volume_quote=_as_float(data.get("volValue")),
        change_rate_24h=_as_float(data.get("changeRate")),
        captured_at=captured_at,
    )


def parse_order(o: dict[str, Any]) -> ExchangeOrder:
    return ExchangeOrder(
        order_id=str(o.get("id", "")),
        symbol=o.get("symbol", ""),
        side=Side(str(o.get("side", "buy")).lower()),
        is_active=_as_bool(o.get("isActive", False)),
        deal_size=_as_float(o.get("dealSize")),
        created_at=int(o.get("createdAt") or 0),
        client_oid=o.get("clientOid"),
        deal_funds=_as_float(o.get("dealFunds")),
    )
