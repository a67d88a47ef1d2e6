from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable

from meme_trader.core.types import ExchangeOrder, Side
from meme_trader.engine.agent import TradingAgent


@dataclass
class ReconcileResult:
    created: list[str] = field(default_factory=list)
    started: list[str] = field(default_factory=list)
    changed: list[str] = field(default_factory=list)
    ignored: list[str] = field(default_factory=list)


def latest_per_symbol(orders: Iterable[ExchangeOrder]) -> list[ExchangeOrder]:
    """Most recent order of each symbol; ties on created_at keep list order."""
    newest_first = sorted(orders, key=lambda o: -o.created_at)
    seen: set[str] = set()
    out: list[ExchangeOrder] = []
    for o in newest_first:
        if o.symbol in seen:
            continue
        seen.add(o.symbol)
        out.append(o)
    return out


class OrderReconciler:
    """
    Projects the exchange order list onto the agent registry.

    A BUY order means capital may be at risk, so it always gets a running agent.
    A SELL order only updates an agent that already exists.
    """

    def __init__(self, agent_factory: Callable[[str], TradingAgent]) -> None:
        self._agent_factory = agent_factory
        self._log = logging.getLogger("reconcile")

    def reconcile(self, orders: Iterable[ExchangeOrder], agents: dict[str, TradingAgent]) -> ReconcileResult:
        result = ReconcileResult()
        latest = latest_per_symbol(orders)
        for order in latest:
            agent = agents.get(order.symbol)
            if order.side == Side.BUY:
                if agent is None:
                    agent = self._agent_factory(order.symbol)
                    agents[order.symbol] = agent
                    result.created.append(order.symbol)
                if agent.set_order(order):
                    result.changed.append(order.symbol)
                if not agent.is_running():
                    agent.start()
                    result.started.append(order.symbol)
            elif agent is not None:
                if agent.set_order(order):
                    result.changed.append(order.symbol)
            else:
                result.ignored.append(order.symbol)
        if result.created or result.changed:
            self._log.info(
                "Reconciled %d symbols: created=%s changed=%s",
                len(latest),
                result.created,
                result.changed,
            )
        return result
