from __future__ import annotations

import asyncio
import contextlib
import time
from typing import Any, Callable

from meme_trader.core.config import AppConfig
from meme_trader.core.types import UniverseEntry
from meme_trader.engine.agent import TradingAgent
from meme_trader.engine.controls import EngineControls
from meme_trader.exchange.base import ExchangeClient
from meme_trader.execution.reconciliation import OrderReconciler, ReconcileResult
from meme_trader.monitoring.alerts.telegram import NullAlerter
from meme_trader.monitoring.logger import get_logger
from meme_trader.monitoring.metrics import Metrics
from meme_trader.strategies.signal_detector import SignalDetector
from meme_trader.universe.scanner import UniverseScanner


class Orchestrator:
    """
    Top-level control loop. Each tick runs, strictly in order:
    universe refresh -> agent spawn -> order reconciliation -> agent checks.

    The agent registry and the statistics cache are only mutated from here.
    """

    def __init__(
        self,
        cfg: AppConfig,
        exchange: ExchangeClient,
        *,
        detector: SignalDetector | None = None,
        alerter: Any = None,
        clock: Callable[[], float] = time.time,
        agent_factory: Callable[[str], TradingAgent] | None = None,
    ) -> None:
        self._cfg = cfg
        self._exchange = exchange
        self._detector = detector or SignalDetector.from_config(cfg.trader)
        self._alerter = alerter or NullAlerter()
        self._clock = clock
        self._agent_factory = agent_factory or self._new_agent
        self._log = get_logger("orchestrator")
        self._stop = asyncio.Event()
        self._tick_lock = asyncio.Lock()

        self.controls = EngineControls(pause=cfg.engine.pause, drain=cfg.engine.drain)
        self.agents: dict[str, TradingAgent] = {}
        self.scanner = UniverseScanner(cfg.universe, exchange, market=cfg.exchange.market)
        self.reconciler = OrderReconciler(self._agent_factory)
        self.metrics = Metrics()
        self.running = False

    def _new_agent(self, symbol: str) -> TradingAgent:
        return TradingAgent(
            symbol,
            exchange=self._exchange,
            detector=self._detector,
            cfg=self._cfg.trader,
            controls=self.controls,
            alerter=self._alerter,
            clock=self._clock,
        )

    def get_or_create_agent(self, symbol: str) -> TradingAgent:
        agent = self.agents.get(symbol)
        if agent is None:
            agent = self._agent_factory(symbol)
            self.agents[symbol] = agent
            self._log.info("%d trader(s), created %s", len(self.agents), symbol)
        return agent

    # -- tick steps -----------------------------------------------------------

    async def tick(self) -> None:
        async with self._tick_lock:
            if self.controls.pause:
                self._log.debug("Paused, tick skipped")
                return
            now = self._clock()
            started = time.monotonic()
            self.metrics.inc("ticks")
            await self.scanner.refresh(now)
            self.spawn_agents()
            await self.reconcile_orders()
            await self.run_agents()
            self.metrics.gauge("agents", len(self.agents))
            self.metrics.gauge("agents_running", sum(1 for a in self.agents.values() if a.is_running()))
            self.metrics.last_tick_sec = time.monotonic() - started

    def spawn_agents(self) -> list[str]:
        # agents are only spawned from a complete universe snapshot
        if not self.scanner.universe_complete:
            return []
        started: list[str] = []
        for entry in self.scanner.candidates():
            existing = self.agents.get(entry.symbol)
            if existing is not None and existing.is_running():
                continue
            self.get_or_create_agent(entry.symbol).start()
            started.append(entry.symbol)
        return started

    async def reconcile_orders(self) -> ReconcileResult | None:
        try:
            orders = await self._exchange.list_orders()
        except Exception as e:
            self._log.error("reconcile: order list unavailable: %s", e)
            return None
        before = {s: a.state for s, a in self.agents.items()}
        result = self.reconciler.reconcile(orders, self.agents)
        for symbol in result.changed:
            agent = self.agents[symbol]
            prev = before.get(symbol)
            await self._alerter.send(
                f"{symbol}: {prev.value if prev else 'NEW'} -> {agent.state.value} position={agent.position}"
            )
        return result

    async def run_agents(self) -> None:
        for symbol in sorted(self.agents):
            agent = self.agents[symbol]
            # re-checked per agent: stop() may land mid-tick
            if not agent.is_running():
                continue
            await agent.check()

    # -- lifecycle -------------------------------------------------------------

    async def run(self) -> None:
        """Tick every engine.tick_interval_sec until stop(); a slow tick delays the next one."""
        self.running = True
        self._stop.clear()
        interval = float(self._cfg.engine.tick_interval_sec)
        self._log.info("Orchestrator started, tick every %ss", interval)
        await self._alerter.send("meme-trader started")
        try:
            while not self._stop.is_set():
                started = time.monotonic()
                try:
                    await self.tick()
                except Exception:
                    self.metrics.inc("tick_errors")
                    self._log.exception("tick failed")
                remaining = max(0.0, interval - (time.monotonic() - started))
                with contextlib.suppress(asyncio.TimeoutError):
                    await asyncio.wait_for(self._stop.wait(), timeout=remaining)
        finally:
            self.running = False
            self._log.info("Orchestrator stopped")

    def stop(self) -> None:
        self._stop.set()
        for agent in self.agents.values():
            agent.stop()

    # -- control surface -------------------------------------------------------

    def set_drain_mode(self, enabled: bool) -> None:
        self.controls.set_drain(enabled)
        self._log.warning("Drain mode %s", "on" if enabled else "off")

    def set_pause_mode(self, enabled: bool) -> None:
        self.controls.set_pause(enabled)
        self._log.warning("Pause mode %s", "on" if enabled else "off")

    def symbols(self) -> list[str]:
        return self.scanner.stats.symbols()

    def get_entry(self, symbol: str) -> UniverseEntry | None:
        return self.scanner.stats.get(symbol.upper())

    def traders(self) -> list[str]:
        return sorted(self.agents)

    def get_agent(self, symbol: str) -> TradingAgent | None:
        return self.agents.get(symbol.upper())

    def dump(self, symbol: str) -> dict[str, Any] | None:
        agent = self.get_agent(symbol)
        return agent.dump() if agent is not None else None

    def status(self) -> dict[str, Any]:
        return {
            "running": self.running,
            **self.controls.to_dict(),
            "universe_complete": self.scanner.universe_complete,
            "universe_size": self.scanner.universe_size,
            "symbols": len(self.scanner.stats),
            "traders": len(self.agents),
            "traders_running": sum(1 for a in self.agents.values() if a.is_running()),
            "metrics": self.metrics.snapshot(),
        }
