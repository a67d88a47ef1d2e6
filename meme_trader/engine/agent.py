from __future__ import annotations

import random
import time
import uuid
from dataclasses import asdict
from typing import Any, Callable

from meme_trader.core.config import TraderConfig
from meme_trader.core.errors import BudgetExhausted, ExchangeError
from meme_trader.core.types import AgentState, ExchangeOrder, Side, Signal
from meme_trader.data.candle_series import CandleSeries
from meme_trader.data.candles import final_candles, timeframe_seconds
from meme_trader.engine.controls import EngineControls
from meme_trader.exchange.base import ExchangeClient
from meme_trader.monitoring.alerts.telegram import NullAlerter
from meme_trader.monitoring.logger import symbol_logger
from meme_trader.strategies.signal_detector import SignalDetector


class TradingAgent:
    """
    Per-symbol state machine: IDLE -> BUYING -> POSITION -> SELLING -> IDLE.

    Signals move the agent out of IDLE and POSITION by placing market orders.
    The exchange order feed (set_order) is authoritative for everything else.
    """

    def __init__(
        self,
        symbol: str,
        *,
        exchange: ExchangeClient,
        detector: SignalDetector,
        cfg: TraderConfig,
        controls: EngineControls | None = None,
        alerter: Any = None,
        clock: Callable[[], float] = time.time,
        rng: random.Random | None = None,
    ) -> None:
        self.symbol = symbol
        self.state = AgentState.IDLE
        self.position = 0.0
        self.last_signal = Signal.NONE
        self.running = False
        self.last_run = 0.0
        self.last_order_id: str | None = None
        self.last_order: ExchangeOrder | None = None
        self.series = CandleSeries(symbol, timeframe_seconds(cfg.timeframe))

        self._exchange = exchange
        self._detector = detector
        self._cfg = cfg
        self._controls = controls or EngineControls()
        self._alerter = alerter or NullAlerter()
        self._clock = clock
        self._rng = rng or random.Random()
        self._log = symbol_logger("agent", symbol)

    def start(self) -> None:
        if not self.running:
            self.running = True
            self._log.info("Trader started in %s", self.state.value)

    def stop(self) -> None:
        if self.running:
            self.running = False
            self._log.info("Trader stopped in %s", self.state.value)

    def is_running(self) -> bool:
        return self.running

    def is_due(self, now: float) -> bool:
        # jittered period so agents do not poll the exchange in lockstep
        return now > self.last_run + self._rng.uniform(0.5, 1.5) * self.series.timeframe_sec

    async def check(self) -> Signal | None:
        """
        Refresh candles, detect a signal and act on it. Never raises: a failure is
        logged, state is left untouched and the check is retried on the next tick.
        Returns the detected signal, or None when skipped or failed.
        """
        now = self._clock()
        if not self.is_due(now):
            return None
        previous_run = self.last_run
        self.last_run = now
        try:
            await self.refresh_candles(now)
            signal = self._detector.detect(self.series.closes())
            if signal != Signal.NONE:
                self._log.debug("Signal %s in %s (last=%s)", signal.value, self.state.value, self.last_signal.value)
            await self._on_signal(signal)
            return signal
        except BudgetExhausted:
            self.last_run = previous_run
            self._log.debug("Candle budget exhausted, check skipped")
        except ExchangeError as e:
            self.last_run = previous_run
            self._log.error("check failed: %s", e)
        except Exception:
            self.last_run = previous_run
            self._log.exception("check failed")
        return None

    async def refresh_candles(self, now: float) -> int:
        tf = self.series.timeframe_sec
        last = self.series.last_time
        start_at = last if last is not None else int(now) - self._cfg.history_bars * tf
        candles = await self._exchange.get_candles(self.symbol, self._cfg.timeframe, start_at)
        return self.series.merge(final_candles(candles, timeframe_sec=tf, now=now))

    async def _on_signal(self, signal: Signal) -> None:
        if signal == Signal.BUY and self.state == AgentState.IDLE:
            if self._controls.drain:
                self._log.debug("Drain mode, BUY ignored")
                return
            if self.last_signal == Signal.BUY:
                return
            self.last_order_id = await self._place(Side.BUY, funds=self._cfg.funds)
            self.state = AgentState.BUYING
            self.last_signal = Signal.BUY
            await self._alerter.send(f"{self.symbol}: BUY {self._cfg.funds} placed ({self.last_order_id})")
        elif signal == Signal.SELL and self.state == AgentState.POSITION:
            if self.last_signal == Signal.SELL:
                return
            if self.position <= 0:
                self._log.warning("SELL signal with empty position")
                return
            size = self.position
            self.last_order_id = await self._place(Side.SELL, size=size)
            self.state = AgentState.SELLING
            self.last_signal = Signal.SELL
            await self._alerter.send(f"{self.symbol}: SELL {size} placed ({self.last_order_id})")
        elif signal == Signal.SELL and self.state == AgentState.IDLE:
            # an opposite run ends the previous one, the next BUY run may trade again
            self.last_signal = Signal.SELL
        elif signal == Signal.BUY and self.state == AgentState.POSITION:
            self.last_signal = Signal.BUY

    async def _place(self, side: Side, *, funds: float | None = None, size: float | None = None) -> str:
        client_id = uuid.uuid4().hex
        order_id = await self._exchange.place_market_order(client_id, side, self.symbol, funds=funds, size=size)
        self._log.info("%s order %s placed (funds=%s size=%s)", side.value, order_id, funds, size)
        return order_id

    def set_order(self, order: ExchangeOrder) -> bool:
        """Project the latest exchange order onto the agent. Returns True when state or position changed."""
        if order.symbol != self.symbol:
            self._log.warning("Ignoring order %s for %s", order.order_id, order.symbol)
            return False
        before = (self.state, self.position)
        if order.side == Side.BUY:
            if order.is_active:
                self.state = AgentState.BUYING
            elif order.deal_size > 0:
                self.state = AgentState.POSITION
                self.position = order.deal_size
            else:
                # cancelled before any fill
                self.state = AgentState.IDLE
                self.position = 0.0
        else:
            if order.is_active:
                self.state = AgentState.SELLING
            else:
                self.state = AgentState.IDLE
                self.position = 0.0
        self.last_order = order
        changed = (self.state, self.position) != before
        if changed:
            self._log.info(
                "%s -> %s position=%s (order %s)", before[0].value, self.state.value, self.position, order.order_id
            )
        return changed

    def snapshot(self) -> dict[str, Any]:
        return {
            "symbol": self.symbol,
            "state": self.state.value,
            "position": self.position,
            "last_signal": self.last_signal.value,
            "running": self.running,
            "last_run": self.last_run,
            "last_order_id": self.last_order_id,
            "candles": len(self.series),
            "last_candle_time": self.series.last_time,
        }

    def dump(self) -> dict[str, Any]:
        candles = list(self.series)
        samples = self._detector.compute(self.series.closes())
        aligned = candles[len(candles) - len(samples) :] if samples else []
        return {
            "symbol": self.symbol,
            "timeframe": self._cfg.timeframe,
            "candles": [asdict(c) for c in candles],
            "oscillator": [{"time": c.time, **asdict(s)} for c, s in zip(aligned, samples)],
            "signal": self._detector.decide(samples).value,
        }

    def __str__(self) -> str:
        return f"{self.symbol} {self.state.value} position={self.position} last_signal={self.last_signal.value}"
