from __future__ import annotations

import asyncio
import logging

import pytest

from fakes import FakeExchange
from meme_trader.core.config import AppConfig, EngineConfig
from meme_trader.core.errors import ExchangeError
from meme_trader.engine.orchestrator import Orchestrator
from meme_trader.engine.runtime import Runtime
from meme_trader.monitoring.logger import install_alert_handler


class FakeServer:
    def __init__(self) -> None:
        self.should_exit = False
        self.served = False

    async def serve(self) -> None:
        self.served = True
        while not self.should_exit:
            await asyncio.sleep(0.005)


class RecordingAlerter:
    def __init__(self) -> None:
        self.messages: list[str] = []
        self.closed = False

    async def send(self, text: str) -> bool:
        self.messages.append(text)
        return True

    async def close(self) -> None:
        self.closed = True


def _runtime():
    ex = FakeExchange(now=1000.0)
    alerter = RecordingAlerter()
    orch = Orchestrator(AppConfig(engine=EngineConfig(tick_interval_sec=0.01)), ex, alerter=alerter)
    server = FakeServer()
    return Runtime(orch, ex, control_server=server, alerter=alerter), ex, server, alerter


def test_runtime_runs_and_cleans_up():
    runtime, ex, server, alerter = _runtime()

    async def scenario() -> None:
        task = asyncio.create_task(runtime.run())
        await asyncio.sleep(0.05)
        runtime.orchestrator.stop()
        await asyncio.wait_for(task, timeout=1.0)

    asyncio.run(scenario())
    assert server.served is True
    assert server.should_exit is True
    assert ex.closed is True
    assert alerter.messages[0] == "meme-trader started"
    assert alerter.messages[-1] == "meme-trader stopped"
    assert alerter.closed is True


def test_unreachable_exchange_is_fatal():
    runtime, ex, server, _ = _runtime()
    ex.ping_error = ExchangeError(None, "connection refused")
    with pytest.raises(ExchangeError):
        asyncio.run(runtime.run())
    assert server.served is False
    assert ex.closed is True
    assert runtime.orchestrator.metrics.counters == {}


def test_alert_handler_is_removed_on_exit():
    ex = FakeExchange(now=1000.0)
    alerter = RecordingAlerter()
    handler = install_alert_handler(alerter, "WARNING")
    orch = Orchestrator(AppConfig(engine=EngineConfig(tick_interval_sec=0.01)), ex, alerter=alerter)
    runtime = Runtime(orch, ex, alerter=alerter, alert_handler=handler)

    async def scenario() -> None:
        task = asyncio.create_task(runtime.run())
        await asyncio.sleep(0.03)
        logging.getLogger("runtime-test").warning("exposure high")
        orch.stop()
        await asyncio.wait_for(task, timeout=1.0)

    try:
        asyncio.run(scenario())
    finally:
        logging.getLogger().removeHandler(handler)
    assert handler not in logging.getLogger().handlers
    assert "[WARNING] exposure high" in alerter.messages
    assert alerter.messages[-1] == "meme-trader stopped"
