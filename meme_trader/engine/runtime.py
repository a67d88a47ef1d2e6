from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Any

from meme_trader.engine.orchestrator import Orchestrator
from meme_trader.exchange.base import ExchangeClient
from meme_trader.monitoring.logger import AlertHandler, get_logger


class Runtime:
    def __init__(
        self,
        orchestrator: Orchestrator,
        exchange: ExchangeClient,
        *,
        control_server: Any = None,
        alerter: Any = None,
        alert_handler: AlertHandler | None = None,
    ) -> None:
        self._orchestrator = orchestrator
        self._exchange = exchange
        self._control_server = control_server
        self._alerter = alerter
        self._alert_handler = alert_handler
        self._log = get_logger("runtime")

    @property
    def orchestrator(self) -> Orchestrator:
        return self._orchestrator

    async def run(self) -> None:
        control_task: asyncio.Task | None = None
        try:
            # unreachable exchange at boot is fatal
            server_time = await self._exchange.ping()
            self._log.info("Exchange reachable, server time %s", server_time)
            if self._control_server is not None:
                control_task = asyncio.create_task(self._control_server.serve())
            await self._orchestrator.run()
        finally:
            # in-flight calls finish on their own; agents are just marked stopped
            self._orchestrator.stop()
            if control_task is not None:
                self._control_server.should_exit = True
                with contextlib.suppress(asyncio.CancelledError):
                    await control_task
            if self._alert_handler is not None:
                logging.getLogger().removeHandler(self._alert_handler)
                await self._alert_handler.drain()
            if self._alerter is not None:
                await self._alerter.send("meme-trader stopped")
                await self._alerter.close()
            await self._exchange.close()
