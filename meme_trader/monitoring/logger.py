from __future__ import annotations

import asyncio
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def _level(name: str) -> int:
    return getattr(logging, name.upper(), logging.INFO)


def setup_logging(level: str = "INFO", *, file: str | None = None, file_level: str = "DEBUG") -> None:
    root = logging.getLogger()
    console_level = _level(level)
    logging.basicConfig(level=console_level, format=_FORMAT)
    if file:
        Path(file).parent.mkdir(parents=True, exist_ok=True)
        fh = RotatingFileHandler(file, maxBytes=1024 * 1024, backupCount=3)
        fh.setLevel(_level(file_level))
        fh.setFormatter(logging.Formatter(_FORMAT))
        root.addHandler(fh)
        root.setLevel(min(console_level, _level(file_level)))
        for h in root.handlers:
            if h is not fh and not isinstance(h, RotatingFileHandler):
                h.setLevel(console_level)
    # IMPORTANT: httpx/httpcore can log full request URLs and headers.
    # Keep them quiet to avoid leaking signatures into logs.
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


class SymbolAdapter(logging.LoggerAdapter):
    """Prefixes every message with the symbol an agent is working on."""

    def process(self, msg, kwargs):
        return f"({self.extra['symbol']}) {msg}", kwargs


def symbol_logger(name: str, symbol: str) -> SymbolAdapter:
    return SymbolAdapter(logging.getLogger(name), {"symbol": symbol})


class AlertHandler(logging.Handler):
    """
    Forwards log records at or above its level to an async alerter (Telegram).

    Only records emitted while the event loop runs are forwarded; sending is
    scheduled as a task so logging never waits on the network. Records of the
    alerter and HTTP loggers are skipped, a failed alert logs a warning itself.
    """

    _SKIP = ("telegram", "httpx", "httpcore")

    def __init__(self, alerter: Any, level: str = "WARNING") -> None:
        super().__init__(_level(level))
        self._alerter = alerter
        self._pending: set[asyncio.Task] = set()
        self.setFormatter(logging.Formatter("[%(levelname)s] %(message)s"))

    def emit(self, record: logging.LogRecord) -> None:
        if record.name.split(".")[0] in self._SKIP:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        try:
            text = self.format(record)
        except Exception:
            self.handleError(record)
            return
        task = loop.create_task(self._alerter.send(text))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def drain(self) -> None:
        """Wait for alerts still in flight."""
        if self._pending:
            await asyncio.wait(list(self._pending))


def install_alert_handler(alerter: Any, level: str = "WARNING") -> AlertHandler:
    handler = AlertHandler(alerter, level)
    logging.getLogger().addHandler(handler)
    return handler
