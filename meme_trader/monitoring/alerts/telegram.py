"""
Telegram alerts (optional).

Operator notifications for order placements, fills and engine start/stop.
Sending never raises: a failed alert is logged and dropped.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

TELEGRAM_API = "https://api.telegram.org/bot{token}/sendMessage"


@dataclass(frozen=True)
class TelegramSettings:
    bot_token: str
    chat_id: str


class TelegramAlerter:
    def __init__(self, cfg: TelegramSettings, *, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._cfg = cfg
        self._http = httpx.AsyncClient(timeout=10.0, transport=transport)
        self._log = logging.getLogger("telegram")

    async def send(self, text: str) -> bool:
        url = TELEGRAM_API.format(token=self._cfg.bot_token)
        try:
            r = await self._http.post(url, json={"chat_id": self._cfg.chat_id, "text": text})
        except httpx.HTTPError as e:
            self._log.warning("Telegram send failed: %s", e)
            return False
        if r.status_code >= 400:
            self._log.warning("Telegram send failed: http=%s %s", r.status_code, r.text)
            return False
        return True

    async def close(self) -> None:
        await self._http.aclose()


class NullAlerter:
    async def send(self, text: str) -> bool:
        _ = text
        return False

    async def close(self) -> None:
        return None
