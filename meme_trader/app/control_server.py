from __future__ import annotations

from typing import Any

import uvicorn
from fastapi import Depends, FastAPI, Header, HTTPException
from pydantic import BaseModel

from meme_trader.core.config import ControlConfig
from meme_trader.engine.orchestrator import Orchestrator
from meme_trader.monitoring.logger import get_logger

log = get_logger("control")


class Toggle(BaseModel):
    enabled: bool


def _entry_dict(entry: Any) -> dict[str, Any]:
    return {
        "symbol": entry.symbol,
        "last_price": entry.last_price,
        "volume_quote": entry.volume_quote,
        "change_rate_24h": entry.change_rate_24h,
        "captured_at": entry.captured_at,
    }


def create_app(orchestrator: Orchestrator, *, token: str | None = None) -> FastAPI:
    """Operator API over a running orchestrator: introspection plus drain/pause switches."""
    app = FastAPI(title="meme-trader control")

    def require_token(x_control_token: str | None = Header(default=None, alias="X-CONTROL-TOKEN")) -> None:
        if not token:
            return
        if x_control_token != token:
            raise HTTPException(status_code=401, detail="missing/invalid control token")

    @app.get("/status")
    def status() -> dict[str, Any]:
        return orchestrator.status()

    @app.get("/symbols")
    def symbols() -> dict[str, Any]:
        items = orchestrator.symbols()
        return {"count": len(items), "items": items}

    @app.get("/symbols/{symbol}")
    def symbol(symbol: str) -> dict[str, Any]:
        entry = orchestrator.get_entry(symbol)
        if entry is None:
            raise HTTPException(status_code=404, detail=f"unknown symbol {symbol.upper()}")
        return _entry_dict(entry)

    @app.get("/traders")
    def traders() -> dict[str, Any]:
        items = orchestrator.traders()
        return {"count": len(items), "items": items}

    @app.get("/traders/{symbol}")
    def trader(symbol: str) -> dict[str, Any]:
        agent = orchestrator.get_agent(symbol)
        if agent is None:
            raise HTTPException(status_code=404, detail=f"no trader for {symbol.upper()}")
        return agent.snapshot()

    @app.get("/traders/{symbol}/candles")
    def candles(symbol: str) -> dict[str, Any]:
        dump = orchestrator.dump(symbol)
        if dump is None:
            raise HTTPException(status_code=404, detail=f"no trader for {symbol.upper()}")
        return dump

    @app.post("/drain")
    def drain(payload: Toggle, _: Any = Depends(require_token)) -> dict[str, Any]:
        orchestrator.set_drain_mode(payload.enabled)
        return {"drain": orchestrator.controls.drain}

    @app.post("/pause")
    def pause(payload: Toggle, _: Any = Depends(require_token)) -> dict[str, Any]:
        orchestrator.set_pause_mode(payload.enabled)
        return {"pause": orchestrator.controls.pause}

    return app


def build_server(orchestrator: Orchestrator, cfg: ControlConfig) -> uvicorn.Server:
    app = create_app(orchestrator, token=cfg.token)
    log.info("Control API on http://%s:%s", cfg.host, cfg.port)
    return uvicorn.Server(uvicorn.Config(app, host=cfg.host, port=cfg.port, log_level="warning"))
