from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from meme_trader.core.config import AppConfig, TraderConfig, load_config


def test_load_config_missing_file(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path / "nope.yaml"))


def test_load_config_defaults_from_empty_file(tmp_path: Path):
    p = tmp_path / "cfg.yaml"
    p.write_text("")
    cfg = load_config(str(p))
    assert cfg == AppConfig()
    assert cfg.trader.timeframe == "1hour"
    assert cfg.universe.max_age_sec == 3600.0


def test_local_yaml_overrides_nested_values(tmp_path: Path):
    p = tmp_path / "cfg.yaml"
    p.write_text("trader:\n  funds: 5\n  timeframe: 15min\nuniverse:\n  min_change: 0.2\n")
    (tmp_path / "local.yaml").write_text("trader:\n  funds: 25\ncontrol:\n  token: secret\n")
    cfg = load_config(str(p))
    assert cfg.trader.funds == 25
    assert cfg.trader.timeframe == "15min"
    assert cfg.universe.min_change == 0.2
    assert cfg.control.token == "secret"


def test_shipped_default_config_loads():
    p = Path(__file__).resolve().parents[2] / "configs" / "default.yaml"
    cfg = load_config(str(p))
    assert cfg.trader.oscillator == "macd"
    assert cfg.exchange.market == "USDS"


def test_confirmations_must_be_positive():
    with pytest.raises(ValidationError):
        TraderConfig(up_confirmations=0)
    with pytest.raises(ValidationError):
        TraderConfig(funds=0)
