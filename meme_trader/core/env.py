from __future__ import annotations

import os
from pathlib import Path


def load_dotenv(path: str = ".env") -> int:
    """
    Load KEY=VALUE lines (optionally prefixed with `export`) into os.environ.
    Existing variables win. Returns the number of variables set.
    """
    p = Path(path)
    if not p.exists():
        return 0
    loaded = 0
    for line in p.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        if line.startswith("export "):
            line = line[len("export ") :]
        k, v = line.split("=", 1)
        k = k.strip()
        v = v.strip().strip('"').strip("'")
        if k and k not in os.environ:
            os.environ[k] = v
            loaded += 1
    return loaded


def env_flag(name: str, default: bool = False) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "on", "yes"}
