from __future__ import annotations

import base64
import hmac
import os
from dataclasses import dataclass
from hashlib import sha256


@dataclass(frozen=True)
class ApiKeys:
    api_key: str
    api_secret: str
    passphrase: str


def load_keys_from_env() -> ApiKeys:
    k = os.environ.get("KUCOINAPI_AUTH_KEY", "").strip()
    s = os.environ.get("KUCOINAPI_AUTH_SECRET", "").strip()
    p = os.environ.get("KUCOINAPI_AUTH_PASS", "").strip()
    if not k or not s or not p:
        raise RuntimeError(
            "Missing KuCoin API keys. Set KUCOINAPI_AUTH_KEY, KUCOINAPI_AUTH_SECRET and "
            "KUCOINAPI_AUTH_PASS in environment."
        )
    return ApiKeys(api_key=k, api_secret=s, passphrase=p)


def _hmac_b64(secret: str, payload: str) -> str:
    digest = hmac.new(secret.encode("utf-8"), payload.encode("utf-8"), sha256).digest()
    return base64.b64encode(digest).decode("ascii")


def sign_request(api_secret: str, timestamp_ms: int, method: str, endpoint: str, body: str = "") -> str:
    """KC-API-SIGN: base64(hmac_sha256(secret, timestamp + METHOD + endpoint[?query] + body))."""
    return _hmac_b64(api_secret, f"{timestamp_ms}{method.upper()}{endpoint}{body}")


def auth_headers(keys: ApiKeys, *, timestamp_ms: int, method: str, endpoint: str, body: str, key_version: int) -> dict[str, str]:
    passphrase = _hmac_b64(keys.api_secret, keys.passphrase) if key_version >= 2 else keys.passphrase
    return {
        "KC-API-KEY": keys.api_key,
        "KC-API-SIGN": sign_request(keys.api_secret, timestamp_ms, method, endpoint, body),
        "KC-API-TIMESTAMP": str(timestamp_ms),
        "KC-API-PASSPHRASE": passphrase,
        "KC-API-KEY-VERSION": str(key_version),
    }
