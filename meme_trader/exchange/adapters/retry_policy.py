from __future__ import annotations

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential_jitter


def default_retry(attempts: int = 3):
    # transport level only; business errors surface immediately.
    # Never wrap order placement with this.
    return retry(
        reraise=True,
        stop=stop_after_attempt(attempts),
        wait=wait_exponential_jitter(initial=0.2, max=5.0),
        retry=retry_if_exception_type((TimeoutError, httpx.TimeoutException, httpx.TransportError)),
    )
