from __future__ import annotations


class ExchangeError(RuntimeError):
    """Non-success answer from the exchange (HTTP error or business code)."""

    def __init__(self, code: str | int | None, message: str, *, status: int | None = None) -> None:
        self.code = code
        self.message = message
        self.status = status
        super().__init__(f"Exchange error: http={status} code={code} msg={message}")


class BudgetExhausted(ExchangeError):
    """No free slot in the historical-data call budget; the caller should skip, not wait."""

    def __init__(self, what: str) -> None:
        super().__init__(None, f"call budget exhausted for {what}")
