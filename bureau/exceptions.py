"""Business-rule failures raised by the queue, ledger and settlement code."""


class BureauError(Exception):
    """Base exception for all branch workflow errors."""

    http_status = 400


class InvalidRequest(BureauError):
    """Raised when caller input is missing or malformed."""


class NotFound(BureauError):
    """Raised when a referenced queue entry or currency does not exist."""

    http_status = 404


class InsufficientStock(BureauError):
    """Raised when a debit would drive a currency's stock below zero."""

    http_status = 409

    def __init__(self, currency_code, available, requested):
        self.currency_code = currency_code
        self.available = available
        self.requested = requested
        super().__init__(
            f"Insufficient stock for {currency_code}: {available} available, {requested} requested"
        )


class InvalidQueueState(BureauError):
    """Raised when a queue entry cannot make the requested status transition."""

    http_status = 409


class CurrencyUnavailable(BureauError):
    """Raised when the branch does not currently offer a service for a currency."""

    http_status = 422
