"""Decimal helpers for amounts and rates. Floats never reach the ledger."""

from decimal import Decimal, InvalidOperation, ROUND_HALF_EVEN
from .exceptions import InvalidRequest

CENT = Decimal("0.01")
RATE_QUANTUM = Decimal("0.000001")


def as_money(value) -> Decimal:
    """Normalize any numeric or string input to a Decimal with 2 fractional digits."""
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_EVEN)


def _parse_exact(value, field, quantum) -> Decimal:
    """Parse caller input without rounding: digits beyond ``quantum`` are refused."""
    try:
        parsed = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise InvalidRequest(f"{field} must be a number")
    if not parsed.is_finite():
        raise InvalidRequest(f"{field} must be a finite number")
    try:
        stored = parsed.quantize(quantum)
    except InvalidOperation:
        raise InvalidRequest(f"{field} is out of range")
    if stored != parsed:
        places = -quantum.as_tuple().exponent
        raise InvalidRequest(f"{field} allows at most {places} decimal places")
    return stored


def parse_positive(value, field, quantum=CENT) -> Decimal:
    """Parse caller input into a positive Decimal, raising InvalidRequest otherwise."""
    if value is None or value == '':
        raise InvalidRequest(f"{field} is required")
    if isinstance(value, bool):
        raise InvalidRequest(f"{field} must be a number")
    parsed = _parse_exact(value, field, quantum)
    if parsed <= 0:
        raise InvalidRequest(f"{field} must be greater than zero")
    return parsed


def local_amount(amount, rate) -> Decimal:
    return as_money(Decimal(amount) * Decimal(rate))


def parse_decimal(value, field, quantum=CENT) -> Decimal:
    """Parse a signed, non-zero Decimal from caller input."""
    if value is None or value == '' or isinstance(value, bool):
        raise InvalidRequest(f"{field} is required")
    parsed = _parse_exact(value, field, quantum)
    if parsed == 0:
        raise InvalidRequest(f"{field} must be a non-zero number")
    return parsed
