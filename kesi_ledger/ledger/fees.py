"""
Service Fee Rules

The fee rate is a percentage. It is passed in explicitly by the caller
at creation time and is never read from storage here.

ROUNDING: fees are rounded to 2 decimal places with ROUND_HALF_UP
(0.005 -> 0.01). All arithmetic is Decimal, so there are no binary
floating point surprises at the tie.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Optional, Union

from kesi_ledger.ledger.errors import InvalidFeeRateError


Number = Union[Decimal, int, float, str]

HUNDRED = Decimal("100")
CENT = Decimal("0.01")
ZERO = Decimal("0")

# A fee above the amount itself is never meant
MAX_FEE_RATE = HUNDRED


def to_decimal(value: Number) -> Decimal:
    """
    Convert a number to Decimal.

    Floats go through str() so 33.33 becomes Decimal("33.33"),
    not its binary approximation.
    """
    if isinstance(value, bool):
        raise TypeError("Booleans are not amounts")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, (int, float)):
        return Decimal(str(value))
    return Decimal(value.strip())


def round2(value: Decimal) -> Decimal:
    """Round to cents, half away from zero."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def parse_fee_rate(raw: object) -> Decimal:
    """
    Parse user input into a fee rate (percent).

    Accepts numbers and numeric strings from 0 to 100 (inclusive).

    Raises:
        InvalidFeeRateError: If the value is empty, non-numeric,
            not finite, negative, or above 100
    """
    if raw is None or isinstance(raw, bool):
        raise InvalidFeeRateError(raw, "a number is required")

    if isinstance(raw, str) and not raw.strip():
        raise InvalidFeeRateError(raw, "a number is required")

    if not isinstance(raw, (Decimal, int, float, str)):
        raise InvalidFeeRateError(raw, "a number is required")

    try:
        rate = to_decimal(raw)
    except InvalidOperation:
        raise InvalidFeeRateError(raw, "not a number")

    if not rate.is_finite():
        raise InvalidFeeRateError(raw, "not a finite number")

    if rate < 0:
        raise InvalidFeeRateError(raw, "must not be negative")

    if rate > MAX_FEE_RATE:
        raise InvalidFeeRateError(raw, "must not exceed 100")

    return rate


def compute_fee(amount: Number, rate_percent: Number) -> Optional[Decimal]:
    """
    Compute the service fee snapshot for a new transaction.

    fee = round2(amount * rate_percent / 100)

    Returns:
        The fee, or None when it rounds to zero (rate 0, or a tiny amount)

    Raises:
        ValueError: If amount is not strictly positive
        InvalidFeeRateError: If rate_percent is invalid
    """
    amount = to_decimal(amount)
    if amount <= 0:
        raise ValueError(f"Amount must be positive, got {amount}")

    rate = parse_fee_rate(rate_percent)

    fee = round2(amount * rate / HUNDRED)
    if fee == ZERO:
        return None
    return fee


def preview_fee(amount: Optional[Number], rate_percent: Number) -> Decimal:
    """
    Fee shown on the form while the user is still typing.

    Never raises: incomplete or invalid input previews as 0.00.
    """
    if amount is None:
        return round2(ZERO)
    try:
        fee = compute_fee(amount, rate_percent)
    except (ValueError, TypeError, ArithmeticError, InvalidFeeRateError):
        return round2(ZERO)
    return fee if fee is not None else round2(ZERO)
