from __future__ import annotations

from decimal import (
    ROUND_HALF_EVEN,
    Context,
    Decimal,
    DivisionByZero,
    InvalidOperation,
    Overflow,
)

from pool_analytics.domain.exceptions import DecimalArithmeticError


# uint256 reserves have up to 78 digits; keep headroom for products with USD prices.
PRECISION = 100
MAX_TOKEN_DECIMALS = 36
ZERO = Decimal("0")

MONEY_CONTEXT = Context(
    prec=PRECISION,
    rounding=ROUND_HALF_EVEN,
    traps=[DivisionByZero, InvalidOperation, Overflow],
)


def to_decimal(value: Decimal | int | str, *, field_name: str = "value") -> Decimal:
    if isinstance(value, float):
        value = str(value)
    try:
        result = value if isinstance(value, Decimal) else Decimal(value)
    except (InvalidOperation, TypeError, ValueError) as exc:
        raise DecimalArithmeticError(f"{field_name} is not a valid decimal: {value!r}") from exc
    if not result.is_finite():
        raise DecimalArithmeticError(f"{field_name} must be finite.")
    return result


def validate_decimals(decimals: int, *, field_name: str = "decimals") -> int:
    if isinstance(decimals, bool) or not isinstance(decimals, int):
        raise DecimalArithmeticError(f"{field_name} must be an integer.")
    if decimals < 0 or decimals > MAX_TOKEN_DECIMALS:
        raise DecimalArithmeticError(
            f"{field_name} must be between 0 and {MAX_TOKEN_DECIMALS}."
        )
    return decimals


def from_raw_amount(raw: int, decimals: int) -> Decimal:
    """Convert an on-chain integer amount into token units without rounding."""
    validate_decimals(decimals)
    return Decimal(int(raw)).scaleb(-decimals, MONEY_CONTEXT)


def to_raw_amount(amount: Decimal, decimals: int) -> int:
    validate_decimals(decimals)
    scaled = to_decimal(amount, field_name="amount").scaleb(decimals, MONEY_CONTEXT)
    if scaled != scaled.to_integral_value():
        raise DecimalArithmeticError(
            f"amount {amount} has more than {decimals} fractional digits."
        )
    return int(scaled)


def add(*values: Decimal) -> Decimal:
    total = ZERO
    for value in values:
        total = MONEY_CONTEXT.add(total, value)
    return total


def multiply(left: Decimal, right: Decimal) -> Decimal:
    try:
        return MONEY_CONTEXT.multiply(left, right)
    except (InvalidOperation, Overflow) as exc:
        raise DecimalArithmeticError(f"cannot multiply {left} by {right}.") from exc


def divide(numerator: Decimal, denominator: Decimal) -> Decimal:
    if denominator == 0:
        raise DecimalArithmeticError("division by zero.")
    try:
        return MONEY_CONTEXT.divide(numerator, denominator)
    except (InvalidOperation, Overflow) as exc:
        raise DecimalArithmeticError(f"cannot divide {numerator} by {denominator}.") from exc
