"""Per-pool price and TVL from a reserve snapshot.

TVL follows the symmetric convention: both sides of the pool are assumed to be
worth the same in USD, so ``liquidity = quote_reserve * quote_usd_price * 2``.
This holds for constant-product and stable pools. Weighted and concentrated
pools get a ``tvl_assumes_symmetric_reserves`` warning instead of a different
formula, so callers can tell the figure is an estimate.
"""

from __future__ import annotations

from decimal import Decimal

from pool_analytics.domain.entities.liquidity_metrics import LiquidityMetrics
from pool_analytics.domain.entities.pool_snapshot import SYMMETRIC_POOL_TYPES, PoolSnapshot
from pool_analytics.domain.exceptions import (
    DecimalArithmeticError,
    EmptyPoolError,
    InvalidSnapshotError,
)
from pool_analytics.domain.services.decimal_math import (
    divide,
    from_raw_amount,
    multiply,
    to_decimal,
    validate_decimals,
)


SYMMETRIC_TVL_FACTOR = Decimal("2")
ASYMMETRIC_TVL_WARNING = "tvl_assumes_symmetric_reserves"


def _validate_snapshot(snapshot: PoolSnapshot) -> None:
    if snapshot.base_reserve_raw < 0 or snapshot.quote_reserve_raw < 0:
        raise InvalidSnapshotError(
            f"pool {snapshot.pool_address} has negative reserves."
        )
    try:
        validate_decimals(snapshot.base_decimals, field_name="base_decimals")
        validate_decimals(snapshot.quote_decimals, field_name="quote_decimals")
    except DecimalArithmeticError as exc:
        raise InvalidSnapshotError(f"pool {snapshot.pool_address}: {exc}") from exc


def _validate_reference_price(quote_usd_price: Decimal) -> Decimal:
    try:
        value = to_decimal(quote_usd_price, field_name="quote_usd_price")
    except DecimalArithmeticError as exc:
        raise InvalidSnapshotError(str(exc)) from exc
    if value < 0:
        raise InvalidSnapshotError("quote_usd_price must be >= 0.")
    return value


def compute_liquidity_metrics(snapshot: PoolSnapshot, quote_usd_price: Decimal) -> LiquidityMetrics:
    _validate_snapshot(snapshot)
    reference_price = _validate_reference_price(quote_usd_price)

    base_reserve = from_raw_amount(snapshot.base_reserve_raw, snapshot.base_decimals)
    quote_reserve = from_raw_amount(snapshot.quote_reserve_raw, snapshot.quote_decimals)

    if base_reserve == 0:
        raise EmptyPoolError(f"pool {snapshot.pool_address} has no liquidity.")
    price = divide(quote_reserve, base_reserve)
    price_usd = multiply(price, reference_price)
    liquidity = multiply(multiply(quote_reserve, reference_price), SYMMETRIC_TVL_FACTOR)

    warnings: tuple[str, ...] = ()
    if snapshot.pool_type not in SYMMETRIC_POOL_TYPES:
        warnings = (ASYMMETRIC_TVL_WARNING,)

    return LiquidityMetrics(
        token_address=snapshot.base_token_address.lower(),
        quote_token_address=snapshot.quote_token_address.lower(),
        quote_token_symbol=snapshot.quote_token_symbol,
        price=price,
        price_usd=price_usd,
        pool_address=snapshot.pool_address.lower(),
        liquidity=liquidity,
        timestamp=snapshot.observed_at,
        warnings=warnings,
    )
