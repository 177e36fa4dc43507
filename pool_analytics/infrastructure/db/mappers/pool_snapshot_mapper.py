from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any

from pool_analytics.domain.entities.pool_snapshot import PoolSnapshot, PoolType
from pool_analytics.domain.exceptions import InvalidSnapshotError


def _raw_amount(value: Any, *, field_name: str) -> int:
    if value is None:
        raise InvalidSnapshotError(f"{field_name} is missing.")
    try:
        amount = Decimal(str(value))
    except InvalidOperation as exc:
        raise InvalidSnapshotError(f"{field_name} is not numeric.") from exc
    if not amount.is_finite() or amount != amount.to_integral_value():
        raise InvalidSnapshotError(f"{field_name} must be an integer amount.")
    return int(amount)


def _decimals(value: Any, *, field_name: str) -> int:
    if value is None:
        raise InvalidSnapshotError(f"{field_name} is unknown.")
    return _raw_amount(value, field_name=field_name)


def _observed_at(value: Any) -> datetime:
    if not isinstance(value, datetime):
        raise InvalidSnapshotError("observed_at is missing or not a timestamp.")
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def map_row_to_pool_snapshot(row: Mapping[str, Any]) -> PoolSnapshot:
    observed_at = _observed_at(row.get("observed_at"))
    pool_type = row.get("pool_type") or PoolType.CONSTANT_PRODUCT.value
    try:
        parsed_pool_type = PoolType(str(pool_type).lower())
    except ValueError as exc:
        raise InvalidSnapshotError(f"unknown pool_type {pool_type!r}.") from exc
    return PoolSnapshot(
        pool_address=str(row["pool_address"]).lower(),
        base_token_address=str(row["token0_address"]).lower(),
        quote_token_address=str(row["token1_address"]).lower(),
        base_token_symbol=row.get("token0_symbol") or "UNKNOWN",
        quote_token_symbol=row.get("token1_symbol") or "UNKNOWN",
        base_reserve_raw=_raw_amount(row["reserve0"], field_name="reserve0"),
        quote_reserve_raw=_raw_amount(row["reserve1"], field_name="reserve1"),
        base_decimals=_decimals(row["token0_decimals"], field_name="token0_decimals"),
        quote_decimals=_decimals(row["token1_decimals"], field_name="token1_decimals"),
        observed_at=observed_at,
        pool_type=parsed_pool_type,
    )
