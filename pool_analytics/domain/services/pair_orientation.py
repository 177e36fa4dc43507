from __future__ import annotations

from dataclasses import replace

from pool_analytics.domain.entities.pool_snapshot import PoolSnapshot


def is_base_token(snapshot: PoolSnapshot, token_address: str) -> bool:
    return snapshot.base_token_address.lower() == token_address.lower()


def swap_sides(snapshot: PoolSnapshot) -> PoolSnapshot:
    return replace(
        snapshot,
        base_token_address=snapshot.quote_token_address,
        quote_token_address=snapshot.base_token_address,
        base_token_symbol=snapshot.quote_token_symbol,
        quote_token_symbol=snapshot.base_token_symbol,
        base_reserve_raw=snapshot.quote_reserve_raw,
        quote_reserve_raw=snapshot.base_reserve_raw,
        base_decimals=snapshot.quote_decimals,
        quote_decimals=snapshot.base_decimals,
    )


def orient_to_base(snapshot: PoolSnapshot, token_address: str) -> PoolSnapshot:
    """Return the snapshot with ``token_address`` on the base side.

    The provider's snapshot is never modified; a swapped copy is returned when
    the token sits on the quote side.
    """
    if is_base_token(snapshot, token_address):
        return snapshot
    if snapshot.quote_token_address.lower() == token_address.lower():
        return swap_sides(snapshot)
    raise ValueError(f"token {token_address} is not part of pool {snapshot.pool_address}.")
