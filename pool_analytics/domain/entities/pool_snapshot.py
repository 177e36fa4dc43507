from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class PoolType(str, Enum):
    CONSTANT_PRODUCT = "constant_product"
    STABLE = "stable"
    CONCENTRATED = "concentrated"
    WEIGHTED = "weighted"


# Pool types whose quote side is worth half the pool, so TVL = 2 * quote side.
SYMMETRIC_POOL_TYPES = frozenset({PoolType.CONSTANT_PRODUCT, PoolType.STABLE})


@dataclass(frozen=True)
class PoolSnapshot:
    pool_address: str
    base_token_address: str
    quote_token_address: str
    base_token_symbol: str
    quote_token_symbol: str
    base_reserve_raw: int
    quote_reserve_raw: int
    base_decimals: int
    quote_decimals: int
    observed_at: datetime
    pool_type: PoolType = PoolType.CONSTANT_PRODUCT

    def involves(self, token_address: str) -> bool:
        token = token_address.lower()
        return token in (self.base_token_address.lower(), self.quote_token_address.lower())
