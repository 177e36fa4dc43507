from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal


@dataclass(frozen=True)
class LiquidityMetrics:
    token_address: str
    quote_token_address: str
    quote_token_symbol: str
    price: Decimal
    price_usd: Decimal
    pool_address: str
    liquidity: Decimal
    timestamp: datetime
    warnings: tuple[str, ...] = ()


@dataclass(frozen=True)
class PoolLiquidityShare:
    pool_address: str
    paired_token_address: str
    paired_token_symbol: str
    liquidity: Decimal
    share_percent: Decimal


@dataclass(frozen=True)
class TokenLiquiditySummary:
    token_address: str
    total_liquidity: Decimal
    pool_count: int
    top_pools: tuple[PoolLiquidityShare, ...]
    average_liquidity_per_pool: Decimal
    hhi_index: Decimal
    concentration_level: str
    timestamp: datetime | None
    degraded: bool = False
