from __future__ import annotations

from pydantic import BaseModel, Field


class PoolLiquidityResponse(BaseModel):
    pool_address: str
    token_address: str = Field(..., description="Base token of the pool.")
    quote_token_address: str
    quote_token_symbol: str
    price: str = Field(..., description="Base token price in quote token units.")
    price_usd: str
    liquidity: str = Field(..., description="USD TVL, symmetric reserves assumed.")
    timestamp: str
    warnings: list[str] = Field(default_factory=list)


class SkippedPoolResponse(BaseModel):
    pool_address: str
    kind: str
    reason: str


class TopPoolsResponse(BaseModel):
    limit: int
    pools: list[PoolLiquidityResponse]
    degraded: bool = False
    skipped: list[SkippedPoolResponse] = Field(default_factory=list)


class PoolLiquidityShareResponse(BaseModel):
    pool_address: str
    paired_token_address: str
    paired_token_symbol: str
    liquidity: str
    share_percent: str


class TokenLiquidityResponse(BaseModel):
    token_address: str
    total_liquidity: str
    pool_count: int
    average_liquidity_per_pool: str
    hhi_index: str
    concentration_level: str
    top_pools: list[PoolLiquidityShareResponse]
    timestamp: str | None = None
    degraded: bool = False
