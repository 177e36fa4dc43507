from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal

from pool_analytics.domain.entities.liquidity_metrics import (
    LiquidityMetrics,
    PoolLiquidityShare,
    TokenLiquiditySummary,
)
from pool_analytics.domain.services.decimal_math import ZERO, add, divide, multiply
from pool_analytics.domain.services.ranking import rank_by_liquidity


SUMMARY_TOP_POOLS = 10
HUNDRED = Decimal("100")
# Herfindahl-Hirschman thresholds over share percentages.
CONCENTRATION_LEVELS = (
    (Decimal("2500"), "highly_concentrated"),
    (Decimal("1500"), "moderately_concentrated"),
    (Decimal("1000"), "moderately_competitive"),
)
NO_LIQUIDITY = "no_liquidity"
COMPETITIVE = "competitive"


def concentration_level(hhi_index: Decimal) -> str:
    for threshold, label in CONCENTRATION_LEVELS:
        if hhi_index >= threshold:
            return label
    return COMPETITIVE


def summarize_token_liquidity(
    *,
    token_address: str,
    metrics: Sequence[LiquidityMetrics],
    degraded: bool = False,
) -> TokenLiquiditySummary:
    """Aggregate per-pool metrics where ``token_address`` is the base token."""
    token = token_address.lower()
    total = add(*(item.liquidity for item in metrics))
    timestamp = max((item.timestamp for item in metrics), default=None)

    if not metrics or total == 0:
        return TokenLiquiditySummary(
            token_address=token,
            total_liquidity=total,
            pool_count=len(metrics),
            top_pools=(),
            average_liquidity_per_pool=ZERO,
            hhi_index=ZERO,
            concentration_level=NO_LIQUIDITY,
            timestamp=timestamp,
            degraded=degraded,
        )

    shares = {
        item.pool_address: multiply(divide(item.liquidity, total), HUNDRED)
        for item in metrics
    }
    hhi_index = add(*(multiply(share, share) for share in shares.values()))
    top_pools = tuple(
        PoolLiquidityShare(
            pool_address=item.pool_address,
            paired_token_address=item.quote_token_address,
            paired_token_symbol=item.quote_token_symbol,
            liquidity=item.liquidity,
            share_percent=shares[item.pool_address],
        )
        for item in rank_by_liquidity(metrics, SUMMARY_TOP_POOLS)
    )

    return TokenLiquiditySummary(
        token_address=token,
        total_liquidity=total,
        pool_count=len(metrics),
        top_pools=top_pools,
        average_liquidity_per_pool=divide(total, Decimal(len(metrics))),
        hhi_index=hhi_index,
        concentration_level=concentration_level(hhi_index),
        timestamp=timestamp,
        degraded=degraded,
    )
