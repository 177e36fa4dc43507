from __future__ import annotations

from collections.abc import Iterable, Mapping

from pool_analytics.domain.entities.liquidity_metrics import LiquidityMetrics


MIN_LIMIT = 1
MAX_LIMIT = 100


def clamp_limit(limit: int) -> int:
    return max(MIN_LIMIT, min(int(limit), MAX_LIMIT))


def rank_by_liquidity(
    metrics: Mapping[str, LiquidityMetrics | None] | Iterable[LiquidityMetrics],
    limit: int,
) -> list[LiquidityMetrics]:
    """Top pools by TVL, descending, ties broken by ascending pool address.

    Mapping entries set to ``None`` stand for pools that could not be computed
    and are left out. The returned list is new; the metrics themselves are
    shared, not copied.
    """
    if isinstance(metrics, Mapping):
        candidates = [item for item in metrics.values() if item is not None]
    else:
        candidates = [item for item in metrics if item is not None]
    by_address = sorted(candidates, key=lambda item: item.pool_address.lower())
    # Liquidity is compared as-is; negating it would round to the default context.
    ranked = sorted(by_address, key=lambda item: item.liquidity, reverse=True)
    return ranked[: clamp_limit(limit)]
