from __future__ import annotations

from dataclasses import dataclass

from pool_analytics.application.dto.pool_metrics import PoolSkip
from pool_analytics.domain.entities.liquidity_metrics import LiquidityMetrics


@dataclass(frozen=True)
class GetTopPoolsQuery:
    limit: int = 10


@dataclass(frozen=True)
class TopPoolsOutput:
    pools: tuple[LiquidityMetrics, ...]
    degraded: bool = False
    skipped: tuple[PoolSkip, ...] = ()
