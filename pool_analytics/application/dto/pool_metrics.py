from __future__ import annotations

from dataclasses import dataclass, field

from pool_analytics.application.result import ErrorKind
from pool_analytics.domain.entities.liquidity_metrics import LiquidityMetrics


@dataclass(frozen=True)
class GetPoolMetricsQuery:
    pool_address: str


@dataclass(frozen=True)
class PoolSkip:
    pool_address: str
    kind: ErrorKind
    reason: str


@dataclass(frozen=True)
class PoolMetricsBatch:
    metrics: dict[str, LiquidityMetrics] = field(default_factory=dict)
    skipped: tuple[PoolSkip, ...] = ()

    @property
    def degraded(self) -> bool:
        return bool(self.skipped)

    @property
    def candidate_count(self) -> int:
        return len(self.metrics) + len(self.skipped)
