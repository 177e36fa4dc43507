from __future__ import annotations

import logging

from pool_analytics.application.context import RequestContext
from pool_analytics.application.dto.pool_metrics import GetPoolMetricsQuery
from pool_analytics.application.metrics_collector import collect_pool_metrics
from pool_analytics.application.ports.pool_snapshot_port import PoolSnapshotPort
from pool_analytics.application.ports.reference_price_port import ReferencePricePort
from pool_analytics.application.result import Result
from pool_analytics.domain.entities.liquidity_metrics import LiquidityMetrics
from pool_analytics.domain.exceptions import DomainError
from pool_analytics.domain.services.addresses import normalize_address


logger = logging.getLogger(__name__)


class GetPoolMetricsUseCase:
    query_type = GetPoolMetricsQuery

    def __init__(
        self,
        *,
        pool_snapshot_port: PoolSnapshotPort,
        reference_price_port: ReferencePricePort,
    ):
        self._pool_snapshot_port = pool_snapshot_port
        self._reference_price_port = reference_price_port

    async def execute(self, query: GetPoolMetricsQuery, context: RequestContext) -> Result[LiquidityMetrics]:
        try:
            pool_address = normalize_address(query.pool_address, field_name="pool_address")
            logger.info(
                "get_pool_metrics: start correlation_id=%s pool=%s",
                context.correlation_id,
                pool_address,
            )
            batch = await collect_pool_metrics(
                [pool_address],
                snapshot_port=self._pool_snapshot_port,
                price_port=self._reference_price_port,
                context=context,
            )
        except DomainError as exc:
            return Result.from_exception(exc)

        if pool_address in batch.metrics:
            return Result.success(batch.metrics[pool_address])
        skip = batch.skipped[0]
        return Result.failure(skip.kind, skip.reason)
