from __future__ import annotations

import logging

from pool_analytics.application.context import RequestContext
from pool_analytics.application.dto.top_pools import GetTopPoolsQuery, TopPoolsOutput
from pool_analytics.application.metrics_collector import collect_pool_metrics
from pool_analytics.application.ports.pool_snapshot_port import PoolSnapshotPort
from pool_analytics.application.ports.reference_price_port import ReferencePricePort
from pool_analytics.application.result import ErrorKind, Result
from pool_analytics.domain.exceptions import DomainError
from pool_analytics.domain.services.ranking import clamp_limit, rank_by_liquidity


NO_USABLE_POOLS_MESSAGE = "No pool produced usable liquidity metrics."
logger = logging.getLogger(__name__)


class GetTopPoolsUseCase:
    query_type = GetTopPoolsQuery

    def __init__(
        self,
        *,
        pool_snapshot_port: PoolSnapshotPort,
        reference_price_port: ReferencePricePort,
    ):
        self._pool_snapshot_port = pool_snapshot_port
        self._reference_price_port = reference_price_port

    async def execute(self, query: GetTopPoolsQuery, context: RequestContext) -> Result[TopPoolsOutput]:
        limit = clamp_limit(query.limit)
        logger.info(
            "get_top_pools: start correlation_id=%s limit=%s effective_limit=%s",
            context.correlation_id,
            query.limit,
            limit,
        )
        try:
            pool_addresses = await self._pool_snapshot_port.list_pools()
            batch = await collect_pool_metrics(
                pool_addresses,
                snapshot_port=self._pool_snapshot_port,
                price_port=self._reference_price_port,
                context=context,
            )
        except DomainError as exc:
            return Result.from_exception(exc)

        if batch.candidate_count > 0 and not batch.metrics:
            logger.warning(
                "get_top_pools: no_usable_pools correlation_id=%s skipped=%s",
                context.correlation_id,
                len(batch.skipped),
            )
            return Result.failure(ErrorKind.UNAVAILABLE, NO_USABLE_POOLS_MESSAGE)

        return Result.success(
            TopPoolsOutput(
                pools=tuple(rank_by_liquidity(batch.metrics, limit)),
                degraded=batch.degraded,
                skipped=batch.skipped,
            )
        )
