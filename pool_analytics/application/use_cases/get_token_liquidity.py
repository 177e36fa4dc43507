from __future__ import annotations

import logging

from pool_analytics.application.context import RequestContext
from pool_analytics.application.dto.token_liquidity import GetTokenLiquidityQuery
from pool_analytics.application.metrics_collector import collect_pool_metrics
from pool_analytics.application.ports.pool_snapshot_port import PoolSnapshotPort
from pool_analytics.application.ports.reference_price_port import ReferencePricePort
from pool_analytics.application.result import ErrorKind, Result
from pool_analytics.domain.entities.liquidity_metrics import TokenLiquiditySummary
from pool_analytics.domain.exceptions import DomainError
from pool_analytics.domain.services.addresses import normalize_address
from pool_analytics.domain.services.liquidity_summary import summarize_token_liquidity


logger = logging.getLogger(__name__)


class GetTokenLiquidityUseCase:
    """Liquidity of a token across every pool it trades in, with concentration."""

    query_type = GetTokenLiquidityQuery

    def __init__(
        self,
        *,
        pool_snapshot_port: PoolSnapshotPort,
        reference_price_port: ReferencePricePort,
    ):
        self._pool_snapshot_port = pool_snapshot_port
        self._reference_price_port = reference_price_port

    async def execute(
        self,
        query: GetTokenLiquidityQuery,
        context: RequestContext,
    ) -> Result[TokenLiquiditySummary]:
        try:
            token = normalize_address(query.token_address, field_name="token_address")
            logger.info(
                "get_token_liquidity: start correlation_id=%s token=%s",
                context.correlation_id,
                token,
            )
            pool_addresses = await self._pool_snapshot_port.list_pools_for_token(token)
            batch = await collect_pool_metrics(
                pool_addresses,
                snapshot_port=self._pool_snapshot_port,
                price_port=self._reference_price_port,
                context=context,
                base_token_address=token,
            )
        except DomainError as exc:
            return Result.from_exception(exc)

        if batch.candidate_count > 0 and not batch.metrics:
            return Result.failure(
                ErrorKind.UNAVAILABLE,
                f"No pool for token {token} produced usable metrics.",
            )

        return Result.success(
            summarize_token_liquidity(
                token_address=token,
                metrics=list(batch.metrics.values()),
                degraded=batch.degraded,
            )
        )
