from __future__ import annotations

import logging

from pool_analytics.application.context import RequestContext
from pool_analytics.application.dto.token_price import GetTokenPriceQuery, TokenPriceOutput
from pool_analytics.application.metrics_collector import collect_pool_metrics
from pool_analytics.application.ports.pool_snapshot_port import PoolSnapshotPort
from pool_analytics.application.ports.reference_price_port import ReferencePricePort
from pool_analytics.application.result import ErrorKind, Result
from pool_analytics.domain.exceptions import DomainError, InvalidInputError, TokenPairNotFoundError
from pool_analytics.domain.services.addresses import normalize_address
from pool_analytics.domain.services.ranking import rank_by_liquidity


logger = logging.getLogger(__name__)


class GetTokenPriceUseCase:
    """Spot price of a token against one quote token, read from its deepest pool."""

    query_type = GetTokenPriceQuery

    def __init__(
        self,
        *,
        pool_snapshot_port: PoolSnapshotPort,
        reference_price_port: ReferencePricePort,
    ):
        self._pool_snapshot_port = pool_snapshot_port
        self._reference_price_port = reference_price_port

    async def execute(self, query: GetTokenPriceQuery, context: RequestContext) -> Result[TokenPriceOutput]:
        try:
            token = normalize_address(query.token_address, field_name="token_address")
            quote = normalize_address(query.quote_token_address, field_name="quote_token_address")
            if token == quote:
                raise InvalidInputError("token_address and quote_token_address must differ.")

            logger.info(
                "get_token_price: start correlation_id=%s token=%s quote=%s",
                context.correlation_id,
                token,
                quote,
            )
            pool_addresses = await self._pool_snapshot_port.list_pools_for_token(token)
            batch = await collect_pool_metrics(
                pool_addresses,
                snapshot_port=self._pool_snapshot_port,
                price_port=self._reference_price_port,
                context=context,
                base_token_address=token,
                quote_token_address=quote,
            )
            if batch.candidate_count == 0:
                raise TokenPairNotFoundError(f"No pool found for pair {token}/{quote}.")
        except DomainError as exc:
            return Result.from_exception(exc)

        if not batch.metrics:
            return Result.failure(
                ErrorKind.UNAVAILABLE,
                f"No pool for pair {token}/{quote} produced usable metrics.",
            )
        if batch.degraded:
            logger.warning(
                "get_token_price: degraded correlation_id=%s token=%s quote=%s skipped=%s",
                context.correlation_id,
                token,
                quote,
                len(batch.skipped),
            )

        best = rank_by_liquidity(batch.metrics, 1)[0]
        return Result.success(
            TokenPriceOutput(
                token_address=best.token_address,
                quote_token_address=best.quote_token_address,
                quote_token_symbol=best.quote_token_symbol,
                price=best.price,
                price_usd=best.price_usd,
                pool_address=best.pool_address,
                liquidity=best.liquidity,
                timestamp=best.timestamp,
            )
        )
