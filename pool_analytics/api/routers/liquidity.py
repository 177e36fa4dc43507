from __future__ import annotations

from decimal import Decimal

from fastapi import APIRouter, Depends

from pool_analytics.api.deps import get_query_dispatcher, get_request_context
from pool_analytics.api.errors import http_error_for
from pool_analytics.api.schemas.liquidity import (
    PoolLiquidityResponse,
    PoolLiquidityShareResponse,
    SkippedPoolResponse,
    TokenLiquidityResponse,
    TopPoolsResponse,
)
from pool_analytics.application.context import RequestContext
from pool_analytics.application.dispatcher import QueryDispatcher
from pool_analytics.application.dto.pool_metrics import GetPoolMetricsQuery
from pool_analytics.application.dto.token_liquidity import GetTokenLiquidityQuery
from pool_analytics.application.dto.top_pools import GetTopPoolsQuery
from pool_analytics.domain.entities.liquidity_metrics import LiquidityMetrics
from pool_analytics.domain.services.ranking import clamp_limit

router = APIRouter()


def _dec_to_str(value: Decimal) -> str:
    return format(value, "f")


def _to_pool_response(metrics: LiquidityMetrics) -> PoolLiquidityResponse:
    return PoolLiquidityResponse(
        pool_address=metrics.pool_address,
        token_address=metrics.token_address,
        quote_token_address=metrics.quote_token_address,
        quote_token_symbol=metrics.quote_token_symbol,
        price=_dec_to_str(metrics.price),
        price_usd=_dec_to_str(metrics.price_usd),
        liquidity=_dec_to_str(metrics.liquidity),
        timestamp=metrics.timestamp.isoformat(),
        warnings=list(metrics.warnings),
    )


@router.get("/v1/liquidity/top-pools", response_model=TopPoolsResponse)
async def get_top_pools(
    limit: int = 10,
    context: RequestContext = Depends(get_request_context),
    dispatcher: QueryDispatcher = Depends(get_query_dispatcher),
):
    result = await dispatcher.dispatch(GetTopPoolsQuery(limit=limit), context)
    if result.is_failure:
        raise http_error_for(result.error, context)

    output = result.value
    return TopPoolsResponse(
        limit=clamp_limit(limit),
        pools=[_to_pool_response(row) for row in output.pools],
        degraded=output.degraded,
        skipped=[
            SkippedPoolResponse(
                pool_address=skip.pool_address,
                kind=skip.kind.value,
                reason=skip.reason,
            )
            for skip in output.skipped
        ],
    )


@router.get("/v1/liquidity/pools/{pool_address}", response_model=PoolLiquidityResponse)
async def get_pool_metrics(
    pool_address: str,
    context: RequestContext = Depends(get_request_context),
    dispatcher: QueryDispatcher = Depends(get_query_dispatcher),
):
    result = await dispatcher.dispatch(GetPoolMetricsQuery(pool_address=pool_address), context)
    if result.is_failure:
        raise http_error_for(result.error, context)
    return _to_pool_response(result.value)


@router.get("/v1/liquidity/tokens/{token_address}", response_model=TokenLiquidityResponse)
async def get_token_liquidity(
    token_address: str,
    context: RequestContext = Depends(get_request_context),
    dispatcher: QueryDispatcher = Depends(get_query_dispatcher),
):
    result = await dispatcher.dispatch(GetTokenLiquidityQuery(token_address=token_address), context)
    if result.is_failure:
        raise http_error_for(result.error, context)

    summary = result.value
    return TokenLiquidityResponse(
        token_address=summary.token_address,
        total_liquidity=_dec_to_str(summary.total_liquidity),
        pool_count=summary.pool_count,
        average_liquidity_per_pool=_dec_to_str(summary.average_liquidity_per_pool),
        hhi_index=_dec_to_str(summary.hhi_index),
        concentration_level=summary.concentration_level,
        top_pools=[
            PoolLiquidityShareResponse(
                pool_address=share.pool_address,
                paired_token_address=share.paired_token_address,
                paired_token_symbol=share.paired_token_symbol,
                liquidity=_dec_to_str(share.liquidity),
                share_percent=_dec_to_str(share.share_percent),
            )
            for share in summary.top_pools
        ],
        timestamp=summary.timestamp.isoformat() if summary.timestamp else None,
        degraded=summary.degraded,
    )
