from __future__ import annotations

from functools import lru_cache

from fastapi import Header, HTTPException, Response

from pool_analytics.application.context import RequestContext, new_correlation_id
from pool_analytics.application.dispatcher import QueryDispatcher, build_query_dispatcher
from pool_analytics.infrastructure.clients.pricing import (
    CoingeckoPriceProvider,
    PriceOverrides,
    ReferencePriceService,
)
from pool_analytics.infrastructure.db.engine import get_engine
from pool_analytics.infrastructure.db.repositories.pool_snapshot_repository import (
    SqlPoolSnapshotRepository,
)
from pool_analytics.shared.config import get_settings


CORRELATION_HEADER = "X-Correlation-ID"
MAX_CORRELATION_ID_LENGTH = 128


def _get_db_engine():
    settings = get_settings()
    if not settings.postgres_dsn:
        raise HTTPException(status_code=500, detail="POSTGRES_DSN is required.")
    return get_engine(settings.postgres_dsn)


@lru_cache(maxsize=1)
def _get_reference_price_service() -> ReferencePriceService:
    settings = get_settings()
    overrides = PriceOverrides(settings.price_overrides)
    coingecko = CoingeckoPriceProvider(
        api_base=settings.coingecko_api_base,
        timeout_seconds=settings.coingecko_timeout_seconds,
        cache_ttl_seconds=settings.coingecko_cache_ttl_seconds,
    )
    return ReferencePriceService(
        overrides=overrides,
        coingecko=coingecko,
        network=settings.pricing_network,
    )


@lru_cache(maxsize=1)
def _get_pool_snapshot_repository() -> SqlPoolSnapshotRepository:
    settings = get_settings()
    return SqlPoolSnapshotRepository(_get_db_engine(), chain_id=settings.chain_id)


@lru_cache(maxsize=1)
def _get_query_dispatcher() -> QueryDispatcher:
    return build_query_dispatcher(
        pool_snapshot_port=_get_pool_snapshot_repository(),
        reference_price_port=_get_reference_price_service(),
    )


def get_query_dispatcher() -> QueryDispatcher:
    return _get_query_dispatcher()


def get_request_context(
    response: Response,
    x_correlation_id: str | None = Header(default=None),
) -> RequestContext:
    correlation_id = (x_correlation_id or "").strip()[:MAX_CORRELATION_ID_LENGTH]
    if not correlation_id:
        correlation_id = new_correlation_id()
    response.headers[CORRELATION_HEADER] = correlation_id
    return RequestContext(
        correlation_id=correlation_id,
        timeout_seconds=get_settings().query_timeout_seconds,
    )
