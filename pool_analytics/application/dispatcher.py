from __future__ import annotations

import logging
from collections.abc import Iterable
from time import perf_counter
from typing import Any, Protocol

from pool_analytics.application.context import RequestContext
from pool_analytics.application.dto.pool_metrics import GetPoolMetricsQuery
from pool_analytics.application.dto.token_liquidity import GetTokenLiquidityQuery
from pool_analytics.application.dto.token_price import GetTokenPriceQuery
from pool_analytics.application.dto.top_pools import GetTopPoolsQuery
from pool_analytics.application.ports.pool_snapshot_port import PoolSnapshotPort
from pool_analytics.application.ports.reference_price_port import ReferencePricePort
from pool_analytics.application.result import ErrorKind, Result
from pool_analytics.application.use_cases.get_pool_metrics import GetPoolMetricsUseCase
from pool_analytics.application.use_cases.get_token_liquidity import GetTokenLiquidityUseCase
from pool_analytics.application.use_cases.get_token_price import GetTokenPriceUseCase
from pool_analytics.application.use_cases.get_top_pools import GetTopPoolsUseCase
from pool_analytics.domain.exceptions import ConfigurationError, DomainError


SUPPORTED_QUERIES: tuple[type, ...] = (
    GetTopPoolsQuery,
    GetTokenPriceQuery,
    GetPoolMetricsQuery,
    GetTokenLiquidityQuery,
)
INTERNAL_ERROR_MESSAGE = "Unexpected error while handling the query."
logger = logging.getLogger(__name__)


class QueryHandler(Protocol):
    query_type: type

    async def execute(self, query: Any, context: RequestContext) -> Result[Any]:
        ...


class QueryDispatcher:
    """Routes each query to the single handler registered for its type.

    The registry is validated once, at construction: every supported query
    needs exactly one handler, so a misregistration fails at startup with
    ``ConfigurationError`` instead of at request time.
    """

    def __init__(
        self,
        handlers: Iterable[QueryHandler],
        *,
        supported_queries: Iterable[type] = SUPPORTED_QUERIES,
    ):
        supported = tuple(supported_queries)
        registry: dict[type, QueryHandler] = {}
        for handler in handlers:
            query_type = getattr(handler, "query_type", None)
            handler_name = type(handler).__name__
            if query_type is None:
                raise ConfigurationError(f"{handler_name} does not declare query_type.")
            if query_type not in supported:
                raise ConfigurationError(
                    f"{handler_name} handles unsupported query {query_type.__name__}."
                )
            if query_type in registry:
                raise ConfigurationError(
                    f"More than one handler registered for {query_type.__name__}: "
                    f"{type(registry[query_type]).__name__}, {handler_name}."
                )
            registry[query_type] = handler

        missing = [query_type.__name__ for query_type in supported if query_type not in registry]
        if missing:
            raise ConfigurationError(f"No handler registered for: {', '.join(missing)}.")
        self._handlers = registry

    @property
    def query_types(self) -> tuple[type, ...]:
        return tuple(self._handlers)

    async def dispatch(self, query: Any, context: RequestContext) -> Result[Any]:
        query_name = type(query).__name__
        handler = self._handlers.get(type(query))
        if handler is None:
            logger.error(
                "query_dispatcher: unregistered correlation_id=%s query=%s",
                context.correlation_id,
                query_name,
            )
            return Result.failure(ErrorKind.CONFIGURATION, f"No handler registered for {query_name}.")
        if context.cancellation.cancelled:
            return Result.failure(ErrorKind.CANCELLED, context.cancellation.reason)

        logger.info(
            "query_dispatcher: start correlation_id=%s query=%s",
            context.correlation_id,
            query_name,
        )
        started = perf_counter()
        try:
            result = await handler.execute(query, context)
        except DomainError as exc:
            result = Result.from_exception(exc)
        except Exception:
            logger.exception(
                "query_dispatcher: unhandled_error correlation_id=%s query=%s",
                context.correlation_id,
                query_name,
            )
            result = Result.failure(ErrorKind.INTERNAL, INTERNAL_ERROR_MESSAGE)

        if context.cancellation.cancelled and result.is_success:
            result = Result.failure(ErrorKind.CANCELLED, context.cancellation.reason)

        duration_ms = (perf_counter() - started) * 1000
        if result.is_failure:
            logger.warning(
                "query_dispatcher: failed correlation_id=%s query=%s kind=%s detail=%s duration_ms=%.1f",
                context.correlation_id,
                query_name,
                result.error.kind.value,
                result.error.message,
                duration_ms,
            )
        else:
            logger.info(
                "query_dispatcher: completed correlation_id=%s query=%s duration_ms=%.1f",
                context.correlation_id,
                query_name,
                duration_ms,
            )
        return result


def build_query_dispatcher(
    *,
    pool_snapshot_port: PoolSnapshotPort,
    reference_price_port: ReferencePricePort,
) -> QueryDispatcher:
    ports = {
        "pool_snapshot_port": pool_snapshot_port,
        "reference_price_port": reference_price_port,
    }
    return QueryDispatcher(
        [
            GetTopPoolsUseCase(**ports),
            GetTokenPriceUseCase(**ports),
            GetPoolMetricsUseCase(**ports),
            GetTokenLiquidityUseCase(**ports),
        ]
    )
