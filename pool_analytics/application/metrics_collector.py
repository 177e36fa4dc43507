from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from decimal import Decimal

from pool_analytics.application.context import RequestContext
from pool_analytics.application.dto.pool_metrics import PoolMetricsBatch, PoolSkip
from pool_analytics.application.ports.pool_snapshot_port import PoolSnapshotPort
from pool_analytics.application.ports.reference_price_port import ReferencePricePort
from pool_analytics.application.result import ErrorKind, error_kind_for
from pool_analytics.domain.entities.liquidity_metrics import LiquidityMetrics
from pool_analytics.domain.exceptions import (
    DecimalArithmeticError,
    InvalidInputError,
    NotFoundError,
    QueryCancelledError,
    UnavailableError,
)
from pool_analytics.domain.services.liquidity_metrics import compute_liquidity_metrics
from pool_analytics.domain.services.pair_orientation import orient_to_base


EXPECTED_POOL_ERRORS = (NotFoundError, UnavailableError, DecimalArithmeticError, InvalidInputError)
TIMEOUT_REASON = "Pool did not respond before the query timeout."
INTERNAL_REASON = "Unexpected error while computing pool metrics."
logger = logging.getLogger(__name__)


class _QuotePriceMemo:
    """One reference price lookup per quote token for the current request."""

    def __init__(self, price_port: ReferencePricePort):
        self._price_port = price_port
        self._lookups: dict[str, asyncio.Task] = {}

    async def price_of(self, quote_token_address: str) -> Decimal:
        key = quote_token_address.lower()
        lookup = self._lookups.get(key)
        if lookup is None:
            lookup = asyncio.ensure_future(self._price_port.price_of(key))
            self._lookups[key] = lookup
        # Shielded so one cancelled pool does not cancel the lookup other pools await.
        return await asyncio.shield(lookup)

    def cancel_pending(self) -> None:
        for lookup in self._lookups.values():
            if not lookup.done():
                lookup.cancel()


async def _compute_pool(
    pool_address: str,
    *,
    snapshot_port: PoolSnapshotPort,
    prices: _QuotePriceMemo,
    context: RequestContext,
    base_token_address: str | None,
    quote_token_address: str | None,
) -> LiquidityMetrics | PoolSkip | None:
    try:
        snapshot = await snapshot_port.fetch_snapshot(pool_address)
        if base_token_address is not None:
            try:
                snapshot = orient_to_base(snapshot, base_token_address)
            except ValueError:
                return None
        if (
            quote_token_address is not None
            and snapshot.quote_token_address.lower() != quote_token_address.lower()
        ):
            return None
        quote_usd_price = await prices.price_of(snapshot.quote_token_address)
        context.raise_if_cancelled()
        return compute_liquidity_metrics(snapshot, quote_usd_price)
    except QueryCancelledError:
        raise
    except EXPECTED_POOL_ERRORS as exc:
        logger.warning(
            "metrics_collector: pool_skipped correlation_id=%s pool=%s error=%s detail=%s",
            context.correlation_id,
            pool_address,
            type(exc).__name__,
            exc,
        )
        return PoolSkip(
            pool_address=pool_address,
            kind=error_kind_for(exc) or ErrorKind.INTERNAL,
            reason=str(exc),
        )
    except Exception:
        logger.exception(
            "metrics_collector: pool_failed correlation_id=%s pool=%s",
            context.correlation_id,
            pool_address,
        )
        return PoolSkip(pool_address=pool_address, kind=ErrorKind.INTERNAL, reason=INTERNAL_REASON)


async def collect_pool_metrics(
    pool_addresses: Iterable[str],
    *,
    snapshot_port: PoolSnapshotPort,
    price_port: ReferencePricePort,
    context: RequestContext,
    base_token_address: str | None = None,
    quote_token_address: str | None = None,
) -> PoolMetricsBatch:
    """Compute metrics for every pool concurrently.

    Each pool ends up either computed or skipped; a failing pool never aborts
    the batch. Pools still running when ``context.timeout_seconds`` elapses are
    skipped as unavailable. When ``base_token_address`` is given, snapshots are
    oriented so that token is the base side and pools without it are ignored;
    ``quote_token_address`` further restricts the batch to one pair.

    Raises ``QueryCancelledError`` as soon as the context is cancelled, after
    cancelling every in-flight provider call.
    """
    context.raise_if_cancelled()
    addresses = list(dict.fromkeys(address.lower() for address in pool_addresses))
    if not addresses:
        return PoolMetricsBatch()

    prices = _QuotePriceMemo(price_port)
    tasks = {
        address: asyncio.ensure_future(
            _compute_pool(
                address,
                snapshot_port=snapshot_port,
                prices=prices,
                context=context,
                base_token_address=base_token_address,
                quote_token_address=quote_token_address,
            )
        )
        for address in addresses
    }

    loop = asyncio.get_running_loop()
    deadline = None if context.timeout_seconds is None else loop.time() + context.timeout_seconds
    cancel_waiter = asyncio.ensure_future(context.cancellation.wait())
    pending = set(tasks.values())
    try:
        while pending:
            timeout = None
            if deadline is not None:
                timeout = deadline - loop.time()
                if timeout <= 0:
                    break
            done, _ = await asyncio.wait(
                pending | {cancel_waiter},
                timeout=timeout,
                return_when=asyncio.FIRST_COMPLETED,
            )
            if cancel_waiter in done:
                raise QueryCancelledError(context.cancellation.reason)
            pending -= done
    finally:
        cancel_waiter.cancel()
        for task in pending:
            task.cancel()
        prices.cancel_pending()

    metrics: dict[str, LiquidityMetrics] = {}
    skipped: list[PoolSkip] = []
    for address, task in tasks.items():
        if task in pending:
            skipped.append(PoolSkip(pool_address=address, kind=ErrorKind.UNAVAILABLE, reason=TIMEOUT_REASON))
            continue
        outcome = task.result()
        if outcome is None:
            continue
        if isinstance(outcome, PoolSkip):
            skipped.append(outcome)
        else:
            metrics[address] = outcome

    logger.info(
        "metrics_collector: done correlation_id=%s requested=%s computed=%s skipped=%s",
        context.correlation_id,
        len(addresses),
        len(metrics),
        len(skipped),
    )
    return PoolMetricsBatch(metrics=metrics, skipped=tuple(skipped))
