from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from pool_analytics.application.context import RequestContext
from pool_analytics.application.dto.pool_metrics import PoolSkip
from pool_analytics.application.metrics_collector import (
    INTERNAL_REASON,
    TIMEOUT_REASON,
    collect_pool_metrics,
)
from pool_analytics.application.result import ErrorKind
from pool_analytics.domain.entities.pool_snapshot import PoolSnapshot
from pool_analytics.domain.exceptions import (
    PoolNotFoundError,
    PriceUnavailableError,
    QueryCancelledError,
)


WETH = "0x" + "a" * 40
USDC = "0x" + "b" * 40
DAI = "0x" + "c" * 40
POOL_1 = "0x" + "1" * 40
POOL_2 = "0x" + "2" * 40
POOL_3 = "0x" + "3" * 40


def _snapshot(pool_address: str, *, quote: str = USDC, base_reserve: int = 10, quote_reserve: int = 20_000) -> PoolSnapshot:
    return PoolSnapshot(
        pool_address=pool_address,
        base_token_address=WETH,
        quote_token_address=quote,
        base_token_symbol="WETH",
        quote_token_symbol="USDC" if quote == USDC else "DAI",
        base_reserve_raw=base_reserve * 10**18,
        quote_reserve_raw=quote_reserve * 10**6,
        base_decimals=18,
        quote_decimals=6,
        observed_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
    )


class FakeSnapshotPort:
    def __init__(self, snapshots: dict, *, slow: set | None = None, block: asyncio.Event | None = None):
        self._snapshots = snapshots
        self._slow = slow or set()
        self._block = block
        self.fetched: list[str] = []
        self.cancelled: list[str] = []

    async def fetch_snapshot(self, pool_address: str) -> PoolSnapshot:
        self.fetched.append(pool_address)
        if pool_address in self._slow:
            try:
                if self._block is not None:
                    await self._block.wait()
                else:
                    await asyncio.sleep(30)
            except asyncio.CancelledError:
                self.cancelled.append(pool_address)
                raise
        snapshot = self._snapshots.get(pool_address)
        if snapshot is None:
            raise PoolNotFoundError(f"pool {pool_address} not found.")
        return snapshot

    async def list_pools_for_token(self, token_address: str) -> list[str]:
        return [address for address, row in self._snapshots.items() if row.involves(token_address)]

    async def list_pools(self) -> list[str]:
        return list(self._snapshots)


class FakePricePort:
    def __init__(self, prices: dict):
        self._prices = prices
        self.calls: list[str] = []

    async def price_of(self, quote_token_address: str) -> Decimal:
        self.calls.append(quote_token_address)
        await asyncio.sleep(0)
        if quote_token_address not in self._prices:
            raise PriceUnavailableError(f"no price for {quote_token_address}.")
        return self._prices[quote_token_address]


def test_collects_metrics_for_every_pool():
    snapshots = {POOL_1: _snapshot(POOL_1), POOL_2: _snapshot(POOL_2, quote_reserve=40_000)}

    batch = asyncio.run(
        collect_pool_metrics(
            [POOL_1, POOL_2.upper().replace("0X", "0x")],
            snapshot_port=FakeSnapshotPort(snapshots),
            price_port=FakePricePort({USDC: Decimal("1")}),
            context=RequestContext(),
        )
    )

    assert set(batch.metrics) == {POOL_1, POOL_2}
    assert batch.metrics[POOL_2].liquidity == Decimal("80000")
    assert batch.skipped == ()
    assert batch.degraded is False


def test_reference_price_is_fetched_once_per_quote_token():
    snapshots = {
        POOL_1: _snapshot(POOL_1),
        POOL_2: _snapshot(POOL_2),
        POOL_3: _snapshot(POOL_3, quote=DAI),
    }
    price_port = FakePricePort({USDC: Decimal("1"), DAI: Decimal("1")})

    asyncio.run(
        collect_pool_metrics(
            list(snapshots),
            snapshot_port=FakeSnapshotPort(snapshots),
            price_port=price_port,
            context=RequestContext(),
        )
    )

    assert sorted(price_port.calls) == sorted([USDC, DAI])


def test_failing_pools_are_skipped_without_aborting_the_batch():
    snapshots = {
        POOL_1: _snapshot(POOL_1),
        POOL_2: _snapshot(POOL_2, base_reserve=0),
        POOL_3: _snapshot(POOL_3, quote=DAI),
    }

    batch = asyncio.run(
        collect_pool_metrics(
            [POOL_1, POOL_2, POOL_3, "0x" + "9" * 40],
            snapshot_port=FakeSnapshotPort(snapshots),
            price_port=FakePricePort({USDC: Decimal("1")}),
            context=RequestContext(),
        )
    )

    assert set(batch.metrics) == {POOL_1}
    kinds = {skip.pool_address: skip.kind for skip in batch.skipped}
    assert kinds == {
        POOL_2: ErrorKind.ARITHMETIC,
        POOL_3: ErrorKind.UNAVAILABLE,
        "0x" + "9" * 40: ErrorKind.NOT_FOUND,
    }
    assert batch.degraded is True
    assert batch.candidate_count == 4


def test_unexpected_pool_errors_are_skipped_as_internal():
    class BrokenRowPort(FakeSnapshotPort):
        async def fetch_snapshot(self, pool_address: str) -> PoolSnapshot:
            if pool_address == POOL_2:
                raise AttributeError("'NoneType' object has no attribute 'tzinfo'")
            return await super().fetch_snapshot(pool_address)

    snapshots = {POOL_1: _snapshot(POOL_1), POOL_2: _snapshot(POOL_2)}

    batch = asyncio.run(
        collect_pool_metrics(
            [POOL_1, POOL_2],
            snapshot_port=BrokenRowPort(snapshots),
            price_port=FakePricePort({USDC: Decimal("1")}),
            context=RequestContext(),
        )
    )

    assert set(batch.metrics) == {POOL_1}
    assert batch.skipped == (
        PoolSkip(pool_address=POOL_2, kind=ErrorKind.INTERNAL, reason=INTERNAL_REASON),
    )


def test_base_token_orientation_and_quote_filter():
    snapshots = {POOL_1: _snapshot(POOL_1), POOL_2: _snapshot(POOL_2, quote=DAI)}

    batch = asyncio.run(
        collect_pool_metrics(
            [POOL_1, POOL_2],
            snapshot_port=FakeSnapshotPort(snapshots),
            price_port=FakePricePort({WETH: Decimal("2000")}),
            context=RequestContext(),
            base_token_address=USDC,
            quote_token_address=WETH,
        )
    )

    assert list(batch.metrics) == [POOL_1]
    metrics = batch.metrics[POOL_1]
    assert metrics.token_address == USDC
    assert metrics.quote_token_address == WETH
    assert metrics.price == Decimal("0.0005")
    assert batch.skipped == ()


def test_slow_pools_are_skipped_when_the_timeout_elapses():
    snapshots = {POOL_1: _snapshot(POOL_1), POOL_2: _snapshot(POOL_2)}
    snapshot_port = FakeSnapshotPort(snapshots, slow={POOL_2})

    async def _run():
        batch = await collect_pool_metrics(
            [POOL_1, POOL_2],
            snapshot_port=snapshot_port,
            price_port=FakePricePort({USDC: Decimal("1")}),
            context=RequestContext(timeout_seconds=0.05),
        )
        await asyncio.sleep(0.01)
        return batch

    batch = asyncio.run(_run())

    assert set(batch.metrics) == {POOL_1}
    assert len(batch.skipped) == 1
    assert batch.skipped[0].pool_address == POOL_2
    assert batch.skipped[0].kind == ErrorKind.UNAVAILABLE
    assert batch.skipped[0].reason == TIMEOUT_REASON
    assert snapshot_port.cancelled == [POOL_2]


def test_cancellation_stops_in_flight_calls():
    async def _run():
        block = asyncio.Event()
        snapshot_port = FakeSnapshotPort({POOL_1: _snapshot(POOL_1)}, slow={POOL_1}, block=block)
        context = RequestContext()

        async def _cancel_soon():
            await asyncio.sleep(0.01)
            context.cancellation.cancel("client went away")

        canceller = asyncio.ensure_future(_cancel_soon())
        with pytest.raises(QueryCancelledError, match="client went away"):
            await collect_pool_metrics(
                [POOL_1],
                snapshot_port=snapshot_port,
                price_port=FakePricePort({USDC: Decimal("1")}),
                context=context,
            )
        await canceller
        await asyncio.sleep(0.01)
        return snapshot_port

    snapshot_port = asyncio.run(_run())

    assert snapshot_port.cancelled == [POOL_1]


def test_already_cancelled_context_does_no_work():
    context = RequestContext()
    context.cancellation.cancel()
    snapshot_port = FakeSnapshotPort({POOL_1: _snapshot(POOL_1)})

    with pytest.raises(QueryCancelledError):
        asyncio.run(
            collect_pool_metrics(
                [POOL_1],
                snapshot_port=snapshot_port,
                price_port=FakePricePort({USDC: Decimal("1")}),
                context=context,
            )
        )

    assert snapshot_port.fetched == []


def test_empty_pool_list_returns_empty_batch():
    batch = asyncio.run(
        collect_pool_metrics(
            [],
            snapshot_port=FakeSnapshotPort({}),
            price_port=FakePricePort({}),
            context=RequestContext(),
        )
    )

    assert batch.metrics == {}
    assert batch.skipped == ()
    assert batch.degraded is False
