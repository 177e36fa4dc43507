from __future__ import annotations

import asyncio
from dataclasses import replace
from datetime import datetime, timezone
from decimal import Decimal
import unittest

from pool_analytics.application.context import RequestContext
from pool_analytics.application.dto.top_pools import GetTopPoolsQuery
from pool_analytics.application.result import ErrorKind
from pool_analytics.application.use_cases.get_top_pools import GetTopPoolsUseCase
from pool_analytics.domain.entities.pool_snapshot import PoolSnapshot
from pool_analytics.domain.exceptions import PriceUnavailableError, SnapshotUnavailableError


USDC = "0x" + "b" * 40


def _pool(index: int) -> str:
    return "0x" + str(index) * 40


def _snapshot(pool_address: str, quote_reserve: int) -> PoolSnapshot:
    return PoolSnapshot(
        pool_address=pool_address,
        base_token_address="0x" + "a" * 40,
        quote_token_address=USDC,
        base_token_symbol="WETH",
        quote_token_symbol="USDC",
        base_reserve_raw=10**18,
        quote_reserve_raw=quote_reserve,
        base_decimals=18,
        quote_decimals=0,
        observed_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
    )


class FakeSnapshotPort:
    def __init__(self, snapshots: dict[str, PoolSnapshot], *, listing_error: Exception | None = None):
        self._snapshots = snapshots
        self._listing_error = listing_error

    async def fetch_snapshot(self, pool_address: str) -> PoolSnapshot:
        return self._snapshots[pool_address]

    async def list_pools_for_token(self, token_address: str) -> list[str]:
        _ = token_address
        return []

    async def list_pools(self) -> list[str]:
        if self._listing_error is not None:
            raise self._listing_error
        return list(self._snapshots)


class FakePricePort:
    def __init__(self, price: Decimal | None):
        self._price = price

    async def price_of(self, quote_token_address: str) -> Decimal:
        if self._price is None:
            raise PriceUnavailableError(f"no price for {quote_token_address}.")
        return self._price


class GetTopPoolsUseCaseTests(unittest.TestCase):
    def _execute(self, snapshot_port, price_port, limit: int):
        use_case = GetTopPoolsUseCase(
            pool_snapshot_port=snapshot_port,
            reference_price_port=price_port,
        )
        return asyncio.run(use_case.execute(GetTopPoolsQuery(limit=limit), RequestContext()))

    def test_returns_pools_ordered_by_liquidity_with_address_tiebreak(self):
        snapshots = {
            _pool(3): _snapshot(_pool(3), 500),
            _pool(1): _snapshot(_pool(1), 500),
            _pool(2): _snapshot(_pool(2), 900),
            _pool(4): _snapshot(_pool(4), 100),
        }

        result = self._execute(FakeSnapshotPort(snapshots), FakePricePort(Decimal("1")), limit=3)

        self.assertTrue(result.is_success)
        output = result.unwrap()
        self.assertEqual([row.pool_address for row in output.pools], [_pool(2), _pool(1), _pool(3)])
        self.assertEqual(output.pools[0].liquidity, Decimal("1800"))
        self.assertFalse(output.degraded)
        self.assertIsInstance(output.pools, tuple)
        self.assertEqual(output.skipped, ())

    def test_limit_is_clamped_to_available_pools(self):
        snapshots = {_pool(i): _snapshot(_pool(i), 100 * i) for i in range(1, 4)}

        result = self._execute(FakeSnapshotPort(snapshots), FakePricePort(Decimal("1")), limit=500)

        self.assertEqual(len(result.unwrap().pools), 3)

    def test_non_positive_limit_returns_one_pool(self):
        snapshots = {_pool(i): _snapshot(_pool(i), 100 * i) for i in range(1, 4)}

        result = self._execute(FakeSnapshotPort(snapshots), FakePricePort(Decimal("1")), limit=0)

        self.assertEqual([row.pool_address for row in result.unwrap().pools], [_pool(3)])

    def test_empty_pool_registry_is_an_empty_success(self):
        result = self._execute(FakeSnapshotPort({}), FakePricePort(Decimal("1")), limit=10)

        self.assertTrue(result.is_success)
        self.assertEqual(result.unwrap().pools, ())

    def test_unusable_pools_are_skipped_and_reported(self):
        snapshots = {
            _pool(1): _snapshot(_pool(1), 500),
            _pool(2): replace(_snapshot(_pool(2), 500), base_reserve_raw=0),
        }

        result = self._execute(FakeSnapshotPort(snapshots), FakePricePort(Decimal("1")), limit=10)

        output = result.unwrap()
        self.assertEqual([row.pool_address for row in output.pools], [_pool(1)])
        self.assertTrue(output.degraded)
        self.assertEqual(output.skipped[0].pool_address, _pool(2))
        self.assertEqual(output.skipped[0].kind, ErrorKind.ARITHMETIC)

    def test_all_reference_prices_unavailable_is_a_failure(self):
        snapshots = {_pool(1): _snapshot(_pool(1), 500), _pool(2): _snapshot(_pool(2), 900)}

        result = self._execute(FakeSnapshotPort(snapshots), FakePricePort(None), limit=10)

        self.assertTrue(result.is_failure)
        self.assertEqual(result.error.kind, ErrorKind.UNAVAILABLE)

    def test_listing_failure_is_reported_as_unavailable(self):
        snapshot_port = FakeSnapshotPort({}, listing_error=SnapshotUnavailableError("db down"))

        result = self._execute(snapshot_port, FakePricePort(Decimal("1")), limit=10)

        self.assertEqual(result.error.kind, ErrorKind.UNAVAILABLE)
        self.assertEqual(result.error.message, "db down")


if __name__ == "__main__":
    unittest.main()
