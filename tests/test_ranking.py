from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

from pool_analytics.domain.entities.liquidity_metrics import LiquidityMetrics
from pool_analytics.domain.services.ranking import MAX_LIMIT, clamp_limit, rank_by_liquidity


def _metrics(pool_address: str, liquidity: str) -> LiquidityMetrics:
    return LiquidityMetrics(
        token_address="0xbase",
        quote_token_address="0xquote",
        quote_token_symbol="USDC",
        price=Decimal("1"),
        price_usd=Decimal("1"),
        pool_address=pool_address,
        liquidity=Decimal(liquidity),
        timestamp=datetime(2024, 1, 1, tzinfo=timezone.utc),
    )


def test_clamp_limit_keeps_values_in_range():
    assert clamp_limit(0) == 1
    assert clamp_limit(-5) == 1
    assert clamp_limit(1) == 1
    assert clamp_limit(50) == 50
    assert clamp_limit(100) == 100
    assert clamp_limit(101) == MAX_LIMIT


def test_ranks_by_liquidity_descending_and_breaks_ties_by_address():
    ranked = rank_by_liquidity(
        {
            "0xc": _metrics("0xc", "100"),
            "0xa": _metrics("0xa", "100"),
            "0xb": _metrics("0xb", "250"),
            "0xd": None,
        },
        limit=2,
    )

    assert [row.pool_address for row in ranked] == ["0xb", "0xa"]


def test_ties_compare_by_value_not_representation():
    ranked = rank_by_liquidity(
        [_metrics("0xb", "100.00"), _metrics("0xa", "1E+2")],
        limit=10,
    )

    assert [row.pool_address for row in ranked] == ["0xa", "0xb"]


def test_limit_above_max_returns_every_available_pool():
    pools = [_metrics(f"0x{i}", str(i)) for i in range(1, 4)]

    ranked = rank_by_liquidity(pools, limit=500)

    assert [row.pool_address for row in ranked] == ["0x3", "0x2", "0x1"]


def test_zero_limit_returns_one_pool():
    pools = [_metrics("0x1", "1"), _metrics("0x2", "2")]

    assert [row.pool_address for row in rank_by_liquidity(pools, limit=0)] == ["0x2"]


def test_input_order_does_not_matter():
    pools = [_metrics("0x1", "5"), _metrics("0x2", "7"), _metrics("0x3", "5")]

    forward = rank_by_liquidity(pools, limit=3)
    backward = rank_by_liquidity(list(reversed(pools)), limit=3)

    assert forward == backward


def test_empty_input_returns_empty_list():
    assert rank_by_liquidity({}, limit=10) == []


def test_values_differing_past_default_precision_keep_their_order():
    smaller = _metrics("0xa", "1234567890.12345678901234567890123")
    larger = _metrics("0xb", "1234567890.12345678901234567890129")

    ranked = rank_by_liquidity([smaller, larger], limit=2)

    assert [row.pool_address for row in ranked] == ["0xb", "0xa"]
