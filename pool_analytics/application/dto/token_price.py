from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal


@dataclass(frozen=True)
class GetTokenPriceQuery:
    token_address: str
    quote_token_address: str


@dataclass(frozen=True)
class TokenPriceOutput:
    token_address: str
    quote_token_address: str
    quote_token_symbol: str
    price: Decimal
    price_usd: Decimal
    pool_address: str
    liquidity: Decimal
    timestamp: datetime
