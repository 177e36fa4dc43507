from __future__ import annotations

from decimal import Decimal
from typing import Protocol


class ReferencePricePort(Protocol):
    async def price_of(self, quote_token_address: str) -> Decimal:
        """USD price of the quote token; raise PriceUnavailableError when unknown."""
        ...
