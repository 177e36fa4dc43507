from __future__ import annotations

from pydantic import BaseModel, Field


class TokenPriceResponse(BaseModel):
    token_address: str
    quote_token_address: str
    quote_token_symbol: str
    price: str = Field(..., description="Token price in quote token units.")
    price_usd: str
    pool_address: str = Field(..., description="Deepest pool for the pair.")
    liquidity: str
    timestamp: str
