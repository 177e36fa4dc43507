from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class GetTokenLiquidityQuery:
    token_address: str
