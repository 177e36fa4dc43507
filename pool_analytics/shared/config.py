from __future__ import annotations

import json
import os
from dataclasses import dataclass

from dotenv import load_dotenv


load_dotenv()


def _env(name: str, default: str | None = None) -> str | None:
    return os.getenv(name, default)


def _json(name: str) -> dict:
    value = _env(name)
    if not value:
        return {}
    return json.loads(value)


def _optional_float(name: str, default: str) -> float | None:
    value = float(_env(name, default))
    return value if value > 0 else None


@dataclass(frozen=True)
class Settings:
    price_overrides: dict
    pricing_network: str
    coingecko_api_base: str
    coingecko_timeout_seconds: float
    coingecko_cache_ttl_seconds: float
    postgres_dsn: str
    chain_id: int
    query_timeout_seconds: float | None
    log_level: str


def get_settings() -> Settings:
    return Settings(
        price_overrides=_json("PRICE_OVERRIDES"),
        pricing_network=_env("PRICING_NETWORK", "ethereum"),
        coingecko_api_base=_env("COINGECKO_API_BASE", "https://api.coingecko.com/api/v3"),
        coingecko_timeout_seconds=float(_env("COINGECKO_TIMEOUT_SECONDS", "10")),
        coingecko_cache_ttl_seconds=float(_env("COINGECKO_CACHE_TTL_SECONDS", "300")),
        postgres_dsn=_env("POSTGRES_DSN", ""),
        chain_id=int(_env("CHAIN_ID", "1")),
        query_timeout_seconds=_optional_float("QUERY_TIMEOUT_SECONDS", "15"),
        log_level=_env("LOG_LEVEL", "INFO").upper(),
    )
