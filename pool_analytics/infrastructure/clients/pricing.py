from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
import logging
from threading import Lock
import time

import httpx

from pool_analytics.domain.exceptions import PriceUnavailableError


logger = logging.getLogger(__name__)


def _normalize_token_key(value: str) -> str:
    return value.strip().lower()


def _normalize_network(value: str) -> str:
    return value.strip().lower()


COINGECKO_PLATFORMS = {
    "ethereum": "ethereum",
    "mainnet": "ethereum",
    "eth": "ethereum",
    "polygon": "polygon-pos",
    "matic": "polygon-pos",
    "arbitrum": "arbitrum-one",
    "arbitrum-one": "arbitrum-one",
    "base": "base",
}


@dataclass(frozen=True)
class PriceOverrides:
    data: dict

    def get_price(self, network: str, token: str) -> Decimal | None:
        network_key = _normalize_network(network)
        token_key = _normalize_token_key(token)
        for key in (network_key, "default"):
            bucket = self.data.get(key) if isinstance(self.data, dict) else None
            if not isinstance(bucket, dict):
                continue
            value = bucket.get(token) or bucket.get(token_key)
            if value is None:
                continue
            return Decimal(str(value))
        return None


class CoingeckoPriceProvider:
    def __init__(
        self,
        api_base: str,
        timeout_seconds: float,
        cache_ttl_seconds: float = 300,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout_seconds
        self.cache_ttl_seconds = cache_ttl_seconds
        self._transport = transport
        self._cache: dict[tuple[str, str], tuple[float, Decimal]] = {}
        self._lock = Lock()

    def _cache_get(self, *, platform: str, token_address: str) -> Decimal | None:
        if self.cache_ttl_seconds <= 0:
            return None
        key = (platform, token_address.lower())
        now = time.monotonic()
        with self._lock:
            cached = self._cache.get(key)
            if cached is None:
                return None
            expires_at, value = cached
            if expires_at <= now:
                self._cache.pop(key, None)
                return None
            return value

    def _cache_set(self, *, platform: str, token_address: str, value: Decimal) -> None:
        if self.cache_ttl_seconds <= 0:
            return
        key = (platform, token_address.lower())
        expires_at = time.monotonic() + self.cache_ttl_seconds
        with self._lock:
            self._cache[key] = (expires_at, value)

    async def get_price_usd(self, network: str, token_address: str) -> Decimal:
        platform = COINGECKO_PLATFORMS.get(_normalize_network(network))
        if not platform:
            raise PriceUnavailableError(f"Unsupported network for pricing: {network}")
        if not token_address.lower().startswith("0x"):
            raise PriceUnavailableError("Coingecko pricing requires a token address.")

        cached = self._cache_get(platform=platform, token_address=token_address)
        if cached is not None:
            return cached

        url = f"{self.api_base}/simple/token_price/{platform}"
        params = {
            "contract_addresses": token_address,
            "vs_currencies": "usd",
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(url, params=params)
                response.raise_for_status()
                payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning(
                "coingecko_price_provider: request_failed token=%s platform=%s error=%s",
                token_address,
                platform,
                exc,
            )
            raise PriceUnavailableError(f"Price lookup failed for token {token_address}.") from exc

        token_key = token_address.lower()
        if token_key not in payload or "usd" not in payload[token_key]:
            raise PriceUnavailableError(f"Price not found for token {token_address}.")
        try:
            value = Decimal(str(payload[token_key]["usd"]))
        except InvalidOperation as exc:
            raise PriceUnavailableError(f"Invalid price returned for token {token_address}.") from exc
        # Coingecko reports 0 for tokens it does not track; that is "unknown", not free.
        if not value.is_finite() or value <= 0:
            raise PriceUnavailableError(f"Price not found for token {token_address}.")
        self._cache_set(platform=platform, token_address=token_address, value=value)
        return value


class ReferencePriceService:
    """USD reference prices for quote tokens: configured overrides first, then Coingecko."""

    def __init__(self, *, overrides: PriceOverrides, coingecko: CoingeckoPriceProvider, network: str):
        self.overrides = overrides
        self.coingecko = coingecko
        self.network = network

    async def price_of(self, quote_token_address: str) -> Decimal:
        override = self.overrides.get_price(self.network, quote_token_address)
        if override is not None:
            return override
        return await self.coingecko.get_price_usd(self.network, quote_token_address)
