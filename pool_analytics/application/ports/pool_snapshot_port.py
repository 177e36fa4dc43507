from __future__ import annotations

from typing import Protocol

from pool_analytics.domain.entities.pool_snapshot import PoolSnapshot


class PoolSnapshotPort(Protocol):
    async def fetch_snapshot(self, pool_address: str) -> PoolSnapshot:
        """Raise PoolNotFoundError or SnapshotUnavailableError on failure."""
        ...

    async def list_pools_for_token(self, token_address: str) -> list[str]:
        ...

    async def list_pools(self) -> list[str]:
        ...
