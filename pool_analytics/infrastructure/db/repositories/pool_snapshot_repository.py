from __future__ import annotations

import asyncio
import logging

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from pool_analytics.application.ports.pool_snapshot_port import PoolSnapshotPort
from pool_analytics.domain.entities.pool_snapshot import PoolSnapshot
from pool_analytics.domain.exceptions import PoolNotFoundError, SnapshotUnavailableError
from pool_analytics.infrastructure.db.mappers.pool_snapshot_mapper import map_row_to_pool_snapshot


logger = logging.getLogger(__name__)


class SqlPoolSnapshotRepository(PoolSnapshotPort):
    """Latest reserves per pool from ``public.pools``.

    SQLAlchemy calls block, so each one runs in a worker thread; the await on
    that thread is the only suspension point of this adapter.
    """

    def __init__(self, engine, *, chain_id: int):
        self._engine = engine
        self._chain_id = chain_id

    async def fetch_snapshot(self, pool_address: str) -> PoolSnapshot:
        row = await self._run(self._select_snapshot, pool_address.lower())
        if row is None:
            raise PoolNotFoundError(f"Pool {pool_address} not found.")
        return map_row_to_pool_snapshot(row)

    async def list_pools_for_token(self, token_address: str) -> list[str]:
        return await self._run(self._select_pools_for_token, token_address.lower())

    async def list_pools(self) -> list[str]:
        return await self._run(self._select_pools)

    async def _run(self, fn, *args):
        try:
            return await asyncio.to_thread(fn, *args)
        except SQLAlchemyError as exc:
            logger.warning(
                "pool_snapshot_repo: query_failed op=%s chain_id=%s error=%s",
                fn.__name__,
                self._chain_id,
                exc,
            )
            raise SnapshotUnavailableError("Pool snapshot store is unavailable.") from exc

    def _select_snapshot(self, pool_address: str):
        sql = """
            SELECT
                p.pool_address,
                p.token0_address,
                p.token1_address,
                t0.symbol AS token0_symbol,
                t1.symbol AS token1_symbol,
                t0.decimals AS token0_decimals,
                t1.decimals AS token1_decimals,
                p.reserve0,
                p.reserve1,
                p.pool_type,
                p.reserves_updated_at AS observed_at
            FROM public.pools p
            LEFT JOIN public.tokens t0
              ON t0.chain_id = p.chain_id
             AND lower(t0.address) = lower(p.token0_address)
            LEFT JOIN public.tokens t1
              ON t1.chain_id = p.chain_id
             AND lower(t1.address) = lower(p.token1_address)
            WHERE lower(p.pool_address) = :pool_address
              AND p.chain_id = :chain_id
            LIMIT 1
        """
        params = {"pool_address": pool_address, "chain_id": self._chain_id}
        with self._engine.connect() as conn:
            return conn.execute(text(sql), params).mappings().first()

    def _select_pools_for_token(self, token_address: str) -> list[str]:
        sql = """
            SELECT lower(p.pool_address) AS pool_address
            FROM public.pools p
            WHERE p.chain_id = :chain_id
              AND (lower(p.token0_address) = :token_address OR lower(p.token1_address) = :token_address)
            ORDER BY lower(p.pool_address) ASC
        """
        params = {"token_address": token_address, "chain_id": self._chain_id}
        with self._engine.connect() as conn:
            rows = conn.execute(text(sql), params).mappings().all()
        return [row["pool_address"] for row in rows]

    def _select_pools(self) -> list[str]:
        sql = """
            SELECT lower(p.pool_address) AS pool_address
            FROM public.pools p
            WHERE p.chain_id = :chain_id
            ORDER BY lower(p.pool_address) ASC
        """
        with self._engine.connect() as conn:
            rows = conn.execute(text(sql), {"chain_id": self._chain_id}).mappings().all()
        return [row["pool_address"] for row in rows]
