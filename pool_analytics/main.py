from __future__ import annotations

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pool_analytics.api.deps import CORRELATION_HEADER, get_query_dispatcher
from pool_analytics.api.routers.liquidity import router as liquidity_router
from pool_analytics.api.routers.prices import router as prices_router
from pool_analytics.shared.config import get_settings


logger = logging.getLogger(__name__)


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


@asynccontextmanager
async def lifespan(_app: FastAPI):
    settings = get_settings()
    _configure_logging(settings.log_level)
    if settings.postgres_dsn:
        # A broken handler registry raises ConfigurationError here and aborts startup.
        dispatcher = get_query_dispatcher()
        logger.info(
            "main: dispatcher_ready queries=%s",
            ",".join(query_type.__name__ for query_type in dispatcher.query_types),
        )
    else:
        logger.warning("main: postgres_dsn_missing dispatcher not built")
    yield


app = FastAPI(title="Pool Analytics API", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=[CORRELATION_HEADER],
)
app.include_router(liquidity_router)
app.include_router(prices_router)
