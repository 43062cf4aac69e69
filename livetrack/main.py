import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

import redis.asyncio as aioredis

from livetrack.api.health import router as health_router
from livetrack.api.shares import router as shares_router
from livetrack.config import settings
from livetrack.redis_client import set_redis

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    redis_client = aioredis.from_url(
        settings.REDIS_URL,
        socket_timeout=settings.REDIS_TIMEOUT_SECONDS,
        socket_connect_timeout=settings.REDIS_TIMEOUT_SECONDS,
    )
    set_redis(redis_client)
    logger.info("Connected to Redis at %s", settings.REDIS_URL)
    try:
        yield
    finally:
        set_redis(None)
        await redis_client.aclose()


app = FastAPI(title="LiveTrack", version="0.1.0", lifespan=lifespan)
app.include_router(health_router, prefix="/api")
app.include_router(shares_router, prefix="/api")


@app.get("/api")
def api_root():
    return {"message": "LiveTrack API"}
