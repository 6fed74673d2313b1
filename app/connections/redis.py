import redis
import structlog
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional
from fastapi import FastAPI

from app.utils.config import settings


logger = structlog.get_logger()
_redis_client: Optional[redis.Redis] = None


def get_redis() -> redis.Redis:
    assert _redis_client is not None, "Redis not initialized"
    return _redis_client


def set_redis(client: Optional[redis.Redis]) -> None:
    global _redis_client
    _redis_client = client


def init_redis() -> None:
    set_redis(
        redis.Redis(
            db=settings.redis_db,
            port=settings.redis_port,
            host=settings.redis_host,
            password=settings.redis_password,
            decode_responses=True,
            socket_timeout=2.0,
        )
    )
    logger.info("redis.connected", host=settings.redis_host, db=settings.redis_db)


def close_redis() -> None:
    global _redis_client
    if _redis_client is not None:
        try:
            _redis_client.close()
        finally:
            _redis_client = None


@asynccontextmanager
async def redis_lifespan(app: FastAPI) -> AsyncIterator[None]:
    init_redis()
    try:
        yield
    finally:
        close_redis()
