from contextlib import asynccontextmanager
from typing import AsyncIterator

import certifi
import structlog
from fastapi import FastAPI
from mongoengine import connect, disconnect

from app.utils.config import settings


logger = structlog.get_logger()


def init_mongo() -> None:
    options = {"tz_aware": True}
    if settings.mongo_tls:
        options["tlsCAFile"] = certifi.where()
    connect(host=settings.mongo_uri, alias="default", **options)
    logger.info("mongo.connected", db=settings.mongo_db, tls=settings.mongo_tls)


def close_mongo() -> None:
    disconnect(alias="default")
    logger.info("mongo.disconnected")


@asynccontextmanager
async def mongo_lifespan(app: FastAPI) -> AsyncIterator[None]:
    init_mongo()
    try:
        yield
    finally:
        close_mongo()
