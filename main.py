from fastapi import FastAPI
from contextlib import AsyncExitStack

import structlog

from app.connections import mongo_lifespan, redis_lifespan
from app.api.user import router as user_router
from app.middleware import RequestLogMiddleware
from app.utils.base import register_error_handlers
from app.utils.config import settings
from app.utils.logging import configure_logging


logger = structlog.get_logger()


async def combined_lifespan(app: FastAPI):
    logger.info("app.starting", environment=settings.environment, port=settings.port)
    async with AsyncExitStack() as stack:
        await stack.enter_async_context(mongo_lifespan(app))
        await stack.enter_async_context(redis_lifespan(app))

        yield
    logger.info("app.stopped")


def create_app() -> FastAPI:
    configure_logging()

    app = FastAPI(title=settings.app_name, version="0.1.0", lifespan=combined_lifespan)
    app.add_middleware(RequestLogMiddleware)
    register_error_handlers(app)

    app.include_router(user_router, prefix="/users", tags=["users"])

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=settings.port)
