import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from app.utils.base import ErrorKind
from app.utils.base.errors import error_response


logger = structlog.get_logger()


class RequestLogMiddleware(BaseHTTPMiddleware):
    """Tag each request with an X-Request-ID and log one line when it completes.

    Exceptions no handler claimed are rendered here as a generic 500 so the
    response still carries the request id and gets logged.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        started = time.perf_counter()
        try:
            response: Response = await call_next(request)
        except Exception:
            logger.exception("request.failed", path=request.url.path)
            response = error_response(ErrorKind.INTERNAL)
        elapsed_ms = round((time.perf_counter() - started) * 1000, 2)

        response.headers["X-Request-ID"] = request_id
        logger.info(
            "http.request",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=elapsed_ms,
        )
        return response
