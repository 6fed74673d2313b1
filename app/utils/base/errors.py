from __future__ import annotations

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from mongoengine.errors import NotUniqueError, ValidationError as DocumentValidationError

from app.utils.base.enums import ErrorKind


logger = structlog.get_logger()


class ApiError(Exception):
    """Failure raised by handlers and the auth gate.

    The message is what the client sees, so it must never carry
    storage-layer or library error text.
    """

    def __init__(self, kind: ErrorKind, message: str | None = None):
        self.kind = kind
        self.message = message or kind.default_message
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return self.kind.status_code


def error_response(kind: ErrorKind, message: str | None = None) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if kind is ErrorKind.UNAUTHORIZED else None
    return JSONResponse(
        status_code=kind.status_code,
        content={"detail": message or kind.default_message, "kind": kind.value},
        headers=headers,
    )


def _field_names(locations) -> list[str]:
    names = []
    for loc in locations:
        # Drop the "body"/"path" prefix FastAPI adds
        parts = [str(p) for p in loc[1:]] or [str(p) for p in loc]
        name = ".".join(parts)
        if name not in names:
            names.append(name)
    return names


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ApiError)
    async def _api_error(request: Request, exc: ApiError) -> JSONResponse:
        return error_response(exc.kind, exc.message)

    @app.exception_handler(RequestValidationError)
    async def _request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = exc.errors()
        if any(err.get("type") == "json_invalid" for err in errors):
            return error_response(ErrorKind.VALIDATION, "Malformed JSON body")
        fields = _field_names(err["loc"] for err in errors)
        logger.info("request.invalid", path=request.url.path, fields=fields)
        return error_response(ErrorKind.VALIDATION, f"Invalid fields: {', '.join(fields)}")

    @app.exception_handler(DocumentValidationError)
    async def _document_validation(request: Request, exc: DocumentValidationError) -> JSONResponse:
        fields = sorted((exc.errors or {}).keys())
        logger.info("document.invalid", path=request.url.path, fields=fields)
        if fields:
            return error_response(ErrorKind.VALIDATION, f"Invalid fields: {', '.join(fields)}")
        return error_response(ErrorKind.VALIDATION)

    @app.exception_handler(NotUniqueError)
    async def _not_unique(request: Request, exc: NotUniqueError) -> JSONResponse:
        logger.info("document.duplicate", path=request.url.path)
        return error_response(ErrorKind.CONFLICT)

