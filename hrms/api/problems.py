"""Rendering of every failure as ``application/problem+json``."""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..errors import AppError, ErrorCode
from ..logs import request_logger
from ..mediator import MediatorError

PROBLEM_CONTENT_TYPE = "application/problem+json"


def problem_response(
    request: Request,
    status: int,
    detail: str | None,
    *,
    extra: Any = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    try:
        title = HTTPStatus(status).phrase
    except ValueError:
        title = "Error"
    body: dict[str, Any] = {
        "type": "about:blank",
        "title": title,
        "status": status,
        "detail": detail,
        "instance": request.url.path,
    }
    if extra is not None:
        body["extra"] = jsonable_encoder(extra)
    return JSONResponse(body, status_code=status, media_type=PROBLEM_CONTENT_TYPE, headers=headers)


def _log_for(request: Request) -> logging.LoggerAdapter:
    return request_logger(getattr(request.state, "request_id", "-"))


def handle_app_error(request: Request, exc: AppError) -> JSONResponse:
    headers = None
    if exc.code is ErrorCode.too_many_requests and isinstance(exc.detail, dict):
        headers = {"Retry-After": str(exc.detail.get("retryAfter", 1))}
    if exc.code is ErrorCode.internal_error:
        _log_for(request).error("internal error: %s", exc.message, exc_info=exc.__cause__)
    return problem_response(request, int(exc.status), exc.message, extra=exc.detail, headers=headers)


def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    return problem_response(request, HTTPStatus.BAD_REQUEST, "invalid request", extra=exc.errors())


def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    detail = exc.detail if isinstance(exc.detail, str) else None
    return problem_response(request, exc.status_code, detail, headers=getattr(exc, "headers", None))


def handle_mediator_error(request: Request, exc: MediatorError) -> JSONResponse:
    _log_for(request).error("dispatch failure: %s", exc)
    return problem_response(request, HTTPStatus.INTERNAL_SERVER_ERROR, "internal server error")


def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    _log_for(request).error("unhandled error", exc_info=exc)
    return problem_response(request, HTTPStatus.INTERNAL_SERVER_ERROR, "internal server error")


def install(app: FastAPI) -> None:
    """Register the problem+json handlers on ``app``."""
    app.add_exception_handler(AppError, handle_app_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(MediatorError, handle_mediator_error)
    app.add_exception_handler(Exception, handle_unexpected)
