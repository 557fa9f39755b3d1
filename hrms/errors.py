"""Application error taxonomy shared by handlers and the HTTP boundary."""

from __future__ import annotations

from enum import Enum
from http import HTTPStatus
from typing import Any


class ErrorCode(str, Enum):
    bad_request = "bad_request"
    unauthorized = "unauthorized"
    forbidden = "forbidden"
    not_found = "not_found"
    conflict = "conflict"
    unprocessable = "unprocessable"
    too_many_requests = "too_many_requests"
    internal_error = "internal_error"


_STATUS_BY_CODE: dict[ErrorCode, HTTPStatus] = {
    ErrorCode.bad_request: HTTPStatus.BAD_REQUEST,
    ErrorCode.unauthorized: HTTPStatus.UNAUTHORIZED,
    ErrorCode.forbidden: HTTPStatus.FORBIDDEN,
    ErrorCode.not_found: HTTPStatus.NOT_FOUND,
    ErrorCode.conflict: HTTPStatus.CONFLICT,
    ErrorCode.unprocessable: HTTPStatus.UNPROCESSABLE_ENTITY,
    ErrorCode.too_many_requests: HTTPStatus.TOO_MANY_REQUESTS,
    ErrorCode.internal_error: HTTPStatus.INTERNAL_SERVER_ERROR,
}


class AppError(Exception):
    """Domain error carrying the kind that decides the HTTP status."""

    def __init__(self, code: ErrorCode, message: str, detail: Any = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.detail = detail

    @property
    def status(self) -> HTTPStatus:
        return _STATUS_BY_CODE.get(self.code, HTTPStatus.INTERNAL_SERVER_ERROR)

    def __repr__(self) -> str:
        return f"AppError({self.code.value!r}, {self.message!r})"


def bad_request(message: str, detail: Any = None) -> AppError:
    return AppError(ErrorCode.bad_request, message, detail)


def unauthorized(message: str) -> AppError:
    return AppError(ErrorCode.unauthorized, message)


def forbidden(message: str) -> AppError:
    return AppError(ErrorCode.forbidden, message)


def not_found(message: str) -> AppError:
    return AppError(ErrorCode.not_found, message)


def conflict(message: str) -> AppError:
    return AppError(ErrorCode.conflict, message)


def unprocessable(message: str, detail: Any = None) -> AppError:
    return AppError(ErrorCode.unprocessable, message, detail)


def too_many_requests(message: str, retry_after: int) -> AppError:
    return AppError(ErrorCode.too_many_requests, message, {"retryAfter": retry_after})


def internal(message: str, detail: Any = None) -> AppError:
    return AppError(ErrorCode.internal_error, message, detail)

