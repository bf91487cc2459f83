from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Tuple, Union

from django.core.exceptions import (
    PermissionDenied as DjangoPermissionDenied,
    ValidationError as DjangoValidationError,
)
from django.db import DatabaseError
from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import (
    AuthenticationFailed,
    MethodNotAllowed,
    NotAuthenticated,
    NotFound,
    ParseError,
    PermissionDenied,
    ValidationError,
)
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

from apps.api.utils import error_response
from apps.common import get_logger

logger = get_logger(__name__).bind(component="api", layer="exception")

STATUS_CODE_DEFAULTS: Dict[int, Tuple[str, str]] = {
    status.HTTP_400_BAD_REQUEST: ("VALIDATION_ERROR", "Validation failed"),
    status.HTTP_401_UNAUTHORIZED: ("UNAUTHORIZED", "Authentication required"),
    status.HTTP_403_FORBIDDEN: (
        "FORBIDDEN",
        "You do not have permission to perform this action",
    ),
    status.HTTP_404_NOT_FOUND: ("NOT_FOUND", "Resource not found"),
    status.HTTP_405_METHOD_NOT_ALLOWED: ("METHOD_NOT_ALLOWED", "Method not allowed"),
    status.HTTP_409_CONFLICT: ("CONFLICT", "Resource conflict"),
    status.HTTP_415_UNSUPPORTED_MEDIA_TYPE: (
        "UNSUPPORTED_MEDIA_TYPE",
        "Unsupported media type",
    ),
    status.HTTP_429_TOO_MANY_REQUESTS: ("TOO_MANY_REQUESTS", "Request was throttled"),
    status.HTTP_500_INTERNAL_SERVER_ERROR: ("SERVER_ERROR", "Something went wrong"),
    status.HTTP_503_SERVICE_UNAVAILABLE: (
        "SERVICE_UNAVAILABLE",
        "Service temporarily unavailable",
    ),
}


class ApplicationError(Exception):
    """
    Domain-level application error meant to be raised from services or views.

    Args:
        code: Machine readable error code.
        message: Human readable explanation of the error.
        status_code: Optional explicit HTTP status. If omitted, code mapping is used.
        details: Optional structured details for clients.
        hint: Optional hint for remediation.
        extra: Optional additional machine readable fields.
        headers: Optional mapping of headers to include in the response.
    """

    default_code = "SERVER_ERROR"
    default_status: Optional[int] = None
    default_hint: Optional[str] = None

    def __init__(
        self,
        code: Optional[str] = None,
        message: str = "Something went wrong",
        *,
        status_code: Optional[int] = None,
        details: Optional[Any] = None,
        hint: Optional[str] = None,
        extra: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, Any]] = None,
    ):
        super().__init__(message)
        self.code = code or self.default_code
        self.message = message
        self.status_code = status_code if status_code is not None else self.default_status
        self.details = details
        self.hint = hint if hint is not None else self.default_hint
        self.extra = extra
        self.headers = headers

    def to_response(self, body: Optional[Mapping[str, Any]] = None) -> Response:
        return error_response(
            self.code,
            self.message,
            self.details,
            http_status=self.status_code,
            hint=self.hint,
            extra=self.extra,
            headers=self.headers,
            body=body,
        )


class InvalidInputError(ApplicationError):
    """Malformed or out-of-range input. Caller error, never retried."""

    default_code = "VALIDATION_ERROR"
    default_status = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str = "Invalid input", **kwargs: Any):
        super().__init__(None, message, **kwargs)


class NotFoundError(ApplicationError):
    """Missing product or cart item. Also used for items owned by someone else."""

    default_code = "NOT_FOUND"
    default_status = status.HTTP_404_NOT_FOUND

    def __init__(self, message: str = "Resource not found", **kwargs: Any):
        super().__init__(None, message, **kwargs)


class ConflictError(ApplicationError):
    """Unique name/slug collision on product writes."""

    default_code = "CONFLICT"
    default_status = status.HTTP_409_CONFLICT

    def __init__(self, message: str = "Resource conflict", **kwargs: Any):
        super().__init__(None, message, **kwargs)


class RetrievalFailure(ApplicationError):
    """Storage or communication fault. Safe to retry with backoff."""

    default_code = "SERVICE_UNAVAILABLE"
    default_status = status.HTTP_503_SERVICE_UNAVAILABLE
    default_hint = "Try again in a few moments."

    def __init__(self, message: str = "Service temporarily unavailable", **kwargs: Any):
        super().__init__(None, message, **kwargs)


class PreconditionViolation(ApplicationError):
    """An operation that needs an authenticated identity was reached without one."""

    default_code = "SERVER_ERROR"
    default_status = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str = "Authenticated identity missing", **kwargs: Any):
        super().__init__(None, message, **kwargs)


def global_exception_handler(exc: Exception, context: Dict[str, Any]) -> Response:
    """
    Central exception handler for DRF views returning structured JSON errors.
    """

    bound_logger = _bind_logger(context)

    if isinstance(exc, DatabaseError):
        bound_logger.exception("Storage failure reached the API boundary")
        exc = RetrievalFailure()

    if isinstance(exc, PreconditionViolation):
        # Integration bug, never a client error: keep the internals out of the body.
        bound_logger.error("Precondition violated", detail=exc.message)
        return error_response(
            "SERVER_ERROR",
            "Something went wrong",
            http_status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    if isinstance(exc, ApplicationError):
        bound_logger.info(
            "Handled application error",
            code=exc.code,
            status=exc.status_code,
        )
        return exc.to_response()

    if isinstance(exc, DjangoValidationError):
        exc = ValidationError(_normalize_django_validation_error(exc))

    response = drf_exception_handler(exc, context)
    if response is not None:
        return _from_drf_exception(exc, response, bound_logger)

    bound_logger.exception("Unhandled exception bubbled to global handler")
    return error_response(
        "SERVER_ERROR",
        "Something went wrong",
        http_status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


def _bind_logger(context: Dict[str, Any]):
    log = logger
    view = context.get("view")
    request = context.get("request")
    if view:
        view_name = getattr(view, "__class__", type(view)).__name__
        log = log.bind(view=view_name)
    if request is not None:
        log = log.bind(
            method=getattr(request, "method", None),
            path=getattr(request, "path", None),
        )
    return log


def _from_drf_exception(
    exc: Exception, response: Response, bound_logger
) -> Response:
    status_code = response.status_code
    code, message, details = _normalize_payload(exc, response.data, status_code)
    headers = dict(response.headers) if getattr(response, "headers", None) else None
    headers = {k: v for k, v in (headers or {}).items() if k.lower() != "content-type"} or None

    if status_code >= 500:
        bound_logger.error("Converted server error", code=code, status=status_code)
    else:
        bound_logger.info("Converted API exception", code=code, status=status_code)

    return error_response(
        code,
        message,
        details,
        http_status=status_code,
        headers=headers,
    )


def _normalize_django_validation_error(
    exc: DjangoValidationError,
) -> Union[Dict[str, Any], list]:
    if hasattr(exc, "message_dict"):
        return exc.message_dict
    if hasattr(exc, "messages"):
        return list(exc.messages)
    return {"detail": getattr(exc, "message", "Validation failed")}


# Checked in order; the first matching type decides code and fallback message.
_EXCEPTION_CODES = (
    (ParseError, "VALIDATION_ERROR", "Malformed request"),
    (AuthenticationFailed, "UNAUTHORIZED", "Authentication failed"),
    (NotAuthenticated, "UNAUTHORIZED", "Authentication required"),
    (
        (PermissionDenied, DjangoPermissionDenied),
        "FORBIDDEN",
        "You do not have permission to perform this action",
    ),
    ((NotFound, Http404), "NOT_FOUND", "Resource not found"),
    (MethodNotAllowed, "METHOD_NOT_ALLOWED", "Method not allowed"),
)


def _normalize_payload(
    exc: Exception,
    payload: Any,
    status_code: int,
) -> Tuple[str, str, Optional[Any]]:
    if isinstance(exc, ValidationError):
        message = _extract_message(payload, "Validation failed", status_code)
        return "VALIDATION_ERROR", message, payload
    for types, code, fallback in _EXCEPTION_CODES:
        if isinstance(exc, types):
            return code, _extract_message(payload, fallback, status_code), None

    code, fallback = STATUS_CODE_DEFAULTS.get(
        status_code,
        ("SERVER_ERROR", "Something went wrong")
        if status_code >= 500
        else ("UNKNOWN_ERROR", "Request failed"),
    )
    details = payload if _include_details(status_code, payload) else None
    return code, _extract_message(payload, fallback, status_code), details


def _include_details(status_code: int, payload: Any) -> bool:
    if status_code >= 500:
        return False
    return isinstance(payload, (dict, list)) and payload not in (None, {})


def _extract_message(payload: Any, fallback: str, status_code: int) -> str:
    if status_code >= 500:
        return STATUS_CODE_DEFAULTS[status.HTTP_500_INTERNAL_SERVER_ERROR][1]
    if isinstance(payload, str):
        return payload
    if isinstance(payload, dict):
        detail = payload.get("detail")
        if isinstance(detail, str):
            return detail
    if isinstance(payload, list) and payload and isinstance(payload[0], str):
        return payload[0]
    return fallback


__all__ = [
    "ApplicationError",
    "ConflictError",
    "InvalidInputError",
    "NotFoundError",
    "PreconditionViolation",
    "RetrievalFailure",
    "global_exception_handler",
]
