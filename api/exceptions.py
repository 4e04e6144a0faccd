"""
API exception handlers.

This module provides custom exception handling for REST API responses.
Every error renders as ``{"error": {"code": ..., "message": ...}}``.
"""

import logging
from typing import Any, Dict, Optional

from django.conf import settings
from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.response import Response
from rest_framework.views import exception_handler

from core.domain.exceptions import (
    DomainException,
    NotFoundError,
    UpstreamError,
)
from core.metrics import errors_total

logger = logging.getLogger(__name__)

UPSTREAM_ERROR_MESSAGE = "Billing provider request failed"
INTERNAL_ERROR_MESSAGE = "An internal error occurred"


def custom_exception_handler(exc: Exception, context: Dict[str, Any]) -> Response:
    """Custom exception handler for REST API."""
    trace_id = _get_trace_id(context)

    if isinstance(exc, DomainException):
        response = _handle_domain_exception(exc, context, trace_id)
    elif isinstance(exc, APIException):
        response = exception_handler(exc, context)
        code = exc.default_code.upper().replace("-", "_") if hasattr(exc, "default_code") else "API_ERROR"
        detail = response.data.get("detail", exc.default_detail) if isinstance(response.data, dict) else response.data
        response.data = {"error": {"code": code, "message": str(detail)}}
    elif isinstance(exc, Http404):
        response = Response(
            {"error": {"code": "NOT_FOUND", "message": "Resource not found"}},
            status=status.HTTP_404_NOT_FOUND,
        )
    else:
        response = _handle_unexpected_exception(exc, context, trace_id)

    if trace_id:
        response["X-Trace-ID"] = trace_id
    return response


def _get_trace_id(context: Dict[str, Any]) -> Optional[str]:
    """Extract trace ID from request context."""
    request = context.get("request")
    if not request:
        return None
    return getattr(request, "trace_id", None) or getattr(request, "correlation_id", None)


def _endpoint(context: Dict[str, Any]) -> str:
    request = context.get("request")
    return getattr(request, "path", "unknown") if request else "unknown"


def _handle_domain_exception(
    exc: DomainException, context: Dict[str, Any], trace_id: Optional[str]
) -> Response:
    """Handle domain-specific exceptions."""
    message = exc.message
    if isinstance(exc, NotFoundError):
        status_code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, UpstreamError):
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        errors_total.labels(error_type=exc.code, endpoint=_endpoint(context)).inc()
        logger.error("Upstream error: %s", exc.message, extra={"trace_id": trace_id})
        if not settings.DEBUG:
            message = UPSTREAM_ERROR_MESSAGE
    else:
        # ValidationError, SignatureError and any other rule violation
        status_code = status.HTTP_400_BAD_REQUEST

    logger.warning("Domain exception: %s - %s", exc.code, exc.message, extra={"trace_id": trace_id})
    return Response({"error": {"code": exc.code, "message": message}}, status=status_code)


def _handle_unexpected_exception(
    exc: Exception, context: Dict[str, Any], trace_id: Optional[str]
) -> Response:
    """Handle unexpected or untracked exceptions."""
    logger.error("Unexpected error: %s", exc, extra={"trace_id": trace_id}, exc_info=True)
    errors_total.labels(error_type=exc.__class__.__name__, endpoint=_endpoint(context)).inc()
    message = str(exc) if settings.DEBUG else INTERNAL_ERROR_MESSAGE
    return Response(
        {"error": {"code": "INTERNAL_ERROR", "message": message}},
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
