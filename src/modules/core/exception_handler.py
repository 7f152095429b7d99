"""DRF exception handler rendering RFC 9457 problem documents.

Domain ``CommerceError`` subclasses carry their own kind/title/status.
DRF's own exceptions are mapped onto the same taxonomy; validation errors
are flattened so the client sees every per-field violation at once.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog
from django.core.exceptions import PermissionDenied
from django.db import DatabaseError
from django.http import Http404
from django.utils import timezone
from rest_framework import exceptions
from rest_framework.response import Response

from modules.core.exceptions import (
    VALIDATION,
    CommerceError,
    CommerceValidationError,
    Forbidden,
    RateLimitExceeded,
    ResourceNotFound,
    StorageUnavailable,
    Unauthorized,
    violation,
)

logger = structlog.get_logger(__name__)


def flatten_validation_errors(detail: Any, prefix: str = "") -> List[Dict[str, Any]]:
    """Flatten DRF's nested ``ValidationError.detail`` into violations.

    ``{"items": [{}, {"quantity": ["..."]}]}`` becomes a violation on
    ``items[1].quantity``, and so does ``{"items": {1: {"quantity": [...]}}}``
    as reported for ``many=True`` serializers.  Non-field errors have no
    ``field``.
    """
    flat: List[Dict[str, Any]] = []
    if isinstance(detail, dict):
        for key, value in detail.items():
            if key == "non_field_errors":
                flat.extend(flatten_validation_errors(value, prefix))
                continue
            if isinstance(key, int):
                path = f"{prefix}[{key}]"
            else:
                path = f"{prefix}.{key}" if prefix else str(key)
            flat.extend(flatten_validation_errors(value, path))
    elif isinstance(detail, list):
        if all(isinstance(item, (str, exceptions.ErrorDetail)) for item in detail):
            for item in detail:
                flat.extend(flatten_validation_errors(item, prefix))
        else:
            for index, item in enumerate(detail):
                if item:
                    flat.extend(flatten_validation_errors(item, f"{prefix}[{index}]"))
    else:
        flat.append(violation(str(detail), field=prefix or None, type=VALIDATION))
    return flat


def _translate(exc: Exception) -> Optional[CommerceError]:
    if isinstance(exc, CommerceError):
        return exc
    if isinstance(exc, exceptions.ValidationError):
        return CommerceValidationError(errors=flatten_validation_errors(exc.detail))
    if isinstance(exc, exceptions.ParseError):
        return CommerceValidationError(detail=str(exc.detail))
    if isinstance(exc, (exceptions.NotAuthenticated, exceptions.AuthenticationFailed)):
        return Unauthorized(detail=str(exc.detail))
    if isinstance(exc, (exceptions.PermissionDenied, PermissionDenied)):
        return Forbidden()
    if isinstance(exc, (exceptions.NotFound, Http404)):
        return ResourceNotFound()
    if isinstance(exc, exceptions.Throttled):
        return RateLimitExceeded()
    if isinstance(exc, DatabaseError):
        logger.error("storage.failure", error=str(exc), exc_info=exc)
        return StorageUnavailable()
    if isinstance(exc, exceptions.APIException):
        error = CommerceValidationError(detail=str(exc.detail))
        error.status_code = exc.status_code
        return error
    return None


def problem_details_handler(exc: Exception, context: Dict[str, Any]) -> Optional[Response]:
    """``REST_FRAMEWORK["EXCEPTION_HANDLER"]`` entry point.

    Returns ``None`` for exceptions outside the taxonomy so Django's
    regular 500 handling applies.
    """
    error = _translate(exc)
    if error is None:
        return None

    request = context.get("request")
    instance = request.get_full_path() if request is not None else None
    problem = error.to_problem(instance=instance)
    problem["timestamp"] = timezone.now().isoformat()

    headers = {}
    if isinstance(exc, exceptions.Throttled) and exc.wait is not None:
        headers["Retry-After"] = str(int(exc.wait))
    if isinstance(exc, (exceptions.NotAuthenticated, exceptions.AuthenticationFailed)):
        headers["WWW-Authenticate"] = 'Bearer realm="api"'

    log = logger.bind(kind=error.kind, status=error.status_code, path=instance)
    if error.status_code >= 500:
        log.error("request.failed", detail=error.detail)
    else:
        log.info("request.rejected", detail=error.detail)

    response = Response(problem, status=error.status_code, headers=headers)
    response.content_type = "application/problem+json"
    return response
