"""Shared error mapping for API v1 route modules."""

from __future__ import annotations

import logging

from fastapi import HTTPException, status

from railmatch.core.exceptions import (
    IllegalTransitionError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def map_domain_error(exc: Exception) -> tuple[int, str]:
    if isinstance(exc, ValidationError):
        return status.HTTP_400_BAD_REQUEST, str(exc)
    if isinstance(exc, NotFoundError):
        return status.HTTP_404_NOT_FOUND, str(exc)
    if isinstance(exc, PermissionDeniedError):
        return status.HTTP_403_FORBIDDEN, str(exc)
    if isinstance(exc, IllegalTransitionError):
        return status.HTTP_409_CONFLICT, str(exc)
    logger.error("api.unhandled_error", extra={"event": "api.unhandled_error", "error": str(exc)})
    return status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error"


def http_error(exc: Exception) -> HTTPException:
    code, detail = map_domain_error(exc)
    return HTTPException(status_code=code, detail=detail)
