"""Render validation errors as HTTP responses.

Only SegmentValidationError is handled here; every other exception keeps
its normal path through the application's error handling.
"""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .errors import SegmentValidationError
from .settings import get_settings

logger = logging.getLogger(__name__)


def error_payload(exc: SegmentValidationError, status_code: int) -> dict[str, Any]:
    """Build the JSON body describing a validation failure."""
    return {
        "statusCode": status_code,
        "error": HTTPStatus(status_code).phrase,
        "message": str(exc),
        "validation": {
            "source": str(exc.segment),
            "keys": exc.keys,
        },
    }


async def validation_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Exception handler answering segment validation errors with a 400."""
    assert isinstance(exc, SegmentValidationError)
    status_code = get_settings().error_status_code
    logger.info(f"Rejected {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=status_code, content=error_payload(exc, status_code))


def register_error_handler(app: FastAPI) -> None:
    """Install validation_error_handler on an application."""
    app.add_exception_handler(SegmentValidationError, validation_error_handler)
