"""
Request segment validation for FastAPI/Starlette services.

Validates headers, path params, query, cookies, signed cookies and body
against per-route schemas, writes coerced values and defaults back onto the
request, and stops at the first failing segment.

Usage:
    from reqguard import Segment, build_validator

    validator = build_validator(
        {Segment.QUERY: {"name": str, "page": (int, 1)}},
        {"allowUnknown": True},
    )
    validator(request, handler)
"""

from __future__ import annotations

from .logging_config import TRACE  # noqa: I001 - registers TRACE level first

from .context import RequestContextView, build_context
from .errors import (
    ConfigurationError,
    ReqGuardError,
    SegmentValidationError,
    is_validation_error,
    wrap,
)
from .options import CelebrateOptions, ValidationOptions
from .orchestrator import (
    SegmentValidator,
    ValidationRun,
    ValidationSpec,
    ValidationState,
    build_validator,
    celebrate,
)
from .refs import ContextRef, valid_ref
from .request import SegmentedRequest
from .runner import PydanticLibrary, SchemaRunner, ValidationLibrary, ValidationResult
from .segments import SEGMENT_ORDER, Segment

__all__ = [
    # Entry points
    "build_validator",
    "celebrate",
    "SegmentValidator",
    "ValidationRun",
    "ValidationState",
    "ValidationSpec",
    # Segments and requests
    "Segment",
    "SEGMENT_ORDER",
    "SegmentedRequest",
    # Options
    "ValidationOptions",
    "CelebrateOptions",
    # Schema library
    "ValidationLibrary",
    "PydanticLibrary",
    "SchemaRunner",
    "ValidationResult",
    # Context
    "RequestContextView",
    "build_context",
    "ContextRef",
    "valid_ref",
    # Errors
    "ReqGuardError",
    "ConfigurationError",
    "SegmentValidationError",
    "is_validation_error",
    "wrap",
    # Logging
    "TRACE",
]
