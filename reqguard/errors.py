"""Error classes for request validation.

Configuration errors are raised while a validator is being built so a
broken route fails before it serves traffic. Segment validation errors are
raised per request and carry the failing segment and the original cause.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import ValidationError as PydanticValidationError

if TYPE_CHECKING:
    from .segments import Segment


class ReqGuardError(Exception):
    """Base exception for reqguard errors."""

    pass


class ConfigurationError(ReqGuardError, ValueError):
    """Raised when a validation spec, schema or option set is invalid."""

    pass


class SegmentValidationError(ReqGuardError):
    """Raised when a request segment fails its schema.

    Attributes:
        segment: The segment that failed
        cause: The exception reported by the schema library
        details: Violations as dicts with "loc", "msg" and "type" keys
    """

    is_validation_error = True

    def __init__(self, segment: Segment, cause: BaseException, details: list[dict[str, Any]] | None = None):
        self.segment = segment
        self.cause = cause
        self.details = details if details is not None else []
        super().__init__(self._build_message())

    def _build_message(self) -> str:
        if self.details:
            messages = []
            for detail in self.details:
                path = ".".join(str(part) for part in detail.get("loc", ()))
                messages.append(f"{path}: {detail.get('msg')}" if path else str(detail.get("msg")))
            return f"{self.segment} validation failed: " + "; ".join(messages)
        return f"{self.segment} validation failed: {self.cause}"

    @property
    def keys(self) -> list[str]:
        """Dotted paths of the offending keys, in report order."""
        keys = []
        for detail in self.details:
            path = ".".join(str(part) for part in detail.get("loc", ()))
            if path and path not in keys:
                keys.append(path)
        return keys


def _details_from(cause: BaseException) -> list[dict[str, Any]]:
    if isinstance(cause, PydanticValidationError):
        return [
            {"loc": tuple(error.get("loc", ())), "msg": error.get("msg", ""), "type": error.get("type", "")}
            for error in cause.errors(include_url=False)
        ]
    return [{"loc": (), "msg": str(cause), "type": type(cause).__name__}]


def wrap(segment: Segment, cause: BaseException, abort_early: bool = False) -> SegmentValidationError:
    """Wrap a schema library failure into a segment-tagged validation error.

    Args:
        segment: The segment whose schema failed
        cause: The exception raised or reported by the schema library
        abort_early: Keep only the first reported violation

    Returns:
        SegmentValidationError with the cause attached as __cause__
    """
    details = _details_from(cause)
    if abort_early:
        details = details[:1]
    error = SegmentValidationError(segment, cause, details)
    error.__cause__ = cause
    return error


def is_validation_error(exc: object) -> bool:
    """Check whether an error was produced by request validation."""
    return getattr(exc, "is_validation_error", False) is True
