"""Validation orchestrator.

build_validator turns a segment -> schema spec into a SegmentValidator.
The validator runs declared segments in the fixed segment order, writes
each validated value back onto the request, and stops at the first
failure:

    validator = build_validator(
        {Segment.PARAMS: {"id": int}, Segment.BODY: {"name": str}},
        {"allowUnknown": True},
    )
    validator(request, handler)  # raises SegmentValidationError or calls handler

The validator holds only immutable data built at construction, so one
instance can serve any number of concurrent requests.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, TypeVar

from .applier import apply_result
from .context import build_context
from .errors import ConfigurationError, SegmentValidationError, wrap
from .logging_config import TRACE
from .options import CelebrateOptions, ValidationOptions, coerce_options
from .runner import PydanticLibrary, SchemaRunner, ValidationLibrary
from .segments import SEGMENT_ORDER, Segment, read_segment

logger = logging.getLogger(__name__)

T = TypeVar("T")

ValidationSpec = Mapping[Segment | str, Any]


class ValidationState(Enum):
    """States of a single request's validation run."""

    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"


@dataclass
class ValidationRun:
    """Record of validating one request."""

    state: ValidationState = ValidationState.PENDING
    validated: list[Segment] = field(default_factory=list)
    error: SegmentValidationError | None = None

    @property
    def failed_segment(self) -> Segment | None:
        return self.error.segment if self.error is not None else None


def _normalize_spec(spec: ValidationSpec) -> dict[Segment, Any]:
    if not isinstance(spec, Mapping):
        raise ConfigurationError(f"Validation spec must be a mapping of segments to schemas, got {type(spec).__name__}")
    if not spec:
        raise ConfigurationError("Validation spec must declare at least one segment")

    normalized: dict[Segment, Any] = {}
    for key, schema in spec.items():
        segment = Segment.resolve(key)
        if segment in normalized:
            raise ConfigurationError(f"Segment {segment} declared more than once (key {key!r})")
        normalized[segment] = schema
    return normalized


class SegmentValidator:
    """Middleware validating request segments against their schemas.

    Build with build_validator(). Calling the validator with a request and
    the next handler either raises SegmentValidationError for the first
    failing segment or returns next handler's result.
    """

    def __init__(
        self,
        spec: ValidationSpec,
        validation_options: ValidationOptions | Mapping[str, Any] | None = None,
        celebrate_options: CelebrateOptions | Mapping[str, Any] | None = None,
        library: ValidationLibrary | None = None,
    ):
        self.validation_options = coerce_options(validation_options, ValidationOptions)
        self.celebrate_options = coerce_options(celebrate_options, CelebrateOptions)
        self.library = library if library is not None else PydanticLibrary()
        self.runner = SchemaRunner(self.library)

        declared = _normalize_spec(spec)
        compiled = {}
        for segment in SEGMENT_ORDER:
            if segment in declared:
                try:
                    compiled[segment] = self.library.compile(declared[segment], self.validation_options)
                except ConfigurationError as e:
                    raise ConfigurationError(f"Invalid schema for {segment}: {e}") from e
        self.schemas: Mapping[Segment, Any] = MappingProxyType(compiled)

        logger.info(
            f"Validator built for segments {[str(s) for s in self.segments]} "
            f"(req_context={self.celebrate_options.req_context})"
        )

    @property
    def segments(self) -> tuple[Segment, ...]:
        """Declared segments in evaluation order."""
        return tuple(self.schemas)

    def validate(self, request: Any) -> ValidationRun:
        """Validate every declared segment of a request, stopping at the first failure.

        Args:
            request: Object exposing segment attributes (headers, params, ...)

        Returns:
            ValidationRun in SUCCESS or FAILED state. On success the request's
            declared segments hold their validated values.
        """
        run = ValidationRun()
        context = build_context(request, self.celebrate_options, self.validation_options)

        for segment, schema in self.schemas.items():
            raw = read_segment(request, segment)
            logger.debug(f"Validating {segment}")
            result = self.runner.run(raw, schema, self.validation_options, context)

            if not result.ok:
                assert result.error is not None
                run.error = wrap(segment, result.error, abort_early=self.validation_options.abort_early)
                run.state = ValidationState.FAILED
                logger.info(f"Request validation failed at {segment}: keys={run.error.keys}")
                return run

            apply_result(request, segment, result.value)
            run.validated.append(segment)

        run.state = ValidationState.SUCCESS
        logger.log(TRACE, f"Request validated: {[str(s) for s in run.validated]}")
        return run

    def __call__(self, request: Any, call_next: Callable[[Any], T]) -> T:
        """Validate the request, then hand it to the next handler.

        Raises:
            SegmentValidationError: For the first segment that fails; the
                next handler is not called
        """
        run = self.validate(request)
        if run.error is not None:
            raise run.error
        return call_next(request)

    def __repr__(self) -> str:
        return f"SegmentValidator(segments={[str(s) for s in self.segments]})"


def build_validator(
    spec: ValidationSpec,
    validation_options: ValidationOptions | Mapping[str, Any] | None = None,
    celebrate_options: CelebrateOptions | Mapping[str, Any] | None = None,
    *,
    library: ValidationLibrary | None = None,
) -> SegmentValidator:
    """Build a validator middleware for a route.

    Args:
        spec: Mapping of segments (or their string aliases) to schemas
        validation_options: Options forwarded to the schema library
        celebrate_options: Orchestration options ({"req_context": True})
        library: Schema library adapter (defaults to PydanticLibrary)

    Returns:
        SegmentValidator usable as middleware

    Raises:
        ConfigurationError: If the spec, a schema or the options are invalid
    """
    return SegmentValidator(spec, validation_options, celebrate_options, library=library)


celebrate = build_validator
