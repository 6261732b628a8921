"""Validation context exposing the request to schemas.

When request context is enabled every schema of a request receives the
same RequestContextView. The view reads the request lazily, so once a
segment has been validated and applied, later segments see the validated
value instead of the raw one.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from typing import TYPE_CHECKING, Any

from .errors import ConfigurationError
from .logging_config import TRACE
from .segments import SEGMENT_ORDER, Segment, read_segment

if TYPE_CHECKING:
    from .options import CelebrateOptions, ValidationOptions

logger = logging.getLogger(__name__)


class RequestContextView(Mapping[str, Any]):
    """Read-only mapping over a live request, keyed by segment name.

    Keys are segment values ("params", "signedCookies", ...) and their
    aliases. Other public request attributes such as "method" or "path"
    can be looked up too but are not part of iteration.
    """

    __slots__ = ("_request",)

    def __init__(self, request: Any):
        self._request = request

    @property
    def request(self) -> Any:
        return self._request

    def __getitem__(self, key: str) -> Any:
        try:
            segment = Segment.resolve(key)
        except ConfigurationError:
            segment = None

        if segment is not None:
            value = read_segment(self._request, segment)
            logger.log(TRACE, f"Context lookup {key!r} -> {segment}")
            return value

        if isinstance(key, str) and not key.startswith("_") and hasattr(self._request, key):
            return getattr(self._request, key)
        raise KeyError(key)

    def __iter__(self) -> Iterator[str]:
        return (segment.value for segment in SEGMENT_ORDER)

    def __len__(self) -> int:
        return len(SEGMENT_ORDER)

    def __repr__(self) -> str:
        return f"RequestContextView({self._request!r})"


def build_context(
    request: Any,
    celebrate_options: CelebrateOptions,
    validation_options: ValidationOptions,
) -> Mapping[str, Any] | None:
    """Build the validation context for one request.

    Args:
        request: The request being validated
        celebrate_options: Orchestration options (req_context)
        validation_options: Schema options (static context fallback)

    Returns:
        A live view of the request when req_context is enabled, otherwise the
        static context from the validation options (usually None)
    """
    if celebrate_options.req_context:
        return RequestContextView(request)
    return validation_options.context
