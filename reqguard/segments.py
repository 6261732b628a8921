"""Request segments and where they live on a request object.

A segment is one named location of an HTTP request that can be validated
on its own. The set is closed and its declaration order is the order in
which segments are validated: producers (params) come before consumers
(body) so context references always see already-validated values.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from .errors import ConfigurationError


class Segment(str, Enum):
    """Named request locations subject to validation."""

    HEADERS = "headers"
    PARAMS = "params"
    QUERY = "query"
    COOKIES = "cookies"
    SIGNEDCOOKIES = "signedCookies"
    BODY = "body"

    @classmethod
    def resolve(cls, key: Segment | str) -> Segment:
        """Resolve a segment tag or one of its string aliases.

        Accepts the tag itself, its value ("signedCookies"), its member
        name ("SIGNEDCOOKIES") or the request attribute name
        ("signed_cookies").

        Raises:
            ConfigurationError: If the key names no segment.
        """
        if isinstance(key, Segment):
            return key
        if isinstance(key, str):
            segment = _ALIASES.get(key) or _ALIASES.get(key.lower())
            if segment is not None:
                return segment
        raise ConfigurationError(f"Unknown request segment: {key!r}. Expected one of {[s.value for s in cls]}")

    def __str__(self) -> str:
        return self.value


# Fixed evaluation order
SEGMENT_ORDER: tuple[Segment, ...] = tuple(Segment)

_ATTRIBUTES: dict[Segment, str] = {
    Segment.HEADERS: "headers",
    Segment.PARAMS: "params",
    Segment.QUERY: "query",
    Segment.COOKIES: "cookies",
    Segment.SIGNEDCOOKIES: "signed_cookies",
    Segment.BODY: "body",
}

_ALIASES: dict[str, Segment] = {}
for _segment in Segment:
    _ALIASES[_segment.value] = _segment
    _ALIASES[_segment.value.lower()] = _segment
    _ALIASES[_segment.name.lower()] = _segment
    _ALIASES[_ATTRIBUTES[_segment]] = _segment
del _segment


def attribute_for(segment: Segment) -> str:
    """Return the request attribute holding the raw value of a segment."""
    try:
        return _ATTRIBUTES[segment]
    except KeyError:
        raise ConfigurationError(f"Not a request segment: {segment!r}") from None


def read_segment(request: Any, segment: Segment) -> Any:
    """Read the current value of a segment from the request (None if absent)."""
    return getattr(request, attribute_for(segment), None)
