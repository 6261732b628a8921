"""Mutable request model used by the validator."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class SegmentedRequest:
    """A request split into its validatable segments.

    Validation replaces segment attributes in place, so after a successful
    run every declared segment holds its validated value.
    """

    headers: dict[str, Any] = field(default_factory=dict)
    params: dict[str, Any] = field(default_factory=dict)
    query: dict[str, Any] = field(default_factory=dict)
    cookies: dict[str, Any] = field(default_factory=dict)
    signed_cookies: dict[str, Any] = field(default_factory=dict)
    body: Any = field(default_factory=dict)
    method: str = "GET"
    path: str = "/"
