"""Write validated segment values back onto the request."""

from __future__ import annotations

import logging
from typing import Any

from .logging_config import TRACE
from .segments import Segment, attribute_for

logger = logging.getLogger(__name__)


def apply_result(request: Any, segment: Segment, value: Any) -> None:
    """Replace a segment's raw value with its validated value.

    This is the only place the validator mutates a request. The old value
    is replaced, not merged into, so handlers never see raw input for a
    validated segment.
    """
    attribute = attribute_for(segment)
    setattr(request, attribute, value)
    logger.log(TRACE, f"Applied validated {segment} to request.{attribute}")
