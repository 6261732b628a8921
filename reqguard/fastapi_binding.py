"""
FastAPI binding for segment validation.

Reads a Starlette request into a SegmentedRequest, validates it, and hands
the validated request to the route handler through a dependency:

    @app.post("/users/{user_id}")
    async def update_user(
        req: SegmentedRequest = Depends(
            validate_request({Segment.PARAMS: {"user_id": int}, Segment.BODY: UserUpdate})
        ),
    ):
        return {"id": req.params["user_id"], **req.body}

A failing segment raises SegmentValidationError from the dependency, so the
handler never runs. Register reqguard.handlers.register_error_handler to
answer with 400 instead of 500.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

from fastapi import HTTPException, Request

from .options import CelebrateOptions, ValidationOptions
from .orchestrator import ValidationSpec, build_validator
from .request import SegmentedRequest
from .runner import ValidationLibrary

logger = logging.getLogger(__name__)

SignedCookieReader = Callable[[Request], Mapping[str, Any] | Awaitable[Mapping[str, Any]]]

_FORM_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


def _query_dict(request: Request) -> dict[str, Any]:
    """Flatten query params; repeated keys become lists."""
    query: dict[str, Any] = {}
    for key in request.query_params:
        values = request.query_params.getlist(key)
        query[key] = values[0] if len(values) == 1 else values
    return query


async def _read_body(request: Request) -> Any:
    content_type = request.headers.get("content-type", "").split(";")[0].strip().lower()

    if content_type in _FORM_TYPES:
        form = await request.form()
        return {key: value for key, value in form.items()}

    raw = await request.body()
    if not raw:
        return {}
    if content_type == "application/json" or content_type.endswith("+json"):
        try:
            return json.loads(raw)
        except ValueError as e:
            logger.debug(f"Malformed JSON body on {request.url.path}: {e}")
            raise HTTPException(status_code=400, detail="Malformed JSON body") from e
    return raw.decode("utf-8", errors="replace")


async def _read_signed_cookies(request: Request, reader: SignedCookieReader | None) -> dict[str, Any]:
    if reader is not None:
        cookies = reader(request)
        if isinstance(cookies, Awaitable):
            cookies = await cookies
        return dict(cookies)
    # Set by an upstream cookie-signing middleware, if any
    return dict(getattr(request.state, "signed_cookies", None) or {})


async def read_request(request: Request, signed_cookies: SignedCookieReader | None = None) -> SegmentedRequest:
    """Split a Starlette request into its segments.

    Args:
        request: Incoming request
        signed_cookies: Optional callable returning verified signed cookies

    Returns:
        SegmentedRequest holding copies of the raw segment values
    """
    return SegmentedRequest(
        headers=dict(request.headers),
        params=dict(request.path_params),
        query=_query_dict(request),
        cookies=dict(request.cookies),
        signed_cookies=await _read_signed_cookies(request, signed_cookies),
        body=await _read_body(request),
        method=request.method,
        path=request.url.path,
    )


def validate_request(
    spec: ValidationSpec,
    validation_options: ValidationOptions | Mapping[str, Any] | None = None,
    celebrate_options: CelebrateOptions | Mapping[str, Any] | None = None,
    *,
    library: ValidationLibrary | None = None,
    signed_cookies: SignedCookieReader | None = None,
) -> Callable[[Request], Awaitable[SegmentedRequest]]:
    """Build a FastAPI dependency validating the request segments.

    The validator is built immediately, so configuration errors surface
    when the route is declared.

    Returns:
        Dependency returning the validated SegmentedRequest, also stored on
        request.state.validated
    """
    validator = build_validator(spec, validation_options, celebrate_options, library=library)

    async def dependency(request: Request) -> SegmentedRequest:
        segmented = await read_request(request, signed_cookies)

        def accept(validated: SegmentedRequest) -> SegmentedRequest:
            request.state.validated = validated
            return validated

        return validator(segmented, accept)

    dependency.validator = validator  # type: ignore[attr-defined]
    return dependency


def get_validated_request(request: Request) -> SegmentedRequest:
    """
    Dependency to get the request validated earlier in the chain.

    Usage:
        @app.get("/items", dependencies=[Depends(validate_request({...}))])
        async def items(req: SegmentedRequest = Depends(get_validated_request)):
            return req.query
    """
    validated: SegmentedRequest | None = getattr(request.state, "validated", None)
    if validated is None:
        raise HTTPException(status_code=500, detail="Request was not validated")
    return validated
