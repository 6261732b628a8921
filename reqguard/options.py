"""Option models for building validators.

Both option sets are frozen and built once per route, then shared by every
request that route serves. Plain dicts are accepted wherever options are,
with snake_case or the camelCase spelling ("allowUnknown", "reqContext").
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from .errors import ConfigurationError
from .settings import get_settings

OptionsT = TypeVar("OptionsT", bound=BaseModel)


class ValidationOptions(BaseModel):
    """Options forwarded to the schema library for every segment."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    allow_unknown: bool | None = Field(default=None, alias="allowUnknown")
    strip_unknown: bool | None = Field(default=None, alias="stripUnknown")
    abort_early: bool = Field(default_factory=lambda: get_settings().abort_early, alias="abortEarly")
    convert: bool = Field(default_factory=lambda: get_settings().convert)
    context: Mapping[str, Any] | None = None


class CelebrateOptions(BaseModel):
    """Options understood by the validator itself."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    req_context: bool = Field(default_factory=lambda: get_settings().req_context, alias="reqContext")


def coerce_options(options: OptionsT | Mapping[str, Any] | None, model: type[OptionsT]) -> OptionsT:
    """Turn None, a dict or an options instance into an options instance.

    Raises:
        ConfigurationError: If the options contain unknown keys or bad values
    """
    if options is None:
        return model()
    if isinstance(options, model):
        return options
    if isinstance(options, Mapping):
        try:
            return model.model_validate(dict(options))
        except PydanticValidationError as e:
            raise ConfigurationError(f"Invalid {model.__name__}: {e}") from e
    raise ConfigurationError(f"{model.__name__} must be a mapping, got {type(options).__name__}")
