"""Run one segment through its schema.

The validator talks to the schema library only through the
ValidationLibrary protocol: schemas are compiled once when a validator is
built and validated once per request and segment. PydanticLibrary is the
default implementation.
"""

from __future__ import annotations

import keyword
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Annotated, Any, Literal, Protocol

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, create_model
from pydantic import ValidationError as PydanticValidationError
from pydantic.fields import FieldInfo

from .errors import ConfigurationError

if TYPE_CHECKING:
    from .options import ValidationOptions

logger = logging.getLogger(__name__)

ExtraPolicy = Literal["allow", "ignore", "forbid"]


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating one segment: a value or an error, never both."""

    value: Any = None
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: Any) -> ValidationResult:
        return cls(value=value)

    @classmethod
    def failure(cls, error: BaseException) -> ValidationResult:
        return cls(error=error)


class ValidationLibrary(Protocol):
    """Capability interface every schema library adapter provides."""

    def compile(self, schema: Any, options: ValidationOptions) -> Any:
        """Prepare a schema for repeated validation.

        Raises:
            ConfigurationError: If the schema cannot be used
        """
        ...

    def validate(
        self, value: Any, compiled: Any, options: ValidationOptions, context: Mapping[str, Any] | None
    ) -> ValidationResult:
        """Validate a value, returning the coerced value or the violation."""
        ...


@dataclass(frozen=True)
class CompiledSchema:
    """A pydantic model or type adapter ready to validate segment values."""

    model: type[BaseModel] | None = None
    adapter: TypeAdapter[Any] | None = None
    shorthand: bool = False


def _extra_policy(options: ValidationOptions) -> ExtraPolicy | None:
    if options.strip_unknown:
        return "ignore"
    if options.allow_unknown:
        return "allow"
    if options.allow_unknown is False or options.strip_unknown is False:
        return "forbid"
    return None


class PydanticLibrary:
    """ValidationLibrary backed by pydantic v2.

    Accepted schemas:
    - a BaseModel subclass
    - a TypeAdapter instance
    - a dict shorthand mapping keys to an annotation, a nested dict, or an
      (annotation, default) pair where default may be a Field(...)
    - any other type pydantic can adapt (list[int], a TypedDict, ...)

    Dict shorthand keys may be any string ("secret-header"). Unknown keys
    are rejected unless allow_unknown or strip_unknown is set; models keep
    their own extra policy unless one of those options is given. Nested
    dicts are optional, and shorthand fields defaulting to None are left
    out of the result when the input omits them.
    """

    def compile(self, schema: Any, options: ValidationOptions) -> CompiledSchema:
        if schema is None or isinstance(schema, str | bytes | int | float | bool):
            raise ConfigurationError(f"Invalid schema: {schema!r} is not a schema")

        try:
            if isinstance(schema, TypeAdapter):
                return CompiledSchema(adapter=schema)
            if isinstance(schema, Mapping):
                model = self._model_from_fields(schema, _extra_policy(options) or "forbid")
                return CompiledSchema(model=model, shorthand=True)
            if isinstance(schema, type) and issubclass(schema, BaseModel):
                return CompiledSchema(model=self._with_extra(schema, _extra_policy(options)))
            return CompiledSchema(adapter=TypeAdapter(schema))
        except ConfigurationError:
            raise
        except Exception as e:
            raise ConfigurationError(f"Invalid schema {schema!r}: {e}") from e

    def validate(
        self,
        value: Any,
        compiled: CompiledSchema,
        options: ValidationOptions,
        context: Mapping[str, Any] | None,
    ) -> ValidationResult:
        strict = not options.convert
        try:
            if compiled.model is not None:
                instance = compiled.model.model_validate(value, strict=strict, context=context)
                exclude = _absent_optionals(instance) if compiled.shorthand else None
                return ValidationResult.success(instance.model_dump(by_alias=True, exclude=exclude or None))
            assert compiled.adapter is not None
            return ValidationResult.success(compiled.adapter.validate_python(value, strict=strict, context=context))
        except PydanticValidationError as e:
            return ValidationResult.failure(e)

    def _model_from_fields(
        self, fields: Mapping[Any, Any], extra: ExtraPolicy, name: str = "InlineSchema"
    ) -> type[BaseModel]:
        definitions: dict[str, Any] = {}
        for index, (key, spec) in enumerate(fields.items()):
            if not isinstance(key, str) or not key:
                raise ConfigurationError(f"Schema keys must be non-empty strings, got {key!r}")
            field_name = _field_name(key)
            if field_name is None or field_name in definitions:
                field_name = f"field_{index}"
            definitions[field_name] = self._field_definition(key, spec, extra, f"{name}_{index}")
        return create_model(name, __config__=ConfigDict(extra=extra), **definitions)

    def _field_definition(self, key: str, spec: Any, extra: ExtraPolicy, nested_name: str) -> tuple[Any, Any]:
        if isinstance(spec, Mapping):
            annotation, default = self._model_from_fields(spec, extra, name=nested_name) | None, None
        elif isinstance(spec, tuple):
            if len(spec) != 2:
                raise ConfigurationError(f"Field {key!r} must be (annotation, default), got {spec!r}")
            annotation, default = spec
        elif isinstance(spec, FieldInfo):
            annotation, default = Any, spec
        else:
            annotation, default = spec, ...
        return Annotated[annotation, Field(alias=key)], default

    def _with_extra(self, model: type[BaseModel], extra: ExtraPolicy | None) -> type[BaseModel]:
        if extra is None or model.model_config.get("extra") == extra:
            return model
        namespace = {
            "__module__": model.__module__,
            "__qualname__": model.__qualname__,
            "model_config": ConfigDict(extra=extra),
        }
        return type(model.__name__, (model,), namespace)


def _field_name(key: str) -> str | None:
    # Keys are exposed through aliases; internal names only need to be valid
    name = key.replace("-", "_")
    if not name.isidentifier() or keyword.iskeyword(name) or name.startswith(("_", "model_", "field_")):
        return None
    if hasattr(BaseModel, name):
        return None
    return name


def _absent_optionals(instance: BaseModel) -> dict[str, Any]:
    """Exclude spec for optional fields the input left out, nested included."""
    exclude: dict[str, Any] = {}
    for name, info in type(instance).model_fields.items():
        if name not in instance.model_fields_set:
            if not info.is_required() and info.default is None:
                exclude[name] = True
            continue
        value = getattr(instance, name)
        if isinstance(value, BaseModel):
            nested = _absent_optionals(value)
            if nested:
                exclude[name] = nested
    return exclude


class SchemaRunner:
    """Validate one segment value with one compiled schema."""

    def __init__(self, library: ValidationLibrary):
        self.library = library

    def run(
        self,
        value: Any,
        schema: Any,
        options: ValidationOptions,
        context: Mapping[str, Any] | None = None,
    ) -> ValidationResult:
        """Run the schema library, never raising.

        Args:
            value: Raw segment value (left untouched)
            schema: Schema compiled by the library
            options: Shared validation options
            context: Validation context, if any

        Returns:
            ValidationResult with the coerced value, or with the library's
            error. Unexpected library exceptions are returned as errors too.
        """
        try:
            return self.library.validate(value, schema, options, context)
        except Exception as e:
            logger.warning(f"Schema library raised {type(e).__name__} outside constraint checking: {e}")
            return ValidationResult.failure(e)
