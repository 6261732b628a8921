"""Tests for SchemaRunner and the pydantic schema library adapter."""

from __future__ import annotations

from typing import Annotated
from unittest.mock import Mock

import pytest
from pydantic import BaseModel, ConfigDict, Field, StringConstraints, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from reqguard.errors import ConfigurationError
from reqguard.options import ValidationOptions
from reqguard.runner import PydanticLibrary, SchemaRunner, ValidationResult

Upper = Annotated[str, StringConstraints(to_upper=True)]


@pytest.fixture
def library():
    return PydanticLibrary()


@pytest.fixture
def runner(library):
    return SchemaRunner(library)


def _run(runner, library, schema, value, context=None, **options):
    opts = ValidationOptions(**options)
    return runner.run(value, library.compile(schema, opts), opts, context)


class TestDictShorthand:
    """Tests for dict shorthand schemas."""

    def test_coerces_and_fills_defaults(self, runner, library):
        result = _run(runner, library, {"name": Upper, "page": (int, 1)}, {"name": "john"})

        assert result.ok
        assert result.value == {"name": "JOHN", "page": 1}

    def test_numeric_string_becomes_number(self, runner, library):
        result = _run(runner, library, {"id": int}, {"id": "12345"})
        assert result.value == {"id": 12345}

    def test_rejects_unknown_keys_by_default(self, runner, library):
        result = _run(runner, library, {"first": str}, {"first": "john", "role": "admin"})

        assert not result.ok
        assert isinstance(result.error, PydanticValidationError)

    def test_allow_unknown_keeps_extra_keys(self, runner, library):
        result = _run(
            runner,
            library,
            {"first": str, "last": (str, "Smith")},
            {"first": "john", "role": "admin"},
            allow_unknown=True,
        )
        assert result.value == {"first": "john", "role": "admin", "last": "Smith"}

    def test_strip_unknown_drops_extra_keys(self, runner, library):
        result = _run(runner, library, {"first": str}, {"first": "john", "role": "admin"}, strip_unknown=True)
        assert result.value == {"first": "john"}

    def test_strip_unknown_wins_over_allow_unknown(self, runner, library):
        result = _run(
            runner, library, {"first": str}, {"first": "john", "x": 1}, allow_unknown=True, strip_unknown=True
        )
        assert result.value == {"first": "john"}

    def test_dashed_keys(self, runner, library, sample_headers):
        schema = {"accept": str, "secret-header": (str, "@@@@@@")}
        result = _run(runner, library, schema, sample_headers, allow_unknown=True)

        assert result.value == {**sample_headers, "secret-header": "@@@@@@"}

    def test_dashed_key_error_location_uses_original_name(self, runner, library):
        result = _run(runner, library, {"x-request-id": int}, {"x-request-id": "abc"})
        assert result.error.errors()[0]["loc"] == ("x-request-id",)

    def test_keys_colliding_with_model_attributes(self, runner, library):
        schema = {"json": str, "schema": int, "model_x": str}
        result = _run(runner, library, schema, {"json": "a", "schema": "1", "model_x": "b"})
        assert result.value == {"json": "a", "schema": 1, "model_x": "b"}

    def test_nested_dict(self, runner, library):
        schema = {"user": {"name": str, "age": int}}
        result = _run(runner, library, schema, {"user": {"name": "ana", "age": "30"}})
        assert result.value == {"user": {"name": "ana", "age": 30}}

    def test_nested_dict_is_optional(self, runner, library):
        schema = {"first": str, "address": {"city": (str, "x")}}
        result = _run(runner, library, schema, {"first": "john"})

        assert result.ok
        assert result.value == {"first": "john"}

    def test_absent_optional_left_out(self, runner, library):
        result = _run(runner, library, {"first": str, "role": (str | None, None)}, {"first": "john"})
        assert result.value == {"first": "john"}

    def test_explicit_none_kept(self, runner, library):
        result = _run(runner, library, {"first": str, "role": (str | None, None)}, {"first": "john", "role": None})
        assert result.value == {"first": "john", "role": None}

    def test_absent_optional_left_out_of_nested(self, runner, library):
        schema = {"user": {"name": str, "nickname": (str | None, None)}}
        result = _run(runner, library, schema, {"user": {"name": "ana"}})
        assert result.value == {"user": {"name": "ana"}}

    def test_non_none_defaults_still_filled(self, runner, library):
        result = _run(runner, library, {"page": (int, 1), "sort": (str | None, None)}, {})
        assert result.value == {"page": 1}

    def test_model_schemas_keep_none_defaults(self, runner, library):
        class Body(BaseModel):
            role: str | None = None

        result = _run(runner, library, Body, {})
        assert result.value == {"role": None}

    def test_field_info_default(self, runner, library):
        result = _run(runner, library, {"limit": (int, Field(default=10, le=100))}, {})
        assert result.value == {"limit": 10}

        result = _run(runner, library, {"limit": (int, Field(default=10, le=100))}, {"limit": "500"})
        assert not result.ok

    def test_strict_when_convert_disabled(self, runner, library):
        result = _run(runner, library, {"id": int}, {"id": "12"}, convert=False)
        assert not result.ok

    def test_does_not_mutate_input(self, runner, library):
        raw = {"name": "john"}
        result = _run(runner, library, {"name": Upper, "page": (int, 1)}, raw)

        assert raw == {"name": "john"}
        assert result.value is not raw


class TestModelSchemas:
    """Tests for BaseModel and other schema kinds."""

    def test_model_schema_dumps_by_alias(self, runner, library):
        class Query(BaseModel):
            page_size: int = Field(default=20, alias="pageSize")

        result = _run(runner, library, Query, {"pageSize": "50"})
        assert result.value == {"pageSize": 50}

    def test_model_keeps_own_extra_policy(self, runner, library):
        class Body(BaseModel):
            model_config = ConfigDict(extra="forbid")
            name: str

        result = _run(runner, library, Body, {"name": "a", "b": 1})
        assert not result.ok

    def test_allow_unknown_overrides_model_policy(self, runner, library):
        class Body(BaseModel):
            name: str

        result = _run(runner, library, Body, {"name": "a", "b": 1}, allow_unknown=True)
        assert result.value == {"name": "a", "b": 1}

    def test_type_adapter_schema(self, runner, library):
        result = _run(runner, library, TypeAdapter(list[int]), ["1", "2"])
        assert result.value == [1, 2]

    def test_plain_type_schema(self, runner, library):
        result = _run(runner, library, list[int], ["1", 2])
        assert result.value == [1, 2]

    def test_context_reaches_validators(self, runner, library):
        from pydantic import ValidationInfo, field_validator

        class Body(BaseModel):
            id: int

            @field_validator("id")
            @classmethod
            def matches_context(cls, v: int, info: ValidationInfo) -> int:
                if v != info.context["expected"]:
                    raise ValueError("mismatch")
                return v

        assert _run(runner, library, Body, {"id": 5}, context={"expected": 5}).ok
        assert not _run(runner, library, Body, {"id": 5}, context={"expected": 6}).ok


class TestCompile:
    """Tests for schema compilation errors."""

    @pytest.mark.parametrize("schema", [None, 42, "int", b"x", True])
    def test_rejects_non_schemas(self, library, schema):
        with pytest.raises(ConfigurationError):
            library.compile(schema, ValidationOptions())

    def test_rejects_non_string_keys(self, library):
        with pytest.raises(ConfigurationError, match="non-empty strings"):
            library.compile({1: int}, ValidationOptions())

    def test_rejects_malformed_field_tuple(self, library):
        with pytest.raises(ConfigurationError, match="annotation, default"):
            library.compile({"a": (int, 1, 2)}, ValidationOptions())


class TestSchemaRunner:
    """Tests for SchemaRunner error capture."""

    def test_returns_library_result(self):
        library = Mock()
        library.validate.return_value = ValidationResult.success({"a": 1})
        runner = SchemaRunner(library)

        result = runner.run({"a": "1"}, "compiled", ValidationOptions(), None)

        assert result.value == {"a": 1}
        library.validate.assert_called_once()

    def test_unexpected_library_exception_becomes_error(self):
        library = Mock()
        library.validate.side_effect = TypeError("malformed schema object")
        runner = SchemaRunner(library)

        result = runner.run({}, "compiled", ValidationOptions(), None)

        assert not result.ok
        assert isinstance(result.error, TypeError)

    def test_validator_raising_type_error_is_captured(self, runner, library):
        from pydantic import field_validator

        class Body(BaseModel):
            n: int

            @field_validator("n")
            @classmethod
            def boom(cls, v: int) -> int:
                raise TypeError("unexpected")

        result = _run(runner, library, Body, {"n": 1})
        assert not result.ok
        assert isinstance(result.error, TypeError)


class TestValidationResult:
    """Tests for ValidationResult."""

    def test_success(self):
        result = ValidationResult.success(0)
        assert result.ok
        assert result.value == 0

    def test_failure(self):
        error = ValueError("x")
        result = ValidationResult.failure(error)
        assert not result.ok
        assert result.error is error
