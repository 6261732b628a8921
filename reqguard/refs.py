"""Cross-segment references resolved through the validation context.

A schema for one segment can require a field to equal a value from another
segment, e.g. a body id that must match the path parameter:

    body_schema = {"id": Annotated[int, valid_ref("$params.userId")]}

References are resolved against the context the validator passes to the
schema library. Without request context they cannot be resolved and the
field fails validation.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from pydantic import AfterValidator, ValidationInfo
from pydantic_core import PydanticCustomError

_MISSING = object()


@dataclass(frozen=True)
class ContextRef:
    """A dotted path into the validation context ("$params.userId")."""

    path: str

    def __post_init__(self) -> None:
        if not self.parts:
            raise ValueError(f"Empty context reference: {self.path!r}")

    @property
    def parts(self) -> tuple[str, ...]:
        return tuple(part for part in self.path.removeprefix("$").split(".") if part)

    def resolve(self, context: Any) -> Any:
        """Look the reference up in a context.

        Raises:
            LookupError: If there is no context or the path does not exist
        """
        if context is None:
            raise LookupError(f"{self} cannot be resolved without a validation context")

        current = context
        for part in self.parts:
            if isinstance(current, Mapping):
                current = current.get(part, _MISSING)
            else:
                current = getattr(current, part, _MISSING)
            if current is _MISSING:
                raise LookupError(f"{self} does not exist in the validation context")
        return current

    def __str__(self) -> str:
        return "$" + ".".join(self.parts)


def valid_ref(*refs: str | ContextRef) -> AfterValidator:
    """Build a validator allowing only values equal to one of the references.

    The comparison uses the already-validated value of the field, so a
    coerced number compares equal to a coerced path parameter.
    """
    targets = tuple(ref if isinstance(ref, ContextRef) else ContextRef(ref) for ref in refs)
    if not targets:
        raise ValueError("valid_ref() needs at least one reference")

    def check(value: Any, info: ValidationInfo) -> Any:
        allowed = []
        for target in targets:
            try:
                allowed.append(target.resolve(info.context))
            except LookupError as e:
                raise PydanticCustomError("ref_unresolved", "{reason}", {"reason": str(e)}) from e
        if value not in allowed:
            raise PydanticCustomError(
                "ref_mismatch",
                "Value must match {refs}",
                {"refs": ", ".join(str(target) for target in targets)},
            )
        return value

    return AfterValidator(check)
