"""Input validation against entity schemas."""

from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

M = TypeVar("M", bound=BaseModel)

ROOT_FIELD = "_root"


@dataclass(frozen=True)
class ValidationResult(Generic[M]):
    """Outcome of one validation: the parsed model or field-level messages."""

    value: M | None = None
    errors: dict[str, list[str]] = field(default_factory=dict)

    @property
    def valid(self) -> bool:
        return self.value is not None and not self.errors


def error_messages(exc: PydanticValidationError) -> dict[str, list[str]]:
    """Group pydantic errors by dotted field path."""
    errors: dict[str, list[str]] = {}
    for error in exc.errors():
        path = ".".join(str(part) for part in error["loc"]) or ROOT_FIELD
        errors.setdefault(path, []).append(error["msg"])
    return errors


class Validator:
    def validate(self, schema: type[M], data: Any) -> ValidationResult[M]:
        if not isinstance(data, dict):
            return ValidationResult(errors={ROOT_FIELD: ["Expected a JSON object."]})
        try:
            return ValidationResult(value=schema.model_validate(data))
        except PydanticValidationError as e:
            return ValidationResult(errors=error_messages(e))
