from __future__ import annotations

import json
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Rule(BaseModel):
    """
    A named, storable condition tree.

    ``conditions`` is kept as raw JSON (a condition, a list of conditions or a
    rule reference string). Stored records hold it as serialized JSON text,
    which is parsed on load.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str | None = None
    label: str = ""
    conditions: Any = None
    last_modified: datetime | None = Field(default=None, alias="lastModified")

    @field_validator("conditions", mode="before")
    @classmethod
    def parse_stored_conditions(cls, v: Any) -> Any:
        """Decode conditions stored as JSON text; a bare identifier is left as a reference."""
        if isinstance(v, str) and v.lstrip()[:1] in ("{", "["):
            try:
                return json.loads(v)
            except json.JSONDecodeError as e:
                raise ValueError(f"conditions is not valid JSON: {e.msg}") from e
        return v

    def to_wire(self) -> dict[str, Any]:
        """Render the rule in its JSON wire shape."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ValidationIssue(BaseModel):
    """First defect found in a rule."""

    model_config = ConfigDict(frozen=True)

    message: str
    element: Any = None
    path: str = Field(default="$", description="Location of the offending node")


class ValidationResult(BaseModel):
    """Outcome of Validator.validate; ``error`` is set only when invalid."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    is_valid: bool = Field(..., alias="isValid")
    error: ValidationIssue | None = None

    @classmethod
    def ok(cls) -> ValidationResult:
        return cls(is_valid=True)

    @classmethod
    def fail(cls, message: str, element: Any, path: str = "$") -> ValidationResult:
        issue = ValidationIssue(message=message, element=element, path=path)
        return cls(is_valid=False, error=issue)

    def merge(self, other: ValidationResult) -> ValidationResult:
        """AND the validity of both results, keeping the earliest error."""
        return ValidationResult(
            is_valid=self.is_valid and other.is_valid,
            error=self.error if self.error is not None else other.error,
        )

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)
