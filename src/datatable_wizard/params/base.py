"""Data models for query/URL parameters and the results built from them.

The converter, URL resolver and conflict validator all exchange these
models, so the editors and the fetch layer see a single shape.
"""

from typing import Literal

from pydantic import BaseModel, field_validator

ParamFormat = Literal["json", "queryString", "unknown"]


def stringify(value) -> str:
    """Render a JSON scalar the way it appears in a query string."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


class Parameter(BaseModel):
    """A single key/value parameter as edited by the user."""

    key: str
    value: str = ""
    enabled: bool = True  # only default query params ever turn this off

    @field_validator("key", "value", mode="before")
    @classmethod
    def _coerce_str(cls, v):
        return stringify(v)

    @property
    def has_key(self) -> bool:
        return bool(self.key.strip())

    @property
    def is_active(self) -> bool:
        """True when the parameter takes part in requests and conflict checks."""
        return self.enabled and self.has_key


class ValidationResult(BaseModel):
    valid: bool
    errors: list[str] = []
    warnings: list[str] = []


class ParseResult(BaseModel):
    """Outcome of parsing pasted text of unknown format."""

    params: list[Parameter] = []
    format: ParamFormat = "unknown"
    errors: list[str] = []


class UrlReplacement(BaseModel):
    url: str
    missing: list[str] = []
    unused: list[str] = []
    errors: list[str] = []


class ParamLocation(BaseModel):
    array_index: int
    value: str


class DuplicateDetail(BaseModel):
    count: int
    locations: list[ParamLocation]


class DuplicateReport(BaseModel):
    has_duplicates: bool
    duplicates: list[str] = []
    details: dict[str, DuplicateDetail] = {}


class ConflictReport(ValidationResult):
    duplicates: list[str] = []
