"""Models for mapping an API response onto table rows."""

from typing import Literal

from datatable_wizard.base import CamelModel


class MappingConfig(CamelModel):
    """Where the items list and the total count live in a response.

    Paths use dot notation, e.g. ``data.items`` or ``meta.pagination.total``.
    """

    data_key: str = ""
    total_key: str = ""
    total_source: Literal["body", "header"] = "body"


class MappingValidation(CamelModel):
    items_found: bool = False
    items_count: int = 0
    items_is_array: bool = False
    total_found: bool = False
    total_value: int | None = None
    errors: list[str] = []
    warnings: list[str] = []
