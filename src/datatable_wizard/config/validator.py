"""Validation of a complete table configuration.

Covers the endpoint URL, columns, pagination and events. JSON pasted into
the configuration editor is checked here too, before it replaces the
current configuration.
"""

import json

from pydantic import BaseModel, ValidationError

from datatable_wizard.config.models import (
    ORDER_FORMATS,
    SORTING_MODES,
    Column,
    Configuration,
    Events,
    Pagination,
    RenderConfig,
    Sorting,
)
from datatable_wizard.params.base import ValidationResult
from datatable_wizard.service.url_check import validate_url


class JsonConfigResult(BaseModel):
    valid: bool
    errors: list[str] = []
    config: Configuration | None = None


class ColumnsJsonResult(BaseModel):
    valid: bool
    errors: list[str] = []
    data: list[Column] | None = None


def validate_configuration(config: Configuration) -> ValidationResult:
    errors = []
    warnings = []

    if not config.api_endpoint.strip():
        errors.append("The API endpoint is required")
    else:
        url_check = validate_url(config.api_endpoint)
        if not url_check.valid:
            errors.append(url_check.error or "A valid API endpoint is required")
        elif url_check.warning:
            warnings.append(url_check.warning)

    errors.extend(validate_columns(config.columns).errors)
    errors.extend(_validate_pagination(config.pagination))
    errors.extend(_validate_events(config.events))

    return ValidationResult(valid=not errors, errors=errors, warnings=warnings)


def _validate_pagination(pagination: Pagination) -> list[str]:
    if not 1 <= pagination.page_size <= 1000:
        return ["Page size must be between 1 and 1000"]
    return []


def _validate_events(events: Events) -> list[str]:
    errors = []
    if events.on_row_click.enabled and not events.on_row_click.code:
        errors.append("Row click event code is required when the event is enabled")
    errors.extend(_validate_sorting(events.sorting))
    return errors


def _validate_sorting(sorting: Sorting) -> list[str]:
    errors = []

    if sorting.mode and sorting.mode not in SORTING_MODES:
        errors.append(f"Invalid sorting mode: {sorting.mode}")

    server = sorting.server_config
    if sorting.mode == "server" and server is not None:
        if not server.column_param.strip():
            errors.append("Column parameter is required for server-side sorting")
        if not server.order_param.strip():
            errors.append("Order parameter is required for server-side sorting")
        if server.order_format and server.order_format not in ORDER_FORMATS:
            errors.append(f"Invalid order format: {server.order_format}")
        if server.order_values is not None:
            if not server.order_values.ascend:
                errors.append("Ascending order value is required")
            if not server.order_values.descend:
                errors.append("Descending order value is required")

    return errors


def validate_column(column: Column, index: int = 0) -> list[str]:
    errors = []
    label = f"Column {index + 1}"

    if not column.title.strip():
        errors.append(f"{label}: title is required")
    if not column.data_index.strip():
        errors.append(f"{label}: data field is required")
    if column.width is not None and not 50 <= column.width <= 1000:
        errors.append(f"{label}: width must be between 50 and 1000 pixels")
    if column.render is not None:
        errors.extend(_validate_render_config(column.render, label))

    return errors


def _validate_render_config(render: RenderConfig, label: str) -> list[str]:
    errors = []
    if not render.type:
        errors.append(f"{label}: renderer type is required")
    if render.type == "date":
        fmt = render.config.get("format")
        if fmt is not None and not isinstance(fmt, str):
            errors.append(f"{label}: invalid date format")
    return errors


def validate_columns(columns: list[Column]) -> ValidationResult:
    errors = []
    if not columns:
        errors.append("At least one column must be configured")

    for index, column in enumerate(columns):
        errors.extend(validate_column(column, index))

    seen = set()
    duplicates = []
    for column in columns:
        if column.data_index in seen and column.data_index not in duplicates:
            duplicates.append(column.data_index)
        if column.data_index:
            seen.add(column.data_index)
    if duplicates:
        errors.append(f"Duplicate data fields found: {', '.join(duplicates)}")

    return ValidationResult(valid=not errors, errors=errors)


def _format_validation_error(error: ValidationError) -> list[str]:
    messages = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"])
        messages.append(f"{location}: {item['msg']}" if location else item["msg"])
    return messages


def validate_json_configuration(text: str) -> JsonConfigResult:
    """Parse and validate a configuration pasted as JSON."""
    if not text or not text.strip():
        return JsonConfigResult(valid=False, errors=["The JSON cannot be empty"])

    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as e:
        return JsonConfigResult(
            valid=False,
            errors=[
                f"JSON syntax error: {e.msg} (line {e.lineno}, column {e.colno})",
                "Check that the JSON is well formed (braces, commas, quotes)",
            ],
        )

    if not isinstance(parsed, dict):
        return JsonConfigResult(valid=False, errors=["The configuration must be a JSON object"])

    try:
        config = Configuration.model_validate(parsed)
    except ValidationError as e:
        return JsonConfigResult(valid=False, errors=_format_validation_error(e))

    structure = validate_configuration(config)
    return JsonConfigResult(valid=structure.valid, errors=structure.errors, config=config)


def validate_json_syntax(text: str) -> tuple[bool, str | None]:
    if not text or not text.strip():
        return False, "Empty JSON"
    try:
        json.loads(text)
    except json.JSONDecodeError as e:
        return False, e.msg
    return True, None


def format_configuration_as_json(config: Configuration) -> str:
    """Pretty JSON of a configuration without its timestamps."""
    return json.dumps(config.to_dict(timestamps=False), indent=2, ensure_ascii=False)


def validate_columns_json(text: str) -> ColumnsJsonResult:
    """Validate a JSON array of columns pasted into the column importer."""
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as e:
        return ColumnsJsonResult(valid=False, errors=[f"Invalid JSON: {e.msg}"])

    if not isinstance(parsed, list):
        return ColumnsJsonResult(valid=False, errors=["The JSON must be an array of columns"])

    errors = []
    for index, item in enumerate(parsed):
        if not isinstance(item, dict):
            errors.append(f"Column {index + 1}: must be an object")
            continue
        if not item.get("title"):
            errors.append(f'Column {index + 1}: the "title" field is required')
        if not item.get("dataIndex"):
            errors.append(f'Column {index + 1}: the "dataIndex" field is required')
    if errors:
        return ColumnsJsonResult(valid=False, errors=errors)

    try:
        columns = [Column.model_validate(item) for item in parsed]
    except ValidationError as e:
        return ColumnsJsonResult(valid=False, errors=_format_validation_error(e))
    return ColumnsJsonResult(valid=True, data=columns)
