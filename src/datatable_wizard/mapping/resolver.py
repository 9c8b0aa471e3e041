"""Response mapping resolver.

Locates the items list and total count inside an arbitrary JSON response
using dot-notation paths. Nothing here raises on unexpected response shapes;
problems are reported as errors and warnings in a MappingValidation.
"""

import math
import re

from datatable_wizard.mapping.base import MappingConfig, MappingValidation
from datatable_wizard.params.base import ValidationResult

_PATH_CHARS = re.compile(r"[a-zA-Z0-9._]*")
_LEADING_INT = re.compile(r"\s*([+-]?[0-9]+)")


def get_nested_value(obj, path: str):
    """Follow ``path`` through dicts (by key) and lists (by index).

    Returns None as soon as a step is missing or null. An empty path
    returns ``obj`` itself.
    """
    if not path:
        return obj

    current = obj
    for key in path.split("."):
        if isinstance(current, dict):
            current = current.get(key)
        elif isinstance(current, list) and key.isdigit():
            index = int(key)
            current = current[index] if index < len(current) else None
        else:
            return None
        if current is None:
            return None
    return current


def json_type(value) -> str:
    """Name of the JSON type of a decoded value."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    return "object"


def coerce_count(value) -> int | None:
    """Read a record count the way parseInt(value, 10) would.

    Returns None for anything that is not a non-negative integer.
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        number = value
    elif isinstance(value, float):
        if not math.isfinite(value):
            return None
        number = int(value)
    elif isinstance(value, str):
        match = _LEADING_INT.match(value)
        if not match:
            return None
        number = int(match.group(1))
    else:
        return None
    return number if number >= 0 else None


def _is_missing(data) -> bool:
    if isinstance(data, (dict, list)):
        return False
    return not data


def validate_mapping(response_data, items_path: str, total_path: str = "") -> MappingValidation:
    """Check the mapping paths against a real response."""
    result = MappingValidation()

    if _is_missing(response_data):
        result.errors.append("Response data is not available for validation")
        return result

    try:
        if items_path:
            items = get_nested_value(response_data, items_path)
            if items is None:
                result.errors.append(f'Path "{items_path}" not found in the response')
            elif not isinstance(items, list):
                result.errors.append(
                    f'Path "{items_path}" exists but is not an array (type: {json_type(items)})'
                )
            else:
                result.items_found = True
                result.items_is_array = True
                result.items_count = len(items)
                if not items:
                    result.warnings.append(
                        f'Items array at "{items_path}" is empty - column suggestions cannot be generated'
                    )
        else:
            result.errors.append("Items list path is required")

        if total_path and total_path.strip():
            total = get_nested_value(response_data, total_path)
            if total is None:
                result.warnings.append(f'Path "{total_path}" not found - using array length')
            else:
                count = coerce_count(total)
                if count is None:
                    result.warnings.append(
                        f'Value at "{total_path}" is not a valid number (value: {total})'
                    )
                else:
                    result.total_found = True
                    result.total_value = count
    except Exception as e:
        result.errors.append(f"Mapping validation error: {e}")

    return result


def validate_mapping_config(mapping: MappingConfig | None) -> ValidationResult:
    """Structural check of a mapping before any request is made.

    No mapping at all is valid: the response itself is the items array.
    """
    if mapping is None:
        return ValidationResult(valid=True)

    errors = []
    if not mapping.data_key.strip():
        errors.append("Items list path is required when mapping is enabled")

    if mapping.data_key and not _PATH_CHARS.fullmatch(mapping.data_key):
        errors.append(
            "Items list path contains invalid characters "
            "(use only letters, numbers, dots and underscores)"
        )

    if mapping.total_key and not _PATH_CHARS.fullmatch(mapping.total_key):
        errors.append(
            "Total count path contains invalid characters "
            "(use only letters, numbers, dots and underscores)"
        )

    return ValidationResult(valid=not errors, errors=errors)


def extract_items_from_response(response_data, mapping: MappingConfig | None) -> list | None:
    if mapping is None or not mapping.data_key:
        return response_data if isinstance(response_data, list) else None

    items = get_nested_value(response_data, mapping.data_key)
    return items if isinstance(items, list) else None


def extract_total_from_response(response_data, mapping: MappingConfig | None, fallback_count: int = 0) -> int:
    if mapping is None or not mapping.total_key:
        return fallback_count

    count = coerce_count(get_nested_value(response_data, mapping.total_key))
    return fallback_count if count is None else count
