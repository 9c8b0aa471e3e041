"""Duplicate parameter detection across parameter sources.

A request is built from several lists (test params, default params,
pagination params). The same key in two lists would silently overwrite
itself when the request is assembled, so it is reported here instead.
"""

from datatable_wizard.params.base import (
    ConflictReport,
    DuplicateDetail,
    DuplicateReport,
    Parameter,
    ParamLocation,
)

DEFAULT_LABELS = {
    "test_params": "Test Query Params",
    "default_params": "Default Query Params",
    "pagination_params": "Pagination Params",
}


def find_duplicate_keys(*param_lists: list[Parameter] | None) -> DuplicateReport:
    """Count active keys across all lists; any key seen more than once is a duplicate."""
    locations: dict[str, list[ParamLocation]] = {}

    for array_index, params in enumerate(param_lists):
        for p in params or []:
            if not p.is_active:
                continue
            locations.setdefault(p.key.strip(), []).append(
                ParamLocation(array_index=array_index, value=p.value)
            )

    details = {
        key: DuplicateDetail(count=len(locs), locations=locs)
        for key, locs in locations.items()
        if len(locs) > 1
    }
    return DuplicateReport(
        has_duplicates=bool(details),
        duplicates=list(details),
        details=details,
    )


def validate_param_conflicts(
    test_params: list[Parameter] | None = None,
    default_params: list[Parameter] | None = None,
    pagination_params: list[Parameter] | None = None,
    labels: dict[str, str] | None = None,
) -> ConflictReport:
    """Report every key that appears in more than one of the three sources."""
    labels = {**DEFAULT_LABELS, **(labels or {})}
    ordered_labels = [labels["test_params"], labels["default_params"], labels["pagination_params"]]

    report = find_duplicate_keys(test_params, default_params, pagination_params)

    errors = []
    for key in report.duplicates:
        found_in = ", ".join(
            f'{ordered_labels[loc.array_index]} (value: "{loc.value}")'
            for loc in report.details[key].locations
        )
        errors.append(f'Duplicate parameter "{key}" found in: {found_in}')

    return ConflictReport(
        valid=not errors,
        errors=errors,
        warnings=[],
        duplicates=report.duplicates,
    )


def merge_params(*param_lists: list[Parameter] | None) -> list[Parameter]:
    """Merge lists into unique keys. The first occurrence of a key wins."""
    merged: dict[str, str] = {}
    for params in param_lists:
        for p in params or []:
            if not p.is_active:
                continue
            merged.setdefault(p.key.strip(), p.value)
    return [Parameter(key=key, value=value) for key, value in merged.items()]
