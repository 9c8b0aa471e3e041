"""URL path variable resolver.

Replaces ``:name`` placeholders in an endpoint template, e.g.
``https://api.example.com/:version/users/:userId`` with
``version=2.3, userId=47`` becomes ``https://api.example.com/2.3/users/47``.
"""

import re

from datatable_wizard.params.base import Parameter, UrlReplacement, ValidationResult
from datatable_wizard.params.converter import encode_param

VARIABLE_PATTERN = re.compile(r":([a-zA-Z_][a-zA-Z0-9_]*)", re.ASCII)


def extract_url_variables(url: str) -> list[str]:
    """Variable names in order of occurrence, repeats included."""
    if not url:
        return []
    return VARIABLE_PATTERN.findall(url)


def _distinct(names: list[str]) -> list[str]:
    return list(dict.fromkeys(names))


def _find_param(params: list[Parameter], name: str) -> Parameter | None:
    return next((p for p in params if p.key == name), None)


def has_url_variables(url: str) -> bool:
    return bool(url) and VARIABLE_PATTERN.search(url) is not None


def replace_url_params(url: str, params: list[Parameter] | None = None) -> UrlReplacement:
    """Substitute path variables with their percent-encoded values.

    Variables without a value stay in the URL and are reported in ``missing``.
    """
    if not url:
        return UrlReplacement(url=url or "", errors=["Invalid URL"])
    params = params or []

    missing: list[str] = []

    def substitute(match: re.Match) -> str:
        name = match.group(1)
        param = _find_param(params, name)
        if param is not None and param.value != "":
            return encode_param(param.value)
        if name not in missing:
            missing.append(name)
        return match.group(0)

    replaced = VARIABLE_PATTERN.sub(substitute, url)

    variables = set(extract_url_variables(url))
    unused = [p.key for p in params if p.key and p.key not in variables]

    errors = []
    if missing:
        errors.append(f"Missing values for URL parameters: {', '.join(missing)}")

    return UrlReplacement(url=replaced, missing=missing, unused=unused, errors=errors)


def validate_url_params(url: str, params: list[Parameter] | None = None) -> ValidationResult:
    params = params or []
    variables = _distinct(extract_url_variables(url))
    errors = []
    warnings = []

    for name in variables:
        param = _find_param(params, name)
        if param is None or not param.value.strip():
            errors.append(f"Missing value for URL parameter: :{name}")

    for p in params:
        if p.key and p.key not in variables:
            warnings.append(f'URL parameter "{p.key}" is defined but not used in the URL')

    for index, p in enumerate(params):
        if not p.has_key:
            warnings.append(f"URL parameter at index {index} has empty key")

    return ValidationResult(valid=not errors, errors=errors, warnings=warnings)


def suggest_url_params(url: str, existing: list[Parameter] | None = None) -> list[Parameter]:
    """One parameter per distinct variable, reusing existing entries where the key matches."""
    existing = existing or []
    suggested = []
    for name in _distinct(extract_url_variables(url)):
        param = _find_param(existing, name)
        suggested.append(param if param is not None else Parameter(key=name))
    return suggested
