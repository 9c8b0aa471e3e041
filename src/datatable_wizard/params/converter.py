"""Query parameter format converter.

Converts between the three representations the parameter editors offer:

- a list of Parameter models (the key/value table),
- a query string: ``key1=value1&key2=value2``,
- a JSON array: ``[{"key": "key1", "value": "value1"}]``.

Percent encoding follows encodeURIComponent, so ``+`` is a literal plus and
never a space.
"""

import json
import re
from urllib.parse import quote, unquote

from datatable_wizard.errors import FormatError
from datatable_wizard.params.base import ParamFormat, Parameter, ParseResult, ValidationResult, stringify

# Characters encodeURIComponent leaves alone on top of quote()'s defaults.
_URI_COMPONENT_SAFE = "!*'()"

_MALFORMED_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")
_KEY_VALUE = re.compile(r"[^=&]+=")
_BARE_KEY = re.compile(r"[^=&]+")
_SPECIAL_CHARS = re.compile(r"[*()&=?#+]")

UNKNOWN_FORMAT_MESSAGE = (
    "Could not detect input format. Use query string (key=value&...) or JSON array format."
)


def encode_param(value) -> str:
    """Percent-encode a single key or value."""
    if value is None:
        return ""
    return quote(stringify(value), safe=_URI_COMPONENT_SAFE)


def decode_param(value) -> str:
    """Percent-decode a single key or value, returning it unchanged if malformed."""
    if value is None:
        return ""
    try:
        return _decode_component(str(value))
    except FormatError:
        return str(value)


def _decode_component(text: str) -> str:
    if _MALFORMED_ESCAPE.search(text):
        raise FormatError(f"URI malformed: {text!r}")
    try:
        return unquote(text, errors="strict")
    except UnicodeDecodeError as e:
        raise FormatError(f"URI malformed: {text!r}") from e


def has_special_chars(value: str) -> bool:
    """True if the value holds characters that get percent-encoded on the wire."""
    return bool(value) and bool(_SPECIAL_CHARS.search(value))


def parse_query_string(text: str) -> list[Parameter]:
    """Parse ``?a=1&b=2`` into parameters.

    Only the first ``=`` of a segment separates key from value. A segment
    without ``=`` becomes a parameter with an empty value.
    """
    clean = text.strip()
    if clean.startswith("?"):
        clean = clean[1:]
    if not clean:
        return []

    params = []
    for segment in clean.split("&"):
        if not segment:
            continue
        raw_key, _, raw_value = segment.partition("=")
        raw_key = raw_key.strip()
        if not raw_key:
            continue
        try:
            key = _decode_component(raw_key)
            value = _decode_component(raw_value.strip())
        except FormatError as e:
            raise FormatError(f"Failed to parse query string: {e}") from e
        params.append(Parameter(key=key, value=value))
    return params


def parse_json(text: str) -> list[Parameter]:
    """Parse a JSON array of ``{"key", "value"}`` objects into parameters."""
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as e:
        raise FormatError(f"Invalid JSON: {e.msg} (line {e.lineno}, column {e.colno})") from e
    except RecursionError as e:
        raise FormatError("Invalid JSON: nesting is too deep") from e

    if not isinstance(parsed, list):
        raise FormatError("JSON must be an array")

    params = []
    for index, item in enumerate(parsed):
        if not isinstance(item, dict) or "key" not in item:
            raise FormatError(f"Item at index {index} missing 'key' property")
        enabled = item.get("enabled")
        params.append(
            Parameter(
                key=stringify(item["key"]).strip(),
                value=stringify(item.get("value")).strip(),
                enabled=enabled if isinstance(enabled, bool) else True,
            )
        )
    return params


def to_query_string(params: list[Parameter]) -> str:
    """Serialize enabled parameters to a query string (without leading ``?``)."""
    segments = []
    for p in params or []:
        if not p.is_active:
            continue
        key = encode_param(p.key)
        value = encode_param(p.value)
        segments.append(f"{key}={value}" if value else key)
    return "&".join(segments)


def to_json(params: list[Parameter], pretty: bool = True) -> str:
    """Serialize parameters with a key to a JSON array.

    Disabled parameters stay in the output, marked ``"enabled": false``.
    """
    items = []
    for p in params or []:
        if not p.has_key:
            continue
        item = {"key": p.key, "value": p.value}
        if not p.enabled:
            item["enabled"] = False
        items.append(item)
    if pretty:
        return json.dumps(items, indent=2, ensure_ascii=False)
    return json.dumps(items, separators=(",", ":"), ensure_ascii=False)


def detect_format(text: str) -> ParamFormat:
    """Guess whether pasted text is a JSON array or a query string."""
    trimmed = text.strip()
    if not trimmed:
        return "unknown"

    if trimmed.startswith(("[", "{")):
        try:
            json.loads(trimmed)
            return "json"
        except json.JSONDecodeError:
            pass
        except RecursionError:
            # too deeply nested to decode, but JSON all the same
            return "json"

    if _KEY_VALUE.match(trimmed) or "&" in trimmed or _BARE_KEY.fullmatch(trimmed):
        return "queryString"

    return "unknown"


def validate_params(params: list[Parameter]) -> ValidationResult:
    errors = [
        f"Parameter {index}: key cannot be empty"
        for index, p in enumerate(params, start=1)
        if not p.has_key
    ]
    return ValidationResult(valid=not errors, errors=errors)


def parse_any(text: str) -> ParseResult:
    """Detect the format of ``text`` and parse it. Never raises."""
    fmt: ParamFormat = "unknown"
    try:
        fmt = detect_format(text)
        if fmt == "unknown":
            return ParseResult(format=fmt, errors=[UNKNOWN_FORMAT_MESSAGE])
        params = parse_json(text) if fmt == "json" else parse_query_string(text)
    except FormatError as e:
        return ParseResult(format=fmt, errors=[str(e)])
    except Exception as e:
        return ParseResult(format=fmt, errors=[f"Unexpected error while parsing parameters: {e}"])

    validation = validate_params(params)
    if not validation.valid:
        return ParseResult(format=fmt, errors=validation.errors)
    return ParseResult(params=params, format=fmt)


def to_object(params: list[Parameter]) -> dict[str, str]:
    """Build the query object for a request. A later duplicate key overwrites an earlier one."""
    return {p.key.strip(): p.value for p in params or [] if p.is_active}
