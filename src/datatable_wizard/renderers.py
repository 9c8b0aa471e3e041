"""Column value renderers used by the table preview.

Each renderer turns a raw cell value into display text according to the
column's ``render`` configuration. Date patterns use the date-fns tokens
the table renderer understands (``dd/MM/yyyy HH:mm``).
"""

import json
import re
from datetime import datetime, timezone

from datatable_wizard.config.models import Column, RenderConfig
from datatable_wizard.mapping.resolver import get_nested_value

DEFAULT_BOOLEAN_CONFIG = {
    "trueText": "Yes",
    "falseText": "No",
    "showAsTag": True,
    "trueColor": "green",
    "falseColor": "red",
}

DEFAULT_DATE_CONFIG = {
    "format": "dd/MM/yyyy HH:mm",
    "invalidText": "-",
    "emptyText": "-",
}

EMPTY_TEXT = "-"

_DATE_TOKENS = re.compile(r"'[^']*'|yyyy|yy|MMMM|MM|dd|EEEE|HH|mm|ss")
_STRFTIME = {
    "yyyy": "%Y",
    "yy": "%y",
    "MMMM": "%B",
    "MM": "%m",
    "dd": "%d",
    "EEEE": "%A",
    "HH": "%H",
    "mm": "%M",
    "ss": "%S",
}


def to_strftime(pattern: str) -> str:
    """Translate a date-fns pattern into a strftime format."""
    parts = []
    last = 0
    for match in _DATE_TOKENS.finditer(pattern):
        parts.append(pattern[last:match.start()].replace("%", "%%"))
        token = match.group(0)
        if token.startswith("'"):
            parts.append(token[1:-1].replace("%", "%%"))
        else:
            parts.append(_STRFTIME[token])
        last = match.end()
    parts.append(pattern[last:].replace("%", "%%"))
    return "".join(parts)


def _parse_date(value) -> datetime | None:
    if isinstance(value, datetime):
        return value
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value)
        except ValueError:
            return None
    return None


def render_date(value, config: dict | None = None) -> str:
    options = {**DEFAULT_DATE_CONFIG, **(config or {})}
    if value is None or value == "":
        return options["emptyText"]
    try:
        parsed = _parse_date(value)
    except (OverflowError, OSError, ValueError):
        parsed = None
    if parsed is None:
        return options["invalidText"]
    return parsed.strftime(to_strftime(options["format"]))


def render_boolean(value, config: dict | None = None) -> str:
    options = {**DEFAULT_BOOLEAN_CONFIG, **(config or {})}
    if value is None or value == "":
        return EMPTY_TEXT
    if isinstance(value, str):
        value = value.strip().lower() in ("true", "1", "yes")
    return options["trueText"] if value else options["falseText"]


def render_default(value, config: dict | None = None) -> str:
    if value is None or value == "":
        return EMPTY_TEXT
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


RENDERERS = {
    "default": render_default,
    "boolean": render_boolean,
    "date": render_date,
}


def render_value(value, render: RenderConfig | None = None) -> str:
    """Render one cell; unknown renderer types fall back to the default renderer."""
    if render is None:
        return render_default(value)
    renderer = RENDERERS.get(render.type, render_default)
    return renderer(value, render.config)


def render_row(row: dict, columns: list[Column]) -> list[str]:
    """Display text for each column; dotted data fields reach into nested records."""
    return [
        render_value(get_nested_value(row, column.data_index) if column.data_index else None, column.render)
        for column in columns
    ]
