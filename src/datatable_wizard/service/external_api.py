"""HTTP access to the configured external API.

Two entry points: ``check_connection`` for the wizard's "test connection"
action and ``fetch_data`` for one page of table rows, the way the table
renderer requests it. Response structure analysis for column suggestions
lives here as well.
"""

import logging
import time
from typing import Any, Literal

import requests
from pydantic import BaseModel

from datatable_wizard.config.models import Column, Configuration, RenderConfig
from datatable_wizard.errors import FetchError
from datatable_wizard.mapping.base import MappingConfig, MappingValidation
from datatable_wizard.mapping.resolver import (
    coerce_count,
    extract_total_from_response,
    get_nested_value,
    json_type,
)
from datatable_wizard.params.base import Parameter
from datatable_wizard.params.converter import to_object
from datatable_wizard.params.url_vars import replace_url_params

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30

# Used when no response mapping is configured: the body is the items array
# and the total comes from the X-Total-Count header.
HEADER_TOTAL_MAPPING = MappingConfig(data_key="", total_key="x-total-count", total_source="header")

SUCCESS_MESSAGE = "The request completed successfully. Check the suggested column configuration below."


class ConnectionResult(BaseModel):
    success: bool
    status: int = 0
    message: str = ""
    sample_data: Any = None
    full_response: Any = None
    error: dict[str, Any] | None = None
    errors: list[str] = []
    duplicate_errors: list[str] = []
    mapping_validation: MappingValidation | None = None


class SortInfo(BaseModel):
    column_key: str
    order: Literal["ascend", "descend"] = "ascend"
    sort_field: str | None = None


class PageInfo(BaseModel):
    current: int
    page_size: int
    total: int


class TablePage(BaseModel):
    data: list[Any]
    pagination: PageInfo
    success: bool = True


class FieldInfo(BaseModel):
    name: str
    type: str
    sample_value: Any = None
    suggest_as_column: bool = False


class ResponseStructure(BaseModel):
    fields: list[FieldInfo] = []
    sample_data: Any = None
    is_valid: bool = False
    suggested_columns: list[Column] = []
    error: str | None = None


class ApiClient:
    """Thin wrapper around a requests session with optional bearer auth."""

    def __init__(self, token: str = "", timeout: float = DEFAULT_TIMEOUT):
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({"Content-Type": "application/json", "Accept": "application/json"})
        token = (token or "").strip()
        if token:
            self.session.headers["Authorization"] = token if token.startswith("Bearer ") else f"Bearer {token}"

    def get(self, url: str, params: dict[str, str] | None = None) -> requests.Response:
        logger.debug("GET %s params=%s", url, params)
        response = self.session.get(url, params=params, timeout=self.timeout)
        response.raise_for_status()
        return response

    def close(self) -> None:
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()


def _get(client: ApiClient | None, token: str, url: str, params: dict[str, str]) -> requests.Response:
    """GET through ``client``, or through a one-off client that is closed afterwards."""
    if client is not None:
        return client.get(url, params=params)
    with ApiClient(token) as one_off:
        return one_off.get(url, params=params)


def _error_message(error: requests.RequestException, default: str) -> str:
    response = error.response
    if response is not None:
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and body.get("message"):
            return str(body["message"])
    return str(error) or default


def _status_of(error: requests.RequestException) -> int:
    return error.response.status_code if error.response is not None else 0


def check_connection(
    endpoint: str,
    token: str = "",
    url_params: list[Parameter] | None = None,
    mapping: MappingConfig | None = None,
    params: dict[str, str] | None = None,
    client: ApiClient | None = None,
) -> ConnectionResult:
    """Request the endpoint once and return a sample record. Never raises."""
    url = endpoint
    if url_params:
        replacement = replace_url_params(endpoint, url_params)
        if replacement.errors:
            joined = ", ".join(replacement.errors)
            return ConnectionResult(
                success=False,
                message=f"URL parameter error: {joined}",
                error={"code": "URL_PARAM_ERROR", "message": joined},
            )
        url = replacement.url

    try:
        response = _get(client, token, url, dict(params or {}))
        body = response.json()
    except requests.RequestException as e:
        logger.warning("Connection test to %s failed: %s", url, e)
        return ConnectionResult(
            success=False,
            status=_status_of(e),
            message=_error_message(e, "Connection failed"),
            error={"code": type(e).__name__, "message": str(e)},
        )

    data = get_nested_value(body, mapping.data_key) if mapping and mapping.data_key else body
    if isinstance(data, list) and data:
        data = data[0]

    return ConnectionResult(
        success=True,
        status=response.status_code,
        sample_data=data,
        full_response=body,
        message=SUCCESS_MESSAGE,
    )


def build_query(config: Configuration, page: int, page_size: int, sort: SortInfo | None = None) -> dict[str, str]:
    """Query parameters for one table page.

    Pagination, sorting and search values override default params with the
    same name.
    """
    params = to_object(config.default_query_params)

    if config.pagination.mode == "api":
        names = config.pagination.api_param_names
        params[names.page] = str(page)
        params[names.page_size] = str(page_size)

    sorting = config.events.sorting
    if sort and sort.column_key and sorting.mode == "server" and sorting.server_config:
        server = sorting.server_config
        params[server.column_param] = sort.sort_field or sort.column_key
        order_values = server.order_values
        if order_values is not None:
            params[server.order_param] = getattr(order_values, sort.order) or order_values.ascend

    search = config.dynamic_params.search_input
    if search.enabled and search.query_param_name and search.current_value.strip():
        params[search.query_param_name] = search.current_value.strip()

    return params


def fetch_data(
    config: Configuration,
    page: int = 1,
    page_size: int | None = None,
    sort: SortInfo | None = None,
    client: ApiClient | None = None,
) -> TablePage:
    """Fetch one page of rows. Raises FetchError on any request failure."""
    page_size = page_size or config.pagination.page_size

    url = config.api_endpoint
    if config.url_params:
        replacement = replace_url_params(url, config.url_params)
        if replacement.errors:
            raise FetchError(f"URL parameter error: {', '.join(replacement.errors)}")
        url = replacement.url

    try:
        response = _get(client, config.auth_token, url, build_query(config, page, page_size, sort))
        body = response.json()
    except requests.RequestException as e:
        logger.error("Error fetching data from %s: %s", url, e)
        raise FetchError(_error_message(e, "Failed to fetch data"), status=_status_of(e)) from e

    mapping = config.response_data_path or HEADER_TOTAL_MAPPING
    data = get_nested_value(body, mapping.data_key) if mapping.data_key else body
    if data is None:
        data = []
    elif not isinstance(data, list):
        data = [data]

    if mapping.total_source == "header":
        total = coerce_count(response.headers.get(mapping.total_key))
        total = len(data) if total is None else total
    else:
        total = extract_total_from_response(body, mapping, len(data))

    if config.pagination.mode == "client":
        start = (page - 1) * page_size
        total = len(data)
        data = data[start:start + page_size]

    return TablePage(data=data, pagination=PageInfo(current=page, page_size=page_size, total=total))


def _column_title(name: str) -> str:
    return name[:1].upper() + name[1:].replace("_", " ")


def parse_response_structure(data, data_path: str = "") -> ResponseStructure:
    """Describe the fields of the first record and suggest columns for the scalar ones."""
    target = get_nested_value(data, data_path) if data_path else data
    sample = target[0] if isinstance(target, list) and target else target

    if not isinstance(sample, dict) or not sample:
        return ResponseStructure(sample_data=sample, is_valid=False)

    fields = [
        FieldInfo(
            name=name,
            type=json_type(value),
            sample_value=value,
            suggest_as_column=json_type(value) in ("string", "number", "boolean"),
        )
        for name, value in sample.items()
    ]

    stamp = int(time.time() * 1000)
    suggested = []
    for index, f in enumerate(x for x in fields if x.suggest_as_column):
        column = Column(
            id=f"col_{stamp}_{index}",
            key=f.name,
            title=_column_title(f.name),
            data_index=f.name,
        )
        if f.type == "boolean":
            column.render = RenderConfig(
                type="boolean",
                config={
                    "trueText": "Yes",
                    "falseText": "No",
                    "showAsTag": False,
                    "trueColor": "green",
                    "falseColor": "red",
                },
            )
        suggested.append(column)

    return ResponseStructure(fields=fields, sample_data=sample, is_valid=True, suggested_columns=suggested)


def auto_generate_columns(rows: list) -> list[Column]:
    """Columns for every scalar field of the first row."""
    if not rows or not isinstance(rows[0], dict):
        return []

    stamp = int(time.time() * 1000)
    return [
        Column(id=f"col_auto_{stamp}_{index}", key=name, title=_column_title(name), data_index=name)
        for index, (name, value) in enumerate(rows[0].items())
        if not isinstance(value, (dict, list))
    ]
