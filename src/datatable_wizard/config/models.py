"""Table configuration models.

The Configuration is the unit of persistence: it is stored as a single JSON
blob and read by the data-table renderer. Missing sections fall back to
their defaults when a stored blob is loaded.
"""

from typing import Any

from pydantic import ConfigDict, Field

from datatable_wizard.base import CamelModel
from datatable_wizard.mapping.base import MappingConfig
from datatable_wizard.params.base import Parameter

SORTING_MODES = ("server", "client", "disabled")
ORDER_FORMATS = ("numeric", "asc-desc", "ascend-descend")
RENDERER_TYPES = ("default", "boolean", "date", "custom")
PAGINATION_MODES = ("api", "client")


class RenderConfig(CamelModel):
    type: str = "default"
    config: dict[str, Any] = {}


class Column(CamelModel):
    id: str = ""
    key: str = ""
    title: str = ""
    data_index: str = ""
    sortable: bool = False
    sort_field: str | None = None  # sent to the API instead of data_index when set
    clickable: bool = False
    width: int | None = None
    icon: str | None = None
    icon_clickable: bool = False
    render: RenderConfig | None = None


class ApiParamNames(CamelModel):
    page: str = "_page"
    page_size: str = "_limit"


class Pagination(CamelModel):
    page_size: int = 20
    show_pagination: bool = True
    mode: str = "api"  # api = server-side, client = paginate locally
    api_param_names: ApiParamNames = Field(default_factory=ApiParamNames)


class OrderValues(CamelModel):
    ascend: str = "1"
    descend: str = "-1"


class ServerSortConfig(CamelModel):
    column_param: str = "_columnSort"
    order_param: str = "_sort"
    order_format: str = "numeric"
    order_values: OrderValues | None = Field(default_factory=OrderValues)


class Sorting(CamelModel):
    mode: str = "server"
    server_config: ServerSortConfig | None = Field(default_factory=ServerSortConfig)


class RowClickEvent(CamelModel):
    enabled: bool = False
    code: str = "console.log('Row clicked:', record);"


class Events(CamelModel):
    on_row_click: RowClickEvent = Field(default_factory=RowClickEvent)
    sorting: Sorting = Field(default_factory=Sorting)


class SearchInput(CamelModel):
    enabled: bool = False
    query_param_name: str = "search"
    placeholder: str = "Search..."
    current_value: str = ""


class DynamicParams(CamelModel):
    search_input: SearchInput = Field(default_factory=SearchInput)


class Configuration(CamelModel):
    # unknown keys in a stored blob survive a load/save cycle
    model_config = ConfigDict(extra="allow")

    api_endpoint: str = ""
    auth_token: str = ""
    url_params: list[Parameter] = []
    default_query_params: list[Parameter] = []
    test_query_params: list[Parameter] = []
    columns: list[Column] = []
    pagination: Pagination = Field(default_factory=Pagination)
    response_data_path: MappingConfig | None = None
    events: Events = Field(default_factory=Events)
    dynamic_params: DynamicParams = Field(default_factory=DynamicParams)
    created_at: str | None = None
    updated_at: str | None = None

    def to_dict(self, timestamps: bool = True) -> dict:
        data = self.model_dump(by_alias=True, mode="json")
        if not timestamps:
            data.pop("createdAt", None)
            data.pop("updatedAt", None)
        return data


def create_configuration(existing: dict | None = None) -> Configuration:
    """Build a configuration from a (possibly partial) stored dict, filling in defaults."""
    return Configuration.model_validate(existing or {})


def example_configuration() -> Configuration:
    """A working configuration against a public demo API."""
    return create_configuration(
        {
            "apiEndpoint": "https://jsonplaceholder.typicode.com/users",
            "authToken": "",
            "urlParams": [],
            "defaultQueryParams": [],
            "testQueryParams": [
                {"key": "_page", "value": "1"},
                {"key": "_limit", "value": "10"},
            ],
            "columns": [
                {"key": "id", "title": "ID", "dataIndex": "id", "sortable": True, "width": 80},
                {"key": "name", "title": "Name", "dataIndex": "name", "sortable": True, "clickable": True},
                {"key": "email", "title": "Email", "dataIndex": "email", "sortable": True, "clickable": True},
                {"key": "phone", "title": "Phone", "dataIndex": "phone"},
            ],
            "pagination": {
                "pageSize": 20,
                "showPagination": True,
                "mode": "api",
                "apiParamNames": {"page": "_page", "pageSize": "_page_size"},
            },
            "responseDataPath": None,
            "events": {
                "onRowClick": {
                    "enabled": True,
                    "code": "console.log('User clicked:', record);",
                },
                "sorting": {
                    "mode": "server",
                    "serverConfig": {
                        "columnParam": "_columnSort",
                        "orderParam": "_sort",
                        "orderFormat": "numeric",
                        "orderValues": {"ascend": "1", "descend": "-1"},
                    },
                },
            },
        }
    )
