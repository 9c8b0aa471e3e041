import json

from datatable_wizard.config.models import Column, RenderConfig, create_configuration, example_configuration
from datatable_wizard.config.validator import (
    format_configuration_as_json,
    validate_column,
    validate_columns,
    validate_columns_json,
    validate_configuration,
    validate_json_configuration,
    validate_json_syntax,
)
from datatable_wizard.params.base import Parameter


def _valid_config(**overrides):
    data = {
        "apiEndpoint": "https://api.example.com/users",
        "columns": [{"title": "Name", "dataIndex": "name"}],
    }
    data.update(overrides)
    return create_configuration(data)


class TestConfigurationModel:
    def test_defaults(self):
        config = create_configuration()
        assert config.api_endpoint == ""
        assert config.pagination.page_size == 20
        assert config.pagination.api_param_names.page == "_page"
        assert config.events.sorting.mode == "server"
        assert config.events.sorting.server_config.column_param == "_columnSort"
        assert config.response_data_path is None

    def test_partial_sections_keep_defaults(self):
        config = create_configuration({"events": {"onRowClick": {"enabled": True, "code": "alert(1)"}}})
        assert config.events.on_row_click.enabled is True
        assert config.events.sorting.server_config.order_values.descend == "-1"

    def test_camel_case_dump(self):
        config = create_configuration({"apiEndpoint": "https://x.com", "responseDataPath": {"dataKey": "data"}})
        data = config.to_dict()
        assert data["apiEndpoint"] == "https://x.com"
        assert data["responseDataPath"] == {"dataKey": "data", "totalKey": "", "totalSource": "body"}
        assert data["pagination"]["apiParamNames"] == {"page": "_page", "pageSize": "_limit"}

    def test_unknown_keys_survive(self):
        config = create_configuration({"customKey": 1})
        assert config.to_dict()["customKey"] == 1

    def test_timestamps_dropped_on_request(self):
        config = create_configuration({"createdAt": "2024-01-01T00:00:00Z"})
        assert "createdAt" in config.to_dict()
        assert "createdAt" not in config.to_dict(timestamps=False)

    def test_parameter_values_coerced(self):
        config = create_configuration({"defaultQueryParams": [{"key": "limit", "value": 10}]})
        assert config.default_query_params == [Parameter(key="limit", value="10")]

    def test_example_is_valid(self):
        config = example_configuration()
        assert "jsonplaceholder" in config.api_endpoint
        assert validate_configuration(config).valid is True


class TestValidateConfiguration:
    def test_empty_configuration(self):
        result = validate_configuration(create_configuration())
        assert result.valid is False
        assert "The API endpoint is required" in result.errors
        assert "At least one column must be configured" in result.errors

    def test_http_endpoint_warns(self):
        result = validate_configuration(_valid_config(apiEndpoint="http://api.example.com/users"))
        assert result.valid is True
        assert result.warnings == ["URL is not secure (HTTPS recommended)"]

    def test_invalid_endpoint(self):
        result = validate_configuration(_valid_config(apiEndpoint="ftp://api.example.com"))
        assert result.valid is False
        assert "http://" in result.errors[0]

    def test_page_size_bounds(self):
        result = validate_configuration(_valid_config(pagination={"pageSize": 0}))
        assert result.errors == ["Page size must be between 1 and 1000"]

    def test_row_click_without_code(self):
        result = validate_configuration(_valid_config(events={"onRowClick": {"enabled": True, "code": ""}}))
        assert result.errors == ["Row click event code is required when the event is enabled"]

    def test_sorting_errors(self):
        events = {"sorting": {"mode": "server", "serverConfig": {"columnParam": " ", "orderFormat": "weird"}}}
        result = validate_configuration(_valid_config(events=events))
        assert result.errors == [
            "Column parameter is required for server-side sorting",
            "Invalid order format: weird",
        ]

    def test_invalid_sorting_mode(self):
        result = validate_configuration(_valid_config(events={"sorting": {"mode": "random"}}))
        assert "Invalid sorting mode: random" in result.errors


class TestValidateColumns:
    def test_column_errors(self):
        column = Column(title=" ", data_index="", width=30)
        assert validate_column(column, 0) == [
            "Column 1: title is required",
            "Column 1: data field is required",
            "Column 1: width must be between 50 and 1000 pixels",
        ]

    def test_date_render_format(self):
        column = Column(title="When", data_index="at", render=RenderConfig(type="date", config={"format": 5}))
        assert validate_column(column, 2) == ["Column 3: invalid date format"]

    def test_duplicate_data_fields(self):
        columns = [Column(title="A", data_index="id"), Column(title="B", data_index="id")]
        result = validate_columns(columns)
        assert result.errors == ["Duplicate data fields found: id"]


class TestValidateJsonConfiguration:
    def test_empty(self):
        assert validate_json_configuration("  ").errors == ["The JSON cannot be empty"]

    def test_syntax_error(self):
        result = validate_json_configuration("{bad")
        assert result.valid is False
        assert result.errors[0].startswith("JSON syntax error:")
        assert len(result.errors) == 2

    def test_not_an_object(self):
        assert validate_json_configuration("[]").errors == ["The configuration must be a JSON object"]

    def test_wrong_types(self):
        result = validate_json_configuration('{"columns": "nope"}')
        assert result.valid is False
        assert result.errors[0].startswith("columns")

    def test_valid(self):
        text = json.dumps(example_configuration().to_dict())
        result = validate_json_configuration(text)
        assert result.valid is True
        assert result.config.columns[0].title == "ID"

    def test_structurally_invalid_keeps_config(self):
        result = validate_json_configuration('{"apiEndpoint": "https://x.com"}')
        assert result.valid is False
        assert result.errors == ["At least one column must be configured"]
        assert result.config is not None


class TestJsonHelpers:
    def test_validate_json_syntax(self):
        assert validate_json_syntax('{"a": 1}') == (True, None)
        assert validate_json_syntax("") == (False, "Empty JSON")
        valid, message = validate_json_syntax("{")
        assert valid is False
        assert message

    def test_format_without_timestamps(self):
        config = _valid_config(createdAt="2024-01-01T00:00:00Z", updatedAt="2024-01-02T00:00:00Z")
        text = format_configuration_as_json(config)
        assert "createdAt" not in text
        assert json.loads(text)["apiEndpoint"] == "https://api.example.com/users"

    def test_columns_json(self):
        result = validate_columns_json('[{"title": "Name", "dataIndex": "name", "width": 120}]')
        assert result.valid is True
        assert result.data[0].width == 120

    def test_columns_json_errors(self):
        assert validate_columns_json('{"title": "x"}').errors == ["The JSON must be an array of columns"]
        result = validate_columns_json('[{"title": "Name"}, 3]')
        assert result.errors == [
            'Column 1: the "dataIndex" field is required',
            "Column 2: must be an object",
        ]
