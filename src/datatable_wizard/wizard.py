"""Configuration wizard: the stateful piece that ties the editors together.

Holds the configuration being edited, auto-saves it once an API endpoint
is set, and runs the "test connection" sequence:

    validate URL -> validate mapping config -> check parameter conflicts
    -> merge parameters -> request -> validate mapping against the response
"""

import logging

from datatable_wizard.config.models import (
    Column,
    Configuration,
    DynamicParams,
    Events,
    Pagination,
    create_configuration,
)
from datatable_wizard.config.storage import ConfigStore, stamp_timestamps
from datatable_wizard.mapping.base import MappingConfig, MappingValidation
from datatable_wizard.mapping.resolver import validate_mapping, validate_mapping_config
from datatable_wizard.params.base import ConflictReport, Parameter
from datatable_wizard.params.conflicts import merge_params, validate_param_conflicts
from datatable_wizard.params.converter import to_object
from datatable_wizard.params.url_vars import suggest_url_params
from datatable_wizard.service.external_api import (
    ApiClient,
    ConnectionResult,
    SortInfo,
    TablePage,
    check_connection,
    fetch_data,
)
from datatable_wizard.service.url_check import validate_url

logger = logging.getLogger(__name__)


class ConfigurationWizard:
    """Edits, tests and persists one table configuration."""

    def __init__(self, store: ConfigStore | None = None, client: ApiClient | None = None):
        self.store = store or ConfigStore()
        self.client = client
        self.config = create_configuration()
        self.test_result: ConnectionResult | None = None

        # response mapping editor state
        self.mapping_enabled = False
        self.data_path = ""
        self.total_path = ""
        self.total_source = "body"
        self.mapping_validation: MappingValidation | None = None

    # -- persistence ----------------------------------------------------------

    def load(self) -> bool:
        """Load the stored configuration, if any, merged with defaults."""
        existing = self.store.load()
        if existing is None:
            return False
        self.config = existing
        self._load_mapping(existing.response_data_path)
        logger.info("Loaded existing configuration from %s", self.store.path)
        return True

    def save(self) -> bool:
        # createdAt stays fixed across saves
        self.config = stamp_timestamps(self.config)
        return self.store.save(self.config)

    def clear(self) -> bool:
        self.config = create_configuration()
        self._load_mapping(None)
        self.test_result = None
        return self.store.clear()

    def replace(self, config: Configuration | dict) -> None:
        """Swap in a whole configuration (imported JSON or the example)."""
        if isinstance(config, Configuration):
            config = config.to_dict()
        self.config = create_configuration(config)
        self._load_mapping(self.config.response_data_path)
        self._changed()

    def _changed(self) -> None:
        # nothing worth keeping until there is an endpoint
        if self.config.api_endpoint:
            self.save()

    def _update(self, **fields) -> None:
        self.config = self.config.model_copy(update=fields)
        self._changed()

    # -- section updates ------------------------------------------------------

    def update_api_config(
        self,
        api_endpoint: str,
        auth_token: str = "",
        url_params: list[Parameter] | None = None,
        default_query_params: list[Parameter] | None = None,
    ) -> None:
        """Set the endpoint. Without explicit url_params, one is suggested per path variable."""
        if url_params is None:
            url_params = suggest_url_params(api_endpoint, self.config.url_params)
        self._update(
            api_endpoint=api_endpoint,
            auth_token=auth_token,
            url_params=url_params,
            default_query_params=(
                self.config.default_query_params if default_query_params is None else default_query_params
            ),
        )

    def update_test_query_params(self, params: list[Parameter]) -> None:
        self._update(test_query_params=params)

    def update_columns(self, columns: list[Column]) -> None:
        self._update(columns=columns)

    def update_pagination(self, pagination: Pagination) -> None:
        self._update(pagination=pagination)

    def update_events(self, events: Events) -> None:
        self._update(events=events)

    def update_dynamic_params(self, dynamic_params: DynamicParams) -> None:
        self._update(dynamic_params=dynamic_params)

    def update_response_mapping(self, mapping: MappingConfig | None) -> None:
        self._update(response_data_path=mapping)

    # -- response mapping editor ----------------------------------------------

    def _load_mapping(self, mapping: MappingConfig | None) -> None:
        if mapping is not None and mapping.data_key:
            self.mapping_enabled = True
            self.data_path = mapping.data_key
            self.total_path = mapping.total_key
            self.total_source = mapping.total_source
        else:
            self.mapping_enabled = False
            self.data_path = ""
            self.total_path = ""
            self.total_source = "body"
        self.mapping_validation = None

    def mapping_config(self) -> MappingConfig | None:
        """The mapping as it would be saved, or None when disabled or incomplete."""
        if not self.mapping_enabled or not self.data_path.strip():
            return None
        return MappingConfig(
            data_key=self.data_path.strip(),
            total_key=self.total_path.strip(),
            total_source=self.total_source,
        )

    def toggle_mapping(self, enabled: bool) -> None:
        self.mapping_enabled = enabled
        if not enabled:
            self.data_path = ""
            self.total_path = ""
            self.mapping_validation = None
            self.update_response_mapping(None)
        elif self.data_path.strip():
            self.update_response_mapping(self.mapping_config())

    def update_data_path(self, path: str) -> None:
        self.data_path = path
        self.update_response_mapping(self.mapping_config())

    def update_total_path(self, path: str) -> None:
        self.total_path = path
        self.update_response_mapping(self.mapping_config())

    def validate_against_response(self, response_data) -> MappingValidation | None:
        mapping = self.mapping_config()
        if mapping is None:
            self.mapping_validation = None
            return None
        # a header total cannot be checked against the body
        total_path = mapping.total_key if mapping.total_source == "body" else ""
        self.mapping_validation = validate_mapping(response_data, mapping.data_key, total_path)
        return self.mapping_validation

    # -- parameter checks -----------------------------------------------------

    def pagination_params(self) -> list[Parameter]:
        """The page/page size parameters the table renderer adds to every request."""
        pagination = self.config.pagination
        if pagination.mode != "api":
            return []
        names = pagination.api_param_names
        return [
            Parameter(key=names.page, value="1"),
            Parameter(key=names.page_size, value=str(pagination.page_size)),
        ]

    def runtime_conflicts(self) -> ConflictReport:
        """Default params that the renderer's pagination params would overwrite."""
        return validate_param_conflicts(
            default_params=self.config.default_query_params,
            pagination_params=self.pagination_params(),
        )

    # -- actions --------------------------------------------------------------

    def run_test(self, query_params: list[Parameter] | None = None) -> ConnectionResult:
        """Run the connection test. Every failure comes back as an unsuccessful result."""
        config = self.config
        test_params = config.test_query_params if query_params is None else query_params

        url_check = validate_url(config.api_endpoint)
        if not url_check.valid:
            return self._finish(ConnectionResult(success=False, message=url_check.error or "Invalid URL"))

        mapping = self.mapping_config()
        mapping_check = validate_mapping_config(mapping)
        if not mapping_check.valid:
            return self._finish(
                ConnectionResult(
                    success=False,
                    message="Invalid response mapping configuration",
                    errors=mapping_check.errors,
                )
            )

        conflicts = validate_param_conflicts(
            test_params=test_params,
            default_params=config.default_query_params,
            pagination_params=[],
        )
        if not conflicts.valid:
            return self._finish(
                ConnectionResult(
                    success=False,
                    message="Duplicate query parameters detected",
                    duplicate_errors=conflicts.errors,
                )
            )

        # test params come first so they take precedence over defaults
        params = to_object(merge_params(test_params, config.default_query_params))

        result = check_connection(
            config.api_endpoint,
            config.auth_token,
            url_params=config.url_params,
            mapping=mapping,
            params=params,
            client=self.client,
        )
        if result.success and mapping is not None:
            result.mapping_validation = self.validate_against_response(result.full_response)
        return self._finish(result)

    def _finish(self, result: ConnectionResult) -> ConnectionResult:
        self.test_result = result
        if not result.success:
            logger.info("Connection test failed: %s", result.message)
        return result

    def preview(self, page: int = 1, page_size: int | None = None, sort: SortInfo | None = None) -> TablePage:
        """Fetch one table page with the current configuration. Raises FetchError."""
        return fetch_data(self.config, page=page, page_size=page_size, sort=sort, client=self.client)
