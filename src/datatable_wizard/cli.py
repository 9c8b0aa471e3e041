"""CLI entry point for datatable-wizard."""

import json
import logging
from pathlib import Path

import click
import yaml

from datatable_wizard.config.models import example_configuration
from datatable_wizard.config.storage import STORE_ENV_VAR, ConfigStore
from datatable_wizard.config.validator import (
    format_configuration_as_json,
    validate_configuration,
    validate_json_configuration,
)
from datatable_wizard.errors import FetchError
from datatable_wizard.mapping.resolver import validate_mapping
from datatable_wizard.params.base import Parameter
from datatable_wizard.params.conflicts import merge_params, validate_param_conflicts
from datatable_wizard.params.converter import has_special_chars, parse_any, to_json, to_object, to_query_string
from datatable_wizard.params.url_vars import replace_url_params, validate_url_params
from datatable_wizard.renderers import render_row
from datatable_wizard.service.external_api import SortInfo, auto_generate_columns, parse_response_structure
from datatable_wizard.wizard import ConfigurationWizard


def _echo_list(title: str, items: list[str], err: bool = False) -> None:
    if not items:
        return
    click.echo(f"{title}:", err=err)
    for item in items:
        click.echo(f"  - {item}", err=err)


def _parse_params(text: str | None, option: str) -> list[Parameter]:
    """Parse an option value given as query string or JSON array."""
    if not text:
        return []
    result = parse_any(text)
    if result.errors:
        raise click.BadParameter("; ".join(result.errors), param_hint=option)
    return result.params


def _load_document(file_path: Path):
    """Read a JSON or YAML file (YAML is a superset of JSON)."""
    text = file_path.read_text(encoding="utf-8")
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise click.ClickException(f"Could not parse {file_path}: {e}")


def _wizard(ctx: click.Context) -> ConfigurationWizard:
    wizard = ConfigurationWizard(store=ctx.obj["store"])
    wizard.load()
    return wizard


@click.group()
@click.option("--store", type=click.Path(path_type=Path), envvar=STORE_ENV_VAR, default=None,
              help="Key-value file holding the saved configuration.")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.pass_context
def main(ctx: click.Context, store: Path | None, verbose: bool):
    """DataTable Wizard: configure, test and preview API-backed data tables."""
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING,
                        format="%(levelname)s %(name)s: %(message)s")
    ctx.ensure_object(dict)
    ctx.obj["store"] = ConfigStore(store)


@main.command()
@click.argument("text")
@click.option("--to", "target", default="json", type=click.Choice(["json", "query", "object"]),
              help="Representation to print.")
@click.option("--compact", is_flag=True, help="Compact JSON output.")
def convert(text: str, target: str, compact: bool):
    """Convert query parameters between query string and JSON array."""
    if text == "-":
        text = click.get_text_stream("stdin").read()

    result = parse_any(text)
    if result.errors:
        _echo_list("Errors", result.errors, err=True)
        raise SystemExit(1)

    click.echo(f"Detected format: {result.format}", err=True)
    for p in result.params:
        if has_special_chars(p.value):
            click.echo(f'Warning: value of "{p.key}" has special characters and will be URL-encoded', err=True)

    if target == "query":
        click.echo(to_query_string(result.params))
    elif target == "object":
        click.echo(json.dumps(to_object(result.params), indent=None if compact else 2, ensure_ascii=False))
    else:
        click.echo(to_json(result.params, pretty=not compact))


@main.command()
@click.argument("template")
@click.option("-p", "--params", "params_text", default="", help="Path values as query string or JSON array.")
def url(template: str, params_text: str):
    """Substitute :variables in an endpoint URL template."""
    params = _parse_params(params_text, "--params")
    replacement = replace_url_params(template, params)
    validation = validate_url_params(template, params)

    click.echo(replacement.url)
    _echo_list("Warnings", validation.warnings, err=True)
    _echo_list("Errors", replacement.errors, err=True)
    if replacement.errors:
        raise SystemExit(1)


@main.command("check-mapping")
@click.argument("response_path", type=click.Path(exists=True, path_type=Path))
@click.option("--items", "items_path", required=True, help="Dot path to the items array, e.g. data.items.")
@click.option("--total", "total_path", default="", help="Dot path to the total count.")
def check_mapping(response_path: Path, items_path: str, total_path: str):
    """Validate response mapping paths against a saved API response."""
    response = _load_document(response_path)
    result = validate_mapping(response, items_path, total_path)

    if result.items_found:
        click.echo(f"Items: {result.items_count} found at {items_path}")
    if result.total_found:
        click.echo(f"Total: {result.total_value}")
    _echo_list("Warnings", result.warnings, err=True)
    _echo_list("Errors", result.errors, err=True)
    if result.errors:
        raise SystemExit(1)


@main.command()
@click.option("--test", "test_text", default="", help="Test query params.")
@click.option("--default", "default_text", default="", help="Default query params.")
@click.option("--pagination", "pagination_text", default="", help="Pagination params.")
def conflicts(test_text: str, default_text: str, pagination_text: str):
    """Report parameter keys present in more than one source."""
    test_params = _parse_params(test_text, "--test")
    default_params = _parse_params(default_text, "--default")
    pagination_params = _parse_params(pagination_text, "--pagination")

    report = validate_param_conflicts(test_params, default_params, pagination_params)
    _echo_list("Errors", report.errors, err=True)
    click.echo(to_query_string(merge_params(test_params, default_params, pagination_params)))
    if not report.valid:
        raise SystemExit(1)


@main.group()
def config():
    """Manage the saved table configuration."""
    pass


@config.command()
@click.pass_context
def show(ctx: click.Context):
    """Print the saved configuration as JSON."""
    wizard = ConfigurationWizard(store=ctx.obj["store"])
    if not wizard.load():
        click.echo("No configuration saved.", err=True)
        raise SystemExit(1)
    click.echo(format_configuration_as_json(wizard.config))


@config.command()
@click.pass_context
def example(ctx: click.Context):
    """Save the example configuration."""
    wizard = ConfigurationWizard(store=ctx.obj["store"])
    wizard.replace(example_configuration())
    click.echo(f"Example configuration saved to {wizard.store.path}")


@config.command("import")
@click.argument("file_path", type=click.Path(exists=True, path_type=Path))
@click.pass_context
def import_config(ctx: click.Context, file_path: Path):
    """Replace the saved configuration with a JSON or YAML file."""
    if file_path.suffix in (".yaml", ".yml"):
        text = json.dumps(_load_document(file_path))
    else:
        text = file_path.read_text(encoding="utf-8")

    result = validate_json_configuration(text)
    if not result.valid:
        _echo_list("Errors", result.errors, err=True)
        raise SystemExit(1)

    wizard = ConfigurationWizard(store=ctx.obj["store"])
    wizard.replace(result.config)
    click.echo(f"Configuration imported from {file_path}")


@config.command()
@click.pass_context
def clear(ctx: click.Context):
    """Delete the saved configuration."""
    ConfigurationWizard(store=ctx.obj["store"]).clear()
    click.echo("Configuration cleared.")


@config.command()
@click.pass_context
def validate(ctx: click.Context):
    """Check the saved configuration for errors."""
    wizard = _wizard(ctx)
    result = validate_configuration(wizard.config)
    url_check = validate_url_params(wizard.config.api_endpoint, wizard.config.url_params)
    runtime = wizard.runtime_conflicts()

    errors = result.errors + url_check.errors + runtime.errors
    _echo_list("Warnings", result.warnings + url_check.warnings, err=True)
    _echo_list("Errors", errors, err=True)
    if errors:
        raise SystemExit(1)
    click.echo("Configuration is valid.")


@main.command()
@click.option("-q", "--query", "query_text", default=None, help="Test query params, overriding the saved ones.")
@click.option("--apply-columns", is_flag=True, help="Save suggested columns when none are configured.")
@click.pass_context
def test(ctx: click.Context, query_text: str | None, apply_columns: bool):
    """Test the connection with the saved configuration."""
    wizard = _wizard(ctx)
    query_params = _parse_params(query_text, "--query") if query_text is not None else None

    click.echo(f"Testing {wizard.config.api_endpoint or '(no endpoint)'}...")
    result = wizard.run_test(query_params)

    if not result.success:
        click.echo(f"Failed (status {result.status}): {result.message}", err=True)
        _echo_list("Errors", result.errors + result.duplicate_errors, err=True)
        raise SystemExit(1)

    click.echo(f"Status {result.status}: {result.message}")
    if result.mapping_validation is not None:
        validation = result.mapping_validation
        click.echo(f"Items found: {validation.items_count}" if validation.items_found else "Items not found")
        _echo_list("Mapping warnings", validation.warnings, err=True)
        _echo_list("Mapping errors", validation.errors, err=True)

    click.echo("Sample record:")
    click.echo(json.dumps(result.sample_data, indent=2, ensure_ascii=False))

    mapping = wizard.mapping_config()
    structure = parse_response_structure(result.full_response, mapping.data_key if mapping else "")
    if structure.suggested_columns:
        click.echo("Suggested columns: " + ", ".join(c.data_index for c in structure.suggested_columns))
        if apply_columns and not wizard.config.columns:
            wizard.update_columns(structure.suggested_columns)
            click.echo(f"Saved {len(structure.suggested_columns)} columns.")


@main.command()
@click.option("--page", default=1, type=click.IntRange(min=1), help="Page number.")
@click.option("--page-size", default=None, type=click.IntRange(1, 1000), help="Rows per page.")
@click.option("--sort", "sort_text", default=None, help="Sort as COLUMN or COLUMN:descend.")
@click.option("--search", default=None, help="Value for the search input parameter.")
@click.pass_context
def preview(ctx: click.Context, page: int, page_size: int | None, sort_text: str | None, search: str | None):
    """Fetch one page of the table and print it."""
    wizard = _wizard(ctx)
    if search is not None:
        search_input = wizard.config.dynamic_params.search_input
        search_input.enabled = True
        search_input.current_value = search

    sort = None
    if sort_text:
        column_key, _, order = sort_text.partition(":")
        if order and order not in ("ascend", "descend"):
            raise click.BadParameter("order must be ascend or descend", param_hint="--sort")
        column = next((c for c in wizard.config.columns if c.data_index == column_key), None)
        sort = SortInfo(
            column_key=column_key,
            order=order or "ascend",
            sort_field=column.sort_field if column else None,
        )

    try:
        table = wizard.preview(page=page, page_size=page_size, sort=sort)
    except FetchError as e:
        raise click.ClickException(f"{e.message} (status {e.status})" if e.status else e.message)

    columns = wizard.config.columns or auto_generate_columns(table.data)
    click.echo("\t".join(c.title or c.data_index for c in columns))
    for row in table.data:
        click.echo("\t".join(render_row(row if isinstance(row, dict) else {}, columns)))

    info = table.pagination
    click.echo(f"Page {info.current} ({info.page_size} per page), {info.total} total", err=True)
