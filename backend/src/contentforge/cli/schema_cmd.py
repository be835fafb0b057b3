"""Schema CLI commands — check, list and show content components."""

import json
from pathlib import Path

import click

from contentforge.cli.common import abort, resolve_paths
from contentforge.schema import ComponentLoader, SchemaError, SchemaReader
from contentforge.schema.validator import (
    _FILE_SCHEMA,
    _SUBDIR_SCHEMA,
    ValidationIssue,
    validate_metadata_dir,
    validate_yaml_file,
)

_COLOURS = {"error": "red", "warning": "yellow"}


def _load_reader(metadata_path: Path) -> SchemaReader:
    loader = ComponentLoader(metadata_path)
    try:
        loader.load_all()
    except ValueError as e:
        abort(f"Cannot load components: {e}")
    return SchemaReader(loader)


def _file_issues(path: Path) -> list[ValidationIssue]:
    """Check one file, choosing the schema from its directory or name."""
    schema_name = _SUBDIR_SCHEMA.get(path.parent.name) or _FILE_SCHEMA.get(path.name)
    if schema_name is None:
        click.echo(f"No schema applies to {path}; expected components/*.yaml or policies.yaml", err=True)
        return []
    return validate_yaml_file(path, schema_name)


def _report(issues: list[ValidationIssue]) -> None:
    """Print issues; exit non-zero when any of them is an error."""
    for issue in issues:
        click.secho(str(issue), fg=_COLOURS.get(issue.severity))

    errors = sum(1 for i in issues if i.severity == "error")
    warnings = len(issues) - errors
    if errors:
        abort(f"\n{errors} error(s), {warnings} warning(s) in metadata files")
    if warnings:
        click.secho(f"{warnings} warning(s) in metadata files", fg="yellow")


def _check_components(metadata_path: Path) -> None:
    """Expand every component so unknown field components surface."""
    reader = _load_reader(metadata_path)
    slugs = sorted(reader.loader.list_components())
    for slug in slugs:
        try:
            reader.read(slug)
        except SchemaError as e:
            abort(f"\nComponent '{slug}' does not resolve: {e}")

    click.echo(f"\n{len(slugs)} component(s):")
    for slug in slugs:
        component = reader.get_component(slug)
        click.echo(f"  ✓ {slug} [{component.data_type.value}, {len(component.fields)} fields]")


@click.group()
def schema():
    """Content component schema commands."""
    pass


@schema.command()
@click.option("--strict", is_flag=True, default=False, help="Fail on warnings too.")
@click.option(
    "--path",
    "target_path",
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Check only this YAML file.",
)
def validate(strict: bool, target_path: Path | None):
    """Check metadata files against the JSON Schemas, then resolve every component."""
    if target_path is not None:
        _report(_file_issues(target_path))
    else:
        metadata_path = resolve_paths()[1]
        if not metadata_path.is_dir():
            abort(f"No metadata directory at {metadata_path}")
        _report(validate_metadata_dir(metadata_path, strict=strict))
        _check_components(metadata_path)

    click.secho("\nMetadata OK.", fg="green", bold=True)


@schema.command("list")
def list_cmd():
    """List content components."""
    reader = _load_reader(resolve_paths()[1])
    for item in reader.list_components():
        click.echo(f"{item['slug']:<24} {item['dataType']:<10} {item['name']}")


@schema.command()
@click.argument("component")
def show(component: str):
    """Print the expanded field tree of COMPONENT (slug or id) as JSON."""
    reader = _load_reader(resolve_paths()[1])
    try:
        document = reader.read(component)
    except SchemaError as e:
        abort(str(e))
    click.echo(json.dumps(document, indent=2))
