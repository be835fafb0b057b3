"""Content CLI commands — materialize row files and stored content."""

import json
import uuid
from pathlib import Path

import click
import yaml

from contentforge.cli.common import abort, resolve_paths
from contentforge.content import (
    DuplicatePolicy,
    EngineConfig,
    FieldRow,
    MaterializationError,
    materialize as materialize_rows,
)
from contentforge.content.documents import content_with_fields
from contentforge.persistence import DatabaseConfig, create_store


def _load_rows(path: Path) -> list[FieldRow]:
    """Read field rows from a YAML or JSON file (a list, or {"rows": [...]})."""
    with open(path) as f:
        data = yaml.safe_load(f)
    if isinstance(data, dict):
        data = data.get("rows", [])
    if not isinstance(data, list):
        raise click.BadParameter(f"{path} does not contain a list of field rows")
    return [FieldRow.from_dict(item) for item in data]


def _engine_config(max_depth: int | None, duplicates: str | None) -> EngineConfig:
    config = EngineConfig.from_env()
    if max_depth is not None:
        config.max_reference_depth = max_depth
    if duplicates is not None:
        config.duplicates = DuplicatePolicy(duplicates)
    return config


@click.group()
def content():
    """Content commands."""
    pass


_engine_options = [
    click.option("--populate", is_flag=True, default=False, help="Expand references."),
    click.option(
        "--max-reference-depth",
        type=click.IntRange(min=0),
        default=None,
        help="Leave references deeper than this unexpanded.",
    ),
    click.option(
        "--duplicates",
        type=click.Choice([p.value for p in DuplicatePolicy]),
        default=None,
        help="Policy for sibling fields sharing a name.",
    ),
]


def engine_options(fn):
    for option in reversed(_engine_options):
        fn = option(fn)
    return fn


@content.command()
@click.argument("rows_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--translation-id", type=click.UUID, required=True)
@click.option("--content-id", type=click.UUID, default=None, help="Revision id (omit for defaults).")
@click.option("--parent-id", type=click.UUID, default=None, help="Start below this field row.")
@engine_options
def materialize(
    rows_file: Path,
    translation_id: uuid.UUID,
    content_id: uuid.UUID | None,
    parent_id: uuid.UUID | None,
    populate: bool,
    max_reference_depth: int | None,
    duplicates: str | None,
):
    """Materialize the field rows in ROWS_FILE and print the document as JSON."""
    try:
        rows = _load_rows(rows_file)
    except (KeyError, TypeError, ValueError, MaterializationError) as e:
        abort(f"Invalid row file {rows_file}: {e}")

    config = _engine_config(max_reference_depth, duplicates)
    try:
        document = materialize_rows(
            content_id, translation_id, parent_id, rows, populate, **config.options()
        )
    except MaterializationError as e:
        abort(f"Materialization failed: {e}")

    click.echo(json.dumps(document, indent=2, default=str))


@content.command()
@click.argument("content_id", type=click.UUID)
@click.option("--site-id", type=click.UUID, required=True)
@engine_options
def show(
    content_id: uuid.UUID,
    site_id: uuid.UUID,
    populate: bool,
    max_reference_depth: int | None,
    duplicates: str | None,
):
    """Print a stored content entity with its materialized fields."""
    base_path, _ = resolve_paths()
    store = create_store(DatabaseConfig.from_env(base_path))
    config = _engine_config(max_reference_depth, duplicates)
    try:
        found = store.get_content(site_id, content_id)
        if not found:
            abort(f"Content {content_id} not found in site {site_id}")
        entity, revision, language = found
        rows = store.load_field_closure(
            revision.id,
            revision.translation_id,
            populate,
            max_depth=config.max_reference_depth,
        )
        document = content_with_fields(entity, revision, rows, language, populate, config)
    except MaterializationError as e:
        abort(f"Materialization failed: {e}")
    finally:
        store.close()

    click.echo(json.dumps(document, indent=2, default=str))
