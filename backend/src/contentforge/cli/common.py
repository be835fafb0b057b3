"""Helpers shared by the CLI command groups."""

from pathlib import Path
from typing import NoReturn

import click

from contentforge.paths import resolve_base_path, resolve_metadata_path


def resolve_paths() -> tuple[Path, Path]:
    """Base directory and metadata directory for the current invocation."""
    base_path = resolve_base_path()
    return base_path, resolve_metadata_path(base_path)


def abort(message: str) -> NoReturn:
    """Print message in red on stderr and exit with status 1."""
    click.secho(message, fg="red", err=True)
    raise SystemExit(1)
