"""Locations of the metadata directory and local data."""

import os
from pathlib import Path


def resolve_base_path() -> Path:
    """Directory holding ``metadata/`` and ``data/`` (cwd, or its parent when in backend/)."""
    cwd = Path.cwd()
    return cwd.parent if cwd.name == "backend" else cwd


def resolve_metadata_path(base_path: Path) -> Path:
    configured = os.environ.get("CONTENTFORGE_METADATA_PATH")
    return Path(configured) if configured else base_path / "metadata"
