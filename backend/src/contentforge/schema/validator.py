"""
schema/validator.py — JSON Schema checks for the metadata directory.

Component files (``components/*.yaml``) and the policy file
(``policies.yaml``) are checked against the schemas shipped in
``schemas/``. The checks are structural only; whether every field names a
known component is decided by the schema reader.

Usage:
    from contentforge.schema.validator import validate_metadata_dir

    for issue in validate_metadata_dir(Path("metadata")):
        print(issue)
"""
from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from jsonschema import Draft202012Validator
from jsonschema.exceptions import ValidationError
from referencing import Registry, Resource
from referencing.jsonschema import DRAFT202012

logger = logging.getLogger(__name__)

_SCHEMAS_DIR = Path(__file__).parent / "schemas"

# Subdirectory of the metadata root → schema for each YAML file in it
_SUBDIR_SCHEMA: dict[str, str] = {
    "components": "component.schema.json",
}

# File at the metadata root → its schema
_FILE_SCHEMA: dict[str, str] = {
    "policies.yaml": "policies.schema.json",
}


@dataclass
class ValidationIssue:
    """One problem found in a metadata file.

    path locates the offending node inside the document, e.g.
    ``fields[0]/config``; severity is "error" or "warning".
    """

    file: Path
    message: str
    path: str = ""
    severity: str = "error"

    def __str__(self) -> str:
        where = f"{self.file} at {self.path}" if self.path else str(self.file)
        return f"[{self.severity.upper()}] {where}: {self.message}"


@lru_cache(maxsize=1)
def _registry() -> Registry:
    """All shipped schemas, keyed by their $id so relative $refs resolve."""
    resources = []
    for schema_file in sorted(_SCHEMAS_DIR.glob("*.schema.json")):
        with schema_file.open() as fh:
            contents = json.load(fh)
        resources.append((contents["$id"], DRAFT202012.create_resource(contents)))
    return Registry().with_resources(resources)


def _validator(schema_name: str, registry: Registry) -> Draft202012Validator:
    with (_SCHEMAS_DIR / schema_name).open() as fh:
        return Draft202012Validator(json.load(fh), registry=registry)


def _location(error: ValidationError) -> str:
    """Render the error's document path as ``fields[0]/config/blocks``."""
    location = ""
    for part in error.absolute_path:
        if isinstance(part, int):
            location += f"[{part}]"
        else:
            location += f"/{part}" if location else str(part)
    return location


def _read_yaml(yaml_path: Path) -> tuple[Any, ValidationIssue | None]:
    try:
        with yaml_path.open() as fh:
            document = yaml.safe_load(fh)
    except yaml.YAMLError as exc:
        return None, ValidationIssue(file=yaml_path, message=f"YAML parse error: {exc}")
    if document is None:
        return None, ValidationIssue(
            file=yaml_path, message="File is empty or contains only whitespace"
        )
    return document, None


def validate_yaml_file(
    yaml_path: Path,
    schema_name: str,
    *,
    registry: Registry | None = None,
) -> list[ValidationIssue]:
    """
    Check one YAML file against one of the shipped schemas.

    Args:
        yaml_path:   File to check.
        schema_name: Schema file name, e.g. ``"component.schema.json"``.
        registry:    Schema registry to resolve references with; the shipped
                     schemas are used when omitted.

    Returns:
        The issues found, ordered by document position; empty when valid.
    """
    document, problem = _read_yaml(yaml_path)
    if problem is not None:
        return [problem]

    validator = _validator(schema_name, registry or _registry())
    errors = sorted(validator.iter_errors(document), key=lambda e: list(e.path))
    return [
        ValidationIssue(file=yaml_path, message=error.message, path=_location(error))
        for error in errors
    ]


def _duplicate_slug_issues(files: list[Path]) -> list[ValidationIssue]:
    """Warn about component slugs declared in more than one file."""
    first_seen: dict[str, Path] = {}
    warnings: list[ValidationIssue] = []
    for yaml_file in files:
        document, problem = _read_yaml(yaml_file)
        if problem is not None or not isinstance(document, dict) or "component" not in document:
            continue
        slug = str(document["component"])
        if slug not in first_seen:
            first_seen[slug] = yaml_file
            continue
        warnings.append(
            ValidationIssue(
                file=yaml_file,
                message=f"Component '{slug}' is already declared in {first_seen[slug].name}",
                path="component",
                severity="warning",
            )
        )
    return warnings


def _targets(metadata_dir: Path) -> Iterator[tuple[list[Path], str]]:
    """Groups of files to check, each with the schema that applies."""
    for subdir, schema_name in _SUBDIR_SCHEMA.items():
        if (metadata_dir / subdir).is_dir():
            yield sorted((metadata_dir / subdir).glob("*.yaml")), schema_name
    for filename, schema_name in _FILE_SCHEMA.items():
        if (metadata_dir / filename).is_file():
            yield [metadata_dir / filename], schema_name


def validate_metadata_dir(
    metadata_dir: Path,
    *,
    strict: bool = False,
) -> list[ValidationIssue]:
    """
    Check every metadata file under *metadata_dir*.

    Args:
        metadata_dir: Metadata root holding ``components/`` and ``policies.yaml``.
        strict:       Report warnings as errors.

    Returns:
        Issues across all files; empty when the whole directory is valid.
    """
    if not metadata_dir.is_dir():
        return [
            ValidationIssue(
                file=metadata_dir,
                message=f"Metadata directory does not exist: {metadata_dir}",
            )
        ]

    try:
        registry = _registry()
    except (OSError, json.JSONDecodeError) as exc:
        return [ValidationIssue(file=_SCHEMAS_DIR, message=f"Cannot load JSON Schemas: {exc}")]

    issues: list[ValidationIssue] = []
    for files, schema_name in _targets(metadata_dir):
        for yaml_file in files:
            issues += validate_yaml_file(yaml_file, schema_name, registry=registry)
        if schema_name == "component.schema.json":
            issues += _duplicate_slug_issues(files)

    if strict:
        for issue in issues:
            issue.severity = "error"

    logger.debug("Checked metadata in %s: %d issue(s)", metadata_dir, len(issues))
    return issues
