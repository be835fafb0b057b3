"""Load content component definitions from YAML files."""

import logging
import re
import uuid
from pathlib import Path
from typing import Any

import yaml

from contentforge.content.types import UnknownDataTypeError, parse_data_type
from contentforge.schema.types import (
    ConfigKind,
    ContentComponent,
    FieldConfigValue,
    SchemaField,
)

logger = logging.getLogger(__name__)

# Stable ids for definitions that do not declare one
ID_NAMESPACE = uuid.uuid5(uuid.NAMESPACE_URL, "urn:dcm:content-components")


def slugify(text: str) -> str:
    """Lowercase, ASCII-only, hyphen separated."""
    slug = re.sub(r"[^a-z0-9]+", "-", text.lower())
    return slug.strip("-")


class ComponentLoader:
    """Loads content component definitions from ``<metadata>/components/*.yaml``."""

    def __init__(self, metadata_path: Path):
        self.metadata_path = metadata_path
        self.components: dict[str, ContentComponent] = {}
        self._by_id: dict[uuid.UUID, ContentComponent] = {}

    def load_all(self) -> None:
        """Load all components."""
        components_path = self.metadata_path / "components"
        if not components_path.exists():
            return

        for yaml_file in sorted(components_path.glob("*.yaml")):
            with open(yaml_file) as f:
                data = yaml.safe_load(f)
                if data and "component" in data:
                    self.add(self._resolve_component(data))

        logger.debug("Loaded %d content component(s) from %s", len(self.components), components_path)

    def add(self, component: ContentComponent) -> None:
        """Register a component, rejecting duplicate slugs and ids."""
        if component.slug in self.components:
            raise ValueError(f"Duplicate content component slug '{component.slug}'")
        if component.id in self._by_id:
            raise ValueError(
                f"Duplicate content component id '{component.id}' used by both "
                f"'{self._by_id[component.id].slug}' and '{component.slug}'"
            )
        self.components[component.slug] = component
        self._by_id[component.id] = component

    def _resolve_component(self, data: dict) -> ContentComponent:
        """Convert a component dict to a ContentComponent."""
        slug = str(data["component"])
        name = data.get("name", self._to_display_name(slug))
        try:
            data_type = parse_data_type(data.get("dataType", "TEXT"))
        except UnknownDataTypeError as e:
            raise ValueError(f"Component '{slug}': {e}") from e

        return ContentComponent(
            id=self._resolve_id(data.get("id"), slug),
            name=name,
            slug=slug,
            data_type=data_type,
            component_name=data.get("componentName", f"{slug}-field"),
            description=data.get("description"),
            internal=data.get("internal", False),
            fields=self._resolve_fields(data.get("fields", []), slug),
            configuration_fields=self._resolve_fields(
                data.get("configurationFields", []), f"{slug}#config"
            ),
        )

    def _resolve_fields(self, items: list[dict], path: str) -> list[SchemaField]:
        return [
            self._resolve_field(item, path, position)
            for position, item in enumerate(items)
        ]

    def _resolve_field(self, data: dict, path: str, position: int) -> SchemaField:
        """Convert a field dict to a SchemaField, expanding nested config fields."""
        if "name" not in data or "component" not in data:
            raise ValueError(f"Field #{position} of '{path}' needs 'name' and 'component'")

        name = data["name"]
        slug = data.get("slug") or slugify(name)
        field_path = f"{path}.{slug}"

        return SchemaField(
            id=self._resolve_id(data.get("id"), field_path),
            name=name,
            slug=slug,
            component=str(data["component"]),
            description=data.get("description"),
            multi_language=data.get("multiLanguage", False),
            hidden=data.get("hidden", False),
            min=data.get("min", 0),
            max=data.get("max", 1),
            sequence_number=data.get("sequenceNumber", position),
            validation=data.get("validation"),
            config={
                key: self._resolve_config(value, f"{field_path}:{key}")
                for key, value in (data.get("config") or {}).items()
            },
        )

    def _resolve_config(self, value: Any, path: str) -> FieldConfigValue:
        """Classify a configuration value.

        A string is plain text, ``{"fields": [...]}`` is a nested field list,
        ``{"json": ...}`` is explicit JSON, and anything else is JSON as is.
        """
        if isinstance(value, str):
            return FieldConfigValue(ConfigKind.TEXT, value)
        if isinstance(value, dict) and len(value) == 1:
            if "fields" in value and isinstance(value["fields"], list):
                return FieldConfigValue(
                    ConfigKind.FIELDS, self._resolve_fields(value["fields"], path)
                )
            if "json" in value:
                return FieldConfigValue(ConfigKind.JSON, value["json"])
        return FieldConfigValue(ConfigKind.JSON, value)

    def _resolve_id(self, value: Any, path: str) -> uuid.UUID:
        if value:
            return uuid.UUID(str(value))
        return uuid.uuid5(ID_NAMESPACE, path)

    def _to_display_name(self, slug: str) -> str:
        """Convert kebab-case to Title Case."""
        return slug.replace("-", " ").replace("_", " ").title()

    def get_component(self, key: str | uuid.UUID) -> ContentComponent | None:
        """Get a component by slug or id."""
        if isinstance(key, uuid.UUID):
            return self._by_id.get(key)
        component = self.components.get(key)
        if component is None:
            try:
                return self._by_id.get(uuid.UUID(key))
            except ValueError:
                return None
        return component

    def list_components(self) -> list[str]:
        """List all component slugs."""
        return list(self.components.keys())
