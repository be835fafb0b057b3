"""Schema presentation: expand content components into field trees.

Only the schema endpoints use this. Materialization never consults the
schema; the data type stored on each field row is self-describing.
"""

import uuid
from typing import Any

from contentforge.schema.loader import ComponentLoader
from contentforge.schema.types import (
    ConfigKind,
    ContentComponent,
    FieldConfigValue,
    SchemaField,
    UnknownComponentError,
)


class SchemaReader:
    """Builds component and field documents from loaded definitions.

    A component used (directly or indirectly) inside its own fields is
    rendered without expanding its fields again at the inner occurrence,
    with ``recursive: true`` marking the cut.
    """

    def __init__(self, loader: ComponentLoader):
        self.loader = loader

    def get_component(
        self, key: str | uuid.UUID, referenced_by: str | None = None
    ) -> ContentComponent:
        component = self.loader.get_component(key)
        if component is None:
            raise UnknownComponentError(key, referenced_by)
        return component

    def list_components(self) -> list[dict[str, Any]]:
        """Flat documents for all components, sorted by name."""
        components = [
            self.get_component(slug) for slug in self.loader.list_components()
        ]
        return [
            self._component_summary(c)
            for c in sorted(components, key=lambda c: c.name.lower())
        ]

    def read(self, key: str | uuid.UUID) -> dict[str, Any]:
        """Full tree for one component: nested fields and expanded config."""
        return self._component_tree(self.get_component(key), ())

    # ------------------------------------------------------------------
    # Document builders
    # ------------------------------------------------------------------

    def _component_summary(self, component: ContentComponent) -> dict[str, Any]:
        return {
            "id": str(component.id),
            "name": component.name,
            "slug": component.slug,
            "description": component.description,
            "componentName": component.component_name,
            "internal": component.internal,
            "dataType": component.data_type.value,
        }

    def _component_tree(
        self, component: ContentComponent, stack: tuple[str, ...]
    ) -> dict[str, Any]:
        document = self._component_summary(component)
        if component.slug in stack:
            document["recursive"] = True
            document["configurationFields"] = []
            document["fields"] = []
            return document

        inner = stack + (component.slug,)
        document["configurationFields"] = [
            self._field_tree(f, inner) for f in component.configuration_fields
        ]
        document["fields"] = [self._field_tree(f, inner) for f in component.fields]
        return document

    def _field_base(self, field: SchemaField) -> dict[str, Any]:
        return {
            "id": str(field.id),
            "name": field.name,
            "slug": field.slug,
            "description": field.description,
            "multiLanguage": field.multi_language,
            "hidden": field.hidden,
            "min": field.min,
            "max": field.max,
            "sequenceNumber": field.sequence_number,
            "validation": field.validation,
        }

    def _field_tree(self, field: SchemaField, stack: tuple[str, ...]) -> dict[str, Any]:
        """Field with its component expanded into a full tree."""
        component = self.get_component(field.component, referenced_by=field.slug)
        document = self._field_base(field)
        document["contentComponent"] = self._component_tree(component, stack)
        document["config"] = self._config(field.config)
        return document

    def _field_document(self, field: SchemaField) -> dict[str, Any]:
        """Field with a flat component, used inside configuration values."""
        component = self.get_component(field.component, referenced_by=field.slug)
        document = self._field_base(field)
        document["contentComponent"] = self._component_summary(component)
        document["config"] = self._config(field.config)
        return document

    def _config(self, config: dict[str, FieldConfigValue]) -> dict[str, Any]:
        result: dict[str, Any] = {}
        for key, item in config.items():
            if item.kind is ConfigKind.FIELDS:
                result[key] = [self._field_document(f) for f in item.fields]
            else:
                result[key] = item.value
        return result
