"""Schema model: content components and the fields composing them."""

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from contentforge.content.types import DataType


class SchemaError(Exception):
    """Base class for schema reader errors."""


class UnknownComponentError(SchemaError):
    """Raised when a component id or slug does not resolve."""

    def __init__(self, key: Any, referenced_by: str | None = None):
        self.key = key
        self.referenced_by = referenced_by
        origin = f" (referenced by '{referenced_by}')" if referenced_by else ""
        super().__init__(f"Content component '{key}' not found{origin}")


class ConfigKind(str, Enum):
    """The three shapes a field configuration value can take."""

    TEXT = "text"
    JSON = "json"
    FIELDS = "fields"


@dataclass
class FieldConfigValue:
    """One entry of a field's configuration map.

    value is a str for TEXT, any JSON-compatible structure for JSON, and a
    list of SchemaField for FIELDS (e.g. the allowed sub-fields of a block).
    """

    kind: ConfigKind
    value: Any

    @property
    def fields(self) -> list["SchemaField"]:
        return self.value if self.kind is ConfigKind.FIELDS else []


@dataclass
class SchemaField:
    id: uuid.UUID
    name: str
    slug: str
    component: str  # slug of the content component giving the field its kind
    description: str | None = None
    multi_language: bool = False
    hidden: bool = False
    min: int = 0
    max: int = 1
    sequence_number: int | None = None
    validation: dict[str, Any] | None = None
    config: dict[str, FieldConfigValue] = field(default_factory=dict)


@dataclass
class ContentComponent:
    """A reusable field kind: a scalar, or a compound made of nested fields.

    Attributes:
        data_type: Storage shape of values of this component
        component_name: Editor component rendering the field
        internal: Built-in components that cannot be edited
        fields: Nested field definitions (compound kinds)
        configuration_fields: Fields describing the configuration a field of
            this component accepts
    """

    id: uuid.UUID
    name: str
    slug: str
    data_type: DataType
    component_name: str
    description: str | None = None
    internal: bool = False
    fields: list[SchemaField] = field(default_factory=list)
    configuration_fields: list[SchemaField] = field(default_factory=list)
