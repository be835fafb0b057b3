"""Content component schema: loading, validation and presentation."""

from contentforge.schema.loader import ComponentLoader, slugify
from contentforge.schema.reader import SchemaReader
from contentforge.schema.types import (
    ConfigKind,
    ContentComponent,
    FieldConfigValue,
    SchemaError,
    SchemaField,
    UnknownComponentError,
)

__all__ = [
    "ComponentLoader",
    "ConfigKind",
    "ContentComponent",
    "FieldConfigValue",
    "SchemaError",
    "SchemaField",
    "SchemaReader",
    "UnknownComponentError",
    "slugify",
]
