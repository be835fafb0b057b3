"""Content field storage types and the field materialization engine.

Usage:
    from contentforge.content import FieldRow, materialize

    rows = [FieldRow.from_dict(r) for r in stored_rows]
    fields = materialize(revision_id, translation_id, None, rows, populate=True)
"""

from contentforge.content.config import EngineConfig
from contentforge.content.materializer import (
    DuplicatePolicy,
    FieldIndex,
    FieldMaterializer,
    materialize,
)
from contentforge.content.types import (
    DataType,
    DuplicateFieldError,
    FieldRow,
    MalformedReferenceError,
    MaterializationError,
    ReferencePointer,
    UnknownDataTypeError,
    parse_data_type,
)

__all__ = [
    "DataType",
    "DuplicateFieldError",
    "DuplicatePolicy",
    "EngineConfig",
    "FieldIndex",
    "FieldMaterializer",
    "FieldRow",
    "MalformedReferenceError",
    "MaterializationError",
    "ReferencePointer",
    "UnknownDataTypeError",
    "materialize",
    "parse_data_type",
]
