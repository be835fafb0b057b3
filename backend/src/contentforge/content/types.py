"""Core types for stored content field values.

A content revision keeps its field values as a flat list of rows. Compound
values (arrays, objects, blocks) are rebuilt from the ``parent_id`` links
between rows:

- TEXT / NUMBER / BOOLEAN: scalar stored in ``value``
- REFERENCE: ``value`` is a pointer ``{"contentId": ..., "translationId": ...}``
- ARRAY: children ordered by ``sequence_number``
- OBJECT: children keyed by ``name``
- BLOCK: like OBJECT, ``value`` names the block variant
"""

import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Any


class DataType(str, Enum):
    """Storage shape of a field row."""

    TEXT = "TEXT"
    NUMBER = "NUMBER"
    BOOLEAN = "BOOLEAN"
    REFERENCE = "REFERENCE"
    ARRAY = "ARRAY"
    OBJECT = "OBJECT"
    BLOCK = "BLOCK"

    @property
    def is_scalar(self) -> bool:
        return self in (DataType.TEXT, DataType.NUMBER, DataType.BOOLEAN)

    @property
    def is_compound(self) -> bool:
        return self in (DataType.ARRAY, DataType.OBJECT, DataType.BLOCK)


class MaterializationError(Exception):
    """Base class for errors that abort a materialization pass."""


class UnknownDataTypeError(MaterializationError):
    """Raised when a row carries a data type outside the closed set."""

    def __init__(self, data_type: Any, row_id: Any = None):
        self.data_type = data_type
        self.row_id = row_id
        location = f" on field row {row_id}" if row_id is not None else ""
        super().__init__(f"Unknown data type {data_type!r}{location}")


class MalformedReferenceError(MaterializationError):
    """Raised when a reference pointer carries identifiers that are not UUIDs."""

    def __init__(self, payload: Any, row_id: Any = None):
        self.payload = payload
        self.row_id = row_id
        location = f" on field row {row_id}" if row_id is not None else ""
        super().__init__(f"Malformed reference payload{location}: {payload!r}")


class DuplicateFieldError(MaterializationError):
    """Raised under the reject policy when two siblings share a name."""

    def __init__(self, name: str, parent_id: Any = None):
        self.name = name
        self.parent_id = parent_id
        scope = f"field {parent_id}" if parent_id is not None else "top level"
        super().__init__(f"Duplicate field name '{name}' at {scope}")


def parse_data_type(value: Any, row_id: Any = None) -> DataType:
    """Coerce a stored tag to a DataType, failing on anything unknown."""
    if isinstance(value, DataType):
        return value
    try:
        return DataType(str(value).upper())
    except ValueError:
        raise UnknownDataTypeError(value, row_id) from None


def _to_uuid(value: Any) -> uuid.UUID | None:
    if value is None or isinstance(value, uuid.UUID):
        return value
    return uuid.UUID(str(value))


def _to_sequence(value: Any) -> int | None:
    """Array position: an integer, or a string holding one."""
    if value is None:
        return None
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value)
    raise ValueError(f"sequenceNumber must be an integer, got {value!r}")


@dataclass(frozen=True)
class ReferencePointer:
    """Target of a REFERENCE field: a content source plus its translation."""

    content_id: uuid.UUID
    translation_id: uuid.UUID

    @classmethod
    def from_value(cls, value: Any, row_id: Any = None) -> "ReferencePointer | None":
        """Parse a stored reference payload.

        Returns None when the payload does not carry both identifiers as
        strings, which leaves the pointer unresolvable. Raises
        MalformedReferenceError when both are present but not valid UUIDs.
        """
        if not isinstance(value, dict):
            return None
        content_id = value.get("contentId")
        translation_id = value.get("translationId")
        if not isinstance(content_id, str) or not isinstance(translation_id, str):
            return None
        try:
            return cls(
                content_id=uuid.UUID(content_id),
                translation_id=uuid.UUID(translation_id),
            )
        except ValueError:
            raise MalformedReferenceError(value, row_id) from None

    @property
    def key(self) -> tuple[uuid.UUID, uuid.UUID]:
        return (self.content_id, self.translation_id)

    def to_dict(self) -> dict[str, str]:
        return {
            "contentId": str(self.content_id),
            "translationId": str(self.translation_id),
        }


@dataclass(frozen=True)
class FieldRow:
    """One stored field value.

    Attributes:
        id: Identifier of this value instance
        source_id: Revision or translation the value belongs to
        name: Key inside the parent object/block (field slug at top level)
        data_type: Storage shape, drives materialization
        value: Scalar, reference pointer or block discriminator
        parent_id: Enclosing compound field row, None at top level
        sequence_number: Position inside an enclosing ARRAY
    """

    id: uuid.UUID
    source_id: uuid.UUID
    name: str
    data_type: DataType
    value: Any = None
    parent_id: uuid.UUID | None = None
    sequence_number: int | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FieldRow":
        """Create a FieldRow from its camelCase JSON/YAML representation."""
        row_id = _to_uuid(data["id"])
        return cls(
            id=row_id,  # type: ignore[arg-type]
            source_id=_to_uuid(data["sourceId"]),  # type: ignore[arg-type]
            name=data.get("name", ""),
            data_type=parse_data_type(data.get("dataType"), row_id),
            value=data.get("value"),
            parent_id=_to_uuid(data.get("parentId")),
            sequence_number=_to_sequence(data.get("sequenceNumber")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": str(self.id),
            "parentId": str(self.parent_id) if self.parent_id else None,
            "sourceId": str(self.source_id),
            "sequenceNumber": self.sequence_number,
            "name": self.name,
            "dataType": self.data_type.value,
            "value": self.value,
        }
