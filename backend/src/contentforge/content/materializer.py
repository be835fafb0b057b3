"""Rebuild nested field documents from flat field rows.

The rows of a revision form a forest through ``parent_id``. A
materialization pass starts at one parent (``None`` for the top level),
keeps the rows visible to the requested content source, and resolves each
of them by its data type:

    {"title": "Hello", "tags": ["x", "y"], "hero": {"block": "quote", "fields": {...}}}

Reference fields are left as raw pointers unless ``populate`` is set, in
which case the referenced entity is materialized from the same row set.
A reference back to an entity that is already being expanded on the
current path stays a raw pointer.
"""

import copy
import uuid
from collections import defaultdict
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from contentforge.content.types import (
    DataType,
    DuplicateFieldError,
    FieldRow,
    ReferencePointer,
    parse_data_type,
)

SourceKey = tuple[uuid.UUID | None, uuid.UUID]


class DuplicatePolicy(str, Enum):
    """What to do when two sibling rows share a name."""

    LAST_WINS = "last"
    REJECT = "reject"


class FieldIndex:
    """Rows indexed by id, with children grouped by parent id.

    Built once per request and shared by every recursive step, including
    reference expansion. Rows keep their input order inside each group.
    """

    def __init__(self, rows: Iterable[FieldRow]):
        self._rows: dict[uuid.UUID, FieldRow] = {}
        self._children: dict[uuid.UUID | None, list[FieldRow]] = defaultdict(list)
        for row in rows:
            self._rows[row.id] = row
            self._children[row.parent_id].append(row)

    def __len__(self) -> int:
        return len(self._rows)

    def __contains__(self, row_id: object) -> bool:
        return row_id in self._rows

    def get(self, row_id: uuid.UUID) -> FieldRow | None:
        return self._rows.get(row_id)

    def children(
        self,
        parent_id: uuid.UUID | None,
        sources: frozenset[uuid.UUID | None],
    ) -> list[FieldRow]:
        """Rows directly under parent_id whose source is one of sources."""
        return [
            row
            for row in self._children.get(parent_id, ())
            if row.source_id in sources
        ]


@dataclass(frozen=True)
class _Scope:
    """Content source being materialized plus the reference path leading to it."""

    content_id: uuid.UUID | None
    translation_id: uuid.UUID
    path: frozenset[SourceKey]
    depth: int = 0

    @property
    def sources(self) -> frozenset[uuid.UUID | None]:
        return frozenset((self.content_id, self.translation_id))

    def enter(self, pointer: ReferencePointer) -> "_Scope":
        return _Scope(
            content_id=pointer.content_id,
            translation_id=pointer.translation_id,
            path=self.path | {pointer.key},
            depth=self.depth + 1,
        )


def _sequence_key(row: FieldRow) -> tuple[bool, int]:
    # Rows without a sequence number sort first
    return (row.sequence_number is not None, row.sequence_number or 0)


def _detached(value: Any) -> Any:
    if isinstance(value, (dict, list)):
        return copy.deepcopy(value)
    return value


class FieldMaterializer:
    """Turns an indexed row set into nested name -> value documents.

    Instances hold no per-pass state and never mutate the rows, so one
    materializer can serve any number of passes over the same row set.

    Args:
        rows: Field rows (or a prebuilt FieldIndex) for every content source
            the pass may reach, referenced entities included
        populate: Expand REFERENCE fields into the target's fields
        max_reference_depth: Stop expanding references below this depth
            (None means unbounded; cycles are always cut)
        duplicates: Policy for sibling rows sharing a name
    """

    def __init__(
        self,
        rows: Iterable[FieldRow] | FieldIndex,
        populate: bool = False,
        *,
        max_reference_depth: int | None = None,
        duplicates: DuplicatePolicy = DuplicatePolicy.LAST_WINS,
    ):
        self.index = rows if isinstance(rows, FieldIndex) else FieldIndex(rows)
        self.populate = populate
        self.max_reference_depth = max_reference_depth
        self.duplicates = DuplicatePolicy(duplicates)
        self._resolvers: dict[DataType, Callable[[_Scope, FieldRow], Any]] = {
            DataType.TEXT: self._resolve_scalar,
            DataType.NUMBER: self._resolve_scalar,
            DataType.BOOLEAN: self._resolve_scalar,
            DataType.REFERENCE: self._resolve_reference,
            DataType.ARRAY: self._resolve_array,
            DataType.OBJECT: self._resolve_object,
            DataType.BLOCK: self._resolve_block,
        }

    def materialize(
        self,
        content_id: uuid.UUID | None,
        translation_id: uuid.UUID,
        parent_id: uuid.UUID | None = None,
    ) -> dict[str, Any]:
        """Materialize the fields under parent_id for one content source.

        Args:
            content_id: Revision id, or None for default values of unsaved content
            translation_id: Translation id shared across languages
            parent_id: Compound field row to start from, None for the top level

        Returns:
            Mapping of field name to resolved value

        Raises:
            MalformedReferenceError: A reference carries invalid identifiers
            UnknownDataTypeError: A row carries a data type outside the closed set
            DuplicateFieldError: Sibling names collide under the reject policy
        """
        scope = _Scope(
            content_id=content_id,
            translation_id=translation_id,
            path=frozenset({(content_id, translation_id)}),
        )
        return self._collect_object(scope, parent_id)

    # ------------------------------------------------------------------
    # Scope collection
    # ------------------------------------------------------------------

    def _collect_object(
        self, scope: _Scope, parent_id: uuid.UUID | None
    ) -> dict[str, Any]:
        result: dict[str, Any] = {}
        for row in self.index.children(parent_id, scope.sources):
            if row.name in result and self.duplicates is DuplicatePolicy.REJECT:
                raise DuplicateFieldError(row.name, parent_id)
            result[row.name] = self._resolve(scope, row)
        return result

    def _collect_array(self, scope: _Scope, parent_id: uuid.UUID) -> list[Any]:
        rows = sorted(self.index.children(parent_id, scope.sources), key=_sequence_key)
        return [self._resolve(scope, row) for row in rows]

    # ------------------------------------------------------------------
    # Per data type resolution
    # ------------------------------------------------------------------

    def _resolve(self, scope: _Scope, row: FieldRow) -> Any:
        data_type = parse_data_type(row.data_type, row.id)
        return self._resolvers[data_type](scope, row)

    def _resolve_scalar(self, scope: _Scope, row: FieldRow) -> Any:
        return _detached(row.value)

    def _resolve_reference(self, scope: _Scope, row: FieldRow) -> Any:
        if not self.populate:
            return _detached(row.value)

        pointer = ReferencePointer.from_value(row.value, row.id)
        if pointer is None or pointer.key in scope.path:
            return _detached(row.value)
        if (
            self.max_reference_depth is not None
            and scope.depth >= self.max_reference_depth
        ):
            return _detached(row.value)

        return {
            "contentId": row.value["contentId"],
            "translationId": row.value["translationId"],
            "fields": self._collect_object(scope.enter(pointer), None),
        }

    def _resolve_array(self, scope: _Scope, row: FieldRow) -> list[Any]:
        return self._collect_array(scope, row.id)

    def _resolve_object(self, scope: _Scope, row: FieldRow) -> dict[str, Any]:
        return self._collect_object(scope, row.id)

    def _resolve_block(self, scope: _Scope, row: FieldRow) -> dict[str, Any]:
        return {
            "block": _detached(row.value),
            "fields": self._collect_object(scope, row.id),
        }


def materialize(
    content_id: uuid.UUID | None,
    translation_id: uuid.UUID,
    parent_id: uuid.UUID | None,
    rows: Iterable[FieldRow] | FieldIndex,
    populate: bool = False,
    *,
    max_reference_depth: int | None = None,
    duplicates: DuplicatePolicy = DuplicatePolicy.LAST_WINS,
) -> dict[str, Any]:
    """Materialize one compound scope of a content source.

    Convenience wrapper around FieldMaterializer for single passes.
    """
    materializer = FieldMaterializer(
        rows,
        populate,
        max_reference_depth=max_reference_depth,
        duplicates=duplicates,
    )
    return materializer.materialize(content_id, translation_id, parent_id)
