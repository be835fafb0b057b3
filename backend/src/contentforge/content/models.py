"""Content entity records as loaded from storage."""

import uuid
from dataclasses import dataclass
from datetime import datetime


@dataclass
class Language:
    id: uuid.UUID
    key: str  # e.g. "en", "nl-BE"
    name: str = ""

    def to_dict(self) -> dict[str, str]:
        return {"id": str(self.id), "key": self.key, "name": self.name}


@dataclass
class ContentEntity:
    """One language variant of a piece of content.

    Variants of the same content in other languages share translation_id.
    """

    id: uuid.UUID
    site_id: uuid.UUID
    name: str
    slug: str
    content_type_id: uuid.UUID
    language_id: uuid.UUID
    translation_id: uuid.UUID
    workflow_state_id: uuid.UUID | None = None
    published: bool = False
    deleted: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class ContentRevision:
    """Immutable snapshot of a content entity's field values.

    Field rows owned by the revision carry source_id == id; rows shared by
    all translations carry source_id == translation_id.
    """

    id: uuid.UUID
    content_id: uuid.UUID
    translation_id: uuid.UUID
    created_at: datetime | None = None


@dataclass
class Page:
    """Pagination info for list responses."""

    number: int
    size: int
    total_elements: int

    @property
    def total_pages(self) -> int:
        if self.size <= 0:
            return 1
        return max(1, -(-self.total_elements // self.size))

    def to_dict(self) -> dict[str, int]:
        return {
            "number": self.number,
            "size": self.size,
            "totalElements": self.total_elements,
            "totalPages": self.total_pages,
        }
